from bouwdepot.services.pipeline.steps.document_type_verification import DocumentTypeVerificationStep
from bouwdepot.services.pipeline.steps.fraud_detection import FraudDetectionStep
from bouwdepot.services.pipeline.steps.invoice_parties_extraction import InvoicePartiesExtractionStep
from bouwdepot.services.pipeline.steps.invoice_structure_extraction import InvoiceStructureExtractionStep
from bouwdepot.services.pipeline.steps.language_detection import LanguageDetectionStep
from bouwdepot.services.pipeline.steps.line_items_extraction import LineItemsExtractionStep
from bouwdepot.services.pipeline.steps.withdrawal_eligibility import WithdrawalEligibilityStep

__all__ = [
    "DocumentTypeVerificationStep",
    "FraudDetectionStep",
    "InvoicePartiesExtractionStep",
    "InvoiceStructureExtractionStep",
    "LanguageDetectionStep",
    "LineItemsExtractionStep",
    "WithdrawalEligibilityStep",
]
