from bouwdepot.models.validation_models import (
    DocumentTypeInfo,
    IssueSeverity,
    ProcessingStepStatus,
    ValidationOutcome,
    ValidationState,
)
from bouwdepot.schemas.responses import DocumentTypeVerificationResponse
from bouwdepot.services.pipeline.base_step import BasePipelineStep, is_accepted_document
from bouwdepot.utils.logging import get_logger

LOGGER = get_logger(__name__)


class DocumentTypeVerificationStep(BasePipelineStep):
    """Checks that the upload is an invoice, receipt or quotation.

    Anything else disqualifies the document and halts the run.
    """

    name = "VerifyDocumentType"
    order = 200
    template_name = "DocumentTypeVerification"
    response_type = DocumentTypeVerificationResponse
    operation = "DocumentTypeVerification"
    estimated_tokens = 150
    progress_description = "Verifying document type"

    async def process_response(self, state: ValidationState, response: DocumentTypeVerificationResponse) -> None:
        state.document_type = DocumentTypeInfo(
            document_type=response.document_type,
            is_invoice=response.is_invoice,
            is_receipt=response.is_receipt,
            is_quotation=response.is_quotation,
            confidence=response.confidence,
            explanation=response.explanation,
        )

        if is_accepted_document(state):
            state.add_processing_step(
                self.name,
                f"Document verified as {response.document_type} (confidence: {response.confidence}%)",
                ProcessingStepStatus.SUCCESS,
            )
        else:
            LOGGER.info(f"Document rejected as {response.document_type}: {state.id}")
            state.add_processing_step(
                self.name,
                f"Document is not a valid invoice, receipt or quotation: {response.document_type}",
                ProcessingStepStatus.WARNING,
            )
            state.add_issue(
                "InvalidDocumentType",
                f"The document was identified as '{response.document_type}'. {response.explanation}".strip(),
                IssueSeverity.ERROR,
                field_name="documentType",
            )
            state.set_outcome(
                ValidationOutcome.INVALID,
                f"The uploaded document is not a valid invoice, receipt or quotation "
                f"(detected: {response.document_type}).",
            )

        self.record_model_usage(state)
