from bouwdepot.models.validation_models import (
    Invoice,
    IssueSeverity,
    ProcessingStepStatus,
    ValidationState,
)
from bouwdepot.schemas.responses import InvoiceHeaderResponse
from bouwdepot.services.pipeline.base_step import BasePipelineStep, is_accepted_document
from bouwdepot.utils.date_parser import parse_date


class InvoiceStructureExtractionStep(BasePipelineStep):
    """Extracts the invoice header: number, dates, totals and currency."""

    name = "ExtractInvoiceStructure"
    order = 300
    template_name = "InvoiceHeaderExtraction"
    response_type = InvoiceHeaderResponse
    operation = "InvoiceHeaderExtraction"
    estimated_tokens = 300
    progress_description = "Extracting invoice header"

    def should_execute(self, state: ValidationState) -> bool:
        return not state.is_halted and is_accepted_document(state)

    async def process_response(self, state: ValidationState, response: InvoiceHeaderResponse) -> None:
        document = state.input_document
        state.extracted_invoice = Invoice(
            file_name=document.file_name,
            file_size_bytes=document.file_size_bytes,
            invoice_number=response.invoice_number,
            invoice_date=parse_date(response.invoice_date),
            due_date=parse_date(response.due_date),
            total_amount=response.total_amount,
            vat_amount=response.tax_amount,
            currency=response.currency or "EUR",
        )

        if not response.invoice_number:
            state.add_issue(
                "MissingInvoiceNumber",
                "No invoice number could be found on the document",
                IssueSeverity.WARNING,
                field_name="invoiceNumber",
            )

        state.add_processing_step(
            self.name,
            f"Extracted invoice {response.invoice_number or '(no number)'}: "
            f"total {response.total_amount} {response.currency}, VAT {response.tax_amount}",
            ProcessingStepStatus.SUCCESS,
        )
        self.record_model_usage(state)
