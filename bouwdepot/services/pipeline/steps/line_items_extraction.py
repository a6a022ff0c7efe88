from bouwdepot.models.validation_models import (
    InvoiceLineItem,
    IssueSeverity,
    ProcessingStepStatus,
    ValidationState,
)
from bouwdepot.schemas.responses import InvoiceLineItemsResponse
from bouwdepot.services.pipeline.base_step import BasePipelineStep


class LineItemsExtractionStep(BasePipelineStep):
    """Extracts the invoice lines and payment details."""

    name = "ExtractLineItems"
    order = 500
    template_name = "InvoiceLineItemsExtraction"
    response_type = InvoiceLineItemsResponse
    operation = "InvoiceLineItemsExtraction"
    estimated_tokens = 500
    progress_description = "Extracting line items"

    def should_execute(self, state: ValidationState) -> bool:
        return not state.is_halted and state.extracted_invoice is not None

    async def process_response(self, state: ValidationState, response: InvoiceLineItemsResponse) -> None:
        invoice = state.extracted_invoice
        invoice.line_items = [
            InvoiceLineItem(
                description=item.description,
                quantity=item.quantity,
                unit_price=item.unit_price,
                total_price=item.total_price,
                vat_rate=item.vat_rate,
            )
            for item in response.line_items
        ]

        payment = invoice.payment_details
        payment.payment_terms = response.payment_terms
        payment.payment_method = response.payment_method
        payment.payment_reference = response.payment_reference
        payment.iban = response.iban
        invoice.notes = response.notes

        if not invoice.line_items:
            state.add_issue(
                "NoLineItems",
                "No line items could be extracted from the document",
                IssueSeverity.WARNING,
                field_name="lineItems",
            )
            status = ProcessingStepStatus.WARNING
        else:
            status = ProcessingStepStatus.SUCCESS

        state.add_processing_step(
            self.name,
            f"Extracted {len(invoice.line_items)} line items (confidence: {response.confidence:.0%})",
            status,
        )
        self.record_model_usage(state)
