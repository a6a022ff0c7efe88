from bouwdepot.models.validation_models import ProcessingStepStatus, ValidationState
from bouwdepot.schemas.responses import InvoicePartiesResponse
from bouwdepot.services.pipeline.base_step import BasePipelineStep


class InvoicePartiesExtractionStep(BasePipelineStep):
    name = "ExtractInvoiceParties"
    order = 400
    template_name = "InvoicePartiesExtraction"
    response_type = InvoicePartiesResponse
    operation = "InvoicePartiesExtraction"
    estimated_tokens = 250
    progress_description = "Extracting vendor and customer details"

    def should_execute(self, state: ValidationState) -> bool:
        return not state.is_halted and state.extracted_invoice is not None

    async def process_response(self, state: ValidationState, response: InvoicePartiesResponse) -> None:
        invoice = state.extracted_invoice
        invoice.vendor_name = response.vendor_name
        invoice.vendor_address = response.vendor_address
        invoice.vendor_contact = response.vendor_contact
        invoice.vendor_kvk_number = response.vendor_kvk_number
        invoice.vendor_btw_number = response.vendor_btw_number
        invoice.customer_name = response.customer_name
        invoice.customer_address = response.customer_address

        state.add_processing_step(
            self.name,
            f"Vendor: {response.vendor_name or 'unknown'}, customer: {response.customer_name or 'unknown'}",
            ProcessingStepStatus.SUCCESS,
        )
        self.record_model_usage(state)
