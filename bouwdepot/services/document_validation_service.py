"""Entry point that validates one uploaded document end to end."""

import asyncio
import os
import time
from typing import BinaryIO, Optional

from bouwdepot.core.config import Settings, get_settings
from bouwdepot.core.exceptions import InputValidationError
from bouwdepot.core.unified_llm import create_llm_client_from_settings
from bouwdepot.models.summary_models import (
    FraudSummary,
    InvoiceSummary,
    IssueSummary,
    LineItemSummary,
    ModelUsageSummary,
    StepSummary,
    ValidationSummary,
)
from bouwdepot.models.validation_models import InputDocumentInfo, ValidationState
from bouwdepot.services.base_service import BaseService
from bouwdepot.services.pipeline.factory import build_default_pipeline
from bouwdepot.services.pipeline.orchestrator import ValidationPipeline
from bouwdepot.services.prompts.prompt_builder import PromptBuilder
from bouwdepot.services.prompts.prompt_template_store import PromptTemplateStore
from bouwdepot.utils.logging import get_logger, set_log_level

LOGGER = get_logger(__name__)


def stream_size(stream: BinaryIO) -> int:
    """Size of a seekable stream in bytes; the position is restored to 0."""
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(0)
    return size


class DocumentValidationService(BaseService):
    """Runs the validation pipeline for an uploaded document."""

    def __init__(self, pipeline: ValidationPipeline):
        super().__init__()
        self.pipeline = pipeline

    def validate(
        self,
        document_stream: BinaryIO,
        file_name: str,
        content_type: str,
        cancel_event: Optional[asyncio.Event] = None,
    ):
        if not file_name or not file_name.strip():
            raise InputValidationError("A file name is required")
        if not content_type or not content_type.strip():
            raise InputValidationError("A content type is required")
        if not hasattr(document_stream, "seekable") or not document_stream.seekable():
            raise InputValidationError("The document stream must be seekable")

    async def run(
        self,
        document_stream: BinaryIO,
        file_name: str,
        content_type: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ValidationSummary:
        started = time.perf_counter()
        state = await self.validate_to_state(document_stream, file_name, content_type, cancel_event)
        duration_ms = int((time.perf_counter() - started) * 1000)
        return map_to_summary(state, duration_ms)

    async def validate_document(
        self,
        document_stream: BinaryIO,
        file_name: str,
        content_type: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ValidationSummary:
        """Validate a document and return the caller-facing summary.

        Raises:
            InputValidationError: If the upload metadata or stream is unusable
            AppError: On failures outside the pipeline's step loop
        """
        return await self.execute(document_stream, file_name, content_type, cancel_event)

    async def validate_to_state(
        self,
        document_stream: BinaryIO,
        file_name: str,
        content_type: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ValidationState:
        """Run the pipeline and return the raw validation state."""
        state = ValidationState(
            input_document=InputDocumentInfo(
                file_name=file_name,
                content_type=content_type,
                file_size_bytes=stream_size(document_stream),
            )
        )
        LOGGER.info(
            f"Starting validation of {file_name}: {state.id}",
            extra={"content_type": content_type, "size": state.input_document.file_size_bytes},
        )
        return await self.pipeline.execute(state, document_stream, cancel_event)


def map_to_summary(state: ValidationState, duration_ms: int = 0) -> ValidationSummary:
    """Project a finished validation state onto a ValidationSummary."""
    invoice_summary = None
    invoice = state.extracted_invoice
    if invoice is not None:
        invoice_summary = InvoiceSummary(
            invoice_number=invoice.invoice_number,
            invoice_date=invoice.invoice_date,
            due_date=invoice.due_date,
            total_amount=invoice.total_amount,
            vat_amount=invoice.vat_amount,
            currency=invoice.currency,
            vendor_name=invoice.vendor_name,
            vendor_address=invoice.vendor_address,
            customer_name=invoice.customer_name,
            iban=invoice.payment_details.iban,
            line_items=[
                LineItemSummary(
                    description=item.description,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    total_price=item.total_price,
                    vat_rate=item.vat_rate,
                    is_eligible=item.is_bouwdepot_eligible,
                    eligibility_category=item.eligibility_category,
                    eligibility_reason=item.eligibility_reason,
                )
                for item in invoice.line_items
            ],
        )

    fraud_summary = None
    if state.fraud_analysis is not None:
        fraud_summary = FraudSummary(
            possible_fraud=state.fraud_analysis.possible_fraud,
            confidence=state.fraud_analysis.confidence,
            evidence=state.fraud_analysis.visual_evidence,
            indicators=state.fraud_analysis.indicators,
        )

    return ValidationSummary(
        id=state.id,
        file_name=state.input_document.file_name,
        status=state.overall_outcome.value,
        summary=state.overall_outcome_summary,
        termination=state.termination.value if state.termination else None,
        document_type=state.document_type.document_type if state.document_type else None,
        language=state.language.name if state.language else None,
        is_eligible=state.eligibility.is_eligible if state.eligibility else None,
        total_eligible_amount=state.eligibility.total_eligible_amount if state.eligibility else None,
        issues=[
            IssueSummary(
                issue_type=issue.issue_type,
                description=issue.description,
                severity=issue.severity.value,
                field_name=issue.field_name,
            )
            for issue in state.issues
        ],
        processing_steps=[
            StepSummary(
                step_name=entry.step_name,
                description=entry.description,
                status=entry.status.value,
                timestamp=entry.timestamp,
            )
            for entry in state.processing_steps
        ],
        models_used=[
            ModelUsageSummary(
                model_name=usage.model_name,
                model_version=usage.model_version,
                operation=usage.operation,
                token_count=usage.token_count,
            )
            for usage in state.ai_models_used
        ],
        invoice=invoice_summary,
        fraud_analysis=fraud_summary,
        duration_ms=duration_ms,
    )


def create_document_validation_service(settings: Optional[Settings] = None) -> DocumentValidationService:
    """Wire the LLM client, template store and default pipeline from settings.

    Raises:
        ConfigurationError: If the configured backend is missing required settings
    """
    settings = settings or get_settings()
    set_log_level(settings.log_level)
    llm_client = create_llm_client_from_settings(settings.llm)
    store = PromptTemplateStore(settings.prompts.templates_dir, settings.prompts.duplicate_policy)
    pipeline = build_default_pipeline(llm_client, PromptBuilder(store))
    return DocumentValidationService(pipeline)
