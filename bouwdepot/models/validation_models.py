"""Validation run state and the records accumulated while a run executes."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from bouwdepot.core.conversation import ConversationState


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ValidationOutcome(str, Enum):
    """Overall decision for a document."""
    UNKNOWN = "Unknown"
    VALID = "Valid"
    INVALID = "Invalid"
    NEEDS_REVIEW = "NeedsReview"
    ERROR = "Error"
    CANCELLED = "Cancelled"


class ProcessingStepStatus(str, Enum):
    IN_PROGRESS = "InProgress"
    SUCCESS = "Success"
    WARNING = "Warning"
    ERROR = "Error"
    SKIPPED = "Skipped"


class IssueSeverity(str, Enum):
    INFO = "Info"
    WARNING = "Warning"
    ERROR = "Error"


class StepExecutionStatus(str, Enum):
    """Terminal state of one step within a run."""
    SKIPPED = "Skipped"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    CANCELLED = "Cancelled"


class PipelineTermination(str, Enum):
    """Why the step loop stopped."""
    COMPLETED_NORMALLY = "CompletedNormally"
    HALTED_ON_ERROR = "HaltedOnError"
    HALTED_ON_DISQUALIFICATION = "HaltedOnDisqualification"
    CANCELLED = "Cancelled"


@dataclass
class ProcessingStepLog:
    step_name: str
    description: str
    status: ProcessingStepStatus
    timestamp: datetime = field(default_factory=_utcnow)


@dataclass
class ProcessingIssue:
    issue_type: str
    description: str
    severity: IssueSeverity
    field_name: Optional[str] = None
    timestamp: datetime = field(default_factory=_utcnow)


@dataclass
class AIModelUsage:
    model_name: str
    model_version: str
    operation: str
    token_count: int
    timestamp: datetime = field(default_factory=_utcnow)


@dataclass
class StepExecution:
    step_name: str
    status: StepExecutionStatus
    error: Optional[str] = None


@dataclass
class InputDocumentInfo:
    """What was uploaded."""

    file_name: str
    content_type: str
    file_size_bytes: int
    upload_timestamp: datetime = field(default_factory=_utcnow)


@dataclass
class LanguageInfo:
    name: str
    code: Optional[str] = None
    confidence: int = 0
    explanation: Optional[str] = None


@dataclass
class DocumentTypeInfo:
    document_type: str
    is_invoice: bool = False
    is_receipt: bool = False
    is_quotation: bool = False
    confidence: int = 0
    explanation: str = ""


@dataclass
class PaymentDetails:
    account_holder_name: Optional[str] = None
    iban: Optional[str] = None
    bic: Optional[str] = None
    bank_name: Optional[str] = None
    payment_reference: Optional[str] = None
    payment_terms: Optional[str] = None
    payment_method: Optional[str] = None


@dataclass
class InvoiceLineItem:
    description: str
    quantity: int = 1
    unit_price: Decimal = Decimal("0")
    total_price: Decimal = Decimal("0")
    vat_rate: Decimal = Decimal("0")
    is_bouwdepot_eligible: Optional[bool] = None
    eligibility_category: Optional[str] = None
    eligibility_reason: Optional[str] = None


@dataclass
class Invoice:
    """Invoice data extracted from the document."""

    file_name: Optional[str] = None
    file_size_bytes: int = 0
    invoice_number: Optional[str] = None
    invoice_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    total_amount: Decimal = Decimal("0")
    vat_amount: Decimal = Decimal("0")
    currency: str = "EUR"
    vendor_name: Optional[str] = None
    vendor_address: Optional[str] = None
    vendor_contact: Optional[str] = None
    vendor_kvk_number: Optional[str] = None
    vendor_btw_number: Optional[str] = None
    customer_name: Optional[str] = None
    customer_address: Optional[str] = None
    payment_details: PaymentDetails = field(default_factory=PaymentDetails)
    line_items: List[InvoiceLineItem] = field(default_factory=list)
    notes: Optional[str] = None


@dataclass
class FraudAnalysis:
    possible_fraud: bool
    confidence: float = 0.0
    visual_evidence: Optional[str] = None
    indicators: List[str] = field(default_factory=list)


@dataclass
class EligibilityAssessment:
    is_eligible: bool
    eligible_categories: List[str] = field(default_factory=list)
    total_eligible_amount: Decimal = Decimal("0")
    total_ineligible_amount: Decimal = Decimal("0")
    confidence: float = 0.0


@dataclass
class ValidationState:
    """Mutable record of one validation run.

    Owned by a single run; steps mutate it in place and only ever append
    to the log, issue and model-usage lists.
    """

    input_document: InputDocumentInfo
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    overall_outcome: ValidationOutcome = ValidationOutcome.UNKNOWN
    overall_outcome_summary: str = "Validation has not been completed."
    processing_steps: List[ProcessingStepLog] = field(default_factory=list)
    issues: List[ProcessingIssue] = field(default_factory=list)
    ai_models_used: List[AIModelUsage] = field(default_factory=list)
    step_executions: List[StepExecution] = field(default_factory=list)
    termination: Optional[PipelineTermination] = None
    conversation: ConversationState = field(default_factory=ConversationState)
    language: Optional[LanguageInfo] = None
    document_type: Optional[DocumentTypeInfo] = None
    extracted_invoice: Optional[Invoice] = None
    fraud_analysis: Optional[FraudAnalysis] = None
    eligibility: Optional[EligibilityAssessment] = None

    def add_processing_step(
        self,
        step_name: str,
        description: str,
        status: ProcessingStepStatus,
    ) -> ProcessingStepLog:
        entry = ProcessingStepLog(step_name=step_name, description=description, status=status)
        self.processing_steps.append(entry)
        return entry

    def add_issue(
        self,
        issue_type: str,
        description: str,
        severity: IssueSeverity,
        field_name: Optional[str] = None,
    ) -> ProcessingIssue:
        issue = ProcessingIssue(issue_type=issue_type, description=description, severity=severity, field_name=field_name)
        self.issues.append(issue)
        return issue

    def add_ai_model_usage(
        self,
        model_name: str,
        model_version: str,
        operation: str,
        token_count: int,
    ) -> AIModelUsage:
        usage = AIModelUsage(
            model_name=model_name,
            model_version=model_version,
            operation=operation,
            token_count=token_count,
        )
        self.ai_models_used.append(usage)
        return usage

    def record_step(self, step_name: str, status: StepExecutionStatus, error: Optional[str] = None) -> None:
        self.step_executions.append(StepExecution(step_name=step_name, status=status, error=error))

    def set_outcome(self, outcome: ValidationOutcome, summary: Optional[str] = None) -> None:
        self.overall_outcome = outcome
        if summary is not None:
            self.overall_outcome_summary = summary

    @property
    def is_halted(self) -> bool:
        return self.overall_outcome in (
            ValidationOutcome.INVALID,
            ValidationOutcome.ERROR,
            ValidationOutcome.CANCELLED,
        )
