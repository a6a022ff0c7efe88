"""API-facing summary of a finished validation run."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class IssueSummary(BaseModel):
    issue_type: str
    description: str
    severity: str
    field_name: Optional[str] = None


class StepSummary(BaseModel):
    step_name: str
    description: str
    status: str
    timestamp: datetime


class ModelUsageSummary(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_name: str
    model_version: str
    operation: str
    token_count: int


class LineItemSummary(BaseModel):
    description: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    vat_rate: Decimal
    is_eligible: Optional[bool] = None
    eligibility_category: Optional[str] = None
    eligibility_reason: Optional[str] = None


class InvoiceSummary(BaseModel):
    invoice_number: Optional[str] = None
    invoice_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    total_amount: Decimal = Decimal("0")
    vat_amount: Decimal = Decimal("0")
    currency: str = "EUR"
    vendor_name: Optional[str] = None
    vendor_address: Optional[str] = None
    customer_name: Optional[str] = None
    iban: Optional[str] = None
    line_items: List[LineItemSummary] = Field(default_factory=list)


class FraudSummary(BaseModel):
    possible_fraud: bool
    confidence: float
    evidence: Optional[str] = None
    indicators: List[str] = Field(default_factory=list)


class ValidationSummary(BaseModel):
    """Result handed back to callers of the validation service."""

    id: str = Field(..., description="Validation run id")
    file_name: str
    status: str = Field(..., description="Overall outcome")
    summary: str
    termination: Optional[str] = None
    document_type: Optional[str] = None
    language: Optional[str] = None
    is_eligible: Optional[bool] = None
    total_eligible_amount: Optional[Decimal] = None
    issues: List[IssueSummary] = Field(default_factory=list)
    processing_steps: List[StepSummary] = Field(default_factory=list)
    models_used: List[ModelUsageSummary] = Field(default_factory=list)
    invoice: Optional[InvoiceSummary] = None
    fraud_analysis: Optional[FraudSummary] = None
    duration_ms: int = Field(0, description="Wall-clock duration of the run")
