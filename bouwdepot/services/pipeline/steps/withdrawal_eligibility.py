from typing import Any, Dict, Optional

from bouwdepot.models.validation_models import (
    EligibilityAssessment,
    Invoice,
    IssueSeverity,
    ProcessingStepStatus,
    ValidationOutcome,
    ValidationState,
)
from bouwdepot.schemas.responses import HomeImprovementResponse, LineItemAssessment
from bouwdepot.services.pipeline.base_step import BasePipelineStep
from bouwdepot.services.pipeline.steps.construction_categories import map_category, summarize_categories


def format_line_items(invoice: Invoice) -> str:
    """Render invoice lines as a numbered list for the prompt."""
    lines = []
    for index, item in enumerate(invoice.line_items, start=1):
        lines.append(
            f"{index}. {item.description} | quantity: {item.quantity} | unit price: {item.unit_price} "
            f"| total: {item.total_price} | VAT: {item.vat_rate}%"
        )
    return "\n".join(lines)


class WithdrawalEligibilityStep(BasePipelineStep):
    """Decides whether the invoiced work qualifies for a construction-fund withdrawal.

    Runs on the extracted line items only, so no document is attached.
    The eligibility rules themselves live in the prompt template.
    """

    name = "AssessWithdrawalEligibility"
    order = 700
    template_name = "WithdrawalEligibility"
    response_type = HomeImprovementResponse
    operation = "WithdrawalEligibility"
    estimated_tokens = 600
    sends_document = False
    progress_description = "Assessing construction-fund eligibility"

    def should_execute(self, state: ValidationState) -> bool:
        return (
            not state.is_halted
            and state.extracted_invoice is not None
            and len(state.extracted_invoice.line_items) > 0
        )

    def prompt_variables(self, state: ValidationState) -> Optional[Dict[str, Any]]:
        invoice = state.extracted_invoice
        return {
            "line_items": format_line_items(invoice),
            "total_amount": invoice.total_amount,
            "currency": invoice.currency,
            "vendor_name": invoice.vendor_name or "unknown",
        }

    async def process_response(self, state: ValidationState, response: HomeImprovementResponse) -> None:
        invoice = state.extracted_invoice
        self._annotate_line_items(invoice, response)

        eligible_items = [a for a in response.line_item_assessment if a.is_eligible]
        categories = [map_category(a.category) for a in eligible_items]
        is_eligible = response.is_home_improvement and len(eligible_items) > 0

        state.eligibility = EligibilityAssessment(
            is_eligible=is_eligible,
            eligible_categories=list(response.eligible_categories),
            total_eligible_amount=response.total_eligible_amount,
            total_ineligible_amount=response.total_ineligible_amount,
            confidence=response.overall_confidence,
        )

        if is_eligible:
            state.add_processing_step(
                self.name,
                f"Eligible amount {response.total_eligible_amount} {invoice.currency}. "
                f"{summarize_categories(categories)}",
                ProcessingStepStatus.SUCCESS,
            )
            if state.overall_outcome != ValidationOutcome.NEEDS_REVIEW:
                state.set_outcome(
                    ValidationOutcome.VALID,
                    f"The invoice qualifies for a construction-fund withdrawal of "
                    f"{response.total_eligible_amount} {invoice.currency}.",
                )
        else:
            state.add_processing_step(
                self.name,
                "No eligible construction work found on the invoice",
                ProcessingStepStatus.WARNING,
            )
            state.add_issue(
                "NotEligible",
                "The invoiced items do not qualify for a construction-fund withdrawal",
                IssueSeverity.ERROR,
            )
            state.set_outcome(
                ValidationOutcome.INVALID,
                "The invoice does not contain work eligible for a construction-fund withdrawal.",
            )

        self.record_model_usage(state)

    @staticmethod
    def _annotate_line_items(invoice: Invoice, response: HomeImprovementResponse) -> None:
        by_description: Dict[str, LineItemAssessment] = {
            a.description.strip().lower(): a for a in response.line_item_assessment
        }
        same_length = len(response.line_item_assessment) == len(invoice.line_items)

        for index, item in enumerate(invoice.line_items):
            assessment = by_description.get(item.description.strip().lower())
            if assessment is None and same_length:
                assessment = response.line_item_assessment[index]
            if assessment is None:
                continue
            item.is_bouwdepot_eligible = assessment.is_eligible
            item.eligibility_category = map_category(assessment.category).value
            item.eligibility_reason = assessment.reason
