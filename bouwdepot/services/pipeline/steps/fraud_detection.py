from bouwdepot.models.validation_models import (
    FraudAnalysis,
    IssueSeverity,
    ProcessingStepStatus,
    ValidationOutcome,
    ValidationState,
)
from bouwdepot.schemas.responses import FraudDetectionResponse
from bouwdepot.services.pipeline.base_step import BasePipelineStep


class FraudDetectionStep(BasePipelineStep):
    """Looks for visual signs of tampering.

    Suspected fraud never disqualifies on its own; it flags the document
    for manual review.
    """

    name = "DetectFraud"
    order = 600
    template_name = "FraudDetection"
    response_type = FraudDetectionResponse
    operation = "FraudDetection"
    estimated_tokens = 200
    progress_description = "Checking for signs of fraud"

    def should_execute(self, state: ValidationState) -> bool:
        return not state.is_halted and state.extracted_invoice is not None

    async def process_response(self, state: ValidationState, response: FraudDetectionResponse) -> None:
        state.fraud_analysis = FraudAnalysis(
            possible_fraud=response.possible_fraud,
            confidence=response.confidence,
            visual_evidence=response.visual_evidence,
            indicators=list(response.visual_indicators),
        )

        if response.possible_fraud:
            indicators = ", ".join(response.visual_indicators) or "none listed"
            state.add_processing_step(
                self.name,
                f"Potential fraud detected (confidence: {response.confidence:.0%}). Indicators: {indicators}",
                ProcessingStepStatus.WARNING,
            )
            state.add_issue(
                "PotentialFraud",
                response.visual_evidence or "The document shows visual signs of possible tampering",
                IssueSeverity.WARNING,
            )
            state.set_outcome(
                ValidationOutcome.NEEDS_REVIEW,
                "The document shows signs of possible fraud and needs manual review.",
            )
        else:
            state.add_processing_step(self.name, "No signs of fraud detected", ProcessingStepStatus.SUCCESS)

        self.record_model_usage(state)
