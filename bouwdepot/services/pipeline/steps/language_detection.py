from bouwdepot.models.validation_models import LanguageInfo, ProcessingStepStatus, ValidationState
from bouwdepot.schemas.responses import LanguageDetectionResponse
from bouwdepot.services.pipeline.base_step import BasePipelineStep


class LanguageDetectionStep(BasePipelineStep):
    """Detects the language the document is written in."""

    name = "DetectLanguage"
    order = 100
    template_name = "LanguageDetection"
    response_type = LanguageDetectionResponse
    operation = "LanguageDetection"
    progress_description = "Detecting document language"

    async def process_response(self, state: ValidationState, response: LanguageDetectionResponse) -> None:
        language = response.language
        state.language = LanguageInfo(
            name=language.name,
            code=language.code,
            confidence=language.confidence,
            explanation=language.explanation,
        )
        state.add_processing_step(
            self.name,
            f"Detected language: {language.name} (confidence: {language.confidence}%)",
            ProcessingStepStatus.SUCCESS,
        )
        self.record_model_usage(state)
