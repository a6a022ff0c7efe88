"""Wiring of the standard validation pipeline."""

from typing import List

from bouwdepot.core.unified_llm import UnifiedLLMClient
from bouwdepot.services.pipeline.base_step import BasePipelineStep
from bouwdepot.services.pipeline.orchestrator import ValidationPipeline
from bouwdepot.services.pipeline.steps import (
    DocumentTypeVerificationStep,
    FraudDetectionStep,
    InvoicePartiesExtractionStep,
    InvoiceStructureExtractionStep,
    LanguageDetectionStep,
    LineItemsExtractionStep,
    WithdrawalEligibilityStep,
)
from bouwdepot.services.prompts.prompt_builder import PromptBuilder

DEFAULT_STEP_TYPES = (
    LanguageDetectionStep,
    DocumentTypeVerificationStep,
    InvoiceStructureExtractionStep,
    InvoicePartiesExtractionStep,
    LineItemsExtractionStep,
    FraudDetectionStep,
    WithdrawalEligibilityStep,
)


def build_default_steps(llm_client: UnifiedLLMClient, prompt_builder: PromptBuilder) -> List[BasePipelineStep]:
    steps: List[BasePipelineStep] = []
    for step_type in DEFAULT_STEP_TYPES:
        model = llm_client.text_model if not step_type.sends_document else llm_client.multimodal_model
        steps.append(step_type(prompt_builder, model_name=llm_client.provider_name, model_version=model))
    return steps


def build_default_pipeline(llm_client: UnifiedLLMClient, prompt_builder: PromptBuilder) -> ValidationPipeline:
    """Create the standard seven-step validation pipeline."""
    return ValidationPipeline(build_default_steps(llm_client, prompt_builder), llm_client)
