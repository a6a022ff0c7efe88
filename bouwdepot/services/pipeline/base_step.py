"""Base interface for validation pipeline steps."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Dict, List, Optional

from bouwdepot.core.exceptions import TemplateNotFoundError
from bouwdepot.core.llm_types import ImageAttachment
from bouwdepot.models.validation_models import ProcessingStepStatus, ValidationState
from bouwdepot.services.prompts.prompt_builder import PromptBuilder
from bouwdepot.utils.logging import get_logger

LOGGER = get_logger(__name__)

DOCUMENT_TYPES = ("invoice", "receipt", "quotation")


@dataclass
class StepPrompt:
    """Prompt text and the attachments sent with it."""
    prompt: str
    images: List[ImageAttachment] = field(default_factory=list)


class BasePipelineStep(ABC):
    """Base class for pipeline steps.

    A step decides whether it applies to the current state, builds its
    prompt from a named template and its response contract, and applies
    the typed reply to the state. Subclasses declare ``name``, ``order``,
    ``template_name`` and ``response_type`` as class attributes.
    """

    operation: Optional[str] = None
    estimated_tokens: int = 100
    sends_document: bool = True
    progress_description: str = "Processing"

    def __init__(
        self,
        prompt_builder: PromptBuilder,
        model_name: str = "unknown",
        model_version: str = "",
    ):
        self.prompt_builder = prompt_builder
        self.model_name = model_name
        self.model_version = model_version

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique step name."""
        pass

    @property
    @abstractmethod
    def order(self) -> int:
        """Execution position; lower runs first."""
        pass

    @property
    @abstractmethod
    def template_name(self) -> str:
        pass

    @property
    @abstractmethod
    def response_type(self) -> type:
        """Response contract the reply is validated into."""
        pass

    def should_execute(self, state: ValidationState) -> bool:
        return not state.is_halted

    def prompt_variables(self, state: ValidationState) -> Optional[Dict[str, Any]]:
        """Values substituted into ``{{key}}`` placeholders of the template."""
        return None

    async def prepare_prompt(self, state: ValidationState, document_stream: BinaryIO) -> StepPrompt:
        """Build the prompt for this step.

        Raises:
            TemplateNotFoundError: If the step's template is not loaded
        """
        LOGGER.info(f"Preparing {self.name} prompt: {state.id}")
        state.add_processing_step(self.name, self.progress_description, ProcessingStepStatus.IN_PROGRESS)

        prompt = self.prompt_builder.build(self.template_name, self.response_type, self.prompt_variables(state))
        if prompt is None:
            raise TemplateNotFoundError(self.template_name)

        images: List[ImageAttachment] = []
        if self.sends_document:
            images.append(ImageAttachment(stream=document_stream, mime_type=state.input_document.content_type))
        return StepPrompt(prompt=prompt, images=images)

    @abstractmethod
    async def process_response(self, state: ValidationState, response: Any) -> None:
        """Apply the typed reply to ``state``."""
        pass

    def record_model_usage(self, state: ValidationState) -> None:
        state.add_ai_model_usage(
            self.model_name,
            self.model_version,
            self.operation or self.template_name,
            self.estimated_tokens,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, order={self.order})"


def is_accepted_document(state: ValidationState) -> bool:
    """Whether the verified document type may proceed to extraction."""
    info = state.document_type
    if info is None:
        return False
    if info.is_invoice or info.is_receipt or info.is_quotation:
        return True
    return (info.document_type or "").strip().lower() in DOCUMENT_TYPES
