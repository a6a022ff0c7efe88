"""Unified LLM client factory and manager.

Provides one interface over the supported generative backends (Gemini,
Ollama, OpenRouter). The backend is chosen once at construction; every
call threads the run's conversation state, strips markdown fences from the
reply and, for structured calls, validates it into a response contract.
"""

import asyncio
import json
from enum import Enum
from typing import Optional, Sequence, Type, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from bouwdepot.core.config import LLMSettings
from bouwdepot.core.conversation import ConversationState
from bouwdepot.core.exceptions import ConfigurationError, DeserializationError, LLMTimeoutError
from bouwdepot.core.gemini_client import DEFAULT_GEMINI_URL, GeminiClient
from bouwdepot.core.llm_types import GenerationRequest, ImageAttachment, ImageData, SamplingOptions
from bouwdepot.core.ollama_client import DEFAULT_OLLAMA_URL, OllamaClient
from bouwdepot.core.openrouter_client import DEFAULT_OPENROUTER_URL, OpenRouterClient
from bouwdepot.utils.json_parser import parse_json_safely, strip_markdown_fences
from bouwdepot.utils.logging import get_logger

LOGGER = get_logger(__name__)

ContractT = TypeVar("ContractT", bound=BaseModel)


class LLMProvider(str, Enum):
    """Supported LLM providers."""
    GEMINI = "gemini"
    OLLAMA = "ollama"
    OPENROUTER = "openrouter"


class UnifiedLLMClient:
    """Unified LLM client that wraps different providers.

    No call is retried here; retry policy belongs to the caller.
    """

    def __init__(
        self,
        provider: Union[str, LLMProvider],
        text_model: str,
        multimodal_model: str,
        api_key: str = "",
        base_url: Optional[str] = None,
        timeout: float = 120,
        keep_alive: str = "5m",
        temperature: Optional[float] = None,
        top_p: Optional[float] = None,
        top_k: Optional[int] = None,
    ):
        """Initialize unified LLM client.

        Args:
            provider: LLM provider to use ("gemini", "ollama" or "openrouter")
            text_model: Model used for text-only prompts
            multimodal_model: Model used for prompts carrying images
            api_key: API key for the provider (unused by Ollama)
            base_url: Optional base URL override
            timeout: Per-call timeout in seconds
            keep_alive: Ollama keep-alive duration
            temperature: Optional sampling temperature
            top_p: Optional nucleus sampling
            top_k: Optional top-k sampling

        Raises:
            ConfigurationError: If the provider is unknown or a required
                setting is missing
        """
        try:
            self.provider = LLMProvider(provider)
        except ValueError as e:
            raise ConfigurationError(f"Unsupported provider: {provider}", original_error=e) from e

        if not text_model or not multimodal_model:
            raise ConfigurationError("Both a text model and a multimodal model must be configured")
        if timeout <= 0:
            raise ConfigurationError(f"Timeout must be positive, got {timeout}")

        self.text_model = text_model
        self.multimodal_model = multimodal_model
        self.timeout = timeout
        self.sampling = SamplingOptions(temperature=temperature, top_p=top_p, top_k=top_k)

        if self.provider == LLMProvider.GEMINI:
            self.client = GeminiClient(
                api_key=api_key,
                base_url=base_url or DEFAULT_GEMINI_URL,
                timeout=timeout,
            )
        elif self.provider == LLMProvider.OLLAMA:
            self.client = OllamaClient(
                base_url=base_url or DEFAULT_OLLAMA_URL,
                keep_alive=keep_alive,
                timeout=timeout,
            )
        else:
            self.client = OpenRouterClient(
                api_key=api_key,
                base_url=base_url or DEFAULT_OPENROUTER_URL,
                timeout=timeout,
            )

        LOGGER.info(
            f"Initialized unified LLM with {self.provider.value} provider "
            f"(text model: {text_model}, multimodal model: {multimodal_model})"
        )

    @property
    def provider_name(self) -> str:
        return self.client.provider_name

    def create_conversation(self) -> ConversationState:
        return ConversationState()

    async def send_text_prompt(
        self,
        prompt: str,
        conversation: Optional[ConversationState] = None,
        step_label: Optional[str] = None,
    ) -> str:
        """Send a text prompt and return the cleaned reply text."""
        raw = await self._send(prompt, (), conversation, step_label, expect_json=False)
        return strip_markdown_fences(raw)

    async def send_multimodal_prompt(
        self,
        prompt: str,
        images: Sequence[ImageAttachment],
        conversation: Optional[ConversationState] = None,
        step_label: Optional[str] = None,
    ) -> str:
        """Send a prompt with images and return the cleaned reply text."""
        raw = await self._send(prompt, images, conversation, step_label, expect_json=False)
        return strip_markdown_fences(raw)

    async def send_structured_prompt(
        self,
        contract_type: Type[ContractT],
        prompt: str,
        conversation: Optional[ConversationState] = None,
        step_label: Optional[str] = None,
    ) -> ContractT:
        """Send a text prompt and validate the reply into ``contract_type``.

        Raises:
            DeserializationError: If the reply is not valid JSON for the contract
            BackendError, TransportError, LLMTimeoutError: On backend failure
        """
        raw = await self._send(prompt, (), conversation, step_label, expect_json=True)
        return self._deserialize(contract_type, raw)

    async def send_multimodal_structured_prompt(
        self,
        contract_type: Type[ContractT],
        prompt: str,
        images: Sequence[ImageAttachment],
        conversation: Optional[ConversationState] = None,
        step_label: Optional[str] = None,
    ) -> ContractT:
        """Send a prompt with images and validate the reply into ``contract_type``."""
        raw = await self._send(prompt, images, conversation, step_label, expect_json=True)
        return self._deserialize(contract_type, raw)

    async def _send(
        self,
        prompt: str,
        images: Sequence[ImageAttachment],
        conversation: Optional[ConversationState],
        step_label: Optional[str],
        expect_json: bool,
    ) -> str:
        history = conversation.messages if conversation is not None else ()
        if conversation is not None:
            conversation.add_user_message(prompt, step_label)

        request = GenerationRequest(
            prompt=prompt,
            model=self.multimodal_model if images else self.text_model,
            history=history,
            images=[ImageData(data=image.read_bytes(), mime_type=image.mime_type) for image in images],
            expect_json=expect_json,
            sampling=self.sampling,
        )

        LOGGER.info(
            f"Sending prompt to {self.provider_name}",
            extra={
                "step": step_label,
                "model": request.model,
                "history_length": len(history),
                "images": len(request.images),
            },
        )

        try:
            raw = await asyncio.wait_for(self.client.generate(request), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            LOGGER.error(f"{self.provider_name} call timed out after {self.timeout}s", extra={"step": step_label})
            raise LLMTimeoutError(
                f"{self.provider_name} call timed out after {self.timeout}s",
                timeout_seconds=self.timeout,
                original_error=e,
            ) from e

        if conversation is not None:
            conversation.add_model_message(raw, step_label)
        return raw

    @staticmethod
    def _deserialize(contract_type: Type[ContractT], raw: str) -> ContractT:
        cleaned = strip_markdown_fences(raw)
        try:
            return contract_type.model_validate_json(cleaned)
        except PydanticValidationError as first_error:
            parsed = parse_json_safely(cleaned)
            if parsed is None:
                LOGGER.error(f"Reply is not JSON for {contract_type.__name__}", extra={"preview": cleaned[:200]})
                raise DeserializationError(contract_type.__name__, cleaned, original_error=first_error) from first_error
            try:
                return contract_type.model_validate(parsed)
            except PydanticValidationError as e:
                LOGGER.error(
                    f"Reply does not match {contract_type.__name__}: {e.error_count()} errors",
                    extra={"preview": json.dumps(parsed)[:200]},
                )
                raise DeserializationError(contract_type.__name__, cleaned, original_error=e) from e


def create_llm_client_from_settings(settings: Optional[LLMSettings] = None) -> UnifiedLLMClient:
    """Create a unified LLM client from configuration settings.

    Selects the API key, models and base URL belonging to the configured
    provider.

    Raises:
        ConfigurationError: If the provider is unknown or its required
            settings are missing
    """
    settings = settings or LLMSettings()
    try:
        provider = LLMProvider(settings.provider.lower())
    except ValueError as e:
        raise ConfigurationError(f"Unsupported provider: {settings.provider}", original_error=e) from e

    common = dict(
        timeout=settings.timeout_seconds,
        temperature=settings.temperature,
        top_p=settings.top_p,
        top_k=settings.top_k,
    )

    if provider == LLMProvider.GEMINI:
        return UnifiedLLMClient(
            provider=provider,
            api_key=settings.gemini_api_key,
            base_url=settings.gemini_api_url,
            text_model=settings.gemini_text_model,
            multimodal_model=settings.gemini_multimodal_model,
            **common,
        )

    if provider == LLMProvider.OLLAMA:
        return UnifiedLLMClient(
            provider=provider,
            base_url=settings.ollama_api_url,
            text_model=settings.ollama_text_model,
            multimodal_model=settings.ollama_multimodal_model,
            keep_alive=settings.ollama_keep_alive,
            **common,
        )

    return UnifiedLLMClient(
        provider=provider,
        api_key=settings.openrouter_api_key,
        base_url=settings.openrouter_api_url,
        text_model=settings.openrouter_text_model,
        multimodal_model=settings.openrouter_multimodal_model,
        **common,
    )
