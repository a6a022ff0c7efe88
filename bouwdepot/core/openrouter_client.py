"""OpenRouter LLM client implementation."""

import base64
from typing import Any, Dict, List, Union

from bouwdepot.core.base_llm_client import BaseLLMClient
from bouwdepot.core.conversation import MODEL_ROLE
from bouwdepot.core.exceptions import BackendError, ConfigurationError
from bouwdepot.core.llm_types import GenerationRequest
from bouwdepot.utils.logging import get_logger

LOGGER = get_logger(__name__)

DEFAULT_OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"


class OpenRouterClient:
    """OpenAI-compatible chat completions backend served by OpenRouter."""

    provider_name = "OpenRouter"

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_OPENROUTER_URL,
        timeout: float = 60,
    ):
        """Initialize OpenRouter client.

        Args:
            api_key: OpenRouter API key
            base_url: Chat completions URL
            timeout: Request timeout in seconds

        Raises:
            ConfigurationError: If the API key is missing
        """
        if not api_key or not api_key.strip():
            raise ConfigurationError(
                "openrouter_api_key required when provider='openrouter'. "
                "Please set OPENROUTER_API_KEY environment variable."
            )

        self.base_url = base_url
        self.timeout = timeout
        self.client = BaseLLMClient(api_key=api_key.strip(), base_url=base_url, timeout=timeout)
        LOGGER.info(f"Initialized OpenRouter client at {base_url}")

    async def generate(self, request: GenerationRequest) -> str:
        """Generate a reply for ``request``.

        Raises:
            BackendError: On an error status or a malformed/empty reply
        """
        payload: Dict[str, Any] = {
            "model": request.model,
            "messages": self._build_messages(request),
        }
        if request.sampling.temperature is not None:
            payload["temperature"] = request.sampling.temperature
        if request.sampling.top_p is not None:
            payload["top_p"] = request.sampling.top_p
        if request.sampling.top_k is not None:
            payload["top_k"] = request.sampling.top_k
        if request.expect_json:
            payload["response_format"] = {"type": "json_object"}

        response = await self.client.call_api(endpoint="", payload=payload)

        choices = response.get("choices") if isinstance(response, dict) else None
        if not choices:
            LOGGER.error(f"Unexpected OpenRouter response format: {response}")
            raise BackendError("Invalid response format from OpenRouter")

        content = (choices[0].get("message") or {}).get("content")
        if not content or not content.strip():
            raise BackendError("Empty response from OpenRouter")
        return content

    @staticmethod
    def _build_messages(request: GenerationRequest) -> List[Dict[str, Any]]:
        messages: List[Dict[str, Any]] = [
            {
                "role": "assistant" if message.role == MODEL_ROLE else "user",
                "content": message.content,
            }
            for message in request.history
        ]

        content: Union[str, List[Dict[str, Any]]] = request.prompt
        if request.images:
            content = [{"type": "text", "text": request.prompt}]
            for image in request.images:
                encoded = base64.b64encode(image.data).decode("ascii")
                content.append({
                    "type": "image_url",
                    "image_url": {"url": f"data:{image.mime_type};base64,{encoded}"},
                })
        messages.append({"role": "user", "content": content})
        return messages
