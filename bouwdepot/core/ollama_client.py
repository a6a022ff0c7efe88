"""Ollama LLM client implementation."""

from typing import Any, Dict, List

import httpx
import ollama

from bouwdepot.core.conversation import MODEL_ROLE
from bouwdepot.core.exceptions import BackendError, ConfigurationError, LLMTimeoutError, TransportError
from bouwdepot.core.llm_types import GenerationRequest
from bouwdepot.utils.logging import get_logger

LOGGER = get_logger(__name__)

DEFAULT_OLLAMA_URL = "http://localhost:11434"


class OllamaClient:
    """Wrapper for Ollama API client.

    Rebuilds the rolling chat history on every call; images travel with the
    current user message only.
    """

    provider_name = "Ollama"

    def __init__(
        self,
        base_url: str = DEFAULT_OLLAMA_URL,
        keep_alive: str = "5m",
        timeout: float = 120,
    ):
        """Initialize Ollama client.

        Args:
            base_url: Ollama API base URL (default: http://localhost:11434)
            keep_alive: How long the server keeps the model loaded
            timeout: Request timeout in seconds

        Raises:
            ConfigurationError: If the base URL is not an http(s) URL
        """
        if not base_url or not base_url.startswith(("http://", "https://")):
            raise ConfigurationError(f"Ollama base URL must be an http(s) URL, got '{base_url}'")

        self.base_url = base_url
        self.keep_alive = keep_alive
        self.timeout = timeout

        # Ollama client expects scheme://host:port, drop any trailing path (/api, /v1)
        scheme, _, rest = base_url.partition("://")
        normalized_host = f"{scheme}://{rest.split('/')[0]}"

        self.client = ollama.AsyncClient(host=normalized_host, timeout=timeout)
        LOGGER.info(f"Initialized Ollama client at {normalized_host} (timeout: {timeout}s)")

    async def generate(self, request: GenerationRequest) -> str:
        """Generate a reply for ``request``.

        Raises:
            BackendError: On an error status, an incomplete or empty reply
            TransportError: If the server could not be reached
            LLMTimeoutError: If the HTTP layer timed out
        """
        chat_kwargs: Dict[str, Any] = {
            "model": request.model,
            "messages": self._build_messages(request),
            "stream": False,
            "keep_alive": self.keep_alive,
        }
        if request.expect_json:
            chat_kwargs["format"] = "json"

        options = self._build_options(request)
        if options:
            chat_kwargs["options"] = options

        LOGGER.info(
            "Calling Ollama API",
            extra={
                "model": request.model,
                "message_count": len(chat_kwargs["messages"]),
                "format": chat_kwargs.get("format"),
                "options": options,
            },
        )

        try:
            response = await self.client.chat(**chat_kwargs)
        except ollama.ResponseError as e:
            LOGGER.error(f"Ollama API error {e.status_code}: {e.error}")
            raise BackendError(
                f"Ollama API returned {e.status_code}: {e.error}",
                status_code=e.status_code,
                backend_message=e.error,
                original_error=e,
            ) from e
        except httpx.TimeoutException as e:
            raise LLMTimeoutError(
                f"Ollama API call timed out after {self.timeout}s",
                timeout_seconds=self.timeout,
                original_error=e,
            ) from e
        except (httpx.TransportError, ConnectionError) as e:
            raise TransportError(f"Failed to reach Ollama at {self.base_url}: {e}", original_error=e) from e

        if not response.done or response.message is None:
            raise BackendError("Incomplete response from Ollama")

        content = response.message.content
        if not content or not content.strip():
            raise BackendError("Empty response from Ollama")

        LOGGER.info(
            "Ollama response received",
            extra={
                "model": request.model,
                "prompt_eval_count": response.prompt_eval_count,
                "eval_count": response.eval_count,
                "content_length": len(content),
            },
        )
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

        current: Dict[str, Any] = {"role": "user", "content": request.prompt}
        if request.images:
            current["images"] = [image.data for image in request.images]
        messages.append(current)
        return messages

    @staticmethod
    def _build_options(request: GenerationRequest) -> Dict[str, Any]:
        options: Dict[str, Any] = {}
        if request.sampling.temperature is not None:
            options["temperature"] = request.sampling.temperature
        if request.sampling.top_p is not None:
            options["top_p"] = request.sampling.top_p
        if request.sampling.top_k is not None:
            options["top_k"] = request.sampling.top_k
        return options
