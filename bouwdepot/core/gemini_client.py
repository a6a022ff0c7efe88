"""Google Gemini backend."""

from typing import List, Optional

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from bouwdepot.core.conversation import MODEL_ROLE
from bouwdepot.core.exceptions import BackendError, ConfigurationError, LLMTimeoutError, TransportError
from bouwdepot.core.llm_types import GenerationRequest
from bouwdepot.utils.logging import get_logger

LOGGER = get_logger(__name__)

DEFAULT_GEMINI_URL = "https://generativelanguage.googleapis.com"


class GeminiClient:
    """Wrapper for Google Gemini API client."""

    provider_name = "Gemini"

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_GEMINI_URL,
        timeout: float = 60,
    ):
        """Initialize Gemini client.

        Args:
            api_key: Gemini API key
            base_url: API base URL
            timeout: Request timeout in seconds

        Raises:
            ConfigurationError: If the API key or base URL is missing
        """
        if not api_key or not api_key.strip():
            raise ConfigurationError(
                "gemini_api_key required when provider='gemini'. "
                "Please set GEMINI_API_KEY environment variable."
            )
        if not base_url:
            raise ConfigurationError("Gemini base URL must not be empty")

        self.api_key = api_key.strip()
        self.base_url = base_url
        self.timeout = timeout

        self.client = genai.Client(
            api_key=self.api_key,
            http_options=types.HttpOptions(base_url=base_url, timeout=int(timeout * 1000)),
        )
        LOGGER.info(f"Initialized Gemini client at {base_url} (timeout: {timeout}s)")

    async def generate(self, request: GenerationRequest) -> str:
        """Generate a reply for ``request``.

        Raises:
            BackendError: On a non-success status or an empty reply
            TransportError: If the service could not be reached
            LLMTimeoutError: If the HTTP layer timed out
        """
        contents = self._build_contents(request)
        config = types.GenerateContentConfig(
            temperature=request.sampling.temperature,
            top_p=request.sampling.top_p,
            top_k=request.sampling.top_k,
            response_mime_type="application/json" if request.expect_json else None,
        )

        LOGGER.info(
            "Calling Gemini API",
            extra={"model": request.model, "turns": len(contents), "images": len(request.images)},
        )

        try:
            response = await self.client.aio.models.generate_content(
                model=request.model,
                contents=contents,
                config=config,
            )
        except genai_errors.APIError as e:
            LOGGER.error(f"Gemini API error {e.code}: {e.message}")
            raise BackendError(
                f"Gemini API returned {e.code}: {e.message or e.status}",
                status_code=e.code,
                backend_message=e.message,
                original_error=e,
            ) from e
        except httpx.TimeoutException as e:
            raise LLMTimeoutError(
                f"Gemini API call timed out after {self.timeout}s",
                timeout_seconds=self.timeout,
                original_error=e,
            ) from e
        except httpx.TransportError as e:
            raise TransportError(f"Failed to reach Gemini API: {e}", original_error=e) from e

        self._log_candidate(response)

        text = response.text
        if not text or not text.strip():
            raise BackendError("Empty response from Gemini")
        return text

    @staticmethod
    def _build_contents(request: GenerationRequest) -> List[types.Content]:
        contents = [
            types.Content(
                role="model" if message.role == MODEL_ROLE else "user",
                parts=[types.Part(text=message.content)],
            )
            for message in request.history
        ]

        parts = [types.Part(text=request.prompt)]
        for image in request.images:
            parts.append(types.Part.from_bytes(data=image.data, mime_type=image.mime_type))
        contents.append(types.Content(role="user", parts=parts))
        return contents

    @staticmethod
    def _log_candidate(response: types.GenerateContentResponse) -> None:
        candidate: Optional[types.Candidate] = response.candidates[0] if response.candidates else None
        if candidate is None:
            LOGGER.warning("Gemini response has no candidates")
            return

        if candidate.finish_reason and candidate.finish_reason != types.FinishReason.STOP:
            LOGGER.warning(f"Gemini response finish reason: {candidate.finish_reason}")

        for rating in candidate.safety_ratings or []:
            if rating.blocked:
                LOGGER.warning(f"Gemini safety rating blocked content: {rating.category} ({rating.probability})")

        usage = response.usage_metadata
        if usage is not None:
            LOGGER.info(
                "Gemini usage",
                extra={
                    "prompt_tokens": usage.prompt_token_count,
                    "candidate_tokens": usage.candidates_token_count,
                },
            )
