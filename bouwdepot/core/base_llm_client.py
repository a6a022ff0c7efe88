import json
from typing import Any, Dict, Optional

import httpx
from httpx import HTTPStatusError, TimeoutException

from bouwdepot.core.exceptions import BackendError, LLMTimeoutError, TransportError
from bouwdepot.utils.logging import get_logger

LOGGER = get_logger(__name__)


class BaseLLMClient:
    """Base client for HTTP/JSON LLM API interactions.

    Handles request construction, timeout management and mapping of HTTP
    failures onto the backend error taxonomy. Calls are made exactly once.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str,
        timeout: float = 60,
    ):
        """Initialize the LLM client.

        Args:
            api_key: API key for authentication
            base_url: Base URL for the API
            timeout: Request timeout in seconds
        """
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self.logger = LOGGER

    async def call_api(
        self,
        endpoint: str = "",
        payload: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """POST ``payload`` to the API.

        Args:
            endpoint: API endpoint (appended to base_url)
            payload: JSON payload
            headers: Additional headers

        Returns:
            Parsed JSON response

        Raises:
            BackendError: If the API answers with a non-success status or
                a body that is not JSON
            LLMTimeoutError: If the API call times out
            TransportError: If the API could not be reached
        """
        url = f"{self.base_url}{endpoint}" if endpoint else self.base_url

        default_headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if headers:
            default_headers.update(headers)

        self.logger.debug(
            f"Calling LLM API: {url}",
            extra={"timeout": self.timeout},
        )

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.post(url, headers=default_headers, json=payload)
                response.raise_for_status()
            except HTTPStatusError as e:
                self._handle_http_error(e, url)
            except TimeoutException as e:
                self.logger.warning("API Timeout", extra={"url": url})
                raise LLMTimeoutError(
                    f"API Timeout after {self.timeout}s", timeout_seconds=self.timeout, original_error=e
                ) from e
            except httpx.TransportError as e:
                self.logger.warning("API Transport Error", extra={"url": url, "error": str(e)})
                raise TransportError(f"Failed to reach {url}: {e}", original_error=e) from e

        try:
            return response.json()
        except ValueError as e:
            raise BackendError(
                f"API returned a non-JSON body ({response.status_code})",
                status_code=response.status_code,
                original_error=e,
            ) from e

    def _handle_http_error(self, error: HTTPStatusError, url: str) -> None:
        """Translate an HTTP status error into a BackendError."""
        status_code = error.response.status_code
        error_body = error.response.text

        self.logger.warning(
            "API HTTP error",
            extra={
                "url": url,
                "status_code": status_code,
                "error_body": error_body[:500],
            },
        )

        backend_message = extract_error_message(error_body)
        raise BackendError(
            f"API Error {status_code}: {backend_message or error_body[:200]}",
            status_code=status_code,
            backend_message=backend_message,
            original_error=error,
        ) from error


def extract_error_message(body: str) -> Optional[str]:
    """Pull the human readable message out of a JSON error body.

    Understands ``{"error": "..."}`` and ``{"error": {"message": "..."}}``.
    """
    try:
        parsed = json.loads(body)
    except (TypeError, ValueError):
        return None

    if not isinstance(parsed, dict):
        return None

    error = parsed.get("error")
    if isinstance(error, str):
        return error
    if isinstance(error, dict) and isinstance(error.get("message"), str):
        return error["message"]
    return None
