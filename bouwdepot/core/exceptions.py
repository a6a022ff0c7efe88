from typing import Optional


class AppError(Exception):
    """Base exception for application errors."""
    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.original_error = original_error


class ConfigurationError(AppError):
    """Raised when configuration is invalid or missing."""
    pass


class SchemaGenerationError(AppError):
    """Raised when a response contract cannot be described as JSON schema."""
    def __init__(self, contract_name: str, detail: str = "", original_error: Exception = None):
        message = f"Error generating JSON schema for type {contract_name}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message, original_error)
        self.contract_name = contract_name


class TemplateNotFoundError(AppError):
    """Raised when a prompt template is not present in the store."""
    def __init__(self, template_name: str):
        super().__init__(f"Prompt template '{template_name}' not found")
        self.template_name = template_name


class APIClientError(AppError):
    """Raised when an external API call fails."""
    pass


class TransportError(APIClientError):
    """Raised when the backend could not be reached."""
    pass


class BackendError(APIClientError):
    """Raised when the backend answered with a failure."""
    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        backend_message: Optional[str] = None,
        original_error: Exception = None,
    ):
        super().__init__(message, original_error)
        self.status_code = status_code
        self.backend_message = backend_message


class LLMTimeoutError(APIClientError):
    """Raised when a backend call exceeds the configured timeout."""
    def __init__(self, message: str, timeout_seconds: Optional[float] = None, original_error: Exception = None):
        super().__init__(message, original_error)
        self.timeout_seconds = timeout_seconds


class DeserializationError(AppError):
    """Raised when a model reply does not match the requested contract."""
    def __init__(self, contract_name: str, response_text: str, original_error: Exception = None):
        super().__init__(
            f"Failed to deserialize response into {contract_name}",
            original_error,
        )
        self.contract_name = contract_name
        self.response_text = response_text


class PipelineStepError(AppError):
    """Raised when a pipeline step fails during preparation, call or processing."""
    def __init__(self, step_name: str, original_error: Exception):
        super().__init__(f"Error executing step: {original_error}", original_error)
        self.step_name = step_name


class InputValidationError(AppError):
    """Raised when service input is invalid."""
    pass
