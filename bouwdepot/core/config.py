"""Application configuration."""

import os
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from bouwdepot.utils.logging import get_logger

LOGGER = get_logger(__name__)

DEFAULT_TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "prompts" / "templates"


def find_env_file() -> Optional[Path]:
    """Find .env file in the package, its parent or the working directory."""
    current_dir = os.path.dirname(os.path.abspath(__file__))

    possible_paths = [
        os.path.join(os.path.dirname(current_dir), ".env"),
        os.path.join(os.path.dirname(os.path.dirname(current_dir)), ".env"),
        os.path.join(os.getcwd(), ".env"),
    ]

    for path_str in possible_paths:
        if os.path.exists(path_str):
            path = Path(path_str)
            LOGGER.info(f"Found .env file at: {path}")
            return path

    LOGGER.debug("No .env file found in expected locations")
    return None


ENV_FILE = find_env_file()


class LLMSettings(BaseSettings):
    """Generative backend selection, endpoints, models and sampling."""

    provider: str = Field(default="gemini", validation_alias="LLM_PROVIDER")

    gemini_api_key: str = Field(default="", validation_alias="GEMINI_API_KEY")
    gemini_api_url: str = Field(
        default="https://generativelanguage.googleapis.com", validation_alias="GEMINI_API_URL"
    )
    gemini_text_model: str = Field(default="gemini-2.0-flash", validation_alias="GEMINI_TEXT_MODEL")
    gemini_multimodal_model: str = Field(default="gemini-2.0-flash", validation_alias="GEMINI_MULTIMODAL_MODEL")

    ollama_api_url: str = Field(default="http://localhost:11434", validation_alias="OLLAMA_API_URL")
    ollama_text_model: str = Field(default="llama3.2", validation_alias="OLLAMA_TEXT_MODEL")
    ollama_multimodal_model: str = Field(default="llava", validation_alias="OLLAMA_MULTIMODAL_MODEL")
    ollama_keep_alive: str = Field(default="5m", validation_alias="OLLAMA_KEEP_ALIVE")

    openrouter_api_key: str = Field(default="", validation_alias="OPENROUTER_API_KEY")
    openrouter_api_url: str = Field(
        default="https://openrouter.ai/api/v1/chat/completions", validation_alias="OPENROUTER_API_URL"
    )
    openrouter_text_model: str = Field(default="openai/gpt-4o-mini", validation_alias="OPENROUTER_TEXT_MODEL")
    openrouter_multimodal_model: str = Field(
        default="openai/gpt-4o-mini", validation_alias="OPENROUTER_MULTIMODAL_MODEL"
    )

    timeout_seconds: float = Field(default=120, validation_alias="LLM_TIMEOUT_SECONDS")
    temperature: Optional[float] = Field(default=0.0, validation_alias="LLM_TEMPERATURE")
    top_p: Optional[float] = Field(default=None, validation_alias="LLM_TOP_P")
    top_k: Optional[int] = Field(default=None, validation_alias="LLM_TOP_K")

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE) if ENV_FILE else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_prefix="",
    )

    def model_post_init(self, __context) -> None:
        """Log settings after initialization."""
        LOGGER.info(f"LLM Provider: {self.provider}")
        provider = self.provider.lower()
        if provider == "gemini":
            LOGGER.info(f"Gemini API Key present: {bool(self.gemini_api_key)}")
        elif provider == "openrouter":
            LOGGER.info(f"OpenRouter API Key present: {bool(self.openrouter_api_key)}")
        elif provider == "ollama":
            LOGGER.info(f"Ollama endpoint: {self.ollama_api_url}")
        else:
            LOGGER.error("Invalid LLM provider specified!")


class PromptSettings(BaseSettings):
    """Prompt template location and loading policy."""

    templates_dir: Path = Field(default=DEFAULT_TEMPLATES_DIR, validation_alias="PROMPT_TEMPLATES_DIR")
    duplicate_policy: str = Field(default="first_wins", validation_alias="PROMPT_DUPLICATE_POLICY")

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE) if ENV_FILE else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_prefix="",
    )


class Settings(BaseSettings):
    """Unified application settings with nested models."""

    app_name: str = Field(default="Bouwdepot Validator", validation_alias="APP_NAME")
    app_version: str = "0.1.0"
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    llm: LLMSettings = Field(default_factory=lambda: LLMSettings())
    prompts: PromptSettings = Field(default_factory=lambda: PromptSettings())

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE) if ENV_FILE else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def llm_provider(self) -> str:
        return self.llm.provider

    @property
    def templates_dir(self) -> Path:
        return self.prompts.templates_dir


def get_settings() -> Settings:
    """Load settings from the environment."""
    return Settings()
