"""Unit tests for settings loading."""

from pathlib import Path

import pytest

from bouwdepot.core.config import DEFAULT_TEMPLATES_DIR, LLMSettings, PromptSettings, Settings, get_settings

ENV_VARS = (
    "LLM_PROVIDER",
    "GEMINI_API_KEY",
    "GEMINI_TEXT_MODEL",
    "LLM_TIMEOUT_SECONDS",
    "LLM_TEMPERATURE",
    "LLM_TOP_K",
    "PROMPT_TEMPLATES_DIR",
    "PROMPT_DUPLICATE_POLICY",
    "APP_NAME",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestLLMSettings:

    def test_defaults(self):
        settings = LLMSettings()

        assert settings.provider == "gemini"
        assert settings.gemini_text_model == "gemini-2.0-flash"
        assert settings.ollama_api_url == "http://localhost:11434"
        assert settings.timeout_seconds == 120
        assert settings.temperature == 0.0
        assert settings.top_k is None

    def test_environment_overrides(self, monkeypatch):
        """Test that environment variables override defaults, case-insensitively."""
        monkeypatch.setenv("llm_provider", "openrouter")
        monkeypatch.setenv("GEMINI_TEXT_MODEL", "gemini-1.5-pro")
        monkeypatch.setenv("LLM_TOP_K", "40")
        monkeypatch.setenv("LLM_TEMPERATURE", "0.3")

        settings = LLMSettings()

        assert settings.provider == "openrouter"
        assert settings.gemini_text_model == "gemini-1.5-pro"
        assert settings.top_k == 40
        assert settings.temperature == 0.3


class TestPromptSettings:

    def test_defaults_point_at_bundled_templates(self):
        settings = PromptSettings()

        assert settings.templates_dir == DEFAULT_TEMPLATES_DIR
        assert settings.duplicate_policy == "first_wins"
        assert (DEFAULT_TEMPLATES_DIR / "language_detection.yaml").is_file()

    def test_environment_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("PROMPT_TEMPLATES_DIR", str(tmp_path))
        monkeypatch.setenv("PROMPT_DUPLICATE_POLICY", "last_wins")

        settings = PromptSettings()

        assert settings.templates_dir == Path(tmp_path)
        assert settings.duplicate_policy == "last_wins"


class TestSettings:

    def test_nested_sections(self, monkeypatch):
        """Test that nested sections read their own variables."""
        monkeypatch.setenv("LLM_PROVIDER", "ollama")
        monkeypatch.setenv("APP_NAME", "Test Validator")

        settings = get_settings()

        assert isinstance(settings, Settings)
        assert settings.app_name == "Test Validator"
        assert settings.llm_provider == "ollama"
        assert settings.templates_dir == DEFAULT_TEMPLATES_DIR
