"""Unit tests for UnifiedLLMClient."""

import asyncio
import io
import json

import pytest

from bouwdepot.core.config import LLMSettings
from bouwdepot.core.conversation import MODEL_ROLE, USER_ROLE
from bouwdepot.core.exceptions import (
    BackendError,
    ConfigurationError,
    DeserializationError,
    LLMTimeoutError,
)
from bouwdepot.core.llm_types import ImageAttachment
from bouwdepot.core.unified_llm import LLMProvider, UnifiedLLMClient, create_llm_client_from_settings
from bouwdepot.schemas.responses import DocumentTypeVerificationResponse, LanguageDetectionResponse
from conftest import DOCUMENT_TYPE_REPLY, LANGUAGE_REPLY


def last_request(llm_client):
    return llm_client.client.generate.call_args.args[0]


class TestStructuredPrompts:
    """Typed replies and conversation bookkeeping."""

    @pytest.mark.asyncio
    async def test_reply_parsed_into_contract(self, llm_client):
        """Test that a JSON reply is validated into the requested contract."""
        llm_client.client.generate.return_value = json.dumps(LANGUAGE_REPLY)

        result = await llm_client.send_structured_prompt(LanguageDetectionResponse, "Which language?")

        assert isinstance(result, LanguageDetectionResponse)
        assert result.language.name == "Dutch"
        assert result.language.code == "nl"
        assert result.language.confidence == 97

    @pytest.mark.asyncio
    async def test_fenced_reply_parsed(self, llm_client):
        """Test that markdown fences around the reply are stripped."""
        llm_client.client.generate.return_value = "```json\n" + json.dumps(DOCUMENT_TYPE_REPLY) + "\n```"

        result = await llm_client.send_structured_prompt(DocumentTypeVerificationResponse, "Which type?")

        assert result.is_invoice is True
        assert result.document_type == "invoice"

    @pytest.mark.asyncio
    async def test_prose_wrapped_reply_recovered(self, llm_client):
        """Test that a JSON object surrounded by prose is still accepted."""
        llm_client.client.generate.return_value = "Sure! " + json.dumps(LANGUAGE_REPLY) + " Hope this helps."

        result = await llm_client.send_structured_prompt(LanguageDetectionResponse, "Which language?")

        assert result.language.name == "Dutch"

    @pytest.mark.asyncio
    async def test_conversation_grows_by_two_per_call(self, llm_client):
        """Test that each call appends the prompt and the reply, tagged with the step."""
        llm_client.client.generate.return_value = json.dumps(LANGUAGE_REPLY)
        conversation = llm_client.create_conversation()

        await llm_client.send_structured_prompt(
            LanguageDetectionResponse, "first", conversation=conversation, step_label="DetectLanguage"
        )
        await llm_client.send_structured_prompt(
            LanguageDetectionResponse, "second", conversation=conversation, step_label="VerifyDocumentType"
        )

        messages = conversation.messages
        assert [m.role for m in messages] == [USER_ROLE, MODEL_ROLE, USER_ROLE, MODEL_ROLE]
        assert [m.step_name for m in messages] == [
            "DetectLanguage",
            "DetectLanguage",
            "VerifyDocumentType",
            "VerifyDocumentType",
        ]
        assert messages[1].content == json.dumps(LANGUAGE_REPLY)

    @pytest.mark.asyncio
    async def test_history_excludes_current_prompt(self, llm_client):
        """Test that the backend sees prior turns only, never the outgoing prompt twice."""
        llm_client.client.generate.return_value = json.dumps(LANGUAGE_REPLY)
        conversation = llm_client.create_conversation()

        await llm_client.send_structured_prompt(LanguageDetectionResponse, "first", conversation=conversation)
        first_request = last_request(llm_client)
        await llm_client.send_structured_prompt(LanguageDetectionResponse, "second", conversation=conversation)
        second_request = last_request(llm_client)

        assert len(first_request.history) == 0
        assert first_request.prompt == "first"
        assert [m.content for m in second_request.history] == ["first", json.dumps(LANGUAGE_REPLY)]
        assert second_request.prompt == "second"
        assert second_request.expect_json is True

    @pytest.mark.asyncio
    async def test_no_conversation_means_no_history(self, llm_client):
        llm_client.client.generate.return_value = json.dumps(LANGUAGE_REPLY)

        await llm_client.send_structured_prompt(LanguageDetectionResponse, "only")

        assert len(last_request(llm_client).history) == 0


class TestDeserializationFailures:

    @pytest.mark.asyncio
    async def test_non_json_reply(self, llm_client):
        """Test that a non-JSON reply raises DeserializationError but is still recorded."""
        llm_client.client.generate.return_value = "I cannot read this document."
        conversation = llm_client.create_conversation()

        with pytest.raises(DeserializationError) as exc_info:
            await llm_client.send_structured_prompt(
                LanguageDetectionResponse, "Which language?", conversation=conversation
            )

        assert exc_info.value.contract_name == "LanguageDetectionResponse"
        assert exc_info.value.response_text == "I cannot read this document."
        assert len(conversation) == 2

    @pytest.mark.asyncio
    async def test_reply_missing_required_field(self, llm_client):
        """Test that JSON not matching the contract raises DeserializationError."""
        llm_client.client.generate.return_value = json.dumps({"unexpected": True})

        with pytest.raises(DeserializationError):
            await llm_client.send_structured_prompt(LanguageDetectionResponse, "Which language?")


class TestBackendFailures:

    @pytest.mark.asyncio
    async def test_backend_error_propagates(self, llm_client):
        """Test that backend errors reach the caller unchanged."""
        llm_client.client.generate.side_effect = BackendError("API Error 500", status_code=500)
        conversation = llm_client.create_conversation()

        with pytest.raises(BackendError) as exc_info:
            await llm_client.send_structured_prompt(
                LanguageDetectionResponse, "Which language?", conversation=conversation
            )

        assert exc_info.value.status_code == 500
        assert [m.role for m in conversation.messages] == [USER_ROLE]

    @pytest.mark.asyncio
    async def test_slow_backend_times_out(self, llm_client):
        """Test that a call exceeding the timeout raises LLMTimeoutError."""

        async def slow_generate(request):
            await asyncio.sleep(5)
            return "{}"

        llm_client.timeout = 0.05
        llm_client.client.generate.side_effect = slow_generate

        with pytest.raises(LLMTimeoutError) as exc_info:
            await llm_client.send_text_prompt("Hello")

        assert exc_info.value.timeout_seconds == 0.05


class TestModelSelection:

    @pytest.mark.asyncio
    async def test_text_prompt_uses_text_model(self, llm_client):
        """Test that text prompts go to the text model without JSON mode."""
        llm_client.client.generate.return_value = "```\nplain answer\n```"

        result = await llm_client.send_text_prompt("Hello")

        request = last_request(llm_client)
        assert result == "plain answer"
        assert request.model == "llama3.2"
        assert request.expect_json is False
        assert request.images == []

    @pytest.mark.asyncio
    async def test_images_use_multimodal_model(self, llm_client, sample_pdf_content):
        """Test that attachments are read in full and sent to the multimodal model."""
        llm_client.client.generate.return_value = json.dumps(LANGUAGE_REPLY)
        stream = io.BytesIO(sample_pdf_content)
        stream.seek(10)

        await llm_client.send_multimodal_structured_prompt(
            LanguageDetectionResponse,
            "Which language?",
            [ImageAttachment(stream=stream, mime_type="application/pdf")],
        )

        request = last_request(llm_client)
        assert request.model == "llava"
        assert request.images[0].data == sample_pdf_content
        assert request.images[0].mime_type == "application/pdf"
        assert stream.tell() == 0

    @pytest.mark.asyncio
    async def test_multimodal_text_prompt(self, llm_client, sample_pdf_content):
        """Test that free-text replies about images skip contract parsing."""
        llm_client.client.generate.return_value = "```\nDit is een factuur.\n```"

        result = await llm_client.send_multimodal_prompt(
            "Describe the document",
            [ImageAttachment(stream=io.BytesIO(sample_pdf_content), mime_type="application/pdf")],
        )

        request = last_request(llm_client)
        assert result == "Dit is een factuur."
        assert request.model == "llava"
        assert request.expect_json is False

    def test_sampling_options_forwarded(self):
        client = UnifiedLLMClient(
            provider="ollama", text_model="t", multimodal_model="m", temperature=0.2, top_k=40
        )

        assert client.sampling.temperature == 0.2
        assert client.sampling.top_k == 40
        assert client.sampling.top_p is None


class TestClientConstruction:

    def test_unknown_provider(self):
        with pytest.raises(ConfigurationError, match="Unsupported provider"):
            UnifiedLLMClient(provider="claude", text_model="t", multimodal_model="m")

    def test_missing_model(self):
        with pytest.raises(ConfigurationError):
            UnifiedLLMClient(provider="ollama", text_model="", multimodal_model="llava")

    def test_non_positive_timeout(self):
        with pytest.raises(ConfigurationError, match="Timeout"):
            UnifiedLLMClient(provider="ollama", text_model="t", multimodal_model="m", timeout=0)

    def test_gemini_requires_api_key(self):
        with pytest.raises(ConfigurationError, match="GEMINI_API_KEY"):
            UnifiedLLMClient(provider="gemini", text_model="t", multimodal_model="m")

    def test_openrouter_requires_api_key(self):
        with pytest.raises(ConfigurationError, match="OPENROUTER_API_KEY"):
            UnifiedLLMClient(provider="openrouter", text_model="t", multimodal_model="m", api_key="  ")

    def test_gemini_client_created(self):
        client = UnifiedLLMClient(provider="gemini", text_model="t", multimodal_model="m", api_key="test_key")

        assert client.provider == LLMProvider.GEMINI
        assert client.provider_name == "Gemini"


class TestCreateFromSettings:

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for name in ("LLM_PROVIDER", "GEMINI_API_KEY", "OPENROUTER_API_KEY", "OLLAMA_TEXT_MODEL"):
            monkeypatch.delenv(name, raising=False)

    def test_ollama_from_environment(self, monkeypatch):
        """Test that the provider, models and endpoint come from the environment."""
        monkeypatch.setenv("LLM_PROVIDER", "Ollama")
        monkeypatch.setenv("OLLAMA_TEXT_MODEL", "mistral")
        monkeypatch.setenv("LLM_TIMEOUT_SECONDS", "30")

        client = create_llm_client_from_settings(LLMSettings())

        assert client.provider == LLMProvider.OLLAMA
        assert client.text_model == "mistral"
        assert client.multimodal_model == "llava"
        assert client.timeout == 30
        assert client.provider_name == "Ollama"

    def test_openrouter_from_environment(self, monkeypatch):
        monkeypatch.setenv("LLM_PROVIDER", "openrouter")
        monkeypatch.setenv("OPENROUTER_API_KEY", "sk-test")

        client = create_llm_client_from_settings(LLMSettings())

        assert client.provider == LLMProvider.OPENROUTER
        assert client.text_model == "openai/gpt-4o-mini"

    def test_unknown_provider_in_settings(self, monkeypatch):
        monkeypatch.setenv("LLM_PROVIDER", "watson")

        with pytest.raises(ConfigurationError, match="watson"):
            create_llm_client_from_settings(LLMSettings())

    def test_gemini_without_key_in_settings(self, monkeypatch):
        monkeypatch.setenv("LLM_PROVIDER", "gemini")

        with pytest.raises(ConfigurationError):
            create_llm_client_from_settings(LLMSettings())
