"""
Unit tests for provider adapters and the HTTP transport.
"""

import io
import json
from unittest.mock import MagicMock, patch
from urllib.error import HTTPError, URLError

import pytest

from lim.core.exceptions import ProviderCallError
from lim.core.types import LLMProvider, OutputFormat, ProviderRequestOptions
from lim.providers.adapters import (
    ADAPTER_CLASSES,
    AnthropicAdapter,
    GeminiAdapter,
    OpenAIAdapter,
    OpenRouterAdapter,
    create_adapters,
)
from lim.providers.base import ProviderRequest
from lim.providers.transport import post_json


def options(provider: LLMProvider, model: str) -> ProviderRequestOptions:
    return ProviderRequestOptions(provider=provider, model=model, temperature=0.3, max_tokens=100)


class TestAdapterTable:
    """Tests for the provider → adapter lookup table."""

    def test_one_adapter_per_provider(self):
        """Test every provider has an adapter."""
        adapters = create_adapters(app_url="https://example.test")

        assert set(adapters) == set(LLMProvider)
        assert set(ADAPTER_CLASSES) == set(LLMProvider)
        for provider, adapter in adapters.items():
            assert adapter.provider == provider

    def test_openrouter_receives_app_url(self):
        """Test the OpenRouter adapter is built with the configured referer."""
        adapters = create_adapters(app_url="https://example.test")

        assert adapters[LLMProvider.OPENROUTER].app_url == "https://example.test"


class TestOpenAIAdapter:
    """Tests for OpenAIAdapter."""

    def test_build_request(self):
        """Test request shape and auth header."""
        request = OpenAIAdapter().build_request(
            "system", "user", options(LLMProvider.OPENAI, "gpt-4o"), "sk-1"
        )

        assert request.url == "https://api.openai.com/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer sk-1"
        assert request.body["model"] == "gpt-4o"
        assert request.body["messages"][0] == {"role": "system", "content": "system"}
        assert request.body["messages"][1] == {"role": "user", "content": "user"}
        assert request.body["temperature"] == 0.3
        assert request.body["max_tokens"] == 100
        assert request.body["response_format"] == {"type": "json_object"}

    def test_no_json_mode_for_text_formats(self):
        """Test JSON mode is only requested for JSON templates."""
        request = OpenAIAdapter().build_request(
            "s", "u", options(LLMProvider.OPENAI, "gpt-4o"), "sk-1", OutputFormat.MARKDOWN
        )

        assert "response_format" not in request.body

    def test_parse_response(self):
        """Test completion text extraction."""
        payload = {"choices": [{"message": {"content": "hello"}}]}

        assert OpenAIAdapter().parse_response(payload) == "hello"

    def test_parse_malformed_response(self):
        """Test a malformed envelope raises ProviderCallError."""
        with pytest.raises(ProviderCallError) as exc_info:
            OpenAIAdapter().parse_response({"choices": []})

        assert exc_info.value.provider == "openai"

    def test_parse_non_text_completion(self):
        """Test a null completion raises ProviderCallError."""
        with pytest.raises(ProviderCallError):
            OpenAIAdapter().parse_response({"choices": [{"message": {"content": None}}]})


class TestOpenRouterAdapter:
    """Tests for OpenRouterAdapter."""

    def test_build_request(self):
        """Test referer/title headers and no response_format."""
        adapter = OpenRouterAdapter(app_url="https://spots.test")
        request = adapter.build_request(
            "s", "u", options(LLMProvider.OPENROUTER, "perplexity/sonar-small-online"), "sk-or"
        )

        assert request.url == "https://openrouter.ai/api/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer sk-or"
        assert request.headers["HTTP-Referer"] == "https://spots.test"
        assert request.headers["X-Title"] == "Spots App"
        assert "response_format" not in request.body


class TestGeminiAdapter:
    """Tests for GeminiAdapter."""

    def test_gemini_2_uses_v1(self):
        """Test gemini-2 models use the v1 API with the key in the query string."""
        request = GeminiAdapter().build_request(
            "sys", "usr", options(LLMProvider.GEMINI, "gemini-2-flash"), "key/1"
        )

        assert request.url.startswith(
            "https://generativelanguage.googleapis.com/v1/models/gemini-2-flash:generateContent"
        )
        assert request.url.endswith("?key=key%2F1")
        assert request.redacted_url().endswith(":generateContent")
        assert request.body["contents"][0]["parts"][0]["text"] == "sys\n\nusr"
        assert request.body["generationConfig"]["maxOutputTokens"] == 100

    def test_older_models_use_v1beta(self):
        """Test other models use v1beta."""
        request = GeminiAdapter().build_request(
            "s", "u", options(LLMProvider.GEMINI, "gemini-1.5-pro"), "k"
        )

        assert "/v1beta/models/gemini-1.5-pro:generateContent" in request.url

    def test_parse_response(self):
        """Test completion text extraction."""
        payload = {"candidates": [{"content": {"parts": [{"text": "[]"}]}}]}

        assert GeminiAdapter().parse_response(payload) == "[]"


class TestAnthropicAdapter:
    """Tests for AnthropicAdapter."""

    def test_build_request(self):
        """Test headers and message body."""
        request = AnthropicAdapter().build_request(
            "sys", "usr", options(LLMProvider.ANTHROPIC, "claude-3-sonnet"), "sk-ant"
        )

        assert request.headers["x-api-key"] == "sk-ant"
        assert request.headers["anthropic-version"] == "2023-06-01"
        assert request.body["system"] == "sys"
        assert request.body["messages"] == [{"role": "user", "content": "usr"}]

    def test_parse_response(self):
        """Test completion text extraction."""
        payload = {"content": [{"type": "text", "text": "ok"}]}

        assert AnthropicAdapter().parse_response(payload) == "ok"


class TestPostJson:
    """Tests for the urllib transport."""

    @pytest.fixture
    def request_(self):
        return ProviderRequest(
            url="https://api.example.test/v1/complete?key=secret",
            headers={"Content-Type": "application/json"},
            body={"prompt": "hi"},
        )

    @patch("lim.providers.transport.urlopen")
    def test_success(self, mock_urlopen, request_):
        """Test a successful call decodes the envelope."""
        mock_response = MagicMock()
        mock_response.read.return_value = json.dumps({"ok": True}).encode("utf-8")
        mock_response.__enter__ = MagicMock(return_value=mock_response)
        mock_response.__exit__ = MagicMock(return_value=False)
        mock_urlopen.return_value = mock_response

        result = post_json(request_, "openai", timeout=5)

        assert result == {"ok": True}
        sent = mock_urlopen.call_args[0][0]
        assert json.loads(sent.data) == {"prompt": "hi"}
        assert sent.get_method() == "POST"
        assert mock_urlopen.call_args[1]["timeout"] == 5

    @patch("lim.providers.transport.urlopen")
    def test_http_error(self, mock_urlopen, request_):
        """Test HTTP errors carry the status code."""
        mock_urlopen.side_effect = HTTPError(
            request_.url, 429, "Too Many Requests", {}, io.BytesIO(b'{"error": "rate limited"}')
        )

        with pytest.raises(ProviderCallError) as exc_info:
            post_json(request_, "gemini")

        assert exc_info.value.status_code == 429
        assert exc_info.value.provider == "gemini"
        assert "rate limited" in str(exc_info.value)

    @patch("lim.providers.transport.urlopen")
    def test_connection_error_redacts_key(self, mock_urlopen, request_):
        """Test connection failures do not leak the query-string credential."""
        mock_urlopen.side_effect = URLError("Connection refused")

        with pytest.raises(ProviderCallError) as exc_info:
            post_json(request_, "gemini")

        assert "secret" not in str(exc_info.value)

    @patch("lim.providers.transport.urlopen")
    def test_invalid_json_envelope(self, mock_urlopen, request_):
        """Test an undecodable envelope raises ProviderCallError."""
        mock_response = MagicMock()
        mock_response.read.return_value = b"<html>bad gateway</html>"
        mock_response.__enter__ = MagicMock(return_value=mock_response)
        mock_response.__exit__ = MagicMock(return_value=False)
        mock_urlopen.return_value = mock_response

        with pytest.raises(ProviderCallError):
            post_json(request_, "anthropic")

    @patch("lim.providers.transport.urlopen")
    def test_non_utf8_body(self, mock_urlopen, request_):
        """Test a body that is not UTF-8 raises ProviderCallError."""
        mock_response = MagicMock()
        mock_response.read.return_value = b"\xff\xfe\xfa"
        mock_response.__enter__ = MagicMock(return_value=mock_response)
        mock_response.__exit__ = MagicMock(return_value=False)
        mock_urlopen.return_value = mock_response

        with pytest.raises(ProviderCallError) as exc_info:
            post_json(request_, "gemini")

        assert exc_info.value.provider == "gemini"
        assert "Invalid response body" in str(exc_info.value)

    @patch("lim.providers.transport.urlopen")
    def test_timeout(self, mock_urlopen, request_):
        """Test timeouts raise ProviderCallError."""
        mock_urlopen.side_effect = TimeoutError("timed out")

        with pytest.raises(ProviderCallError):
            post_json(request_, "openrouter")
