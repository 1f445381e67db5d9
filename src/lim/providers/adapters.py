"""
Adapters for the supported text-generation providers.

Adapters are selected from ADAPTER_CLASSES by provider; adding a provider
means adding one adapter class and one table entry.
"""

from typing import Any, Dict, Type
from urllib.parse import quote

from ..core.types import LLMProvider, OutputFormat, ProviderRequestOptions
from .base import ProviderAdapter, ProviderRequest


def _chat_messages(system_prompt: str, user_prompt: str) -> list:
    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": user_prompt},
    ]


class OpenAIAdapter(ProviderAdapter):
    """OpenAI chat completions."""

    provider = LLMProvider.OPENAI
    endpoint = "https://api.openai.com/v1/chat/completions"

    def build_request(self, system_prompt, user_prompt, options, api_key,
                      output_format=OutputFormat.JSON) -> ProviderRequest:
        body = {
            "model": options.model,
            "messages": _chat_messages(system_prompt, user_prompt),
            "temperature": options.temperature,
            "max_tokens": options.max_tokens,
            "top_p": options.top_p,
            "frequency_penalty": options.frequency_penalty,
            "presence_penalty": options.presence_penalty,
        }
        if output_format == OutputFormat.JSON:
            body["response_format"] = {"type": "json_object"}

        return ProviderRequest(
            url=self.endpoint,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {api_key}",
            },
            body=body,
        )

    def extract_text(self, payload: Dict[str, Any]) -> str:
        return payload["choices"][0]["message"]["content"]


class OpenRouterAdapter(OpenAIAdapter):
    """OpenRouter's OpenAI-compatible chat completions."""

    provider = LLMProvider.OPENROUTER
    endpoint = "https://openrouter.ai/api/v1/chat/completions"

    def __init__(self, app_url: str = "https://spots.app", app_title: str = "Spots App"):
        self.app_url = app_url
        self.app_title = app_title

    def build_request(self, system_prompt, user_prompt, options, api_key,
                      output_format=OutputFormat.JSON) -> ProviderRequest:
        request = super().build_request(system_prompt, user_prompt, options, api_key, output_format)
        # Routed models do not all accept response_format
        request.body.pop("response_format", None)
        request.headers["HTTP-Referer"] = self.app_url
        request.headers["X-Title"] = self.app_title
        return request


class GeminiAdapter(ProviderAdapter):
    """Google Gemini generateContent. The key travels in the query string."""

    provider = LLMProvider.GEMINI
    base_url = "https://generativelanguage.googleapis.com"

    def build_request(self, system_prompt, user_prompt, options, api_key,
                      output_format=OutputFormat.JSON) -> ProviderRequest:
        api_version = "v1" if "gemini-2" in options.model else "v1beta"
        url = (
            f"{self.base_url}/{api_version}/models/{options.model}:generateContent"
            f"?key={quote(api_key, safe='')}"
        )
        body = {
            "contents": [
                {"role": "user", "parts": [{"text": f"{system_prompt}\n\n{user_prompt}"}]},
            ],
            "generationConfig": {
                "temperature": options.temperature,
                "maxOutputTokens": options.max_tokens,
                "topP": options.top_p,
            },
        }
        return ProviderRequest(url=url, headers={"Content-Type": "application/json"}, body=body)

    def extract_text(self, payload: Dict[str, Any]) -> str:
        return payload["candidates"][0]["content"]["parts"][0]["text"]


class AnthropicAdapter(ProviderAdapter):
    """Anthropic messages API."""

    provider = LLMProvider.ANTHROPIC
    endpoint = "https://api.anthropic.com/v1/messages"
    api_version = "2023-06-01"

    def build_request(self, system_prompt, user_prompt, options, api_key,
                      output_format=OutputFormat.JSON) -> ProviderRequest:
        body = {
            "model": options.model,
            "system": system_prompt,
            "messages": [{"role": "user", "content": user_prompt}],
            "temperature": options.temperature,
            "max_tokens": options.max_tokens,
            "top_p": options.top_p,
        }
        return ProviderRequest(
            url=self.endpoint,
            headers={
                "Content-Type": "application/json",
                "x-api-key": api_key,
                "anthropic-version": self.api_version,
            },
            body=body,
        )

    def extract_text(self, payload: Dict[str, Any]) -> str:
        return payload["content"][0]["text"]


ADAPTER_CLASSES: Dict[LLMProvider, Type[ProviderAdapter]] = {
    LLMProvider.OPENAI: OpenAIAdapter,
    LLMProvider.GEMINI: GeminiAdapter,
    LLMProvider.ANTHROPIC: AnthropicAdapter,
    LLMProvider.OPENROUTER: OpenRouterAdapter,
}


def create_adapters(app_url: str = "https://spots.app") -> Dict[LLMProvider, ProviderAdapter]:
    """Instantiate one adapter per provider."""
    adapters = {}
    for provider, adapter_class in ADAPTER_CLASSES.items():
        if adapter_class is OpenRouterAdapter:
            adapters[provider] = adapter_class(app_url=app_url)
        else:
            adapters[provider] = adapter_class()
    return adapters
