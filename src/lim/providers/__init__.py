"""
Text-generation providers: adapters, transport and the gateway.
"""

from .adapters import (
    ADAPTER_CLASSES,
    AnthropicAdapter,
    GeminiAdapter,
    OpenAIAdapter,
    OpenRouterAdapter,
    create_adapters,
)
from .base import ProviderAdapter, ProviderRequest
from .gateway import GenerationResult, ProviderGateway

__all__ = [
    "ADAPTER_CLASSES",
    "AnthropicAdapter",
    "GeminiAdapter",
    "OpenAIAdapter",
    "OpenRouterAdapter",
    "create_adapters",
    "ProviderAdapter",
    "ProviderRequest",
    "GenerationResult",
    "ProviderGateway",
]
