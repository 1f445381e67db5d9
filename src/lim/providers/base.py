"""
Provider adapter interface.

Every backend shares one input shape (system text, user text, sampling
options) and one output contract (the raw completion text). Adapters only
translate between that contract and a provider's wire format.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict

from ..core.exceptions import ProviderCallError
from ..core.types import LLMProvider, OutputFormat, ProviderRequestOptions


@dataclass
class ProviderRequest:
    """
    A fully built HTTP request for one provider call.

    Attributes:
        url: Endpoint URL (may carry a credential for key-in-URL providers)
        headers: HTTP headers, including authentication
        body: JSON body
    """
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Dict[str, Any] = field(default_factory=dict)

    def redacted_url(self) -> str:
        """URL with any query string removed, for logs."""
        return self.url.split("?", 1)[0]


class ProviderAdapter(ABC):
    """Translates the shared call contract to one provider's API."""

    provider: LLMProvider

    @abstractmethod
    def build_request(
        self,
        system_prompt: str,
        user_prompt: str,
        options: ProviderRequestOptions,
        api_key: str,
        output_format: OutputFormat = OutputFormat.JSON,
    ) -> ProviderRequest:
        """Build the request for one completion. ``options.model`` is resolved."""
        pass

    @abstractmethod
    def extract_text(self, payload: Dict[str, Any]) -> str:
        """Pull the completion text out of a decoded response envelope."""
        pass

    def parse_response(self, payload: Dict[str, Any]) -> str:
        """
        Return the completion text from a decoded response envelope.

        Raises:
            ProviderCallError: If the envelope does not have the expected shape
        """
        try:
            text = self.extract_text(payload)
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderCallError(
                f"Unexpected response shape from {self.provider.value}: {e}",
                provider=self.provider.value,
            )
        if not isinstance(text, str):
            raise ProviderCallError(
                f"Non-text completion from {self.provider.value}",
                provider=self.provider.value,
            )
        return text
