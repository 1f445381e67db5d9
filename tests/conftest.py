"""
Shared test fixtures and configuration for pytest.
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List

import pytest

# Add src directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from lim.core.config import Settings
from lim.core.types import LLMProvider
from lim.telemetry.kv_store import InMemoryKeyValueStore
from lim.telemetry.sink import TelemetrySink


ALL_CREDENTIALS = {
    LLMProvider.OPENAI: "sk-test-openai",
    LLMProvider.GEMINI: "test-gemini-key",
    LLMProvider.ANTHROPIC: "sk-ant-test",
    LLMProvider.OPENROUTER: "sk-or-test",
}


# ============================================================================
# Helpers
# ============================================================================

class FakeClock:
    """Settable UTC clock for expiry and freshness tests."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


def envelope_for(provider: LLMProvider, text: str) -> Dict[str, Any]:
    """Build the response envelope a provider would return for ``text``."""
    if provider == LLMProvider.GEMINI:
        return {"candidates": [{"content": {"parts": [{"text": text}]}}]}
    if provider == LLMProvider.ANTHROPIC:
        return {"content": [{"type": "text", "text": text}]}
    return {"choices": [{"message": {"role": "assistant", "content": text}}]}


class RecordingTransport:
    """
    Transport stand-in for ProviderGateway.

    ``responder(request, provider)`` returns completion text, or raises.
    Every call is recorded in ``calls``.
    """

    def __init__(self, responder):
        self.responder = responder
        self.calls: List[Dict[str, Any]] = []

    def __call__(self, request, provider: str, timeout: int) -> Dict[str, Any]:
        self.calls.append({"request": request, "provider": provider, "timeout": timeout})
        text = self.responder(request, provider)
        return envelope_for(LLMProvider(provider), text)


# ============================================================================
# Pytest hooks
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (requires live services)")


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def clock() -> FakeClock:
    """Clock fixed at 2024-06-01 12:00 UTC."""
    return FakeClock(datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def kv_store(clock) -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore(clock=clock)


@pytest.fixture
def telemetry(clock, kv_store) -> TelemetrySink:
    """Development sink backed by the in-memory store."""
    return TelemetrySink(environment="development", kv_store=kv_store, clock=clock)


@pytest.fixture
def dev_settings(tmp_path) -> Settings:
    """Development settings with no provider credentials."""
    return Settings(environment="development", output_dir=str(tmp_path / "recommendations"))


@pytest.fixture
def prod_settings(tmp_path) -> Settings:
    """Production settings with every provider credentialed."""
    return Settings(
        environment="production",
        credentials=dict(ALL_CREDENTIALS),
        output_dir=str(tmp_path / "recommendations"),
    )


@pytest.fixture
def transport_factory():
    """Returns RecordingTransport; call it with a responder."""
    return RecordingTransport


@pytest.fixture
def envelope():
    """Returns envelope_for(provider, text)."""
    return envelope_for
