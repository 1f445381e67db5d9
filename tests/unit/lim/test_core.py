"""
Unit tests for core types, settings, models and utilities.
"""

import json
import logging
import os
from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from lim.core.config import Settings
from lim.core.logging import HumanReadableFormatter, StructuredFormatter
from lim.core.models import Interest, Location, RecordSource, StructuredRecord, UnitOfWork
from lim.core.types import LLMProvider, LogLevel, ProviderRequestOptions
from lim.core.utils import slugify, stable_seed, truncate


UNIT = UnitOfWork(Location("la", "Los Angeles"), Interest("coffee", "Coffee"))


class TestProviderRequestOptions:
    """Tests for option merging."""

    def test_overrides_replace_defaults(self):
        """Test present values override and absent values keep defaults."""
        defaults = ProviderRequestOptions(temperature=0.7, max_tokens=2000)

        merged = defaults.merged({"temperature": 0.2, "model": None, "provider": "openai"})

        assert merged.temperature == 0.2
        assert merged.max_tokens == 2000
        assert merged.model is None
        assert merged.provider == LLMProvider.OPENAI

    def test_tags_concatenated(self):
        """Test caller tags come first, then the extra tags."""
        defaults = ProviderRequestOptions(tags=["DEFAULT"])

        assert defaults.merged({"tags": ["CALLER"]}, extra_tags=["TEMPLATE"]).tags == ["CALLER", "TEMPLATE"]
        assert defaults.merged(None, extra_tags=["TEMPLATE"]).tags == ["DEFAULT", "TEMPLATE"]

    def test_unknown_option_rejected(self):
        """Test unknown option names raise ValueError."""
        with pytest.raises(ValueError, match="Unknown request options"):
            ProviderRequestOptions().merged({"temprature": 0.1})

    def test_defaults_untouched(self):
        """Test merging returns a copy."""
        defaults = ProviderRequestOptions()
        defaults.merged({"temperature": 0.1, "tags": ["X"]})

        assert defaults.temperature == 0.7
        assert defaults.tags == []


class TestLogLevel:
    """Tests for LogLevel.parse()."""

    @pytest.mark.parametrize("value,expected", [
        ("debug", LogLevel.DEBUG),
        ("INFO", LogLevel.INFO),
        ("warning", LogLevel.WARN),
        (3, LogLevel.ERROR),
        (LogLevel.WARN, LogLevel.WARN),
    ])
    def test_parse(self, value, expected):
        assert LogLevel.parse(value) == expected

    def test_unknown(self):
        with pytest.raises(ValueError):
            LogLevel.parse("verbose")

    def test_ordering(self):
        assert LogLevel.DEBUG < LogLevel.INFO < LogLevel.WARN < LogLevel.ERROR


class TestSettings:
    """Tests for Settings.from_env()."""

    @pytest.fixture(autouse=True)
    def no_dotenv(self):
        with patch("lim.core.config._load_dotenv_if_present"):
            yield

    def test_from_env(self):
        """Test credentials and stores are read from the environment."""
        env = {
            "LIM_ENVIRONMENT": "production",
            "GEMINI_API_KEY": "g-key",
            "OPENROUTER_API_KEY": "   ",
            "LIM_REDIS_URL": "redis://localhost:6379/0",
            "LIM_ARCHIVE_DIR": "/var/lib/lim/archive",
            "LIM_REQUEST_TIMEOUT_SECONDS": "30",
            "LIM_LOG_STRUCTURED": "TRUE",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = Settings.from_env()

        assert settings.is_production
        assert settings.credentials == {LLMProvider.GEMINI: "g-key"}
        assert settings.credential_for(LLMProvider.OPENROUTER) is None
        assert settings.redis_url == "redis://localhost:6379/0"
        assert settings.archive_dir == "/var/lib/lim/archive"
        assert settings.request_timeout_seconds == 30
        assert settings.log_structured is True

    def test_node_env_fallback(self):
        """Test NODE_ENV is honoured when LIM_ENVIRONMENT is unset."""
        with patch.dict(os.environ, {"NODE_ENV": "Production"}, clear=True):
            assert Settings.from_env().is_production

    def test_defaults(self):
        """Test an empty environment gives development settings."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings.from_env()

        assert settings.environment == "development"
        assert not settings.is_production
        assert settings.credentials == {}
        assert settings.output_dir == "data/recommendations"
        assert settings.redis_url is None


class TestStructuredRecord:
    """Tests for normalizing generated items."""

    def test_clamps_out_of_range(self):
        """Test numbers are clamped into range."""
        record = StructuredRecord.from_generated(
            {"name": "Verve", "priceRange": 9, "popularity": "0", "checkIns": -4},
            UNIT, 1, RecordSource.LIVE,
        )

        assert record.price_range == 4
        assert record.popularity == 1
        assert record.check_ins == 0

    def test_malformed_optional_fields_dropped(self):
        """Test malformed optional fields fall back to defaults."""
        record = StructuredRecord.from_generated(
            {"name": " Verve ", "coordinates": [1], "tags": "Coffee, Cozy", "priceRange": "cheap"},
            UNIT, 2, RecordSource.LIVE, default_type="cafe",
        )

        assert record.name == "Verve"
        assert record.coordinates is None
        assert record.tags == ["Coffee", "Cozy"]
        assert record.price_range == 2
        assert record.type == "cafe"
        assert record.id == "coffee-la-2"

    def test_missing_name(self):
        """Test an item without a name is rejected."""
        with pytest.raises(ValueError):
            StructuredRecord.from_generated({"description": "no name"}, UNIT, 1, RecordSource.LIVE)

    def test_dict_round_trip(self):
        """Test batch-file serialization keeps every field."""
        record = StructuredRecord.from_generated(
            {"name": "Verve", "coordinates": [-118.25, 34.04], "website": "https://verve.example"},
            UNIT, 1, RecordSource.FALLBACK,
            timestamp=datetime(2024, 6, 1, 12, tzinfo=timezone.utc),
        )

        assert StructuredRecord.from_dict(record.to_dict()) == record


class TestUtils:
    """Tests for small helpers."""

    def test_stable_seed(self):
        assert stable_seed("la", "coffee", 5) == stable_seed("la", "coffee", 5)
        assert stable_seed("la", "coffee", 5) != stable_seed("la", "coffee", 4)

    def test_truncate(self):
        assert truncate("abcdef", 3) == "abc..."
        assert truncate("abc", 3) == "abc"
        assert truncate(None) is None
        assert truncate({"a": 1}) == '{"a": 1}'

    def test_slugify(self):
        assert slugify("  Los Angeles ") == "los-angeles"
        assert slugify("Food & Drink") == "food-drink"


class TestFormatters:
    """Tests for the console formatters."""

    def _record(self, **extra):
        record = logging.LogRecord("lim.telemetry", logging.WARNING, __file__, 1, "Slow call", None, None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_human_readable_telemetry_line(self):
        """Test telemetry records render as bracketed fields."""
        formatter = HumanReadableFormatter(include_timestamp=False)

        line = formatter.format(self._record(category="LLM", tags=["gemini", "SLOW"]))

        assert line == "[WARN] [LLM] [gemini] [SLOW] Slow call"

    def test_human_readable_plain_line(self):
        """Test records without a category use the standard layout."""
        formatter = HumanReadableFormatter(include_timestamp=False)

        assert formatter.format(self._record()) == "lim.telemetry - WARNING - Slow call"

    def test_structured_line(self):
        """Test structured lines carry correlation fields."""
        formatter = StructuredFormatter(include_timestamp=False)

        payload = json.loads(formatter.format(self._record(session_id="s1", category="API")))

        assert payload == {
            "level": "WARNING",
            "logger": "lim.telemetry",
            "message": "Slow call",
            "session_id": "s1",
            "category": "API",
        }
