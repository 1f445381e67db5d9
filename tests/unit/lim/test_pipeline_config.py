"""
Unit tests for pipeline configuration loading.
"""

import pytest

from lim.core.exceptions import ConfigError
from lim.core.models import Interest, Location
from lim.core.types import LLMProvider
from lim.pipeline import DEFAULT_INTERESTS, DEFAULT_LOCATIONS, PipelineConfig
from lim.storage import PersistenceMode


class TestDefaults:
    """Tests for the default configuration."""

    def test_default_axes(self):
        """Test the default grid is five cities by eight interests."""
        config = PipelineConfig()

        assert [l.id for l in config.locations] == ["la", "sf", "nyc", "chi", "mia"]
        assert [i.id for i in config.interests] == [
            "coffee", "hiking", "art", "food", "music", "books", "shopping", "nature",
        ]
        assert config.total_combinations == 40

    def test_default_stage_options(self):
        """Test research and structuring default to their providers."""
        config = PipelineConfig()

        assert config.research_options.provider == LLMProvider.OPENROUTER
        assert config.research_options.model == "perplexity/sonar-small-online"
        assert config.research_options.temperature == 0.3
        assert config.structuring_options.provider == LLMProvider.GEMINI
        assert config.structuring_options.max_tokens == 2000

    def test_default_policies(self):
        """Test upsert, no production fallback and no freshness skipping."""
        config = PipelineConfig()

        assert config.persistence_mode == PersistenceMode.UPSERT
        assert config.fallback_in_production is False
        assert config.skip_if_fresher_than_hours is None
        assert config.records_per_combination == 5

    def test_defaults_not_shared(self):
        """Test each config gets its own axis lists."""
        config = PipelineConfig()
        config.locations.append(Location("sea", "Seattle"))

        assert len(DEFAULT_LOCATIONS) == 5
        assert len(PipelineConfig().locations) == 5


class TestValidation:
    """Tests for validate()."""

    @pytest.mark.parametrize("kwargs", [
        {"locations": []},
        {"interests": []},
        {"records_per_combination": 0},
        {"trending_top_n": 0},
        {"skip_if_fresher_than_hours": -1},
        {"interests": [Interest("coffee", "Coffee"), Interest("coffee", "Cafe")]},
    ])
    def test_invalid(self, kwargs):
        """Test inconsistent configurations raise ConfigError."""
        with pytest.raises(ConfigError):
            PipelineConfig(**kwargs)

    def test_mode_coerced(self):
        """Test the persistence mode accepts its string value."""
        assert PipelineConfig(persistence_mode="replace").persistence_mode == PersistenceMode.REPLACE


class TestSelect:
    """Tests for select()."""

    def test_select_by_id_and_name(self):
        """Test axis values match by id or display name."""
        config = PipelineConfig().select(["LA", "new york"], ["coffee", "Books"])

        assert [l.id for l in config.locations] == ["la", "nyc"]
        assert [i.id for i in config.interests] == ["coffee", "books"]
        assert config.locations[0].coordinates == (-118.2437, 34.0522)

    def test_unknown_value_added(self):
        """Test an unmatched value becomes a new axis value."""
        config = PipelineConfig().select(["Portland"], None)

        assert config.locations == [Location("portland", "Portland")]
        assert config.interests == DEFAULT_INTERESTS

    def test_no_selection_keeps_axes(self):
        """Test empty selections keep the configured axes."""
        assert PipelineConfig().select(None, []).total_combinations == 40


class TestFromYaml:
    """Tests for YAML loading."""

    def test_full_file(self, tmp_path):
        """Test every section of the file is applied."""
        path = tmp_path / "pipeline.yaml"
        path.write_text(
            "locations:\n"
            "  - {id: la, name: Los Angeles, coordinates: [-118.2437, 34.0522]}\n"
            "  - Seattle\n"
            "interests:\n"
            "  - {id: coffee, name: Coffee, emoji: \"☕\"}\n"
            "records_per_combination: 3\n"
            "persistence_mode: REPLACE\n"
            "fallback_in_production: true\n"
            "skip_if_fresher_than_hours: 12\n"
            "llm:\n"
            "  research: {provider: anthropic, model: claude-3-haiku}\n"
            "  structuring: {temperature: 0.2}\n"
            "trending:\n"
            "  enabled: false\n"
            "  top_n: 2\n",
            encoding="utf-8",
        )

        config = PipelineConfig.from_yaml(path)

        assert config.locations == [
            Location("la", "Los Angeles", (-118.2437, 34.0522)),
            Location("seattle", "Seattle"),
        ]
        assert config.interests == [Interest("coffee", "Coffee", "☕")]
        assert config.records_per_combination == 3
        assert config.persistence_mode == PersistenceMode.REPLACE
        assert config.fallback_in_production is True
        assert config.skip_if_fresher_than_hours == 12.0
        assert config.research_options.provider == LLMProvider.ANTHROPIC
        assert config.research_options.model == "claude-3-haiku"
        assert config.structuring_options.provider == LLMProvider.GEMINI
        assert config.structuring_options.temperature == 0.2
        assert config.trending_enabled is False
        assert config.trending_top_n == 2

    def test_empty_file_uses_defaults(self, tmp_path):
        """Test an empty file yields the default configuration."""
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")

        assert PipelineConfig.from_yaml(path).total_combinations == 40

    def test_missing_file(self, tmp_path):
        """Test a missing file raises ConfigError."""
        with pytest.raises(ConfigError, match="not found"):
            PipelineConfig.from_yaml(tmp_path / "missing.yaml")

    def test_unparsable_file(self, tmp_path):
        """Test malformed YAML raises ConfigError."""
        path = tmp_path / "bad.yaml"
        path.write_text("locations: [la, sf\n", encoding="utf-8")

        with pytest.raises(ConfigError):
            PipelineConfig.from_yaml(path)

    @pytest.mark.parametrize("body", [
        "- just\n- a list\n",
        "persistence_mode: sideways\n",
        "llm:\n  research: {colour: blue}\n",
        "records_per_combination: lots\n",
    ])
    def test_invalid_values(self, tmp_path, body):
        """Test invalid values raise ConfigError."""
        path = tmp_path / "invalid.yaml"
        path.write_text(body, encoding="utf-8")

        with pytest.raises(ConfigError):
            PipelineConfig.from_yaml(path)
