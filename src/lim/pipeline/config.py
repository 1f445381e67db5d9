"""
Pipeline configuration.

Defaults reproduce the tracked cities and interests. A YAML file can
override any of them:

    locations:
      - {id: la, name: Los Angeles, coordinates: [-118.2437, 34.0522]}
    interests:
      - {id: coffee, name: Coffee, emoji: "☕"}
    records_per_combination: 5
    persistence_mode: upsert        # or replace
    fallback_in_production: false
    skip_if_fresher_than_hours: 12
    llm:
      research: {provider: openrouter, model: perplexity/sonar-small-online}
      structuring: {provider: gemini, temperature: 0.7}
    trending:
      enabled: true
      top_n: 4
"""

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

try:
    import yaml
except ImportError:
    yaml = None

from ..core.exceptions import ConfigError
from ..core.models import Interest, Location
from ..core.types import LLMProvider, ProviderRequestOptions
from ..storage.record_store import PersistenceMode


logger = logging.getLogger(__name__)


DEFAULT_LOCATIONS: List[Location] = [
    Location("la", "Los Angeles", (-118.2437, 34.0522)),
    Location("sf", "San Francisco", (-122.4194, 37.7749)),
    Location("nyc", "New York", (-74.0060, 40.7128)),
    Location("chi", "Chicago", (-87.6298, 41.8781)),
    Location("mia", "Miami", (-80.1918, 25.7617)),
]

DEFAULT_INTERESTS: List[Interest] = [
    Interest("coffee", "Coffee", "☕"),
    Interest("hiking", "Hiking", "🥾"),
    Interest("art", "Art", "🎨"),
    Interest("food", "Food", "🍜"),
    Interest("music", "Music", "🎵"),
    Interest("books", "Books", "📚"),
    Interest("shopping", "Shopping", "🛍️"),
    Interest("nature", "Nature", "🌳"),
]


def default_research_options() -> ProviderRequestOptions:
    return ProviderRequestOptions(
        provider=LLMProvider.OPENROUTER,
        model="perplexity/sonar-small-online",
        temperature=0.3,
        max_tokens=4000,
    )


def default_structuring_options() -> ProviderRequestOptions:
    return ProviderRequestOptions(
        provider=LLMProvider.GEMINI,
        model="gemini-2-flash",
        temperature=0.7,
        max_tokens=2000,
    )


@dataclass
class PipelineConfig:
    """
    Configuration for one pipeline run.

    Attributes:
        locations: Outer axis, visited in order
        interests: Inner axis, visited in order
        records_per_combination: Size of each structured batch
        research_options: Provider options for the research stage
        structuring_options: Provider options for the structuring stage
        fallback_in_production: Use the deterministic fallback in production
            too, instead of failing the combination
        persistence_mode: upsert (keep stale records) or replace
        skip_if_fresher_than_hours: Skip combinations written more recently
            than this (None disables skipping)
        trending_enabled: Run the trending pass after all combinations
        trending_top_n: Number of trending interests to keep
    """
    locations: List[Location] = field(default_factory=lambda: list(DEFAULT_LOCATIONS))
    interests: List[Interest] = field(default_factory=lambda: list(DEFAULT_INTERESTS))
    records_per_combination: int = 5
    research_options: ProviderRequestOptions = field(default_factory=default_research_options)
    structuring_options: ProviderRequestOptions = field(default_factory=default_structuring_options)
    fallback_in_production: bool = False
    persistence_mode: PersistenceMode = PersistenceMode.UPSERT
    skip_if_fresher_than_hours: Optional[float] = None
    trending_enabled: bool = True
    trending_top_n: int = 4

    def __post_init__(self):
        self.persistence_mode = PersistenceMode(self.persistence_mode)
        self.validate()

    @property
    def total_combinations(self) -> int:
        return len(self.locations) * len(self.interests)

    def validate(self) -> None:
        """
        Check the configuration for consistency.

        Raises:
            ConfigError: If an axis is empty or has duplicate ids, or a count
                is out of range
        """
        if not self.locations:
            raise ConfigError("At least one location is required")
        if not self.interests:
            raise ConfigError("At least one interest is required")
        for axis, values in (("location", self.locations), ("interest", self.interests)):
            ids = [v.id for v in values]
            duplicates = sorted({i for i in ids if ids.count(i) > 1})
            if duplicates:
                raise ConfigError(f"Duplicate {axis} ids: {duplicates}")
        if self.records_per_combination < 1:
            raise ConfigError("records_per_combination must be at least 1")
        if self.trending_top_n < 1:
            raise ConfigError("trending.top_n must be at least 1")
        if self.skip_if_fresher_than_hours is not None and self.skip_if_fresher_than_hours < 0:
            raise ConfigError("skip_if_fresher_than_hours must not be negative")

    def select(
        self,
        location_ids: Optional[Sequence[str]] = None,
        interest_ids: Optional[Sequence[str]] = None,
    ) -> "PipelineConfig":
        """
        Return a copy restricted to the given axis values.

        Values are matched by id or display name (case-insensitive); an
        unmatched value becomes a new axis value named after it.
        """
        locations = self.locations
        if location_ids:
            locations = [_pick(self.locations, v, Location) for v in location_ids]
        interests = self.interests
        if interest_ids:
            interests = [_pick(self.interests, v, Interest) for v in interest_ids]
        return replace(self, locations=locations, interests=interests)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PipelineConfig":
        """Build a configuration from a parsed mapping, defaulting missing keys."""
        if not isinstance(data, dict):
            raise ConfigError("Pipeline config must be a mapping")

        kwargs: Dict[str, Any] = {}
        try:
            if "locations" in data:
                kwargs["locations"] = [Location.from_value(v) for v in data["locations"] or []]
            if "interests" in data:
                kwargs["interests"] = [Interest.from_value(v) for v in data["interests"] or []]
            if "records_per_combination" in data:
                kwargs["records_per_combination"] = int(data["records_per_combination"])
            if "fallback_in_production" in data:
                kwargs["fallback_in_production"] = bool(data["fallback_in_production"])
            if "persistence_mode" in data:
                kwargs["persistence_mode"] = PersistenceMode(str(data["persistence_mode"]).lower())
            if data.get("skip_if_fresher_than_hours") is not None:
                kwargs["skip_if_fresher_than_hours"] = float(data["skip_if_fresher_than_hours"])

            llm = data.get("llm") or {}
            if "research" in llm:
                kwargs["research_options"] = default_research_options().merged(llm["research"])
            if "structuring" in llm:
                kwargs["structuring_options"] = default_structuring_options().merged(llm["structuring"])

            trending = data.get("trending") or {}
            if "enabled" in trending:
                kwargs["trending_enabled"] = bool(trending["enabled"])
            if "top_n" in trending:
                kwargs["trending_top_n"] = int(trending["top_n"])
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigError(f"Invalid pipeline config: {e}")

        return cls(**kwargs)

    @classmethod
    def from_yaml(cls, path) -> "PipelineConfig":
        """
        Load a configuration from a YAML file.

        Raises:
            ConfigError: If the file is missing, unparsable or invalid
        """
        if yaml is None:
            raise ImportError(
                "pyyaml is required for config loading. "
                "Install with: pip install pyyaml"
            )

        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")

        logger.info(f"Loading pipeline config from: {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse {path}: {e}")

        return cls.from_dict(data or {})


def _pick(values, wanted: str, factory):
    key = wanted.strip().lower()
    for value in values:
        if value.id.lower() == key or value.name.lower() == key:
            return value
    return factory.from_value(wanted.strip())
