"""
Core data types for the LIM orchestration package.

Enumerations shared by the template catalog, provider gateway and telemetry
sink, plus the request-options and log-entry records that flow between them.
"""

from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import Any, Dict, List, Mapping, Optional, Union


class LLMProvider(str, Enum):
    """Supported text-generation backends."""
    OPENAI = "openai"
    GEMINI = "gemini"
    ANTHROPIC = "anthropic"
    OPENROUTER = "openrouter"


class OutputFormat(str, Enum):
    """Declared output format of a prompt template."""
    JSON = "json"
    MARKDOWN = "markdown"
    CSV = "csv"
    XML = "xml"
    YAML = "yaml"


class TemplateType(str, Enum):
    """Semantic type of a prompt template. Templates are looked up by type."""
    INTEREST_GENERATION = "interest_generation"
    RECOMMENDATION_GENERATION = "recommendation_generation"
    INTEREST_EXPANSION = "interest_expansion"
    LOCATION_ANALYSIS = "location_analysis"
    TREND_DETECTION = "trend_detection"
    PERSONALIZATION = "personalization"
    CONTENT_ENHANCEMENT = "content_enhancement"
    SEASONAL_ADJUSTMENT = "seasonal_adjustment"
    SPOT_RESEARCH = "spot_research"
    SPOT_STRUCTURING = "spot_structuring"


class LogLevel(IntEnum):
    """Telemetry levels, ordered by severity."""
    DEBUG = 0
    INFO = 1
    WARN = 2
    ERROR = 3

    @classmethod
    def parse(cls, value: Union[str, int, "LogLevel"]) -> "LogLevel":
        """Parse a level from its name (case-insensitive) or number."""
        if isinstance(value, LogLevel):
            return value
        if isinstance(value, int):
            return cls(value)
        name = value.strip().upper()
        if name == "WARNING":
            name = "WARN"
        try:
            return cls[name]
        except KeyError:
            raise ValueError(f"Unknown log level: {value}")


class LogCategory(str, Enum):
    """Telemetry categories."""
    SYSTEM = "SYSTEM"
    API = "API"
    LLM = "LLM"
    CACHE = "CACHE"
    USER = "USER"
    PIPELINE = "PIPELINE"
    RECOMMENDATION = "RECOMMENDATION"
    INTEREST = "INTEREST"


# Keyed-store expiry per level, in days
LOG_RETENTION_DAYS: Dict[LogLevel, int] = {
    LogLevel.DEBUG: 3,
    LogLevel.INFO: 7,
    LogLevel.WARN: 30,
    LogLevel.ERROR: 90,
}

DEFAULT_MODELS: Dict[LLMProvider, str] = {
    LLMProvider.OPENAI: "gpt-4o",
    LLMProvider.GEMINI: "gemini-2-flash",
    LLMProvider.ANTHROPIC: "claude-3-sonnet",
    LLMProvider.OPENROUTER: "perplexity/sonar-small-online",
}

AVAILABLE_MODELS: Dict[LLMProvider, List[str]] = {
    LLMProvider.OPENAI: ["gpt-4o", "gpt-4-turbo", "gpt-3.5-turbo"],
    LLMProvider.GEMINI: ["gemini-2-flash", "gemini-1.5-pro", "gemini-1.5-flash"],
    LLMProvider.ANTHROPIC: ["claude-3-opus", "claude-3-sonnet", "claude-3-haiku"],
    LLMProvider.OPENROUTER: [
        "perplexity/sonar-small-online",
        "perplexity/sonar-medium-online",
        "anthropic/claude-3-opus",
        "google/gemini-1.5-pro",
    ],
}

# Preferred providers, tried in order before falling back to enum order
PROVIDER_PRIORITY: List[LLMProvider] = [LLMProvider.GEMINI, LLMProvider.ANTHROPIC]


@dataclass
class ProviderRequestOptions:
    """
    Options for a single provider dispatch.

    Attributes:
        provider: Explicit provider (resolved by priority when None)
        model: Model name (provider default when None)
        temperature: Sampling temperature
        max_tokens: Maximum tokens in the completion
        top_p: Nucleus sampling mass
        frequency_penalty: Frequency penalty (OpenAI-style providers)
        presence_penalty: Presence penalty (OpenAI-style providers)
        tags: Correlation tags carried into telemetry
        user_id: Optional user the call is made on behalf of
    """
    provider: Optional[LLMProvider] = None
    model: Optional[str] = None
    temperature: float = 0.7
    max_tokens: int = 2000
    top_p: float = 1.0
    frequency_penalty: float = 0.0
    presence_penalty: float = 0.0
    tags: List[str] = field(default_factory=list)
    user_id: Optional[str] = None

    def merged(
        self,
        overrides: Optional[Union["ProviderRequestOptions", Mapping[str, Any]]] = None,
        extra_tags: Optional[List[str]] = None,
    ) -> "ProviderRequestOptions":
        """
        Return a copy with caller-supplied values laid over these defaults.

        Only keys present (and not None) in ``overrides`` replace defaults.
        Tags are concatenated: override tags first, then ``extra_tags``.
        """
        if isinstance(overrides, ProviderRequestOptions):
            overrides = {f.name: getattr(overrides, f.name) for f in fields(overrides)}
        overrides = dict(overrides or {})

        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise ValueError(f"Unknown request options: {sorted(unknown)}")

        tags = list(overrides.pop("tags", None) or self.tags)
        updates = {k: v for k, v in overrides.items() if v is not None}
        if "provider" in updates and not isinstance(updates["provider"], LLMProvider):
            updates["provider"] = LLMProvider(updates["provider"])

        return replace(self, tags=tags + list(extra_tags or []), **updates)


@dataclass
class LogEntry:
    """
    A single telemetry record.

    Attributes:
        id: Generated entry identifier
        timestamp: When the entry was created (UTC)
        level: Severity
        category: Category the entry belongs to
        message: Human-readable message
        tags: Free-form tags
        data: Optional structured payload
        user_id: Optional user correlation id
        session_id: Sink session id (always present)
        request_id: Optional inbound request id
        duration: Optional duration in milliseconds
    """
    id: str
    timestamp: datetime
    level: LogLevel
    category: LogCategory
    message: str
    session_id: str
    tags: List[str] = field(default_factory=list)
    data: Optional[Any] = None
    user_id: Optional[str] = None
    request_id: Optional[str] = None
    duration: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for the keyed store and archive."""
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "level": self.level.name,
            "category": self.category.value,
            "message": self.message,
            "tags": list(self.tags),
            "data": self.data,
            "userId": self.user_id,
            "sessionId": self.session_id,
            "requestId": self.request_id,
            "duration": self.duration,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LogEntry":
        """Deserialize an entry written by ``to_dict``."""
        timestamp = datetime.fromisoformat(data["timestamp"])
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        return cls(
            id=data["id"],
            timestamp=timestamp,
            level=LogLevel.parse(data["level"]),
            category=LogCategory(data["category"]),
            message=data["message"],
            session_id=data["sessionId"],
            tags=list(data.get("tags") or []),
            data=data.get("data"),
            user_id=data.get("userId"),
            request_id=data.get("requestId"),
            duration=data.get("duration"),
        )
