"""
One-off request service.

Serves single-combination generation for request handlers outside the
pipeline. Responses are cached in the keyed store under a normalized request
signature for a fixed time; gateway failures are downgraded to deterministic
fallback content, which is never cached.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from ..core.models import Interest, Location, UnitOfWork
from ..core.types import LogCategory, ProviderRequestOptions, TemplateType
from ..core.utils import compute_content_hash
from ..pipeline import fallback
from ..providers.gateway import ProviderGateway
from ..telemetry.kv_store import KeyValueStore
from ..telemetry.sink import TelemetrySink
from ..templates.registry import TemplateRegistry, get_registry


logger = logging.getLogger(__name__)

CACHE_PREFIX = "lim:cache"
DEFAULT_CACHE_TTL_SECONDS = 3600

EXPANSION_FALLBACK = ["coffee shops", "hiking trails", "bookstores", "museums", "local cuisine"]


def _normalize(value: Any) -> Any:
    if isinstance(value, str):
        return " ".join(value.lower().split())
    if isinstance(value, (list, tuple)):
        return [_normalize(v) for v in value]
    if isinstance(value, dict):
        return {k: _normalize(v) for k, v in sorted(value.items())}
    return value


def cache_key(operation: str, **params: Any) -> str:
    """Cache key for a request: case and whitespace do not matter."""
    signature = json.dumps(_normalize(params), sort_keys=True, separators=(",", ":"))
    return f"{CACHE_PREFIX}:{operation}:{compute_content_hash(signature)[:32]}"


class RecommendationService:
    """
    Request-serving surface over the provider gateway.

    Example:
        >>> service = RecommendationService(gateway, telemetry, cache=kv_store)
        >>> service.recommend("coffee", "Los Angeles", count=3)
        {'recommendations': [...], 'source': 'live', 'cached': False}
    """

    def __init__(
        self,
        gateway: ProviderGateway,
        telemetry: TelemetrySink,
        cache: Optional[KeyValueStore] = None,
        ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS,
        options: Optional[ProviderRequestOptions] = None,
        registry: Optional[TemplateRegistry] = None,
    ):
        self.gateway = gateway
        self.telemetry = telemetry
        self.cache = cache
        self.ttl_seconds = ttl_seconds
        self.options = options or ProviderRequestOptions()
        self.registry = registry or get_registry()

    def recommend(self, interest: str, location: str, count: int = 5,
                  user_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Recommend places for one interest in one location.

        Returns:
            {"recommendations": [...], "source": "live" | "fallback", "cached": bool}
        """
        key = cache_key("recommend", interest=interest, location=location, count=count)
        cached = self._cache_get(key)
        if cached is not None:
            return {"recommendations": cached, "source": "live", "cached": True}

        template = self.registry.get(TemplateType.RECOMMENDATION_GENERATION)
        try:
            result = self.gateway.process_template(
                template,
                {"count": count, "location": location, "interests": interest},
                self.options.merged({"user_id": user_id, "tags": ["REQUEST"]}),
            )
            items = result.content
            if isinstance(items, dict):
                items = items.get("recommendations")
            if not isinstance(items, list):
                items = []
            recommendations = [i for i in items if isinstance(i, dict)][:count]
        except Exception as e:
            self._log_fallback("recommend", e, user_id)
            unit = UnitOfWork(Location.from_value(location), Interest.from_value(interest))
            return {
                "recommendations": fallback.structured_items(unit, count),
                "source": "fallback",
                "cached": False,
            }

        self._cache_set(key, recommendations)
        return {"recommendations": recommendations, "source": "live", "cached": False}

    def expand_interests(self, interests: Sequence[str], location: Optional[str] = None,
                         count: int = 5, user_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Suggest related interests.

        Returns:
            {"interests": [...], "source": "live" | "fallback", "cached": bool}
        """
        interests = [i.strip() for i in interests if i and i.strip()]
        key = cache_key("expand", interests=interests, location=location or "", count=count)
        cached = self._cache_get(key)
        if cached is not None:
            return {"interests": cached, "source": "live", "cached": True}

        template = self.registry.get(TemplateType.INTEREST_EXPANSION)
        try:
            result = self.gateway.process_template(
                template,
                {"interest": ", ".join(interests), "count": count},
                self.options.merged({"user_id": user_id, "tags": ["REQUEST"]}),
            )
            expanded = _interest_names(result.content)[:count]
        except Exception as e:
            self._log_fallback("expand_interests", e, user_id)
            return {
                "interests": (list(interests) + EXPANSION_FALLBACK)[:count],
                "source": "fallback",
                "cached": False,
            }

        self._cache_set(key, expanded)
        return {"interests": expanded, "source": "live", "cached": False}

    def _cache_get(self, key: str) -> Optional[Any]:
        if self.cache is None:
            return None
        try:
            raw = self.cache.get(key)
        except Exception as e:
            logger.warning(f"Cache read failed for {key}: {e}")
            return None
        if raw is None:
            return None
        self.telemetry.debug(LogCategory.CACHE, f"Cache hit: {key}", {"key": key}, ["HIT"])
        return json.loads(raw)

    def _cache_set(self, key: str, value: Any) -> None:
        if self.cache is None:
            return
        try:
            self.cache.set(key, json.dumps(value, default=str), ttl_seconds=self.ttl_seconds)
        except Exception as e:
            logger.warning(f"Cache write failed for {key}: {e}")

    def _log_fallback(self, operation: str, error: Exception, user_id: Optional[str]) -> None:
        self.telemetry.warn(
            LogCategory.RECOMMENDATION,
            f"Serving fallback content for {operation}: {error}",
            {"operation": operation, "errorType": type(error).__name__, "error": str(error)},
            ["FALLBACK"],
            user_id,
        )


def _interest_names(content: Any) -> List[str]:
    """Accept an array of objects, an array of strings, or comma-separated text."""
    if isinstance(content, str):
        return [part.strip() for part in content.split(",") if part.strip()]
    if not isinstance(content, list):
        return []
    names = []
    for item in content:
        if isinstance(item, dict) and item.get("name"):
            names.append(str(item["name"]))
        elif isinstance(item, str) and item.strip():
            names.append(item.strip())
    return names
