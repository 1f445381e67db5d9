"""
Keyed stores for telemetry entries and the response cache.

Values are strings addressed by key with an optional expiry. Index lists are
capped at a maximum length, newest first.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Tuple

import redis


logger = logging.getLogger(__name__)


Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class KeyValueStore(ABC):
    """Abstract base class for keyed stores."""

    @abstractmethod
    def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        """Store a value, expiring after ``ttl_seconds`` when given."""
        pass

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the value for a key, or None if absent or expired."""
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass

    @abstractmethod
    def list_push(self, key: str, value: str, max_length: int) -> None:
        """Prepend a value to a list and trim it to ``max_length`` items."""
        pass

    @abstractmethod
    def list_range(self, key: str, start: int = 0, end: int = -1) -> List[str]:
        """Return list items between ``start`` and ``end`` inclusive."""
        pass


class InMemoryKeyValueStore(KeyValueStore):
    """
    Process-local keyed store.

    Expiry is evaluated lazily against an injectable clock, so tests can
    move time forward without sleeping.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock or utc_now
        self._values: Dict[str, Tuple[str, Optional[datetime]]] = {}
        self._lists: Dict[str, List[str]] = {}

    def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        expires_at = None
        if ttl_seconds is not None:
            expires_at = self.clock() + timedelta(seconds=ttl_seconds)
        self._values[key] = (value, expires_at)

    def get(self, key: str) -> Optional[str]:
        item = self._values.get(key)
        if item is None:
            return None
        value, expires_at = item
        if expires_at is not None and self.clock() >= expires_at:
            del self._values[key]
            return None
        return value

    def delete(self, key: str) -> None:
        self._values.pop(key, None)
        self._lists.pop(key, None)

    def list_push(self, key: str, value: str, max_length: int) -> None:
        items = self._lists.setdefault(key, [])
        items.insert(0, value)
        del items[max_length:]

    def list_range(self, key: str, start: int = 0, end: int = -1) -> List[str]:
        items = self._lists.get(key, [])
        stop = None if end == -1 else end + 1
        return list(items[start:stop])


class RedisKeyValueStore(KeyValueStore):
    """
    Redis-backed keyed store.

    Example:
        >>> store = RedisKeyValueStore.from_url("redis://localhost:6379/0")
        >>> store.set("lim:logs:abc", "{}", ttl_seconds=3600)
    """

    def __init__(self, client: "redis.Redis"):
        self.client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisKeyValueStore":
        client = redis.Redis.from_url(url, decode_responses=True)
        logger.debug(f"RedisKeyValueStore connected to {url.split('@')[-1]}")
        return cls(client)

    def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        self.client.set(key, value, ex=ttl_seconds)

    def get(self, key: str) -> Optional[str]:
        return self.client.get(key)

    def delete(self, key: str) -> None:
        self.client.delete(key)

    def list_push(self, key: str, value: str, max_length: int) -> None:
        pipe = self.client.pipeline()
        pipe.lpush(key, value)
        pipe.ltrim(key, 0, max_length - 1)
        pipe.execute()

    def list_range(self, key: str, start: int = 0, end: int = -1) -> List[str]:
        return list(self.client.lrange(key, start, end))
