"""
Telemetry Sink - Structured logging with tiered retention.

One sink is constructed at process start and passed to every component that
records events. Each entry is:
1. Written to the console stream (the ``lim.telemetry`` logger)
2. Stored in the keyed store, when configured, with an expiry chosen by
   level (debug 3 days, info 7, warn 30, error 90) and indexed in two capped
   lists: per category+level (1000) and per user (100)
3. Archived to long-term storage, when configured, if it is error-level

Persistence failures are reported on the module logger and never raised to
the caller.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from ..core.config import Settings
from ..core.types import LOG_RETENTION_DAYS, LogCategory, LogEntry, LogLevel
from ..core.utils import generate_id
from .archive import ArchiveStore, FileArchiveStore, S3ArchiveStore
from .kv_store import Clock, KeyValueStore, RedisKeyValueStore, utc_now


logger = logging.getLogger(__name__)

CONSOLE_LOGGER_NAME = "lim.telemetry"
KEY_PREFIX = "lim:logs"
CATEGORY_INDEX_LIMIT = 1000
USER_INDEX_LIMIT = 100
SECONDS_PER_DAY = 86400

_PYTHON_LEVELS = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


def entry_key(entry_id: str) -> str:
    return f"{KEY_PREFIX}:{entry_id}"


def category_index_key(category: LogCategory, level: LogLevel) -> str:
    return f"{KEY_PREFIX}:{category.value.lower()}:{level.name.lower()}"


def user_index_key(user_id: str) -> str:
    return f"{KEY_PREFIX}:user:{user_id}"


class TelemetrySink:
    """
    Structured telemetry surface.

    Attributes:
        session_id: Correlation id shared by every entry this sink writes
        request_id: Optional id of the inbound request being served
        min_level: Entries below this level are dropped

    Example:
        >>> sink = TelemetrySink(environment="development")
        >>> done = sink.start_timer(LogCategory.PIPELINE, "refresh")
        >>> sink.info(LogCategory.PIPELINE, "Processing LA x coffee")
        >>> done()
    """

    def __init__(
        self,
        environment: str = "development",
        min_level: Optional[LogLevel] = None,
        kv_store: Optional[KeyValueStore] = None,
        archive: Optional[ArchiveStore] = None,
        clock: Optional[Clock] = None,
        console_logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the sink.

        Args:
            environment: Runtime environment; "production" raises the default
                minimum level from debug to info
            min_level: Explicit minimum level (overrides the environment default)
            kv_store: Durable keyed store (entries are console-only when None)
            archive: Long-term archive for error-level entries
            clock: Returns the current UTC time; injectable for tests
            console_logger: Logger for console lines (default: lim.telemetry)
        """
        self.environment = environment
        if min_level is None:
            min_level = LogLevel.INFO if environment.strip().lower() == "production" else LogLevel.DEBUG
        self.min_level = LogLevel.parse(min_level)
        self.kv_store = kv_store
        self.archive = archive
        self.clock = clock or utc_now
        self.console = console_logger or logging.getLogger(CONSOLE_LOGGER_NAME)

        self.session_id = generate_id()
        self.request_id: Optional[str] = None

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "TelemetrySink":
        """Create a sink wired to the stores named in settings."""
        kv_store = None
        if settings.redis_url:
            kv_store = RedisKeyValueStore.from_url(settings.redis_url)

        archive = None
        if settings.archive_bucket:
            archive = S3ArchiveStore(settings.archive_bucket, prefix=settings.archive_prefix)
        elif settings.archive_dir:
            archive = FileArchiveStore(settings.archive_dir, prefix=settings.archive_prefix)

        return cls(
            environment=settings.environment,
            kv_store=kv_store,
            archive=archive,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Correlation
    # ------------------------------------------------------------------

    def set_request_id(self, request_id: Optional[str]) -> None:
        self.request_id = request_id

    def create_request_id(self) -> str:
        """Generate, set and return a new request id."""
        self.request_id = generate_id()
        return self.request_id

    def clear_request_id(self) -> None:
        self.request_id = None

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------

    def log(
        self,
        level: LogLevel,
        category: LogCategory,
        message: str,
        data: Optional[Any] = None,
        tags: Optional[List[str]] = None,
        user_id: Optional[str] = None,
        duration: Optional[float] = None,
    ) -> Optional[LogEntry]:
        """
        Record one entry.

        Returns:
            The entry written, or None if it was below the minimum level
        """
        level = LogLevel.parse(level)
        if level < self.min_level:
            return None

        entry = LogEntry(
            id=generate_id(),
            timestamp=self.clock(),
            level=level,
            category=LogCategory(category),
            message=message,
            session_id=self.session_id,
            tags=list(tags or []),
            data=data,
            user_id=user_id,
            request_id=self.request_id,
            duration=duration,
        )

        self._write_console(entry)

        if self.kv_store is not None:
            self._persist(entry)

        if level == LogLevel.ERROR and self.archive is not None:
            self._archive(entry)

        return entry

    def debug(self, category: LogCategory, message: str, data: Optional[Any] = None,
              tags: Optional[List[str]] = None, user_id: Optional[str] = None) -> Optional[LogEntry]:
        return self.log(LogLevel.DEBUG, category, message, data, tags, user_id)

    def info(self, category: LogCategory, message: str, data: Optional[Any] = None,
             tags: Optional[List[str]] = None, user_id: Optional[str] = None) -> Optional[LogEntry]:
        return self.log(LogLevel.INFO, category, message, data, tags, user_id)

    def warn(self, category: LogCategory, message: str, data: Optional[Any] = None,
             tags: Optional[List[str]] = None, user_id: Optional[str] = None) -> Optional[LogEntry]:
        return self.log(LogLevel.WARN, category, message, data, tags, user_id)

    def error(self, category: LogCategory, message: str, data: Optional[Any] = None,
              tags: Optional[List[str]] = None, user_id: Optional[str] = None) -> Optional[LogEntry]:
        return self.log(LogLevel.ERROR, category, message, data, tags, user_id)

    def start_timer(
        self,
        category: LogCategory,
        operation: str,
        tags: Optional[List[str]] = None,
        user_id: Optional[str] = None,
    ) -> Callable[..., float]:
        """
        Log a debug start event and return a completion callback.

        The callback logs an info "Completed" event with the elapsed time
        and returns the elapsed milliseconds. Only the first call logs;
        later calls return the same duration.
        """
        tags = list(tags or [])
        started_at = self.clock()
        self.debug(category, f"Starting: {operation}", {"operation": operation},
                   tags + ["START"], user_id)

        state: Dict[str, float] = {}

        def complete(data: Optional[Dict[str, Any]] = None) -> float:
            if "duration" in state:
                return state["duration"]
            duration = (self.clock() - started_at).total_seconds() * 1000.0
            state["duration"] = duration
            payload = {"operation": operation}
            payload.update(data or {})
            self.log(
                LogLevel.INFO,
                category,
                f"Completed: {operation} ({round(duration)}ms)",
                payload,
                tags + ["END", "SUCCESS" if payload.get("success", True) else "FAILED"],
                user_id,
                duration,
            )
            return duration

        return complete

    def log_llm_interaction(
        self,
        category: LogCategory,
        operation: str,
        provider: str,
        model: str,
        prompt: Any,
        response: Any,
        duration: float,
        success: bool,
        tags: Optional[List[str]] = None,
        user_id: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> Optional[LogEntry]:
        """Record one provider call (info on success, error on failure)."""
        status = "SUCCESS" if success else "FAILED"
        data = {
            "provider": provider,
            "model": model,
            "prompt": prompt,
            "response": response,
            "duration": duration,
            "success": success,
        }
        data.update(extra or {})
        return self.log(
            LogLevel.INFO if success else LogLevel.ERROR,
            category,
            f"{status}: {operation} with {provider}/{model} ({round(duration)}ms)",
            data,
            list(tags or []) + ["LLM_INTERACTION", provider, model, status],
            user_id,
            duration,
        )

    def log_api_interaction(
        self,
        category: LogCategory,
        endpoint: str,
        method: str,
        request: Any,
        response: Any,
        status_code: int,
        duration: float,
        tags: Optional[List[str]] = None,
        user_id: Optional[str] = None,
    ) -> Optional[LogEntry]:
        """Record one inbound or outbound API call (2xx is success)."""
        success = 200 <= status_code < 300
        status = "SUCCESS" if success else "FAILED"
        method = method.upper()
        data = {
            "endpoint": endpoint,
            "method": method,
            "request": request,
            "response": response,
            "statusCode": status_code,
            "duration": duration,
            "success": success,
        }
        return self.log(
            LogLevel.INFO if success else LogLevel.ERROR,
            category,
            f"{status}: {method} {endpoint} ({status_code}) ({round(duration)}ms)",
            data,
            list(tags or []) + ["API_INTERACTION", method, f"STATUS_{status_code}", status],
            user_id,
            duration,
        )

    # ------------------------------------------------------------------
    # Retrieval
    # ------------------------------------------------------------------

    def get_logs(self, category: LogCategory, level: LogLevel, limit: int = 100) -> List[LogEntry]:
        """Return the newest retrievable entries for a category and level."""
        if self.kv_store is None:
            return []
        key = category_index_key(LogCategory(category), LogLevel.parse(level))
        return self._load_entries(key, limit)

    def get_user_logs(self, user_id: str, limit: int = 100) -> List[LogEntry]:
        """Return the newest retrievable entries recorded for a user."""
        if self.kv_store is None:
            return []
        return self._load_entries(user_index_key(user_id), limit)

    def get_entry(self, entry_id: str) -> Optional[LogEntry]:
        """Return a single entry, or None if it expired or was never stored."""
        if self.kv_store is None:
            return None
        raw = self.kv_store.get(entry_key(entry_id))
        if raw is None:
            return None
        return LogEntry.from_dict(json.loads(raw))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _write_console(self, entry: LogEntry) -> None:
        self.console.log(
            _PYTHON_LEVELS[entry.level],
            entry.message,
            extra={
                "entry_id": entry.id,
                "category": entry.category.value,
                "tags": entry.tags,
                "session_id": entry.session_id,
                "request_id": entry.request_id,
                "user_id": entry.user_id,
                "duration": entry.duration,
                "data": entry.data,
            },
        )

    def _persist(self, entry: LogEntry) -> None:
        try:
            ttl_seconds = LOG_RETENTION_DAYS[entry.level] * SECONDS_PER_DAY
            self.kv_store.set(
                entry_key(entry.id),
                json.dumps(entry.to_dict(), default=str),
                ttl_seconds=ttl_seconds,
            )
            self.kv_store.list_push(
                category_index_key(entry.category, entry.level), entry.id, CATEGORY_INDEX_LIMIT
            )
            if entry.user_id:
                self.kv_store.list_push(user_index_key(entry.user_id), entry.id, USER_INDEX_LIMIT)
        except Exception as e:
            logger.error(f"Failed to persist log entry {entry.id}: {e}")

    def _archive(self, entry: LogEntry) -> None:
        try:
            day = entry.timestamp.astimezone(timezone.utc).date()
            self.archive.put(entry.category.value, day, entry.id, entry.to_dict())
        except Exception as e:
            logger.error(f"Failed to archive log entry {entry.id}: {e}")

    def _load_entries(self, index_key: str, limit: int) -> List[LogEntry]:
        entries = []
        for entry_id in self.kv_store.list_range(index_key, 0, limit - 1):
            raw = self.kv_store.get(entry_key(entry_id))
            if raw is None:
                continue
            try:
                entries.append(LogEntry.from_dict(json.loads(raw)))
            except (ValueError, KeyError) as e:
                logger.warning(f"Skipping undecodable log entry {entry_id}: {e}")
        return entries
