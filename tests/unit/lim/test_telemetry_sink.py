"""
Unit tests for the telemetry sink, keyed stores and archives.

Tests for:
- Level filtering and session correlation
- Tiered retention (simulated with an injectable clock)
- Capped index lists
- Error-level archival
- Timer and interaction wrappers
"""

import io
import json
import logging
from datetime import date
from unittest.mock import MagicMock

import pytest

from lim.core.types import LogCategory, LogLevel
from lim.telemetry.archive import FileArchiveStore, S3ArchiveStore, archive_key
from lim.telemetry.kv_store import InMemoryKeyValueStore, RedisKeyValueStore
from lim.telemetry.sink import (
    CATEGORY_INDEX_LIMIT,
    USER_INDEX_LIMIT,
    TelemetrySink,
    category_index_key,
    entry_key,
    user_index_key,
)


class TestLevels:
    """Tests for minimum-level filtering."""

    def test_development_keeps_debug(self, telemetry):
        """Test debug entries are kept outside production."""
        entry = telemetry.debug(LogCategory.SYSTEM, "debug message")

        assert entry is not None
        assert telemetry.get_logs(LogCategory.SYSTEM, LogLevel.DEBUG)[0].id == entry.id

    def test_production_drops_debug(self, kv_store, clock):
        """Test production drops entries below info."""
        sink = TelemetrySink(environment="production", kv_store=kv_store, clock=clock)

        assert sink.debug(LogCategory.SYSTEM, "dropped") is None
        assert sink.info(LogCategory.SYSTEM, "kept") is not None
        assert sink.get_logs(LogCategory.SYSTEM, LogLevel.DEBUG) == []

    def test_explicit_min_level(self, kv_store, clock):
        """Test an explicit minimum level overrides the environment default."""
        sink = TelemetrySink(min_level="warn", kv_store=kv_store, clock=clock)

        assert sink.info(LogCategory.API, "dropped") is None
        assert sink.warn(LogCategory.API, "kept") is not None

    def test_console_always_written(self, clock, caplog):
        """Test entries reach the console logger without a keyed store."""
        sink = TelemetrySink(clock=clock)

        with caplog.at_level(logging.DEBUG, logger="lim.telemetry"):
            sink.info(LogCategory.PIPELINE, "Processing: Coffee in Los Angeles", tags=["PROCESSING"])

        record = caplog.records[-1]
        assert record.getMessage() == "Processing: Coffee in Los Angeles"
        assert record.category == "PIPELINE"
        assert record.tags == ["PROCESSING"]
        assert record.session_id == sink.session_id


class TestCorrelation:
    """Tests for session and request correlation ids."""

    def test_every_entry_carries_session_id(self, telemetry):
        """Test all entries share the sink's session id."""
        first = telemetry.info(LogCategory.API, "one")
        second = telemetry.error(LogCategory.LLM, "two")

        assert first.session_id == telemetry.session_id
        assert second.session_id == telemetry.session_id

    def test_request_id_threading(self, telemetry):
        """Test the request id is attached until cleared."""
        request_id = telemetry.create_request_id()
        inside = telemetry.info(LogCategory.API, "inside request")
        telemetry.clear_request_id()
        outside = telemetry.info(LogCategory.API, "outside request")

        assert inside.request_id == request_id
        assert outside.request_id is None

    def test_round_trip_through_store(self, telemetry):
        """Test stored entries read back with their fields."""
        written = telemetry.log(
            LogLevel.WARN, LogCategory.CACHE, "slow", {"ms": 900}, ["SLOW"], "user-1", 900.0
        )

        read = telemetry.get_entry(written.id)

        assert read.message == "slow"
        assert read.level == LogLevel.WARN
        assert read.category == LogCategory.CACHE
        assert read.data == {"ms": 900}
        assert read.user_id == "user-1"
        assert read.duration == 900.0
        assert read.timestamp == written.timestamp


class TestRetention:
    """Tests for level-dependent expiry."""

    def test_debug_expires_after_three_days(self, telemetry, clock):
        """Test a debug entry is unretrievable after 3 days."""
        entry = telemetry.debug(LogCategory.SYSTEM, "short lived")

        clock.advance(days=2, hours=23)
        assert telemetry.get_entry(entry.id) is not None

        clock.advance(hours=1)
        assert telemetry.get_entry(entry.id) is None
        assert telemetry.get_logs(LogCategory.SYSTEM, LogLevel.DEBUG) == []

    @pytest.mark.parametrize("level,days", [
        (LogLevel.INFO, 7),
        (LogLevel.WARN, 30),
        (LogLevel.ERROR, 90),
    ])
    def test_retention_per_level(self, telemetry, clock, level, days):
        """Test each level is retrievable until its retention period ends."""
        entry = telemetry.log(level, LogCategory.API, "entry")

        clock.advance(days=days, seconds=-1)
        assert telemetry.get_entry(entry.id) is not None

        clock.advance(seconds=1)
        assert telemetry.get_entry(entry.id) is None

    def test_error_retained_and_archived(self, kv_store, clock, tmp_path):
        """Test an error entry survives 89 days and exists in the archive."""
        archive = FileArchiveStore(tmp_path / "archive")
        sink = TelemetrySink(kv_store=kv_store, archive=archive, clock=clock)

        entry = sink.error(LogCategory.LLM, "provider failed", {"provider": "gemini"})
        clock.advance(days=89, hours=23)

        assert sink.get_entry(entry.id) is not None
        archived = archive.read_archived("LLM", date(2024, 6, 1))
        assert [a["id"] for a in archived] == [entry.id]
        assert archived[0]["data"] == {"provider": "gemini"}


class TestIndexes:
    """Tests for the capped index lists."""

    def test_category_index_is_capped(self, telemetry):
        """Test the category+level index keeps only the newest entries."""
        ids = [telemetry.info(LogCategory.API, f"call {i}").id for i in range(CATEGORY_INDEX_LIMIT + 5)]

        indexed = telemetry.kv_store.list_range(category_index_key(LogCategory.API, LogLevel.INFO))

        assert len(indexed) == CATEGORY_INDEX_LIMIT
        assert indexed[0] == ids[-1]
        assert ids[0] not in indexed

    def test_user_index_is_capped(self, telemetry):
        """Test the per-user index keeps only the newest entries."""
        for i in range(USER_INDEX_LIMIT + 3):
            telemetry.info(LogCategory.USER, f"action {i}", user_id="user-7")

        assert len(telemetry.kv_store.list_range(user_index_key("user-7"))) == USER_INDEX_LIMIT
        assert telemetry.get_user_logs("user-7", limit=5)[0].message == f"action {USER_INDEX_LIMIT + 2}"

    def test_get_logs_newest_first_with_limit(self, telemetry):
        """Test get_logs returns newest entries first."""
        for i in range(5):
            telemetry.warn(LogCategory.RECOMMENDATION, f"warn {i}")

        logs = telemetry.get_logs(LogCategory.RECOMMENDATION, LogLevel.WARN, limit=2)

        assert [e.message for e in logs] == ["warn 4", "warn 3"]

    def test_undecodable_entry_skipped(self, telemetry):
        """Test a corrupted entry is skipped on read."""
        good = telemetry.info(LogCategory.API, "good")
        bad = telemetry.info(LogCategory.API, "bad")
        telemetry.kv_store.set(entry_key(bad.id), "{not json")

        logs = telemetry.get_logs(LogCategory.API, LogLevel.INFO)

        assert [e.id for e in logs] == [good.id]

    def test_key_layout(self):
        """Test key naming."""
        assert entry_key("abc") == "lim:logs:abc"
        assert category_index_key(LogCategory.LLM, LogLevel.ERROR) == "lim:logs:llm:error"
        assert user_index_key("u1") == "lim:logs:user:u1"


class TestStoreFailures:
    """Tests for persistence failures."""

    def test_kv_failure_does_not_raise(self, clock):
        """Test a failing keyed store does not break logging."""
        kv_store = MagicMock()
        kv_store.set.side_effect = ConnectionError("redis down")
        sink = TelemetrySink(kv_store=kv_store, clock=clock)

        entry = sink.info(LogCategory.SYSTEM, "still logged")

        assert entry is not None

    def test_archive_failure_does_not_raise(self, kv_store, clock):
        """Test a failing archive does not break error logging."""
        archive = MagicMock()
        archive.put.side_effect = OSError("disk full")
        sink = TelemetrySink(kv_store=kv_store, archive=archive, clock=clock)

        entry = sink.error(LogCategory.SYSTEM, "boom")

        assert sink.get_entry(entry.id) is not None

    def test_only_errors_are_archived(self, kv_store, clock):
        """Test non-error entries never reach the archive."""
        archive = MagicMock()
        sink = TelemetrySink(kv_store=kv_store, archive=archive, clock=clock)

        sink.warn(LogCategory.SYSTEM, "warn")
        sink.info(LogCategory.SYSTEM, "info")
        archive.put.assert_not_called()

        sink.error(LogCategory.SYSTEM, "error")
        archive.put.assert_called_once()


class TestTimer:
    """Tests for start_timer()."""

    def test_timer_logs_start_and_completion(self, telemetry, clock):
        """Test the timer logs a debug start and an info completion with duration."""
        done = telemetry.start_timer(LogCategory.LLM, "processTemplate:spot_research", ["PIPELINE"])
        clock.advance(milliseconds=250)

        duration = done({"success": True})

        assert duration == 250.0
        start = telemetry.get_logs(LogCategory.LLM, LogLevel.DEBUG)[0]
        end = telemetry.get_logs(LogCategory.LLM, LogLevel.INFO)[0]
        assert start.message == "Starting: processTemplate:spot_research"
        assert "START" in start.tags
        assert end.message == "Completed: processTemplate:spot_research (250ms)"
        assert end.duration == 250.0
        assert end.data == {"operation": "processTemplate:spot_research", "success": True}

    def test_timer_status_tag_follows_success(self, telemetry, clock):
        """Test a failed completion is tagged FAILED, not SUCCESS."""
        done = telemetry.start_timer(LogCategory.LLM, "processTemplate:spot_research")
        clock.advance(milliseconds=10)

        done({"success": False})

        end = telemetry.get_logs(LogCategory.LLM, LogLevel.INFO)[0]
        assert "END" in end.tags
        assert "FAILED" in end.tags
        assert "SUCCESS" not in end.tags

    def test_timer_logs_once(self, telemetry, clock):
        """Test calling the completion callback twice logs once."""
        done = telemetry.start_timer(LogCategory.API, "op")
        clock.advance(seconds=1)
        first = done()
        clock.advance(seconds=1)
        second = done()

        assert first == second == 1000.0
        assert len(telemetry.get_logs(LogCategory.API, LogLevel.INFO)) == 1


class TestInteractions:
    """Tests for the interaction wrappers."""

    def test_llm_interaction_success(self, telemetry):
        """Test a successful LLM interaction is info-level with provenance."""
        entry = telemetry.log_llm_interaction(
            LogCategory.LLM, "processTemplate:trend_detection", "gemini", "gemini-2-flash",
            {"system": "s", "user": "u"}, "[]", 120.0, True, ["TRENDING"],
        )

        assert entry.level == LogLevel.INFO
        assert entry.tags == ["TRENDING", "LLM_INTERACTION", "gemini", "gemini-2-flash", "SUCCESS"]
        assert entry.data["prompt"] == {"system": "s", "user": "u"}
        assert entry.duration == 120.0

    def test_llm_interaction_failure(self, telemetry):
        """Test a failed LLM interaction is error-level."""
        entry = telemetry.log_llm_interaction(
            LogCategory.LLM, "op", "openai", "gpt-4o", "p", "boom", 5.0, False
        )

        assert entry.level == LogLevel.ERROR
        assert "FAILED" in entry.tags

    def test_api_interaction(self, telemetry):
        """Test API interactions derive success from the status code."""
        ok = telemetry.log_api_interaction(
            LogCategory.API, "/api/ai/recommendations", "post", {"q": 1}, {"r": 2}, 200, 30.0
        )
        failed = telemetry.log_api_interaction(
            LogCategory.API, "/api/ai/recommendations", "POST", {}, {}, 500, 30.0
        )

        assert ok.level == LogLevel.INFO
        assert "STATUS_200" in ok.tags and "POST" in ok.tags
        assert failed.level == LogLevel.ERROR
        assert failed.message == "FAILED: POST /api/ai/recommendations (500) (30ms)"


class TestKeyValueStores:
    """Tests for the keyed store backends."""

    def test_in_memory_expiry(self, clock):
        """Test values expire against the injected clock."""
        store = InMemoryKeyValueStore(clock=clock)
        store.set("a", "1", ttl_seconds=10)
        store.set("b", "2")

        clock.advance(seconds=10)

        assert store.get("a") is None
        assert store.get("b") == "2"

    def test_redis_store_delegates(self):
        """Test the Redis store maps onto redis-py calls."""
        client = MagicMock()
        pipe = client.pipeline.return_value
        client.lrange.return_value = ["x", "y"]
        store = RedisKeyValueStore(client)

        store.set("k", "v", ttl_seconds=60)
        store.list_push("idx", "x", 100)

        client.set.assert_called_once_with("k", "v", ex=60)
        pipe.lpush.assert_called_once_with("idx", "x")
        pipe.ltrim.assert_called_once_with("idx", 0, 99)
        pipe.execute.assert_called_once()
        assert store.list_range("idx") == ["x", "y"]


class TestArchives:
    """Tests for the archive backends."""

    def test_archive_key_partitioning(self):
        """Test archive keys are partitioned by category and date."""
        assert archive_key("logs/lim", "LLM", date(2024, 1, 15), "abc") == "logs/lim/llm/2024-01-15/abc.json"

    def test_s3_put_and_read(self):
        """Test the S3 archive writes and lists objects under the partition."""
        client = MagicMock()
        archive = S3ArchiveStore(bucket="lim-telemetry", client=client)

        key = archive.put("PIPELINE", date(2024, 6, 1), "e1", {"id": "e1"})

        assert key == "logs/lim/pipeline/2024-06-01/e1.json"
        put_kwargs = client.put_object.call_args[1]
        assert put_kwargs["Bucket"] == "lim-telemetry"
        assert json.loads(put_kwargs["Body"]) == {"id": "e1"}

        client.get_paginator.return_value.paginate.return_value = [{"Contents": [{"Key": key}]}]
        client.get_object.return_value = {"Body": io.BytesIO(b'{"id": "e1"}')}

        assert archive.read_archived("PIPELINE", date(2024, 6, 1)) == [{"id": "e1"}]
        client.get_paginator.return_value.paginate.assert_called_once_with(
            Bucket="lim-telemetry", Prefix="logs/lim/pipeline/2024-06-01/"
        )
