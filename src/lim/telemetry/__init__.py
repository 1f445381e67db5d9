"""
Telemetry: structured log sink, keyed stores and the error archive.
"""

from .archive import ArchiveStore, FileArchiveStore, S3ArchiveStore
from .kv_store import InMemoryKeyValueStore, KeyValueStore, RedisKeyValueStore
from .sink import TelemetrySink

__all__ = [
    "ArchiveStore",
    "FileArchiveStore",
    "S3ArchiveStore",
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "RedisKeyValueStore",
    "TelemetrySink",
]
