"""
Record persistence backends.
"""

from typing import Optional

from ..core.config import Settings
from .json_store import JsonFileRecordStore
from .record_store import PersistenceMode, RecordStore
from .sqlite_store import SqliteRecordStore
from .sqlserver_store import SqlServerRecordStore


def create_relational_store(settings: Settings) -> Optional[RecordStore]:
    """
    Create the relational store named in settings.

    SQL Server wins when both are configured; returns None when neither is.
    """
    if settings.sqlserver_conn_str:
        return SqlServerRecordStore(connection_string=settings.sqlserver_conn_str)
    if settings.sqlite_path:
        return SqliteRecordStore(settings.sqlite_path)
    return None


__all__ = [
    "JsonFileRecordStore",
    "PersistenceMode",
    "RecordStore",
    "SqliteRecordStore",
    "SqlServerRecordStore",
    "create_relational_store",
]
