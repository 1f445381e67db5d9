"""
SQLite-based record store.

Suitable for local runs and tests; production uses SqlServerRecordStore.
"""

import json
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from ..core.exceptions import PersistenceError
from ..core.models import RecordSource, StructuredRecord, UnitOfWork
from .record_store import RecordStore


logger = logging.getLogger(__name__)

RECORD_COLUMNS = [
    "id", "location_id", "interest_id", "name", "description", "type", "tags",
    "neighborhood", "address", "price_range", "popularity", "coordinates",
    "website", "image_url", "check_ins", "source", "updated_at",
]


def record_to_row(record: StructuredRecord) -> tuple:
    """Flatten a record into column order (lists as JSON text)."""
    return (
        record.id,
        record.location_id,
        record.interest_id,
        record.name,
        record.description,
        record.type,
        json.dumps(record.tags),
        record.neighborhood,
        record.address,
        record.price_range,
        record.popularity,
        json.dumps(record.coordinates) if record.coordinates else None,
        record.website,
        record.image_url,
        record.check_ins,
        record.source.value,
        record.updated_at.isoformat(),
    )


def row_to_record(row) -> StructuredRecord:
    """Rebuild a record from a row addressable by column name."""
    updated_at = row["updated_at"]
    if isinstance(updated_at, str):
        updated_at = datetime.fromisoformat(updated_at)
    if updated_at.tzinfo is None:
        updated_at = updated_at.replace(tzinfo=timezone.utc)
    return StructuredRecord(
        id=row["id"],
        location_id=row["location_id"],
        interest_id=row["interest_id"],
        name=row["name"],
        description=row["description"] or "",
        type=row["type"] or "venue",
        tags=json.loads(row["tags"]) if row["tags"] else [],
        neighborhood=row["neighborhood"],
        address=row["address"],
        price_range=row["price_range"],
        popularity=row["popularity"],
        coordinates=json.loads(row["coordinates"]) if row["coordinates"] else None,
        website=row["website"],
        image_url=row["image_url"],
        check_ins=row["check_ins"],
        source=RecordSource(row["source"]),
        updated_at=updated_at,
    )


class SqliteRecordStore(RecordStore):
    """
    SQLite-based implementation of the record store.

    Upserts use ``INSERT ... ON CONFLICT (location_id, interest_id, name)
    DO UPDATE``; replaces delete and insert inside one transaction.
    """

    def __init__(self, db_path, auto_init: bool = True):
        """
        Initialize the SQLite record store.

        Args:
            db_path: Path to the SQLite database file (":memory:" for tests)
            auto_init: Whether to create tables automatically
        """
        self.db_path = str(db_path)
        self.conn = None
        self._connect()

        if auto_init:
            self._init_schema()

    def _connect(self) -> None:
        """Establish database connection."""
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        logger.debug(f"Connected to SQLite record store: {self.db_path}")

    def _init_schema(self) -> None:
        """Initialize database schema."""
        with self.conn:
            self.conn.execute("""
                CREATE TABLE IF NOT EXISTS recommendations (
                    id TEXT NOT NULL,
                    location_id TEXT NOT NULL,
                    interest_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    description TEXT,
                    type TEXT,
                    tags TEXT,
                    neighborhood TEXT,
                    address TEXT,
                    price_range INTEGER,
                    popularity INTEGER,
                    coordinates TEXT,
                    website TEXT,
                    image_url TEXT,
                    check_ins INTEGER,
                    source TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    PRIMARY KEY (location_id, interest_id, name)
                )
            """)
            self.conn.execute("""
                CREATE TABLE IF NOT EXISTS trending_interests (
                    interest_id TEXT PRIMARY KEY,
                    rank INTEGER NOT NULL,
                    score REAL,
                    computed_at TEXT NOT NULL
                )
            """)
        logger.debug("Initialized record store schema")

    def _upsert_sql(self) -> str:
        columns = ", ".join(RECORD_COLUMNS)
        placeholders = ", ".join("?" for _ in RECORD_COLUMNS)
        key_columns = {"location_id", "interest_id", "name"}
        updates = ", ".join(
            f"{c} = excluded.{c}" for c in RECORD_COLUMNS if c not in key_columns
        )
        return (
            f"INSERT INTO recommendations ({columns}) VALUES ({placeholders}) "
            f"ON CONFLICT (location_id, interest_id, name) DO UPDATE SET {updates}"
        )

    def upsert_batch(self, unit: UnitOfWork, records: List[StructuredRecord]) -> int:
        try:
            with self.conn:
                self.conn.executemany(self._upsert_sql(), [record_to_row(r) for r in records])
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to upsert batch for {unit.label}: {e}")
        logger.debug(f"Upserted {len(records)} records for {unit.label}")
        return len(records)

    def replace_batch(self, unit: UnitOfWork, records: List[StructuredRecord]) -> int:
        location_id, interest_id = unit.key
        try:
            with self.conn:
                self.conn.execute(
                    "DELETE FROM recommendations WHERE location_id = ? AND interest_id = ?",
                    (location_id, interest_id),
                )
                self.conn.executemany(self._upsert_sql(), [record_to_row(r) for r in records])
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to replace batch for {unit.label}: {e}")
        logger.debug(f"Replaced batch for {unit.label} with {len(records)} records")
        return len(records)

    def get_records(self, location_id: str, interest_id: str) -> List[StructuredRecord]:
        cursor = self.conn.execute(
            "SELECT * FROM recommendations WHERE location_id = ? AND interest_id = ? "
            "ORDER BY name",
            (location_id, interest_id),
        )
        return [row_to_record(row) for row in cursor.fetchall()]

    def last_updated(self, unit: UnitOfWork) -> Optional[datetime]:
        row = self.conn.execute(
            "SELECT MAX(updated_at) AS last FROM recommendations "
            "WHERE location_id = ? AND interest_id = ?",
            unit.key,
        ).fetchone()
        if row is None or row["last"] is None:
            return None
        value = datetime.fromisoformat(row["last"])
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    def replace_trending(self, interest_ids: List[str], scores: Dict[str, float],
                         computed_at: datetime) -> None:
        try:
            with self.conn:
                self.conn.execute("DELETE FROM trending_interests")
                self.conn.executemany(
                    "INSERT INTO trending_interests (interest_id, rank, score, computed_at) "
                    "VALUES (?, ?, ?, ?)",
                    [
                        (interest_id, rank, scores.get(interest_id), computed_at.isoformat())
                        for rank, interest_id in enumerate(interest_ids, start=1)
                    ],
                )
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to replace trending interests: {e}")

    def get_trending(self) -> List[str]:
        cursor = self.conn.execute("SELECT interest_id FROM trending_interests ORDER BY rank")
        return [row["interest_id"] for row in cursor.fetchall()]

    def close(self) -> None:
        """Close database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None
            logger.debug("Closed SQLite record store")
