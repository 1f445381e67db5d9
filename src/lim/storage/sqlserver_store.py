"""
SQL Server-based record store.

This is the production backend. Upserts use MERGE on the natural key
(location_id, interest_id, name).
"""

import logging
import re
from datetime import datetime, timezone
from typing import Dict, List, Optional

try:
    import pyodbc
except ImportError:
    pyodbc = None  # Defer error to runtime when connection is attempted

from ..core.exceptions import PersistenceError
from ..core.models import StructuredRecord, UnitOfWork
from .record_store import RecordStore
from .sqlite_store import RECORD_COLUMNS, record_to_row, row_to_record


logger = logging.getLogger(__name__)

KEY_COLUMNS = ("location_id", "interest_id", "name")


class SqlServerRecordStore(RecordStore):
    """
    SQL Server-based implementation of the record store.

    Example:
        >>> store = SqlServerRecordStore(connection_string=os.environ["LIM_SQLSERVER_CONN_STR"])
        >>> store.upsert_batch(unit, records)
    """

    def __init__(
        self,
        connection_string: str,
        schema: str = "lim",
        auto_init: bool = True,
    ):
        """
        Initialize the SQL Server record store.

        Args:
            connection_string: Full ODBC connection string
            schema: Schema name for tables (default: 'lim')
            auto_init: Whether to create schema and tables automatically
        """
        if pyodbc is None:
            raise ImportError(
                "pyodbc is required for SqlServerRecordStore. "
                "Install with: pip install pyodbc"
            )

        if not self._is_valid_identifier(schema):
            raise ValueError(f"Invalid schema name: {schema}")

        self.schema = schema
        self.connection_string = connection_string
        self.conn = None
        self._connect()

        if auto_init:
            self._init_schema()

    @staticmethod
    def _is_valid_identifier(name: str) -> bool:
        """
        Validate that a name is a safe SQL identifier.

        Must start with a letter or underscore, contain only letters, digits
        and underscores, and be at most 128 characters.
        """
        if not name or len(name) > 128:
            return False
        return re.match(r"^[a-zA-Z_][a-zA-Z0-9_]*$", name) is not None

    def _connect(self) -> None:
        """Establish database connection."""
        try:
            self.conn = pyodbc.connect(self.connection_string, autocommit=False)
            logger.debug(f"Connected to SQL Server record store (schema: {self.schema})")
        except pyodbc.Error as e:
            logger.error(f"Failed to connect to SQL Server: {e}")
            raise PersistenceError(f"Failed to connect to SQL Server: {e}")

    def _init_schema(self) -> None:
        """Initialize database schema and tables."""
        cursor = self.conn.cursor()
        try:
            # CREATE SCHEMA cannot be parameterized; the name is validated in __init__
            cursor.execute(f"""
                IF NOT EXISTS (SELECT * FROM sys.schemas WHERE name = ?)
                BEGIN
                    EXEC('CREATE SCHEMA [{self.schema}]')
                END
            """, (self.schema,))

            cursor.execute(f"""
                IF OBJECT_ID('[{self.schema}].[recommendations]', 'U') IS NULL
                BEGIN
                    CREATE TABLE [{self.schema}].[recommendations] (
                        id NVARCHAR(200) NOT NULL,
                        location_id NVARCHAR(100) NOT NULL,
                        interest_id NVARCHAR(100) NOT NULL,
                        name NVARCHAR(400) NOT NULL,
                        description NVARCHAR(MAX),
                        type NVARCHAR(100),
                        tags NVARCHAR(MAX),
                        neighborhood NVARCHAR(200),
                        address NVARCHAR(500),
                        price_range INT,
                        popularity INT,
                        coordinates NVARCHAR(100),
                        website NVARCHAR(1000),
                        image_url NVARCHAR(1000),
                        check_ins INT,
                        source NVARCHAR(20) NOT NULL,
                        updated_at NVARCHAR(40) NOT NULL,
                        CONSTRAINT uq_recommendations_natural_key
                            UNIQUE (location_id, interest_id, name)
                    )
                END
            """)

            cursor.execute(f"""
                IF OBJECT_ID('[{self.schema}].[trending_interests]', 'U') IS NULL
                BEGIN
                    CREATE TABLE [{self.schema}].[trending_interests] (
                        interest_id NVARCHAR(100) PRIMARY KEY,
                        rank INT NOT NULL,
                        score FLOAT,
                        computed_at NVARCHAR(40) NOT NULL
                    )
                END
            """)

            self.conn.commit()
            logger.debug(f"Initialized record store schema [{self.schema}]")
        except pyodbc.Error as e:
            self.conn.rollback()
            raise PersistenceError(f"Failed to initialize schema [{self.schema}]: {e}")

    def _merge_sql(self) -> str:
        source_columns = ", ".join(f"? AS {c}" for c in RECORD_COLUMNS)
        match = " AND ".join(f"target.{c} = source.{c}" for c in KEY_COLUMNS)
        updates = ", ".join(
            f"{c} = source.{c}" for c in RECORD_COLUMNS if c not in KEY_COLUMNS
        )
        columns = ", ".join(RECORD_COLUMNS)
        values = ", ".join(f"source.{c}" for c in RECORD_COLUMNS)
        return f"""
            MERGE [{self.schema}].[recommendations] AS target
            USING (SELECT {source_columns}) AS source
            ON {match}
            WHEN MATCHED THEN
                UPDATE SET {updates}
            WHEN NOT MATCHED THEN
                INSERT ({columns})
                VALUES ({values});
        """

    def _insert_sql(self) -> str:
        columns = ", ".join(RECORD_COLUMNS)
        placeholders = ", ".join("?" for _ in RECORD_COLUMNS)
        return f"INSERT INTO [{self.schema}].[recommendations] ({columns}) VALUES ({placeholders})"

    def upsert_batch(self, unit: UnitOfWork, records: List[StructuredRecord]) -> int:
        cursor = self.conn.cursor()
        try:
            merge_sql = self._merge_sql()
            for record in records:
                cursor.execute(merge_sql, record_to_row(record))
            self.conn.commit()
        except pyodbc.Error as e:
            self.conn.rollback()
            logger.error(f"Upsert failed for {unit.label}: {e}")
            raise PersistenceError(f"Failed to upsert batch for {unit.label}: {e}")
        logger.debug(f"Upserted {len(records)} records for {unit.label}")
        return len(records)

    def replace_batch(self, unit: UnitOfWork, records: List[StructuredRecord]) -> int:
        cursor = self.conn.cursor()
        unique = list({r.name: r for r in records}.values())
        try:
            cursor.execute(
                f"DELETE FROM [{self.schema}].[recommendations] "
                f"WHERE location_id = ? AND interest_id = ?",
                unit.key,
            )
            insert_sql = self._insert_sql()
            for record in unique:
                cursor.execute(insert_sql, record_to_row(record))
            self.conn.commit()
        except pyodbc.Error as e:
            self.conn.rollback()
            logger.error(f"Replace failed for {unit.label}: {e}")
            raise PersistenceError(f"Failed to replace batch for {unit.label}: {e}")
        logger.debug(f"Replaced batch for {unit.label} with {len(unique)} records")
        return len(unique)

    def get_records(self, location_id: str, interest_id: str) -> List[StructuredRecord]:
        cursor = self.conn.cursor()
        cursor.execute(
            f"SELECT {', '.join(RECORD_COLUMNS)} FROM [{self.schema}].[recommendations] "
            f"WHERE location_id = ? AND interest_id = ? ORDER BY name",
            (location_id, interest_id),
        )
        columns = [c[0] for c in cursor.description]
        return [row_to_record(dict(zip(columns, row))) for row in cursor.fetchall()]

    def last_updated(self, unit: UnitOfWork) -> Optional[datetime]:
        cursor = self.conn.cursor()
        cursor.execute(
            f"SELECT MAX(updated_at) FROM [{self.schema}].[recommendations] "
            f"WHERE location_id = ? AND interest_id = ?",
            unit.key,
        )
        row = cursor.fetchone()
        if row is None or row[0] is None:
            return None
        value = datetime.fromisoformat(row[0])
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    def replace_trending(self, interest_ids: List[str], scores: Dict[str, float],
                         computed_at: datetime) -> None:
        cursor = self.conn.cursor()
        try:
            cursor.execute(f"DELETE FROM [{self.schema}].[trending_interests]")
            for rank, interest_id in enumerate(interest_ids, start=1):
                cursor.execute(
                    f"INSERT INTO [{self.schema}].[trending_interests] "
                    f"(interest_id, rank, score, computed_at) VALUES (?, ?, ?, ?)",
                    (interest_id, rank, scores.get(interest_id), computed_at.isoformat()),
                )
            self.conn.commit()
        except pyodbc.Error as e:
            self.conn.rollback()
            raise PersistenceError(f"Failed to replace trending interests: {e}")

    def get_trending(self) -> List[str]:
        cursor = self.conn.cursor()
        cursor.execute(
            f"SELECT interest_id FROM [{self.schema}].[trending_interests] ORDER BY rank"
        )
        return [row[0] for row in cursor.fetchall()]

    def close(self) -> None:
        """Close database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None
            logger.debug("Closed SQL Server record store")
