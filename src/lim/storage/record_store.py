"""
Record store interface for persisting structured record batches.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from ..core.models import StructuredRecord, UnitOfWork


class PersistenceMode(str, Enum):
    """
    How a combination's batch is written.

    UPSERT updates records by natural key and leaves records missing from
    the new batch in place. REPLACE deletes the combination's records and
    inserts the new batch in one transaction.
    """
    UPSERT = "upsert"
    REPLACE = "replace"


class RecordStore(ABC):
    """
    Abstract base class for record stores.

    Records are keyed by (location_id, interest_id, name).
    """

    @abstractmethod
    def upsert_batch(self, unit: UnitOfWork, records: List[StructuredRecord]) -> int:
        """
        Insert or update each record by natural key.

        Returns:
            Number of records written
        """
        pass

    @abstractmethod
    def replace_batch(self, unit: UnitOfWork, records: List[StructuredRecord]) -> int:
        """
        Replace every record of the combination with this batch.

        Returns:
            Number of records written
        """
        pass

    @abstractmethod
    def get_records(self, location_id: str, interest_id: str) -> List[StructuredRecord]:
        """Return the stored records of one combination, ordered by name."""
        pass

    @abstractmethod
    def last_updated(self, unit: UnitOfWork) -> Optional[datetime]:
        """Return when the combination was last written, or None."""
        pass

    @abstractmethod
    def replace_trending(self, interest_ids: List[str], scores: Dict[str, float],
                         computed_at: datetime) -> None:
        """Replace the trending set with the given ranked interest ids."""
        pass

    @abstractmethod
    def get_trending(self) -> List[str]:
        """Return the trending interest ids in rank order."""
        pass

    def persist(self, unit: UnitOfWork, records: List[StructuredRecord],
                mode: PersistenceMode = PersistenceMode.UPSERT) -> int:
        """Write a batch using the given persistence mode."""
        if PersistenceMode(mode) == PersistenceMode.REPLACE:
            return self.replace_batch(unit, records)
        return self.upsert_batch(unit, records)

    def close(self) -> None:
        """Release any held resources."""
        pass
