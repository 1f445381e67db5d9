"""
JSON file record store.

One file per combination under the output directory:
    {output_dir}/{interest_id}-{location_id}.json

Each file holds the combination's keys, its record batch and a
last-updated timestamp. Trending ids are kept in {output_dir}/trending.json.
"""

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..core.exceptions import PersistenceError
from ..core.models import StructuredRecord, UnitOfWork
from .record_store import RecordStore


logger = logging.getLogger(__name__)

TRENDING_FILE = "trending.json"


class JsonFileRecordStore(RecordStore):
    """
    Record store backed by one JSON document per combination.

    Example:
        >>> store = JsonFileRecordStore("data/recommendations")
        >>> store.upsert_batch(unit, records)
        5
    """

    def __init__(self, output_dir: str, pretty_print: bool = True):
        self.output_dir = Path(output_dir)
        self.pretty_print = pretty_print
        logger.debug(f"JsonFileRecordStore initialized: output_dir={self.output_dir}")

    def path_for(self, location_id: str, interest_id: str) -> Path:
        return self.output_dir / f"{interest_id}-{location_id}.json"

    def upsert_batch(self, unit: UnitOfWork, records: List[StructuredRecord]) -> int:
        existing = {r.name: r for r in self.get_records(*unit.key)}
        for record in records:
            existing[record.name] = record
        self._write_batch(unit, list(existing.values()))
        return len(records)

    def replace_batch(self, unit: UnitOfWork, records: List[StructuredRecord]) -> int:
        by_name = {r.name: r for r in records}
        self._write_batch(unit, list(by_name.values()))
        return len(by_name)

    def get_records(self, location_id: str, interest_id: str) -> List[StructuredRecord]:
        document = self._read(self.path_for(location_id, interest_id))
        if document is None:
            return []
        records = [StructuredRecord.from_dict(r) for r in document.get("recommendations", [])]
        return sorted(records, key=lambda r: r.name)

    def last_updated(self, unit: UnitOfWork) -> Optional[datetime]:
        document = self._read(self.path_for(*unit.key))
        if document is None or not document.get("lastUpdated"):
            return None
        value = datetime.fromisoformat(document["lastUpdated"])
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    def replace_trending(self, interest_ids: List[str], scores: Dict[str, float],
                         computed_at: datetime) -> None:
        self._write(self.output_dir / TRENDING_FILE, {
            "trending": [
                {"interestId": interest_id, "rank": rank, "score": scores.get(interest_id)}
                for rank, interest_id in enumerate(interest_ids, start=1)
            ],
            "lastUpdated": computed_at.isoformat(),
        })

    def get_trending(self) -> List[str]:
        document = self._read(self.output_dir / TRENDING_FILE)
        if document is None:
            return []
        return [item["interestId"] for item in document.get("trending", [])]

    def _write_batch(self, unit: UnitOfWork, records: List[StructuredRecord]) -> None:
        # lastUpdated follows the newest record so it shares the writer's clock
        last_updated = max((r.updated_at for r in records), default=datetime.now(timezone.utc))
        records = sorted(records, key=lambda r: r.name)
        self._write(self.path_for(*unit.key), {
            "interest": unit.interest.to_dict(),
            "location": unit.location.to_dict(),
            "recommendations": [r.to_dict() for r in records],
            "lastUpdated": last_updated.isoformat(),
        })

    def _write(self, path: Path, document: Dict[str, Any]) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = path.with_suffix(path.suffix + ".tmp")
            indent = 2 if self.pretty_print else None
            tmp_path.write_text(json.dumps(document, indent=indent, ensure_ascii=False),
                                encoding="utf-8")
            os.replace(tmp_path, path)
            logger.debug(f"Wrote {path}")
        except OSError as e:
            raise PersistenceError(f"Failed to write {path}: {e}")

    def _read(self, path: Path) -> Optional[Dict[str, Any]]:
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Failed to read {path}: {e}")
