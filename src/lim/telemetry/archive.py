"""
Long-term archive for error-level telemetry.

Entries are addressed as ``{prefix}/{category}/{YYYY-MM-DD}/{entry_id}.json``,
partitioned by lowercased category and calendar date.
"""

import json
import logging
from abc import ABC, abstractmethod
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

import boto3
from botocore.exceptions import ClientError


logger = logging.getLogger(__name__)


def archive_key(prefix: str, category: str, day: date, entry_id: str) -> str:
    """Build the archive key for an entry."""
    parts = [p for p in prefix.strip("/").split("/") if p]
    parts += [category.lower(), day.isoformat(), f"{entry_id}.json"]
    return "/".join(parts)


class ArchiveStore(ABC):
    """Abstract base class for archive backends."""

    def __init__(self, prefix: str = "logs/lim"):
        self.prefix = prefix

    @abstractmethod
    def put(self, category: str, day: date, entry_id: str, payload: Dict[str, Any]) -> str:
        """
        Archive one entry.

        Returns:
            The archive key the entry was written under
        """
        pass

    @abstractmethod
    def read_archived(self, category: str, day: date) -> List[Dict[str, Any]]:
        """Return all entries archived for a category on a date."""
        pass


class FileArchiveStore(ArchiveStore):
    """
    Archives entries to a date-partitioned directory tree.

    Directory structure:
        {base_dir}/{prefix}/{category}/{yyyy-mm-dd}/{entry_id}.json
    """

    def __init__(self, base_dir: str, prefix: str = "logs/lim", pretty_print: bool = True):
        super().__init__(prefix)
        self.base_dir = Path(base_dir)
        self.pretty_print = pretty_print

    def put(self, category: str, day: date, entry_id: str, payload: Dict[str, Any]) -> str:
        key = archive_key(self.prefix, category, day, entry_id)
        path = self.base_dir / key
        path.parent.mkdir(parents=True, exist_ok=True)

        indent = 2 if self.pretty_print else None
        path.write_text(json.dumps(payload, indent=indent, default=str), encoding="utf-8")

        logger.debug(f"Archived entry to {path}")
        return key

    def read_archived(self, category: str, day: date) -> List[Dict[str, Any]]:
        partition = self.base_dir / archive_key(self.prefix, category, day, "_").rsplit("/", 1)[0]
        if not partition.exists():
            return []
        return [
            json.loads(path.read_text(encoding="utf-8"))
            for path in sorted(partition.glob("*.json"))
        ]


class S3ArchiveStore(ArchiveStore):
    """
    Archives entries as JSON objects in an S3 bucket.

    Example:
        >>> archive = S3ArchiveStore(bucket="lim-telemetry")
        >>> archive.put("LLM", date(2024, 1, 15), "abc123", {"message": "..."})
        'logs/lim/llm/2024-01-15/abc123.json'
    """

    def __init__(
        self,
        bucket: str,
        prefix: str = "logs/lim",
        client: Optional[Any] = None,
        region_name: Optional[str] = None,
    ):
        super().__init__(prefix)
        self.bucket = bucket
        self.s3_client = client or boto3.client("s3", region_name=region_name)

    def put(self, category: str, day: date, entry_id: str, payload: Dict[str, Any]) -> str:
        key = archive_key(self.prefix, category, day, entry_id)
        self.s3_client.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=json.dumps(payload, default=str).encode("utf-8"),
            ContentType="application/json",
        )
        logger.debug(f"Archived entry to s3://{self.bucket}/{key}")
        return key

    def read_archived(self, category: str, day: date) -> List[Dict[str, Any]]:
        partition = archive_key(self.prefix, category, day, "_").rsplit("/", 1)[0] + "/"
        entries = []
        try:
            paginator = self.s3_client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket, Prefix=partition):
                for obj in page.get("Contents", []):
                    body = self.s3_client.get_object(Bucket=self.bucket, Key=obj["Key"])["Body"]
                    entries.append(json.loads(body.read().decode("utf-8")))
        except ClientError as e:
            logger.error(f"Failed to list archived entries under {partition}: {e}")
            raise
        return entries
