"""
Core Utilities - Shared helper functions.
"""

import hashlib
import json
import uuid
from typing import Any, Optional


def generate_id() -> str:
    """Generate a new opaque identifier."""
    return uuid.uuid4().hex


def compute_content_hash(content: str) -> str:
    """
    Compute SHA256 hash of text content.

    Args:
        content: Text content to hash

    Returns:
        Hex-encoded SHA256 hash (64 characters)
    """
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def stable_seed(*parts: Any) -> int:
    """
    Derive a process-independent integer seed from the given parts.

    Unlike ``hash()``, the result does not change between interpreter runs.
    """
    raw = json.dumps([str(p) for p in parts], separators=(",", ":"))
    return int(compute_content_hash(raw)[:12], 16)


def truncate(text: Optional[Any], limit: int = 500) -> Optional[str]:
    """Truncate text for previews, marking the cut with an ellipsis."""
    if text is None:
        return None
    if not isinstance(text, str):
        text = json.dumps(text, default=str)
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def slugify(value: str) -> str:
    """Lowercase a display value into an id (``"Los Angeles"`` -> ``"los-angeles"``)."""
    cleaned = "".join(ch if ch.isalnum() else "-" for ch in value.strip().lower())
    return "-".join(part for part in cleaned.split("-") if part)
