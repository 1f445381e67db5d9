"""
Logging utilities for the LIM orchestration package.

The telemetry sink writes its console line through the ``lim.telemetry``
logger, attaching correlation fields (session, request, category, tags) as
record extras. The formatters here render those fields either as JSON lines
or as bracketed human-readable prefixes.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional


CORRELATION_FIELDS = ["session_id", "request_id", "user_id", "category", "tags", "duration"]


class StructuredFormatter(logging.Formatter):
    """
    Formatter that outputs JSON-structured log lines.

    Each log line includes:
    - Standard log fields (timestamp, level, message, logger)
    - Correlation fields if present (session_id, request_id, category, tags)
    - The telemetry payload if present
    """

    def __init__(self, include_timestamp: bool = True):
        super().__init__()
        self.include_timestamp = include_timestamp

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as JSON."""
        log_entry = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.include_timestamp:
            log_entry["timestamp"] = datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat()

        for field in CORRELATION_FIELDS + ["entry_id", "data"]:
            value = getattr(record, field, None)
            if value is not None:
                log_entry[field] = value

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """
    Formatter that outputs human-readable log lines.

    Telemetry records render as: [TIMESTAMP] [LEVEL] [CATEGORY] [TAG]... MESSAGE
    Other records render as: TIMESTAMP - LOGGER - LEVEL - MESSAGE
    """

    def __init__(self, include_timestamp: bool = True):
        if include_timestamp:
            fmt = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        else:
            fmt = "%(name)s - %(levelname)s - %(message)s"
        super().__init__(fmt)
        self.include_timestamp = include_timestamp

    def format(self, record: logging.LogRecord) -> str:
        """Format the record, using the bracketed layout for telemetry."""
        category = getattr(record, "category", None)
        if category is None:
            return super().format(record)

        parts = []
        if self.include_timestamp:
            parts.append(f"[{datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()}]")
        level = "WARN" if record.levelname == "WARNING" else record.levelname
        parts.append(f"[{level}]")
        parts.append(f"[{category}]")
        for tag in getattr(record, "tags", None) or []:
            parts.append(f"[{tag}]")
        parts.append(record.getMessage())
        line = " ".join(parts)

        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def configure_logging(
    level: int = logging.INFO,
    format_string: Optional[str] = None,
    include_timestamp: bool = True,
    structured: bool = False,
) -> None:
    """
    Configure logging for the LIM package.

    Args:
        level: Logging level (default: INFO)
        format_string: Custom format string (optional, ignored if structured=True)
        include_timestamp: Whether to include timestamp in log messages
        structured: If True, output JSON-structured logs; if False, human-readable

    Example:
        >>> from lim.core.logging import configure_logging
        >>> configure_logging(level=logging.DEBUG, structured=True)
    """
    lim_logger = logging.getLogger("lim")
    lim_logger.setLevel(level)

    # Only add handler if none exist (avoid duplicate handlers)
    if not lim_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)

        if structured:
            formatter = StructuredFormatter(include_timestamp=include_timestamp)
        elif format_string:
            formatter = logging.Formatter(format_string)
        else:
            formatter = HumanReadableFormatter(include_timestamp=include_timestamp)

        handler.setFormatter(formatter)
        lim_logger.addHandler(handler)
