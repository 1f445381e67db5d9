"""
Logs CLI - Read stored telemetry entries back from the keyed store.

Usage:
    lim-logs --category LLM --level error
    lim-logs --user user-123 --limit 20
    lim-logs --archive-date 2024-06-01 --category PIPELINE
"""

import argparse
import json
import sys
from datetime import date
from typing import List, Optional

from ..core.config import Settings
from ..core.types import LogCategory, LogLevel
from ..telemetry.sink import TelemetrySink


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description="Print stored telemetry entries")
    parser.add_argument(
        "--category",
        type=lambda v: LogCategory(v.upper()),
        default=LogCategory.PIPELINE,
        help=f"Log category ({', '.join(c.value for c in LogCategory)})",
    )
    parser.add_argument(
        "--level",
        type=LogLevel.parse,
        default=LogLevel.INFO,
        help="Log level (debug, info, warn, error)",
    )
    parser.add_argument("--user", help="Show entries for a user instead of a category")
    parser.add_argument("--limit", type=int, default=50, help="Maximum entries to print")
    parser.add_argument(
        "--archive-date",
        type=date.fromisoformat,
        help="Read archived error entries for this date (YYYY-MM-DD)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    settings = Settings.from_env()
    sink = TelemetrySink.from_settings(settings)

    if args.archive_date:
        if sink.archive is None:
            print("No archive configured (set LIM_ARCHIVE_BUCKET or LIM_ARCHIVE_DIR)", file=sys.stderr)
            return 1
        entries = sink.archive.read_archived(args.category.value, args.archive_date)[:args.limit]
    else:
        if sink.kv_store is None:
            print("No keyed store configured (set LIM_REDIS_URL)", file=sys.stderr)
            return 1
        if args.user:
            found = sink.get_user_logs(args.user, args.limit)
        else:
            found = sink.get_logs(args.category, args.level, args.limit)
        entries = [e.to_dict() for e in found]

    for entry in entries:
        print(json.dumps(entry, default=str, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
