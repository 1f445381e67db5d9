"""
Refresh CLI - Entry point for the scheduled recommendation refresh.

Usage:
    lim-refresh
    lim-refresh --config pipeline.yaml --replace
    lim-refresh --locations la,sf --interests coffee --output-dir /tmp/recs

Exit status is 0 when the run completes, even if some combinations failed,
and 1 on configuration errors.
"""

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from ..core.config import Settings
from ..core.exceptions import ConfigError, PersistenceError
from ..core.logging import configure_logging
from ..pipeline.config import PipelineConfig
from ..pipeline.driver import PipelineDriver
from ..providers.gateway import ProviderGateway
from ..storage import JsonFileRecordStore, PersistenceMode, create_relational_store
from ..telemetry.sink import TelemetrySink


logger = logging.getLogger(__name__)


def _csv(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Refresh recommendation batches for every location and interest",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to pipeline configuration YAML file",
    )
    parser.add_argument(
        "--locations",
        type=_csv,
        help="Comma-separated location ids or names (default: all configured)",
    )
    parser.add_argument(
        "--interests",
        type=_csv,
        help="Comma-separated interest ids or names (default: all configured)",
    )
    parser.add_argument(
        "--output-dir",
        help="Directory for per-combination JSON files (overrides LIM_OUTPUT_DIR)",
    )
    parser.add_argument(
        "--sqlite-path",
        help="SQLite relational store (overrides LIM_SQLITE_PATH)",
    )
    parser.add_argument(
        "--replace",
        action="store_true",
        help="Replace each combination's batch instead of upserting by name",
    )
    parser.add_argument(
        "--skip-fresher-than",
        type=float,
        metavar="HOURS",
        help="Skip combinations written within the last HOURS hours",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose/debug logging",
    )
    parser.add_argument(
        "--structured-logs",
        action="store_true",
        help="Emit JSON log lines (also enabled by LIM_LOG_STRUCTURED=true)",
    )
    return parser.parse_args(argv)


def load_config(args: argparse.Namespace) -> PipelineConfig:
    """Load the pipeline configuration and apply command-line overrides."""
    config = PipelineConfig.from_yaml(args.config) if args.config else PipelineConfig()
    config = config.select(args.locations, args.interests)
    if args.replace:
        config = replace(config, persistence_mode=PersistenceMode.REPLACE)
    if args.skip_fresher_than is not None:
        config = replace(config, skip_if_fresher_than_hours=args.skip_fresher_than)
    return config


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    settings = Settings.from_env()
    if args.output_dir:
        settings = replace(settings, output_dir=args.output_dir)
    if args.sqlite_path:
        settings = replace(settings, sqlite_path=args.sqlite_path)

    configure_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        structured=args.structured_logs or settings.log_structured,
    )

    try:
        config = load_config(args)
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    telemetry = TelemetrySink.from_settings(settings)
    gateway = ProviderGateway(settings, telemetry)
    json_store = JsonFileRecordStore(settings.output_dir)
    try:
        record_store = create_relational_store(settings)
    except PersistenceError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    logger.info(
        f"Refreshing {config.total_combinations} combinations "
        f"({len(config.locations)} locations x {len(config.interests)} interests)"
    )
    logger.info(f"Available providers: {[p.value for p in gateway.available_providers()]}")

    driver = PipelineDriver(config, settings, gateway, telemetry, json_store, record_store)
    try:
        stats = driver.run()
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 1
    finally:
        if record_store is not None:
            record_store.close()

    print(json.dumps({
        "runId": stats.run_id,
        "successful": stats.successful,
        "failed": stats.failed,
        "skipped": stats.skipped,
        "successRate": stats.success_rate,
        "trending": stats.trending,
    }, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
