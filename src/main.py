"""Console Entry Point.

Runs the feed pipeline headless and logs a summary of each snapshot.
It's a thin wrapper that loads configuration and drives the poller.

Usage:
    # Poll every 2 minutes until interrupted
    quake-feed

    # One cycle, show only M4.0+
    quake-feed --once --min-magnitude 4

Environment:
    CONFIG_PATH: Path to config file (default: config/config.yaml)
    LOG_LEVEL: Logging level (default: INFO)
"""

import argparse
import asyncio
import logging
import os
import sys

from src.aggregator import FeedAggregator
from src.core.config import FeedConfig, validate_config
from src.core.errors import NoDataAvailableError
from src.core.formatter import format_event_summary, format_snapshot_summary
from src.core.snapshot import Snapshot, visible_events
from src.poller import Poller
from src.shell.config_loader import load_config, load_config_from_env
from src.shell.feed_client import FeedClient


logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _get_config(config_path: str | None) -> FeedConfig:
    """Load configuration from file or environment."""
    config_path = config_path or os.environ.get("CONFIG_PATH")

    if config_path:
        return load_config(config_path)
    elif os.environ.get("QUAKE_PRIMARY_FEEDS"):
        return load_config_from_env()
    else:
        return load_config()


def _report(snapshot: Snapshot, min_magnitude: float, top: int) -> None:
    logger.info("Snapshot: %s", format_snapshot_summary(snapshot, min_magnitude))

    strongest = sorted(
        visible_events(snapshot, min_magnitude),
        key=lambda e: e.magnitude,
        reverse=True,
    )
    for event in strongest[:top]:
        logger.info("  %s", format_event_summary(event))


async def run_once(aggregator: FeedAggregator, min_magnitude: float, top: int) -> int:
    """Run a single cycle and report it."""
    try:
        snapshot = await aggregator.run()
    except NoDataAvailableError as e:
        logger.error("%s", e)
        return 1

    _report(snapshot, min_magnitude, top)
    return 0


async def run_forever(
    aggregator: FeedAggregator,
    interval_seconds: float,
    min_magnitude: float,
    top: int,
) -> int:
    """Poll until cancelled."""
    poller = Poller(aggregator, interval_seconds=interval_seconds)

    def on_error(error: NoDataAvailableError) -> None:
        if poller.latest_snapshot is not None:
            logger.warning(
                "Showing stale data from %s: %s",
                poller.latest_snapshot.fetched_at.isoformat(),
                error,
            )
        else:
            logger.error("Real-time data unavailable: %s", error)

    poller.start(
        on_snapshot=lambda snapshot: _report(snapshot, min_magnitude, top),
        on_error=on_error,
    )
    try:
        await poller.wait_stopped()
    finally:
        poller.stop()

    return 0


async def _run(args: argparse.Namespace, config: FeedConfig) -> int:
    async with FeedClient(
        timeout=config.request_timeout_seconds,
        default_kind=config.default_kind,
    ) as feed_client:
        aggregator = FeedAggregator(config, feed_client=feed_client)

        if args.once:
            return await run_once(aggregator, config.min_magnitude, args.top)

        return await run_forever(
            aggregator,
            config.refresh_interval_seconds,
            config.min_magnitude,
            args.top,
        )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Fetch, merge and summarize USGS earthquake feeds",
    )
    parser.add_argument(
        "--config",
        help="Path to YAML config file",
    )
    parser.add_argument(
        "--min-magnitude",
        type=float,
        help="Only list earthquakes at or above this magnitude",
    )
    parser.add_argument(
        "--interval",
        type=float,
        help="Seconds between refreshes (default from config: 120)",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single cycle and exit",
    )
    parser.add_argument(
        "--top",
        type=int,
        default=5,
        help="Number of strongest earthquakes to list per snapshot",
    )
    args = parser.parse_args(argv)

    _configure_logging()

    config = _get_config(args.config)
    if args.min_magnitude is not None:
        config.min_magnitude = args.min_magnitude
    if args.interval is not None:
        config.refresh_interval_seconds = args.interval

    validation = validate_config(config)
    for warning in validation.warnings:
        logger.warning("Config %s: %s", warning.field, warning.message)
    if not validation.valid:
        for error in validation.critical_errors:
            logger.error("Config %s: %s", error.field, error.message)
        return 2

    try:
        return asyncio.run(_run(args, config))
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 0


if __name__ == "__main__":
    sys.exit(main())
