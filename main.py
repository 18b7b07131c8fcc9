"""
Ticker Feed - Main Entry Point
Fetches quotes once and writes the ticker bar file.

Usage:
  python main.py [output_path]
"""
import asyncio
import sys
from typing import List, Optional

from pydantic import ValidationError
from pydantic_settings import SettingsError

from ticker_feed.config.instruments import default_instruments
from ticker_feed.config.settings import (
    DEFAULT_OUTPUT_PATH,
    DEFAULT_TIMESTAMP_OFFSET_MINUTES,
    get_settings,
)
from ticker_feed.data.writer import write_empty_shell
from ticker_feed.engine.aggregator import QuoteAggregator
from ticker_feed.errors import PersistenceError
from ticker_feed.utils.helpers import format_timestamp
from ticker_feed.utils.logger import setup_logging, get_logger

logger = get_logger("main")


def _write_shell(path, offset_minutes: int) -> int:
    """Last resort: the scheduler must still see a valid file."""
    try:
        write_empty_shell(format_timestamp(offset_minutes), path)
    except PersistenceError as e:
        logger.error("feed_failed", path=str(path), error=str(e))
        return 1
    return 0


async def run_feed(output_path: Optional[str] = None) -> int:
    """Run one feed update. Returns the process exit code."""
    try:
        settings = get_settings()
    except (ValidationError, SettingsError) as e:
        logger.error("settings_invalid", error=str(e))
        return _write_shell(output_path or DEFAULT_OUTPUT_PATH, DEFAULT_TIMESTAMP_OFFSET_MINUTES)

    path = output_path or settings.feed.output_path
    try:
        aggregator = QuoteAggregator.from_settings(settings, default_instruments(), output_path=path)
        await aggregator.run()
        return 0
    except PersistenceError as e:
        logger.error("feed_failed", path=str(path), error=str(e))
        return 1
    except Exception as e:
        logger.error("feed_unexpected_error", error=str(e), exc_info=True)
    return _write_shell(path, settings.feed.timestamp_offset_minutes)


def main(argv: Optional[List[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    try:
        settings = get_settings()
    except (ValidationError, SettingsError):
        # structlog defaults still print; run_feed reports the error
        settings = None
    if settings is not None:
        setup_logging(settings)
        logger.info("starting_ticker_feed", version=settings.version)
    return asyncio.run(run_feed(args[0] if args else None))


if __name__ == "__main__":
    sys.exit(main())
