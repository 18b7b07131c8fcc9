"""
Ticker Feed - Structured Logging Utility
Uses structlog so every log line is a single machine-readable event.

Loggers can carry bound context (an adapter binds its `source`), and every
rendered event is tagged with the job name and version so lines from several
scheduled feeds can share one log sink.
"""
import structlog
import logging
import sys
from typing import Optional

from ticker_feed.config.settings import AppSettings, get_settings


def _app_context(app_name: str, version: str):
    """Build a processor that stamps app and version onto each event."""

    def processor(logger, method_name, event_dict):
        event_dict.setdefault("app", app_name)
        event_dict.setdefault("version", version)
        return event_dict

    return processor


def setup_logging(settings: Optional[AppSettings] = None) -> None:
    """Configure structured logging for the job."""
    settings = settings or get_settings()
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            _app_context(settings.app_name, settings.version),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer() if settings.debug else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # aiohttp and asyncio log through the standard library
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )


def get_logger(name: str = None, **context) -> structlog.BoundLogger:
    """Get a named structured logger, optionally with bound context."""
    return structlog.get_logger(name or "ticker_feed", **context)
