"""
Ticker Feed - Quote Aggregator
Runs every source adapter concurrently, merges whatever succeeded, stamps the
payload and persists it. Nothing upstream can fail the run; only an
unwritable output file can.
"""
import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, Union

from ticker_feed.config.instruments import InstrumentConfig
from ticker_feed.config.settings import AppSettings
from ticker_feed.data.adapters.base import BaseQuoteAdapter
from ticker_feed.data.adapters.registry import build_adapters
from ticker_feed.data.models import FeedPayload, Quote
from ticker_feed.data.writer import write_empty_shell, write_payload
from ticker_feed.errors import PersistenceError
from ticker_feed.utils.helpers import format_timestamp
from ticker_feed.utils.logger import get_logger

logger = get_logger("aggregator")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class RunReport:
    """What a single run produced."""
    items: List[Quote]
    output_path: Path
    generated_at: str
    failed_sources: List[str] = field(default_factory=list)
    degraded: bool = False  # the empty shell was written instead of the items

    def to_dict(self) -> dict:
        return {
            "items": len(self.items),
            "output_path": str(self.output_path),
            "generated_at": self.generated_at,
            "failed_sources": self.failed_sources,
            "degraded": self.degraded,
        }


class QuoteAggregator:
    """Fetch -> normalize -> merge -> fallback -> persist."""

    def __init__(
        self,
        adapters: Sequence[BaseQuoteAdapter],
        output_path: Union[str, Path],
        offset_minutes: int = 330,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.adapters = list(adapters)
        self.output_path = Path(output_path)
        self.offset_minutes = offset_minutes
        self._clock = clock or _utc_now

    @classmethod
    def from_settings(
        cls,
        settings: AppSettings,
        instruments: InstrumentConfig,
        output_path: Optional[Union[str, Path]] = None,
    ) -> "QuoteAggregator":
        adapters = build_adapters(settings.feed.enabled_sources, instruments, settings.data)
        return cls(
            adapters=adapters,
            output_path=output_path or settings.feed.output_path,
            offset_minutes=settings.feed.timestamp_offset_minutes,
        )

    async def collect(self) -> Tuple[List[Quote], List[str]]:
        """
        Run all adapters and wait for every one of them to settle.

        Returns the merged quotes in adapter order and the names of the
        sources that failed.
        """
        results = await asyncio.gather(
            *(adapter.run() for adapter in self.adapters),
            return_exceptions=True,
        )

        items: List[Quote] = []
        failed: List[str] = []
        for adapter, result in zip(self.adapters, results):
            if isinstance(result, Exception):
                failed.append(adapter.source.value)
                logger.warning(
                    "source_failed",
                    source=adapter.source.value,
                    error=str(result),
                    error_type=type(result).__name__,
                )
                continue
            if isinstance(result, BaseException):
                raise result
            items.extend(result)
        return items, failed

    def timestamp(self) -> str:
        return format_timestamp(self.offset_minutes, self._clock())

    async def run(self) -> RunReport:
        items, failed = await self.collect()
        payload = FeedPayload(generated_at=self.timestamp(), items=items)
        report = RunReport(
            items=items,
            output_path=self.output_path,
            generated_at=payload.generated_at,
            failed_sources=failed,
        )

        try:
            write_payload(payload, self.output_path)
        except PersistenceError as e:
            logger.error("payload_write_failed", path=str(self.output_path), error=str(e))
            # Raises PersistenceError again if even the shell cannot be written
            write_empty_shell(payload.generated_at, self.output_path)
            report.items = []
            report.degraded = True

        logger.info("feed_run_complete", **report.to_dict())
        return report
