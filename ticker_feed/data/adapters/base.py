"""
Ticker Feed - Base Quote Adapter Interface
All upstream sources implement this interface. An adapter is the only place
that knows its provider's URLs and response schema.
"""
import asyncio
import json
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

import aiohttp

from ticker_feed.config.instruments import InstrumentConfig
from ticker_feed.config.settings import DataSourceSettings, get_settings
from ticker_feed.data.models import DataSource, FetchOutcome, Quote
from ticker_feed.errors import SourceError
from ticker_feed.utils.logger import get_logger

T = TypeVar("T")
Attempt = Tuple[str, Callable[[], Awaitable[T]]]


class BaseQuoteAdapter(ABC):
    """Abstract base class for all quote sources."""

    def __init__(
        self,
        source: DataSource,
        instruments: InstrumentConfig,
        settings: Optional[DataSourceSettings] = None,
    ):
        self.source = source
        self.instruments = instruments
        self.settings = settings or get_settings().data
        self._session: Optional[aiohttp.ClientSession] = None
        self._closed = False
        self.log = get_logger("adapter", source=source.value)

    async def connect(self) -> None:
        """Open the HTTP session."""
        timeout = aiohttp.ClientTimeout(total=self.settings.request_timeout_seconds)
        self._session = aiohttp.ClientSession(
            timeout=timeout,
            headers={"User-Agent": self.settings.user_agent},
        )
        self._closed = False
        self.log.debug("adapter_connected")

    async def disconnect(self) -> None:
        """Close the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None
        self._closed = True
        self.log.debug("adapter_disconnected")

    @abstractmethod
    async def fetch_quotes(self) -> List[Quote]:
        """
        Fetch and normalize every configured instrument.

        Raises SourceError when the source as a whole is unusable.
        """
        pass

    async def run(self) -> List[Quote]:
        """Connect, fetch, and always release the session."""
        if not self._session:
            await self.connect()
        try:
            quotes = await self.fetch_quotes()
        finally:
            await self.disconnect()
        self.log.info("source_fetched", count=len(quotes))
        return quotes

    # --- HTTP helpers ---

    async def _get_text(
        self,
        url: str,
        params: Optional[Dict[str, str]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> str:
        """
        GET a body as text.

        Any non-2xx status, transport error, truncated payload or body that
        cannot be decoded is a SourceError. A session is opened on first use,
        but never again once the adapter has been disconnected.
        """
        if not self._session:
            if self._closed:
                raise SourceError(f"{self.source.value} session already closed, not requesting {url}")
            await self.connect()
        try:
            async with self._session.get(url, params=params, headers=headers) as resp:
                if not 200 <= resp.status < 300:
                    raise SourceError(f"{self.source.value} HTTP {resp.status} for {url}")
                return await resp.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise SourceError(f"{self.source.value} request failed for {url}: {e!r}") from e
        except (UnicodeDecodeError, LookupError) as e:
            raise SourceError(f"{self.source.value} undecodable body from {url}: {e}") from e

    async def _get_json(
        self,
        url: str,
        params: Optional[Dict[str, str]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        text = await self._get_text(url, params=params, headers=headers)
        try:
            return json.loads(text)
        except ValueError as e:
            raise SourceError(f"{self.source.value} malformed JSON from {url}: {e}") from e

    # --- Fallback and partial-failure plumbing ---

    async def _first_success(self, attempts: Sequence[Attempt], label: str) -> T:
        """Evaluate attempt strategies in order and return the first result."""
        last_error: Optional[SourceError] = None
        for name, attempt in attempts:
            try:
                return await attempt()
            except SourceError as e:
                last_error = e
                self.log.warning("source_attempt_failed", target=label, attempt=name, error=str(e))
        raise SourceError(f"{label}: all {len(attempts)} attempts failed, last error: {last_error}")

    async def _fetch_each(
        self,
        symbols: Sequence[str],
        fetch_one: Callable[[str], Awaitable[Quote]],
    ) -> List[FetchOutcome]:
        """
        Run fetch_one for every symbol with bounded concurrency.

        Any exception for one symbol becomes a failed outcome for that symbol
        only, so every task settles before the session is released. Outcomes
        keep the order of `symbols`.
        """
        semaphore = asyncio.Semaphore(max(1, self.settings.max_concurrency))

        async def guarded(symbol: str) -> FetchOutcome:
            async with semaphore:
                try:
                    return FetchOutcome.success(await fetch_one(symbol))
                except SourceError as e:
                    return FetchOutcome.failure(symbol, str(e))
                except Exception as e:
                    self.log.warning(
                        "instrument_error",
                        symbol=symbol,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                    return FetchOutcome.failure(symbol, f"{type(e).__name__}: {e}")

        return list(await asyncio.gather(*(guarded(s) for s in symbols)))

    def _collect(self, outcomes: Sequence[FetchOutcome]) -> List[Quote]:
        """Keep successful quotes, log every skipped one, drop repeated symbols."""
        quotes: List[Quote] = []
        seen = set()
        for outcome in outcomes:
            if not outcome.ok:
                self.log.warning("instrument_skipped", symbol=outcome.symbol, reason=outcome.reason)
                continue
            if outcome.quote.symbol in seen:
                self.log.debug("duplicate_symbol_dropped", symbol=outcome.quote.symbol)
                continue
            seen.add(outcome.quote.symbol)
            quotes.append(outcome.quote)
        return quotes

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(source={self.source.value})"
