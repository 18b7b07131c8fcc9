"""
Ticker Feed - Stooq Daily CSV Adapter
Keyless daily history per instrument; change is derived from the last two closes.
"""
import io
from functools import partial
from typing import List

import pandas as pd

from ticker_feed.config.instruments import InstrumentConfig
from ticker_feed.config.settings import DataSourceSettings
from ticker_feed.data.adapters.base import BaseQuoteAdapter
from ticker_feed.data.models import DataSource, MarketState, Quote
from ticker_feed.data.normalize import build_quote, derive_two_point
from ticker_feed.errors import SourceError


def parse_daily_csv(text: str) -> pd.DataFrame:
    """Parse a Stooq Date,Open,High,Low,Close,Volume body (oldest row first)."""
    body = (text or "").strip()
    if not body:
        raise SourceError("empty body")
    try:
        df = pd.read_csv(io.StringIO(body))
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise SourceError(f"unreadable CSV: {e}") from e

    df.columns = [str(c).strip().lower() for c in df.columns]
    if "close" not in df.columns:
        # Stooq answers unknown symbols with a bare "No data" line
        raise SourceError(f"no close column (got {body.splitlines()[0][:40]!r})")
    if df.empty:
        raise SourceError("no rows")
    df["close"] = pd.to_numeric(df["close"], errors="coerce")
    return df


class StooqDailyAdapter(BaseQuoteAdapter):
    """Stooq daily CSV source, one request per instrument."""

    def __init__(self, instruments: InstrumentConfig, settings: DataSourceSettings = None):
        super().__init__(source=DataSource.STOOQ, instruments=instruments, settings=settings)

    @property
    def hosts(self) -> List[str]:
        return [h for h in (self.settings.stooq_base_url, self.settings.stooq_alternate_url) if h]

    async def fetch_quotes(self) -> List[Quote]:
        symbols = list(self.instruments.stooq_symbols)
        if not symbols:
            return []
        outcomes = await self._fetch_each(symbols, self._fetch_symbol)
        quotes = self._collect(outcomes)
        self.log.debug("stooq_batch_done", requested=len(symbols), returned=len(quotes))
        return quotes

    async def _fetch_symbol(self, symbol: str) -> Quote:
        attempts = [(host, partial(self._fetch_from_host, host, symbol)) for host in self.hosts]
        return await self._first_success(attempts, label=symbol)

    async def _fetch_from_host(self, host: str, symbol: str) -> Quote:
        url = f"{host.rstrip('/')}/q/d/l/"
        text = await self._get_text(
            url,
            params={"s": symbol, "i": "d"},
            headers={"Accept": "text/csv"},
        )
        return self.parse_quote(symbol, text)

    def parse_quote(self, symbol: str, text: str) -> Quote:
        df = parse_daily_csv(text)
        derived = derive_two_point(df["close"].tolist())
        if derived is None:
            raise SourceError(f"Stooq {symbol} no close")
        price, reference = derived
        key = symbol.lower()
        return build_quote(
            symbol=key,
            price=price,
            reference=reference,
            market_state=MarketState.DAILY,
            display_names=self.instruments.display_names,
        )
