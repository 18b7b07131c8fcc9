"""
Ticker Feed - Yahoo Finance Batch Quote Adapter
Batch JSON quotes with a previous-close baseline.

The endpoint is sensitive to client identity, so the configured User-Agent
matters here more than anywhere else. Attempt order: primary host batch,
alternate host batch, then one request per symbol on the primary host.
"""
from functools import partial
from typing import Any, Dict, List

from ticker_feed.config.instruments import InstrumentConfig
from ticker_feed.config.settings import DataSourceSettings
from ticker_feed.data.adapters.base import BaseQuoteAdapter
from ticker_feed.data.models import DataSource, FetchOutcome, MarketState, Quote
from ticker_feed.data.normalize import build_quote, derive_with_baseline
from ticker_feed.errors import SourceError


QUOTE_PATH = "/v7/finance/quote"


def _raw(value: Any) -> Any:
    """Unwrap {"raw": 1.23, "fmt": "1.23"} values returned by formatted responses."""
    if isinstance(value, dict):
        return value.get("raw", value.get("fmt"))
    return value


def result_rows(data: Any) -> List[Dict[str, Any]]:
    """Extract quoteResponse.result, failing on any other shape or an empty list."""
    try:
        rows = data["quoteResponse"]["result"]
    except (KeyError, TypeError) as e:
        raise SourceError(f"yahoo unexpected response shape: missing {e}") from e
    rows = [r for r in rows if isinstance(r, dict)] if isinstance(rows, list) else []
    if not rows:
        raise SourceError("yahoo returned no quotes")
    return rows


class YahooQuoteAdapter(BaseQuoteAdapter):
    """Yahoo v7 quote source for a list of ticker symbols."""

    def __init__(self, instruments: InstrumentConfig, settings: DataSourceSettings = None):
        super().__init__(source=DataSource.YAHOO, instruments=instruments, settings=settings)

    async def fetch_quotes(self) -> List[Quote]:
        symbols = list(self.instruments.yahoo_symbols)
        if not symbols:
            return []

        primary = self.settings.yahoo_base_url
        alternate = self.settings.yahoo_alternate_url
        attempts = [("primary_batch", partial(self._fetch_batch, primary, symbols))]
        if alternate:
            attempts.append(("alternate_batch", partial(self._fetch_batch, alternate, symbols)))
        attempts.append(("per_symbol", partial(self._fetch_individually, symbols)))

        return await self._first_success(attempts, label="yahoo")

    async def _fetch_batch(self, host: str, symbols: List[str]) -> List[Quote]:
        data = await self._get_json(
            f"{host.rstrip('/')}{QUOTE_PATH}",
            params={"symbols": ",".join(symbols)},
            headers={"Accept": "application/json"},
        )
        quotes = self._collect([self.parse_row(row) for row in result_rows(data)])
        if not quotes:
            raise SourceError(f"yahoo batch from {host} had no usable quotes")
        self.log.debug("yahoo_batch_done", host=host, returned=len(quotes))
        return quotes

    async def _fetch_individually(self, symbols: List[str]) -> List[Quote]:
        quotes = self._collect(await self._fetch_each(symbols, self._fetch_single))
        if not quotes:
            raise SourceError("yahoo per-symbol requests returned nothing")
        return quotes

    async def _fetch_single(self, symbol: str) -> Quote:
        data = await self._get_json(
            f"{self.settings.yahoo_base_url.rstrip('/')}{QUOTE_PATH}",
            params={"symbols": symbol},
            headers={"Accept": "application/json"},
        )
        outcome = self.parse_row(result_rows(data)[0])
        if not outcome.ok:
            raise SourceError(f"yahoo {symbol}: {outcome.reason}")
        return outcome.quote

    def parse_row(self, row: Dict[str, Any]) -> FetchOutcome:
        symbol = str(row.get("symbol") or "").strip()
        if not symbol:
            return FetchOutcome.failure("?", "row without symbol")

        derived = derive_with_baseline(
            _raw(row.get("regularMarketPrice")),
            _raw(row.get("regularMarketPreviousClose")),
            strip_symbols=True,
        )
        if derived is None:
            return FetchOutcome.failure(symbol, "no regularMarketPrice")

        price, reference = derived
        return FetchOutcome.success(
            build_quote(
                symbol=symbol,
                price=price,
                reference=reference,
                market_state=MarketState.from_upstream(row.get("marketState")),
                display_names=self.instruments.display_names,
                source_name=row.get("shortName") or row.get("longName"),
            )
        )
