"""
Ticker Feed - CoinGecko Crypto Adapter
One batch call to simple/price for every configured coin.
"""
from typing import Any, List, Optional

from ticker_feed.config.instruments import CoinSpec, InstrumentConfig
from ticker_feed.config.settings import DataSourceSettings
from ticker_feed.data.adapters.base import BaseQuoteAdapter
from ticker_feed.data.models import DataSource, FetchOutcome, MarketState, Quote
from ticker_feed.data.normalize import build_quote
from ticker_feed.errors import SourceError
from ticker_feed.utils.helpers import parse_number


def baseline_from_pct(price: float, pct_24h: Optional[float]) -> Optional[float]:
    """Price 24 hours ago, reconstructed from the current price and the 24h % change."""
    if pct_24h is None or pct_24h <= -100:
        return None
    return price / (1 + pct_24h / 100.0)


class CoinGeckoAdapter(BaseQuoteAdapter):
    """CoinGecko simple/price source; the whole batch succeeds or fails together."""

    def __init__(self, instruments: InstrumentConfig, settings: DataSourceSettings = None):
        super().__init__(source=DataSource.COINGECKO, instruments=instruments, settings=settings)
        self.base_url = self.settings.coingecko_base_url.rstrip("/")

    async def fetch_quotes(self) -> List[Quote]:
        coins = list(self.instruments.coins)
        if not coins:
            return []

        data = await self._get_json(
            f"{self.base_url}/simple/price",
            params={
                "ids": ",".join(c.id for c in coins),
                "vs_currencies": "usd",
                "include_24hr_change": "true",
            },
            headers={"Accept": "application/json"},
        )
        if not isinstance(data, dict):
            raise SourceError(f"coingecko unexpected response type {type(data).__name__}")

        quotes = self._collect([self._outcome(coin, data.get(coin.id)) for coin in coins])
        self.log.debug("coingecko_batch_done", requested=len(coins), returned=len(quotes))
        return quotes

    def _outcome(self, coin: CoinSpec, row: Any) -> FetchOutcome:
        if not isinstance(row, dict):
            return FetchOutcome.failure(coin.symbol, f"{coin.id} missing from response")

        price = parse_number(row.get("usd"))
        if price is None:
            return FetchOutcome.failure(coin.symbol, f"{coin.id} has no usd price")

        reference = baseline_from_pct(price, parse_number(row.get("usd_24h_change")))
        return FetchOutcome.success(
            build_quote(
                symbol=coin.symbol,
                price=price,
                reference=reference,
                market_state=MarketState.CRYPTO,
                display_names=self.instruments.display_names,
                source_name=coin.name,
            )
        )

