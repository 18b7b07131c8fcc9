"""
Ticker Feed - Adapter Registry
Maps source names to adapter classes and builds the enabled set in order.
"""
from typing import Dict, List, Optional, Sequence, Type

from ticker_feed.config.instruments import InstrumentConfig
from ticker_feed.config.settings import DataSourceSettings
from ticker_feed.data.adapters.base import BaseQuoteAdapter
from ticker_feed.data.adapters.crypto_adapter import CoinGeckoAdapter
from ticker_feed.data.adapters.stooq_adapter import StooqDailyAdapter
from ticker_feed.data.adapters.yahoo_adapter import YahooQuoteAdapter
from ticker_feed.utils.logger import get_logger

logger = get_logger("adapter_registry")

ADAPTER_CLASSES: Dict[str, Type[BaseQuoteAdapter]] = {
    "stooq": StooqDailyAdapter,
    "coingecko": CoinGeckoAdapter,
    "yahoo": YahooQuoteAdapter,
}


def build_adapters(
    enabled: Sequence[str],
    instruments: InstrumentConfig,
    settings: Optional[DataSourceSettings] = None,
) -> List[BaseQuoteAdapter]:
    """Instantiate adapters in the order they are listed; unknown names are skipped."""
    adapters: List[BaseQuoteAdapter] = []
    for name in enabled:
        key = name.strip().lower()
        adapter_cls = ADAPTER_CLASSES.get(key)
        if adapter_cls is None:
            logger.warning("unknown_source", source=name, known=sorted(ADAPTER_CLASSES))
            continue
        adapters.append(adapter_cls(instruments=instruments, settings=settings))
    logger.info("adapters_built", sources=[a.source.value for a in adapters])
    return adapters
