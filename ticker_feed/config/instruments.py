"""
Ticker Feed - Instrument Universe
Static instrument lists and the symbol -> display name table shown on the bar.
"""
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Tuple


@dataclass(frozen=True)
class CoinSpec:
    """A coin as the crypto API knows it (id) and as the bar shows it."""
    id: str
    symbol: str
    name: str


@dataclass(frozen=True)
class InstrumentConfig:
    """Immutable instrument universe, built once at startup and handed to adapters."""
    stooq_symbols: Tuple[str, ...] = ()
    coins: Tuple[CoinSpec, ...] = ()
    yahoo_symbols: Tuple[str, ...] = ()
    display_names: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))


STOOQ_SYMBOLS: Tuple[str, ...] = (
    "^spx",    # S&P 500
    "^ndx",    # NASDAQ 100
    "^kospi",
    "^nkx",    # Nikkei 225
    "^hsi",    # Hang Seng
    "^dax",
    "x.f",     # FTSE 100 futures
    "gc.f",    # Gold futures
)

COINS: Tuple[CoinSpec, ...] = (
    CoinSpec(id="bitcoin", symbol="BTC", name="Bitcoin"),
    CoinSpec(id="ethereum", symbol="ETH", name="Ethereum"),
)

YAHOO_SYMBOLS: Tuple[str, ...] = ("AAPL", "MSFT", "NVDA", "SPY", "QQQ")

# Keys are lowercase; lookups lowercase the symbol first
DISPLAY_NAMES = {
    "^spx": "S&P 500",
    "^ndx": "NASDAQ 100",
    "^kospi": "KOSPI (Korea)",
    "^nkx": "Nikkei 225",
    "^hsi": "Hang Seng",
    "^dax": "DAX (Germany)",
    "x.f": "FTSE 100",
    "gc.f": "Gold",
    "spy": "S&P 500 ETF",
    "qqq": "NASDAQ 100 ETF",
}


def default_instruments() -> InstrumentConfig:
    """Build the compiled-in instrument universe."""
    return InstrumentConfig(
        stooq_symbols=STOOQ_SYMBOLS,
        coins=COINS,
        yahoo_symbols=YAHOO_SYMBOLS,
        display_names=MappingProxyType({k.lower(): v for k, v in DISPLAY_NAMES.items()}),
    )
