"""
Ticker Feed - Test Configuration & Fixtures
Shared fixtures for all test modules.
"""
import pytest
from types import MappingProxyType

from ticker_feed.config.instruments import CoinSpec, InstrumentConfig
from ticker_feed.config.settings import DataSourceSettings, reset_settings


STOOQ_HEADER = "Date,Open,High,Low,Close,Volume"


def stooq_csv(*closes) -> str:
    """Build a Stooq daily CSV body with the given closes, oldest first."""
    lines = [STOOQ_HEADER]
    for i, close in enumerate(closes):
        lines.append(f"2026-10-{i + 1:02d},1,1,1,{close},1000")
    return "\r\n".join(lines) + "\r\n"


@pytest.fixture
def make_stooq_csv():
    return stooq_csv


@pytest.fixture(autouse=True)
def _fresh_settings():
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def data_settings():
    return DataSourceSettings(
        stooq_base_url="https://primary.test",
        stooq_alternate_url="https://alternate.test",
        coingecko_base_url="https://coins.test/api/v3",
        yahoo_base_url="https://query1.test",
        yahoo_alternate_url="https://query2.test",
        request_timeout_seconds=2.0,
        max_concurrency=2,
    )


@pytest.fixture
def instruments():
    return InstrumentConfig(
        stooq_symbols=("^spx", "^dax", "gc.f"),
        coins=(
            CoinSpec(id="bitcoin", symbol="BTC", name="Bitcoin"),
            CoinSpec(id="ethereum", symbol="ETH", name="Ethereum"),
        ),
        yahoo_symbols=("AAPL", "MSFT"),
        display_names=MappingProxyType({
            "^spx": "S&P 500",
            "^dax": "DAX (Germany)",
            "gc.f": "Gold",
            "msft": "Microsoft",
        }),
    )


@pytest.fixture
def output_path(tmp_path):
    return tmp_path / "bar-data.json"
