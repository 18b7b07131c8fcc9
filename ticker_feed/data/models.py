"""
Ticker Feed - Data Models
Canonical shapes shared by every adapter, the aggregator and the writer.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from enum import Enum
import json


class DataSource(str, Enum):
    STOOQ = "stooq"
    COINGECKO = "coingecko"
    YAHOO = "yahoo"


class MarketState(str, Enum):
    """Freshness / class of a quote. Informational only."""
    DAILY = "DAILY"
    REGULAR = "REGULAR"
    PRE = "PRE"
    POST = "POST"
    CLOSED = "CLOSED"
    CRYPTO = "CRYPTO"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_upstream(cls, value: Optional[str]) -> "MarketState":
        if not value:
            return cls.UNKNOWN
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return cls.UNKNOWN


class Quote(BaseModel):
    """One instrument's latest price and derived change, as written to the bar file."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    symbol: str
    name: str
    price: float = Field(allow_inf_nan=False)
    change: float = Field(default=0.0, allow_inf_nan=False)
    change_percent: float = Field(default=0.0, alias="changePercent", allow_inf_nan=False)
    market_state: MarketState = Field(default=MarketState.UNKNOWN, alias="marketState")


class FetchOutcome(BaseModel):
    """Per-instrument result: a quote, or the reason there is none."""
    symbol: str
    quote: Optional[Quote] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.quote is not None

    @classmethod
    def success(cls, quote: Quote) -> "FetchOutcome":
        return cls(symbol=quote.symbol, quote=quote)

    @classmethod
    def failure(cls, symbol: str, reason: str) -> "FetchOutcome":
        return cls(symbol=symbol, reason=reason)


class FeedPayload(BaseModel):
    """The whole bar file."""
    model_config = ConfigDict(populate_by_name=True)

    generated_at: str = Field(alias="generatedAt")
    items: List[Quote] = Field(default_factory=list)

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False) + "\n"
