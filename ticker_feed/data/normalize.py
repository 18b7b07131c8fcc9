"""
Ticker Feed - Quote Normalization
Turns raw upstream numbers into a Quote: change derivation and display names.

Two derivation strategies exist, picked per source by what it exposes:
  * two-point: a short daily history, last close vs. the close before it
  * baseline: a single current value plus a previous-close / open field
"""
from typing import Mapping, Optional, Sequence, Tuple

from ticker_feed.data.models import MarketState, Quote
from ticker_feed.utils.helpers import parse_number, safe_divide


def compute_change(price: float, reference: Optional[float]) -> Tuple[float, float]:
    """Return (change, change_percent); both 0 when there is no usable reference."""
    if reference is None:
        return 0.0, 0.0
    change = price - reference
    return change, safe_divide(change * 100.0, reference)


def derive_two_point(closes: Sequence) -> Optional[Tuple[float, Optional[float]]]:
    """
    Price and reference from a history ordered oldest -> newest.

    Returns None when the newest close is missing or unparseable. A missing
    or unparseable previous close leaves the reference as None.
    """
    if not closes:
        return None
    price = parse_number(closes[-1])
    if price is None:
        return None
    reference = parse_number(closes[-2]) if len(closes) >= 2 else None
    return price, reference


def derive_with_baseline(price, baseline, strip_symbols: bool = False) -> Optional[Tuple[float, Optional[float]]]:
    """Price and reference from one row carrying both the value and its baseline."""
    parsed = parse_number(price, strip_symbols=strip_symbols)
    if parsed is None:
        return None
    return parsed, parse_number(baseline, strip_symbols=strip_symbols)


def resolve_display_name(
    symbol: str,
    display_names: Mapping[str, str],
    source_name: Optional[str] = None,
) -> str:
    """Lookup table first, then the source's own name, then the symbol uppercased."""
    name = display_names.get(symbol.lower())
    if name:
        return name
    if source_name and str(source_name).strip():
        return str(source_name).strip()
    return symbol.upper()


def build_quote(
    symbol: str,
    price: float,
    reference: Optional[float],
    market_state: MarketState,
    display_names: Mapping[str, str],
    source_name: Optional[str] = None,
) -> Quote:
    change, change_percent = compute_change(price, reference)
    return Quote(
        symbol=symbol,
        name=resolve_display_name(symbol, display_names, source_name),
        price=price,
        change=change,
        change_percent=change_percent,
        market_state=market_state,
    )
