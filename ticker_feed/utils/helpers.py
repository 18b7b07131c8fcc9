"""
Ticker Feed - Common Utility Functions
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
import math
import re

_NON_NUMERIC = re.compile(r"[^0-9+\-.]")


def parse_number(value: Any, strip_symbols: bool = False) -> Optional[float]:
    """
    Permissively parse a numeric field.

    Returns None (never 0) for anything that does not yield a finite number.
    With strip_symbols, characters other than digits, signs and dots are
    removed first, so "$1,234.50" parses as 1234.5.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else None

    text = str(value).strip()
    if strip_symbols:
        text = _NON_NUMERIC.sub("", text)
    if not text:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def safe_divide(numerator: float, denominator: Optional[float], default: float = 0.0) -> float:
    """Safe division avoiding ZeroDivisionError."""
    if denominator is None or denominator == 0:
        return default
    return numerator / denominator


def fixed_offset(offset_minutes: int) -> timezone:
    """Civil timezone with a fixed UTC offset."""
    return timezone(timedelta(minutes=offset_minutes))


def format_timestamp(offset_minutes: int, now: Optional[datetime] = None) -> str:
    """
    Render a point in time as YYYY-MM-DDThh:mm:ss+HH:MM in a fixed offset.

    Naive datetimes are taken to be UTC.
    """
    moment = now or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(fixed_offset(offset_minutes)).isoformat(timespec="seconds")
