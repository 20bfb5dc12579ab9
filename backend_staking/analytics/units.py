"""
Unit and field parsing helpers: wei amounts, timestamps, clamping, rounding.
"""

from __future__ import annotations

import math
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

WEI_PER_ETH = 10**18

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def parse_wei(value: Any) -> int:
    """
    Parse a wei amount. Upstream sends base-10 integer strings; ints and floats
    are accepted as-is. Absent, blank or unparseable values count as 0.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    text = str(value).strip()
    if not text:
        return 0
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return int(Decimal(text))
    except (InvalidOperation, ValueError):
        return 0


def wei_to_eth(value: Any) -> float:
    """'32000000000000000000' -> 32.0"""
    return parse_wei(value) / WEI_PER_ETH


def to_float(value: Any, default: float = 0.0) -> float:
    if value is None or isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def parse_timestamp(value: Any) -> datetime | None:
    """
    Parse an ISO 8601 string ('2024-03-01', '2024-03-01T12:00:00Z'), a date,
    or Unix seconds into an aware UTC datetime. Returns None when unparseable.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def month_key(value: Any) -> str | None:
    """'2024-03-15T...' -> '2024-03'."""
    parsed = parse_timestamp(value)
    return parsed.strftime("%Y-%m") if parsed else None


def clamp(value: float, low: float = 0, high: float = 100) -> float:
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """Nearest integer with halves rounded up (72.5 -> 73), unlike round()."""
    return math.floor(value + 0.5)
