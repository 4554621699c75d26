"""
Close price extraction from a decoded chart result.

A chart result looks like::

    {
        "meta": {"symbol": "AAPL", "chartPreviousClose": 189.3, ...},
        "timestamp": [...],
        "indicators": {"quote": [{"close": [189.9, null, 190.4, ...], ...}]}
    }

Null closes (halted or not-yet-settled buckets) are dropped, not filled.
"""

import math
from dataclasses import dataclass
from typing import Any, Optional

PREVIOUS_CLOSE_KEYS = ("previousClose", "chartPreviousClose", "regularMarketPreviousClose")


class ExtractionFailed(ValueError):
    """The chart result lacked the expected shape or had no usable closes."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


@dataclass(frozen=True)
class QuoteSummary:
    """Latest price and daily change for one instrument."""
    symbol: str
    last_close: float
    previous_close: float
    change: float
    change_percent: float
    change_percent_valid: bool
    closes: tuple[float, ...]


def is_number(value: Any) -> bool:
    """True for finite ints/floats; bools do not count."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def extract_close_prices(result: Any) -> tuple[float, ...]:
    """
    Extract valid closing prices, oldest first.

    Args:
        result: One decoded chart result (``chart.result[0]``).

    Returns:
        Tuple of closes with nulls and non-numeric entries dropped.

    Raises:
        ExtractionFailed: If ``indicators.quote[0].close`` is missing or not
            a list, or no numeric close remains.
    """
    if not isinstance(result, dict):
        raise ExtractionFailed("chart result is not an object")

    indicators = result.get("indicators")
    if not isinstance(indicators, dict):
        raise ExtractionFailed("missing indicators")

    quotes = indicators.get("quote")
    if not isinstance(quotes, list) or not quotes:
        raise ExtractionFailed("missing indicators.quote")

    quote = quotes[0]
    if not isinstance(quote, dict):
        raise ExtractionFailed("indicators.quote[0] is not an object")

    raw_closes = quote.get("close")
    if not isinstance(raw_closes, list):
        raise ExtractionFailed("close is not an array")

    closes = tuple(float(c) for c in raw_closes if is_number(c))
    if not closes:
        raise ExtractionFailed("no numeric closes")

    return closes


def previous_close_reference(meta: Any) -> Optional[float]:
    """First numeric previous-close field in the chart meta, if any."""
    if not isinstance(meta, dict):
        return None
    for key in PREVIOUS_CLOSE_KEYS:
        value = meta.get(key)
        if is_number(value):
            return float(value)
    return None


def summarize_quote(result: Any, intraday: bool = False) -> QuoteSummary:
    """
    Build the price/change summary for one chart result.

    The last close is the final extracted close. For daily bars the
    previous close is the second-to-last close; the meta fields describe
    the bar before the whole range and are only a fallback for a
    single-close response. For an intraday range (``intraday=True``) the
    closes are minute buckets of one session, so the meta fields come first.

    Raises:
        ExtractionFailed: If closes cannot be extracted, or there is no
            previous close from either source.
    """
    closes = extract_close_prices(result)

    meta = result.get("meta")
    symbol = "UNKNOWN"
    if isinstance(meta, dict) and isinstance(meta.get("symbol"), str):
        symbol = meta["symbol"]

    reference = previous_close_reference(meta)
    prior_bar = closes[-2] if len(closes) >= 2 else None

    if intraday:
        previous_close = reference if reference is not None else prior_bar
    else:
        previous_close = prior_bar if prior_bar is not None else reference

    if previous_close is None:
        raise ExtractionFailed("insufficient history")

    last_close = closes[-1]
    change = last_close - previous_close
    change_percent_valid = previous_close != 0.0
    change_percent = change / previous_close * 100.0 if change_percent_valid else 0.0

    return QuoteSummary(
        symbol=symbol,
        last_close=last_close,
        previous_close=previous_close,
        change=change,
        change_percent=change_percent,
        change_percent_valid=change_percent_valid,
        closes=closes,
    )
