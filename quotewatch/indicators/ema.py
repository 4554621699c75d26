"""
Exponential Moving Average (EMA) series.

EMA gives more weight to recent prices:
    EMA[i] = (price[i] - EMA[i-1]) * k + EMA[i-1]
    k = 2 / (period + 1)

The series is seeded with the simple average of the first `period`
values, placed at index period - 1. Seeding with the first value alone
gives different early-window values, so changing the seed changes every
downstream MACD number.
"""

from dataclasses import dataclass
from typing import Optional, Sequence


@dataclass(frozen=True)
class EMASeries:
    """
    EMA values aligned index-for-index with their source series.

    Indices before ``seed_index`` hold None: they are not defined and
    must not be read as prices.
    """
    period: int
    values: tuple[Optional[float], ...]

    @property
    def seed_index(self) -> int:
        return self.period - 1

    def __len__(self) -> int:
        return len(self.values)

    def is_defined(self) -> bool:
        """True when the source was long enough to produce a seed."""
        return bool(self.values) and self.values[-1] is not None

    def defined(self) -> list[float]:
        """Matured values only, from the seed onward."""
        if not self.is_defined():
            return []
        return list(self.values[self.seed_index:])

    @property
    def last(self) -> Optional[float]:
        return self.values[-1] if self.values else None


def compute_ema(series: Sequence[float], period: int) -> EMASeries:
    """
    Calculate an EMA series from values.

    Args:
        series: Values, oldest first.
        period: EMA period.

    Returns:
        EMASeries of the same length as ``series``. When ``period`` is not
        positive or exceeds the series length every entry is undefined.

    Raises:
        ValueError: If period is not an integer.
    """
    if isinstance(period, bool) or not isinstance(period, int):
        raise ValueError(f"EMA period must be an integer, got {period!r}")

    n = len(series)
    if period < 1 or period > n:
        return EMASeries(period=period, values=(None,) * n)

    k = 2.0 / (period + 1)
    values: list[Optional[float]] = [None] * (period - 1)

    ema = sum(series[:period]) / period
    values.append(ema)

    for i in range(period, n):
        ema = (series[i] - ema) * k + ema
        values.append(ema)

    return EMASeries(period=period, values=tuple(values))


def calculate_ema(prices: Sequence[float], period: int) -> Optional[float]:
    """
    Calculate the most recent EMA value.

    Args:
        prices: List of closing prices.
        period: EMA period.

    Returns:
        EMA value or None if insufficient data.
    """
    return compute_ema(prices, period).last
