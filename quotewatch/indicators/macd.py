"""
Moving Average Convergence Divergence (MACD) indicator.

MACD measures the relationship between two EMAs of price.
Standard configuration: MACD = EMA(12) - EMA(26), Signal = EMA(9) of MACD.

The MACD line starts where the slow EMA is seeded (index slow - 1), so
only matured values of both EMAs are ever subtracted. Crossovers compare
the last two matured MACD/signal pairs:

- bullish: MACD was at or below signal and is now strictly above
- bearish: MACD was at or above signal and is now strictly below

A tie on the latest pair counts as neither.
"""

import math
from dataclasses import dataclass
from typing import Optional, Sequence

from .ema import compute_ema

FAST_PERIOD = 12
SLOW_PERIOD = 26
SIGNAL_PERIOD = 9


@dataclass(frozen=True)
class MACDResult:
    """MACD calculation result for the latest two observations."""
    macd_last: float = 0.0
    macd_prev: float = 0.0
    signal_last: float = 0.0
    signal_prev: float = 0.0
    macd_percent: float = 0.0     # MACD as % of the reference close
    signal_percent: float = 0.0   # Signal as % of the reference close
    percent_valid: bool = False   # False when the reference close was zero
    bullish_cross: bool = False
    bearish_cross: bool = False
    valid: bool = False           # False when there was not enough data

    @property
    def histogram(self) -> float:
        """MACD - Signal (momentum strength)."""
        return self.macd_last - self.signal_last

    @property
    def crossover(self) -> str:
        """'bullish', 'bearish', or 'neutral'."""
        if self.bullish_cross:
            return "bullish"
        if self.bearish_cross:
            return "bearish"
        return "neutral"


INSUFFICIENT_DATA = MACDResult()


@dataclass(frozen=True)
class MACDPercent:
    """
    Present MACD and signal values as a percentage of a close.

    ``valid`` says there was enough data; ``percent_valid`` says the
    reference close was non-zero so the percents mean something.
    """
    macd_percent: float = 0.0
    signal_percent: float = 0.0
    percent_valid: bool = False
    valid: bool = False


def detect_crossover(
    macd_prev: float,
    signal_prev: float,
    macd_last: float,
    signal_last: float
) -> tuple[bool, bool]:
    """
    Detect a MACD/signal crossover between two consecutive observations.

    Returns:
        (bullish, bearish). At most one is True.
    """
    bullish = macd_prev <= signal_prev and macd_last > signal_last
    bearish = macd_prev >= signal_prev and macd_last < signal_last
    return bullish, bearish


def percent_of(value: float, reference: float) -> Optional[float]:
    """value / reference * 100, or None when the reference is zero."""
    if reference == 0.0:
        return None
    return value / reference * 100.0


class MACDIndicator:
    """
    MACD indicator over a close series.

    MACD Line = EMA(fast_period) - EMA(slow_period)
    Signal Line = EMA(signal_period) of MACD Line
    Histogram = MACD Line - Signal Line

    Stateless: every call recomputes from the full series it is given.
    """

    def __init__(
        self,
        fast_period: int = FAST_PERIOD,
        slow_period: int = SLOW_PERIOD,
        signal_period: int = SIGNAL_PERIOD
    ):
        if fast_period < 1 or slow_period < 1 or signal_period < 1:
            raise ValueError("MACD periods must be positive")
        if fast_period >= slow_period:
            raise ValueError("Fast period must be less than slow period")
        self.fast_period = fast_period
        self.slow_period = slow_period
        self.signal_period = signal_period

    @property
    def min_points_last_two(self) -> int:
        """Closes needed for two matured signal values."""
        return self.slow_period + self.signal_period + 1

    @property
    def min_points_percent(self) -> int:
        """Closes needed for the present MACD/signal value."""
        return self.slow_period + self.signal_period

    def macd_line(self, closes: Sequence[float]) -> list[float]:
        """
        MACD values from the slow EMA seed onward.

        Returns:
            List of len(closes) - (slow - 1) values, or [] if the slow
            EMA never matures.
        """
        ema_fast = compute_ema(closes, self.fast_period)
        ema_slow = compute_ema(closes, self.slow_period)
        if not ema_slow.is_defined():
            return []

        start = self.slow_period - 1
        return [
            ema_fast.values[i] - ema_slow.values[i]
            for i in range(start, len(closes))
        ]

    def calculate_last_two(
        self,
        closes: Sequence[float],
        last_close: Optional[float] = None
    ) -> MACDResult:
        """
        Calculate the last two MACD/signal pairs, percents and crossovers.

        Args:
            closes: Closing prices, oldest first.
            last_close: Reference price for the percent fields. Defaults
                to the final close.

        Returns:
            MACDResult; ``valid`` is False if there was insufficient data.
        """
        if len(closes) < self.min_points_last_two:
            return INSUFFICIENT_DATA

        macd_values = self.macd_line(closes)
        if len(macd_values) < self.signal_period + 1:
            return INSUFFICIENT_DATA

        signal_values = compute_ema(macd_values, self.signal_period).values

        macd_last = macd_values[-1]
        macd_prev = macd_values[-2]
        signal_last = signal_values[-1]
        signal_prev = signal_values[-2]

        bullish, bearish = detect_crossover(
            macd_prev, signal_prev, macd_last, signal_last
        )

        reference = closes[-1] if last_close is None else last_close
        macd_pct = percent_of(macd_last, reference)
        signal_pct = percent_of(signal_last, reference)
        percent_valid = macd_pct is not None

        return MACDResult(
            macd_last=macd_last,
            macd_prev=macd_prev,
            signal_last=signal_last,
            signal_prev=signal_prev,
            macd_percent=macd_pct if percent_valid else 0.0,
            signal_percent=signal_pct if percent_valid else 0.0,
            percent_valid=percent_valid,
            bullish_cross=bullish,
            bearish_cross=bearish,
            valid=True,
        )

    def calculate_percent(
        self,
        closes: Sequence[float],
        last_close: Optional[float] = None
    ) -> MACDPercent:
        """
        Present MACD and signal as a percentage of the reference close.

        Needs one point fewer than calculate_last_two and skips crossover
        detection. A zero reference close yields a valid result with
        ``percent_valid=False`` and zero percents.
        """
        if len(closes) < self.min_points_percent:
            return MACDPercent()

        macd_values = self.macd_line(closes)
        if len(macd_values) < self.signal_period:
            return MACDPercent()

        signal_last = compute_ema(macd_values, self.signal_period).last

        reference = closes[-1] if last_close is None else last_close
        if reference == 0.0:
            return MACDPercent(valid=True)

        return MACDPercent(
            macd_percent=macd_values[-1] / reference * 100.0,
            signal_percent=signal_last / reference * 100.0,
            percent_valid=True,
            valid=True,
        )


def compute_macd_last_two(
    closes: Sequence[float],
    fast_period: int = FAST_PERIOD,
    slow_period: int = SLOW_PERIOD,
    signal_period: int = SIGNAL_PERIOD,
    last_close: Optional[float] = None
) -> MACDResult:
    """Convenience function to calculate the last two MACD/signal pairs."""
    indicator = MACDIndicator(fast_period, slow_period, signal_period)
    return indicator.calculate_last_two(closes, last_close=last_close)


def compute_macd_percent(
    closes: Sequence[float],
    fast_period: int = FAST_PERIOD,
    slow_period: int = SLOW_PERIOD,
    signal_period: int = SIGNAL_PERIOD,
    last_close: Optional[float] = None
) -> MACDPercent:
    """Convenience function to calculate present MACD/signal percents."""
    indicator = MACDIndicator(fast_period, slow_period, signal_period)
    return indicator.calculate_percent(closes, last_close=last_close)


def cross_intensity(
    result: MACDResult,
    last_close: float,
    saturation_pct: float = 0.5
) -> float:
    """
    Strength of a crossover for shading, in [0.25, 1.0].

    The MACD-signal gap as a percentage of ``last_close`` is scaled
    against ``saturation_pct``; a gap at or beyond it gives full
    intensity. Returns 0.0 when there is no crossover to shade.
    """
    if not result.valid or result.crossover == "neutral" or last_close == 0.0:
        return 0.0

    gap_pct = math.fabs(result.histogram / last_close) * 100.0
    t = min(max(gap_pct / saturation_pct, 0.0), 1.0)
    return 0.25 + 0.75 * t
