"""
Momentum indicators computed from close series.
"""

from .ema import EMASeries, compute_ema, calculate_ema
from .macd import (
    MACDIndicator,
    MACDResult,
    MACDPercent,
    compute_macd_last_two,
    compute_macd_percent,
    cross_intensity,
    detect_crossover,
)

__all__ = [
    # EMA
    "EMASeries",
    "compute_ema",
    "calculate_ema",
    # MACD
    "MACDIndicator",
    "MACDResult",
    "MACDPercent",
    "compute_macd_last_two",
    "compute_macd_percent",
    "cross_intensity",
    "detect_crossover",
]
