"""
Quote feed: chart API client and request rate limiting.
"""

from .rate_limiter import RateLimiter
from .yahoo_client import ChartAPIError, FeedError, YahooChartClient, chart_result

__all__ = [
    "RateLimiter",
    "ChartAPIError",
    "FeedError",
    "YahooChartClient",
    "chart_result",
]
