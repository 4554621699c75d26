"""
Yahoo Finance chart API client.
Fetches one instrument's quote history per request and unwraps the
chart envelope.
"""

import json
import threading
import urllib.parse
from typing import Any, Optional

import requests

from ..config.settings import FeedConfig, WatchlistConfig
from ..observability.logger import get_logger
from .rate_limiter import RateLimiter

logger = get_logger(__name__)


class FeedError(Exception):
    """Transport, HTTP or decoding failure talking to the quote feed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ChartAPIError(FeedError):
    """The feed answered but reported an error (e.g. unknown symbol)."""

    def __init__(
        self,
        description: str,
        code: Optional[str] = None,
        status_code: Optional[int] = None
    ):
        super().__init__(description, status_code)
        self.description = description
        self.code = code


def _chart_error(chart: Any, status_code: Optional[int] = None) -> Optional[ChartAPIError]:
    """Build a ChartAPIError from ``chart.error`` if the feed sent one."""
    error = chart.get("error") if isinstance(chart, dict) else None
    if not isinstance(error, dict):
        return None
    description = error.get("description")
    code = error.get("code")
    return ChartAPIError(
        description if isinstance(description, str) else "Invalid ticker or no data",
        code=code if isinstance(code, str) else None,
        status_code=status_code
    )


def chart_result(payload: Any) -> dict:
    """
    Return ``chart.result[0]`` from a decoded chart response.

    Raises:
        ChartAPIError: If the result array is missing or empty. The error
            carries the feed's own description when it sent one.
    """
    chart = payload.get("chart") if isinstance(payload, dict) else None
    results = chart.get("result") if isinstance(chart, dict) else None

    if not isinstance(results, list) or not results or not isinstance(results[0], dict):
        raise _chart_error(chart) or ChartAPIError("Invalid ticker or no data")

    return results[0]


class YahooChartClient:
    """
    Quote-history client for the v8 chart endpoint.

    One request per symbol per poll, no retries: a failed poll is shown
    as an error row and the next refresh tries again.
    """

    def __init__(
        self,
        feed: Optional[FeedConfig] = None,
        watchlist: Optional[WatchlistConfig] = None,
        rate_limiter: Optional[RateLimiter] = None,
        session: Optional[requests.Session] = None,
        cancel: Optional[threading.Event] = None
    ):
        """
        Initialize the client.

        Args:
            feed: Endpoint, user agent and timeout settings.
            watchlist: Chart range/interval settings.
            rate_limiter: Shared limiter. If None, built from ``feed``.
            session: requests session (injected by tests).
            cancel: Stop event; once set, requests waiting on the rate
                limiter give up instead of sleeping out their slot.
        """
        self.feed = feed or FeedConfig()
        self.watchlist = watchlist or WatchlistConfig()
        self._cancel = cancel

        self._rate_limiter = rate_limiter or RateLimiter(
            calls_per_minute=self.feed.rate_limit_calls_per_minute,
            burst_limit=self.feed.burst_limit
        )

        # Session for connection pooling
        self._session = session or requests.Session()
        self._session.headers.update({
            "User-Agent": self.feed.user_agent,
            "Accept": "application/json",
        })

        logger.debug(
            "Chart client initialized",
            base_url=self.feed.base_url,
            chart_range=self.watchlist.chart_range,
            chart_interval=self.watchlist.chart_interval
        )

    def chart_url(self, symbol: str) -> str:
        """Build the chart URL for a symbol (e.g. ``^GSPC``, ``GC=F``)."""
        params = urllib.parse.urlencode({
            "range": self.watchlist.chart_range,
            "interval": self.watchlist.chart_interval,
            "includePrePost": "true" if self.watchlist.include_pre_post else "false",
        })
        quoted = urllib.parse.quote(symbol, safe="")
        return f"{self.feed.base_url.rstrip('/')}/{quoted}?{params}"

    def fetch(self, url: str) -> bytes:
        """
        GET a URL and return the raw body.

        Raises:
            FeedError: On connection failure, timeout, HTTP error status, or
                when the stop event fires while waiting for a request slot.
        """
        if self._rate_limiter.acquire(cancel=self._cancel) is None:
            raise FeedError("Request cancelled")

        try:
            response = self._session.get(url, timeout=self.feed.timeout_seconds)
        except requests.RequestException as e:
            raise FeedError(f"Request failed: {e}") from e

        if response.status_code >= 400:
            # Unknown symbols come back as 404 with a chart.error body.
            try:
                payload = response.json()
            except ValueError:
                payload = None
            chart = payload.get("chart") if isinstance(payload, dict) else None
            error = _chart_error(chart, status_code=response.status_code)
            if error is not None:
                raise error
            raise FeedError(
                f"HTTP {response.status_code} from chart endpoint",
                status_code=response.status_code
            )

        return response.content

    def get_chart(self, symbol: str) -> dict:
        """
        Fetch and decode one symbol's chart response.

        Returns:
            The decoded JSON document.

        Raises:
            FeedError: On transport failure or invalid JSON.
        """
        body = self.fetch(self.chart_url(symbol))
        try:
            payload = json.loads(body)
        except ValueError as e:
            raise FeedError(f"Invalid JSON from chart endpoint: {e}") from e

        logger.debug("Chart fetched", symbol=symbol, size=len(body))
        return payload

    def get_chart_result(self, symbol: str) -> dict:
        """Fetch one symbol and return its ``chart.result[0]`` object."""
        return chart_result(self.get_chart(symbol))

    def close(self) -> None:
        """Close the HTTP session."""
        self._session.close()

    def __enter__(self) -> "YahooChartClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
