"""
Quote monitor.
Polls each watched symbol, derives price change and MACD momentum,
and hands display rows to a renderer.
"""

import math
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from ..config.settings import Settings, get_settings
from ..feed.yahoo_client import ChartAPIError, FeedError, YahooChartClient
from ..indicators.macd import MACDIndicator, MACDResult, cross_intensity
from ..observability.logger import get_logger
from ..quotes.extractor import ExtractionFailed, QuoteSummary, summarize_quote
from .session import SessionHistory

logger = get_logger(__name__)


class RowStatus(Enum):
    """Outcome of polling one symbol."""
    OK = "ok"
    FETCH_FAILED = "fetch_failed"  # network / HTTP / JSON failure
    API_ERROR = "api_error"        # feed rejected the symbol
    NO_DATA = "no_data"            # response had no usable closes


@dataclass
class QuoteRow:
    """One display row."""
    symbol: str
    status: RowStatus
    summary: Optional[QuoteSummary] = None
    macd: Optional[MACDResult] = None
    intensity: float = 0.0
    error: str = ""

    @property
    def has_macd(self) -> bool:
        return self.macd is not None and self.macd.valid


class QuoteMonitor:
    """
    Polling orchestrator.

    In "chart" mode MACD is computed from the closes in each response.
    In "session" mode each poll appends the latest close to a
    per-symbol session buffer and MACD is computed from that buffer.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[YahooChartClient] = None,
        session: Optional[SessionHistory] = None
    ):
        """
        Initialize the monitor.

        Args:
            settings: Application settings. If None, loaded from config.
            client: Chart client. If None, created from settings.
            session: Session history. If None, a new empty one.
        """
        self.settings = settings or get_settings()
        self._stop_event = threading.Event()

        self.client = client or YahooChartClient(
            feed=self.settings.feed,
            watchlist=self.settings.watchlist,
            cancel=self._stop_event
        )

        ind = self.settings.indicators
        self.indicator = MACDIndicator(
            fast_period=ind.fast_period,
            slow_period=ind.slow_period,
            signal_period=ind.signal_period
        )
        self.session = session or SessionHistory(max_points=ind.session_max_points)

        self.last_update: Optional[datetime] = None
        self.cycles = 0

        logger.info(
            "Monitor initialized",
            symbols=self.settings.watchlist.symbols,
            history_mode=self.settings.watchlist.history_mode,
            periods=f"{ind.fast_period}/{ind.slow_period}/{ind.signal_period}"
        )

    @property
    def symbols(self) -> list[str]:
        return self.settings.watchlist.symbols

    def poll_symbol(self, symbol: str) -> QuoteRow:
        """
        Poll one symbol.

        Feed and extraction failures become error rows rather than
        exceptions, so one bad symbol never stops the refresh.
        """
        try:
            result = self.client.get_chart_result(symbol)
            summary = summarize_quote(result, intraday=self.settings.watchlist.intraday)
        except ChartAPIError as e:
            logger.feed_error(symbol, "api_error", e.description, code=e.code)
            return QuoteRow(symbol=symbol, status=RowStatus.API_ERROR, error=e.description)
        except FeedError as e:
            logger.feed_error(symbol, "fetch_failed", str(e), status_code=e.status_code)
            return QuoteRow(symbol=symbol, status=RowStatus.FETCH_FAILED, error="Failed to fetch data")
        except ExtractionFailed as e:
            logger.feed_error(symbol, "no_data", e.reason)
            return QuoteRow(symbol=symbol, status=RowStatus.NO_DATA, error=f"Insufficient data: {e.reason}")

        logger.quote(
            summary.symbol,
            summary.last_close,
            summary.change,
            summary.change_percent
        )

        macd = self._compute_macd(symbol, summary)
        intensity = cross_intensity(
            macd,
            summary.last_close,
            saturation_pct=self.settings.indicators.cross_saturation_pct
        )

        logger.indicator(
            "macd",
            summary.symbol,
            macd.macd_last if macd.valid else None,
            signal=macd.signal_last if macd.valid else None,
            crossover=macd.crossover
        )

        return QuoteRow(
            symbol=symbol,
            status=RowStatus.OK,
            summary=summary,
            macd=macd,
            intensity=intensity
        )

    def _compute_macd(self, symbol: str, summary: QuoteSummary) -> MACDResult:
        if self.settings.watchlist.history_mode == "session":
            return self.session.update(
                symbol,
                summary.last_close,
                lambda closes: self.indicator.calculate_last_two(
                    closes, last_close=summary.last_close
                )
            )

        return self.indicator.calculate_last_two(
            summary.closes, last_close=summary.last_close
        )

    def poll_once(self) -> list[QuoteRow]:
        """Poll every symbol once; rows keep watchlist order."""
        workers = min(self.settings.watchlist.fetch_workers, len(self.symbols))

        if workers <= 1:
            rows = [self.poll_symbol(symbol) for symbol in self.symbols]
        else:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                rows = list(pool.map(self.poll_symbol, self.symbols))

        self.last_update = datetime.now(timezone.utc)
        self.cycles += 1

        failed = sum(1 for row in rows if row.status != RowStatus.OK)
        logger.info("Poll complete", cycle=self.cycles, symbols=len(rows), failed=failed)
        return rows

    def run(
        self,
        render: Optional[Callable[[list[QuoteRow]], None]] = None,
        iterations: Optional[int] = None,
        countdown: Optional[Callable[[int], None]] = None
    ) -> None:
        """
        Run the polling loop until stopped.

        Args:
            render: Called with the rows after every poll.
            iterations: Stop after this many polls (None = forever).
            countdown: Called once a second between polls with the whole
                seconds left until the next one.
        """
        self._stop_event.clear()
        logger.info("Starting polling loop")

        try:
            while not self._stop_event.is_set():
                rows = self.poll_once()
                if self._stop_event.is_set():
                    break
                if render:
                    render(rows)

                if iterations is not None and self.cycles >= iterations:
                    break

                self._wait_for_next_poll(countdown)

        except KeyboardInterrupt:
            logger.info("Received shutdown signal")
        finally:
            self._shutdown()

    def _wait_for_next_poll(self, countdown: Optional[Callable[[int], None]]) -> None:
        deadline = time.monotonic() + self.settings.watchlist.refresh_interval_seconds
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return
            if countdown:
                countdown(math.ceil(remaining))
            if self._stop_event.wait(min(1.0, remaining)):
                return

    def stop(self) -> None:
        """Signal the polling loop to stop."""
        logger.info("Stop requested")
        self._stop_event.set()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def _shutdown(self) -> None:
        self.client.close()
        logger.info("Monitor stopped", cycles=self.cycles)
