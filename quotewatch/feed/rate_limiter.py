"""
Request pacing for the chart endpoint.
A token bucket shared by all fetch workers, so a long watchlist does not
burst the quote endpoint.
"""

import threading
import time
from typing import Optional

from ..observability.logger import get_logger

logger = get_logger(__name__)


class RateLimiter:
    """
    Token bucket limiter with reservations.

    A caller reserves a token under the lock and then waits for its slot
    outside it, so other workers can reserve behind it and a stop event
    can end the wait early.
    """

    def __init__(
        self,
        calls_per_minute: int = 120,
        burst_limit: int = 10
    ):
        """
        Args:
            calls_per_minute: Sustained request rate.
            burst_limit: Requests allowed back to back after an idle period.
        """
        if calls_per_minute <= 0 or burst_limit <= 0:
            raise ValueError("calls_per_minute and burst_limit must be positive")

        self.capacity = float(burst_limit)
        self.refill_rate = calls_per_minute / 60.0  # tokens per second
        self._tokens = self.capacity
        self._updated = time.monotonic()
        self._lock = threading.Lock()

    @property
    def available(self) -> float:
        """Tokens available right now (negative while reservations queue)."""
        with self._lock:
            self._refill()
            return self._tokens

    def _refill(self) -> None:
        now = time.monotonic()
        self._tokens = min(self.capacity, self._tokens + (now - self._updated) * self.refill_rate)
        self._updated = now

    def _reserve(self) -> float:
        """Take one token and return the delay until it is usable."""
        with self._lock:
            self._refill()
            self._tokens -= 1.0
            if self._tokens >= 0:
                return 0.0
            return -self._tokens / self.refill_rate

    def _release(self) -> None:
        with self._lock:
            self._tokens = min(self.capacity, self._tokens + 1.0)

    def acquire(self, cancel: Optional[threading.Event] = None) -> Optional[float]:
        """
        Wait for a request slot.

        Args:
            cancel: Event that aborts the wait when set.

        Returns:
            Seconds waited, or None if ``cancel`` was set first. A
            cancelled reservation is handed back to the bucket.
        """
        if cancel is not None and cancel.is_set():
            return None

        delay = self._reserve()
        if delay <= 0:
            return 0.0

        logger.debug("Rate limited", delay=round(delay, 3))

        if cancel is None:
            time.sleep(delay)
        elif cancel.wait(delay):
            self._release()
            return None

        return delay
