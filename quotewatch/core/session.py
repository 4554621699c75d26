"""
Per-instrument close history collected across polls.

Owned by the caller (the monitor), never module-global. Each symbol has
its own lock so append and recompute are serialized per instrument while
different instruments proceed in parallel.
"""

import threading
from contextlib import contextmanager
from typing import Callable, Iterator, Optional, TypeVar

T = TypeVar("T")


class SessionHistory:
    """Growable close series keyed by symbol."""

    def __init__(self, max_points: int = 0):
        """
        Args:
            max_points: Keep at most this many closes per symbol, dropping
                the oldest. 0 means unbounded.
        """
        if max_points < 0:
            raise ValueError("max_points must be >= 0")
        self.max_points = max_points
        self._series: dict[str, list[float]] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, symbol: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(symbol)
            if lock is None:
                lock = self._locks[symbol] = threading.Lock()
                self._series[symbol] = []
            return lock

    @contextmanager
    def locked(self, symbol: str) -> Iterator[list[float]]:
        """
        Hold the symbol's lock and yield its mutable buffer.

        Use this to append and recompute as one step.
        """
        with self._lock_for(symbol):
            yield self._series[symbol]

    def _trim(self, buffer: list[float]) -> None:
        if self.max_points and len(buffer) > self.max_points:
            del buffer[:len(buffer) - self.max_points]

    def append(self, symbol: str, price: float) -> tuple[float, ...]:
        """Append one close and return a snapshot of the series."""
        return self.update(symbol, price, lambda closes: closes)

    def update(
        self,
        symbol: str,
        price: float,
        compute: Callable[[tuple[float, ...]], T]
    ) -> T:
        """
        Append one close and run ``compute`` on the new series while the
        symbol is still locked.
        """
        with self.locked(symbol) as buffer:
            buffer.append(float(price))
            self._trim(buffer)
            return compute(tuple(buffer))

    def series(self, symbol: str) -> tuple[float, ...]:
        """Snapshot of a symbol's closes (empty if never seen)."""
        with self.locked(symbol) as buffer:
            return tuple(buffer)

    def length(self, symbol: str) -> int:
        with self.locked(symbol) as buffer:
            return len(buffer)

    def symbols(self) -> list[str]:
        with self._registry_lock:
            return list(self._series)

    def reset(self, symbol: Optional[str] = None) -> None:
        """Clear one symbol's history, or all of it."""
        if symbol is not None:
            with self.locked(symbol) as buffer:
                buffer.clear()
            return

        for name in self.symbols():
            with self.locked(name) as buffer:
                buffer.clear()
