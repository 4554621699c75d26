"""
Unit tests for per-instrument session history.
"""

import pytest
import sys
import os
import threading

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from quotewatch.core.session import SessionHistory


class TestSessionHistory:
    """Tests for SessionHistory."""

    def test_append_returns_snapshot(self):
        history = SessionHistory()
        history.append("AAPL", 1.0)
        snapshot = history.append("AAPL", 2.0)
        assert snapshot == (1.0, 2.0)
        history.append("AAPL", 3.0)
        assert snapshot == (1.0, 2.0)  # unaffected by later appends
        assert history.series("AAPL") == (1.0, 2.0, 3.0)

    def test_symbols_are_independent(self):
        history = SessionHistory()
        history.append("AAPL", 1.0)
        history.append("MSFT", 5.0)
        assert history.series("AAPL") == (1.0,)
        assert history.series("MSFT") == (5.0,)
        assert sorted(history.symbols()) == ["AAPL", "MSFT"]

    def test_unknown_symbol_is_empty(self):
        history = SessionHistory()
        assert history.series("NOPE") == ()
        assert history.length("NOPE") == 0

    def test_unbounded_by_default(self):
        history = SessionHistory()
        for i in range(500):
            history.append("BTC-USD", float(i))
        assert history.length("BTC-USD") == 500

    def test_max_points_drops_oldest(self):
        history = SessionHistory(max_points=3)
        for price in [1.0, 2.0, 3.0, 4.0, 5.0]:
            history.append("ETH-USD", price)
        assert history.series("ETH-USD") == (3.0, 4.0, 5.0)

    def test_invalid_max_points(self):
        with pytest.raises(ValueError):
            SessionHistory(max_points=-1)

    def test_update_computes_on_new_series(self):
        history = SessionHistory()
        history.append("NVDA", 10.0)
        total = history.update("NVDA", 20.0, lambda closes: sum(closes))
        assert total == 30.0

    def test_reset_one_symbol(self):
        history = SessionHistory()
        history.append("AAPL", 1.0)
        history.append("MSFT", 2.0)
        history.reset("AAPL")
        assert history.series("AAPL") == ()
        assert history.series("MSFT") == (2.0,)

    def test_reset_all(self):
        history = SessionHistory()
        history.append("AAPL", 1.0)
        history.append("MSFT", 2.0)
        history.reset()
        assert history.length("AAPL") == 0
        assert history.length("MSFT") == 0

    def test_concurrent_appends(self):
        """Appends from many threads are all kept."""
        history = SessionHistory()

        def worker():
            for i in range(200):
                history.append("TSLA", float(i))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert history.length("TSLA") == 1600

    def test_update_is_serialized_per_symbol(self):
        """Each update sees exactly the closes appended before it."""
        history = SessionHistory()
        lengths = []

        def worker():
            for _ in range(100):
                lengths.append(history.update("GC=F", 1.0, len))

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(lengths) == list(range(1, 401))
