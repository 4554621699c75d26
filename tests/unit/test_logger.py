"""
Unit tests for structured logging.
"""

import io
import json
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from quotewatch.observability.logger import configure_logging, get_logger


class TestStructuredLogger:
    """Tests for the JSON and text formatters."""

    def test_json_carries_extra_fields(self):
        out = io.StringIO()
        configure_logging(level="DEBUG", format_type="json", stream=out)

        get_logger("quotewatch.test").quote("AAPL", 101.0, 1.0, 1.0)

        record = json.loads(out.getvalue().strip())
        assert record["level"] == "DEBUG"
        assert record["symbol"] == "AAPL"
        assert record["price"] == 101.0
        assert record["message"].startswith("QUOTE: AAPL 101.00")

    def test_text_format(self):
        out = io.StringIO()
        configure_logging(level="DEBUG", format_type="text", include_timestamps=False, stream=out)

        get_logger("quotewatch.test").indicator("MACD%", "MSFT", None)

        line = out.getvalue().strip()
        assert line.startswith("DEBUG    quotewatch.test: INDICATOR: MACD% for MSFT: N/A")
        assert "symbol=MSFT" in line

    def test_level_filtering(self):
        out = io.StringIO()
        configure_logging(level="WARNING", format_type="text", stream=out)

        log = get_logger("quotewatch.test")
        log.info("hidden")
        log.feed_error("BAD", "api_error", "Not Found")

        text = out.getvalue()
        assert "hidden" not in text
        assert "FEED: api_error for BAD - Not Found" in text
