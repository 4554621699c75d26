"""
Unit tests for terminal table formatting.
"""

import io
import sys
import os
from datetime import datetime, timezone

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from quotewatch.core.monitor import QuoteRow, RowStatus
from quotewatch.display.table import (
    CLEAR_SCREEN,
    HEADER,
    REWRITE_LAST_LINE,
    crossover_background,
    format_footer,
    format_row,
    format_signed,
    format_table,
    render_countdown,
    render_table,
)
from quotewatch.indicators.macd import MACDResult
from quotewatch.quotes.extractor import QuoteSummary


def make_summary(symbol="AAPL", last=101.0, prev=100.0, pct_valid=True):
    change = last - prev
    return QuoteSummary(
        symbol=symbol,
        last_close=last,
        previous_close=prev,
        change=change,
        change_percent=change / prev * 100 if pct_valid else 0.0,
        change_percent_valid=pct_valid,
        closes=(prev, last),
    )


def ok_row(macd=None, intensity=0.0, **summary_kwargs):
    return QuoteRow(
        symbol=summary_kwargs.get("symbol", "AAPL"),
        status=RowStatus.OK,
        summary=make_summary(**summary_kwargs),
        macd=macd,
        intensity=intensity,
    )


class TestFormatRow:
    """Tests for single-row formatting."""

    def test_plain_row_without_macd(self):
        line = format_row(ok_row(), color=False)
        assert line.startswith("AAPL       | ")
        assert "101.00" in line
        assert "+      1.00" in line
        assert "+       1.00%" in line
        assert line.count("N/A") == 2
        assert "\x1b[" not in line

    def test_row_with_macd(self):
        macd = MACDResult(
            macd_last=0.5, signal_last=-0.2, macd_percent=0.495, signal_percent=-0.198,
            percent_valid=True, valid=True,
        )
        line = format_row(ok_row(macd=macd), color=False)
        assert "+0.495%" in line
        assert "-0.198%" in line
        assert "N/A" not in line

    def test_macd_percent_not_meaningful(self):
        macd = MACDResult(macd_last=0.5, signal_last=0.1, percent_valid=False, valid=True)
        line = format_row(ok_row(macd=macd), color=False)
        assert line.count("N/A") == 2

    def test_change_percent_not_meaningful(self):
        line = format_row(ok_row(last=5.0, prev=0.0, pct_valid=False), color=False)
        assert "N/A" in line

    def test_negative_change(self):
        line = format_row(ok_row(last=95.0, prev=100.0), color=False)
        assert "-      5.00" in line

    def test_colors(self):
        line = format_row(ok_row(), color=True)
        assert "\x1b[32m" in line      # green change
        assert "\x1b[42m" in line      # green price background

    def test_api_error_row(self):
        row = QuoteRow(symbol="NOPE", status=RowStatus.API_ERROR, error="No data found")
        line = format_row(row, color=False)
        assert line.startswith("NOPE")
        assert "API error: No data found" in line

    def test_fetch_error_row(self):
        row = QuoteRow(symbol="AAPL", status=RowStatus.FETCH_FAILED, error="Failed to fetch data")
        line = format_row(row, color=True)
        assert "Failed to fetch data" in line
        assert "\x1b[31m" in line

    def test_insufficient_data_row(self):
        row = QuoteRow(symbol="AAPL", status=RowStatus.NO_DATA, error="Insufficient data: no numeric closes")
        assert "Insufficient data" in format_row(row, color=False)


class TestCrossoverBackground:
    """Tests for crossover shading."""

    def test_bullish_is_green(self):
        macd = MACDResult(bullish_cross=True, valid=True)
        assert crossover_background(ok_row(macd=macd, intensity=1.0)) == "\x1b[48;2;0;225;0m"

    def test_bearish_is_red(self):
        macd = MACDResult(bearish_cross=True, valid=True)
        assert crossover_background(ok_row(macd=macd, intensity=0.25)).startswith("\x1b[48;2;")
        assert crossover_background(ok_row(macd=macd, intensity=0.25)).endswith(";0;0m")

    def test_no_cross(self):
        assert crossover_background(ok_row()) == ""

    def test_ticker_shaded_in_row(self):
        macd = MACDResult(bullish_cross=True, valid=True, percent_valid=True)
        line = format_row(ok_row(macd=macd, intensity=1.0), color=True)
        assert line.startswith("\x1b[48;2;0;225;0mAAPL")


class TestHelpers:
    """Tests for small formatting helpers."""

    def test_format_signed(self):
        assert format_signed(1.25, 5, suffix="%") == "+ 1.25%"
        assert format_signed(-1.5, 6) == "-  1.50"
        assert format_signed(0.0, 4) == "+0.00"

    def test_footer(self):
        stamp = datetime(2024, 5, 1, 12, 30, 0, tzinfo=timezone.utc)
        assert format_footer(stamp) == "Last updated: 2024-05-01 12:30:00 UTC"
        assert "every 30s" in format_footer(stamp, 30)
        assert format_footer(None).endswith("never")

    def test_table(self):
        text = format_table([ok_row(), ok_row(symbol="MSFT")], color=False)
        assert HEADER in text
        assert "AAPL" in text and "MSFT" in text

    def test_render_clears_screen(self):
        out = io.StringIO()
        render_table([ok_row()], stream=out, color=False)
        assert out.getvalue().startswith(CLEAR_SCREEN)

    def test_render_without_clear(self):
        out = io.StringIO()
        render_table([ok_row()], stream=out, color=False, clear=False)
        assert not out.getvalue().startswith(CLEAR_SCREEN)

    def test_footer_countdown(self):
        stamp = datetime(2024, 5, 1, 12, 30, 0, tzinfo=timezone.utc)
        footer = format_footer(stamp, 30, seconds_left=7)
        assert "Updating in  7s" in footer
        assert "every" not in footer

    def test_render_countdown_rewrites_footer_line(self):
        out = io.StringIO()
        render_countdown(12, stream=out)
        text = out.getvalue()
        assert text.startswith(REWRITE_LAST_LINE)
        assert text.endswith("Updating in 12s  |  Ctrl+C to quit\n")
