"""
Terminal table formatting for quote rows.

Columns: Ticker | Price | Change | % Change | MACD% | Signal%
"""

import sys
from datetime import datetime
from typing import Optional, Sequence, TextIO

from ..core.monitor import QuoteRow, RowStatus

RESET = "\x1b[0m"
RED = "\x1b[31m"
GREEN = "\x1b[32m"
YELLOW = "\x1b[33m"
BLUE = "\x1b[34m"
BG_RED = "\x1b[41m"
BG_GREEN = "\x1b[42m"
CLEAR_SCREEN = "\x1b[2J\x1b[H"
REWRITE_LAST_LINE = "\x1b[1A\r\x1b[K"

TITLE = "--- Terminal Stock Dashboard ---"
HEADER = f"{'Ticker':<10} | {'Price':>11} | {'Change':>11} | {'% Change':>13} | {'MACD%':>10} | {'Signal%':>10}"
RULE = "-" * len(HEADER)

# Truecolor range for crossover shading
SHADE_FLOOR = 30
SHADE_PEAK = 225


def _paint(text: str, code: str, color: bool) -> str:
    if not color or not code:
        return text
    return f"{code}{text}{RESET}"


def _sign_color(value: float) -> str:
    return GREEN if value >= 0 else RED


def crossover_background(row: QuoteRow) -> str:
    """Truecolor background for a ticker cell on a crossover, else ''."""
    if not row.has_macd or row.intensity <= 0.0:
        return ""
    level = SHADE_FLOOR + int((SHADE_PEAK - SHADE_FLOOR) * row.intensity)
    if row.macd.bullish_cross:
        return f"\x1b[48;2;0;{level};0m"
    if row.macd.bearish_cross:
        return f"\x1b[48;2;{level};0;0m"
    return ""


def format_signed(value: float, width: int, decimals: int = 2, suffix: str = "") -> str:
    """Explicit sign followed by the magnitude, e.g. '+     1.25%'."""
    sign = "+" if value >= 0 else "-"
    return f"{sign}{abs(value):{width}.{decimals}f}{suffix}"


def format_error_row(row: QuoteRow, color: bool = True) -> str:
    if row.status == RowStatus.API_ERROR:
        message = f"API error: {row.error}"
    else:
        message = row.error or "Unknown error"
    return f"{row.symbol:<10} | {_paint(f'{message:<60}', RED, color)}"


def format_row(row: QuoteRow, color: bool = True) -> str:
    """Format one row; failed polls render as an error line."""
    if row.status != RowStatus.OK or row.summary is None:
        return format_error_row(row, color)

    s = row.summary
    ticker = f"{s.symbol:<10}"
    if color:
        background = crossover_background(row)
        if background:
            ticker = f"{background}{ticker}{RESET}"

    price = f"{s.last_close:11.2f}"
    if color:
        price_bg = BG_GREEN if s.change > 0 else BG_RED if s.change < 0 else ""
        price = f"{price_bg}{BLUE}{price}{RESET}"

    change = _paint(format_signed(s.change, 10), _sign_color(s.change), color)

    if s.change_percent_valid:
        pct = _paint(
            format_signed(s.change_percent, 11, suffix="%"),
            _sign_color(s.change_percent),
            color
        )
    else:
        pct = f"{'N/A':>13}"

    if row.has_macd and row.macd.percent_valid:
        macd_cell = _paint(
            f"{row.macd.macd_percent:+9.3f}%",
            _sign_color(row.macd.macd_percent),
            color
        )
        signal_cell = _paint(
            f"{row.macd.signal_percent:+9.3f}%",
            _sign_color(row.macd.signal_percent),
            color
        )
    else:
        macd_cell = f"{'N/A':>10}"
        signal_cell = f"{'N/A':>10}"

    return f"{ticker} | {price} | {change} | {pct} | {macd_cell} | {signal_cell}"


def format_footer(
    last_update: Optional[datetime],
    refresh_seconds: Optional[int] = None,
    seconds_left: Optional[int] = None
) -> str:
    stamp = last_update.strftime("%Y-%m-%d %H:%M:%S %Z").strip() if last_update else "never"
    footer = f"Last updated: {stamp}"
    if seconds_left is not None:
        footer = f"{footer}  |  Updating in {seconds_left:2d}s  |  Ctrl+C to quit"
    elif refresh_seconds:
        footer = f"{footer}  |  Updating every {refresh_seconds}s  |  Ctrl+C to quit"
    return footer


def format_table(
    rows: Sequence[QuoteRow],
    last_update: Optional[datetime] = None,
    refresh_seconds: Optional[int] = None,
    color: bool = True
) -> str:
    lines = [TITLE, "", HEADER, RULE]
    lines.extend(format_row(row, color) for row in rows)
    lines.append(RULE)
    lines.append(format_footer(last_update, refresh_seconds))
    return "\n".join(lines) + "\n"


def render_table(
    rows: Sequence[QuoteRow],
    stream: Optional[TextIO] = None,
    last_update: Optional[datetime] = None,
    refresh_seconds: Optional[int] = None,
    color: bool = True,
    clear: bool = True
) -> None:
    """Write the table to ``stream`` (stdout by default)."""
    out = stream or sys.stdout
    if clear:
        out.write(CLEAR_SCREEN)
    out.write(format_table(rows, last_update, refresh_seconds, color))
    out.flush()


def render_countdown(
    seconds_left: int,
    stream: Optional[TextIO] = None,
    last_update: Optional[datetime] = None
) -> None:
    """Rewrite the footer line of a table already on screen."""
    out = stream or sys.stdout
    out.write(f"{REWRITE_LAST_LINE}{format_footer(last_update, seconds_left=seconds_left)}\n")
    out.flush()
