#!/usr/bin/env python3
"""
quotewatch - Main Entry Point

A terminal stock dashboard that:
- Polls the Yahoo Finance chart API for a watchlist of symbols
- Shows price, daily change and percent change
- Adds MACD%/Signal% momentum columns and highlights crossovers
"""

import argparse
import signal
import sys
from typing import Optional

import yaml
from dotenv import load_dotenv

from quotewatch.config.settings import (
    Settings,
    get_settings,
    reload_settings,
    validate_settings,
)
from quotewatch.core.monitor import QuoteMonitor
from quotewatch.display.table import render_countdown, render_table
from quotewatch.observability.logger import configure_logging, get_logger


def setup_signal_handlers(monitor: QuoteMonitor) -> None:
    """Setup signal handlers for graceful shutdown."""

    def handle_signal(signum, frame):
        logger = get_logger("main")
        logger.info(f"Received signal {signum}, initiating shutdown")
        monitor.stop()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)


def show_config(settings: Settings) -> None:
    """Display current configuration."""
    print("=== Current Configuration ===\n")

    wl = settings.watchlist
    print("[Watchlist]")
    print(f"  Symbols: {', '.join(wl.symbols)}")
    print(f"  Refresh Interval: {wl.refresh_interval_seconds}s")
    print(f"  History Mode: {wl.history_mode}")
    print(f"  Chart: range={wl.chart_range} interval={wl.chart_interval} prepost={wl.include_pre_post}")
    print(f"  Fetch Workers: {wl.fetch_workers}")

    ind = settings.indicators
    print("\n[Indicators]")
    print(f"  MACD: {ind.fast_period}/{ind.slow_period}/{ind.signal_period}")
    print(f"  Cross Saturation: {ind.cross_saturation_pct}%")
    print(f"  Session Max Points: {ind.session_max_points or 'unbounded'}")

    print("\n[Feed]")
    print(f"  Base URL: {settings.feed.base_url}")
    print(f"  Timeout: {settings.feed.timeout_seconds}s")
    print(f"  Rate Limit: {settings.feed.rate_limit_calls_per_minute} calls/min")

    print("\n[Logging]")
    print(f"  Level: {settings.logging.level}")
    print(f"  Format: {settings.logging.format}")


def run_monitor(settings: Settings, iterations: Optional[int] = None) -> int:
    """
    Run the dashboard.

    Args:
        settings: Loaded settings.
        iterations: Number of polls before exiting (None = until stopped).

    Returns:
        Exit code.
    """
    logger = get_logger("main")

    monitor = QuoteMonitor(settings=settings)
    setup_signal_handlers(monitor)

    # The countdown rewrites the footer in place, so only on a redrawn screen
    live = settings.display.clear_screen and iterations != 1

    def render(rows):
        render_table(
            rows,
            last_update=monitor.last_update,
            refresh_seconds=settings.watchlist.refresh_interval_seconds,
            color=settings.display.color,
            clear=live
        )

    def countdown(seconds_left):
        render_countdown(seconds_left, last_update=monitor.last_update)

    try:
        monitor.run(render=render, iterations=iterations, countdown=countdown if live else None)
        return 0
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        return 1


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Terminal stock dashboard with MACD momentum",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                        # Run with config/config.yaml
  python main.py --once                 # Single refresh, then exit
  python main.py --symbols AAPL,NVDA    # Override the watchlist
  python main.py --mode session         # MACD from polls collected this run
  python main.py --show-config          # Show configuration
        """
    )

    parser.add_argument("--config", "-c", help="Path to configuration file")
    parser.add_argument("--symbols", help="Comma-separated symbols (overrides config)")
    parser.add_argument(
        "--mode",
        choices=["chart", "session"],
        help="History source for MACD (overrides config)"
    )
    parser.add_argument("--once", action="store_true", help="Poll once and exit")
    parser.add_argument("--iterations", type=int, help="Number of refreshes before exiting")
    parser.add_argument("--no-color", action="store_true", help="Disable ANSI colors")
    parser.add_argument("--show-config", action="store_true", help="Show current configuration")

    args = parser.parse_args()

    load_dotenv()

    try:
        settings = reload_settings(args.config) if args.config else get_settings()
    except (ValueError, OSError, yaml.YAMLError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    if args.symbols:
        settings.watchlist.symbols = [s.strip() for s in args.symbols.split(",") if s.strip()]
    if args.mode:
        settings.watchlist.history_mode = args.mode
    if args.no_color:
        settings.display.color = False

    try:
        validate_settings(settings)
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    configure_logging(
        level=settings.logging.level,
        format_type=settings.logging.format,
        include_timestamps=settings.logging.include_timestamps
    )

    if args.show_config:
        show_config(settings)
        return 0

    iterations = 1 if args.once else args.iterations
    return run_monitor(settings, iterations=iterations)


if __name__ == "__main__":
    sys.exit(main())
