"""
Configuration loading and management.
Loads settings from YAML files and environment variables.
"""

import logging
import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional
import yaml


HISTORY_MODES = ("chart", "session")
LOG_FORMATS = ("json", "text")

# Ranges whose bars fall inside one trading session
INTRADAY_RANGES = ("1d",)


@dataclass
class WatchlistConfig:
    """Which instruments to poll and how often."""
    symbols: list[str] = field(default_factory=lambda: [
        "AAPL", "GOOGL", "TSLA", "MSFT", "NVDA", "BTC-USD", "ETH-USD"
    ])
    refresh_interval_seconds: int = 30
    history_mode: str = "chart"  # "chart" or "session"
    chart_range: str = "1y"
    chart_interval: str = "1d"
    include_pre_post: bool = False
    fetch_workers: int = 1  # 1 = sequential

    @property
    def intraday(self) -> bool:
        return self.chart_range in INTRADAY_RANGES


@dataclass
class IndicatorConfig:
    """MACD periods and crossover shading."""
    fast_period: int = 12
    slow_period: int = 26
    signal_period: int = 9
    cross_saturation_pct: float = 0.5  # MACD-signal gap (% of close) for full intensity
    session_max_points: int = 0  # 0 = unbounded


@dataclass
class FeedConfig:
    """Quote feed configuration."""
    base_url: str = "https://query1.finance.yahoo.com/v8/finance/chart"
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
    )
    timeout_seconds: float = 15.0
    rate_limit_calls_per_minute: int = 120
    burst_limit: int = 10


@dataclass
class DisplayConfig:
    """Terminal output configuration."""
    color: bool = True
    clear_screen: bool = True


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "WARNING"
    format: str = "text"
    include_timestamps: bool = True


@dataclass
class Settings:
    """Main application settings container."""
    watchlist: WatchlistConfig = field(default_factory=WatchlistConfig)
    indicators: IndicatorConfig = field(default_factory=IndicatorConfig)
    feed: FeedConfig = field(default_factory=FeedConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _find_config_file() -> Optional[Path]:
    """
    Find the configuration file.

    Returns:
        Path to config file or None if not found.
    """
    env_config = os.environ.get("QUOTEWATCH_CONFIG")
    if env_config:
        path = Path(env_config)
        if path.exists():
            return path

    search_paths = [
        Path("config/config.yaml"),
        Path("config.yaml"),
        Path(__file__).parent.parent.parent / "config" / "config.yaml",
    ]

    for path in search_paths:
        if path.exists():
            return path

    return None


def _dict_to_config(data: dict, config_class, existing=None):
    """
    Convert dictionary to dataclass, preserving defaults for missing keys.

    Args:
        data: Dictionary with configuration data.
        config_class: The dataclass type to create.
        existing: Existing instance to update (optional).

    Returns:
        Instance of config_class with data applied.
    """
    if existing is None:
        existing = config_class()

    if data is None:
        return existing

    for key, value in data.items():
        if hasattr(existing, key):
            setattr(existing, key, value)

    return existing


def validate_settings(settings: Settings) -> None:
    """
    Check period constants and modes once, at load time.

    Raises:
        ValueError: If a value is out of range.
    """
    ind = settings.indicators
    if ind.fast_period < 1 or ind.slow_period < 1 or ind.signal_period < 1:
        raise ValueError("Indicator periods must be positive")
    if ind.fast_period >= ind.slow_period:
        raise ValueError("Fast period must be less than slow period")
    if ind.cross_saturation_pct <= 0:
        raise ValueError("cross_saturation_pct must be positive")
    if ind.session_max_points < 0:
        raise ValueError("session_max_points must be >= 0")

    wl = settings.watchlist
    if wl.history_mode not in HISTORY_MODES:
        raise ValueError(
            f"history_mode must be one of {HISTORY_MODES}, got {wl.history_mode!r}"
        )
    if not wl.symbols:
        raise ValueError("At least one symbol is required")
    if wl.refresh_interval_seconds < 1:
        raise ValueError("refresh_interval_seconds must be >= 1")
    if wl.fetch_workers < 1:
        raise ValueError("fetch_workers must be >= 1")

    log = settings.logging
    if not isinstance(logging.getLevelName(str(log.level).upper()), int):
        raise ValueError(f"Unknown logging level {log.level!r}")
    if str(log.format).lower() not in LOG_FORMATS:
        raise ValueError(f"logging format must be one of {LOG_FORMATS}, got {log.format!r}")

    # A session buffer shorter than the MACD window never matures.
    min_points = ind.slow_period + ind.signal_period + 1
    if 0 < ind.session_max_points < min_points:
        raise ValueError(
            f"session_max_points must be 0 or at least {min_points}"
        )


def load_settings(config_path: Optional[str] = None) -> Settings:
    """
    Load settings from configuration file and environment.

    Args:
        config_path: Optional explicit path to config file.

    Returns:
        Settings instance with loaded configuration.

    Raises:
        ValueError: If the resulting configuration is invalid.
    """
    settings = Settings()

    if config_path:
        path = Path(config_path)
    else:
        path = _find_config_file()

    if path and path.exists():
        with open(path, "r") as f:
            data = yaml.safe_load(f)

        if data:
            settings.watchlist = _dict_to_config(
                data.get("watchlist"), WatchlistConfig, settings.watchlist
            )
            settings.indicators = _dict_to_config(
                data.get("indicators"), IndicatorConfig, settings.indicators
            )
            settings.feed = _dict_to_config(
                data.get("feed"), FeedConfig, settings.feed
            )
            settings.display = _dict_to_config(
                data.get("display"), DisplayConfig, settings.display
            )
            settings.logging = _dict_to_config(
                data.get("logging"), LoggingConfig, settings.logging
            )

    _apply_env_overrides(settings)
    validate_settings(settings)

    return settings


def _apply_env_overrides(settings: Settings) -> None:
    """
    Apply environment variable overrides to settings.

    Args:
        settings: Settings instance to modify.
    """
    if symbols := os.environ.get("QUOTEWATCH_SYMBOLS"):
        settings.watchlist.symbols = [s.strip() for s in symbols.split(",") if s.strip()]

    if interval := os.environ.get("QUOTEWATCH_REFRESH_SECONDS"):
        settings.watchlist.refresh_interval_seconds = int(interval)

    if mode := os.environ.get("QUOTEWATCH_HISTORY_MODE"):
        settings.watchlist.history_mode = mode.strip().lower()

    if user_agent := os.environ.get("QUOTEWATCH_USER_AGENT"):
        settings.feed.user_agent = user_agent

    if log_level := os.environ.get("LOG_LEVEL"):
        settings.logging.level = log_level.upper()

    if log_format := os.environ.get("LOG_FORMAT"):
        settings.logging.format = log_format.lower()


# Global settings instance (lazy loaded)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get the global settings instance.

    Returns:
        Settings instance.
    """
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reload_settings(config_path: Optional[str] = None) -> Settings:
    """
    Reload settings from configuration.

    Args:
        config_path: Optional explicit path to config file.

    Returns:
        New Settings instance.
    """
    global _settings
    _settings = load_settings(config_path)
    return _settings
