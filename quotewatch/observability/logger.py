"""
Structured logging for the quote monitor.
Supports JSON and text formats; output goes to stderr so the
terminal table on stdout stays intact.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable text formatter for development."""

    def __init__(self, include_timestamps: bool = True):
        super().__init__()
        self.include_timestamps = include_timestamps

    def format(self, record: logging.LogRecord) -> str:
        base = f"{record.levelname:8} {record.name}: {record.getMessage()}"
        if self.include_timestamps:
            timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
            base = f"[{timestamp}] {base}"

        if hasattr(record, "extra_fields") and record.extra_fields:
            extras = " | ".join(f"{k}={v}" for k, v in record.extra_fields.items())
            base = f"{base} | {extras}"

        if record.exc_info:
            base = f"{base}\n{self.formatException(record.exc_info)}"

        return base


class StructuredLogger:
    """
    Wrapper around standard logger with structured logging support.
    """

    def __init__(self, name: str, logger: logging.Logger):
        self._name = name
        self._logger = logger

    @property
    def name(self) -> str:
        return self._name

    def _log(self, level: int, msg: str, **kwargs) -> None:
        """Log with optional extra fields."""
        if not self._logger.isEnabledFor(level):
            return
        record = self._logger.makeRecord(
            self._name, level, "", 0, msg, (), None
        )
        if kwargs:
            record.extra_fields = kwargs
        self._logger.handle(record)

    def debug(self, msg: str, **kwargs) -> None:
        self._log(logging.DEBUG, msg, **kwargs)

    def info(self, msg: str, **kwargs) -> None:
        self._log(logging.INFO, msg, **kwargs)

    def warning(self, msg: str, **kwargs) -> None:
        self._log(logging.WARNING, msg, **kwargs)

    def error(self, msg: str, **kwargs) -> None:
        self._log(logging.ERROR, msg, **kwargs)

    def critical(self, msg: str, **kwargs) -> None:
        self._log(logging.CRITICAL, msg, **kwargs)

    def quote(
        self,
        symbol: str,
        price: float,
        change: float,
        change_percent: float,
        **kwargs
    ) -> None:
        """Log a refreshed quote."""
        self.debug(
            f"QUOTE: {symbol} {price:.2f} ({change:+.2f}, {change_percent:+.2f}%)",
            symbol=symbol,
            price=price,
            change=change,
            change_percent=change_percent,
            **kwargs
        )

    def indicator(
        self,
        name: str,
        symbol: str,
        value: Optional[float],
        **kwargs
    ) -> None:
        """Log an indicator value (None when not available)."""
        self.debug(
            f"INDICATOR: {name} for {symbol}: {value if value is not None else 'N/A'}",
            indicator=name,
            symbol=symbol,
            value=value,
            **kwargs
        )

    def feed_error(self, symbol: str, kind: str, details: str, **kwargs) -> None:
        """Log a per-symbol feed or extraction failure."""
        self.warning(
            f"FEED: {kind} for {symbol} - {details}",
            symbol=symbol,
            kind=kind,
            **kwargs
        )


# Logger registry
_loggers: dict[str, StructuredLogger] = {}
_configured = False


def configure_logging(
    level: str = "INFO",
    format_type: str = "json",
    include_timestamps: bool = True,
    stream=None
) -> None:
    """
    Configure the logging system.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        format_type: "json" or "text".
        include_timestamps: Whether text output carries timestamps.
        stream: Output stream, stderr by default.
    """
    global _configured

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(getattr(logging, level.upper()))

    if format_type.lower() == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(TextFormatter(include_timestamps=include_timestamps))

    root_logger.addHandler(handler)

    _configured = True


def get_logger(name: str) -> StructuredLogger:
    """
    Get or create a structured logger.

    Args:
        name: Logger name (typically module name).

    Returns:
        StructuredLogger instance.
    """
    global _configured

    if not _configured:
        configure_logging()

    if name not in _loggers:
        _loggers[name] = StructuredLogger(name, logging.getLogger(name))

    return _loggers[name]
