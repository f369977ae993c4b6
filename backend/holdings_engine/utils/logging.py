# backend/holdings_engine/utils/logging.py
"""
Logging configuration for the holding history engine.

This module provides centralized logging setup with:
- Log level and format taken from settings (LOG_LEVEL, LOG_FORMAT)
- Correlation ID on every record, so one batch run can be followed
- JSON format option for log aggregation
- Suppression of noisy third-party library logs

Usage:
    from holdings_engine.utils import setup_logging

    setup_logging()

Log Levels:
    DEBUG   - Per-activity decisions (price determined, split applied, rate fallback)
    INFO    - Batch summaries (holdings processed, rates preloaded)
    WARNING - Recovered anomalies (oversold holding, missing FX rate)
    ERROR   - Holding failures isolated by the batch service
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from holdings_engine.config import settings
from holdings_engine.utils.context import get_correlation_id

# =============================================================================
# CONSTANTS
# =============================================================================

# timestamp | level | correlation_id | logger_name | message
DEFAULT_TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(correlation_id)s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

NO_CORRELATION_ID = "no-correlation-id"

NOISY_LOGGERS = [
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "asyncio",
]

# Holding context promoted to top-level JSON keys when passed via extra=
CONTEXT_FIELDS = ("holding_id", "symbol", "strategy", "target_currency")

# LogRecord attributes that are not "extra" fields
_STANDARD_ATTRS = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "correlation_id", "message", "taskName",
}


# =============================================================================
# CORRELATION ID FILTER
# =============================================================================

class CorrelationIdFilter(logging.Filter):
    """
    Logging filter that adds the run's correlation ID to log records.

    Access in format string: %(correlation_id)s
    """

    def filter(self, record: logging.LogRecord) -> bool:
        correlation_id = get_correlation_id()
        record.correlation_id = correlation_id or NO_CORRELATION_ID
        return True


# =============================================================================
# JSON FORMATTER
# =============================================================================

class JsonFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Holding context passed through ``extra`` (see CONTEXT_FIELDS) is
    lifted to the top level so a log pipeline can filter one holding's
    lines across batch runs. Anything else lands under "extra".

    Output format:
    {
        "timestamp": "2024-01-15T10:30:00.123Z",
        "level": "WARNING",
        "logger": "holdings_engine.services.snapshots.calculator",
        "correlation_id": "3f2a9c1b7d4e",
        "holding_id": 42,
        "symbol": "AAPL",
        "message": "AAPL - 3 activities oversold on 2024-03-01: quantity -2",
        "extra": { ... }
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        correlation_id = getattr(record, "correlation_id", NO_CORRELATION_ID)

        log_entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "correlation_id": correlation_id,
        }

        for key in CONTEXT_FIELDS:
            if key in record.__dict__:
                log_entry[key] = _json_safe(record.__dict__[key])

        log_entry["message"] = record.getMessage()

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        extra = {
            key: _json_safe(value)
            for key, value in record.__dict__.items()
            if key not in _STANDARD_ATTRS and key not in CONTEXT_FIELDS
        }
        if extra:
            log_entry["extra"] = extra

        return json.dumps(log_entry)


def _json_safe(value: Any) -> Any:
    try:
        json.dumps(value)
        return value
    except (TypeError, ValueError):
        return str(value)



# =============================================================================
# SETUP FUNCTION
# =============================================================================

def setup_logging(
        level: str | None = None,
        log_format: str | None = None,
        suppress_noisy_loggers: bool = True,
) -> None:
    """
    Configure process-wide logging with correlation ID support.

    Call once at startup of whatever process drives the engine.

    Args:
        level: Log level name. Defaults to settings.log_level.
        log_format: 'text' or 'json'. Defaults to settings.log_format.
        suppress_noisy_loggers: Set SQLAlchemy and asyncio loggers to WARNING.

    Example:
        setup_logging(level="DEBUG", log_format="text")
    """
    log_level_str = level or settings.log_level
    log_level = _get_log_level(log_level_str)

    format_type = log_format or settings.log_format

    if format_type.lower() == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(
            fmt=DEFAULT_TEXT_FORMAT,
            datefmt=DEFAULT_DATE_FORMAT,
        )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.addFilter(CorrelationIdFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    if suppress_noisy_loggers:
        _suppress_noisy_loggers()

    logger = logging.getLogger(__name__)
    logger.info(
        f"Logging configured: level={log_level_str}, format={format_type}",
        extra={"config": {"level": log_level_str, "format": format_type}},
    )


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def _get_log_level(level_str: str) -> int:
    """
    Convert string log level to logging constant.

    Raises:
        ValueError: If level_str is not a valid log level
    """
    level_str = level_str.upper().strip()

    level_mapping = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "WARN": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }

    if level_str not in level_mapping:
        valid_levels = ", ".join(level_mapping.keys())
        raise ValueError(
            f"Invalid log level: '{level_str}'. "
            f"Valid levels are: {valid_levels}"
        )

    return level_mapping[level_str]


def _suppress_noisy_loggers() -> None:
    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

