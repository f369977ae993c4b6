# backend/holdings_engine/utils/__init__.py
"""
Cross-cutting utilities for the holding history engine.

- logging: Logging configuration with correlation ID support
- context: Correlation ID storage for calculation runs
- date_utils: Calendar day iteration and date normalization

Usage:
    from holdings_engine.utils import setup_logging
    from holdings_engine.utils import get_correlation_id, set_correlation_id
    from holdings_engine.utils.date_utils import daily_range
"""

from holdings_engine.utils.context import (
    get_correlation_id,
    set_correlation_id,
    clear_correlation_id,
    correlation_scope,
    generate_correlation_id,
)
from holdings_engine.utils.logging import setup_logging

__all__ = [
    # Logging
    "setup_logging",
    # Context
    "get_correlation_id",
    "set_correlation_id",
    "clear_correlation_id",
    "correlation_scope",
    "generate_correlation_id",
]
