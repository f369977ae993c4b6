# backend/holdings_engine/utils/context.py
"""
Run context management for the holding history engine.

Stores the correlation ID of the current calculation run so that every
log line written while processing a batch of holdings can be traced back
to that batch.

Uses Python's contextvars, so values do not leak between threads or
tasks that process holdings in parallel.

Usage:
    from holdings_engine.utils.context import get_correlation_id, set_correlation_id

    set_correlation_id("batch-abc-123")
    correlation_id = get_correlation_id()  # Returns "batch-abc-123"
"""

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

# =============================================================================
# CONTEXT VARIABLES
# =============================================================================

_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


# =============================================================================
# CORRELATION ID
# =============================================================================

def get_correlation_id() -> str | None:
    """
    Get the current run's correlation ID.

    Returns:
        The correlation ID for the current run, or None if not set.
    """
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    """
    Set the correlation ID for the current run.

    Args:
        correlation_id: Unique identifier for this run
    """
    _correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    """Clear the correlation ID."""
    _correlation_id_var.set(None)


def generate_correlation_id() -> str:
    """Return a fresh short correlation ID without setting it."""
    return uuid.uuid4().hex[:12]


@contextmanager
def correlation_scope() -> Iterator[str]:
    """
    Run a block under a correlation ID.

    Reuses the caller's correlation ID when one is set. Otherwise a fresh
    ID is set for the block and removed again when it exits, so the next
    run gets its own.

    Usage:
        with correlation_scope() as correlation_id:
            ...
    """
    existing = _correlation_id_var.get()
    if existing is not None:
        yield existing
        return

    correlation_id = generate_correlation_id()
    token = _correlation_id_var.set(correlation_id)
    try:
        yield correlation_id
    finally:
        _correlation_id_var.reset(token)
