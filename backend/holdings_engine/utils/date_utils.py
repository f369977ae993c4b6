# backend/holdings_engine/utils/date_utils.py
"""
Date utility functions for the holding history engine.

Activities arrive with either a date or a timezone-aware datetime, and
snapshots are produced for every calendar day. These helpers keep both
concerns in one place.

Usage:
    from holdings_engine.utils.date_utils import daily_range, to_date

    for day in daily_range(start, end):
        ...
"""

from collections.abc import Iterator
from datetime import date, datetime, timedelta


def to_date(value: date | datetime) -> date:
    """
    Normalize a date or datetime to a date.

    Args:
        value: Date or datetime (the time part is dropped)

    Returns:
        The calendar date
    """
    if isinstance(value, datetime):
        return value.date()
    return value


def daily_range(start_date: date, end_date: date) -> Iterator[date]:
    """
    Iterate every calendar day in a range (inclusive on both ends).

    Weekends and holidays are included: a holding has a value on
    every day, whether or not the market traded.

    Args:
        start_date: First date in range
        end_date: Last date in range

    Yields:
        Each date from start_date to end_date. Nothing when end < start.

    Example:
        >>> list(daily_range(date(2024, 1, 1), date(2024, 1, 3)))
        [date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 3)]
    """
    current = start_date
    while current <= end_date:
        yield current
        current += timedelta(days=1)


def days_between(earlier: date, later: date) -> int:
    """Number of calendar days from earlier to later (negative if reversed)."""
    return (later - earlier).days
