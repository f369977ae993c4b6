# backend/holdings_engine/services/constants.py
"""
Centralized constants for the holding history engine.

Usage:
    from holdings_engine.services.constants import (
        KNOWN_FIXED_RATES,
        RATE_PRECISION,
        TRACE_INITIAL_VALUE,
    )
"""

import enum
from decimal import Decimal


# =============================================================================
# TRACE REASONS
# =============================================================================

# Reason recorded by the initial value strategy
TRACE_INITIAL_VALUE: str = "Initial value"

# Reason recorded when a price is determined from market data
TRACE_DETERMINE_PRICE: str = "Determine price"


# =============================================================================
# FX SETTINGS
# =============================================================================

# Default look-back for a missing FX rate (weekends, holidays)
FX_FALLBACK_DAYS: int = 7

# Stored and inverted rates keep 8 decimal places (matches Numeric(18, 8))
RATE_PRECISION: Decimal = Decimal("0.00000001")

# Pairs with a fixed relationship that never need a stored rate.
# Convention: 1 base = rate quote
KNOWN_FIXED_RATES: dict[tuple[str, str], Decimal] = {
    ("GBP", "GBp"): Decimal("100"),
    ("GBp", "GBP"): Decimal("0.01"),
    ("ZAR", "ZAc"): Decimal("100"),
    ("ZAc", "ZAR"): Decimal("0.01"),
    ("ILS", "ILA"): Decimal("100"),
    ("ILA", "ILS"): Decimal("0.01"),
}

# Minor units some exchanges quote in: minor -> (major, major amount per minor unit).
# Stored rates are looked up on the major currency.
MINOR_CURRENCY_UNITS: dict[str, tuple[str, Decimal]] = {
    "GBp": ("GBP", Decimal("0.01")),
    "ZAc": ("ZAR", Decimal("0.01")),
    "ILA": ("ILS", Decimal("0.01")),
}


# =============================================================================
# SNAPSHOT SETTINGS
# =============================================================================

# Default decimal places for snapshot quantities and money
SNAPSHOT_DECIMAL_PLACES: int = 8


# =============================================================================
# DEFAULT MARKERS
# =============================================================================

class Default(enum.Enum):
    """Marks an argument left to settings where None already means unbounded."""

    FROM_SETTINGS = "from_settings"


FROM_SETTINGS = Default.FROM_SETTINGS
