# backend/holdings_engine/services/__init__.py
"""
Service layer for the holding history engine.

Services:
- Raise domain-specific exceptions
- Receive collaborators through their constructors
- Are easily testable via dependency injection

Usage:
    from holdings_engine.services.adjustments import run_adjustment_pipeline
    from holdings_engine.services.snapshots import HoldingSnapshotService
    from holdings_engine.services.currency_exchange import CurrencyExchange
    from holdings_engine.services import FXRateNotFoundError

Architecture:
    services/
    ├── __init__.py              # This file - exception exports
    ├── exceptions.py            # Domain exceptions
    ├── constants.py             # Trace reasons, fixed FX pairs, precision
    ├── protocols.py             # Collaborator interfaces (Protocol classes)
    ├── currency_exchange.py     # SQLAlchemy-backed currency conversion
    ├── adjustments/             # Adjustment strategies and pipeline
    └── snapshots/               # Daily snapshot calculator and batch service

Only exceptions are exported here: the domain package imports them,
and the subpackages import the domain package.
"""

from holdings_engine.services.exceptions import (
    ServiceError,
    ValidationError,
    CurrencyMismatchError,
    AdjustmentError,
    FXRateError,
    FXRateNotFoundError,
    FXConversionError,
)

__all__ = [
    "ServiceError",
    "ValidationError",
    "CurrencyMismatchError",
    "AdjustmentError",
    "FXRateError",
    "FXRateNotFoundError",
    "FXConversionError",
]
