# backend/holdings_engine/domain/__init__.py
"""
Domain types for the holding history engine.

These are plain dataclasses, not ORM models: holdings, activities and
symbol profiles are loaded upstream and handed to the engine in memory.

Usage:
    from holdings_engine.domain import Activity, ActivityKind, Holding, Money
"""

from holdings_engine.domain.activities import (
    Activity,
    ActivityKind,
    Adjustment,
    CalculatedPriceTrace,
    QuantityPrice,
)
from holdings_engine.domain.holding import Holding
from holdings_engine.domain.money import Money
from holdings_engine.domain.symbols import (
    AssetClass,
    MarketData,
    StockSplit,
    SymbolProfile,
)

__all__ = [
    "Activity",
    "ActivityKind",
    "Adjustment",
    "AssetClass",
    "CalculatedPriceTrace",
    "Holding",
    "MarketData",
    "Money",
    "QuantityPrice",
    "StockSplit",
    "SymbolProfile",
]
