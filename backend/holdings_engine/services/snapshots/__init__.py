# backend/holdings_engine/services/snapshots/__init__.py
"""
Snapshot package: daily valuation series of holdings.

Usage:
    from holdings_engine.services.snapshots import calculate_snapshots

    snapshots = calculate_snapshots(holding, "EUR", currency_exchange)

Architecture:
    snapshots/
    ├── __init__.py      # This file - package exports
    ├── types.py         # CalculatedSnapshot, HoldingAggregated, batch result
    ├── calculator.py    # SnapshotCalculator (rolling state over days)
    └── service.py       # HoldingSnapshotService (pipeline + calculator, batches)

Data Flow:
    Holding → AdjustmentPipeline → adjusted activities
    Adjusted activities + market data → SnapshotCalculator → CalculatedSnapshot[]
    Snapshots + profile metadata → HoldingAggregated
"""

from holdings_engine.services.snapshots.calculator import (
    SnapshotCalculator,
    calculate_snapshots,
)
from holdings_engine.services.snapshots.service import HoldingSnapshotService
from holdings_engine.services.snapshots.types import (
    CalculatedSnapshot,
    HoldingAggregated,
    HoldingsSnapshotResult,
)

__all__ = [
    "CalculatedSnapshot",
    "HoldingAggregated",
    "HoldingSnapshotService",
    "HoldingsSnapshotResult",
    "SnapshotCalculator",
    "calculate_snapshots",
]
