# backend/holdings_engine/services/adjustments/__init__.py
"""
Activity adjustment package.

Usage:
    from holdings_engine.services.adjustments import run_adjustment_pipeline

    run_adjustment_pipeline(holding)

Architecture:
    adjustments/
    ├── __init__.py      # This file - package exports
    ├── strategies.py    # Reset, initial value, stock split, price determination
    └── pipeline.py      # AdjustmentPipeline (ordered orchestration)
"""

from holdings_engine.services.adjustments.pipeline import (
    AdjustmentPipeline,
    run_adjustment_pipeline,
)
from holdings_engine.services.adjustments.strategies import (
    AdjustmentStrategy,
    DeterminePriceStrategy,
    InitialValueStrategy,
    ResetTraceStrategy,
    StockSplitStrategy,
    default_strategies,
)

__all__ = [
    "AdjustmentPipeline",
    "AdjustmentStrategy",
    "DeterminePriceStrategy",
    "InitialValueStrategy",
    "ResetTraceStrategy",
    "StockSplitStrategy",
    "default_strategies",
    "run_adjustment_pipeline",
]
