# backend/holdings_engine/__init__.py
"""
Holding history engine.

Rebuilds a day-by-day valuation history of a holding from its raw
activities:

    run_adjustment_pipeline(holding)
    snapshots = calculate_snapshots(holding, "EUR", currency_exchange)
"""

__version__ = "0.1.0"
