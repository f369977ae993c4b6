# backend/holdings_engine/services/snapshots/types.py
"""
Internal data types for the snapshot calculator and service.

Design Principles:
- Immutable where possible (frozen=True for value objects)
- Decimal inside Money for ALL financial values (never float)
- date (not datetime) for snapshot dates
- Warnings accumulate for data quality tracking

Type Hierarchy:
    CalculatedSnapshot      - Valuation of one holding on one day
    HoldingAggregated       - Metadata + snapshot series for one holding
    HoldingsSnapshotResult  - Batch result with isolated failures
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from holdings_engine.domain.money import Money
from holdings_engine.domain.symbols import AssetClass


@dataclass(frozen=True)
class CalculatedSnapshot:
    """
    Valuation of a holding at the end of one calendar day.

    All money is in the target currency requested by the caller.

    Attributes:
        date: Calendar day
        quantity: Units held after that day's activities (negative if oversold)
        total_value: current_unit_price × quantity
        current_unit_price: Market price on the day (exact or carried forward)
        total_invested: Net amount put in: buys add, sells and sends subtract
        average_cost_price: Weighted average purchase price of units held
    """

    date: date
    quantity: Decimal
    total_value: Money
    current_unit_price: Money
    total_invested: Money
    average_cost_price: Money

    @property
    def is_oversold(self) -> bool:
        """True when more units left the holding than ever entered it."""
        return self.quantity < Decimal("0")


@dataclass
class HoldingAggregated:
    """
    Snapshot series for one holding plus the profile metadata to label it.

    Attributes:
        holding_id: Caller's identifier for the holding
        symbol: Primary profile symbol
        name: Primary profile name
        data_source: Primary profile data source
        asset_class: Primary profile asset class
        asset_sub_class: Primary profile asset sub class
        currency: Target currency of every snapshot
        activity_count: All activities of the holding, any kind
        snapshots: One entry per calendar day, oldest first
        warnings: Data quality notes (e.g., oversold dates)
    """

    holding_id: int | str | None
    symbol: str
    name: str | None
    data_source: str
    asset_class: AssetClass
    asset_sub_class: str | None
    currency: str
    activity_count: int
    snapshots: list[CalculatedSnapshot] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def latest_snapshot(self) -> CalculatedSnapshot | None:
        return self.snapshots[-1] if self.snapshots else None


@dataclass
class HoldingsSnapshotResult:
    """Result of a batch snapshot run."""

    correlation_id: str
    currency: str
    holdings: list[HoldingAggregated] = field(default_factory=list)
    skipped: list[int | str | None] = field(default_factory=list)
    failures: dict[int | str | None, str] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return len(self.failures) == 0

    @property
    def processed_count(self) -> int:
        return len(self.holdings) + len(self.skipped) + len(self.failures)
