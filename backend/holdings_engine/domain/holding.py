# backend/holdings_engine/domain/holding.py
"""Holding: one instrument's activities plus the symbol profiles that describe it."""

from __future__ import annotations

from dataclasses import dataclass, field

from holdings_engine.domain.activities import Activity
from holdings_engine.domain.symbols import SymbolProfile


@dataclass
class Holding:
    """
    A position in one instrument, reconstructed from its activities.

    The first entry of symbol_profiles is authoritative for prices,
    splits and currency. Which activities belong to a holding is decided
    upstream.

    Attributes:
        id: Identifier assigned by the caller
        symbol_profiles: Candidate profiles, first one wins
        activities: Every activity of the holding, any kind
    """

    id: int | str | None = None
    symbol_profiles: list[SymbolProfile] = field(default_factory=list)
    activities: list[Activity] = field(default_factory=list)

    @property
    def primary_symbol_profile(self) -> SymbolProfile | None:
        return self.symbol_profiles[0] if self.symbol_profiles else None

    def quantity_price_activities(self) -> list[Activity]:
        """Activities that move units, in their stored order."""
        return [activity for activity in self.activities if activity.has_quantity_and_price]

    def __str__(self) -> str:
        profile = self.primary_symbol_profile
        symbol = profile.symbol if profile is not None else "UNKNOWN"
        return f"{symbol} - {len(self.activities)} activities"
