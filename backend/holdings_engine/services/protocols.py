# backend/holdings_engine/services/protocols.py
"""
Protocol interfaces for collaborator injection.

Using typing.Protocol enables structural subtyping:
- CurrencyExchange satisfies its protocol without inheriting from it
- Custom strategies only need a name and apply(holding)
- Test mocks work without explicit inheritance
"""

from __future__ import annotations

from datetime import date
from typing import Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from holdings_engine.domain.holding import Holding
    from holdings_engine.domain.money import Money


class CurrencyExchangeProtocol(Protocol):
    """Interface required by SnapshotCalculator."""

    def convert_money(
        self,
        money: Money,
        target_currency: str,
        on_date: date,
    ) -> Money:
        ...


class AdjustmentStrategyProtocol(Protocol):
    """Interface required by AdjustmentPipeline."""

    @property
    def name(self) -> str:
        ...

    def apply(self, holding: Holding) -> None:
        ...
