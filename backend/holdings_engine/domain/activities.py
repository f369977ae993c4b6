# backend/holdings_engine/domain/activities.py
"""
Portfolio activities and their adjustable quantity/price component.

Activity kinds form a closed set. Kinds that move units of the
instrument (buy/sell, send, receive, gifted assets, staking rewards)
carry a QuantityPrice component; cash-only kinds (dividends, fees,
interest, deposits, withdrawals) do not. Adjustment strategies look at
the component, never at the concrete kind, with one exception: price
determination only targets kinds without an inherent price.

Type Hierarchy:
    ActivityKind          - Closed set of activity kinds
    CalculatedPriceTrace  - One explanation entry for an adjusted value
    Adjustment            - Adjusted quantity/price plus their trace
    QuantityPrice         - Raw quantity/price and the Adjustment derived from it
    Activity              - One dated event in a holding
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from holdings_engine.domain.money import Money, to_decimal
from holdings_engine.utils.date_utils import to_date


class ActivityKind(str, enum.Enum):
    BUY_SELL = "BUY_SELL"
    SEND = "SEND"
    RECEIVE = "RECEIVE"
    GIFT_ASSET = "GIFT_ASSET"
    STAKING_REWARD = "STAKING_REWARD"
    DIVIDEND = "DIVIDEND"
    FEE = "FEE"
    INTEREST = "INTEREST"
    CASH_DEPOSIT = "CASH_DEPOSIT"
    CASH_WITHDRAWAL = "CASH_WITHDRAWAL"
    GIFT_FIAT = "GIFT_FIAT"

    @property
    def has_quantity_and_price(self) -> bool:
        """True for kinds that change the number of units held."""
        return self in _QUANTITY_PRICE_KINDS

    @property
    def has_inherent_price(self) -> bool:
        """True when the broker reports the price (only trades)."""
        return self is ActivityKind.BUY_SELL


_QUANTITY_PRICE_KINDS = frozenset({
    ActivityKind.BUY_SELL,
    ActivityKind.SEND,
    ActivityKind.RECEIVE,
    ActivityKind.GIFT_ASSET,
    ActivityKind.STAKING_REWARD,
})


# =============================================================================
# TRACE & ADJUSTMENT
# =============================================================================

@dataclass(frozen=True)
class CalculatedPriceTrace:
    """
    One step in the explanation of an activity's adjusted values.

    Attributes:
        reason: Human-readable cause (e.g., "Initial value", "Stock split on ...")
        new_quantity: Adjusted quantity after this step
        new_price: Adjusted unit price after this step
    """

    reason: str
    new_quantity: Decimal | None
    new_price: Money | None

    def __str__(self) -> str:
        return f"{self.reason}: {self.new_quantity} @ {self.new_price}"


@dataclass
class Adjustment:
    """
    Adjusted quantity and unit price, together with the trace that explains them.

    The trace only ever explains the current values: it is reset at the
    start of every pipeline run and every write appends exactly one entry.
    """

    quantity: Decimal
    unit_price: Money | None
    trace: list[CalculatedPriceTrace] = field(default_factory=list)

    def reset_trace(self) -> None:
        self.trace = []

    def record(
            self,
            reason: str,
            quantity: Decimal,
            unit_price: Money | None,
    ) -> None:
        """Overwrite both adjusted values and append the matching trace entry."""
        self.quantity = quantity
        self.unit_price = unit_price
        self.trace.append(CalculatedPriceTrace(reason, quantity, unit_price))


# =============================================================================
# QUANTITY / PRICE COMPONENT
# =============================================================================

@dataclass
class QuantityPrice:
    """
    Units moved by an activity and the price paid or received per unit.

    quantity is signed: positive increases the holding (buy, receive,
    reward), negative decreases it (sell, send).

    Attributes:
        quantity: Raw quantity as reported
        unit_price: Raw unit price, None when the source reports none
        currency: Fallback currency for a zero baseline price when
            unit_price is None
        adjustment: Adjusted values and trace (derived, not an init argument)
    """

    quantity: Decimal
    unit_price: Money | None = None
    currency: str | None = None
    adjustment: Adjustment = field(init=False)

    def __post_init__(self) -> None:
        self.quantity = to_decimal(self.quantity)
        if self.currency is None and self.unit_price is not None:
            self.currency = self.unit_price.currency
        self.adjustment = Adjustment(self.quantity, self.baseline_unit_price())

    def baseline_unit_price(self, fallback_currency: str | None = None) -> Money | None:
        """Raw unit price, or zero money when the source reported none."""
        if self.unit_price is not None:
            return self.unit_price
        currency = self.currency or fallback_currency
        return Money.zero(currency) if currency else None

    @property
    def adjusted_quantity(self) -> Decimal:
        return self.adjustment.quantity

    @property
    def adjusted_unit_price(self) -> Money | None:
        return self.adjustment.unit_price

    @property
    def adjusted_unit_price_source(self) -> list[CalculatedPriceTrace]:
        return self.adjustment.trace


# =============================================================================
# ACTIVITY
# =============================================================================

@dataclass
class Activity:
    """
    One dated event in a holding's history.

    Attributes:
        kind: Closed activity kind
        date: Calendar date (datetimes are truncated to their date)
        transaction_id: Broker reference, shared by activities of one transaction
        description: Free text from the source
        quantity_price: Present exactly when kind.has_quantity_and_price
    """

    kind: ActivityKind
    date: date
    transaction_id: str = ""
    description: str | None = None
    quantity_price: QuantityPrice | None = None

    def __post_init__(self) -> None:
        self.kind = ActivityKind(self.kind)
        self.date = to_date(self.date)

        if self.kind.has_quantity_and_price and self.quantity_price is None:
            raise ValueError(f"{self.kind.value} activity requires a quantity and price")
        if not self.kind.has_quantity_and_price and self.quantity_price is not None:
            raise ValueError(f"{self.kind.value} activity cannot carry a quantity and price")

    @classmethod
    def create(
            cls,
            kind: ActivityKind | str,
            date: date | datetime,
            quantity: Decimal | int | str | None = None,
            unit_price: Money | None = None,
            currency: str | None = None,
            transaction_id: str = "",
            description: str | None = None,
    ) -> Activity:
        """
        Build an activity, attaching the quantity/price component when the kind needs one.

        Example:
            Activity.create(ActivityKind.BUY_SELL, date(2024, 1, 2), 10, Money("USD", 100))
        """
        kind = ActivityKind(kind)
        quantity_price = None
        if kind.has_quantity_and_price:
            if quantity is None:
                raise ValueError(f"{kind.value} activity requires a quantity")
            quantity_price = QuantityPrice(to_decimal(quantity), unit_price, currency)

        return cls(
            kind=kind,
            date=date,
            transaction_id=transaction_id,
            description=description,
            quantity_price=quantity_price,
        )

    @property
    def has_quantity_and_price(self) -> bool:
        return self.quantity_price is not None

    def __str__(self) -> str:
        if self.quantity_price is None:
            return f"{self.kind.value} on {self.date.isoformat()}"
        return (
            f"{self.kind.value} on {self.date.isoformat()}: "
            f"{self.quantity_price.adjusted_quantity} @ {self.quantity_price.adjusted_unit_price}"
        )
