# backend/holdings_engine/services/adjustments/strategies.py
"""
Adjustment strategies.

Each strategy is a stateless object with apply(holding) that rewrites
the adjusted quantity/price of the holding's activities and appends
one trace entry per change. Strategies never touch the raw quantity
or unit price, so the whole pipeline can be re-run at any time.

Strategies (in pipeline order):
    ResetTraceStrategy      - Clear traces left by a previous run
    InitialValueStrategy    - Copy raw quantity/price into the adjusted fields
    StockSplitStrategy      - Restate pre-split activities in post-split units
    DeterminePriceStrategy  - Price transfers and rewards from market data
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from holdings_engine.config import settings
from holdings_engine.domain.holding import Holding
from holdings_engine.services.constants import (
    FROM_SETTINGS,
    TRACE_DETERMINE_PRICE,
    TRACE_INITIAL_VALUE,
    Default,
)

logger = logging.getLogger(__name__)


class AdjustmentStrategy(ABC):
    """Base class for strategies run by AdjustmentPipeline."""

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    def apply(self, holding: Holding) -> None:
        """Adjust the holding's activities in place."""

    def __repr__(self) -> str:
        return f"<{self.name}>"


# =============================================================================
# TRACE RESET
# =============================================================================

class ResetTraceStrategy(AdjustmentStrategy):
    """Empty every trace; adjusted values are left for InitialValueStrategy."""

    def apply(self, holding: Holding) -> None:
        for activity in holding.quantity_price_activities():
            activity.quantity_price.adjustment.reset_trace()


# =============================================================================
# INITIAL VALUE
# =============================================================================

class InitialValueStrategy(AdjustmentStrategy):
    """
    Establish the baseline: adjusted values equal the raw values.

    A missing unit price becomes zero in the activity's own currency,
    or in the primary profile's currency when the activity has none.
    """

    def apply(self, holding: Holding) -> None:
        profile = holding.primary_symbol_profile
        fallback_currency = profile.currency if profile is not None else None

        for activity in holding.quantity_price_activities():
            quantity_price = activity.quantity_price
            quantity_price.adjustment.record(
                TRACE_INITIAL_VALUE,
                quantity_price.quantity,
                quantity_price.baseline_unit_price(fallback_currency),
            )


# =============================================================================
# STOCK SPLIT
# =============================================================================

class StockSplitStrategy(AdjustmentStrategy):
    """
    Restate activities dated before a split in post-split units.

    For a split from_amount -> to_amount with ratio = from/to:
        adjusted_unit_price *= ratio
        adjusted_quantity   /= ratio

    Splits are applied oldest first and compound: an activity before
    two splits is adjusted twice. Activities on or after the split date
    are already in post-split units.

    Example:
        2-for-1 split (1 -> 2) after buying 10 @ 100:
        adjusted = 20 @ 50, total value unchanged
    """

    def apply(self, holding: Holding) -> None:
        profile = holding.primary_symbol_profile
        if profile is None or not profile.stock_splits:
            return

        activities = holding.quantity_price_activities()
        for split in profile.splits_in_order():
            reason = str(split)
            adjusted_count = 0

            for activity in activities:
                if activity.date >= split.date:
                    continue

                # Multiply before dividing so 1 -> 3 splits stay exact
                adjustment = activity.quantity_price.adjustment
                new_price = (
                    adjustment.unit_price.times(split.from_amount).divide(split.to_amount)
                    if adjustment.unit_price is not None
                    else None
                )
                new_quantity = adjustment.quantity * split.to_amount / split.from_amount
                adjustment.record(reason, new_quantity, new_price)
                adjusted_count += 1

            logger.debug(f"{holding}: {reason} adjusted {adjusted_count} activities")


# =============================================================================
# PRICE DETERMINATION
# =============================================================================

class DeterminePriceStrategy(AdjustmentStrategy):
    """
    Price activities whose source reports no price.

    Sends, receives, gifted assets and staking rewards move units without
    a trade price. They take the close price of the primary profile on
    their date, or the most recent earlier close within the look-back
    window. Trades (buy/sell) are never repriced.

    Attributes:
        _max_lookback_days: Oldest acceptable close, in days before the
            activity date. None accepts any earlier close. Left out, it
            comes from settings.price_lookback_days.
    """

    def __init__(self, max_lookback_days: int | None | Default = FROM_SETTINGS) -> None:
        self._max_lookback_days = (
            settings.price_lookback_days if max_lookback_days is FROM_SETTINGS else max_lookback_days
        )

    def apply(self, holding: Holding) -> None:
        profile = holding.primary_symbol_profile
        if profile is None or not profile.market_data:
            return

        for activity in holding.quantity_price_activities():
            if activity.kind.has_inherent_price:
                continue

            entry = profile.price_on(activity.date, self._max_lookback_days)
            if entry is None:
                logger.debug(
                    f"{holding}: no market data to price {activity.kind.value} "
                    f"on {activity.date}, keeping baseline"
                )
                continue

            adjustment = activity.quantity_price.adjustment
            adjustment.record(TRACE_DETERMINE_PRICE, adjustment.quantity, entry.close)


def default_strategies() -> list[AdjustmentStrategy]:
    """Fresh instances of the standard strategies, in pipeline order."""
    return [
        ResetTraceStrategy(),
        InitialValueStrategy(),
        StockSplitStrategy(),
        DeterminePriceStrategy(),
    ]
