# backend/holdings_engine/services/snapshots/calculator.py
"""
Snapshot Calculator for daily holding valuation.

Turns a holding's adjusted activities and its instrument's market data
into one CalculatedSnapshot per calendar day, using the Rolling State
pattern: days and activities are both walked in date order, and each
activity is applied exactly once.

Complexity: O(D + A log A + D log M) for D days, A activities, M market data entries.

Pricing per day:
    1. Exact market data entry for the day
    2. Otherwise the most recent earlier entry (carry-forward),
       optionally limited to price_lookback_days
    3. Otherwise zero in the instrument's currency

Every monetary value goes through the currency exchange on the day it
applies to. The calculator does not memoise conversions; preload the
exchange instead.

Design Principles:
- Reads adjusted values only (run the adjustment pipeline first)
- No I/O of its own
- Anomalies (oversold positions) are passed through and flagged
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from holdings_engine.config import settings
from holdings_engine.domain.activities import Activity
from holdings_engine.domain.holding import Holding
from holdings_engine.domain.money import Money, ZERO
from holdings_engine.domain.symbols import SymbolProfile
from holdings_engine.services.constants import FROM_SETTINGS, Default
from holdings_engine.services.protocols import CurrencyExchangeProtocol
from holdings_engine.services.snapshots.types import CalculatedSnapshot
from holdings_engine.utils.date_utils import daily_range

logger = logging.getLogger(__name__)


class SnapshotCalculator:
    """
    Calculates the daily valuation series of a single holding.

    Attributes:
        _exchange: Currency conversion collaborator
        _price_lookback_days: Max days a price is carried forward (None = unbounded)
        _exponent: Quantization exponent for quantities and money
    """

    def __init__(
            self,
            currency_exchange: CurrencyExchangeProtocol,
            price_lookback_days: int | None | Default = FROM_SETTINGS,
            precision: int | None = None,
    ) -> None:
        self._exchange = currency_exchange
        self._price_lookback_days = (
            settings.price_lookback_days if price_lookback_days is FROM_SETTINGS else price_lookback_days
        )
        places = settings.snapshot_decimal_places if precision is None else precision
        self._exponent = Decimal(1).scaleb(-places)

    def calculate(
            self,
            holding: Holding,
            target_currency: str,
            extend_to: date | None = None,
    ) -> list[CalculatedSnapshot]:
        """
        Calculate one snapshot per day from the first to the last activity.

        Args:
            holding: Holding whose activities were already adjusted
            target_currency: Currency of every returned amount
            extend_to: Keep valuing the final position up to this date.
                Ignored when not after the last activity date.

        Returns:
            Snapshots in chronological order. Empty when the holding has no
            symbol profile or no quantity/price activities.
        """
        snapshots, _ = self.calculate_with_warnings(holding, target_currency, extend_to)
        return snapshots

    def calculate_with_warnings(
            self,
            holding: Holding,
            target_currency: str,
            extend_to: date | None = None,
    ) -> tuple[list[CalculatedSnapshot], list[str]]:
        """Same as calculate(), also returning data quality warnings."""
        warnings: list[str] = []

        profile = holding.primary_symbol_profile
        if profile is None:
            return [], warnings

        activities = sorted(holding.quantity_price_activities(), key=lambda a: a.date)
        if not activities:
            return [], warnings

        start_date = activities[0].date
        end_date = activities[-1].date
        if extend_to is not None and extend_to > end_date:
            end_date = extend_to

        snapshots = self._calculate_rolling(
            holding=holding,
            profile=profile,
            activities=activities,
            target_currency=target_currency,
            start_date=start_date,
            end_date=end_date,
            warnings=warnings,
        )

        logger.debug(
            f"{holding}: {len(snapshots)} snapshots from {start_date} to {end_date} "
            f"in {target_currency}"
        )
        return snapshots, warnings

    def _calculate_rolling(
            self,
            holding: Holding,
            profile: SymbolProfile,
            activities: list[Activity],
            target_currency: str,
            start_date: date,
            end_date: date,
            warnings: list[str],
    ) -> list[CalculatedSnapshot]:
        """
        Walk every day once, applying the day's activities to a rolling state.

        Args:
            activities: Quantity/price activities sorted by date
            warnings: Collector for oversold notices
        """
        snapshots: list[CalculatedSnapshot] = []

        # Rolling state
        quantity = ZERO
        total_invested = Money.zero(target_currency)
        average_cost = Money.zero(target_currency)
        oversold = False

        activity_index = 0
        num_activities = len(activities)

        for day in daily_range(start_date, end_date):
            # === PHASE 1: Apply activities dated today ===
            while activity_index < num_activities and activities[activity_index].date <= day:
                quantity_price = activities[activity_index].quantity_price
                delta = quantity_price.adjusted_quantity
                unit_price = self._exchange.convert_money(
                    quantity_price.adjusted_unit_price or Money.zero(profile.currency),
                    target_currency,
                    day,
                )

                if delta > ZERO:
                    if quantity <= ZERO or quantity + delta <= ZERO:
                        average_cost = unit_price
                    else:
                        average_cost = (
                            average_cost.times(quantity).add(unit_price.times(delta))
                        ).divide(quantity + delta)

                if delta >= ZERO:
                    total_invested = total_invested.add(unit_price.times(delta))
                else:
                    total_invested = total_invested.subtract(unit_price.times(-delta))
                quantity += delta
                activity_index += 1

            if quantity < ZERO and not oversold:
                oversold = True
                message = f"{holding} oversold on {day}: quantity {quantity}"
                warnings.append(message)
                logger.warning(message, extra={"holding_id": holding.id, "symbol": profile.symbol})
            elif quantity >= ZERO:
                oversold = False

            # === PHASE 2: Snapshot ===
            current_price = self._exchange.convert_money(
                self._market_price(profile, day),
                target_currency,
                day,
            )

            snapshots.append(CalculatedSnapshot(
                date=day,
                quantity=quantity.quantize(self._exponent),
                total_value=current_price.times(quantity).quantize(self._exponent),
                current_unit_price=current_price.quantize(self._exponent),
                total_invested=total_invested.quantize(self._exponent),
                average_cost_price=average_cost.quantize(self._exponent),
            ))

        return snapshots

    def _market_price(self, profile: SymbolProfile, day: date) -> Money:
        """Exact or carried-forward close, or zero in the instrument's currency."""
        entry = profile.price_on(day, self._price_lookback_days)
        if entry is None:
            return Money.zero(profile.currency)
        return entry.close


def calculate_snapshots(
        holding: Holding,
        target_currency: str,
        currency_exchange: CurrencyExchangeProtocol,
) -> list[CalculatedSnapshot]:
    """Entry point: daily snapshots of an adjusted holding in target_currency."""
    return SnapshotCalculator(currency_exchange).calculate(holding, target_currency)
