# backend/tests/services/snapshots/test_snapshot_calculator.py
"""
Unit tests for SnapshotCalculator.

These tests verify the Rolling State algorithm that walks every calendar
day from the first to the last activity and values the running position.

Key Properties Tested:
1. One snapshot per calendar day, first to last activity date
2. Running quantity accumulates adjusted quantities (oversell passes through)
3. Prices: exact, carried forward, or zero
4. Currency conversion is requested for every valuation date
5. Total invested and average cost follow buys and sells
"""

from datetime import date
from decimal import Decimal

import pytest

from holdings_engine.config import settings
from holdings_engine.domain import ActivityKind, Money, StockSplit
from holdings_engine.services.adjustments import run_adjustment_pipeline
from holdings_engine.services.currency_exchange import CurrencyExchange
from holdings_engine.services.snapshots.calculator import (
    SnapshotCalculator,
    calculate_snapshots,
)
from holdings_engine.utils.date_utils import daily_range
from tests.conftest import (
    add_rate,
    create_activity,
    create_holding,
    create_profile,
    daily_prices,
    usd,
)


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def calculator(identity_exchange):
    """SnapshotCalculator with a 1:1 exchange and unbounded carry-forward."""
    return SnapshotCalculator(identity_exchange, price_lookback_days=None, precision=8)


def buy(day, quantity, price):
    return create_activity(ActivityKind.BUY_SELL, day=day, quantity=quantity, unit_price=usd(price))


def sell(day, quantity, price):
    return create_activity(ActivityKind.BUY_SELL, day=day, quantity=-quantity, unit_price=usd(price))


def adjusted_holding(profile, activities):
    holding = create_holding(profile, activities)
    run_adjustment_pipeline(holding)
    return holding


# =============================================================================
# SKIP RULES
# =============================================================================

class TestSkipRules:
    """Holdings that produce no snapshots."""

    def test_no_symbol_profile(self, calculator):
        holding = create_holding(None, [buy(date(2024, 1, 1), 1, 10)])
        assert calculator.calculate(holding, "USD") == []

    def test_no_quantity_price_activities(self, calculator):
        holding = create_holding(
            create_profile(),
            [create_activity(ActivityKind.DIVIDEND), create_activity(ActivityKind.FEE)],
        )
        assert calculator.calculate(holding, "USD") == []

    def test_no_activities(self, calculator):
        assert calculator.calculate(create_holding(create_profile(), []), "USD") == []


# =============================================================================
# SPAN & QUANTITY
# =============================================================================

class TestSpanAndQuantity:
    """Tests for the date span and the running quantity."""

    def test_one_snapshot_per_day_inclusive(self, calculator):
        profile = create_profile(prices=daily_prices(date(2024, 1, 1), [10] * 10))
        holding = adjusted_holding(profile, [
            sell(date(2024, 1, 5), 2, 10),
            buy(date(2024, 1, 1), 5, 10),
        ])

        snapshots = calculator.calculate(holding, "USD")

        assert [s.date for s in snapshots] == list(daily_range(date(2024, 1, 1), date(2024, 1, 5)))

    def test_single_activity_single_snapshot(self, calculator):
        profile = create_profile(prices={date(2024, 1, 1): Decimal("10")})
        holding = adjusted_holding(profile, [buy(date(2024, 1, 1), 5, 10)])

        snapshots = calculator.calculate(holding, "USD")

        assert len(snapshots) == 1
        assert snapshots[0].quantity == Decimal("5")

    def test_running_quantity(self, calculator):
        profile = create_profile(prices=daily_prices(date(2024, 1, 1), [10] * 5))
        holding = adjusted_holding(profile, [
            buy(date(2024, 1, 1), 10, 10),
            sell(date(2024, 1, 3), 4, 10),
            buy(date(2024, 1, 3), 1, 10),
            buy(date(2024, 1, 4), 2, 10),
        ])

        snapshots = calculator.calculate(holding, "USD")

        assert [s.quantity for s in snapshots] == [
            Decimal("10"), Decimal("10"), Decimal("7"), Decimal("9"),
        ]

    def test_cash_activities_do_not_change_quantity(self, calculator):
        profile = create_profile(prices=daily_prices(date(2024, 1, 1), [10] * 3))
        holding = adjusted_holding(profile, [
            buy(date(2024, 1, 1), 10, 10),
            create_activity(ActivityKind.DIVIDEND, day=date(2024, 1, 2)),
            buy(date(2024, 1, 3), 1, 10),
        ])

        snapshots = calculator.calculate(holding, "USD")

        assert snapshots[1].quantity == Decimal("10")

    def test_oversell_passes_through_and_is_flagged(self, calculator):
        profile = create_profile(prices=daily_prices(date(2024, 1, 1), [10] * 3))
        holding = adjusted_holding(profile, [
            buy(date(2024, 1, 1), 2, 10),
            sell(date(2024, 1, 2), 5, 10),
            buy(date(2024, 1, 3), 1, 10),
        ])

        snapshots, warnings = calculator.calculate_with_warnings(holding, "USD")

        assert snapshots[1].quantity == Decimal("-3")
        assert snapshots[1].is_oversold
        assert snapshots[1].total_value == usd(-30)
        assert snapshots[2].quantity == Decimal("-2")
        assert len(warnings) == 1
        assert "2024-01-02" in warnings[0]

    def test_extend_to_continues_series(self, calculator):
        profile = create_profile(prices=daily_prices(date(2024, 1, 1), [10, 12]))
        holding = adjusted_holding(profile, [buy(date(2024, 1, 1), 1, 10)])

        snapshots = calculator.calculate(holding, "USD", extend_to=date(2024, 1, 4))

        assert [s.date for s in snapshots][-1] == date(2024, 1, 4)
        assert snapshots[-1].current_unit_price == usd(12)

    def test_extend_to_before_last_activity_is_ignored(self, calculator):
        profile = create_profile(prices=daily_prices(date(2024, 1, 1), [10] * 3))
        holding = adjusted_holding(profile, [
            buy(date(2024, 1, 1), 1, 10),
            buy(date(2024, 1, 3), 1, 10),
        ])

        snapshots = calculator.calculate(holding, "USD", extend_to=date(2024, 1, 2))

        assert snapshots[-1].date == date(2024, 1, 3)


# =============================================================================
# PRICING
# =============================================================================

class TestPricing:
    """Tests for day price selection."""

    def test_exact_and_carried_forward_prices(self, calculator):
        profile = create_profile(prices={
            date(2024, 1, 1): Decimal("100"),
            date(2024, 1, 4): Decimal("110"),
        })
        holding = adjusted_holding(profile, [
            buy(date(2024, 1, 1), 2, 100),
            buy(date(2024, 1, 5), 1, 110),
        ])

        snapshots = calculator.calculate(holding, "USD")

        assert [s.current_unit_price for s in snapshots] == [
            usd(100), usd(100), usd(100), usd(110), usd(110),
        ]
        assert snapshots[1].total_value == usd(200)

    def test_price_carried_from_before_first_activity(self, calculator):
        profile = create_profile(prices={date(2023, 12, 1): Decimal("90")})
        holding = adjusted_holding(profile, [buy(date(2024, 1, 1), 1, 95)])

        snapshots = calculator.calculate(holding, "USD")

        assert snapshots[0].current_unit_price == usd(90)

    def test_zero_price_without_market_data(self, calculator):
        holding = adjusted_holding(create_profile(currency="EUR"), [
            create_activity(day=date(2024, 1, 1), quantity=3, unit_price=Money("EUR", 5)),
        ])

        snapshots = calculator.calculate(holding, "EUR")

        assert snapshots[0].current_unit_price == Money.zero("EUR")
        assert snapshots[0].total_value == Money.zero("EUR")

    def test_lookback_window_limits_carry_forward(self, identity_exchange):
        calculator = SnapshotCalculator(identity_exchange, price_lookback_days=1)
        profile = create_profile(prices={date(2024, 1, 1): Decimal("100")})
        holding = adjusted_holding(profile, [
            buy(date(2024, 1, 1), 1, 100),
            buy(date(2024, 1, 4), 1, 100),
        ])

        snapshots = calculator.calculate(holding, "USD")

        assert [s.current_unit_price.amount for s in snapshots] == [
            Decimal("100"), Decimal("100"), Decimal("0"), Decimal("0"),
        ]

    def test_explicit_none_lookback_ignores_settings(self, identity_exchange, monkeypatch):
        monkeypatch.setattr(settings, "price_lookback_days", 1)
        profile = create_profile(prices={date(2024, 1, 1): Decimal("100")})
        holding = adjusted_holding(profile, [
            buy(date(2024, 1, 1), 1, 100),
            buy(date(2024, 1, 4), 1, 100),
        ])

        defaulted = SnapshotCalculator(identity_exchange).calculate(holding, "USD")
        unbounded = SnapshotCalculator(identity_exchange, price_lookback_days=None).calculate(holding, "USD")

        assert defaulted[3].current_unit_price == Money.zero("USD")
        assert unbounded[3].current_unit_price == usd(100)

    def test_split_adjusted_activities_match_post_split_prices(self, calculator):
        profile = create_profile(
            prices=daily_prices(date(2024, 1, 1), [100, 100, 50, 50]),
            stock_splits=[StockSplit(date(2024, 1, 3), 1, 2)],
        )
        holding = adjusted_holding(profile, [
            buy(date(2024, 1, 1), 10, 100),
            buy(date(2024, 1, 4), 2, 50),
        ])

        snapshots = calculator.calculate(holding, "USD")

        # Whole series is in post-split units
        assert snapshots[0].quantity == Decimal("20")
        assert snapshots[0].total_invested == usd(1000)
        assert snapshots[2].total_value == usd(1000)
        assert snapshots[3].quantity == Decimal("22")


# =============================================================================
# CURRENCY CONVERSION
# =============================================================================

class TestCurrencyConversion:
    """Tests for conversion into the target currency."""

    def test_conversion_requested_for_every_day(self, calculator, identity_exchange):
        profile = create_profile(prices=daily_prices(date(2024, 1, 1), [10] * 4))
        holding = adjusted_holding(profile, [
            buy(date(2024, 1, 1), 1, 10),
            buy(date(2024, 1, 4), 1, 10),
        ])

        snapshots = calculator.calculate(holding, "EUR")

        converted_dates = {call.args[2] for call in identity_exchange.convert_money.call_args_list}
        assert converted_dates == set(daily_range(date(2024, 1, 1), date(2024, 1, 4)))
        assert all(call.args[1] == "EUR" for call in identity_exchange.convert_money.call_args_list)
        assert all(s.current_unit_price.currency == "EUR" for s in snapshots)

    def test_not_memoised_across_runs(self, calculator, identity_exchange):
        profile = create_profile(prices=daily_prices(date(2024, 1, 1), [10] * 2))
        holding = adjusted_holding(profile, [
            buy(date(2024, 1, 1), 1, 10),
            buy(date(2024, 1, 2), 1, 10),
        ])

        calculator.calculate(holding, "EUR")
        first_count = identity_exchange.convert_money.call_count
        calculator.calculate(holding, "EUR")

        assert identity_exchange.convert_money.call_count == 2 * first_count

    def test_converts_with_stored_rates(self, db, session_factory):
        add_rate(db, "USD", "EUR", date(2024, 1, 1), "0.90000000")
        add_rate(db, "USD", "EUR", date(2024, 1, 2), "0.80000000")
        exchange = CurrencyExchange(session_factory=session_factory, strict=True)
        calculator = SnapshotCalculator(exchange, precision=8)
        profile = create_profile(prices=daily_prices(date(2024, 1, 1), [100, 100]))
        holding = adjusted_holding(profile, [
            buy(date(2024, 1, 1), 10, 100),
            buy(date(2024, 1, 2), 10, 100),
        ])

        snapshots = calculator.calculate(holding, "EUR")

        assert snapshots[0].current_unit_price == Money("EUR", "90")
        assert snapshots[0].total_invested == Money("EUR", "900")
        assert snapshots[1].current_unit_price == Money("EUR", "80")
        assert snapshots[1].total_value == Money("EUR", "1600")
        assert snapshots[1].total_invested == Money("EUR", "1700")


# =============================================================================
# INVESTED & AVERAGE COST
# =============================================================================

class TestInvestedAndAverageCost:
    """Tests for total invested and average cost price."""

    def test_sell_reduces_total_invested(self, calculator):
        profile = create_profile(prices=daily_prices(date(2024, 1, 1), [100, 150]))
        holding = adjusted_holding(profile, [
            buy(date(2024, 1, 1), 10, 100),
            sell(date(2024, 1, 2), 4, 150),
        ])

        snapshots = calculator.calculate(holding, "USD")

        assert snapshots[0].total_invested == usd(1000)
        assert snapshots[1].total_invested == usd(400)
        assert snapshots[1].average_cost_price == usd(100)

    def test_average_cost_is_weighted(self, calculator):
        profile = create_profile(prices=daily_prices(date(2024, 1, 1), [100, 200]))
        holding = adjusted_holding(profile, [
            buy(date(2024, 1, 1), 10, 100),
            buy(date(2024, 1, 2), 30, 200),
        ])

        snapshots = calculator.calculate(holding, "USD")

        assert snapshots[1].average_cost_price == usd(175)

    def test_average_cost_resets_after_position_closed(self, calculator):
        profile = create_profile(prices=daily_prices(date(2024, 1, 1), [100, 100, 300]))
        holding = adjusted_holding(profile, [
            buy(date(2024, 1, 1), 5, 100),
            sell(date(2024, 1, 2), 5, 100),
            buy(date(2024, 1, 3), 2, 300),
        ])

        snapshots = calculator.calculate(holding, "USD")

        assert snapshots[1].quantity == Decimal("0")
        assert snapshots[2].average_cost_price == usd(300)

    def test_received_units_count_at_determined_price(self, calculator):
        profile = create_profile(prices=daily_prices(date(2024, 1, 1), [40, 50]))
        holding = adjusted_holding(profile, [
            buy(date(2024, 1, 1), 1, 40),
            create_activity(ActivityKind.RECEIVE, day=date(2024, 1, 2), quantity=2),
        ])

        snapshots = calculator.calculate(holding, "USD")

        assert snapshots[1].total_invested == usd(140)


# =============================================================================
# PRECISION & ENTRY POINT
# =============================================================================

class TestPrecisionAndEntryPoint:
    """Tests for quantization and the module-level entry point."""

    def test_values_are_quantized(self, identity_exchange):
        calculator = SnapshotCalculator(identity_exchange, precision=2)
        profile = create_profile(prices={date(2024, 1, 1): Decimal("3.33333")})
        holding = adjusted_holding(profile, [buy(date(2024, 1, 1), 3, "3.33333")])

        snapshot = calculator.calculate(holding, "USD")[0]

        assert snapshot.current_unit_price.amount == Decimal("3.33")
        assert snapshot.total_value.amount == Decimal("10.00")
        assert snapshot.total_value.amount.as_tuple().exponent == -2

    def test_calculate_snapshots_entry_point(self, identity_exchange):
        profile = create_profile(prices=daily_prices(date(2024, 1, 1), [10, 11]))
        holding = adjusted_holding(profile, [
            buy(date(2024, 1, 1), 1, 10),
            buy(date(2024, 1, 2), 1, 11),
        ])

        snapshots = calculate_snapshots(holding, "USD", identity_exchange)

        assert len(snapshots) == 2
        assert snapshots[-1].total_value == usd(22)
