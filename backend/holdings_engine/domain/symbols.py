# backend/holdings_engine/domain/symbols.py
"""
Instrument metadata: symbol profiles, market data and stock splits.

A SymbolProfile is read-only input to the engine. Its market data and
stock splits are populated upstream by whatever fetches prices; the
engine only looks things up.
"""

from __future__ import annotations

import bisect
import enum
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from holdings_engine.domain.money import Money, ZERO, to_decimal
from holdings_engine.utils.date_utils import days_between, to_date


class AssetClass(str, enum.Enum):
    EQUITY = "EQUITY"
    ETF = "ETF"
    FIXED_INCOME = "FIXED_INCOME"
    COMMODITY = "COMMODITY"
    REAL_ESTATE = "REAL_ESTATE"
    LIQUIDITY = "LIQUIDITY"
    CRYPTO = "CRYPTO"
    UNDEFINED = "UNDEFINED"


# =============================================================================
# STOCK SPLIT
# =============================================================================

@dataclass(frozen=True)
class StockSplit:
    """
    Corporate action exchanging from_amount old units for to_amount new units.

    A 2-for-1 forward split is StockSplit(day, 1, 2): every unit held
    before `date` becomes two units at half the price.

    Attributes:
        date: Effective date; activities strictly before it are adjusted
        from_amount: Old units (positive)
        to_amount: New units (positive)
    """

    date: date
    from_amount: Decimal
    to_amount: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "date", to_date(self.date))
        object.__setattr__(self, "from_amount", to_decimal(self.from_amount))
        object.__setattr__(self, "to_amount", to_decimal(self.to_amount))
        if self.from_amount <= ZERO or self.to_amount <= ZERO:
            raise ValueError(
                f"Stock split amounts must be positive, got {self.from_amount} -> {self.to_amount}"
            )

    @property
    def ratio(self) -> Decimal:
        """Price multiplier for pre-split activities (quantity is divided by it)."""
        return self.from_amount / self.to_amount

    def __str__(self) -> str:
        return (
            f"Stock split on {self.date.isoformat()} "
            f"[{_plain(self.from_amount)}] -> [{_plain(self.to_amount)}]"
        )


def _plain(value: Decimal) -> str:
    """Render 2, 2.0 and 2.00 alike, without exponent notation."""
    if value == value.to_integral_value():
        return str(value.quantize(Decimal("1")))
    return format(value.normalize(), "f")


# =============================================================================
# MARKET DATA
# =============================================================================

@dataclass(frozen=True)
class MarketData:
    """One day of prices for an instrument, in the instrument's currency."""

    date: date
    close: Money
    open: Money | None = None
    high: Money | None = None
    low: Money | None = None
    trading_volume: Decimal = ZERO

    def __post_init__(self) -> None:
        object.__setattr__(self, "date", to_date(self.date))
        object.__setattr__(self, "trading_volume", to_decimal(self.trading_volume))


# =============================================================================
# SYMBOL PROFILE
# =============================================================================

@dataclass
class SymbolProfile:
    """
    Metadata and price history for one instrument.

    market_data is sorted by date on construction so lookups can bisect.
    When several entries share a date, the last one wins.

    Attributes:
        symbol: Ticker or identifier (e.g., "AAPL")
        name: Display name
        data_source: Where prices come from (e.g., "YAHOO", "MANUAL")
        currency: Currency of prices
        asset_class: Broad classification
        asset_sub_class: Optional finer classification
        market_data: Daily prices (date-ordered)
        stock_splits: Corporate actions affecting quantity
    """

    symbol: str
    currency: str
    name: str | None = None
    data_source: str = "MANUAL"
    asset_class: AssetClass = AssetClass.UNDEFINED
    asset_sub_class: str | None = None
    market_data: list[MarketData] = field(default_factory=list)
    stock_splits: list[StockSplit] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.market_data = sorted(self.market_data, key=_entry_date)

    def price_on(
            self,
            target: date | datetime,
            max_lookback_days: int | None = None,
    ) -> MarketData | None:
        """
        Find the market data entry valid on a date.

        Exact match first, otherwise the most recent earlier entry.

        Args:
            target: Date to price
            max_lookback_days: Oldest acceptable entry, in days before target.
                None means any earlier entry is acceptable.

        Returns:
            MarketData, or None when nothing qualifies
        """
        target = to_date(target)
        index = bisect.bisect_right(self.market_data, target, key=_entry_date) - 1
        if index < 0:
            return None

        entry = self.market_data[index]
        if max_lookback_days is not None and days_between(entry.date, target) > max_lookback_days:
            return None
        return entry

    def splits_in_order(self) -> list[StockSplit]:
        return sorted(self.stock_splits, key=lambda split: split.date)


def _entry_date(entry: MarketData) -> date:
    return entry.date
