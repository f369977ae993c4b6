# backend/tests/conftest.py
"""
Pytest configuration and fixtures.

This module provides shared fixtures for all tests:
- Database session fixtures (in-memory SQLite) for the exchange rate store
- Currency exchange fixtures (real and identity mock)
- Sample data factories for holdings, activities and market data
"""

import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from datetime import date, timedelta
from decimal import Decimal
from typing import Iterator
from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from holdings_engine.domain import (
    Activity,
    ActivityKind,
    AssetClass,
    Holding,
    MarketData,
    Money,
    StockSplit,
    SymbolProfile,
)
from holdings_engine.models import Base, ExchangeRate
from holdings_engine.services.currency_exchange import CurrencyExchange


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture(scope="function")
def db_engine():
    """Create an in-memory SQLite database engine for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def session_factory(db_engine) -> sessionmaker:
    """Session factory bound to the test engine."""
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db(session_factory) -> Iterator[Session]:
    """Create a database session for testing."""
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


# =============================================================================
# CURRENCY EXCHANGE FIXTURES
# =============================================================================

@pytest.fixture
def currency_exchange(session_factory) -> CurrencyExchange:
    """Real CurrencyExchange over the empty test database (lenient mode)."""
    return CurrencyExchange(session_factory=session_factory, max_fallback_days=7, strict=False)


@pytest.fixture
def identity_exchange() -> MagicMock:
    """
    Mock exchange that relabels money into the target currency 1:1.

    Calls are recorded, so tests can assert which dates were converted.
    """
    exchange = MagicMock()
    exchange.convert_money.side_effect = (
        lambda money, target_currency, on_date: Money(target_currency, money.amount)
    )
    return exchange


# =============================================================================
# FACTORY FUNCTIONS
# =============================================================================

def usd(amount) -> Money:
    """Shorthand for USD money."""
    return Money("USD", Decimal(str(amount)))


def create_profile(
        symbol: str = "AAPL",
        currency: str = "USD",
        name: str | None = "Apple Inc.",
        data_source: str = "YAHOO",
        asset_class: AssetClass = AssetClass.EQUITY,
        prices: dict[date, Decimal | int | str] | None = None,
        stock_splits: list[StockSplit] | None = None,
) -> SymbolProfile:
    """Factory function for creating SymbolProfile test data."""
    market_data = [
        MarketData(day, Money(currency, Decimal(str(close))))
        for day, close in (prices or {}).items()
    ]
    return SymbolProfile(
        symbol=symbol,
        currency=currency,
        name=name,
        data_source=data_source,
        asset_class=asset_class,
        market_data=market_data,
        stock_splits=stock_splits or [],
    )


def create_activity(
        kind: ActivityKind = ActivityKind.BUY_SELL,
        day: date = date(2024, 1, 2),
        quantity: Decimal | int | str | None = 10,
        unit_price: Money | None = None,
        currency: str | None = None,
        transaction_id: str = "T1",
) -> Activity:
    """Factory function for creating Activity test data."""
    if not kind.has_quantity_and_price:
        quantity = None
    return Activity.create(
        kind,
        day,
        quantity=quantity,
        unit_price=unit_price,
        currency=currency,
        transaction_id=transaction_id,
    )


def create_holding(
        profile: SymbolProfile | None = None,
        activities: list[Activity] | None = None,
        holding_id: int = 1,
) -> Holding:
    """Factory function for creating Holding test data."""
    return Holding(
        id=holding_id,
        symbol_profiles=[profile] if profile is not None else [],
        activities=activities or [],
    )


def daily_prices(start: date, closes: list[Decimal | int | str]) -> dict[date, Decimal]:
    """Map consecutive days starting at start to the given closes."""
    return {
        start + timedelta(days=offset): Decimal(str(close))
        for offset, close in enumerate(closes)
    }


def add_rate(
        db: Session,
        base: str,
        quote: str,
        day: date,
        rate: str,
) -> ExchangeRate:
    """Insert one exchange rate row and commit."""
    record = ExchangeRate(
        base_currency=base,
        quote_currency=quote,
        date=day,
        rate=Decimal(rate),
        provider="test",
    )
    db.add(record)
    db.commit()
    return record
