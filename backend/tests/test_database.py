# backend/tests/test_database.py
"""
Tests for the exchange rate store wiring.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import create_engine, inspect, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from holdings_engine.database import SessionLocal, init_db, session_scope
from holdings_engine.models import ExchangeRate
from holdings_engine.services.currency_exchange import CurrencyExchange


def test_init_db_creates_exchange_rates_table():
    engine = create_engine("sqlite:///:memory:", poolclass=StaticPool)

    init_db(bind=engine)
    init_db(bind=engine)

    assert "exchange_rates" in inspect(engine).get_table_names()


def test_session_scope_closes_session(session_factory):
    with session_scope(session_factory) as db:
        db.add(ExchangeRate(
            base_currency="USD",
            quote_currency="EUR",
            date=date(2024, 1, 15),
            rate=Decimal("0.92"),
        ))
        db.commit()

    with session_scope(session_factory) as db:
        record = db.scalar(select(ExchangeRate))

    assert record.provider == "manual"
    assert record.rate == Decimal("0.92")
    assert repr(record).startswith("<ExchangeRate USD/EUR 2024-01-15:")


def test_currency_exchange_defaults_to_module_session_factory():
    assert CurrencyExchange()._session_factory is SessionLocal
    assert isinstance(SessionLocal, sessionmaker)
