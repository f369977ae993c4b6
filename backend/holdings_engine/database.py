# backend/holdings_engine/database.py
"""
Database connection and session management for the exchange rate store.

This module configures SQLAlchemy with:
- StaticPool for in-memory SQLite (test and default development mode)
- Standard pooling for PostgreSQL
- A session scope helper for short-lived lookups
- Table creation for the exchange_rates table
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from .config import settings
from .models import Base

logger = logging.getLogger(__name__)


def _create_engine() -> Engine:
    """
    Create SQLAlchemy engine with environment-appropriate configuration.

    - SQLite: StaticPool so every session sees the same in-memory database
    - PostgreSQL: default QueuePool with pre-ping
    """
    if settings.is_sqlite:
        logger.info("Configuring SQLite exchange rate store")
        return create_engine(
            settings.database_url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
            echo=settings.debug,
        )

    logger.info("Configuring PostgreSQL exchange rate store")
    return create_engine(
        settings.database_url,
        pool_pre_ping=True,
        echo=settings.debug,
    )


# Create engine and session factory
engine = _create_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def session_scope(
        session_factory: sessionmaker = SessionLocal,
) -> Iterator[Session]:
    """
    Provide a session that is always closed after use.

    Usage:
        with session_scope() as db:
            db.scalars(select(ExchangeRate)).all()
    """
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Engine | None = None) -> None:
    """Create all tables (idempotent)."""
    target = bind or engine
    Base.metadata.create_all(bind=target)
    logger.info(f"Database tables ensured on {target.url.render_as_string(hide_password=True)}")
