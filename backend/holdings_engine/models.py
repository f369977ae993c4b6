# backend/holdings_engine/models.py
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import String, Date, DateTime, Numeric, UniqueConstraint, Index
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


class ExchangeRate(Base):
    """
    Historical exchange rates between currency pairs.

    Used by CurrencyExchange to convert snapshot values into the
    requested target currency at any historical date.

    Convention: rate represents "1 base_currency = X quote_currency"
    Example: base=USD, quote=EUR, rate=0.92 means 1 USD = 0.92 EUR

    Currency codes are stored as given. Minor units such as GBp are
    distinct from their major currency and are handled as fixed rates.
    """
    __tablename__ = "exchange_rates"
    __table_args__ = (
        UniqueConstraint('base_currency', 'quote_currency', 'date',
                         name='uq_exchange_rate_pair_date'),
        Index('ix_exchange_rate_quote_base_date', 'quote_currency', 'base_currency', 'date'),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    # Currency pair (e.g., USD/EUR means 1 USD = X EUR)
    base_currency: Mapped[str] = mapped_column(String(8), index=True)
    quote_currency: Mapped[str] = mapped_column(String(8), index=True)

    date: Mapped[date] = mapped_column(Date, index=True)

    rate: Mapped[Decimal] = mapped_column(Numeric(18, 8))

    provider: Mapped[str] = mapped_column(String(50), default="manual")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc)
    )

    def __repr__(self) -> str:
        return f"<ExchangeRate {self.base_currency}/{self.quote_currency} {self.date}: {self.rate}>"
