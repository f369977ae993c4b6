# backend/holdings_engine/services/currency_exchange.py
"""
Currency exchange backed by the exchange_rates table.

This service handles:
- Converting Money into a target currency on a given date
- Exact-date lookups with fallback to the most recent earlier rate
- Inverse pairs (a stored USD/EUR rate also converts EUR to USD)
- Fixed minor-unit pairs (1 GBP = 100 GBp) without any stored rate
- Minor units chained with stored major-currency rates (GBp → GBP → EUR)
- Preloading every stored rate into memory before a batch run
- Storing rates supplied by an upstream importer

=============================================================================
FX RATE CONVENTION
=============================================================================

    rate = "1 base_currency = X quote_currency"

Example:
    base_currency = "USD", quote_currency = "EUR", rate = 0.92
    Meaning: 1 USD = 0.92 EUR

Conversion formula:
    USD → EUR:  EUR_amount = USD_amount × rate
    EUR → USD:  USD_amount = EUR_amount ÷ rate

=============================================================================
MISSING RATES
=============================================================================

When no rate exists in either direction within the fallback window:
- default mode: the amount is relabelled 1:1 and a warning is logged
  once per currency pair
- strict mode (FX_STRICT_MODE=true): FXRateNotFoundError is raised

Usage:
    from holdings_engine.services.currency_exchange import CurrencyExchange

    exchange = CurrencyExchange()
    exchange.preload_all_exchange_rates()

    eur = exchange.convert_money(Money("USD", Decimal("100")), "EUR", date(2024, 1, 15))
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy import select, and_
from sqlalchemy.orm import Session

from holdings_engine.config import settings
from holdings_engine.database import SessionLocal, session_scope
from holdings_engine.domain.money import Money
from holdings_engine.models import ExchangeRate
from holdings_engine.services.constants import (
    KNOWN_FIXED_RATES,
    MINOR_CURRENCY_UNITS,
    RATE_PRECISION,
)
from holdings_engine.services.exceptions import FXConversionError, FXRateNotFoundError
from holdings_engine.utils.date_utils import to_date

logger = logging.getLogger(__name__)


# =============================================================================
# RESULT DATA CLASSES
# =============================================================================

@dataclass
class FXRateResult:
    """Result of an FX rate lookup."""

    base_currency: str
    quote_currency: str
    date: date
    rate: Decimal
    is_exact_match: bool = True  # False if fallback was used
    actual_date: date | None = None  # The date the rate is actually from

    def __post_init__(self):
        if self.actual_date is None:
            self.actual_date = self.date


# =============================================================================
# CURRENCY EXCHANGE
# =============================================================================

class CurrencyExchange:
    """
    Converts Money between currencies using stored historical rates.

    Satisfies CurrencyExchangeProtocol. Lookups hit the database until
    preload_all_exchange_rates() is called; from then on they are served
    from memory until clear_cache().

    Attributes:
        _session_factory: Callable returning a new Session
        _max_fallback_days: Maximum days to look back for a rate
        _strict: Raise instead of converting 1:1 when no rate exists
        _cache: {(base, quote): {date: rate}} once preloaded
    """

    def __init__(
            self,
            session_factory: Callable[[], Session] | None = None,
            max_fallback_days: int | None = None,
            strict: bool | None = None,
    ) -> None:
        """
        Initialize the currency exchange.

        Args:
            session_factory: Session factory for the exchange rate store.
                             Defaults to holdings_engine.database.SessionLocal.
            max_fallback_days: Maximum days to search for a fallback rate.
                               Defaults to settings.fx_fallback_days.
            strict: Raise on missing rates. Defaults to settings.fx_strict_mode.
        """
        self._session_factory = session_factory or SessionLocal
        self._max_fallback_days = (
            settings.fx_fallback_days if max_fallback_days is None else max_fallback_days
        )
        self._strict = settings.fx_strict_mode if strict is None else strict
        self._cache: dict[tuple[str, str], dict[date, Decimal]] | None = None
        self._warned_pairs: set[tuple[str, str]] = set()

        logger.debug(
            f"CurrencyExchange initialized (max_fallback_days={self._max_fallback_days}, "
            f"strict={self._strict})"
        )

    @property
    def is_preloaded(self) -> bool:
        return self._cache is not None

    # =========================================================================
    # PUBLIC METHODS
    # =========================================================================

    def convert_money(
            self,
            money: Money,
            target_currency: str,
            on_date: date,
    ) -> Money:
        """
        Convert money into target_currency using the rate valid on on_date.

        Tries, in order: same currency, direct pair (including fixed
        minor-unit pairs), inverse pair, then the same lookups on the
        major currencies of minor units (GBp is valued through GBP).
        Without any rate the result is 1:1 in default mode.

        Args:
            money: Amount to convert
            target_currency: Currency code of the result
            on_date: Valuation date

        Returns:
            Money in target_currency

        Raises:
            FXRateNotFoundError: In strict mode, when no rate is available
            FXConversionError: If a stored rate is zero or negative
        """
        target = target_currency.strip()
        source = money.currency
        on_date = to_date(on_date)

        if source == target:
            return money

        amount = self._convert_amount(money.amount, source, target, on_date)
        if amount is None:
            amount = self._convert_via_major_units(money.amount, source, target, on_date)
        if amount is not None:
            return Money(target, amount)

        if self._strict:
            raise FXRateNotFoundError(source, target, on_date)

        pair = (source, target)
        if pair not in self._warned_pairs:
            self._warned_pairs.add(pair)
            logger.warning(
                f"No FX rate for {source}/{target} on {on_date} "
                f"(or within {self._max_fallback_days} days before); converting 1:1"
            )
        else:
            logger.debug(f"No FX rate for {source}/{target} on {on_date}; converting 1:1")
        return Money(target, money.amount)

    def get_rate(
            self,
            base_currency: str,
            quote_currency: str,
            target_date: date,
            allow_fallback: bool = True,
    ) -> FXRateResult:
        """
        Get the exchange rate for a specific date.

        Args:
            base_currency: Base currency code (e.g., "USD")
            quote_currency: Quote currency code (e.g., "EUR")
            target_date: Date to get rate for
            allow_fallback: If True, search for nearest earlier rate if exact not found

        Returns:
            FXRateResult with the rate and metadata

        Raises:
            FXRateNotFoundError: If no rate found (and no fallback available)
            FXConversionError: If the stored rate is not positive
        """
        base = base_currency.strip()
        quote = quote_currency.strip()
        target_date = to_date(target_date)

        if base == quote:
            return FXRateResult(base, quote, target_date, Decimal("1"))

        fixed_rate = KNOWN_FIXED_RATES.get((base, quote))
        if fixed_rate is not None:
            return FXRateResult(base, quote, target_date, fixed_rate)

        found = self._lookup(base, quote, target_date, allow_fallback)
        if found is None:
            raise FXRateNotFoundError(base, quote, target_date)

        rate, actual_date = found
        if rate <= 0:
            raise FXConversionError(
                f"Invalid stored rate {rate} on {actual_date}",
                base_currency=base,
                quote_currency=quote,
            )

        if actual_date != target_date:
            logger.debug(
                f"Using fallback rate for {base}/{quote} on {target_date}: "
                f"actual date = {actual_date}"
            )

        return FXRateResult(
            base_currency=base,
            quote_currency=quote,
            date=target_date,
            rate=rate,
            is_exact_match=actual_date == target_date,
            actual_date=actual_date,
        )

    def get_rate_or_none(
            self,
            base_currency: str,
            quote_currency: str,
            target_date: date,
            allow_fallback: bool = True,
    ) -> FXRateResult | None:
        """
        Get the exchange rate, returning None if not found.

        Same as get_rate() but returns None instead of raising FXRateNotFoundError.
        """
        try:
            return self.get_rate(base_currency, quote_currency, target_date, allow_fallback)
        except FXRateNotFoundError:
            return None

    def preload_all_exchange_rates(self) -> int:
        """
        Load every stored rate into memory.

        Call once before a batch run: the snapshot calculator converts
        once per day per holding and never memoises.

        Returns:
            Number of rates cached
        """
        cache: dict[tuple[str, str], dict[date, Decimal]] = {}
        count = 0

        with session_scope(self._session_factory) as db:
            for record in db.scalars(select(ExchangeRate)).all():
                pair = (record.base_currency, record.quote_currency)
                cache.setdefault(pair, {})[to_date(record.date)] = record.rate
                count += 1

        self._cache = cache
        logger.info(f"Preloaded {count} exchange rates for {len(cache)} currency pairs")
        return count

    def clear_cache(self) -> None:
        self._cache = None
        self._warned_pairs.clear()

    def store_rates(
            self,
            base_currency: str,
            quote_currency: str,
            rates: dict[date, Decimal],
            provider: str = "manual",
    ) -> tuple[int, int]:
        """
        Insert or update rates for one currency pair.

        Works on any SQLAlchemy backend (select, then insert or update).
        A loaded cache is updated in place.

        Returns:
            Tuple of (inserted_count, updated_count)

        Raises:
            FXConversionError: If any rate is zero or negative
        """
        base = base_currency.strip()
        quote = quote_currency.strip()
        if not rates:
            return 0, 0

        for rate_date, rate in rates.items():
            if rate <= 0:
                raise FXConversionError(
                    f"Refusing to store non-positive rate {rate} on {rate_date}",
                    base_currency=base,
                    quote_currency=quote,
                )

        inserted = 0
        updated = 0
        with session_scope(self._session_factory) as db:
            existing = {
                to_date(record.date): record
                for record in db.scalars(
                    select(ExchangeRate).where(
                        and_(
                            ExchangeRate.base_currency == base,
                            ExchangeRate.quote_currency == quote,
                            ExchangeRate.date.in_(list(rates.keys())),
                        )
                    )
                ).all()
            }

            for rate_date, rate in rates.items():
                record = existing.get(rate_date)
                if record is None:
                    db.add(ExchangeRate(
                        base_currency=base,
                        quote_currency=quote,
                        date=rate_date,
                        rate=rate.quantize(RATE_PRECISION),
                        provider=provider,
                    ))
                    inserted += 1
                else:
                    record.rate = rate.quantize(RATE_PRECISION)
                    record.provider = provider
                    updated += 1

            db.commit()

        if self._cache is not None:
            pair_cache = self._cache.setdefault((base, quote), {})
            for rate_date, rate in rates.items():
                pair_cache[rate_date] = rate.quantize(RATE_PRECISION)

        logger.info(f"Stored {base}/{quote} rates: inserted={inserted}, updated={updated}")
        return inserted, updated

    # =========================================================================
    # PRIVATE METHODS
    # =========================================================================

    def _convert_amount(
            self,
            amount: Decimal,
            source: str,
            target: str,
            on_date: date,
    ) -> Decimal | None:
        """Direct rate (stored or fixed), then inverse rate. None when neither exists."""
        rate_result = self.get_rate_or_none(source, target, on_date)
        if rate_result is not None:
            return amount * rate_result.rate

        inverse_result = self.get_rate_or_none(target, source, on_date)
        if inverse_result is not None:
            return amount / inverse_result.rate

        return None

    def _convert_via_major_units(
            self,
            amount: Decimal,
            source: str,
            target: str,
            on_date: date,
    ) -> Decimal | None:
        """
        Convert through the major currency of a minor unit.

        Example:
            1000 GBp → EUR with only GBP/EUR stored:
            1000 GBp = 10 GBP, then 10 GBP × GBP/EUR rate
        """
        source_major, source_factor = MINOR_CURRENCY_UNITS.get(source, (source, Decimal("1")))
        target_major, target_factor = MINOR_CURRENCY_UNITS.get(target, (target, Decimal("1")))
        if source_major == source and target_major == target:
            return None

        major_amount = amount * source_factor
        if source_major != target_major:
            major_amount = self._convert_amount(major_amount, source_major, target_major, on_date)
            if major_amount is None:
                return None

        logger.debug(f"Converted {source}/{target} on {on_date} via {source_major}/{target_major}")
        return major_amount / target_factor

    def _lookup(
            self,
            base: str,
            quote: str,
            target_date: date,
            allow_fallback: bool,
    ) -> tuple[Decimal, date] | None:
        """Find (rate, actual_date) for a pair, from cache when preloaded."""
        fallback_days = self._max_fallback_days if allow_fallback else 0

        if self._cache is not None:
            return self._find_in_cache(self._cache.get((base, quote), {}), target_date, fallback_days)

        min_date = target_date - timedelta(days=fallback_days)
        query = (
            select(ExchangeRate)
            .where(
                and_(
                    ExchangeRate.base_currency == base,
                    ExchangeRate.quote_currency == quote,
                    ExchangeRate.date >= min_date,
                    ExchangeRate.date <= target_date,
                )
            )
            .order_by(ExchangeRate.date.desc())
            .limit(1)
        )

        with session_scope(self._session_factory) as db:
            record = db.scalar(query)
            if record is None:
                return None
            return record.rate, to_date(record.date)

    @staticmethod
    def _find_in_cache(
            rates_by_date: dict[date, Decimal],
            target_date: date,
            fallback_days: int,
    ) -> tuple[Decimal, date] | None:
        """Exact date first, then look back day by day within the window."""
        for days_back in range(0, fallback_days + 1):
            check_date = target_date - timedelta(days=days_back)
            rate = rates_by_date.get(check_date)
            if rate is not None:
                return rate, check_date
        return None
