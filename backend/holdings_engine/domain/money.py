# backend/holdings_engine/domain/money.py
"""
Money value object.

An amount paired with its currency. Arithmetic only combines values of
the same currency; converting between currencies is the job of the
currency exchange, never of Money itself.

Currency codes are case-sensitive after stripping whitespace, because
minor units share letters with their major currency (GBp is pence,
GBP is pounds).
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from holdings_engine.services.exceptions import CurrencyMismatchError

ZERO = Decimal("0")


def to_decimal(value: Decimal | int | str) -> Decimal:
    """
    Convert a numeric input to Decimal.

    Floats are rejected: binary floating point cannot represent most
    prices exactly, and the error would leak into every snapshot.

    Raises:
        TypeError: If value is a float or not numeric
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool) or isinstance(value, float):
        raise TypeError(f"Use Decimal or str for monetary values, got {type(value).__name__}")
    if isinstance(value, (int, str)):
        return Decimal(value)
    raise TypeError(f"Cannot convert {type(value).__name__} to Decimal")


@dataclass(frozen=True)
class Money:
    """
    Immutable amount in a single currency.

    Attributes:
        currency: Currency code (e.g., "USD", "GBp")
        amount: Decimal amount (may be negative)
    """

    currency: str
    amount: Decimal = ZERO

    def __post_init__(self) -> None:
        if not isinstance(self.currency, str) or not self.currency.strip():
            raise ValueError("Money requires a non-empty currency code")
        object.__setattr__(self, "currency", self.currency.strip())
        object.__setattr__(self, "amount", to_decimal(self.amount))

    @classmethod
    def zero(cls, currency: str) -> Money:
        return cls(currency, ZERO)

    # =========================================================================
    # ARITHMETIC
    # =========================================================================

    def add(self, other: Money) -> Money:
        self._require_same_currency(other, "add")
        return Money(self.currency, self.amount + other.amount)

    def subtract(self, other: Money) -> Money:
        self._require_same_currency(other, "subtract")
        return Money(self.currency, self.amount - other.amount)

    def times(self, factor: Decimal | int | str) -> Money:
        return Money(self.currency, self.amount * to_decimal(factor))

    def divide(self, divisor: Decimal | int | str) -> Money:
        """Divide by a scalar. Raises ZeroDivisionError on zero."""
        divisor = to_decimal(divisor)
        if divisor == ZERO:
            raise ZeroDivisionError(f"Cannot divide {self} by zero")
        return Money(self.currency, self.amount / divisor)

    def quantize(self, exponent: Decimal) -> Money:
        return Money(self.currency, self.amount.quantize(exponent))

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _require_same_currency(self, other: Money, operation: str) -> None:
        if self.currency != other.currency:
            raise CurrencyMismatchError(self.currency, other.currency, operation)

    def __str__(self) -> str:
        return f"{self.amount} {self.currency}"
