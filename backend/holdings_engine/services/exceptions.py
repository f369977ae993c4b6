# backend/holdings_engine/services/exceptions.py
"""
Engine exceptions.

These exceptions represent domain-specific errors. The pipeline and the
snapshot calculator let them propagate; only the batch service catches
them, per holding.

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError
    ├── CurrencyMismatchError
    ├── AdjustmentError
    └── FXRateError
        ├── FXRateNotFoundError
        └── FXConversionError
"""

from datetime import date


class ServiceError(Exception):
    """
    Base exception for all engine errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(ServiceError):
    """
    Raised when input validation fails.

    For programmatic validation errors (invalid parameters, inconsistent
    inputs handed to a service), not for malformed domain objects, which
    raise ValueError on construction.

    Attributes:
        field: The field that failed validation (optional)
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class CurrencyMismatchError(ServiceError):
    """
    Raised when arithmetic combines Money values of different currencies.

    Cross-currency values must be converted through the currency
    exchange first.
    """

    def __init__(self, left: str, right: str, operation: str = "combine") -> None:
        self.left = left
        self.right = right
        super().__init__(f"Cannot {operation} money in {left} with money in {right}")


# =============================================================================
# ADJUSTMENT ERRORS
# =============================================================================


class AdjustmentError(ServiceError):
    """
    Raised when an adjustment strategy cannot complete for a holding.

    Attributes:
        holding_id: Holding being adjusted
        strategy: Name of the failing strategy
    """

    def __init__(
            self,
            holding_id: int | str | None,
            strategy: str,
            reason: str,
    ) -> None:
        self.holding_id = holding_id
        self.strategy = strategy
        self.reason = reason
        super().__init__(f"{strategy} failed for holding {holding_id}: {reason}")


# =============================================================================
# FX RATE ERRORS
# =============================================================================


class FXRateError(ServiceError):
    """
    Base exception for FX rate errors.

    Attributes:
        base_currency: The base currency code
        quote_currency: The quote currency code
    """

    def __init__(
            self,
            message: str,
            base_currency: str | None = None,
            quote_currency: str | None = None,
    ) -> None:
        self.base_currency = base_currency
        self.quote_currency = quote_currency
        super().__init__(message)


class FXRateNotFoundError(FXRateError):
    """
    Raised when no FX rate is available for the requested date/pair.

    Only raised in strict mode; otherwise the currency exchange
    converts 1:1 and logs a warning.

    Attributes:
        date: The date for which rate was requested
    """

    def __init__(
            self,
            base_currency: str,
            quote_currency: str,
            rate_date: date,
            message: str | None = None
    ) -> None:
        self.date = rate_date
        msg = message or f"No FX rate found for {base_currency}/{quote_currency} on {rate_date}"
        super().__init__(msg, base_currency=base_currency, quote_currency=quote_currency)


class FXConversionError(FXRateError):
    """
    Raised when FX rate conversion fails due to invalid parameters.

    Examples:
    - Attempting to invert a zero rate
    - A stored rate that is zero or negative

    Attributes:
        reason: Specific reason for conversion failure
    """

    def __init__(
            self,
            reason: str,
            base_currency: str | None = None,
            quote_currency: str | None = None,
    ) -> None:
        self.reason = reason
        super().__init__(
            f"FX conversion error: {reason}",
            base_currency=base_currency,
            quote_currency=quote_currency,
        )


__all__ = [
    "ServiceError",
    "ValidationError",
    "CurrencyMismatchError",
    "AdjustmentError",
    "FXRateError",
    "FXRateNotFoundError",
    "FXConversionError",
]
