"""
Validation errors raised by the valuation core.

Every error is a caller-correctable input problem, raised before any
computation starts. They subclass ValueError so existing `except ValueError`
handlers keep catching them.
"""

from typing import Optional


class ValuationError(ValueError):
    """Base class for input errors detected by the valuation core."""

    error_code = "VALUATION_ERROR"

    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(message)


class InvalidTaxRateError(ValuationError):
    """Raised when the corporate tax rate is outside [0, 100]."""

    error_code = "INVALID_TAX_RATE"

    def __init__(self, tax_rate: float):
        self.tax_rate = tax_rate
        super().__init__(
            f"Corporate tax rate must be between 0 and 100 percent (tax rate out of range: {tax_rate}).",
            field="corporateTaxRate",
        )


class EmptyDatasetError(ValuationError):
    """Raised when no EBITDA years are supplied."""

    error_code = "EMPTY_DATASET"

    def __init__(self):
        super().__init__(
            "EBITDA data required to calculate DCF.",
            field="ebitdaData",
        )


class NonConvergentGrowthError(ValuationError):
    """Raised when discount rate <= perpetuity growth rate."""

    error_code = "NON_CONVERGENT_GROWTH"

    def __init__(self, discount_rate: float, perpetuity_rate: float):
        self.discount_rate = discount_rate
        self.perpetuity_rate = perpetuity_rate
        super().__init__(
            f"Discount rate must exceed perpetuity growth rate "
            f"(discount rate {discount_rate}% <= perpetuity rate {perpetuity_rate}%).",
            field="discountRate",
        )


class InvalidExchangeRateError(ValuationError):
    """Raised when a conversion is requested with a rate <= 0."""

    error_code = "INVALID_EXCHANGE_RATE"

    def __init__(self, from_currency: str, to_currency: str, rate: float):
        self.rate = rate
        super().__init__(
            f"Exchange rate {from_currency} -> {to_currency} must be positive, got {rate}.",
            field="rate",
        )


class MissingExchangeRateError(ValuationError):
    """Raised when no rate is stored for a currency pair."""

    error_code = "MISSING_EXCHANGE_RATE"

    def __init__(self, from_currency: str, to_currency: str):
        self.from_currency = from_currency
        self.to_currency = to_currency
        super().__init__(
            f"No exchange rate found for {from_currency} to {to_currency}.",
            field="toCurrency",
        )
