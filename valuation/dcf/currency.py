#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Currency conversion of financial datasets and display formatting.

Rates are supplied by the caller (or the configured ExchangeRateBook); they
are directional and never inverted automatically. Only monetary values are
scaled: rates, percentages and adjustments are currency-invariant.
"""

from datetime import datetime, timezone
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from ..utils import BASE_CURRENCY, CURRENCY_SYMBOLS, DEFAULT_EXCHANGE_RATES, get_logger
from .errors import InvalidExchangeRateError, MissingExchangeRateError
from .models import DCFDataSet, ExchangeRate, IncomeStatementEntry, normalize_currency

logger = get_logger(__name__)

SeriesValue = Union[float, IncomeStatementEntry]


def _check_rate(rate: float, from_currency: Optional[str], to_currency: Optional[str]) -> None:
    # `not rate > 0` also rejects NaN
    if not rate > 0:
        raise InvalidExchangeRateError(from_currency or "?", to_currency or "?", rate)


def _scale_entry(entry: IncomeStatementEntry, rate: float) -> IncomeStatementEntry:
    return IncomeStatementEntry(
        revenue=entry.revenue * rate,
        cogs=entry.cogs * rate,
        sga=entry.sga * rate,
        depreciation=entry.depreciation * rate,
        amortization=entry.amortization * rate,
    )


def convert_series(
    series: Mapping[int, SeriesValue],
    rate: float,
    from_currency: Optional[str] = None,
    to_currency: Optional[str] = None,
) -> Mapping[int, SeriesValue]:
    """
    Multiply every monetary value of a year-keyed series by `rate`.

    Works for EBITDA series (float values) and income-statement series
    (every line item scaled). When both currencies are given and equal the
    input object itself is returned; callers must not rely on a copy.

    Raises:
        InvalidExchangeRateError: If a conversion is performed with rate <= 0
    """
    if from_currency is not None and to_currency is not None and from_currency == to_currency:
        return series

    _check_rate(rate, from_currency, to_currency)

    converted = {}
    for year, value in series.items():
        if isinstance(value, IncomeStatementEntry):
            converted[int(year)] = _scale_entry(value, rate)
        else:
            converted[int(year)] = float(value) * rate
    return converted


def convert_income_statement(
    income_statement: Mapping[int, IncomeStatementEntry],
    rate: float,
    from_currency: Optional[str] = None,
    to_currency: Optional[str] = None,
) -> Mapping[int, IncomeStatementEntry]:
    """Every line item of every year scaled by `rate`; identity for equal currencies."""
    return convert_series(income_statement, rate, from_currency, to_currency)


def convert_dataset(dataset: DCFDataSet, from_currency: str, to_currency: str, rate: float) -> DCFDataSet:
    """
    Convert EBITDA and (when present) income-statement data, then stamp the
    dataset with `to_currency`. Returns the input unchanged for identical
    currencies.
    """
    from_currency = normalize_currency(from_currency)
    to_currency = normalize_currency(to_currency)
    if from_currency == to_currency:
        return dataset

    _check_rate(rate, from_currency, to_currency)

    if dataset.base_currency != from_currency:
        logger.warning(
            f"Dataset '{dataset.label or dataset.id}' is tagged {dataset.base_currency} "
            f"but is being converted from {from_currency}"
        )

    income_statement = None
    if dataset.income_statement_data is not None:
        income_statement = convert_income_statement(dataset.income_statement_data, rate, from_currency, to_currency)

    converted = dataset.model_copy(update={
        "ebitda_data": convert_series(dataset.ebitda_data, rate, from_currency, to_currency),
        "income_statement_data": income_statement,
        "base_currency": to_currency,
    })
    logger.debug(f"Converted dataset {from_currency} -> {to_currency} at {rate}")
    return converted


class ExchangeRateBook:
    """
    Directional exchange rates keyed by (from, to).

    Seeded from config.DEFAULT_EXCHANGE_RATES unless rates are given.
    """

    def __init__(self, rates: Optional[Iterable[ExchangeRate]] = None):
        self._rates: Dict[Tuple[str, str], ExchangeRate] = {}
        if rates is None:
            rates = [
                ExchangeRate(from_currency=src, to_currency=dst, rate=rate)
                for src, dst, rate in DEFAULT_EXCHANGE_RATES
            ]
        for rate in rates:
            self._rates[(rate.from_currency, rate.to_currency)] = rate

    @property
    def rates(self) -> List[ExchangeRate]:
        return list(self._rates.values())

    def get_rate(self, from_currency: str, to_currency: str) -> float:
        from_currency = normalize_currency(from_currency)
        to_currency = normalize_currency(to_currency)
        if from_currency == to_currency:
            return 1.0

        found = self._rates.get((from_currency, to_currency))
        if found is None:
            logger.warning(f"No exchange rate found for {from_currency} to {to_currency}")
            raise MissingExchangeRateError(from_currency, to_currency)
        return found.rate

    def update_rate(self, from_currency: str, to_currency: str, rate: float) -> ExchangeRate:
        """Insert or replace one direction; the reverse rate is left alone."""
        from_currency = normalize_currency(from_currency)
        to_currency = normalize_currency(to_currency)
        _check_rate(rate, from_currency, to_currency)

        updated = ExchangeRate(
            from_currency=from_currency,
            to_currency=to_currency,
            rate=rate,
            last_updated=datetime.now(timezone.utc),
        )
        self._rates[(from_currency, to_currency)] = updated
        logger.info(f"Exchange rate {from_currency} -> {to_currency} set to {rate}")
        return updated

    def convert_amount(self, amount: float, from_currency: str, to_currency: str) -> float:
        return amount * self.get_rate(from_currency, to_currency)

    def convert_dataset(self, dataset: DCFDataSet, to_currency: str) -> DCFDataSet:
        rate = self.get_rate(dataset.base_currency, to_currency)
        return convert_dataset(dataset, dataset.base_currency, to_currency, rate)


# ============================================================================
# Display formatting
# ============================================================================


def currency_symbol(currency: str) -> str:
    currency = normalize_currency(currency)
    return CURRENCY_SYMBOLS.get(currency, f"{currency} ")


def format_currency(amount: float, currency: str = BASE_CURRENCY) -> str:
    """Whole units with thousands separators, e.g. -$1,274,610."""
    sign = "-" if amount < 0 else ""
    return f"{sign}{currency_symbol(currency)}{abs(amount):,.0f}"


def format_currency_short(amount: float, currency: str = BASE_CURRENCY) -> str:
    """Compact form with one decimal: $1.5K, €15.6M, $2.1B."""
    absolute = abs(amount)
    sign = "-" if amount < 0 else ""
    symbol = currency_symbol(currency)

    for threshold, suffix in ((1_000_000_000, "B"), (1_000_000, "M"), (1_000, "K")):
        if absolute >= threshold:
            return f"{sign}{symbol}{absolute / threshold:.1f}{suffix}"

    return format_currency(amount, currency)


def format_percentage(value: float, digits: int = 1) -> str:
    return f"{value:.{digits}f}%"
