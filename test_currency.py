"""
Tests for currency conversion and display formatting (valuation/dcf/currency.py).
"""

import pytest
from pydantic import ValidationError

from valuation.dcf.currency import (
    ExchangeRateBook,
    convert_dataset,
    convert_income_statement,
    convert_series,
    currency_symbol,
    format_currency,
    format_currency_short,
    format_percentage,
)
from valuation.dcf.errors import InvalidExchangeRateError, MissingExchangeRateError
from valuation.dcf.models import (
    DCFDataSet,
    DCFParameters,
    ExchangeRate,
    IncomeStatementAdjustment,
    IncomeStatementEntry,
)

# ============================================================================
# Test Data
# ============================================================================


def make_dataset():
    return DCFDataSet(
        id="acme",
        label="Acme",
        ebitda_data={2024: 100.0, 2025: -40.0},
        parameters=DCFParameters(discount_rate=20, perpetuity_rate=4, corporate_tax_rate=21),
        use_income_statement=True,
        income_statement_data={
            2024: IncomeStatementEntry(revenue=1000, cogs=550, sga=300, depreciation=50, amortization=30),
        },
        income_statement_adjustments={2024: IncomeStatementAdjustment(revenue_adjustment=0.1)},
        base_currency="USD",
    )


def make_book():
    return ExchangeRateBook(rates=[
        ExchangeRate(from_currency="EUR", to_currency="USD", rate=1.1),
        ExchangeRate(from_currency="USD", to_currency="EUR", rate=0.9),
    ])


# ============================================================================
# convert_series / convert_dataset
# ============================================================================


def test_same_currency_returns_input_object():
    series = {2024: 100.0}
    assert convert_series(series, 1.5, "USD", "USD") is series

    dataset = make_dataset()
    assert convert_dataset(dataset, "USD", "usd", 1.5) is dataset


def test_same_currency_ignores_rate():
    dataset = make_dataset()
    assert convert_dataset(dataset, "USD", "USD", 0) is dataset


def test_series_scaled_by_rate():
    assert convert_series({2024: 100.0, 2025: -40.0}, 0.5) == {2024: 50.0, 2025: -20.0}


def test_income_statement_series_scaled_line_by_line():
    statement = {2024: IncomeStatementEntry(revenue=10, cogs=4, sga=2, depreciation=1, amortization=1)}
    converted = convert_income_statement(statement, 2, "EUR", "USD")
    assert converted[2024] == IncomeStatementEntry(revenue=20, cogs=8, sga=4, depreciation=2, amortization=2)
    assert convert_income_statement(statement, 2, "EUR", "EUR") is statement


def test_dataset_conversion_scales_money_only():
    dataset = make_dataset()
    converted = convert_dataset(dataset, "USD", "EUR", 0.5)

    assert converted.base_currency == "EUR"
    assert converted.ebitda_data == {2024: 50.0, 2025: -20.0}
    assert converted.income_statement_data[2024].revenue == 500
    assert converted.income_statement_data[2024].amortization == 15
    assert converted.parameters == dataset.parameters
    assert converted.income_statement_adjustments == dataset.income_statement_adjustments
    assert converted.use_income_statement is True


def test_dataset_conversion_does_not_mutate_input():
    dataset = make_dataset()
    convert_dataset(dataset, "USD", "EUR", 0.5)
    assert dataset.base_currency == "USD"
    assert dataset.ebitda_data == {2024: 100.0, 2025: -40.0}
    assert dataset.income_statement_data[2024].revenue == 1000


def test_dataset_without_income_statement():
    dataset = DCFDataSet(ebitda_data={2024: 10.0})
    converted = convert_dataset(dataset, "USD", "EUR", 2)
    assert converted.income_statement_data is None
    assert converted.ebitda_data == {2024: 20.0}


@pytest.mark.parametrize("rate", [0, -1.2, float("nan")])
def test_non_positive_rate_rejected(rate):
    with pytest.raises(InvalidExchangeRateError):
        convert_dataset(make_dataset(), "USD", "EUR", rate)
    with pytest.raises(InvalidExchangeRateError):
        convert_series({2024: 1.0}, rate)


def test_invalid_currency_code_rejected():
    with pytest.raises(ValueError):
        convert_dataset(make_dataset(), "USD", "EURO", 1.0)


# ============================================================================
# ExchangeRateBook
# ============================================================================


def test_rate_lookup_is_directional():
    book = make_book()
    assert book.get_rate("EUR", "USD") == 1.1
    assert book.get_rate("usd", "eur") == 0.9


def test_identical_currencies_rate_is_one():
    assert make_book().get_rate("GBP", "GBP") == 1.0


def test_missing_rate_raises():
    with pytest.raises(MissingExchangeRateError, match="No exchange rate found for USD to GBP"):
        make_book().get_rate("USD", "GBP")


def test_update_rate_inserts_one_direction():
    book = make_book()
    updated = book.update_rate("usd", "gbp", 0.8)

    assert updated.from_currency == "USD"
    assert updated.to_currency == "GBP"
    assert book.get_rate("USD", "GBP") == 0.8
    with pytest.raises(MissingExchangeRateError):
        book.get_rate("GBP", "USD")


def test_update_rate_replaces_existing():
    book = make_book()
    book.update_rate("EUR", "USD", 1.2)
    assert book.get_rate("EUR", "USD") == 1.2
    assert len(book.rates) == 2


def test_update_rate_rejects_non_positive():
    with pytest.raises(InvalidExchangeRateError):
        make_book().update_rate("USD", "GBP", 0)


def test_exchange_rate_model_rejects_non_positive():
    with pytest.raises(ValidationError):
        ExchangeRate(from_currency="USD", to_currency="EUR", rate=0)


def test_exchange_rate_serializes_with_from_to_keys():
    data = ExchangeRate(from_currency="USD", to_currency="EUR", rate=0.9).to_dict()
    assert data["from"] == "USD"
    assert data["to"] == "EUR"
    assert "lastUpdated" in data


def test_book_converts_amounts_and_datasets():
    book = make_book()
    assert book.convert_amount(100, "USD", "EUR") == pytest.approx(90)

    converted = book.convert_dataset(make_dataset(), "EUR")
    assert converted.base_currency == "EUR"
    assert converted.ebitda_data[2024] == pytest.approx(90)


def test_default_book_has_seed_rates():
    pairs = {(r.from_currency, r.to_currency) for r in ExchangeRateBook().rates}
    assert ("EUR", "USD") in pairs
    assert ("USD", "EUR") in pairs


# ============================================================================
# Formatting
# ============================================================================


def test_format_currency():
    assert format_currency(-1_274_610, "USD") == "-$1,274,610"
    assert format_currency(15_634_053.4, "EUR") == "€15,634,053"
    assert format_currency(0) == "$0"


@pytest.mark.parametrize("amount, currency, expected", [
    (1_500, "USD", "$1.5K"),
    (15_634_053, "EUR", "€15.6M"),
    (2_100_000_000, "USD", "$2.1B"),
    (-885_664, "USD", "-$885.7K"),
    (999, "USD", "$999"),
])
def test_format_currency_short(amount, currency, expected):
    assert format_currency_short(amount, currency) == expected


def test_unknown_currency_symbol_falls_back_to_code():
    assert currency_symbol("jpy") == "JPY "
    assert format_currency(1000, "JPY") == "JPY 1,000"


def test_format_percentage():
    assert format_percentage(21) == "21.0%"
    assert format_percentage(4.25, digits=2) == "4.25%"
