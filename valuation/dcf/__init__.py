"""DCF valuation engine, income-statement derivation and currency conversion."""

from .errors import (
    ValuationError, InvalidTaxRateError, EmptyDatasetError, NonConvergentGrowthError,
    InvalidExchangeRateError, MissingExchangeRateError,
)
from .models import (
    EBITDASeries, IncomeStatementEntry, IncomeStatementAdjustment, IncomeStatementSeries,
    AdjustmentSeries, DCFParameters, PresentValueBreakdown, DCFResults, DCFDataSet, ExchangeRate,
)
from .logic import (
    compute_free_cash_flow, compute_discount_factor, validate_parameters,
    compute_dcf, compute_dcf_with_parameters,
)
from .income_statement import (
    compute_ebitda, compute_ebitda_for_year, apply_adjustments,
    derive_ebitda_series, resolve_effective_ebitda,
)
from .currency import (
    convert_series, convert_income_statement, convert_dataset, ExchangeRateBook,
    format_currency, format_currency_short, format_percentage,
)
from .dataset import effective_ebitda, calculate_dataset, dataset_cache_key, ValuationWorkspace
from .scenarios import (
    DEFAULT_EBITDA_DATA, default_parameters, default_dataset, default_scenarios,
    compare_results, comparison_table, value_bridge,
)

__all__ = [
    "ValuationError", "InvalidTaxRateError", "EmptyDatasetError", "NonConvergentGrowthError",
    "InvalidExchangeRateError", "MissingExchangeRateError",
    "EBITDASeries", "IncomeStatementEntry", "IncomeStatementAdjustment", "IncomeStatementSeries",
    "AdjustmentSeries", "DCFParameters", "PresentValueBreakdown", "DCFResults", "DCFDataSet",
    "ExchangeRate",
    "compute_free_cash_flow", "compute_discount_factor", "validate_parameters",
    "compute_dcf", "compute_dcf_with_parameters",
    "compute_ebitda", "compute_ebitda_for_year", "apply_adjustments",
    "derive_ebitda_series", "resolve_effective_ebitda",
    "convert_series", "convert_income_statement", "convert_dataset", "ExchangeRateBook",
    "format_currency", "format_currency_short", "format_percentage",
    "effective_ebitda", "calculate_dataset", "dataset_cache_key", "ValuationWorkspace",
    "DEFAULT_EBITDA_DATA", "default_parameters", "default_dataset", "default_scenarios",
    "compare_results", "comparison_table", "value_bridge",
]
