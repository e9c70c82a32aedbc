#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Data model for the valuation core.

Python attributes are snake_case; serialized form (by_alias=True) uses the
camelCase names the web client and stored models use, e.g. `terminalValuePV`.
Both spellings are accepted on input.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..utils import BASE_CURRENCY, DEFAULT_DISCOUNT_RATE, DEFAULT_PERPETUITY_RATE, DEFAULT_TAX_RATE

# Fiscal year -> EBITDA (signed, in the dataset's currency)
EBITDASeries = Dict[int, float]

BREAKDOWN_COLUMNS = ["year", "ebitda", "tax", "fcf", "discount_factor", "present_value"]


def normalize_currency(code: str) -> str:
    """Upper-case ISO code; rejects anything that is not three letters."""
    code = str(code or "").strip().upper()
    if len(code) != 3 or not code.isalpha():
        raise ValueError(f"Invalid currency code: {code!r}")
    return code


class CamelModel(BaseModel):
    """Base model: camelCase aliases, population by field name allowed."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> Dict[str, Any]:
        """Plain dict with camelCase keys."""
        return self.model_dump(by_alias=True)


class IncomeStatementEntry(CamelModel):
    """Income-statement line items for one fiscal year."""

    revenue: float = 0.0
    cogs: float = 0.0
    sga: float = 0.0
    depreciation: float = 0.0
    amortization: float = 0.0


class IncomeStatementAdjustment(CamelModel):
    """Fractional adjustments for one year (0.1 = +10%). D&A is never adjusted."""

    revenue_adjustment: float = 0.0
    cogs_adjustment: float = 0.0
    sga_adjustment: float = 0.0


IncomeStatementSeries = Dict[int, IncomeStatementEntry]
AdjustmentSeries = Dict[int, IncomeStatementAdjustment]


class DCFParameters(CamelModel):
    """Valuation rates, all in percent (20 means 20%)."""

    discount_rate: float = DEFAULT_DISCOUNT_RATE
    perpetuity_rate: float = DEFAULT_PERPETUITY_RATE
    corporate_tax_rate: float = DEFAULT_TAX_RATE


class PresentValueBreakdown(CamelModel):
    """One projected year of the present-value schedule."""

    year: int
    ebitda: float
    tax: float
    fcf: float
    discount_factor: float
    present_value: float


class DCFResults(CamelModel):
    """Output of the engine. Rows are in ascending year order."""

    enterprise_value: float
    terminal_value: float
    terminal_value_pv: float = Field(alias="terminalValuePV")
    projections_pv: float = Field(alias="projectionsPV")
    present_values: List[PresentValueBreakdown] = Field(default_factory=list)

    def to_frame(self) -> pd.DataFrame:
        """Breakdown table, one row per projected year (ascending)."""
        rows = [row.model_dump() for row in self.present_values]
        return pd.DataFrame(rows, columns=BREAKDOWN_COLUMNS)


class DCFDataSet(CamelModel):
    """
    Everything needed to value one scenario: EBITDA (direct or derived from
    an income statement), valuation parameters and display metadata.
    """

    id: Optional[str] = None
    label: str = ""
    ebitda_data: EBITDASeries = Field(default_factory=dict)
    parameters: DCFParameters = Field(default_factory=DCFParameters)
    use_income_statement: bool = False
    income_statement_data: Optional[IncomeStatementSeries] = None
    income_statement_adjustments: Optional[AdjustmentSeries] = None
    fiscal_year_labels: Dict[int, str] = Field(default_factory=dict)
    base_currency: str = BASE_CURRENCY
    # Years flagged as actuals rather than projections (explicit, never
    # inferred from the current date)
    historical_years: List[int] = Field(default_factory=list)

    @field_validator("base_currency")
    @classmethod
    def validate_base_currency(cls, v):
        return normalize_currency(v)

    @field_validator("historical_years")
    @classmethod
    def sort_historical_years(cls, v):
        return sorted(set(v))

    def fiscal_label(self, year: int) -> str:
        return self.fiscal_year_labels.get(year, str(year))

    def is_historical(self, year: int) -> bool:
        return year in self.historical_years


class ExchangeRate(CamelModel):
    """Directional rate: 1 unit of `from_currency` = `rate` units of `to_currency`."""

    from_currency: str = Field(alias="from")
    to_currency: str = Field(alias="to")
    rate: float = Field(..., gt=0)
    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("from_currency", "to_currency")
    @classmethod
    def validate_codes(cls, v):
        return normalize_currency(v)
