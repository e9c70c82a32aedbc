"""
Income statement -> EBITDA derivation, with per-year percentage adjustments.

EBITDA = Revenue - COGS - SG&A + Depreciation + Amortization
"""

from typing import Mapping, Optional

from ..utils import get_logger
from .models import (
    AdjustmentSeries,
    EBITDASeries,
    IncomeStatementAdjustment,
    IncomeStatementEntry,
    IncomeStatementSeries,
)

logger = get_logger(__name__)

_NO_ADJUSTMENT = IncomeStatementAdjustment()


def compute_ebitda(
    revenue: float,
    cogs: float,
    sga: float,
    depreciation: float,
    amortization: float,
) -> float:
    """D&A are added back: they were subtracted on the way to operating income."""
    return revenue - cogs - sga + depreciation + amortization


def compute_ebitda_for_year(income_statement: Mapping[int, IncomeStatementEntry], year: int) -> float:
    """EBITDA for one year; 0 when the year has no entry."""
    entry = income_statement.get(year)
    if entry is None:
        return 0.0
    return compute_ebitda(
        entry.revenue,
        entry.cogs,
        entry.sga,
        entry.depreciation,
        entry.amortization,
    )


def derive_ebitda_series(income_statement: Mapping[int, IncomeStatementEntry]) -> EBITDASeries:
    """One EBITDA value per income-statement year."""
    return {
        int(year): compute_ebitda_for_year(income_statement, year)
        for year in income_statement
    }


def apply_adjustments(
    income_statement: Mapping[int, IncomeStatementEntry],
    adjustments: Mapping[int, IncomeStatementAdjustment],
) -> IncomeStatementSeries:
    """
    Scale revenue, COGS and SG&A of each year by (1 + adjustment).

    Years without an adjustment entry are copied unchanged; adjustment years
    absent from the income statement are ignored. The input is not mutated.
    """
    adjusted: IncomeStatementSeries = {}
    for year, entry in income_statement.items():
        adj = adjustments.get(year, _NO_ADJUSTMENT)
        adjusted[year] = IncomeStatementEntry(
            revenue=entry.revenue * (1 + adj.revenue_adjustment),
            cogs=entry.cogs * (1 + adj.cogs_adjustment),
            sga=entry.sga * (1 + adj.sga_adjustment),
            depreciation=entry.depreciation,
            amortization=entry.amortization,
        )

    ignored = sorted(set(adjustments) - set(income_statement))
    if ignored:
        logger.debug(f"Ignoring adjustments for years without income statement: {ignored}")
    return adjusted


def resolve_effective_ebitda(
    ebitda_data: EBITDASeries,
    use_income_statement: bool,
    income_statement: Optional[IncomeStatementSeries] = None,
    adjustments: Optional[AdjustmentSeries] = None,
) -> EBITDASeries:
    """
    Decide which EBITDA series feeds the valuation engine.

    Direct series when income-statement mode is off or there is no
    statement; otherwise EBITDA derived from the (adjusted) statement.
    """
    if not use_income_statement or income_statement is None:
        return ebitda_data

    if adjustments is not None:
        income_statement = apply_adjustments(income_statement, adjustments)

    return derive_ebitda_series(income_statement)
