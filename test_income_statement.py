"""
Tests for income-statement -> EBITDA derivation (valuation/dcf/income_statement.py).
"""

import pytest

from valuation.dcf.income_statement import (
    apply_adjustments,
    compute_ebitda,
    compute_ebitda_for_year,
    derive_ebitda_series,
    resolve_effective_ebitda,
)
from valuation.dcf.models import IncomeStatementAdjustment, IncomeStatementEntry

# ============================================================================
# Test Data
# ============================================================================

STATEMENT = {
    2024: IncomeStatementEntry(revenue=1000, cogs=550, sga=300, depreciation=50, amortization=30),
    2025: IncomeStatementEntry(revenue=1200, cogs=600, sga=320, depreciation=55, amortization=30),
}


def test_compute_ebitda_adds_back_depreciation_and_amortization():
    assert compute_ebitda(1000, 550, 300, 50, 30) == 230


def test_compute_ebitda_for_missing_year_is_zero():
    assert compute_ebitda_for_year(STATEMENT, 2024) == 230
    assert compute_ebitda_for_year(STATEMENT, 2030) == 0


def test_derive_series_one_value_per_year():
    assert derive_ebitda_series(STATEMENT) == {2024: 230, 2025: 365}


def test_revenue_adjustment_applied():
    adjusted = apply_adjustments(STATEMENT, {2024: IncomeStatementAdjustment(revenue_adjustment=0.1)})
    assert adjusted[2024].revenue == pytest.approx(1100)
    assert adjusted[2024].cogs == 550
    assert adjusted[2024].sga == 300


def test_negative_adjustments_reduce_values():
    adjusted = apply_adjustments(
        STATEMENT,
        {2025: IncomeStatementAdjustment(cogs_adjustment=-0.1, sga_adjustment=-0.5)},
    )
    assert adjusted[2025].cogs == pytest.approx(540)
    assert adjusted[2025].sga == pytest.approx(160)


def test_missing_adjustment_leaves_year_unchanged():
    adjusted = apply_adjustments(STATEMENT, {2024: IncomeStatementAdjustment(revenue_adjustment=0.1)})
    assert adjusted[2025] == STATEMENT[2025]


def test_depreciation_and_amortization_never_adjusted():
    adjustment = IncomeStatementAdjustment(revenue_adjustment=0.5, cogs_adjustment=0.5, sga_adjustment=0.5)
    adjusted = apply_adjustments(STATEMENT, {2024: adjustment})
    assert adjusted[2024].depreciation == 50
    assert adjusted[2024].amortization == 30


def test_adjustment_only_years_ignored():
    adjusted = apply_adjustments(STATEMENT, {2031: IncomeStatementAdjustment(revenue_adjustment=1.0)})
    assert set(adjusted) == {2024, 2025}


def test_apply_adjustments_does_not_mutate_input():
    before = {year: entry.model_copy() for year, entry in STATEMENT.items()}
    apply_adjustments(STATEMENT, {2024: IncomeStatementAdjustment(revenue_adjustment=0.2)})
    assert STATEMENT == before


# ============================================================================
# resolve_effective_ebitda
# ============================================================================

DIRECT = {2024: 999.0}


def test_direct_series_when_income_statement_mode_off():
    assert resolve_effective_ebitda(DIRECT, False, STATEMENT) is DIRECT


def test_direct_series_when_no_statement_supplied():
    assert resolve_effective_ebitda(DIRECT, True, None) is DIRECT


def test_derived_series_without_adjustments():
    assert resolve_effective_ebitda(DIRECT, True, STATEMENT) == {2024: 230, 2025: 365}


def test_derived_series_with_adjustments():
    adjustments = {2024: IncomeStatementAdjustment(revenue_adjustment=0.1)}
    ebitda = resolve_effective_ebitda(DIRECT, True, STATEMENT, adjustments)
    assert ebitda[2024] == pytest.approx(330)
    assert ebitda[2025] == pytest.approx(365)


def test_camel_case_input_accepted():
    entry = IncomeStatementAdjustment.model_validate({"revenueAdjustment": 0.1, "cogsAdjustment": -0.05})
    assert entry.revenue_adjustment == 0.1
    assert entry.cogs_adjustment == -0.05
    assert entry.sga_adjustment == 0
