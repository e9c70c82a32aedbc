#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Tests for the DCF valuation engine (valuation/dcf/logic.py).

Covers free cash flow policy, discounting, terminal value, parameter
validation and the reference seven-year dataset.
"""

import pytest

from valuation.dcf.errors import EmptyDatasetError, InvalidTaxRateError, NonConvergentGrowthError
from valuation.dcf.logic import (
    compute_discount_factor,
    compute_dcf,
    compute_dcf_with_parameters,
    compute_free_cash_flow,
)
from valuation.dcf.models import DCFParameters
from valuation.dcf.scenarios import DEFAULT_EBITDA_DATA

# ============================================================================
# Test Data
# ============================================================================

DISCOUNT_RATE = 30
PERPETUITY_RATE = 4
TAX_RATE = 21


def run_default():
    return compute_dcf(DEFAULT_EBITDA_DATA, DISCOUNT_RATE, PERPETUITY_RATE, TAX_RATE)


# ============================================================================
# Free cash flow
# ============================================================================


def test_free_cash_flow_taxes_positive_ebitda():
    assert compute_free_cash_flow(1000, 21) == pytest.approx(790)


@pytest.mark.parametrize("ebitda", [0, -1, -1_274_610, -0.5])
@pytest.mark.parametrize("tax_rate", [0, 21, 100])
def test_free_cash_flow_passes_losses_through_untaxed(ebitda, tax_rate):
    assert compute_free_cash_flow(ebitda, tax_rate) == ebitda


def test_free_cash_flow_tax_rate_bounds_are_inclusive():
    assert compute_free_cash_flow(100, 0) == 100
    assert compute_free_cash_flow(100, 100) == 0


@pytest.mark.parametrize("tax_rate", [-0.01, 100.01, 150, float("nan")])
def test_free_cash_flow_rejects_tax_rate_out_of_range(tax_rate):
    with pytest.raises(InvalidTaxRateError, match="tax rate out of range"):
        compute_free_cash_flow(100, tax_rate)


# ============================================================================
# Discount factor
# ============================================================================


def test_discount_factor():
    assert compute_discount_factor(0.10, 1) == pytest.approx(1 / 1.1)
    assert compute_discount_factor(0.30, 3) == pytest.approx(1 / 1.3 ** 3)
    assert compute_discount_factor(0.0, 5) == 1.0


# ============================================================================
# compute_dcf
# ============================================================================


def test_terminal_value_matches_gordon_growth():
    result = run_default()
    final_fcf = compute_free_cash_flow(DEFAULT_EBITDA_DATA[2029], TAX_RATE)
    expected = final_fcf * (1 + 0.04) / (0.30 - 0.04)

    assert result.terminal_value == pytest.approx(expected, abs=0.01)
    assert result.terminal_value == pytest.approx(49_403_607.48, abs=0.01)


def test_enterprise_value_exceeds_terminal_value_pv():
    result = run_default()
    assert result.enterprise_value > result.terminal_value_pv
    assert result.enterprise_value == pytest.approx(result.projections_pv + result.terminal_value_pv)


def test_terminal_value_discounted_at_final_period():
    result = run_default()
    n = len(DEFAULT_EBITDA_DATA)
    assert result.terminal_value_pv == pytest.approx(result.terminal_value / 1.3 ** n)
    assert result.present_values[-1].discount_factor == pytest.approx(1 / 1.3 ** n)


def test_breakdown_rows_ascending_with_one_row_per_year():
    shuffled = {2027: 30.0, 2024: 10.0, 2026: 25.0, 2025: -5.0}
    result = compute_dcf(shuffled, 20, 2, 25)

    assert [row.year for row in result.present_values] == [2024, 2025, 2026, 2027]
    assert len(result.present_values) == len(shuffled)


def test_breakdown_row_values():
    result = compute_dcf({2024: 100.0, 2025: -50.0}, 10, 2, 20)
    first, second = result.present_values

    assert first.tax == pytest.approx(20)
    assert first.fcf == pytest.approx(80)
    assert first.discount_factor == pytest.approx(1 / 1.1)
    assert first.present_value == pytest.approx(80 / 1.1)

    assert second.tax == 0
    assert second.fcf == -50.0
    assert second.present_value == pytest.approx(-50 / 1.1 ** 2)

    assert result.projections_pv == pytest.approx(first.present_value + second.present_value)


def test_result_is_sort_invariant():
    forward = dict(DEFAULT_EBITDA_DATA)
    backward = {year: DEFAULT_EBITDA_DATA[year] for year in sorted(DEFAULT_EBITDA_DATA, reverse=True)}

    a = compute_dcf(forward, DISCOUNT_RATE, PERPETUITY_RATE, TAX_RATE)
    b = compute_dcf(backward, DISCOUNT_RATE, PERPETUITY_RATE, TAX_RATE)
    assert a == b


def test_result_is_idempotent():
    assert run_default() == run_default()
    assert run_default().to_dict() == run_default().to_dict()


def test_years_sorted_numerically_not_lexically():
    # "999" would sort after "2024" as text
    result = compute_dcf({2024: 10.0, 999: 5.0, 10000: 1.0}, 15, 3, 0)
    assert [row.year for row in result.present_values] == [999, 2024, 10000]


def test_string_year_keys_accepted():
    result = compute_dcf({"2025": 200.0, "2024": 100.0}, 15, 3, 21)
    assert [row.year for row in result.present_values] == [2024, 2025]


def test_single_year():
    result = compute_dcf({2030: 1000.0}, 10, 0, 0)
    assert result.projections_pv == pytest.approx(1000 / 1.1)
    assert result.terminal_value == pytest.approx(1000 / 0.10)
    assert result.terminal_value_pv == pytest.approx(10000 / 1.1)


def test_negative_final_year_gives_negative_terminal_value():
    result = compute_dcf({2024: 100.0, 2025: -100.0}, 12, 2, 25)
    assert result.terminal_value < 0


# ============================================================================
# Validation
# ============================================================================


def test_empty_series_rejected():
    with pytest.raises(EmptyDatasetError, match="EBITDA data required"):
        compute_dcf({}, 20, 4, 21)


@pytest.mark.parametrize("discount_rate, perpetuity_rate", [
    (4, 4), (3, 4), (0, 0), (-1, 2), (float("nan"), 4), (20, float("nan")),
])
def test_discount_rate_must_exceed_perpetuity_rate(discount_rate, perpetuity_rate):
    with pytest.raises(NonConvergentGrowthError, match="must exceed perpetuity growth rate"):
        compute_dcf(DEFAULT_EBITDA_DATA, discount_rate, perpetuity_rate, TAX_RATE)


def test_marginally_greater_discount_rate_accepted():
    result = compute_dcf(DEFAULT_EBITDA_DATA, 4.0001, 4, TAX_RATE)
    assert result.terminal_value > 0


def test_errors_are_value_errors():
    with pytest.raises(ValueError):
        compute_dcf({2024: 1.0}, 5, 5, 21)


def test_invalid_tax_rate_rejected_by_compute_dcf():
    with pytest.raises(InvalidTaxRateError):
        compute_dcf(DEFAULT_EBITDA_DATA, 30, 4, 101)


# ============================================================================
# Parameters object and output shapes
# ============================================================================


def test_compute_with_parameters_object():
    params = DCFParameters(discount_rate=30, perpetuity_rate=4, corporate_tax_rate=21)
    assert compute_dcf_with_parameters(DEFAULT_EBITDA_DATA, params) == run_default()


def test_serialized_result_uses_camel_case_keys():
    data = run_default().to_dict()
    assert set(data) == {"enterpriseValue", "terminalValue", "terminalValuePV", "projectionsPV", "presentValues"}
    assert set(data["presentValues"][0]) == {"year", "ebitda", "tax", "fcf", "discountFactor", "presentValue"}
    assert [row["year"] for row in data["presentValues"]] == sorted(DEFAULT_EBITDA_DATA)


def test_breakdown_frame():
    frame = run_default().to_frame()
    assert list(frame.columns) == ["year", "ebitda", "tax", "fcf", "discount_factor", "present_value"]
    assert frame["year"].tolist() == sorted(DEFAULT_EBITDA_DATA)
    assert frame["present_value"].sum() == pytest.approx(run_default().projections_pv)


def test_invalid_tax_rate_rejected_for_loss_only_series():
    with pytest.raises(InvalidTaxRateError):
        compute_dcf({2024: -10.0, 2025: -5.0}, 30, 4, float("nan"))


def test_int_and_string_keys_for_same_year_collapse():
    result = compute_dcf({2024: 1.0, "2024": 2.0, "2025": 3.0}, 20, 4, 21)
    assert [row.year for row in result.present_values] == [2024, 2025]
    # later key wins, as with any mapping update
    assert result.present_values[0].ebitda == 2.0
    assert result.present_values[-1].discount_factor == pytest.approx(1 / 1.2 ** 2)
