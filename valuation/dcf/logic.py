#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
DCF valuation engine: core financial logic for enterprise value computation.

Takes EBITDA by fiscal year plus three percentage rates and produces the
year-by-year present-value schedule, the Gordon Growth terminal value and
the enterprise value. Pure and synchronous: no I/O, no state between calls.

    FCF_t   = EBITDA_t − tax_t          (tax only on positive EBITDA)
    PV_t    = FCF_t / (1 + r)^t         (t = 1..N over ascending years)
    TV      = FCF_N × (1 + g) / (r − g)
    PV(TV)  = TV / (1 + r)^N            (same horizon as the last cash flow)
    EV      = Σ PV_t + PV(TV)
"""

from typing import Mapping

import numpy as np

from ..utils import get_logger
from .errors import EmptyDatasetError, InvalidTaxRateError, NonConvergentGrowthError
from .models import DCFParameters, DCFResults, PresentValueBreakdown

logger = get_logger(__name__)


def compute_free_cash_flow(ebitda: float, tax_rate: float) -> float:
    """
    Post-tax EBITDA. Losses pass through untaxed (no tax shield).

    Args:
        ebitda: EBITDA for the year
        tax_rate: Corporate tax rate in percent, 0-100

    Returns:
        Free cash flow for the year

    Raises:
        InvalidTaxRateError: If tax_rate is outside [0, 100]
    """
    # NaN fails the range test
    if not 0 <= tax_rate <= 100:
        raise InvalidTaxRateError(tax_rate)

    if ebitda <= 0:
        return ebitda

    tax = ebitda * (tax_rate / 100)
    return ebitda - tax


def compute_discount_factor(wacc: float, period: int) -> float:
    """1 / (1 + wacc)^period, with wacc as a fraction and period 1-based."""
    return 1.0 / ((1.0 + wacc) ** period)


def validate_parameters(discount_rate: float, perpetuity_rate: float) -> None:
    """Raise NonConvergentGrowthError unless discount_rate > perpetuity_rate."""
    if not discount_rate > perpetuity_rate:
        raise NonConvergentGrowthError(discount_rate, perpetuity_rate)


def compute_dcf(
    ebitda_data: Mapping[int, float],
    discount_rate: float,
    perpetuity_rate: float,
    tax_rate: float,
) -> DCFResults:
    """
    Run the DCF valuation over an EBITDA series.

    Args:
        ebitda_data: Fiscal year -> EBITDA (any key order)
        discount_rate: WACC in percent
        perpetuity_rate: Terminal growth rate in percent
        tax_rate: Corporate tax rate in percent

    Returns:
        DCFResults with one breakdown row per year, ascending

    Raises:
        EmptyDatasetError: If ebitda_data has no years
        NonConvergentGrowthError: If discount_rate <= perpetuity_rate
        InvalidTaxRateError: If tax_rate is outside [0, 100]
    """
    # Keys may have arrived as strings (JSON); 2024 and "2024" are one year
    values = {int(y): float(v) for y, v in ebitda_data.items()}

    # Numeric sort: defines both presentation order and the discount period
    years = sorted(values)
    if not years:
        raise EmptyDatasetError()

    validate_parameters(discount_rate, perpetuity_rate)

    wacc = discount_rate / 100
    growth = perpetuity_rate / 100

    rows = []
    projections_pv = 0.0

    for t, year in enumerate(years, start=1):
        ebitda = values[year]
        tax = ebitda * (tax_rate / 100) if ebitda > 0 else 0.0
        fcf = compute_free_cash_flow(ebitda, tax_rate)
        discount_factor = compute_discount_factor(wacc, t)
        present_value = fcf * discount_factor

        rows.append(PresentValueBreakdown(
            year=year,
            ebitda=ebitda,
            tax=tax,
            fcf=fcf,
            discount_factor=discount_factor,
            present_value=present_value,
        ))
        projections_pv += present_value

    # ===== Terminal Value (Gordon Growth on final-year FCF) =====
    final_fcf = rows[-1].fcf
    terminal_value = final_fcf * (1 + growth) / (wacc - growth)
    terminal_value_pv = terminal_value * compute_discount_factor(wacc, len(years))

    enterprise_value = projections_pv + terminal_value_pv

    if not np.isfinite(enterprise_value):
        logger.warning(
            f"Non-finite enterprise value for years {years[0]}-{years[-1]}; "
            f"check EBITDA inputs for NaN/inf"
        )

    logger.debug(
        f"DCF computed over {len(years)} years ({years[0]}-{years[-1]}): "
        f"EV={enterprise_value:,.2f} (PV projections={projections_pv:,.2f}, "
        f"PV(TV)={terminal_value_pv:,.2f})"
    )

    return DCFResults(
        enterprise_value=enterprise_value,
        terminal_value=terminal_value,
        terminal_value_pv=terminal_value_pv,
        projections_pv=projections_pv,
        present_values=rows,
    )


def compute_dcf_with_parameters(ebitda_data: Mapping[int, float], parameters: DCFParameters) -> DCFResults:
    """compute_dcf driven by a DCFParameters object."""
    return compute_dcf(
        ebitda_data,
        parameters.discount_rate,
        parameters.perpetuity_rate,
        parameters.corporate_tax_rate,
    )


if __name__ == "__main__":
    print("DCF module loaded successfully")
