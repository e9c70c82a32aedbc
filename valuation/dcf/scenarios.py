#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Preset scenarios, scenario comparison and the value bridge.

Scenario presets (all on the default EBITDA path and tax rate):
  Conservative: discount 25%, perpetuity 3%
  Base:         discount 20%, perpetuity 4%
  Optimistic:   discount 18%, perpetuity 5%
"""

from typing import Dict, List

import numpy as np
import pandas as pd
from pydantic import Field

from ..utils import DEFAULT_DISCOUNT_RATE, DEFAULT_PERPETUITY_RATE, DEFAULT_TAX_RATE, get_logger
from .models import CamelModel, DCFDataSet, DCFParameters, DCFResults, EBITDASeries

logger = get_logger(__name__)

DEFAULT_EBITDA_DATA: EBITDASeries = {
    2023: -1_274_610,
    2024: -885_664,
    2025: 29_279,
    2026: 1_715_988,
    2027: 3_618_470,
    2028: 7_840_841,
    2029: 15_634_053,
}

DEFAULT_FISCAL_YEAR_LABELS: Dict[int, str] = {year: f"FY{year}" for year in DEFAULT_EBITDA_DATA}

SCENARIO_PREFIX = "iFReturns"

_PRESETS = [
    ("ifreturns-conservative", "Conservative", 25.0, 3.0),
    ("ifreturns-base", "Base", 20.0, 4.0),
    ("ifreturns-optimistic", "Optimistic", 18.0, 5.0),
]

_RESULT_METRICS = [
    ("enterprise_value", "Enterprise Value"),
    ("terminal_value", "Terminal Value"),
    ("terminal_value_pv", "Terminal Value PV"),
    ("projections_pv", "Projections PV"),
]

_PARAMETER_METRICS = [
    ("discount_rate", "Discount Rate (WACC)"),
    ("perpetuity_rate", "Perpetuity Growth Rate"),
    ("corporate_tax_rate", "Corporate Tax Rate"),
]


def default_parameters() -> DCFParameters:
    return DCFParameters(
        discount_rate=DEFAULT_DISCOUNT_RATE,
        perpetuity_rate=DEFAULT_PERPETUITY_RATE,
        corporate_tax_rate=DEFAULT_TAX_RATE,
    )


def default_dataset() -> DCFDataSet:
    """The sample company with the default parameters."""
    return DCFDataSet(
        id="default",
        label="Default",
        ebitda_data=dict(DEFAULT_EBITDA_DATA),
        parameters=default_parameters(),
        fiscal_year_labels=dict(DEFAULT_FISCAL_YEAR_LABELS),
    )


def default_scenarios() -> List[DCFDataSet]:
    """Fresh copies of the three preset scenarios."""
    return [
        DCFDataSet(
            id=scenario_id,
            label=f"{SCENARIO_PREFIX} {label}",
            ebitda_data=dict(DEFAULT_EBITDA_DATA),
            parameters=DCFParameters(
                discount_rate=discount_rate,
                perpetuity_rate=perpetuity_rate,
                corporate_tax_rate=DEFAULT_TAX_RATE,
            ),
            use_income_statement=False,
            fiscal_year_labels=dict(DEFAULT_FISCAL_YEAR_LABELS),
        )
        for scenario_id, label, discount_rate, perpetuity_rate in _PRESETS
    ]


# ============================================================================
# Comparison
# ============================================================================


class MetricDifference(CamelModel):
    """B relative to A for one metric."""

    value_a: float
    value_b: float
    difference: float
    percent_difference: float


class ScenarioComparison(CamelModel):
    enterprise_value: MetricDifference
    terminal_value: MetricDifference
    terminal_value_pv: MetricDifference = Field(alias="terminalValuePV")
    projections_pv: MetricDifference = Field(alias="projectionsPV")


def metric_difference(value_a: float, value_b: float) -> MetricDifference:
    """Absolute and percent change from A to B; percent is 0 when A is 0."""
    diff = value_b - value_a
    percent = (diff / value_a) * 100 if value_a != 0 else 0.0
    return MetricDifference(
        value_a=value_a,
        value_b=value_b,
        difference=diff,
        percent_difference=percent,
    )


def compare_results(results_a: DCFResults, results_b: DCFResults) -> ScenarioComparison:
    return ScenarioComparison(**{
        attr: metric_difference(getattr(results_a, attr), getattr(results_b, attr))
        for attr, _ in _RESULT_METRICS
    })


def comparison_table(
    dataset_a: DCFDataSet,
    dataset_b: DCFDataSet,
    results_a: DCFResults,
    results_b: DCFResults,
) -> pd.DataFrame:
    """
    Side-by-side table of parameters and results.

    Columns: category, label, value_a, value_b, difference (B - A).
    Parameter differences are in percentage points.
    """
    rows = []
    for attr, label in _PARAMETER_METRICS:
        a = getattr(dataset_a.parameters, attr)
        b = getattr(dataset_b.parameters, attr)
        rows.append({"category": "Parameters", "label": label, "value_a": a, "value_b": b, "difference": b - a})
    for attr, label in _RESULT_METRICS:
        a = getattr(results_a, attr)
        b = getattr(results_b, attr)
        rows.append({"category": "DCF Results", "label": label, "value_a": a, "value_b": b, "difference": b - a})
    return pd.DataFrame(rows, columns=["category", "label", "value_a", "value_b", "difference"])


# ============================================================================
# Value bridge
# ============================================================================


def value_bridge(results: DCFResults) -> pd.DataFrame:
    """
    Walk from total EBITDA to enterprise value.

    Steps: EBITDA, Tax, Discounting Impact, Terminal Value PV, Enterprise
    Value. The signed amounts of the first four sum to the last one
    (projections PV + terminal value PV).
    """
    frame = results.to_frame()
    total_ebitda = float(np.sum(frame["ebitda"].to_numpy()))
    total_tax = float(np.sum(frame["tax"].to_numpy()))
    total_fcf = float(np.sum(frame["fcf"].to_numpy()))
    discounting_impact = total_fcf - results.projections_pv

    steps = [
        ("EBITDA", total_ebitda),
        ("Tax", -total_tax),
        ("Discounting Impact", -discounting_impact),
        ("Terminal Value PV", results.terminal_value_pv),
    ]
    bridge = pd.DataFrame(steps, columns=["step", "amount"])
    bridge["cumulative"] = np.cumsum(bridge["amount"].to_numpy())
    total = pd.DataFrame(
        [("Enterprise Value", results.enterprise_value, results.enterprise_value)],
        columns=["step", "amount", "cumulative"],
    )
    return pd.concat([bridge, total], ignore_index=True)
