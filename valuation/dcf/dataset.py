"""
Dataset orchestration: picks direct vs income-statement EBITDA for a
DCFDataSet and feeds it to the engine.
"""

import hashlib
import json
from typing import Iterable, Optional

import pandas as pd

from ..utils import get_logger
from .currency import convert_dataset
from .income_statement import resolve_effective_ebitda
from .logic import compute_dcf_with_parameters
from .models import (
    DCFDataSet,
    DCFResults,
    EBITDASeries,
    IncomeStatementAdjustment,
    IncomeStatementEntry,
)

logger = get_logger(__name__)


def effective_ebitda(dataset: DCFDataSet) -> EBITDASeries:
    """EBITDA series the engine should value for this dataset."""
    return resolve_effective_ebitda(
        dataset.ebitda_data,
        dataset.use_income_statement,
        dataset.income_statement_data,
        dataset.income_statement_adjustments,
    )


def calculate_dataset(dataset: DCFDataSet) -> DCFResults:
    """Value a dataset with its own parameters."""
    return compute_dcf_with_parameters(effective_ebitda(dataset), dataset.parameters)


def dataset_cache_key(dataset: DCFDataSet) -> str:
    """SHA-256 of the canonical JSON form; independent of key insertion order."""
    payload = json.dumps(
        dataset.model_dump(mode="json", by_alias=True),
        sort_keys=True,
        separators=(",", ":"),
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


class ValuationWorkspace:
    """
    Holds one dataset being edited and its valuation.

    Edits overwrite per-year values (nothing is deleted implicitly). results()
    is memoised on the dataset hash, so repeated calls without edits reuse
    the last computation.
    """

    def __init__(self, dataset: Optional[DCFDataSet] = None):
        self._dataset = dataset.model_copy(deep=True) if dataset is not None else DCFDataSet()
        self._cache_key: Optional[str] = None
        self._cached: Optional[DCFResults] = None

    @property
    def dataset(self) -> DCFDataSet:
        return self._dataset

    @property
    def effective_ebitda(self) -> EBITDASeries:
        return effective_ebitda(self._dataset)

    def set_ebitda(self, year: int, value: float) -> None:
        self._dataset.ebitda_data[int(year)] = float(value)

    def set_parameters(
        self,
        discount_rate: Optional[float] = None,
        perpetuity_rate: Optional[float] = None,
        corporate_tax_rate: Optional[float] = None,
    ) -> None:
        update = {
            "discount_rate": discount_rate,
            "perpetuity_rate": perpetuity_rate,
            "corporate_tax_rate": corporate_tax_rate,
        }
        update = {k: float(v) for k, v in update.items() if v is not None}
        self._dataset.parameters = self._dataset.parameters.model_copy(update=update)

    def set_use_income_statement(self, use_income_statement: bool) -> None:
        self._dataset.use_income_statement = bool(use_income_statement)

    def set_income_statement_entry(self, year: int, entry: IncomeStatementEntry) -> None:
        if self._dataset.income_statement_data is None:
            self._dataset.income_statement_data = {}
        self._dataset.income_statement_data[int(year)] = entry

    def set_adjustment(self, year: int, adjustment: IncomeStatementAdjustment) -> None:
        if self._dataset.income_statement_adjustments is None:
            self._dataset.income_statement_adjustments = {}
        self._dataset.income_statement_adjustments[int(year)] = adjustment

    def set_historical_years(self, years: Iterable[int]) -> None:
        """Mark which years are actuals (replaces any previous set)."""
        self._dataset.historical_years = sorted({int(y) for y in years})

    def convert(self, to_currency: str, rate: float) -> None:
        """Switch the dataset's currency, scaling its monetary values."""
        self._dataset = convert_dataset(self._dataset, self._dataset.base_currency, to_currency, rate)

    def results(self) -> DCFResults:
        key = dataset_cache_key(self._dataset)
        if key != self._cache_key or self._cached is None:
            self._cached = calculate_dataset(self._dataset)
            self._cache_key = key
            logger.debug(f"Recomputed valuation for '{self._dataset.label}' ({key[:12]})")
        return self._cached

    def breakdown(self) -> pd.DataFrame:
        """Results table with display labels and an actual (historical) flag per year."""
        table = self.results().to_frame()
        table.insert(1, "label", [self._dataset.fiscal_label(int(y)) for y in table["year"]])
        table.insert(2, "historical", [self._dataset.is_historical(int(y)) for y in table["year"]])
        return table
