#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
FastAPI service for DCF valuation.

Endpoints:
  GET    /health
  POST   /dcf                          EBITDA + parameters -> DCF results
  POST   /dcf/dataset                  full dataset (direct or income-statement mode)
  POST   /income-statement/ebitda      income statement (+ adjustments) -> EBITDA
  POST   /currency/convert             dataset -> dataset in another currency
  GET    /currency/rates               stored exchange rates
  PUT    /currency/rates               insert/replace one directional rate
  POST   /scenarios/compare            two datasets -> results and differences
  GET    /scenarios/defaults           preset scenarios with results
  GET    /models, POST /models         saved models
  GET    /models/{id}, DELETE /models/{id}
  GET    /models/{id}/scenarios, POST /models/{id}/scenarios

Behavior:
  - Core validation errors and other ValueErrors -> 400 with ErrorDetail body
  - Missing models -> 404
  - Storage and unexpected failures -> 500
"""

import os
from datetime import date
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Path
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel, ConfigDict, Field, field_validator

from valuation.data.storage import DataService, DCFModel, DCFScenario, StorageError, get_data_service
from valuation.dcf.currency import ExchangeRateBook, convert_dataset
from valuation.dcf.dataset import calculate_dataset, effective_ebitda
from valuation.dcf.errors import ValuationError
from valuation.dcf.income_statement import resolve_effective_ebitda
from valuation.dcf.logic import compute_dcf_with_parameters
from valuation.dcf.models import (
    AdjustmentSeries,
    CamelModel,
    DCFDataSet,
    DCFParameters,
    DCFResults,
    EBITDASeries,
    ExchangeRate,
    IncomeStatementSeries,
    normalize_currency,
)
from valuation.dcf.scenarios import ScenarioComparison, compare_results, default_scenarios
from valuation.utils import API_HOST, API_PORT, API_RELOAD, get_logger

logger = get_logger(__name__)

API_VERSION = "1.0.0"

# ============================================================================
# FastAPI App Setup
# ============================================================================

app = FastAPI(
    title="DCF Valuation API",
    description="EBITDA-based DCF valuation with income-statement derivation, "
                "currency conversion and scenario comparison",
    version=API_VERSION,
)


# ============================================================================
# Dependencies
# ============================================================================

_data_service: Optional[DataService] = None
_rate_book: Optional[ExchangeRateBook] = None


def get_service() -> DataService:
    """Configured storage backend, created on first use."""
    global _data_service
    if _data_service is None:
        _data_service = get_data_service()
    return _data_service


def get_rate_book() -> ExchangeRateBook:
    global _rate_book
    if _rate_book is None:
        _rate_book = ExchangeRateBook()
    return _rate_book


# ============================================================================
# Pydantic Models
# ============================================================================


class DCFRequest(CamelModel):
    """EBITDA by year plus valuation parameters (percent)."""

    ebitda_data: EBITDASeries
    parameters: DCFParameters = Field(default_factory=DCFParameters)


class DatasetValuationResponse(CamelModel):
    effective_ebitda: EBITDASeries
    results: DCFResults


class EBITDADerivationRequest(CamelModel):
    income_statement_data: IncomeStatementSeries
    income_statement_adjustments: Optional[AdjustmentSeries] = None


class EBITDADerivationResponse(CamelModel):
    ebitda_data: EBITDASeries


class CurrencyConversionRequest(CamelModel):
    """Convert `dataset` to `to_currency`; stored rate used when `rate` is omitted."""

    dataset: DCFDataSet
    to_currency: str
    rate: Optional[float] = None

    @field_validator("to_currency")
    @classmethod
    def validate_to_currency(cls, v):
        return normalize_currency(v)


class ExchangeRateUpdate(CamelModel):
    from_currency: str = Field(alias="from")
    to_currency: str = Field(alias="to")
    rate: float

    @field_validator("from_currency", "to_currency")
    @classmethod
    def validate_codes(cls, v):
        return normalize_currency(v)


class ScenarioCompareRequest(CamelModel):
    scenario_a: DCFDataSet
    scenario_b: DCFDataSet


class ScenarioCompareResponse(CamelModel):
    results_a: DCFResults
    results_b: DCFResults
    comparison: ScenarioComparison


class ScenarioValuation(CamelModel):
    dataset: DCFDataSet
    results: DCFResults


class ModelCreateRequest(CamelModel):
    model_config = ConfigDict(protected_namespaces=())

    model_name: str = Field(..., min_length=1)
    company_name: Optional[str] = None
    dataset: DCFDataSet


class ScenarioCreateRequest(CamelModel):
    scenario_name: str = Field(..., min_length=1)
    dataset: DCFDataSet
    is_base_scenario: bool = False
    sort_order: int = 0


class ErrorDetail(BaseModel):
    """Error response detail."""

    error_code: str
    error_message: str
    field: Optional[str] = None
    timestamp: str = Field(default_factory=lambda: date.today().isoformat())


# ============================================================================
# Helper Functions
# ============================================================================


def _require_model(service: DataService, model_id: str) -> DCFModel:
    model = service.load_model(model_id)
    if model is None:
        raise HTTPException(status_code=404, detail=f"Model not found: {model_id}")
    return model


# ============================================================================
# API Endpoints
# ============================================================================


@app.get("/health")
def health_check():
    """Health check endpoint."""
    logger.info("Health check requested")
    return {
        "status": "ok",
        "service": "DCF Valuation API",
        "version": API_VERSION,
    }


@app.get("/", include_in_schema=False)
def root():
    """Redirect to docs."""
    return RedirectResponse("/docs")


@app.post("/dcf", response_model=DCFResults, tags=["Valuation"], summary="Compute DCF from EBITDA")
def compute_dcf_endpoint(request: DCFRequest):
    """
    Value an EBITDA series.

    **Example body:**
    ```
    {"ebitdaData": {"2024": 100, "2025": 120},
     "parameters": {"discountRate": 20, "perpetuityRate": 4, "corporateTaxRate": 21}}
    ```
    """
    p = request.parameters
    logger.info(
        f"DCF request: {len(request.ebitda_data)} years, discount={p.discount_rate}%, "
        f"perpetuity={p.perpetuity_rate}%, tax={p.corporate_tax_rate}%"
    )
    results = compute_dcf_with_parameters(request.ebitda_data, request.parameters)
    logger.info(f"Enterprise value: {results.enterprise_value:,.2f}")
    return results


@app.post("/dcf/dataset", response_model=DatasetValuationResponse, tags=["Valuation"])
def compute_dataset_endpoint(dataset: DCFDataSet):
    """Value a dataset in either EBITDA or income-statement mode."""
    mode = "income statement" if dataset.use_income_statement else "EBITDA"
    logger.info(f"Dataset valuation for '{dataset.label or dataset.id}' ({mode} mode)")
    return DatasetValuationResponse(
        effective_ebitda=effective_ebitda(dataset),
        results=calculate_dataset(dataset),
    )


@app.post("/income-statement/ebitda", response_model=EBITDADerivationResponse, tags=["Income Statement"])
def derive_ebitda_endpoint(request: EBITDADerivationRequest):
    """EBITDA = Revenue - COGS - SG&A + D + A, after optional adjustments."""
    ebitda = resolve_effective_ebitda(
        {},
        True,
        request.income_statement_data,
        request.income_statement_adjustments,
    )
    return EBITDADerivationResponse(ebitda_data=ebitda)


@app.post("/currency/convert", response_model=DCFDataSet, tags=["Currency"])
def convert_currency_endpoint(
    request: CurrencyConversionRequest,
    rate_book: ExchangeRateBook = Depends(get_rate_book),
):
    """Convert a dataset's monetary values; parameters are left untouched."""
    dataset = request.dataset
    rate = request.rate
    if rate is None:
        rate = rate_book.get_rate(dataset.base_currency, request.to_currency)
    logger.info(f"Converting dataset {dataset.base_currency} -> {request.to_currency} at {rate}")
    return convert_dataset(dataset, dataset.base_currency, request.to_currency, rate)


@app.get("/currency/rates", response_model=List[ExchangeRate], tags=["Currency"])
def list_rates_endpoint(rate_book: ExchangeRateBook = Depends(get_rate_book)):
    return rate_book.rates


@app.put("/currency/rates", response_model=ExchangeRate, tags=["Currency"])
def update_rate_endpoint(
    update: ExchangeRateUpdate,
    rate_book: ExchangeRateBook = Depends(get_rate_book),
):
    return rate_book.update_rate(update.from_currency, update.to_currency, update.rate)


@app.post("/scenarios/compare", response_model=ScenarioCompareResponse, tags=["Scenarios"])
def compare_scenarios_endpoint(request: ScenarioCompareRequest):
    """Differences are B - A; percent differences are relative to A."""
    results_a = calculate_dataset(request.scenario_a)
    results_b = calculate_dataset(request.scenario_b)
    return ScenarioCompareResponse(
        results_a=results_a,
        results_b=results_b,
        comparison=compare_results(results_a, results_b),
    )


@app.get("/scenarios/defaults", response_model=List[ScenarioValuation], tags=["Scenarios"])
def default_scenarios_endpoint():
    return [
        ScenarioValuation(dataset=dataset, results=calculate_dataset(dataset))
        for dataset in default_scenarios()
    ]


@app.get("/models", response_model=List[DCFModel], tags=["Models"])
def list_models_endpoint(service: DataService = Depends(get_service)):
    return service.list_models()


@app.post("/models", response_model=DCFModel, status_code=201, tags=["Models"])
def create_model_endpoint(request: ModelCreateRequest, service: DataService = Depends(get_service)):
    """Value the dataset, then save it together with its results."""
    results = calculate_dataset(request.dataset)
    model_id = service.save_model(DCFModel(
        model_name=request.model_name,
        company_name=request.company_name,
        dataset=request.dataset,
        results=results,
    ))
    return _require_model(service, model_id)


@app.get("/models/{model_id}", response_model=DCFModel, tags=["Models"])
def get_model_endpoint(
    model_id: str = Path(..., description="Model id"),
    service: DataService = Depends(get_service),
):
    return _require_model(service, model_id)


@app.delete("/models/{model_id}", status_code=204, tags=["Models"])
def delete_model_endpoint(
    model_id: str = Path(..., description="Model id"),
    service: DataService = Depends(get_service),
):
    _require_model(service, model_id)
    for scenario in service.list_scenarios(model_id):
        service.delete_scenario(scenario.id)
    service.delete_model(model_id)


@app.get("/models/{model_id}/scenarios", response_model=List[DCFScenario], tags=["Models"])
def list_model_scenarios_endpoint(
    model_id: str = Path(..., description="Model id"),
    service: DataService = Depends(get_service),
):
    _require_model(service, model_id)
    return service.list_scenarios(model_id)


@app.post("/models/{model_id}/scenarios", response_model=DCFScenario, status_code=201, tags=["Models"])
def create_model_scenario_endpoint(
    request: ScenarioCreateRequest,
    model_id: str = Path(..., description="Model id"),
    service: DataService = Depends(get_service),
):
    _require_model(service, model_id)
    scenario_id = service.save_scenario(DCFScenario(
        model_id=model_id,
        scenario_name=request.scenario_name,
        dataset=request.dataset,
        results=calculate_dataset(request.dataset),
        is_base_scenario=request.is_base_scenario,
        sort_order=request.sort_order,
    ))
    return service.load_scenario(scenario_id)


# ============================================================================
# Exception Handlers
# ============================================================================


@app.exception_handler(ValuationError)
async def valuation_exception_handler(request, exc: ValuationError):
    """Input errors from the valuation core."""
    logger.error(f"Validation error [{exc.error_code}]: {exc.message}")
    return JSONResponse(
        status_code=400,
        content=ErrorDetail(
            error_code=exc.error_code,
            error_message=exc.message,
            field=exc.field,
        ).model_dump(),
    )


@app.exception_handler(ValueError)
async def value_error_handler(request, exc: ValueError):
    """Plain input errors raised below the request models."""
    logger.error(f"Invalid input: {exc}")
    return JSONResponse(
        status_code=400,
        content=ErrorDetail(
            error_code="INVALID_INPUT",
            error_message=str(exc),
        ).model_dump(),
    )


@app.exception_handler(StorageError)
async def storage_exception_handler(request, exc: StorageError):
    logger.error(f"Storage error: {exc}")
    return JSONResponse(
        status_code=500,
        content=ErrorDetail(
            error_code="STORAGE_ERROR",
            error_message=str(exc),
        ).model_dump(),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc):
    """Handle HTTP exceptions with structured response."""
    logger.error(f"HTTP Exception: {exc.status_code} - {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorDetail(
            error_code=f"HTTP_{exc.status_code}",
            error_message=str(exc.detail),
        ).model_dump(),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc):
    """Handle unexpected exceptions with structured response."""
    logger.error(f"Unhandled exception: {type(exc).__name__}: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content=ErrorDetail(
            error_code="INTERNAL_ERROR",
            error_message=f"Internal server error: {type(exc).__name__}",
        ).model_dump(),
    )


# ============================================================================
# Main
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", str(API_PORT)))
    logger.info(f"Starting DCF Valuation API on {API_HOST}:{port}...")
    uvicorn.run("valuation.api.api:app", host=API_HOST, port=port, reload=API_RELOAD)
