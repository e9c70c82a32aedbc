"""DCF Valuation Toolkit - Modular Architecture

Modules:
  - valuation.dcf: DCF engine, income-statement derivation, currency conversion, scenarios
  - valuation.data: Storage port and backends (local JSON files, SQL)
  - valuation.utils: Configuration and logging
  - valuation.api: FastAPI server
"""

from . import dcf, data, utils

__all__ = ["dcf", "data", "utils"]
