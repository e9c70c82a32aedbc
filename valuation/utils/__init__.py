"""Configuration and logging helpers."""

from .config import (
    BASE_DIR, DATA_DIR,
    DEFAULT_DISCOUNT_RATE, DEFAULT_PERPETUITY_RATE, DEFAULT_TAX_RATE,
    BASE_CURRENCY, DEFAULT_EXCHANGE_RATES, CURRENCY_SYMBOLS,
    STORAGE_BACKEND, STORAGE_DIR, DATABASE_URL,
    LOG_LEVEL, LOG_FORMAT, API_HOST, API_PORT, API_RELOAD,
)
from .logger import get_logger

__all__ = [
    "BASE_DIR", "DATA_DIR",
    "DEFAULT_DISCOUNT_RATE", "DEFAULT_PERPETUITY_RATE", "DEFAULT_TAX_RATE",
    "BASE_CURRENCY", "DEFAULT_EXCHANGE_RATES", "CURRENCY_SYMBOLS",
    "STORAGE_BACKEND", "STORAGE_DIR", "DATABASE_URL",
    "LOG_LEVEL", "LOG_FORMAT", "API_HOST", "API_PORT", "API_RELOAD",
    "get_logger",
]
