#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Configuration module: centralize all environment variables and defaults.
Supports easy overrides without modifying code.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env
load_dotenv()

# ========== DATA FILE PATHS ==========
BASE_DIR = Path(__file__).parent.parent.parent.resolve()
DATA_DIR = BASE_DIR / "Data"

# ========== DCF DEFAULTS ==========
# All three are percentages (20 means 20%)
DEFAULT_DISCOUNT_RATE = float(os.getenv("DEFAULT_DISCOUNT_RATE", "30"))
DEFAULT_PERPETUITY_RATE = float(os.getenv("DEFAULT_PERPETUITY_RATE", "4"))
DEFAULT_TAX_RATE = float(os.getenv("DEFAULT_TAX_RATE", "21"))

# ========== CURRENCY CONFIGURATION ==========
BASE_CURRENCY = os.getenv("BASE_CURRENCY", "USD").upper()

# Directional rates; the inverse is never derived automatically
DEFAULT_EXCHANGE_RATES = [
    ("EUR", "USD", float(os.getenv("RATE_EUR_USD", "1.08"))),
    ("USD", "EUR", float(os.getenv("RATE_USD_EUR", "0.93"))),
]

CURRENCY_SYMBOLS = {
    "EUR": "€",
    "USD": "$",
    "GBP": "£",
}

# ========== STORAGE CONFIGURATION ==========
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "local").lower()  # "local" or "sql"
STORAGE_DIR = os.getenv("STORAGE_DIR", str(DATA_DIR / "models"))
DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"sqlite:///{DATA_DIR / 'dcf_models.db'}"
)

# ========== LOGGING CONFIGURATION ==========
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "%(asctime)s [%(levelname)s] %(name)s: %(message)s")

# ========== API CONFIGURATION ==========
API_HOST = os.getenv("API_HOST", "127.0.0.1")
API_PORT = int(os.getenv("API_PORT", "8000"))
API_RELOAD = os.getenv("API_RELOAD", "False").lower() == "true"

if __name__ == "__main__":
    print("=" * 60)
    print("Configuration Summary")
    print("=" * 60)
    print(f"Default rates: discount={DEFAULT_DISCOUNT_RATE}% "
          f"perpetuity={DEFAULT_PERPETUITY_RATE}% tax={DEFAULT_TAX_RATE}%")
    print(f"Base currency: {BASE_CURRENCY}")
    for src, dst, rate in DEFAULT_EXCHANGE_RATES:
        print(f"  {src} -> {dst}: {rate}")
    print(f"Storage: {STORAGE_BACKEND} (dir={STORAGE_DIR}, db={DATABASE_URL})")
    print(f"Log Level: {LOG_LEVEL}")
    print(f"API: {API_HOST}:{API_PORT}")
    print("=" * 60)
