"""
Configuration File for the Signal Screener
==========================================

All settings can be overridden via environment variables.
Copy .env.example to .env and customize for your setup.
"""

import os
from dotenv import load_dotenv

# Load .env file if exists
load_dotenv()

# ============= LOGGING SETTINGS =============

# Log file path (empty = console only)
LOG_FILE = os.getenv("LOG_FILE", "")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")  # DEBUG, INFO, WARNING, ERROR

# ============= SCREENER SETTINGS =============

# Trailing daily bars fetched per symbol
SCREENER_BAR_COUNT = int(os.getenv("SCREENER_BAR_COUNT", "120"))

# Hard cap on the screened universe (safety check)
SCREENER_MAX_SYMBOLS = int(os.getenv("SCREENER_MAX_SYMBOLS", "100"))

# Worker threads for per-symbol evaluation (1 = sequential)
SCREENER_MAX_WORKERS = int(os.getenv("SCREENER_MAX_WORKERS", "4"))

# Seconds a screener result stays cached
SCREENER_CACHE_TTL = int(os.getenv("SCREENER_CACHE_TTL", "60"))

# ============= SCREENER DEFAULTS =============

# Minimum confidence (0-1) for a symbol to be reported
DEFAULT_MIN_CONFIDENCE = float(os.getenv("DEFAULT_MIN_CONFIDENCE", "0.7"))

# Require two independent indicator families pointing the same way
DEFAULT_REQUIRE_TWO_PLUS = os.getenv("DEFAULT_REQUIRE_TWO_PLUS", "True").lower() in ("true", "1", "yes")

# Require the weekly-resampled bars to agree as well
DEFAULT_REQUIRE_WEEKLY_AGREE = os.getenv("DEFAULT_REQUIRE_WEEKLY_AGREE", "False").lower() in ("true", "1", "yes")

# ============= MARKET DATA SETTINGS =============

# Provider order for daily bars (comma-separated: yahoo, alpha_vantage)
_providers = os.getenv("DATA_PROVIDERS", "yahoo,alpha_vantage")
DATA_PROVIDERS = [p.strip().lower() for p in _providers.split(",") if p.strip()]

YAHOO_FINANCE_BASE_URL = os.getenv("YAHOO_FINANCE_BASE_URL", "https://query1.finance.yahoo.com")
ALPHA_VANTAGE_BASE_URL = os.getenv("ALPHA_VANTAGE_BASE_URL", "https://www.alphavantage.co")
ALPHA_VANTAGE_API_KEY = os.getenv("ALPHA_VANTAGE_API_KEY", "")

# Per-request timeout (seconds)
HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "15"))

# ============= API SERVER SETTINGS =============

API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))
