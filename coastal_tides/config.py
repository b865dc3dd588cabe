"""
Runtime configuration for the coastal tides core.

Values can be overridden by environment variables (a local .env file is
loaded when present).
"""
import os
from typing import Callable, TypeVar

from dotenv import load_dotenv

load_dotenv()

T = TypeVar('T')


def _env(key: str, default: T, cast: Callable[[str], T]) -> T:
    """Typed environment override; unset or unparseable values keep the default."""
    raw = os.environ.get(key)
    if raw is None:
        return default
    try:
        return cast(raw)
    except ValueError:
        return default


# =============================================================================
# Data sources
# =============================================================================

NOAA_BASE_URL = os.environ.get(
    'NOAA_BASE_URL', 'https://api.tidesandcurrents.noaa.gov/api/prod/datagetter'
)
NWS_BASE_URL = os.environ.get('NWS_BASE_URL', 'https://api.weather.gov')
USNO_BASE_URL = os.environ.get('USNO_BASE_URL', 'https://aa.usno.navy.mil/api')

# NOAA asks clients to identify themselves with an application name
NOAA_APPLICATION = os.environ.get('NOAA_APPLICATION', 'coastal_tides')

# NWS rejects requests without a User-Agent
NWS_USER_AGENT = os.environ.get(
    'NWS_USER_AGENT', 'coastal-tides (https://github.com/coastal-tides/coastal-tides)'
)

# Per-request deadline (in seconds); a request that exceeds it yields absent data
# Environment variable: API_TIMEOUT_SECONDS
API_TIMEOUT_SECONDS = _env('API_TIMEOUT_SECONDS', 10, int)

# Larger bodies are refused (bytes)
MAX_RESPONSE_SIZE = _env('MAX_RESPONSE_SIZE', 1 * 1024 * 1024, int)

# Worker threads shared by all fan-out batches
FETCH_WORKERS = _env('FETCH_WORKERS', 8, int)


# =============================================================================
# Trend thresholds
# =============================================================================

# Dead band for tide trend labels (feet)
TREND_THRESHOLD_FT = _env('TREND_THRESHOLD_FT', 0.05, float)

# Dead band for barometric pressure trend labels (inHg)
PRESSURE_TREND_THRESHOLD_INHG = _env('PRESSURE_TREND_THRESHOLD_INHG', 0.03, float)


# =============================================================================
# Request windows
# =============================================================================

CURVE_LOOKBACK_HOURS = _env('CURVE_LOOKBACK_HOURS', 6, int)
CURVE_LOOKAHEAD_HOURS = _env('CURVE_LOOKAHEAD_HOURS', 24, int)

# High/low events are requested on both sides of now so the current
# cycle is always bracketed
HILO_LOOKBACK_HOURS = _env('HILO_LOOKBACK_HOURS', 24, int)
HILO_LOOKAHEAD_HOURS = _env('HILO_LOOKAHEAD_HOURS', 48, int)

WATER_TEMP_HISTORY_HOURS = _env('WATER_TEMP_HISTORY_HOURS', 2, int)

FORECAST_DAYS = _env('FORECAST_DAYS', 7, int)
FORECAST_PREDICTION_INTERVAL = os.environ.get('FORECAST_PREDICTION_INTERVAL', '6')
