"""
Isochrone service settings, batch constants, and project path constants.

Service and batch constants live in the root ``config`` package; this module
re-exports them next to the path constants so client modules have a single
import site.
"""

from pathlib import Path

from config.api_config import ACCEPT_HEADER, ISOCHRONE_API_CONFIG, RANGE_TYPE
from config.batch_params import (
    DEFAULT_CATEGORY,
    DEFAULT_RANGE_SECONDS,
    INTER_REQUEST_DELAY_SECONDS,
    ISOCHRONE_RANGES,
    LINE_COLORS,
    MAX_ATTEMPTS,
    REQUEST_TIMEOUT_SECONDS,
    RETRY_BACKOFF_BASE_SECONDS,
    STATION_CATEGORIES,
)

# ---------------------------------------------------------------------------
# Project paths
# ---------------------------------------------------------------------------

# Resolve from this file: src/isochrone_client/config.py → src/isochrone_client → src → root
PROJECT_ROOT = Path(__file__).resolve().parents[2]

DATA_DIR = PROJECT_ROOT / "data"
STATIONS_DIR = DATA_DIR / "stations"
OUTPUT_DIR = DATA_DIR / "isochrones"
LOGS_DIR = PROJECT_ROOT / "logs"

__all__ = [
    "ACCEPT_HEADER",
    "DATA_DIR",
    "DEFAULT_CATEGORY",
    "DEFAULT_RANGE_SECONDS",
    "INTER_REQUEST_DELAY_SECONDS",
    "ISOCHRONE_API_CONFIG",
    "ISOCHRONE_RANGES",
    "LINE_COLORS",
    "LOGS_DIR",
    "MAX_ATTEMPTS",
    "OUTPUT_DIR",
    "PROJECT_ROOT",
    "RANGE_TYPE",
    "REQUEST_TIMEOUT_SECONDS",
    "RETRY_BACKOFF_BASE_SECONDS",
    "STATION_CATEGORIES",
    "STATIONS_DIR",
]
