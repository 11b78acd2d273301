"""
Isochrone ranges, retry schedule, and rate-limit constants.

This is the AUTHORITATIVE source for all batch execution constants.
src/isochrone_client/config.py imports from here - do not maintain parallel copies.

Stations are processed one at a time with a fixed 1.2 s gap between them.
Failed requests are retried with a linear backoff (1 s, 2 s, ...); HTTP 429
uses the same schedule as every other retryable failure.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Isochrone ranges
# ---------------------------------------------------------------------------

# Default: 10 minutes walking
DEFAULT_RANGE_SECONDS: int = 600

ISOCHRONE_RANGES: dict[str, int] = {
    "5min": 300,
    "10min": 600,
    "15min": 900,
}

# ---------------------------------------------------------------------------
# Retry and rate-limit constants
# ---------------------------------------------------------------------------

# Total attempts per station (initial call + retries)
MAX_ATTEMPTS: int = 3

# Wait after failed attempt k is RETRY_BACKOFF_BASE_SECONDS * k
RETRY_BACKOFF_BASE_SECONDS: float = 1.0

# Unconditional gap before every station after the first
INTER_REQUEST_DELAY_SECONDS: float = 1.2

# HTTP request timeout; expiry is reported as a network error and retried
REQUEST_TIMEOUT_SECONDS: int = 60

# ---------------------------------------------------------------------------
# Station categories and display colours
# ---------------------------------------------------------------------------

STATION_CATEGORIES: tuple[str, ...] = ("metro", "tram", "monorail")

DEFAULT_CATEGORY: str = "metro"

# Keyed by category; metro lines are further split by STATION_LOCATION text
LINE_COLORS: dict[str, str] = {
    "metro_red":   "#FF0000",
    "metro_green": "#00AA00",
    "tram":        "#FF8C00",
    "monorail":    "#0066FF",
}
