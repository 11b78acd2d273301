"""
Routing service endpoint and authentication configuration.

This is the AUTHORITATIVE source for API configuration.
src/isochrone_client/config.py imports from here - do not maintain parallel copies.

BEFORE RUNNING A BATCH:
1. Set ORS_API_KEY, or point ISOCHRONE_API_URL at a proxy that injects the key.
2. Check the OpenRouteService quota for the account; the free tier allows
   roughly 20 isochrone requests per minute.

ENVIRONMENT VARIABLES:
    ORS_API_KEY        - OpenRouteService key, sent verbatim in Authorization
    ISOCHRONE_API_URL  - optional endpoint override (e.g. a local proxy)
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Isochrone service configuration
# ---------------------------------------------------------------------------
#
# Fields:
#   endpoint      - Full URL of the isochrone endpoint for the routing profile
#   profile       - OpenRouteService routing profile
#   auth_type     - Authentication mechanism:
#                     'raw_authorization' → Authorization: <key> header (ORS)
#                     'none'              → no credentials (proxy adds them)
#   api_key_env   - Name of the environment variable holding the API key
#   endpoint_env  - Name of the environment variable overriding the endpoint

ISOCHRONE_API_CONFIG: dict[str, str] = {
    "endpoint": "https://api.openrouteservice.org/v2/isochrones/foot-walking",
    "profile": "foot-walking",
    "auth_type": "raw_authorization",
    "api_key_env": "ORS_API_KEY",
    "endpoint_env": "ISOCHRONE_API_URL",
}

# ORS answers with application/geo+json; some proxies rewrite to plain JSON
ACCEPT_HEADER: str = "application/json, application/geo+json"

# The only range type this client requests
RANGE_TYPE: str = "time"
