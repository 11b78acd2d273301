"""
Request construction and single-call isochrone retrieval.

Design notes:
- fetch_isochrone performs exactly one HTTP call and never retries; retry
  policy belongs to retry.py so the client stays stateless between calls.
- Failures are raised as IsochroneError subclasses so callers can tell
  transport, HTTP, empty and malformed responses apart without parsing
  message strings.
"""

from __future__ import annotations

import os
import time

import requests

from .config import (
    ACCEPT_HEADER,
    ISOCHRONE_API_CONFIG,
    REQUEST_TIMEOUT_SECONDS,
)
from .errors import HttpError, IsochroneError, NetworkError
from .log import log_event
from .models import IsochroneRequest, IsochroneResult, Point
from .parser import feature_geometry_types, format_error_body, parse_feature_collection

# ---------------------------------------------------------------------------
# Request construction
# ---------------------------------------------------------------------------

def build_request_headers(config: dict = ISOCHRONE_API_CONFIG) -> dict:
    """
    Construct HTTP headers for an isochrone request.

    The API key is read from the environment on every call.  When it is
    unset no ``Authorization`` header is sent, which is the expected setup
    behind a proxy that injects the key server-side.

    Args:
        config: Service config dict, normally ``ISOCHRONE_API_CONFIG``.

    Returns:
        Dict of HTTP header name → value pairs.

    Raises:
        ValueError: If ``auth_type`` is not recognized.
    """
    headers = {
        "Content-Type": "application/json",
        "Accept": ACCEPT_HEADER,
    }

    auth_type = config["auth_type"]

    if auth_type == "none":
        return headers

    if auth_type == "raw_authorization":
        # ORS expects the bare key, not "Bearer <key>"
        api_key = os.getenv(config["api_key_env"])
        if api_key:
            headers["Authorization"] = api_key
        return headers

    raise ValueError(
        f"Unknown auth_type '{auth_type}' in isochrone service config."
    )


def build_endpoint_url(config: dict = ISOCHRONE_API_CONFIG) -> str:
    """Return the endpoint URL, honouring the override environment variable."""
    override = os.getenv(config.get("endpoint_env", ""), "")
    return override or config["endpoint"]


def build_request_body(point: Point, range_seconds: int) -> dict:
    """
    Construct the JSON request body for one point.

    Deterministic for a given point and range, so every retry of the same
    point sends an identical body.

    Raises:
        ValueError: If ``range_seconds`` is not a positive integer.
    """
    return IsochroneRequest(point=point, range_seconds=range_seconds).to_body()


# ---------------------------------------------------------------------------
# API call execution
# ---------------------------------------------------------------------------

def fetch_isochrone(
    point: Point,
    range_seconds: int,
    log=None,
    session: requests.Session | None = None,
    timeout: float = REQUEST_TIMEOUT_SECONDS,
    config: dict = ISOCHRONE_API_CONFIG,
) -> IsochroneResult:
    """
    Request the isochrone polygon collection for a single point.

    Performs exactly one network call.  Coordinates are sent as given; a
    remote rejection of bad coordinates surfaces as ``HttpError(400)``.

    Args:
        point: Origin of the isochrone.
        range_seconds: Travel-time budget in seconds (positive).
        log: Optional log sink exposing ``append(entry)``.
        session: Optional ``requests.Session``; module-level
                 ``requests.post`` is used when omitted.
        timeout: HTTP timeout in seconds.
        config: Service config dict.

    Returns:
        :class:`IsochroneResult` holding a non-empty feature collection.

    Raises:
        NetworkError: Transport failure or timeout.
        HttpError: Non-2xx status; carries the status code and body.
        ParseError: Body is not a JSON feature collection.
        EmptyResult: Feature collection has zero features.
        ValueError: ``range_seconds`` is not a positive integer.
    """
    body = build_request_body(point, range_seconds)
    headers = build_request_headers(config)
    endpoint = build_endpoint_url(config)
    station = point.display_name

    log_event(log, "request", f"API Request for station: {station}", {
        "station": station,
        "coordinates": {"lon": point.longitude, "lat": point.latitude},
        "request_body": body,
        "url": endpoint,
    })

    post = session.post if session is not None else requests.post
    start = time.monotonic()
    try:
        response = post(endpoint, headers=headers, json=body, timeout=timeout)
    except requests.RequestException as exc:
        log_event(log, "error", "Network Error", {
            "station": station,
            "error_type": type(exc).__name__,
            "error_message": str(exc),
        })
        raise NetworkError(
            f"Network error connecting to isochrone service: {exc}",
            details={"exception": type(exc).__name__},
        ) from exc
    duration_ms = round((time.monotonic() - start) * 1000)

    status = response.status_code
    log_event(log, "response", "API Response received", {
        "station": station,
        "status": status,
        "status_text": response.reason,
        "duration": f"{duration_ms}ms",
    })

    if not 200 <= status < 300:
        error_body = format_error_body(response.text or "")
        log_event(log, "error", "API Error Response", {
            "station": station,
            "status": status,
            "status_text": response.reason,
            "error_body": error_body,
        })
        raise HttpError(status, response.reason or "", error_body)

    try:
        feature_collection = parse_feature_collection(response.text)
    except IsochroneError as exc:
        log_event(log, "error", str(exc), {"station": station, **exc.as_dict()})
        raise

    log_event(log, "success", "API Success - Features received", {
        "station": station,
        "feature_count": len(feature_collection["features"]),
        "feature_types": feature_geometry_types(feature_collection),
    })

    return IsochroneResult(
        point=point,
        range_seconds=range_seconds,
        feature_collection=feature_collection,
    )
