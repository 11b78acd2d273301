"""
Response parsing and feature-collection validation.

No I/O occurs here; all functions are pure transformations of strings/dicts
to support easy unit testing.
"""

from __future__ import annotations

import json

from .errors import EmptyResult, ParseError


def parse_feature_collection(body: str) -> dict:
    """
    Decode a routing-service response body into a feature collection.

    A feature collection is a JSON object whose ``features`` member is a list
    of objects.  Each feature's ``geometry`` and ``properties`` are passed
    through unchanged.

    Args:
        body: Raw response text.

    Returns:
        The decoded feature collection dict.

    Raises:
        ParseError: Body is not JSON, or not shaped like a feature collection.
        EmptyResult: The collection is well formed but has no features.
    """
    try:
        decoded = json.loads(body)
    except (TypeError, ValueError) as exc:
        raise ParseError(
            f"Failed to parse API response as JSON: {exc}",
            details={"body_preview": (body or "")[:200]},
        ) from exc

    if not isinstance(decoded, dict):
        raise ParseError(
            f"Expected a JSON object, got {type(decoded).__name__}"
        )

    features = decoded.get("features")
    if not isinstance(features, list):
        raise ParseError(
            "Response is not a feature collection: 'features' array missing. "
            f"Top-level keys present: {list(decoded.keys())}"
        )

    if any(not isinstance(f, dict) for f in features):
        raise ParseError("Response 'features' array contains non-object entries")

    # GeoJSON allows null geometry and properties, nothing else but objects
    for index, feature in enumerate(features):
        for member in ("geometry", "properties"):
            value = feature.get(member)
            if value is not None and not isinstance(value, dict):
                raise ParseError(
                    f"Feature {index} has a non-object '{member}': "
                    f"{type(value).__name__}",
                    details={"feature_index": index, "member": member},
                )

    if not features:
        raise EmptyResult("No features in isochrone response")

    return decoded


def feature_geometry_types(feature_collection: dict) -> list[str]:
    """Return the geometry type of each feature, skipping features without one."""
    types = []
    for feature in feature_collection.get("features", []):
        geometry = feature.get("geometry") or {}
        if geometry.get("type"):
            types.append(geometry["type"])
    return types


def format_error_body(body: str) -> str:
    """
    Pretty-print an error body when it is JSON; otherwise return it unchanged.

    Args:
        body: Raw response text from a non-2xx response.

    Returns:
        Indented JSON, or the original text.
    """
    try:
        return json.dumps(json.loads(body), indent=2)
    except (TypeError, ValueError):
        return body
