"""
Export of batch results: merged GeoJSON, per-station outcome table, and
failures grouped by diagnostic category.
"""

from __future__ import annotations

import copy
import json
from pathlib import Path

import pandas as pd

from src.isochrone_client.models import BatchRun, Failure, Point, Success
from src.isochrone_client.retry import classify_failure

from .loader import get_line_color

OUTCOME_COLUMNS: list[str] = [
    "index",
    "station_name",
    "category",
    "longitude",
    "latitude",
    "status",
    "attempts",
    "feature_count",
    "error_type",
    "error_message",
]


def merged_geojson_filename(range_seconds: int) -> str:
    """``isochrones_<N>min_merged.geojson`` for a range in seconds."""
    return f"isochrones_{range_seconds // 60}min_merged.geojson"


def merge_isochrones(run: BatchRun) -> dict:
    """
    Merge every successful point's features into one FeatureCollection.

    Features are deep-copied; each copy's ``properties`` gains ``station``,
    ``category``, ``color`` and ``range_seconds`` so a renderer can style
    polygons per category without the originating points.

    Args:
        run: Finalized batch run.

    Returns:
        GeoJSON FeatureCollection dict.
    """
    features: list[dict] = []
    for point_outcome in run.successes:
        point = point_outcome.point
        color = get_line_color(point)
        for feature in point_outcome.outcome.result.features:
            merged = copy.deepcopy(feature)
            properties = merged.get("properties") or {}
            properties.update({
                "station": point.display_name,
                "category": point.category,
                "color": color,
                "range_seconds": run.range_seconds,
            })
            merged["properties"] = properties
            features.append(merged)

    return {"type": "FeatureCollection", "features": features}


def export_merged_geojson(run: BatchRun, path: Path) -> Path:
    """
    Write :func:`merge_isochrones` output to ``path``.

    Returns:
        The written path.
    """
    collection = merge_isochrones(run)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(collection), encoding="utf-8")
    print(f"Merged {len(collection['features'])} isochrone features into {path}")
    return path


def outcomes_frame(run: BatchRun) -> pd.DataFrame:
    """One row per recorded point, in batch order (columns: ``OUTCOME_COLUMNS``)."""
    rows = []
    for point_outcome in run.outcomes:
        point = point_outcome.point
        outcome = point_outcome.outcome
        is_point = isinstance(point, Point)
        row = {
            "index": point_outcome.index,
            "station_name": point.name if is_point else None,
            "category": point.category if is_point else None,
            "longitude": point.longitude if is_point else None,
            "latitude": point.latitude if is_point else None,
            "status": point_outcome.status,
            "attempts": outcome.attempts,
            "feature_count": 0,
            "error_type": None,
            "error_message": None,
        }
        if isinstance(outcome, Success):
            row["feature_count"] = outcome.result.feature_count
        elif isinstance(outcome, Failure):
            row["error_type"] = classify_failure(outcome.error)["error_type"]
            row["error_message"] = str(outcome.error)
        rows.append(row)

    return pd.DataFrame(rows, columns=OUTCOME_COLUMNS)


def export_outcomes_csv(run: BatchRun, path: Path) -> Path:
    """Write :func:`outcomes_frame` to CSV and return the path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    outcomes_frame(run).to_csv(path, index=False)
    print(f"Station outcomes ({len(run.outcomes)} rows) written to {path}")
    return path


def summarize_failures(run: BatchRun) -> dict[str, list[dict]]:
    """
    Group failed points by diagnostic error type.

    Returns:
        Dict mapping error type → list of dicts with ``name``, ``lon``,
        ``lat``, ``error``, ``possible_causes`` and ``suggestions``.
    """
    grouped: dict[str, list[dict]] = {}
    for point_outcome in run.unsuccessful:
        point = point_outcome.point
        analysis = classify_failure(point_outcome.outcome.error)
        grouped.setdefault(analysis["error_type"], []).append({
            "name": getattr(point, "name", None),
            "lon": getattr(point, "longitude", None),
            "lat": getattr(point, "latitude", None),
            "error": analysis["message"],
            "possible_causes": analysis["possible_causes"],
            "suggestions": analysis["suggestions"],
        })
    return grouped
