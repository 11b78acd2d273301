"""
src/stations - station ingestion, result export, and the end-to-end pipeline.

Module layout
-------------
loader.py    - station CSV → Point list, category inference, line colours
export.py    - merged GeoJSON, outcome table, failures grouped by error type
pipeline.py  - load → fetch → export → log, for one travel-time range

Public interface
----------------
Run the full pipeline:
    run_isochrone_pipeline(sources, range_seconds)

Individual steps:
    load_points_from_csv(csv_path, category=None)
    load_station_sets(sources)
    export_merged_geojson(run, path)
    export_outcomes_csv(run, path)
    summarize_failures(run)
"""

from .export import (
    export_merged_geojson,
    export_outcomes_csv,
    merge_isochrones,
    outcomes_frame,
    summarize_failures,
)
from .loader import get_line_color, infer_category, load_points_from_csv, load_station_sets
from .pipeline import run_isochrone_pipeline

__all__ = [
    # Pipeline orchestration
    "run_isochrone_pipeline",
    # Loading
    "load_points_from_csv",
    "load_station_sets",
    "infer_category",
    "get_line_color",
    # Export
    "merge_isochrones",
    "export_merged_geojson",
    "outcomes_frame",
    "export_outcomes_csv",
    "summarize_failures",
]
