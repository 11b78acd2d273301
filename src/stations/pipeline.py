"""
End-to-end isochrone pipeline for one travel-time range.

Steps:
  Step 1 - Load station CSVs into points (loader module)
  Step 2 - Fetch isochrones sequentially with retry (isochrone_client.batch)
  Step 3 - Export merged GeoJSON and the per-station outcome table (export module)
  Step 4 - Export the detailed log and print the failure analysis
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable

from src.isochrone_client.batch import BatchOrchestrator
from src.isochrone_client.config import DEFAULT_RANGE_SECONDS, LOGS_DIR, OUTPUT_DIR
from src.isochrone_client.log import IsochroneLog, print_status
from src.isochrone_client.models import CancellationToken

from .export import (
    export_merged_geojson,
    export_outcomes_csv,
    merged_geojson_filename,
    summarize_failures,
)
from .loader import load_station_sets


def run_isochrone_pipeline(
    sources: dict[str, Path],
    range_seconds: int = DEFAULT_RANGE_SECONDS,
    output_dir: Path = OUTPUT_DIR,
    logs_dir: Path = LOGS_DIR,
    cancel_token: CancellationToken | None = None,
    orchestrator: BatchOrchestrator | None = None,
    status_sink: Callable | None = print_status,
) -> dict:
    """
    Load stations, fetch their isochrones, and write all outputs.

    Args:
        sources: Mapping of station category → CSV path.
        range_seconds: Travel-time budget per isochrone.
        output_dir: Directory for the merged GeoJSON and outcomes CSV.
        logs_dir: Directory for the exported text log.
        cancel_token: Optional stop flag; setting it stops the batch before
                      the next station.
        orchestrator: Preconfigured orchestrator.  Its log sink is replaced
                      with this run's log.  Built with defaults when omitted.
        status_sink: Status sink for a default-built orchestrator.

    Returns:
        Dict with the batch summary, failures grouped by error type, and
        paths to ``geojson``, ``outcomes_csv`` and ``log`` outputs.

    Raises:
        ValueError: No stations could be loaded, or ``range_seconds`` is not
                    a positive integer.
    """
    sep = "=" * 70
    print(f"\n{sep}")
    print(f"ISOCHRONE PIPELINE - {range_seconds // 60} MIN")
    print(f"{sep}\n")

    # ------------------------------------------------------------------
    # Step 1: load stations
    # ------------------------------------------------------------------
    points = load_station_sets(sources)
    if not points:
        raise ValueError("No stations loaded. Check the station CSV files.")

    # ------------------------------------------------------------------
    # Step 2: fetch isochrones
    # ------------------------------------------------------------------
    log = IsochroneLog()
    log.start()
    if orchestrator is None:
        orchestrator = BatchOrchestrator(status_sink=status_sink, log=log)
    else:
        orchestrator.log = log

    run = orchestrator.run(points, range_seconds, cancel_token=cancel_token)
    log.finish()

    # ------------------------------------------------------------------
    # Step 3: export results
    # ------------------------------------------------------------------
    geojson_path = export_merged_geojson(
        run, output_dir / merged_geojson_filename(range_seconds)
    )
    outcomes_path = export_outcomes_csv(
        run, output_dir / f"isochrone_outcomes_{range_seconds // 60}min.csv"
    )

    # ------------------------------------------------------------------
    # Step 4: log export and failure analysis
    # ------------------------------------------------------------------
    log_path = log.export_log(logs_dir=logs_dir)
    failures = summarize_failures(run)

    if failures:
        print("=== FAILED STATIONS ANALYSIS ===")
        for error_type, stations in failures.items():
            print(f"  {error_type}: {len(stations)} station(s)")
            for station in stations:
                print(f"    - {station['name']} ({station['lon']}, {station['lat']})")
                print(f"      Possible causes: {', '.join(station['possible_causes'])}")
                print(f"      Suggestions: {', '.join(station['suggestions'])}")

    return {
        "summary": run.summary(),
        "failures_by_type": failures,
        "geojson": geojson_path,
        "outcomes_csv": outcomes_path,
        "log": log_path,
    }
