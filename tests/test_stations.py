"""
Unit tests for src/stations: CSV loading, line colours, result export, and
the end-to-end pipeline with a scripted fetch.
"""

from __future__ import annotations

import json

import pandas as pd
import pytest

from src.isochrone_client.batch import BatchOrchestrator
from src.isochrone_client.errors import EmptyResult, HttpError
from src.isochrone_client.models import BatchRun, Failure, IsochroneResult, Point, PointOutcome, Success
from src.stations.export import (
    OUTCOME_COLUMNS,
    export_merged_geojson,
    export_outcomes_csv,
    merge_isochrones,
    merged_geojson_filename,
    outcomes_frame,
    summarize_failures,
)
from src.stations.loader import (
    get_line_color,
    infer_category,
    load_points_from_csv,
    load_station_sets,
)
from src.stations.pipeline import run_isochrone_pipeline

from .conftest import RecordingSleep, ScriptedFetch, make_feature_collection

METRO_CSV = (
    "STATION_NAME_EN,STATION_LOCATION,longitude,latitude\n"
    "Union,MRED/MGRN interchange,55.3197,25.2665\n"
    '"Burj Khalifa, Dubai Mall",MRED,55.2708,25.2048\n'
    "Stadium,MGRN,55.3370,25.2780\n"
    "Ghost,MRED,,25.0\n"
)

TRAM_CSV = (
    '"STATION_NAME_EN","STATION_LOCATION","longitude","latitude"\n'
    '"Dubai Marina","Tram",55.1405,25.0800\n'
    '"Jumeirah Beach","Tram",55.1338,25.0760\n'
)


@pytest.fixture
def metro_csv(tmp_path):
    path = tmp_path / "metro_stations.csv"
    path.write_text(METRO_CSV, encoding="utf-8")
    return path


@pytest.fixture
def tram_csv(tmp_path):
    path = tmp_path / "tram_stations.csv"
    path.write_text(TRAM_CSV, encoding="utf-8")
    return path


def _finished_run(points, outcomes) -> BatchRun:
    run = BatchRun(range_seconds=600, total_count=len(points))
    for i, (point, outcome) in enumerate(zip(points, outcomes)):
        run.record(PointOutcome(i, point, outcome))
    run.finalize()
    return run


def _success(point, n_features=1):
    return Success(IsochroneResult(point, 600, make_feature_collection(n_features)), 1)


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

class TestLoadPointsFromCsv:

    def test_rows_with_numeric_coordinates_loaded(self, metro_csv):
        points = load_points_from_csv(metro_csv)
        assert [p.name for p in points] == ["Union", "Burj Khalifa, Dubai Mall", "Stadium"]

    def test_coordinates_parsed_as_floats(self, metro_csv):
        point = load_points_from_csv(metro_csv)[1]
        assert point.longitude == pytest.approx(55.2708)
        assert point.latitude == pytest.approx(25.2048)

    def test_quoted_headers_stripped(self, tram_csv):
        points = load_points_from_csv(tram_csv)
        assert len(points) == 2
        assert points[0].name == "Dubai Marina"

    def test_category_inferred_from_location(self, tram_csv, metro_csv):
        assert {p.category for p in load_points_from_csv(tram_csv)} == {"tram"}
        assert {p.category for p in load_points_from_csv(metro_csv)} == {"metro"}

    def test_explicit_category_overrides_inference(self, tram_csv):
        points = load_points_from_csv(tram_csv, category="monorail")
        assert {p.category for p in points} == {"monorail"}

    def test_missing_coordinate_column_raises(self, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text("STATION_NAME_EN,lon,lat\nA,1,2\n", encoding="utf-8")
        with pytest.raises(ValueError, match="CSV missing longitude or latitude columns"):
            load_points_from_csv(path)

    def test_optional_columns_may_be_absent(self, tmp_path):
        path = tmp_path / "bare.csv"
        path.write_text("longitude,latitude\n55.1,25.1\n", encoding="utf-8")
        point = load_points_from_csv(path)[0]
        assert point.name is None
        assert point.location is None
        assert point.category == "metro"

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_points_from_csv(tmp_path / "nope.csv")

    def test_unknown_category_raises(self, metro_csv):
        with pytest.raises(ValueError):
            load_points_from_csv(metro_csv, category="ferry")

    def test_station_sets_concatenate_in_order(self, metro_csv, tram_csv):
        points = load_station_sets({"metro": metro_csv, "tram": tram_csv})
        assert [p.category for p in points] == ["metro"] * 3 + ["tram"] * 2


class TestInferCategory:

    @pytest.mark.parametrize("location,expected", [
        ("Dubai Tram", "tram"),
        ("Palm Monorail", "monorail"),
        ("MRED", "metro"),
        (None, "metro"),
        ("", "metro"),
    ])
    def test_inference(self, location, expected):
        assert infer_category(location) == expected


class TestGetLineColor:

    @pytest.mark.parametrize("category,location,expected", [
        ("tram", None, "#FF8C00"),
        ("monorail", None, "#0066FF"),
        ("metro", "MGRN", "#00AA00"),
        ("metro", "Green Line", "#00AA00"),
        ("metro", "MRED", "#FF0000"),
        ("metro", None, "#FF0000"),
    ])
    def test_colours(self, category, location, expected):
        point = Point(longitude=0.0, latitude=0.0, category=category, location=location)
        assert get_line_color(point) == expected


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------

class TestMergeIsochrones:

    def test_only_successes_merged(self, three_stations):
        run = _finished_run(three_stations, [
            _success(three_stations[0], 2),
            Failure(HttpError(500), 3),
            _success(three_stations[2]),
        ])
        merged = merge_isochrones(run)
        assert merged["type"] == "FeatureCollection"
        assert len(merged["features"]) == 3

    def test_properties_extended_with_station_and_colour(self, three_stations):
        run = _finished_run(three_stations[2:], [_success(three_stations[2])])
        props = merge_isochrones(run)["features"][0]["properties"]
        assert props["station"] == "Station C"
        assert props["category"] == "tram"
        assert props["color"] == "#FF8C00"
        assert props["range_seconds"] == 600
        assert props["value"] == 600  # original property preserved

    def test_source_features_not_mutated(self, three_stations):
        outcome = _success(three_stations[0])
        run = _finished_run(three_stations[:1], [outcome])
        merge_isochrones(run)
        assert "station" not in outcome.result.features[0]["properties"]

    def test_export_writes_geojson(self, tmp_path, three_stations):
        run = _finished_run(three_stations[:1], [_success(three_stations[0])])
        path = export_merged_geojson(run, tmp_path / merged_geojson_filename(600))
        assert path.name == "isochrones_10min_merged.geojson"
        assert json.loads(path.read_text(encoding="utf-8"))["features"]


class TestOutcomesFrame:

    def test_one_row_per_outcome(self, three_stations):
        run = _finished_run(three_stations, [
            _success(three_stations[0]),
            Failure(HttpError(429, "Too Many Requests"), 3),
            Failure(EmptyResult("No features in isochrone response"), 3),
        ])
        df = outcomes_frame(run)
        assert list(df.columns) == OUTCOME_COLUMNS
        assert list(df["status"]) == ["success", "error", "error"]
        assert list(df["error_type"].fillna("")) == ["", "rate_limit", "empty_response"]
        assert df.iloc[0]["feature_count"] == 1

    def test_export_csv_round_trips_through_pandas(self, tmp_path, three_stations):
        run = _finished_run(three_stations[:1], [_success(three_stations[0])])
        path = export_outcomes_csv(run, tmp_path / "out.csv")
        df = pd.read_csv(path)
        assert df.iloc[0]["station_name"] == "Station A"


class TestSummarizeFailures:

    def test_grouped_by_error_type(self, three_stations):
        run = _finished_run(three_stations, [
            Failure(HttpError(500), 3),
            Failure(HttpError(503), 3),
            Failure(HttpError(401), 3),
        ])
        grouped = summarize_failures(run)
        assert set(grouped) == {"server_error", "authentication"}
        assert [f["name"] for f in grouped["server_error"]] == ["Station A", "Station B"]
        assert grouped["authentication"][0]["suggestions"]

    def test_no_failures(self, three_stations):
        run = _finished_run(three_stations[:1], [_success(three_stations[0])])
        assert summarize_failures(run) == {}


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

class TestRunIsochronePipeline:

    def test_end_to_end_outputs(self, tmp_path, metro_csv, tram_csv):
        fetch = ScriptedFetch({"Stadium": [HttpError(500)]})
        orchestrator = BatchOrchestrator(
            fetch=fetch, sleep=RecordingSleep(), status_sink=None, max_attempts=2
        )

        result = run_isochrone_pipeline(
            {"metro": metro_csv, "tram": tram_csv},
            range_seconds=300,
            output_dir=tmp_path / "out",
            logs_dir=tmp_path / "logs",
            orchestrator=orchestrator,
        )

        assert result["summary"]["succeeded"] == 4
        assert result["summary"]["failed"] == 1
        assert result["geojson"].name == "isochrones_5min_merged.geojson"
        merged = json.loads(result["geojson"].read_text(encoding="utf-8"))
        assert len(merged["features"]) == 4
        assert result["outcomes_csv"].exists()
        assert "=== ISOCHRONE CREATION LOG ===" in result["log"].read_text(encoding="utf-8")
        assert list(result["failures_by_type"]) == ["server_error"]

    def test_no_stations_raises(self, tmp_path):
        path = tmp_path / "empty.csv"
        path.write_text("longitude,latitude\n", encoding="utf-8")
        with pytest.raises(ValueError, match="No stations loaded"):
            run_isochrone_pipeline({"metro": path}, output_dir=tmp_path, logs_dir=tmp_path)
