"""
Shared pytest fixtures for the isochrone client tests.

No test touches the network or really sleeps: HTTP calls are patched at
``requests.post`` or replaced by :class:`ScriptedFetch`, and every sleep is
a :class:`RecordingSleep`.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from src.isochrone_client.models import IsochroneResult, Point


# ---------------------------------------------------------------------------
# GeoJSON builders
# ---------------------------------------------------------------------------

def make_feature(lon: float = 55.27, lat: float = 25.20, value: int = 600) -> dict:
    """A small square polygon feature shaped like an ORS isochrone."""
    d = 0.01
    ring = [
        [lon - d, lat - d],
        [lon + d, lat - d],
        [lon + d, lat + d],
        [lon - d, lat + d],
        [lon - d, lat - d],
    ]
    return {
        "type": "Feature",
        "geometry": {"type": "Polygon", "coordinates": [ring]},
        "properties": {"group_index": 0, "value": value, "center": [lon, lat]},
    }


def make_feature_collection(n_features: int = 1) -> dict:
    return {
        "type": "FeatureCollection",
        "features": [make_feature(value=600 + i) for i in range(n_features)],
    }


def make_response(status: int = 200, text: str = "", reason: str = "OK") -> MagicMock:
    """Mock ``requests.Response`` exposing status_code, reason and text."""
    response = MagicMock()
    response.status_code = status
    response.reason = reason
    response.text = text
    return response


# ---------------------------------------------------------------------------
# Test doubles for the orchestrator
# ---------------------------------------------------------------------------

class RecordingSleep:
    """Sleep replacement that records requested waits instead of blocking.

    ``on_sleep`` is called with the number of the wait (1-based) and its
    duration, which lets a test cancel a run "during" a delay.
    """

    def __init__(self, on_sleep=None):
        self.waits: list[float] = []
        self.on_sleep = on_sleep

    def __call__(self, seconds: float) -> None:
        self.waits.append(seconds)
        if self.on_sleep is not None:
            self.on_sleep(len(self.waits), seconds)


class ScriptedFetch:
    """Fetch replacement driven by a per-station script.

    ``script`` maps a station name to a list of steps; each call for that
    station consumes one step (the last step repeats).  A step is either an
    exception instance to raise or ``None`` for success.  Stations absent
    from the script always succeed.
    """

    def __init__(self, script: dict | None = None):
        self.script = script or {}
        self.calls: list[tuple[Point, int]] = []

    def __call__(self, point: Point, range_seconds: int, **kwargs) -> IsochroneResult:
        self.calls.append((point, range_seconds))
        steps = self.script.get(point.name, [None])
        n_previous = sum(1 for p, _ in self.calls[:-1] if p.name == point.name)
        step = steps[min(n_previous, len(steps) - 1)]
        if step is not None:
            raise step
        return IsochroneResult(
            point=point,
            range_seconds=range_seconds,
            feature_collection=make_feature_collection(),
        )

    def calls_for(self, name: str) -> int:
        return sum(1 for p, _ in self.calls if p.name == name)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def station():
    return Point(longitude=55.2708, latitude=25.2048, name="Burj Khalifa", category="metro",
                 location="MRED")


@pytest.fixture
def three_stations():
    return [
        Point(longitude=55.1390, latitude=25.0657, name="Station A", location="MRED"),
        Point(longitude=55.2962, latitude=25.2631, name="Station B", location="MGRN"),
        Point(longitude=55.1528, latitude=25.0890, name="Station C", category="tram"),
    ]


@pytest.fixture
def feature_collection():
    return make_feature_collection()


@pytest.fixture
def recording_sleep():
    return RecordingSleep()
