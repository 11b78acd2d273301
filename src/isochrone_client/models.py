"""Domain models shared by the fetch client, retry wrapper, and batch orchestrator."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime

from .config import DEFAULT_CATEGORY, RANGE_TYPE, STATION_CATEGORIES
from .errors import IsochroneError, ValidationError


@dataclass(frozen=True, slots=True)
class Point:
    """A named station coordinate.

    Coordinates are not checked here: a point with missing or non-finite
    coordinates must still be representable so the orchestrator can record
    it as a validation failure.
    """

    longitude: float
    latitude: float
    name: str | None = None
    category: str = DEFAULT_CATEGORY
    location: str | None = None

    def __post_init__(self) -> None:
        if self.category not in STATION_CATEGORIES:
            raise ValueError(
                f"Unknown station category '{self.category}'. "
                f"Expected one of: {', '.join(STATION_CATEGORIES)}"
            )

    @property
    def display_name(self) -> str:
        return self.name or "Unknown"


@dataclass(frozen=True, slots=True)
class IsochroneRequest:
    """One isochrone request for a point; rebuilt identically on every attempt."""

    point: Point
    range_seconds: int

    def __post_init__(self) -> None:
        validate_range_seconds(self.range_seconds)

    def to_body(self) -> dict:
        """Return the JSON request body for the routing service."""
        return {
            "locations": [[self.point.longitude, self.point.latitude]],
            "range": [self.range_seconds],
            "range_type": RANGE_TYPE,
        }


@dataclass(frozen=True, slots=True)
class IsochroneResult:
    """A polygon feature collection keyed by the point it was computed for."""

    point: Point
    range_seconds: int
    feature_collection: dict

    @property
    def features(self) -> list[dict]:
        return self.feature_collection.get("features", [])

    @property
    def feature_count(self) -> int:
        return len(self.features)


@dataclass(frozen=True, slots=True)
class Success:
    result: IsochroneResult
    attempts: int = 1

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Failure:
    error: IsochroneError
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return False


AttemptOutcome = Success | Failure


@dataclass(frozen=True, slots=True)
class PointOutcome:
    """The recorded outcome for the point at ``index`` of a batch."""

    index: int
    point: Point
    outcome: AttemptOutcome

    @property
    def succeeded(self) -> bool:
        return self.outcome.ok

    @property
    def is_invalid(self) -> bool:
        return isinstance(self.outcome, Failure) and isinstance(
            self.outcome.error, ValidationError
        )

    @property
    def status(self) -> str:
        return "success" if self.succeeded else "error"


@dataclass(frozen=True, slots=True)
class ProgressEvent:
    """Status-sink payload emitted during and at the end of a batch."""

    station_name: str
    current_index: int
    total_count: int
    status: str  # processing | success | error | finished | stopped

    def as_dict(self) -> dict:
        return {
            "station_name": self.station_name,
            "current_index": self.current_index,
            "total_count": self.total_count,
            "status": self.status,
        }


class CancellationToken:
    """Set-once stop flag shared between a running batch and its caller.

    Safe to set from another thread.  Waiting on the token doubles as an
    interruptible sleep: :meth:`wait` returns as soon as the token is set.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        """Block for up to ``timeout`` seconds; return ``True`` if cancelled."""
        return self._event.wait(timeout)


@dataclass(slots=True)
class BatchRun:
    """
    Aggregate outcome of one orchestrator run.

    ``processed_count`` counts points that reached the network (successes
    plus points that exhausted their retries); points rejected by validation
    are counted separately in ``skipped_invalid_count``.  Once finalized the
    run no longer accepts outcomes, and a cancelled run stays cancelled.
    """

    range_seconds: int
    total_count: int
    outcomes: list[PointOutcome] = field(default_factory=list)
    processed_count: int = 0
    success_count: int = 0
    failure_count: int = 0
    skipped_invalid_count: int = 0
    cancelled: bool = False
    started_at: datetime = field(default_factory=datetime.now)
    finished_at: datetime | None = None

    def record(self, point_outcome: PointOutcome) -> None:
        if self.is_finalized:
            raise RuntimeError("Cannot record outcomes on a finalized batch run.")

        self.outcomes.append(point_outcome)
        if point_outcome.is_invalid:
            self.skipped_invalid_count += 1
        elif point_outcome.succeeded:
            self.success_count += 1
            self.processed_count += 1
        else:
            self.failure_count += 1
            self.processed_count += 1

    def mark_cancelled(self) -> None:
        if self.is_finalized:
            raise RuntimeError("Cannot cancel a finalized batch run.")
        self.cancelled = True

    def finalize(self) -> None:
        if self.finished_at is None:
            self.finished_at = datetime.now()

    @property
    def is_finalized(self) -> bool:
        return self.finished_at is not None

    @property
    def status(self) -> str:
        if not self.is_finalized:
            return "running"
        return "stopped" if self.cancelled else "finished"

    @property
    def duration_seconds(self) -> float | None:
        if self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()

    @property
    def successes(self) -> list[PointOutcome]:
        return [o for o in self.outcomes if o.succeeded]

    @property
    def unsuccessful(self) -> list[PointOutcome]:
        """Failed and invalid outcomes; ``failure_count`` covers only the former."""
        return [o for o in self.outcomes if not o.succeeded]

    def summary(self) -> dict:
        """
        Return the run summary as a plain dict.

        Rates are relative to ``total_count``, matching the console summary.
        """
        total = self.total_count or 1
        duration = self.duration_seconds
        return {
            "status": self.status,
            "range_seconds": self.range_seconds,
            "total_points": self.total_count,
            "processed": self.processed_count,
            "succeeded": self.success_count,
            "failed": self.failure_count,
            "skipped_invalid": self.skipped_invalid_count,
            "success_rate_pct": round(self.success_count / total * 100, 1),
            "failed_rate_pct": round(
                (self.failure_count + self.skipped_invalid_count) / total * 100, 1
            ),
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "duration_seconds": round(duration, 1) if duration is not None else None,
        }


def validate_range_seconds(range_seconds: int) -> None:
    """Raise ``ValueError`` unless ``range_seconds`` is a positive integer."""
    if isinstance(range_seconds, bool) or not isinstance(range_seconds, int):
        raise ValueError(f"range_seconds must be an integer, got {range_seconds!r}")
    if range_seconds <= 0:
        raise ValueError(f"range_seconds must be positive, got {range_seconds}")
