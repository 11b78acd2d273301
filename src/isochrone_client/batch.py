"""
Sequential batch orchestration of isochrone requests.

Execution order:
- Points are processed strictly in input order, one at a time.
- Every point after the first waits a fixed 1.2 s before its request,
  whether or not the previous point succeeded.
- Each point is retried through :func:`retry.with_retry`; a point that
  exhausts its retries is recorded as a failure and the batch continues.
- Points with missing or non-finite coordinates are recorded as
  ValidationError failures without a request and without the delay.
- A stop request is honoured before each point and after the delay.  A
  request already in flight is never aborted.
"""

from __future__ import annotations

import math
from collections import Counter
from typing import Callable, Sequence

from .config import INTER_REQUEST_DELAY_SECONDS, MAX_ATTEMPTS, RETRY_BACKOFF_BASE_SECONDS
from .errors import ValidationError
from .executor import fetch_isochrone
from .log import log_event, print_status
from .models import (
    BatchRun,
    CancellationToken,
    Failure,
    IsochroneResult,
    Point,
    PointOutcome,
    ProgressEvent,
    validate_range_seconds,
)
from .retry import classify_failure, interruptible_sleep, with_retry

FetchFn = Callable[..., IsochroneResult]
StatusSink = Callable[[ProgressEvent], object]


def validate_point(point: Point | None, index: int = 0) -> None:
    """
    Check that a point carries usable coordinates.

    Args:
        point: Point to check (``None`` is rejected).
        index: Position in the batch, used in the error message.

    Raises:
        ValidationError: Missing, non-numeric, non-finite, or out-of-range
                         longitude/latitude.
    """
    if point is None:
        raise ValidationError(f"Missing station at index {index}")

    for axis, value, bound in (
        ("longitude", point.longitude, 180.0),
        ("latitude", point.latitude, 90.0),
    ):
        if value is None or isinstance(value, bool):
            raise ValidationError(
                f"Invalid coordinates at index {index}: {axis} is missing",
                details={"index": index, axis: value},
            )
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise ValidationError(
                f"Invalid coordinates at index {index}: {axis}={value!r} is not numeric",
                details={"index": index, axis: str(value)},
            ) from None
        if not math.isfinite(number):
            raise ValidationError(
                f"Invalid coordinates at index {index}: {axis} is not finite",
                details={"index": index, axis: str(value)},
            )
        if not -bound <= number <= bound:
            raise ValidationError(
                f"Invalid coordinates at index {index}: {axis}={number} "
                f"outside [-{bound:g}, {bound:g}]",
                details={"index": index, axis: number},
            )


class BatchOrchestrator:
    """
    Drives the fetch client over a list of points, one at a time.

    ``run`` owns the iteration cursor and counters; ``cancel`` may be called
    from another thread while ``run`` is executing.

    Args:
        fetch: Callable with the signature of :func:`executor.fetch_isochrone`.
        max_attempts: Attempts per point (initial call + retries).
        inter_request_delay: Seconds to wait before every point after the first.
        backoff_base_seconds: Retry wait per failed-attempt index.
        status_sink: Receives a :class:`ProgressEvent` per status change.
        log: Log sink exposing ``append(entry)``.
        sleep: Sleep function taking seconds.  Defaults to an interruptible
               wait on the run's cancellation token.
    """

    def __init__(
        self,
        fetch: FetchFn = fetch_isochrone,
        max_attempts: int = MAX_ATTEMPTS,
        inter_request_delay: float = INTER_REQUEST_DELAY_SECONDS,
        backoff_base_seconds: float = RETRY_BACKOFF_BASE_SECONDS,
        status_sink: StatusSink | None = print_status,
        log=None,
        sleep: Callable[[float], object] | None = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        self.fetch = fetch
        self.max_attempts = max_attempts
        self.inter_request_delay = inter_request_delay
        self.backoff_base_seconds = backoff_base_seconds
        self.status_sink = status_sink
        self.log = log
        self.sleep = sleep
        self._cancel_token: CancellationToken | None = None

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    def cancel(self) -> None:
        """Request a stop; no new point starts once this returns."""
        if self._cancel_token is not None:
            self._cancel_token.cancel()
            print("Stop requested - isochrone creation will stop before the next station")

    @property
    def cancel_token(self) -> CancellationToken | None:
        return self._cancel_token

    # ------------------------------------------------------------------
    # Status helpers
    # ------------------------------------------------------------------

    def _emit(self, name: str, index: int, total: int, status: str) -> None:
        if self.status_sink is not None:
            self.status_sink(ProgressEvent(
                station_name=name,
                current_index=index,
                total_count=total,
                status=status,
            ))

    def _stop(self, run: BatchRun, index: int, total: int) -> None:
        print("Isochrone creation stopped by user")
        log_event(self.log, "info", "Isochrone creation stopped by user", {
            "stopped_at": index,
            "total_stations": total,
            "processed_before_stop": run.processed_count,
        })
        run.mark_cancelled()

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    def run(
        self,
        points: Sequence[Point],
        range_seconds: int,
        cancel_token: CancellationToken | None = None,
    ) -> BatchRun:
        """
        Fetch isochrones for ``points`` in order and return the batch result.

        Point-level failures never raise; the run always finishes (or stops)
        and reports counts.

        Args:
            points: Ordered points to process.
            range_seconds: Travel-time budget in seconds (positive integer).
            cancel_token: Optional externally owned stop flag; a fresh token
                          is created when omitted.  :meth:`cancel` sets
                          whichever token the current run uses.

        Returns:
            Finalized :class:`BatchRun`.

        Raises:
            ValueError: If ``range_seconds`` is not a positive integer.
        """
        validate_range_seconds(range_seconds)

        token = cancel_token or CancellationToken()
        self._cancel_token = token
        sleep = self.sleep or interruptible_sleep(token)

        total = len(points)
        run = BatchRun(range_seconds=range_seconds, total_count=total)
        category_counts = Counter(
            p.category for p in points if isinstance(p, Point)
        )

        print(
            f"\nCreating isochrones for {total} stations "
            f"({range_seconds / 60:g} minutes)...\n"
        )
        log_event(self.log, "info", "Starting isochrone creation process", {
            "total_stations": total,
            **{f"{cat}_stations": n for cat, n in sorted(category_counts.items())},
            "iso_range_seconds": range_seconds,
            "iso_range_minutes": range_seconds / 60,
            "delay_between_requests": f"{int(self.inter_request_delay * 1000)}ms",
        })

        for i, point in enumerate(points):
            if token.cancelled:
                self._stop(run, i, total)
                break

            try:
                validate_point(point, i)
            except ValidationError as exc:
                print(f"[{i + 1}/{total}] Skipping invalid station: {exc}")
                log_event(self.log, "error", f"Skipping invalid station at index {i}", {
                    "index": i,
                    "station": getattr(point, "name", None),
                    "reason": str(exc),
                })
                run.record(PointOutcome(
                    index=i,
                    point=point,
                    outcome=Failure(error=exc, attempts=0),
                ))
                self._emit(getattr(point, "name", None) or f"Station {i + 1}", i + 1, total, "error")
                continue

            name = point.name or f"Station {i + 1}"

            if i > 0:
                log_event(self.log, "info", (
                    f"Waiting {int(self.inter_request_delay * 1000)}ms before next request"
                ), {"next_station": name})
                sleep(self.inter_request_delay)
                if token.cancelled:
                    self._stop(run, i, total)
                    break

            print(f"[{i + 1}/{total}] {name} ({point.longitude}, {point.latitude})")
            log_event(self.log, "info", (
                f"Processing {point.category} station {i + 1}/{total}: {name}"
            ), {
                "station_type": point.category,
                "index": i + 1,
                "total": total,
                "station": name,
                "coordinates": {"lon": point.longitude, "lat": point.latitude},
            })
            self._emit(name, i + 1, total, "processing")

            outcome = with_retry(
                lambda p=point: self.fetch(p, range_seconds, log=self.log),
                max_attempts=self.max_attempts,
                cancel_token=token,
                sleep=sleep,
                log=self.log,
                label=name,
                base_seconds=self.backoff_base_seconds,
            )
            point_outcome = PointOutcome(index=i, point=point, outcome=outcome)
            run.record(point_outcome)

            if point_outcome.succeeded:
                log_event(self.log, "success", f"Successfully completed isochrone for {name}", {
                    "station": name,
                    "success_count": run.success_count,
                    "remaining": total - (i + 1),
                })
            else:
                analysis = classify_failure(outcome.error)
                print(f"  ✗ Failed to create isochrone for {name}: {analysis['error_type']}")
                log_event(self.log, "error", f"Failed to create isochrone for {name}", {
                    "station": name,
                    "coordinates": {"lon": point.longitude, "lat": point.latitude},
                    "error": str(outcome.error),
                    "analysis": analysis,
                    "fail_count": run.failure_count,
                })

            self._emit(name, i + 1, total, point_outcome.status)

        # A stop requested during the last point's retries ends the loop normally
        if token.cancelled and not run.cancelled:
            self._stop(run, len(run.outcomes), total)

        run.finalize()

        if run.cancelled:
            self._emit("", run.processed_count, total, "stopped")
        else:
            self._emit("", run.success_count, total, "finished")

        summary = run.summary()
        log_event(self.log, "info", "Isochrone creation process completed", {
            **summary,
            "failed_stations": [
                {
                    "name": o.point.name if isinstance(o.point, Point) else None,
                    "error": str(o.outcome.error),
                    "error_type": classify_failure(o.outcome.error)["error_type"],
                }
                for o in run.unsuccessful
            ],
        })
        print_batch_summary(run)

        return run


def run_batch(
    points: Sequence[Point],
    range_seconds: int,
    cancel_token: CancellationToken | None = None,
    **orchestrator_kwargs,
) -> BatchRun:
    """Shorthand: build a :class:`BatchOrchestrator` and run it once."""
    return BatchOrchestrator(**orchestrator_kwargs).run(
        points, range_seconds, cancel_token=cancel_token
    )


def print_batch_summary(run: BatchRun) -> None:
    """Print the end-of-batch summary block, with failures grouped by category."""
    summary = run.summary()
    sep = "=" * 60
    print(f"\n{sep}")
    print("BATCH STOPPED" if run.cancelled else "BATCH COMPLETE")
    print(f"  Stations:  {summary['total_points']:,}")
    print(f"  Processed: {summary['processed']:,}")
    print(f"  Succeeded: {summary['succeeded']:,} ({summary['success_rate_pct']}%)")
    print(f"  Failed:    {summary['failed']:,}")
    print(f"  Invalid:   {summary['skipped_invalid']:,}")
    if summary["duration_seconds"] is not None:
        print(f"  Duration:  {summary['duration_seconds'] / 60:.1f} min")

    failures = run.unsuccessful
    if failures:
        by_type = Counter(classify_failure(o.outcome.error)["error_type"] for o in failures)
        print("  Failures by error type:")
        for error_type, count in by_type.most_common():
            print(f"    {error_type}: {count} station(s)")
    print(f"{sep}\n")
