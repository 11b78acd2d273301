"""
src/isochrone_client - isochrone retrieval layer for transit station batches.

Module layout
-------------
config.py    - service config, batch constants, path constants (re-exported from config/)
errors.py    - IsochroneError hierarchy (validation, network, HTTP, empty, parse)
models.py    - Point, IsochroneResult, Success/Failure, BatchRun, CancellationToken
parser.py    - feature-collection parsing and validation, error body formatting
executor.py  - request construction, single-call fetch_isochrone
retry.py     - failure classification, linear backoff, with_retry wrapper
batch.py     - sequential BatchOrchestrator with rate-limit delay and cancellation
log.py       - IsochroneLog structured sink, text/DataFrame export, status printer

Public interface
----------------
Fetch one isochrone:
    fetch_isochrone(point, range_seconds)

Run a batch:
    BatchOrchestrator(...).run(points, range_seconds, cancel_token=None)
    run_batch(points, range_seconds, **orchestrator_kwargs)

Inspect failures:
    classify_failure(error)
"""

from .batch import BatchOrchestrator, run_batch, validate_point
from .errors import (
    EmptyResult,
    HttpError,
    IsochroneError,
    NetworkError,
    ParseError,
    ValidationError,
)
from .executor import fetch_isochrone
from .log import IsochroneLog, print_status
from .models import (
    BatchRun,
    CancellationToken,
    Failure,
    IsochroneRequest,
    IsochroneResult,
    Point,
    PointOutcome,
    ProgressEvent,
    Success,
)
from .retry import backoff_delay, classify_failure, with_retry

__all__ = [
    # Batch orchestration
    "BatchOrchestrator",
    "run_batch",
    "validate_point",
    # Fetch client
    "fetch_isochrone",
    "with_retry",
    "backoff_delay",
    "classify_failure",
    # Models
    "BatchRun",
    "CancellationToken",
    "Failure",
    "IsochroneRequest",
    "IsochroneResult",
    "Point",
    "PointOutcome",
    "ProgressEvent",
    "Success",
    # Errors
    "EmptyResult",
    "HttpError",
    "IsochroneError",
    "NetworkError",
    "ParseError",
    "ValidationError",
    # Logging
    "IsochroneLog",
    "print_status",
]
