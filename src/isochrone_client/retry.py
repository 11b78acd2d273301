"""
Failure classification, linear backoff, and the per-point retry wrapper.

The retry schedule is linear in the index of the attempt that just failed:
  attempt 1 → wait 1 s, attempt 2 → wait 2 s, attempt k → wait k s.

Every retryable IsochroneError (all but ValidationError) is retried the same
way; HTTP 429 gets no longer wait than a 500.  The
diagnostic category from :meth:`FailureAnalysis.classify` is reported in the
log only; it never changes whether a point is retried or fails.
"""

from __future__ import annotations

import time
from typing import Callable

from .config import MAX_ATTEMPTS, RETRY_BACKOFF_BASE_SECONDS
from .errors import (
    EmptyResult,
    HttpError,
    IsochroneError,
    NetworkError,
    ParseError,
    ValidationError,
)
from .log import log_event
from .models import AttemptOutcome, CancellationToken, Failure, IsochroneResult, Success


# ---------------------------------------------------------------------------
# Failure classification
# ---------------------------------------------------------------------------

class FailureAnalysis:
    """
    Diagnostic categories for failed isochrone requests.

    Categories are hints for whoever reads the log; they carry likely causes
    and suggested fixes but do not drive retry decisions.
    """

    AUTHENTICATION = "authentication"
    QUOTA = "quota"
    RATE_LIMIT = "rate_limit"
    INVALID_REQUEST = "invalid_request"
    SERVER_ERROR = "server_error"
    NETWORK = "network"
    EMPTY_RESPONSE = "empty_response"
    PARSE_ERROR = "parse_error"
    VALIDATION = "validation"
    UNKNOWN = "unknown"

    CAUSES: dict[str, tuple[str, str]] = {
        AUTHENTICATION: (
            "Invalid or expired API key",
            "Check the ORS_API_KEY environment variable and key permissions",
        ),
        QUOTA: (
            "API quota exceeded",
            "Check the OpenRouteService account quota",
        ),
        RATE_LIMIT: (
            "Rate limit exceeded",
            "Increase delay between requests",
        ),
        INVALID_REQUEST: (
            "Invalid coordinates or request parameters",
            "Verify coordinates are valid (lon: -180 to 180, lat: -90 to 90)",
        ),
        SERVER_ERROR: (
            "Routing service server error",
            "Retry later or check the routing service status",
        ),
        NETWORK: (
            "Network connectivity issue",
            "Check internet connection and the configured endpoint",
        ),
        EMPTY_RESPONSE: (
            "No isochrone could be generated for this location",
            "Location may be in an area without walking routes (water, restricted area)",
        ),
        PARSE_ERROR: (
            "Malformed response body",
            "Check that the endpoint (or proxy) returns GeoJSON",
        ),
        VALIDATION: (
            "Missing or non-finite station coordinates",
            "Fix the station row in the source CSV",
        ),
        UNKNOWN: (
            "Unexpected error",
            "Inspect the detailed log",
        ),
    }

    @staticmethod
    def category_for(error: Exception) -> str:
        """Map an exception to one of the category constants."""
        if isinstance(error, ValidationError):
            return FailureAnalysis.VALIDATION

        if isinstance(error, HttpError):
            if error.status in (401, 403):
                return FailureAnalysis.AUTHENTICATION
            if error.status == 402:
                return FailureAnalysis.QUOTA
            if error.status == 429:
                return FailureAnalysis.RATE_LIMIT
            if error.status == 400:
                return FailureAnalysis.INVALID_REQUEST
            if error.status >= 500:
                return FailureAnalysis.SERVER_ERROR
            return FailureAnalysis.UNKNOWN

        if isinstance(error, NetworkError):
            return FailureAnalysis.NETWORK
        if isinstance(error, EmptyResult):
            return FailureAnalysis.EMPTY_RESPONSE
        if isinstance(error, ParseError):
            return FailureAnalysis.PARSE_ERROR

        return FailureAnalysis.UNKNOWN

    @staticmethod
    def classify(error: Exception) -> dict:
        """
        Build the diagnostic record for a failure.

        Args:
            error: Exception from the fetch client or point validation.

        Returns:
            Dict with keys ``error_type``, ``message``, ``possible_causes``
            (list[str]) and ``suggestions`` (list[str]); HTTP failures also
            carry ``status``.
        """
        category = FailureAnalysis.category_for(error)
        cause, suggestion = FailureAnalysis.CAUSES[category]
        analysis = {
            "error_type": category,
            "message": str(error),
            "possible_causes": [cause],
            "suggestions": [suggestion],
        }
        if isinstance(error, HttpError):
            analysis["status"] = error.status
        return analysis


def classify_failure(error: Exception) -> dict:
    """Module-level shorthand for :meth:`FailureAnalysis.classify`."""
    return FailureAnalysis.classify(error)


# ---------------------------------------------------------------------------
# Backoff helpers
# ---------------------------------------------------------------------------

def backoff_delay(attempt: int, base_seconds: float = RETRY_BACKOFF_BASE_SECONDS) -> float:
    """
    Return the wait in seconds after the given attempt fails.

    Args:
        attempt: 1-based number of the attempt that just failed.
        base_seconds: Wait per attempt index.

    Returns:
        ``base_seconds * attempt``.
    """
    return base_seconds * attempt


def interruptible_sleep(cancel_token: CancellationToken | None) -> Callable[[float], None]:
    """
    Return a sleep function that wakes early when ``cancel_token`` is set.

    Without a token this is plain :func:`time.sleep`.
    """
    if cancel_token is None:
        return time.sleep
    return cancel_token.wait


# ---------------------------------------------------------------------------
# Main retry wrapper
# ---------------------------------------------------------------------------

def with_retry(
    operation: Callable[[], IsochroneResult],
    max_attempts: int = MAX_ATTEMPTS,
    cancel_token: CancellationToken | None = None,
    sleep: Callable[[float], object] | None = None,
    log=None,
    label: str = "",
    base_seconds: float = RETRY_BACKOFF_BASE_SECONDS,
) -> AttemptOutcome:
    """
    Run ``operation`` until it succeeds or the attempt budget is spent.

    Each attempt calls ``operation`` afresh.  After a failed attempt k that is
    not the last, the wrapper checks ``cancel_token``, waits
    :func:`backoff_delay` (k), checks the token again, then retries.  On
    exhaustion the last error is returned as-is inside :class:`Failure`.

    Args:
        operation: Zero-argument callable returning an
                   :class:`IsochroneResult` or raising
                   :class:`IsochroneError`.
        max_attempts: Total attempts allowed (initial call + retries).
        cancel_token: Optional stop flag checked between attempts.
        sleep: Sleep function taking seconds; defaults to an interruptible
               wait on ``cancel_token``.
        log: Optional log sink.
        label: Station name used in log messages.
        base_seconds: Backoff wait per attempt index.

    Returns:
        :class:`Success` with the result and attempts used, or
        :class:`Failure` with the last error and attempts used.

    Raises:
        ValueError: If ``max_attempts`` is less than 1.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

    sleep = sleep or interruptible_sleep(cancel_token)
    last_error: IsochroneError | None = None
    attempt = 0

    for attempt in range(1, max_attempts + 1):
        log_event(log, "info", f"Attempt {attempt}/{max_attempts} for {label}", {
            "station": label,
            "attempt": attempt,
            "max_attempts": max_attempts,
        })

        try:
            result = operation()
        except IsochroneError as exc:
            if not exc.retryable:
                log_event(log, "error", f"Not retrying {label}: {exc}", {
                    "station": label,
                    **classify_failure(exc),
                })
                return Failure(error=exc, attempts=attempt)

            last_error = exc
            analysis = classify_failure(exc)
            print(
                f"  Attempt {attempt}/{max_attempts} failed "
                f"[{analysis['error_type']}]: {str(exc)[:120]}"
            )
            log_event(log, "retry", f"Attempt {attempt} failed for {label}", {
                "station": label,
                "attempt": attempt,
                "max_attempts": max_attempts,
                **analysis,
            })
        else:
            log_event(log, "success", (
                f"Successfully created isochrone for {label} on attempt {attempt}"
            ), {
                "station": label,
                "attempt": attempt,
                "feature_count": result.feature_count,
            })
            return Success(result=result, attempts=attempt)

        if attempt == max_attempts:
            break

        if cancel_token is not None and cancel_token.cancelled:
            log_event(log, "info", f"Retry cancelled for {label}", {
                "station": label,
                "attempts_made": attempt,
            })
            return Failure(error=last_error, attempts=attempt)

        delay = backoff_delay(attempt, base_seconds)
        log_event(log, "info", (
            f"Waiting {int(delay * 1000)}ms before retry {attempt + 1} for {label}"
        ), {
            "station": label,
            "delay_ms": int(delay * 1000),
            "next_attempt": attempt + 1,
        })
        sleep(delay)

        if cancel_token is not None and cancel_token.cancelled:
            log_event(log, "info", f"Retry cancelled for {label}", {
                "station": label,
                "attempts_made": attempt,
            })
            return Failure(error=last_error, attempts=attempt)

    log_event(log, "error", (
        f"Failed to create isochrone for {label} after {attempt} attempts"
    ), {
        "station": label,
        "total_attempts": attempt,
        "final_error": str(last_error),
        "analysis": classify_failure(last_error),
    })
    return Failure(error=last_error, attempts=attempt)
