"""
Exception hierarchy for isochrone retrieval failures.

Every failure the fetch client can report derives from :class:`IsochroneError`;
the retry wrapper retries exactly the subclasses whose ``retryable`` flag is
set.  Diagnostic classification of these errors lives in
:mod:`src.isochrone_client.retry`.
"""

from __future__ import annotations


class IsochroneError(RuntimeError):
    """Base class for a failed isochrone retrieval for one point."""

    retryable: bool = True

    def __init__(self, message: str, *, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}

    def as_dict(self) -> dict:
        """Return a serializable representation."""
        payload = {"kind": type(self).__name__, "message": str(self)}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(IsochroneError):
    """Point coordinates are missing, non-finite, or out of range."""

    retryable = False


class NetworkError(IsochroneError):
    """Transport failure: connection refused, DNS, timeout, reset."""


class HttpError(IsochroneError):
    """The routing service answered with a non-2xx status."""

    def __init__(
        self,
        status: int,
        reason: str = "",
        body: str = "",
        *,
        details: dict | None = None,
    ):
        message = f"Isochrone API error {status}"
        if reason:
            message = f"{message}: {reason}"
        if body:
            message = f"{message}\nDetails: {body}"
        super().__init__(message, details=details)
        self.status = status
        self.reason = reason
        self.body = body

    def as_dict(self) -> dict:
        payload = super().as_dict()
        payload["status"] = self.status
        return payload


class EmptyResult(IsochroneError):
    """Well-formed response whose feature collection holds no features."""


class ParseError(IsochroneError):
    """Response body is not JSON or not a feature collection."""
