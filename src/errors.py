"""
Toreca Tracker — Error Taxonomy

Each error carries the HTTP status it maps to. Handlers raise these and the
application-level exception handlers in src/api/responses.py turn them into
the standard JSON envelope.
"""

from __future__ import annotations


class TrackerError(Exception):
    """Base class for all errors surfaced to API clients."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(TrackerError):
    """Missing or malformed input."""
    status_code = 400


class AuthError(TrackerError):
    """Missing or incorrect credential."""
    status_code = 401


class ForbiddenError(TrackerError):
    """Credential is valid but disabled."""
    status_code = 403


class NotFoundError(TrackerError):
    status_code = 404


class RateLimitError(TrackerError):
    """Request arrived before the client's interval elapsed."""
    status_code = 429

    def __init__(self, message: str, retry_after: int | None = None):
        super().__init__(message)
        self.retry_after = retry_after


class UpstreamError(TrackerError):
    """Third-party API or datastore failure; message is passed through."""
    status_code = 500
