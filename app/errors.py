"""
Campus Crush — Domain exceptions.

Services raise these; ``app.main`` maps each kind onto an HTTP status, and
the WebSocket handler logs them without closing the channel.
"""

from __future__ import annotations


class CampusCrushError(Exception):
    """Base class for every expected, caller-facing failure."""

    kind: str = "error"
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(CampusCrushError):
    """Missing or malformed input (empty message, bad email, short password)."""

    kind = "validation_error"
    status_code = 400


class AuthenticationError(CampusCrushError):
    """Credentials did not match a stored account."""

    kind = "authentication_error"
    status_code = 401


class NotFoundError(CampusCrushError):
    """A referenced user or profile does not exist."""

    kind = "not_found"
    status_code = 404


class ConflictError(CampusCrushError):
    """Duplicate connection decision or duplicate account."""

    kind = "conflict"
    status_code = 409


class StorageFailure(CampusCrushError):
    """Unexpected persistence fault."""

    kind = "storage_failure"
    status_code = 500
