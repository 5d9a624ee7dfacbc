"""Error taxonomy shared by repositories and request handlers."""
from __future__ import annotations


class PortalError(Exception):
    """Base class for errors raised by the data access layer.

    ``status_code`` is the HTTP status the application reports for it.
    """

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(PortalError):
    """Malformed or out-of-range input."""

    status_code = 400


class NotFound(PortalError):
    """Update or delete target does not exist."""


class Conflict(PortalError):
    """Unique key violation."""


class Unauthorized(PortalError):
    """Missing or invalid identity claim."""

    status_code = 401


class Forbidden(PortalError):
    """Authenticated member lacks the admin flag."""

    status_code = 403


class StoreError(PortalError):
    """Underlying persistence failure."""


__all__ = [
    "Conflict",
    "Forbidden",
    "NotFound",
    "PortalError",
    "StoreError",
    "Unauthorized",
    "ValidationError",
]
