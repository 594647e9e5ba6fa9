"""Exception hierarchy shared by the services and the HTTP layer."""

from __future__ import annotations


class TrackerError(RuntimeError):
    """Base class for every error raised by the tracker."""


class ValidationError(TrackerError):
    """Raised when a required field is missing or malformed."""


class NotFoundError(TrackerError):
    """Raised when an entity cannot be located in the database."""


class StoreError(TrackerError):
    """Raised when the database cannot be reached or a query fails."""


__all__ = ["TrackerError", "ValidationError", "NotFoundError", "StoreError"]
