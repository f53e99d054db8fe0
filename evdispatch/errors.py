"""Domain errors raised by the dispatch core and translated by the API layer."""

from __future__ import annotations


class DispatchError(Exception):
    """Base class for failures that cross the core's boundary."""

    status_code = 400
    reason = "dispatch_error"

    def __init__(self, message: str, reason: str | None = None):
        super().__init__(message)
        self.message = message
        if reason is not None:
            self.reason = reason


class LocationError(DispatchError):
    """GPS capture failed: services off, permission denied, timeout or bad fix."""

    status_code = 422
    reason = "capture_failed"

    SERVICES_DISABLED = "services_disabled"
    PERMISSION_DENIED = "permission_denied"
    CAPTURE_FAILED = "capture_failed"
    OUT_OF_RANGE = "out_of_range"


class PreconditionError(DispatchError):
    """A state-machine guard rejected the action (wrong status, actor, lost race)."""

    status_code = 409
    reason = "precondition_failed"


class PersistenceError(DispatchError):
    """The backing store could not read or durably write a record."""

    status_code = 503
    reason = "persistence_failed"


class NotFoundError(DispatchError):
    status_code = 404
    reason = "not_found"
