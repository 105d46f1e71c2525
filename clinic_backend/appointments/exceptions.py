"""
Scheduling-specific exceptions for the appointments app.

These exceptions are raised by the scheduling services and should be
translated to appropriate DRF responses in the views.
"""

from __future__ import annotations

from typing import Any


class SchedulingError(Exception):
    """Base exception for all scheduling-related errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {'detail': self.message}


class InvalidArgument(SchedulingError):
    """
    Raised when scheduling input is malformed.

    Examples: non-positive duration, unknown time zone, start >= end,
    naive datetimes where absolute instants are required.
    """
    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field:
            result['field'] = self.field
        return result


class UpstreamUnavailable(SchedulingError):
    """
    Raised when the appointment store could not be reached or failed.

    Suggestion generation aborts entirely; no partial ranking is returned.
    """
    def __init__(self, message: str = "Appointment store is unavailable"):
        super().__init__(message)


class ConflictCheckUnavailable(SchedulingError):
    """
    Raised when a conflict check could not complete.

    Distinct from "no conflict found": callers must render this as
    "unable to verify", never as "slot is free".
    """
    def __init__(self, message: str = "Conflict check could not be completed"):
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result['verified'] = False
        return result
