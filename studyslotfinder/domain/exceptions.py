"""
Domain-specific exception hierarchy for the scheduling engine.
"""


class SchedulingError(Exception):
    """Base class for all application-level errors."""


class InvalidInterval(SchedulingError, ValueError):
    """Raised when a time interval does not start before it ends."""


class InvalidQuery(SchedulingError, ValueError):
    """Raised when slot search parameters are inconsistent."""


class CalendarDataError(SchedulingError):
    """Raised when busy-time data cannot be read or parsed."""
