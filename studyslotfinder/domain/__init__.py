"""
Domain layer - Pure business logic without external dependencies.
"""

from .exceptions import CalendarDataError, InvalidInterval, InvalidQuery, SchedulingError
from .interval_set import BusyTimeSet, merge
from .models import (
    AvailableSlot,
    ConflictReport,
    ConflictResult,
    EngineSettings,
    FreeGap,
    SlotQuery,
    TimeConstraints,
    TimeRange,
)
from .slot_calculator import SlotCalculator

__all__ = [
    "AvailableSlot",
    "BusyTimeSet",
    "CalendarDataError",
    "ConflictReport",
    "ConflictResult",
    "EngineSettings",
    "FreeGap",
    "InvalidInterval",
    "InvalidQuery",
    "SchedulingError",
    "SlotCalculator",
    "SlotQuery",
    "TimeConstraints",
    "TimeRange",
    "merge",
]
