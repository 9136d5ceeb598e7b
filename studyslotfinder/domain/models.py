"""
Domain models for busy intervals, slot queries and scheduling results.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Tuple

import pendulum
from pendulum import DateTime

from .exceptions import InvalidInterval, InvalidQuery

WEEKDAY_NAMES = {
    0: "Monday",
    1: "Tuesday",
    2: "Wednesday",
    3: "Thursday",
    4: "Friday",
    5: "Saturday",
    6: "Sunday",
}


def minutes(value: int) -> timedelta:
    """Return a duration of ``value`` minutes."""
    return pendulum.duration(minutes=value)


def _as_pendulum(value: datetime) -> DateTime:
    if isinstance(value, DateTime):
        return value
    if isinstance(value, datetime):
        return pendulum.instance(value)
    raise TypeError(f"Expected a datetime, got {type(value).__name__}")


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable time range with start and end datetime.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        object.__setattr__(self, "start", _as_pendulum(self.start))
        object.__setattr__(self, "end", _as_pendulum(self.end))
        if self.start >= self.end:
            raise InvalidInterval(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another. Touching ranges do not overlap."""
        return self.start < other.end and self.end > other.start

    def touches_or_overlaps(self, other: "TimeRange") -> bool:
        """Check if the ranges overlap or share a boundary."""
        return self.start <= other.end and self.end >= other.start

    def intersect(self, other: "TimeRange") -> "TimeRange | None":
        """
        Calculate the intersection of two time ranges.
        Returns None if there is no overlap.
        """
        if not self.overlaps(other):
            return None

        start = max(self.start, other.start)
        end = min(self.end, other.end)

        return TimeRange(start=start, end=end)

    def padded(self, padding_minutes: int) -> "TimeRange":
        """Return the range widened by ``padding_minutes`` on both sides."""
        if padding_minutes <= 0:
            return self
        padding = minutes(padding_minutes)
        return TimeRange(start=self.start - padding, end=self.end + padding)

    def shifted(self, offset_minutes: int) -> "TimeRange":
        """Return the range moved by ``offset_minutes`` (negative moves earlier)."""
        offset = minutes(offset_minutes)
        return TimeRange(start=self.start + offset, end=self.end + offset)

    def to_dict(self) -> Dict[str, str]:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}

    def __str__(self) -> str:
        return f"{self.start.format('DD.MM.YYYY HH:mm')} - {self.end.format('HH:mm')}"


@dataclass(frozen=True)
class FreeGap:
    """
    A maximal free stretch inside a search window.

    ``follows_busy``/``precedes_busy`` tell whether the left/right edge is a
    real busy interval or just the boundary of the search window.
    """
    start: DateTime
    end: DateTime
    follows_busy: bool = False
    precedes_busy: bool = False

    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() / 60)


@dataclass(frozen=True)
class AvailableSlot:
    """
    A concrete proposed study-session time range.
    """
    start: DateTime
    end: DateTime
    duration_minutes: int

    def __post_init__(self):
        object.__setattr__(self, "start", _as_pendulum(self.start))
        object.__setattr__(self, "end", _as_pendulum(self.end))
        if self.duration_minutes <= 0:
            raise InvalidInterval(f"Slot duration must be positive, got {self.duration_minutes}")
        if self.start + minutes(self.duration_minutes) != self.end:
            raise InvalidInterval(
                f"Slot {self.start} - {self.end} does not last {self.duration_minutes} minutes"
            )

    @classmethod
    def starting_at(cls, start: DateTime, duration_minutes: int) -> "AvailableSlot":
        return cls(start=start, end=start + minutes(duration_minutes), duration_minutes=duration_minutes)

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(start=self.start, end=self.end)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "duration_minutes": self.duration_minutes,
        }

    def format_display(self) -> str:
        """
        Format the slot for display.
        Format: Weekday, DD.MM.YYYY | HH:MM – HH:MM (N min)
        """
        weekday = WEEKDAY_NAMES[self.start.weekday()]
        date_str = self.start.format("DD.MM.YYYY")
        time_str = f"{self.start.format('HH:mm')} – {self.end.format('HH:mm')}"

        return f"{weekday}, {date_str} | {time_str} ({self.duration_minutes} min)"


@dataclass(frozen=True)
class SlotQuery:
    """
    Parameters of a slot search.

    Invariants: search_start < search_end, duration_minutes > 0,
    break_minutes >= 0.
    """
    search_start: DateTime
    search_end: DateTime
    duration_minutes: int
    break_minutes: int = 0

    def __post_init__(self):
        object.__setattr__(self, "search_start", _as_pendulum(self.search_start))
        object.__setattr__(self, "search_end", _as_pendulum(self.search_end))
        if self.search_start >= self.search_end:
            raise InvalidQuery(
                f"Search start {self.search_start} must be before search end {self.search_end}"
            )
        if self.duration_minutes <= 0:
            raise InvalidQuery(f"duration_minutes must be greater than zero, got {self.duration_minutes}")
        if self.break_minutes < 0:
            raise InvalidQuery(f"break_minutes must not be negative, got {self.break_minutes}")

    @classmethod
    def starting_at(
        cls,
        start: DateTime,
        duration_minutes: int,
        break_minutes: int = 0,
        max_search_days: int = 14,
    ) -> "SlotQuery":
        """Build a query that searches ``max_search_days`` ahead of ``start``."""
        if max_search_days <= 0:
            raise InvalidQuery(f"max_search_days must be greater than zero, got {max_search_days}")
        start = _as_pendulum(start)
        return cls(
            search_start=start,
            search_end=start.add(days=max_search_days),
            duration_minutes=duration_minutes,
            break_minutes=break_minutes,
        )

    @property
    def window(self) -> TimeRange:
        return TimeRange(start=self.search_start, end=self.search_end)


@dataclass(frozen=True)
class ConflictResult:
    """Outcome of checking a candidate interval against busy time."""
    has_conflict: bool
    conflicting_intervals: Tuple[TimeRange, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "has_conflict": self.has_conflict,
            "conflicting_intervals": [interval.to_dict() for interval in self.conflicting_intervals],
        }


@dataclass(frozen=True)
class ConflictReport:
    """A conflict result together with suggested replacement slots."""
    requested: TimeRange
    result: ConflictResult
    suggested_alternatives: Tuple[AvailableSlot, ...] = ()

    @property
    def has_conflict(self) -> bool:
        return self.result.has_conflict

    def to_dict(self) -> Dict[str, Any]:
        data = self.result.to_dict()
        data["requested"] = self.requested.to_dict()
        data["suggested_alternatives"] = [slot.to_dict() for slot in self.suggested_alternatives]
        return data


@dataclass(frozen=True)
class TimeConstraints:
    """
    Preferred times for study slots.

    Weekdays use 0=Monday ... 6=Sunday, as ``DateTime.weekday()`` does. Day
    numbers counted from Sunday (0=Sunday) must be shifted before use.
    An ``end_hour`` of 17 admits slots ending at 17:00 but not at 17:15.
    """
    start_hour: int | None = None
    end_hour: int | None = None
    days_of_week: Tuple[int, ...] = ()

    def __post_init__(self):
        for name, hour in (("start_hour", self.start_hour), ("end_hour", self.end_hour)):
            if hour is not None and not 0 <= hour <= 24:
                raise InvalidQuery(f"{name} must be between 0 and 24, got {hour}")
        invalid_days = [day for day in self.days_of_week if day not in range(7)]
        if invalid_days:
            raise InvalidQuery(f"days_of_week must be between 0 and 6, got {invalid_days}")
        object.__setattr__(self, "days_of_week", tuple(self.days_of_week))

    @property
    def is_empty(self) -> bool:
        return self.start_hour is None and self.end_hour is None and not self.days_of_week

    def allows(self, start: DateTime, end: DateTime) -> bool:
        """Check whether a slot from ``start`` to ``end`` respects the constraints."""
        if self.days_of_week and start.weekday() not in self.days_of_week:
            return False

        if self.start_hour is not None and start.hour < self.start_hour:
            return False

        if self.end_hour is not None:
            if end.hour > self.end_hour or (end.hour == self.end_hour and end.minute > 0):
                return False

        return True


@dataclass(frozen=True)
class EngineSettings:
    """
    Tunable policies of the scheduling engine.
    """
    pad_window_edges: bool = False  # also keep a break at search-window edges
    probe_step_minutes: int = 15
    prefer_later: bool = True
    max_suggestions: int = 3
    search_horizon_minutes: int = 24 * 60
    max_search_days: int = 14
    default_break_minutes: int = 0

    def __post_init__(self):
        if self.probe_step_minutes <= 0:
            raise InvalidQuery("probe_step_minutes must be greater than zero")
        if self.max_suggestions <= 0:
            raise InvalidQuery("max_suggestions must be greater than zero")
        if self.search_horizon_minutes < 0:
            raise InvalidQuery("search_horizon_minutes must not be negative")
        if self.max_search_days <= 0:
            raise InvalidQuery("max_search_days must be greater than zero")
        if self.default_break_minutes < 0:
            raise InvalidQuery("default_break_minutes must not be negative")
