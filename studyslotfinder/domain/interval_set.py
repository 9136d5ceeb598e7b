"""
Canonical busy-time sets.

Raw busy intervals arrive unsorted and possibly overlapping (several calendars,
duplicated events). ``merge`` folds them into a ``BusyTimeSet``: sorted by
start, with every touching or overlapping pair fused into one interval.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Sequence, Tuple, Union

from pendulum import DateTime

from .exceptions import InvalidInterval
from .models import TimeRange

logger = logging.getLogger(__name__)

RawInterval = Union[TimeRange, Tuple[DateTime, DateTime]]


@dataclass(frozen=True)
class BusyTimeSet:
    """
    Immutable, sorted sequence of non-overlapping, non-touching busy intervals.

    Build instances with ``merge`` (or ``BusyTimeSet.from_intervals``); the
    constructor trusts its input.
    """
    intervals: Tuple[TimeRange, ...] = ()

    @classmethod
    def from_intervals(cls, raw_intervals: Iterable[RawInterval]) -> "BusyTimeSet":
        return merge(raw_intervals)

    def union(self, other: Iterable[RawInterval]) -> "BusyTimeSet":
        """Return a new set covering this set and ``other``."""
        return merge([*self.intervals, *other])

    def __iter__(self) -> Iterator[TimeRange]:
        return iter(self.intervals)

    def __len__(self) -> int:
        return len(self.intervals)

    def __getitem__(self, index: int) -> TimeRange:
        return self.intervals[index]

    def __bool__(self) -> bool:
        return bool(self.intervals)


def _coerce(raw: RawInterval) -> TimeRange:
    if isinstance(raw, TimeRange):
        return raw
    start, end = raw
    return TimeRange(start=start, end=end)


def merge(raw_intervals: Iterable[RawInterval]) -> BusyTimeSet:
    """
    Merge raw busy intervals into a canonical ``BusyTimeSet``.

    Invalid intervals (start not before end) are dropped with a warning; the
    remaining ones are merged.

    Example:
    Raw: [09:45-11:00, 09:00-10:00, 11:00-11:30, 13:00-14:00]
    Result: [09:00-11:30, 13:00-14:00]
    """
    valid: List[TimeRange] = []

    for raw in raw_intervals:
        try:
            valid.append(_coerce(raw))
        except InvalidInterval as exc:
            logger.warning("Dropping invalid busy interval: %s", exc)

    if not valid:
        return BusyTimeSet()

    sorted_ranges: Sequence[TimeRange] = sorted(valid, key=lambda r: (r.start, r.end))
    merged: List[TimeRange] = [sorted_ranges[0]]

    for current in sorted_ranges[1:]:
        last = merged[-1]

        # Touching ranges are fused as well
        if current.start <= last.end:
            if current.end > last.end:
                merged[-1] = TimeRange(start=last.start, end=current.end)
        else:
            merged.append(current)

    logger.debug("Merged %d busy intervals into %d", len(valid), len(merged))
    return BusyTimeSet(intervals=tuple(merged))
