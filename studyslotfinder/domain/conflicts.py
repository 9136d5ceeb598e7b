"""
Conflict detection between a candidate interval and busy time.
"""

from bisect import bisect_right
from typing import List

from .interval_set import BusyTimeSet
from .models import ConflictResult, TimeRange


def check_conflicts(candidate: TimeRange, busy: BusyTimeSet) -> ConflictResult:
    """
    Report every busy interval that overlaps ``candidate``.

    Intervals that only touch the candidate (one ends exactly when the other
    starts) are not conflicts.
    """
    conflicting: List[TimeRange] = []

    # Busy intervals are disjoint and sorted, so their ends are sorted too.
    index = bisect_right(busy.intervals, candidate.start, key=lambda r: r.end)

    for interval in busy.intervals[index:]:
        if interval.start >= candidate.end:
            break
        conflicting.append(interval)

    return ConflictResult(
        has_conflict=bool(conflicting),
        conflicting_intervals=tuple(conflicting),
    )


def is_free(candidate: TimeRange, busy: BusyTimeSet) -> bool:
    """Check whether ``candidate`` does not overlap any busy interval."""
    return not check_conflicts(candidate, busy).has_conflict
