"""
Greedy packing of study slots into free gaps.
"""

from typing import Iterable, Iterator

from .exceptions import InvalidQuery
from .models import AvailableSlot, FreeGap, TimeConstraints, minutes


def generate_slots(
    gaps: Iterable[FreeGap],
    duration_minutes: int,
    break_minutes: int = 0,
    pad_window_edges: bool = False,
) -> Iterator[AvailableSlot]:
    """
    Pack as many ``duration_minutes`` slots as fit into each gap.

    Buffer policy:
    - A gap edge that touches real busy time keeps ``break_minutes`` free.
    - A gap edge that is only the search-window boundary is used as is,
      unless ``pad_window_edges`` is set.
    - Consecutive slots inside a gap are separated by ``break_minutes``.

    Example (duration=30, break=10):
    Gap: 10:00 - 12:00, follows busy, ends at window edge
    Usable: 10:10 - 12:00
    Result: [10:10-10:40, 10:50-11:20, 11:30-12:00]
    """
    if duration_minutes <= 0:
        raise InvalidQuery(f"duration_minutes must be greater than zero, got {duration_minutes}")
    if break_minutes < 0:
        raise InvalidQuery(f"break_minutes must not be negative, got {break_minutes}")

    duration = minutes(duration_minutes)
    pause = minutes(break_minutes)

    for gap in gaps:
        usable_start = gap.start + pause if (gap.follows_busy or pad_window_edges) else gap.start
        usable_end = gap.end - pause if (gap.precedes_busy or pad_window_edges) else gap.end

        slot_start = usable_start
        while slot_start + duration <= usable_end:
            slot_end = slot_start + duration
            yield AvailableSlot(start=slot_start, end=slot_end, duration_minutes=duration_minutes)
            slot_start = slot_end + pause


def filter_slots(
    slots: Iterable[AvailableSlot],
    constraints: TimeConstraints | None,
) -> Iterator[AvailableSlot]:
    """Drop slots that fall outside the preferred study times."""
    for slot in slots:
        if constraints is None or constraints.allows(slot.start, slot.end):
            yield slot
