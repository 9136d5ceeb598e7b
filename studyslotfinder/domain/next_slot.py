"""
Earliest free slot lookup.
"""

from .gaps import find_gaps
from .interval_set import BusyTimeSet
from .models import AvailableSlot, SlotQuery, TimeConstraints
from .slot_generator import filter_slots, generate_slots


def find_next_free_slot(
    busy: BusyTimeSet,
    query: SlotQuery,
    constraints: TimeConstraints | None = None,
    pad_window_edges: bool = False,
) -> AvailableSlot | None:
    """
    Return the first slot satisfying ``query``, or None if the search window
    holds no opening.

    Gaps and slots are produced lazily, so the search stops at the first hit.
    """
    gaps = find_gaps(query.window, busy)
    slots = generate_slots(
        gaps,
        duration_minutes=query.duration_minutes,
        break_minutes=query.break_minutes,
        pad_window_edges=pad_window_edges,
    )

    return next(filter_slots(slots, constraints), None)
