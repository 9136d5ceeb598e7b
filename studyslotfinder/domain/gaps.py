"""
Free-gap computation: the complement of busy time inside a search window.
"""

from typing import Iterator

from .interval_set import BusyTimeSet
from .models import FreeGap, TimeRange


def find_gaps(window: TimeRange, busy: BusyTimeSet) -> Iterator[FreeGap]:
    """
    Yield the free gaps of ``window`` from left to right.

    Busy intervals are clipped to the window; intervals entirely outside it
    are ignored. Busy time that ends exactly at the window start (or starts
    exactly at its end) adds no gap but still marks that edge as busy, so the
    break buffer applies there.

    Example:
    Window: 08:00 - 12:00
    Busy: [09:00-10:00]
    Result: [08:00-09:00 (precedes busy), 10:00-12:00 (follows busy)]
    """
    cursor = window.start
    cursor_follows_busy = False
    end_touches_busy = False

    for interval in busy:
        if interval.end < window.start:
            continue
        if interval.end == window.start:
            cursor_follows_busy = True
            continue
        if interval.start >= window.end:
            end_touches_busy = interval.start == window.end
            break

        clipped_start = max(interval.start, window.start)
        clipped_end = min(interval.end, window.end)

        if cursor < clipped_start:
            yield FreeGap(
                start=cursor,
                end=clipped_start,
                follows_busy=cursor_follows_busy,
                precedes_busy=True,
            )

        cursor = clipped_end
        cursor_follows_busy = True

    if cursor < window.end:
        yield FreeGap(
            start=cursor,
            end=window.end,
            follows_busy=cursor_follows_busy,
            precedes_busy=end_touches_busy,
        )
