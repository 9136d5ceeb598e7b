"""
Alternative slot suggestions for a requested time that conflicts.
"""

import logging
from typing import Iterator, List

from .conflicts import is_free
from .exceptions import InvalidQuery
from .interval_set import BusyTimeSet
from .models import AvailableSlot, TimeConstraints, TimeRange, minutes

logger = logging.getLogger(__name__)

DEFAULT_STEP_MINUTES = 15


def _probe_offsets(
    search_horizon_minutes: int,
    step_minutes: int,
    prefer_later: bool,
) -> Iterator[int]:
    """
    Yield signed minute offsets from the requested start.

    With ``prefer_later`` every later offset up to the horizon comes first and
    earlier offsets are only tried afterwards. Otherwise offsets alternate by
    distance, the earlier one first.
    """
    distances = range(step_minutes, search_horizon_minutes + 1, step_minutes)

    if prefer_later:
        yield from distances
        yield from (-distance for distance in distances)
        return

    for distance in distances:
        yield -distance
        yield distance


def suggest_alternatives(
    requested: TimeRange,
    busy: BusyTimeSet,
    max_results: int = 3,
    search_horizon_minutes: int = 24 * 60,
    step_minutes: int = DEFAULT_STEP_MINUTES,
    prefer_later: bool = True,
    break_minutes: int = 0,
    constraints: TimeConstraints | None = None,
) -> List[AvailableSlot]:
    """
    Propose up to ``max_results`` conflict-free slots near ``requested``.

    The search walks outward from the requested start in ``step_minutes``
    increments and never moves more than ``search_horizon_minutes`` away.
    With ``prefer_later`` all later candidates are tried before any earlier
    one; otherwise the nearest candidate wins, earlier first at equal
    distance. Every candidate keeps the requested duration and must stay
    ``break_minutes`` away from busy time.

    The accepted candidates are returned sorted by start time. Fewer
    than ``max_results`` (possibly none) are returned when the horizon runs
    out.
    """
    if max_results <= 0:
        raise InvalidQuery(f"max_results must be greater than zero, got {max_results}")
    if search_horizon_minutes < 0:
        raise InvalidQuery(f"search_horizon_minutes must not be negative, got {search_horizon_minutes}")
    if step_minutes <= 0:
        raise InvalidQuery(f"step_minutes must be greater than zero, got {step_minutes}")
    if break_minutes < 0:
        raise InvalidQuery(f"break_minutes must not be negative, got {break_minutes}")

    duration_minutes = requested.duration_minutes()
    if requested.start + minutes(duration_minutes) != requested.end:
        raise InvalidQuery(f"Requested time {requested} must last a whole number of minutes")

    found: List[AvailableSlot] = []

    for offset in _probe_offsets(search_horizon_minutes, step_minutes, prefer_later):
        candidate = requested.shifted(offset)

        if constraints is not None and not constraints.allows(candidate.start, candidate.end):
            continue
        if not is_free(candidate.padded(break_minutes), busy):
            continue

        found.append(AvailableSlot.starting_at(candidate.start, duration_minutes))
        if len(found) == max_results:
            break

    logger.debug(
        "Found %d alternative(s) for %s within %d minutes",
        len(found),
        requested,
        search_horizon_minutes,
    )

    return sorted(found, key=lambda slot: slot.start)
