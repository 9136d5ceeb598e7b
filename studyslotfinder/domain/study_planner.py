"""
Spreading study sessions across the days before a deadline.
"""

import logging
import math
from typing import List

from pendulum import DateTime

from .exceptions import InvalidQuery
from .gaps import find_gaps
from .interval_set import BusyTimeSet
from .models import AvailableSlot, TimeConstraints, TimeRange
from .slot_generator import filter_slots, generate_slots

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


def _day_window(
    day: DateTime,
    day_start_hour: int,
    day_end_hour: int,
    now: DateTime,
    deadline: DateTime,
) -> TimeRange | None:
    """Study hours of ``day`` clipped to ``[now, deadline]``; None if empty."""
    start = day.set(hour=day_start_hour, minute=0, second=0, microsecond=0)
    if day_end_hour == 24:
        end = day.add(days=1).start_of("day")
    else:
        end = day.set(hour=day_end_hour, minute=0, second=0, microsecond=0)

    start = max(start, now)
    end = min(end, deadline)

    if start >= end:
        return None
    return TimeRange(start=start, end=end)


def plan_study_sessions(
    busy: BusyTimeSet,
    now: DateTime,
    deadline: DateTime,
    total_study_minutes: int,
    session_minutes: int = 90,
    break_minutes: int = 15,
    day_start_hour: int = 9,
    day_end_hour: int = 21,
    constraints: TimeConstraints | None = None,
    pad_window_edges: bool = False,
) -> List[AvailableSlot]:
    """
    Plan enough sessions to cover ``total_study_minutes`` before ``deadline``.

    Algorithm:
    1. sessions = ceil(total / session length)
    2. per_day = ceil(sessions / days until deadline)
    3. Walk the days from ``now``; each day takes up to ``per_day`` free slots
       inside its study hours
    4. Stop once every session is placed or the deadline is reached

    Returns fewer sessions than needed when the calendar is too full.
    """
    if total_study_minutes <= 0:
        raise InvalidQuery(f"total_study_minutes must be greater than zero, got {total_study_minutes}")
    if session_minutes <= 0:
        raise InvalidQuery(f"session_minutes must be greater than zero, got {session_minutes}")
    if not 0 <= day_start_hour < day_end_hour <= 24:
        raise InvalidQuery(
            f"Study hours must satisfy 0 <= start < end <= 24, got {day_start_hour}-{day_end_hour}"
        )
    if deadline <= now:
        raise InvalidQuery(f"Deadline {deadline} must be after {now}")

    number_of_sessions = math.ceil(total_study_minutes / session_minutes)
    days_until_deadline = math.ceil((deadline - now).total_seconds() / SECONDS_PER_DAY)
    sessions_per_day = math.ceil(number_of_sessions / max(days_until_deadline, 1))

    sessions: List[AvailableSlot] = []
    day = now.start_of("day")

    while len(sessions) < number_of_sessions and day < deadline:
        window = _day_window(day, day_start_hour, day_end_hour, now, deadline)

        if window is not None:
            remaining = min(sessions_per_day, number_of_sessions - len(sessions))
            slots = filter_slots(
                generate_slots(
                    find_gaps(window, busy),
                    duration_minutes=session_minutes,
                    break_minutes=break_minutes,
                    pad_window_edges=pad_window_edges,
                ),
                constraints,
            )
            for slot in slots:
                sessions.append(slot)
                remaining -= 1
                if remaining == 0:
                    break

        day = day.add(days=1)

    if len(sessions) < number_of_sessions:
        logger.info(
            "Only %d of %d study sessions fit before %s",
            len(sessions),
            number_of_sessions,
            deadline,
        )

    return sessions
