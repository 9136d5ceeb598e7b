"""
Application services for scheduling study sessions.

The service coordinates fetching busy times via a calendar client adapter and
delegates the actual availability calculation to the domain-level
``SlotCalculator``. Fetching is asynchronous; the calculation is not, so the
engine can be tested without any calendar at all.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Protocol, Sequence

from pendulum import DateTime

from ..domain.interval_set import BusyTimeSet, merge
from ..domain.models import (
    AvailableSlot,
    ConflictReport,
    SlotQuery,
    TimeConstraints,
    TimeRange,
    minutes,
)
from ..domain.slot_calculator import SlotCalculator

logger = logging.getLogger(__name__)


class CalendarClientProtocol(Protocol):
    """Protocol describing the calendar client behaviour needed by the service."""

    async def get_busy_times(
        self,
        calendar_ids: Sequence[str],
        start_time: DateTime,
        end_time: DateTime,
        timezone: str,
    ) -> Dict[str, List[TimeRange]]:
        """Return busy time ranges per calendar."""


class SchedulingService:
    """
    Orchestrates busy-time retrieval and slot calculation.

    Busy times of all requested calendars are unioned before they reach the
    calculator.
    """

    def __init__(
        self,
        calendar_client: CalendarClientProtocol,
        slot_calculator: SlotCalculator,
        timezone: str = "UTC",
    ) -> None:
        self._calendar_client = calendar_client
        self._slot_calculator = slot_calculator
        self._timezone = timezone

    async def fetch_calendar_busy_times(
        self,
        *,
        calendar_ids: Sequence[str],
        start_time: DateTime,
        end_time: DateTime,
    ) -> Dict[str, List[TimeRange]]:
        """Fetch busy times for the requested calendars."""
        calendar_list = list(calendar_ids)

        busy_times = await self._calendar_client.get_busy_times(
            calendar_ids=calendar_list,
            start_time=start_time,
            end_time=end_time,
            timezone=self._timezone,
        )

        return self._ensure_busy_time_entries(calendar_list, busy_times)

    async def fetch_busy_times(
        self,
        *,
        calendar_ids: Sequence[str],
        start_time: DateTime,
        end_time: DateTime,
    ) -> BusyTimeSet:
        """Fetch busy times and union them across calendars."""
        per_calendar = await self.fetch_calendar_busy_times(
            calendar_ids=calendar_ids,
            start_time=start_time,
            end_time=end_time,
        )

        busy = merge(
            interval
            for intervals in per_calendar.values()
            for interval in intervals
        )
        logger.debug("Fetched %d merged busy interval(s) from %d calendar(s)", len(busy), len(per_calendar))
        return busy

    async def find_available_slots(
        self,
        *,
        calendar_ids: Sequence[str],
        query: SlotQuery,
        constraints: TimeConstraints | None = None,
    ) -> List[AvailableSlot]:
        """Retrieve busy data and compute every available slot of the query."""
        busy = await self.fetch_busy_times(
            calendar_ids=calendar_ids,
            start_time=query.search_start,
            end_time=query.search_end,
        )
        return self._slot_calculator.find_available_slots(query, busy, constraints=constraints)

    async def find_next_free_slot(
        self,
        *,
        calendar_ids: Sequence[str],
        query: SlotQuery,
        constraints: TimeConstraints | None = None,
    ) -> AvailableSlot | None:
        """Retrieve busy data and return the earliest slot of the query."""
        busy = await self.fetch_busy_times(
            calendar_ids=calendar_ids,
            start_time=query.search_start,
            end_time=query.search_end,
        )
        return self._slot_calculator.find_next_free_slot(busy, query, constraints=constraints)

    async def check_conflicts(
        self,
        *,
        calendar_ids: Sequence[str],
        requested: TimeRange,
        max_results: int | None = None,
        search_horizon_minutes: int | None = None,
        break_minutes: int | None = None,
        constraints: TimeConstraints | None = None,
    ) -> ConflictReport:
        """
        Check a requested session and suggest alternatives on conflict.

        Busy data is fetched for the whole area the alternative search may
        probe, so suggestions are checked against real calendar data.
        """
        settings = self._slot_calculator.settings
        horizon = settings.search_horizon_minutes if search_horizon_minutes is None else search_horizon_minutes
        pause = settings.default_break_minutes if break_minutes is None else break_minutes
        reach = minutes(horizon + pause)

        busy = await self.fetch_busy_times(
            calendar_ids=calendar_ids,
            start_time=requested.start - reach,
            end_time=requested.end + reach,
        )

        report = self._slot_calculator.check_with_alternatives(
            requested,
            busy,
            max_results=max_results,
            search_horizon_minutes=horizon,
            break_minutes=pause,
            constraints=constraints,
        )

        if report.has_conflict:
            logger.info(
                "Requested session %s conflicts with %d busy interval(s); %d alternative(s) found",
                requested,
                len(report.result.conflicting_intervals),
                len(report.suggested_alternatives),
            )
        return report

    async def plan_study_sessions(
        self,
        *,
        calendar_ids: Sequence[str],
        now: DateTime,
        deadline: DateTime,
        total_study_minutes: int,
        session_minutes: int = 90,
        break_minutes: int = 15,
        day_start_hour: int = 9,
        day_end_hour: int = 21,
        constraints: TimeConstraints | None = None,
    ) -> List[AvailableSlot]:
        """Retrieve busy data up to the deadline and plan study sessions."""
        busy = await self.fetch_busy_times(
            calendar_ids=calendar_ids,
            start_time=now,
            end_time=deadline,
        )
        return self._slot_calculator.plan_study_sessions(
            busy,
            now=now,
            deadline=deadline,
            total_study_minutes=total_study_minutes,
            session_minutes=session_minutes,
            break_minutes=break_minutes,
            day_start_hour=day_start_hour,
            day_end_hour=day_end_hour,
            constraints=constraints,
        )

    @staticmethod
    def _ensure_busy_time_entries(
        calendar_ids: Sequence[str],
        busy_times: Dict[str, List[TimeRange]],
    ) -> Dict[str, List[TimeRange]]:
        """
        Ensure every requested calendar appears in the busy-time map.

        Providers might omit calendars without events; we normalise that to an
        explicit empty list for deterministic downstream behaviour.
        """
        normalized: Dict[str, List[TimeRange]] = {}

        for calendar_id in calendar_ids:
            normalized[calendar_id] = busy_times.get(calendar_id, [])

        # Include any additional entries provided by the client as-is.
        for calendar_id, ranges in busy_times.items():
            if calendar_id not in normalized:
                normalized[calendar_id] = ranges

        return normalized
