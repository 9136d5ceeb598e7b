"""
Core business logic for calculating available study slots.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no I/O).
"""

import logging
from typing import Iterable, List, Union

from pendulum import DateTime

from .alternatives import suggest_alternatives
from .conflicts import check_conflicts
from .gaps import find_gaps
from .interval_set import BusyTimeSet, RawInterval, merge
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
from .next_slot import find_next_free_slot
from .slot_generator import filter_slots, generate_slots
from .study_planner import plan_study_sessions

logger = logging.getLogger(__name__)

BusyInput = Union[BusyTimeSet, Iterable[RawInterval]]


class SlotCalculator:
    """
    Answers scheduling questions over a user's busy time.

    Every method accepts either a merged ``BusyTimeSet`` or raw busy
    intervals, which are merged first. Results are plain lists; the
    calculator keeps no state between calls besides its settings.
    """

    def __init__(self, settings: EngineSettings | None = None):
        self.settings = settings or EngineSettings()

    @staticmethod
    def merge_busy_times(busy_times: BusyInput) -> BusyTimeSet:
        """Normalize raw busy intervals into a ``BusyTimeSet``."""
        if isinstance(busy_times, BusyTimeSet):
            return busy_times
        return merge(busy_times)

    def check_conflicts(self, candidate: TimeRange, busy_times: BusyInput) -> ConflictResult:
        return check_conflicts(candidate, self.merge_busy_times(busy_times))

    def find_gaps(self, window: TimeRange, busy_times: BusyInput) -> List[FreeGap]:
        return list(find_gaps(window, self.merge_busy_times(busy_times)))

    def find_available_slots(
        self,
        query: SlotQuery,
        busy_times: BusyInput,
        constraints: TimeConstraints | None = None,
    ) -> List[AvailableSlot]:
        """
        Find all available slots for the query.

        Steps:
        1. Merge busy times
        2. Compute the free gaps of the search window
        3. Pack slots into each gap, honouring the break buffer
        4. Drop slots outside the preferred times
        """
        busy = self.merge_busy_times(busy_times)
        gaps = find_gaps(query.window, busy)
        slots = generate_slots(
            gaps,
            duration_minutes=query.duration_minutes,
            break_minutes=query.break_minutes,
            pad_window_edges=self.settings.pad_window_edges,
        )
        result = list(filter_slots(slots, constraints))

        logger.debug(
            "Found %d slot(s) of %d min between %s and %s",
            len(result),
            query.duration_minutes,
            query.search_start,
            query.search_end,
        )
        return result

    def suggest_alternatives(
        self,
        requested: TimeRange,
        busy_times: BusyInput,
        max_results: int | None = None,
        search_horizon_minutes: int | None = None,
        break_minutes: int | None = None,
        constraints: TimeConstraints | None = None,
    ) -> List[AvailableSlot]:
        """Suggest nearby conflict-free slots, falling back to the configured defaults."""
        return suggest_alternatives(
            requested,
            self.merge_busy_times(busy_times),
            max_results=self.settings.max_suggestions if max_results is None else max_results,
            search_horizon_minutes=(
                self.settings.search_horizon_minutes
                if search_horizon_minutes is None
                else search_horizon_minutes
            ),
            step_minutes=self.settings.probe_step_minutes,
            prefer_later=self.settings.prefer_later,
            break_minutes=self.settings.default_break_minutes if break_minutes is None else break_minutes,
            constraints=constraints,
        )

    def check_with_alternatives(
        self,
        requested: TimeRange,
        busy_times: BusyInput,
        max_results: int | None = None,
        search_horizon_minutes: int | None = None,
        break_minutes: int | None = None,
        constraints: TimeConstraints | None = None,
    ) -> ConflictReport:
        """
        Check ``requested`` and attach alternatives when it conflicts.

        A conflict-free request yields an empty list of alternatives.
        """
        busy = self.merge_busy_times(busy_times)
        result = check_conflicts(requested, busy)

        if not result.has_conflict:
            return ConflictReport(requested=requested, result=result)

        alternatives = self.suggest_alternatives(
            requested,
            busy,
            max_results=max_results,
            search_horizon_minutes=search_horizon_minutes,
            break_minutes=break_minutes,
            constraints=constraints,
        )
        return ConflictReport(
            requested=requested,
            result=result,
            suggested_alternatives=tuple(alternatives),
        )

    def find_next_free_slot(
        self,
        busy_times: BusyInput,
        query: SlotQuery,
        constraints: TimeConstraints | None = None,
    ) -> AvailableSlot | None:
        return find_next_free_slot(
            self.merge_busy_times(busy_times),
            query,
            constraints=constraints,
            pad_window_edges=self.settings.pad_window_edges,
        )

    def next_slot_query(
        self,
        start_search_from: DateTime,
        duration_minutes: int,
        break_minutes: int | None = None,
        end_search_at: DateTime | None = None,
    ) -> SlotQuery:
        """Build a next-slot query, bounding it by ``max_search_days`` when no end is given."""
        if break_minutes is None:
            break_minutes = self.settings.default_break_minutes

        if end_search_at is None:
            return SlotQuery.starting_at(
                start_search_from,
                duration_minutes=duration_minutes,
                break_minutes=break_minutes,
                max_search_days=self.settings.max_search_days,
            )

        return SlotQuery(
            search_start=start_search_from,
            search_end=end_search_at,
            duration_minutes=duration_minutes,
            break_minutes=break_minutes,
        )

    def plan_study_sessions(
        self,
        busy_times: BusyInput,
        now: DateTime,
        deadline: DateTime,
        total_study_minutes: int,
        session_minutes: int = 90,
        break_minutes: int = 15,
        day_start_hour: int = 9,
        day_end_hour: int = 21,
        constraints: TimeConstraints | None = None,
    ) -> List[AvailableSlot]:
        return plan_study_sessions(
            self.merge_busy_times(busy_times),
            now=now,
            deadline=deadline,
            total_study_minutes=total_study_minutes,
            session_minutes=session_minutes,
            break_minutes=break_minutes,
            day_start_hour=day_start_hour,
            day_end_hour=day_end_hour,
            constraints=constraints,
            pad_window_edges=self.settings.pad_window_edges,
        )
