"""
Tests for slot calculator.
"""

import pendulum
import pytest

from studyslotfinder.domain.exceptions import InvalidQuery
from studyslotfinder.domain.interval_set import merge
from studyslotfinder.domain.models import EngineSettings, SlotQuery, TimeConstraints, TimeRange
from studyslotfinder.domain.slot_calculator import SlotCalculator


def _dt(value: str, day: int = 25):
    return pendulum.parse(f"2024-11-{day} {value}", tz="Europe/Berlin")


def _range(start: str, end: str) -> TimeRange:
    return TimeRange(start=_dt(start), end=_dt(end))


def _times(slots):
    return [(slot.start.format("HH:mm"), slot.end.format("HH:mm")) for slot in slots]


class TestSlotCalculator:
    """Tests for SlotCalculator."""

    def test_find_slots_from_raw_busy_times(self):
        """Raw, overlapping busy times are merged before slots are packed."""
        calculator = SlotCalculator()
        query = SlotQuery(search_start=_dt("08:00"), search_end=_dt("12:00"), duration_minutes=30, break_minutes=10)

        slots = calculator.find_available_slots(
            query,
            [_range("09:30", "10:00"), _range("09:00", "09:45")],
        )

        assert _times(slots) == [
            ("08:00", "08:30"),
            ("10:10", "10:40"),
            ("10:50", "11:20"),
            ("11:30", "12:00"),
        ]

    def test_find_slots_no_busy_times(self):
        calculator = SlotCalculator()
        query = SlotQuery(search_start=_dt("09:00"), search_end=_dt("17:00"), duration_minutes=60)

        slots = calculator.find_available_slots(query, [])

        assert len(slots) == 8

    def test_find_slots_with_constraints(self):
        calculator = SlotCalculator()
        query = SlotQuery(search_start=_dt("06:00"), search_end=_dt("20:00"), duration_minutes=60)

        slots = calculator.find_available_slots(query, [], constraints=TimeConstraints(start_hour=9, end_hour=12))

        assert _times(slots) == [("09:00", "10:00"), ("10:00", "11:00"), ("11:00", "12:00")]

    def test_pad_window_edges_setting(self):
        calculator = SlotCalculator(EngineSettings(pad_window_edges=True))
        query = SlotQuery(search_start=_dt("08:00"), search_end=_dt("09:00"), duration_minutes=30, break_minutes=10)

        assert _times(calculator.find_available_slots(query, [])) == [("08:10", "08:40")]

    def test_find_gaps(self):
        calculator = SlotCalculator()

        gaps = calculator.find_gaps(_range("08:00", "12:00"), [_range("09:00", "10:00")])

        assert [(g.start, g.end) for g in gaps] == [
            (_dt("08:00"), _dt("09:00")),
            (_dt("10:00"), _dt("12:00")),
        ]

    def test_check_conflicts_accepts_raw_intervals(self):
        calculator = SlotCalculator()

        result = calculator.check_conflicts(_range("09:30", "10:15"), [_range("09:00", "10:00")])

        assert result.has_conflict
        assert result.conflicting_intervals == (_range("09:00", "10:00"),)

    def test_check_with_alternatives_on_conflict(self):
        calculator = SlotCalculator(EngineSettings(max_suggestions=1))

        report = calculator.check_with_alternatives(_range("09:00", "09:30"), [_range("09:00", "09:30")])

        assert report.has_conflict
        assert _times(report.suggested_alternatives) == [("09:30", "10:00")]
        assert report.to_dict()["suggested_alternatives"][0]["duration_minutes"] == 30

    def test_check_with_alternatives_without_conflict(self):
        calculator = SlotCalculator()

        report = calculator.check_with_alternatives(_range("10:00", "10:30"), [_range("09:00", "10:00")])

        assert not report.has_conflict
        assert report.suggested_alternatives == ()

    def test_settings_control_alternatives(self):
        """Earlier-first preference and default break come from the settings."""
        calculator = SlotCalculator(EngineSettings(prefer_later=False, default_break_minutes=0))

        slots = calculator.suggest_alternatives(_range("09:00", "09:30"), [_range("09:00", "09:30")], max_results=1)

        assert _times(slots) == [("08:30", "09:00")]

    def test_find_next_free_slot(self):
        calculator = SlotCalculator()
        query = calculator.next_slot_query(_dt("08:00"), duration_minutes=60, end_search_at=_dt("12:00"))

        slot = calculator.find_next_free_slot([_range("08:00", "09:15")], query)

        assert slot.start == _dt("09:15")

    def test_next_slot_query_defaults_to_search_days(self):
        calculator = SlotCalculator(EngineSettings(max_search_days=3, default_break_minutes=5))

        query = calculator.next_slot_query(_dt("08:00"), duration_minutes=60)

        assert query.search_end == _dt("08:00", day=28)
        assert query.break_minutes == 5

    def test_plan_study_sessions(self):
        calculator = SlotCalculator()

        sessions = calculator.plan_study_sessions(
            [_range("09:00", "12:00")],
            now=_dt("08:00"),
            deadline=_dt("21:00"),
            total_study_minutes=90,
        )

        assert _times(sessions) == [("12:15", "13:45")]

    def test_invalid_settings(self):
        with pytest.raises(InvalidQuery):
            EngineSettings(probe_step_minutes=0)
        with pytest.raises(InvalidQuery):
            EngineSettings(max_suggestions=0)

    def test_busy_set_is_reused(self):
        busy = merge([_range("09:00", "10:00")])

        assert SlotCalculator.merge_busy_times(busy) is busy
