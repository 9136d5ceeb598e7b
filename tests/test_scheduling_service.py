"""
Tests for the SchedulingService orchestration layer.
"""

import asyncio
from typing import Dict, List

import pendulum

from studyslotfinder.domain.models import EngineSettings, SlotQuery, TimeRange
from studyslotfinder.domain.slot_calculator import SlotCalculator
from studyslotfinder.services.scheduling_service import SchedulingService


def _dt(value: str, day: int = 25):
    return pendulum.parse(f"2024-11-{day} {value}", tz="Europe/Berlin")


def _range(start: str, end: str) -> TimeRange:
    return TimeRange(start=_dt(start), end=_dt(end))


class StubCalendarClient:
    """Minimal stub matching CalendarClientProtocol."""

    def __init__(self, schedule: Dict[str, List[TimeRange]]):
        self._schedule = schedule
        self.calls: List[Dict[str, object]] = []

    async def get_busy_times(self, calendar_ids, start_time, end_time, timezone):
        self.calls.append(
            {
                "calendar_ids": tuple(calendar_ids),
                "start": start_time,
                "end": end_time,
                "timezone": timezone,
            }
        )
        return self._schedule


def _build_service(schedule: Dict[str, List[TimeRange]], settings: EngineSettings | None = None):
    client = StubCalendarClient(schedule)
    service = SchedulingService(
        calendar_client=client,
        slot_calculator=SlotCalculator(settings=settings),
        timezone="Europe/Berlin",
    )
    return service, client


def test_fetch_calendar_busy_times_includes_missing_calendars():
    """Calendars without schedule entries should still appear in the map."""
    service, _ = _build_service(schedule={"primary": []})

    busy_times = asyncio.run(
        service.fetch_calendar_busy_times(
            calendar_ids=["primary", "university"],
            start_time=_dt("00:00"),
            end_time=_dt("23:59"),
        )
    )

    assert set(busy_times.keys()) == {"primary", "university"}
    assert busy_times["university"] == []


def test_fetch_busy_times_unions_calendars():
    service, client = _build_service(
        schedule={
            "primary": [_range("09:00", "10:00")],
            "university": [_range("09:45", "11:00"), _range("14:00", "15:00")],
        }
    )

    busy = asyncio.run(
        service.fetch_busy_times(
            calendar_ids=["primary", "university"],
            start_time=_dt("00:00"),
            end_time=_dt("23:59"),
        )
    )

    assert list(busy) == [_range("09:00", "11:00"), _range("14:00", "15:00")]
    assert client.calls[0]["timezone"] == "Europe/Berlin"


def test_find_available_slots_uses_calendar_data_and_calculator():
    service, client = _build_service(schedule={"primary": [_range("09:00", "10:00")]})
    query = SlotQuery(search_start=_dt("08:00"), search_end=_dt("12:00"), duration_minutes=30, break_minutes=10)

    slots = asyncio.run(service.find_available_slots(calendar_ids=["primary"], query=query))

    assert [slot.start.format("HH:mm") for slot in slots] == ["08:00", "10:10", "10:50", "11:30"]
    assert client.calls[0]["start"] == _dt("08:00")
    assert client.calls[0]["end"] == _dt("12:00")


def test_find_next_free_slot():
    service, _ = _build_service(schedule={"primary": [_range("08:00", "09:00")]})
    query = SlotQuery(search_start=_dt("08:00"), search_end=_dt("12:00"), duration_minutes=30, break_minutes=5)

    slot = asyncio.run(service.find_next_free_slot(calendar_ids=["primary"], query=query))

    assert slot.start == _dt("09:05")


def test_check_conflicts_fetches_search_horizon():
    """Busy data must cover every time the alternative search may probe."""
    service, client = _build_service(
        schedule={"primary": [_range("09:00", "10:00")]},
        settings=EngineSettings(search_horizon_minutes=120, default_break_minutes=10),
    )

    report = asyncio.run(
        service.check_conflicts(calendar_ids=["primary"], requested=_range("09:00", "09:30"))
    )

    assert report.has_conflict
    assert report.suggested_alternatives
    assert client.calls[0]["start"] == _dt("06:50")
    assert client.calls[0]["end"] == _dt("11:40")


def test_check_conflicts_without_conflict():
    service, _ = _build_service(schedule={"primary": [_range("09:00", "10:00")]})

    report = asyncio.run(
        service.check_conflicts(calendar_ids=["primary"], requested=_range("10:00", "10:30"))
    )

    assert not report.has_conflict
    assert report.suggested_alternatives == ()


def test_plan_study_sessions():
    service, client = _build_service(schedule={"primary": [_range("09:00", "21:00")]})

    sessions = asyncio.run(
        service.plan_study_sessions(
            calendar_ids=["primary"],
            now=_dt("08:00"),
            deadline=_dt("21:00", day=26),
            total_study_minutes=90,
        )
    )

    assert [session.start for session in sessions] == [_dt("09:00", day=26)]
    assert client.calls[0]["end"] == _dt("21:00", day=26)
