"""
Tests for free/busy parsing and the JSON calendar client.
"""

import asyncio
import json
import logging

import pendulum
import pytest

from studyslotfinder.adapters.free_busy import parse_free_busy_response
from studyslotfinder.adapters.json_calendar_client import JsonCalendarClient
from studyslotfinder.domain.exceptions import CalendarDataError
from studyslotfinder.domain.models import TimeRange

TZ = "Europe/Berlin"


def _dt(value: str, day: int = 25):
    return pendulum.parse(f"2024-11-{day} {value}", tz=TZ)


PAYLOAD = {
    "calendars": {
        "primary": {
            "busy": [
                {"start": "2024-11-25T08:00:00Z", "end": "2024-11-25T09:00:00Z"},
                {"start": "2024-11-26T10:00:00+01:00", "end": "2024-11-26T11:00:00+01:00"},
            ]
        },
        "university": {
            "busy": [
                {"start": "2024-11-25T14:00:00", "end": "2024-11-25T15:00:00"},
            ]
        },
    }
}


class TestParseFreeBusyResponse:
    """Tests for parse_free_busy_response()."""

    def test_parses_and_converts_timezone(self):
        busy = parse_free_busy_response(PAYLOAD, TZ)

        assert busy["primary"][0] == TimeRange(start=_dt("09:00"), end=_dt("10:00"))
        assert busy["primary"][0].start.timezone_name == TZ
        assert busy["primary"][1] == TimeRange(start=_dt("10:00", day=26), end=_dt("11:00", day=26))

    def test_naive_timestamps_use_reference_timezone(self):
        busy = parse_free_busy_response(PAYLOAD, TZ)

        assert busy["university"] == [TimeRange(start=_dt("14:00"), end=_dt("15:00"))]

    def test_calendar_errors_yield_no_busy_time(self, caplog):
        payload = {
            "calendars": {
                "shared": {
                    "busy": [{"start": "2024-11-25T08:00:00Z", "end": "2024-11-25T09:00:00Z"}],
                    "errors": [{"domain": "global", "reason": "notFound"}],
                }
            }
        }

        with caplog.at_level(logging.WARNING):
            busy = parse_free_busy_response(payload, TZ)

        assert busy == {"shared": []}
        assert "notFound" in caplog.text

    def test_bad_items_are_skipped(self, caplog):
        payload = {
            "calendars": {
                "primary": {
                    "busy": [
                        {"start": "2024-11-25T08:00:00Z"},
                        {"start": "not a date", "end": "2024-11-25T09:00:00Z"},
                        {"start": "2024-11-25T10:00:00Z", "end": "2024-11-25T09:00:00Z"},
                        {"start": "2024-11-25T11:00:00Z", "end": "2024-11-25T12:00:00Z"},
                    ]
                }
            }
        }

        with caplog.at_level(logging.WARNING):
            busy = parse_free_busy_response(payload, TZ)

        assert busy["primary"] == [TimeRange(start=_dt("12:00"), end=_dt("13:00"))]
        assert caplog.text.count("Could not parse busy item") == 3

    def test_missing_calendars_mapping(self):
        with pytest.raises(CalendarDataError):
            parse_free_busy_response({"kind": "calendar#freeBusy"}, TZ)


class TestJsonCalendarClient:
    """Tests for JsonCalendarClient."""

    def _write(self, tmp_path, payload) -> "JsonCalendarClient":
        data_file = tmp_path / "busy.json"
        data_file.write_text(json.dumps(payload), encoding="utf-8")
        return JsonCalendarClient(data_file)

    def test_filters_to_window(self, tmp_path):
        client = self._write(tmp_path, PAYLOAD)

        busy = asyncio.run(client.get_busy_times(["primary"], _dt("00:00"), _dt("23:59"), TZ))

        assert busy == {"primary": [TimeRange(start=_dt("09:00"), end=_dt("10:00"))]}

    def test_keeps_busy_time_touching_window(self, tmp_path):
        client = self._write(tmp_path, PAYLOAD)

        busy = asyncio.run(client.get_busy_times(["primary"], _dt("10:00"), _dt("12:00"), TZ))

        assert busy == {"primary": [TimeRange(start=_dt("09:00"), end=_dt("10:00"))]}

    def test_all_calendars_when_none_requested(self, tmp_path):
        client = self._write(tmp_path, PAYLOAD)

        busy = asyncio.run(client.get_busy_times([], _dt("00:00"), _dt("00:00", day=27), TZ))

        assert set(busy) == {"primary", "university"}
        assert client.calendar_ids() == ["primary", "university"]

    def test_unknown_calendar_is_skipped(self, tmp_path, caplog):
        client = self._write(tmp_path, PAYLOAD)

        with caplog.at_level(logging.WARNING):
            busy = asyncio.run(client.get_busy_times(["holidays"], _dt("00:00"), _dt("23:59"), TZ))

        assert busy == {}
        assert "holidays" in caplog.text

    def test_missing_file(self, tmp_path):
        with pytest.raises(CalendarDataError, match="not found"):
            JsonCalendarClient(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        data_file = tmp_path / "busy.json"
        data_file.write_text("{not json", encoding="utf-8")

        with pytest.raises(CalendarDataError, match="Invalid JSON"):
            JsonCalendarClient(data_file)
