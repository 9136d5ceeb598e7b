"""
Parsing of calendar free/busy payloads into domain busy intervals.
"""

import logging
from typing import Any, Dict, List

import pendulum
from pendulum import DateTime

from ..domain.exceptions import CalendarDataError
from ..domain.models import TimeRange

logger = logging.getLogger(__name__)


def parse_datetime(datetime_str: str, timezone: str) -> DateTime:
    """
    Parse a datetime string to a pendulum DateTime in the specified timezone.

    Args:
        datetime_str: ISO 8601 datetime string
        timezone: IANA timezone identifier

    Returns:
        Pendulum DateTime object
    """
    # Strings without an offset are read in the reference timezone
    dt = pendulum.parse(datetime_str, tz=timezone)

    if isinstance(dt, DateTime):
        return dt.in_timezone(timezone)

    raise ValueError(f"Could not parse datetime: {datetime_str}")


def parse_free_busy_response(
    response_data: Dict[str, Any],
    timezone: str,
) -> Dict[str, List[TimeRange]]:
    """
    Parse a free/busy response into busy ranges per calendar.

    Response format:
    {
        "calendars": {
            "primary": {
                "busy": [
                    {"start": "2024-11-25T09:00:00Z", "end": "2024-11-25T10:00:00Z"}
                ],
                "errors": [{"domain": "global", "reason": "notFound"}]
            }
        }
    }

    Calendars reporting errors contribute no busy time; unreadable items are
    skipped. Both are logged.

    Raises:
        CalendarDataError: If the payload has no ``calendars`` mapping
    """
    if not isinstance(response_data, dict) or not isinstance(response_data.get("calendars"), dict):
        raise CalendarDataError("Free/busy payload must contain a 'calendars' mapping.")

    busy_times: Dict[str, List[TimeRange]] = {}

    for calendar_id, calendar in response_data["calendars"].items():
        if not isinstance(calendar, dict):
            logger.warning("Ignoring malformed calendar entry %s", calendar_id)
            busy_times[calendar_id] = []
            continue

        errors = calendar.get("errors") or []
        if errors:
            reasons = ", ".join(str(error.get("reason", "unknown")) for error in errors)
            logger.warning("Calendar %s reported errors: %s", calendar_id, reasons)
            busy_times[calendar_id] = []
            continue

        busy_ranges: List[TimeRange] = []

        for item in calendar.get("busy", []):
            try:
                start = parse_datetime(item["start"], timezone)
                end = parse_datetime(item["end"], timezone)
                busy_ranges.append(TimeRange(start=start, end=end))

            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Could not parse busy item in %s: %s", calendar_id, exc)
                continue

        busy_times[calendar_id] = busy_ranges

    return busy_times
