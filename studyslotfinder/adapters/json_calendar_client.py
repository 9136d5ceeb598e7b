"""
Calendar client backed by a free/busy JSON file.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Sequence

from pendulum import DateTime

from ..domain.exceptions import CalendarDataError
from ..domain.models import TimeRange
from .free_busy import parse_free_busy_response

logger = logging.getLogger(__name__)


class JsonCalendarClient:
    """
    Serves busy times from a JSON file in free/busy response format.

    Useful for exported calendars, offline runs and tests; it implements the
    same protocol as a live provider client.
    """

    def __init__(self, data_file: Path):
        """
        Initialize the client.

        Args:
            data_file: Path to the free/busy JSON file

        Raises:
            CalendarDataError: If the file is missing or not valid JSON
        """
        self.data_file = Path(data_file)
        self._payload = self._load_calendar_data()

    def _load_calendar_data(self) -> dict:
        """Load the free/busy payload from disk."""
        if not self.data_file.exists():
            raise CalendarDataError(f"Busy-time file not found: {self.data_file}")

        try:
            with open(self.data_file, "r", encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as exc:
            raise CalendarDataError(f"Invalid JSON in {self.data_file}: {exc}") from exc

    def calendar_ids(self) -> List[str]:
        """Return the calendar ids present in the file."""
        calendars = self._payload.get("calendars") if isinstance(self._payload, dict) else None
        return list(calendars) if isinstance(calendars, dict) else []

    async def get_busy_times(
        self,
        calendar_ids: Sequence[str],
        start_time: DateTime,
        end_time: DateTime,
        timezone: str,
    ) -> Dict[str, List[TimeRange]]:
        """
        Load busy times that overlap or touch the requested window.

        Args:
            calendar_ids: Calendars to read; empty means every calendar in the file
            start_time: Start of the time window
            end_time: End of the time window
            timezone: IANA timezone identifier

        Returns:
            Dictionary mapping calendar id -> list of busy TimeRange objects
        """
        parsed = parse_free_busy_response(self._payload, timezone)
        wanted = list(calendar_ids) or list(parsed)
        window = TimeRange(start=start_time, end=end_time)

        busy_times: Dict[str, List[TimeRange]] = {}
        for calendar_id in wanted:
            if calendar_id not in parsed:
                logger.warning("Calendar %s not found in %s", calendar_id, self.data_file)
                continue

            busy_times[calendar_id] = [
                busy for busy in parsed[calendar_id]
                if busy.touches_or_overlaps(window)
            ]

        return busy_times
