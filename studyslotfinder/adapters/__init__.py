"""
Adapters layer - Calendar data sources feeding the scheduling engine.
"""

from .free_busy import parse_datetime, parse_free_busy_response
from .json_calendar_client import JsonCalendarClient

__all__ = ["JsonCalendarClient", "parse_datetime", "parse_free_busy_response"]
