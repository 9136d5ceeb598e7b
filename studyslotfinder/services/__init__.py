"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .scheduling_service import CalendarClientProtocol, SchedulingService

__all__ = ["CalendarClientProtocol", "SchedulingService"]
