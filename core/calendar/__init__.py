"""Google Calendar integration: the event source for reminders and event creation."""

from .client import get_calendar_service, is_calendar_configured
from .events import (
    Event,
    create_event,
    list_today_events,
    list_upcoming_events,
)

__all__ = [
    "get_calendar_service",
    "is_calendar_configured",
    "Event",
    "create_event",
    "list_today_events",
    "list_upcoming_events",
]
