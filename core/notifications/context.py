"""
Reminder message building.

Pure functions: the same event, "now" and timezone always produce the same
text, so the reminder engine can be tested without a transport.
"""

from datetime import datetime

from core.calendar import Event
from core.notifications.templates import get_message
from core.timezone import format_clock_time, format_duration


def build_reminder_context(event: Event, now: datetime, tz_name: str) -> dict:
    """
    Template variables for a reminder about `event`.

    Args:
        event: Event with a start_time
        now: Current time (timezone-aware)
        tz_name: Display timezone for the absolute start time

    Returns:
        Dict with title, time_until, details and start_time
    """
    details = ""
    if event.description:
        details += get_message("reminder_description", {"description": event.description})
    if event.location:
        details += get_message("reminder_location", {"location": event.location})
    if event.attendees:
        details += get_message(
            "reminder_attendees", {"attendees": ", ".join(event.attendees)}
        )

    return {
        "title": event.title,
        "time_until": format_duration(event.start_time - now),
        "details": details,
        "start_time": format_clock_time(event.start_time, tz_name),
    }


def build_reminder_message(event: Event, now: datetime, tz_name: str) -> str:
    """Render the reminder text sent to every recipient."""
    return get_message("reminder", build_reminder_context(event, now, tz_name))
