"""Google Calendar event operations."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from core.config import (
    get_calendar_id,
    get_collaborator_timeout,
    get_display_timezone,
)
from core.errors import CalendarError
from core.timezone import local_day_bounds

from .client import get_calendar_service, log_calendar_error

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Event:
    """One concrete calendar occurrence (recurring events already expanded)."""

    id: str
    title: str
    start_time: datetime | None
    description: str | None = None
    location: str | None = None
    attendees: list[str] = field(default_factory=list)

    @classmethod
    def from_api(cls, item: dict) -> "Event":
        """
        Build an Event from a Google Calendar API event resource.

        All-day events (start.date only), start times without a UTC offset
        and unparsable start times get
        start_time=None; callers decide how to treat them.
        """
        start_raw = (item.get("start") or {}).get("dateTime")
        start_time = None
        if start_raw:
            try:
                start_time = datetime.fromisoformat(start_raw.replace("Z", "+00:00"))
            except ValueError:
                logger.warning(f"Unparsable start time {start_raw!r} on event {item.get('id')}")
            if start_time is not None and start_time.tzinfo is None:
                logger.warning(f"Start time {start_raw!r} on event {item.get('id')} has no UTC offset")
                start_time = None

        return cls(
            id=item.get("id", ""),
            title=item.get("summary", "(untitled)"),
            start_time=start_time,
            description=item.get("description") or None,
            location=item.get("location") or None,
            attendees=[
                attendee["email"]
                for attendee in item.get("attendees", [])
                if attendee.get("email")
            ],
        )


async def _run_calendar_call(operation: str, call, context: dict | None = None):
    """
    Run a blocking Google API call in a thread under the collaborator timeout.

    Raises:
        CalendarError: On API failure or timeout
    """
    try:
        return await asyncio.wait_for(
            asyncio.to_thread(call), timeout=get_collaborator_timeout()
        )
    except asyncio.TimeoutError as e:
        logger.error(f"Google Calendar {operation} timed out")
        raise CalendarError(f"{operation} timed out") from e
    except CalendarError:
        raise
    except Exception as e:
        log_calendar_error(e, operation=operation, context=context)
        raise CalendarError(f"{operation} failed: {e}") from e


async def _list_events_between(
    operation: str, time_min: datetime, time_max: datetime
) -> list[Event]:
    service = get_calendar_service()

    def _sync_list():
        return (
            service.events()
            .list(
                calendarId=get_calendar_id(),
                timeMin=time_min.isoformat(),
                timeMax=time_max.isoformat(),
                showDeleted=False,
                singleEvents=True,
                orderBy="startTime",
            )
            .execute()
        )

    result = await _run_calendar_call(operation, _sync_list)
    return [Event.from_api(item) for item in result.get("items", [])]


async def list_upcoming_events(
    window: timedelta, now: datetime | None = None
) -> list[Event]:
    """
    List events starting within `window` from now, ordered by start time.

    Raises:
        CalendarError: On API failure or timeout
    """
    now = now or datetime.now(timezone.utc)
    return await _list_events_between("list_upcoming_events", now, now + window)


async def list_today_events(now: datetime | None = None) -> list[Event]:
    """
    List events within today's boundaries in the display timezone.

    Raises:
        CalendarError: On API failure or timeout
    """
    now = now or datetime.now(timezone.utc)
    start_of_day, end_of_day = local_day_bounds(now, get_display_timezone())
    return await _list_events_between("list_today_events", start_of_day, end_of_day)


async def create_event(
    title: str,
    description: str,
    start_time: str,
    end_time: str,
    attendees: list[str] | None = None,
) -> str:
    """
    Create a calendar event, inviting attendees if any.

    Args:
        title: Event title
        description: Event description (may be empty)
        start_time: ISO 8601 start, e.g. "2025-01-02T09:00:00+07:00"
        end_time: ISO 8601 end
        attendees: Attendee email addresses

    Returns:
        Google Calendar event ID

    Raises:
        CalendarError: On API failure or timeout
    """
    service = get_calendar_service()
    tz_name = get_display_timezone()

    event = {
        "summary": title,
        "description": description,
        "start": {"dateTime": start_time, "timeZone": tz_name},
        "end": {"dateTime": end_time, "timeZone": tz_name},
    }
    if attendees:
        event["attendees"] = [{"email": email} for email in attendees]

    def _sync_insert():
        return (
            service.events()
            .insert(
                calendarId=get_calendar_id(),
                body=event,
                sendUpdates="all" if attendees else "none",
            )
            .execute()
        )

    result = await _run_calendar_call(
        "create_event", _sync_insert, context={"title": title}
    )
    logger.info(f"Created calendar event {result['id']} ({title})")
    return result["id"]
