"""Prompt construction for the calendar assistant."""

from datetime import datetime, timedelta, timezone

from core.config import get_display_timezone
from core.timezone import format_utc_offset, to_timezone


CALENDAR_PROMPT = """You are a helpful virtual assistant for managing Google Calendar events and meetings.
The user said: "{message}"

IMPORTANT CONTEXT:
- Current date and time ({tz_name} timezone): {now}
- Today's date is: {today}
- Use the {offset} UTC offset for all times
- When user says "today", use today's date: {today}
- When user says "tomorrow", use: {tomorrow}

Please analyze this message and determine what the user wants to do:
1. Create a calendar event - extract title, description, date/time, attendees
2. Check today's meetings - list today's schedule
3. General query - provide helpful response

Respond in a structured way that clearly indicates the action needed and any extracted information.
If creating an event, provide the details in this format:
ACTION: CREATE_EVENT
TITLE: [event title]
DESCRIPTION: [event description]
START_TIME: [ISO format date-time like {today}T14:00:00{offset}]
END_TIME: [ISO format date-time like {today}T15:00:00{offset}]
ATTENDEES: [comma-separated email addresses if mentioned, or empty if none]

If checking meetings:
ACTION: CHECK_TODAY

For general queries:
ACTION: GENERAL
RESPONSE: [your helpful response]

Be concise and format the response exactly as shown above."""


CHAT_PROMPT = """You are a helpful AI assistant. The user is chatting with you directly.

User message: "{message}"

Please provide a helpful, conversational response. Keep it friendly and concise."""


def build_calendar_prompt(message: str, now: datetime | None = None) -> str:
    """
    Prompt asking the model to classify a message into the ACTION line format.

    Embeds the current date and time in the display timezone so relative
    dates ("tomorrow at 3") resolve correctly.
    """
    tz_name = get_display_timezone()
    local_now = to_timezone(now or datetime.now(timezone.utc), tz_name)

    return CALENDAR_PROMPT.format(
        message=message,
        tz_name=tz_name,
        now=local_now.strftime("%Y-%m-%d %H:%M:%S %Z"),
        today=local_now.strftime("%Y-%m-%d"),
        tomorrow=(local_now + timedelta(days=1)).strftime("%Y-%m-%d"),
        offset=format_utc_offset(local_now),
    )


def build_chat_prompt(message: str) -> str:
    """Prompt for free conversation (the /chat shortcut)."""
    return CHAT_PROMPT.format(message=message)
