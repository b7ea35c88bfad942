"""
Action dispatcher: turns an incoming chat message into a reply.

Literal shortcuts (/start, /today, /chat) are handled directly. Everything
else goes through the LLM, whose structured reply is parsed into an Intent
and executed here.
"""

import logging
from datetime import datetime

import sentry_sdk

from core.calendar import Event, create_event, list_today_events
from core.config import get_display_timezone
from core.notifications.templates import get_message
from core.timezone import format_clock_time

from . import llm
from .parser import (
    CheckToday,
    CreateEvent,
    General,
    IncompleteEvent,
    Intent,
    Unrecognized,
    parse_response,
)
from .prompts import build_calendar_prompt, build_chat_prompt

logger = logging.getLogger(__name__)

START_COMMAND = "/start"
TODAY_COMMAND = "/today"
CHAT_COMMAND = "/chat"


def render_today_events(events: list[Event], tz_name: str) -> str:
    """
    Render today's events as a numbered list in start-time order.

    Events without a start time sort last and are listed without one.
    """
    if not events:
        return get_message("today_empty")

    ordered = sorted(
        events, key=lambda e: (e.start_time is None, e.start_time or datetime.min)
    )

    blocks = [get_message("today_header")]
    for number, event in enumerate(ordered, start=1):
        time_suffix = ""
        if event.start_time is not None:
            time_suffix = get_message(
                "today_item_time",
                {"start_time": format_clock_time(event.start_time, tz_name, with_zone=False)},
            )
        lines = [
            get_message(
                "today_item",
                {"number": number, "title": event.title, "time_suffix": time_suffix},
            )
        ]
        if event.description:
            lines.append(
                get_message("today_item_description", {"description": event.description})
            )
        blocks.append("\n".join(lines))

    return "\n\n".join(blocks)


async def get_today_summary() -> str:
    """Today's meetings as a reply. Calendar errors propagate."""
    events = await list_today_events()
    return render_today_events(events, get_display_timezone())


async def create_event_from_intent(intent: CreateEvent) -> str:
    """Create the event and summarize it. Calendar errors propagate."""
    await create_event(
        title=intent.title,
        description=intent.description,
        start_time=intent.start_time,
        end_time=intent.end_time,
        attendees=intent.attendees,
    )

    attendees_line = ""
    if intent.attendees:
        attendees_line = get_message(
            "event_created_attendees", {"attendees": ", ".join(intent.attendees)}
        )
    return get_message(
        "event_created",
        {
            "title": intent.title,
            "description": intent.description,
            "start_time": intent.start_time,
            "end_time": intent.end_time,
            "attendees_line": attendees_line,
        },
    )


async def dispatch_intent(intent: Intent) -> str:
    """
    Execute a parsed intent and return the reply text.

    Raises:
        AssistantError: If the calendar call behind the intent fails
    """
    if isinstance(intent, CreateEvent):
        return await create_event_from_intent(intent)
    if isinstance(intent, IncompleteEvent):
        logger.info(f"Event request missing fields: {', '.join(intent.missing)}")
        return get_message("event_needs_more_info")
    if isinstance(intent, CheckToday):
        return await get_today_summary()
    if isinstance(intent, General):
        return intent.reply_text
    if isinstance(intent, Unrecognized):
        return intent.raw_text

    raise TypeError(f"Unknown intent: {intent!r}")


async def general_chat(message: str) -> str:
    """Free conversation through the LLM, bypassing intent parsing."""
    reply = await llm.generate(build_chat_prompt(message))
    return get_message("chat_reply", {"reply": reply})


async def process_message(text: str) -> str:
    """
    Route a message to a shortcut or through the LLM.

    Raises:
        AssistantError: On calendar or LLM failure
    """
    command = text.strip()
    lowered = command.lower()
    first_word = lowered.split(maxsplit=1)[0] if lowered else ""

    if lowered.startswith(START_COMMAND):
        return get_message("greeting")

    if lowered.startswith(TODAY_COMMAND):
        return await get_today_summary()

    if first_word == CHAT_COMMAND:
        chat_message = command[len(CHAT_COMMAND):].strip()
        if not chat_message:
            return get_message("chat_usage")
        return await general_chat(chat_message)

    llm_reply = await llm.generate(build_calendar_prompt(text))
    intent = parse_response(llm_reply)
    logger.info(f"Parsed intent {type(intent).__name__}")
    return await dispatch_intent(intent)


async def handle_message(text: str) -> str:
    """
    Reply to an incoming chat message.

    Never raises: failures are logged and turned into a generic apology so
    internal error details don't reach the user.
    """
    try:
        return await process_message(text)
    except Exception as e:
        logger.exception(f"Error processing message: {e}")
        sentry_sdk.capture_exception(e)
        return get_message("error_generic")
