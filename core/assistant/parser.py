"""
Parser for the LLM's structured reply format.

The model is asked to answer with marker lines:

    ACTION: CREATE_EVENT
    TITLE: Standup
    START_TIME: 2025-01-02T09:00:00+07:00
    END_TIME: 2025-01-02T09:30:00+07:00
    ATTENDEES: a@x.com, b@x.com

parse_response() never raises. Anything it can't make sense of becomes
Unrecognized, whose reply is the raw text itself.
"""

import re
from dataclasses import dataclass, field


@dataclass(frozen=True)
class CreateEvent:
    title: str
    start_time: str
    end_time: str
    description: str = ""
    attendees: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class IncompleteEvent:
    """CREATE_EVENT without one of the required fields."""

    missing: tuple[str, ...]


@dataclass(frozen=True)
class CheckToday:
    pass


@dataclass(frozen=True)
class General:
    reply_text: str


@dataclass(frozen=True)
class Unrecognized:
    raw_text: str


Intent = CreateEvent | IncompleteEvent | CheckToday | General | Unrecognized

REQUIRED_EVENT_FIELDS = ("TITLE", "START_TIME", "END_TIME")
NO_ATTENDEES = "empty"

_FIELD_LINE = re.compile(r"^([A-Za-z_]+)\s*:(.*)$")


def _parse_fields(text: str) -> dict[str, str]:
    """
    Collect KEY: value lines from anywhere in the text.

    Keys are upper-cased, values trimmed. The first occurrence of a key wins.
    """
    fields: dict[str, str] = {}
    for line in text.splitlines():
        match = _FIELD_LINE.match(line.strip())
        if not match:
            continue
        key = match.group(1).upper()
        fields.setdefault(key, match.group(2).strip())
    return fields


def parse_attendees(value: str) -> list[str]:
    """Split a comma-separated attendee list; "empty" or "" means none."""
    if not value or value.lower() == NO_ATTENDEES:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def _find_action(text: str) -> str | None:
    """First recognized ACTION tag in the text, if any."""
    for line in text.splitlines():
        match = _FIELD_LINE.match(line.strip())
        if match and match.group(1).upper() == "ACTION":
            tag = match.group(2).strip().upper()
            if tag in _BUILDERS:
                return tag
    return None


def _build_create_event(text: str, fields: dict[str, str]) -> Intent:
    missing = tuple(name for name in REQUIRED_EVENT_FIELDS if not fields.get(name))
    if missing:
        return IncompleteEvent(missing=missing)

    return CreateEvent(
        title=fields["TITLE"],
        start_time=fields["START_TIME"],
        end_time=fields["END_TIME"],
        description=fields.get("DESCRIPTION", ""),
        attendees=parse_attendees(fields.get("ATTENDEES", "")),
    )


def _build_check_today(text: str, fields: dict[str, str]) -> Intent:
    return CheckToday()


def _build_general(text: str, fields: dict[str, str]) -> Intent:
    reply = fields.get("RESPONSE")
    if not reply:
        return General(reply_text=text)
    return General(reply_text=reply)


_BUILDERS = {
    "CREATE_EVENT": _build_create_event,
    "CHECK_TODAY": _build_check_today,
    "GENERAL": _build_general,
}


def parse_response(text: str) -> Intent:
    """
    Classify an LLM reply into an Intent.

    Args:
        text: Raw model output

    Returns:
        One of CreateEvent, IncompleteEvent, CheckToday, General, Unrecognized
    """
    if not text:
        return Unrecognized(raw_text=text or "")

    action = _find_action(text)
    if action is None:
        return Unrecognized(raw_text=text)

    return _BUILDERS[action](text, _parse_fields(text))
