"""
Timezone conversion and time formatting utilities.
"""

from datetime import datetime, timedelta

import pytz


def to_timezone(dt: datetime, tz_name: str) -> datetime:
    """
    Convert a datetime to the given timezone.

    Naive datetimes are treated as UTC. Unknown timezone names fall back to UTC.
    """
    if dt.tzinfo is None:
        dt = pytz.UTC.localize(dt)

    try:
        tz = pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError:
        tz = pytz.UTC
    return dt.astimezone(tz)


def format_clock_time(dt: datetime, tz_name: str, with_zone: bool = True) -> str:
    """
    Format a datetime as a 24-hour clock time in the given timezone.

    Returns:
        Formatted string like "14:30 WIB", or "14:30" when with_zone is False
    """
    local_dt = to_timezone(dt, tz_name)
    if with_zone:
        return local_dt.strftime("%H:%M %Z")
    return local_dt.strftime("%H:%M")


def format_utc_offset(dt: datetime) -> str:
    """ISO-style UTC offset of an aware datetime, e.g. "+07:00"."""
    offset = dt.strftime("%z")  # "+0700" or "-0500"
    if not offset:
        return "+00:00"
    return f"{offset[:3]}:{offset[3:5]}"


def format_duration(delta: timedelta) -> str:
    """
    Human-readable time remaining.

    Seconds under a minute, minutes under an hour, otherwise hours plus the
    leftover minutes (the minutes clause is dropped when it is zero).

    Examples:
        45s -> "45 seconds", 5m -> "5 minutes",
        90m -> "1 hour 30 minutes", 120m -> "2 hour"
    """
    total_seconds = int(delta.total_seconds())
    if total_seconds < 60:
        return f"{total_seconds} seconds"
    if total_seconds < 3600:
        return f"{total_seconds // 60} minutes"

    hours = total_seconds // 3600
    minutes = (total_seconds // 60) % 60
    if minutes == 0:
        return f"{hours} hour"
    return f"{hours} hour {minutes} minutes"


def local_day_bounds(now: datetime, tz_name: str) -> tuple[datetime, datetime]:
    """
    Start and end of the calendar day containing `now` in the given timezone.

    Returns:
        (start_of_day, start_of_next_day), both timezone-aware
    """
    try:
        tz = pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError:
        tz = pytz.UTC

    local_now = to_timezone(now, tz.zone)
    naive_start = datetime(local_now.year, local_now.month, local_now.day)
    # pytz zones must be attached with localize(), not replace(tzinfo=...)
    start = tz.localize(naive_start)
    end = tz.localize(naive_start + timedelta(days=1))
    return start, end
