"""
Reminder notifications for upcoming calendar events.

Public API:
    ReminderEngine - decides what to send on each tick
    SentReminders, ReminderKey - duplicate-suppression bookkeeping
    build_reminder_message(event, now, tz_name) - reminder text
    init_scheduler() / shutdown_scheduler() - timer lifecycle
    send_discord_dm(discord_id, message) - delivery
"""

from .bookkeeping import ReminderKey, SentReminders
from .channels.discord import send_discord_dm, set_bot
from .context import build_reminder_message
from .reminders import ReminderEngine
from .scheduler import init_scheduler, shutdown_scheduler

__all__ = [
    "ReminderEngine",
    "ReminderKey",
    "SentReminders",
    "build_reminder_message",
    "init_scheduler",
    "shutdown_scheduler",
    "send_discord_dm",
    "set_bot",
]
