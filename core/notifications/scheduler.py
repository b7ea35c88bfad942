"""
APScheduler-based timer driving the reminder engine.

Two interval jobs run on the app's event loop:
- reminder_tick: polls the calendar and sends due reminders (every few seconds)
- reminder_cleanup: purges stale bookkeeping (every few minutes)

Jobs are kept in memory only; the engine rebuilds everything it needs from
the calendar and the recipient registry on each tick.
"""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from core.config import get_reminder_cleanup_minutes, get_reminder_interval_seconds
from core.notifications.reminders import ReminderEngine

logger = logging.getLogger(__name__)


_scheduler: AsyncIOScheduler | None = None
_engine: ReminderEngine | None = None

TICK_JOB_ID = "reminder_tick"
CLEANUP_JOB_ID = "reminder_cleanup"


def create_default_engine() -> ReminderEngine:
    """Wire the engine to Google Calendar, the recipient table and Discord DMs."""
    from core.calendar import list_upcoming_events
    from core.notifications.channels.discord import send_discord_dm
    from core.recipients import list_recipient_ids

    return ReminderEngine(
        fetch_events=list_upcoming_events,
        fetch_recipients=list_recipient_ids,
        send=send_discord_dm,
    )


def get_engine() -> ReminderEngine | None:
    """The engine the scheduler is driving, if started."""
    return _engine


def is_scheduler_running() -> bool:
    return _scheduler is not None and _scheduler.running


def init_scheduler(engine: ReminderEngine | None = None) -> AsyncIOScheduler:
    """
    Create the scheduler, register the reminder jobs and start it.

    Call this during app startup (in FastAPI lifespan), from inside the
    running event loop.
    """
    global _scheduler, _engine

    if _scheduler is not None:
        return _scheduler

    _engine = engine or create_default_engine()

    _scheduler = AsyncIOScheduler(
        job_defaults={
            "coalesce": True,  # Combine missed runs into one
            "max_instances": 1,  # Never overlap ticks
            "misfire_grace_time": 30,
        },
    )

    interval_seconds = get_reminder_interval_seconds()
    _scheduler.add_job(
        _engine.tick,
        trigger="interval",
        seconds=interval_seconds,
        id=TICK_JOB_ID,
        replace_existing=True,
    )
    _scheduler.add_job(
        _engine.purge_expired,
        trigger="interval",
        minutes=get_reminder_cleanup_minutes(),
        id=CLEANUP_JOB_ID,
        replace_existing=True,
    )

    _scheduler.start()
    logger.info(f"Reminder scheduler started - checking every {interval_seconds} seconds")
    return _scheduler


async def shutdown_scheduler() -> None:
    """
    Stop scheduling new ticks, then let an in-flight tick finish its fan-out.

    Call this during app shutdown.
    """
    global _scheduler, _engine

    if _scheduler is not None:
        _scheduler.shutdown(wait=False)
        _scheduler = None

    if _engine is not None:
        if _engine.is_running:
            logger.info("Waiting for in-flight reminder tick to finish")
        await _engine.wait_idle()
        _engine = None

    logger.info("Reminder scheduler stopped")
