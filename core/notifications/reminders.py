"""
Reminder engine: notify every registered recipient shortly before events.

Each tick pulls fresh data (recipients and events), so nothing is cached
between ticks except the duplicate-suppression bookkeeping.

Delivery is at-most-once per occurrence per process: once a reminder has
been attempted for an occurrence, it is marked as sent even if some
recipients failed, so a partial fan-out is never repeated.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable

import sentry_sdk

from core.calendar import Event
from core.config import get_display_timezone
from core.notifications.bookkeeping import ReminderKey, SentReminders
from core.notifications.context import build_reminder_message

logger = logging.getLogger(__name__)


# Notify when an event starts within this horizon
REMINDER_WINDOW = timedelta(minutes=10)
# Query a wider window so each event is seen on several ticks before its threshold
LOOKAHEAD_WINDOW = timedelta(minutes=15)
# Bookkeeping older than this (relative to the event start) is purged
RETENTION = timedelta(hours=2)


FetchEvents = Callable[[timedelta], Awaitable[list[Event]]]
FetchRecipients = Callable[[], Awaitable[list[str]]]
SendMessage = Callable[[str, str], Awaitable[bool]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReminderEngine:
    """
    Decides which events need a reminder right now and fans them out.

    Args:
        fetch_events: Returns events starting within the given window from now
        fetch_recipients: Returns all registered recipient IDs
        send: Delivers a message to one recipient, returns success
        sent: Bookkeeping set (a fresh one if omitted)
        clock: Returns the current aware datetime
        tz_name: Display timezone for reminder text
    """

    def __init__(
        self,
        fetch_events: FetchEvents,
        fetch_recipients: FetchRecipients,
        send: SendMessage,
        sent: SentReminders | None = None,
        clock: Callable[[], datetime] = _utcnow,
        tz_name: str | None = None,
    ):
        self.fetch_events = fetch_events
        self.fetch_recipients = fetch_recipients
        self.send = send
        self.sent = sent if sent is not None else SentReminders()
        self.clock = clock
        self.tz_name = tz_name or get_display_timezone()
        self._tick_lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        """True while a tick is in flight."""
        return self._tick_lock.locked()

    async def tick(self) -> dict:
        """
        Run one reminder pass.

        Ticks never overlap: if the previous one is still running, this one
        is skipped.

        Returns:
            Dict of counters describing what happened
        """
        if self._tick_lock.locked():
            logger.debug("Previous reminder tick still running, skipping")
            return {"skipped": True}

        async with self._tick_lock:
            return await self._run_tick()

    async def wait_idle(self) -> None:
        """Wait for an in-flight tick to finish its fan-out."""
        async with self._tick_lock:
            pass

    async def _run_tick(self) -> dict:
        stats = {
            "recipients": 0,
            "events": 0,
            "reminded": 0,
            "deliveries": 0,
            "failed_deliveries": 0,
            "cleaned": 0,
            "no_start_time": 0,
        }

        try:
            recipient_ids = await self.fetch_recipients()
        except Exception as e:
            logger.error(f"Error loading recipients: {e}")
            return stats

        if not recipient_ids:
            return stats
        stats["recipients"] = len(recipient_ids)

        try:
            events = await self.fetch_events(LOOKAHEAD_WINDOW)
        except Exception as e:
            logger.error(f"Error getting upcoming events: {e}")
            return stats
        stats["events"] = len(events)

        now = self.clock()
        for event in events:
            try:
                await self._process_event(event, recipient_ids, now, stats)
            except Exception as e:
                logger.exception(f"Error processing reminder for event {event.id}: {e}")
                sentry_sdk.capture_exception(e)

        if stats["reminded"] or stats["cleaned"]:
            logger.info(
                f"Reminder tick: {stats['reminded']} reminded, "
                f"{stats['deliveries']} delivered, {stats['failed_deliveries']} failed, "
                f"{stats['cleaned']} cleaned"
            )
        return stats

    async def _process_event(
        self,
        event: Event,
        recipient_ids: list[str],
        now: datetime,
        stats: dict,
    ) -> None:
        if event.start_time is None:
            logger.warning(f"Event '{event.title}' has no start time, skipping")
            stats["no_start_time"] += 1
            return

        key = ReminderKey.for_occurrence(event.id, event.start_time)

        if event.start_time < now:
            if await self.sent.discard(key):
                logger.info(f"Cleaned up bookkeeping for past event '{event.title}'")
                stats["cleaned"] += 1
            return

        if event.start_time - now > REMINDER_WINDOW:
            return

        if await self.sent.contains(key):
            logger.debug(f"Reminder already sent for '{event.title}', skipping")
            return

        message = build_reminder_message(event, now, self.tz_name)
        logger.info(
            f"Event '{event.title}' is in the reminder window, "
            f"notifying {len(recipient_ids)} recipient(s)"
        )
        await self._fan_out(recipient_ids, message, stats)

        # Mark as sent even after partial failure so no one gets it twice
        await self.sent.add(key)
        stats["reminded"] += 1

    async def _fan_out(self, recipient_ids: list[str], message: str, stats: dict) -> None:
        for recipient_id in recipient_ids:
            try:
                delivered = await self.send(recipient_id, message)
            except Exception as e:
                logger.warning(f"Failed to send reminder to {recipient_id}: {e}")
                delivered = False

            if delivered:
                stats["deliveries"] += 1
            else:
                logger.warning(f"Reminder not delivered to {recipient_id}")
                stats["failed_deliveries"] += 1

    async def purge_expired(self) -> int:
        """
        Drop bookkeeping for occurrences that started more than RETENTION ago.

        Returns:
            Number of entries removed
        """
        cutoff = self.clock() - RETENTION
        removed = await self.sent.purge_older_than(cutoff)
        if removed:
            logger.info(f"Cleaned up {removed} old reminder entries from memory")
        return removed
