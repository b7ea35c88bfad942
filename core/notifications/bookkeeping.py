"""
Duplicate-suppression bookkeeping for reminders.

A ReminderKey identifies one occurrence: the event ID plus its start time
truncated to the minute. If the provider moves an event, the key changes and
the moved occurrence is reminded about again.

State lives in memory only and resets on restart.
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, NamedTuple


class ReminderKey(NamedTuple):
    event_id: str
    start_minute: datetime

    @classmethod
    def for_occurrence(cls, event_id: str, start_time: datetime) -> "ReminderKey":
        start_utc = start_time.astimezone(timezone.utc)
        return cls(event_id, start_utc.replace(second=0, microsecond=0))


class ReadWriteLock:
    """
    asyncio reader/writer lock.

    Any number of readers may hold it at once; a writer holds it alone.
    Waiting writers block new readers so writes aren't starved.
    """

    def __init__(self):
        self._cond = asyncio.Condition()
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    @asynccontextmanager
    async def read(self) -> AsyncIterator[None]:
        async with self._cond:
            await self._cond.wait_for(
                lambda: not self._writer and not self._waiting_writers
            )
            self._readers += 1
        try:
            yield
        finally:
            async with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @asynccontextmanager
    async def write(self) -> AsyncIterator[None]:
        async with self._cond:
            self._waiting_writers += 1
            acquired = False
            try:
                await self._cond.wait_for(
                    lambda: not self._writer and not self._readers
                )
                acquired = True
            finally:
                self._waiting_writers -= 1
                if not acquired:
                    # Readers queued behind this writer may proceed now
                    self._cond.notify_all()
            self._writer = True
        try:
            yield
        finally:
            async with self._cond:
                self._writer = False
                self._cond.notify_all()


class SentReminders:
    """Set of ReminderKeys for occurrences already notified in this process."""

    def __init__(self):
        self._keys: set[ReminderKey] = set()
        self._lock = ReadWriteLock()

    async def contains(self, key: ReminderKey) -> bool:
        async with self._lock.read():
            return key in self._keys

    async def add(self, key: ReminderKey) -> None:
        async with self._lock.write():
            self._keys.add(key)

    async def discard(self, key: ReminderKey) -> bool:
        """Remove a key. Returns True if it was present."""
        async with self._lock.write():
            if key in self._keys:
                self._keys.remove(key)
                return True
            return False

    async def purge_older_than(self, cutoff: datetime) -> int:
        """Drop keys whose start minute is before cutoff. Returns count removed."""
        async with self._lock.write():
            stale = {key for key in self._keys if key.start_minute < cutoff}
            self._keys -= stale
            return len(stale)

    async def snapshot(self) -> frozenset[ReminderKey]:
        async with self._lock.read():
            return frozenset(self._keys)
