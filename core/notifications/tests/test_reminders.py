"""Tests for the reminder engine.

Collaborators are injected as AsyncMocks and time comes from a fake clock,
so no calendar, database or Discord connection is needed.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from core.calendar import Event
from core.notifications.bookkeeping import ReminderKey, SentReminders
from core.notifications.reminders import LOOKAHEAD_WINDOW, ReminderEngine


NOW = datetime(2025, 1, 2, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


def _event(event_id="evt1", minutes_from_now=5, **kwargs):
    return Event(
        id=event_id,
        title=kwargs.pop("title", "Standup"),
        start_time=NOW + timedelta(minutes=minutes_from_now),
        **kwargs,
    )


def _engine(events=None, recipients=("1001", "1002"), send=None, sent=None, clock=None):
    return ReminderEngine(
        fetch_events=AsyncMock(return_value=list(events or [])),
        fetch_recipients=AsyncMock(return_value=list(recipients)),
        send=send or AsyncMock(return_value=True),
        sent=sent,
        clock=clock or FakeClock(),
        tz_name="Asia/Jakarta",
    )


class TestDueEvents:
    @pytest.mark.asyncio
    async def test_due_event_is_sent_once_per_recipient(self):
        event = _event(minutes_from_now=5)
        engine = _engine(events=[event])

        stats = await engine.tick()

        assert engine.send.await_count == 2
        assert {c.args[0] for c in engine.send.await_args_list} == {"1001", "1002"}
        assert await engine.sent.contains(ReminderKey.for_occurrence("evt1", event.start_time))
        assert stats["reminded"] == 1
        assert stats["deliveries"] == 2

    @pytest.mark.asyncio
    async def test_every_recipient_gets_the_same_message(self):
        engine = _engine(events=[_event(minutes_from_now=5, location="Room 4")])

        await engine.tick()

        messages = {c.args[1] for c in engine.send.await_args_list}
        assert len(messages) == 1
        message = messages.pop()
        assert "Standup" in message
        assert "Starting in 5 minutes" in message
        assert "📍 Room 4" in message
        assert "16:05 WIB" in message

    @pytest.mark.asyncio
    async def test_event_exactly_at_threshold_is_due(self):
        engine = _engine(events=[_event(minutes_from_now=10)])

        await engine.tick()

        assert engine.send.await_count == 2

    @pytest.mark.asyncio
    async def test_event_beyond_threshold_is_not_sent_yet(self):
        engine = _engine(events=[_event(minutes_from_now=12)])

        stats = await engine.tick()

        engine.send.assert_not_awaited()
        assert stats["reminded"] == 0
        assert await engine.sent.snapshot() == frozenset()

    @pytest.mark.asyncio
    async def test_event_becomes_due_as_time_passes(self):
        clock = FakeClock()
        engine = _engine(events=[_event(minutes_from_now=12)], clock=clock)

        await engine.tick()
        clock.advance(timedelta(minutes=3))
        await engine.tick()

        assert engine.send.await_count == 2

    @pytest.mark.asyncio
    async def test_queries_lookahead_window(self):
        engine = _engine(events=[])

        await engine.tick()

        engine.fetch_events.assert_awaited_once_with(LOOKAHEAD_WINDOW)


class TestIdempotence:
    @pytest.mark.asyncio
    async def test_second_tick_is_a_noop(self):
        engine = _engine(events=[_event(minutes_from_now=5)])

        await engine.tick()
        second = await engine.tick()

        assert engine.send.await_count == 2
        assert second["reminded"] == 0

    @pytest.mark.asyncio
    async def test_rescheduled_event_is_a_new_occurrence(self):
        clock = FakeClock()
        engine = _engine(events=[_event(minutes_from_now=5)], clock=clock)

        await engine.tick()
        engine.fetch_events.return_value = [_event(minutes_from_now=8)]
        await engine.tick()

        assert engine.send.await_count == 4

    @pytest.mark.asyncio
    async def test_seconds_do_not_change_the_key(self):
        engine = _engine(events=[_event(minutes_from_now=5)])

        await engine.tick()
        moved = Event(id="evt1", title="Standup", start_time=NOW + timedelta(minutes=5, seconds=30))
        engine.fetch_events.return_value = [moved]
        await engine.tick()

        assert engine.send.await_count == 2


class TestPartialFailure:
    @pytest.mark.asyncio
    async def test_failed_recipient_does_not_block_others(self):
        send = AsyncMock(side_effect=[RuntimeError("DM closed"), True])
        engine = _engine(events=[_event(minutes_from_now=5)], send=send)

        stats = await engine.tick()

        assert send.await_count == 2
        assert stats["deliveries"] == 1
        assert stats["failed_deliveries"] == 1

    @pytest.mark.asyncio
    async def test_key_is_marked_even_when_delivery_fails(self):
        send = AsyncMock(return_value=False)
        event = _event(minutes_from_now=5)
        engine = _engine(events=[event], send=send)

        await engine.tick()
        await engine.tick()

        assert send.await_count == 2
        assert await engine.sent.contains(ReminderKey.for_occurrence("evt1", event.start_time))


class TestPastEvents:
    @pytest.mark.asyncio
    async def test_past_event_with_entry_is_cleaned_without_sending(self):
        event = _event(minutes_from_now=-1)
        sent = SentReminders()
        key = ReminderKey.for_occurrence("evt1", event.start_time)
        await sent.add(key)
        engine = _engine(events=[event], sent=sent)

        stats = await engine.tick()

        engine.send.assert_not_awaited()
        assert not await sent.contains(key)
        assert stats["cleaned"] == 1

    @pytest.mark.asyncio
    async def test_past_event_without_entry_is_never_sent(self):
        engine = _engine(events=[_event(minutes_from_now=-1)])

        stats = await engine.tick()

        engine.send.assert_not_awaited()
        assert stats["cleaned"] == 0


class TestSkippedTicks:
    @pytest.mark.asyncio
    async def test_no_recipients_skips_calendar_query(self):
        engine = _engine(events=[_event()], recipients=())

        stats = await engine.tick()

        engine.fetch_events.assert_not_awaited()
        engine.send.assert_not_awaited()
        assert stats["recipients"] == 0

    @pytest.mark.asyncio
    async def test_new_recipient_is_picked_up_next_tick(self):
        engine = _engine(events=[_event(event_id="a")], recipients=("1001",))

        await engine.tick()
        engine.fetch_recipients.return_value = ["1001", "1002"]
        engine.fetch_events.return_value = [_event(event_id="b")]
        await engine.tick()

        recipients_for_b = [c.args[0] for c in engine.send.await_args_list[1:]]
        assert recipients_for_b == ["1001", "1002"]

    @pytest.mark.asyncio
    async def test_calendar_error_ends_tick_quietly(self):
        engine = _engine()
        engine.fetch_events.side_effect = RuntimeError("calendar down")

        stats = await engine.tick()

        engine.send.assert_not_awaited()
        assert stats["events"] == 0

    @pytest.mark.asyncio
    async def test_recipient_store_error_ends_tick_quietly(self):
        engine = _engine(events=[_event()])
        engine.fetch_recipients.side_effect = RuntimeError("db locked")

        stats = await engine.tick()

        engine.fetch_events.assert_not_awaited()
        assert stats["recipients"] == 0

    @pytest.mark.asyncio
    async def test_event_without_start_time_is_skipped(self):
        events = [Event(id="allday", title="Offsite", start_time=None), _event()]
        engine = _engine(events=events)

        stats = await engine.tick()

        assert stats["no_start_time"] == 1
        assert stats["reminded"] == 1


class TestNonOverlappingTicks:
    @pytest.mark.asyncio
    async def test_overlapping_tick_is_skipped(self):
        release = asyncio.Event()

        async def slow_send(recipient_id, message):
            await release.wait()
            return True

        engine = _engine(events=[_event()], recipients=("1001",), send=AsyncMock(side_effect=slow_send))

        first = asyncio.create_task(engine.tick())
        await asyncio.sleep(0)
        while not engine.send.await_count:
            await asyncio.sleep(0)

        assert engine.is_running
        assert await engine.tick() == {"skipped": True}

        release.set()
        stats = await first
        assert stats["reminded"] == 1
        assert not engine.is_running

    @pytest.mark.asyncio
    async def test_wait_idle_waits_for_fan_out(self):
        release = asyncio.Event()

        async def slow_send(recipient_id, message):
            await release.wait()
            return True

        engine = _engine(events=[_event()], recipients=("1001",), send=AsyncMock(side_effect=slow_send))

        tick = asyncio.create_task(engine.tick())
        while not engine.send.await_count:
            await asyncio.sleep(0)

        waiter = asyncio.create_task(engine.wait_idle())
        await asyncio.sleep(0)
        assert not waiter.done()

        release.set()
        await waiter
        assert tick.done()


class TestPurgeExpired:
    @pytest.mark.asyncio
    async def test_removes_entries_older_than_two_hours(self):
        sent = SentReminders()
        old = ReminderKey.for_occurrence("old", NOW - timedelta(hours=2, minutes=1))
        recent = ReminderKey.for_occurrence("recent", NOW - timedelta(hours=1))
        await sent.add(old)
        await sent.add(recent)
        engine = _engine(sent=sent)

        removed = await engine.purge_expired()

        assert removed == 1
        assert await sent.snapshot() == frozenset({recent})
