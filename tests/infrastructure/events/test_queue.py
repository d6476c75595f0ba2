"""Tests for EventQueue."""

import asyncio

import pytest

from makilab.domain.entities.event import Event, EventType
from makilab.infrastructure.events.queue import EventQueue


@pytest.fixture
def queue() -> EventQueue:
    """Create an EventQueue instance."""
    return EventQueue()


def compaction(channel: str = "cli") -> Event:
    return Event(type=EventType.COMPACTION, payload={"channel": channel})


class TestEventQueue:
    """EventQueue tests."""

    async def test_fifo(self, queue: EventQueue) -> None:
        """Test that distinct events come out in order."""
        first = compaction("a")
        second = compaction("b")
        await queue.enqueue(first)
        await queue.enqueue(second)

        assert await queue.dequeue() is first
        assert await queue.dequeue() is second

    async def test_pending_event_is_replaced(self, queue: EventQueue) -> None:
        """Test that a newer event with the same key replaces the pending one."""
        old = compaction()
        new = compaction()
        await queue.enqueue(old)
        await queue.enqueue(new)

        assert await queue.dequeue() is new
        assert queue.pending_count == 1

    async def test_processing_event_is_not_replaced(self, queue: EventQueue) -> None:
        """Test that an event enqueued during processing runs afterwards."""
        running = compaction()
        await queue.enqueue(running)
        queue.mark_processing(await queue.dequeue())
        follow_up = compaction()
        await queue.enqueue(follow_up)

        assert queue.is_processing("compaction:cli")
        assert queue.is_pending("compaction:cli")
        queue.mark_done(running)
        assert await queue.dequeue() is follow_up

    async def test_join_waits_for_done(self, queue: EventQueue) -> None:
        """Test that join returns once every event is marked done."""
        await queue.enqueue(compaction())
        event = await queue.dequeue()
        queue.mark_processing(event)
        queue.mark_done(event)

        await asyncio.wait_for(queue.join(), timeout=1.0)

    async def test_clear(self, queue: EventQueue) -> None:
        """Test that clear drops the pending bookkeeping."""
        await queue.enqueue(compaction())

        queue.clear()

        assert queue.pending_count == 0
