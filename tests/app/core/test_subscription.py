"""Tests for Subscription: de-duplication, reconnect with backfill, giving up."""

import asyncio
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from app.core.message_bus import InMemoryMessageBus
from app.core.subscription import Subscription
from app.exceptions import SubscriptionError
from app.schemas.chat import ChatMessageRead

T0 = datetime(2026, 5, 1, 8, 0, tzinfo=timezone.utc)


def _message(conversation_id, n):
    return ChatMessageRead(
        id=uuid4(),
        conversation_id=conversation_id,
        sender_id="F1",
        message=f"m{n}",
        message_type="text",
        created_at=T0 + timedelta(seconds=n),
    )


class FakeStore:
    def __init__(self):
        self.messages = []
        self.backfill_calls = []

    def after(self, created_at):
        self.backfill_calls.append(created_at)
        if created_at is None:
            return list(self.messages)
        return [m for m in self.messages if m.created_at > created_at]


async def _take(subscription, count):
    return [
        await asyncio.wait_for(subscription.__anext__(), timeout=2)
        for _ in range(count)
    ]


@pytest.mark.asyncio
async def test_duplicates_are_delivered_once():
    bus = InMemoryMessageBus()
    conversation_id = uuid4()
    store = FakeStore()
    subscription = Subscription(conversation_id, bus, store.after)
    await subscription.connect()
    old = _message(conversation_id, 0)
    subscription.start([old])

    new = _message(conversation_id, 1)
    await bus.publish(conversation_id, old)
    await bus.publish(conversation_id, new)
    await bus.publish(conversation_id, new)

    (received,) = await _take(subscription, 1)
    assert received.id == new.id
    await subscription.cancel()
    assert [m async for m in subscription] == []


@pytest.mark.asyncio
async def test_reconnect_backfills_missed_messages_in_order():
    bus = InMemoryMessageBus()
    conversation_id = uuid4()
    store = FakeStore()
    subscription = Subscription(
        conversation_id, bus, store.after, backoff_initial=0.01, backoff_max=0.02
    )
    await subscription.connect()
    subscription.start()

    first = _message(conversation_id, 1)
    store.messages.append(first)
    await bus.publish(conversation_id, first)
    assert [m.id for m in await _take(subscription, 1)] == [first.id]

    bus.drop(conversation_id, ConnectionError("transport closed"))
    missed = [_message(conversation_id, n) for n in (2, 3)]
    store.messages.extend(missed)

    received = await _take(subscription, 2)
    assert [m.id for m in received] == [m.id for m in missed]
    assert subscription.reconnects == 1
    assert store.backfill_calls[-1] == first.created_at
    assert bus.listener_count(conversation_id) == 1

    live = _message(conversation_id, 4)
    await bus.publish(conversation_id, live)
    assert [m.id for m in await _take(subscription, 1)] == [live.id]
    await subscription.cancel()
    assert bus.listener_count(conversation_id) == 0


class AlwaysFailingBus(InMemoryMessageBus):
    def __init__(self):
        super().__init__()
        self.attempts = 0

    async def subscribe(self, conversation_id):
        self.attempts += 1
        if self.attempts > 1:
            raise ConnectionError("redis unreachable")
        return await super().subscribe(conversation_id)


@pytest.mark.asyncio
async def test_gives_up_after_max_retries():
    bus = AlwaysFailingBus()
    conversation_id = uuid4()
    subscription = Subscription(
        conversation_id,
        bus,
        FakeStore().after,
        backoff_initial=0.001,
        backoff_max=0.002,
        max_retries=3,
    )
    await subscription.connect()
    subscription.start()
    bus.drop(conversation_id, ConnectionError("dropped"))

    with pytest.raises(SubscriptionError):
        await asyncio.wait_for(subscription.__anext__(), timeout=2)
    # one initial connect, then three failed reconnects
    assert bus.attempts == 4
    assert not subscription.active
    await subscription.cancel()
