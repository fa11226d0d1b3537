"""
Change notification for chat messages, keyed by conversation id.

Two backends: an in-process bus for single-worker deployments and tests, and
Redis pub/sub when several API workers serve the same conversations.
"""

from __future__ import annotations

import asyncio
from typing import AsyncIterator, Dict, Optional, Protocol, Set
from uuid import UUID

import redis.asyncio as aioredis

from app.config import Settings, get_settings
from app.infra.logging_config import get_logger
from app.schemas.chat import ChatMessageRead

logger = get_logger("message_bus")

_CLOSED = object()


class BusListener(Protocol):
    """Registered listener for one conversation. Iterate to receive messages."""

    def __aiter__(self) -> AsyncIterator[ChatMessageRead]: ...
    async def __anext__(self) -> ChatMessageRead: ...
    async def close(self) -> None: ...


class MessageBus(Protocol):
    async def publish(self, conversation_id: UUID, message: ChatMessageRead) -> None: ...

    async def subscribe(self, conversation_id: UUID) -> BusListener:
        """Register a listener. Messages published after this returns are delivered to it."""
        ...

    async def close(self) -> None: ...


class _QueueListener:
    def __init__(self, bus: "InMemoryMessageBus", conversation_id: UUID) -> None:
        self._bus = bus
        self._conversation_id = conversation_id
        self.queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    def __aiter__(self) -> "_QueueListener":
        return self

    async def __anext__(self) -> ChatMessageRead:
        item = await self.queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            raise item
        return item

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._bus._detach(self._conversation_id, self)
        self.queue.put_nowait(_CLOSED)


class InMemoryMessageBus:
    """FIFO fan-out to every listener of a conversation within this process."""

    def __init__(self) -> None:
        self._listeners: Dict[UUID, Set[_QueueListener]] = {}

    async def publish(self, conversation_id: UUID, message: ChatMessageRead) -> None:
        for listener in list(self._listeners.get(conversation_id, ())):
            listener.queue.put_nowait(message)

    async def subscribe(self, conversation_id: UUID) -> _QueueListener:
        listener = _QueueListener(self, conversation_id)
        self._listeners.setdefault(conversation_id, set()).add(listener)
        return listener

    def listener_count(self, conversation_id: UUID) -> int:
        return len(self._listeners.get(conversation_id, ()))

    def drop(self, conversation_id: UUID, error: BaseException) -> None:
        """Fail every listener of a conversation with error, as a transport drop would."""
        for listener in list(self._listeners.get(conversation_id, ())):
            self._detach(conversation_id, listener)
            listener.queue.put_nowait(error)

    def _detach(self, conversation_id: UUID, listener: _QueueListener) -> None:
        listeners = self._listeners.get(conversation_id)
        if not listeners:
            return
        listeners.discard(listener)
        if not listeners:
            del self._listeners[conversation_id]

    async def close(self) -> None:
        for conversation_id in list(self._listeners):
            for listener in list(self._listeners.get(conversation_id, ())):
                await listener.close()


class _RedisListener:
    def __init__(self, pubsub, channel: str) -> None:
        self._pubsub = pubsub
        self._channel = channel
        self._messages = pubsub.listen()

    def __aiter__(self) -> "_RedisListener":
        return self

    async def __anext__(self) -> ChatMessageRead:
        while True:
            raw = await self._messages.__anext__()
            if raw.get("type") != "message":
                continue
            return ChatMessageRead.model_validate_json(raw["data"])

    async def close(self) -> None:
        try:
            await self._pubsub.unsubscribe(self._channel)
        finally:
            await self._pubsub.aclose()


class RedisMessageBus:
    CHANNEL_PREFIX = "chat:"

    def __init__(
        self,
        redis_url: Optional[str] = None,
        client: Optional[aioredis.Redis] = None,
    ) -> None:
        self._client = client or aioredis.from_url(redis_url or get_settings().redis_url)

    @classmethod
    def channel_for(cls, conversation_id: UUID) -> str:
        return f"{cls.CHANNEL_PREFIX}{conversation_id}"

    async def publish(self, conversation_id: UUID, message: ChatMessageRead) -> None:
        await self._client.publish(
            self.channel_for(conversation_id), message.model_dump_json()
        )

    async def subscribe(self, conversation_id: UUID) -> _RedisListener:
        channel = self.channel_for(conversation_id)
        pubsub = self._client.pubsub()
        await pubsub.subscribe(channel)
        return _RedisListener(pubsub, channel)

    async def close(self) -> None:
        await self._client.aclose()


def build_message_bus(settings: Optional[Settings] = None) -> MessageBus:
    settings = settings or get_settings()
    backend = (settings.message_bus_backend or "memory").lower()
    if backend == "redis":
        logger.info("Using Redis message bus at %s", settings.redis_url)
        return RedisMessageBus(settings.redis_url)
    if backend != "memory":
        raise ValueError(f"Unknown message bus backend: {settings.message_bus_backend}")
    return InMemoryMessageBus()
