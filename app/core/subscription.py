"""
Live feed handle for one open conversation.

A Subscription pumps the message bus into a local queue that the viewer
drains with ``async for``. Delivery is de-duplicated by message id. When the
bus listener fails, the pump re-subscribes with exponential backoff and
backfills from the message store everything newer than the last delivered
message, so a transport drop never loses messages.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Set
from uuid import UUID

from app.core.message_bus import BusListener, MessageBus
from app.exceptions import SubscriptionError
from app.infra.logging_config import get_logger
from app.schemas.chat import ChatMessageRead

logger = get_logger("subscription")

Backfill = Callable[[Optional[datetime]], List[ChatMessageRead]]

_END = object()


class Subscription:
    def __init__(
        self,
        conversation_id: UUID,
        bus: MessageBus,
        backfill: Backfill,
        *,
        backoff_initial: float = 0.5,
        backoff_max: float = 30.0,
        max_retries: int = 8,
    ) -> None:
        self.conversation_id = conversation_id
        self._bus = bus
        self._backfill = backfill
        self._backoff_initial = backoff_initial
        self._backoff_max = backoff_max
        self._max_retries = max_retries

        self._queue: asyncio.Queue = asyncio.Queue()
        self._listener: Optional[BusListener] = None
        self._task: Optional[asyncio.Task] = None
        self._seen: Set[UUID] = set()
        self._last_created_at: Optional[datetime] = None
        self._cancelled = False
        self._failed = False
        self.reconnects = 0

    @property
    def active(self) -> bool:
        return not (self._cancelled or self._failed)

    async def connect(self) -> None:
        """Register with the bus. Call before loading history so nothing falls in between."""
        self._listener = await self._bus.subscribe(self.conversation_id)

    def start(self, history: Iterable[ChatMessageRead] = ()) -> None:
        """Mark history as already delivered and begin pumping live messages."""
        for message in history:
            self._remember(message)
        self._task = asyncio.create_task(
            self._pump(), name=f"chat-feed-{self.conversation_id}"
        )

    async def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        await self._close_listener()
        self._queue.put_nowait(_END)

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> ChatMessageRead:
        item = await self._queue.get()
        if item is _END:
            raise StopAsyncIteration
        if isinstance(item, SubscriptionError):
            raise item
        return item

    def _remember(self, message: ChatMessageRead) -> bool:
        if message.id in self._seen:
            return False
        self._seen.add(message.id)
        if self._last_created_at is None or message.created_at > self._last_created_at:
            self._last_created_at = message.created_at
        return True

    def _deliver(self, message: ChatMessageRead) -> None:
        if self._remember(message):
            self._queue.put_nowait(message)

    async def _close_listener(self) -> None:
        listener, self._listener = self._listener, None
        if listener is None:
            return
        try:
            await listener.close()
        except Exception as e:
            logger.debug("Closing listener for %s failed: %s", self.conversation_id, e)

    async def _pump(self) -> None:
        failures = 0
        delay = self._backoff_initial
        while not self._cancelled:
            try:
                if self._listener is None:
                    await self.connect()
                    for message in self._backfill(self._last_created_at):
                        self._deliver(message)
                    self.reconnects += 1
                async for message in self._listener:
                    failures = 0
                    delay = self._backoff_initial
                    self._deliver(message)
                if self._cancelled:
                    return
                raise ConnectionError("live feed closed by transport")
            except asyncio.CancelledError:
                raise
            except Exception as e:
                await self._close_listener()
                failures += 1
                if failures > self._max_retries:
                    logger.error(
                        "Live feed for conversation %s lost after %d attempts: %s",
                        self.conversation_id,
                        failures,
                        e,
                    )
                    self._queue.put_nowait(
                        SubscriptionError(
                            f"Live feed for conversation {self.conversation_id} is unavailable"
                        )
                    )
                    self._failed = True
                    return
                logger.warning(
                    "Live feed for conversation %s dropped (%s); reconnecting in %.1fs",
                    self.conversation_id,
                    e,
                    delay,
                )
                await asyncio.sleep(delay)
                delay = min(delay * 2, self._backoff_max)
