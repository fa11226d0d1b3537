"""
MessageChannel: history, live feed and sending for one viewer's open conversation.

open() registers a live Subscription before loading history so no message
falls between the two. send() only persists and publishes; the sender sees
their own message when it comes back through the feed.
"""

from __future__ import annotations

import asyncio
from typing import List, Optional, Set, Tuple
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.core.message_bus import MessageBus
from app.core.subscription import Subscription
from app.exceptions import MessageValidationError, SendFailed, StoreLookupError
from app.infra.logging_config import get_logger
from app.schemas.chat import ChatMessageCreate, ChatMessageRead
from app.services.chat_message_service import ChatMessageService, append_and_publish
from app.services.verification_scorer import VerificationScorer

logger = get_logger("message_channel")


class MessageChannel:
    def __init__(
        self,
        db: Session,
        bus: MessageBus,
        scorer: Optional[VerificationScorer] = None,
    ) -> None:
        self._db = db
        self._bus = bus
        self._scorer = scorer
        self._message_svc = ChatMessageService(db)
        self._subscription: Optional[Subscription] = None
        self._scoring_tasks: Set[asyncio.Task] = set()

    @property
    def subscription(self) -> Optional[Subscription]:
        return self._subscription

    def load_history(self, conversation_id: UUID) -> List[ChatMessageRead]:
        try:
            messages = self._message_svc.get_messages(conversation_id)
        except SQLAlchemyError as e:
            self._db.rollback()
            logger.warning("Loading messages for %s failed: %s", conversation_id, e)
            raise StoreLookupError("Could not load chat messages") from e
        history = [ChatMessageRead.model_validate(m) for m in messages]
        self._end_transaction()
        return history

    def _end_transaction(self) -> None:
        # A live viewer keeps this session open; no transaction may outlive one operation.
        self._db.commit()

    def _backfill(self, conversation_id: UUID):
        def load_after(after):
            try:
                rows = self._message_svc.get_messages_after(conversation_id, after)
                messages = [ChatMessageRead.model_validate(m) for m in rows]
            except SQLAlchemyError:
                self._db.rollback()
                raise
            self._end_transaction()
            return messages

        return load_after

    async def open(
        self, conversation_id: UUID
    ) -> Tuple[List[ChatMessageRead], Subscription]:
        """Load ordered history and start the live feed. Replaces any previously open conversation."""
        await self.close()
        settings = get_settings()
        subscription = Subscription(
            conversation_id,
            self._bus,
            self._backfill(conversation_id),
            backoff_initial=settings.subscription_backoff_initial_seconds,
            backoff_max=settings.subscription_backoff_max_seconds,
            max_retries=settings.subscription_max_retries,
        )
        await subscription.connect()
        try:
            history = self.load_history(conversation_id)
        except StoreLookupError:
            await subscription.cancel()
            raise
        subscription.start(history)
        self._subscription = subscription
        return history, subscription

    async def send(self, conversation_id: UUID, sender_id: str, text: str) -> None:
        if not isinstance(text, str) or not text.strip():
            raise MessageValidationError("Message text must be a non-empty string")
        data = ChatMessageCreate(sender_id=sender_id, message=text, message_type="text")
        try:
            sent = await append_and_publish(self._db, self._bus, conversation_id, data)
        except SQLAlchemyError as e:
            self._db.rollback()
            logger.warning("Sending message to %s failed: %s", conversation_id, e)
            raise SendFailed("Could not send message") from e
        self._end_transaction()
        if self._scorer is not None:
            task = self._scorer.observe(sent)
            if task is not None:
                self._scoring_tasks.add(task)
                task.add_done_callback(self._scoring_tasks.discard)

    async def close(self) -> None:
        """Release the live feed and cancel verifications triggered from this channel."""
        tasks, self._scoring_tasks = self._scoring_tasks, set()
        for task in tasks:
            task.cancel()
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            await subscription.cancel()
