"""
ChatMessage persistence.

Messages are append-only. created_at is kept strictly increasing within a
conversation so that ordering by created_at equals insertion order.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.infra.logging_config import get_logger
from app.models.chat_message import ChatMessage
from app.schemas.chat import ChatMessageCreate, ChatMessageRead

if TYPE_CHECKING:
    from app.core.message_bus import MessageBus

logger = get_logger("chat_messages")

_ONE_TICK = timedelta(microseconds=1)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ChatMessageService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def create_message(
        self, conversation_id: UUID, data: ChatMessageCreate
    ) -> ChatMessage:
        created_at = datetime.now(timezone.utc)
        latest = self.get_latest_created_at(conversation_id)
        if latest is not None and created_at <= latest:
            created_at = latest + _ONE_TICK
        dump = data.model_dump()
        msg = ChatMessage(
            conversation_id=conversation_id,
            created_at=created_at,
            **dump,
        )
        self.db.add(msg)
        self.db.commit()
        self.db.refresh(msg)
        return msg

    def get_latest_created_at(self, conversation_id: UUID) -> Optional[datetime]:
        latest = (
            self.db.query(func.max(ChatMessage.created_at))
            .filter(ChatMessage.conversation_id == conversation_id)
            .scalar()
        )
        return _as_utc(latest) if latest is not None else None

    def get_messages(self, conversation_id: UUID) -> List[ChatMessage]:
        """Full history, oldest first."""
        return (
            self.db.query(ChatMessage)
            .filter(ChatMessage.conversation_id == conversation_id)
            .order_by(ChatMessage.created_at.asc())
            .all()
        )

    def get_messages_after(
        self, conversation_id: UUID, after: Optional[datetime]
    ) -> List[ChatMessage]:
        if after is None:
            return self.get_messages(conversation_id)
        return (
            self.db.query(ChatMessage)
            .filter(
                ChatMessage.conversation_id == conversation_id,
                ChatMessage.created_at > after,
            )
            .order_by(ChatMessage.created_at.asc())
            .all()
        )


async def append_and_publish(
    db: Session,
    bus: "MessageBus",
    conversation_id: UUID,
    data: ChatMessageCreate,
) -> ChatMessageRead:
    """Insert a message and notify live subscribers of the conversation.

    A failed publish is logged and not raised: the row is committed and
    subscribers recover it through their reconnect backfill.
    """
    msg = ChatMessageService(db).create_message(conversation_id, data)
    read = ChatMessageRead.model_validate(msg)
    try:
        await bus.publish(conversation_id, read)
    except Exception as e:
        logger.warning(
            "Publish of message %s to conversation %s failed: %s",
            read.id,
            conversation_id,
            e,
        )
    return read
