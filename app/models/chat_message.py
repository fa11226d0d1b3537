"""ChatMessage model: one row per message in a conversation, human or synthetic."""

from __future__ import annotations

import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    ForeignKey,
    Index,
    String,
    Text,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from app.db import Base
from app.models.mixins import CreatedAtMixin

AI_SYSTEM_SENDER_ID = "ai-system"


class ChatMessage(Base, CreatedAtMixin):
    """Append-only; ordered by created_at within a conversation."""

    __tablename__ = "chat_messages"

    __table_args__ = (
        Index("ix_chat_messages_conversation_created", "conversation_id", "created_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    conversation_id = Column(
        Uuid,
        ForeignKey("chat_conversations.id", ondelete="CASCADE"),
        nullable=False,
    )
    # Not a FK: the synthetic "ai-system" sender has no profile row
    sender_id = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    message_type = Column(
        String(16), nullable=False, default="text"
    )  # 'text' | 'image' | 'location' | 'verification'
    ai_analysis = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=True)
    is_ai_flagged = Column(Boolean, nullable=False, default=False)

    conversation = relationship("Conversation", back_populates="messages")
    sender_profile = relationship(
        "Profile",
        primaryjoin="foreign(ChatMessage.sender_id) == Profile.id",
        lazy="joined",
        viewonly=True,
    )
