"""Conversation model: the single verification chat between an item's reporter and one finder."""

from __future__ import annotations

import uuid

from sqlalchemy import Column, ForeignKey, Index, String, Uuid
from sqlalchemy.orm import relationship

from app.db import Base
from app.models.mixins import CreatedAtMixin


class Conversation(Base, CreatedAtMixin):
    """At most one row per (lost_item_id, reporter_id, finder_id), enforced by ConversationResolver's lookup-before-insert."""

    __tablename__ = "chat_conversations"

    __table_args__ = (
        Index("ix_chat_conversations_item_reporter", "lost_item_id", "reporter_id"),
        Index("ix_chat_conversations_item_finder", "lost_item_id", "finder_id"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    lost_item_id = Column(
        Uuid, ForeignKey("lost_items.id", ondelete="CASCADE"), nullable=False
    )
    reporter_id = Column(String(255), nullable=False)
    finder_id = Column(String(255), nullable=False)

    messages = relationship(
        "ChatMessage",
        back_populates="conversation",
        order_by="ChatMessage.created_at",
    )

    def has_participant(self, user_id: str) -> bool:
        return user_id in (self.reporter_id, self.finder_id)
