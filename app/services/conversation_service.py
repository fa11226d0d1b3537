"""Conversation lookup and insert. No update/delete: conversations are never removed here."""

from __future__ import annotations

from typing import Literal, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.models.conversation import Conversation
from app.schemas.chat import ConversationCreate

ParticipantRole = Literal["reporter", "finder"]


class ConversationService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get_conversation(self, conversation_id: UUID) -> Optional[Conversation]:
        return (
            self.db.query(Conversation)
            .filter(Conversation.id == conversation_id)
            .first()
        )

    def find_for_participant(
        self,
        lost_item_id: UUID,
        role: ParticipantRole,
        user_id: str,
    ) -> Optional[Conversation]:
        """Oldest conversation on the item where user_id plays the given role."""
        column = (
            Conversation.reporter_id if role == "reporter" else Conversation.finder_id
        )
        return (
            self.db.query(Conversation)
            .filter(Conversation.lost_item_id == lost_item_id, column == user_id)
            .order_by(Conversation.created_at.asc())
            .first()
        )

    def create_conversation(self, data: ConversationCreate) -> Conversation:
        conversation = Conversation(**data.model_dump())
        self.db.add(conversation)
        self.db.commit()
        self.db.refresh(conversation)
        return conversation

    def count_for_item(self, lost_item_id: UUID) -> int:
        return (
            self.db.query(Conversation)
            .filter(Conversation.lost_item_id == lost_item_id)
            .count()
        )
