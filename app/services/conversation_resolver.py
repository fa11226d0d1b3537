"""
ConversationResolver: find-or-create the single conversation for an item.

The caller is looked up by their role on the item (reporter when they own it,
finder otherwise). Only a finder's first contact creates a conversation;
an owner opening chat before any finder has written gets None back.
"""

from __future__ import annotations

from typing import Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.exceptions import ConversationInitError
from app.infra.logging_config import get_logger
from app.models.conversation import Conversation
from app.models.lost_item import LostItem
from app.schemas.chat import ConversationCreate
from app.services.conversation_service import ConversationService

logger = get_logger("conversation_resolver")


class ConversationResolver:
    def __init__(
        self,
        db: Session,
        conversation_service: Optional[ConversationService] = None,
    ) -> None:
        self._db = db
        self._conversation_svc = conversation_service or ConversationService(db)

    def resolve_or_create(
        self,
        item: LostItem,
        current_user_id: str,
        current_user_is_owner: bool,
    ) -> Tuple[Optional[Conversation], bool]:
        """Returns (conversation, created). conversation is None when an owner has no chat yet."""
        role = "reporter" if current_user_is_owner else "finder"
        try:
            existing = self._conversation_svc.find_for_participant(
                item.id, role, current_user_id
            )
            if existing is not None:
                return existing, False
            if current_user_is_owner:
                return None, False
            conversation = self._conversation_svc.create_conversation(
                ConversationCreate(
                    lost_item_id=item.id,
                    reporter_id=item.user_id,
                    finder_id=current_user_id,
                )
            )
        except SQLAlchemyError as e:
            self._db.rollback()
            logger.warning(
                "Conversation init failed for item %s, user %s: %s",
                item.id,
                current_user_id,
                e,
            )
            raise ConversationInitError("Could not open chat for this item") from e
        logger.info(
            "Created conversation %s for item %s (finder %s)",
            conversation.id,
            item.id,
            current_user_id,
        )
        return conversation, True

    def resolve(
        self,
        item: LostItem,
        current_user_id: str,
        current_user_is_owner: bool,
    ) -> Optional[UUID]:
        conversation, _ = self.resolve_or_create(
            item, current_user_id, current_user_is_owner
        )
        return conversation.id if conversation is not None else None
