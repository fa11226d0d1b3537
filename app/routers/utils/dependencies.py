from uuid import UUID

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.auth.identity import get_current_user_id
from app.core.app_state import AppState
from app.db import get_db
from app.models.conversation import Conversation
from app.models.lost_item import LostItem
from app.services.conversation_service import ConversationService
from app.services.lost_item_service import LostItemService


def get_app_state(request: Request) -> AppState:
    return request.app.state.lostlink


def get_item_by_id(
    item_id: UUID,
    db: Session = Depends(get_db),
) -> LostItem:
    """FastAPI dependency to get a lost item by ID."""
    item = LostItemService(db).get_item(item_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Lost item not found")
    return item


def get_participant_conversation(
    conversation_id: UUID,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Conversation:
    """FastAPI dependency to get a conversation the caller takes part in."""
    conversation = ConversationService(db).get_conversation(conversation_id)
    if conversation is None:
        raise HTTPException(status_code=404, detail="Conversation not found")
    if not conversation.has_participant(user_id):
        raise HTTPException(status_code=403, detail="Not a participant")
    return conversation
