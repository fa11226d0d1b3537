"""Pydantic schemas for conversations and chat messages."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from app.schemas.profile import ProfileSummary

# -----------------------------------------------------------------------------
# Conversation schemas
# -----------------------------------------------------------------------------


class ConversationCreate(BaseModel):
    """Both participants are always set; a conversation is never half-created."""

    lost_item_id: UUID
    reporter_id: str = Field(min_length=1)
    finder_id: str = Field(min_length=1)


class ConversationResolveRequest(BaseModel):
    lost_item_id: UUID


class ConversationResolveResponse(BaseModel):
    """conversation_id is None when the owner opens chat before any finder has."""

    conversation_id: Optional[UUID] = None
    created: bool = False


# -----------------------------------------------------------------------------
# ChatMessage schemas
# -----------------------------------------------------------------------------

MessageType = Literal["text", "image", "location", "verification"]


class AIAnalysis(BaseModel):
    score: float = Field(ge=0, le=10)
    confidence: float = Field(ge=0, le=1)


class ChatMessageCreate(BaseModel):
    sender_id: str
    message: str
    message_type: MessageType = "text"
    ai_analysis: Optional[AIAnalysis] = None
    is_ai_flagged: bool = False


class ChatMessageRead(BaseModel):
    """Chat message as delivered to viewers, history and live feed alike."""

    id: UUID
    conversation_id: UUID
    sender_id: str
    message: str
    message_type: MessageType
    ai_analysis: Optional[AIAnalysis] = None
    is_ai_flagged: bool = False
    created_at: datetime
    sender_profile: Optional[ProfileSummary] = None

    model_config = {"from_attributes": True}

    @field_validator("created_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # SQLite hands back naive datetimes
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class SendMessageRequest(BaseModel):
    message: str
