"""Pydantic schemas for report access logs and the per-item access audit."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, computed_field, field_validator

from app.schemas.profile import ProfileSummary


class AccessType(str, Enum):
    VIEW = "view"
    CONTACT = "contact"
    CHAT_INIT = "chat_init"


ACCESS_TYPE_LABELS = {
    AccessType.VIEW.value: "Viewed report",
    AccessType.CONTACT.value: "Contacted owner",
    AccessType.CHAT_INIT.value: "Started chat",
}


def access_type_label(access_type: str) -> str:
    return ACCESS_TYPE_LABELS.get(access_type, "Activity")


class AccessLogRead(BaseModel):
    id: UUID
    lost_item_id: UUID
    access_type: str
    accessor_id: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime
    accessor_profile: Optional[ProfileSummary] = None

    model_config = {"from_attributes": True}

    @field_validator("created_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @computed_field
    @property
    def label(self) -> str:
        return access_type_label(self.access_type)


class AccessLogCreate(BaseModel):
    access_type: AccessType


class AccessStats(BaseModel):
    """Counts over the fetched window only, not all-time totals."""

    total_views: int = 0
    total_contacts: int = 0
    total_chats: int = 0
    unique_users: int = 0


class AccessSummary(BaseModel):
    logs: list[AccessLogRead] = []
    stats: AccessStats = AccessStats()
    error: Optional[str] = None
