"""LostItem model. Items are written by the reporting flow; this service only reads the owner."""

from __future__ import annotations

import uuid

from sqlalchemy import Column, String, Uuid

from app.db import Base
from app.models.mixins import TimestampMixin


class LostItem(Base, TimestampMixin):
    __tablename__ = "lost_items"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(String(255), nullable=False, index=True)  # reporter / owner
    title = Column(String(256), nullable=False)
    status = Column(String(16), nullable=False, default="lost")  # lost | found | closed

    def is_owned_by(self, user_id: str) -> bool:
        return self.user_id == user_id
