"""
AccessLog model: one row per view / contact / chat start on a lost item.

Append-only. Written whenever a user interacts with a report; read back by
the access audit for the item owner.
"""

from __future__ import annotations

import uuid

from sqlalchemy import Column, ForeignKey, Index, String, Uuid
from sqlalchemy.orm import relationship

from app.db import Base
from app.models.mixins import CreatedAtMixin


class AccessLog(Base, CreatedAtMixin):
    __tablename__ = "report_access_logs"

    __table_args__ = (
        Index(
            "ix_report_access_logs_item_created",
            "lost_item_id",
            "created_at",
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    lost_item_id = Column(
        Uuid, ForeignKey("lost_items.id", ondelete="CASCADE"), nullable=False
    )
    accessor_id = Column(String(255), nullable=True)  # null for anonymous viewers
    access_type = Column(String(16), nullable=False)  # 'view' | 'contact' | 'chat_init'
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(512), nullable=True)

    accessor_profile = relationship(
        "Profile",
        primaryjoin="foreign(AccessLog.accessor_id) == Profile.id",
        lazy="joined",
        viewonly=True,
    )
