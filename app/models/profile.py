"""Profile model: display data for a user of the external identity provider."""

from __future__ import annotations

from sqlalchemy import Column, String

from app.db import Base
from app.models.mixins import TimestampMixin


class Profile(Base, TimestampMixin):
    """One row per user; id is the identity provider's subject id."""

    __tablename__ = "profiles"

    id = Column(String(255), primary_key=True)
    full_name = Column(String(256), nullable=False)
    avatar_url = Column(String(1024), nullable=True)
