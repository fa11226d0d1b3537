"""Read access to lost items (owned by the reporting flow)."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.models.lost_item import LostItem


class LostItemService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get_item(self, item_id: UUID) -> Optional[LostItem]:
        return self.db.query(LostItem).filter(LostItem.id == item_id).first()
