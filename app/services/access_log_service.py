"""Service for the report access log. Events are immutable; only insert and read."""

from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.exceptions import CreateError
from app.infra.logging_config import get_logger
from app.models.access_log import AccessLog
from app.schemas.access_log import AccessType

logger = get_logger("access_logs")


class AccessLogService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def record_access(
        self,
        lost_item_id: UUID,
        access_type: AccessType,
        accessor_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> AccessLog:
        """Persist one view / contact / chat_init event. Raises CreateError if the insert fails."""
        kind = AccessType(access_type).value
        log = AccessLog(
            lost_item_id=lost_item_id,
            access_type=kind,
            accessor_id=accessor_id,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        try:
            self.db.add(log)
            self.db.commit()
            self.db.refresh(log)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(
                "Recording %s access for item %s failed: %s",
                kind,
                lost_item_id,
                e,
            )
            raise CreateError("Could not record access") from e
        return log

    def get_recent_logs(self, lost_item_id: UUID, limit: int = 50) -> List[AccessLog]:
        """Most recent events for an item, newest first."""
        return (
            self.db.query(AccessLog)
            .filter(AccessLog.lost_item_id == lost_item_id)
            .order_by(AccessLog.created_at.desc())
            .limit(limit)
            .all()
        )
