"""Per-item access audit: recent access log window plus view/contact/chat counts."""

from __future__ import annotations

from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.infra.logging_config import get_logger
from app.schemas.access_log import AccessLogRead, AccessStats, AccessSummary, AccessType
from app.services.access_log_service import AccessLogService

logger = get_logger("access_aggregator")


def compute_stats(logs: Iterable[AccessLogRead]) -> AccessStats:
    stats = AccessStats()
    accessors = set()
    for log in logs:
        if log.access_type == AccessType.VIEW.value:
            stats.total_views += 1
        elif log.access_type == AccessType.CONTACT.value:
            stats.total_contacts += 1
        elif log.access_type == AccessType.CHAT_INIT.value:
            stats.total_chats += 1
        if log.accessor_id is not None:
            accessors.add(log.accessor_id)
    stats.unique_users = len(accessors)
    return stats


class AccessAggregator:
    """
    Summarizes the most recent access events of an item.

    Counts cover only the fetched window (50 by default), so they are
    approximations once an item has more events than that. A failed fetch
    yields an empty summary with the error message set instead of raising.
    """

    def __init__(
        self,
        db: Session,
        access_log_service: Optional[AccessLogService] = None,
        window: Optional[int] = None,
    ) -> None:
        self._db = db
        self._log_svc = access_log_service or AccessLogService(db)
        self._window = (
            get_settings().access_log_window if window is None else window
        )

    def summarize(self, lost_item_id: UUID) -> AccessSummary:
        try:
            rows = self._log_svc.get_recent_logs(lost_item_id, limit=self._window)
        except SQLAlchemyError as e:
            self._db.rollback()
            logger.error("Fetching access logs for item %s failed: %s", lost_item_id, e)
            return AccessSummary(error="Could not load access logs")
        logs = [AccessLogRead.model_validate(row) for row in rows]
        return AccessSummary(logs=logs, stats=compute_stats(logs))
