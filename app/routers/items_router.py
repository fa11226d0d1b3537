"""Item access audit: record and summarize views, contacts and chat starts."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.auth.identity import get_current_user_id
from app.db import get_db
from app.exceptions import CreateError
from app.models.lost_item import LostItem
from app.routers.utils.dependencies import get_item_by_id
from app.schemas.access_log import AccessLogCreate, AccessLogRead, AccessSummary
from app.services.access_aggregator import AccessAggregator
from app.services.access_log_service import AccessLogService

items_router = APIRouter(prefix="/items", tags=["Item"])


@items_router.get("/{item_id}/access-logs", response_model=AccessSummary)
def get_access_summary(
    item: LostItem = Depends(get_item_by_id),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> AccessSummary:
    """Most recent access events and windowed stats. Only the item owner may see them."""
    if not item.is_owned_by(user_id):
        raise HTTPException(status_code=403, detail="Only the owner can view access logs")
    return AccessAggregator(db).summarize(item.id)


@items_router.post(
    "/{item_id}/access-logs", response_model=AccessLogRead, status_code=201
)
def record_access(
    body: AccessLogCreate,
    request: Request,
    item: LostItem = Depends(get_item_by_id),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> AccessLogRead:
    try:
        log = AccessLogService(db).record_access(
            item.id,
            body.access_type,
            accessor_id=user_id,
            ip_address=request.client.host if request.client else None,
            user_agent=request.headers.get("user-agent"),
        )
    except CreateError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    return AccessLogRead.model_validate(log)
