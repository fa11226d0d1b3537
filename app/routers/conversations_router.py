"""Conversations API: resolve, history, send, and the live WebSocket feed."""

from __future__ import annotations

import asyncio
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, WebSocket
from fastapi import WebSocketDisconnect
from sqlalchemy.orm import Session

from app.auth.identity import get_current_user_id, get_ws_user_id
from app.core.app_state import AppState
from app.db import get_db
from app.exceptions import (
    ConversationInitError,
    CreateError,
    MessageValidationError,
    SendFailed,
    StoreLookupError,
    SubscriptionError,
)
from app.infra.logging_config import get_logger
from app.models.conversation import Conversation
from app.models.lost_item import LostItem
from app.routers.utils.dependencies import (
    get_app_state,
    get_item_by_id,
    get_participant_conversation,
)
from app.schemas.access_log import AccessType
from app.schemas.chat import (
    ChatMessageRead,
    ConversationResolveRequest,
    ConversationResolveResponse,
    SendMessageRequest,
)
from app.services.access_log_service import AccessLogService
from app.services.conversation_resolver import ConversationResolver
from app.services.conversation_service import ConversationService
from app.services.message_channel import MessageChannel

logger = get_logger("conversations_router")

conversations_router = APIRouter(prefix="/conversations", tags=["Conversation"])

WS_POLICY_VIOLATION = 1008
WS_INTERNAL_ERROR = 1011


@conversations_router.post("/resolve", response_model=ConversationResolveResponse)
def resolve_conversation(
    body: ConversationResolveRequest,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ConversationResolveResponse:
    """Return the caller's conversation for an item, creating it on a finder's first contact."""
    item: LostItem = get_item_by_id(body.lost_item_id, db)
    resolver = ConversationResolver(db)
    try:
        conversation, created = resolver.resolve_or_create(
            item, user_id, item.is_owned_by(user_id)
        )
    except ConversationInitError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    conversation_id = conversation.id if conversation is not None else None
    if created:
        try:
            AccessLogService(db).record_access(
                item.id,
                AccessType.CHAT_INIT,
                accessor_id=user_id,
                ip_address=request.client.host if request.client else None,
                user_agent=request.headers.get("user-agent"),
            )
        except CreateError:
            # The conversation is committed; the caller still gets its id.
            logger.warning("chat_init not recorded for conversation %s", conversation_id)
    return ConversationResolveResponse(conversation_id=conversation_id, created=created)


@conversations_router.get(
    "/{conversation_id}/messages", response_model=List[ChatMessageRead]
)
def list_messages(
    conversation: Conversation = Depends(get_participant_conversation),
    db: Session = Depends(get_db),
    state: AppState = Depends(get_app_state),
) -> List[ChatMessageRead]:
    """Full message history, oldest first."""
    channel = MessageChannel(db, state.bus)
    try:
        return channel.load_history(conversation.id)
    except StoreLookupError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e


@conversations_router.post("/{conversation_id}/messages", status_code=202)
async def send_message(
    body: SendMessageRequest,
    conversation: Conversation = Depends(get_participant_conversation),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    state: AppState = Depends(get_app_state),
) -> dict[str, bool]:
    """Persist a text message. Viewers (the sender included) receive it over the live feed."""
    channel = MessageChannel(db, state.bus, state.scorer)
    try:
        await channel.send(conversation.id, user_id, body.message)
    except MessageValidationError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except SendFailed as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    return {"accepted": True}


async def _relay_outgoing(
    websocket: WebSocket,
    channel: MessageChannel,
    conversation_id: UUID,
    user_id: str,
) -> None:
    """Read {"message": ...} frames from the viewer and send them; close the channel on disconnect.

    A malformed frame is answered with an error frame and the relay keeps reading.
    """
    try:
        while True:
            try:
                frame = await websocket.receive_json()
            except ValueError:
                await websocket.send_json(
                    {"type": "error", "detail": "Frame is not valid JSON"}
                )
                continue
            text = frame.get("message") if isinstance(frame, dict) else None
            try:
                await channel.send(conversation_id, user_id, text)
            except (MessageValidationError, SendFailed) as e:
                await websocket.send_json({"type": "error", "detail": str(e)})
    except WebSocketDisconnect:
        pass
    finally:
        await channel.close()


@conversations_router.websocket("/{conversation_id}/live")
async def conversation_live(
    websocket: WebSocket,
    conversation_id: UUID,
    user_id: str | None = Depends(get_ws_user_id),
    db: Session = Depends(get_db),
) -> None:
    """Send the history, then every new message of the conversation as it is persisted."""
    state: AppState = websocket.app.state.lostlink
    conversation = ConversationService(db).get_conversation(conversation_id)
    if user_id is None or conversation is None or not conversation.has_participant(
        user_id
    ):
        await websocket.close(code=WS_POLICY_VIOLATION)
        return
    await websocket.accept()

    channel = MessageChannel(db, state.bus, state.scorer)
    try:
        history, subscription = await channel.open(conversation_id)
    except StoreLookupError as e:
        await websocket.send_json({"type": "error", "detail": str(e)})
        await websocket.close(code=WS_INTERNAL_ERROR)
        return

    await websocket.send_json(
        {
            "type": "history",
            "messages": [m.model_dump(mode="json") for m in history],
        }
    )
    relay = asyncio.create_task(
        _relay_outgoing(websocket, channel, conversation_id, user_id)
    )
    try:
        async for message in subscription:
            await websocket.send_json(
                {"type": "message", "message": message.model_dump(mode="json")}
            )
    except SubscriptionError as e:
        logger.warning("Live feed ended for conversation %s: %s", conversation_id, e)
        await websocket.send_json({"type": "error", "detail": str(e)})
        await websocket.close(code=WS_INTERNAL_ERROR)
    except WebSocketDisconnect:
        pass
    finally:
        relay.cancel()
        await channel.close()
