# =============================================================================
# File: chatsync/api/routers/chat_router.py
# Description: Chat API endpoints (REST commands, WebSocket subscriptions)
# =============================================================================

from __future__ import annotations

import asyncio
from typing import Annotated, List, Optional

from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    Header,
    HTTPException,
    Query,
    UploadFile,
    WebSocket,
    WebSocketDisconnect,
    status,
)

from chatsync.api.dependencies.chat_deps import (
    USER_ID_HEADER,
    engine_from_connection,
    get_chat_engine,
    get_current_user_id,
    normalize_user_id,
)
from chatsync.api.models.chat_api_models import (
    SeenResponse,
    SendGifRequest,
    SendTextRequest,
    WriteFailureResponse,
    reply_from_form,
)
from chatsync.chat.enums import MessageKind
from chatsync.chat.exceptions import ChatValidationError
from chatsync.chat.read_models import ContactSummary, Message
from chatsync.chat.subscriptions import Subscription
from chatsync.chat.sync_engine import ChatSyncEngine
from chatsync.common.exceptions.exceptions import StoreConnectionError
from chatsync.config.logging_config import get_logger

log = get_logger("chatsync.api.chat")

router = APIRouter(prefix="/chats", tags=["chats"])

MAX_FILE_SIZE = 50 * 1024 * 1024  # 50MB

# WebSocket close codes
WS_CLOSE_UNAUTHORIZED = 4401
WS_CLOSE_POLICY = status.WS_1008_POLICY_VIOLATION
WS_CLOSE_UNAVAILABLE = status.WS_1011_INTERNAL_ERROR

WRITE_FAILURE_RESPONSES = {
    status.HTTP_503_SERVICE_UNAVAILABLE: {
        "model": WriteFailureResponse,
        "description": "A document write failed; `partial` tells whether one copy landed",
    },
}

Engine = Annotated[ChatSyncEngine, Depends(get_chat_engine)]
CurrentUserId = Annotated[str, Depends(get_current_user_id)]


# =============================================================================
# Snapshots
# =============================================================================

@router.get("/contacts", response_model=List[ContactSummary])
async def list_contacts(engine: Engine, user_id: CurrentUserId):
    """Current contact list of the caller"""
    return await engine.list_contacts(user_id)


@router.get("/{counterpart_id}/messages", response_model=List[Message])
async def list_messages(counterpart_id: str, engine: Engine, user_id: CurrentUserId):
    """Current conversation with ``counterpart_id``, oldest first"""
    return await engine.list_messages(user_id, counterpart_id)


# =============================================================================
# Send
# =============================================================================

@router.post(
    "/{counterpart_id}/messages/text",
    response_model=Message,
    status_code=status.HTTP_201_CREATED,
    responses=WRITE_FAILURE_RESPONSES,
)
async def send_text_message(
    counterpart_id: str,
    body: SendTextRequest,
    engine: Engine,
    user_id: CurrentUserId,
):
    sender = await engine.resolve_user(user_id)
    reply = body.reply.to_reply() if body.reply else None
    return await engine.send_text_message(sender, counterpart_id, body.text, reply=reply)


@router.post(
    "/{counterpart_id}/messages/gif",
    response_model=Message,
    status_code=status.HTTP_201_CREATED,
    responses=WRITE_FAILURE_RESPONSES,
)
async def send_gif_message(
    counterpart_id: str,
    body: SendGifRequest,
    engine: Engine,
    user_id: CurrentUserId,
):
    sender = await engine.resolve_user(user_id)
    reply = body.reply.to_reply() if body.reply else None
    return await engine.send_gif_message(sender, counterpart_id, body.gif_url, reply=reply)


@router.post(
    "/{counterpart_id}/messages/file",
    response_model=Message,
    status_code=status.HTTP_201_CREATED,
    responses=WRITE_FAILURE_RESPONSES,
)
async def send_file_message(
    counterpart_id: str,
    engine: Engine,
    user_id: CurrentUserId,
    file: UploadFile = File(...),
    kind: MessageKind = Form(...),
    reply_text: Optional[str] = Form(None),
    reply_kind: Optional[MessageKind] = Form(None),
    reply_is_me: Optional[bool] = Form(None),
):
    """
    Upload a media file and send it as a message.

    The file is uploaded before anything is written; an upload failure
    returns 502 and leaves both conversations untouched.
    """
    content = await file.read()
    if len(content) > MAX_FILE_SIZE:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File too large. Maximum size is {MAX_FILE_SIZE // (1024 * 1024)}MB",
        )

    sender = await engine.resolve_user(user_id)
    return await engine.send_file_message(
        sender,
        counterpart_id,
        content,
        kind,
        reply=reply_from_form(reply_text, reply_kind, reply_is_me),
        content_type=file.content_type,
    )


# =============================================================================
# Seen
# =============================================================================

@router.post(
    "/{counterpart_id}/messages/{message_id}/seen",
    response_model=SeenResponse,
    responses=WRITE_FAILURE_RESPONSES,
)
async def mark_seen(
    counterpart_id: str,
    message_id: str,
    engine: Engine,
    user_id: CurrentUserId,
):
    """Flag a message as seen in both conversations (idempotent)"""
    await engine.mark_seen(user_id, counterpart_id, message_id)
    return SeenResponse(message_id=message_id)


# =============================================================================
# Live streams
# =============================================================================

async def _listen_for_disconnect(websocket: WebSocket) -> None:
    """Drain client frames until the client goes away; their content is ignored"""
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


async def _stream(websocket: WebSocket, subscription: Subscription) -> None:
    """Send every snapshot as a JSON array until either side goes away"""

    async def send_snapshot(records) -> None:
        await websocket.send_json([record.to_document() for record in records])

    async with subscription:
        pump = asyncio.create_task(subscription.start(send_snapshot).wait())
        listener = asyncio.create_task(_listen_for_disconnect(websocket))
        done, pending = await asyncio.wait({pump, listener}, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

        if pump not in done:
            listener.result()
            log.debug(f"Client left {subscription.name}")
            return

        error = pump.exception()
        if isinstance(error, WebSocketDisconnect):
            log.debug(f"Client left {subscription.name}")
        elif isinstance(error, StoreConnectionError):
            log.error(f"Stream {subscription.name} gave up: {error}")
            await websocket.close(code=WS_CLOSE_UNAVAILABLE, reason="Store unavailable")
        elif error is not None:
            raise error


async def _open_stream(websocket: WebSocket, user_id: Optional[str], make_subscription) -> None:
    engine = engine_from_connection(websocket)
    if not user_id:
        await websocket.close(code=WS_CLOSE_UNAUTHORIZED, reason=f"{USER_ID_HEADER} required")
        return
    if engine is None:
        await websocket.close(code=WS_CLOSE_UNAVAILABLE, reason="Chat service unavailable")
        return

    try:
        subscription = make_subscription(engine, user_id)
    except ChatValidationError as e:
        await websocket.close(code=WS_CLOSE_POLICY, reason=str(e))
        return

    await websocket.accept()
    await _stream(websocket, subscription)


@router.websocket("/ws/contacts")
async def stream_contacts(
    websocket: WebSocket,
    x_user_id: Annotated[Optional[str], Header(alias=USER_ID_HEADER)] = None,
    user_id: Annotated[Optional[str], Query()] = None,
):
    """
    Live contact list.

    Browsers cannot set headers on a WebSocket handshake, so the user id may
    also come from the ``user_id`` query parameter.
    """
    await _open_stream(
        websocket,
        normalize_user_id(x_user_id) or normalize_user_id(user_id),
        lambda engine, uid: engine.subscribe_contacts(uid),
    )


@router.websocket("/ws/{counterpart_id}/messages")
async def stream_messages(
    websocket: WebSocket,
    counterpart_id: str,
    x_user_id: Annotated[Optional[str], Header(alias=USER_ID_HEADER)] = None,
    user_id: Annotated[Optional[str], Query()] = None,
):
    """Live conversation with ``counterpart_id``"""
    await _open_stream(
        websocket,
        normalize_user_id(x_user_id) or normalize_user_id(user_id),
        lambda engine, uid: engine.subscribe_messages(uid, counterpart_id),
    )
