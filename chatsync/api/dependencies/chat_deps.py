# chatsync/api/dependencies/chat_deps.py
# =============================================================================
# File: chatsync/api/dependencies/chat_deps.py
# Description: FastAPI dependencies for the chat endpoints
# =============================================================================

from typing import Annotated, Optional

from fastapi import Header, HTTPException, Request, status
from starlette.requests import HTTPConnection

from chatsync.chat.sync_engine import ChatSyncEngine
from chatsync.config.logging_config import get_logger

log = get_logger("chatsync.api.dependencies.chat")

USER_ID_HEADER = "X-User-Id"


def engine_from_connection(connection: HTTPConnection) -> Optional[ChatSyncEngine]:
    """Chat engine from app state; works for both requests and websockets"""
    return getattr(connection.app.state, "chat_engine", None)


def get_chat_engine(request: Request) -> ChatSyncEngine:
    """
    Get the chat engine from app state.

    Usage in API routes:
        @router.get("/chats/contacts")
        async def contacts(engine: ChatSyncEngine = Depends(get_chat_engine)):
            return await engine.list_contacts(user_id)

    Raises:
        HTTPException: 503 if the engine was not initialized
    """
    engine = engine_from_connection(request)
    if engine is None:
        log.error("Chat engine not available - startup did not complete")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Chat service unavailable.",
        )
    return engine


def normalize_user_id(raw: Optional[str]) -> Optional[str]:
    """Caller id with surrounding whitespace removed; None when blank"""
    if raw is None:
        return None
    return raw.strip() or None


def get_current_user_id(
    x_user_id: Annotated[Optional[str], Header(alias=USER_ID_HEADER)] = None,
) -> str:
    """
    Authenticated user id, as forwarded by the identity gateway.

    Raises:
        HTTPException: 401 if the header is missing or blank
    """
    user_id = normalize_user_id(x_user_id)
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"{USER_ID_HEADER} header required",
        )
    return user_id
