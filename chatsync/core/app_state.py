# chatsync/core/app_state.py
# =============================================================================
# File: chatsync/core/app_state.py
# Description: Application state definition and global state management
# =============================================================================

from typing import Optional
from datetime import datetime, timezone

import redis.asyncio as redis

from chatsync.chat.sync_engine import ChatSyncEngine
from chatsync.common.base.base_storage_provider import BaseStorageProvider
from chatsync.infra.document_store.redis_document_store import RedisDocumentStore
from chatsync.infra.read_repos.user_read_repo import DocumentUserDirectory


# =============================================================================
# APP STATE TYPE DEFINITION
# =============================================================================
class AppState:
    """Type definition for FastAPI app.state with proper type hints"""

    def __init__(self):
        # Core infrastructure
        self.redis_client: Optional[redis.Redis] = None
        self.document_store: Optional[RedisDocumentStore] = None
        self.storage: Optional[BaseStorageProvider] = None

        # Read repositories
        self.user_directory: Optional[DocumentUserDirectory] = None

        # Chat core
        self.chat_engine: Optional[ChatSyncEngine] = None


# =============================================================================
# GLOBAL STATE
# =============================================================================
_START_TIME = datetime.now(timezone.utc)


def get_start_time() -> datetime:
    """Get application start time"""
    return _START_TIME
