# =============================================================================
# File: chatsync/infra/read_repos/user_read_repo.py
# Description: User profile lookup backed by the document store
# =============================================================================

from __future__ import annotations

from typing import Optional

from chatsync.chat.document_paths import user_path
from chatsync.chat.ports.document_store_port import DocumentStorePort
from chatsync.chat.read_models import User
from chatsync.config.logging_config import get_logger

log = get_logger("chatsync.infra.read_repos.user")


class DocumentUserDirectory:
    """UserDirectoryPort reading profiles from users/{uid}"""

    def __init__(self, store: DocumentStorePort):
        self._store = store

    async def get_user(self, user_id: str) -> Optional[User]:
        path = user_path(user_id)
        data = await self._store.get_document(path)
        if data is None:
            log.debug(f"No profile at {path}")
            return None
        return User.from_document(data, path)
