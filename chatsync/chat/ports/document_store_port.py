# =============================================================================
# File: chatsync/chat/ports/document_store_port.py
# Description: Port interface for the document database
# Pattern: Hexagonal Architecture / Ports & Adapters
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncIterator, Dict, List, Optional, Protocol, Sequence, runtime_checkable


class WriteOp(str, Enum):
    SET = "set"        # overwrite the whole document, creating it if missing
    UPDATE = "update"  # merge fields into an existing document


@dataclass(frozen=True)
class DocumentWrite:
    """One write inside a batch"""
    path: str
    data: Dict[str, Any]
    op: WriteOp = WriteOp.SET


@dataclass(frozen=True)
class DocumentSnapshot:
    """A document as read from a collection"""
    path: str
    id: str
    data: Dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class DocumentStorePort(Protocol):
    """
    Port: Document Store

    Defined by: Chat Domain
    Implemented by: RedisDocumentStore (chatsync/infra/document_store/redis_document_store.py)

    Paths alternate collection/document segments, e.g.
    ``users/{uid}/chats/{counterpartId}``. Every single-document write is
    atomic. Nothing spanning two documents is, except commit_batch.

    Errors: operations raise StoreError subclasses; a dropped connection
    is StoreConnectionError.
    """

    async def get_document(self, path: str) -> Optional[Dict[str, Any]]:
        """Return the document at ``path`` or None if it does not exist."""
        ...

    async def set_document(self, path: str, data: Dict[str, Any]) -> None:
        """Create or overwrite the document at ``path``."""
        ...

    async def update_document(self, path: str, fields: Dict[str, Any]) -> None:
        """
        Merge ``fields`` into an existing document.

        Raises:
            DocumentNotFoundError: if the document does not exist
        """
        ...

    async def list_documents(self, collection: str) -> List[DocumentSnapshot]:
        """Return every document directly under ``collection``."""
        ...

    async def commit_batch(self, writes: Sequence[DocumentWrite]) -> None:
        """
        Apply all writes atomically: either every write lands or none does.

        Raises:
            DocumentNotFoundError: if an UPDATE targets a missing document
                (nothing is written)
        """
        ...

    def watch_collection(self, collection: str) -> AsyncIterator[List[DocumentSnapshot]]:
        """
        Live view of a collection.

        Yields the full current snapshot immediately, then again after
        every change. Never completes on its own; raises
        StoreConnectionError when the underlying connection drops.
        """
        ...
