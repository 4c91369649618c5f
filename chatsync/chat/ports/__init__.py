# =============================================================================
# File: chatsync/chat/ports/__init__.py
# Description: Port interfaces consumed by the chat domain
# =============================================================================

from chatsync.chat.ports.blob_store_port import BlobStorePort
from chatsync.chat.ports.document_store_port import (
    DocumentSnapshot,
    DocumentStorePort,
    DocumentWrite,
    WriteOp,
)
from chatsync.chat.ports.user_directory_port import UserDirectoryPort

__all__ = [
    "BlobStorePort",
    "DocumentSnapshot",
    "DocumentStorePort",
    "DocumentWrite",
    "WriteOp",
    "UserDirectoryPort",
]
