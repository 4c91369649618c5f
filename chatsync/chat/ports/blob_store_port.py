# =============================================================================
# File: chatsync/chat/ports/blob_store_port.py
# Description: Port interface for uploaded media storage
# Pattern: Hexagonal Architecture / Ports & Adapters
# =============================================================================

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from chatsync.common.base.base_storage_provider import UploadResult


@runtime_checkable
class BlobStorePort(Protocol):
    """
    Port: Blob Store

    Defined by: Chat Domain
    Implemented by: MinIOStorageProvider, LocalStorageAdapter
    (chatsync/infra/storage/)
    """

    async def upload_file(
        self,
        path: str,
        file_content: bytes,
        content_type: str = "application/octet-stream",
    ) -> 'UploadResult':
        """
        Store ``file_content`` at ``path``.

        Returns:
            UploadResult; ``public_url`` is set when ``success`` is True
        """
        ...
