# =============================================================================
# File: chatsync/infra/storage/local_adapter.py
# Description: Local file storage adapter (for development)
# Production should use MinIO/S3
# =============================================================================

from __future__ import annotations

from pathlib import Path

import aiofiles
import aiofiles.os

from chatsync.common.base.base_storage_provider import (
    BaseStorageProvider,
    DEFAULT_CONTENT_TYPE,
    UploadResult,
)
from chatsync.config.logging_config import get_logger

log = get_logger("chatsync.infra.storage.local")


class LocalStorageAdapter(BaseStorageProvider):
    """
    Local file storage adapter for development.

    Stores files in a local directory; URLs are built from ``base_url``
    so they can be served by a static files endpoint.
    """

    def __init__(
        self,
        base_path: str = "storage",
        base_url: str = "/static/storage",
    ):
        self.base_path = Path(base_path)
        self.base_url = base_url.rstrip("/")
        self.base_path.mkdir(parents=True, exist_ok=True)

    async def upload_file(
        self,
        path: str,
        file_content: bytes,
        content_type: str = DEFAULT_CONTENT_TYPE,
    ) -> UploadResult:
        """
        Upload a file to local storage.

        Args:
            path: Relative file path
            file_content: File content as bytes
            content_type: MIME type (not persisted locally)

        Returns:
            UploadResult with file path and public URL
        """
        try:
            key = self._normalize_path(path)
            file_path = self.base_path / key
            await aiofiles.os.makedirs(file_path.parent, exist_ok=True)

            async with aiofiles.open(file_path, "wb") as f:
                await f.write(file_content)

            public_url = self.get_public_url(key)
            log.info(f"File uploaded: {file_path} -> {public_url}")

            return UploadResult(
                success=True,
                file_path=str(file_path),
                public_url=public_url,
            )

        except (OSError, ValueError) as e:
            log.error(f"Failed to upload file to {path}: {e}", exc_info=True)
            return UploadResult(success=False, error=str(e))

    def get_public_url(self, path: str) -> str:
        """Get public URL for a file"""
        return f"{self.base_url}/{self._normalize_path(path)}"
