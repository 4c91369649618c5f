# =============================================================================
# File: chatsync/common/base/base_storage_provider.py
# Description: Abstract base class for blob storage providers
# =============================================================================

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass
class UploadResult:
    """Result of file upload operation"""

    success: bool
    file_path: Optional[str] = None
    public_url: Optional[str] = None
    error: Optional[str] = None


class BaseStorageProvider(ABC):
    """
    Abstract base class for storage providers.

    Files are stored at caller-chosen paths (e.g.
    ``chat/image/{sender}/{receiver}/{messageId}``) so the same upload
    always lands at the same key.

    Implementations:
        - MinIOStorageProvider (MinIO/S3)
        - LocalStorageAdapter (local directory, development)
    """

    @abstractmethod
    async def upload_file(
        self,
        path: str,
        file_content: bytes,
        content_type: str = DEFAULT_CONTENT_TYPE,
    ) -> UploadResult:
        """
        Upload a file to storage.

        Args:
            path: Object key, relative to the provider's root
            file_content: File content as bytes
            content_type: MIME type

        Returns:
            UploadResult with file path and public URL
        """
        pass

    @abstractmethod
    def get_public_url(self, path: str) -> str:
        """Get public URL for a stored path."""
        pass

    async def close(self) -> None:
        """Release client resources (no-op by default)."""
        return None

    @staticmethod
    def _normalize_path(path: str) -> str:
        """Strip leading slashes and reject parent-directory segments"""
        normalized = path.strip().lstrip("/")
        if not normalized or any(part in ("", ".", "..") for part in normalized.split("/")):
            raise ValueError(f"Invalid storage path: {path!r}")
        return normalized
