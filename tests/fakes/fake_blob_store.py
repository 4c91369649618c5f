# =============================================================================
# File: tests/fakes/fake_blob_store.py
# Description: Fake implementation of BlobStorePort for unit testing
# Pattern: Ports & Adapters - Fake/Stub adapter
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from chatsync.common.base.base_storage_provider import DEFAULT_CONTENT_TYPE, UploadResult


@dataclass
class UploadRecord:
    path: str
    content: bytes
    content_type: str


class FakeBlobStore:
    """
    In-memory blob store.

    Usage:
        blobs = FakeBlobStore()
        result = await blobs.upload_file("chat/image/a/b/1", b"...")
        assert result.public_url == "https://blobs.test/chat/image/a/b/1"

        blobs.configure_failure("bucket unavailable")
    """

    def __init__(self, base_url: str = "https://blobs.test"):
        self.base_url = base_url
        self.files: Dict[str, Tuple[bytes, str]] = {}
        self.uploads: List[UploadRecord] = []
        self._failure: Optional[str] = None

    def configure_failure(self, error_message: str) -> None:
        """Every following upload reports failure."""
        self._failure = error_message

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/{path}"

    async def upload_file(
        self,
        path: str,
        file_content: bytes,
        content_type: str = DEFAULT_CONTENT_TYPE,
    ) -> UploadResult:
        self.uploads.append(UploadRecord(path, file_content, content_type))
        if self._failure is not None:
            return UploadResult(success=False, error=self._failure)

        self.files[path] = (file_content, content_type)
        return UploadResult(success=True, file_path=path, public_url=self.url_for(path))
