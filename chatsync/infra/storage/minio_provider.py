# =============================================================================
# File: chatsync/infra/storage/minio_provider.py
# Description: MinIO/S3 storage provider
# =============================================================================

from __future__ import annotations

import json
from contextlib import AsyncExitStack
from typing import Any, Optional

import aioboto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from chatsync.common.base.base_storage_provider import (
    BaseStorageProvider,
    DEFAULT_CONTENT_TYPE,
    UploadResult,
)
from chatsync.config.logging_config import get_logger
from chatsync.config.storage_config import StorageConfig, get_storage_config

log = get_logger("chatsync.infra.storage.minio")


class MinIOStorageProvider(BaseStorageProvider):
    """
    MinIO/S3 storage provider.

    Works with both MinIO (development) and AWS S3 (production).
    Uses aioboto3 for async S3 operations.

    Features:
        - S3v4 signature (required for MinIO)
        - Persistent client with connection reuse
        - botocore standard-mode retries (the client's own; nothing above it retries)
        - Configurable timeouts
    """

    def __init__(self, config: Optional[StorageConfig] = None):
        self.config = config or get_storage_config()
        self.session = aioboto3.Session()

        self._boto_config = BotoConfig(
            signature_version="s3v4",
            connect_timeout=self.config.connect_timeout,
            read_timeout=self.config.read_timeout,
            max_pool_connections=self.config.max_pool_connections,
            retries={"max_attempts": self.config.max_attempts, "mode": "standard"},
        )

        # Persistent client (lazy initialized)
        self._client: Optional[Any] = None
        self._exit_stack: Optional[AsyncExitStack] = None

    async def _get_client(self) -> Any:
        """Get or create persistent S3 client (connection reuse)"""
        if self._client is None:
            self._exit_stack = AsyncExitStack()
            self._client = await self._exit_stack.enter_async_context(
                self.session.client(
                    service_name="s3",
                    endpoint_url=self.config.endpoint_url,
                    aws_access_key_id=self.config.get_access_key(),
                    aws_secret_access_key=self.config.get_secret_key(),
                    region_name=self.config.region,
                    config=self._boto_config,
                )
            )
            log.info("MinIO S3 client initialized (persistent connection)")
        return self._client

    async def close(self) -> None:
        """Close the persistent client connection"""
        if self._exit_stack is not None:
            await self._exit_stack.aclose()
            self._client = None
            self._exit_stack = None
            log.info("MinIO S3 client closed")

    async def upload_file(
        self,
        path: str,
        file_content: bytes,
        content_type: str = DEFAULT_CONTENT_TYPE,
    ) -> UploadResult:
        """
        Upload a file to MinIO/S3.

        Args:
            path: Object key inside the configured bucket
            file_content: File content as bytes
            content_type: MIME type

        Returns:
            UploadResult with file path and public URL
        """
        try:
            key = self._normalize_path(path)
            s3 = await self._get_client()
            await s3.put_object(
                Bucket=self.config.bucket_name,
                Key=key,
                Body=file_content,
                ContentType=content_type,
            )

            public_url = self.get_public_url(key)
            log.info(f"File uploaded: {key} -> {public_url}")

            return UploadResult(
                success=True,
                file_path=key,
                public_url=public_url,
            )

        except ClientError as e:
            log.error(f"S3 client error uploading {path}: {e}")
            return UploadResult(success=False, error=str(e))
        except (BotoCoreError, ValueError) as e:
            log.error(f"Failed to upload {path}: {e}", exc_info=True)
            return UploadResult(success=False, error=str(e))

    def get_public_url(self, path: str) -> str:
        """Get public URL for an object key"""
        return f"{self.config.public_url.rstrip('/')}/{self._normalize_path(path)}"

    async def ensure_bucket(self, public_read: bool = True) -> bool:
        """
        Create the bucket if it does not exist.

        Uploaded media is linked by plain URL, so the bucket gets an
        anonymous s3:GetObject policy unless ``public_read`` is False.

        Returns:
            True if the bucket was created
        """
        bucket = self.config.bucket_name
        s3 = await self._get_client()

        created = False
        try:
            await s3.head_bucket(Bucket=bucket)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") not in ("404", "NoSuchBucket", "NotFound"):
                raise
            await s3.create_bucket(Bucket=bucket)
            created = True
            log.info(f"Bucket '{bucket}' created")

        if public_read:
            policy = {
                "Version": "2012-10-17",
                "Statement": [
                    {
                        "Effect": "Allow",
                        "Principal": "*",
                        "Action": ["s3:GetObject"],
                        "Resource": [f"arn:aws:s3:::{bucket}/*"],
                    }
                ],
            }
            await s3.put_bucket_policy(Bucket=bucket, Policy=json.dumps(policy))
            log.info(f"Public read policy set on '{bucket}'")

        return created
