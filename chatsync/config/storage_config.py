# =============================================================================
# File: chatsync/config/storage_config.py
# Description: Blob storage configuration (MinIO/S3 or local directory)
# =============================================================================

from enum import Enum
from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import SettingsConfigDict

from chatsync.common.base.base_config import BaseConfig, BASE_CONFIG_DICT


class StorageProvider(str, Enum):
    """Blob storage backends"""
    MINIO = "minio"
    LOCAL = "local"


class StorageConfig(BaseConfig):
    """
    Storage configuration for uploaded chat media.
    """

    model_config = SettingsConfigDict(
        **BASE_CONFIG_DICT,
        env_prefix='STORAGE_',
    )

    provider: StorageProvider = Field(default=StorageProvider.MINIO, description="Storage backend")

    # MinIO / S3
    endpoint_url: str = Field(default="http://localhost:9000", description="MinIO/S3 endpoint")
    access_key: SecretStr = Field(default=SecretStr("minioadmin"), description="Access key")
    secret_key: SecretStr = Field(default=SecretStr("minioadmin"), description="Secret key")
    region: str = Field(default="us-east-1", description="AWS region")
    bucket_name: str = Field(default="chatsync", description="Bucket name")
    public_url: str = Field(default="http://localhost:9000/chatsync", description="Public URL")
    auto_create_bucket: bool = Field(
        default=False,
        description="Create the bucket with a public-read policy at startup if it is missing",
    )

    # Local directory (development)
    local_path: str = Field(default="storage", description="Root directory for the local adapter")
    local_url: str = Field(default="/static/storage", description="URL prefix for the local adapter")

    # Performance settings
    connect_timeout: int = Field(default=5, description="Connection timeout (seconds)")
    read_timeout: int = Field(default=30, description="Read timeout (seconds)")
    max_pool_connections: int = Field(default=25, description="Max connection pool size")
    max_attempts: int = Field(default=3, description="botocore standard-mode attempts per request")

    def get_access_key(self) -> str:
        """Get access key as plain string"""
        return self.access_key.get_secret_value()

    def get_secret_key(self) -> str:
        """Get secret key as plain string"""
        return self.secret_key.get_secret_value()


@lru_cache(maxsize=1)
def get_storage_config() -> StorageConfig:
    """Get storage configuration singleton (cached)."""
    return StorageConfig()


def reset_storage_config() -> None:
    """Reset config singleton (for testing)."""
    get_storage_config.cache_clear()
