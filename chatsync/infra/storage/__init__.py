# =============================================================================
# File: chatsync/infra/storage/__init__.py
# Description: Storage infrastructure module
# =============================================================================

from typing import Optional

from chatsync.common.base.base_storage_provider import BaseStorageProvider
from chatsync.config.storage_config import StorageConfig, StorageProvider, get_storage_config
from chatsync.infra.storage.local_adapter import LocalStorageAdapter
from chatsync.infra.storage.minio_provider import MinIOStorageProvider


def create_storage_provider(config: Optional[StorageConfig] = None) -> BaseStorageProvider:
    """Build the storage provider selected by STORAGE_PROVIDER"""
    config = config or get_storage_config()

    if config.provider == StorageProvider.LOCAL:
        return LocalStorageAdapter(base_path=config.local_path, base_url=config.local_url)
    return MinIOStorageProvider(config)


__all__ = [
    "LocalStorageAdapter",
    "MinIOStorageProvider",
    "create_storage_provider",
]
