# =============================================================================
# File: chatsync/config/redis_config.py
# Description: Configuration for the Redis-backed document store
# =============================================================================

import socket
from functools import lru_cache
from typing import Any, Dict

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from chatsync.common.base.base_config import BaseConfig, BASE_CONFIG_DICT


class RedisConfig(BaseConfig):
    """
    Configuration for the Redis client backing the document store.

    This configuration controls:
    - Connection settings
    - Key namespacing
    - Collection watch polling
    """

    model_config = SettingsConfigDict(
        **BASE_CONFIG_DICT,
        env_prefix='REDIS_',
    )

    # =========================================================================
    # Connection Settings
    # =========================================================================

    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL"
    )

    max_connections: int = Field(
        default=50,
        description="Maximum number of connections in the pool"
    )

    socket_timeout: float = Field(
        default=15.0,
        description="Socket timeout in seconds"
    )

    socket_connect_timeout: float = Field(
        default=5.0,
        description="Socket connection timeout in seconds"
    )

    socket_keepalive: bool = Field(
        default=True,
        description="Enable TCP keepalive"
    )

    socket_keepalive_interval: int = Field(
        default=60,
        description="TCP keepalive interval in seconds"
    )

    # =========================================================================
    # Document Store Layout
    # =========================================================================

    key_prefix: str = Field(
        default="chatsync:",
        description="Prefix for every document, index and change-channel key"
    )

    watch_poll_interval: float = Field(
        default=1.0,
        description="Seconds to block on the change channel per poll"
    )

    def get_connection_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for redis.asyncio.from_url"""
        return {
            "decode_responses": True,
            "max_connections": self.max_connections,
            "socket_timeout": self.socket_timeout,
            "socket_connect_timeout": self.socket_connect_timeout,
            "socket_keepalive": self.socket_keepalive,
        }

    def get_socket_keepalive_options(self) -> Dict[int, int]:
        """Platform-specific TCP keepalive options"""
        opts = {}
        if hasattr(socket, "TCP_KEEPIDLE"):
            opts[socket.TCP_KEEPIDLE] = self.socket_keepalive_interval
        if hasattr(socket, "TCP_KEEPINTVL"):
            opts[socket.TCP_KEEPINTVL] = max(1, self.socket_keepalive_interval // 3)
        if hasattr(socket, "TCP_KEEPCNT"):
            opts[socket.TCP_KEEPCNT] = 3
        return opts


@lru_cache(maxsize=1)
def get_redis_config() -> RedisConfig:
    """Get Redis configuration singleton (cached)."""
    return RedisConfig()


def reset_redis_config() -> None:
    """Reset config singleton (for testing)."""
    get_redis_config.cache_clear()
