# =============================================================================
# File: chatsync/infra/persistence/redis_client.py
# Description: Async Redis client construction and lifecycle
# =============================================================================

from __future__ import annotations

from typing import Any, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from chatsync.config.logging_config import get_logger
from chatsync.config.redis_config import RedisConfig, get_redis_config

log = get_logger("chatsync.infra.redis_client")


def build_redis_client(config: Optional[RedisConfig] = None, **kwargs: Any) -> redis.Redis:
    """Build Redis client from RedisConfig (keyword arguments override)"""
    config = config or get_redis_config()
    opts = config.get_connection_kwargs()

    if config.socket_keepalive:
        keepalive_opts = config.get_socket_keepalive_options()
        if keepalive_opts:
            opts["socket_keepalive_options"] = keepalive_opts

    opts.update(kwargs)
    return redis.from_url(config.redis_url, **opts)


async def init_redis_client(config: Optional[RedisConfig] = None, **kwargs: Any) -> redis.Redis:
    """Build a client and verify it with PING."""
    client = build_redis_client(config, **kwargs)
    try:
        await client.ping()
    except (RedisError, OSError) as e:
        log.error(f"Failed to initialize Redis client: {e}")
        await client.aclose()
        raise
    log.info("Redis client initialized and ping OK.")
    return client


async def close_redis_client(client: Optional[redis.Redis]) -> None:
    if client is None:
        return
    try:
        await client.aclose()
        log.info("Redis client closed.")
    except (RedisError, OSError) as e:
        log.warning(f"Error closing Redis client: {e}", exc_info=True)
