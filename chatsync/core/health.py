# chatsync/core/health.py
# =============================================================================
# File: chatsync/core/health.py
# Description: Health check endpoints for the application
# =============================================================================

from datetime import datetime, timezone
from typing import Any, Dict

from redis.exceptions import RedisError

from chatsync.config.logging_config import get_logger
from chatsync.core import __version__
from chatsync.core.app_state import get_start_time
from chatsync.core.fastapi_types import FastAPI

logger = get_logger("chatsync.health")


def register_health_endpoints(app: FastAPI) -> None:
    """Register health check endpoints directly on the app"""

    @app.get("/health", tags=["System"])
    async def health_check() -> Dict[str, Any]:
        return await get_health_status(app)


async def get_health_status(app: FastAPI) -> Dict[str, Any]:
    """Redis reachability plus which backends are wired"""
    redis_status = "disabled"
    client = getattr(app.state, "redis_client", None)
    if client is not None:
        try:
            await client.ping()
            redis_status = "ok"
        except (RedisError, OSError) as e:
            logger.warning(f"Health check: Redis ping failed: {e}")
            redis_status = "unreachable"

    engine = getattr(app.state, "chat_engine", None)
    storage = getattr(app.state, "storage", None)

    return {
        "status": "healthy" if redis_status == "ok" else "degraded",
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime_seconds": (datetime.now(timezone.utc) - get_start_time()).total_seconds(),
        "redis": redis_status,
        "storage": type(storage).__name__ if storage else "disabled",
        "consistency_mode": engine.consistency_mode.value if engine else None,
    }
