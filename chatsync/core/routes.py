# chatsync/core/routes.py
# =============================================================================
# File: chatsync/core/routes.py
# Description: Route registration for FastAPI application
# =============================================================================

from fastapi.staticfiles import StaticFiles

from chatsync.api.routers.chat_router import router as chat_router
from chatsync.config.logging_config import get_logger
from chatsync.config.storage_config import StorageProvider, get_storage_config
from chatsync.core.fastapi_types import FastAPI
from chatsync.core.health import register_health_endpoints

logger = get_logger("chatsync.routes")


def setup_routes(app: FastAPI) -> None:
    """Register all routers with the FastAPI application"""

    app.include_router(chat_router, tags=["Chat"])
    register_health_endpoints(app)
    mount_local_storage(app)

    logger.info("Routers registered")


def mount_local_storage(app: FastAPI) -> None:
    """Serve locally stored uploads when the local storage provider is active"""
    config = get_storage_config()
    if config.provider != StorageProvider.LOCAL:
        return

    app.mount(
        config.local_url,
        StaticFiles(directory=config.local_path, check_dir=False),
        name="storage",
    )
    logger.info(f"Local storage served from {config.local_url}")
