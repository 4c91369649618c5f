# chatsync/server.py
# =============================================================================
# File: chatsync/server.py
# Description: Main FastAPI application entry point
# =============================================================================

from __future__ import annotations

import os

from dotenv import load_dotenv

from chatsync.config.logging_config import get_logger, setup_logging
from chatsync.core import __version__
from chatsync.core.exceptions import setup_exception_handlers
from chatsync.core.fastapi_types import FastAPI
from chatsync.core.lifespan import lifespan
from chatsync.core.middleware import setup_middleware
from chatsync.core.routes import setup_routes

# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================
# .env values become visible to os.getenv
load_dotenv()

setup_logging(
    service_name="api",
    log_file=os.getenv("LOG_FILE") or None,
    enable_json=os.getenv("ENVIRONMENT") == "production",
)

logger = get_logger("chatsync.server")


def create_app(with_lifespan: bool = True) -> FastAPI:
    """Build the application; tests pass ``with_lifespan=False`` and fill app.state themselves"""
    application = FastAPI(
        title=f"chatsync API v{__version__}",
        version=__version__,
        lifespan=lifespan if with_lifespan else None,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json"
    )

    setup_middleware(application)
    setup_routes(application)
    setup_exception_handlers(application)
    return application


# =============================================================================
# FASTAPI APP
# =============================================================================
app = create_app()

__all__ = ["app", "create_app", "__version__"]

# =============================================================================
# Development entry point
# =============================================================================
if __name__ == "__main__":
    import subprocess

    port = os.getenv("PORT", "5001")
    host = os.getenv("HOST", "0.0.0.0")
    reload = os.getenv("RELOAD", "true").lower() == "true"

    logger.info(f"Starting chatsync API on {host}:{port} (reload={reload})")

    cmd = [
        "granian",
        "--interface", "asgi",
        "chatsync.server:app",
        "--host", host,
        "--port", str(port),
    ]

    if reload:
        cmd.extend(["--reload", "--reload-paths", "chatsync/"])

    subprocess.run(cmd)
