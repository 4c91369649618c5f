# chatsync/core/middleware.py
# =============================================================================
# File: chatsync/core/middleware.py
# Description: Middleware configuration for FastAPI application
# =============================================================================

import os

from fastapi.middleware.cors import CORSMiddleware

from chatsync.config.logging_config import get_logger
from chatsync.core.fastapi_types import FastAPI

logger = get_logger("chatsync.middleware")


def setup_middleware(app: FastAPI) -> None:
    """Configure all middleware for the FastAPI application"""
    setup_cors(app)


def setup_cors(app: FastAPI) -> None:
    cors_origins = os.getenv(
        "CORS_ALLOWED_ORIGINS",
        "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000,http://127.0.0.1:3000"
    )
    allowed_origins = [origin.strip() for origin in cors_origins.split(",")]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=3600,
    )

    logger.info(f"CORS configured with allowed origins: {allowed_origins}")
