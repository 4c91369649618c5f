# chatsync/core/exceptions.py
# =============================================================================
# File: chatsync/core/exceptions.py
# Description: Exception handlers for FastAPI application
# =============================================================================

import os

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from starlette import status
from starlette.responses import JSONResponse

from chatsync.chat.exceptions import (
    ChatValidationError,
    MalformedRecordError,
    UploadFailureError,
    WriteFailureError,
)
from chatsync.common.exceptions.exceptions import NotFoundError, StoreError
from chatsync.config.logging_config import get_logger
from chatsync.core.fastapi_types import FastAPI

logger = get_logger("chatsync.exceptions")


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application"""

    app.add_exception_handler(NotFoundError, not_found_exception_handler)
    app.add_exception_handler(ChatValidationError, chat_validation_exception_handler)
    app.add_exception_handler(UploadFailureError, upload_failure_exception_handler)
    app.add_exception_handler(WriteFailureError, write_failure_exception_handler)
    app.add_exception_handler(StoreError, store_exception_handler)
    app.add_exception_handler(MalformedRecordError, malformed_record_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    logger.info("Exception handlers registered")


async def not_found_exception_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    logger.info(f"Not found on path {request.url.path}: {exc}")
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


async def chat_validation_exception_handler(request: Request, exc: ChatValidationError) -> JSONResponse:
    logger.warning(f"Rejected input on path {request.url.path}: {exc}")
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


async def upload_failure_exception_handler(request: Request, exc: UploadFailureError) -> JSONResponse:
    """Blob store refused the file; nothing was written"""
    logger.error(f"Upload failed on path {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": str(exc), "path": exc.path},
    )


async def write_failure_exception_handler(request: Request, exc: WriteFailureError) -> JSONResponse:
    """
    Document writes failed.

    The body tells the client whether one copy already landed so it can
    decide whether to retry the whole operation.
    """
    logger.error(f"Write failure on path {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "detail": str(exc),
            "operation": exc.operation,
            "partial": exc.partial,
            "failed_paths": list(exc.failed_paths),
            "written_paths": list(exc.written_paths),
        },
    )


async def store_exception_handler(request: Request, exc: StoreError) -> JSONResponse:
    logger.error(f"Store error on path {request.url.path}: {exc}")
    return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content={"detail": str(exc)})


async def malformed_record_exception_handler(request: Request, exc: MalformedRecordError) -> JSONResponse:
    logger.error(f"Malformed record on path {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc), "path": exc.path},
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request validation errors"""
    logger.warning(f"Validation error on path {request.url.path}: {exc.errors()}")

    errors = []
    for error in exc.errors():
        error_dict = {
            "loc": error["loc"],
            "msg": error["msg"],
            "type": error["type"],
        }
        if "ctx" in error:
            error_dict["ctx"] = {
                key: str(value) if isinstance(value, Exception) else value
                for key, value in error["ctx"].items()
            }
        errors.append(error_dict)

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": errors},
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle general unhandled exceptions"""
    logger.error(f"Unhandled exception on path {request.url.path}: {str(exc)}", exc_info=True)

    if os.getenv("ENVIRONMENT", "development") == "production":
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "An internal server error occurred."}
        )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc), "type": type(exc).__name__}
    )
