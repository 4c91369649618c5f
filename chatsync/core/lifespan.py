# chatsync/core/lifespan.py
# =============================================================================
# File: chatsync/core/lifespan.py
# Description: Application lifespan management (startup/shutdown)
# =============================================================================

import asyncio
from contextlib import asynccontextmanager

from chatsync.chat.sync_engine import ChatSyncEngine
from chatsync.config.chat_config import get_chat_config
from chatsync.config.logging_config import get_logger
from chatsync.config.redis_config import get_redis_config
from chatsync.config.storage_config import get_storage_config
from chatsync.core import __version__
from chatsync.core.app_state import AppState
from chatsync.core.fastapi_types import FastAPI
from chatsync.infra.document_store.redis_document_store import RedisDocumentStore
from chatsync.infra.persistence.redis_client import close_redis_client, init_redis_client
from chatsync.infra.read_repos.user_read_repo import DocumentUserDirectory
from chatsync.infra.storage import MinIOStorageProvider, create_storage_provider

logger = get_logger("chatsync.lifespan")


async def initialize_infrastructure(app_instance: FastAPI) -> None:
    """Redis-backed document store and the configured blob store"""
    redis_config = get_redis_config()
    client = await init_redis_client(redis_config)

    app_instance.state.redis_client = client
    app_instance.state.document_store = RedisDocumentStore(client, redis_config)
    storage_config = get_storage_config()
    storage = create_storage_provider(storage_config)
    if isinstance(storage, MinIOStorageProvider) and storage_config.auto_create_bucket:
        await storage.ensure_bucket()
    app_instance.state.storage = storage
    logger.info(f"Storage provider: {type(app_instance.state.storage).__name__}")


def initialize_chat_engine(app_instance: FastAPI) -> None:
    state = app_instance.state
    state.user_directory = DocumentUserDirectory(state.document_store)
    state.chat_engine = ChatSyncEngine(
        store=state.document_store,
        blob_store=state.storage,
        users=state.user_directory,
        config=get_chat_config(),
    )
    logger.info(f"Chat engine ready (consistency_mode={state.chat_engine.consistency_mode.value})")


async def shutdown_infrastructure(app_instance: FastAPI) -> None:
    state = app_instance.state
    if state.storage is not None:
        await state.storage.close()
    await close_redis_client(state.redis_client)


# =============================================================================
# LIFESPAN (Startup/Shutdown)
# =============================================================================
@asynccontextmanager
async def lifespan(app_instance: FastAPI):
    """Application lifespan manager with structured initialization"""

    logger.info(f"chatsync {__version__} API starting up...")

    app_instance.state = AppState()

    try:
        # Phase 1: Infrastructure
        logger.info("Phase 1: Initializing infrastructure...")
        await initialize_infrastructure(app_instance)

        # Phase 2: Chat core
        logger.info("Phase 2: Initializing chat engine...")
        initialize_chat_engine(app_instance)

        logger.info(f"chatsync v{__version__} ready to serve requests")

        yield

    except Exception as startup_error:
        logger.error(f"Critical error during startup: {startup_error}", exc_info=True)
        raise

    finally:
        logger.info(f"chatsync v{__version__} API shutting down...")
        try:
            async with asyncio.timeout(30.0):
                await shutdown_infrastructure(app_instance)
            logger.info(f"chatsync v{__version__} API stopped gracefully")
        except TimeoutError:
            logger.error("Shutdown timed out after 30s, forcing exit")
