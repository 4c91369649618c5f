# =============================================================================
# File: chatsync/config/chat_config.py
# Description: Chat sync engine configuration
# =============================================================================

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from chatsync.chat.enums import ConsistencyMode
from chatsync.common.base.base_config import BaseConfig, BASE_CONFIG_DICT


class ChatSyncConfig(BaseConfig):
    """
    Configuration for the chat sync engine.

    Controls how double-sided writes are issued and how live
    subscriptions recover from dropped store connections.
    """

    model_config = SettingsConfigDict(
        **BASE_CONFIG_DICT,
        env_prefix='CHAT_',
    )

    consistency_mode: ConsistencyMode = Field(
        default=ConsistencyMode.BEST_EFFORT,
        description="best_effort: two independent writes; batched: one atomic batch",
    )

    # Subscription reconnection
    reconnect_initial_delay: float = Field(default=1.0, ge=0, description="First reconnect delay (seconds)")
    reconnect_backoff_factor: float = Field(default=1.5, ge=1.0, description="Delay multiplier per failed attempt")
    reconnect_max_delay: float = Field(default=60.0, ge=0, description="Upper bound for reconnect delay (seconds)")
    reconnect_max_attempts: int = Field(
        default=0,
        ge=0,
        description="Consecutive failed reconnects before the error surfaces (0 = unlimited)",
    )

    # Message id generation
    snowflake_worker_id: Optional[int] = Field(
        default=None,
        ge=0,
        le=1023,
        description="Snowflake worker id; derived from host when unset",
    )


@lru_cache(maxsize=1)
def get_chat_config() -> ChatSyncConfig:
    """Get chat sync configuration singleton (cached)."""
    return ChatSyncConfig()


def reset_chat_config() -> None:
    """Reset config singleton (for testing)."""
    get_chat_config.cache_clear()
