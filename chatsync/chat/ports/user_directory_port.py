# =============================================================================
# File: chatsync/chat/ports/user_directory_port.py
# Description: Port interface for identity/profile lookups
# Pattern: Hexagonal Architecture / Ports & Adapters
# =============================================================================

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from chatsync.chat.read_models import User


@runtime_checkable
class UserDirectoryPort(Protocol):
    """
    Port: User Directory (read-only)

    Defined by: Chat Domain
    Implemented by: DocumentUserDirectory (chatsync/infra/read_repos/user_read_repo.py)
    """

    async def get_user(self, user_id: str) -> Optional['User']:
        """Return the user profile, or None when no record exists."""
        ...
