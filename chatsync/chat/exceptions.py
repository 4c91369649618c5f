# =============================================================================
# File: chatsync/chat/exceptions.py
# Description: Chat domain exceptions
# =============================================================================

from typing import Optional, Sequence

from chatsync.common.exceptions.exceptions import DomainError, NotFoundError


class ChatError(DomainError):
    """Base exception for Chat domain"""
    pass


class ChatValidationError(ChatError):
    """Input rejected before any I/O was issued"""
    pass


class UserNotFoundError(NotFoundError):
    """User record missing from the profile store"""
    def __init__(self, user_id: str):
        super().__init__(f"User not found: {user_id}")
        self.user_id = user_id


class UploadFailureError(ChatError):
    """Blob store rejected an upload"""
    def __init__(self, path: str, reason: Optional[str] = None):
        super().__init__(f"Upload to {path} failed: {reason or 'unknown error'}")
        self.path = path
        self.reason = reason


class WriteFailureError(ChatError):
    """
    One or more document writes of a double-sided operation failed.

    Writes that already succeeded are listed in ``written_paths`` and are
    not rolled back.
    """
    def __init__(
        self,
        operation: str,
        failed_paths: Sequence[str],
        written_paths: Sequence[str] = (),
    ):
        self.operation = operation
        self.failed_paths = tuple(failed_paths)
        self.written_paths = tuple(written_paths)

        message = f"{operation} failed writing {', '.join(self.failed_paths)}"
        if self.written_paths:
            message += f" (already written: {', '.join(self.written_paths)})"
        super().__init__(message)

    @property
    def partial(self) -> bool:
        """True when at least one copy was written before the failure"""
        return bool(self.written_paths)


class MalformedRecordError(ChatError):
    """Stored document is missing fields or has invalid values"""
    def __init__(self, path: str, reason: str):
        super().__init__(f"Malformed record at {path}: {reason}")
        self.path = path
        self.reason = reason
