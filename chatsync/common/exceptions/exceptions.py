# chatsync/common/exceptions/exceptions.py
# =============================================================================
# Custom exceptions for chatsync
# =============================================================================


class ChatSyncException(Exception):
    """Base exception for chatsync"""
    pass


class NotFoundError(ChatSyncException):
    """Raised when a resource is not found"""
    pass


class DomainError(ChatSyncException):
    """Raised for domain-specific errors"""
    pass


class InfrastructureError(ChatSyncException):
    """Raised for infrastructure errors"""
    pass


class StoreError(InfrastructureError):
    """Raised when a document store operation fails"""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path


class StoreConnectionError(StoreError):
    """Connection to the document store was lost or could not be opened"""
    pass


class DocumentNotFoundError(StoreError):
    """Partial update targeted a document that does not exist"""

    def __init__(self, path: str):
        super().__init__(f"Document not found: {path}", path=path)
