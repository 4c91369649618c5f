# =============================================================================
# File: chatsync/chat/document_paths.py
# Description: Document and blob path layout for the chat domain
# =============================================================================
"""
Logical layout of chat data in the document store:

    users/{userId}                                        -> User
    users/{userId}/chats/{counterpartId}                  -> ContactSummary
    users/{userId}/chats/{counterpartId}/messages/{msgId} -> Message

Uploaded media lives in the blob store under:

    chat/{kind}/{senderId}/{receiverId}/{messageId}
"""

from __future__ import annotations

from chatsync.chat.enums import MessageKind
from chatsync.chat.exceptions import ChatValidationError

USERS_COLLECTION = "users"
CHATS_COLLECTION = "chats"
MESSAGES_COLLECTION = "messages"


def validate_segment(value: str, name: str = "identifier") -> str:
    """Reject identifiers that would break the path layout"""
    if not isinstance(value, str) or not value:
        raise ChatValidationError(f"{name} must be a non-empty string")
    if "/" in value:
        raise ChatValidationError(f"{name} must not contain '/': {value!r}")
    return value


def user_path(user_id: str) -> str:
    return f"{USERS_COLLECTION}/{validate_segment(user_id, 'user_id')}"


def contacts_collection(user_id: str) -> str:
    return f"{user_path(user_id)}/{CHATS_COLLECTION}"


def contact_path(user_id: str, counterpart_id: str) -> str:
    return f"{contacts_collection(user_id)}/{validate_segment(counterpart_id, 'counterpart_id')}"


def messages_collection(user_id: str, counterpart_id: str) -> str:
    return f"{contact_path(user_id, counterpart_id)}/{MESSAGES_COLLECTION}"


def message_path(user_id: str, counterpart_id: str, message_id: str) -> str:
    return f"{messages_collection(user_id, counterpart_id)}/{validate_segment(message_id, 'message_id')}"


def blob_path(kind: MessageKind, sender_id: str, receiver_id: str, message_id: str) -> str:
    return (
        f"chat/{kind.value}/{validate_segment(sender_id, 'sender_id')}/"
        f"{validate_segment(receiver_id, 'receiver_id')}/{validate_segment(message_id, 'message_id')}"
    )


def split_path(path: str) -> tuple[str, str]:
    """Split a document path into (collection path, document id)"""
    collection, _, doc_id = path.rpartition("/")
    if not collection or not doc_id:
        raise ValueError(f"Not a document path: {path!r}")
    return collection, doc_id
