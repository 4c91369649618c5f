# =============================================================================
# File: chatsync/chat/read_models.py
# Description: Chat domain records as stored in the document store
# =============================================================================

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from chatsync.chat.enums import MessageKind
from chatsync.chat.exceptions import MalformedRecordError
from chatsync.chat.value_objects import MessageContent, ReplyReference
from chatsync.utils.datetime_utils import ensure_utc


class DocumentModel(BaseModel):
    """Base for records stored as camelCase documents"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")

    @classmethod
    def from_document(cls, data: Optional[Dict[str, Any]], path: str):
        """Decode a stored document, raising MalformedRecordError on bad shape"""
        if not isinstance(data, dict):
            raise MalformedRecordError(path, "document is empty or not an object")
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) or "<root>" for err in e.errors())
            raise MalformedRecordError(path, f"invalid fields: {fields}") from e


class User(DocumentModel):
    """Profile record at users/{uid}"""
    uid: str
    name: str
    profile_pic: str = ""
    status: str = ""
    is_online: bool = False
    phone_number: Optional[str] = None


class ContactSummary(DocumentModel):
    """One user's view of the latest state of a conversation"""
    contact_id: str
    name: str
    profile_pic: str = ""
    last_message: str
    time_sent: datetime

    @field_validator("time_sent")
    @classmethod
    def _utc_time_sent(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class Message(DocumentModel):
    """One message, stored identically under both participants"""
    message_id: str
    sender_id: str
    receiver_id: str
    content: MessageContent
    time_sent: datetime
    is_seen: bool = False
    reply: Optional[ReplyReference] = Field(default=None)

    @field_validator("time_sent")
    @classmethod
    def _utc_time_sent(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @property
    def kind(self) -> MessageKind:
        return self.content.message_kind

    @property
    def payload(self) -> str:
        return self.content.payload

    def sort_key(self) -> tuple:
        return (self.time_sent, self.message_id)
