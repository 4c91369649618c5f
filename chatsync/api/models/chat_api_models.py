# =============================================================================
#  File: chatsync/api/models/chat_api_models.py
#  chatsync API Models - Chat
# =============================================================================
#  Request bodies for the chat endpoints. Responses reuse the stored
#  records (Message, ContactSummary) and are serialized camelCase.
# =============================================================================

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from chatsync.chat.enums import MessageKind
from chatsync.chat.value_objects import MessageReply


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReplyRequest(ApiModel):
    """The message being replied to, as the composing client sees it"""
    text: str
    kind: MessageKind = MessageKind.TEXT
    is_me: bool = Field(..., description="True when the replied-to message is the composer's own")

    def to_reply(self) -> MessageReply:
        return MessageReply(text=self.text, kind=self.kind, is_me=self.is_me)


class SendTextRequest(ApiModel):
    text: str = Field(..., min_length=1)
    reply: Optional[ReplyRequest] = None


class SendGifRequest(ApiModel):
    gif_url: str = Field(..., min_length=1)
    reply: Optional[ReplyRequest] = None


class SeenResponse(ApiModel):
    message_id: str
    is_seen: bool = True


class WriteFailureResponse(BaseModel):
    """Body of a 503 raised by a failed double write"""
    detail: str
    operation: str
    partial: bool
    failed_paths: List[str] = Field(default_factory=list)
    written_paths: List[str] = Field(default_factory=list)


def reply_from_form(
    text: Optional[str],
    kind: Optional[MessageKind],
    is_me: Optional[bool],
) -> Optional[MessageReply]:
    """Build a MessageReply from flat multipart form fields"""
    if text is None:
        return None
    return MessageReply(text=text, kind=kind or MessageKind.TEXT, is_me=bool(is_me))
