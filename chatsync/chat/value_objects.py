# =============================================================================
# File: chatsync/chat/value_objects.py
# Description: Chat domain value objects
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from chatsync.chat.enums import MessageKind

if TYPE_CHECKING:
    from chatsync.chat.read_models import Message

MEDIA_KINDS = ("image", "video", "audio", "gif", "file")


class TextContent(BaseModel):
    """Plain text payload"""
    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = "text"
    text: str = Field(min_length=1)

    @property
    def message_kind(self) -> MessageKind:
        return MessageKind.TEXT

    @property
    def payload(self) -> str:
        return self.text


class MediaContent(BaseModel):
    """Media payload referenced by its blob store URL"""
    model_config = ConfigDict(frozen=True)

    kind: Literal["image", "video", "audio", "gif", "file"]
    url: str = Field(min_length=1)

    @property
    def message_kind(self) -> MessageKind:
        return MessageKind(self.kind)

    @property
    def payload(self) -> str:
        return self.url


MessageContent = Annotated[Union[TextContent, MediaContent], Field(discriminator="kind")]


def media_content(kind: MessageKind, url: str) -> MediaContent:
    """Build a MediaContent for a media kind"""
    return MediaContent(kind=MessageKind(kind).value, url=url)


@dataclass(frozen=True)
class MessageReply:
    """
    Value Object: the message being replied to while composing.

    Transient. Only used to fill the reply fields of a new Message.
    """
    text: str
    kind: MessageKind
    is_me: bool  # True when the replied-to message was sent by the composing user

    @classmethod
    def from_message(cls, message: 'Message', current_user_id: str) -> 'MessageReply':
        """Build a reply to ``message`` as seen by ``current_user_id``"""
        return cls(
            text=message.payload,
            kind=message.kind,
            is_me=message.sender_id == current_user_id,
        )


class ReplyReference(BaseModel):
    """Replied-to fields persisted on a Message"""
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    text: str
    author: str
    kind: MessageKind = MessageKind.TEXT

    @classmethod
    def from_reply(
        cls,
        reply: Optional[MessageReply],
        sender_name: str,
        receiver_name: str,
    ) -> Optional['ReplyReference']:
        """
        Resolve a composing-time reply into its stored form.

        The author label is the sender's name when the replied-to message
        was the sender's own, otherwise the receiver's name.
        """
        if reply is None:
            return None
        return cls(
            text=reply.text,
            author=sender_name if reply.is_me else receiver_name,
            kind=reply.kind,
        )
