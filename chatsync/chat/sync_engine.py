# =============================================================================
# File: chatsync/chat/sync_engine.py
# Description: Two-party message delivery and contact-list synchronisation
# =============================================================================
"""
ChatSyncEngine - the chat core.

Every message is stored twice, once in each participant's log:

    users/{A}/chats/{B}/messages/{id}
    users/{B}/chats/{A}/messages/{id}

and every send refreshes both participants' contact summaries:

    users/{A}/chats/{B}   (what A sees about B)
    users/{B}/chats/{A}   (what B sees about A)

Send flow:
    resolve receiver -> generate id -> sync contact summaries -> persist message

File sends upload the payload first; a failed upload stops the send before
any document is written.

Double writes follow ChatSyncConfig.consistency_mode:
    best_effort  two single-document writes issued back to back. A failure
                 after the first write leaves one copy in place and is
                 reported as a partial WriteFailureError (no rollback)
    batched      one commit_batch; either both copies land or neither does

The engine never retries. Re-running persist_message or a whole send with
the same message id overwrites the same documents, so callers may retry.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, List, Optional, Sequence

from chatsync.chat.document_paths import (
    blob_path,
    contact_path,
    contacts_collection,
    message_path,
    messages_collection,
    validate_segment,
)
from chatsync.chat.enums import ConsistencyMode, MessageKind
from chatsync.chat.exceptions import (
    ChatValidationError,
    UploadFailureError,
    UserNotFoundError,
    WriteFailureError,
)
from chatsync.chat.ports import (
    BlobStorePort,
    DocumentSnapshot,
    DocumentStorePort,
    DocumentWrite,
    UserDirectoryPort,
    WriteOp,
)
from chatsync.chat.read_models import ContactSummary, Message, User
from chatsync.chat.subscriptions import ReconnectPolicy, Subscription, decode_records
from chatsync.chat.value_objects import (
    MediaContent,
    MessageContent,
    MessageReply,
    ReplyReference,
    TextContent,
    media_content,
)
from chatsync.common.base.base_storage_provider import DEFAULT_CONTENT_TYPE
from chatsync.common.exceptions.exceptions import StoreError
from chatsync.config.chat_config import ChatSyncConfig, get_chat_config
from chatsync.config.logging_config import get_logger
from chatsync.infra.persistence.snowflake import SnowflakeIDGenerator
from chatsync.utils.datetime_utils import ensure_utc, utc_now

log = get_logger("chatsync.chat.sync_engine")


def _decode_contact(doc: DocumentSnapshot) -> ContactSummary:
    return ContactSummary.from_document(doc.data, doc.path)


def _decode_message(doc: DocumentSnapshot) -> Message:
    return Message.from_document(doc.data, doc.path)


def _chronological(messages: List[Message]) -> List[Message]:
    return sorted(messages, key=Message.sort_key)


class ChatSyncEngine:
    """
    Stateless chat operations over the document, blob and user stores.

    Apart from the id generator, no state is shared between calls, so one
    engine may serve any number of concurrent operations.
    """

    def __init__(
        self,
        store: DocumentStorePort,
        blob_store: BlobStorePort,
        users: UserDirectoryPort,
        config: Optional[ChatSyncConfig] = None,
        id_generator: Optional[SnowflakeIDGenerator] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.config = config or get_chat_config()
        self._store = store
        self._blob_store = blob_store
        self._users = users
        self._ids = id_generator or SnowflakeIDGenerator(worker_id=self.config.snowflake_worker_id)
        self._clock = clock
        self._reconnect = ReconnectPolicy(
            initial_delay=self.config.reconnect_initial_delay,
            backoff_factor=self.config.reconnect_backoff_factor,
            max_delay=self.config.reconnect_max_delay,
            max_attempts=self.config.reconnect_max_attempts,
        )

    @property
    def consistency_mode(self) -> ConsistencyMode:
        return self.config.consistency_mode

    # =========================================================================
    # Reads
    # =========================================================================

    def subscribe_contacts(self, user_id: str) -> Subscription[ContactSummary]:
        """Live contact list of ``user_id``, one full snapshot per change."""
        collection = contacts_collection(user_id)
        return Subscription(
            f"contacts:{user_id}",
            lambda: self._store.watch_collection(collection),
            _decode_contact,
            reconnect=self._reconnect,
        )

    def subscribe_messages(self, user_id: str, counterpart_id: str) -> Subscription[Message]:
        """Live conversation as seen by ``user_id``, oldest message first."""
        collection = messages_collection(user_id, counterpart_id)
        return Subscription(
            f"messages:{user_id}:{counterpart_id}",
            lambda: self._store.watch_collection(collection),
            _decode_message,
            order=_chronological,
            reconnect=self._reconnect,
        )

    async def list_contacts(self, user_id: str) -> List[ContactSummary]:
        """One-shot contact list snapshot (malformed records skipped)"""
        collection = contacts_collection(user_id)
        snapshot = await self._store.list_documents(collection)
        return decode_records(collection, snapshot, _decode_contact)

    async def list_messages(self, user_id: str, counterpart_id: str) -> List[Message]:
        """One-shot conversation snapshot, oldest first"""
        collection = messages_collection(user_id, counterpart_id)
        snapshot = await self._store.list_documents(collection)
        return _chronological(decode_records(collection, snapshot, _decode_message))

    async def resolve_user(self, user_id: str) -> User:
        """
        Look up a profile.

        Raises:
            UserNotFoundError: no record for ``user_id``
            MalformedRecordError: the record exists but does not decode
        """
        validate_segment(user_id, "user_id")
        user = await self._users.get_user(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    # =========================================================================
    # Double-sided writes
    # =========================================================================

    async def sync_contact_summaries(
        self,
        sender: User,
        receiver: User,
        preview_text: str,
        sent_at: datetime,
    ) -> None:
        """
        Refresh both sides' contact summaries, receiver side first.

        Raises:
            WriteFailureError: listing any summary already written
        """
        sent_at = ensure_utc(sent_at)
        receiver_side = ContactSummary(
            contact_id=sender.uid,
            name=sender.name,
            profile_pic=sender.profile_pic,
            last_message=preview_text,
            time_sent=sent_at,
        )
        sender_side = ContactSummary(
            contact_id=receiver.uid,
            name=receiver.name,
            profile_pic=receiver.profile_pic,
            last_message=preview_text,
            time_sent=sent_at,
        )
        await self._write_pair(
            "sync_contact_summaries",
            [
                DocumentWrite(contact_path(receiver.uid, sender.uid), receiver_side.to_document()),
                DocumentWrite(contact_path(sender.uid, receiver.uid), sender_side.to_document()),
            ],
        )

    async def persist_message(
        self,
        sender_id: str,
        receiver_id: str,
        content: MessageContent,
        sent_at: datetime,
        message_id: str,
        reply: Optional[ReplyReference] = None,
    ) -> Message:
        """
        Write an unseen message to both logs, sender's first.

        Raises:
            WriteFailureError: ``partial`` is True when one copy landed
        """
        message = Message(
            message_id=validate_segment(message_id, "message_id"),
            sender_id=sender_id,
            receiver_id=receiver_id,
            content=content,
            time_sent=sent_at,
            is_seen=False,
            reply=reply,
        )
        data = message.to_document()
        await self._write_pair(
            "persist_message",
            [
                DocumentWrite(message_path(sender_id, receiver_id, message_id), data),
                DocumentWrite(message_path(receiver_id, sender_id, message_id), data),
            ],
        )
        return message

    async def mark_seen(self, user_id: str, counterpart_id: str, message_id: str) -> None:
        """
        Flag both copies of a message as seen.

        Marking an already-seen message again is a no-op. Both copies are
        attempted even if the first fails.

        Raises:
            WriteFailureError: a copy is missing or its write failed
        """
        seen = {"isSeen": True}
        await self._write_pair(
            "mark_seen",
            [
                DocumentWrite(message_path(user_id, counterpart_id, message_id), seen, WriteOp.UPDATE),
                DocumentWrite(message_path(counterpart_id, user_id, message_id), seen, WriteOp.UPDATE),
            ],
            attempt_all=True,
        )
        log.debug(f"Message {message_id} marked seen by {user_id}")

    async def _write_pair(
        self,
        operation: str,
        writes: Sequence[DocumentWrite],
        attempt_all: bool = False,
    ) -> None:
        if self.consistency_mode == ConsistencyMode.BATCHED:
            try:
                await self._store.commit_batch(writes)
            except StoreError as e:
                log.error(f"{operation}: batch of {len(writes)} writes failed: {e}")
                raise WriteFailureError(operation, [w.path for w in writes]) from e
            return

        written: List[str] = []
        failed: List[str] = []
        last_error: Optional[StoreError] = None

        for write in writes:
            try:
                if write.op == WriteOp.UPDATE:
                    await self._store.update_document(write.path, write.data)
                else:
                    await self._store.set_document(write.path, write.data)
            except StoreError as e:
                log.error(f"{operation}: write to {write.path} failed: {e}")
                failed.append(write.path)
                last_error = e
                if not attempt_all:
                    break
            else:
                written.append(write.path)

        if failed:
            raise WriteFailureError(operation, failed, written) from last_error

    # =========================================================================
    # Send orchestration
    # =========================================================================

    async def send_text_message(
        self,
        sender: User,
        receiver_id: str,
        text: str,
        reply: Optional[MessageReply] = None,
    ) -> Message:
        if not text:
            raise ChatValidationError("text must not be empty")

        receiver = await self.resolve_user(receiver_id)
        message_id = self._ids.generate_str()
        return await self._deliver(sender, receiver, message_id, TextContent(text=text), text, reply)

    async def send_gif_message(
        self,
        sender: User,
        receiver_id: str,
        gif_url: str,
        reply: Optional[MessageReply] = None,
    ) -> Message:
        if not gif_url:
            raise ChatValidationError("gif_url must not be empty")

        receiver = await self.resolve_user(receiver_id)
        message_id = self._ids.generate_str()
        content = MediaContent(kind=MessageKind.GIF.value, url=gif_url)
        return await self._deliver(sender, receiver, message_id, content, MessageKind.GIF.preview_label, reply)

    async def send_file_message(
        self,
        sender: User,
        receiver_id: str,
        file_content: bytes,
        kind: MessageKind,
        reply: Optional[MessageReply] = None,
        content_type: Optional[str] = None,
    ) -> Message:
        """
        Upload a media file and send it.

        The upload happens before anything else; if it fails no receiver
        lookup or document write is attempted.

        Raises:
            ChatValidationError: ``kind`` is not a media kind
            UploadFailureError: the blob store rejected the file
            UserNotFoundError: unknown receiver (the blob stays uploaded)
            WriteFailureError: a document write failed
        """
        try:
            kind = MessageKind(kind)
        except ValueError:
            raise ChatValidationError(f"Unknown message kind: {kind!r}") from None
        if not kind.is_media:
            raise ChatValidationError("File messages need a media kind, not text")

        message_id = self._ids.generate_str()
        path = blob_path(kind, sender.uid, receiver_id, message_id)

        result = await self._blob_store.upload_file(path, file_content, content_type or DEFAULT_CONTENT_TYPE)
        if not result.success or not result.public_url:
            raise UploadFailureError(path, result.error)

        receiver = await self.resolve_user(receiver_id)
        content = media_content(kind, result.public_url)
        return await self._deliver(sender, receiver, message_id, content, kind.preview_label, reply)

    async def _deliver(
        self,
        sender: User,
        receiver: User,
        message_id: str,
        content: MessageContent,
        preview_text: str,
        reply: Optional[MessageReply],
    ) -> Message:
        sent_at = self._clock()
        await self.sync_contact_summaries(sender, receiver, preview_text, sent_at)

        message = await self.persist_message(
            sender.uid,
            receiver.uid,
            content,
            sent_at,
            message_id,
            reply=ReplyReference.from_reply(reply, sender.name, receiver.name),
        )
        log.info(f"Message {message_id} ({message.kind.value}) sent from {sender.uid} to {receiver.uid}")
        return message
