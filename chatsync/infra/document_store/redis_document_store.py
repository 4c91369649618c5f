# =============================================================================
# File: chatsync/infra/document_store/redis_document_store.py
# Description: Document store on Redis hashes with pub/sub change feeds
# =============================================================================
"""
RedisDocumentStore - DocumentStorePort on top of redis.asyncio

Key layout (``{p}`` is RedisConfig.key_prefix):

    {p}doc:{path}          HASH   one field per top-level document field,
                                  each value JSON-encoded
    {p}idx:{collection}    SET    ids of the documents in a collection
    {p}chg:{collection}    PUBSUB channel; the changed document id is
                                  published after every write

Atomicity:
    - every single-document write is one MULTI/EXEC transaction
      (data + index + change notification)
    - update_document WATCHes the document so the existence check and the
      merge are atomic
    - commit_batch puts all writes in one MULTI/EXEC

Change feed:
    watch_collection subscribes to the collection channel BEFORE reading
    the first snapshot, so no write between the two is missed. Bursts of
    notifications are coalesced into one re-read.
"""

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence

import redis.asyncio as redis
from redis.exceptions import (
    ConnectionError as RedisConnectionError,
    RedisError,
    TimeoutError as RedisTimeoutError,
    WatchError,
)

from chatsync.chat.document_paths import split_path
from chatsync.chat.ports.document_store_port import DocumentSnapshot, DocumentWrite, WriteOp
from chatsync.common.exceptions.exceptions import (
    DocumentNotFoundError,
    StoreConnectionError,
    StoreError,
)
from chatsync.config.logging_config import get_logger
from chatsync.config.redis_config import RedisConfig, get_redis_config

log = get_logger("chatsync.infra.document_store.redis")


@asynccontextmanager
async def _translate_errors(operation: str, path: Optional[str] = None):
    """Map redis-py exceptions onto the store error hierarchy"""
    try:
        yield
    except (RedisConnectionError, RedisTimeoutError) as e:
        raise StoreConnectionError(f"{operation} lost connection: {e}", path=path) from e
    except WatchError:
        raise
    except RedisError as e:
        raise StoreError(f"{operation} failed: {e}", path=path) from e


def _encode(data: Dict[str, Any]) -> Dict[str, str]:
    return {name: json.dumps(value, ensure_ascii=False) for name, value in data.items()}


def _decode(raw: Dict[str, str]) -> Dict[str, Any]:
    data: Dict[str, Any] = {}
    for name, value in raw.items():
        try:
            data[name] = json.loads(value)
        except (TypeError, ValueError):
            # Left as-is; the record decoder reports it as malformed
            data[name] = value
    return data


class RedisDocumentStore:
    """
    Redis implementation of DocumentStorePort.

    Example:
        client = await init_redis_client()
        store = RedisDocumentStore(client)
        await store.set_document("users/u1", {"uid": "u1", "name": "Ann"})
    """

    def __init__(self, redis_client: redis.Redis, config: Optional[RedisConfig] = None):
        if redis_client is None:
            raise ValueError("redis_client is required")

        self._redis = redis_client
        self.config = config or get_redis_config()
        self._prefix = self.config.key_prefix
        self._poll_interval = self.config.watch_poll_interval

    # =========================================================================
    # Key helpers
    # =========================================================================

    def _doc_key(self, path: str) -> str:
        return f"{self._prefix}doc:{path}"

    def _index_key(self, collection: str) -> str:
        return f"{self._prefix}idx:{collection}"

    def _channel(self, collection: str) -> str:
        return f"{self._prefix}chg:{collection}"

    def _queue_write(self, pipe: Any, write: DocumentWrite) -> None:
        """Queue one write's commands on a pipeline in MULTI mode"""
        if not write.data:
            raise ValueError(f"Refusing to write empty document at {write.path}")

        collection, doc_id = split_path(write.path)
        doc_key = self._doc_key(write.path)

        if write.op == WriteOp.SET:
            pipe.delete(doc_key)
        pipe.hset(doc_key, mapping=_encode(write.data))
        pipe.sadd(self._index_key(collection), doc_id)
        pipe.publish(self._channel(collection), doc_id)

    # =========================================================================
    # Reads
    # =========================================================================

    async def get_document(self, path: str) -> Optional[Dict[str, Any]]:
        async with _translate_errors("get_document", path):
            raw = await self._redis.hgetall(self._doc_key(path))
        return _decode(raw) if raw else None

    async def list_documents(self, collection: str) -> List[DocumentSnapshot]:
        async with _translate_errors("list_documents", collection):
            doc_ids = sorted(await self._redis.smembers(self._index_key(collection)))
            if not doc_ids:
                return []

            pipe = self._redis.pipeline(transaction=False)
            for doc_id in doc_ids:
                pipe.hgetall(self._doc_key(f"{collection}/{doc_id}"))
            rows = await pipe.execute()

        return [
            DocumentSnapshot(path=f"{collection}/{doc_id}", id=doc_id, data=_decode(raw))
            for doc_id, raw in zip(doc_ids, rows)
            if raw
        ]

    # =========================================================================
    # Writes
    # =========================================================================

    async def set_document(self, path: str, data: Dict[str, Any]) -> None:
        await self.commit_batch([DocumentWrite(path=path, data=data, op=WriteOp.SET)])
        log.debug(f"Document set: {path}")

    async def update_document(self, path: str, fields: Dict[str, Any]) -> None:
        await self.commit_batch([DocumentWrite(path=path, data=fields, op=WriteOp.UPDATE)])
        log.debug(f"Document updated: {path}")

    async def commit_batch(self, writes: Sequence[DocumentWrite]) -> None:
        if not writes:
            return

        watched = [self._doc_key(w.path) for w in writes if w.op == WriteOp.UPDATE]
        target = writes[0].path if len(writes) == 1 else None

        async with _translate_errors("commit_batch", target):
            async with self._redis.pipeline(transaction=True) as pipe:
                while True:
                    try:
                        if watched:
                            await pipe.watch(*watched)
                            for write in writes:
                                if write.op == WriteOp.UPDATE and not await pipe.exists(self._doc_key(write.path)):
                                    await pipe.unwatch()
                                    raise DocumentNotFoundError(write.path)

                        pipe.multi()
                        for write in writes:
                            self._queue_write(pipe, write)
                        await pipe.execute()
                        return
                    except WatchError:
                        log.debug(f"Concurrent modification during batch of {len(writes)}; retrying")
                        continue

    # =========================================================================
    # Change feed
    # =========================================================================

    async def watch_collection(self, collection: str) -> AsyncIterator[List[DocumentSnapshot]]:
        channel = self._channel(collection)
        pubsub = self._redis.pubsub(ignore_subscribe_messages=True)
        try:
            async with _translate_errors("watch_collection", collection):
                await pubsub.subscribe(channel)
            log.debug(f"Watching {collection}")

            yield await self.list_documents(collection)

            while True:
                async with _translate_errors("watch_collection", collection):
                    message = await pubsub.get_message(
                        ignore_subscribe_messages=True,
                        timeout=self._poll_interval,
                    )
                    if message is None:
                        continue
                    # Coalesce a burst of notifications into one re-read
                    while await pubsub.get_message(ignore_subscribe_messages=True, timeout=0.0) is not None:
                        pass

                yield await self.list_documents(collection)
        finally:
            try:
                await pubsub.unsubscribe(channel)
                await pubsub.aclose()
            except (RedisError, OSError) as e:
                log.debug(f"Error closing watch on {collection}: {e}")
