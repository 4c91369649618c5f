"""Tests for RedisDocumentStore reads, transactional writes, change feed and error mapping (mocked client)."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError, ResponseError, WatchError

from chatsync.chat.ports.document_store_port import DocumentSnapshot, DocumentWrite, WriteOp
from chatsync.common.exceptions.exceptions import DocumentNotFoundError, StoreConnectionError, StoreError
from chatsync.config.redis_config import RedisConfig
from chatsync.infra.document_store.redis_document_store import RedisDocumentStore
from chatsync.infra.read_repos.user_read_repo import DocumentUserDirectory


@pytest.fixture
def client() -> MagicMock:
    return MagicMock()


@pytest.fixture
def redis_store(client) -> RedisDocumentStore:
    return RedisDocumentStore(client, RedisConfig(_env_file=None, key_prefix="t:"))


class TestReads:
    async def test_missing_document_is_none(self, client, redis_store):
        client.hgetall = AsyncMock(return_value={})

        assert await redis_store.get_document("users/alice") is None
        client.hgetall.assert_awaited_once_with("t:doc:users/alice")

    async def test_fields_are_json_decoded(self, client, redis_store):
        client.hgetall = AsyncMock(return_value={"uid": '"alice"', "isOnline": "true", "raw": "not json"})

        assert await redis_store.get_document("users/alice") == {
            "uid": "alice",
            "isOnline": True,
            "raw": "not json",
        }

    async def test_list_documents_sorted_and_skips_vanished(self, client, redis_store):
        client.smembers = AsyncMock(return_value={"b", "a", "c"})
        pipe = MagicMock()
        pipe.execute = AsyncMock(return_value=[{"n": "1"}, {}, {"n": "3"}])
        client.pipeline.return_value = pipe

        snapshot = await redis_store.list_documents("users/alice/chats")

        assert [doc.id for doc in snapshot] == ["a", "c"]
        assert snapshot[1].path == "users/alice/chats/c"
        assert snapshot[1].data == {"n": 3}
        client.smembers.assert_awaited_once_with("t:idx:users/alice/chats")

    async def test_empty_collection(self, client, redis_store):
        client.smembers = AsyncMock(return_value=set())
        assert await redis_store.list_documents("users/alice/chats") == []


class TestErrorMapping:
    async def test_connection_error(self, client, redis_store):
        client.hgetall = AsyncMock(side_effect=RedisConnectionError("reset by peer"))

        with pytest.raises(StoreConnectionError) as exc_info:
            await redis_store.get_document("users/alice")
        assert exc_info.value.path == "users/alice"

    async def test_other_redis_error(self, client, redis_store):
        client.hgetall = AsyncMock(side_effect=ResponseError("WRONGTYPE"))

        with pytest.raises(StoreError) as exc_info:
            await redis_store.get_document("users/alice")
        assert not isinstance(exc_info.value, StoreConnectionError)


class TestUserDirectory:
    async def test_user_decoded_from_profile_document(self, client, redis_store):
        client.hgetall = AsyncMock(return_value={"uid": '"alice"', "name": '"Alice"'})

        user = await DocumentUserDirectory(redis_store).get_user("alice")

        assert user.uid == "alice"
        assert user.name == "Alice"

    async def test_unknown_user(self, client, redis_store):
        client.hgetall = AsyncMock(return_value={})
        assert await DocumentUserDirectory(redis_store).get_user("nobody") is None


@pytest.fixture
def pipe(client) -> MagicMock:
    pipe = MagicMock()
    pipe.__aenter__.return_value = pipe
    pipe.watch = AsyncMock()
    pipe.unwatch = AsyncMock()
    pipe.exists = AsyncMock(return_value=1)
    pipe.execute = AsyncMock(return_value=[])
    client.pipeline.return_value = pipe
    return pipe


def _queued(pipe: MagicMock) -> list:
    return [name for name, _args, _kwargs in pipe.method_calls]


class TestCommitBatch:
    async def test_set_replaces_whole_hash_in_one_transaction(self, client, pipe, redis_store):
        await redis_store.set_document("users/alice/chats/bob", {"contactId": "bob", "name": "Bob"})

        client.pipeline.assert_called_once_with(transaction=True)
        assert _queued(pipe) == ["multi", "delete", "hset", "sadd", "publish", "execute"]
        pipe.delete.assert_called_once_with("t:doc:users/alice/chats/bob")
        pipe.hset.assert_called_once_with(
            "t:doc:users/alice/chats/bob",
            mapping={"contactId": '"bob"', "name": '"Bob"'},
        )
        pipe.sadd.assert_called_once_with("t:idx:users/alice/chats", "bob")
        pipe.publish.assert_called_once_with("t:chg:users/alice/chats", "bob")
        pipe.watch.assert_not_awaited()

    async def test_update_watches_and_merges(self, pipe, redis_store):
        await redis_store.update_document("users/alice/chats/bob/messages/1", {"isSeen": True})

        pipe.watch.assert_awaited_once_with("t:doc:users/alice/chats/bob/messages/1")
        pipe.exists.assert_awaited_once_with("t:doc:users/alice/chats/bob/messages/1")
        assert _queued(pipe) == ["watch", "exists", "multi", "hset", "sadd", "publish", "execute"]
        pipe.hset.assert_called_once_with("t:doc:users/alice/chats/bob/messages/1", mapping={"isSeen": "true"})

    async def test_update_of_missing_document_writes_nothing(self, pipe, redis_store):
        pipe.exists.return_value = 0

        with pytest.raises(DocumentNotFoundError) as exc_info:
            await redis_store.update_document("users/alice/chats/bob/messages/404", {"isSeen": True})

        assert exc_info.value.path == "users/alice/chats/bob/messages/404"
        pipe.unwatch.assert_awaited_once()
        pipe.multi.assert_not_called()
        pipe.hset.assert_not_called()
        pipe.execute.assert_not_awaited()

    async def test_missing_document_fails_whole_batch(self, pipe, redis_store):
        pipe.exists.side_effect = [1, 0]
        writes = [
            DocumentWrite(path="users/alice/chats/bob/messages/1", data={"isSeen": True}, op=WriteOp.UPDATE),
            DocumentWrite(path="users/bob/chats/alice/messages/1", data={"isSeen": True}, op=WriteOp.UPDATE),
        ]

        with pytest.raises(DocumentNotFoundError):
            await redis_store.commit_batch(writes)

        pipe.execute.assert_not_awaited()

    async def test_mixed_batch_watches_only_updates(self, pipe, redis_store):
        writes = [
            DocumentWrite(path="users/bob/chats/alice", data={"contactId": "alice"}, op=WriteOp.SET),
            DocumentWrite(path="users/alice/chats/bob", data={"lastMessage": "hi"}, op=WriteOp.UPDATE),
        ]

        await redis_store.commit_batch(writes)

        pipe.watch.assert_awaited_once_with("t:doc:users/alice/chats/bob")
        assert pipe.hset.call_count == 2
        pipe.delete.assert_called_once_with("t:doc:users/bob/chats/alice")
        pipe.execute.assert_awaited_once()

    async def test_concurrent_modification_is_retried(self, pipe, redis_store):
        pipe.execute.side_effect = [WatchError("changed"), []]

        await redis_store.update_document("users/alice/chats/bob", {"lastMessage": "hi"})

        assert pipe.watch.await_count == 2
        assert pipe.execute.await_count == 2

    async def test_connection_lost_during_execute(self, pipe, redis_store):
        pipe.execute.side_effect = RedisConnectionError("reset by peer")

        with pytest.raises(StoreConnectionError) as exc_info:
            await redis_store.set_document("users/alice", {"uid": "alice"})
        assert exc_info.value.path == "users/alice"

    async def test_empty_batch_is_a_no_op(self, client, redis_store):
        await redis_store.commit_batch([])
        client.pipeline.assert_not_called()

    async def test_empty_document_rejected(self, pipe, redis_store):
        with pytest.raises(ValueError):
            await redis_store.set_document("users/alice", {})
        pipe.execute.assert_not_awaited()


@pytest.fixture
def pubsub(client) -> MagicMock:
    pubsub = MagicMock()
    pubsub.subscribe = AsyncMock()
    pubsub.unsubscribe = AsyncMock()
    pubsub.aclose = AsyncMock()
    pubsub.get_message = AsyncMock(return_value=None)
    client.pubsub.return_value = pubsub
    return pubsub


def _snapshot(*doc_ids: str) -> list:
    return [DocumentSnapshot(path=f"users/bob/chats/{i}", id=i, data={"contactId": i}) for i in doc_ids]


class TestWatchCollection:
    async def test_subscribes_before_first_snapshot(self, pubsub, redis_store):
        async def first_read(collection):
            pubsub.subscribe.assert_awaited_once_with("t:chg:users/bob/chats")
            return _snapshot("alice")

        redis_store.list_documents = AsyncMock(side_effect=first_read)
        watch = redis_store.watch_collection("users/bob/chats")

        assert await watch.__anext__() == _snapshot("alice")
        await watch.aclose()

    async def test_burst_of_changes_gives_one_resnapshot(self, pubsub, redis_store):
        change = {"type": "message", "data": "alice"}
        pubsub.get_message.side_effect = [None, change, change, change, None]
        redis_store.list_documents = AsyncMock(side_effect=[_snapshot(), _snapshot("alice")])
        watch = redis_store.watch_collection("users/bob/chats")

        assert await watch.__anext__() == []
        assert await watch.__anext__() == _snapshot("alice")

        assert pubsub.get_message.await_count == 5
        assert redis_store.list_documents.await_count == 2
        await watch.aclose()

    async def test_close_unsubscribes(self, pubsub, redis_store):
        redis_store.list_documents = AsyncMock(return_value=[])
        watch = redis_store.watch_collection("users/bob/chats")
        await watch.__anext__()

        await watch.aclose()

        pubsub.unsubscribe.assert_awaited_once_with("t:chg:users/bob/chats")
        pubsub.aclose.assert_awaited_once()

    async def test_lost_connection_surfaces_and_cleans_up(self, pubsub, redis_store):
        pubsub.get_message.side_effect = RedisConnectionError("reset by peer")
        redis_store.list_documents = AsyncMock(return_value=[])
        watch = redis_store.watch_collection("users/bob/chats")
        await watch.__anext__()

        with pytest.raises(StoreConnectionError) as exc_info:
            await watch.__anext__()

        assert exc_info.value.path == "users/bob/chats"
        pubsub.unsubscribe.assert_awaited_once()
        pubsub.aclose.assert_awaited_once()

    async def test_subscribe_failure(self, pubsub, redis_store):
        pubsub.subscribe.side_effect = RedisConnectionError("refused")

        with pytest.raises(StoreConnectionError):
            await redis_store.watch_collection("users/bob/chats").__anext__()
        pubsub.aclose.assert_awaited_once()
