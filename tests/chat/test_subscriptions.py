"""Tests for live subscriptions: snapshots, ordering, reconnection, cancellation."""

import asyncio
from datetime import timedelta

import pytest

from chatsync.chat.exceptions import MalformedRecordError
from chatsync.chat.subscriptions import ReconnectPolicy
from chatsync.common.exceptions.exceptions import StoreConnectionError
from tests.fakes.fixed_clock import T1

TIMEOUT = 1.0

CONTACTS_OF_BOB = "users/bob/chats"
ALICE_BOB_LOG = "users/alice/chats/bob/messages"


async def next_emission(subscription):
    return await asyncio.wait_for(subscription.__anext__(), TIMEOUT)


class TestReconnectPolicy:
    def test_delay_grows_exponentially(self):
        policy = ReconnectPolicy(initial_delay=1.0, backoff_factor=2.0, max_delay=60.0)
        assert [policy.delay_for(n) for n in (1, 2, 3)] == [1.0, 2.0, 4.0]

    def test_delay_is_capped(self):
        policy = ReconnectPolicy(initial_delay=1.0, backoff_factor=10.0, max_delay=5.0)
        assert policy.delay_for(3) == 5.0

    def test_zero_attempts_means_unlimited(self):
        assert not ReconnectPolicy(max_attempts=0).exhausted(10_000)

    def test_exhausted_after_max_attempts(self):
        policy = ReconnectPolicy(max_attempts=2)
        assert not policy.exhausted(2)
        assert policy.exhausted(3)


class TestMessageSubscription:
    async def test_scenario_both_sides_see_the_message(self, engine, alice):
        sent = await engine.send_text_message(alice, "bob", "hi")

        for owner, counterpart in (("alice", "bob"), ("bob", "alice")):
            async with engine.subscribe_messages(owner, counterpart) as sub:
                [message] = await next_emission(sub)
                assert message.message_id == sent.message_id
                assert (message.sender_id, message.receiver_id) == ("alice", "bob")
                assert message.payload == "hi"
                assert message.is_seen is False

    async def test_empty_conversation_emits_empty_snapshot(self, engine):
        async with engine.subscribe_messages("alice", "bob") as sub:
            assert await next_emission(sub) == []

    async def test_new_message_triggers_full_snapshot(self, engine, alice):
        first = await engine.send_text_message(alice, "bob", "one")

        async with engine.subscribe_messages("bob", "alice") as sub:
            assert [m.message_id for m in await next_emission(sub)] == [first.message_id]

            second = await engine.send_text_message(alice, "bob", "two")

            snapshot = await next_emission(sub)
            while len(snapshot) < 2:
                snapshot = await next_emission(sub)
            assert [m.message_id for m in snapshot] == [first.message_id, second.message_id]

    async def test_ordered_by_time_then_id(self, engine, clock, alice, bob):
        clock.now = T1 + timedelta(seconds=10)
        late = await engine.send_text_message(alice, "bob", "late")
        clock.now = T1
        early_a = await engine.send_text_message(bob, "alice", "a")
        early_b = await engine.send_text_message(alice, "bob", "b")

        async with engine.subscribe_messages("alice", "bob") as sub:
            snapshot = await next_emission(sub)

        assert [m.message_id for m in snapshot] == [early_a.message_id, early_b.message_id, late.message_id]

    async def test_seen_flag_visible_after_resubscribe(self, engine, alice):
        sent = await engine.send_text_message(alice, "bob", "hi")
        await engine.mark_seen("bob", "alice", sent.message_id)

        async with engine.subscribe_messages("alice", "bob") as sub:
            [message] = await next_emission(sub)
        assert message.is_seen is True

    async def test_malformed_records_are_skipped_and_kept(self, engine, store, alice):
        sent = await engine.send_text_message(alice, "bob", "hi")
        store.put(f"{ALICE_BOB_LOG}/broken", {"content": {"kind": "text"}})

        async with engine.subscribe_messages("alice", "bob") as sub:
            snapshot = await next_emission(sub)

            assert [m.message_id for m in snapshot] == [sent.message_id]
            assert len(sub.malformed) == 1
            assert isinstance(sub.malformed[0], MalformedRecordError)
            assert sub.malformed[0].path == f"{ALICE_BOB_LOG}/broken"


class TestContactSubscription:
    async def test_scenario_both_contact_lists_updated(self, engine, alice):
        await engine.send_text_message(alice, "bob", "hi")

        for owner, counterpart in (("alice", "bob"), ("bob", "alice")):
            async with engine.subscribe_contacts(owner) as sub:
                [contact] = await next_emission(sub)
                assert contact.contact_id == counterpart
                assert contact.last_message == "hi"
                assert contact.time_sent == T1

    async def test_change_emits_again(self, engine, alice):
        async with engine.subscribe_contacts("bob") as sub:
            assert await next_emission(sub) == []

            await engine.send_text_message(alice, "bob", "hi")

            snapshot = await next_emission(sub)
            assert [c.contact_id for c in snapshot] == ["alice"]


class TestReconnection:
    async def test_dropped_watch_is_reopened_with_full_snapshot(self, engine, store, alice):
        await engine.send_text_message(alice, "bob", "hi")

        async with engine.subscribe_contacts("bob") as sub:
            await next_emission(sub)

            store.drop_watchers(CONTACTS_OF_BOB)
            snapshot = await next_emission(sub)

            assert [c.contact_id for c in snapshot] == ["alice"]
            assert sub.reconnect_count == 1
            assert store.get_call_count("watch_collection") == 2

    async def test_transient_open_failure_is_retried(self, engine, store):
        store.configure_failure("watch_collection", "refused", error_type=StoreConnectionError, times=2)

        async with engine.subscribe_contacts("bob") as sub:
            assert await next_emission(sub) == []
            assert sub.reconnect_count == 2

    async def test_gives_up_after_max_attempts(self, make_engine, store):
        engine = make_engine(reconnect_max_attempts=2)
        store.configure_failure("watch_collection", "refused", error_type=StoreConnectionError)

        async with engine.subscribe_contacts("bob") as sub:
            with pytest.raises(StoreConnectionError):
                await next_emission(sub)

        assert store.get_call_count("watch_collection") == 3


class TestCancellation:
    async def test_cancel_releases_watch_and_ends_iteration(self, engine, store):
        sub = engine.subscribe_contacts("bob")
        await next_emission(sub)
        assert store.watcher_count(CONTACTS_OF_BOB) == 1

        await sub.cancel()

        assert sub.closed
        assert store.watcher_count(CONTACTS_OF_BOB) == 0
        with pytest.raises(StopAsyncIteration):
            await sub.__anext__()

    async def test_cancel_is_idempotent(self, engine):
        sub = engine.subscribe_contacts("bob")
        await sub.cancel()
        await sub.aclose()
        assert sub.closed

    async def test_start_pushes_to_sync_callback(self, engine, store, alice):
        received = []
        got_contact = asyncio.Event()

        def on_contacts(contacts):
            received.append(contacts)
            if contacts:
                got_contact.set()

        sub = engine.subscribe_contacts("bob").start(on_contacts)
        try:
            await engine.send_text_message(alice, "bob", "hi")
            await asyncio.wait_for(got_contact.wait(), TIMEOUT)
        finally:
            await sub.cancel()

        assert [c.contact_id for c in received[-1]] == ["alice"]
        assert store.watcher_count(CONTACTS_OF_BOB) == 0

    async def test_start_accepts_async_callback(self, engine):
        received = asyncio.Queue()

        async def on_messages(messages):
            await received.put(messages)

        sub = engine.subscribe_messages("alice", "bob").start(on_messages)
        try:
            assert await asyncio.wait_for(received.get(), TIMEOUT) == []
        finally:
            await sub.cancel()

    async def test_start_twice_rejected(self, engine):
        sub = engine.subscribe_contacts("bob").start(lambda contacts: None)
        try:
            with pytest.raises(RuntimeError):
                sub.start(lambda contacts: None)
        finally:
            await sub.cancel()

    async def test_wait_surfaces_stream_error(self, make_engine, store):
        engine = make_engine(reconnect_max_attempts=1)
        store.configure_failure("watch_collection", "refused", error_type=StoreConnectionError)

        sub = engine.subscribe_contacts("bob").start(lambda contacts: None)
        with pytest.raises(StoreConnectionError):
            await asyncio.wait_for(sub.wait(), TIMEOUT)
        await sub.cancel()
