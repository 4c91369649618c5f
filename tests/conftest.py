"""Shared fixtures: in-memory stores, two users and an engine with a fixed clock."""

from typing import Callable

import pytest

from chatsync.chat.enums import ConsistencyMode
from chatsync.chat.read_models import User
from chatsync.chat.sync_engine import ChatSyncEngine
from chatsync.config.chat_config import ChatSyncConfig
from chatsync.infra.persistence.snowflake import SnowflakeIDGenerator
from tests.fakes.fake_blob_store import FakeBlobStore
from tests.fakes.fake_document_store import FakeDocumentStore
from tests.fakes.fake_user_directory import FakeUserDirectory
from tests.fakes.fixed_clock import FixedClock


@pytest.fixture
def alice() -> User:
    return User(uid="alice", name="Alice", profile_pic="https://pics.test/alice.png")


@pytest.fixture
def bob() -> User:
    return User(uid="bob", name="Bob", profile_pic="https://pics.test/bob.png")


@pytest.fixture
def store() -> FakeDocumentStore:
    return FakeDocumentStore()


@pytest.fixture
def blobs() -> FakeBlobStore:
    return FakeBlobStore()


@pytest.fixture
def users(alice: User, bob: User) -> FakeUserDirectory:
    return FakeUserDirectory(alice, bob)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def make_engine(store, blobs, users, clock) -> Callable[..., ChatSyncEngine]:
    def _make(mode: ConsistencyMode = ConsistencyMode.BEST_EFFORT, **overrides) -> ChatSyncEngine:
        settings = {
            "consistency_mode": mode,
            "reconnect_initial_delay": 0.0,
            "reconnect_max_delay": 0.0,
            **overrides,
        }
        config = ChatSyncConfig(_env_file=None, **settings)
        return ChatSyncEngine(
            store=store,
            blob_store=blobs,
            users=users,
            config=config,
            id_generator=SnowflakeIDGenerator(worker_id=1),
            clock=clock,
        )

    return _make


@pytest.fixture
def engine(make_engine) -> ChatSyncEngine:
    return make_engine()


@pytest.fixture
def batched_engine(make_engine) -> ChatSyncEngine:
    return make_engine(ConsistencyMode.BATCHED)
