# =============================================================================
# File: chatsync/chat/subscriptions.py
# Description: Cancellable live subscriptions over document store collections
# =============================================================================
"""
Subscription - live, restartable view of a collection.

Usage:
    async with engine.subscribe_messages(user_id, counterpart_id) as sub:
        async for messages in sub:
            render(messages)

    # or push-style
    sub = engine.subscribe_contacts(user_id).start(on_contacts)
    ...
    await sub.cancel()

Reconnection:
    When the underlying watch raises StoreConnectionError (or ends, which a
    live watch never should) the subscription re-opens it after an
    exponential backoff delay. The first emission after reconnecting is a
    full snapshot, so consumers never need to merge deltas. After
    ``max_attempts`` consecutive failures the error is raised to the
    consumer (0 = retry forever).
"""

from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, Generic, List, Optional, TypeVar, Union

from chatsync.chat.exceptions import MalformedRecordError
from chatsync.chat.ports.document_store_port import DocumentSnapshot
from chatsync.common.exceptions.exceptions import StoreConnectionError
from chatsync.config.logging_config import get_logger

log = get_logger("chatsync.chat.subscriptions")

T = TypeVar("T")

Decoder = Callable[[DocumentSnapshot], T]
Callback = Callable[[List[T]], Union[None, Awaitable[None]]]

# Bound on malformed records kept for inspection per subscription
MAX_TRACKED_MALFORMED = 100


def decode_records(
    name: str,
    snapshot: List[DocumentSnapshot],
    decode: Decoder,
    malformed: Optional[List[MalformedRecordError]] = None,
) -> List[T]:
    """Decode every document of a snapshot, skipping malformed ones"""
    records: List[T] = []
    for doc in snapshot:
        try:
            records.append(decode(doc))
        except MalformedRecordError as e:
            log.warning(f"{name}: skipped record: {e}")
            if malformed is not None:
                malformed.append(e)
    return records


@dataclass(frozen=True)
class ReconnectPolicy:
    """Exponential backoff for re-opening a dropped watch"""
    initial_delay: float = 1.0
    backoff_factor: float = 1.5
    max_delay: float = 60.0
    max_attempts: int = 0  # 0 = unlimited

    def delay_for(self, attempt: int) -> float:
        """Delay before the given (1-based) reconnect attempt"""
        delay = self.initial_delay * (self.backoff_factor ** (attempt - 1))
        return min(delay, self.max_delay)

    def exhausted(self, attempt: int) -> bool:
        return self.max_attempts > 0 and attempt > self.max_attempts


class Subscription(Generic[T]):
    """
    Async iterator of complete, decoded collection snapshots.

    Each item is the full list of records currently in the collection.
    Records that fail to decode are skipped and kept in ``malformed``.
    """

    def __init__(
        self,
        name: str,
        source_factory: Callable[[], AsyncIterator[List[DocumentSnapshot]]],
        decode: Decoder,
        *,
        order: Optional[Callable[[List[T]], List[T]]] = None,
        reconnect: Optional[ReconnectPolicy] = None,
    ):
        self.name = name
        self._source_factory = source_factory
        self._decode = decode
        self._order = order
        self._policy = reconnect or ReconnectPolicy()

        self._source: Optional[AsyncIterator[List[DocumentSnapshot]]] = None
        self._closed = False
        self._task: Optional[asyncio.Task] = None

        self.reconnect_count = 0
        self.malformed: List[MalformedRecordError] = []

    # =========================================================================
    # Async iterator protocol
    # =========================================================================

    def __aiter__(self) -> 'Subscription[T]':
        return self

    async def __anext__(self) -> List[T]:
        failures = 0
        while True:
            if self._closed:
                raise StopAsyncIteration

            if self._source is None:
                self._source = self._source_factory()

            try:
                snapshot = await self._source.__anext__()
            except StopAsyncIteration:
                cause: Exception = StoreConnectionError(f"watch for {self.name} ended unexpectedly")
            except StoreConnectionError as e:
                cause = e
            else:
                return self._decode_snapshot(snapshot)

            await self._discard_source()
            if self._closed:
                raise StopAsyncIteration

            failures += 1
            if self._policy.exhausted(failures):
                log.error(f"Subscription {self.name} giving up after {failures - 1} reconnect attempts: {cause}")
                raise cause

            delay = self._policy.delay_for(failures)
            log.warning(f"Subscription {self.name} lost its watch ({cause}); reconnecting in {delay:.2f}s")
            await asyncio.sleep(delay)
            self.reconnect_count += 1

    def _decode_snapshot(self, snapshot: List[DocumentSnapshot]) -> List[T]:
        records = decode_records(self.name, snapshot, self._decode, self.malformed)
        del self.malformed[:-MAX_TRACKED_MALFORMED]
        if self._order is not None:
            records = self._order(records)
        return records

    async def _discard_source(self) -> None:
        source, self._source = self._source, None
        aclose = getattr(source, "aclose", None)
        if aclose is not None:
            await aclose()

    # =========================================================================
    # Push-style consumption
    # =========================================================================

    def start(self, callback: Callback) -> 'Subscription[T]':
        """Deliver every emission to ``callback`` from a background task."""
        if self._task is not None:
            raise RuntimeError(f"Subscription {self.name} already started")
        self._task = asyncio.create_task(self._pump(callback), name=f"subscription:{self.name}")
        return self

    async def _pump(self, callback: Callback) -> None:
        async for records in self:
            result = callback(records)
            if inspect.isawaitable(result):
                await result

    async def wait(self) -> None:
        """Wait for a started subscription to finish; re-raises its error."""
        if self._task is not None:
            await self._task

    # =========================================================================
    # Cancellation
    # =========================================================================

    @property
    def closed(self) -> bool:
        return self._closed

    async def cancel(self) -> None:
        """Stop the subscription and release the underlying watch."""
        if self._closed:
            return
        self._closed = True

        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

        await self._discard_source()
        log.debug(f"Subscription {self.name} cancelled")

    aclose = cancel

    async def __aenter__(self) -> 'Subscription[T]':
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.cancel()
