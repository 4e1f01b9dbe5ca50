# Copyright 2025-2026 Dimensional Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import asyncio
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
import pickle
from typing import Any, Callable, Generic, TypeVar

MsgT = TypeVar("MsgT")
TopicT = TypeVar("TopicT")


class Subscription:
    """Handle returned by ``PubSub.sub``; unsubscribes on exit when used with ``with``."""

    __slots__ = ("topic", "_unsubscribe_fn")

    def __init__(self, topic: Any, unsubscribe_fn: Callable[[], None]) -> None:
        self.topic = topic
        self._unsubscribe_fn = unsubscribe_fn

    def unsubscribe(self) -> None:
        self._unsubscribe_fn()

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc) -> None:
        self.unsubscribe()


class PubSub(ABC, Generic[TopicT, MsgT]):
    """Topic based publish/subscribe.

    Implementations provide ``publish`` and ``subscribe``; the callback style,
    context manager and asyncio helpers below are built on those two.
    """

    @abstractmethod
    def publish(self, topic: TopicT, message: MsgT) -> None: ...

    @abstractmethod
    def subscribe(
        self, topic: TopicT, callback: Callable[[MsgT, TopicT], None]
    ) -> Callable[[], None]:
        """Call ``callback(message, topic)`` for every message; returns an unsubscribe function."""
        ...

    def start(self) -> None: ...

    def stop(self) -> None: ...

    def sub(self, topic: TopicT, cb: Callable[[MsgT, TopicT], None]) -> Subscription:
        return Subscription(topic, self.subscribe(topic, cb))

    @asynccontextmanager
    async def queue(self, topic: TopicT, *, max_pending: int | None = None):
        """Collect messages of ``topic`` into an ``asyncio.Queue`` while the block runs.

        Messages must be published from the event loop thread.
        """
        q: asyncio.Queue[MsgT] = asyncio.Queue(maxsize=max_pending or 0)
        unsubscribe_fn = self.subscribe(topic, lambda msg, _: q.put_nowait(msg))
        try:
            yield q
        finally:
            unsubscribe_fn()

    async def aiter(self, topic: TopicT, *, max_pending: int | None = None) -> AsyncIterator[MsgT]:
        async with self.queue(topic, max_pending=max_pending) as q:
            while True:
                yield await q.get()


class PubSubEncoderMixin(ABC, Generic[TopicT, MsgT]):
    """Turns a bytes level pubsub into one that carries objects.

    Put it first in the bases so its ``publish``/``subscribe`` wrap the
    transport's:

        class JSONMemory(PubSubEncoderMixin, Memory):
            def encode(self, msg, topic):
                return json.dumps(msg).encode()

            def decode(self, msg, topic):
                return json.loads(msg)
    """

    @abstractmethod
    def encode(self, msg: MsgT, topic: TopicT) -> bytes: ...

    @abstractmethod
    def decode(self, msg: bytes, topic: TopicT) -> MsgT: ...

    def publish(self, topic: TopicT, message: MsgT) -> None:
        super().publish(topic, self.encode(message, topic))  # type: ignore[misc]

    def subscribe(
        self, topic: TopicT, callback: Callable[[MsgT, TopicT], None]
    ) -> Callable[[], None]:
        def decoding_cb(payload: bytes, topic: TopicT) -> None:
            callback(self.decode(payload, topic), topic)

        return super().subscribe(topic, decoding_cb)  # type: ignore[misc]


class PickleEncoderMixin(PubSubEncoderMixin[TopicT, MsgT]):
    def encode(self, msg: MsgT, topic: TopicT) -> bytes:
        return pickle.dumps(msg)

    def decode(self, msg: bytes, topic: TopicT) -> MsgT:
        return pickle.loads(msg)
