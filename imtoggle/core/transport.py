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

from __future__ import annotations

from functools import cache
from typing import TYPE_CHECKING, Any, Callable, Optional, TypeVar

from imtoggle.core.stream import In, Out, Transport
from imtoggle.protocol.pubsub.lcmpubsub import PickleLCM
from imtoggle.protocol.pubsub.memory import Memory

T = TypeVar("T")

if TYPE_CHECKING:
    from imtoggle.protocol.pubsub.spec import PubSub


@cache
def shared_memory() -> Memory:
    """Process wide in-memory bus used when no bus is passed explicitly."""
    return Memory()


class PubSubTransport(Transport[T]):
    topic: Any
    _started: bool = False

    def __init__(self, topic: Any, pubsub: PubSub) -> None:
        self.topic = topic
        self.pubsub = pubsub

    def __str__(self) -> str:
        return f"{self.__class__.__name__}({self.topic})"

    def _ensure_started(self) -> None:
        if not self._started:
            self.pubsub.start()
            self._started = True

    def broadcast(self, _: Optional[Out[T]], msg: T) -> None:
        self._ensure_started()
        self.pubsub.publish(self.topic, msg)

    def subscribe(
        self, callback: Callable[[T], Any], selfstream: Optional[In[T]] = None
    ) -> Callable[[], None]:
        self._ensure_started()
        return self.pubsub.subscribe(self.topic, lambda msg, topic: callback(msg))

    def stop(self) -> None:
        if self._started:
            self.pubsub.stop()
            self._started = False


class MemoryTransport(PubSubTransport[T]):
    def __init__(self, topic: str, bus: Optional[Memory] = None) -> None:
        super().__init__(topic, bus if bus is not None else shared_memory())


class pLCMTransport(PubSubTransport[T]):
    def __init__(self, topic: str, **kwargs) -> None:
        super().__init__(topic, PickleLCM(**kwargs))
