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

from collections import defaultdict
import threading
from typing import Any, Callable

from imtoggle.protocol.pubsub.spec import PickleEncoderMixin, PubSub


class Memory(PubSub[str, Any]):
    """In-process pubsub.

    Delivery is synchronous: ``publish`` returns after every subscriber callback
    for the topic has run, on the publishing thread. Subscribers added or removed
    from inside a callback take effect from the next publish.
    """

    def __init__(self) -> None:
        self._callbacks: dict[str, list[Callable[[Any, str], None]]] = defaultdict(list)
        self._lock = threading.Lock()

    def publish(self, topic: str, message: Any) -> None:
        with self._lock:
            callbacks = list(self._callbacks.get(topic, ()))
        for callback in callbacks:
            callback(message, topic)

    def subscribe(self, topic: str, callback: Callable[[Any, str], None]) -> Callable[[], None]:
        with self._lock:
            self._callbacks[topic].append(callback)

        def unsubscribe() -> None:
            with self._lock:
                try:
                    self._callbacks[topic].remove(callback)
                except ValueError:
                    pass
                if not self._callbacks[topic]:
                    del self._callbacks[topic]

        return unsubscribe

    def subscriber_count(self, topic: str) -> int:
        with self._lock:
            return len(self._callbacks.get(topic, ()))


# copies every message through pickle, like it would cross a process boundary
class PickleMemory(PickleEncoderMixin[str, Any], Memory): ...
