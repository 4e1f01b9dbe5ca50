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

from typing import Any, Callable

from imtoggle.protocol.pubsub.spec import PickleEncoderMixin, PubSub
from imtoggle.protocol.service.lcmservice import LCMConfig, LCMService


class LCMPubSubBase(LCMService, PubSub[str, Any]):
    """Raw bytes over LCM channels.

    The LCM handle lives as long as the object, so a stopped instance can be
    started again and keeps its subscriptions.
    """

    default_config = LCMConfig

    def publish(self, topic: str, message: bytes) -> None:
        self.l.publish(topic, message)

    def subscribe(self, topic: str, callback: Callable[[bytes, str], Any]) -> Callable[[], None]:
        lcm_subscription = self.l.subscribe(topic, lambda _, msg: callback(msg, topic))

        def unsubscribe():
            self.l.unsubscribe(lcm_subscription)

        return unsubscribe


class PickleLCM(
    PickleEncoderMixin,
    LCMPubSubBase,
): ...
