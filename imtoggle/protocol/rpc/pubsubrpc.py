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

from abc import abstractmethod
from typing import Any, Callable, Generic, Optional, TypedDict, TypeVar
import uuid

from imtoggle.protocol.pubsub.spec import PubSub
from imtoggle.protocol.rpc.spec import Args, RPCSpec
from imtoggle.utils.generic import truncate_display_string
from imtoggle.utils.logging_config import setup_logger

logger = setup_logger("imtoggle.protocol.rpc.pubsubrpc")

MsgT = TypeVar("MsgT")
TopicT = TypeVar("TopicT")


class RPCReq(TypedDict):
    id: str | None
    name: str
    args: Args


class RPCRes(TypedDict):
    id: str
    res: Any


class PubSubRPCMixin(RPCSpec, PubSub[TopicT, MsgT], Generic[TopicT, MsgT]):
    """Request/response on top of any pubsub.

    Every RPC name gets a request and a response topic from ``topicgen``.
    Responses are matched to requests by id, so many clients can share a
    response topic.
    """

    @abstractmethod
    def topicgen(self, name: str, req_or_res: bool) -> TopicT: ...

    @abstractmethod
    def _decode_response(self, msg: MsgT) -> RPCRes: ...

    @abstractmethod
    def _decode_request(self, msg: MsgT) -> RPCReq: ...

    @abstractmethod
    def _encode_request(self, req: RPCReq) -> MsgT: ...

    @abstractmethod
    def _encode_response(self, res: RPCRes) -> MsgT: ...

    def call(self, name: str, arguments: Args, cb: Optional[Callable]):
        if cb is None:
            return self.call_nowait(name, arguments)

        return self.call_cb(name, arguments, cb)

    def call_cb(self, name: str, arguments: Args, cb: Callable) -> Callable[[], None]:
        topic_req = self.topicgen(name, False)
        topic_res = self.topicgen(name, True)
        msg_id = uuid.uuid4().hex

        req: RPCReq = {"name": name, "args": arguments, "id": msg_id}

        def receive_response(msg: MsgT, _: TopicT):
            res = self._decode_response(msg)
            if res.get("id") != msg_id:
                return
            unsub()
            cb(res.get("res"))

        unsub = self.subscribe(topic_res, receive_response)

        self.publish(topic_req, self._encode_request(req))
        return unsub

    def call_nowait(self, name: str, arguments: Args) -> None:
        topic_req = self.topicgen(name, False)
        req: RPCReq = {"name": name, "args": arguments, "id": None}
        self.publish(topic_req, self._encode_request(req))

    def serve_rpc(self, f: Callable, name: Optional[str] = None) -> Callable[[], None]:
        if not name:
            name = f.__name__

        topic_req = self.topicgen(name, False)
        topic_res = self.topicgen(name, True)

        def receive_call(msg: MsgT, _: TopicT) -> None:
            req = self._decode_request(msg)

            if req.get("name") != name:
                return
            args = req.get("args")
            if args is None:
                return
            logger.debug("RPC call", name=name, args=truncate_display_string(args, 200))
            response = f(*args[0], **args[1])

            req_id = req.get("id")
            if req_id is not None:
                self.publish(topic_res, self._encode_response({"id": req_id, "res": response}))

        return self.subscribe(topic_req, receive_call)


# pubsub RPC that doesn't encode special request/response messages,
# assumes the pubsub implementation carries plain dictionaries
class PassThroughPubSubRPC(PubSubRPCMixin[TopicT, dict], Generic[TopicT]):
    def _encode_request(self, req: RPCReq) -> dict:
        return dict(req)

    def _decode_response(self, msg: dict) -> RPCRes:
        return msg  # type: ignore[return-value]

    def _encode_response(self, res: RPCRes) -> dict:
        return dict(res)

    def _decode_request(self, msg: dict) -> RPCReq:
        return msg  # type: ignore[return-value]
