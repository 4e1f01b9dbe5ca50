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
from collections.abc import Callable
import threading
from typing import Any, Protocol, overload

Args = tuple[list, dict[str, Any]]


# module that we can inspect for RPCs
class RPCInspectable(Protocol):
    @property
    def rpcs(self) -> dict[str, Callable]: ...


class RPCClient(Protocol):
    # if we don't provide callback, we don't get a return unsub f
    @overload
    def call(self, name: str, arguments: Args, cb: None) -> None: ...

    # if we provide callback, we do get return unsub f
    @overload
    def call(self, name: str, arguments: Args, cb: Callable[[Any], None]) -> Callable[[], Any]: ...

    def call(self, name: str, arguments: Args, cb: Callable | None) -> Callable[[], Any] | None: ...

    def call_sync(self, name: str, arguments: Args, rpc_timeout: float | None = 30.0) -> Any:
        event = threading.Event()
        result: list[Any] = []

        def receive_value(val) -> None:
            result.append(val)
            event.set()

        unsub_fn = self.call(name, arguments, receive_value)
        if not event.wait(rpc_timeout):
            if unsub_fn is not None:
                unsub_fn()
            raise TimeoutError(f"RPC call to '{name}' timed out after {rpc_timeout} seconds")
        return result[0]

    async def call_async(self, name: str, arguments: Args) -> Any:
        loop = asyncio.get_running_loop()
        future = loop.create_future()

        def receive_value(val) -> None:
            loop.call_soon_threadsafe(future.set_result, val)

        self.call(name, arguments, receive_value)

        return await future


class RPCServer(Protocol):
    def serve_rpc(self, f: Callable, name: str) -> Callable[[], None]: ...

    def serve_module_rpc(
        self, module: RPCInspectable, name: str | None = None
    ) -> list[Callable[[], None]]:
        name = name or module.__class__.__name__
        unsubscribe_fns = []
        for fname in module.rpcs.keys():

            def override_f(*args, fname=fname, **kwargs):
                return getattr(module, fname)(*args, **kwargs)

            unsubscribe_fns.append(self.serve_rpc(override_f, name + "/" + fname))
        return unsubscribe_fns


class RPCSpec(RPCServer, RPCClient): ...
