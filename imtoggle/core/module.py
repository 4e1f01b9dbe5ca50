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

from dataclasses import dataclass
from functools import cache
import inspect
from typing import (
    Any,
    Callable,
    Optional,
    get_args,
    get_origin,
    get_type_hints,
)

from reactivex.disposable import CompositeDisposable

from imtoggle.core.stream import In, Out
from imtoggle.protocol.rpc.memoryrpc import MemoryRPC
from imtoggle.protocol.rpc.spec import RPCSpec
from imtoggle.protocol.service.spec import Configurable


def rpc(fn: Callable[..., Any]) -> Callable[..., Any]:
    fn.__rpc__ = True  # type: ignore[attr-defined]
    return fn


@cache
def shared_memory_rpc() -> MemoryRPC:
    """Process wide in-memory RPC bus, the default for modules and their clients."""
    return MemoryRPC()


@dataclass
class ModuleConfig:
    # factory, so modules can share one bus or own a socket each
    rpc_transport: Callable[[], RPCSpec] = shared_memory_rpc


class Module(Configurable[ModuleConfig]):
    """Unit of the runtime: typed input/output streams plus RPC methods.

    Streams are declared as class annotations (``image: In[Image]``) and created
    per instance. Methods marked with ``@rpc`` are served as
    ``<ClassName>/<method>`` once the module is started.
    """

    default_config = ModuleConfig
    rpc: Optional[RPCSpec]
    _disposables: CompositeDisposable

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.rpc = None
        self._rpc_unsubscribe: list[Callable[[], None]] = []
        self._disposables = CompositeDisposable()

        for name, ann in get_type_hints(type(self)).items():
            origin = get_origin(ann)
            if origin is Out or origin is In:
                inner, *_ = get_args(ann) or (Any,)
                setattr(self, name, origin(inner, name, self))

    @property
    def outputs(self) -> dict[str, Out]:
        return {
            name: s
            for name, s in self.__dict__.items()
            if isinstance(s, Out) and not name.startswith("_")
        }

    @property
    def inputs(self) -> dict[str, In]:
        return {
            name: s
            for name, s in self.__dict__.items()
            if isinstance(s, In) and not name.startswith("_")
        }

    @property
    def rpcs(self) -> dict[str, Callable]:
        return {
            name: getattr(self, name)
            for name, member in inspect.getmembers(type(self), callable)
            if not name.startswith("_") and getattr(member, "__rpc__", False)
        }

    def start(self) -> None:
        self.rpc = self.config.rpc_transport()
        self.rpc.start()
        self._rpc_unsubscribe = self.rpc.serve_module_rpc(self)

    def stop(self) -> None:
        for unsubscribe in self._rpc_unsubscribe:
            unsubscribe()
        self._rpc_unsubscribe = []
        self._disposables.dispose()
        self._disposables = CompositeDisposable()
        if self.rpc is not None:
            self.rpc.stop()
            self.rpc = None

    @rpc
    def io(self) -> str:
        def repr_rpc(fn: Callable) -> str:
            sig = inspect.signature(fn)
            params = ", ".join(str(p) for p in sig.parameters.values())
            ret = ""
            if sig.return_annotation is not inspect.Signature.empty:
                annotation = sig.return_annotation
                ret = " -> " + getattr(annotation, "__name__", str(annotation))
            return f"RPC {fn.__name__}({params}){ret}"

        name = self.__class__.__name__
        lines = [
            *(f" ├─ {stream}" for stream in self.inputs.values()),
            "┌┴" + "─" * (len(name) + 1) + "┐",
            f"│ {name} │",
            "└┬" + "─" * (len(name) + 1) + "┘",
            *(f" ├─ {stream}" for stream in self.outputs.values()),
            " │",
            *(f" ├─ {repr_rpc(fn)}" for fn in self.rpcs.values()),
        ]
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.__class__.__name__
