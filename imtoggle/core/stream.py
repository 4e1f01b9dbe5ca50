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

import enum
from typing import (
    Any,
    Callable,
    Generic,
    Optional,
    TypeVar,
)

import reactivex as rx
from reactivex import operators as ops
from reactivex.disposable import Disposable

T = TypeVar("T")


class ObservableMixin(Generic[T]):
    def subscribe(self, callback: Callable[[T], Any]) -> Callable[[], None]: ...

    # subscribes and returns the first value it receives
    def get_next(self, timeout: Optional[float] = 10.0) -> T:
        try:
            return (
                self.observable()
                .pipe(ops.first(), *([ops.timeout(timeout)] if timeout is not None else []))
                .run()
            )
        except Exception as e:
            raise TimeoutError(f"No value received after {timeout} seconds") from e

    def pure_observable(self) -> rx.Observable:
        def _subscribe(observer, scheduler=None):
            unsubscribe = self.subscribe(observer.on_next)
            return Disposable(unsubscribe)

        return rx.create(_subscribe)

    # shared, so many observers cost one transport subscription
    def observable(self) -> rx.Observable:
        return self.pure_observable().pipe(ops.share())


class State(enum.Enum):
    UNBOUND = "unbound"  # descriptor defined but not bound
    READY = "ready"  # bound to owner but no transport yet
    CONNECTED = "connected"  # transport assigned


class Transport(ObservableMixin[T]):
    # used by local Output
    def broadcast(self, selfstream: Optional[Out[T]], msg: T) -> None: ...

    def publish(self, msg: T) -> None:
        self.broadcast(None, msg)

    # used by local Input, returns unsubscribe function
    def subscribe(
        self, callback: Callable[[T], Any], selfstream: Optional[In[T]] = None
    ) -> Callable[[], None]: ...

    def stop(self) -> None: ...


class Stream(Generic[T]):
    _transport: Optional[Transport[T]]

    def __init__(
        self,
        type: type[T],
        name: str,
        owner: Optional[Any] = None,
        transport: Optional[Transport[T]] = None,
    ):
        self.name = name
        self.owner = owner
        self.type = type
        self._transport = transport

    @property
    def type_name(self) -> str:
        return getattr(self.type, "__name__", repr(self.type))

    @property
    def state(self) -> State:
        if self.owner is None:
            return State.UNBOUND
        if self._transport is None:
            return State.READY
        return State.CONNECTED

    @property
    def transport(self) -> Transport[T]:
        if self._transport is None:
            raise RuntimeError(f"{self} has no transport")
        return self._transport

    @transport.setter
    def transport(self, value: Transport[T]) -> None:
        self._transport = value

    def __str__(self) -> str:
        owner = self.owner.__class__.__name__ if self.owner is not None else "-"
        via = "" if self._transport is None else f" via {self._transport}"
        return f"{self.__class__.__name__} {self.name}[{self.type_name}] @ {owner}{via}"


class Out(Stream[T]):
    def publish(self, msg: T) -> None:
        self.transport.broadcast(self, msg)


class In(Stream[T], ObservableMixin[T]):
    # in-process wiring: share the transport of an output
    def connect(self, other: Out[T]) -> None:
        self.transport = other.transport

    # returns unsubscribe function
    def subscribe(self, cb: Callable[[T], Any]) -> Callable[[], None]:
        return self.transport.subscribe(cb, self)
