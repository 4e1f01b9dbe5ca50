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

import threading

import pytest

from imtoggle.core.stream import In, Out, State
from imtoggle.core.transport import MemoryTransport, PubSubTransport, shared_memory
from imtoggle.protocol.pubsub.memory import Memory


class Owner:
    pass


@pytest.fixture
def bus():
    return Memory()


def test_stream_states(bus):
    stream = Out(int, "numbers")
    assert stream.state is State.UNBOUND

    stream.owner = Owner()
    assert stream.state is State.READY

    stream.transport = MemoryTransport("/numbers", bus)
    assert stream.state is State.CONNECTED


def test_missing_transport():
    stream = Out(int, "numbers", Owner())
    with pytest.raises(RuntimeError, match="no transport"):
        stream.publish(1)


def test_str(bus):
    stream = In(int, "numbers", Owner(), MemoryTransport("/numbers", bus))
    assert str(stream) == "In numbers[int] @ Owner via MemoryTransport(/numbers)"
    assert str(Out(int, "x")) == "Out x[int] @ -"


def test_out_to_in_over_topic(bus):
    out = Out(int, "out", Owner(), MemoryTransport("/numbers", bus))
    inp = In(int, "in", Owner(), MemoryTransport("/numbers", bus))
    received = []

    unsubscribe = inp.subscribe(received.append)
    out.publish(1)
    out.publish(2)
    unsubscribe()
    out.publish(3)

    assert received == [1, 2]


def test_connect_shares_transport(bus):
    out = Out(str, "out", Owner(), MemoryTransport("/words", bus))
    inp = In(str, "in", Owner())
    inp.connect(out)
    received = []

    inp.subscribe(received.append)
    out.publish("hello")

    assert inp.transport is out.transport
    assert received == ["hello"]


def test_observable(bus):
    out = Out(int, "out", Owner(), MemoryTransport("/numbers", bus))
    inp = In(int, "in", Owner(), MemoryTransport("/numbers", bus))
    first, second = [], []

    observable = inp.observable()
    sub1 = observable.subscribe(first.append)
    sub2 = observable.subscribe(second.append)
    out.publish(5)

    # shared: both observers ride on one bus subscription
    assert bus.subscriber_count("/numbers") == 1

    sub1.dispose()
    sub2.dispose()
    out.publish(6)

    assert first == [5]
    assert second == [5]
    assert bus.subscriber_count("/numbers") == 0


def test_get_next(bus):
    out = Out(int, "out", Owner(), MemoryTransport("/numbers", bus))
    inp = In(int, "in", Owner(), MemoryTransport("/numbers", bus))
    done = threading.Event()

    def publisher():
        while not done.is_set():
            if bus.subscriber_count("/numbers"):
                out.publish(7)
            done.wait(0.001)

    thread = threading.Thread(target=publisher)
    thread.start()
    try:
        assert inp.get_next(timeout=None) == 7
    finally:
        done.set()
        thread.join()


def test_pubsub_transport_starts_lazily():
    class CountingMemory(Memory):
        starts = 0
        stops = 0

        def start(self):
            self.starts += 1

        def stop(self):
            self.stops += 1

    bus = CountingMemory()
    transport = PubSubTransport("/x", bus)
    transport.stop()
    assert (bus.starts, bus.stops) == (0, 0)

    transport.subscribe(lambda msg: None)
    transport.publish(1)
    assert bus.starts == 1

    transport.stop()
    assert bus.stops == 1


def test_memory_transport_defaults_to_shared_bus():
    assert MemoryTransport("/a").pubsub is shared_memory()
