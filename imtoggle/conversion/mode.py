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
from enum import Enum
import threading


class Mode(Enum):
    COLOR = "color"
    GRAYSCALE = "grayscale"

    @classmethod
    def from_grayscale(cls, enabled: bool) -> "Mode":
        return cls.GRAYSCALE if enabled else cls.COLOR


@dataclass(frozen=True)
class ModeAck:
    success: bool
    message: str


_SWITCH_MESSAGES = {
    Mode.GRAYSCALE: "Switched to grayscale mode.",
    Mode.COLOR: "Switched to color mode.",
}


class ModeState:
    """Holds the output mode of one image toggle module.

    ``get`` and ``set`` never block on anything but each other, so a frame
    being converted sees either the old or the new mode, never a mix.
    """

    def __init__(self, initial: Mode = Mode.COLOR) -> None:
        self._mode = initial
        self._lock = threading.Lock()

    def get(self) -> Mode:
        with self._lock:
            return self._mode

    def set(self, mode: Mode) -> ModeAck:
        with self._lock:
            self._mode = mode
        return ModeAck(success=True, message=_SWITCH_MESSAGES[mode])

    def set_grayscale(self, enabled: bool) -> ModeAck:
        return self.set(Mode.from_grayscale(enabled))

    @property
    def grayscale_enabled(self) -> bool:
        return self.get() is Mode.GRAYSCALE

    def __repr__(self) -> str:
        return f"ModeState({self.get().value})"
