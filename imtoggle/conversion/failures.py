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
from typing import Union

from imtoggle.msgs.sensor_msgs.Image import Image


@dataclass(frozen=True)
class ConversionFailure:
    """A frame that could not be converted. Nothing is published for it."""

    def describe(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class UnsupportedChannelCount(ConversionFailure):
    channels: int

    def describe(self) -> str:
        return f"Unsupported number of channels: {self.channels}"


@dataclass(frozen=True)
class UnsupportedPixelType(ConversionFailure):
    dtype: str

    def describe(self) -> str:
        return f"Unsupported pixel type: {self.dtype}"


@dataclass(frozen=True)
class DecodeFailure(ConversionFailure):
    encoding: str
    reason: str

    def describe(self) -> str:
        return f"Could not decode {self.encoding!r} image: {self.reason}"


ConversionResult = Union[Image, ConversionFailure]
