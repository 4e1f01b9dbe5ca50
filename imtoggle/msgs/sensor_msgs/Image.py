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

from dataclasses import dataclass, field, replace
from enum import Enum
import re
import time
from typing import Optional, Tuple

import cv2
import numpy as np


class ImageFormat(Enum):
    """Encodings the conversion pipeline knows by name."""

    BGR = "bgr8"
    RGB = "rgb8"
    RGBA = "rgba8"
    BGRA = "bgra8"
    GRAY = "mono8"
    GRAY16 = "mono16"
    YUV422 = "yuv422"


# encoding -> (dtype, channels), following cv_bridge naming
_ENCODINGS: dict[str, tuple[type, int]] = {
    "mono8": (np.uint8, 1),
    "mono16": (np.uint16, 1),
    "bgr8": (np.uint8, 3),
    "rgb8": (np.uint8, 3),
    "bgra8": (np.uint8, 4),
    "rgba8": (np.uint8, 4),
    "bgr16": (np.uint16, 3),
    "rgb16": (np.uint16, 3),
    "bgra16": (np.uint16, 4),
    "rgba16": (np.uint16, 4),
    "yuv422": (np.uint8, 2),
    "yuv422_yuy2": (np.uint8, 2),
    "uyvy": (np.uint8, 2),
    "yuyv": (np.uint8, 2),
}

# generic OpenCV style encodings, e.g. 8UC2 or 16UC5
_GENERIC_ENCODING = re.compile(r"^(8|16)UC(\d+)$")


def parse_encoding(encoding: str) -> Tuple[np.dtype, int]:
    """Return ``(dtype, channels)`` for an encoding string.

    Raises:
        ValueError: if the encoding is unknown.
    """
    if encoding in _ENCODINGS:
        dtype, channels = _ENCODINGS[encoding]
        return np.dtype(dtype), channels

    match = _GENERIC_ENCODING.match(encoding)
    if match is None:
        raise ValueError(f"Unsupported encoding: {encoding!r}")

    bits, channels = match.groups()
    if int(channels) < 1:
        raise ValueError(f"Encoding {encoding!r} has no channels")
    return np.dtype(np.uint8 if bits == "8" else np.uint16), int(channels)


@dataclass
class Header:
    frame_id: str = ""
    stamp: float = field(default_factory=time.time)


@dataclass
class ImageMsg:
    """Raw image as it travels between processes (sensor_msgs/Image layout)."""

    msg_name = "sensor_msgs.Image"

    header: Header = field(default_factory=Header)
    height: int = 0
    width: int = 0
    encoding: str = ""
    is_bigendian: bool = False
    # bytes per row, including any padding
    step: int = 0
    data: bytes = b""


@dataclass(frozen=True, eq=False)
class Image:
    """Decoded image: a numpy array plus the encoding that describes its layout.

    ``data`` is ``(H, W)`` for single channel images and ``(H, W, C)`` otherwise.
    """

    data: np.ndarray
    encoding: str = ImageFormat.BGR.value
    frame_id: str = ""
    ts: float = field(default_factory=time.time)

    def __post_init__(self):
        if not isinstance(self.data, np.ndarray):
            raise ValueError("Image data must be a numpy array")

        if self.data.ndim not in (2, 3):
            raise ValueError(f"Image data must be 2D or 3D, got shape {self.data.shape}")

        if not self.data.flags["C_CONTIGUOUS"]:
            object.__setattr__(self, "data", np.ascontiguousarray(self.data))

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def channels(self) -> int:
        if self.data.ndim == 2:
            return 1
        return int(self.data.shape[2])

    @property
    def shape(self) -> Tuple[int, ...]:
        return tuple(self.data.shape)

    @property
    def dtype(self) -> np.dtype:
        return self.data.dtype

    def with_data(self, data: np.ndarray, encoding: str) -> "Image":
        """New image with other pixels, keeping frame id and timestamp."""
        return replace(self, data=data, encoding=encoding)

    def copy(self) -> "Image":
        """Create a deep copy of the image."""
        return self.with_data(self.data.copy(), self.encoding)

    def to_uint8(self) -> "Image":
        """Scale 16-bit pixels down to 8-bit; 8-bit images are returned as is."""
        if self.dtype == np.uint8:
            return self
        if self.dtype != np.uint16:
            raise ValueError(f"Unsupported pixel type {self.dtype}")
        return self.with_data((self.data / 256).astype(np.uint8), self.encoding)

    @classmethod
    def from_numpy(
        cls, np_image: np.ndarray, encoding: str = ImageFormat.BGR.value, **kwargs
    ) -> "Image":
        return cls(data=np_image, encoding=encoding, **kwargs)

    @classmethod
    def from_file(cls, filepath: str) -> "Image":
        """Load an image file; the encoding is detected from the channel count."""
        cv_image = cv2.imread(filepath, cv2.IMREAD_UNCHANGED)
        if cv_image is None:
            raise ValueError(f"Could not load image from {filepath}")
        if cv_image.dtype not in (np.uint8, np.uint16):
            raise ValueError(f"Unsupported pixel type {cv_image.dtype} in {filepath}")

        channels = 1 if cv_image.ndim == 2 else cv_image.shape[2]
        depth = 16 if cv_image.dtype == np.uint16 else 8
        encoding = {
            1: f"mono{depth}",
            3: f"bgr{depth}",
            4: f"bgra{depth}",
        }.get(channels, f"{depth}UC{channels}")

        return cls(data=cv_image, encoding=encoding, frame_id=filepath)

    def save(self, filepath: str) -> bool:
        """Save image to file. Pixels are written as they are, in OpenCV channel order."""
        return cv2.imwrite(filepath, self.data)

    def to_msg(self, frame_id: Optional[str] = None) -> ImageMsg:
        """Convert to a wire message, little endian."""
        data = np.ascontiguousarray(self.data, dtype=self.dtype.newbyteorder("<"))
        return ImageMsg(
            header=Header(frame_id=frame_id or self.frame_id, stamp=self.ts),
            height=self.height,
            width=self.width,
            encoding=self.encoding,
            is_bigendian=False,
            step=self.width * self.channels * self.dtype.itemsize,
            data=data.tobytes(),
        )

    @classmethod
    def from_msg(cls, msg: ImageMsg) -> "Image":
        """Interpret a wire message as pixels of its declared encoding.

        Row padding (``step`` larger than a row) is stripped and the pixels are
        copied, so the image never aliases the message buffer.

        Raises:
            ValueError: if the encoding is unknown or the buffer does not hold
                ``height`` rows of ``width`` pixels.
        """
        dtype, channels = parse_encoding(msg.encoding)

        if msg.height < 0 or msg.width < 0:
            raise ValueError(f"Invalid image size {msg.width}x{msg.height}")

        row_bytes = msg.width * channels * dtype.itemsize
        step = msg.step or row_bytes
        if step < row_bytes:
            raise ValueError(f"Row step {step} is smaller than one row of {row_bytes} bytes")

        expected = step * msg.height
        if len(msg.data) < expected:
            raise ValueError(
                f"Image buffer holds {len(msg.data)} bytes, "
                f"{msg.width}x{msg.height} {msg.encoding} needs {expected}"
            )

        rows = np.frombuffer(msg.data, dtype=np.uint8, count=expected).reshape(msg.height, step)
        wire_dtype = dtype.newbyteorder(">" if msg.is_bigendian else "<")
        pixels = rows[:, :row_bytes].copy().view(wire_dtype).astype(dtype)

        if channels == 1:
            pixels = pixels.reshape(msg.height, msg.width)
        else:
            pixels = pixels.reshape(msg.height, msg.width, channels)

        return cls(
            data=pixels,
            encoding=msg.encoding,
            frame_id=msg.header.frame_id,
            ts=msg.header.stamp,
        )

    def __repr__(self) -> str:
        return (
            f"Image(shape={self.shape}, encoding={self.encoding}, "
            f"dtype={self.dtype}, frame_id='{self.frame_id}', ts={self.ts})"
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, Image):
            return False

        return (
            np.array_equal(self.data, other.data)
            and self.encoding == other.encoding
            and self.frame_id == other.frame_id
            and abs(self.ts - other.ts) < 1e-6
        )

    def __len__(self) -> int:
        """Return total number of pixels."""
        return self.height * self.width
