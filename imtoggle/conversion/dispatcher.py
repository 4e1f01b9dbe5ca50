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

"""Color / grayscale conversion of single frames.

The conversion applied to a frame depends only on the current ``Mode`` and on
the number of channels in the frame, never on its encoding name: a 3 channel
``rgb8`` frame is treated exactly like ``bgr8``. Every conversion produces an
8-bit frame tagged ``mono8`` (grayscale) or ``bgr8`` (color).

Two channel frames are ambiguous (some packed YUV variant). They are handled as
luminance in channel 0 plus one chroma channel. For grayscale the luminance is
kept. For color the chroma channel is thrown away, replaced by two zero valued
chroma channels and the synthetic YUV triple is run through OpenCV's
``COLOR_YUV2BGR``. Note that zero is not neutral chroma for 8-bit YUV, so the
result is tinted. This is a placeholder policy, not a colorimetric conversion.
"""

from typing import Callable, Union

import cv2
import numpy as np

from imtoggle.conversion.failures import (
    ConversionFailure,
    DecodeFailure,
    UnsupportedChannelCount,
    UnsupportedPixelType,
)
from imtoggle.conversion.mode import Mode
from imtoggle.msgs.sensor_msgs.Image import Image, ImageFormat, ImageMsg
from imtoggle.utils.logging_config import setup_logger

logger = setup_logger("imtoggle.conversion.dispatcher")

Transform = Callable[[np.ndarray], np.ndarray]


def _identity(pixels: np.ndarray) -> np.ndarray:
    return pixels


def _luminance(pixels: np.ndarray) -> np.ndarray:
    return pixels[:, :, 0].copy()


def _bgr_to_gray(pixels: np.ndarray) -> np.ndarray:
    return cv2.cvtColor(pixels, cv2.COLOR_BGR2GRAY)


def _bgra_to_gray(pixels: np.ndarray) -> np.ndarray:
    return cv2.cvtColor(pixels, cv2.COLOR_BGRA2GRAY)


def _gray_to_bgr(pixels: np.ndarray) -> np.ndarray:
    return cv2.cvtColor(pixels, cv2.COLOR_GRAY2BGR)


def _zero_chroma_to_bgr(pixels: np.ndarray) -> np.ndarray:
    luma, chroma = cv2.split(pixels)
    zero = np.zeros_like(chroma)
    return cv2.cvtColor(cv2.merge([luma, zero, zero]), cv2.COLOR_YUV2BGR)


def _bgra_to_bgr(pixels: np.ndarray) -> np.ndarray:
    return cv2.cvtColor(pixels, cv2.COLOR_BGRA2BGR)


DISPATCH: dict[tuple[Mode, int], Transform] = {
    (Mode.GRAYSCALE, 1): _identity,
    (Mode.GRAYSCALE, 2): _luminance,
    (Mode.GRAYSCALE, 3): _bgr_to_gray,
    (Mode.GRAYSCALE, 4): _bgra_to_gray,
    (Mode.COLOR, 1): _gray_to_bgr,
    (Mode.COLOR, 2): _zero_chroma_to_bgr,
    (Mode.COLOR, 3): _identity,
    (Mode.COLOR, 4): _bgra_to_bgr,
}

OUTPUT_FORMAT = {
    Mode.GRAYSCALE: ImageFormat.GRAY,
    Mode.COLOR: ImageFormat.BGR,
}

SUPPORTED_CHANNELS = frozenset(channels for _, channels in DISPATCH)


def convert(frame: Image, mode: Mode) -> Union[Image, ConversionFailure]:
    """Convert ``frame`` to the representation selected by ``mode``.

    Returns a new image tagged ``mono8`` or ``bgr8``, or
    ``UnsupportedChannelCount`` when the frame has a channel count outside
    1-4, or ``UnsupportedPixelType`` for pixels that are not 8 or 16 bit
    unsigned. Frames already in the target representation keep their pixel buffer.
    """
    transform = DISPATCH.get((mode, frame.channels))
    if transform is None:
        return UnsupportedChannelCount(frame.channels)
    if frame.dtype not in (np.uint8, np.uint16):
        return UnsupportedPixelType(str(frame.dtype))

    if transform is _identity and mode is Mode.GRAYSCALE:
        logger.debug("Image is already grayscale.")
    elif frame.channels == 2:
        logger.debug("Processing 2-channel YUV image", mode=mode.value)

    encoding = OUTPUT_FORMAT[mode].value
    pixels = frame.to_uint8().data

    # OpenCV refuses empty input
    if pixels.size == 0:
        shape: tuple[int, ...] = (frame.height, frame.width)
        if mode is Mode.COLOR:
            shape += (3,)
        return frame.with_data(np.zeros(shape, dtype=np.uint8), encoding)

    return frame.with_data(transform(pixels), encoding)


def decode_image(msg: ImageMsg) -> Union[Image, DecodeFailure]:
    """Decode a wire message, turning malformed input into a ``DecodeFailure``."""
    try:
        return Image.from_msg(msg)
    except ValueError as e:
        return DecodeFailure(encoding=msg.encoding, reason=str(e))
