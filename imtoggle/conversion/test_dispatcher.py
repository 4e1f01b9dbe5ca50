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

import cv2
import numpy as np
import pytest

from imtoggle.conversion.dispatcher import DISPATCH, SUPPORTED_CHANNELS, convert, decode_image
from imtoggle.conversion.failures import (
    DecodeFailure,
    UnsupportedChannelCount,
    UnsupportedPixelType,
)
from imtoggle.conversion.mode import Mode
from imtoggle.msgs.sensor_msgs.Image import Header, Image, ImageMsg

ENCODING_FOR_CHANNELS = {1: "mono8", 2: "yuv422", 3: "bgr8", 4: "bgra8"}
EXPECTED = {
    Mode.GRAYSCALE: ("mono8", 1),
    Mode.COLOR: ("bgr8", 3),
}


def random_frame(channels: int, height: int = 4, width: int = 6, seed: int = 0) -> Image:
    rng = np.random.default_rng(seed)
    shape = (height, width) if channels == 1 else (height, width, channels)
    return Image(
        data=rng.integers(0, 256, size=shape, dtype=np.uint8),
        encoding=ENCODING_FOR_CHANNELS.get(channels, f"8UC{channels}"),
        frame_id="camera",
        ts=1234.5,
    )


def test_table_covers_every_mode_and_channel_count():
    assert SUPPORTED_CHANNELS == {1, 2, 3, 4}
    assert set(DISPATCH) == {(mode, c) for mode in Mode for c in (1, 2, 3, 4)}


@pytest.mark.parametrize("mode", list(Mode))
@pytest.mark.parametrize("channels", [1, 2, 3, 4])
def test_output_tag_and_channels(mode: Mode, channels: int):
    frame = random_frame(channels)
    result = convert(frame, mode)

    encoding, out_channels = EXPECTED[mode]
    assert isinstance(result, Image)
    assert result.encoding == encoding
    assert result.channels == out_channels
    assert (result.height, result.width) == (frame.height, frame.width)
    assert result.dtype == np.uint8
    assert result.frame_id == "camera"
    assert result.ts == 1234.5


def test_grayscale_input_is_unchanged_in_grayscale_mode():
    frame = random_frame(1)
    result = convert(frame, Mode.GRAYSCALE)
    np.testing.assert_array_equal(result.data, frame.data)


def test_color_input_is_unchanged_in_color_mode():
    frame = random_frame(3)
    result = convert(frame, Mode.COLOR)
    np.testing.assert_array_equal(result.data, frame.data)
    assert result.encoding == "bgr8"


def test_rgb_input_is_only_retagged_in_color_mode():
    frame = Image(data=random_frame(3).data, encoding="rgb8")
    result = convert(frame, Mode.COLOR)
    np.testing.assert_array_equal(result.data, frame.data)
    assert result.encoding == "bgr8"


def test_white_color_frame_to_grayscale():
    frame = Image(data=np.full((2, 2, 3), 255, dtype=np.uint8), encoding="bgr8")
    result = convert(frame, Mode.GRAYSCALE)

    assert result.shape == (2, 2)
    assert result.encoding == "mono8"
    assert np.all(result.data == 255)


def test_grayscale_frame_to_color_replicates_luma():
    frame = Image(data=np.array([[0, 128], [255, 64]], dtype=np.uint8), encoding="mono8")
    result = convert(frame, Mode.COLOR)

    assert result.shape == (2, 2, 3)
    assert result.encoding == "bgr8"
    for channel in range(3):
        np.testing.assert_array_equal(result.data[:, :, channel], frame.data)


def test_color_to_grayscale_uses_bt601_weights():
    bgr = np.array([[[255, 0, 0], [0, 255, 0], [0, 0, 255], [10, 20, 30]]], dtype=np.uint8)
    result = convert(Image(data=bgr, encoding="bgr8"), Mode.GRAYSCALE)

    b, g, r = (bgr[..., i].astype(float) for i in range(3))
    expected = 0.114 * b + 0.587 * g + 0.299 * r
    assert np.all(np.abs(result.data.astype(float) - expected) <= 1.0)


def test_alpha_is_ignored():
    frame = random_frame(4)
    opaque = frame.data.copy()
    opaque[:, :, 3] = 255
    other_alpha = Image(data=opaque, encoding="bgra8")

    gray = convert(frame, Mode.GRAYSCALE)
    np.testing.assert_array_equal(gray.data, convert(other_alpha, Mode.GRAYSCALE).data)
    np.testing.assert_array_equal(
        gray.data, cv2.cvtColor(np.ascontiguousarray(frame.data[:, :, :3]), cv2.COLOR_BGR2GRAY)
    )

    color = convert(frame, Mode.COLOR)
    np.testing.assert_array_equal(color.data, frame.data[:, :, :3])


def test_two_channel_grayscale_keeps_luminance():
    frame = random_frame(2)
    result = convert(frame, Mode.GRAYSCALE)

    assert result.encoding == "mono8"
    np.testing.assert_array_equal(result.data, frame.data[:, :, 0])


def test_two_channel_color_is_zero_chroma_reconstruction():
    frame = random_frame(2)
    result = convert(frame, Mode.COLOR)

    luma = np.ascontiguousarray(frame.data[:, :, 0])
    zero = np.zeros_like(luma)
    expected = cv2.cvtColor(cv2.merge([luma, zero, zero]), cv2.COLOR_YUV2BGR)

    assert result.encoding == "bgr8"
    assert result.shape == frame.shape[:2] + (3,)
    np.testing.assert_array_equal(result.data, expected)


def test_two_channel_color_ignores_second_channel():
    frame = random_frame(2)
    altered = frame.data.copy()
    altered[:, :, 1] = 255 - altered[:, :, 1]

    a = convert(frame, Mode.COLOR)
    b = convert(Image(data=altered, encoding="yuv422"), Mode.COLOR)
    np.testing.assert_array_equal(a.data, b.data)


def test_round_trip_keeps_shape_and_tags():
    frame = random_frame(3)
    gray = convert(frame, Mode.GRAYSCALE)
    color = convert(gray, Mode.COLOR)

    assert gray.encoding == "mono8" and gray.channels == 1
    assert color.encoding == "bgr8" and color.shape == frame.shape


@pytest.mark.parametrize("mode", list(Mode))
def test_five_channels_are_unsupported(mode: Mode):
    frame = random_frame(5)
    result = convert(frame, mode)

    assert result == UnsupportedChannelCount(5)
    assert "5" in result.describe()


@pytest.mark.parametrize("mode", list(Mode))
def test_float_pixels_are_unsupported(mode: Mode):
    frame = Image(data=np.zeros((2, 2, 3), dtype=np.float32), encoding="32FC3")
    result = convert(frame, mode)

    assert result == UnsupportedPixelType("float32")
    assert result.describe() == "Unsupported pixel type: float32"


def test_sixteen_bit_input_is_scaled_to_eight_bit():
    frame = Image(data=np.array([[0, 256, 65535]], dtype=np.uint16), encoding="mono16")

    gray = convert(frame, Mode.GRAYSCALE)
    assert gray.dtype == np.uint8
    np.testing.assert_array_equal(gray.data, [[0, 1, 255]])

    color = convert(frame, Mode.COLOR)
    assert color.dtype == np.uint8
    np.testing.assert_array_equal(color.data[0, :, 2], [0, 1, 255])


@pytest.mark.parametrize("mode", list(Mode))
def test_empty_frame(mode: Mode):
    frame = Image(data=np.zeros((0, 4, 3), dtype=np.uint8), encoding="bgr8")
    result = convert(frame, mode)

    encoding, channels = EXPECTED[mode]
    assert result.encoding == encoding
    assert result.channels == channels
    assert result.height == 0 and result.width == 4


def test_input_frame_is_not_modified():
    frame = random_frame(3)
    before = frame.data.copy()
    convert(frame, Mode.GRAYSCALE)
    convert(frame, Mode.COLOR)
    np.testing.assert_array_equal(frame.data, before)


def test_decode_image_success():
    msg = ImageMsg(
        header=Header(frame_id="cam", stamp=10.0),
        height=1,
        width=2,
        encoding="mono8",
        step=2,
        data=bytes([7, 9]),
    )
    image = decode_image(msg)

    assert isinstance(image, Image)
    np.testing.assert_array_equal(image.data, [[7, 9]])
    assert image.frame_id == "cam"


def test_decode_image_unknown_encoding():
    msg = ImageMsg(height=1, width=1, encoding="jpeg", step=1, data=b"\x00")
    failure = decode_image(msg)

    assert isinstance(failure, DecodeFailure)
    assert failure.encoding == "jpeg"
    assert "jpeg" in failure.describe()


def test_decode_image_truncated_buffer():
    msg = ImageMsg(height=2, width=2, encoding="bgr8", step=6, data=bytes(6))
    failure = decode_image(msg)

    assert isinstance(failure, DecodeFailure)
    assert "12" in failure.reason
