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

from imtoggle.msgs.sensor_msgs.Image import Header, Image, ImageMsg, parse_encoding


@pytest.fixture
def img():
    rng = np.random.default_rng(7)
    return Image(
        data=rng.integers(0, 256, size=(5, 3, 3), dtype=np.uint8),
        encoding="bgr8",
        frame_id="camera_link",
        ts=42.0,
    )


def test_properties(img):
    assert img.height == 5
    assert img.width == 3
    assert img.channels == 3
    assert img.shape == (5, 3, 3)
    assert img.dtype == np.uint8
    assert len(img) == 15


def test_rejects_bad_data():
    with pytest.raises(ValueError):
        Image(data=[[1, 2]])  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        Image(data=np.zeros((2, 2, 2, 2), dtype=np.uint8))


def test_non_contiguous_data_is_copied():
    base = np.arange(24, dtype=np.uint8).reshape(4, 6)
    image = Image(data=base[:, ::2], encoding="mono8")
    assert image.data.flags["C_CONTIGUOUS"]
    np.testing.assert_array_equal(image.data, base[:, ::2])


def test_with_data_keeps_metadata(img):
    gray = img.with_data(np.zeros((5, 3), dtype=np.uint8), "mono8")
    assert gray.frame_id == "camera_link"
    assert gray.ts == 42.0
    assert gray.encoding == "mono8"
    assert img.encoding == "bgr8"


def test_copy_is_deep(img):
    clone = img.copy()
    assert clone == img
    clone.data[0, 0, 0] ^= 0xFF
    assert clone != img


@pytest.mark.parametrize(
    "encoding,dtype,channels",
    [
        ("mono8", np.uint8, 1),
        ("mono16", np.uint16, 1),
        ("rgba8", np.uint8, 4),
        ("yuv422", np.uint8, 2),
        ("8UC5", np.uint8, 5),
        ("16UC3", np.uint16, 3),
    ],
)
def test_parse_encoding(encoding, dtype, channels):
    assert parse_encoding(encoding) == (np.dtype(dtype), channels)


@pytest.mark.parametrize("encoding", ["jpeg", "8UC0", "32FC1", ""])
def test_parse_encoding_rejects(encoding):
    with pytest.raises(ValueError):
        parse_encoding(encoding)


def test_msg_round_trip(img):
    msg = img.to_msg()

    assert msg.height == 5
    assert msg.width == 3
    assert msg.step == 9
    assert msg.encoding == "bgr8"
    assert not msg.is_bigendian
    assert msg.header.frame_id == "camera_link"
    assert msg.header.stamp == 42.0
    assert len(msg.data) == 45

    assert Image.from_msg(msg) == img


def test_to_msg_frame_id_override(img):
    assert img.to_msg(frame_id="other").header.frame_id == "other"


def test_from_msg_strips_row_padding():
    rows = [bytes([1, 2, 3, 4, 5, 6, 0xEE, 0xEE]), bytes([7, 8, 9, 10, 11, 12, 0xEE, 0xEE])]
    msg = ImageMsg(height=2, width=2, encoding="rgb8", step=8, data=b"".join(rows))

    image = Image.from_msg(msg)

    assert image.shape == (2, 2, 3)
    np.testing.assert_array_equal(image.data.reshape(-1), np.arange(1, 13))


def test_from_msg_pixels_are_writable():
    image = Image.from_msg(ImageMsg(height=2, width=2, encoding="mono8", step=2, data=bytes(4)))
    assert image.data.flags.writeable
    image.data[0, 0] = 99
    assert image.data[0, 0] == 99


def test_from_msg_big_endian():
    pixels = np.array([[1, 258, 65535]], dtype=">u2")
    msg = ImageMsg(
        header=Header(frame_id="depth", stamp=1.0),
        height=1,
        width=3,
        encoding="mono16",
        is_bigendian=True,
        step=6,
        data=pixels.tobytes(),
    )

    image = Image.from_msg(msg)

    assert image.dtype == np.uint16
    np.testing.assert_array_equal(image.data, [[1, 258, 65535]])


def test_from_msg_without_step():
    msg = ImageMsg(height=1, width=2, encoding="mono8", data=bytes([3, 4]))
    np.testing.assert_array_equal(Image.from_msg(msg).data, [[3, 4]])


def test_from_msg_truncated():
    msg = ImageMsg(height=3, width=3, encoding="mono8", step=3, data=bytes(8))
    with pytest.raises(ValueError, match="needs 9"):
        Image.from_msg(msg)


def test_from_msg_step_too_small():
    msg = ImageMsg(height=1, width=4, encoding="bgr8", step=4, data=bytes(12))
    with pytest.raises(ValueError, match="smaller than one row"):
        Image.from_msg(msg)


def test_from_msg_unknown_encoding():
    with pytest.raises(ValueError, match="Unsupported encoding"):
        Image.from_msg(ImageMsg(height=1, width=1, encoding="h264", data=b"\x00"))


def test_to_uint8():
    image = Image(data=np.array([[0, 512, 65535]], dtype=np.uint16), encoding="mono16")
    scaled = image.to_uint8()
    assert scaled.dtype == np.uint8
    np.testing.assert_array_equal(scaled.data, [[0, 2, 255]])

    eight = Image(data=np.zeros((1, 1), dtype=np.uint8), encoding="mono8")
    assert eight.to_uint8() is eight


def test_file_round_trip(tmp_path, img):
    path = str(tmp_path / "frame.png")
    assert img.save(path)

    loaded = Image.from_file(path)

    assert loaded.encoding == "bgr8"
    assert loaded.frame_id == path
    np.testing.assert_array_equal(loaded.data, img.data)


@pytest.mark.parametrize(
    "shape,dtype,encoding",
    [
        ((4, 4), np.uint8, "mono8"),
        ((4, 4), np.uint16, "mono16"),
        ((4, 4, 4), np.uint8, "bgra8"),
    ],
)
def test_from_file_detects_encoding(tmp_path, shape, dtype, encoding):
    path = str(tmp_path / "frame.png")
    cv2.imwrite(path, np.ones(shape, dtype=dtype))
    assert Image.from_file(path).encoding == encoding


def test_from_file_missing(tmp_path):
    with pytest.raises(ValueError, match="Could not load"):
        Image.from_file(str(tmp_path / "missing.png"))


def test_from_file_rejects_float_pixels(tmp_path):
    path = str(tmp_path / "float.tiff")
    cv2.imwrite(path, np.ones((4, 4), dtype=np.float32))
    with pytest.raises(ValueError, match="Unsupported pixel type float32"):
        Image.from_file(path)
