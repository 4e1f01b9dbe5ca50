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
import threading
from typing import Optional

from reactivex.disposable import Disposable

from imtoggle.conversion.dispatcher import convert, decode_image
from imtoggle.conversion.failures import ConversionFailure
from imtoggle.conversion.mode import Mode, ModeState
from imtoggle.core.module import Module, ModuleConfig, rpc
from imtoggle.core.stream import In, Out
from imtoggle.msgs.sensor_msgs.Image import ImageMsg
from imtoggle.msgs.std_srvs.SetBool import SetBoolResponse
from imtoggle.utils.logging_config import setup_logger

logger = setup_logger("imtoggle.toggle.image_toggle_module")


@dataclass
class ImageToggleConfig(ModuleConfig):
    grayscale: bool = False


class ImageToggleModule(Module):
    """Republishes every incoming image in color or grayscale.

    The mode is flipped at runtime through the ``toggle_grayscale`` RPC. Frames
    that cannot be decoded or converted are dropped and counted.
    """

    default_config = ImageToggleConfig
    config: ImageToggleConfig

    image_raw: In[ImageMsg]
    image_processed: Out[ImageMsg]

    def __init__(self, mode: Optional[ModeState] = None, **kwargs) -> None:
        super().__init__(**kwargs)
        if mode is None:
            mode = ModeState(Mode.from_grayscale(self.config.grayscale))
        self.mode = mode
        self._stats_lock = threading.Lock()
        self._received = 0
        self._published = 0
        self._dropped = 0

    def start(self) -> None:
        super().start()
        self._disposables.add(Disposable(self.image_raw.subscribe(self._on_image)))
        logger.info(
            "Image Toggle Service initialized.",
            input=str(self.image_raw.transport),
            output=str(self.image_processed.transport),
            mode=self.mode.get().value,
        )

    def _on_image(self, msg: ImageMsg) -> None:
        with self._stats_lock:
            self._received += 1

        frame = decode_image(msg)
        if isinstance(frame, ConversionFailure):
            self._drop(msg, frame)
            return

        result = convert(frame, self.mode.get())
        if isinstance(result, ConversionFailure):
            self._drop(msg, result)
            return

        self.image_processed.publish(result.to_msg())
        with self._stats_lock:
            self._published += 1

    def _drop(self, msg: ImageMsg, failure: ConversionFailure) -> None:
        with self._stats_lock:
            self._dropped += 1
        logger.error(
            failure.describe(),
            frame_id=msg.header.frame_id,
            encoding=msg.encoding,
            failure=type(failure).__name__,
        )

    @rpc
    def toggle_grayscale(self, data: bool) -> SetBoolResponse:
        """Switch to grayscale output when ``data`` is true, to color otherwise."""
        ack = self.mode.set_grayscale(data)
        logger.info(ack.message)
        return SetBoolResponse(success=ack.success, message=ack.message)

    @rpc
    def get_mode(self) -> str:
        return self.mode.get().value

    @rpc
    def stats(self) -> dict[str, int]:
        with self._stats_lock:
            return {
                "received": self._received,
                "published": self._published,
                "dropped": self._dropped,
            }
