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

from dataclasses import dataclass
import threading
from typing import Optional

import lcm

from imtoggle.protocol.service.spec import Service
from imtoggle.utils.logging_config import setup_logger

logger = setup_logger("imtoggle.protocol.service.lcmservice")


@dataclass
class LCMConfig:
    url: str | None = None
    # milliseconds the handler thread blocks before checking for stop
    handle_timeout: int = 50


class LCMService(Service[LCMConfig]):
    default_config = LCMConfig
    l: lcm.LCM
    _stop_event: threading.Event
    _thread: Optional[threading.Thread]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.l = lcm.LCM(self.config.url) if self.config.url else lcm.LCM()
        self._stop_event = threading.Event()
        self._thread = None

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name="lcm-handler", daemon=True)
        self._thread.start()

    def _loop(self) -> None:
        """LCM message handling loop."""
        while not self._stop_event.is_set():
            try:
                self.l.handle_timeout(self.config.handle_timeout)
            except Exception:
                logger.exception("Error in LCM handling")
                if self._stop_event.is_set():
                    break

    def stop(self) -> None:
        """Stop the LCM loop."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
