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

import hashlib
import os
from typing import Any, Optional


def short_id(name: str, length: int = 12) -> str:
    """Stable short identifier for names that do not fit a channel name."""
    return hashlib.sha1(name.encode("utf-8")).hexdigest()[:length]


def truncate_display_string(arg: Any, max: Optional[int] = None) -> str:
    """
    Long reprs (pixel buffers, big dicts) drown out the rest of the log.

    Truncate to ``max`` characters, or ``IMTOGGLE_TRUNCATE_MAX`` from the env.
    """
    string = str(arg)

    max_chars = max if max is not None else int(os.getenv("IMTOGGLE_TRUNCATE_MAX", "2000"))

    if max_chars == 0 or len(string) <= max_chars:
        return string

    return string[:max_chars] + "...(truncated)..."
