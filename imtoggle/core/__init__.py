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

from imtoggle.core.global_config import GlobalConfig
from imtoggle.core.module import Module, ModuleConfig, rpc, shared_memory_rpc
from imtoggle.core.stream import In, Out, State, Transport
from imtoggle.core.transport import MemoryTransport, PubSubTransport, pLCMTransport, shared_memory

__all__ = [
    "GlobalConfig",
    "In",
    "MemoryTransport",
    "Module",
    "ModuleConfig",
    "Out",
    "PubSubTransport",
    "State",
    "Transport",
    "pLCMTransport",
    "rpc",
    "shared_memory",
    "shared_memory_rpc",
]
