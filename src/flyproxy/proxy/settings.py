# Copyright 2026 Firefly Software Solutions Inc.
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
"""ProxySettings: configuration bound from the ``flyproxy.proxy`` section."""

from __future__ import annotations

from pydantic import BaseModel, Field

from flyproxy.core.config import Config, config_properties


@config_properties(prefix="flyproxy.proxy")
class ProxySettings(BaseModel):
    """Tunables for proxy generation.

    Attributes:
        cache_types: Reuse a generated proxy type per (target type,
            interfaces) pair for the lifetime of one generator.
        strict_returns: Coerce interceptor results in pydantic strict mode.
            Lax mode still rejects lossy conversions such as ``1.5 -> int``.
        log_calls: Emit a debug event for every dispatched call.
        type_name_suffix: Appended to the target type name to name the proxy type.
    """

    cache_types: bool = True
    strict_returns: bool = True
    log_calls: bool = False
    type_name_suffix: str = Field(default="Proxy", min_length=1)

    @classmethod
    def from_config(cls, config: Config) -> ProxySettings:
        return config.bind(cls)
