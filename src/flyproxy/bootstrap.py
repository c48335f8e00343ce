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
"""One-call setup: configuration, logging and a configured generator."""

from __future__ import annotations

from pathlib import Path

from flyproxy.core.config import Config
from flyproxy.logging.port import LoggingPort
from flyproxy.logging.structlog_adapter import StructlogAdapter
from flyproxy.proxy.generator import ProxyGenerator
from flyproxy.proxy.settings import ProxySettings


def bootstrap(
    config: Config | str | Path | None = None,
    *,
    active_profiles: list[str] | None = None,
    logging_port: LoggingPort | None = None,
) -> ProxyGenerator:
    """Load configuration, configure logging and return a :class:`ProxyGenerator`.

    Startup sequence:
    1. Resolve *config*: a :class:`Config` is used as is, a path is loaded
       with :meth:`Config.from_file` (plus *active_profiles* overlays), and
       ``None`` means an empty configuration.
    2. Configure *logging_port* (a :class:`StructlogAdapter` by default).
    3. Bind :class:`ProxySettings` from ``flyproxy.proxy``.

    Raises:
        ValueError: If the ``flyproxy.proxy`` section fails validation.
    """
    if config is None:
        config = Config()
    elif not isinstance(config, Config):
        config = Config.from_file(config, active_profiles=active_profiles)

    port = logging_port or StructlogAdapter()
    port.configure(config)

    settings = ProxySettings.from_config(config)
    port.get_logger("flyproxy.bootstrap").info(
        "flyproxy_configured",
        sources=config.loaded_sources or ["defaults"],
        cache_types=settings.cache_types,
        strict_returns=settings.strict_returns,
        log_calls=settings.log_calls,
    )
    return ProxyGenerator(settings)
