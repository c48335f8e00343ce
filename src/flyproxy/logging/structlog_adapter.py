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
"""structlog-backed logging for the flyproxy namespace."""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from flyproxy.core.config import Config

ROOT_LOGGER = "flyproxy"
DISPATCH_LOGGER = "flyproxy.proxy.dispatch"

# Generation events are debug-level chatter; keep them quiet unless asked.
_DEFAULT_MODULE_LEVELS = {"flyproxy.proxy": "WARNING"}


class StructlogAdapter:
    """Default :class:`~flyproxy.logging.port.LoggingPort` implementation.

    On the stdlib side only the ``flyproxy`` logger tree is touched; the host
    application's root logger keeps its own handlers and level. structlog
    itself has a single process-wide configuration, which :meth:`configure`
    replaces unless ``flyproxy.logging.configure-structlog`` is false. Hosts
    that set up structlog themselves turn it off and keep their processors.

    Reads:

    - ``flyproxy.logging.level.root`` and per-module entries such as
      ``flyproxy.logging.level.flyproxy.proxy``
    - ``flyproxy.logging.format``: ``console`` or ``json``
    - ``flyproxy.logging.configure-structlog``: default true
    - ``flyproxy.proxy.log-calls``: when true, the dispatch logger is opened
      to DEBUG so ``proxy_call_dispatched`` events are visible
    """

    def __init__(self, stream: Any = None) -> None:
        self._stream = stream or sys.stderr
        self._root_level: str = "INFO"
        self._format: str = "console"
        self._owns_structlog = True
        self._module_levels: dict[str, str] = {}
        self._handler: logging.Handler | None = None

    def configure(self, config: Config) -> None:
        level_section = dict(config.get_section("flyproxy.logging.level"))
        self._root_level = str(level_section.pop("root", "INFO")).upper()

        module_levels = dict(_DEFAULT_MODULE_LEVELS)
        module_levels.update({k: str(v).upper() for k, v in level_section.items()})
        log_calls = config.get("flyproxy.proxy.log-calls", config.get("flyproxy.proxy.log_calls", False))
        if _truthy(log_calls):
            module_levels.setdefault(DISPATCH_LOGGER, "DEBUG")
        self._module_levels = module_levels
        self._format = str(config.get("flyproxy.logging.format", "console")).lower()
        self._owns_structlog = _truthy(config.get("flyproxy.logging.configure-structlog", True))

        if self._owns_structlog:
            self._setup_structlog()
        self._install_handler()
        for module, level in self._module_levels.items():
            self.set_level(module, level)

    def get_logger(self, name: str) -> Any:
        return structlog.get_logger(name)

    def set_level(self, name: str, level: str) -> None:
        logging.getLogger(name).setLevel(getattr(logging, level.upper(), logging.INFO))

    def _setup_structlog(self) -> None:
        renderer: structlog.types.Processor
        if self._format == "json":
            renderer = structlog.processors.JSONRenderer()
        else:
            renderer = structlog.dev.ConsoleRenderer()

        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.stdlib.filter_by_level,
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                add_proxy_component,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.UnicodeDecoder(),
                renderer,
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

    def _install_handler(self) -> None:
        root = logging.getLogger(ROOT_LOGGER)
        if self._handler is not None:
            root.removeHandler(self._handler)
        self._handler = logging.StreamHandler(self._stream)
        self._handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(self._handler)
        root.setLevel(getattr(logging, self._root_level, logging.INFO))
        root.propagate = False


def add_proxy_component(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Tag events from ``flyproxy.proxy.<component>`` loggers with ``component``."""
    name = event_dict.get("logger", "")
    if name.startswith("flyproxy.proxy."):
        event_dict.setdefault("component", name.rsplit(".", 1)[-1])
    return event_dict


def _truthy(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)
