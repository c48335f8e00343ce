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
"""Constructs proxy instances and wires their private storage."""

from __future__ import annotations

import inspect
from collections.abc import Callable, Mapping
from typing import Any

from flyproxy.kernel.exceptions import ProxyConstructionError
from flyproxy.proxy.builder import ProxyTypeDefinition
from flyproxy.proxy.forwarders import ForwarderFactory
from flyproxy.proxy.types import INTERCEPTOR_SLOT, TARGET_SLOT, forwarder_slot

_set_slot = object.__setattr__


def require_default_constructor(target_type: type) -> None:
    """Raise :class:`ProxyConstructionError` unless ``target_type()`` is possible."""
    try:
        sig = inspect.signature(target_type.__init__)
    except (TypeError, ValueError):
        # builtin initialisers without introspectable signatures
        return
    try:
        sig.bind(None)
    except TypeError as exc:
        raise ProxyConstructionError(
            f"{target_type.__name__} has no accessible no-argument constructor",
            context={"target": target_type.__qualname__, "signature": str(sig)},
        ) from exc


def generate_constructor(
    target_type: type, factories: Mapping[str, ForwarderFactory]
) -> Callable[[Any, Any, Any], None]:
    """Build ``__init__(self, target, interceptor)`` for a proxy type.

    The target type's own no-argument initialiser runs first, then the
    target, the interceptor and one forwarder per slot are stored.
    """
    require_default_constructor(target_type)
    base_init = target_type.__init__

    def __init__(self: Any, target: Any, interceptor: Any) -> None:
        base_init(self)
        _set_slot(self, TARGET_SLOT, target)
        _set_slot(self, INTERCEPTOR_SLOT, interceptor)
        for method_name, factory in factories.items():
            _set_slot(self, forwarder_slot(method_name), factory.bind(target))

    return __init__


class Instantiator:
    """Creates one proxy instance per request from a finalized definition."""

    def instantiate(self, definition: ProxyTypeDefinition, target: Any, interceptor: Any) -> Any:
        target_type = definition.surface.target_type
        if not isinstance(target, target_type):
            raise TypeError(
                f"Proxy type {definition.proxy_type.__name__} wraps {target_type.__name__}, "
                f"got {type(target).__name__}"
            )

        proxy_type = definition.proxy_type
        # Bypass a custom target __new__ that would receive (target, interceptor).
        instance = proxy_type.__new__(proxy_type)
        proxy_type.__init__(instance, target, interceptor)  # type: ignore[misc]
        return instance
