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
"""Proxy type builder: declares the shape of a generated proxy class."""

from __future__ import annotations

import types
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from flyproxy.kernel.exceptions import IncompleteProxyTypeError, ProxyBuilderFrozenError
from flyproxy.proxy.forwarders import ForwarderFactory
from flyproxy.proxy.types import (
    INTERCEPTOR_SLOT,
    SURFACE_ATTR,
    TARGET_SLOT,
    ProxySurface,
    forwarder_slot,
)

_PRIVATE_PREFIX = "__flyproxy_"


@dataclass(frozen=True)
class ProxyTypeDefinition:
    """A finalized proxy type together with the surface it was built from."""

    proxy_type: type
    surface: ProxySurface
    forwarder_factories: Mapping[str, ForwarderFactory] = field(repr=False)


class ProxyTypeBuilder:
    """Collects the members of a proxy type and creates it on :meth:`finalize`.

    The generated class derives from the target type and every additional
    interface. Its ``__slots__`` hold the wrapped target, the interceptor,
    and one forwarder per interceptable method. A builder creates at most one
    type, and only once every member has been defined.

    Usage::

        builder = ProxyTypeBuilder(surface)
        for method in surface.interceptable:
            builder.define_forwarder(method.name, factory)
            builder.define_dispatcher(method.name, dispatcher)
        builder.define_constructor(init)
        definition = builder.finalize()
    """

    def __init__(self, surface: ProxySurface, name: str | None = None, suffix: str = "Proxy") -> None:
        self._surface = surface
        self._name = name or f"{surface.target_type.__name__}{suffix}"
        self._interceptable = {m.name for m in surface.interceptable}
        self._forwarders: dict[str, ForwarderFactory] = {}
        self._dispatchers: dict[str, Any] = {}
        self._constructor: Callable[..., None] | None = None
        self._definition: ProxyTypeDefinition | None = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def surface(self) -> ProxySurface:
        return self._surface

    @property
    def finalized(self) -> bool:
        return self._definition is not None

    @property
    def slots(self) -> tuple[str, ...]:
        """Storage declared on the proxy type, in declaration order."""
        return (
            TARGET_SLOT,
            INTERCEPTOR_SLOT,
            *(forwarder_slot(m.name) for m in self._surface.interceptable),
        )

    @property
    def forwarder_factories(self) -> Mapping[str, ForwarderFactory]:
        return types.MappingProxyType(self._forwarders)

    # -- member definition -------------------------------------------------

    def define_forwarder(self, method_name: str, factory: ForwarderFactory) -> None:
        self._check_member(method_name)
        self._forwarders[method_name] = factory

    def define_dispatcher(self, method_name: str, dispatcher: Any) -> None:
        """Register the public member for *method_name*: a function or a property."""
        self._check_member(method_name)
        self._dispatchers[method_name] = dispatcher

    def define_constructor(self, constructor: Callable[..., None]) -> None:
        self._check_open()
        self._constructor = constructor

    def missing_members(self) -> list[str]:
        """Describe every member still undefined, e.g. ``"forwarder:greet"``."""
        missing = [f"forwarder:{m.name}" for m in self._surface.interceptable if m.name not in self._forwarders]
        missing += [f"dispatcher:{m.name}" for m in self._surface.interceptable if m.name not in self._dispatchers]
        if self._constructor is None:
            missing.append("constructor")
        return missing

    # -- finalization ------------------------------------------------------

    def finalize(self) -> ProxyTypeDefinition:
        """Create the proxy type; refuses while any member is missing."""
        self._check_open()
        missing = self.missing_members()
        if missing:
            raise IncompleteProxyTypeError(
                f"Cannot finalize {self._name}: missing {', '.join(missing)}",
                context={"proxy_type": self._name, "missing": missing},
            )

        target_type = self._surface.target_type
        namespace: dict[str, Any] = {
            "__slots__": self.slots,
            "__module__": target_type.__module__,
            "__qualname__": self._name,
            "__init__": self._constructor,
            "__setattr__": _guarded_setattr(target_type),
            "__delattr__": _guarded_delattr(target_type),
            SURFACE_ATTR: self._surface,
        }
        namespace.update(self._dispatchers)
        if "__eq__" in self._dispatchers and "__hash__" not in self._dispatchers:
            # Defining __eq__ alone would make the proxy type unhashable.
            namespace["__hash__"] = target_type.__hash__

        proxy_type = types.new_class(
            self._name,
            (target_type, *self._surface.interfaces),
            exec_body=lambda ns: ns.update(namespace),
        )
        self._definition = ProxyTypeDefinition(
            proxy_type=proxy_type,
            surface=self._surface,
            forwarder_factories=self.forwarder_factories,
        )
        return self._definition

    def _check_open(self) -> None:
        if self._definition is not None:
            raise ProxyBuilderFrozenError(f"{self._name} is already finalized")

    def _check_member(self, method_name: str) -> None:
        self._check_open()
        if method_name not in self._interceptable:
            raise ValueError(f"'{method_name}' is not an interceptable method of {self._name}")


def _guarded_setattr(target_type: type) -> Callable[[Any, str, Any], None]:
    base_setattr = target_type.__setattr__

    def __setattr__(self: Any, name: str, value: Any) -> None:
        if name.startswith(_PRIVATE_PREFIX):
            raise AttributeError(f"'{name}' is fixed when the proxy is constructed")
        base_setattr(self, name, value)

    return __setattr__


def _guarded_delattr(target_type: type) -> Callable[[Any, str], None]:
    base_delattr = target_type.__delattr__

    def __delattr__(self: Any, name: str) -> None:
        if name.startswith(_PRIVATE_PREFIX):
            raise AttributeError(f"'{name}' is fixed when the proxy is constructed")
        base_delattr(self, name)

    return __delattr__
