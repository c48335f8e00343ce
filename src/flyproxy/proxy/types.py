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
"""Method descriptors, proxy surfaces, and the interceptor contract."""

from __future__ import annotations

import enum
import inspect
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

NoneType = type(None)

# Private storage declared on every generated proxy type.
TARGET_SLOT = "__flyproxy_target__"
INTERCEPTOR_SLOT = "__flyproxy_interceptor__"
SURFACE_ATTR = "__flyproxy_surface__"


def forwarder_slot(method_name: str) -> str:
    """Name of the slot holding the forwarder for *method_name*."""
    return f"__flyproxy_fwd_{method_name}__"


class MethodOrigin(enum.Enum):
    """Where a proxied method comes from."""

    TARGET = "target"
    INTERFACE = "interface"


class MethodKind(enum.Enum):
    """How a method is bound on its declaring class."""

    INSTANCE = "instance"
    STATIC = "static"
    CLASS = "class"
    PROPERTY = "property"


@dataclass(frozen=True)
class ParameterDescriptor:
    """One declared parameter of a proxied method (``self`` excluded)."""

    name: str
    kind: inspect._ParameterKind
    annotation: Any = Any
    default: Any = inspect.Parameter.empty


@dataclass(frozen=True)
class MethodDescriptor:
    """Immutable description of one public method on a proxy type.

    Attributes:
        name: Method name as seen by callers.
        parameters: Declared parameters in order, without ``self``.
        return_type: Resolved return annotation; ``Any`` when unannotated,
            ``NoneType`` when the method returns nothing. An annotation that
            cannot be resolved stays a string.
        overridable: False for ``@final`` functions and getters, static and
            class methods.
        origin: :attr:`MethodOrigin.TARGET` or :attr:`MethodOrigin.INTERFACE`.
        declaring_type: The class whose ``__dict__`` holds the function.
        kind: Instance, static or class method, or property.
        is_async: True for ``async def`` methods.
        function: The underlying function object; the getter for properties.
        signature: Signature of *function*, including ``self``.
        member: The raw class attribute (function, descriptor or property).
    """

    name: str
    parameters: tuple[ParameterDescriptor, ...]
    return_type: Any
    overridable: bool
    origin: MethodOrigin
    declaring_type: type
    kind: MethodKind = MethodKind.INSTANCE
    is_async: bool = False
    function: Callable[..., Any] | None = field(default=None, compare=False, repr=False)
    signature: inspect.Signature | None = field(default=None, compare=False, repr=False)
    member: Any = field(default=None, compare=False, repr=False)

    @property
    def interceptable(self) -> bool:
        """Interface methods are always routed; target methods only when overridable."""
        return self.origin is MethodOrigin.INTERFACE or self.overridable

    @property
    def returns_value(self) -> bool:
        return self.return_type is not NoneType and self.return_type is not None

    @property
    def parameter_types(self) -> tuple[Any, ...]:
        return tuple(p.annotation for p in self.parameters)


@dataclass(frozen=True)
class ProxySurface:
    """The complete, statically enumerable method surface of a proxy type."""

    target_type: type
    interfaces: tuple[type, ...]
    methods: tuple[MethodDescriptor, ...]

    @property
    def interceptable(self) -> tuple[MethodDescriptor, ...]:
        """Methods whose calls are routed through the interceptor."""
        return tuple(m for m in self.methods if m.interceptable)

    @property
    def passthrough(self) -> tuple[MethodDescriptor, ...]:
        """Target methods that reach the real implementation directly."""
        return tuple(m for m in self.methods if not m.interceptable)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(m.name for m in self.methods)

    def get(self, name: str) -> MethodDescriptor | None:
        for method in self.methods:
            if method.name == name:
                return method
        return None

    def is_interceptable(self, name: str) -> bool:
        method = self.get(name)
        return method is not None and method.interceptable


@runtime_checkable
class Interceptor(Protocol):
    """Caller-supplied capability invoked on every routed method call.

    *forwarder* reaches the real implementation when called as
    ``forwarder(*args)``. For additional-interface methods it is a trap that
    raises :class:`~flyproxy.kernel.exceptions.UnhandledAdditionalMethodError`,
    so the interceptor must produce those results itself.
    """

    def call(self, method_name: str, forwarder: Callable[..., Any], args: tuple[Any, ...]) -> Any: ...
