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
"""Call forwarders: the only path from an interceptor back to real behaviour."""

from __future__ import annotations

import inspect
from collections.abc import Sequence
from typing import Any, Protocol

from flyproxy.kernel.exceptions import UnhandledAdditionalMethodError
from flyproxy.proxy.types import MethodDescriptor, MethodOrigin, ParameterDescriptor

_Kind = inspect.Parameter


def unpack_arguments(
    parameters: Sequence[ParameterDescriptor], values: Sequence[Any]
) -> tuple[tuple[Any, ...], dict[str, Any]]:
    """Rebuild ``(args, kwargs)`` from values packed in declaration order.

    A ``*args`` slot holds a tuple and a ``**kwargs`` slot holds a dict.
    Values beyond the declared parameters are passed positionally.
    """
    args: list[Any] = []
    kwargs: dict[str, Any] = {}
    for param, value in zip(parameters, values, strict=False):
        if param.kind is _Kind.VAR_POSITIONAL:
            args.extend(value)
        elif param.kind is _Kind.KEYWORD_ONLY:
            kwargs[param.name] = value
        elif param.kind is _Kind.VAR_KEYWORD:
            kwargs.update(value)
        else:
            args.append(value)
    args.extend(values[len(parameters) :])
    return tuple(args), kwargs


class Forwarder:
    """Bound reference to (target, original function).

    ``forwarder(*args)`` takes the packed argument tuple the interceptor
    received and returns the real method's result unmodified. For ``async``
    methods that result is the coroutine.
    """

    __slots__ = ("method_name", "target", "function", "_parameters")

    def __init__(
        self,
        method_name: str,
        target: Any,
        function: Any,
        parameters: Sequence[ParameterDescriptor],
    ) -> None:
        self.method_name = method_name
        self.target = target
        self.function = function
        self._parameters = tuple(parameters)

    def __call__(self, *args: Any) -> Any:
        call_args, call_kwargs = unpack_arguments(self._parameters, args)
        return self.function(self.target, *call_args, **call_kwargs)

    def __repr__(self) -> str:
        return f"<Forwarder {type(self.target).__name__}.{self.method_name}>"


class TrapForwarder:
    """Forwarder for an additional-interface method; it always fails."""

    __slots__ = ("method_name",)

    target = None
    function = None

    def __init__(self, method_name: str) -> None:
        self.method_name = method_name

    def __call__(self, *args: Any) -> Any:
        raise UnhandledAdditionalMethodError(
            f"Method {self.method_name} is not handled, please handle it in the interceptor",
            context={"method": self.method_name},
        )

    def __repr__(self) -> str:
        return f"<TrapForwarder {self.method_name}>"


class ForwarderFactory(Protocol):
    """Produces the forwarder stored in one proxy instance slot."""

    method_name: str

    def bind(self, target: Any) -> Forwarder | TrapForwarder: ...


class RealForwarderFactory:
    """Binds a target-type method to each proxy's wrapped target."""

    def __init__(self, descriptor: MethodDescriptor) -> None:
        if descriptor.function is None:
            raise ValueError(f"Method '{descriptor.name}' has no function to forward to")
        self.method_name = descriptor.name
        self._function = descriptor.function
        self._parameters = descriptor.parameters

    def bind(self, target: Any) -> Forwarder:
        return Forwarder(self.method_name, target, self._function, self._parameters)


class TrapForwarderFactory:
    """Produces trap forwarders for additional-interface methods."""

    def __init__(self, descriptor: MethodDescriptor) -> None:
        self.method_name = descriptor.name

    def bind(self, target: Any) -> TrapForwarder:
        return TrapForwarder(self.method_name)


def generate_forwarder_factory(descriptor: MethodDescriptor) -> RealForwarderFactory | TrapForwarderFactory:
    """Pick the forwarder factory for an interceptable *descriptor*."""
    if not descriptor.interceptable:
        raise ValueError(f"Method '{descriptor.name}' is not interceptable and gets no forwarder")
    if descriptor.origin is MethodOrigin.INTERFACE:
        return TrapForwarderFactory(descriptor)
    return RealForwarderFactory(descriptor)
