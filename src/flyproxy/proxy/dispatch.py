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
"""Interception dispatcher generation: the public methods callers actually invoke."""

from __future__ import annotations

import functools
import inspect
import types
import typing
from collections.abc import Callable
from typing import Any

import structlog
from pydantic import ConfigDict, PydanticUserError, TypeAdapter, ValidationError

from flyproxy.kernel.exceptions import ReturnTypeMismatchError
from flyproxy.proxy.types import (
    INTERCEPTOR_SLOT,
    TARGET_SLOT,
    MethodDescriptor,
    MethodKind,
    MethodOrigin,
    forwarder_slot,
)

logger = structlog.get_logger("flyproxy.proxy.dispatch")

_ARBITRARY_TYPES = ConfigDict(arbitrary_types_allowed=True)

_get_slot = object.__getattribute__


def generate_dispatcher(
    descriptor: MethodDescriptor,
    owner_name: str,
    *,
    strict: bool = True,
    log_calls: bool = False,
) -> Any:
    """Build the public member for an interceptable *descriptor*.

    Each call packs its arguments in declaration order, hands them to
    ``interceptor.call(name, forwarder, args)`` and coerces the result to the
    declared return type. Async methods get an async dispatcher that awaits
    an awaitable interceptor result. Properties get a :class:`property` whose
    getter is intercepted and whose setter and deleter act on the target.
    """
    if not descriptor.interceptable:
        raise ValueError(f"Method '{descriptor.name}' is not interceptable and gets no dispatcher")

    method_name = descriptor.name
    slot = forwarder_slot(method_name)
    pack = _make_packer(descriptor)
    coerce = _make_coercer(descriptor, strict)

    def _intercept(self: Any, args: tuple, kwargs: dict) -> Any:
        packed = pack(self, args, kwargs)
        interceptor = _get_slot(self, INTERCEPTOR_SLOT)
        forwarder = _get_slot(self, slot)
        if log_calls:
            logger.debug("proxy_call_dispatched", method=method_name, owner=owner_name, args=len(packed))
        return interceptor.call(method_name, forwarder, packed)

    if descriptor.is_async:

        async def dispatcher(self: Any, *args: Any, **kwargs: Any) -> Any:
            result = _intercept(self, args, kwargs)
            if inspect.isawaitable(result):
                result = await result
            return coerce(result)

    else:

        def dispatcher(self: Any, *args: Any, **kwargs: Any) -> Any:  # type: ignore[misc]
            return coerce(_intercept(self, args, kwargs))

    # updated=() keeps __isabstractmethod__ and @final markers off the override
    functools.update_wrapper(dispatcher, descriptor.function, updated=())
    dispatcher.__qualname__ = f"{owner_name}.{method_name}"

    if descriptor.kind is MethodKind.PROPERTY:
        return _as_property(dispatcher, descriptor)
    return dispatcher


def _as_property(getter: Callable[..., Any], descriptor: MethodDescriptor) -> property:
    """Wrap an intercepted getter; setter and deleter go straight to the target.

    Interface properties have no target to write to, so they stay read-only.
    """
    prop = descriptor.member if isinstance(descriptor.member, property) else property(descriptor.function)
    if descriptor.origin is MethodOrigin.INTERFACE:
        return property(getter, doc=prop.__doc__)
    return property(getter, _on_target(prop.fset), _on_target(prop.fdel), prop.__doc__)


def _on_target(accessor: Callable[..., Any] | None) -> Callable[..., Any] | None:
    if accessor is None:
        return None

    def forward(self: Any, *args: Any) -> Any:
        return accessor(_get_slot(self, TARGET_SLOT), *args)

    return forward


def _make_packer(descriptor: MethodDescriptor) -> Callable[[Any, tuple, dict], tuple]:
    """Return a function packing a call into a tuple in declaration order."""
    sig = descriptor.signature or inspect.signature(descriptor.function)  # type: ignore[arg-type]

    def pack(instance: Any, args: tuple, kwargs: dict) -> tuple:
        bound = sig.bind(instance, *args, **kwargs)
        bound.apply_defaults()
        return tuple(bound.arguments.values())[1:]

    return pack


def _make_coercer(descriptor: MethodDescriptor, strict: bool) -> Callable[[Any], Any]:
    """Return a function checking interceptor results against the declared return type.

    A result that already is an instance of the declared type (or of its
    origin, for ``list[int]`` and friends) comes back as the very same
    object. Anything else goes through pydantic, so lax mode may convert it.
    """
    if not descriptor.returns_value:

        def discard(value: Any) -> None:
            return None

        return discard

    return_type = descriptor.return_type
    if return_type is Any:
        return _identity
    if isinstance(return_type, str):
        raise NameError(
            f"Cannot resolve return annotation '{return_type}' of "
            f"{descriptor.declaring_type.__qualname__}.{descriptor.name}"
        )

    expected = _type_name(return_type)
    if return_type is typing.Self:
        # Self resolves per subclass; the declaring class is the weakest bound.
        accepted: tuple[type, ...] = (descriptor.declaring_type,)
        adapter = None
    else:
        accepted = instance_types(return_type)
        adapter = build_return_adapter(return_type)

    def mismatch(value: Any) -> ReturnTypeMismatchError:
        return ReturnTypeMismatchError(
            f"Interceptor returned {type(value).__name__} for '{descriptor.name}', "
            f"which cannot be coerced to {expected}",
            context={"method": descriptor.name, "expected": expected},
        )

    def coerce(value: Any) -> Any:
        if value is NotImplemented or (accepted and isinstance(value, accepted)):
            return value
        if adapter is None:
            raise mismatch(value)
        try:
            return adapter.validate_python(value, strict=strict)
        except ValidationError as exc:
            raise mismatch(value) from exc

    return coerce


def instance_types(annotation: Any) -> tuple[type, ...]:
    """Classes an ``isinstance`` check can accept for *annotation* as is.

    ``list[int]`` yields ``(list,)``, ``int | None`` yields ``(int, NoneType)``
    and annotations with no usable class (``Literal``, non-runtime protocols)
    yield an empty tuple.
    """
    if annotation is None:
        return (type(None),)
    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        return tuple(cls for arg in typing.get_args(annotation) for cls in instance_types(arg))
    candidate = origin if origin is not None else annotation
    if not isinstance(candidate, type) or typing.is_typeddict(candidate):
        return ()
    try:
        isinstance(None, candidate)
    except TypeError:
        return ()
    return (candidate,)


def build_return_adapter(return_type: Any) -> TypeAdapter[Any]:
    """Build a pydantic adapter for *return_type*, allowing arbitrary classes."""
    try:
        return TypeAdapter(return_type, config=_ARBITRARY_TYPES)
    except PydanticUserError:
        # models, dataclasses and TypedDicts carry their own config
        return TypeAdapter(return_type)


def _identity(value: Any) -> Any:
    return value


def _type_name(tp: Any) -> str:
    return getattr(tp, "__name__", None) or repr(tp)
