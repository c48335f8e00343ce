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
"""Computes the method surface a proxy type must expose."""

from __future__ import annotations

import abc
import inspect
import typing
from collections.abc import Iterable
from typing import Any

import structlog

from flyproxy.kernel.exceptions import InterfaceConflictError
from flyproxy.proxy.types import (
    MethodDescriptor,
    MethodKind,
    MethodOrigin,
    ParameterDescriptor,
    ProxySurface,
)

logger = structlog.get_logger("flyproxy.proxy.resolver")

# Bases that never contribute proxied members.
_SKIPPED_BASES: frozenset[type] = frozenset({object, typing.Protocol, typing.Generic, abc.ABC})  # type: ignore[arg-type]

# Dunders the proxy type owns or that only make sense on the class itself.
_RESERVED_DUNDERS = frozenset(
    {
        "__new__",
        "__init__",
        "__del__",
        "__init_subclass__",
        "__subclasshook__",
        "__class_getitem__",
        "__set_name__",
        "__getattribute__",
        "__getattr__",
        "__setattr__",
        "__delattr__",
        "__dir__",
        "__reduce__",
        "__reduce_ex__",
        "__getstate__",
        "__setstate__",
        "__getnewargs__",
        "__getnewargs_ex__",
        "__copy__",
        "__deepcopy__",
        "__post_init__",
        "__instancecheck__",
        "__subclasscheck__",
        "__mro_entries__",
    }
)


def describe_surface(target_type: type, interfaces: Iterable[type] = ()) -> ProxySurface:
    """Compute the proxy surface for *target_type* plus *interfaces*.

    Nothing is built; this only enumerates which methods a proxy would
    intercept and which would reach the target type directly.
    """
    additional = resolve_additional_interfaces(target_type, interfaces)
    return ProxySurface(
        target_type=target_type,
        interfaces=additional,
        methods=collect_methods(target_type, additional),
    )


def resolve_additional_interfaces(target_type: type, interfaces: Iterable[type]) -> tuple[type, ...]:
    """Drop interfaces *target_type* already implements, matched by identity.

    Repeated requests collapse onto the first occurrence, and an interface
    inherited by another requested interface is dropped too. Two distinct
    classes sharing a fully qualified name raise :class:`InterfaceConflictError`.
    """
    requested = list(interfaces)
    for iface in requested:
        if not isinstance(iface, type):
            raise TypeError(f"Additional interfaces must be classes, got {iface!r}")

    _check_identity_conflicts(target_type, requested)

    result: list[type] = []
    for iface in requested:
        if iface in target_type.__mro__:
            logger.debug(
                "proxy_interface_dropped",
                target=_qualified_name(target_type),
                interface=_qualified_name(iface),
            )
            continue
        if iface in result:
            continue
        result.append(iface)

    # An interface inherited by another requested one is already covered.
    covered = [i for i in result if any(o is not i and i in o.__mro__ for o in result)]
    for iface in covered:
        logger.debug(
            "proxy_interface_dropped",
            target=_qualified_name(target_type),
            interface=_qualified_name(iface),
        )
    return tuple(i for i in result if i not in covered)


def collect_methods(target_type: type, interfaces: tuple[type, ...]) -> tuple[MethodDescriptor, ...]:
    """Return target members in MRO order, then members only the interfaces declare.

    Public functions, properties and dunder methods are collected; names the
    proxy machinery itself owns (see ``_RESERVED_DUNDERS``) never are.
    """
    methods: dict[str, MethodDescriptor] = {}

    seen: set[str] = set()
    for cls in target_type.__mro__:
        if cls in _SKIPPED_BASES:
            continue
        for name, value in vars(cls).items():
            if not _is_proxied_name(name) or name in seen:
                continue
            # A subclass attribute shadows any base member of the same name.
            seen.add(name)
            descriptor = _describe_target_member(cls, name, value)
            if descriptor is not None:
                methods[name] = descriptor

    for iface in interfaces:
        for cls in iface.__mro__:
            if cls in _SKIPPED_BASES:
                continue
            for name, value in vars(cls).items():
                if not _is_proxied_name(name) or name in methods or name in seen:
                    continue
                if inspect.isfunction(value):
                    methods[name] = _describe(cls, name, value, MethodKind.INSTANCE, True, MethodOrigin.INTERFACE)
                elif isinstance(value, property) and value.fget is not None:
                    methods[name] = _describe(
                        cls, name, value.fget, MethodKind.PROPERTY, True, MethodOrigin.INTERFACE, member=value
                    )

    return tuple(methods.values())


def _is_proxied_name(name: str) -> bool:
    if name.startswith("__") and name.endswith("__"):
        return name not in _RESERVED_DUNDERS
    return not name.startswith("_")


def _describe_target_member(cls: type, name: str, value: Any) -> MethodDescriptor | None:
    if inspect.isfunction(value):
        overridable = not getattr(value, "__final__", False)
        return _describe(cls, name, value, MethodKind.INSTANCE, overridable, MethodOrigin.TARGET)
    if isinstance(value, property):
        if value.fget is None:
            return None
        overridable = not getattr(value.fget, "__final__", False)
        return _describe(cls, name, value.fget, MethodKind.PROPERTY, overridable, MethodOrigin.TARGET, member=value)
    if isinstance(value, staticmethod):
        return _describe(cls, name, value.__func__, MethodKind.STATIC, False, MethodOrigin.TARGET, member=value)
    if isinstance(value, classmethod):
        return _describe(cls, name, value.__func__, MethodKind.CLASS, False, MethodOrigin.TARGET, member=value)
    return None


def _describe(
    cls: type,
    name: str,
    function: Any,
    kind: MethodKind,
    overridable: bool,
    origin: MethodOrigin,
    member: Any = None,
) -> MethodDescriptor:
    hints = _type_hints(function)
    sig = inspect.signature(function)

    params = list(sig.parameters.values())
    if kind is not MethodKind.STATIC:
        params = params[1:]

    return MethodDescriptor(
        name=name,
        parameters=tuple(
            ParameterDescriptor(
                name=p.name,
                kind=p.kind,
                annotation=hints.get(p.name, Any),
                default=p.default,
            )
            for p in params
        ),
        return_type=hints.get("return", Any),
        overridable=overridable,
        origin=origin,
        declaring_type=cls,
        kind=kind,
        is_async=inspect.iscoroutinefunction(function),
        function=function,
        signature=sig,
        member=member if member is not None else function,
    )


def _type_hints(function: Any) -> dict[str, Any]:
    """Resolve annotations of *function*, one by one when some cannot be.

    Names imported only under ``TYPE_CHECKING`` fail to resolve; those
    annotations are kept as their source string.
    """
    try:
        return typing.get_type_hints(function)
    except NameError:
        return _resolve_one_by_one(function)


def _resolve_one_by_one(function: Any) -> dict[str, Any]:
    hints: dict[str, Any] = {}
    globalns = getattr(function, "__globals__", None)
    for name, annotation in inspect.get_annotations(function).items():
        try:
            hints[name] = typing.get_type_hints(_SingleAnnotation(name, annotation), globalns=globalns)[name]
        except NameError:
            hints[name] = annotation if isinstance(annotation, str) else repr(annotation)
    logger.debug(
        "proxy_annotation_unresolved",
        function=getattr(function, "__qualname__", repr(function)),
        unresolved=sorted(k for k, v in hints.items() if isinstance(v, str)),
    )
    return hints


class _SingleAnnotation:
    """Carrier letting ``get_type_hints`` evaluate one annotation in isolation."""

    def __init__(self, name: str, annotation: Any) -> None:
        self.__annotations__ = {name: annotation}


def _check_identity_conflicts(target_type: type, interfaces: list[type]) -> None:
    """Reject a requested interface whose qualified name belongs to another class."""
    known: dict[str, set[type]] = {}
    for cls in target_type.__mro__:
        known.setdefault(_qualified_name(cls), set()).add(cls)

    for iface in interfaces:
        key = _qualified_name(iface)
        classes = known.setdefault(key, set())
        if classes and iface not in classes:
            raise InterfaceConflictError(
                f"Ambiguous interface '{key}': two distinct classes share this name",
                context={"interface": key, "target": _qualified_name(target_type)},
            )
        classes.add(iface)


def _qualified_name(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"
