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
"""Proxy generator: orchestrates type synthesis and instantiation."""

from __future__ import annotations

import contextlib
from collections.abc import Iterable, Iterator
from typing import Any

import structlog

from flyproxy.kernel.exceptions import GenerationError
from flyproxy.proxy.builder import ProxyTypeBuilder, ProxyTypeDefinition
from flyproxy.proxy.dispatch import generate_dispatcher
from flyproxy.proxy.forwarders import generate_forwarder_factory
from flyproxy.proxy.instantiator import Instantiator, generate_constructor
from flyproxy.proxy.resolver import describe_surface
from flyproxy.proxy.settings import ProxySettings
from flyproxy.proxy.types import INTERCEPTOR_SLOT, SURFACE_ATTR, TARGET_SLOT, Interceptor, ProxySurface

logger = structlog.get_logger("flyproxy.proxy")


class ProxyGenerator:
    """Creates interception proxies around existing objects.

    A proxy derives from the target's type and from every requested
    interface the target type does not already implement. Each call to an
    overridable target method, or to any interface method, goes to
    ``interceptor.call(name, forwarder, args)`` first. The real method runs
    only if the interceptor invokes the forwarder.

    Generated types are cached per generator when ``settings.cache_types`` is
    set; the cache lives and dies with the generator instance.
    """

    def __init__(self, settings: ProxySettings | None = None) -> None:
        self._settings = settings or ProxySettings()
        self._instantiator = Instantiator()
        self._types: dict[tuple[type, tuple[type, ...]], ProxyTypeDefinition] = {}

    @property
    def settings(self) -> ProxySettings:
        return self._settings

    def describe(self, target_type: type, additional_interfaces: Iterable[type] = ()) -> ProxySurface:
        """Enumerate the methods a proxy for *target_type* would expose."""
        with _generation_failures(target_type):
            return describe_surface(target_type, additional_interfaces)

    def create_proxy(self, target: Any, additional_interfaces: Iterable[type], interceptor: Interceptor) -> Any:
        """Wrap *target* in a proxy routing calls through *interceptor*.

        Raises:
            GenerationError: For any failure while building the type or the
                instance; the original exception is chained as ``__cause__``.
        """
        target_type = type(target)
        with _generation_failures(target_type):
            if target is None:
                raise ValueError("Cannot proxy None: a target instance is required")
            _require_interceptor(interceptor)
            definition = self._define(target_type, additional_interfaces)
            proxy = self._instantiator.instantiate(definition, target, interceptor)

        logger.debug(
            "proxy_created",
            proxy_type=definition.proxy_type.__name__,
            interceptor=type(interceptor).__name__,
        )
        return proxy

    def define_proxy_type(
        self, target_type: type, additional_interfaces: Iterable[type] = ()
    ) -> ProxyTypeDefinition:
        """Generate (or reuse) the proxy type for *target_type* and *additional_interfaces*."""
        with _generation_failures(target_type):
            return self._define(target_type, additional_interfaces)

    def _define(self, target_type: type, additional_interfaces: Iterable[type]) -> ProxyTypeDefinition:
        surface = describe_surface(target_type, additional_interfaces)
        key = (target_type, surface.interfaces)

        if self._settings.cache_types:
            cached = self._types.get(key)
            if cached is not None:
                logger.debug("proxy_type_cache_hit", proxy_type=cached.proxy_type.__name__)
                return cached

        builder = ProxyTypeBuilder(surface, suffix=self._settings.type_name_suffix)
        for method in surface.interceptable:
            builder.define_forwarder(method.name, generate_forwarder_factory(method))
            builder.define_dispatcher(
                method.name,
                generate_dispatcher(
                    method,
                    builder.name,
                    strict=self._settings.strict_returns,
                    log_calls=self._settings.log_calls,
                ),
            )
        builder.define_constructor(generate_constructor(target_type, builder.forwarder_factories))
        definition = builder.finalize()

        logger.debug(
            "proxy_type_generated",
            proxy_type=builder.name,
            interfaces=[i.__name__ for i in surface.interfaces],
            intercepted=len(surface.interceptable),
            passthrough=len(surface.passthrough),
        )

        if self._settings.cache_types:
            self._types[key] = definition
        return definition


def create_proxy(
    target: Any,
    additional_interfaces: Iterable[type],
    interceptor: Interceptor,
    *,
    settings: ProxySettings | None = None,
) -> Any:
    """Create a proxy with a throwaway :class:`ProxyGenerator`."""
    return ProxyGenerator(settings).create_proxy(target, additional_interfaces, interceptor)


def is_proxy(obj: Any) -> bool:
    """Return True if *obj* is an instance of a generated proxy type."""
    return isinstance(getattr(type(obj), SURFACE_ATTR, None), ProxySurface)


def get_target(proxy: Any) -> Any:
    """Return the object wrapped by *proxy*."""
    _require_proxy(proxy)
    return object.__getattribute__(proxy, TARGET_SLOT)


def get_interceptor(proxy: Any) -> Any:
    """Return the interceptor *proxy* is bound to."""
    _require_proxy(proxy)
    return object.__getattribute__(proxy, INTERCEPTOR_SLOT)


def get_surface(proxy: Any) -> ProxySurface:
    """Return the method surface *proxy* was generated with."""
    _require_proxy(proxy)
    return getattr(type(proxy), SURFACE_ATTR)


def _require_proxy(obj: Any) -> None:
    if not is_proxy(obj):
        raise TypeError(f"{type(obj).__name__} is not a flyproxy proxy")


def _require_interceptor(interceptor: Any) -> None:
    if interceptor is None:
        raise ValueError("An interceptor is required")
    if not isinstance(interceptor, Interceptor):
        raise TypeError(f"{type(interceptor).__name__} does not implement call(method_name, forwarder, args)")


@contextlib.contextmanager
def _generation_failures(target_type: type) -> Iterator[None]:
    """Re-surface any failure as one :class:`GenerationError`."""
    try:
        yield
    except Exception as exc:
        logger.warning(
            "proxy_generation_failed",
            target=target_type.__qualname__,
            error_type=type(exc).__name__,
            error=str(exc),
        )
        raise GenerationError(
            f"Failed to create proxy for {target_type.__name__}: {exc}",
            context={"target": target_type.__qualname__, "cause": type(exc).__name__},
        ) from exc
