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
"""Ready-made interceptors and method-name pattern matching."""

from __future__ import annotations

import functools
import re
from collections.abc import Callable
from typing import Any

Handler = Callable[[Callable[..., Any], tuple[Any, ...]], Any]


def matches_method(pattern: str, method_name: str) -> bool:
    """Check whether *method_name* matches a glob *pattern*.

    ``*`` matches any run of characters and ``?`` exactly one; everything
    else is literal.

    >>> matches_method("get_*", "get_order")
    True
    >>> matches_method("?et", "set")
    True
    >>> matches_method("get", "get_order")
    False
    """
    return _pattern_to_regex(pattern).fullmatch(method_name) is not None


@functools.lru_cache(maxsize=256)
def _pattern_to_regex(pattern: str) -> re.Pattern[str]:
    parts: list[str] = []
    for ch in pattern:
        if ch == "*":
            parts.append(".*")
        elif ch == "?":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return re.compile("".join(parts))


def proceed(forwarder: Callable[..., Any], args: tuple[Any, ...]) -> Any:
    """Default handler: run the real method with the original arguments."""
    return forwarder(*args)


class FunctionInterceptor:
    """Adapts a plain ``fn(method_name, forwarder, args)`` to the interceptor contract."""

    def __init__(self, fn: Callable[[str, Callable[..., Any], tuple[Any, ...]], Any]) -> None:
        self._fn = fn

    def call(self, method_name: str, forwarder: Callable[..., Any], args: tuple[Any, ...]) -> Any:
        return self._fn(method_name, forwarder, args)


class PassThroughInterceptor:
    """Invokes the forwarder for every call.

    Useful as a baseline: proxied target methods behave exactly like the
    target, and additional-interface methods raise
    :class:`~flyproxy.kernel.exceptions.UnhandledAdditionalMethodError`.
    """

    def call(self, method_name: str, forwarder: Callable[..., Any], args: tuple[Any, ...]) -> Any:
        return forwarder(*args)


class RoutingInterceptor:
    """Routes calls to handlers by method-name pattern.

    Handlers receive ``(forwarder, args)``. Routes are tried in registration
    order and the first match wins; unmatched names go to *default*, which
    proceeds to the real method unless replaced.

    Usage::

        interceptor = RoutingInterceptor()
        interceptor.route("get_*", lambda fwd, args: cache.get(args) or fwd(*args))
        interceptor.route("describe", lambda fwd, args: "described")
    """

    def __init__(self, default: Handler = proceed) -> None:
        self._routes: list[tuple[str, Handler]] = []
        self._default = default

    def route(self, pattern: str, handler: Handler) -> RoutingInterceptor:
        self._routes.append((pattern, handler))
        return self

    def on(self, pattern: str) -> Callable[[Handler], Handler]:
        """Decorator form of :meth:`route`."""

        def decorator(handler: Handler) -> Handler:
            self.route(pattern, handler)
            return handler

        return decorator

    def handler_for(self, method_name: str) -> Handler:
        for pattern, handler in self._routes:
            if matches_method(pattern, method_name):
                return handler
        return self._default

    def call(self, method_name: str, forwarder: Callable[..., Any], args: tuple[Any, ...]) -> Any:
        return self.handler_for(method_name)(forwarder, args)
