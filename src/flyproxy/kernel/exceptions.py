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
"""Unified exception hierarchy for flyproxy.

All proxy errors inherit from ProxyException, so callers can catch one base
type or target a specific failure.

Categories:
- GenerationError: proxy type synthesis failed (raised from create_proxy)
- UnhandledAdditionalMethodError: an interceptor invoked a trap forwarder
- ReturnTypeMismatchError: an interceptor result did not fit the declared return type
"""

from __future__ import annotations


# =============================================================================
# Base Exception
# =============================================================================


class ProxyException(Exception):
    """Base exception for all flyproxy errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "PROXY_GENERATION").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    default_code: str | None = None

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code if code is not None else self.default_code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Generation Exceptions
# =============================================================================


class GenerationError(ProxyException):
    """Proxy type synthesis or instantiation failed.

    Always raised from ``create_proxy`` with the originating exception
    chained as ``__cause__``.
    """

    default_code = "PROXY_GENERATION"


class InterfaceConflictError(GenerationError):
    """Two distinct interfaces share one fully qualified name."""

    default_code = "PROXY_INTERFACE_CONFLICT"


class IncompleteProxyTypeError(GenerationError):
    """A proxy type was finalized before all of its members were defined."""

    default_code = "PROXY_INCOMPLETE_TYPE"


class ProxyBuilderFrozenError(GenerationError):
    """A member was defined on a builder that has already been finalized."""

    default_code = "PROXY_BUILDER_FROZEN"


class ProxyConstructionError(GenerationError):
    """The target type cannot be constructed without arguments."""

    default_code = "PROXY_CONSTRUCTION"


# =============================================================================
# Dispatch Exceptions
# =============================================================================


class UnhandledAdditionalMethodError(ProxyException, NotImplementedError):
    """An interceptor invoked the forwarder of an additional-interface method.

    Additional-interface methods have no real implementation, so the
    interceptor has to produce their result itself.
    """

    default_code = "PROXY_UNHANDLED_METHOD"


class ReturnTypeMismatchError(ProxyException, TypeError):
    """The interceptor's result cannot be coerced to the declared return type."""

    default_code = "PROXY_RETURN_TYPE"
