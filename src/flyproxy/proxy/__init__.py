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
"""Dynamic interception proxies."""

from flyproxy.proxy.builder import ProxyTypeBuilder, ProxyTypeDefinition
from flyproxy.proxy.forwarders import Forwarder, TrapForwarder
from flyproxy.proxy.generator import (
    ProxyGenerator,
    create_proxy,
    get_interceptor,
    get_surface,
    get_target,
    is_proxy,
)
from flyproxy.proxy.interceptors import (
    FunctionInterceptor,
    PassThroughInterceptor,
    RoutingInterceptor,
    matches_method,
)
from flyproxy.proxy.resolver import describe_surface
from flyproxy.proxy.settings import ProxySettings
from flyproxy.proxy.types import (
    Interceptor,
    MethodDescriptor,
    MethodKind,
    MethodOrigin,
    ParameterDescriptor,
    ProxySurface,
)

__all__ = [
    "Forwarder",
    "FunctionInterceptor",
    "Interceptor",
    "MethodDescriptor",
    "MethodKind",
    "MethodOrigin",
    "ParameterDescriptor",
    "PassThroughInterceptor",
    "ProxyGenerator",
    "ProxySettings",
    "ProxySurface",
    "ProxyTypeBuilder",
    "ProxyTypeDefinition",
    "RoutingInterceptor",
    "TrapForwarder",
    "create_proxy",
    "describe_surface",
    "get_interceptor",
    "get_surface",
    "get_target",
    "is_proxy",
    "matches_method",
]
