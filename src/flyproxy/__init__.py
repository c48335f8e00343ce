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
"""flyproxy: dynamic interception proxies for Python objects."""

from flyproxy.bootstrap import bootstrap
from flyproxy.kernel.exceptions import (
    GenerationError,
    ProxyException,
    ReturnTypeMismatchError,
    UnhandledAdditionalMethodError,
)
from flyproxy.proxy import (
    Forwarder,
    FunctionInterceptor,
    Interceptor,
    PassThroughInterceptor,
    ProxyGenerator,
    ProxySettings,
    ProxySurface,
    RoutingInterceptor,
    create_proxy,
    describe_surface,
    get_interceptor,
    get_target,
    is_proxy,
)

__version__ = "0.1.0"

__all__ = [
    "Forwarder",
    "FunctionInterceptor",
    "GenerationError",
    "Interceptor",
    "PassThroughInterceptor",
    "ProxyException",
    "ProxyGenerator",
    "ProxySettings",
    "ProxySurface",
    "ReturnTypeMismatchError",
    "RoutingInterceptor",
    "UnhandledAdditionalMethodError",
    "__version__",
    "bootstrap",
    "create_proxy",
    "describe_surface",
    "get_interceptor",
    "get_target",
    "is_proxy",
]
