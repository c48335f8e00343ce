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
"""Layered flyproxy configuration: files, profiles, placeholders, env overrides."""

from __future__ import annotations

import os
import re
import tomllib
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any, TypeVar

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, ValidationError

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

ENV_PREFIX = "FLYPROXY_"

_PLACEHOLDER_RE = re.compile(r"\$\{([^}]+)\}")
_MAX_PLACEHOLDER_DEPTH = 10
_CONFIG_PROPERTIES_ATTR = "__flyproxy_config_prefix__"


def config_properties(prefix: str) -> Callable[[type[T]], type[T]]:
    """Mark a pydantic model as bindable from the section at *prefix*.

    Usage::

        @config_properties(prefix="flyproxy.proxy")
        class ProxySettings(BaseModel):
            strict_returns: bool = True
    """

    def decorator(cls: type[T]) -> type[T]:
        setattr(cls, _CONFIG_PROPERTIES_ATTR, prefix)
        return cls

    return decorator


class Config:
    """Nested configuration read with dot-notation keys.

    A value is looked up in this order:

    1. the ``FLYPROXY_*`` environment variable derived from the key
       (``flyproxy.proxy.strict-returns`` -> ``FLYPROXY_PROXY_STRICT_RETURNS``);
    2. the loaded data, with ``${...}`` placeholders resolved;
    3. the caller's default (or the model default when binding).

    Placeholders take the forms ``${ENV_VAR}``, ``${other.key}`` and
    ``${name:default}``; environment variables win over config keys.
    """

    def __init__(self, data: dict[str, Any] | None = None, sources: Iterable[str] = ()) -> None:
        self._data: dict[str, Any] = data or {}
        self._loaded_sources: list[str] = list(sources)

    @property
    def loaded_sources(self) -> list[str]:
        """Files merged into this configuration, base file first."""
        return list(self._loaded_sources)

    def to_dict(self) -> dict[str, Any]:
        return dict(self._data)

    @classmethod
    def from_file(cls, path: str | Path, active_profiles: list[str] | None = None) -> Config:
        """Load *path* (YAML or TOML) and merge ``<stem>-<profile><suffix>`` overlays.

        A missing base file yields an empty configuration; missing overlays
        are skipped.
        """
        path = Path(path)
        if not path.exists():
            return cls()

        data = _read(path)
        sources = [str(path)]
        for profile in active_profiles or []:
            overlay = path.with_name(f"{path.stem}-{profile}{path.suffix}")
            if overlay.exists():
                data = _merge(data, _read(overlay))
                sources.append(f"{overlay} (profile: {profile})")
        return cls(data, sources)

    def get(self, key: str, default: Any = None) -> Any:
        env_val = os.environ.get(_env_key(key))
        if env_val is not None:
            return env_val
        value = self._lookup(key)
        if value is None:
            return default
        return self._resolve(value)

    def get_section(self, prefix: str) -> dict[str, Any]:
        """Return the mapping under *prefix*, placeholders resolved; ``{}`` if absent."""
        section = self._lookup(prefix)
        if not isinstance(section, dict):
            return {}
        return self._resolve(section)

    def bind(self, config_cls: type[M]) -> M:
        """Validate the section of a :func:`config_properties` model into an instance.

        Section keys may use dashes (``strict-returns``) or underscores, and a
        ``FLYPROXY_*`` variable overrides the file value of each model field.

        Raises:
            ValueError: If *config_cls* is not decorated or validation fails.
        """
        prefix = getattr(config_cls, _CONFIG_PROPERTIES_ATTR, None)
        if prefix is None:
            raise ValueError(f"{config_cls.__name__} is not decorated with @config_properties")

        values = {str(k).replace("-", "_"): v for k, v in self.get_section(prefix).items()}
        for field_name in config_cls.model_fields:
            env_val = os.environ.get(_env_key(f"{prefix}.{field_name}"))
            if env_val is not None:
                values[field_name] = env_val

        try:
            return config_cls.model_validate(values)
        except ValidationError as exc:
            raise ValueError(
                f"Configuration validation failed for '{config_cls.__name__}' (prefix='{prefix}'):\n{exc}"
            ) from exc

    def _lookup(self, key: str) -> Any:
        node: Any = self._data
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        return node

    def _resolve(self, value: Any, depth: int = 0) -> Any:
        if isinstance(value, dict):
            return {k: self._resolve(v, depth) for k, v in value.items()}
        if isinstance(value, list):
            return [self._resolve(v, depth) for v in value]
        if not isinstance(value, str) or "${" not in value:
            return value
        if depth > _MAX_PLACEHOLDER_DEPTH:
            raise ValueError(f"Placeholders in '{value}' nest too deeply; check for circular references")
        return _PLACEHOLDER_RE.sub(lambda m: self._substitute(m.group(1), depth), value)

    def _substitute(self, expression: str, depth: int) -> str:
        name, has_default, default = expression.partition(":")
        env_val = os.environ.get(name)
        if env_val is not None:
            return env_val
        found = self._lookup(name)
        if found is not None:
            return str(self._resolve(found, depth + 1))
        if has_default:
            return default
        raise ValueError(f"Cannot resolve placeholder '${{{expression}}}': not found in environment or config")


def _read(path: Path) -> dict[str, Any]:
    if path.suffix == ".toml":
        with path.open("rb") as f:
            return tomllib.load(f)
    with path.open(encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge *override* onto *base*; nested mappings merge, everything else is replaced."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        merged[key] = _merge(current, value) if isinstance(current, dict) and isinstance(value, dict) else value
    return merged


def _env_key(key: str) -> str:
    """``flyproxy.proxy.log-calls`` -> ``FLYPROXY_PROXY_LOG_CALLS``."""
    return ENV_PREFIX + key.removeprefix("flyproxy.").upper().replace(".", "_").replace("-", "_")
