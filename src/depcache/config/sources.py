# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Concrete configuration sources (defaults, TOML, pyproject, environment)."""

from __future__ import annotations

import os
import re
import tomllib
from abc import abstractmethod
from collections.abc import Mapping, MutableMapping
from pathlib import Path
from typing import Any, Final, Protocol

from ..constants import ENV_PREFIX, PYPROJECT_SECTION
from ..errors import ConfigError
from .models import DepCacheConfig

PYPROJECT_TOOL_KEY: Final[str] = "tool"
_LIST_FIELDS: Final[frozenset[str]] = frozenset({"extra_dependency_files", "dependency_dirs"})
_ENV_VAR_PATTERN: Final[re.Pattern[str]] = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}|\$([A-Za-z_][A-Za-z0-9_]*)")


class ConfigSource(Protocol):
    """Provide a fragment of configuration values."""

    name: str

    @abstractmethod
    def load(self) -> Mapping[str, Any]:
        """Return raw configuration values keyed by field name."""
        raise NotImplementedError

    @abstractmethod
    def describe(self) -> str:
        """Return a human readable description of the source."""
        raise NotImplementedError


def normalise_keys(data: Mapping[str, Any]) -> dict[str, Any]:
    """Return ``data`` with kebab-case keys converted to field names."""

    return {str(key).replace("-", "_"): value for key, value in data.items()}


def _expand_env_string(value: str, env: Mapping[str, str]) -> str:
    def _replace(match: re.Match[str]) -> str:
        key = match.group(1) or match.group(2)
        return env.get(key, match.group(0))

    return _ENV_VAR_PATTERN.sub(_replace, value)


def _expand_env(data: Mapping[str, Any], env: Mapping[str, str]) -> dict[str, Any]:
    expanded: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, str):
            expanded[key] = _expand_env_string(value, env)
        elif isinstance(value, list):
            expanded[key] = [_expand_env_string(item, env) if isinstance(item, str) else item for item in value]
        else:
            expanded[key] = value
    return expanded


class DefaultConfigSource:
    """Return the built-in defaults as a configuration fragment."""

    name = "defaults"

    def load(self) -> Mapping[str, Any]:
        return DepCacheConfig().to_dict()

    def describe(self) -> str:
        return "Built-in defaults"


class TomlConfigSource:
    """Load configuration values from a standalone TOML document."""

    def __init__(self, path: Path, *, name: str | None = None, env: Mapping[str, str] | None = None) -> None:
        self._path = path
        self.name = name or str(path)
        self._env = env if env is not None else os.environ

    def _read(self) -> dict[str, Any]:
        if not self._path.is_file():
            return {}
        try:
            with self._path.open("rb") as handle:
                data = tomllib.load(handle)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Invalid TOML in {self._path}: {exc}") from exc
        except OSError as exc:
            raise ConfigError(f"Cannot read {self._path}: {exc}") from exc
        if not isinstance(data, MutableMapping):
            raise ConfigError(f"Configuration at {self._path} must be a table")
        return dict(data)

    def load(self) -> Mapping[str, Any]:
        return _expand_env(normalise_keys(self._read()), self._env)

    def describe(self) -> str:
        return f"TOML configuration at {self.name}"


class PyProjectConfigSource(TomlConfigSource):
    """Read configuration from ``[tool.depcache]`` within ``pyproject.toml``."""

    def load(self) -> Mapping[str, Any]:
        tool_section = self._read().get(PYPROJECT_TOOL_KEY)
        if not isinstance(tool_section, Mapping):
            return {}
        section = tool_section.get(PYPROJECT_SECTION)
        if section is None:
            return {}
        if not isinstance(section, Mapping):
            raise ConfigError(f"[tool.{PYPROJECT_SECTION}] in {self.name} must be a table")
        return _expand_env(normalise_keys(section), self._env)

    def describe(self) -> str:
        return f"pyproject.toml ({self.name})"


class EnvironmentConfigSource:
    """Read ``DEPCACHE_*`` environment variables."""

    name = "environment"

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        self._env = env if env is not None else os.environ

    def load(self) -> Mapping[str, Any]:
        fragment: dict[str, Any] = {}
        fields = DepCacheConfig.model_fields
        for raw_key, value in self._env.items():
            if not raw_key.startswith(ENV_PREFIX):
                continue
            field = raw_key[len(ENV_PREFIX) :].lower()
            if field not in fields:
                continue
            if field in _LIST_FIELDS:
                fragment[field] = [item.strip() for item in value.split(",") if item.strip()]
            elif field == "timeout" and not value.strip():
                fragment[field] = None
            else:
                fragment[field] = value
        return fragment

    def describe(self) -> str:
        return f"environment variables ({ENV_PREFIX}*)"


__all__ = [
    "ConfigSource",
    "DefaultConfigSource",
    "EnvironmentConfigSource",
    "PyProjectConfigSource",
    "TomlConfigSource",
    "normalise_keys",
]
