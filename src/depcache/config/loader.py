# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Config loading utilities with layered precedence and traceability."""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..constants import CONFIG_FILE_NAME
from ..errors import ConfigError
from .models import DepCacheConfig
from .sources import (
    ConfigSource,
    DefaultConfigSource,
    EnvironmentConfigSource,
    PyProjectConfigSource,
    TomlConfigSource,
)


class FieldUpdate(BaseModel):
    """Description of a single configuration field mutation."""

    model_config = ConfigDict(validate_assignment=True)

    field: str
    source: str
    value: Any


class ConfigLoadResult(BaseModel):
    """Container bundling a resolved config with provenance metadata."""

    model_config = ConfigDict(validate_assignment=True)

    config: DepCacheConfig
    updates: list[FieldUpdate] = Field(default_factory=list)

    def source_of(self, field: str) -> str:
        """Return the name of the source that last set ``field``."""

        for update in reversed(self.updates):
            if update.field == field:
                return update.source
        return DefaultConfigSource.name


def _validate(data: Mapping[str, Any], *, source: str) -> DepCacheConfig:
    try:
        return DepCacheConfig.model_validate(dict(data))
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or '<root>'}: {error['msg']}" for error in exc.errors()
        )
        raise ConfigError(f"invalid configuration from {source}: {problems}") from exc


class ConfigLoader:
    """Apply layered configuration sources with predictable precedence."""

    def __init__(self, *, project_root: Path, sources: Sequence[ConfigSource]) -> None:
        """Initialise a loader that merges the supplied configuration sources.

        Args:
            project_root: Directory that anchors relative paths.
            sources: Ordered collection of configuration sources, lowest
                precedence first.
        """

        if not sources:
            raise ValueError("at least one configuration source is required")
        self._sources = list(sources)
        self._project_root = project_root.resolve()

    @property
    def project_root(self) -> Path:
        """Return the resolved project root."""

        return self._project_root

    @classmethod
    def for_root(
        cls,
        project_root: Path,
        *,
        config_file: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> ConfigLoader:
        """Build a loader for defaults, pyproject, the project file and the environment.

        Args:
            project_root: Workspace root used to discover configuration files.
            config_file: Optional explicit path replacing ``.depcache.toml``.
            env: Optional environment mapping used instead of :mod:`os.environ`.

        Returns:
            ConfigLoader: Loader configured with default precedence ordering.
        """

        root = project_root.resolve()
        environment = env if env is not None else os.environ
        project_file = config_file if config_file is not None else root / CONFIG_FILE_NAME
        sources: list[ConfigSource] = [DefaultConfigSource()]
        pyproject = root / "pyproject.toml"
        if pyproject.exists():
            sources.append(PyProjectConfigSource(pyproject, env=environment))
        sources.append(TomlConfigSource(project_file, name=str(project_file), env=environment))
        sources.append(EnvironmentConfigSource(environment))
        return cls(project_root=root, sources=sources)

    def load(self) -> DepCacheConfig:
        """Return the resolved configuration without provenance metadata."""

        return self.load_with_trace().config

    def load_with_trace(self) -> ConfigLoadResult:
        """Return the resolved configuration with trace metadata.

        Raises:
            ConfigError: If a source contains unknown keys or invalid values.
        """

        merged: dict[str, Any] = {}
        updates: list[FieldUpdate] = []
        config = DepCacheConfig()
        for source in self._sources:
            if not (fragment := source.load()):
                continue
            for field, value in fragment.items():
                if merged.get(field, _MISSING) != value:
                    updates.append(FieldUpdate(field=field, source=source.name, value=value))
                merged[field] = value
            config = _validate(merged, source=source.describe())
        return ConfigLoadResult(config=config, updates=updates)


_MISSING = object()


def apply_overrides(config: DepCacheConfig, overrides: Mapping[str, Any]) -> DepCacheConfig:
    """Return ``config`` with non-``None`` ``overrides`` applied and validated.

    Raises:
        ConfigError: If an override is invalid.
    """

    updates = {key: value for key, value in overrides.items() if value is not None}
    if not updates:
        return config
    return _validate({**config.model_dump(), **updates}, source="command line")


def load_config(project_root: Path) -> DepCacheConfig:
    """Load configuration for ``project_root`` using the default tiered sources."""

    return ConfigLoader.for_root(project_root).load()


__all__ = [
    "ConfigLoadResult",
    "ConfigLoader",
    "FieldUpdate",
    "apply_overrides",
    "load_config",
]
