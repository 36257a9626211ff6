# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Registry adapters and the factory selecting one from a specification string."""

from __future__ import annotations

from pathlib import Path
from typing import Final

from ..cancellation import CancelToken
from ..errors import ConfigError
from ..interfaces.registry import Registry
from .directory import DirectoryRegistry
from .docker import DockerRegistry
from .in_memory import InMemoryRegistry

_MEMORY_KIND: Final[str] = "memory"
_DIRECTORY_KIND: Final[str] = "directory"
_DOCKER_KIND: Final[str] = "docker"


def create_registry(
    specification: str,
    *,
    prefix: str = "",
    timeout: float | None = None,
    cancel: CancelToken | None = None,
) -> Registry:
    """Build a registry adapter from ``specification``.

    Accepted forms are ``memory``, ``directory:<path>`` and ``docker``.

    Args:
        specification: Adapter selector, usually from configuration.
        prefix: Image prefix used by the docker adapter to list repositories.
        timeout: Per-command timeout for the docker adapter.
        cancel: Token whose remaining time further bounds each docker command.

    Returns:
        Registry: Adapter implementing lookup, publish, prune and listing.

    Raises:
        ConfigError: If the specification is not recognised.
    """

    token, _, remainder = specification.partition(":")
    kind = token.strip().lower()
    if kind == _MEMORY_KIND:
        return InMemoryRegistry()
    if kind == _DIRECTORY_KIND:
        path_token = remainder.strip()
        if not path_token:
            raise ConfigError("registry=directory requires a directory path, e.g. directory:.depcache")
        return DirectoryRegistry(Path(path_token).expanduser())
    if kind == _DOCKER_KIND:
        return DockerRegistry(prefix, timeout=timeout, cancel=cancel)
    raise ConfigError(f"Unsupported registry specification: {specification!r}")


__all__ = ["DirectoryRegistry", "DockerRegistry", "InMemoryRegistry", "create_registry"]
