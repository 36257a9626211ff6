# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Registry contracts consumed by the resolver, orchestrator and retention advisor."""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import Sequence
from typing import Protocol, runtime_checkable


@runtime_checkable
class RegistryLookup(Protocol):
    """Answer whether a tag is currently published.

    Implementations must raise :class:`depcache.errors.TransportError` when the
    registry cannot be reached rather than reporting the tag as absent.
    """

    @abstractmethod
    def exists(self, tag: str) -> bool:
        """Return ``True`` when ``tag`` is published.

        Args:
            tag: Registry reference to query.

        Returns:
            bool: Whether the registry serves ``tag``.
        """
        raise NotImplementedError


@runtime_checkable
class RegistryPublisher(Protocol):
    """Publish a built artifact under a tag."""

    @abstractmethod
    def push(self, tag: str, artifact_ref: str) -> None:
        """Publish ``artifact_ref`` under ``tag``; overwriting must be harmless.

        Args:
            tag: Registry reference to publish under.
            artifact_ref: Local reference produced by the build delegate.
        """
        raise NotImplementedError


@runtime_checkable
class RegistryPruner(Protocol):
    """Remove a published tag."""

    @abstractmethod
    def delete(self, tag: str) -> None:
        """Delete ``tag`` from the registry.

        Args:
            tag: Registry reference to remove.
        """
        raise NotImplementedError


@runtime_checkable
class RegistryLister(Protocol):
    """Enumerate published tags for retention decisions."""

    @abstractmethod
    def list_tags(self) -> Sequence[str]:
        """Return every published cache tag.

        Returns:
            Sequence[str]: Fully qualified tags known to the registry.
        """
        raise NotImplementedError


@runtime_checkable
class Registry(RegistryLookup, RegistryPublisher, RegistryPruner, RegistryLister, Protocol):
    """Full registry capability set used by the CLI."""


__all__ = [
    "Registry",
    "RegistryLister",
    "RegistryLookup",
    "RegistryPruner",
    "RegistryPublisher",
]
