# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Build delegate contract used by the orchestrator."""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from depcache.fingerprint import ManifestSet


@dataclass(frozen=True, slots=True)
class BuildContext:
    """Describe what the build delegate should produce.

    Attributes:
        root: Project directory used as the build context.
        target_tag: Tag the resulting artifact will be published under.
        manifests: Manifest set the fingerprint was computed from.
        timeout: Seconds the delegate may run, ``None`` for no limit.
    """

    root: Path
    target_tag: str
    manifests: ManifestSet | None = None
    timeout: float | None = None


@runtime_checkable
class BuildDelegate(Protocol):
    """Build a dependency layer on top of an optional parent."""

    @abstractmethod
    def build(self, parent_ref: str | None, context: BuildContext) -> str:
        """Build the layer and return a local artifact reference.

        Args:
            parent_ref: Base layer to build on, ``None`` for a full install.
            context: Build inputs and target.

        Returns:
            str: Reference to the built artifact, suitable for publishing.

        Raises:
            depcache.errors.BuildError: If the build fails.
        """
        raise NotImplementedError


__all__ = ["BuildContext", "BuildDelegate"]
