# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Registry adapter shelling out to the ``docker`` and ``crane`` CLIs."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Sequence
from typing import Final

from ..cancellation import CancelToken
from ..constants import BASE_REPOSITORY, INCREMENTAL_REPOSITORY
from ..errors import TransportError
from ..subprocess_utils import output_tail, run_command

LOGGER = logging.getLogger(__name__)

# Registry responses that mean "no such tag" rather than a transport failure.
_ABSENT_MARKERS: Final[tuple[str, ...]] = (
    "manifest unknown",
    "manifest_unknown",
    "name_unknown",
    "no such manifest",
    "not found: manifest",
)


def _is_absent(result: subprocess.CompletedProcess[str]) -> bool:
    text = f"{result.stdout}\n{result.stderr}".lower()
    return any(marker in text for marker in _ABSENT_MARKERS)


class DockerRegistry:
    """Query and publish image tags on a remote registry.

    Existence is checked with ``docker manifest inspect`` so nothing is
    pulled. Publishing retags the local build and pushes it. Listing and
    deletion use ``crane`` because the docker CLI cannot do either remotely.

    Each command runs under ``timeout`` narrowed to whatever the ``cancel``
    token has left, so a slow registry cannot outlive the caller's deadline.
    """

    def __init__(
        self,
        prefix: str = "",
        *,
        docker: str = "docker",
        crane: str = "crane",
        timeout: float | None = None,
        cancel: CancelToken | None = None,
    ) -> None:
        self.prefix = prefix
        self._docker = docker
        self._crane = crane
        self._timeout = timeout
        self._cancel = cancel

    def _command_timeout(self) -> float | None:
        remaining = self._cancel.remaining() if self._cancel is not None else None
        if remaining is None:
            return self._timeout
        if self._timeout is None:
            return remaining
        return min(self._timeout, remaining)

    def _run(self, args: Sequence[str], *, tag: str | None) -> subprocess.CompletedProcess[str]:
        if self._cancel is not None:
            self._cancel.check(f"{args[0]} {args[1]}")
        try:
            return run_command(args, timeout=self._command_timeout())
        except FileNotFoundError as exc:
            raise TransportError(str(exc), tag=tag) from exc
        except subprocess.TimeoutExpired as exc:
            raise TransportError(f"{args[0]} {args[1]} timed out after {exc.timeout}s", tag=tag) from exc

    def exists(self, tag: str) -> bool:
        """Return ``True`` when the registry serves a manifest for ``tag``."""

        result = self._run([self._docker, "manifest", "inspect", tag], tag=tag)
        if result.returncode == 0:
            return True
        if _is_absent(result):
            return False
        raise TransportError(f"manifest lookup for {tag} failed: {output_tail(result, lines=5)}", tag=tag)

    def push(self, tag: str, artifact_ref: str) -> None:
        """Tag ``artifact_ref`` as ``tag`` and push it."""

        if artifact_ref != tag:
            result = self._run([self._docker, "tag", artifact_ref, tag], tag=tag)
            if result.returncode != 0:
                raise TransportError(f"cannot tag {artifact_ref} as {tag}: {output_tail(result, lines=5)}", tag=tag)
        result = self._run([self._docker, "push", tag], tag=tag)
        if result.returncode != 0:
            raise TransportError(f"push of {tag} failed: {output_tail(result, lines=5)}", tag=tag)

    def delete(self, tag: str) -> None:
        """Delete ``tag`` from the remote registry."""

        result = self._run([self._crane, "delete", tag], tag=tag)
        if result.returncode != 0 and not _is_absent(result):
            raise TransportError(f"delete of {tag} failed: {output_tail(result, lines=5)}", tag=tag)

    def list_tags(self) -> list[str]:
        """Return every tag published in the base and incremental repositories."""

        tags: list[str] = []
        for name in (BASE_REPOSITORY, INCREMENTAL_REPOSITORY):
            repository = f"{self.prefix}{name}"
            result = self._run([self._crane, "ls", repository], tag=None)
            if result.returncode != 0:
                if _is_absent(result):
                    LOGGER.debug("repository %s does not exist yet", repository)
                    continue
                raise TransportError(f"cannot list {repository}: {output_tail(result, lines=5)}")
            tags.extend(f"{repository}:{line.strip()}" for line in result.stdout.splitlines() if line.strip())
        return sorted(tags)


__all__ = ["DockerRegistry"]
