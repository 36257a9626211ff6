# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Dictionary-backed registry used for tests and dry runs."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping
from threading import RLock

from ..errors import TransportError


class InMemoryRegistry:
    """Thread-safe in-process registry mapping tags to artifact references.

    ``unreachable`` tags raise :class:`TransportError` on every operation so
    tests can simulate partial registry outages.
    """

    def __init__(
        self,
        tags: Mapping[str, str] | None = None,
        *,
        unreachable: Iterable[str] = (),
    ) -> None:
        self._store: dict[str, str] = dict(tags or {})
        self._lock = RLock()
        self.unreachable: set[str] = set(unreachable)
        self.offline = False
        self.lookups: list[str] = []
        self.pushes: Counter[str] = Counter()

    def _guard(self, tag: str) -> None:
        if self.offline or tag in self.unreachable:
            raise TransportError(f"registry unreachable for {tag}", tag=tag)

    def exists(self, tag: str) -> bool:
        """Return ``True`` when ``tag`` is stored."""

        with self._lock:
            self.lookups.append(tag)
            self._guard(tag)
            return tag in self._store

    def push(self, tag: str, artifact_ref: str) -> None:
        """Store ``artifact_ref`` under ``tag``; last writer wins."""

        with self._lock:
            self._guard(tag)
            self._store[tag] = artifact_ref
            self.pushes[tag] += 1

    def delete(self, tag: str) -> None:
        """Remove ``tag`` when present."""

        with self._lock:
            self._guard(tag)
            self._store.pop(tag, None)

    def list_tags(self) -> list[str]:
        """Return stored tags in sorted order."""

        with self._lock:
            if self.offline:
                raise TransportError("registry unreachable")
            return sorted(self._store)

    def resolve(self, tag: str) -> str | None:
        """Return the artifact reference stored under ``tag``."""

        with self._lock:
            return self._store.get(tag)


__all__ = ["InMemoryRegistry"]
