# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Content fingerprints over the dependency-declaring inputs of a build.

The fingerprint is a sha256 digest over every existing input in canonical
path order. Each file is framed as ``<relative path>\\0<byte length>\\0``
followed by its bytes, so moving content from one manifest to another
changes the digest. Declared inputs that do not exist contribute nothing, so
a project that only uses some ecosystems hashes identically no matter which
other manifests were declared.
"""

from __future__ import annotations

import hashlib
import os
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from itertools import chain
from pathlib import Path
from typing import Final

from .constants import DEFAULT_DEPENDENCY_DIRS, DEFAULT_MANIFEST_FILES
from .errors import IOFailure

Fingerprint = str

_FRAME_ENCODING: Final[str] = "utf-8"


@dataclass(frozen=True, slots=True)
class ManifestEntry:
    """Describe one declared dependency input and whether it exists."""

    path: Path
    exists: bool


@dataclass(frozen=True, slots=True)
class ManifestSet:
    """Deduplicated, immutable collection of declared dependency inputs.

    Attributes:
        root: Directory that anchors relative paths and canonical ordering.
        entries: Declared inputs in declaration order.
    """

    root: Path
    entries: tuple[ManifestEntry, ...]

    @property
    def present(self) -> tuple[Path, ...]:
        """Return the declared inputs that exist on disk."""

        return tuple(entry.path for entry in self.entries if entry.exists)

    @property
    def missing(self) -> tuple[Path, ...]:
        """Return the declared inputs that are absent."""

        return tuple(entry.path for entry in self.entries if not entry.exists)

    def members(self) -> tuple[Path, ...]:
        """Return every file that contributes to the fingerprint, in hash order.

        Returns:
            tuple[Path, ...]: Files after directory expansion and sorting.

        Raises:
            IOFailure: If an existing directory cannot be walked.
        """

        return tuple(path for _, path in _canonical_members(self.present, self.root))

    def fingerprint(self) -> Fingerprint:
        """Return the fingerprint of the existing members of the set."""

        return fingerprint([entry.path for entry in self.entries], root=self.root)


def collect_manifest_set(
    root: Path,
    *,
    manifests: Sequence[str | Path] = DEFAULT_MANIFEST_FILES,
    dependency_dirs: Sequence[str | Path] = DEFAULT_DEPENDENCY_DIRS,
    extra_paths: Sequence[str | Path] = (),
) -> ManifestSet:
    """Assemble the manifest set for ``root`` from defaults and caller extras.

    Args:
        root: Project directory the build runs in.
        manifests: Per-ecosystem manifest files relative to ``root``.
        dependency_dirs: Directories whose whole contents are dependency inputs.
        extra_paths: Caller-supplied additional inputs.

    Returns:
        ManifestSet: Deduplicated entries annotated with existence.
    """

    anchor = root.resolve()
    declared = chain(manifests, dependency_dirs, extra_paths)
    paths = _dedupe(_anchor_path(Path(raw), anchor) for raw in declared)
    entries = tuple(ManifestEntry(path=path, exists=path.exists()) for path in paths)
    return ManifestSet(root=anchor, entries=entries)


def fingerprint(
    manifest_paths: Iterable[str | Path],
    extra_paths: Iterable[str | Path] = (),
    *,
    root: Path | None = None,
) -> Fingerprint:
    """Return the sha256 fingerprint over the existing dependency inputs.

    Args:
        manifest_paths: Declared manifest files or directories.
        extra_paths: Additional caller-supplied inputs.
        root: Directory anchoring relative paths; defaults to the CWD.

    Returns:
        Fingerprint: Full 64 character hexadecimal digest.

    Raises:
        IOFailure: If an existing input cannot be read.
    """

    anchor = (root or Path.cwd()).resolve()
    declared = _dedupe(_anchor_path(Path(raw), anchor) for raw in chain(manifest_paths, extra_paths))
    hasher = hashlib.sha256()
    for key, path in _canonical_members([path for path in declared if path.exists()], anchor):
        _feed(hasher, key, path)
    return hasher.hexdigest()


def _anchor_path(path: Path, anchor: Path) -> Path:
    candidate = path.expanduser()
    if not candidate.is_absolute():
        candidate = anchor / candidate
    return Path(os.path.normpath(candidate))


def _dedupe(paths: Iterable[Path]) -> list[Path]:
    return list(dict.fromkeys(paths))


def _canonical_key(path: Path, anchor: Path) -> str:
    try:
        return path.relative_to(anchor).as_posix()
    except ValueError:
        return path.as_posix()


def _canonical_members(paths: Iterable[Path], anchor: Path) -> list[tuple[str, Path]]:
    """Expand directories and return ``(canonical_key, file)`` pairs sorted by key."""

    members: dict[Path, str] = {}
    for path in paths:
        files = _walk_directory(path) if path.is_dir() else [path]
        for file_path in files:
            resolved = file_path.resolve()
            members.setdefault(resolved, _canonical_key(file_path, anchor))
    return sorted(((key, path) for path, key in members.items()), key=lambda item: item[0])


def _walk_directory(directory: Path) -> list[Path]:
    def _raise(error: OSError) -> None:
        raise IOFailure(Path(error.filename or directory), error)

    files: list[Path] = []
    for current, dirnames, filenames in os.walk(directory, onerror=_raise, followlinks=False):
        dirnames.sort()
        base = Path(current)
        files.extend(base / name for name in sorted(filenames) if (base / name).exists())
    return files


def _frame(key: str, size: int) -> bytes:
    return f"{key}\0{size}\0".encode(_FRAME_ENCODING)


def _feed(hasher: hashlib._Hash, key: str, path: Path) -> None:
    try:
        with path.open("rb") as handle:
            content = handle.read()
    except OSError as exc:
        raise IOFailure(path, exc) from exc
    hasher.update(_frame(key, len(content)))
    hasher.update(content)


__all__ = [
    "Fingerprint",
    "ManifestEntry",
    "ManifestSet",
    "collect_manifest_set",
    "fingerprint",
]
