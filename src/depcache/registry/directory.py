# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Registry persisting tags as JSON documents inside a directory."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from hashlib import sha256
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError

from ..errors import TransportError


class TagRecord(BaseModel):
    """Stored metadata for one published tag."""

    model_config = ConfigDict(frozen=True)

    tag: str
    artifact_ref: str
    published_at: datetime


class DirectoryRegistry:
    """Persist published tags on disk; useful for local runs and shared volumes."""

    def __init__(self, directory: Path) -> None:
        self._directory = directory

    @property
    def directory(self) -> Path:
        """Return the directory backing the registry."""

        return self._directory

    def exists(self, tag: str) -> bool:
        """Return ``True`` when a record for ``tag`` is stored."""

        try:
            return self._path_for(tag).is_file()
        except OSError as exc:
            raise TransportError(f"cannot inspect {self._directory}: {exc}", tag=tag) from exc

    def push(self, tag: str, artifact_ref: str) -> None:
        """Write the record for ``tag`` atomically, replacing any previous one."""

        record = TagRecord(tag=tag, artifact_ref=artifact_ref, published_at=datetime.now(timezone.utc))
        path = self._path_for(tag)
        staging = path.with_suffix(f".{os.getpid()}.tmp")
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            staging.write_text(record.model_dump_json(indent=2), encoding="utf-8")
            os.replace(staging, path)
        except OSError as exc:
            staging.unlink(missing_ok=True)
            raise TransportError(f"cannot publish {tag}: {exc}", tag=tag) from exc

    def delete(self, tag: str) -> None:
        """Remove the record for ``tag`` when it exists."""

        try:
            self._path_for(tag).unlink(missing_ok=True)
        except OSError as exc:
            raise TransportError(f"cannot delete {tag}: {exc}", tag=tag) from exc

    def list_tags(self) -> list[str]:
        """Return every stored tag in sorted order, skipping corrupt records."""

        if not self._directory.is_dir():
            return []
        tags: list[str] = []
        try:
            for child in self._directory.glob("*.json"):
                record = self._read(child)
                if record is not None:
                    tags.append(record.tag)
        except OSError as exc:
            raise TransportError(f"cannot list {self._directory}: {exc}") from exc
        return sorted(tags)

    def record(self, tag: str) -> TagRecord | None:
        """Return the stored record for ``tag``."""

        path = self._path_for(tag)
        if not path.is_file():
            return None
        return self._read(path)

    @staticmethod
    def _read(path: Path) -> TagRecord | None:
        try:
            return TagRecord.model_validate_json(path.read_text(encoding="utf-8"))
        except ValidationError:
            return None

    def _path_for(self, tag: str) -> Path:
        digest = sha256(tag.encode("utf-8"), usedforsecurity=False).hexdigest()
        return self._directory / f"{digest}.json"


__all__ = ["DirectoryRegistry", "TagRecord"]
