# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Compose and parse the registry tags addressing each cache tier."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Final, Literal

from .buckets import TimeBucket
from .constants import BASE_REPOSITORY, INCREMENTAL_REPOSITORY, LATEST_ALIAS
from .fingerprint import Fingerprint

TierName = Literal["base", "incremental"]

_FINGERPRINT_RE: Final[re.Pattern[str]] = re.compile(r"[0-9a-f]{64}")
_BUCKET_RE: Final[re.Pattern[str]] = re.compile(r"[A-Za-z0-9_][A-Za-z0-9_.-]{0,62}")
_INCREMENTAL_TAG_RE: Final[re.Pattern[str]] = re.compile(r"([0-9a-f]{64})-(.+)")


def _check_bucket(bucket: TimeBucket) -> TimeBucket:
    if not _BUCKET_RE.fullmatch(bucket) or bucket == LATEST_ALIAS:
        raise ValueError(f"time bucket {bucket!r} cannot be used in a registry tag")
    return bucket


def _check_fingerprint(fingerprint: Fingerprint) -> Fingerprint:
    if not _FINGERPRINT_RE.fullmatch(fingerprint):
        raise ValueError("fingerprint must be a full 64 character lowercase sha256 hex digest")
    return fingerprint


def compose_base_key(bucket: TimeBucket, *, prefix: str = "") -> str:
    """Return ``base-deps:<bucket>``."""

    return f"{prefix}{BASE_REPOSITORY}:{_check_bucket(bucket)}"


def compose_base_alias(*, prefix: str = "") -> str:
    """Return the always-current ``base-deps:latest`` alias."""

    return f"{prefix}{BASE_REPOSITORY}:{LATEST_ALIAS}"


def compose_incremental_key(fingerprint: Fingerprint, bucket: TimeBucket, *, prefix: str = "") -> str:
    """Return ``deps:<fingerprint>-<bucket>`` using the full digest."""

    return f"{prefix}{INCREMENTAL_REPOSITORY}:{_check_fingerprint(fingerprint)}-{_check_bucket(bucket)}"


@dataclass(frozen=True, slots=True)
class CacheKeys:
    """Registry keys for a single resolution.

    Attributes:
        fingerprint: Dependency fingerprint the keys were derived from.
        bucket: Time bucket current at resolution time.
        base: Exact-bucket base tier key.
        base_alias: Always-current base alias.
        incremental: Fingerprint and bucket scoped incremental key.
    """

    fingerprint: Fingerprint
    bucket: TimeBucket
    base: str
    base_alias: str
    incremental: str


def compose_keys(fingerprint: Fingerprint, bucket: TimeBucket, *, prefix: str = "") -> CacheKeys:
    """Return every key needed to resolve ``fingerprint`` within ``bucket``."""

    return CacheKeys(
        fingerprint=fingerprint,
        bucket=bucket,
        base=compose_base_key(bucket, prefix=prefix),
        base_alias=compose_base_alias(prefix=prefix),
        incremental=compose_incremental_key(fingerprint, bucket, prefix=prefix),
    )


@dataclass(frozen=True, slots=True)
class ParsedTag:
    """Components recovered from a published tag."""

    key: str
    tier: TierName
    bucket: TimeBucket | None
    fingerprint: Fingerprint | None = None

    @property
    def is_alias(self) -> bool:
        """Return ``True`` for the ``base-deps:latest`` alias."""

        return self.tier == "base" and self.bucket is None


def parse_tag(tag: str, *, prefix: str = "") -> ParsedTag | None:
    """Return the tier components of ``tag`` or ``None`` when it is not a cache tag.

    Args:
        tag: Fully qualified or bare registry reference.
        prefix: Image prefix applied when the tag was composed.

    Returns:
        ParsedTag | None: Parsed components for recognised tags.
    """

    if prefix and not tag.startswith(prefix):
        return None
    repository, sep, label = tag[len(prefix) :].rpartition(":")
    if not sep or "/" in label or not label:
        return None
    name = repository.rsplit("/", 1)[-1]
    if name == BASE_REPOSITORY:
        if label == LATEST_ALIAS:
            return ParsedTag(key=tag, tier="base", bucket=None)
        return ParsedTag(key=tag, tier="base", bucket=label)
    if name == INCREMENTAL_REPOSITORY:
        match = _INCREMENTAL_TAG_RE.fullmatch(label)
        if match is None:
            return None
        return ParsedTag(key=tag, tier="incremental", bucket=match.group(2), fingerprint=match.group(1))
    return None


__all__ = [
    "CacheKeys",
    "ParsedTag",
    "TierName",
    "compose_base_alias",
    "compose_base_key",
    "compose_incremental_key",
    "compose_keys",
    "parse_tag",
]
