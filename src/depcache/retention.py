# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Derive which published tags have outlived their retention window."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import NamedTuple

from .buckets import DEFAULT_BUCKET_FORMAT, TimeBucket, period_index
from .cancellation import CancelToken, ensure_token
from .errors import TransportError
from .interfaces.registry import RegistryPruner
from .keys import TierName, parse_tag

LOGGER = logging.getLogger(__name__)


class PublishedTag(NamedTuple):
    """Published registry key with its tier and bucket (``None`` for the alias)."""

    key: str
    tier: TierName
    bucket: TimeBucket | None


def published_tags_from_strings(tags: Iterable[str], *, prefix: str = "") -> list[PublishedTag]:
    """Parse raw registry tags, dropping anything that is not a cache tag."""

    published: list[PublishedTag] = []
    for tag in tags:
        parsed = parse_tag(tag, prefix=prefix)
        if parsed is None:
            LOGGER.debug("ignoring non-cache tag %s", tag)
            continue
        published.append(PublishedTag(key=parsed.key, tier=parsed.tier, bucket=parsed.bucket))
    return published


def prune_candidates(
    published: Iterable[PublishedTag],
    current_bucket: TimeBucket,
    base_retention_periods: int,
    *,
    fmt: str = DEFAULT_BUCKET_FORMAT,
) -> set[str]:
    """Return the keys eligible for deletion.

    Base tags more than ``base_retention_periods`` buckets older than
    ``current_bucket`` are candidates, so the current bucket and the
    ``base_retention_periods`` buckets before it survive. The ``latest`` alias
    and buckets ahead of ``current_bucket`` are always kept. Incremental tags from
    any bucket other than ``current_bucket`` are candidates.

    Args:
        published: Tags currently published.
        current_bucket: Bucket current at evaluation time.
        base_retention_periods: Age in buckets a base may reach, at least one.
        fmt: Bucket format the labels were produced with.

    Returns:
        set[str]: Keys to delete.

    Raises:
        ValueError: If ``base_retention_periods`` is below one or
            ``current_bucket`` does not belong to ``fmt``.
        ConfigError: If ``fmt`` has no period arithmetic.
    """

    if base_retention_periods < 1:
        raise ValueError("base_retention_periods must be at least 1")
    current_index = period_index(current_bucket, fmt)
    candidates: set[str] = set()
    for tag in published:
        if tag.bucket is None:
            continue
        if tag.tier == "incremental":
            if tag.bucket != current_bucket:
                candidates.add(tag.key)
            continue
        try:
            age = current_index - period_index(tag.bucket, fmt)
        except ValueError:
            LOGGER.warning("keeping base tag %s with unrecognised bucket %r", tag.key, tag.bucket)
            continue
        if age > base_retention_periods:
            candidates.add(tag.key)
    return candidates


@dataclass(slots=True)
class PruneReport:
    """Outcome of delegating deletions to the registry."""

    deleted: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Return ``True`` when every deletion succeeded."""

        return not self.failed


def prune(
    candidates: Iterable[str],
    pruner: RegistryPruner,
    *,
    cancel: CancelToken | None = None,
) -> PruneReport:
    """Delete ``candidates`` through ``pruner`` in sorted order.

    Transport failures are recorded per tag and do not stop the remaining
    deletions. Cancellation stops before the next deletion.
    """

    token = ensure_token(cancel)
    report = PruneReport()
    for tag in sorted(candidates):
        token.check("prune")
        try:
            pruner.delete(tag)
        except TransportError as exc:
            LOGGER.warning("failed to delete %s: %s", tag, exc)
            report.failed[tag] = str(exc)
            continue
        report.deleted.append(tag)
    return report


__all__ = [
    "PruneReport",
    "PublishedTag",
    "prune",
    "prune_candidates",
    "published_tags_from_strings",
]
