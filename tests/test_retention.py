# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for retention candidate selection and pruning."""

from __future__ import annotations

import pytest

from depcache.errors import ConfigError
from depcache.registry import InMemoryRegistry
from depcache.retention import PublishedTag, prune, prune_candidates, published_tags_from_strings

FP = "ca978112ca1bbdcafac231b39a23dc4da786eff8147c4e72b9807785afee48bb"

PUBLISHED = [
    "base-deps:2025-07",
    "base-deps:2025-08",
    "base-deps:2025-09",
    "base-deps:2025-10",
    "base-deps:2025-11",
    "base-deps:latest",
    f"deps:{FP}-2025-10",
    f"deps:{FP}-2025-11",
    "unrelated:1.0",
]


def test_published_tags_skip_foreign_tags() -> None:
    tags = published_tags_from_strings(PUBLISHED)

    assert PublishedTag(key="base-deps:latest", tier="base", bucket=None) in tags
    assert all(tag.key != "unrelated:1.0" for tag in tags)
    assert len(tags) == 8


def test_candidates_keep_recent_bases_and_current_incrementals() -> None:
    candidates = prune_candidates(published_tags_from_strings(PUBLISHED), "2025-11", 3)

    assert candidates == {"base-deps:2025-07", f"deps:{FP}-2025-10"}


def test_single_period_retention_keeps_current_and_previous_base() -> None:
    candidates = prune_candidates(published_tags_from_strings(PUBLISHED), "2025-11", 1)

    assert {"base-deps:2025-10", "base-deps:2025-11"}.isdisjoint(candidates)
    assert {"base-deps:2025-07", "base-deps:2025-08", "base-deps:2025-09"} <= candidates


@pytest.mark.parametrize(("bucket", "pruned"), [("2025-08", False), ("2025-07", True)])
def test_base_exactly_retention_periods_old_is_kept(bucket: str, pruned: bool) -> None:
    published = published_tags_from_strings([f"base-deps:{bucket}"])

    candidates = prune_candidates(published, "2025-11", 3)

    assert (f"base-deps:{bucket}" in candidates) is pruned


def test_alias_and_future_buckets_are_never_candidates() -> None:
    published = published_tags_from_strings(["base-deps:latest", "base-deps:2026-01"])

    assert prune_candidates(published, "2025-11", 1) == set()


def test_unrecognised_base_bucket_is_kept() -> None:
    published = published_tags_from_strings(["base-deps:nightly"])

    assert prune_candidates(published, "2025-11", 1) == set()


def test_weekly_retention_crosses_year_boundary() -> None:
    published = published_tags_from_strings(["base-deps:2024-W51", "base-deps:2024-W52", "base-deps:2025-W01"])

    assert prune_candidates(published, "2025-W01", 1, fmt="weekly") == {"base-deps:2024-W51"}


def test_retention_requires_positive_periods() -> None:
    with pytest.raises(ValueError):
        prune_candidates([], "2025-11", 0)


def test_retention_requires_named_period() -> None:
    with pytest.raises(ConfigError):
        prune_candidates([], "202511", 3, fmt="%Y%m")


def test_prune_deletes_and_records_failures() -> None:
    registry = InMemoryRegistry({tag: tag for tag in PUBLISHED}, unreachable=["base-deps:2025-09"])

    report = prune({"base-deps:2025-08", "base-deps:2025-09"}, registry)

    assert report.deleted == ["base-deps:2025-08"]
    assert set(report.failed) == {"base-deps:2025-09"}
    assert report.ok is False
    assert "base-deps:2025-08" not in registry.list_tags()
