# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for executing verdicts and publishing layers."""

from __future__ import annotations

from pathlib import Path

import pytest

from depcache.cancellation import CancelToken
from depcache.errors import BuildError, OperationCancelled
from depcache.interfaces.build import BuildContext
from depcache.keys import compose_keys
from depcache.orchestrator import build_base, execute
from depcache.registry import InMemoryRegistry
from depcache.resolver import BuildFromScratch, BuildOnBase, ReuseIncremental

from tests.helpers.builders import FakeBuilder

FP = "2e7d2c03a9507ae265ecf5b5356885a53393a2029d241394997265a1a25aefc6"
KEYS = compose_keys(FP, "2025-11")


def _context(tmp_path: Path, tag: str = KEYS.incremental, timeout: float | None = None) -> BuildContext:
    return BuildContext(root=tmp_path, target_tag=tag, timeout=timeout)


def test_reuse_does_not_build_or_publish(
    tmp_path: Path,
    registry: InMemoryRegistry,
    builder: FakeBuilder,
) -> None:
    outcome = execute(ReuseIncremental(key=KEYS.incremental), _context(tmp_path), builder, registry)

    assert outcome.built is False
    assert outcome.published is False
    assert outcome.artifact_ref == KEYS.incremental
    assert builder.calls == []
    assert not registry.pushes


def test_build_on_base_passes_parent_and_publishes(
    tmp_path: Path,
    registry: InMemoryRegistry,
    builder: FakeBuilder,
) -> None:
    outcome = execute(
        BuildOnBase(parent_ref=KEYS.base_alias, degraded=True),
        _context(tmp_path),
        builder,
        registry,
        lookup=registry,
    )

    assert builder.calls[0][0] == KEYS.base_alias
    assert outcome.degraded is True
    assert outcome.published is True
    assert registry.resolve(KEYS.incremental) == f"local/{KEYS.incremental}"


def test_scratch_build_reports_overdue_base(
    tmp_path: Path,
    registry: InMemoryRegistry,
    builder: FakeBuilder,
) -> None:
    outcome = execute(BuildFromScratch(base_missing=True), _context(tmp_path), builder, registry)

    assert builder.calls[0][0] is None
    assert outcome.base_overdue is True
    assert outcome.parent_ref is None
    assert registry.pushes[KEYS.incremental] == 1


def test_build_failure_publishes_nothing(tmp_path: Path, registry: InMemoryRegistry) -> None:
    with pytest.raises(BuildError) as excinfo:
        execute(BuildFromScratch(), _context(tmp_path), FakeBuilder(fail=True), registry)

    assert excinfo.value.returncode == 100
    assert registry.list_tags() == []


def test_publish_is_skipped_when_tag_appears_during_build(tmp_path: Path, registry: InMemoryRegistry) -> None:
    concurrent = FakeBuilder(on_build=lambda: registry.push(KEYS.incremental, "other-runner"))

    outcome = execute(BuildFromScratch(), _context(tmp_path), concurrent, registry, lookup=registry)

    assert outcome.built is True
    assert outcome.published is False
    assert outcome.publish_skipped is True
    assert registry.resolve(KEYS.incremental) == "other-runner"
    assert registry.pushes[KEYS.incremental] == 1


def test_publish_without_lookup_is_idempotent(
    tmp_path: Path,
    registry: InMemoryRegistry,
    builder: FakeBuilder,
) -> None:
    registry.push(KEYS.incremental, f"local/{KEYS.incremental}")

    execute(BuildFromScratch(), _context(tmp_path), builder, registry)

    assert registry.list_tags() == [KEYS.incremental]
    assert registry.resolve(KEYS.incremental) == f"local/{KEYS.incremental}"


def test_cancellation_during_build_prevents_publish(tmp_path: Path, registry: InMemoryRegistry) -> None:
    token = CancelToken()
    cancelling = FakeBuilder(on_build=token.cancel)

    with pytest.raises(OperationCancelled) as excinfo:
        execute(BuildFromScratch(), _context(tmp_path), cancelling, registry, cancel=token)

    assert excinfo.value.stage == "publish"
    assert registry.list_tags() == []


def test_deadline_narrows_build_timeout(
    tmp_path: Path,
    registry: InMemoryRegistry,
    builder: FakeBuilder,
) -> None:
    execute(BuildFromScratch(), _context(tmp_path, timeout=3600), builder, registry, cancel=CancelToken(timeout=60))

    passed = builder.calls[0][1].timeout
    assert passed is not None and passed <= 60


def test_build_base_publishes_exact_tag_and_alias(
    tmp_path: Path,
    registry: InMemoryRegistry,
    builder: FakeBuilder,
) -> None:
    outcome = build_base(KEYS, _context(tmp_path), builder, registry)

    assert outcome.key == KEYS.base
    assert builder.calls[0][0] is None
    assert builder.calls[0][1].target_tag == KEYS.base
    assert registry.list_tags() == [KEYS.base, KEYS.base_alias]
    assert registry.resolve(KEYS.base_alias) == f"local/{KEYS.base}"
