# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

import pytest

from depcache.registry import InMemoryRegistry
from tests.helpers.builders import FakeBuilder


@pytest.fixture
def registry() -> InMemoryRegistry:
    """Return an empty in-memory registry."""
    return InMemoryRegistry()


@pytest.fixture
def builder() -> FakeBuilder:
    """Return a succeeding fake build delegate."""
    return FakeBuilder()


@pytest.fixture
def clock_at() -> Callable[[str], Callable[[], datetime]]:
    """Return a factory producing fixed UTC clocks from ISO strings."""

    def _factory(raw: str) -> Callable[[], datetime]:
        moment = datetime.fromisoformat(raw).replace(tzinfo=timezone.utc)
        return lambda: moment

    return _factory


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """Return a project root containing a single requirements file."""
    root = tmp_path / "project"
    root.mkdir()
    (root / "requirements.txt").write_text("a", encoding="utf-8")
    return root
