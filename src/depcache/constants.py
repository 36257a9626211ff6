# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Shared constants for manifest discovery, tag naming and configuration."""

from __future__ import annotations

from typing import Final

# Per-ecosystem lock files and package lists hashed when present.
DEFAULT_MANIFEST_FILES: Final[tuple[str, ...]] = (
    "requirements.txt",
    "requirements-dev.txt",
    "Pipfile.lock",
    "poetry.lock",
    "uv.lock",
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "Gemfile.lock",
    "go.sum",
    "Cargo.lock",
    "composer.lock",
    "system-packages.txt",
)
DEFAULT_DEPENDENCY_DIRS: Final[tuple[str, ...]] = (".github/dependencies",)

BASE_REPOSITORY: Final[str] = "base-deps"
INCREMENTAL_REPOSITORY: Final[str] = "deps"
LATEST_ALIAS: Final[str] = "latest"

CONFIG_FILE_NAME: Final[str] = ".depcache.toml"
PYPROJECT_SECTION: Final[str] = "depcache"
ENV_PREFIX: Final[str] = "DEPCACHE_"

DEFAULT_DOCKERFILE: Final[str] = "Dockerfile"
DEFAULT_BUILD_TARGET: Final[str] = "deps"
BASE_IMAGE_BUILD_ARG: Final[str] = "BASE_IMAGE"
DEPS_TAG_BUILD_ARG: Final[str] = "DEPS_TAG"

__all__ = [
    "BASE_IMAGE_BUILD_ARG",
    "BASE_REPOSITORY",
    "CONFIG_FILE_NAME",
    "DEFAULT_BUILD_TARGET",
    "DEFAULT_DEPENDENCY_DIRS",
    "DEFAULT_DOCKERFILE",
    "DEFAULT_MANIFEST_FILES",
    "DEPS_TAG_BUILD_ARG",
    "ENV_PREFIX",
    "INCREMENTAL_REPOSITORY",
    "LATEST_ALIAS",
    "PYPROJECT_SECTION",
]
