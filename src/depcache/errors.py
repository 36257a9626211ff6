# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Exception hierarchy shared by the resolution pipeline and its adapters."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

Tier = Literal["incremental", "base"]


class DepCacheError(Exception):
    """Base class for all errors raised by depcache."""


class ConfigError(DepCacheError):
    """Raised when configuration input is invalid."""


class IOFailure(DepCacheError):
    """Raised when a declared dependency input exists but cannot be read."""

    def __init__(self, path: Path, cause: OSError) -> None:
        """Record the unreadable ``path`` and the underlying OS error.

        Args:
            path: Dependency input that could not be read.
            cause: Error raised by the filesystem.
        """

        super().__init__(f"cannot read dependency input {path}: {cause.strerror or cause}")
        self.path = path
        self.cause = cause


class TransportError(DepCacheError):
    """Raised by registry adapters when the registry cannot be reached."""

    def __init__(self, message: str, *, tag: str | None = None) -> None:
        super().__init__(message)
        self.tag = tag


class BuildError(DepCacheError):
    """Raised by build delegates when the layer build fails."""

    def __init__(self, message: str, *, output: str = "", returncode: int | None = None) -> None:
        super().__init__(message)
        self.output = output
        self.returncode = returncode


class ResolutionFailed(DepCacheError):
    """Wrap a :class:`TransportError` raised while resolving a tier."""

    def __init__(self, *, tier: Tier, key: str, cause: TransportError) -> None:
        """Describe which tier lookup failed so callers can pick a remediation.

        Args:
            tier: Tier whose lookup failed.
            key: Registry key that was being queried.
            cause: Underlying transport failure.
        """

        hint = "retry the resolution" if tier == "incremental" else "retry or trigger a base rebuild"
        super().__init__(f"{tier} lookup for {key} failed: {cause} ({hint})")
        self.tier: Tier = tier
        self.key = key
        self.cause = cause


class StaleBaseError(DepCacheError):
    """Raised when only the latest base alias exists and policy forbids using it."""

    def __init__(self, base_key: str, alias: str) -> None:
        super().__init__(f"base {base_key} is missing and stale alias {alias} is not allowed")
        self.base_key = base_key
        self.alias = alias


class OperationCancelled(DepCacheError):
    """Raised when a caller cancels a long-running registry or build operation."""

    def __init__(self, stage: str, message: str | None = None) -> None:
        super().__init__(message or f"cancelled during {stage}")
        self.stage = stage


class DeadlineExceeded(OperationCancelled):
    """Raised when the caller-supplied deadline elapses."""

    def __init__(self, stage: str) -> None:
        super().__init__(stage, f"deadline exceeded during {stage}")


__all__ = [
    "BuildError",
    "ConfigError",
    "DeadlineExceeded",
    "DepCacheError",
    "IOFailure",
    "OperationCancelled",
    "ResolutionFailed",
    "StaleBaseError",
    "Tier",
    "TransportError",
]
