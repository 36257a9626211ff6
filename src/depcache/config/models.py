# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Configuration model for dependency layer resolution and publishing."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..buckets import DEFAULT_BUCKET_FORMAT, validate_format
from ..constants import DEFAULT_BUILD_TARGET, DEFAULT_DEPENDENCY_DIRS, DEFAULT_DOCKERFILE
from ..errors import ConfigError
from ..resolver import DEFAULT_POLL_INTERVAL, DEFAULT_WAIT_TIMEOUT, StaleBasePolicy


class DepCacheConfig(BaseModel):
    """Recognised configuration options.

    Attributes:
        use_base_image: Whether base tier images may be used as parents.
        time_bucket_format: Named period or strftime pattern for buckets.
        extra_dependency_files: Additional inputs hashed into the fingerprint.
        base_retention_periods: Number of base buckets kept by ``prune``.
        dependency_dirs: Directories whose whole contents are hashed.
        image_prefix: Registry/namespace prefix, e.g. ``ghcr.io/acme/``.
        registry: Registry adapter specification (``docker``, ``memory``,
            ``directory:<path>``).
        dockerfile: Dockerfile used by the build delegate.
        build_target: Dockerfile stage producing the dependency layer.
        stale_base_policy: Behaviour when only the ``latest`` base exists.
        base_wait_timeout: Seconds to wait for a base under the ``wait`` policy.
        poll_interval: Seconds between registry polls while waiting.
        timeout: Overall deadline in seconds for registry and build work.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    use_base_image: bool = True
    time_bucket_format: str = DEFAULT_BUCKET_FORMAT
    extra_dependency_files: list[Path] = Field(default_factory=list)
    base_retention_periods: int = Field(default=3, ge=1)
    dependency_dirs: list[Path] = Field(default_factory=lambda: [Path(item) for item in DEFAULT_DEPENDENCY_DIRS])
    image_prefix: str = ""
    registry: str = "docker"
    dockerfile: Path = Path(DEFAULT_DOCKERFILE)
    build_target: str = DEFAULT_BUILD_TARGET
    stale_base_policy: StaleBasePolicy = "proceed"
    base_wait_timeout: float = Field(default=DEFAULT_WAIT_TIMEOUT, ge=0)
    poll_interval: float = Field(default=DEFAULT_POLL_INTERVAL, gt=0)
    timeout: float | None = Field(default=None, gt=0)

    @field_validator("time_bucket_format")
    @classmethod
    def _check_bucket_format(cls, value: str) -> str:
        try:
            return validate_format(value)
        except ConfigError as exc:
            raise ValueError(str(exc)) from exc

    @field_validator("image_prefix")
    @classmethod
    def _normalise_prefix(cls, value: str) -> str:
        value = value.strip()
        if value and not value.endswith("/"):
            return f"{value}/"
        return value

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly representation of the configuration."""

        return self.model_dump(mode="json")


__all__ = ["DepCacheConfig"]
