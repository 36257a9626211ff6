# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Wire fingerprinting, key composition, resolution and execution together."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from .buckets import Clock, TimeBucket, bucket, utc_now
from .cancellation import CancelToken
from .config import DepCacheConfig
from .errors import ConfigError
from .fingerprint import ManifestSet, collect_manifest_set
from .interfaces.build import BuildContext, BuildDelegate
from .interfaces.registry import RegistryLister, RegistryLookup, RegistryPruner, RegistryPublisher
from .keys import CacheKeys, compose_keys
from .orchestrator import BuildOutcome, build_base, execute
from .resolver import ResolutionVerdict, resolve
from .retention import PruneReport, prune, prune_candidates, published_tags_from_strings

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LayerPlan:
    """Everything derived for one resolution request."""

    root: Path
    manifests: ManifestSet
    keys: CacheKeys
    verdict: ResolutionVerdict

    def build_context(self, *, timeout: float | None = None) -> BuildContext:
        """Return the build context targeting the incremental key."""

        return BuildContext(root=self.root, target_tag=self.keys.incremental, manifests=self.manifests, timeout=timeout)


def current_bucket(config: DepCacheConfig, *, clock: Clock = utc_now) -> TimeBucket:
    """Return the bucket current for ``config`` according to ``clock``."""

    return bucket(clock(), config.time_bucket_format)


def derive_keys(
    config: DepCacheConfig,
    root: Path,
    *,
    clock: Clock = utc_now,
) -> tuple[ManifestSet, CacheKeys]:
    """Collect manifests under ``root`` and compose the keys for the current bucket.

    Raises:
        IOFailure: If a declared input exists but cannot be read.
        ConfigError: If the bucket format yields labels unusable in tags.
    """

    manifests = collect_manifest_set(
        root,
        dependency_dirs=tuple(config.dependency_dirs),
        extra_paths=tuple(config.extra_dependency_files),
    )
    try:
        keys = compose_keys(manifests.fingerprint(), current_bucket(config, clock=clock), prefix=config.image_prefix)
    except ValueError as exc:
        raise ConfigError(f"time_bucket_format {config.time_bucket_format!r}: {exc}") from exc
    LOGGER.debug("derived keys base=%s incremental=%s", keys.base, keys.incremental)
    return manifests, keys


def plan(
    config: DepCacheConfig,
    root: Path,
    lookup: RegistryLookup,
    *,
    clock: Clock = utc_now,
    cancel: CancelToken | None = None,
) -> LayerPlan:
    """Fingerprint, compose keys and resolve them against ``lookup``."""

    manifests, keys = derive_keys(config, root, clock=clock)
    verdict = resolve(
        config.use_base_image,
        keys,
        lookup,
        cancel=cancel,
        stale_base_policy=config.stale_base_policy,
        wait_timeout=config.base_wait_timeout,
        poll_interval=config.poll_interval,
    )
    return LayerPlan(root=manifests.root, manifests=manifests, keys=keys, verdict=verdict)


class PipelineRegistry(RegistryLookup, RegistryPublisher, Protocol):
    """Structural type for registries that can both look up and publish."""


def run(
    config: DepCacheConfig,
    root: Path,
    registry: PipelineRegistry,
    builder: BuildDelegate,
    *,
    clock: Clock = utc_now,
    cancel: CancelToken | None = None,
) -> tuple[LayerPlan, BuildOutcome]:
    """Plan and execute a resolution, publishing the incremental layer when built."""

    layer_plan = plan(config, root, registry, clock=clock, cancel=cancel)
    return layer_plan, execute_plan(layer_plan, config, registry, builder, cancel=cancel)


def execute_plan(
    layer_plan: LayerPlan,
    config: DepCacheConfig,
    registry: PipelineRegistry,
    builder: BuildDelegate,
    *,
    cancel: CancelToken | None = None,
) -> BuildOutcome:
    """Carry out an already resolved ``layer_plan``, re-checking before publishing."""

    return execute(
        layer_plan.verdict,
        layer_plan.build_context(timeout=config.timeout),
        builder,
        registry,
        lookup=registry,
        cancel=cancel,
    )


def run_base(
    config: DepCacheConfig,
    root: Path,
    publisher: RegistryPublisher,
    builder: BuildDelegate,
    *,
    clock: Clock = utc_now,
    cancel: CancelToken | None = None,
) -> BuildOutcome:
    """Build and publish the base tier for the current bucket."""

    manifests, keys = derive_keys(config, root, clock=clock)
    context = BuildContext(root=manifests.root, target_tag=keys.base, manifests=manifests, timeout=config.timeout)
    return build_base(keys, context, builder, publisher, cancel=cancel)


class RetentionRegistry(RegistryLister, RegistryPruner, Protocol):
    """Structural type for registries that can list and delete tags."""


def run_retention(
    config: DepCacheConfig,
    registry: RetentionRegistry,
    *,
    clock: Clock = utc_now,
    dry_run: bool = False,
    cancel: CancelToken | None = None,
) -> tuple[set[str], PruneReport]:
    """Compute prune candidates from the registry listing and optionally delete them."""

    if cancel is not None:
        cancel.check("list tags")
    published = published_tags_from_strings(registry.list_tags(), prefix=config.image_prefix)
    candidates = prune_candidates(
        published,
        current_bucket(config, clock=clock),
        config.base_retention_periods,
        fmt=config.time_bucket_format,
    )
    if dry_run:
        return candidates, PruneReport()
    return candidates, prune(candidates, registry, cancel=cancel)


__all__ = [
    "LayerPlan",
    "current_bucket",
    "derive_keys",
    "execute_plan",
    "plan",
    "run",
    "run_base",
    "run_retention",
]
