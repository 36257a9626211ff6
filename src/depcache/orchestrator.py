# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Turn a resolution verdict into a delegated build and an idempotent publish."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from .cancellation import CancelToken, ensure_token
from .interfaces.build import BuildContext, BuildDelegate
from .interfaces.registry import RegistryLookup, RegistryPublisher
from .keys import CacheKeys
from .resolver import BuildFromScratch, BuildOnBase, ResolutionVerdict, ReuseIncremental

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BuildOutcome:
    """Result of executing a verdict.

    Attributes:
        key: Tag that now addresses the layer.
        artifact_ref: Reference returned by the build delegate, or the reused key.
        built: Whether the build delegate ran.
        published: Whether a push was issued.
        publish_skipped: Whether the push was skipped because the tag appeared
            between resolution and publish.
        parent_ref: Base the layer was built on, if any.
        degraded: Whether the parent was the stale ``latest`` alias.
        base_overdue: Whether no base existed although base images are enabled.
    """

    key: str
    artifact_ref: str | None
    built: bool
    published: bool
    publish_skipped: bool = False
    parent_ref: str | None = None
    degraded: bool = False
    base_overdue: bool = False


def _with_deadline(context: BuildContext, token: CancelToken) -> BuildContext:
    remaining = token.remaining()
    if remaining is None or (context.timeout is not None and context.timeout <= remaining):
        return context
    return replace(context, timeout=remaining)


def _publish(
    tags: tuple[str, ...],
    artifact_ref: str,
    publisher: RegistryPublisher,
    *,
    lookup: RegistryLookup | None,
    token: CancelToken,
    recheck: bool,
) -> tuple[bool, bool]:
    """Push ``artifact_ref`` under each tag and return ``(published, skipped)``."""

    published = False
    skipped = False
    for tag in tags:
        token.check("publish")
        if recheck and lookup is not None and lookup.exists(tag):
            LOGGER.info("tag %s appeared during the build; skipping redundant push", tag)
            skipped = True
            continue
        publisher.push(tag, artifact_ref)
        LOGGER.info("published %s", tag)
        published = True
    return published, skipped


def execute(
    verdict: ResolutionVerdict,
    context: BuildContext,
    builder: BuildDelegate,
    publisher: RegistryPublisher,
    *,
    lookup: RegistryLookup | None = None,
    cancel: CancelToken | None = None,
) -> BuildOutcome:
    """Build and publish the incremental layer as required by ``verdict``.

    Args:
        verdict: Resolver outcome.
        context: Build inputs; ``context.target_tag`` is the incremental key.
        builder: Delegate performing the layer build.
        publisher: Registry push capability.
        lookup: Optional lookup used to re-check the key right before pushing.
        cancel: Optional cancellation token.

    Returns:
        BuildOutcome: What was built and published.

    Raises:
        BuildError: If the delegated build fails; nothing is published.
        TransportError: If the pre-publish check or the push fails.
        OperationCancelled: If cancelled before the push.
    """

    if isinstance(verdict, ReuseIncremental):
        return BuildOutcome(key=verdict.key, artifact_ref=verdict.key, built=False, published=False)

    token = ensure_token(cancel)
    if isinstance(verdict, BuildOnBase):
        parent_ref: str | None = verdict.parent_ref
        degraded = verdict.degraded
        base_overdue = False
    elif isinstance(verdict, BuildFromScratch):
        parent_ref = None
        degraded = False
        base_overdue = verdict.base_missing
        if base_overdue:
            LOGGER.warning("no base image found for this period; a base build is overdue")
    else:  # pragma: no cover - closed union
        raise TypeError(f"unsupported verdict {verdict!r}")

    token.check("build")
    LOGGER.info("building %s on %s", context.target_tag, parent_ref or "scratch")
    artifact_ref = builder.build(parent_ref, _with_deadline(context, token))
    published, skipped = _publish(
        (context.target_tag,),
        artifact_ref,
        publisher,
        lookup=lookup,
        token=token,
        recheck=True,
    )
    return BuildOutcome(
        key=context.target_tag,
        artifact_ref=artifact_ref,
        built=True,
        published=published,
        publish_skipped=skipped,
        parent_ref=parent_ref,
        degraded=degraded,
        base_overdue=base_overdue,
    )


def build_base(
    keys: CacheKeys,
    context: BuildContext,
    builder: BuildDelegate,
    publisher: RegistryPublisher,
    *,
    cancel: CancelToken | None = None,
) -> BuildOutcome:
    """Build the base tier from scratch and publish it with the ``latest`` alias.

    Args:
        keys: Keys for the current bucket; ``keys.base`` is the target.
        context: Build inputs for the base layer.
        builder: Delegate performing the build.
        publisher: Registry push capability.
        cancel: Optional cancellation token.

    Returns:
        BuildOutcome: Outcome keyed by the exact-bucket base tag.
    """

    token = ensure_token(cancel)
    token.check("base build")
    base_context = replace(context, target_tag=keys.base)
    LOGGER.info("building base %s", keys.base)
    artifact_ref = builder.build(None, _with_deadline(base_context, token))
    published, _ = _publish(
        (keys.base, keys.base_alias),
        artifact_ref,
        publisher,
        lookup=None,
        token=token,
        recheck=False,
    )
    return BuildOutcome(key=keys.base, artifact_ref=artifact_ref, built=True, published=published)


__all__ = ["BuildOutcome", "build_base", "execute"]
