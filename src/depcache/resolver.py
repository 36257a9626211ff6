# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Decide which cache tier can be reused, used as a parent, or must be rebuilt.

Resolution is priority ordered and short-circuiting:

1. An exact incremental match (fingerprint and bucket) is always reused.
2. Otherwise, when base images are enabled, the exact-bucket base is used as
   the parent, falling back to the ``latest`` alias with a degradation flag.
3. Otherwise the layer is built from scratch.

Transport failures never count as cache misses; they surface as
:class:`~depcache.errors.ResolutionFailed` naming the tier and key.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Final, Literal, TypeAlias

from .cancellation import CancelToken, ensure_token
from .errors import ResolutionFailed, StaleBaseError, Tier, TransportError
from .interfaces.registry import RegistryLookup
from .keys import CacheKeys

LOGGER = logging.getLogger(__name__)

StaleBasePolicy = Literal["proceed", "wait", "fail"]
DEFAULT_WAIT_TIMEOUT: Final[float] = 600.0
DEFAULT_POLL_INTERVAL: Final[float] = 15.0


@dataclass(frozen=True, slots=True)
class ReuseIncremental:
    """The incremental layer for this fingerprint and bucket is already published."""

    key: str


@dataclass(frozen=True, slots=True)
class BuildOnBase:
    """Build the incremental layer on top of ``parent_ref``.

    Attributes:
        parent_ref: Base tier reference to build on.
        degraded: ``True`` when the exact-bucket base was missing and the
            ``latest`` alias was used instead.
    """

    parent_ref: str
    degraded: bool = False


@dataclass(frozen=True, slots=True)
class BuildFromScratch:
    """No reusable tier exists; install every dependency.

    Attributes:
        base_missing: ``True`` when base images were enabled but none existed,
            meaning a base build is overdue.
    """

    base_missing: bool = False


ResolutionVerdict: TypeAlias = ReuseIncremental | BuildOnBase | BuildFromScratch


def _exists(lookup: RegistryLookup, *, tier: Tier, key: str, cancel: CancelToken) -> bool:
    cancel.check(f"{tier} lookup")
    try:
        present = lookup.exists(key)
    except TransportError as exc:
        raise ResolutionFailed(tier=tier, key=key, cause=exc) from exc
    LOGGER.debug("lookup tier=%s key=%s present=%s", tier, key, present)
    return present


def _await_exact_base(
    lookup: RegistryLookup,
    keys: CacheKeys,
    cancel: CancelToken,
    *,
    wait_timeout: float,
    poll_interval: float,
) -> bool:
    """Poll for the exact-bucket base while a concurrent base build may publish it."""

    deadline = time.monotonic() + wait_timeout
    while time.monotonic() < deadline:
        cancel.wait(min(poll_interval, max(0.0, deadline - time.monotonic())))
        if _exists(lookup, tier="base", key=keys.base, cancel=cancel):
            return True
    return False


def resolve(
    use_base: bool,
    keys: CacheKeys,
    lookup: RegistryLookup,
    *,
    cancel: CancelToken | None = None,
    stale_base_policy: StaleBasePolicy = "proceed",
    wait_timeout: float = DEFAULT_WAIT_TIMEOUT,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
) -> ResolutionVerdict:
    """Return the resolution verdict for ``keys`` against the registry.

    Args:
        use_base: Whether base tier images may be used as parents.
        keys: Keys composed for the current fingerprint and bucket.
        lookup: Registry existence capability.
        cancel: Optional cancellation token checked before each lookup.
        stale_base_policy: Behaviour when only the ``latest`` base alias exists.
        wait_timeout: Seconds to poll for the exact base under ``"wait"``.
        poll_interval: Seconds between polls under ``"wait"``.

    Returns:
        ResolutionVerdict: Reuse, build-on-base or build-from-scratch.

    Raises:
        ResolutionFailed: If a registry lookup fails.
        StaleBaseError: If only the alias exists and the policy is ``"fail"``.
        OperationCancelled: If ``cancel`` fires.
    """

    token = ensure_token(cancel)
    if _exists(lookup, tier="incremental", key=keys.incremental, cancel=token):
        return ReuseIncremental(key=keys.incremental)
    if not use_base:
        return BuildFromScratch(base_missing=False)

    if _exists(lookup, tier="base", key=keys.base, cancel=token):
        return BuildOnBase(parent_ref=keys.base)
    if not _exists(lookup, tier="base", key=keys.base_alias, cancel=token):
        return BuildFromScratch(base_missing=True)

    if stale_base_policy == "fail":
        raise StaleBaseError(keys.base, keys.base_alias)
    if stale_base_policy == "wait" and _await_exact_base(
        lookup,
        keys,
        token,
        wait_timeout=wait_timeout,
        poll_interval=poll_interval,
    ):
        return BuildOnBase(parent_ref=keys.base)
    LOGGER.warning("base %s is missing; degrading to stale alias %s", keys.base, keys.base_alias)
    return BuildOnBase(parent_ref=keys.base_alias, degraded=True)


def verdict_name(verdict: ResolutionVerdict) -> str:
    """Return a stable machine-readable name for ``verdict``."""

    if isinstance(verdict, ReuseIncremental):
        return "reuse-incremental"
    if isinstance(verdict, BuildOnBase):
        return "build-on-base"
    return "build-from-scratch"


def verdict_to_dict(verdict: ResolutionVerdict) -> dict[str, str | bool]:
    """Return a JSON-friendly mapping describing ``verdict``."""

    payload: dict[str, str | bool] = {"verdict": verdict_name(verdict)}
    if isinstance(verdict, ReuseIncremental):
        payload["key"] = verdict.key
    elif isinstance(verdict, BuildOnBase):
        payload["parent_ref"] = verdict.parent_ref
        payload["degraded"] = verdict.degraded
    else:
        payload["base_missing"] = verdict.base_missing
    return payload


__all__ = [
    "BuildFromScratch",
    "BuildOnBase",
    "ResolutionVerdict",
    "ReuseIncremental",
    "StaleBasePolicy",
    "resolve",
    "verdict_name",
    "verdict_to_dict",
]
