# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""``resolve`` command: report which tier can be reused."""

from __future__ import annotations

import typer

from ...errors import DepCacheError
from ...interfaces.registry import Registry
from ...pipeline import LayerPlan, plan
from ...resolver import BuildFromScratch, BuildOnBase, ReuseIncremental, verdict_to_dict
from ..context import CLIContext, get_context
from ..shared import CLILogger, abort
from ..typer_ext import SortedTyper


def report_plan(layer_plan: LayerPlan, *, logger: CLILogger) -> None:
    """Describe ``layer_plan`` in human-readable form."""

    verdict = layer_plan.verdict
    if isinstance(verdict, ReuseIncremental):
        logger.ok(f"Reusing cached dependencies {verdict.key}")
    elif isinstance(verdict, BuildOnBase):
        if verdict.degraded:
            logger.warn(f"Base {layer_plan.keys.base} missing; building on stale alias {verdict.parent_ref}")
        else:
            logger.info(f"Building {layer_plan.keys.incremental} on base {verdict.parent_ref}")
    elif isinstance(verdict, BuildFromScratch):
        if verdict.base_missing:
            logger.warn(f"No base image for {layer_plan.keys.bucket}; a base build is overdue")
        logger.info(f"Building {layer_plan.keys.incremental} from scratch")


def plan_payload(layer_plan: LayerPlan) -> dict[str, object]:
    """Return a JSON-friendly description of ``layer_plan``."""

    return {
        **verdict_to_dict(layer_plan.verdict),
        "bucket": layer_plan.keys.bucket,
        "fingerprint": layer_plan.keys.fingerprint,
        "incremental_key": layer_plan.keys.incremental,
        "base_key": layer_plan.keys.base,
    }


def resolve_plan(state: CLIContext, registry: Registry | None = None) -> LayerPlan:
    """Resolve the plan for ``state`` or exit with the mapped status."""

    try:
        lookup = registry if registry is not None else state.registry()
        return plan(state.config, state.root, lookup, clock=state.clock, cancel=state.cancel_token())
    except DepCacheError as exc:
        raise abort(exc, logger=state.logger) from exc


def resolve_command(ctx: typer.Context) -> None:
    """Resolve the dependency layer against the registry without building."""

    state = get_context(ctx)
    layer_plan = resolve_plan(state)
    if state.json_output:
        state.emit_json(plan_payload(layer_plan))
        return
    report_plan(layer_plan, logger=state.logger)


def register(app: SortedTyper) -> None:
    """Register the ``resolve`` command on ``app``."""

    app.command("resolve")(resolve_command)


__all__ = ["plan_payload", "register", "report_plan", "resolve_plan"]
