# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""``build`` and ``build-base`` commands."""

from __future__ import annotations

import typer

from ...errors import DepCacheError
from ...orchestrator import BuildOutcome
from ...pipeline import execute_plan, run_base
from ..context import DRY_RUN_OPTION, get_context
from ..shared import CLILogger, abort
from ..typer_ext import SortedTyper
from .resolve import plan_payload, report_plan, resolve_plan


def outcome_payload(outcome: BuildOutcome) -> dict[str, object]:
    """Return a JSON-friendly description of ``outcome``."""

    return {
        "key": outcome.key,
        "artifact_ref": outcome.artifact_ref,
        "built": outcome.built,
        "published": outcome.published,
        "publish_skipped": outcome.publish_skipped,
        "parent_ref": outcome.parent_ref,
        "degraded": outcome.degraded,
        "base_overdue": outcome.base_overdue,
    }


def report_outcome(outcome: BuildOutcome, *, logger: CLILogger) -> None:
    """Describe ``outcome`` in human-readable form."""

    if not outcome.built:
        logger.ok(f"Dependencies cached as {outcome.key}; nothing to build")
        return
    if outcome.publish_skipped:
        logger.ok(f"Built {outcome.key}; already published by a concurrent run")
    else:
        logger.ok(f"Built and published {outcome.key}")
    if outcome.base_overdue:
        logger.warn("Base image for this period is missing; run `depcache build-base`")


def build_command(ctx: typer.Context, dry_run: DRY_RUN_OPTION = False) -> None:
    """Resolve the dependency layer and build/publish it when needed."""

    state = get_context(ctx)
    try:
        registry = state.registry()
    except DepCacheError as exc:
        raise abort(exc, logger=state.logger) from exc
    layer_plan = resolve_plan(state, registry)
    if dry_run:
        if state.json_output:
            state.emit_json(plan_payload(layer_plan))
        else:
            report_plan(layer_plan, logger=state.logger)
        return
    report_plan(layer_plan, logger=state.logger)
    try:
        outcome = execute_plan(layer_plan, state.config, registry, state.builder(), cancel=state.cancel_token())
    except DepCacheError as exc:
        raise abort(exc, logger=state.logger) from exc
    if state.json_output:
        state.emit_json({**plan_payload(layer_plan), "outcome": outcome_payload(outcome)})
        return
    report_outcome(outcome, logger=state.logger)


def build_base_command(ctx: typer.Context) -> None:
    """Build the base dependency image for the current period and publish it."""

    state = get_context(ctx)
    try:
        outcome = run_base(
            state.config,
            state.root,
            state.registry(),
            state.builder(),
            clock=state.clock,
            cancel=state.cancel_token(),
        )
    except DepCacheError as exc:
        raise abort(exc, logger=state.logger) from exc
    if state.json_output:
        state.emit_json(outcome_payload(outcome))
        return
    state.logger.ok(f"Built and published base {outcome.key}")


def register(app: SortedTyper) -> None:
    """Register the build commands on ``app``."""

    app.command("build")(build_command)
    app.command("build-base")(build_base_command)


__all__ = ["register"]
