# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""``prune`` command: delete tags that fell out of the retention window."""

from __future__ import annotations

import typer

from ...errors import DepCacheError
from ...pipeline import run_retention
from ..context import DRY_RUN_OPTION, get_context
from ..shared import EXIT_RESOLUTION, abort
from ..typer_ext import SortedTyper


def prune_command(ctx: typer.Context, dry_run: DRY_RUN_OPTION = False) -> None:
    """Delete expired base and incremental tags from the registry."""

    state = get_context(ctx)
    try:
        candidates, report = run_retention(
            state.config,
            state.registry(),
            clock=state.clock,
            dry_run=dry_run,
            cancel=state.cancel_token(),
        )
    except DepCacheError as exc:
        raise abort(exc, logger=state.logger) from exc

    if state.json_output:
        state.emit_json(
            {
                "candidates": sorted(candidates),
                "deleted": report.deleted,
                "failed": report.failed,
                "dry_run": dry_run,
            },
        )
    elif not candidates:
        state.logger.ok("Nothing to prune")
    elif dry_run:
        for tag in sorted(candidates):
            state.logger.warn(f"DRY RUN: would delete {tag}")
    else:
        for tag in report.deleted:
            state.logger.ok(f"Deleted {tag}")
        for tag, reason in sorted(report.failed.items()):
            state.logger.fail(f"Could not delete {tag}: {reason}")
    if not report.ok:
        raise typer.Exit(code=EXIT_RESOLUTION)


def register(app: SortedTyper) -> None:
    """Register the ``prune`` command on ``app``."""

    app.command("prune")(prune_command)


__all__ = ["register"]
