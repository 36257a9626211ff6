# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Read-only commands: ``fingerprint``, ``keys`` and ``config``."""

from __future__ import annotations

import typer
from rich.table import Table

from ...errors import DepCacheError
from ...pipeline import derive_keys
from ..context import get_context
from ..shared import abort
from ..typer_ext import SortedTyper


def fingerprint_command(ctx: typer.Context) -> None:
    """Print the dependency fingerprint and the files it covers."""

    state = get_context(ctx)
    try:
        manifests, keys = derive_keys(state.config, state.root, clock=state.clock)
        members = manifests.members()
    except DepCacheError as exc:
        raise abort(exc, logger=state.logger) from exc
    if state.json_output:
        state.emit_json(
            {
                "fingerprint": keys.fingerprint,
                "members": [str(path) for path in members],
                "missing": [str(path) for path in manifests.missing],
            },
        )
        return
    if not members:
        state.logger.warn("No dependency files found; fingerprint covers empty input.")
    for path in members:
        state.logger.debug(f"member path={path}")
    state.logger.echo(keys.fingerprint)


def keys_command(ctx: typer.Context) -> None:
    """Print the registry keys for the current fingerprint and time bucket."""

    state = get_context(ctx)
    try:
        _, keys = derive_keys(state.config, state.root, clock=state.clock)
    except DepCacheError as exc:
        raise abort(exc, logger=state.logger) from exc
    payload = {
        "bucket": keys.bucket,
        "fingerprint": keys.fingerprint,
        "base": keys.base,
        "base_alias": keys.base_alias,
        "incremental": keys.incremental,
    }
    if state.json_output:
        state.emit_json(payload)
        return
    for name, value in payload.items():
        state.logger.echo(f"{name}: {value}")


def config_command(ctx: typer.Context) -> None:
    """Show the effective configuration and where each value came from."""

    state = get_context(ctx)
    values = state.config.to_dict()
    if state.json_output:
        state.emit_json(values)
        return
    table = Table(title="depcache configuration")
    table.add_column("Option")
    table.add_column("Value")
    table.add_column("Source")
    for field, value in values.items():
        table.add_row(field, str(value), state.load_result.source_of(field))
    state.logger.console.print(table)


def register(app: SortedTyper) -> None:
    """Register the inspection commands on ``app``."""

    app.command("fingerprint")(fingerprint_command)
    app.command("keys")(keys_command)
    app.command("config")(config_command)


__all__ = ["register"]
