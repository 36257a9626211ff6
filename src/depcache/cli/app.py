# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""CLI application entry point wiring commands and shared options."""

from __future__ import annotations

from pathlib import Path

import typer

from .commands import register_commands
from .context import (
    BASE_OPTION,
    CONFIG_OPTION,
    DEBUG_OPTION,
    EMOJI_OPTION,
    EXTRA_OPTION,
    FORMAT_OPTION,
    JSON_OPTION,
    NOW_OPTION,
    PREFIX_OPTION,
    REGISTRY_OPTION,
    ROOT_OPTION,
    TIMEOUT_OPTION,
    create_context,
)
from .typer_ext import create_typer

app = create_typer(help="Resolve, build and prune two-tier dependency layer caches.", no_args_is_help=True)


@app.callback()
def main(
    ctx: typer.Context,
    root: ROOT_OPTION = Path("."),
    config_file: CONFIG_OPTION = None,
    registry: REGISTRY_OPTION = None,
    image_prefix: PREFIX_OPTION = None,
    bucket_format: FORMAT_OPTION = None,
    extra: EXTRA_OPTION = None,
    use_base: BASE_OPTION = None,
    now: NOW_OPTION = None,
    timeout: TIMEOUT_OPTION = None,
    emoji: EMOJI_OPTION = True,
    debug: DEBUG_OPTION = False,
    json_output: JSON_OPTION = False,
) -> None:
    """Load configuration once and share it with the selected command."""

    state = create_context(
        root=root,
        config_file=config_file,
        overrides={
            "registry": registry,
            "image_prefix": image_prefix,
            "time_bucket_format": bucket_format,
            "use_base_image": use_base,
            "timeout": timeout,
        },
        now=now,
        emoji=emoji,
        debug=debug,
        json_output=json_output,
    )
    if extra:
        state.config = state.config.model_copy(
            update={"extra_dependency_files": [*state.config.extra_dependency_files, *extra]},
        )
    ctx.obj = state


register_commands(app)

__all__ = ["app"]
