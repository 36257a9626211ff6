# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Global CLI options shared by every command through ``ctx.obj``."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Annotated, Any

import typer

from ..buckets import Clock, to_utc, utc_now
from ..builders import DockerBuildDelegate
from ..cancellation import CancelToken
from ..config import ConfigLoader, ConfigLoadResult, DepCacheConfig, apply_overrides
from ..errors import ConfigError
from ..interfaces.build import BuildDelegate
from ..interfaces.registry import Registry
from ..registry import create_registry
from .shared import EXIT_CONFIG, CLILogger, build_cli_logger

ROOT_OPTION = Annotated[Path, typer.Option("--root", "-r", help="Project root containing dependency files.")]
CONFIG_OPTION = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Configuration file replacing <root>/.depcache.toml."),
]
REGISTRY_OPTION = Annotated[
    str | None,
    typer.Option("--registry", help="Registry adapter: docker, memory or directory:<path>."),
]
PREFIX_OPTION = Annotated[str | None, typer.Option("--image-prefix", help="Image prefix, e.g. ghcr.io/acme/.")]
FORMAT_OPTION = Annotated[
    str | None,
    typer.Option("--format", help="Time bucket format (monthly, weekly, daily, quarterly, yearly or strftime)."),
]
EXTRA_OPTION = Annotated[
    list[Path] | None,
    typer.Option("--extra", "-e", help="Additional dependency file or directory (repeatable)."),
]
BASE_OPTION = Annotated[bool | None, typer.Option("--base/--no-base", help="Allow building on base images.")]
NOW_OPTION = Annotated[str | None, typer.Option("--now", help="ISO-8601 instant used instead of the clock.")]
TIMEOUT_OPTION = Annotated[float | None, typer.Option("--timeout", help="Deadline in seconds for registry/build work.")]
EMOJI_OPTION = Annotated[bool, typer.Option("--emoji/--no-emoji", help="Toggle emoji output.")]
DEBUG_OPTION = Annotated[bool, typer.Option("--debug", help="Emit debug logging.")]
JSON_OPTION = Annotated[bool, typer.Option("--json", help="Emit machine-readable JSON.")]
DRY_RUN_OPTION = Annotated[bool, typer.Option("--dry-run", help="Report what would happen without side effects.")]


def fixed_clock(raw: str) -> Clock:
    """Return a clock that always reports the ISO-8601 instant ``raw``.

    Raises:
        ConfigError: If ``raw`` is not a valid ISO-8601 timestamp.
    """

    try:
        moment = to_utc(datetime.fromisoformat(raw))
    except ValueError as exc:
        raise ConfigError(f"--now expects an ISO-8601 timestamp, got {raw!r}") from exc
    return lambda: moment


def build_delegate(config: DepCacheConfig) -> BuildDelegate:
    """Return the build delegate used by ``build`` commands."""

    return DockerBuildDelegate(dockerfile=config.dockerfile, target=config.build_target)


@dataclass(slots=True)
class CLIContext:
    """Resolved global state handed to each command."""

    root: Path
    load_result: ConfigLoadResult
    config: DepCacheConfig
    logger: CLILogger
    clock: Clock
    json_output: bool = False
    _token: CancelToken | None = None

    def registry(self) -> Registry:
        """Return the registry adapter selected by configuration."""

        return create_registry(
            self.config.registry,
            prefix=self.config.image_prefix,
            timeout=self.config.timeout,
            cancel=self.cancel_token(),
        )

    def builder(self) -> BuildDelegate:
        """Return the build delegate selected by configuration."""

        return build_delegate(self.config)

    def cancel_token(self) -> CancelToken:
        """Return the command-wide token; the deadline starts on first use."""

        if self._token is None:
            self._token = CancelToken(timeout=self.config.timeout)
        return self._token

    def emit_json(self, payload: Any) -> None:
        """Print ``payload`` as indented JSON on stdout."""

        self.logger.echo(json.dumps(payload, indent=2, sort_keys=True, default=str))


def create_context(
    *,
    root: Path,
    config_file: Path | None,
    overrides: dict[str, Any],
    now: str | None,
    emoji: bool,
    debug: bool,
    json_output: bool,
) -> CLIContext:
    """Load configuration and construct the :class:`CLIContext`.

    Raises:
        typer.Exit: With the configuration exit code when loading fails.
    """

    logger = build_cli_logger(emoji=emoji, debug=debug, quiet=json_output)
    try:
        load_result = ConfigLoader.for_root(root, config_file=config_file).load_with_trace()
        config = apply_overrides(load_result.config, overrides)
        clock = fixed_clock(now) if now is not None else utc_now
    except ConfigError as exc:
        logger.fail(str(exc))
        raise typer.Exit(code=EXIT_CONFIG) from exc
    return CLIContext(
        root=root.resolve(),
        load_result=load_result,
        config=config,
        logger=logger,
        clock=clock,
        json_output=json_output,
    )


def get_context(ctx: typer.Context) -> CLIContext:
    """Return the :class:`CLIContext` stored by the application callback."""

    obj = ctx.find_root().obj
    if not isinstance(obj, CLIContext):  # pragma: no cover - callback always runs first
        raise RuntimeError("depcache CLI context was not initialised")
    return obj


__all__ = [
    "CLIContext",
    "build_delegate",
    "create_context",
    "fixed_clock",
    "get_context",
]
