# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared utilities for CLI commands (logging, errors, exit codes)."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Final

import typer
from rich.console import Console
from rich.text import Text

from ..errors import (
    BuildError,
    ConfigError,
    DepCacheError,
    IOFailure,
    OperationCancelled,
    ResolutionFailed,
    StaleBaseError,
    TransportError,
)
from ..logging import configure_library_logging, fail, info, ok, warn

EXIT_BUILD_FAILED: Final[int] = 1
EXIT_CONFIG: Final[int] = 2
EXIT_RESOLUTION: Final[int] = 3
EXIT_IO: Final[int] = 4
EXIT_CANCELLED: Final[int] = 130


def exit_code_for(error: DepCacheError) -> int:
    """Return the process exit status used to report ``error``."""

    if isinstance(error, BuildError):
        return EXIT_BUILD_FAILED
    if isinstance(error, ConfigError):
        return EXIT_CONFIG
    if isinstance(error, (ResolutionFailed, TransportError, StaleBaseError)):
        return EXIT_RESOLUTION
    if isinstance(error, IOFailure):
        return EXIT_IO
    if isinstance(error, OperationCancelled):
        return EXIT_CANCELLED
    return EXIT_BUILD_FAILED


@dataclass(slots=True)
class CLILogger:
    """Adapter around project logging helpers respecting CLI emoji settings."""

    console: Console
    use_emoji: bool
    debug_enabled: bool = False
    quiet: bool = False
    _key_value_re: re.Pattern[str] = re.compile(r"([\w-]+)=(\".*?\"|\S+)")

    def info(self, message: str) -> None:
        """Log an informational message honouring emoji preferences."""

        if self.quiet:
            return
        info(message, use_emoji=self.use_emoji)

    def fail(self, message: str) -> None:
        """Log a failure message on stderr, even when other output is quiet."""

        fail(message, use_emoji=self.use_emoji)

    def warn(self, message: str) -> None:
        """Log a warning message honouring emoji preferences."""

        if self.quiet:
            return
        warn(message, use_emoji=self.use_emoji)

    def ok(self, message: str) -> None:
        """Log a success message honouring emoji preferences."""

        if self.quiet:
            return
        ok(message, use_emoji=self.use_emoji)

    def echo(self, message: str, *, err: bool = False) -> None:
        """Write ``message`` to stdout, or stderr with ``err``, via Typer."""

        typer.echo(message, err=err)

    def debug(self, message: str) -> None:
        """Emit a debug message with ``key=value`` highlighting when enabled."""

        if not self.debug_enabled:
            return
        text = Text("[debug] ", style="bold cyan")
        cursor = 0
        for match in self._key_value_re.finditer(message):
            start, end = match.span()
            if start > cursor:
                text.append(message[cursor:start], style="dim")
            text.append(match.group(1), style="bold magenta")
            text.append("=", style="dim")
            text.append(match.group(2), style="bold green")
            cursor = end
        if cursor < len(message):
            text.append(message[cursor:], style="dim")
        self.console.print(text)


def build_cli_logger(
    *,
    emoji: bool,
    debug: bool = False,
    no_color: bool = False,
    quiet: bool = False,
) -> CLILogger:
    """Return a ``CLILogger`` and route library logging through Rich.

    Args:
        emoji: Whether log output may include emoji glyphs.
        debug: Whether debug logging should be enabled.
        no_color: Whether terminal colour output should be disabled.
        quiet: Suppress informational output, e.g. when emitting JSON.

    Returns:
        CLILogger: Logger instance bound to a dedicated Rich console.
    """

    configure_library_logging(debug=debug)
    console = Console(no_color=no_color, highlight=False)
    return CLILogger(console=console, use_emoji=emoji, debug_enabled=debug, quiet=quiet)


def abort(error: DepCacheError, *, logger: CLILogger) -> typer.Exit:
    """Report ``error`` and return the ``typer.Exit`` to raise."""

    logger.fail(str(error))
    if isinstance(error, BuildError) and error.output:
        logger.echo(error.output, err=True)
    return typer.Exit(code=exit_code_for(error))


__all__ = [
    "CLILogger",
    "EXIT_BUILD_FAILED",
    "EXIT_CANCELLED",
    "EXIT_CONFIG",
    "EXIT_IO",
    "EXIT_RESOLUTION",
    "abort",
    "build_cli_logger",
    "exit_code_for",
]
