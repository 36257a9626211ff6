# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Run the external ``docker`` and ``crane`` tools with captured output."""

from __future__ import annotations

import os
import shutil
import subprocess
from collections.abc import Mapping, Sequence
from pathlib import Path


def _resolve_executable(args: Sequence[str]) -> list[str]:
    if not args:
        raise ValueError("an external command needs at least the executable name")

    executable, *rest = args
    if os.path.isabs(executable):
        return [executable, *rest]
    located = shutil.which(executable)
    if located is None:
        raise FileNotFoundError(f"Executable '{executable}' was not found on PATH")
    return [located, *rest]


def run_command(
    args: Sequence[str],
    *,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
    timeout: float | None = None,
) -> subprocess.CompletedProcess[str]:
    """Run *args* and return the completed process with text stdout/stderr.

    ``env`` entries are layered over the current environment. A non-zero exit
    status is returned, not raised; callers decide what it means.

    Raises:
        FileNotFoundError: If the executable is not on ``PATH``.
        subprocess.TimeoutExpired: If ``timeout`` elapses.
    """

    return subprocess.run(
        _resolve_executable(args),
        cwd=cwd,
        env={**os.environ, **env} if env else None,
        check=False,
        capture_output=True,
        text=True,
        timeout=timeout,
    )


def output_tail(result: subprocess.CompletedProcess[str], *, lines: int = 40) -> str:
    """Return the last ``lines`` lines of combined stdout and stderr."""

    combined = "\n".join(part for part in (result.stdout, result.stderr) if part)
    return "\n".join(combined.splitlines()[-lines:])


__all__ = ["output_tail", "run_command"]
