# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""CLI command registry."""

from __future__ import annotations

from ..typer_ext import SortedTyper
from . import build, inspection, prune, resolve

__all__ = ["register_commands"]


def register_commands(app: SortedTyper) -> None:
    """Register built-in CLI commands on ``app``."""

    inspection.register(app)
    resolve.register(app)
    build.register(app)
    prune.register(app)
