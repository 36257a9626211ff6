# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Typer classes rendering options alphabetically in ``--help`` output."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Final, TypeVar

import typer
from click.core import Context, Parameter
from click.formatting import HelpFormatter
from typer.core import TyperCommand, TyperGroup

HELP_OPTION: Final[str] = "help"


def _sort_key(param: Parameter) -> tuple[bool, str]:
    """Order by the first long option name; ``--help`` always sorts last."""

    names = [*getattr(param, "opts", ()), *getattr(param, "secondary_opts", ())]
    long_names = [name for name in names if name.startswith("--")]
    label = (long_names or names or [param.name or ""])[0].lstrip("-").lower()
    return label == HELP_OPTION, label


class _SortedOptionsMixin:
    """Replace Click's declaration-ordered option listing with a sorted one."""

    def format_options(self, ctx: Context, formatter: HelpFormatter) -> None:
        params = self.get_params(ctx)  # type: ignore[attr-defined]
        arguments = [param for param in params if param.param_type_name == "argument"]
        options = sorted((param for param in params if param.param_type_name != "argument"), key=_sort_key)
        for title, group in (("Arguments", arguments), ("Options", options)):
            records = [record for param in group if (record := param.get_help_record(ctx)) is not None]
            if records:
                with formatter.section(title):
                    formatter.write_dl(records)
        format_commands = getattr(self, "format_commands", None)
        if format_commands is not None:
            format_commands(ctx, formatter)


class SortedTyperCommand(_SortedOptionsMixin, TyperCommand):
    """Command whose ``--help`` lists options alphabetically."""


class SortedTyperGroup(_SortedOptionsMixin, TyperGroup):
    """Group sorting its global options and defaulting to sorted commands."""

    command_class = SortedTyperCommand


CommandCallback = TypeVar("CommandCallback", bound=Callable[..., Any])


class SortedTyper(typer.Typer):
    """Typer application wired to the sorted command and group classes."""

    def __init__(self, *args: Any, cls: type[TyperGroup] | None = None, **kwargs: Any) -> None:
        super().__init__(*args, cls=cls or SortedTyperGroup, **kwargs)

    def command(
        self,
        name: str | None = None,
        *,
        cls: type[TyperCommand] | None = None,
        **kwargs: Any,
    ) -> Callable[[CommandCallback], CommandCallback]:
        """Register a command rendered with :class:`SortedTyperCommand`."""

        return super().command(name, cls=cls or SortedTyperCommand, **kwargs)


def create_typer(*, cls: type[TyperGroup] | None = None, **kwargs: Any) -> SortedTyper:
    """Return a :class:`SortedTyper` for the ``depcache`` application.

    Rich help panels are disabled unless requested, since they bypass
    ``format_options``.
    """

    kwargs.setdefault("rich_markup_mode", None)
    return SortedTyper(cls=cls, **kwargs)


__all__ = ["SortedTyper", "SortedTyperCommand", "SortedTyperGroup", "create_typer"]
