"""Shared decorators and checks for destructive commands."""

from __future__ import annotations

import sys
from collections.abc import Callable
from typing import TypeVar

from .click_compat import click
from .errors import CLIError

F = TypeVar("F", bound=Callable[..., object])


def yes_option(fn: F) -> F:
    """Add `-y/--yes` to a destructive command.

    Usage:
        @project_group.command(name="delete")
        @yes_option
        @click.argument("name")
        def project_delete(ctx, name, *, yes): ...
    """
    return click.option("-y", "--yes", is_flag=True, help="Skip the confirmation prompt.")(fn)  # type: ignore[return-value]


def confirm_destructive(prompt: str, *, yes: bool, no_input: bool, retry: str) -> bool:
    """
    Confirm a destructive action.

    `--yes` or `--no-input` skip the question. Without a terminal to ask on, the
    action is refused rather than assumed.
    """
    if yes or no_input:
        return True
    if sys.stdin is None or not sys.stdin.isatty():
        raise CLIError(
            "confirmation required",
            error_type="usage_error",
            hint=f"{retry} --yes",
        )
    return click.confirm(prompt, default=False, err=True)
