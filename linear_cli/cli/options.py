from __future__ import annotations

from collections.abc import Callable
from typing import TypeVar

from .click_compat import click
from .context import OUTPUT_FORMATS, CLIContext

F = TypeVar("F", bound=Callable[..., object])


def _set_format(ctx: click.Context, _param: click.Parameter, value: str | None) -> str | None:
    if value is None:
        return value
    obj = ctx.obj
    if isinstance(obj, CLIContext):
        obj.output = value  # type: ignore[assignment]
    return value


def _set_json(ctx: click.Context, _param: click.Parameter, value: bool) -> bool:
    if not value:
        return value
    obj = ctx.obj
    if isinstance(obj, CLIContext):
        obj.output = "json"
    return value


def _set_team(ctx: click.Context, _param: click.Parameter, value: str | None) -> str | None:
    if value is None:
        return value
    obj = ctx.obj
    if isinstance(obj, CLIContext):
        obj.team = value
    return value


def output_options(fn: F) -> F:
    """Accept `--format`/`--json` after the subcommand as well as before it."""
    fn = click.option(
        "-f",
        "--format",
        "format_override",
        type=click.Choice(OUTPUT_FORMATS),
        default=None,
        help="Override output format for this command.",
        callback=_set_format,
        expose_value=False,
    )(fn)
    fn = click.option(
        "--json",
        "json_override",
        is_flag=True,
        help="Alias for --format json.",
        callback=_set_json,
        expose_value=False,
    )(fn)
    return fn


def team_option(fn: F) -> F:
    return click.option(
        "-t",
        "--team",
        "team_override",
        type=str,
        default=None,
        help="Team key (overrides LINEAR_TEAM).",
        callback=_set_team,
        expose_value=False,
    )(fn)
