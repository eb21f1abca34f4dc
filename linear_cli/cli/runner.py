from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any

from rich.console import Console

from .click_compat import click
from .context import CLIContext, CommandContext
from .render import Renderable, mutation_detail, mutation_payload, render_hint, render_output
from .results import CommandResult, MutationResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CommandOutput:
    data: Any | None = None
    views: Sequence[Renderable] = ()
    hints: Sequence[str] = ()
    exit_code: int = 0  # Commands such as `issue watch` report their outcome through it


def mutation_output(
    results: MutationResult | Sequence[MutationResult],
    *,
    hints: Sequence[str] = (),
) -> CommandOutput:
    items = [results] if isinstance(results, CommandResult) else list(results)
    return CommandOutput(
        data=mutation_payload(items),
        views=[mutation_detail(r) for r in items],
        hints=hints,
    )


def _emit_warnings(*, ctx: CLIContext, warnings: list[str]) -> None:
    if ctx.quiet:
        return
    if not warnings:
        return
    stderr = Console(file=sys.stderr, force_terminal=False)
    for w in warnings:
        stderr.print(f"Warning: {w}", markup=False, highlight=False)


CommandFn = Callable[[CommandContext], Awaitable[CommandOutput]]


async def _invoke(
    ctx: CLIContext, fn: CommandFn, warnings: list[str], *, require_team: bool
) -> CommandOutput:
    cmd = ctx.command_context(warnings=warnings, require_team=require_team)
    try:
        return await fn(cmd)
    finally:
        await cmd.client.aclose()


def run_command(
    ctx: CLIContext, *, command: str, fn: CommandFn, require_team: bool = False
) -> None:
    """
    Run one command coroutine and emit its output.

    Errors propagate to the top-level handler in `main`, which owns the error
    format and exit code. A non-zero `CommandOutput.exit_code` is applied here.
    """
    logger.info("command: %s", command)
    warnings: list[str] = []
    try:
        out = asyncio.run(_invoke(ctx, fn, warnings, require_team=require_team))
    except Exception as exc:
        logger.debug("command %s failed", command, exc_info=exc)
        raise

    _emit_warnings(ctx=ctx, warnings=warnings)
    render_output(ctx.output, payload=out.data, views=out.views)
    if not ctx.quiet:
        for hint in out.hints:
            render_hint(ctx.output, hint)

    if out.exit_code:
        logger.info("command %s exited with %d", command, out.exit_code)
        raise click.exceptions.Exit(out.exit_code)


def run_local_command(ctx: CLIContext, *, command: str, fn: Callable[[], CommandOutput]) -> None:
    """Run a command that never talks to the API (no key required)."""
    logger.info("command: %s", command)
    out = fn()
    render_output(ctx.output, payload=out.data, views=out.views)
    if out.exit_code:
        raise click.exceptions.Exit(out.exit_code)
