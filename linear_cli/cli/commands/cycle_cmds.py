from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from linear_cli.models.entities import Cycle
from linear_cli.models.pagination import drain

from ..click_compat import RichCommand, click
from ..context import CLIContext, CommandContext
from ..groups import LinearGroup
from ..options import output_options, team_option
from ..render import DetailData, DetailField, Renderable, TableData, TextBlock
from ..resolve import pick_cycle, resolve_team_id
from ..runner import CommandOutput, run_command
from ..time_utils import format_date, relative_time


@click.group(name="cycle", cls=LinearGroup)
def cycle_group() -> None:
    """Cycle commands."""


def cycle_percent(cycle: Cycle) -> int:
    return round((cycle.progress or 0.0) * 100)


@cycle_group.command(name="list", cls=RichCommand)
@team_option
@output_options
@click.pass_obj
def cycle_list(ctx: CLIContext) -> None:
    """List a team's cycles in number order."""

    async def fn(cmd: CommandContext) -> CommandOutput:
        team_id = await resolve_team_id(cmd.client, cmd.team_key or "")
        cycles = sorted(await drain(await cmd.client.team_cycles(team_id)), key=lambda c: c.number)
        payload = [
            {
                "number": c.number,
                "name": c.display_name,
                "startsAt": c.starts_at,
                "endsAt": c.ends_at,
                "progress": cycle_percent(c),
            }
            for c in cycles
        ]
        rows = [
            [
                str(c.number),
                c.display_name,
                format_date(c.starts_at),
                format_date(c.ends_at),
                f"{cycle_percent(c)}%",
            ]
            for c in cycles
        ]
        return CommandOutput(
            data=payload,
            views=[TableData(headers=["#", "Name", "Starts", "Ends", "Progress"], rows=rows)],
        )

    run_command(ctx, command="cycle list", fn=fn, require_team=True)


@cycle_group.command(name="view", cls=RichCommand)
@click.argument("number")
@team_option
@output_options
@click.pass_obj
def cycle_view(ctx: CLIContext, number: str) -> None:
    """
    View a cycle and its issues.

    NUMBER is a cycle number, `current`, or `next`.
    """

    async def fn(cmd: CommandContext) -> CommandOutput:
        team_key = cmd.team_key or ""
        team_id = await resolve_team_id(cmd.client, team_key)
        cycles = await drain(await cmd.client.team_cycles(team_id))
        cycle = pick_cycle(cycles, number, team_key, datetime.now(timezone.utc))
        issues = await drain(
            await cmd.client.issues(filter={"cycle": {"id": {"eq": cycle.id}}}, first=100)
        )

        total = len(issues)
        percent = cycle_percent(cycle)
        completed = round((cycle.progress or 0.0) * total)
        payload: dict[str, Any] = {
            "number": cycle.number,
            "name": cycle.display_name,
            "startsAt": cycle.starts_at,
            "endsAt": cycle.ends_at,
            "progress": percent,
            "issues": [
                {
                    "identifier": i.identifier,
                    "state": i.state.name if i.state else "-",
                    "assignee": i.assignee.name if i.assignee else "-",
                    "title": i.title,
                    "updatedAt": i.updated_at,
                }
                for i in issues
            ],
        }

        if cmd.format == "compact":
            detail = DetailData(
                title=cycle.display_name,
                fields=[
                    DetailField("number", str(cycle.number)),
                    DetailField("name", cycle.display_name),
                    DetailField("starts", format_date(cycle.starts_at)),
                    DetailField("ends", format_date(cycle.ends_at)),
                    DetailField("progress", f"{percent}% ({completed}/{total})"),
                ],
            )
            return CommandOutput(data=payload, views=[detail])

        starts = format_date(cycle.starts_at) if cycle.starts_at else "?"
        ends = format_date(cycle.ends_at) if cycle.ends_at else "?"
        views: list[Renderable] = [
            DetailData(
                title=f"{cycle.display_name} (#{cycle.number})",
                fields=[
                    DetailField("Period", f"{starts} → {ends}"),
                    DetailField("Progress", f"{percent}% ({completed}/{total} issues)"),
                ],
            )
        ]
        if issues:
            lines = [
                f"  {i.identifier}  {i.state.name if i.state else '-'}  "
                f"{i.assignee.name if i.assignee else '-'}  {i.title}    "
                f"{relative_time(i.updated_at)}"
                for i in issues
            ]
            views.append(TextBlock("\nIssues:\n" + "\n".join(lines)))
        return CommandOutput(data=payload, views=views)

    run_command(ctx, command="cycle view", fn=fn, require_team=True)
