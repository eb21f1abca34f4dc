from __future__ import annotations

from linear_cli.models.pagination import drain

from ..aggregates import (
    STATUS_BUCKETS,
    build_status_matrix,
    fetch_team_overview_issues,
    overview_payload,
)
from ..click_compat import RichCommand, click
from ..context import CLIContext, CommandContext
from ..groups import LinearGroup
from ..options import output_options, team_option
from ..progress import ProgressManager
from ..render import DetailData, DetailField, TableData, TextBlock
from ..resolve import resolve_team
from ..runner import CommandOutput, run_command
from ..time_utils import format_date


@click.group(name="team", cls=LinearGroup)
def team_group() -> None:
    """Team commands."""


@team_group.command(name="list", cls=RichCommand)
@output_options
@click.pass_obj
def team_list(ctx: CLIContext) -> None:
    """List teams."""

    async def fn(cmd: CommandContext) -> CommandOutput:
        teams = await drain(await cmd.client.teams())
        payload = [
            {
                "key": t.key,
                "name": t.name,
                "issueCount": t.issue_count,
                "cyclesEnabled": t.cycles_enabled,
            }
            for t in teams
        ]
        view = TableData(
            headers=["Key", "Name", "Issues", "Cycles"],
            rows=[
                [t.key, t.name, str(t.issue_count), "Yes" if t.cycles_enabled else "No"]
                for t in teams
            ],
        )
        return CommandOutput(data=payload, views=[view])

    run_command(ctx, command="team list", fn=fn)


@team_group.command(name="view", cls=RichCommand)
@click.argument("key")
@output_options
@click.pass_obj
def team_view(ctx: CLIContext, key: str) -> None:
    """View team details."""

    async def fn(cmd: CommandContext) -> CommandOutput:
        team = await resolve_team(cmd.client, key)
        members = await drain(await cmd.client.team_members(team.id))
        payload = {
            "key": team.key,
            "name": team.name,
            "description": team.description or "-",
            "issues": team.issue_count,
            "cycles": "Enabled" if team.cycles_enabled else "Disabled",
            "members": len(members),
            "createdAt": format_date(team.created_at),
        }
        view = DetailData(
            title=f"{team.name} ({team.key})",
            fields=[
                DetailField("Description", payload["description"]),
                DetailField("Issues", str(payload["issues"])),
                DetailField("Cycles", payload["cycles"]),
                DetailField("Members", str(payload["members"])),
                DetailField("Created", payload["createdAt"]),
            ],
        )
        return CommandOutput(data=payload, views=[view])

    run_command(ctx, command="team view", fn=fn)


@team_group.command(name="members", cls=RichCommand)
@click.argument("key")
@output_options
@click.pass_obj
def team_members(ctx: CLIContext, key: str) -> None:
    """List team members."""

    async def fn(cmd: CommandContext) -> CommandOutput:
        team = await resolve_team(cmd.client, key)
        members = await drain(await cmd.client.team_members(team.id))
        payload = [
            {"name": m.name, "email": m.email, "admin": m.admin, "active": m.active}
            for m in members
        ]
        view = TableData(
            headers=["Name", "Email", "Admin", "Active"],
            rows=[
                [
                    m.name,
                    m.email or "-",
                    "yes" if m.admin else "no",
                    "yes" if m.active else "no",
                ]
                for m in members
            ],
        )
        return CommandOutput(data=payload, views=[view])

    run_command(ctx, command="team members", fn=fn)


@team_group.command(name="overview", cls=RichCommand)
@click.argument("key", required=False)
@team_option
@output_options
@click.pass_obj
def team_overview(ctx: CLIContext, key: str | None) -> None:
    """
    Team status dashboard: issue counts per assignee and status.

    KEY takes precedence over `--team` and LINEAR_TEAM. Every issue of the team is
    fetched, page by page, before counting.
    """

    async def fn(cmd: CommandContext) -> CommandOutput:
        team_key = key or ctx.require_team()
        team = await resolve_team(cmd.client, team_key)
        with ProgressManager("Fetching issues...", enabled=cmd.show_progress):
            issues = await fetch_team_overview_issues(cmd.client, team.key)

        matrix = build_status_matrix(issues)
        payload = overview_payload(team.key, matrix)
        table = TableData(
            headers=["Assignee", *STATUS_BUCKETS],
            rows=[
                [name, *(str(matrix.rows[name][bucket]) for bucket in STATUS_BUCKETS)]
                for name in matrix.assignees
            ],
        )
        return CommandOutput(
            data=payload,
            views=[
                TextBlock(f"{team.name} ({team.key}) — Overview\n"),
                table,
                TextBlock(
                    f"\nTotal: {payload['total']} issues | {payload['inProgress']} in progress"
                    f" | {payload['done']} done"
                ),
            ],
        )

    run_command(ctx, command="team overview", fn=fn)


@team_group.command(name="states", cls=RichCommand)
@click.argument("key")
@output_options
@click.pass_obj
def team_states(ctx: CLIContext, key: str) -> None:
    """List workflow states for a team."""

    async def fn(cmd: CommandContext) -> CommandOutput:
        team = await resolve_team(cmd.client, key)
        states = await drain(await cmd.client.team_states(team.id))
        payload = [
            {"name": s.name, "type": s.type, "color": s.color, "position": s.position}
            for s in states
        ]
        view = TableData(
            headers=["Name", "Type", "Color", "Position"],
            rows=[
                [s.name, s.type, s.color or "-", "-" if s.position is None else f"{s.position:g}"]
                for s in states
            ],
        )
        return CommandOutput(data=payload, views=[view])

    run_command(ctx, command="team states", fn=fn)


@team_group.command(name="labels", cls=RichCommand)
@click.argument("key")
@output_options
@click.pass_obj
def team_labels(ctx: CLIContext, key: str) -> None:
    """List labels for a team."""

    async def fn(cmd: CommandContext) -> CommandOutput:
        team = await resolve_team(cmd.client, key)
        labels = await drain(await cmd.client.team_labels(team.id))
        payload = [
            {"name": label.name, "color": label.color, "description": label.description or ""}
            for label in labels
        ]
        view = TableData(
            headers=["Name", "Color", "Description"],
            rows=[[label.name, label.color or "-", label.description or "-"] for label in labels],
        )
        return CommandOutput(data=payload, views=[view])

    run_command(ctx, command="team labels", fn=fn)
