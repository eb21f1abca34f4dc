from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from linear_cli.client import LinearClient
from linear_cli.models.entities import Project
from linear_cli.models.pagination import drain

from ..click_compat import RichCommand, click
from ..context import CLIContext, CommandContext
from ..decorators import confirm_destructive, yes_option
from ..errors import CLIError
from ..groups import LinearGroup
from ..options import output_options, team_option
from ..render import DetailData, DetailField, Message, Renderable, TableData, TextBlock
from ..resolve import (
    check_date,
    read_stdin,
    resolve_issue,
    resolve_project_entity,
    resolve_team_id,
    resolve_user_entity,
)
from ..results import MutationAction, build_mutation_result
from ..runner import CommandOutput, mutation_output, run_command
from ..time_utils import date_with_age, relative_time

CLOSED_PROJECT_STATES = frozenset({"completed", "canceled"})
PROJECT_SORTS: tuple[str, ...] = ("name", "created", "updated", "target-date", "progress")
ISSUE_PREVIEW_LIMIT = 10

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


@click.group(name="project", cls=LinearGroup)
def project_group() -> None:
    """Project commands."""


def progress_percent(project: Project) -> int:
    return round((project.progress or 0.0) * 100)


def filter_projects(
    projects: list[Project],
    *,
    states: tuple[str, ...] = (),
    include_completed: bool = False,
    lead: str | None = None,
) -> list[Project]:
    if states:
        wanted = {s.lower() for s in states}
        items = [p for p in projects if (p.state or "").lower() in wanted]
    elif include_completed:
        items = list(projects)
    else:
        items = [p for p in projects if (p.state or "").lower() not in CLOSED_PROJECT_STATES]
    if lead:
        needle = lead.lower()
        items = [p for p in items if p.lead is not None and needle in p.lead.name.lower()]
    return items


def sort_projects(projects: list[Project], sort: str) -> list[Project]:
    """Order projects; dates sort newest first and missing target dates sort last."""
    if sort == "created":
        return sorted(projects, key=lambda p: p.created_at or _EPOCH, reverse=True)
    if sort == "updated":
        return sorted(projects, key=lambda p: p.updated_at or _EPOCH, reverse=True)
    if sort == "target-date":
        return sorted(projects, key=lambda p: (p.target_date is None, p.target_date or ""))
    if sort == "progress":
        return sorted(projects, key=lambda p: p.progress or 0.0, reverse=True)
    return sorted(projects, key=lambda p: p.name.casefold())


@project_group.command(name="list", cls=RichCommand)
@click.option(
    "-s",
    "--state",
    "states",
    multiple=True,
    help="Filter: planned, started, paused, completed, canceled (repeatable).",
)
@click.option("--include-completed", is_flag=True, help="Include completed/canceled projects.")
@click.option("--lead", type=str, default=None, help="Filter by lead name (substring match).")
@click.option(
    "--sort",
    type=click.Choice(PROJECT_SORTS),
    default="name",
    show_default=True,
)
@output_options
@click.pass_obj
def project_list(
    ctx: CLIContext,
    *,
    states: tuple[str, ...],
    include_completed: bool,
    lead: str | None,
    sort: str,
) -> None:
    """
    List projects.

    Completed and canceled projects are hidden unless `--state` or
    `--include-completed` is given.
    """

    async def fn(cmd: CommandContext) -> CommandOutput:
        projects = await drain(await cmd.client.projects())
        items = sort_projects(
            filter_projects(projects, states=states, include_completed=include_completed, lead=lead),
            sort,
        )
        payload = [
            {
                "name": p.name,
                "state": p.state or "-",
                "progress": f"{progress_percent(p)}%",
                "lead": p.lead.name if p.lead else "-",
                "targetDate": p.target_date or "-",
                "url": p.url,
            }
            for p in items
        ]
        if not payload:
            return CommandOutput(data=payload, views=[Message("No projects found")])
        rows = [
            [r["name"], r["state"], r["progress"], r["lead"], r["targetDate"]] for r in payload
        ]
        return CommandOutput(
            data=payload,
            views=[TableData(headers=["Name", "State", "Progress", "Lead", "Target"], rows=rows)],
        )

    run_command(ctx, command="project list", fn=fn)


@project_group.command(name="view", cls=RichCommand)
@click.argument("name")
@output_options
@click.pass_obj
def project_view(ctx: CLIContext, name: str) -> None:
    """View project details and its most recent issues."""

    async def fn(cmd: CommandContext) -> CommandOutput:
        project = await resolve_project_entity(cmd.client, name)
        connection = await cmd.client.issues(
            filter={"project": {"id": {"eq": project.id}}},
            first=ISSUE_PREVIEW_LIMIT + 1,
        )
        has_more = len(connection.nodes) > ISSUE_PREVIEW_LIMIT or connection.has_next_page
        preview = connection.nodes[:ISSUE_PREVIEW_LIMIT]

        total = len(connection.nodes)
        percent = progress_percent(project)
        completed = round((project.progress or 0.0) * (total or 1))
        payload: dict[str, Any] = {
            "name": project.name,
            "description": project.description,
            "state": project.state or "-",
            "progressPercent": percent,
            "progressSummary": f"{percent}% ({completed}/{total})",
            "lead": project.lead.name if project.lead else None,
            "targetDate": project.target_date,
            "teams": [t.key for t in project.teams],
            "url": project.url,
            "createdAt": project.created_at,
            "issues": [
                {
                    "identifier": i.identifier,
                    "state": i.state.name if i.state else "-",
                    "assignee": i.assignee.name if i.assignee else "-",
                    "title": i.title,
                    "updatedAt": i.updated_at,
                }
                for i in preview
            ],
            "issuePreviewCount": len(preview),
            "issuePreviewLimit": ISSUE_PREVIEW_LIMIT,
            "issuePreviewHasMore": has_more,
            "issueTotalCount": total,
        }
        teams = ", ".join(payload["teams"]) or "-"

        if cmd.format == "compact":
            more = "+" if has_more else ""
            detail = DetailData(
                title=project.name,
                fields=[
                    DetailField("name", project.name),
                    DetailField("description", project.description or "-"),
                    DetailField("state", payload["state"]),
                    DetailField("progress", payload["progressSummary"]),
                    DetailField("lead", payload["lead"] or "-"),
                    DetailField("target", project.target_date or "-"),
                    DetailField("teams", teams),
                    DetailField("issue_preview", f"{len(preview)}/{total}{more}"),
                    DetailField("url", project.url or "-"),
                ],
            )
            return CommandOutput(data=payload, views=[detail])

        views: list[Renderable] = [
            DetailData(
                title=project.name,
                fields=[
                    DetailField("Description", project.description or "-"),
                    DetailField("State", payload["state"]),
                    DetailField("Progress", f"{payload['progressSummary']} issues"),
                    DetailField("Lead", payload["lead"] or "-"),
                    DetailField("Target", project.target_date or "-"),
                    DetailField("Teams", teams),
                    DetailField("Created", date_with_age(project.created_at)),
                    DetailField("URL", project.url or "-"),
                ],
            )
        ]
        if preview:
            lines = [
                f"  {i.identifier}  {i.state.name if i.state else '-'}  "
                f"{i.assignee.name if i.assignee else '-'}  {i.title}    "
                f"{relative_time(i.updated_at)}"
                for i in preview
            ]
            if has_more:
                lines.append("  ...and more")
            views.append(TextBlock("\nRecent Issues:\n" + "\n".join(lines)))
        return CommandOutput(data=payload, views=views)

    run_command(ctx, command="project view", fn=fn)


@dataclass(frozen=True, slots=True)
class ProjectUpdateParams:
    name: str | None = None
    description: str | None = None
    lead: str | None = None  # "" unsets
    target_date: str | None = None
    start_date: str | None = None
    color: str | None = None

    def __post_init__(self) -> None:
        check_date(self.target_date, "--target-date")
        check_date(self.start_date, "--start-date")


@project_group.command(name="create", cls=RichCommand)
@click.option("--name", required=True, help="Project name.")
@click.option("-d", "--description", type=str, default=None, help="Description (or pipe via stdin).")
@click.option("--lead", type=str, default=None, help="Project lead.")
@click.option("--target-date", type=str, default=None, help="Target date (YYYY-MM-DD).")
@team_option
@output_options
@click.pass_obj
def project_create(
    ctx: CLIContext,
    *,
    name: str,
    description: str | None,
    lead: str | None,
    target_date: str | None,
) -> None:
    """
    Create a project, attached to `--team` when given.

    Example: `linear project create --name 'Q1 Roadmap' --target-date 2026-03-31`
    """
    check_date(target_date, "--target-date")
    text = description if description is not None else read_stdin()

    async def fn(cmd: CommandContext) -> CommandOutput:
        async def team_ids() -> list[str]:
            return [await resolve_team_id(cmd.client, cmd.team_key)] if cmd.team_key else []

        async def lead_id() -> str | None:
            return (await resolve_user_entity(cmd.client, lead)).id if lead else None

        teams, lead_user_id = await asyncio.gather(team_ids(), lead_id())
        data: dict[str, Any] = {"name": name, "teamIds": teams}
        if text:
            data["description"] = text
        if target_date:
            data["targetDate"] = target_date
        if lead_user_id:
            data["leadId"] = lead_user_id

        project = await cmd.client.create_project(data)
        result = build_mutation_result(
            entity="project",
            action="create",
            id=project.id,
            status="success",
            url=project.url,
            metadata={"name": project.name},
        )
        return mutation_output(
            result, hints=[f"  add issues: linear project add-issue '{project.name}' <issue-id>"]
        )

    run_command(ctx, command="project create", fn=fn)


@project_group.command(name="update", cls=RichCommand)
@click.argument("project_name", metavar="NAME")
@click.option("--name", type=str, default=None, help="New name.")
@click.option("-d", "--description", type=str, default=None, help="New description.")
@click.option("--lead", type=str, default=None, help="New lead ('' to unassign).")
@click.option("--target-date", type=str, default=None, help="Target date (YYYY-MM-DD).")
@click.option("--start-date", type=str, default=None, help="Start date (YYYY-MM-DD).")
@click.option("--color", type=str, default=None, help="Project color hex.")
@output_options
@click.pass_obj
def project_update(
    ctx: CLIContext,
    project_name: str,
    *,
    name: str | None,
    description: str | None,
    lead: str | None,
    target_date: str | None,
    start_date: str | None,
    color: str | None,
) -> None:
    """Update a project's fields."""
    params = ProjectUpdateParams(
        name=name,
        description=description if description is not None else read_stdin(),
        lead=lead,
        target_date=target_date,
        start_date=start_date,
        color=color,
    )

    async def fn(cmd: CommandContext) -> CommandOutput:
        project = await resolve_project_entity(cmd.client, project_name)
        data: dict[str, Any] = {}
        if params.name:
            data["name"] = params.name
        if params.description is not None:
            data["description"] = params.description
        if params.lead is not None:
            data["leadId"] = (
                (await resolve_user_entity(cmd.client, params.lead)).id if params.lead else None
            )
        if params.target_date:
            data["targetDate"] = params.target_date
        if params.start_date:
            data["startDate"] = params.start_date
        if params.color:
            data["color"] = params.color

        updated = await cmd.client.update_project(project.id, data)
        result = build_mutation_result(
            entity="project",
            action="update",
            id=updated.id,
            status="success",
            url=updated.url,
            metadata={
                "name": updated.name,
                "state": updated.state or "-",
                "progress": f"{progress_percent(updated)}%",
                "lead": updated.lead.name if updated.lead else None,
                "targetDate": updated.target_date,
            },
        )
        return mutation_output(result)

    run_command(ctx, command="project update", fn=fn)


@project_group.command(name="delete", cls=RichCommand)
@click.argument("name")
@yes_option
@output_options
@click.pass_obj
def project_delete(ctx: CLIContext, name: str, *, yes: bool) -> None:
    """Delete a project."""

    async def fn(cmd: CommandContext) -> CommandOutput:
        project = await resolve_project_entity(cmd.client, name)
        confirmed = confirm_destructive(
            f'Delete project "{project.name}"?',
            yes=yes,
            no_input=cmd.no_input,
            retry=f"linear project delete '{name}'",
        )
        if not confirmed:
            return CommandOutput(data={"ok": False, "canceled": True}, views=[Message("Canceled")])

        await cmd.client.delete_project(project.id)
        result = build_mutation_result(
            entity="project",
            action="delete",
            id=project.id,
            status="success",
            url=project.url,
            metadata={"name": project.name},
        )
        return mutation_output(result)

    run_command(ctx, command="project delete", fn=fn)


@project_group.command(name="add-issue", cls=RichCommand)
@click.argument("project_name", metavar="PROJECT")
@click.argument("issue_id", metavar="ISSUE")
@team_option
@output_options
@click.pass_obj
def project_add_issue(ctx: CLIContext, project_name: str, issue_id: str) -> None:
    """Move an issue into a project."""

    async def fn(cmd: CommandContext) -> CommandOutput:
        project, issue = await asyncio.gather(
            resolve_project_entity(cmd.client, project_name),
            resolve_issue(cmd.client, issue_id, cmd.team_key),
        )
        await cmd.client.update_issue(issue.id, {"projectId": project.id})
        result = build_mutation_result(
            entity="issue",
            action="moveToProject",
            id=issue.identifier,
            status="success",
            url=issue.url,
            metadata={"project": project.name},
        )
        return mutation_output(result)

    run_command(ctx, command="project add-issue", fn=fn)


# =============================================================================
# status transitions
# =============================================================================

HEALTH_MAP: dict[str, str] = {"ontrack": "onTrack", "atrisk": "atRisk", "offtrack": "offTrack"}


async def resolve_project_status_id(client: LinearClient, status_type: str) -> str:
    """Find the workspace's project status of a given type (started, paused, ...)."""
    statuses = await drain(await client.project_statuses())
    for status in statuses:
        if status.type.lower() == status_type:
            return status.id
    raise CLIError(
        f'no project status of type "{status_type}" found',
        hint="check project status configuration in Linear settings",
    )


def _status_command(
    command_name: str, status_type: str, action: MutationAction, summary: str
) -> None:
    @project_group.command(name=command_name, cls=RichCommand, help=summary)
    @click.argument("name")
    @output_options
    @click.pass_obj
    def _command(ctx: CLIContext, name: str) -> None:
        async def fn(cmd: CommandContext) -> CommandOutput:
            project, status_id = await asyncio.gather(
                resolve_project_entity(cmd.client, name),
                resolve_project_status_id(cmd.client, status_type),
            )
            await cmd.client.update_project(project.id, {"statusId": status_id})
            result = build_mutation_result(
                entity="project",
                action=action,
                id=project.id,
                status="success",
                url=project.url,
                metadata={"name": project.name},
            )
            hints: list[str] = []
            if action == "start":
                hints.append(f"  post update: linear project post '{name}' --body '<text>'")
            return mutation_output(result, hints=hints)

        run_command(ctx, command=f"project {command_name}", fn=fn)


_status_command("start", "started", "start", "Start a project (set its status to started).")
_status_command("pause", "paused", "pause", "Pause a project.")
_status_command("complete", "completed", "complete", "Mark a project completed.")
_status_command("cancel", "canceled", "cancel", "Cancel a project.")


@project_group.command(name="post", cls=RichCommand)
@click.argument("name")
@click.option("--body", type=str, default=None, help="Update body in markdown (or pipe via stdin).")
@click.option("--health", type=str, default=None, help="Health: onTrack, atRisk, offTrack.")
@output_options
@click.pass_obj
def project_post(ctx: CLIContext, name: str, *, body: str | None, health: str | None) -> None:
    """
    Post a project status update.

    Example: `linear project post 'My Project' --body 'On track' --health onTrack`
    """
    health_value: str | None = None
    if health:
        health_value = HEALTH_MAP.get(health.lower())
        if health_value is None:
            raise CLIError(
                f'invalid health "{health}"',
                error_type="validation_error",
                hint="onTrack, atRisk, offTrack",
            )
    text = body if body is not None else read_stdin()

    async def fn(cmd: CommandContext) -> CommandOutput:
        project = await resolve_project_entity(cmd.client, name)
        data: dict[str, Any] = {"projectId": project.id}
        if text:
            data["body"] = text
        if health_value:
            data["health"] = health_value
        update = await cmd.client.create_project_update(data)
        result = build_mutation_result(
            entity="projectUpdate",
            action="create",
            id=update.id,
            status="success",
            url=update.url,
            metadata={
                "project": project.name,
                "health": update.health,
                "createdAt": update.created_at.isoformat() if update.created_at else None,
            },
        )
        return mutation_output(result)

    run_command(ctx, command="project post", fn=fn)


def _truncate(text: str, width: int = 50) -> str:
    return text if len(text) <= width else text[: width - 3] + "..."


@project_group.command(name="labels", cls=RichCommand)
@click.argument("name")
@output_options
@click.pass_obj
def project_labels(ctx: CLIContext, name: str) -> None:
    """List a project's labels."""

    async def fn(cmd: CommandContext) -> CommandOutput:
        project = await resolve_project_entity(cmd.client, name)
        labels = await drain(await cmd.client.project_labels(project.id))
        payload = [
            {
                "name": label.name,
                "color": label.color or "-",
                "description": label.description or "-",
                "group": "yes" if label.is_group else "no",
            }
            for label in labels
        ]
        if not payload:
            return CommandOutput(data=payload, views=[Message("No labels found")])
        table = cmd.format == "table"
        rows = [
            [
                r["name"],
                r["color"],
                r["group"],
                _truncate(r["description"]) if table else r["description"],
            ]
            for r in payload
        ]
        return CommandOutput(
            data=payload,
            views=[TableData(headers=["Name", "Color", "Group", "Description"], rows=rows)],
        )

    run_command(ctx, command="project labels", fn=fn)


# =============================================================================
# milestones
# =============================================================================


@project_group.group(name="milestone", cls=LinearGroup)
def milestone_group() -> None:
    """Manage project milestones."""


@milestone_group.command(name="list", cls=RichCommand)
@click.argument("name")
@output_options
@click.pass_obj
def milestone_list(ctx: CLIContext, name: str) -> None:
    """List a project's milestones."""

    async def fn(cmd: CommandContext) -> CommandOutput:
        project = await resolve_project_entity(cmd.client, name)
        milestones = await drain(await cmd.client.project_milestones(project.id))
        payload = [
            {
                "name": m.name,
                "status": m.status or "-",
                "targetDate": m.target_date or "-",
                "progress": f"{round((m.progress or 0.0) * 100)}%",
                "description": m.description or "-",
            }
            for m in milestones
        ]
        if not payload:
            return CommandOutput(data=payload, views=[Message("No milestones found")])
        table = cmd.format == "table"
        rows = [
            [
                r["name"],
                r["status"],
                r["targetDate"],
                r["progress"],
                _truncate(r["description"]) if table else r["description"],
            ]
            for r in payload
        ]
        return CommandOutput(
            data=payload,
            views=[
                TableData(headers=["Name", "Status", "Target", "Progress", "Description"], rows=rows)
            ],
        )

    run_command(ctx, command="project milestone list", fn=fn)


@milestone_group.command(name="create", cls=RichCommand)
@click.argument("milestone_name", metavar="NAME")
@click.option("--project", "project_name", required=True, help="Project name.")
@click.option("-d", "--description", type=str, default=None, help="Description.")
@click.option("--target-date", type=str, default=None, help="Target date (YYYY-MM-DD).")
@click.option("--date", "date_alias", type=str, default=None, hidden=True)
@output_options
@click.pass_obj
def milestone_create(
    ctx: CLIContext,
    milestone_name: str,
    *,
    project_name: str,
    description: str | None,
    target_date: str | None,
    date_alias: str | None,
) -> None:
    """
    Create a milestone on a project.

    Example: `linear project milestone create 'Beta launch' --project 'My Project' --target-date 2026-03-15`
    """
    target = target_date or date_alias
    check_date(target, "--target-date")

    async def fn(cmd: CommandContext) -> CommandOutput:
        project = await resolve_project_entity(cmd.client, project_name)
        data: dict[str, Any] = {"projectId": project.id, "name": milestone_name}
        if description:
            data["description"] = description
        if target:
            data["targetDate"] = target
        milestone = await cmd.client.create_project_milestone(data)
        result = build_mutation_result(
            entity="projectMilestone",
            action="create",
            id=milestone.id,
            status="success",
            metadata={
                "name": milestone.name,
                "targetDate": milestone.target_date,
                "description": milestone.description,
            },
        )
        return mutation_output(result)

    run_command(ctx, command="project milestone create", fn=fn)
