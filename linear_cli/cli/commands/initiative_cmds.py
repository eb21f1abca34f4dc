from __future__ import annotations

from typing import Any

from linear_cli.models.entities import Initiative
from linear_cli.models.pagination import drain

from ..click_compat import RichCommand, click
from ..context import CLIContext, CommandContext
from ..errors import CLIError
from ..groups import LinearGroup
from ..options import output_options
from ..render import DetailData, DetailField, Message, Renderable, TableData, TextBlock
from ..resolve import check_date, read_stdin, resolve_initiative_entity, resolve_user_entity
from ..results import MutationAction, MutationResult, build_mutation_result
from ..runner import CommandOutput, mutation_output, run_command
from ..time_utils import compact_time, date_with_age, relative_time

INITIATIVE_STATUSES: dict[str, str] = {
    "planned": "Planned",
    "active": "Active",
    "completed": "Completed",
}


@click.group(name="initiative", cls=LinearGroup)
def initiative_group() -> None:
    """Initiative commands."""


def parse_initiative_status(value: str | None) -> str | None:
    if value is None:
        return None
    status = INITIATIVE_STATUSES.get(value.lower())
    if status is None:
        raise CLIError(
            f'invalid status "{value}"',
            error_type="validation_error",
            hint="planned, active, completed",
        )
    return status


def initiative_json(initiative: Initiative) -> dict[str, Any]:
    return {
        "id": initiative.id,
        "name": initiative.name,
        "description": initiative.description,
        "status": initiative.status,
        "owner": initiative.owner.name if initiative.owner else None,
        "creator": initiative.creator.name if initiative.creator else None,
        "targetDate": initiative.target_date,
        "health": initiative.health,
        "url": initiative.url,
        "createdAt": initiative.created_at,
        "updatedAt": initiative.updated_at,
        "projects": [p.name for p in initiative.projects],
    }


def _initiative_result(initiative: Initiative, action: MutationAction) -> MutationResult:
    return build_mutation_result(
        entity="initiative",
        action=action,
        id=initiative.id,
        status="success",
        url=initiative.url,
        metadata={
            "name": initiative.name,
            "status": initiative.status,
            "owner": initiative.owner.name if initiative.owner else None,
            "targetDate": initiative.target_date,
        },
    )


@initiative_group.command(name="list", cls=RichCommand)
@click.option("-s", "--status", type=str, default=None, help="Filter: planned, active, completed.")
@output_options
@click.pass_obj
def initiative_list(ctx: CLIContext, *, status: str | None) -> None:
    """List initiatives."""

    async def fn(cmd: CommandContext) -> CommandOutput:
        initiatives = await drain(await cmd.client.initiatives())
        if status:
            wanted = status.lower()
            initiatives = [i for i in initiatives if i.status.lower() == wanted]
        payload = [
            {
                "name": i.name,
                "status": i.status,
                "owner": i.owner.name if i.owner else "-",
                "targetDate": i.target_date or "-",
                "createdAt": i.created_at,
            }
            for i in initiatives
        ]
        if not payload:
            return CommandOutput(data=payload, views=[Message("No initiatives found")])
        when = relative_time if cmd.format == "table" else compact_time
        rows = [
            [r["name"], r["status"], r["owner"], r["targetDate"], when(r["createdAt"])]
            for r in payload
        ]
        return CommandOutput(
            data=payload,
            views=[TableData(headers=["Name", "Status", "Owner", "Target", "Created"], rows=rows)],
        )

    run_command(ctx, command="initiative list", fn=fn)


@initiative_group.command(name="view", cls=RichCommand)
@click.argument("name")
@output_options
@click.pass_obj
def initiative_view(ctx: CLIContext, name: str) -> None:
    """View initiative details."""

    async def fn(cmd: CommandContext) -> CommandOutput:
        initiative = await resolve_initiative_entity(cmd.client, name)
        payload = initiative_json(initiative)
        owner = payload["owner"] or "-"
        projects = ", ".join(payload["projects"]) or "-"

        if cmd.format == "compact":
            detail = DetailData(
                title=initiative.name,
                fields=[
                    DetailField("name", initiative.name),
                    DetailField("status", initiative.status),
                    DetailField("owner", owner),
                    DetailField("target", initiative.target_date or "-"),
                    DetailField("health", initiative.health or "-"),
                    DetailField("projects", projects),
                    DetailField("url", initiative.url or "-"),
                ],
            )
            return CommandOutput(data=payload, views=[detail])

        views: list[Renderable] = [
            DetailData(
                title=initiative.name,
                fields=[
                    DetailField("Status", initiative.status),
                    DetailField("Owner", owner),
                    DetailField("Creator", payload["creator"] or "-"),
                    DetailField("Target", initiative.target_date or "-"),
                    DetailField("Health", initiative.health or "-"),
                    DetailField("Projects", projects),
                    DetailField("Created", date_with_age(initiative.created_at)),
                    DetailField("URL", initiative.url or "-"),
                ],
            )
        ]
        if initiative.description:
            views.append(TextBlock("\n" + initiative.description))
        return CommandOutput(data=payload, views=views)

    run_command(ctx, command="initiative view", fn=fn)


@initiative_group.command(name="create", cls=RichCommand)
@click.option("--name", required=True, help="Initiative name.")
@click.option("-d", "--description", type=str, default=None, help="Description (or pipe via stdin).")
@click.option("--owner", type=str, default=None, help="Initiative owner.")
@click.option("-s", "--status", type=str, default=None, help="Status: planned, active, completed.")
@click.option("--target-date", type=str, default=None, help="Target date (YYYY-MM-DD).")
@output_options
@click.pass_obj
def initiative_create(
    ctx: CLIContext,
    *,
    name: str,
    description: str | None,
    owner: str | None,
    status: str | None,
    target_date: str | None,
) -> None:
    """
    Create an initiative.

    Example: `linear initiative create --name 'Q1 Goals' --status active`
    """
    status_value = parse_initiative_status(status)
    check_date(target_date, "--target-date")
    text = description if description is not None else read_stdin()

    async def fn(cmd: CommandContext) -> CommandOutput:
        data: dict[str, Any] = {"name": name}
        if text:
            data["description"] = text
        if target_date:
            data["targetDate"] = target_date
        if status_value:
            data["status"] = status_value
        if owner:
            data["ownerId"] = (await resolve_user_entity(cmd.client, owner)).id
        initiative = await cmd.client.create_initiative(data)
        return mutation_output(_initiative_result(initiative, "create"))

    run_command(ctx, command="initiative create", fn=fn)


@initiative_group.command(name="update", cls=RichCommand)
@click.argument("current_name", metavar="NAME")
@click.option("--name", type=str, default=None, help="New name.")
@click.option("-d", "--description", type=str, default=None, help="New description.")
@click.option("--owner", type=str, default=None, help="New owner.")
@click.option("-s", "--status", type=str, default=None, help="New status: planned, active, completed.")
@click.option("--target-date", type=str, default=None, help="New target date (YYYY-MM-DD).")
@output_options
@click.pass_obj
def initiative_update(
    ctx: CLIContext,
    current_name: str,
    *,
    name: str | None,
    description: str | None,
    owner: str | None,
    status: str | None,
    target_date: str | None,
) -> None:
    """Update an initiative's fields."""
    status_value = parse_initiative_status(status)
    check_date(target_date, "--target-date")
    if not any((name, description, owner, status_value, target_date)):
        raise CLIError(
            "nothing to update",
            error_type="validation_error",
            hint="--name, --description, --owner, --status, or --target-date",
        )

    async def fn(cmd: CommandContext) -> CommandOutput:
        initiative = await resolve_initiative_entity(cmd.client, current_name)
        data: dict[str, Any] = {}
        if name:
            data["name"] = name
        if description:
            data["description"] = description
        if target_date:
            data["targetDate"] = target_date
        if status_value:
            data["status"] = status_value
        if owner:
            data["ownerId"] = (await resolve_user_entity(cmd.client, owner)).id
        updated = await cmd.client.update_initiative(initiative.id, data)
        return mutation_output(_initiative_result(updated, "update"))

    run_command(ctx, command="initiative update", fn=fn)


def _transition(ctx: CLIContext, name: str, *, status: str, action: MutationAction) -> None:
    async def fn(cmd: CommandContext) -> CommandOutput:
        initiative = await resolve_initiative_entity(cmd.client, name)
        updated = await cmd.client.update_initiative(initiative.id, {"status": status})
        return mutation_output(_initiative_result(updated, action))

    run_command(ctx, command=f"initiative {action}", fn=fn)


@initiative_group.command(name="start", cls=RichCommand)
@click.argument("name")
@output_options
@click.pass_obj
def initiative_start(ctx: CLIContext, name: str) -> None:
    """Start an initiative (set its status to Active)."""
    _transition(ctx, name, status="Active", action="start")


@initiative_group.command(name="complete", cls=RichCommand)
@click.argument("name")
@output_options
@click.pass_obj
def initiative_complete(ctx: CLIContext, name: str) -> None:
    """Complete an initiative."""
    _transition(ctx, name, status="Completed", action="complete")
