from __future__ import annotations

from typing import Any

from linear_cli.models.entities import User
from linear_cli.models.pagination import drain

from ..click_compat import RichCommand, click
from ..context import CLIContext, CommandContext
from ..groups import LinearGroup
from ..options import output_options
from ..render import DetailData, DetailField, TableData
from ..resolve import resolve_user_entity
from ..runner import CommandOutput, run_command
from ..time_utils import format_date


@click.group(name="user", cls=LinearGroup)
def user_group() -> None:
    """User commands."""


def _yes_no(value: bool) -> str:
    return "yes" if value else "no"


def user_detail(user: User) -> tuple[dict[str, Any], DetailData]:
    payload = {
        "name": user.name,
        "displayName": user.display_name,
        "email": user.email or "-",
        "admin": user.admin,
        "active": user.active,
        "createdAt": format_date(user.created_at),
    }
    view = DetailData(
        title=user.name,
        fields=[
            DetailField("Display Name", user.display_name or "-"),
            DetailField("Email", payload["email"]),
            DetailField("Admin", _yes_no(user.admin)),
            DetailField("Active", _yes_no(user.active)),
            DetailField("Created", payload["createdAt"]),
        ],
    )
    return payload, view


@user_group.command(name="list", cls=RichCommand)
@output_options
@click.pass_obj
def user_list(ctx: CLIContext) -> None:
    """List workspace users."""

    async def fn(cmd: CommandContext) -> CommandOutput:
        users = await drain(await cmd.client.users())
        payload = [
            {
                "name": u.name,
                "displayName": u.display_name,
                "email": u.email,
                "admin": u.admin,
                "active": u.active,
            }
            for u in users
        ]
        view = TableData(
            headers=["Name", "Email", "Admin", "Active"],
            rows=[[u.name, u.email or "-", _yes_no(u.admin), _yes_no(u.active)] for u in users],
        )
        return CommandOutput(data=payload, views=[view])

    run_command(ctx, command="user list", fn=fn)


@user_group.command(name="view", cls=RichCommand)
@click.argument("name")
@output_options
@click.pass_obj
def user_view(ctx: CLIContext, name: str) -> None:
    """
    View a user by name, email, or display name.

    Use `me` for the authenticated user.
    """

    async def fn(cmd: CommandContext) -> CommandOutput:
        user = await resolve_user_entity(cmd.client, name)
        payload, view = user_detail(user)
        return CommandOutput(data=payload, views=[view])

    run_command(ctx, command="user view", fn=fn)
