from __future__ import annotations

from typing import Any

from linear_cli.exceptions import AuthenticationError
from linear_cli.models.entities import User

from ..click_compat import RichCommand, click
from ..context import CLIContext, CommandContext
from ..errors import CLIError
from ..groups import LinearGroup
from ..options import output_options
from ..render import Message, TableData
from ..runner import CommandOutput, run_command


@click.group(name="auth", cls=LinearGroup)
def auth_group() -> None:
    """Authentication commands."""


async def _fetch_viewer(cmd: CommandContext) -> User:
    try:
        return await cmd.client.viewer()
    except AuthenticationError as exc:
        raise CLIError(
            "invalid API key",
            error_type="auth_error",
            hint="check your API key at linear.app/settings/api",
        ) from exc


def _workspace(viewer: User) -> str:
    org = viewer.organization
    if org is None:
        return "unknown"
    return org.url_key or org.name


def _viewer_payload(viewer: User) -> dict[str, Any]:
    return {
        "name": viewer.name,
        "email": viewer.email or "",
        "admin": viewer.admin,
        "active": viewer.active,
        "workspace": _workspace(viewer),
    }


@auth_group.command(name="status", cls=RichCommand)
@output_options
@click.pass_obj
def auth_status(ctx: CLIContext) -> None:
    """Show which API key is in use and who it belongs to."""

    async def fn(cmd: CommandContext) -> CommandOutput:
        viewer = await _fetch_viewer(cmd)
        payload = {**_viewer_payload(viewer), "authenticated": True, "source": ctx.api_key_source}
        return CommandOutput(
            data=payload,
            views=[
                Message(f"Authenticated as {viewer.name} ({viewer.email or '-'})"),
                Message(f"Workspace: {payload['workspace']}"),
            ],
        )

    run_command(ctx, command="auth status", fn=fn)


@auth_group.command(name="whoami", cls=RichCommand)
@output_options
@click.pass_obj
def auth_whoami(ctx: CLIContext) -> None:
    """Show the current user."""

    async def fn(cmd: CommandContext) -> CommandOutput:
        payload = _viewer_payload(await _fetch_viewer(cmd))
        view = TableData(
            headers=["Name", "Email", "Admin", "Active"],
            rows=[
                [
                    payload["name"],
                    payload["email"] or "-",
                    "yes" if payload["admin"] else "no",
                    "yes" if payload["active"] else "no",
                ]
            ],
        )
        return CommandOutput(data=payload, views=[view])

    run_command(ctx, command="auth whoami", fn=fn)
