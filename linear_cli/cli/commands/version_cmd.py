from __future__ import annotations

import platform

import click
import rich_click

import linear_cli

from ..context import CLIContext
from ..options import output_options
from ..render import DetailData, DetailField
from ..runner import CommandOutput, run_local_command


@click.command(name="version", cls=rich_click.RichCommand)
@output_options
@click.pass_obj
def version_cmd(ctx: CLIContext) -> None:
    """Show the CLI version."""

    def fn() -> CommandOutput:
        data = {
            "version": linear_cli.__version__,
            "pythonVersion": platform.python_version(),
            "platform": platform.platform(),
        }
        view = DetailData(
            title=f"linear {data['version']}",
            fields=[
                DetailField("Version", data["version"]),
                DetailField("Python", data["pythonVersion"]),
                DetailField("Platform", data["platform"]),
            ],
        )
        return CommandOutput(data=data, views=[view])

    run_local_command(ctx, command="version", fn=fn)
