from __future__ import annotations

from pathlib import Path
from typing import Literal

import linear_cli

from .click_compat import click
from .context import OUTPUT_FORMATS, CLIContext, default_output_format
from .groups import LinearGroup
from .logging import configure_logging, restore_logging
from .paths import get_paths


@click.group(
    name="linear",
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
    cls=LinearGroup,
)
@click.option(
    "-f",
    "--format",
    "output_format",
    type=click.Choice(OUTPUT_FORMATS),
    default=None,
    help="Output format (default: table on a terminal, compact otherwise).",
)
@click.option("--json", "json_flag", is_flag=True, help="Alias for --format json.")
@click.option("-t", "--team", type=str, default=None, help="Team key (or set LINEAR_TEAM).")
@click.option("-q", "--quiet", is_flag=True, help="Suppress non-essential stderr output.")
@click.option("-v", "verbose", count=True, help="Increase verbosity (-v, -vv).")
@click.option(
    "--progress/--no-progress",
    default=None,
    help="Force enable/disable progress spinners (stderr).",
)
@click.option("--workspace", type=str, default=None, help="Workspace entry in credentials.toml.")
@click.option("--dotenv/--no-dotenv", default=False, help="Opt-in .env loading.")
@click.option(
    "--env-file",
    type=click.Path(dir_okay=False),
    default=".env",
)
@click.option("--timeout", type=float, default=None, help="Per-request timeout in seconds.")
@click.option("--api-url", type=str, default=None, help="Override the GraphQL endpoint.")
@click.option(
    "--trace",
    is_flag=True,
    help="Trace request/response events to stderr.",
)
@click.option("--log-file", type=click.Path(dir_okay=False), default=None)
@click.option("--no-log-file", is_flag=True, help="Disable file logging explicitly.")
@click.option("--no-input", is_flag=True, help="Never prompt; skip confirmations.")
@click.version_option(version=linear_cli.__version__, prog_name="linear")
@click.pass_context
def cli(
    click_ctx: click.Context,
    *,
    output_format: str | None,
    json_flag: bool,
    team: str | None,
    quiet: bool,
    verbose: int,
    progress: bool | None,
    workspace: str | None,
    dotenv: bool,
    env_file: str,
    timeout: float | None,
    api_url: str | None,
    trace: bool,
    log_file: str | None,
    no_log_file: bool,
    no_input: bool,
) -> None:
    """Linear from the terminal: issues, projects, teams and users."""
    if click_ctx.invoked_subcommand is None:
        # No args: show help; no network calls.
        click.echo(click_ctx.get_help())
        raise click.exceptions.Exit(0)

    out = "json" if json_flag else (output_format or default_output_format())
    progress_mode: Literal["auto", "always", "never"] = "auto"
    if progress is True:
        progress_mode = "always"
    if progress is False:
        progress_mode = "never"
    if trace and progress is None:
        progress_mode = "never"

    paths = get_paths()
    effective_log_file = Path(log_file) if log_file else paths.log_file
    enable_log_file = not no_log_file

    click_ctx.obj = CLIContext(
        output=out,  # type: ignore[arg-type]
        team=team,
        quiet=quiet,
        verbosity=verbose,
        progress=progress_mode,
        workspace=workspace,
        dotenv=dotenv,
        env_file=Path(env_file),
        timeout=timeout,
        api_url=api_url,
        trace=trace,
        log_file=effective_log_file,
        enable_log_file=enable_log_file,
        no_input=no_input,
        _paths=paths,
    )

    previous_logging = configure_logging(
        verbosity=verbose,
        log_file=effective_log_file,
        enable_file=enable_log_file,
        api_key_for_redaction=None,
    )
    click_ctx.call_on_close(lambda: restore_logging(previous_logging))


# Register commands
from .commands.auth_cmds import auth_group as _auth_group  # noqa: E402
from .commands.cycle_cmds import cycle_group as _cycle_group  # noqa: E402
from .commands.document_cmds import document_group as _document_group  # noqa: E402
from .commands.inbox_cmds import inbox_group as _inbox_group  # noqa: E402
from .commands.initiative_cmds import initiative_group as _initiative_group  # noqa: E402
from .commands.issue_cmds import issue_group as _issue_group  # noqa: E402
from .commands.project_cmds import project_group as _project_group  # noqa: E402
from .commands.team_cmds import team_group as _team_group  # noqa: E402
from .commands.user_cmds import user_group as _user_group  # noqa: E402
from .commands.version_cmd import version_cmd as _version_cmd  # noqa: E402

cli.add_command(_auth_group)
cli.add_command(_team_group)
cli.add_command(_user_group)
cli.add_command(_issue_group)
cli.add_command(_project_group)
cli.add_command(_initiative_group)
cli.add_command(_cycle_group)
cli.add_command(_document_group)
cli.add_command(_inbox_group)
cli.add_command(_version_cmd)


def main() -> None:
    cli(prog_name="linear")
