from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from .click_compat import RichGroup, click
from .context import normalize_exception
from .errors import CLIError
from .suggest import build_index, suggest_command


def emit_error(error: CLIError) -> None:
    click.echo(f"error: {error.message}", err=True)
    if error.hint:
        click.echo(f"  try: {error.hint}", err=True)
    elif error.details and error.details.get("available"):
        click.echo(f"  available: {error.details['available']}", err=True)


def unknown_command_error(name: str, root: click.Group) -> CLIError:
    top_level = [n for n, c in root.commands.items() if not getattr(c, "hidden", False)]
    suggestions = suggest_command(name, build_index(root), top_level)
    return CLIError(
        f'unknown command "{name}"',
        error_type="usage_error",
        hint=", ".join(suggestions) or None,
        details={"input": name, "available": ", ".join(top_level)},
    )


class LinearGroup(RichGroup):
    """
    Command group with the CLI's error contract.

    Unknown subcommands raise a `CLIError` carrying suggestions, and `main` prints
    every failure as `error: <message>` / `  try: <hint>` before exiting with the
    code derived from the error type.
    """

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        if not args and self.no_args_is_help and not ctx.resilient_parsing:
            click.echo(ctx.get_help(), color=ctx.color)
            ctx.exit()
        return super().parse_args(ctx, args)

    def resolve_command(
        self, ctx: click.Context, args: list[str]
    ) -> tuple[str | None, click.Command | None, list[str]]:
        name = args[0] if args else None
        if (
            name
            and not name.startswith("-")
            and not ctx.resilient_parsing
            and self.get_command(ctx, name) is None
        ):
            root = ctx.find_root().command
            raise unknown_command_error(name, root if isinstance(root, click.Group) else self)
        return super().resolve_command(ctx, args)

    def main(  # type: ignore[override]
        self,
        args: Sequence[str] | None = None,
        prog_name: str | None = None,
        complete_var: str | None = None,
        standalone_mode: bool = True,
        **extra: Any,
    ) -> Any:
        code = self._main_exit_code(args, prog_name, complete_var, **extra)
        if standalone_mode:
            raise SystemExit(code)
        return code

    def _main_exit_code(
        self,
        args: Sequence[str] | None,
        prog_name: str | None,
        complete_var: str | None,
        **extra: Any,
    ) -> int:
        try:
            result = super().main(
                args=args,
                prog_name=prog_name,
                complete_var=complete_var,
                standalone_mode=False,
                **extra,
            )
        except click.exceptions.UsageError as exc:
            emit_error(CLIError(exc.format_message(), error_type="usage_error", hint="linear --help"))
            return 4
        except click.exceptions.Abort:
            click.echo("Aborted!", err=True)
            return 1
        except click.ClickException as exc:
            emit_error(CLIError(exc.format_message()))
            return exc.exit_code
        except Exception as exc:
            error = normalize_exception(exc)
            emit_error(error)
            return error.exit_code
        return result if isinstance(result, int) else 0
