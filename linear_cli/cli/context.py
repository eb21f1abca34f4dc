from __future__ import annotations

import logging
import os
import sys
from contextlib import suppress
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

import httpx

from linear_cli.client import API_URL, LinearClient
from linear_cli.exceptions import (
    AuthenticationError,
    LinearError,
    NetworkError,
    NotFoundError,
    RateLimitError,
)

from .config import Credentials, credentials_permission_warnings, load_credentials
from .errors import CLIError
from .logging import set_redaction_api_key
from .paths import CliPaths, get_paths

OutputFormat = Literal["table", "compact", "json"]
OUTPUT_FORMATS: tuple[str, ...] = ("table", "compact", "json")

logger = logging.getLogger(__name__)


def default_output_format() -> OutputFormat:
    return "table" if sys.stdout.isatty() else "compact"


@dataclass(frozen=True, slots=True)
class CommandContext:
    """Everything a command needs for one invocation, passed explicitly."""

    format: OutputFormat
    client: LinearClient
    no_input: bool
    team_key: str | None = None
    verbosity: int = 0
    show_progress: bool = False


@dataclass
class CLIContext:
    output: OutputFormat
    team: str | None
    quiet: bool
    verbosity: int
    progress: Literal["auto", "always", "never"]
    workspace: str | None
    dotenv: bool
    env_file: Path
    timeout: float | None
    api_url: str | None
    trace: bool
    log_file: Path | None
    enable_log_file: bool
    no_input: bool

    _paths: CliPaths = field(default_factory=get_paths)
    _credentials: Credentials | None = None
    api_key_source: str | None = None

    def load_dotenv_if_requested(self) -> None:
        if not self.dotenv:
            return
        from dotenv import load_dotenv

        load_dotenv(dotenv_path=self.env_file, override=False)

    @property
    def paths(self) -> CliPaths:
        return self._paths

    def load_credentials(self) -> Credentials:
        if self._credentials is None:
            self._credentials = load_credentials(self.paths.credentials_path)
        return self._credentials

    def resolve_api_key(self, *, warnings: list[str]) -> str:
        self.load_dotenv_if_requested()
        env_key = os.getenv("LINEAR_API_KEY", "").strip()
        if env_key:
            self.api_key_source = "LINEAR_API_KEY"
            return env_key

        creds = self.load_credentials()
        key = creds.api_key_for(self.workspace)
        if key:
            warnings.extend(credentials_permission_warnings(self.paths.credentials_path))
            self.api_key_source = f"{self.paths.credentials_path} [{self.workspace or creds.default}]"
            return key

        if self.workspace:
            available = ", ".join(creds.workspaces) or "none"
            raise CLIError(
                f'no API key for workspace "{self.workspace}"',
                error_type="auth_error",
                hint=f"available: {available}",
            )
        raise CLIError(
            "not authenticated",
            error_type="auth_error",
            hint=f"set LINEAR_API_KEY or add a key to {self.paths.credentials_path}",
        )

    def team_key(self) -> str | None:
        return self.team or os.getenv("LINEAR_TEAM") or None

    def require_team(self) -> str:
        team = self.team_key()
        if not team:
            raise CLIError(
                "no team specified",
                error_type="usage_error",
                hint="use --team or set LINEAR_TEAM",
            )
        return team

    def _trace_hooks(self) -> tuple[object | None, object | None]:
        if not self.trace:
            return None, None

        def _write(line: str) -> None:
            sys.stderr.write(line + "\n")
            with suppress(Exception):
                sys.stderr.flush()

        async def _on_request(request: httpx.Request) -> None:
            _write(f"trace -> {request.method} {request.url}")

        async def _on_response(response: httpx.Response) -> None:
            _write(f"trace <- {response.status_code} {response.request.url}")

        return _on_request, _on_response

    def new_client(self, *, warnings: list[str]) -> LinearClient:
        api_key = self.resolve_api_key(warnings=warnings)
        set_redaction_api_key(api_key)
        on_request, on_response = self._trace_hooks()
        return LinearClient(
            api_key,
            api_url=self.api_url or os.getenv("LINEAR_API_URL") or API_URL,
            timeout=self.timeout if self.timeout is not None else 30.0,
            log_requests=self.verbosity >= 2,
            on_request=on_request,  # type: ignore[arg-type]
            on_response=on_response,  # type: ignore[arg-type]
        )

    def progress_enabled(self) -> bool:
        if self.quiet or self.progress == "never":
            return False
        if self.progress == "always":
            return True
        return self.output == "table" and sys.stderr.isatty()

    def command_context(self, *, warnings: list[str], require_team: bool = False) -> CommandContext:
        team_key = self.require_team() if require_team else self.team_key()
        return CommandContext(
            format=self.output,
            client=self.new_client(warnings=warnings),
            no_input=self.no_input,
            team_key=team_key,
            verbosity=self.verbosity,
            show_progress=self.progress_enabled(),
        )


_RATE_LIMIT_HINT = "rate limited by Linear; wait a minute and retry"
_NETWORK_HINT = "check your network connection and LINEAR_API_URL"
_AUTH_HINT = "check LINEAR_API_KEY or your credentials file"


def _classify_message(message: str) -> CLIError:
    # Fallback for failures that did not arrive as structured transport errors.
    lowered = message.lower()
    if "401" in lowered or "unauthorized" in lowered or "authentication" in lowered:
        return CLIError(message, error_type="auth_error", hint=_AUTH_HINT)
    if "429" in lowered or "rate limit" in lowered:
        return CLIError(message, hint=_RATE_LIMIT_HINT)
    if "fetch failed" in lowered or "connection" in lowered:
        return CLIError(message, hint=_NETWORK_HINT)
    return CLIError(message)


def normalize_exception(exc: BaseException) -> CLIError:
    """Turn any exception into the one error type the top-level handler prints."""
    if isinstance(exc, CLIError):
        return exc
    if isinstance(exc, AuthenticationError):
        return CLIError(exc.message, error_type="auth_error", hint=_AUTH_HINT)
    if isinstance(exc, NotFoundError):
        return CLIError(exc.message, error_type="not_found")
    if isinstance(exc, RateLimitError):
        return CLIError(exc.message, hint=_RATE_LIMIT_HINT)
    if isinstance(exc, NetworkError):
        return CLIError(exc.message, hint=_NETWORK_HINT)
    if isinstance(exc, LinearError):
        return CLIError(exc.message)
    return _classify_message(str(exc) or exc.__class__.__name__)
