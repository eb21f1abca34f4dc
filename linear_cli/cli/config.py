"""
Read-only credential configuration.

`credentials.toml` maps workspace names to API keys, with an optional `default`
entry naming the workspace to use when none is requested::

    default = "acme"
    acme = "lin_api_..."
    side-project = "lin_api_..."

The CLI never writes this file.
"""

from __future__ import annotations

import stat
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from .errors import CLIError


@dataclass(frozen=True, slots=True)
class Credentials:
    default: str | None = None
    workspaces: dict[str, str] = field(default_factory=dict)

    def api_key_for(self, workspace: str | None) -> str | None:
        target = workspace or self.default
        if target is None:
            return None
        return self.workspaces.get(target)


def load_credentials(path: Path) -> Credentials:
    if not path.exists():
        return Credentials()
    try:
        raw = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise CLIError(
            f"invalid credentials file: {path}: {exc}",
            hint="fix the TOML syntax or remove the file",
        ) from exc

    default = raw.get("default")
    workspaces = {
        key: value.strip()
        for key, value in raw.items()
        if key != "default" and isinstance(value, str) and value.strip()
    }
    return Credentials(
        default=default if isinstance(default, str) else None,
        workspaces=workspaces,
    )


def credentials_permission_warnings(path: Path) -> list[str]:
    try:
        mode = path.stat().st_mode
    except OSError:
        return []
    if mode & (stat.S_IRWXG | stat.S_IRWXO):
        return [f"{path} is readable by other users; run `chmod 600 {path}`"]
    return []
