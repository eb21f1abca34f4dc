from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_config_path, user_log_path

APP_NAME = "linear"


@dataclass(frozen=True, slots=True)
class CliPaths:
    config_dir: Path
    log_dir: Path

    @property
    def credentials_path(self) -> Path:
        return self.config_dir / "credentials.toml"

    @property
    def log_file(self) -> Path:
        return self.log_dir / "linear.log"


def get_paths() -> CliPaths:
    # XDG_CONFIG_HOME wins on every platform so credentials live in one known place.
    xdg = os.getenv("XDG_CONFIG_HOME")
    config_dir = Path(xdg) / APP_NAME if xdg else user_config_path(APP_NAME, appauthor=False)
    return CliPaths(
        config_dir=config_dir,
        log_dir=user_log_path(APP_NAME, appauthor=False),
    )
