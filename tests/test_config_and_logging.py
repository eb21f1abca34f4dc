from __future__ import annotations

import logging
from pathlib import Path

import pytest

from linear_cli.cli.config import credentials_permission_warnings, load_credentials
from linear_cli.cli.errors import CLIError
from linear_cli.cli.logging import configure_logging, restore_logging, set_redaction_api_key


def test_credentials_default_and_named_workspaces(tmp_path: Path) -> None:
    path = tmp_path / "credentials.toml"
    path.write_text('default = "acme"\nacme = " lin_api_a "\nside = "lin_api_b"\nempty = ""\n')
    creds = load_credentials(path)
    assert creds.default == "acme"
    assert creds.api_key_for(None) == "lin_api_a"
    assert creds.api_key_for("side") == "lin_api_b"
    assert creds.api_key_for("empty") is None
    assert sorted(creds.workspaces) == ["acme", "side"]


def test_missing_credentials_file_is_empty(tmp_path: Path) -> None:
    creds = load_credentials(tmp_path / "nope.toml")
    assert creds.api_key_for(None) is None


def test_invalid_credentials_file(tmp_path: Path) -> None:
    path = tmp_path / "credentials.toml"
    path.write_text("acme = \n")
    with pytest.raises(CLIError) as excinfo:
        load_credentials(path)
    assert excinfo.value.exit_code == 1


def test_world_readable_credentials_warn(tmp_path: Path) -> None:
    path = tmp_path / "credentials.toml"
    path.write_text('acme = "lin_api_a"\n')
    path.chmod(0o644)
    (warning,) = credentials_permission_warnings(path)
    assert "chmod 600" in warning
    path.chmod(0o600)
    assert credentials_permission_warnings(path) == []


def test_log_file_redacts_api_key(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "linear.log"
    previous = configure_logging(
        verbosity=0, log_file=log_file, enable_file=True, api_key_for_redaction=None
    )
    try:
        set_redaction_api_key("lin_api_secret")
        logging.getLogger("linear_cli.client").info("using key %s", "lin_api_secret")
    finally:
        restore_logging(previous)
        set_redaction_api_key(None)

    text = log_file.read_text(encoding="utf-8")
    assert "lin_api_secret" not in text
    assert "using key [REDACTED]" in text


def test_restore_logging_puts_handlers_back(tmp_path: Path) -> None:
    logger = logging.getLogger("linear_cli")
    before = list(logger.handlers)
    previous = configure_logging(
        verbosity=2, log_file=None, enable_file=False, api_key_for_redaction=None
    )
    assert any(isinstance(h, logging.StreamHandler) for h in logger.handlers)
    restore_logging(previous)
    assert logger.handlers == before
