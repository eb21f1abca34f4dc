from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from pathlib import Path

_REDACTED = "[REDACTED]"
_redaction_api_key: str | None = None


def set_redaction_api_key(api_key: str | None) -> None:
    global _redaction_api_key
    _redaction_api_key = api_key or None


class _RedactingFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        key = _redaction_api_key
        if key:
            message = record.getMessage()
            if key in message:
                record.msg = message.replace(key, _REDACTED)
                record.args = None
        return True


@dataclass(frozen=True, slots=True)
class _PreviousLogging:
    level: int
    handlers: list[logging.Handler]
    propagate: bool


def configure_logging(
    *,
    verbosity: int,
    log_file: Path | None,
    enable_file: bool,
    api_key_for_redaction: str | None,
) -> _PreviousLogging:
    """Install CLI handlers on the `linear_cli` logger; returns what to restore."""
    logger = logging.getLogger("linear_cli")
    previous = _PreviousLogging(
        level=logger.level, handlers=list(logger.handlers), propagate=logger.propagate
    )
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    set_redaction_api_key(api_key_for_redaction)
    redactor = _RedactingFilter()
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    if verbosity >= 1:
        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setLevel(logging.DEBUG if verbosity >= 2 else logging.INFO)
        stderr_handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        stderr_handler.addFilter(redactor)
        logger.addHandler(stderr_handler)

    if enable_file and log_file is not None:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                log_file, maxBytes=1_000_000, backupCount=3, encoding="utf-8"
            )
        except OSError:
            # Unwritable log dir (read-only home, sandbox): run without a file log.
            file_handler = None
        if file_handler is not None:
            file_handler.setLevel(logging.INFO)
            file_handler.setFormatter(
                logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
            )
            file_handler.addFilter(redactor)
            logger.addHandler(file_handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    return previous


def restore_logging(previous: _PreviousLogging) -> None:
    logger = logging.getLogger("linear_cli")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for handler in previous.handlers:
        logger.addHandler(handler)
    logger.setLevel(previous.level)
    logger.propagate = previous.propagate
