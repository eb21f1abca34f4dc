from __future__ import annotations

from typing import Any, Literal

ErrorType = Literal[
    "error",
    "auth_error",
    "not_found",
    "ambiguous_resolution",
    "usage_error",
    "validation_error",
    "timeout",
]

# Every error type maps to exactly one process exit code.
EXIT_CODES: dict[str, int] = {
    "error": 1,
    "auth_error": 2,
    "not_found": 3,
    "ambiguous_resolution": 4,
    "usage_error": 4,
    "validation_error": 4,
    "timeout": 124,
}


class CLIError(Exception):
    def __init__(
        self,
        message: str,
        *,
        error_type: ErrorType = "error",
        hint: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.hint = hint
        self.details = details

    @property
    def exit_code(self) -> int:
        return EXIT_CODES[self.error_type]

    def __str__(self) -> str:  # pragma: no cover
        return self.message
