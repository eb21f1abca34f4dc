from __future__ import annotations

import sys
from contextlib import AbstractContextManager
from types import TracebackType

from rich.console import Console
from rich.status import Status


class ProgressManager(AbstractContextManager["ProgressManager"]):
    """Transient stderr spinner for slow fetches; a no-op when disabled."""

    def __init__(self, text: str, *, enabled: bool):
        self._text = text
        self._enabled = enabled
        self._status: Status | None = None

    def __enter__(self) -> ProgressManager:
        if self._enabled:
            console = Console(file=sys.stderr)
            self._status = console.status(self._text, spinner="dots")
            self._status.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._status is not None:
            self._status.stop()
        self._status = None
