"""
Polling an issue's agent sessions until one reaches a terminal state.

The loop is a small state machine: `watch_session` polls, sleeps, and returns a
terminal outcome (`Completed` or `TimedOut`). It never exits the process; the
command maps the outcome to an exit code and the runner applies it.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from linear_cli.client import LinearClient
from linear_cli.models.entities import AgentSession
from linear_cli.models.pagination import drain

from .context import OutputFormat
from .errors import CLIError
from .render import Message, Renderable, TextBlock, compact_field

logger = logging.getLogger(__name__)

TERMINAL_SESSION_STATES = frozenset({"complete", "error", "awaitingInput"})
SESSION_EXIT_CODES: dict[str, int] = {"complete": 0, "error": 1, "awaitingInput": 2}
TIMEOUT_EXIT_CODE = 124
DEFAULT_INTERVAL = 15.0

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True, slots=True)
class WatchParams:
    interval: float = DEFAULT_INTERVAL
    timeout: float = 0.0  # seconds; 0 means no limit

    def __post_init__(self) -> None:
        if self.interval <= 0:
            raise CLIError(
                f"invalid interval {self.interval:g}",
                error_type="validation_error",
                hint="--interval must be greater than 0 seconds",
            )
        if self.timeout < 0:
            raise CLIError(
                f"invalid timeout {self.timeout:g}",
                error_type="validation_error",
                hint="--timeout 0 waits forever; otherwise use a positive number of seconds",
            )


@dataclass(frozen=True, slots=True)
class Completed:
    session: AgentSession
    elapsed: int


@dataclass(frozen=True, slots=True)
class TimedOut:
    last_status: str
    elapsed: int


WatchOutcome = Completed | TimedOut


def exit_code_for_outcome(outcome: WatchOutcome) -> int:
    if isinstance(outcome, TimedOut):
        return TIMEOUT_EXIT_CODE
    return SESSION_EXIT_CODES.get(outcome.session.status, 1)


async def issue_agent_sessions(client: LinearClient, issue_id: str) -> list[AgentSession]:
    sessions = await drain(await client.agent_sessions())
    return [s for s in sessions if s.issue_id == issue_id]


def latest_session(sessions: list[AgentSession]) -> AgentSession | None:
    if not sessions:
        return None
    return max(sessions, key=lambda s: s.created_at or _EPOCH)


async def watch_session(
    poll: Callable[[], Awaitable[AgentSession | None]],
    params: WatchParams,
    *,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> WatchOutcome:
    start = clock()
    while True:
        session = await poll()
        elapsed = clock() - start

        if session is not None and session.status in TERMINAL_SESSION_STATES:
            return Completed(session=session, elapsed=round(elapsed))

        if params.timeout > 0 and elapsed > params.timeout:
            last_status = session.status if session is not None else "no session"
            return TimedOut(last_status=last_status, elapsed=round(elapsed))

        logger.debug(
            "session status %s after %.0fs; polling again in %gs",
            session.status if session is not None else "none",
            elapsed,
            params.interval,
        )
        await sleep(params.interval)


def outcome_payload(issue: str, outcome: WatchOutcome) -> dict[str, Any]:
    if isinstance(outcome, TimedOut):
        return {
            "issue": issue,
            "status": "timeout",
            "lastSessionStatus": outcome.last_status,
            "elapsed": outcome.elapsed,
        }
    session = outcome.session
    return {
        "issue": issue,
        "agent": session.agent,
        "status": session.status,
        "summary": session.summary,
        "externalUrl": session.external_url,
        "elapsed": outcome.elapsed,
    }


def outcome_views(format: OutputFormat, issue: str, outcome: WatchOutcome) -> list[Renderable]:
    if isinstance(outcome, TimedOut):
        if format == "compact":
            reason = f"timeout waiting for terminal session; last_status={outcome.last_status}"
            return [
                Message(
                    f"{compact_field(issue)}\t-\ttimeout\t{outcome.elapsed}s\t{compact_field(reason)}\t-"
                )
            ]
        return [
            Message(f"{issue}: timeout ({outcome.elapsed}s)"),
            Message(f"  Last session status: {outcome.last_status}"),
        ]

    session = outcome.session
    if format == "compact":
        fields = [
            compact_field(issue),
            compact_field(session.agent),
            compact_field(session.status),
            f"{outcome.elapsed}s",
            compact_field(session.summary),
            compact_field(session.external_url),
        ]
        return [Message("\t".join(fields))]

    views: list[Renderable] = [
        Message(f"{issue}: {session.agent} → {session.status} ({outcome.elapsed}s)")
    ]
    if session.summary:
        views.append(TextBlock(session.summary, markdown=True))
    if session.external_url:
        views.append(Message(f"  View task → {session.external_url}"))
    return views
