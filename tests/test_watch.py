from __future__ import annotations

from datetime import datetime, timezone

import pytest

from linear_cli.cli.errors import CLIError
from linear_cli.cli.watch import (
    Completed,
    TimedOut,
    WatchParams,
    exit_code_for_outcome,
    latest_session,
    outcome_payload,
    outcome_views,
    watch_session,
)
from linear_cli.cli.render import Message
from linear_cli.models.entities import AgentSession


def _session(status: str, *, created: int = 1, summary: str | None = None) -> AgentSession:
    return AgentSession(
        id=f"sess-{created}",
        status=status,
        createdAt=datetime(2026, 1, created, tzinfo=timezone.utc),
        agent="Codex",
        summary=summary,
        externalUrl="https://example.test/task",
    )


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def _poller(*sessions: AgentSession | None):
    queue = list(sessions)

    async def poll() -> AgentSession | None:
        return queue.pop(0) if len(queue) > 1 else queue[0]

    return poll


@pytest.mark.asyncio
async def test_polls_until_terminal_status() -> None:
    clock = FakeClock()
    poll = _poller(None, _session("active"), _session("complete", summary="Fixed it"))
    outcome = await watch_session(
        poll, WatchParams(interval=15, timeout=0), clock=clock, sleep=clock.sleep
    )
    assert isinstance(outcome, Completed)
    assert outcome.session.status == "complete"
    assert outcome.elapsed == 30
    assert clock.sleeps == [15, 15]
    assert exit_code_for_outcome(outcome) == 0


@pytest.mark.parametrize(
    ("status", "code"), [("complete", 0), ("error", 1), ("awaitingInput", 2)]
)
@pytest.mark.asyncio
async def test_terminal_status_exit_codes(status: str, code: int) -> None:
    clock = FakeClock()
    outcome = await watch_session(
        _poller(_session(status)), WatchParams(), clock=clock, sleep=clock.sleep
    )
    assert exit_code_for_outcome(outcome) == code
    assert clock.sleeps == []


@pytest.mark.asyncio
async def test_times_out_with_last_seen_status() -> None:
    clock = FakeClock()
    outcome = await watch_session(
        _poller(_session("active")), WatchParams(interval=10, timeout=25), clock=clock, sleep=clock.sleep
    )
    assert isinstance(outcome, TimedOut)
    assert outcome.last_status == "active"
    assert outcome.elapsed == 30
    assert exit_code_for_outcome(outcome) == 124


@pytest.mark.asyncio
async def test_timeout_without_any_session() -> None:
    clock = FakeClock()
    outcome = await watch_session(
        _poller(None), WatchParams(interval=5, timeout=5), clock=clock, sleep=clock.sleep
    )
    assert isinstance(outcome, TimedOut)
    assert outcome.last_status == "no session"
    assert outcome_payload("POL-1", outcome) == {
        "issue": "POL-1",
        "status": "timeout",
        "lastSessionStatus": "no session",
        "elapsed": 10,
    }


@pytest.mark.parametrize(("interval", "timeout"), [(0, 0), (-1, 0), (5, -1)])
def test_invalid_params_are_validation_errors(interval: float, timeout: float) -> None:
    with pytest.raises(CLIError) as excinfo:
        WatchParams(interval=interval, timeout=timeout)
    assert excinfo.value.exit_code == 4


def test_latest_session_uses_created_at() -> None:
    older, newer = _session("complete", created=1), _session("active", created=5)
    assert latest_session([newer, older]) is newer
    assert latest_session([]) is None


def test_compact_outcome_line() -> None:
    outcome = Completed(session=_session("complete", summary="Done\nall good"), elapsed=42)
    (view,) = outcome_views("compact", "POL-1", outcome)
    assert isinstance(view, Message)
    assert view.text == "POL-1\tCodex\tcomplete\t42s\tDone all good\thttps://example.test/task"
