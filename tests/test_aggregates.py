from __future__ import annotations

import pytest

from conftest import GraphQLStub, issue, page, state, user
from linear_cli.cli.aggregates import (
    STATUS_BUCKETS,
    build_status_matrix,
    fetch_team_overview_issues,
    overview_payload,
)
from linear_cli.client import LinearClient
from linear_cli.models.entities import Issue


def _issue(identifier: str, state_type: str, assignee: str | None) -> Issue:
    return Issue.model_validate(
        issue(
            identifier,
            state_=state(f"s-{state_type}", state_type.title(), state_type),
            assignee=user(f"u-{assignee}", assignee) if assignee else None,
        )
    )


def test_matrix_buckets_state_types_and_sorts_unassigned_last() -> None:
    issues = [
        _issue("POL-1", "triage", "bob"),
        _issue("POL-2", "backlog", "bob"),
        _issue("POL-3", "started", "Alice"),
        _issue("POL-4", "completed", None),
        _issue("POL-5", "unstarted", "Alice"),
        _issue("POL-6", "canceled", "Alice"),
    ]
    matrix = build_status_matrix(issues)

    assert matrix.assignees == ["Alice", "bob", "Unassigned"]
    assert matrix.rows["bob"] == {"Backlog": 2, "Todo": 0, "In Progress": 0, "Done": 0}
    # Unknown state types land in Backlog.
    assert matrix.rows["Alice"] == {"Backlog": 1, "Todo": 1, "In Progress": 1, "Done": 0}
    assert matrix.rows["Unassigned"]["Done"] == 1
    assert matrix.total == len(issues)


def test_every_row_carries_every_bucket() -> None:
    matrix = build_status_matrix([_issue("POL-1", "started", "Alice")])
    assert list(matrix.rows["Alice"]) == list(STATUS_BUCKETS)


def test_overview_payload_totals() -> None:
    matrix = build_status_matrix(
        [_issue("POL-1", "started", "Alice"), _issue("POL-2", "completed", "Alice")]
    )
    payload = overview_payload("POL", matrix)
    assert payload["teamKey"] == "POL"
    assert payload["total"] == 2
    assert payload["inProgress"] == 1
    assert payload["done"] == 1


@pytest.mark.asyncio
async def test_overview_drains_all_pages(linear_api: GraphQLStub) -> None:
    linear_api.on(
        "Issues",
        {"issues": page([issue(f"POL-{n}") for n in range(1, 101)], has_next=True, cursor="c1")},
        {"issues": page([issue(f"POL-{n}") for n in range(101, 121)])},
    )
    async with LinearClient("lin_api_test") as client:
        issues = await fetch_team_overview_issues(client, "POL")
    assert len(issues) == 120
    first, second = linear_api.variables("Issues")
    assert first["first"] == 100
    assert second["after"] == "c1"
    assert first["filter"]["state"] == {
        "type": {"in": ["triage", "backlog", "unstarted", "started", "completed"]}
    }
