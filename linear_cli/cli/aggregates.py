"""Grouped counts derived from fully drained issue connections."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from linear_cli.client import LinearClient
from linear_cli.models.entities import Issue
from linear_cli.models.pagination import drain

UNASSIGNED = "Unassigned"

STATUS_BUCKETS: tuple[str, ...] = ("Backlog", "Todo", "In Progress", "Done")

# Raw workflow-state type -> display bucket. Unknown types fall back to Backlog.
STATE_TYPE_BUCKETS: dict[str, str] = {
    "triage": "Backlog",
    "backlog": "Backlog",
    "unstarted": "Todo",
    "started": "In Progress",
    "completed": "Done",
}

OVERVIEW_STATE_TYPES: tuple[str, ...] = ("triage", "backlog", "unstarted", "started", "completed")
OVERVIEW_PAGE_SIZE = 100


def bucket_for_state_type(state_type: str | None) -> str:
    return STATE_TYPE_BUCKETS.get(state_type or "backlog", "Backlog")


def _row_sort_key(name: str) -> tuple[int, str, str]:
    return (1 if name == UNASSIGNED else 0, name.casefold(), name)


@dataclass(frozen=True, slots=True)
class StatusMatrix:
    rows: dict[str, dict[str, int]]

    @property
    def assignees(self) -> list[str]:
        return list(self.rows)

    @property
    def total(self) -> int:
        return sum(sum(row.values()) for row in self.rows.values())

    def column_total(self, bucket: str) -> int:
        return sum(row[bucket] for row in self.rows.values())


def build_status_matrix(issues: Iterable[Issue]) -> StatusMatrix:
    """
    Count issues per assignee and status bucket.

    Every row carries every bucket. Rows sort by name with "Unassigned" last.
    """
    counts: dict[str, dict[str, int]] = {}
    for issue in issues:
        name = issue.assignee.name if issue.assignee is not None else UNASSIGNED
        state_type = issue.state.type if issue.state is not None else None
        row = counts.setdefault(name, dict.fromkeys(STATUS_BUCKETS, 0))
        row[bucket_for_state_type(state_type)] += 1

    ordered = {name: counts[name] for name in sorted(counts, key=_row_sort_key)}
    return StatusMatrix(rows=ordered)


async def fetch_team_overview_issues(client: LinearClient, team_key: str) -> list[Issue]:
    connection = await client.issues(
        filter={
            "team": {"key": {"eq": team_key}},
            "state": {"type": {"in": list(OVERVIEW_STATE_TYPES)}},
        },
        first=OVERVIEW_PAGE_SIZE,
    )
    return await drain(connection)


def overview_payload(team_key: str, matrix: StatusMatrix) -> dict[str, Any]:
    return {
        "teamKey": team_key,
        "matrix": matrix.rows,
        "total": matrix.total,
        "inProgress": matrix.column_total("In Progress"),
        "done": matrix.column_total("Done"),
    }
