from __future__ import annotations

import json
import re
from collections.abc import Callable
from typing import Any

import pytest
import respx
from click.testing import CliRunner, Result
from httpx import Request, Response

from linear_cli.client import API_URL
from linear_cli.cli.main import cli

_OPERATION_RE = re.compile(r"(?:query|mutation)\s+(\w+)")

Handler = Callable[[dict[str, Any]], dict[str, Any]]


class GraphQLStub:
    """
    Route GraphQL POSTs by operation name.

    Each operation answers with a fixed `data` object, a handler taking the request
    variables, or a list of either consumed in order (the last one repeats).
    """

    def __init__(self) -> None:
        self._routes: dict[str, list[dict[str, Any] | Handler]] = {}
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def on(self, operation: str, *responses: dict[str, Any] | Handler) -> GraphQLStub:
        self._routes[operation] = list(responses)
        return self

    def operations(self) -> list[str]:
        return [op for op, _ in self.calls]

    def variables(self, operation: str) -> list[dict[str, Any]]:
        return [v for op, v in self.calls if op == operation]

    def __call__(self, request: Request) -> Response:
        body = json.loads(request.content)
        match = _OPERATION_RE.search(body["query"])
        operation = match.group(1) if match else "anonymous"
        variables = body.get("variables") or {}
        self.calls.append((operation, variables))

        queue = self._routes.get(operation)
        if not queue:
            pytest.fail(f"Unexpected GraphQL operation: {operation}")
        response = queue.pop(0) if len(queue) > 1 else queue[0]
        data = response(variables) if callable(response) else response
        if "errors" in data:
            return Response(200, json=data)
        return Response(200, json={"data": data})


@pytest.fixture
def linear_api(respx_mock: respx.MockRouter) -> GraphQLStub:
    stub = GraphQLStub()
    respx_mock.post(API_URL).mock(side_effect=stub)
    return stub


@pytest.fixture
def run_cli(tmp_path: Any) -> Callable[..., Result]:
    """Invoke the CLI with a test API key, no log file and no default team."""

    def invoke(*args: str, env: dict[str, str] | None = None, input: str | None = None) -> Result:
        runner = CliRunner()
        base_env = {
            "LINEAR_API_KEY": "lin_api_test",
            "LINEAR_TEAM": "",
            "LINEAR_API_URL": "",
            "XDG_CONFIG_HOME": str(tmp_path),
        }
        base_env.update(env or {})
        return runner.invoke(cli, ["--no-log-file", *args], env=base_env, input=input)

    return invoke


def page(nodes: list[dict[str, Any]], *, has_next: bool = False, cursor: str | None = None) -> dict[str, Any]:
    return {"nodes": nodes, "pageInfo": {"hasNextPage": has_next, "endCursor": cursor}}


def user(uid: str, name: str, email: str | None = None, **extra: Any) -> dict[str, Any]:
    return {"id": uid, "name": name, "email": email, "displayName": None, **extra}


def state(sid: str, name: str, type_: str) -> dict[str, Any]:
    return {"id": sid, "name": name, "type": type_}


def issue(
    identifier: str,
    title: str = "Something",
    *,
    state_: dict[str, Any] | None = None,
    assignee: dict[str, Any] | None = None,
    priority: int = 0,
    team_key: str = "POL",
    **extra: Any,
) -> dict[str, Any]:
    number = identifier.split("-")[-1]
    return {
        "id": f"uuid-{identifier.lower()}",
        "identifier": identifier,
        "title": title,
        "priority": priority,
        "url": f"https://linear.app/acme/issue/{identifier}",
        "branchName": f"{identifier.lower()}-branch",
        "createdAt": "2026-01-01T00:00:00.000Z",
        "updatedAt": "2026-01-02T00:00:00.000Z",
        "state": state_ or state("s-todo", "Todo", "unstarted"),
        "team": {"id": f"team-{team_key.lower()}", "key": team_key, "name": "Polish"},
        "assignee": assignee,
        "delegate": None,
        "project": None,
        "cycle": None,
        "labels": {"nodes": []},
        "number": int(number) if number.isdigit() else 0,
        **extra,
    }


def cycle(cid: str, number: int, starts: str, ends: str, **extra: Any) -> dict[str, Any]:
    return {
        "id": cid,
        "number": number,
        "startsAt": f"{starts}T00:00:00.000Z",
        "endsAt": f"{ends}T00:00:00.000Z",
        **extra,
    }
