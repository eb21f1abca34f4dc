from __future__ import annotations

from typing import Any

import httpx
import pytest
import respx
from httpx import Response

from conftest import GraphQLStub, issue, page
from linear_cli.client import API_URL, LinearClient
from linear_cli.exceptions import (
    AuthenticationError,
    GraphQLError,
    LinearError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    ServerError,
)
from linear_cli.models.pagination import drain


@pytest.mark.asyncio
async def test_drain_fetches_every_page_in_order(linear_api: GraphQLStub) -> None:
    sizes = [100, 100, 35]

    def issues_page(variables: dict[str, Any]) -> dict[str, Any]:
        index = 0 if variables["after"] is None else int(variables["after"])
        start = sum(sizes[:index])
        nodes = [issue(f"POL-{n}") for n in range(start + 1, start + sizes[index] + 1)]
        has_next = index + 1 < len(sizes)
        return {"issues": page(nodes, has_next=has_next, cursor=str(index + 1) if has_next else None)}

    linear_api.on("Issues", issues_page)
    async with LinearClient("lin_api_test") as client:
        nodes = await drain(await client.issues(first=100))

    assert len(nodes) == 235
    assert nodes[0].identifier == "POL-1"
    assert nodes[-1].identifier == "POL-235"
    assert [v["after"] for v in linear_api.variables("Issues")] == [None, "1", "2"]


@pytest.mark.asyncio
async def test_nested_connections_are_flattened(linear_api: GraphQLStub) -> None:
    raw = issue("POL-1", labels={"nodes": [{"id": "l-1", "name": "Bug"}]})
    raw["comments"] = {"nodes": [{"id": "c-1", "body": "hi", "user": None}]}
    linear_api.on("Issue", {"issue": raw})
    async with LinearClient("lin_api_test") as client:
        found = await client.issue("uuid-pol-1")
    assert [label.name for label in found.labels] == ["Bug"]
    assert found.comments[0].body == "hi"


@pytest.mark.asyncio
async def test_api_key_is_sent_verbatim(respx_mock: respx.MockRouter) -> None:
    route = respx_mock.post(API_URL).mock(
        return_value=Response(200, json={"data": {"viewer": {"id": "u-1", "name": "Jane"}}})
    )
    async with LinearClient("lin_api_secret") as client:
        await client.viewer()
    assert route.calls.last.request.headers["Authorization"] == "lin_api_secret"


@pytest.mark.parametrize(
    ("response", "error_type"),
    [
        (Response(401, json={}), AuthenticationError),
        (Response(403, json={}), AuthenticationError),
        (Response(502, text="bad gateway"), ServerError),
        (Response(200, text="<html>"), LinearError),
        (
            Response(200, json={"errors": [{"message": "Entity not found: Issue"}]}),
            NotFoundError,
        ),
        (
            Response(
                200,
                json={"errors": [{"message": "slow down", "extensions": {"code": "RATELIMITED"}}]},
            ),
            RateLimitError,
        ),
        (
            Response(
                200,
                json={
                    "errors": [
                        {"message": "x", "extensions": {"type": "authentication error", "code": "AUTHENTICATION_ERROR"}}
                    ]
                },
            ),
            AuthenticationError,
        ),
        (Response(200, json={"errors": [{"message": "Argument Validation Error"}]}), GraphQLError),
    ],
)
@pytest.mark.asyncio
async def test_transport_failures_map_to_structured_errors(
    respx_mock: respx.MockRouter, response: Response, error_type: type[LinearError]
) -> None:
    respx_mock.post(API_URL).mock(return_value=response)
    async with LinearClient("lin_api_test") as client:
        with pytest.raises(error_type):
            await client.viewer()


@pytest.mark.asyncio
async def test_rate_limit_carries_retry_after(respx_mock: respx.MockRouter) -> None:
    respx_mock.post(API_URL).mock(return_value=Response(429, headers={"Retry-After": "30"}))
    async with LinearClient("lin_api_test") as client:
        with pytest.raises(RateLimitError) as excinfo:
            await client.viewer()
    assert excinfo.value.retry_after == 30.0
    assert excinfo.value.status_code == 429


@pytest.mark.asyncio
async def test_connection_failure_is_network_error(respx_mock: respx.MockRouter) -> None:
    respx_mock.post(API_URL).mock(side_effect=httpx.ConnectError("connection refused"))
    async with LinearClient("lin_api_test") as client:
        with pytest.raises(NetworkError) as excinfo:
            await client.viewer()
    assert "fetch failed" in excinfo.value.message


@pytest.mark.asyncio
async def test_unsuccessful_mutation_raises(linear_api: GraphQLStub) -> None:
    linear_api.on("IssueArchive", {"issueArchive": {"success": False}})
    async with LinearClient("lin_api_test") as client:
        with pytest.raises(LinearError, match="issueArchive failed"):
            await client.archive_issue("uuid-pol-1")
