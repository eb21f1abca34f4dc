"""
Async Linear API client.

A thin GraphQL transport over httpx. It maps HTTP and GraphQL failures onto the
structured exceptions in `linear_cli.exceptions` and returns pydantic models and
lazily paginated `Connection` objects. Retries and backoff are left to the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import httpx

from . import graphql
from .exceptions import (
    AuthenticationError,
    GraphQLError,
    LinearError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    ServerError,
)
from .models.entities import (
    AgentSession,
    Comment,
    Cycle,
    Document,
    Initiative,
    Issue,
    IssueLabel,
    Notification,
    Project,
    ProjectLabel,
    ProjectMilestone,
    ProjectStatus,
    ProjectUpdate,
    Team,
    User,
    WorkflowState,
)
from .models.pagination import Connection, PageInfo

API_URL = "https://api.linear.app/graphql"
DEFAULT_PAGE_SIZE = 50

T = TypeVar("T")

RequestHook = Callable[[httpx.Request], Awaitable[None]]
ResponseHook = Callable[[httpx.Response], Awaitable[None]]

logger = logging.getLogger(__name__)


def _dig(data: dict[str, Any], path: tuple[str, ...]) -> Any:
    current: Any = data
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def _raise_for_graphql_errors(errors: list[dict[str, Any]], *, status_code: int | None) -> None:
    first = errors[0] if errors else {}
    message = str(first.get("message") or "GraphQL request failed")
    extensions = first.get("extensions") or {}
    code = str(extensions.get("code") or extensions.get("type") or "").upper()
    user_message = extensions.get("userPresentableMessage")
    if isinstance(user_message, str) and user_message.strip():
        message = user_message.strip()

    if code in {"AUTHENTICATION_ERROR", "UNAUTHENTICATED", "FORBIDDEN"}:
        raise AuthenticationError(message, status_code=status_code, response_body=errors)
    if code == "RATELIMITED":
        raise RateLimitError(message, status_code=status_code, response_body=errors)
    if "not found" in message.lower() or code == "ENTITY_NOT_FOUND":
        raise NotFoundError(message, status_code=status_code, response_body=errors)
    raise GraphQLError(message, errors=errors, status_code=status_code, response_body=errors)


class LinearClient:
    """
    Asynchronous Linear GraphQL client.

    Example:
        ```python
        async with LinearClient(api_key="lin_api_...") as client:
            viewer = await client.viewer()
            teams = await drain(await client.teams())
        ```
    """

    def __init__(
        self,
        api_key: str,
        *,
        api_url: str = API_URL,
        timeout: float = 30.0,
        log_requests: bool = False,
        on_request: RequestHook | None = None,
        on_response: ResponseHook | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        from . import __version__

        self._api_url = api_url
        self._log_requests = log_requests
        event_hooks: dict[str, list[Any]] = {"request": [], "response": []}
        if on_request is not None:
            event_hooks["request"].append(on_request)
        if on_response is not None:
            event_hooks["response"].append(on_response)
        self._http = httpx.AsyncClient(
            timeout=timeout,
            headers={
                "Authorization": api_key,
                "Content-Type": "application/json",
                "User-Agent": f"linear-cli/{__version__}",
            },
            event_hooks=event_hooks,
            transport=transport,
        )

    async def __aenter__(self) -> LinearClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # =========================================================================
    # Transport
    # =========================================================================

    async def execute(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """Run one GraphQL document and return its `data` object."""
        if self._log_requests:
            logger.debug("graphql request: %s", query.split("(")[0].split("{")[0].strip())
        try:
            response = await self._http.post(
                self._api_url,
                json={"query": query, "variables": variables or {}},
            )
        except httpx.TimeoutException as exc:
            raise NetworkError(f"request timed out: {exc}") from exc
        except httpx.TransportError as exc:
            raise NetworkError(f"fetch failed: {exc}") from exc

        status = response.status_code
        if status in (401, 403):
            raise AuthenticationError(
                "authentication failed; the API key was rejected",
                status_code=status,
                response_body=response.text,
            )
        if status == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(
                "rate limited by the Linear API",
                retry_after=float(retry_after) if retry_after and retry_after.isdigit() else None,
                status_code=status,
                response_body=response.text,
            )
        if status >= 500:
            raise ServerError(
                f"Linear API server error ({status})",
                status_code=status,
                response_body=response.text,
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise LinearError(
                f"unexpected response from Linear API ({status})",
                status_code=status,
                response_body=response.text,
            ) from exc

        errors = body.get("errors") if isinstance(body, dict) else None
        if errors:
            _raise_for_graphql_errors(errors, status_code=status)
        if status >= 400:
            raise LinearError(
                f"Linear API request failed ({status})",
                status_code=status,
                response_body=body,
            )
        data = body.get("data") if isinstance(body, dict) else None
        return data or {}

    async def _connection(
        self,
        query: str,
        variables: dict[str, Any],
        path: tuple[str, ...],
        parse: Callable[[dict[str, Any]], T],
    ) -> Connection[T]:
        async def fetch_page(after: str | None) -> Connection[T]:
            data = await self.execute(query, {**variables, "after": after})
            raw = _dig(data, path)
            if raw is None:
                raise NotFoundError(f"no results at {'.'.join(path)}")
            return Connection(
                nodes=[parse(node) for node in raw.get("nodes", [])],
                page_info=PageInfo.model_validate(raw.get("pageInfo") or {}),
                fetch_page=fetch_page,
            )

        return await fetch_page(None)

    async def _mutate(self, query: str, variables: dict[str, Any], field: str) -> dict[str, Any]:
        data = await self.execute(query, variables)
        payload = data.get(field) or {}
        if not payload.get("success"):
            raise LinearError(f"{field} failed")
        return payload

    # =========================================================================
    # Read operations
    # =========================================================================

    async def viewer(self) -> User:
        data = await self.execute(graphql.VIEWER)
        return User.model_validate(data["viewer"])

    async def teams(self, *, first: int = DEFAULT_PAGE_SIZE) -> Connection[Team]:
        return await self._connection(
            graphql.TEAMS, {"first": first}, ("teams",), Team.model_validate
        )

    async def team_members(self, team_id: str, *, first: int = DEFAULT_PAGE_SIZE) -> Connection[User]:
        return await self._connection(
            graphql.TEAM_MEMBERS,
            {"id": team_id, "first": first},
            ("team", "members"),
            User.model_validate,
        )

    async def team_states(
        self, team_id: str, *, first: int = DEFAULT_PAGE_SIZE
    ) -> Connection[WorkflowState]:
        return await self._connection(
            graphql.TEAM_STATES,
            {"id": team_id, "first": first},
            ("team", "states"),
            WorkflowState.model_validate,
        )

    async def team_labels(
        self, team_id: str, *, first: int = DEFAULT_PAGE_SIZE
    ) -> Connection[IssueLabel]:
        return await self._connection(
            graphql.TEAM_LABELS,
            {"id": team_id, "first": first},
            ("team", "labels"),
            IssueLabel.model_validate,
        )

    async def users(self, *, first: int = DEFAULT_PAGE_SIZE) -> Connection[User]:
        return await self._connection(
            graphql.USERS, {"first": first}, ("users",), User.model_validate
        )

    async def projects(self, *, first: int = DEFAULT_PAGE_SIZE) -> Connection[Project]:
        return await self._connection(
            graphql.PROJECTS, {"first": first}, ("projects",), Project.model_validate
        )

    async def issues(
        self,
        *,
        filter: dict[str, Any] | None = None,
        first: int = DEFAULT_PAGE_SIZE,
        order_by: str = "updatedAt",
    ) -> Connection[Issue]:
        variables: dict[str, Any] = {"filter": filter or {}, "first": first, "orderBy": order_by}
        return await self._connection(graphql.ISSUES, variables, ("issues",), Issue.model_validate)

    async def issue(self, issue_id: str) -> Issue:
        data = await self.execute(graphql.ISSUE, {"id": issue_id})
        if not data.get("issue"):
            raise NotFoundError(f"issue not found: {issue_id}")
        return Issue.model_validate(data["issue"])

    async def agent_sessions(self, *, first: int = DEFAULT_PAGE_SIZE) -> Connection[AgentSession]:
        return await self._connection(
            graphql.AGENT_SESSIONS,
            {"first": first},
            ("agentSessions",),
            AgentSession.from_api,
        )

    async def project_statuses(self, *, first: int = DEFAULT_PAGE_SIZE) -> Connection[ProjectStatus]:
        return await self._connection(
            graphql.PROJECT_STATUSES, {"first": first}, ("projectStatuses",), ProjectStatus.model_validate
        )

    async def project_labels(
        self, project_id: str, *, first: int = DEFAULT_PAGE_SIZE
    ) -> Connection[ProjectLabel]:
        return await self._connection(
            graphql.PROJECT_LABELS,
            {"id": project_id, "first": first},
            ("project", "labels"),
            ProjectLabel.model_validate,
        )

    async def project_milestones(
        self, project_id: str, *, first: int = DEFAULT_PAGE_SIZE
    ) -> Connection[ProjectMilestone]:
        return await self._connection(
            graphql.PROJECT_MILESTONES,
            {"id": project_id, "first": first},
            ("project", "projectMilestones"),
            ProjectMilestone.model_validate,
        )

    async def initiatives(self, *, first: int = DEFAULT_PAGE_SIZE) -> Connection[Initiative]:
        return await self._connection(
            graphql.INITIATIVES, {"first": first}, ("initiatives",), Initiative.model_validate
        )

    async def team_cycles(self, team_id: str, *, first: int = DEFAULT_PAGE_SIZE) -> Connection[Cycle]:
        return await self._connection(
            graphql.TEAM_CYCLES,
            {"id": team_id, "first": first},
            ("team", "cycles"),
            Cycle.model_validate,
        )

    async def documents(
        self, *, filter: dict[str, Any] | None = None, first: int = DEFAULT_PAGE_SIZE
    ) -> Connection[Document]:
        variables: dict[str, Any] = {"filter": filter or {}, "first": first}
        return await self._connection(
            graphql.DOCUMENTS, variables, ("documents",), Document.model_validate
        )

    async def document(self, document_id: str) -> Document:
        data = await self.execute(graphql.DOCUMENT, {"id": document_id})
        if not data.get("document"):
            raise NotFoundError(f"document not found: {document_id}")
        return Document.model_validate(data["document"])

    async def notifications(self, *, first: int = DEFAULT_PAGE_SIZE) -> Connection[Notification]:
        return await self._connection(
            graphql.NOTIFICATIONS, {"first": first}, ("notifications",), Notification.from_api
        )

    # =========================================================================
    # Write operations
    # =========================================================================

    async def create_issue(self, data: dict[str, Any]) -> Issue:
        payload = await self._mutate(graphql.ISSUE_CREATE, {"input": data}, "issueCreate")
        return Issue.model_validate(payload["issue"])

    async def update_issue(self, issue_id: str, data: dict[str, Any]) -> Issue:
        payload = await self._mutate(
            graphql.ISSUE_UPDATE, {"id": issue_id, "input": data}, "issueUpdate"
        )
        return Issue.model_validate(payload["issue"])

    async def archive_issue(self, issue_id: str) -> None:
        await self._mutate(graphql.ISSUE_ARCHIVE, {"id": issue_id}, "issueArchive")

    async def create_comment(self, issue_id: str, body: str) -> Comment:
        payload = await self._mutate(
            graphql.COMMENT_CREATE,
            {"input": {"issueId": issue_id, "body": body}},
            "commentCreate",
        )
        return Comment.model_validate(payload["comment"])

    async def create_project(self, data: dict[str, Any]) -> Project:
        payload = await self._mutate(graphql.PROJECT_CREATE, {"input": data}, "projectCreate")
        return Project.model_validate(payload["project"])

    async def update_project(self, project_id: str, data: dict[str, Any]) -> Project:
        payload = await self._mutate(
            graphql.PROJECT_UPDATE, {"id": project_id, "input": data}, "projectUpdate"
        )
        return Project.model_validate(payload["project"])

    async def delete_project(self, project_id: str) -> None:
        await self._mutate(graphql.PROJECT_DELETE, {"id": project_id}, "projectDelete")

    async def create_project_milestone(self, data: dict[str, Any]) -> ProjectMilestone:
        payload = await self._mutate(
            graphql.PROJECT_MILESTONE_CREATE, {"input": data}, "projectMilestoneCreate"
        )
        return ProjectMilestone.model_validate(payload["projectMilestone"])

    async def create_project_update(self, data: dict[str, Any]) -> ProjectUpdate:
        payload = await self._mutate(
            graphql.PROJECT_UPDATE_CREATE, {"input": data}, "projectUpdateCreate"
        )
        return ProjectUpdate.model_validate(payload["projectUpdate"])

    async def create_initiative(self, data: dict[str, Any]) -> Initiative:
        payload = await self._mutate(graphql.INITIATIVE_CREATE, {"input": data}, "initiativeCreate")
        return Initiative.model_validate(payload["initiative"])

    async def update_initiative(self, initiative_id: str, data: dict[str, Any]) -> Initiative:
        payload = await self._mutate(
            graphql.INITIATIVE_UPDATE, {"id": initiative_id, "input": data}, "initiativeUpdate"
        )
        return Initiative.model_validate(payload["initiative"])

    async def create_document(self, data: dict[str, Any]) -> Document:
        payload = await self._mutate(graphql.DOCUMENT_CREATE, {"input": data}, "documentCreate")
        return Document.model_validate(payload["document"])

    # Notification mutations act on every notification attached to one issue.

    async def mark_notifications_read(self, issue_id: str, read_at: str) -> None:
        await self._mutate(
            graphql.NOTIFICATION_MARK_READ_ALL,
            {"input": {"issueId": issue_id}, "readAt": read_at},
            "notificationMarkReadAll",
        )

    async def archive_notifications(self, issue_id: str) -> None:
        await self._mutate(
            graphql.NOTIFICATION_ARCHIVE_ALL, {"input": {"issueId": issue_id}}, "notificationArchiveAll"
        )

    async def snooze_notifications(self, issue_id: str, until: str) -> None:
        await self._mutate(
            graphql.NOTIFICATION_SNOOZE_ALL,
            {"input": {"issueId": issue_id}, "snoozedUntilAt": until},
            "notificationSnoozeAll",
        )
