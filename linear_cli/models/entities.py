"""
Entity models returned by the Linear GraphQL API.

Only the fields the CLI reads are modelled; unknown fields are ignored.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LinearModel(BaseModel):
    """Base model: camelCase aliases, snake_case attributes, extra keys ignored."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


def _unwrap_nodes(value: Any) -> Any:
    # Nested connections arrive as {"nodes": [...]}; flatten them to a list.
    if isinstance(value, dict) and "nodes" in value:
        return value["nodes"]
    return value


class OrganizationRef(LinearModel):
    name: str
    url_key: str | None = Field(None, alias="urlKey")


class User(LinearModel):
    id: str
    name: str
    display_name: str | None = Field(None, alias="displayName")
    email: str | None = None
    admin: bool = False
    active: bool = True
    created_at: datetime | None = Field(None, alias="createdAt")
    organization: OrganizationRef | None = None


class TeamRef(LinearModel):
    id: str
    key: str
    name: str | None = None


class Team(LinearModel):
    id: str
    key: str
    name: str
    description: str | None = None
    issue_count: int = Field(0, alias="issueCount")
    cycles_enabled: bool = Field(False, alias="cyclesEnabled")
    created_at: datetime | None = Field(None, alias="createdAt")


class WorkflowState(LinearModel):
    id: str
    name: str
    type: str
    color: str | None = None
    position: float | None = None


class IssueLabel(LinearModel):
    id: str
    name: str
    color: str | None = None
    description: str | None = None


class ProjectRef(LinearModel):
    id: str
    name: str


class CycleRef(LinearModel):
    id: str
    number: int | None = None
    name: str | None = None


class Comment(LinearModel):
    id: str
    body: str
    url: str | None = None
    created_at: datetime | None = Field(None, alias="createdAt")
    user: User | None = None


class Issue(LinearModel):
    id: str
    identifier: str
    title: str
    description: str | None = None
    priority: int = 0
    url: str
    branch_name: str | None = Field(None, alias="branchName")
    due_date: str | None = Field(None, alias="dueDate")
    created_at: datetime | None = Field(None, alias="createdAt")
    updated_at: datetime | None = Field(None, alias="updatedAt")
    state: WorkflowState | None = None
    team: TeamRef | None = None
    assignee: User | None = None
    delegate: User | None = None
    project: ProjectRef | None = None
    cycle: CycleRef | None = None
    labels: list[IssueLabel] = Field(default_factory=list)
    comments: list[Comment] = Field(default_factory=list)

    @field_validator("labels", "comments", mode="before")
    @classmethod
    def flatten_nodes(cls, value: Any) -> Any:
        return _unwrap_nodes(value)


class Project(LinearModel):
    id: str
    name: str
    description: str | None = None
    state: str | None = None
    progress: float = 0.0
    url: str | None = None
    target_date: str | None = Field(None, alias="targetDate")
    start_date: str | None = Field(None, alias="startDate")
    created_at: datetime | None = Field(None, alias="createdAt")
    updated_at: datetime | None = Field(None, alias="updatedAt")
    lead: User | None = None
    teams: list[TeamRef] = Field(default_factory=list)

    @field_validator("teams", mode="before")
    @classmethod
    def flatten_nodes(cls, value: Any) -> Any:
        return _unwrap_nodes(value)


class AgentActivity(LinearModel):
    type: str
    body: str = ""
    ephemeral: bool = False
    created_at: datetime | None = Field(None, alias="createdAt")

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> AgentActivity:
        content = raw.get("content") or {}
        typename = str(content.get("__typename", ""))
        kind = typename.replace("AgentActivity", "").replace("Content", "").lower()
        return cls(
            type=kind or "unknown",
            body=str(content.get("body") or ""),
            ephemeral=bool(raw.get("ephemeral", False)),
            createdAt=raw.get("createdAt"),
        )


class AgentSession(LinearModel):
    """An agent session attached to an issue, flattened for display."""

    id: str
    status: str
    created_at: datetime | None = Field(None, alias="createdAt")
    issue_id: str | None = Field(None, alias="issueId")
    agent: str = "Unknown"
    summary: str | None = None
    external_url: str | None = Field(None, alias="externalUrl")
    activities: list[AgentActivity] = Field(default_factory=list)

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> AgentSession:
        activities_raw = _unwrap_nodes(raw.get("activities") or {"nodes": []}) or []
        activities = [AgentActivity.from_api(a) for a in activities_raw]
        summary = next((a.body for a in activities if a.type == "response"), None)
        links = raw.get("externalLinks") or raw.get("externalUrls") or []
        external_url = None
        if isinstance(links, list) and links and isinstance(links[0], dict):
            external_url = links[0].get("url")
        issue = raw.get("issue") or {}
        app_user = raw.get("appUser") or {}
        return cls(
            id=raw["id"],
            status=raw.get("status", "unknown"),
            createdAt=raw.get("createdAt"),
            issueId=issue.get("id"),
            agent=app_user.get("name") or "Unknown",
            summary=summary,
            externalUrl=external_url,
            activities=activities,
        )


class ProjectStatus(LinearModel):
    id: str
    name: str
    type: str


class ProjectLabel(LinearModel):
    id: str
    name: str
    color: str | None = None
    description: str | None = None
    is_group: bool = Field(False, alias="isGroup")


class ProjectMilestone(LinearModel):
    id: str
    name: str
    description: str | None = None
    status: str | None = None
    progress: float = 0.0
    target_date: str | None = Field(None, alias="targetDate")


class ProjectUpdate(LinearModel):
    id: str
    body: str | None = None
    health: str | None = None
    url: str | None = None
    created_at: datetime | None = Field(None, alias="createdAt")


class Initiative(LinearModel):
    id: str
    name: str
    description: str | None = None
    status: str = "Planned"
    health: str | None = None
    url: str | None = None
    target_date: str | None = Field(None, alias="targetDate")
    created_at: datetime | None = Field(None, alias="createdAt")
    updated_at: datetime | None = Field(None, alias="updatedAt")
    owner: User | None = None
    creator: User | None = None
    projects: list[ProjectRef] = Field(default_factory=list)

    @field_validator("projects", mode="before")
    @classmethod
    def flatten_nodes(cls, value: Any) -> Any:
        return _unwrap_nodes(value)


class Cycle(LinearModel):
    id: str
    number: int
    name: str | None = None
    starts_at: datetime | None = Field(None, alias="startsAt")
    ends_at: datetime | None = Field(None, alias="endsAt")
    progress: float = 0.0

    @property
    def display_name(self) -> str:
        return self.name or f"Sprint {self.number}"


class Document(LinearModel):
    id: str
    title: str
    content: str | None = None
    slug_id: str | None = Field(None, alias="slugId")
    url: str | None = None
    created_at: datetime | None = Field(None, alias="createdAt")
    updated_at: datetime | None = Field(None, alias="updatedAt")
    creator: User | None = None
    project: ProjectRef | None = None


class IssueRef(LinearModel):
    id: str
    identifier: str
    title: str


class Notification(LinearModel):
    """An inbox notification; issue and comment are only set for issue notifications."""

    id: str
    type: str
    read_at: datetime | None = Field(None, alias="readAt")
    created_at: datetime | None = Field(None, alias="createdAt")
    actor: User | None = None
    issue: IssueRef | None = None
    comment_body: str | None = Field(None, alias="commentBody")

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> Notification:
        comment = raw.get("comment") or {}
        return cls.model_validate({**raw, "commentBody": comment.get("body")})
