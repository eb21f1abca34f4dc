"""
Linear data models.

Entity models and pagination primitives are available from this module.
"""

from __future__ import annotations

from .entities import (
    AgentActivity,
    AgentSession,
    Comment,
    Cycle,
    CycleRef,
    Document,
    Initiative,
    Issue,
    IssueLabel,
    IssueRef,
    LinearModel,
    Notification,
    OrganizationRef,
    Project,
    ProjectLabel,
    ProjectMilestone,
    ProjectRef,
    ProjectStatus,
    ProjectUpdate,
    Team,
    TeamRef,
    User,
    WorkflowState,
)
from .pagination import Connection, PageInfo, drain

__all__ = [
    "AgentActivity",
    "AgentSession",
    "Comment",
    "Connection",
    "Cycle",
    "CycleRef",
    "Document",
    "Initiative",
    "Issue",
    "IssueLabel",
    "IssueRef",
    "LinearModel",
    "Notification",
    "OrganizationRef",
    "PageInfo",
    "Project",
    "ProjectLabel",
    "ProjectMilestone",
    "ProjectRef",
    "ProjectStatus",
    "ProjectUpdate",
    "Team",
    "TeamRef",
    "User",
    "WorkflowState",
    "drain",
]
