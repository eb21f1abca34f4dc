from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import date
from typing import Any, Literal, TypeVar

from linear_cli.exceptions import LinearError
from linear_cli.models.entities import AgentSession, Issue, WorkflowState
from linear_cli.models.pagination import drain

from ..click_compat import RichCommand, click
from ..context import CLIContext, CommandContext, normalize_exception
from ..decorators import confirm_destructive, yes_option
from ..errors import CLIError
from ..groups import LinearGroup
from ..options import output_options, team_option
from ..progress import ProgressManager
from ..render import DetailData, DetailField, Message, Renderable, TableData, TextBlock
from ..resolve import (
    ISSUE_IDENTIFIER_RE,
    check_date,
    priority_name,
    read_stdin,
    resolve_issue,
    resolve_cycle,
    resolve_label,
    resolve_priority,
    resolve_project_entity,
    resolve_state,
    resolve_team_id,
    resolve_user_entity,
)
from ..results import MutationResult, build_mutation_result
from ..runner import CommandOutput, mutation_output, run_command
from ..time_utils import compact_time, date_with_age, relative_time
from ..watch import (
    DEFAULT_INTERVAL,
    WatchParams,
    exit_code_for_outcome,
    issue_agent_sessions,
    latest_session,
    outcome_payload,
    outcome_views,
    watch_session,
)

T = TypeVar("T")

DEFAULT_ACTIVE_STATES: tuple[str, ...] = ("triage", "backlog", "unstarted", "started")
ISSUE_SORTS: tuple[str, ...] = ("updated", "created", "priority")


@click.group(name="issue", cls=LinearGroup)
def issue_group() -> None:
    """Issue commands."""


async def _optional(value: str | None, resolver: Callable[[str], Awaitable[T]]) -> T | None:
    if not value:
        return None
    return await resolver(value)


async def _resolve_labels(cmd: CommandContext, team_id: str, names: tuple[str, ...]) -> list[str]:
    return list(await asyncio.gather(*(resolve_label(cmd.client, team_id, n) for n in names)))


def _issue_team_id(issue: Issue) -> str:
    if issue.team is None:
        raise CLIError(f"cannot determine team for issue {issue.identifier}")
    return issue.team.id


def priority_indicator(priority: int | None) -> str:
    return {1: "!!!", 2: "!!", 3: "!"}.get(priority or 0, "---")


# =============================================================================
# list
# =============================================================================


@dataclass(frozen=True, slots=True)
class IssueListParams:
    state_types: tuple[str, ...] | None = DEFAULT_ACTIVE_STATES
    assignee: str | None = None
    unassigned: bool = False
    labels: tuple[str, ...] = ()
    project: str | None = None
    priority: int | None = None
    due: str | None = None
    overdue: bool = False
    cycle: str | None = None
    sort: Literal["updated", "created", "priority"] = "updated"
    limit: int = 50

    def __post_init__(self) -> None:
        check_date(self.due, "--due")
        if self.cycle is not None and not (
            self.cycle.lower() in ("current", "next") or self.cycle.isdigit()
        ):
            raise CLIError(
                f'invalid cycle "{self.cycle}"',
                error_type="validation_error",
                hint="--cycle current, --cycle next, or --cycle <number>",
            )
        if self.limit < 1:
            raise CLIError(
                f"invalid limit {self.limit}",
                error_type="validation_error",
                hint="--limit must be at least 1",
            )

    @classmethod
    def from_options(
        cls,
        *,
        states: tuple[str, ...],
        include_completed: bool,
        assignee: str | None,
        mine: bool,
        unassigned: bool,
        labels: tuple[str, ...],
        project: str | None,
        priority: str | None,
        due: str | None,
        overdue: bool,
        sort: str,
        limit: int,
        cycle: str | None = None,
    ) -> IssueListParams:
        state_types: tuple[str, ...] | None
        if states:
            state_types = tuple(s.lower() for s in states)
        elif include_completed:
            state_types = None
        else:
            state_types = DEFAULT_ACTIVE_STATES
        return cls(
            state_types=state_types,
            assignee=assignee or ("me" if mine else None),
            unassigned=unassigned,
            labels=labels,
            project=project,
            priority=resolve_priority(priority) if priority is not None else None,
            due=due,
            overdue=overdue,
            cycle=cycle,
            sort=sort,  # type: ignore[arg-type]
            limit=limit,
        )


def build_issue_filter(
    team_key: str,
    params: IssueListParams,
    *,
    user_id: str | None = None,
    label_ids: list[str] | None = None,
    project_id: str | None = None,
    cycle_id: str | None = None,
    today: date | None = None,
) -> dict[str, Any]:
    """Translate list options into a Linear `IssueFilter`."""
    issue_filter: dict[str, Any] = {"team": {"key": {"eq": team_key}}}
    if params.state_types:
        issue_filter["state"] = {"type": {"in": list(params.state_types)}}
    if user_id:
        issue_filter["assignee"] = {"id": {"eq": user_id}}
    elif params.unassigned:
        issue_filter["assignee"] = {"null": True}
    if label_ids:
        issue_filter["labels"] = {"id": {"in": label_ids}}
    if project_id:
        issue_filter["project"] = {"id": {"eq": project_id}}
    if cycle_id:
        issue_filter["cycle"] = {"id": {"eq": cycle_id}}
    if params.priority is not None:
        issue_filter["priority"] = {"eq": params.priority}
    due: dict[str, str] = {}
    if params.due:
        due["lte"] = params.due
    if params.overdue:
        due["lt"] = (today or date.today()).isoformat()
    if due:
        issue_filter["dueDate"] = due
    return issue_filter


def _priority_sort_key(issue: Issue) -> int:
    # 0 means "no priority" and sorts after Low (4).
    return issue.priority if issue.priority else 5


def _list_views(cmd: CommandContext, issues: list[Issue]) -> list[Renderable]:
    has_delegate = any(i.delegate is not None for i in issues)
    table = cmd.format == "table"
    headers = ["◌" if table else "Priority", "ID", "State", "Assignee"]
    if has_delegate:
        headers.append("Delegate")
    headers += ["Title", "Updated"]

    rows: list[list[str]] = []
    for issue in issues:
        row = [
            priority_indicator(issue.priority) if table else priority_name(issue.priority),
            issue.identifier,
            issue.state.name if issue.state else "-",
            issue.assignee.name if issue.assignee else "-",
        ]
        if has_delegate:
            row.append(issue.delegate.name if issue.delegate else "-")
        row.append(issue.title)
        row.append(relative_time(issue.updated_at) if table else compact_time(issue.updated_at))
        rows.append(row)
    return [TableData(headers=headers, rows=rows)]


@issue_group.command(name="list", cls=RichCommand)
@click.option("-s", "--state", "states", multiple=True, help="State type filter (repeatable).")
@click.option("--include-completed", is_flag=True, help="Include completed/canceled issues.")
@click.option("-a", "--assignee", type=str, default=None, help="Filter by assignee (or 'me').")
@click.option("--mine", is_flag=True, hidden=True, help="Shorthand for --assignee me.")
@click.option("-U", "--unassigned", is_flag=True, help="Show only unassigned issues.")
@click.option("-l", "--label", "labels", multiple=True, help="Filter by label (repeatable).")
@click.option("-p", "--project", type=str, default=None, help="Filter by project.")
@click.option("--priority", type=str, default=None, help="urgent, high, medium, low, none (or 0-4).")
@click.option("--due", type=str, default=None, help="Due on or before date (YYYY-MM-DD).")
@click.option("--overdue", is_flag=True, help="Only issues past their due date.")
@click.option("--cycle", type=str, default=None, help="Filter by cycle: current, next, or a number.")
@click.option(
    "--sort",
    type=click.Choice(ISSUE_SORTS),
    default="updated",
    show_default=True,
)
@click.option("--limit", type=int, default=50, show_default=True, help="Max results.")
@team_option
@output_options
@click.pass_obj
def issue_list(
    ctx: CLIContext,
    *,
    states: tuple[str, ...],
    include_completed: bool,
    assignee: str | None,
    mine: bool,
    unassigned: bool,
    labels: tuple[str, ...],
    project: str | None,
    priority: str | None,
    due: str | None,
    overdue: bool,
    cycle: str | None,
    sort: str,
    limit: int,
) -> None:
    """
    List a team's issues.

    Active states (triage, backlog, unstarted, started) are shown unless `--state`
    or `--include-completed` is given.

    Examples:

    - `linear issue list --team POL --assignee me`
    - `linear issue list --team POL --priority urgent --label bug`
    - `linear issue list --team POL --cycle current`
    """
    params = IssueListParams.from_options(
        states=states,
        include_completed=include_completed,
        assignee=assignee,
        mine=mine,
        unassigned=unassigned,
        labels=labels,
        project=project,
        priority=priority,
        due=due,
        overdue=overdue,
        sort=sort,
        limit=limit,
        cycle=cycle,
    )

    async def fn(cmd: CommandContext) -> CommandOutput:
        team_key = cmd.team_key or ""
        client = cmd.client
        needs_team_id = bool(params.labels or params.cycle)

        user, team_id, project_entity = await asyncio.gather(
            _optional(params.assignee, lambda n: resolve_user_entity(client, n)),
            _optional(team_key if needs_team_id else None, lambda k: resolve_team_id(client, k)),
            _optional(params.project, lambda n: resolve_project_entity(client, n)),
        )
        label_ids = (
            await _resolve_labels(cmd, team_id, params.labels) if params.labels and team_id else None
        )
        cycle_entity = (
            await resolve_cycle(client, team_id, params.cycle, team_key)
            if params.cycle and team_id
            else None
        )

        issue_filter = build_issue_filter(
            team_key,
            params,
            user_id=user.id if user else None,
            label_ids=label_ids,
            project_id=project_entity.id if project_entity else None,
            cycle_id=cycle_entity.id if cycle_entity else None,
        )
        order_by = "createdAt" if params.sort == "created" else "updatedAt"
        with ProgressManager("Fetching issues...", enabled=cmd.show_progress):
            connection = await client.issues(filter=issue_filter, first=params.limit, order_by=order_by)
        issues = list(connection.nodes)
        if params.sort == "priority":
            issues.sort(key=_priority_sort_key)

        payload = [
            {
                "identifier": i.identifier,
                "title": i.title,
                "priority": i.priority,
                "state": i.state.name if i.state else "-",
                "assignee": i.assignee.name if i.assignee else "-",
                "delegate": i.delegate.name if i.delegate else None,
                "updatedAt": i.updated_at,
                "url": i.url,
            }
            for i in issues
        ]

        if not issues:
            if user is not None:
                via_me = ' (resolved from "me")' if params.assignee == "me" else ""
                message = f'No issues found for assignee "{user.name}"{via_me} in team {team_key}'
            else:
                message = f"No issues found in team {team_key}"
            return CommandOutput(data=payload, views=[Message(message)])

        return CommandOutput(data=payload, views=_list_views(cmd, issues))

    run_command(ctx, command="issue list", fn=fn, require_team=True)


# =============================================================================
# view / branch
# =============================================================================


def _session_payload(session: AgentSession, *, with_activities: bool) -> dict[str, Any]:
    return {
        "agent": session.agent,
        "status": session.status,
        "createdAt": session.created_at,
        "summary": session.summary,
        "externalUrl": session.external_url,
        "activities": (
            [a.model_dump(by_alias=True, mode="json") for a in session.activities]
            if with_activities
            else None
        ),
    }


_SESSION_STATUS_LABELS = {"awaitingInput": "needs input"}


def _session_views(sessions: list[AgentSession], *, with_activities: bool) -> list[Renderable]:
    views: list[Renderable] = [TextBlock(f"\nAgent Sessions ({len(sessions)}):")]
    for session in sessions:
        status = _SESSION_STATUS_LABELS.get(session.status, session.status)
        views.append(
            TextBlock(f"\n{session.agent} · {status} · {relative_time(session.created_at)}")
        )
        if session.summary:
            views.append(TextBlock(session.summary, markdown=True))
        if session.external_url:
            views.append(TextBlock(f"  View task → {session.external_url}"))
        if with_activities and session.activities:
            views.append(TextBlock("  Activities:"))
            for activity in session.activities:
                body = activity.body if len(activity.body) <= 120 else activity.body[:117] + "..."
                views.append(TextBlock(f"    [{activity.type}] {body}"))
    return views


def _issue_view_output(
    cmd: CommandContext,
    issue: Issue,
    sessions: list[AgentSession],
    *,
    with_activities: bool,
) -> CommandOutput:
    labels = [label.name for label in issue.labels]
    payload = {
        "id": issue.identifier,
        "title": issue.title,
        "state": issue.state.name if issue.state else "-",
        "priority": priority_name(issue.priority),
        "assignee": issue.assignee.name if issue.assignee else None,
        "delegate": issue.delegate.name if issue.delegate else None,
        "labels": labels,
        "project": issue.project.name if issue.project else None,
        "cycle": issue.cycle.name if issue.cycle else None,
        "createdAt": issue.created_at,
        "updatedAt": issue.updated_at,
        "url": issue.url,
        "branchName": issue.branch_name,
        "description": issue.description,
        "comments": [
            {
                "author": c.user.name if c.user else "Unknown",
                "body": c.body,
                "createdAt": c.created_at,
            }
            for c in issue.comments
        ],
        "agentSessions": [_session_payload(s, with_activities=with_activities) for s in sessions],
    }
    labels_text = ", ".join(labels) if labels else "-"

    if cmd.format == "compact":
        detail = DetailData(
            title=issue.identifier,
            fields=[
                DetailField("id", issue.identifier),
                DetailField("title", issue.title),
                DetailField("state", payload["state"]),
                DetailField("priority", payload["priority"]),
                DetailField("assignee", payload["assignee"] or "-"),
                DetailField("delegate", payload["delegate"] or "-"),
                DetailField("labels", labels_text),
                DetailField("project", payload["project"] or "-"),
                DetailField("cycle", payload["cycle"] or "-"),
                DetailField("created", issue.created_at.isoformat() if issue.created_at else "-"),
                DetailField("updated", issue.updated_at.isoformat() if issue.updated_at else "-"),
                DetailField("url", issue.url),
                DetailField("branch", issue.branch_name or "-"),
                DetailField("description", issue.description or "-"),
            ],
        )
        views: list[Renderable] = [detail]
        for session in sessions:
            summary = (session.summary or "-").replace("\n", " ")[:200]
            views.append(
                Message(
                    f"agent_session\t{session.agent}\t{session.status}\t{summary}"
                    f"\t{session.external_url or '-'}"
                )
            )
        return CommandOutput(data=payload, views=views)

    views = [
        DetailData(
            title=f"{issue.identifier}: {issue.title}",
            fields=[
                DetailField("State", payload["state"]),
                DetailField("Priority", payload["priority"]),
                DetailField("Assignee", payload["assignee"] or "-"),
                DetailField("Delegate", payload["delegate"] or "-"),
                DetailField("Labels", labels_text),
                DetailField("Project", payload["project"] or "-"),
                DetailField("Cycle", payload["cycle"] or "-"),
                DetailField("Created", date_with_age(issue.created_at)),
                DetailField("Updated", date_with_age(issue.updated_at)),
                DetailField("URL", issue.url),
                DetailField("Branch", issue.branch_name or "-"),
            ],
        )
    ]
    if issue.description:
        views += [TextBlock("\nDescription:"), TextBlock(issue.description, markdown=True)]
    if issue.comments:
        views.append(TextBlock(f"\nComments ({len(issue.comments)}):"))
        for comment in issue.comments:
            author = comment.user.name if comment.user else "Unknown"
            views.append(TextBlock(f"\n{author} ({relative_time(comment.created_at)}):"))
            views.append(TextBlock(comment.body, markdown=True))
    if sessions:
        views += _session_views(sessions, with_activities=with_activities)
    return CommandOutput(data=payload, views=views)


@issue_group.command(name="view", cls=RichCommand)
@click.argument("issue_id")
@click.option("--activities", is_flag=True, help="Show the full agent activity log.")
@team_option
@output_options
@click.pass_obj
def issue_view(ctx: CLIContext, issue_id: str, *, activities: bool) -> None:
    """View issue details, comments and agent sessions."""

    async def fn(cmd: CommandContext) -> CommandOutput:
        summary = await resolve_issue(cmd.client, issue_id, cmd.team_key)
        # The identifier lookup returns list fields only; fetch comments by id.
        issue, sessions = await asyncio.gather(
            cmd.client.issue(summary.id),
            issue_agent_sessions(cmd.client, summary.id),
        )
        return _issue_view_output(cmd, issue, sessions, with_activities=activities)

    run_command(ctx, command="issue view", fn=fn)


@issue_group.command(name="branch", cls=RichCommand)
@click.argument("issue_id")
@team_option
@output_options
@click.pass_obj
def issue_branch(ctx: CLIContext, issue_id: str) -> None:
    """Print the git branch name for an issue."""

    async def fn(cmd: CommandContext) -> CommandOutput:
        issue = await resolve_issue(cmd.client, issue_id, cmd.team_key)
        return CommandOutput(
            data={"branchName": issue.branch_name},
            views=[Message(issue.branch_name or "-")],
        )

    run_command(ctx, command="issue branch", fn=fn)


# =============================================================================
# create / update
# =============================================================================


@dataclass(frozen=True, slots=True)
class IssueCreateParams:
    title: str
    description: str | None = None
    assignee: str | None = None
    state: str | None = None
    priority: int | None = None
    labels: tuple[str, ...] = ()
    project: str | None = None
    parent: str | None = None

    def __post_init__(self) -> None:
        if not self.title.strip():
            raise CLIError(
                "issue title cannot be empty",
                error_type="validation_error",
                hint="--title 'Login crash'",
            )


@issue_group.command(name="create", cls=RichCommand)
@click.option("--title", required=True, help="Issue title.")
@click.option("-d", "--description", type=str, default=None, help="Description (or pipe via stdin).")
@click.option("-a", "--assignee", type=str, default=None, help="Assignee name or 'me'.")
@click.option("-s", "--state", type=str, default=None, help="Initial state name.")
@click.option("--priority", type=str, default=None, help="urgent, high, medium, low, none (or 0-4).")
@click.option("-l", "--label", "labels", multiple=True, help="Label name (repeatable).")
@click.option("-p", "--project", type=str, default=None, help="Project name.")
@click.option("--parent", type=str, default=None, help="Parent issue identifier.")
@team_option
@output_options
@click.pass_obj
def issue_create(
    ctx: CLIContext,
    *,
    title: str,
    description: str | None,
    assignee: str | None,
    state: str | None,
    priority: str | None,
    labels: tuple[str, ...],
    project: str | None,
    parent: str | None,
) -> None:
    """
    Create an issue in the current team.

    Example: `linear issue create --team POL --title 'Login crash' --priority urgent --label bug`
    """
    params = IssueCreateParams(
        title=title,
        description=description if description is not None else read_stdin(),
        assignee=assignee,
        state=state,
        priority=resolve_priority(priority) if priority is not None else None,
        labels=labels,
        project=project,
        parent=parent,
    )

    async def fn(cmd: CommandContext) -> CommandOutput:
        client = cmd.client
        team_key = cmd.team_key or ""
        team_id = await resolve_team_id(client, team_key)

        assignee_user, state_id, label_ids, project_entity, parent_issue = await asyncio.gather(
            _optional(params.assignee, lambda n: resolve_user_entity(client, n)),
            _optional(params.state, lambda n: resolve_state(client, team_id, n)),
            _resolve_labels(cmd, team_id, params.labels),
            _optional(params.project, lambda n: resolve_project_entity(client, n)),
            _optional(params.parent, lambda i: resolve_issue(client, i, team_key)),
        )

        data: dict[str, Any] = {"teamId": team_id, "title": params.title}
        if params.description:
            data["description"] = params.description
        if params.priority is not None:
            data["priority"] = params.priority
        if assignee_user is not None:
            data["assigneeId"] = assignee_user.id
        if state_id:
            data["stateId"] = state_id
        if label_ids:
            data["labelIds"] = label_ids
        if project_entity is not None:
            data["projectId"] = project_entity.id
        if parent_issue is not None:
            data["parentId"] = parent_issue.id

        issue = await client.create_issue(data)
        result = build_mutation_result(
            entity="issue",
            action="create",
            id=issue.identifier,
            status="success",
            url=issue.url,
            metadata={"title": issue.title},
        )
        return mutation_output(result, hints=[f"  assign: linear issue assign {issue.identifier}"])

    run_command(ctx, command="issue create", fn=fn, require_team=True)


@dataclass(frozen=True, slots=True)
class IssueUpdateParams:
    title: str | None = None
    description: str | None = None
    assignee: str | None = None  # "" unassigns
    state: str | None = None
    priority: int | None = None
    labels: tuple[str, ...] = ()
    add_labels: tuple[str, ...] = ()
    remove_labels: tuple[str, ...] = ()
    project: str | None = None
    parent: str | None = None

    def __post_init__(self) -> None:
        if self.labels and (self.add_labels or self.remove_labels):
            raise CLIError(
                "--label cannot be combined with --add-label/--remove-label",
                error_type="validation_error",
                hint="use --label to replace all labels, or --add-label/--remove-label to edit",
            )
        if not self.has_changes:
            raise CLIError(
                "nothing to update",
                error_type="validation_error",
                hint="issue update POL-5 --title, --state, --priority, --assignee, --label, ...",
            )

    @property
    def has_changes(self) -> bool:
        return any(
            value is not None and value != ()
            for value in (
                self.title,
                self.description,
                self.assignee,
                self.state,
                self.priority,
                self.labels,
                self.add_labels,
                self.remove_labels,
                self.project,
                self.parent,
            )
        )


def merge_label_ids(current: list[str], add: list[str], remove: list[str]) -> list[str]:
    ids = list(dict.fromkeys([*current, *add]))
    return [i for i in ids if i not in set(remove)]


@issue_group.command(name="update", cls=RichCommand)
@click.argument("issue_id")
@click.option("--title", type=str, default=None, help="New title.")
@click.option("-d", "--description", type=str, default=None, help="New description (or pipe via stdin).")
@click.option("-a", "--assignee", type=str, default=None, help="New assignee ('' to unassign).")
@click.option("-s", "--state", type=str, default=None, help="New state name.")
@click.option("--priority", type=str, default=None, help="urgent, high, medium, low, none (or 0-4).")
@click.option("-l", "--label", "labels", multiple=True, help="Replace all labels (repeatable).")
@click.option("--add-label", "add_labels", multiple=True, help="Add a label (repeatable).")
@click.option("--remove-label", "remove_labels", multiple=True, help="Remove a label (repeatable).")
@click.option("-p", "--project", type=str, default=None, help="Move to project.")
@click.option("--parent", type=str, default=None, help="Set parent issue.")
@team_option
@output_options
@click.pass_obj
def issue_update(
    ctx: CLIContext,
    issue_id: str,
    *,
    title: str | None,
    description: str | None,
    assignee: str | None,
    state: str | None,
    priority: str | None,
    labels: tuple[str, ...],
    add_labels: tuple[str, ...],
    remove_labels: tuple[str, ...],
    project: str | None,
    parent: str | None,
) -> None:
    """Update an issue's fields."""
    params = IssueUpdateParams(
        title=title,
        description=description if description is not None else read_stdin(),
        assignee=assignee,
        state=state,
        priority=resolve_priority(priority) if priority is not None else None,
        labels=labels,
        add_labels=add_labels,
        remove_labels=remove_labels,
        project=project,
        parent=parent,
    )

    async def fn(cmd: CommandContext) -> CommandOutput:
        client = cmd.client
        issue = await resolve_issue(client, issue_id, cmd.team_key)
        needs_team = params.state or params.labels or params.add_labels or params.remove_labels
        team_id = _issue_team_id(issue) if needs_team else ""

        assignee_user, state_id, label_ids, add_ids, remove_ids, project_entity, parent_issue = (
            await asyncio.gather(
                _optional(params.assignee, lambda n: resolve_user_entity(client, n)),
                _optional(params.state, lambda n: resolve_state(client, team_id, n)),
                _resolve_labels(cmd, team_id, params.labels),
                _resolve_labels(cmd, team_id, params.add_labels),
                _resolve_labels(cmd, team_id, params.remove_labels),
                _optional(params.project, lambda n: resolve_project_entity(client, n)),
                _optional(params.parent, lambda i: resolve_issue(client, i, cmd.team_key)),
            )
        )

        data: dict[str, Any] = {}
        if params.title:
            data["title"] = params.title
        if params.description is not None:
            data["description"] = params.description
        if params.priority is not None:
            data["priority"] = params.priority
        if params.assignee is not None:
            data["assigneeId"] = assignee_user.id if assignee_user is not None else None
        if state_id:
            data["stateId"] = state_id
        if label_ids:
            data["labelIds"] = label_ids
        elif add_ids or remove_ids:
            current = [label.id for label in issue.labels]
            data["labelIds"] = merge_label_ids(current, add_ids, remove_ids)
        if project_entity is not None:
            data["projectId"] = project_entity.id
        if parent_issue is not None:
            data["parentId"] = parent_issue.id

        updated = await client.update_issue(issue.id, data)
        result = build_mutation_result(
            entity="issue",
            action="update",
            id=updated.identifier,
            status="success",
            url=updated.url,
            metadata={
                "title": updated.title,
                "state": updated.state.name if updated.state else "-",
                "priority": priority_name(updated.priority),
                "assignee": updated.assignee.name if updated.assignee else None,
                "delegate": updated.delegate.name if updated.delegate else None,
            },
        )
        return mutation_output(result)

    run_command(ctx, command="issue update", fn=fn)


# =============================================================================
# delete / close / reopen / start / assign
# =============================================================================


@issue_group.command(name="delete", cls=RichCommand)
@click.argument("issue_ids", nargs=-1, required=True)
@yes_option
@team_option
@output_options
@click.pass_obj
def issue_delete(ctx: CLIContext, issue_ids: tuple[str, ...], *, yes: bool) -> None:
    """Delete (archive) one or more issues."""

    async def fn(cmd: CommandContext) -> CommandOutput:
        issues = list(
            await asyncio.gather(*(resolve_issue(cmd.client, i, cmd.team_key) for i in issue_ids))
        )
        if len(issues) == 1:
            label = f'{issues[0].identifier} "{issues[0].title}"'
        else:
            label = f"{len(issues)} issues ({', '.join(i.identifier for i in issues)})"
        confirmed = confirm_destructive(
            f"Delete {label}?",
            yes=yes,
            no_input=cmd.no_input,
            retry=f"linear issue delete {' '.join(issue_ids)}",
        )
        if not confirmed:
            return CommandOutput(data={"ok": False, "canceled": True}, views=[Message("Canceled")])

        archived: list[Issue] = []
        for i in issues:
            try:
                await cmd.client.archive_issue(i.id)
            except LinearError as exc:
                error = normalize_exception(exc)
                done = [a.identifier for a in archived]
                raise CLIError(
                    f"failed to delete {i.identifier}: {error.message}",
                    error_type=error.error_type,
                    hint=f"already deleted: {', '.join(done)}" if done else error.hint,
                    details={"deleted": done},
                ) from exc
            archived.append(i)

        results = [
            build_mutation_result(
                entity="issue",
                action="delete",
                id=i.identifier,
                status="success",
                url=i.url,
                metadata={"title": i.title},
            )
            for i in issues
        ]
        return mutation_output(results)

    run_command(ctx, command="issue delete", fn=fn)


TransitionAction = Literal["close", "reopen", "start"]

_TRANSITION_STATE_TYPES: dict[str, str] = {
    "close": "completed",
    "reopen": "unstarted",
    "start": "started",
}

_TRANSITION_HINTS: dict[str, str] = {
    "reopen": "  assign: linear issue assign {id}",
    "start": "  close when done: linear issue close {id}",
}


async def transition_issues(
    cmd: CommandContext, issue_ids: tuple[str, ...], action: TransitionAction
) -> CommandOutput:
    """
    Move issues to their team's first workflow state of one type.

    Targets are processed one at a time; the target state is looked up once per team.
    """
    state_type = _TRANSITION_STATE_TYPES[action]
    states_by_team: dict[str, WorkflowState] = {}
    results: list[MutationResult] = []
    hints: list[str] = []

    for issue_id in issue_ids:
        issue = await resolve_issue(cmd.client, issue_id, cmd.team_key)
        team_id = _issue_team_id(issue)
        target = states_by_team.get(team_id)
        if target is None:
            states = await drain(await cmd.client.team_states(team_id))
            target = next((s for s in states if s.type == state_type), None)
            if target is None:
                raise CLIError(
                    f"no {state_type} state found for team",
                    hint="check team workflow settings in Linear",
                )
            states_by_team[team_id] = target

        await cmd.client.update_issue(issue.id, {"stateId": target.id})
        results.append(
            build_mutation_result(
                entity="issue",
                action=action,
                id=issue.identifier,
                status="success",
                url=issue.url,
                metadata={"state": target.name},
            )
        )
        if action in _TRANSITION_HINTS:
            hints.append(_TRANSITION_HINTS[action].format(id=issue.identifier))

    return mutation_output(results, hints=hints)


def _transition_command(action: TransitionAction, summary: str) -> click.Command:
    @issue_group.command(name=action, cls=RichCommand, help=summary)
    @click.argument("issue_ids", nargs=-1, required=True)
    @team_option
    @output_options
    @click.pass_obj
    def command(ctx: CLIContext, issue_ids: tuple[str, ...]) -> None:
        async def fn(cmd: CommandContext) -> CommandOutput:
            return await transition_issues(cmd, issue_ids, action)

        run_command(ctx, command=f"issue {action}", fn=fn)

    return command


issue_close = _transition_command("close", "Close issues (move to the team's completed state).")
issue_reopen = _transition_command("reopen", "Reopen issues (move to the team's unstarted state).")
issue_start = _transition_command("start", "Start issues (move to the team's started state).")


def split_assign_targets(
    targets: tuple[str, ...], user: str | None
) -> tuple[list[str], str]:
    """
    Separate issue ids from a trailing assignee name.

    `assign POL-1 POL-2 "Jane"` treats the last argument as the assignee when it is
    not an issue identifier and no `--user` is given. The assignee defaults to "me".
    """
    ids = list(targets)
    if user is None and len(ids) > 1 and not ISSUE_IDENTIFIER_RE.match(ids[-1]):
        user = ids.pop()
    if not ids:
        raise CLIError(
            "at least one issue id is required",
            error_type="validation_error",
            hint="issue assign POL-1 [POL-2 ...] [--user <name>]",
        )
    return ids, user or "me"


@issue_group.command(name="assign", cls=RichCommand)
@click.argument("targets", nargs=-1, required=True)
@click.option("-u", "--user", type=str, default=None, help="Assignee (defaults to me).")
@team_option
@output_options
@click.pass_obj
def issue_assign(ctx: CLIContext, targets: tuple[str, ...], *, user: str | None) -> None:
    """
    Assign issues to a user (defaults to me).

    Examples:

    - `linear issue assign POL-5`
    - `linear issue assign POL-1 POL-2 'Jane Smith'`
    """
    issue_ids, assignee = split_assign_targets(targets, user)

    async def fn(cmd: CommandContext) -> CommandOutput:
        assignee_user, *issues = await asyncio.gather(
            resolve_user_entity(cmd.client, assignee),
            *(resolve_issue(cmd.client, i, cmd.team_key) for i in issue_ids),
        )
        await asyncio.gather(
            *(cmd.client.update_issue(i.id, {"assigneeId": assignee_user.id}) for i in issues)
        )
        results = [
            build_mutation_result(
                entity="issue",
                action="assign",
                id=i.identifier,
                status="success",
                url=i.url,
                metadata={"assignee": assignee_user.name},
            )
            for i in issues
        ]
        hints = [f"  start: linear issue start {i.identifier}" for i in issues]
        return mutation_output(results, hints=hints)

    run_command(ctx, command="issue assign", fn=fn)


# =============================================================================
# comment / watch
# =============================================================================


@issue_group.command(name="comment", cls=RichCommand)
@click.argument("issue_id")
@click.argument("body_arg", metavar="[BODY]", required=False)
@click.option("--body", type=str, default=None, help="Comment text (alternative to BODY).")
@team_option
@output_options
@click.pass_obj
def issue_comment(ctx: CLIContext, issue_id: str, body_arg: str | None, *, body: str | None) -> None:
    """Add a comment to an issue. The body may also be piped via stdin."""
    text = body_arg or body or read_stdin()
    if not text:
        raise CLIError(
            "comment body required",
            error_type="validation_error",
            hint=f'issue comment {issue_id} "your comment" (or --body or pipe via stdin)',
        )

    async def fn(cmd: CommandContext) -> CommandOutput:
        issue = await resolve_issue(cmd.client, issue_id, cmd.team_key)
        comment = await cmd.client.create_comment(issue.id, text)
        result = build_mutation_result(
            entity="issue",
            action="comment",
            id=issue.identifier,
            status="success",
            url=comment.url or issue.url,
            metadata={"commentId": comment.id},
        )
        return mutation_output(result)

    run_command(ctx, command="issue comment", fn=fn)


@issue_group.command(name="watch", cls=RichCommand)
@click.argument("issue_id")
@click.option(
    "--interval",
    type=float,
    default=DEFAULT_INTERVAL,
    show_default=True,
    help="Poll interval in seconds.",
)
@click.option(
    "--timeout",
    "watch_timeout",
    type=float,
    default=0,
    show_default=True,
    help="Give up after this many seconds (0 = no limit).",
)
@team_option
@output_options
@click.pass_obj
def issue_watch(
    ctx: CLIContext, issue_id: str, *, interval: float, watch_timeout: float
) -> None:
    """
    Watch an issue until its latest agent session finishes.

    Exit codes: 0 complete, 1 error, 2 awaiting input, 124 timeout.
    """
    params = WatchParams(interval=interval, timeout=watch_timeout)

    async def fn(cmd: CommandContext) -> CommandOutput:
        issue = await resolve_issue(cmd.client, issue_id, cmd.team_key)

        async def poll() -> AgentSession | None:
            return latest_session(await issue_agent_sessions(cmd.client, issue.id))

        outcome = await watch_session(poll, params)
        return CommandOutput(
            data=outcome_payload(issue.identifier, outcome),
            views=outcome_views(cmd.format, issue.identifier, outcome),
            exit_code=exit_code_for_outcome(outcome),
        )

    run_command(ctx, command="issue watch", fn=fn)
