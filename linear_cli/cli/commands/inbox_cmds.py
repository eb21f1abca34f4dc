"""Inbox notifications: list them grouped by issue, and act on an issue's notifications."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone

from linear_cli.models.entities import Notification

from ..click_compat import RichCommand, click
from ..context import CLIContext, CommandContext
from ..errors import CLIError
from ..groups import LinearGroup
from ..options import output_options, team_option
from ..render import Message, TableData
from ..resolve import resolve_issue
from ..results import MutationAction, build_mutation_result
from ..runner import CommandOutput, mutation_output, run_command
from ..time_utils import compact_time, relative_time

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)
_HEADING = re.compile(r"^#{1,3}\s+", re.M)
_CODE = re.compile(r"`([^`]+)`")
_SPACE = re.compile(r"\s+")
_UPPER = re.compile(r"([A-Z])")


@dataclass(frozen=True, slots=True)
class InboxItem:
    type: str
    actor: str
    issue: str
    title: str
    summary: str
    read: bool
    count: int
    created_at: datetime | None

    def to_json(self) -> dict[str, object]:
        return {
            "type": self.type,
            "actor": self.actor,
            "issue": self.issue,
            "title": self.title,
            "summary": self.summary,
            "read": self.read,
            "count": self.count,
            "createdAt": self.created_at,
        }


def build_summary(kind: str, actor: str | None, comment: str | None) -> str:
    """One line describing a notification: the comment text, else the event type."""
    who = actor or "Someone"
    if comment:
        clean = _HEADING.sub("", comment).replace("**", "")
        clean = _SPACE.sub(" ", _CODE.sub(r"\1", clean)).strip()
        return f"{who}: {clean}"
    action = _UPPER.sub(r" \1", re.sub(r"^issue", "", kind)).strip().lower()
    return f"{who} {action}"


def truncate(text: str, width: int) -> str:
    return text if len(text) <= width else text[: width - 1] + "…"


def inbox_items(notifications: list[Notification], *, group: bool) -> list[InboxItem]:
    """Flatten notifications; when grouping, one row per issue carries the newest event."""
    items = [
        InboxItem(
            type=n.type,
            actor=n.actor.name if n.actor else "-",
            issue=n.issue.identifier if n.issue else "-",
            title=n.issue.title if n.issue else "-",
            summary=build_summary(n.type, n.actor.name if n.actor else None, n.comment_body),
            read=n.read_at is not None,
            count=1,
            created_at=n.created_at,
        )
        for n in notifications
    ]
    if not group:
        return items

    grouped: dict[str, InboxItem] = {}
    for item in items:
        existing = grouped.get(item.issue)
        if existing is None:
            grouped[item.issue] = item
            continue
        merged = replace(existing, count=existing.count + 1, read=existing.read and item.read)
        if (item.created_at or _EPOCH) > (existing.created_at or _EPOCH):
            merged = replace(
                merged,
                type=item.type,
                actor=item.actor,
                summary=item.summary,
                created_at=item.created_at,
            )
        grouped[item.issue] = merged
    return list(grouped.values())


@click.group(name="inbox", cls=LinearGroup, invoke_without_command=True)
@click.option("--unread", is_flag=True, help="Show only unread notifications.")
@click.option("--all", "show_all", is_flag=True, help="Show every notification (don't group by issue).")
@click.option("--limit", type=int, default=50, show_default=True, help="Max notifications to fetch.")
@output_options
@click.pass_context
def inbox_group(click_ctx: click.Context, *, unread: bool, show_all: bool, limit: int) -> None:
    """View inbox notifications."""
    if click_ctx.invoked_subcommand is not None:
        return
    ctx: CLIContext = click_ctx.obj

    async def fn(cmd: CommandContext) -> CommandOutput:
        connection = await cmd.client.notifications(first=limit)
        notifications = list(connection.nodes)
        if unread:
            notifications = [n for n in notifications if n.read_at is None]
        items = inbox_items(notifications, group=not show_all)
        payload = [item.to_json() for item in items]
        if not items:
            return CommandOutput(
                data=payload, views=[Message("Inbox zero." if unread else "No notifications.")]
            )
        when = relative_time if cmd.format == "table" else compact_time
        rows = [
            [
                " " if item.read else "●",
                item.issue,
                truncate(item.title, 35),
                truncate(item.summary, 50) + (f" (+{item.count - 1})" if item.count > 1 else ""),
                when(item.created_at),
            ]
            for item in items
        ]
        return CommandOutput(
            data=payload,
            views=[TableData(headers=["", "Issue", "Title", "Summary", "When"], rows=rows)],
        )

    run_command(ctx, command="inbox", fn=fn)


def parse_snooze_until(until: str | None, hours: float, *, now: datetime | None = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    if until:
        try:
            parsed = datetime.fromisoformat(until.replace("Z", "+00:00"))
        except ValueError as exc:
            raise CLIError(
                "invalid --until timestamp",
                error_type="validation_error",
                hint="use ISO format, e.g. 2026-01-01T09:00:00Z",
            ) from exc
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        if parsed <= now:
            raise CLIError(
                "--until must be in the future",
                error_type="validation_error",
                hint="use an ISO timestamp after now, e.g. 2026-01-01T09:00:00Z",
            )
        return parsed
    if hours <= 0:
        raise CLIError(
            "--hours must be a positive number",
            error_type="validation_error",
            hint="--hours 24",
        )
    return now + timedelta(hours=hours)


def _iso(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _issue_action(
    ctx: CLIContext, issue_id: str, *, action: MutationAction, until: datetime | None = None
) -> None:
    async def fn(cmd: CommandContext) -> CommandOutput:
        issue = await resolve_issue(cmd.client, issue_id, cmd.team_key)
        metadata: dict[str, object] = {"issue": issue.identifier}
        if action == "read":
            await cmd.client.mark_notifications_read(issue.id, _iso(datetime.now(timezone.utc)))
        elif action == "archive":
            await cmd.client.archive_notifications(issue.id)
        else:
            assert until is not None
            await cmd.client.snooze_notifications(issue.id, _iso(until))
            metadata["snoozedUntilAt"] = _iso(until)
        result = build_mutation_result(
            entity="notification",
            action=action,
            id=issue.identifier,
            status="success",
            url=issue.url,
            metadata=metadata,
        )
        return mutation_output(result)

    run_command(ctx, command=f"inbox {action}", fn=fn)


@inbox_group.command(name="read", cls=RichCommand)
@click.argument("issue_id", metavar="ISSUE")
@team_option
@output_options
@click.pass_obj
def inbox_read(ctx: CLIContext, issue_id: str) -> None:
    """Mark an issue's inbox notifications as read."""
    _issue_action(ctx, issue_id, action="read")


@inbox_group.command(name="delete", cls=RichCommand)
@click.argument("issue_id", metavar="ISSUE")
@team_option
@output_options
@click.pass_obj
def inbox_delete(ctx: CLIContext, issue_id: str) -> None:
    """Delete (archive) an issue's inbox notifications."""
    _issue_action(ctx, issue_id, action="archive")


@inbox_group.command(name="snooze", cls=RichCommand)
@click.argument("issue_id", metavar="ISSUE")
@click.option("--until", type=str, default=None, help="Snooze until an ISO timestamp (overrides --hours).")
@click.option("--hours", type=float, default=24, show_default=True, help="Snooze for N hours.")
@team_option
@output_options
@click.pass_obj
def inbox_snooze(ctx: CLIContext, issue_id: str, *, until: str | None, hours: float) -> None:
    """Snooze an issue's inbox notifications."""
    _issue_action(ctx, issue_id, action="snooze", until=parse_snooze_until(until, hours))
