from __future__ import annotations

from typing import Any, Generic, Literal, TypeVar

from pydantic import ConfigDict

from linear_cli.models.entities import LinearModel

TData = TypeVar("TData")

MutationEntity = Literal[
    "issue",
    "project",
    "comment",
    "initiative",
    "projectUpdate",
    "projectMilestone",
    "document",
    "notification",
]
MutationAction = Literal[
    "create",
    "update",
    "delete",
    "close",
    "reopen",
    "start",
    "assign",
    "moveToProject",
    "comment",
    "pause",
    "complete",
    "cancel",
    "read",
    "archive",
    "snooze",
]


class MutationData(LinearModel):
    model_config = ConfigDict(frozen=True)

    id: str
    status: str
    url: str | None = None
    metadata: dict[str, Any] | None = None


class CommandResult(LinearModel, Generic[TData]):
    """The single canonical payload a command produces; every format derives from it."""

    model_config = ConfigDict(frozen=True)

    ok: Literal[True] = True
    entity: str
    action: str
    data: TData


MutationResult = CommandResult[MutationData]


def build_mutation_result(
    *,
    entity: MutationEntity,
    action: MutationAction,
    id: str,
    status: str,
    url: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> MutationResult:
    return CommandResult[MutationData](
        entity=entity,
        action=action,
        data=MutationData(
            id=id,
            status=status,
            url=url or None,
            metadata=metadata or None,
        ),
    )


def mutation_json(result: MutationResult) -> dict[str, Any]:
    data = result.data.model_dump(mode="json")
    payload: dict[str, Any] = {"id": data["id"], "status": data["status"]}
    if data["url"] is not None:
        payload["url"] = data["url"]
    if data["metadata"] is not None:
        payload["metadata"] = data["metadata"]
    payload.update({"ok": result.ok, "entity": result.entity, "action": result.action})
    return payload
