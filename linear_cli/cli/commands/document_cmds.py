from __future__ import annotations

from typing import Any

from linear_cli.models.pagination import drain

from ..click_compat import RichCommand, click
from ..context import CLIContext, CommandContext
from ..groups import LinearGroup
from ..options import output_options
from ..render import DetailData, DetailField, Message, Renderable, TableData, TextBlock
from ..resolve import read_stdin, resolve_document_entity, resolve_project_entity
from ..results import build_mutation_result
from ..runner import CommandOutput, mutation_output, run_command
from ..time_utils import compact_time, date_with_age, relative_time


@click.group(name="document", cls=LinearGroup)
def document_group() -> None:
    """Document commands."""


@document_group.command(name="list", cls=RichCommand)
@click.option("--project", "project_name", type=str, default=None, help="Filter by project name.")
@output_options
@click.pass_obj
def document_list(ctx: CLIContext, *, project_name: str | None) -> None:
    """List documents, optionally for one project."""

    async def fn(cmd: CommandContext) -> CommandOutput:
        doc_filter: dict[str, Any] | None = None
        if project_name:
            project = await resolve_project_entity(cmd.client, project_name)
            doc_filter = {"project": {"id": {"eq": project.id}}}
        documents = await drain(await cmd.client.documents(filter=doc_filter))
        payload = [
            {
                "title": d.title,
                "project": d.project.name if d.project else "-",
                "creator": d.creator.name if d.creator else "-",
                "updatedAt": d.updated_at,
            }
            for d in documents
        ]
        if not payload:
            return CommandOutput(data=payload, views=[Message("No documents found")])
        when = relative_time if cmd.format == "table" else compact_time
        rows = [[r["title"], r["project"], r["creator"], when(r["updatedAt"])] for r in payload]
        return CommandOutput(
            data=payload,
            views=[TableData(headers=["Title", "Project", "Creator", "Updated"], rows=rows)],
        )

    run_command(ctx, command="document list", fn=fn)


@document_group.command(name="view", cls=RichCommand)
@click.argument("title_or_id", metavar="TITLE_OR_ID")
@output_options
@click.pass_obj
def document_view(ctx: CLIContext, title_or_id: str) -> None:
    """View a document by title, slug, or id."""

    async def fn(cmd: CommandContext) -> CommandOutput:
        doc = await resolve_document_entity(cmd.client, title_or_id)
        payload = {
            "id": doc.id,
            "title": doc.title,
            "content": doc.content or "",
            "project": doc.project.name if doc.project else None,
            "creator": doc.creator.name if doc.creator else None,
            "url": doc.url,
            "createdAt": doc.created_at,
            "updatedAt": doc.updated_at,
        }

        if cmd.format == "compact":
            views: list[Renderable] = [
                DetailData(
                    title=doc.title,
                    fields=[
                        DetailField("title", doc.title),
                        DetailField("project", payload["project"] or "-"),
                        DetailField("creator", payload["creator"] or "-"),
                        DetailField("url", doc.url or "-"),
                    ],
                )
            ]
            if doc.content:
                views.append(Message("\n" + doc.content))
            return CommandOutput(data=payload, views=views)

        views = [
            DetailData(
                title=doc.title,
                fields=[
                    DetailField("Project", payload["project"] or "-"),
                    DetailField("Creator", payload["creator"] or "-"),
                    DetailField("Created", date_with_age(doc.created_at)),
                    DetailField("Updated", date_with_age(doc.updated_at)),
                    DetailField("URL", doc.url or "-"),
                ],
            )
        ]
        if doc.content:
            views.append(TextBlock(doc.content, markdown=True))
        return CommandOutput(data=payload, views=views)

    run_command(ctx, command="document view", fn=fn)


@document_group.command(name="create", cls=RichCommand)
@click.option("--title", required=True, help="Document title.")
@click.option("--project", "project_name", type=str, default=None, help="Associated project.")
@click.option("--content", type=str, default=None, help="Markdown content (or pipe via stdin).")
@output_options
@click.pass_obj
def document_create(
    ctx: CLIContext, *, title: str, project_name: str | None, content: str | None
) -> None:
    """
    Create a document.

    Example: `linear document create --title 'Design Spec' --project 'My Project' < spec.md`
    """
    text = content if content is not None else read_stdin()

    async def fn(cmd: CommandContext) -> CommandOutput:
        data: dict[str, Any] = {"title": title}
        if text:
            data["content"] = text
        if project_name:
            data["projectId"] = (await resolve_project_entity(cmd.client, project_name)).id
        doc = await cmd.client.create_document(data)
        result = build_mutation_result(
            entity="document",
            action="create",
            id=doc.id,
            status="success",
            url=doc.url,
            metadata={"title": doc.title, "project": doc.project.name if doc.project else None},
        )
        return mutation_output(result)

    run_command(ctx, command="document create", fn=fn)
