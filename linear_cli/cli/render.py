from __future__ import annotations

import json
import re
import sys
from collections.abc import Sequence
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel
from rich import box
from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table
from rich.text import Text

from .context import OutputFormat
from .results import MutationResult, mutation_json


@dataclass(frozen=True, slots=True)
class TableData:
    headers: list[str]
    rows: list[list[str]]

    def __post_init__(self) -> None:
        width = len(self.headers)
        for index, row in enumerate(self.rows):
            if len(row) != width:
                raise ValueError(f"row {index} has {len(row)} cells, expected {width}")


@dataclass(frozen=True, slots=True)
class DetailField:
    label: str
    value: str


@dataclass(frozen=True, slots=True)
class DetailData:
    title: str
    fields: list[DetailField] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class TextBlock:
    """Prose shown only in table format (descriptions, banners, footers)."""

    text: str
    markdown: bool = False


@dataclass(frozen=True, slots=True)
class Message:
    """Text printed verbatim in table and compact formats."""

    text: str


RenderData = TableData | DetailData
Renderable = TableData | DetailData | TextBlock | Message

_COMPACT_UNSAFE = re.compile(r"[\t\r\n]+")


def _stdout() -> Console:
    return Console(file=sys.stdout, soft_wrap=False)


def _json_default(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, mode="json")
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def render_json(payload: Any) -> None:
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(by_alias=True, mode="json")
    sys.stdout.write(json.dumps(payload, ensure_ascii=False, indent=2, default=_json_default) + "\n")


def compact_field(value: str | None) -> str:
    if not value:
        return "-"
    normalized = _COMPACT_UNSAFE.sub(" ", value).strip()
    return normalized or "-"


def compact_cell(value: str) -> str:
    """Flatten a table cell for tab-separated output; empty cells stay empty."""
    return _COMPACT_UNSAFE.sub(" ", value).strip()


def _render_compact(data: RenderData) -> None:
    if isinstance(data, DetailData):
        lines = [f"{f.label.lower()}\t{compact_field(f.value)}" for f in data.fields]
    else:
        lines = ["\t".join(h.upper() for h in data.headers)]
        lines.extend("\t".join(compact_cell(cell) for cell in row) for row in data.rows)
    if lines:
        sys.stdout.write("\n".join(lines) + "\n")


def _render_table(data: RenderData) -> None:
    console = _stdout()
    if isinstance(data, DetailData):
        console.print(Text(data.title, style="bold"))
        console.print("━" * len(data.title), markup=False, highlight=False)
        console.print()
        width = max((len(f.label) for f in data.fields), default=0)
        for f in data.fields:
            padding = " " * (width - len(f.label) + 3)
            console.print(f"{f.label}:{padding}{f.value}", markup=False, highlight=False, soft_wrap=True)
        return

    table = Table(show_header=True, header_style="bold cyan", box=box.SIMPLE_HEAD)
    for header in data.headers:
        table.add_column(header)
    for row in data.rows:
        table.add_row(*[Text(cell) for cell in row])
    console.print(table)


def render(format: OutputFormat, data: RenderData) -> None:
    """Project render data into one output format."""
    if format == "json":
        render_json(asdict(data))
    elif format == "compact":
        _render_compact(data)
    else:
        _render_table(data)


def render_text(format: OutputFormat, block: TextBlock) -> None:
    if format != "table":
        return
    console = _stdout()
    if block.markdown:
        console.print(Markdown(block.text))
    else:
        console.print(block.text, markup=False, highlight=False, soft_wrap=True)


def render_hint(format: OutputFormat, message: str) -> None:
    """Next-step hints go to stderr and only for humans at a terminal-style table."""
    if format != "table":
        return
    sys.stderr.write(message + "\n")


def _display_value(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    return json.dumps(value, ensure_ascii=False, default=_json_default)


def mutation_detail(result: MutationResult) -> DetailData:
    data = result.data
    fields = [
        DetailField("OK", _display_value(result.ok)),
        DetailField("Entity", result.entity),
        DetailField("Action", result.action),
        DetailField("ID", data.id),
        DetailField("Status", data.status),
    ]
    if data.url:
        fields.append(DetailField("URL", data.url))
    if data.metadata:
        fields.append(DetailField("Metadata", _display_value(data.metadata)))
    return DetailData(title=f"{result.entity} {result.action}", fields=fields)


def mutation_payload(results: Sequence[MutationResult]) -> Any:
    """JSON payload for one or more mutation results: an object for one, an array for many."""
    payloads = [mutation_json(r) for r in results]
    return payloads[0] if len(payloads) == 1 else payloads


def render_output(format: OutputFormat, *, payload: Any, views: Sequence[Renderable]) -> None:
    """Emit one command's output: the payload for json, the views otherwise."""
    if format == "json":
        render_json(payload)
        return
    for view in views:
        if isinstance(view, TextBlock):
            render_text(format, view)
        elif isinstance(view, Message):
            sys.stdout.write(view.text + "\n")
        else:
            render(format, view)
