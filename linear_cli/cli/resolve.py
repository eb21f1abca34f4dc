"""Name resolution: turn free-text input into exactly one remote entity."""

from __future__ import annotations

import re
import sys
from datetime import datetime
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from linear_cli.client import LinearClient
from linear_cli.exceptions import NotFoundError
from linear_cli.models.entities import (
    Cycle,
    Document,
    Initiative,
    Issue,
    IssueLabel,
    Project,
    Team,
    User,
    WorkflowState,
)
from linear_cli.models.pagination import drain

from .errors import CLIError

ME = "me"


@dataclass(frozen=True, slots=True)
class Candidate:
    key: str
    id: str
    alt_keys: tuple[str, ...] = ()
    display: str | None = None
    value: Any = field(default=None, compare=False)

    @property
    def label(self) -> str:
        return self.display if self.display is not None else self.key


@dataclass(frozen=True, slots=True)
class Found:
    candidate: Candidate


@dataclass(frozen=True, slots=True)
class Ambiguous:
    candidates: tuple[Candidate, ...]


@dataclass(frozen=True, slots=True)
class NotFound:
    candidates: tuple[Candidate, ...]


ResolutionOutcome = Found | Ambiguous | NotFound


def match_candidates(candidates: Sequence[Candidate], text: str) -> ResolutionOutcome:
    """
    Run the matching cascade, case-insensitively, in candidate order.

    1. exact primary key
    2. exact alternate key (first wins)
    3. primary-key substring; a single hit wins outright
    4. alternate-key substring for the rest, merged with step 3
    """
    needle = text.lower()

    for candidate in candidates:
        if candidate.key.lower() == needle:
            return Found(candidate)

    for candidate in candidates:
        if any(alt.lower() == needle for alt in candidate.alt_keys if alt):
            return Found(candidate)

    primary = [c for c in candidates if needle in c.key.lower()]
    if len(primary) == 1:
        # Alternate-key substring hits on other candidates are not consulted here.
        return Found(primary[0])

    primary_ids = {id(c) for c in primary}
    alternate = [
        c
        for c in candidates
        if id(c) not in primary_ids and any(needle in alt.lower() for alt in c.alt_keys if alt)
    ]
    hits = primary_ids | {id(c) for c in alternate}
    combined = tuple(c for c in candidates if id(c) in hits)
    if len(combined) == 1:
        return Found(combined[0])
    if combined:
        return Ambiguous(combined)
    return NotFound(tuple(candidates))


def resolve(candidates: Sequence[Candidate], text: str, entity_name: str) -> Candidate:
    outcome = match_candidates(candidates, text)
    if isinstance(outcome, Found):
        return outcome.candidate
    if isinstance(outcome, Ambiguous):
        raise CLIError(
            f'ambiguous {entity_name} "{text}"',
            error_type="ambiguous_resolution",
            hint="matches: " + ", ".join(c.label for c in outcome.candidates),
            details={"input": text, "matches": [c.label for c in outcome.candidates]},
        )
    raise CLIError(
        f'{entity_name} not found: "{text}"',
        error_type="not_found",
        hint="available: " + ", ".join(c.label for c in outcome.candidates),
        details={"input": text},
    )


# =============================================================================
# Candidate builders
# =============================================================================


def user_candidates(users: Iterable[User]) -> list[Candidate]:
    return [
        Candidate(
            key=u.name,
            id=u.id,
            alt_keys=tuple(k for k in (u.email, u.display_name) if k),
            display=f"{u.name} ({u.email})" if u.email else u.name,
            value=u,
        )
        for u in users
    ]


def team_candidates(teams: Iterable[Team]) -> list[Candidate]:
    return [Candidate(key=t.key, id=t.id, alt_keys=(t.name,), value=t) for t in teams]


def named_candidates(
    items: Iterable[IssueLabel | WorkflowState | Project | Initiative],
) -> list[Candidate]:
    return [Candidate(key=item.name, id=item.id, value=item) for item in items]


# =============================================================================
# Entity resolvers
# =============================================================================


async def resolve_user_entity(client: LinearClient, name: str) -> User:
    if name == ME:
        return await client.viewer()
    users = await drain(await client.users())
    return resolve(user_candidates(users), name, "user").value


async def resolve_team(client: LinearClient, key: str) -> Team:
    teams = await drain(await client.teams())
    return resolve(team_candidates(teams), key, "team").value


async def resolve_team_id(client: LinearClient, key: str) -> str:
    return (await resolve_team(client, key)).id


async def resolve_label(client: LinearClient, team_id: str, name: str) -> str:
    labels = await drain(await client.team_labels(team_id))
    return resolve(named_candidates(labels), name, "label").id


async def resolve_state(client: LinearClient, team_id: str, name: str) -> str:
    states = await drain(await client.team_states(team_id))
    return resolve(named_candidates(states), name, "state").id


async def resolve_project_entity(client: LinearClient, name: str) -> Project:
    projects = await drain(await client.projects())
    return resolve(named_candidates(projects), name, "project").value


async def resolve_initiative_entity(client: LinearClient, name: str) -> Initiative:
    initiatives = await drain(await client.initiatives())
    return resolve(named_candidates(initiatives), name, "initiative").value


def document_candidates(documents: Iterable[Document]) -> list[Candidate]:
    return [
        Candidate(key=d.title, id=d.id, alt_keys=tuple(k for k in (d.slug_id,) if k), value=d)
        for d in documents
    ]


async def resolve_document_entity(client: LinearClient, text: str) -> Document:
    """Look a document up by UUID, or by title or slug among all documents."""
    if _UUID_RE.match(text.strip()):
        try:
            return await client.document(text.strip())
        except NotFoundError as exc:
            raise CLIError(f"document not found: {text}", error_type="not_found") from exc
    documents = await drain(await client.documents())
    return resolve(document_candidates(documents), text, "document").value


def pick_cycle(cycles: Sequence[Cycle], text: str, team_key: str, now: datetime) -> Cycle:
    """Select a cycle by `current`, `next`, or its number."""
    hint = f"list cycles with: linear cycle list --team {team_key}"
    value = text.strip().lower()
    if value == "current":
        for cycle in cycles:
            if cycle.starts_at and cycle.ends_at and cycle.starts_at <= now <= cycle.ends_at:
                return cycle
        raise CLIError("no active cycle found", error_type="not_found", hint=hint)
    if value == "next":
        upcoming = sorted(
            (c for c in cycles if c.starts_at and c.starts_at > now),
            key=lambda c: c.starts_at,  # type: ignore[arg-type,return-value]
        )
        if not upcoming:
            raise CLIError("no upcoming cycle found", error_type="not_found", hint=hint)
        return upcoming[0]
    if not value.isdigit():
        raise CLIError(
            f'invalid cycle "{text}"',
            error_type="validation_error",
            hint="current, next, or a cycle number",
        )
    number = int(value)
    for cycle in cycles:
        if cycle.number == number:
            return cycle
    raise CLIError(f"cycle #{number} not found", error_type="not_found", hint=hint)


async def resolve_cycle(
    client: LinearClient, team_id: str, text: str, team_key: str, *, now: datetime | None = None
) -> Cycle:
    cycles = await drain(await client.team_cycles(team_id))
    return pick_cycle(cycles, text, team_key, now or datetime.now().astimezone())


# =============================================================================
# Issue identifiers and scalar inputs
# =============================================================================

_UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.I)
_IDENTIFIER_RE = re.compile(r"^([A-Za-z][A-Za-z0-9]*)-(\d+)$")
ISSUE_IDENTIFIER_RE = re.compile(r"^[A-Za-z0-9]+-\d+$")


@dataclass(frozen=True, slots=True)
class IssueRef:
    team_key: str | None = None
    number: int | None = None
    uuid: str | None = None


def parse_issue_id(text: str) -> IssueRef:
    text = text.strip()
    if _UUID_RE.match(text):
        return IssueRef(uuid=text)
    match = _IDENTIFIER_RE.match(text)
    if match:
        return IssueRef(team_key=match.group(1).upper(), number=int(match.group(2)))
    if text.isdigit():
        return IssueRef(number=int(text))
    raise CLIError(f'invalid issue identifier: "{text}"', error_type="validation_error")


async def resolve_issue(client: LinearClient, identifier: str, team_key: str | None) -> Issue:
    ref = parse_issue_id(identifier)

    if ref.uuid is not None:
        try:
            return await client.issue(ref.uuid)
        except NotFoundError as exc:
            raise CLIError(f"issue not found: {identifier}", error_type="not_found") from exc

    key = ref.team_key or team_key
    if not key:
        raise CLIError(
            "no team specified for issue lookup",
            error_type="usage_error",
            hint="use full identifier (POL-5) or --team flag",
        )

    connection = await client.issues(
        filter={"team": {"key": {"eq": key.upper()}}, "number": {"eq": ref.number}},
        first=1,
    )
    if not connection.nodes:
        raise CLIError(f"issue not found: {key.upper()}-{ref.number}", error_type="not_found")
    return connection.nodes[0]


PRIORITIES: dict[str, int] = {
    "none": 0,
    "urgent": 1,
    "high": 2,
    "medium": 3,
    "low": 4,
}

PRIORITY_NAMES: dict[int, str] = {value: key.capitalize() for key, value in PRIORITIES.items()}


def resolve_priority(text: str) -> int:
    value = text.strip().lower()
    if value.isdigit() and 0 <= int(value) <= 4:
        return int(value)
    if value in PRIORITIES:
        return PRIORITIES[value]
    raise CLIError(
        f'invalid priority "{text}"',
        error_type="validation_error",
        hint="--priority urgent (or: high, medium, low, none, 0-4)",
    )


def priority_name(priority: int | None) -> str:
    return PRIORITY_NAMES.get(priority or 0, "None")


def read_stdin() -> str | None:
    """Read piped text (e.g. a description) when stdin is not a terminal."""
    if sys.stdin is None or sys.stdin.isatty():
        return None
    text = sys.stdin.read().strip()
    return text or None


_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def check_date(value: str | None, flag: str) -> None:
    if value is not None and not _DATE_RE.match(value):
        raise CLIError(
            f'invalid date "{value}"',
            error_type="validation_error",
            hint=f"{flag} YYYY-MM-DD",
        )
