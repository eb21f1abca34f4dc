from __future__ import annotations

from datetime import datetime, timezone

import pytest

from conftest import GraphQLStub, issue, page, user
from linear_cli.cli.errors import CLIError
from linear_cli.cli.resolve import (
    Ambiguous,
    Candidate,
    Found,
    NotFound,
    check_date,
    match_candidates,
    parse_issue_id,
    pick_cycle,
    resolve,
    resolve_issue,
    resolve_priority,
    resolve_user_entity,
    user_candidates,
)
from linear_cli.client import LinearClient
from linear_cli.models.entities import Cycle, User


def _c(key: str, *alt: str) -> Candidate:
    return Candidate(key=key, id=f"id-{key}", alt_keys=alt)


def test_exact_primary_key_beats_substring_matches() -> None:
    candidates = [_c("Alice Smith"), _c("alice"), _c("Malice")]
    outcome = match_candidates(candidates, "ALICE")
    assert isinstance(outcome, Found)
    assert outcome.candidate.key == "alice"


def test_exact_alternate_key_is_second_step() -> None:
    candidates = [_c("Jane Doe", "jane@acme.dev"), _c("jane@acme.dev.old")]
    outcome = match_candidates(candidates, "jane@acme.dev")
    assert isinstance(outcome, Found)
    assert outcome.candidate.key == "Jane Doe"


def test_single_primary_substring_hit_wins_over_alternate_substrings() -> None:
    candidates = [_c("Jane Doe", "jd@acme.dev"), _c("Bob", "jane.b@acme.dev")]
    outcome = match_candidates(candidates, "jane")
    assert isinstance(outcome, Found)
    assert outcome.candidate.key == "Jane Doe"


def test_alternate_substring_hits_merge_in_candidate_order() -> None:
    candidates = [
        _c("Platform", "infra"),
        _c("Design"),
        _c("Web Platform"),
        _c("Ops", "platform-ops"),
    ]
    outcome = match_candidates(candidates, "plat")
    assert isinstance(outcome, Ambiguous)
    assert [c.key for c in outcome.candidates] == ["Platform", "Web Platform", "Ops"]


def test_single_alternate_substring_hit_is_found() -> None:
    outcome = match_candidates([_c("Bob", "bob@acme.dev"), _c("Eve")], "acme")
    assert isinstance(outcome, Found)
    assert outcome.candidate.key == "Bob"


def test_no_hit_reports_every_candidate() -> None:
    candidates = [_c("Bug"), _c("Feature")]
    outcome = match_candidates(candidates, "chore")
    assert isinstance(outcome, NotFound)
    assert outcome.candidates == tuple(candidates)


def test_resolve_ambiguous_error_lists_matches() -> None:
    with pytest.raises(CLIError) as excinfo:
        resolve([_c("Backend"), _c("Backend Infra")], "back", "label")
    err = excinfo.value
    assert err.error_type == "ambiguous_resolution"
    assert err.exit_code == 4
    assert err.hint == "matches: Backend, Backend Infra"


def test_resolve_not_found_error_lists_available() -> None:
    with pytest.raises(CLIError) as excinfo:
        resolve([_c("Bug"), _c("Feature")], "chore", "label")
    err = excinfo.value
    assert err.message == 'label not found: "chore"'
    assert err.exit_code == 3
    assert err.hint == "available: Bug, Feature"


def test_resolution_is_idempotent() -> None:
    candidates = [_c("Platform", "infra"), _c("Web Platform"), _c("Design", "ux")]
    for text in ("platform", "plat", "ux", "nothing"):
        first = match_candidates(candidates, text)
        assert match_candidates(candidates, text) == first
    assert resolve(candidates, "ux", "team") == resolve(candidates, "ux", "team")


def _users(*pairs: tuple[str, str]) -> list[Candidate]:
    return user_candidates(
        User(id=f"u-{name.lower()}", name=name, email=email) for name, email in pairs
    )


def test_user_ambiguity_lists_names_with_emails() -> None:
    with pytest.raises(CLIError) as excinfo:
        resolve(_users(("Alice", "a@x"), ("Alan", "b@x")), "al", "user")
    assert excinfo.value.exit_code == 4
    assert excinfo.value.hint == "matches: Alice (a@x), Alan (b@x)"


def test_user_not_found_lists_every_user() -> None:
    users = _users(("Alice", "alice@co.com"), ("George", "george@co.com"))
    with pytest.raises(CLIError) as excinfo:
        resolve(users, "bob", "user")
    assert excinfo.value.exit_code == 3
    assert excinfo.value.hint == "available: Alice (alice@co.com), George (george@co.com)"


def test_exact_user_name_wins_over_prefix_sibling() -> None:
    found = resolve(_users(("Alice", "a@x"), ("Alan", "b@x")), "Alice", "user")
    assert found.id == "u-alice"


def _cycles() -> list[Cycle]:
    return [
        Cycle.model_validate(
            {"id": f"c-{n}", "number": n, "startsAt": starts, "endsAt": ends}
        )
        for n, starts, ends in (
            (1, "2026-01-01T00:00:00Z", "2026-01-14T00:00:00Z"),
            (3, "2026-01-29T00:00:00Z", "2026-02-11T00:00:00Z"),
            (2, "2026-01-15T00:00:00Z", "2026-01-28T00:00:00Z"),
        )
    ]


def test_pick_cycle_by_keyword_and_number() -> None:
    now = datetime(2026, 1, 10, tzinfo=timezone.utc)
    assert pick_cycle(_cycles(), "current", "POL", now).number == 1
    assert pick_cycle(_cycles(), "next", "POL", now).number == 2
    assert pick_cycle(_cycles(), "3", "POL", now).id == "c-3"


def test_pick_cycle_misses_point_at_cycle_list() -> None:
    late = datetime(2027, 1, 1, tzinfo=timezone.utc)
    with pytest.raises(CLIError) as excinfo:
        pick_cycle(_cycles(), "current", "POL", late)
    assert excinfo.value.message == "no active cycle found"
    assert excinfo.value.hint == "list cycles with: linear cycle list --team POL"
    with pytest.raises(CLIError) as excinfo:
        pick_cycle(_cycles(), "next", "POL", late)
    assert excinfo.value.message == "no upcoming cycle found"
    with pytest.raises(CLIError) as excinfo:
        pick_cycle(_cycles(), "7", "POL", late)
    assert excinfo.value.message == "cycle #7 not found"
    assert excinfo.value.exit_code == 3


def test_parse_issue_id_variants() -> None:
    assert parse_issue_id("pol-5").team_key == "POL"
    assert parse_issue_id("pol-5").number == 5
    assert parse_issue_id("42").number == 42
    assert parse_issue_id("42").team_key is None
    uuid = "0b7c6a3e-1f2d-4c5b-9a8e-7d6c5b4a3f2e"
    assert parse_issue_id(uuid).uuid == uuid
    with pytest.raises(CLIError) as excinfo:
        parse_issue_id("not an issue")
    assert excinfo.value.exit_code == 4


def test_resolve_priority_accepts_names_and_numbers() -> None:
    assert resolve_priority("Urgent") == 1
    assert resolve_priority("none") == 0
    assert resolve_priority("3") == 3
    with pytest.raises(CLIError) as excinfo:
        resolve_priority("5")
    assert excinfo.value.error_type == "validation_error"


def test_check_date_rejects_other_formats() -> None:
    check_date("2026-03-31", "--due")
    check_date(None, "--due")
    with pytest.raises(CLIError) as excinfo:
        check_date("31/03/2026", "--due")
    assert excinfo.value.hint == "--due YYYY-MM-DD"


@pytest.mark.asyncio
async def test_me_resolves_through_viewer_without_listing_users(linear_api: GraphQLStub) -> None:
    linear_api.on("Viewer", {"viewer": user("u-1", "Jane Doe", "jane@acme.dev")})
    async with LinearClient("lin_api_test") as client:
        viewer = await resolve_user_entity(client, "me")
    assert viewer.id == "u-1"
    assert linear_api.operations() == ["Viewer"]


@pytest.mark.asyncio
async def test_user_resolution_matches_email(linear_api: GraphQLStub) -> None:
    linear_api.on(
        "Users",
        {"users": page([user("u-1", "Jane Doe", "jane@acme.dev"), user("u-2", "Bob", "bob@acme.dev")])},
    )
    async with LinearClient("lin_api_test") as client:
        found = await resolve_user_entity(client, "bob@acme.dev")
    assert found.name == "Bob"


@pytest.mark.asyncio
async def test_resolve_issue_by_number_uses_team_key(linear_api: GraphQLStub) -> None:
    linear_api.on("Issues", {"issues": page([issue("POL-7")])})
    async with LinearClient("lin_api_test") as client:
        found = await resolve_issue(client, "7", "pol")
    assert found.identifier == "POL-7"
    (variables,) = linear_api.variables("Issues")
    assert variables["filter"] == {"team": {"key": {"eq": "POL"}}, "number": {"eq": 7}}


@pytest.mark.asyncio
async def test_resolve_issue_without_team_is_usage_error(linear_api: GraphQLStub) -> None:
    async with LinearClient("lin_api_test") as client:
        with pytest.raises(CLIError) as excinfo:
            await resolve_issue(client, "7", None)
    assert excinfo.value.error_type == "usage_error"
    assert linear_api.calls == []


@pytest.mark.asyncio
async def test_resolve_issue_missing_is_not_found(linear_api: GraphQLStub) -> None:
    linear_api.on("Issues", {"issues": page([])})
    async with LinearClient("lin_api_test") as client:
        with pytest.raises(CLIError) as excinfo:
            await resolve_issue(client, "POL-99", None)
    assert excinfo.value.message == "issue not found: POL-99"
    assert excinfo.value.exit_code == 3
