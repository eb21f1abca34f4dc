from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

from click.testing import Result
from httpx import Response

from conftest import GraphQLStub, issue, page, state, user
from linear_cli.client import API_URL

TEAMS = {
    "teams": page(
        [
            {"id": "team-pol", "key": "POL", "name": "Polish", "issueCount": 12, "cyclesEnabled": True},
            {"id": "team-web", "key": "WEB", "name": "Web", "issueCount": 3},
        ]
    )
}


def _project(pid: str, name: str, **extra: Any) -> dict[str, Any]:
    return {"id": pid, "name": name, "url": f"https://linear.app/acme/project/{pid}", **extra}


PROJECTS = {
    "projects": page(
        [
            _project("p-1", "Roadmap", state="started", progress=0.5, targetDate="2026-03-31",
                     lead=user("u-1", "Alice")),
            _project("p-2", "Archive", state="completed", progress=1.0),
            _project("p-3", "Billing", state="planned", progress=0.25, lead=user("u-2", "Bob")),
        ]
    )
}


# =============================================================================
# auth / team
# =============================================================================


def test_auth_whoami_json(run_cli: Callable[..., Result], linear_api: GraphQLStub) -> None:
    linear_api.on(
        "Viewer",
        {"viewer": {**user("u-1", "Jane Doe", "jane@acme.dev"), "organization": {"name": "Acme", "urlKey": "acme"}}},
    )
    result = run_cli("auth", "whoami", "--json")
    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == {
        "name": "Jane Doe",
        "email": "jane@acme.dev",
        "admin": False,
        "active": True,
        "workspace": "acme",
    }


def test_auth_status_rejected_key(run_cli: Callable[..., Result], respx_mock: Any) -> None:
    respx_mock.post(API_URL).mock(return_value=Response(401, json={}))
    result = run_cli("auth", "status")
    assert result.exit_code == 2
    assert "error: invalid API key" in result.output
    assert "lin_api_test" not in result.output


def test_auth_status_reports_credentials_file(
    run_cli: Callable[..., Result], linear_api: GraphQLStub, tmp_path: Any
) -> None:
    config_dir = tmp_path / "linear"
    config_dir.mkdir()
    (config_dir / "credentials.toml").write_text('default = "acme"\nacme = "lin_api_file"\n')
    (config_dir / "credentials.toml").chmod(0o600)
    linear_api.on("Viewer", {"viewer": user("u-1", "Jane Doe", "jane@acme.dev")})

    result = run_cli("auth", "status", "--json", env={"LINEAR_API_KEY": ""})

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["authenticated"] is True
    assert payload["source"].endswith("credentials.toml [acme]")


def test_unknown_workspace_lists_available(run_cli: Callable[..., Result], tmp_path: Any) -> None:
    config_dir = tmp_path / "linear"
    config_dir.mkdir()
    (config_dir / "credentials.toml").write_text('acme = "lin_api_file"\n')
    result = run_cli("--workspace", "other", "team", "list", env={"LINEAR_API_KEY": ""})
    assert result.exit_code == 2
    assert "  try: available: acme" in result.output


def test_team_list_compact(run_cli: Callable[..., Result], linear_api: GraphQLStub) -> None:
    linear_api.on("Teams", TEAMS)
    result = run_cli("team", "list")
    assert result.exit_code == 0, result.output
    assert result.output == "KEY\tNAME\tISSUES\tCYCLES\nPOL\tPolish\t12\tYes\nWEB\tWeb\t3\tNo\n"


def test_team_view_ambiguous_name(run_cli: Callable[..., Result], linear_api: GraphQLStub) -> None:
    linear_api.on(
        "Teams",
        {"teams": page([{"id": "a", "key": "WEB", "name": "Web"}, {"id": "b", "key": "WEBX", "name": "Web X"}])},
    )
    result = run_cli("team", "view", "we")
    assert result.exit_code == 4
    assert 'error: ambiguous team "we"' in result.output
    assert "  try: matches: WEB, WEBX" in result.output


def test_team_overview_counts(run_cli: Callable[..., Result], linear_api: GraphQLStub) -> None:
    linear_api.on("Teams", TEAMS)
    linear_api.on(
        "Issues",
        {
            "issues": page(
                [
                    issue("POL-1", state_=state("s1", "Doing", "started"), assignee=user("u-1", "Alice")),
                    issue("POL-2", state_=state("s2", "Done", "completed"), assignee=user("u-1", "Alice")),
                    issue("POL-3", state_=state("s3", "Todo", "unstarted")),
                ],
                has_next=True,
                cursor="c1",
            )
        },
        {"issues": page([issue("POL-4", state_=state("s4", "Triage", "triage"))])},
    )

    result = run_cli("team", "overview", "POL", "--json")

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["total"] == 4
    assert payload["matrix"]["Alice"] == {"Backlog": 0, "Todo": 0, "In Progress": 1, "Done": 1}
    assert payload["matrix"]["Unassigned"] == {"Backlog": 1, "Todo": 1, "In Progress": 0, "Done": 0}
    assert list(payload["matrix"]) == ["Alice", "Unassigned"]


def test_team_overview_uses_linear_team(run_cli: Callable[..., Result], linear_api: GraphQLStub) -> None:
    linear_api.on("Teams", TEAMS)
    linear_api.on("Issues", {"issues": page([])})
    result = run_cli("team", "overview", "--json", env={"LINEAR_TEAM": "WEB"})
    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["teamKey"] == "WEB"


# =============================================================================
# project
# =============================================================================


def test_project_list_hides_completed_and_sorts_by_name(
    run_cli: Callable[..., Result], linear_api: GraphQLStub
) -> None:
    linear_api.on("Projects", PROJECTS)
    result = run_cli("project", "list", "--json")
    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert [p["name"] for p in payload] == ["Billing", "Roadmap"]
    assert payload[1]["progress"] == "50%"
    assert payload[1]["lead"] == "Alice"


def test_project_list_filters(run_cli: Callable[..., Result], linear_api: GraphQLStub) -> None:
    linear_api.on("Projects", PROJECTS)
    result = run_cli("project", "list", "--include-completed", "--sort", "progress", "--json")
    assert [p["name"] for p in json.loads(result.output)] == ["Archive", "Roadmap", "Billing"]

    result = run_cli("project", "list", "--lead", "ali", "--json")
    assert [p["name"] for p in json.loads(result.output)] == ["Roadmap"]

    result = run_cli("project", "list", "--state", "planned")
    assert result.output == "NAME\tSTATE\tPROGRESS\tLEAD\tTARGET\nBilling\tplanned\t25%\tBob\t-\n"


def test_project_view_preview(run_cli: Callable[..., Result], linear_api: GraphQLStub) -> None:
    linear_api.on("Projects", PROJECTS)
    linear_api.on("Issues", {"issues": page([issue(f"POL-{n}") for n in range(1, 12)])})

    result = run_cli("project", "view", "road", "--json")

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["name"] == "Roadmap"
    assert payload["issuePreviewCount"] == 10
    assert payload["issuePreviewHasMore"] is True
    (variables,) = linear_api.variables("Issues")
    assert variables["filter"] == {"project": {"id": {"eq": "p-1"}}}
    assert variables["first"] == 11


def test_project_create_with_team(run_cli: Callable[..., Result], linear_api: GraphQLStub) -> None:
    linear_api.on("Teams", TEAMS)
    linear_api.on(
        "ProjectCreate",
        {"projectCreate": {"success": True, "project": _project("p-9", "Q1 Roadmap")}},
    )

    result = run_cli(
        "project", "create", "--name", "Q1 Roadmap", "--target-date", "2026-03-31", "-t", "POL", "--json"
    )

    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["metadata"] == {"name": "Q1 Roadmap"}
    (variables,) = linear_api.variables("ProjectCreate")
    assert variables["input"] == {"name": "Q1 Roadmap", "teamIds": ["team-pol"], "targetDate": "2026-03-31"}


def test_project_update_clears_lead(run_cli: Callable[..., Result], linear_api: GraphQLStub) -> None:
    linear_api.on("Projects", PROJECTS)
    linear_api.on(
        "ProjectUpdate",
        {"projectUpdate": {"success": True, "project": _project("p-1", "Roadmap", state="started")}},
    )

    result = run_cli("project", "update", "Roadmap", "--lead", "", "--color", "#ff0000", "--json")

    assert result.exit_code == 0, result.output
    (variables,) = linear_api.variables("ProjectUpdate")
    assert variables == {"id": "p-1", "input": {"leadId": None, "color": "#ff0000"}}


def test_project_delete_with_yes(run_cli: Callable[..., Result], linear_api: GraphQLStub) -> None:
    linear_api.on("Projects", PROJECTS)
    linear_api.on("ProjectDelete", {"projectDelete": {"success": True}})

    result = run_cli("project", "delete", "Billing", "--yes", "--json")

    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["id"] == "p-3"
    assert linear_api.variables("ProjectDelete") == [{"id": "p-3"}]


def test_project_delete_with_no_input(run_cli: Callable[..., Result], linear_api: GraphQLStub) -> None:
    linear_api.on("Projects", PROJECTS)
    linear_api.on("ProjectDelete", {"projectDelete": {"success": True}})
    result = run_cli("--no-input", "project", "delete", "Billing")
    assert result.exit_code == 0, result.output


def test_project_add_issue(run_cli: Callable[..., Result], linear_api: GraphQLStub) -> None:
    linear_api.on("Projects", PROJECTS)
    linear_api.on("Issues", {"issues": page([issue("POL-5")])})
    linear_api.on("IssueUpdate", {"issueUpdate": {"success": True, "issue": issue("POL-5")}})

    result = run_cli("project", "add-issue", "Roadmap", "POL-5", "--json")

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["action"] == "moveToProject"
    assert payload["metadata"] == {"project": "Roadmap"}
    (variables,) = linear_api.variables("IssueUpdate")
    assert variables["input"] == {"projectId": "p-1"}


def test_project_not_found_lists_available(
    run_cli: Callable[..., Result], linear_api: GraphQLStub
) -> None:
    linear_api.on("Projects", PROJECTS)
    result = run_cli("project", "view", "zzz")
    assert result.exit_code == 3
    assert '  try: available: Roadmap, Archive, Billing' in result.output


STATUSES = {
    "projectStatuses": page(
        [
            {"id": "st-start", "name": "In Progress", "type": "started"},
            {"id": "st-done", "name": "Completed", "type": "completed"},
        ]
    )
}


def test_project_start_sets_started_status(
    run_cli: Callable[..., Result], linear_api: GraphQLStub
) -> None:
    linear_api.on("Projects", PROJECTS)
    linear_api.on("ProjectStatuses", STATUSES)
    linear_api.on(
        "ProjectUpdate",
        {"projectUpdate": {"success": True, "project": _project("p-3", "Billing", state="started")}},
    )

    result = run_cli("project", "start", "Billing", "-f", "table")

    assert result.exit_code == 0, result.output
    assert linear_api.variables("ProjectUpdate") == [{"id": "p-3", "input": {"statusId": "st-start"}}]
    assert "  post update: linear project post 'Billing' --body '<text>'" in result.output


def test_project_complete_json(run_cli: Callable[..., Result], linear_api: GraphQLStub) -> None:
    linear_api.on("Projects", PROJECTS)
    linear_api.on("ProjectStatuses", STATUSES)
    linear_api.on("ProjectUpdate", {"projectUpdate": {"success": True, "project": _project("p-1", "Roadmap")}})

    result = run_cli("project", "complete", "Roadmap", "--json")

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert (payload["entity"], payload["action"]) == ("project", "complete")
    assert payload["metadata"] == {"name": "Roadmap"}


def test_project_pause_without_paused_status(
    run_cli: Callable[..., Result], linear_api: GraphQLStub
) -> None:
    linear_api.on("Projects", PROJECTS)
    linear_api.on("ProjectStatuses", STATUSES)

    result = run_cli("project", "pause", "Roadmap")

    assert result.exit_code == 1
    assert 'error: no project status of type "paused" found' in result.output
    assert "  try: check project status configuration in Linear settings" in result.output
    assert "ProjectUpdate" not in linear_api.operations()


def test_project_cancel_uses_canceled_status(
    run_cli: Callable[..., Result], linear_api: GraphQLStub
) -> None:
    linear_api.on("Projects", PROJECTS)
    linear_api.on(
        "ProjectStatuses",
        {"projectStatuses": page([{"id": "st-cancel", "name": "Canceled", "type": "canceled"}])},
    )
    linear_api.on("ProjectUpdate", {"projectUpdate": {"success": True, "project": _project("p-1", "Roadmap")}})

    result = run_cli("project", "cancel", "Roadmap", "--json")

    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["action"] == "cancel"
    (variables,) = linear_api.variables("ProjectUpdate")
    assert variables["input"] == {"statusId": "st-cancel"}


def test_project_post_with_health(run_cli: Callable[..., Result], linear_api: GraphQLStub) -> None:
    linear_api.on("Projects", PROJECTS)
    linear_api.on(
        "ProjectUpdateCreate",
        {
            "projectUpdateCreate": {
                "success": True,
                "projectUpdate": {
                    "id": "pu-1",
                    "body": "On track",
                    "health": "atRisk",
                    "url": "https://linear.app/acme/project/p-1/updates",
                    "createdAt": "2026-02-01T00:00:00.000Z",
                },
            }
        },
    )

    result = run_cli("project", "post", "Roadmap", "--body", "On track", "--health", "AtRisk", "--json")

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert (payload["entity"], payload["action"]) == ("projectUpdate", "create")
    assert payload["metadata"]["project"] == "Roadmap"
    assert payload["metadata"]["health"] == "atRisk"
    (variables,) = linear_api.variables("ProjectUpdateCreate")
    assert variables["input"] == {"projectId": "p-1", "body": "On track", "health": "atRisk"}


def test_project_post_rejects_unknown_health(run_cli: Callable[..., Result]) -> None:
    result = run_cli("project", "post", "Roadmap", "--health", "great")
    assert result.exit_code == 4
    assert 'error: invalid health "great"' in result.output
    assert "  try: onTrack, atRisk, offTrack" in result.output


def test_project_labels_compact(run_cli: Callable[..., Result], linear_api: GraphQLStub) -> None:
    linear_api.on("Projects", PROJECTS)
    linear_api.on(
        "ProjectLabels",
        {
            "project": {
                "labels": page(
                    [
                        {"id": "pl-1", "name": "Frontend", "color": "#f00", "isGroup": False},
                        {"id": "pl-2", "name": "Area", "color": "#0f0", "description": "Grouping", "isGroup": True},
                    ]
                )
            }
        },
    )

    result = run_cli("project", "labels", "Roadmap")

    assert result.exit_code == 0, result.output
    assert result.output == (
        "NAME\tCOLOR\tGROUP\tDESCRIPTION\n"
        "Frontend\t#f00\tno\t-\n"
        "Area\t#0f0\tyes\tGrouping\n"
    )
    assert linear_api.variables("ProjectLabels")[0]["id"] == "p-1"


def test_project_milestone_list(run_cli: Callable[..., Result], linear_api: GraphQLStub) -> None:
    linear_api.on("Projects", PROJECTS)
    linear_api.on(
        "ProjectMilestones",
        {
            "project": {
                "projectMilestones": page(
                    [{"id": "m-1", "name": "Beta", "status": "next", "progress": 0.5, "targetDate": "2026-03-15"}]
                )
            }
        },
    )

    result = run_cli("project", "milestone", "list", "Roadmap")

    assert result.exit_code == 0, result.output
    assert result.output == "NAME\tSTATUS\tTARGET\tPROGRESS\tDESCRIPTION\nBeta\tnext\t2026-03-15\t50%\t-\n"


def test_project_milestone_create_accepts_date_alias(
    run_cli: Callable[..., Result], linear_api: GraphQLStub
) -> None:
    linear_api.on("Projects", PROJECTS)
    linear_api.on(
        "ProjectMilestoneCreate",
        {
            "projectMilestoneCreate": {
                "success": True,
                "projectMilestone": {"id": "m-9", "name": "Beta launch", "targetDate": "2026-03-15"},
            }
        },
    )

    result = run_cli(
        "project", "milestone", "create", "Beta launch", "--project", "Roadmap", "--date", "2026-03-15", "--json"
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert (payload["entity"], payload["action"]) == ("projectMilestone", "create")
    assert payload["metadata"] == {"name": "Beta launch", "targetDate": "2026-03-15", "description": None}
    (variables,) = linear_api.variables("ProjectMilestoneCreate")
    assert variables["input"] == {"projectId": "p-1", "name": "Beta launch", "targetDate": "2026-03-15"}


def test_project_milestone_create_requires_project(run_cli: Callable[..., Result]) -> None:
    result = run_cli("project", "milestone", "create", "Beta")
    assert result.exit_code == 4
    assert "--project" in result.output
