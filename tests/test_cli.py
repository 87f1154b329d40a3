"""Tests for the command-line actions, with the Jira client mocked out."""

from unittest.mock import MagicMock, patch

import pytest

from jira_cli import cli
from jira_cli.adf import markdown_to_adf
from jira_cli.cache import FieldKind, MemoryFieldIdStore
from jira_cli.errors import AmbiguousMatchError, APIError, NotFoundError, UserAborted
from jira_cli.fields import FieldResolver

SP_FIELD = "customfield_10016"
SPRINT_FIELD = "customfield_10020"


@pytest.fixture
def ctx(monkeypatch, config):
    client = MagicMock()
    store = MemoryFieldIdStore({FieldKind.STORY_POINTS: SP_FIELD, FieldKind.SPRINT: SPRINT_FIELD})
    context = cli.AppContext(config=config, client=client, resolver=FieldResolver(client, store))
    monkeypatch.setattr(cli, "setup_context", lambda args: context)
    return context


def run(*argv):
    cli.main(list(argv))


def run_failing(*argv):
    with pytest.raises(SystemExit) as exc_info:
        cli.main(list(argv))
    assert exc_info.value.code == 1


# parser


def test_edit_description_flag_forms():
    parser = cli.build_parser()
    assert parser.parse_args(["edit", "P-1"]).description is None
    assert parser.parse_args(["edit", "P-1", "--description"]).description is True
    assert parser.parse_args(["e", "P-1", "--description", "text"]).description == "text"


def test_aliases_share_actions():
    parser = cli.build_parser()
    assert parser.parse_args(["g", "P-1"]).func is cli.action_get
    assert parser.parse_args(["l"]).func is cli.action_list
    assert parser.parse_args(["s"]).func is cli.action_sprint


# list


def test_list_defaults_to_current_user_in_open_sprints(ctx, capsys):
    ctx.client.search.return_value = [
        {"key": "PROJ-1", "fields": {"summary": "Fix login", "status": {"name": "To Do"}, SP_FIELD: 3.0}},
        {"key": "PROJ-2", "fields": {"summary": "Docs", "status": {"name": "Done"}}},
    ]

    run("list")

    jql, fields = ctx.client.search.call_args[0]
    assert jql == (
        "assignee in (currentUser()) AND resolution is EMPTY AND sprint in openSprints() "
        "ORDER BY updated DESC"
    )
    assert fields == ["key", "summary", "status", SP_FIELD]

    out = capsys.readouterr().out
    lines = out.splitlines()
    assert lines[0].split() == ["ID", "Title", "Points", "Status"]
    assert lines[2].split() == ["PROJ-1", "Fix", "login", "3", "To", "Do"]
    assert "N/A" in lines[3]


def test_list_all_for_user_sorted(ctx):
    ctx.client.find_account_id.return_value = "acc-1"
    ctx.client.search.return_value = []

    run("la", "alice", "--sort", "id")

    ctx.client.find_account_id.assert_called_once_with("alice")
    jql = ctx.client.search.call_args[0][0]
    assert jql == "assignee = 'acc-1' AND resolution is EMPTY ORDER BY key ASC"


def test_list_done(ctx, capsys):
    ctx.client.search.return_value = []

    run("ld")

    jql = ctx.client.search.call_args[0][0]
    assert "resolution is not EMPTY" in jql
    assert "No tickets found." in capsys.readouterr().out


# get


def ticket(**fields):
    base = {
        "summary": "Fix login",
        "status": {"name": "In Progress"},
        "assignee": None,
        "reporter": {"displayName": "Bob"},
        "comment": {"total": 2},
        "description": markdown_to_adf("Steps to **reproduce**"),
        SP_FIELD: 5.0,
    }
    base.update(fields)
    return {"key": "PROJ-1", "fields": base}


def test_get_shows_details(ctx, capsys):
    ctx.client.get_issue.return_value = ticket()

    run("get", "proj-1")

    assert ctx.client.get_issue.call_args[0][0] == "PROJ-1"
    out = capsys.readouterr().out
    assert "--- Ticket Details ---" in out
    assert "Story Points : 5" in out
    assert "Assignee     : Unassigned" in out
    assert "URL          : https://example.atlassian.net/browse/PROJ-1" in out
    assert out.rstrip().endswith("Steps to **reproduce**")


def test_get_single_field(ctx, capsys):
    ctx.client.get_issue.return_value = ticket()
    run("get", "PROJ-1", "status")
    assert capsys.readouterr().out == "In Progress\n"


def test_get_without_description(ctx, capsys):
    ctx.client.get_issue.return_value = ticket(description=None)
    run("get", "PROJ-1", "description")
    assert capsys.readouterr().out == "No description found.\n"


def test_get_unknown_field(ctx, capsys):
    ctx.client.get_issue.return_value = ticket()
    run_failing("get", "PROJ-1", "priority")
    assert "Available fields: ID, Title" in capsys.readouterr().err


# create


def test_create_in_active_sprint(ctx, capsys):
    ctx.client.get_current_account_id.return_value = "acc-1"
    ctx.client.get_board_id.return_value = 7
    ctx.client.get_active_sprint.return_value = {"id": 42, "name": "Sprint 5"}
    ctx.client.create_issue.return_value = {"key": "PROJ-9"}

    run("create", "Fix login", "-p", "proj")

    ctx.client.infer_project_key.assert_not_called()
    ctx.client.get_board_id.assert_called_once_with("PROJ")
    payload = ctx.client.create_issue.call_args[0][0]
    assert payload["fields"][SPRINT_FIELD] == 42
    assert payload["fields"]["project"] == {"key": "PROJ"}
    assert payload["fields"]["assignee"] == {"accountId": "acc-1"}

    out = capsys.readouterr().out
    assert "Successfully created ticket: PROJ-9" in out
    assert 'Assigned to sprint: "Sprint 5"' in out


def test_create_without_sprint_still_creates(ctx, capsys):
    ctx.client.get_current_account_id.return_value = "acc-1"
    ctx.client.infer_project_key.return_value = "PROJ"
    ctx.client.get_board_id.side_effect = NotFoundError("No boards found for project PROJ")
    ctx.client.create_issue.return_value = {"key": "PROJ-9"}

    run("c", "Fix login")

    payload = ctx.client.create_issue.call_args[0][0]
    assert SPRINT_FIELD not in payload["fields"]
    captured = capsys.readouterr()
    assert "Warning" in captured.err
    assert "Assigned to sprint" not in captured.out


def test_create_failure_exits(ctx, capsys):
    ctx.client.get_current_account_id.return_value = "acc-1"
    ctx.client.get_active_sprint.return_value = {"id": 42, "name": "Sprint 5"}
    ctx.client.create_issue.side_effect = APIError(
        "Error creating ticket: 400 Bad Request\n{\"errors\":{}}", status_code=400
    )

    run_failing("create", "Fix login", "-p", "PROJ")
    assert "Error: Error creating ticket: 400" in capsys.readouterr().err


# done / assign


def test_done(ctx, capsys):
    ctx.client.find_transition_id.return_value = "31"

    run("done", "proj-1")

    ctx.client.find_transition_id.assert_called_once_with("PROJ-1", "Done")
    ctx.client.transition_issue.assert_called_once_with("PROJ-1", "31")
    assert "successfully transitioned to Done" in capsys.readouterr().out


def test_assign(ctx):
    ctx.client.find_account_id.return_value = "acc-2"
    run("assign", "PROJ-1", "alice@example.com")
    ctx.client.assign_issue.assert_called_once_with("PROJ-1", "acc-2")


def test_assign_unknown_user(ctx, capsys):
    ctx.client.find_account_id.side_effect = NotFoundError("No user found matching 'zed'")
    run_failing("assign", "PROJ-1", "zed")
    ctx.client.assign_issue.assert_not_called()
    assert "No user found matching 'zed'" in capsys.readouterr().err


def test_assignees_infers_project(ctx, capsys):
    ctx.client.infer_project_key.return_value = "PROJ"
    ctx.client.get_assignable_users.return_value = [
        {"displayName": "Alice", "accountId": "acc-1", "emailAddress": "a@example.com"}
    ]

    run("assignees")

    ctx.client.get_assignable_users.assert_called_once_with("PROJ")
    out = capsys.readouterr().out
    assert "Assignable users for project 'PROJ':" in out
    assert "acc-1" in out


# sprint


def test_sprint_requires_both_arguments(ctx, capsys):
    run_failing("sprint", "PROJ-1")
    assert "Invalid arguments" in capsys.readouterr().err
    ctx.client.assign_to_sprint.assert_not_called()


def test_sprint_shows_active(ctx, capsys):
    ctx.client.infer_project_key.return_value = "PROJ"
    ctx.client.get_board_id.return_value = 7
    ctx.client.get_active_sprint.return_value = {"id": 5, "name": "Sprint 5", "goal": None}

    run("sprint")

    out = capsys.readouterr().out
    assert "Name: Sprint 5" in out
    assert "Goal: Not set" in out


def test_sprint_assigns_ticket(ctx):
    ctx.client.get_project_key.return_value = "PROJ"
    ctx.client.get_board_id.return_value = 7
    ctx.client.find_sprint_by_name.return_value = {"id": 10, "name": "Sprint 10"}

    run("s", "proj-1", "sprint 10")

    ctx.client.find_sprint_by_name.assert_called_once_with(7, "sprint 10")
    ctx.client.assign_to_sprint.assert_called_once_with(10, ["PROJ-1"])


def test_sprint_ambiguous_match(ctx, capsys):
    ctx.client.get_project_key.return_value = "PROJ"
    ctx.client.get_board_id.return_value = 7
    ctx.client.find_sprint_by_name.side_effect = AmbiguousMatchError(
        "Sprint 1", ["Sprint 1", "Sprint 10"]
    )

    run_failing("sprint", "PROJ-1", "Sprint 1")

    ctx.client.assign_to_sprint.assert_not_called()
    assert "Multiple sprints match your query 'Sprint 1'" in capsys.readouterr().err


# sp


def test_sp_set(ctx, capsys):
    run("sp", "proj-1", "5")
    ctx.client.set_story_points.assert_called_once_with("PROJ-1", SP_FIELD, 5)
    assert "Successfully set Story Points to 5" in capsys.readouterr().out


def test_sp_rejects_non_integer(ctx, capsys):
    run_failing("sp", "PROJ-1", "lots")
    ctx.client.set_story_points.assert_not_called()
    assert "non-negative integer" in capsys.readouterr().err


@pytest.mark.parametrize("points", ["5", "5.0", "5pts", " 5"])
def test_sp_uses_leading_integer(ctx, points):
    run("sp", "PROJ-1", points)
    ctx.client.set_story_points.assert_called_once_with("PROJ-1", SP_FIELD, 5)


def test_sp_show(ctx, capsys):
    ctx.client.get_issue.return_value = ticket()
    run("sp", "PROJ-1")
    assert "Story Points for PROJ-1: 5" in capsys.readouterr().out


def test_sp_summary(ctx, capsys):
    ctx.client.search.side_effect = [
        [{"fields": {SP_FIELD: 3}}, {"fields": {SP_FIELD: None}}],
        [{"fields": {SP_FIELD: 2.0}}, {"fields": {SP_FIELD: 5}}],
    ]

    run("sp")

    out = capsys.readouterr().out
    assert "Open:   3" in out
    assert "Closed: 7" in out
    assert "Total:  10" in out


def test_sp_without_field(ctx, capsys):
    ctx.resolver.store = MemoryFieldIdStore()
    ctx.resolver._resolved.clear()
    ctx.client.get_fields.return_value = [{"id": "summary", "name": "Summary"}]

    run_failing("sp", "PROJ-1", "3")
    assert "'Story Points' field not found" in capsys.readouterr().err


# edit


def test_edit_requires_a_field(ctx, capsys):
    run_failing("edit", "PROJ-1")
    assert "You must provide a field to edit" in capsys.readouterr().err
    ctx.client.update_issue.assert_not_called()


def test_edit_title(ctx):
    run("edit", "proj-1", "--title", "New title")
    ctx.client.update_issue.assert_called_once_with(
        "PROJ-1", {"fields": {"summary": "New title"}}
    )


def test_edit_description_text(ctx):
    run("edit", "PROJ-1", "--description", "Some **bold**")
    payload = ctx.client.update_issue.call_args[0][1]
    assert payload == {"fields": {"description": markdown_to_adf("Some **bold**")}}


def test_edit_blank_description_clears_it(ctx):
    run("edit", "PROJ-1", "--description", "")
    ctx.client.update_issue.assert_called_once_with(
        "PROJ-1", {"fields": {"description": None}}
    )


def test_edit_description_in_editor(ctx):
    ctx.client.get_issue.return_value = {
        "fields": {"description": markdown_to_adf("old text")}
    }

    with patch("jira_cli.cli.edit_text", return_value="new text\n") as editor:
        run("edit", "PROJ-1", "--description")

    assert editor.call_args[0][0] == "old text"
    payload = ctx.client.update_issue.call_args[0][1]
    assert payload == {"fields": {"description": markdown_to_adf("new text\n")}}


def test_edit_description_unchanged(ctx, capsys):
    ctx.client.get_issue.return_value = {
        "fields": {"description": markdown_to_adf("old text")}
    }

    with patch("jira_cli.cli.edit_text", return_value="old text\n"):
        run("edit", "PROJ-1", "--description")

    ctx.client.update_issue.assert_not_called()
    out = capsys.readouterr().out
    assert "Description unchanged. Skipping update." in out
    assert "No changes to apply." in out


def test_edit_description_editor_aborted(ctx, capsys):
    ctx.client.get_issue.return_value = {"fields": {"description": None}}

    with patch("jira_cli.cli.edit_text", side_effect=UserAborted("Editor closed with status 1.")):
        run("edit", "PROJ-1", "--description")

    ctx.client.update_issue.assert_not_called()
    assert "Aborting description update" in capsys.readouterr().err


def test_edit_title_kept_when_editor_aborted(ctx):
    ctx.client.get_issue.return_value = {"fields": {}}

    with patch("jira_cli.cli.edit_text", side_effect=UserAborted("x")):
        run("edit", "PROJ-1", "--title", "New", "--description")

    ctx.client.update_issue.assert_called_once_with("PROJ-1", {"fields": {"summary": "New"}})


# comments


def test_comment_from_argument(ctx):
    run("comment", "proj-1", "Looks *good*")
    ctx.client.add_comment.assert_called_once_with("PROJ-1", markdown_to_adf("Looks *good*"))


def test_comment_from_editor(ctx):
    with patch("jira_cli.cli.edit_text", return_value="From the editor\n") as editor:
        run("comment", "PROJ-1")

    assert editor.call_args[1]["prefix"] == "comment"
    ctx.client.add_comment.assert_called_once()


def test_empty_comment_is_not_posted(ctx, capsys):
    with patch("jira_cli.cli.edit_text", return_value="  \n"):
        run("comment", "PROJ-1")

    ctx.client.add_comment.assert_not_called()
    assert "Comment is empty. Aborting." in capsys.readouterr().out


def test_aborted_comment_is_not_posted(ctx, capsys):
    with patch("jira_cli.cli.edit_text", side_effect=UserAborted("Editor closed with status 1.")):
        run("comment", "PROJ-1")

    ctx.client.add_comment.assert_not_called()
    assert "Aborting comment." in capsys.readouterr().out


def test_comments_listing(ctx, capsys):
    ctx.client.get_comments.return_value = [
        {
            "author": {"displayName": "Alice"},
            "created": "2024-01-02T03:04:05.000+0000",
            "body": markdown_to_adf("first line\n\nsecond"),
        }
    ]

    run("comments", "PROJ-1")

    out = capsys.readouterr().out
    assert "Alice | 2024-01-0" in out
    assert "    first line\n    \n    second" in out
    assert "\033[" not in out


def test_no_comments(ctx, capsys):
    ctx.client.get_comments.return_value = []
    run("comments", "PROJ-1")
    assert "No comments found for this ticket." in capsys.readouterr().out


# setup commands


def test_test_auth(ctx, capsys):
    ctx.client.get_current_user.return_value = {
        "displayName": "Alice",
        "emailAddress": "a@example.com",
        "accountId": "acc-1",
    }
    run("test-auth")
    out = capsys.readouterr().out
    assert "Authentication successful" in out
    assert "Account ID: acc-1" in out


def test_create_config(tmp_path, capsys):
    path = tmp_path / "jira-cli"
    run("--config", str(path), "create-config")
    assert path.exists()
    assert str(path) in capsys.readouterr().out


def test_missing_configuration_exits(monkeypatch, tmp_path, capsys):
    monkeypatch.delenv("JIRA_DOMAIN", raising=False)
    monkeypatch.delenv("JIRA_AUTH", raising=False)

    run_failing("--config", str(tmp_path / "missing"), "list")

    assert "Missing required environment variables: JIRA_DOMAIN and JIRA_AUTH" in (
        capsys.readouterr().err
    )
