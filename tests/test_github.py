from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from repodeck.commands import CommandInfo, CommandResult
from repodeck.github import GhClient, GhParseError, check_authentication, parse_pr_list
from repodeck.remotes import RemoteIdentity


def test_parse_pr_list(make_pr):
    output = json.dumps([make_pr(7, "2024-06-15T12:30:00Z", title="Add cache", conclusions=["SUCCESS"])])

    records = parse_pr_list(output)

    assert len(records) == 1
    assert records[0].number == 7
    assert records[0].title == "Add cache"
    assert records[0].created_at == datetime(2024, 6, 15, 12, 30, tzinfo=timezone.utc)
    assert records[0].status_check_rollup[0]["conclusion"] == "SUCCESS"


def test_parse_pr_list_empty_array():
    assert parse_pr_list("[]") == []


def test_parse_pr_list_without_rollup():
    records = parse_pr_list('[{"number": 1, "title": "t", "url": "u", "createdAt": "2024-01-01T00:00:00Z"}]')
    assert records[0].status_check_rollup is None


@pytest.mark.parametrize(
    "output",
    [
        "not json",
        '{"number": 1}',
        '[{"title": "missing number and date"}]',
        '[{"number": 1, "createdAt": "yesterday"}]',
    ],
)
def test_parse_pr_list_errors(output):
    with pytest.raises(GhParseError):
        parse_pr_list(output)


def test_client_builds_pr_list_command(fake_commands):
    client = GhClient(runner=fake_commands)
    fake_commands.pr_output["acme/widgets"] = "[]\n"

    output = asyncio.run(client.list_my_open_prs(RemoteIdentity("github.com", "acme", "widgets")))

    assert output == "[]"
    assert fake_commands.calls[-1] == [
        "gh", "pr", "list",
        "--author", "@me",
        "--state", "open",
        "--json", "number,title,url,statusCheckRollup,createdAt",
        "--repo", "acme/widgets",
    ]


def test_client_names_enterprise_host(fake_commands):
    client = GhClient(runner=fake_commands)

    asyncio.run(client.list_my_open_prs(RemoteIdentity("ghe.acme.io", "platform", "api")))

    assert fake_commands.calls[-1][-2:] == ["--repo", "ghe.acme.io/platform/api"]


def test_client_failure_is_logged_as_warning(caplog):
    async def runner(info: CommandInfo) -> CommandResult:
        return CommandResult("", "GraphQL: Could not resolve to a Repository", 1)

    client = GhClient(runner=runner)
    with caplog.at_level(logging.WARNING, logger="repodeck.github"):
        output = asyncio.run(client.list_my_open_prs(RemoteIdentity("github.com", "acme", "gone")))

    assert output == ""
    assert "Could not resolve to a Repository" in caplog.text


def test_client_git_queries_strip_output(fake_commands):
    client = GhClient(runner=fake_commands)
    fake_commands.users["/repo"] = "Jane Dev"
    fake_commands.remotes["/repo"] = "git@github.com:acme/widgets.git"

    assert asyncio.run(client.git_user_name("/repo")) == "Jane Dev"
    assert asyncio.run(client.git_remote_url("/repo")) == "git@github.com:acme/widgets.git"
    assert asyncio.run(client.git_remote_url("/other")) == ""
    assert fake_commands.calls[0] == ["git", "-C", "/repo", "config", "user.name"]


def auth_runner(stdout: str, stderr: str, code: int):
    calls: list[CommandInfo] = []

    async def runner(info: CommandInfo) -> CommandResult:
        calls.append(info)
        return CommandResult(stdout, stderr, code)

    return runner, calls


def test_auth_missing_gh_is_not_authenticated():
    runner, calls = auth_runner("", "", 0)
    with patch("repodeck.github.which", return_value=None):
        assert asyncio.run(check_authentication(runner=runner)) is False
    assert calls == []


def test_auth_logged_in_marker():
    runner, calls = auth_runner("", "github.com\n  ✓ Logged in to github.com account octocat", 1)
    with patch("repodeck.github.which", return_value="/usr/bin/gh"):
        assert asyncio.run(check_authentication(runner=runner)) is True
    assert calls[0].program == "/usr/bin/gh"
    assert list(calls[0].arguments) == ["auth", "status"]


def test_auth_exit_code_zero():
    runner, _ = auth_runner("", "", 0)
    with patch("repodeck.github.which", return_value="/usr/bin/gh"):
        assert asyncio.run(check_authentication(runner=runner)) is True


def test_auth_not_logged_in():
    runner, _ = auth_runner("", "You are not logged into any GitHub hosts.", 1)
    with patch("repodeck.github.which", return_value="/usr/bin/gh"):
        assert asyncio.run(check_authentication(runner=runner)) is False
