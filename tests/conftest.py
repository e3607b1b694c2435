from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

import pytest

from repodeck.commands import CommandInfo, CommandResult


def pr_record(
    number: int,
    created_at: str,
    title: str = "",
    conclusions: list[str] | None = None,
) -> dict[str, Any]:
    record: dict[str, Any] = {
        "number": number,
        "title": title or f"PR {number}",
        "url": f"https://github.com/acme/widgets/pull/{number}",
        "createdAt": created_at,
        "statusCheckRollup": [
            {"__typename": "CheckRun", "name": f"check-{i}", "conclusion": c}
            for i, c in enumerate(conclusions or [])
        ],
    }
    return record


@dataclass
class FakeCommands:
    """Stands in for git and gh, keyed by repository path and the gh --repo value."""

    users: dict[str, str] = field(default_factory=dict)
    remotes: dict[str, str] = field(default_factory=dict)
    pr_output: dict[str, str | Exception] = field(default_factory=dict)
    calls: list[list[str]] = field(default_factory=list)
    default_user: str = "octocat"

    def set_prs(self, full_name: str, records: list[dict[str, Any]]) -> None:
        self.pr_output[full_name] = json.dumps(records)

    async def __call__(self, info: CommandInfo) -> CommandResult:
        args = list(info.arguments)
        self.calls.append([info.program, *args])

        if info.program == "git":
            path = args[1]
            if args[2:] == ["config", "user.name"]:
                return CommandResult(self.users.get(path, self.default_user) + "\n", "", 0)
            if args[2:] == ["config", "--get", "remote.origin.url"]:
                remote = self.remotes.get(path, "")
                return CommandResult(remote + "\n" if remote else "", "", 0 if remote else 1)

        if info.program == "gh":
            repo = args[args.index("--repo") + 1]
            output = self.pr_output.get(repo, "")
            if isinstance(output, Exception):
                raise output
            return CommandResult(output, "", 0)

        return CommandResult("", f"unexpected command {info.program}", 127)


@pytest.fixture
def fake_commands() -> FakeCommands:
    return FakeCommands()


@pytest.fixture
def make_pr():
    return pr_record
