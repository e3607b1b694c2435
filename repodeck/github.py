"""
Thin wrapper around the GitHub CLI (gh) and git queries.

repodeck never talks to the GitHub API itself; it relies on an installed and
authenticated ``gh``. This module builds the commands, runs them through the
command executor, and parses the JSON ``gh pr list`` prints.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Awaitable, Callable

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from .commands import CommandInfo, CommandResult, run_command_async, which
from .config import CommandsConfig
from .remotes import RemoteIdentity

logger = logging.getLogger(__name__)

PR_LIST_FIELDS = "number,title,url,statusCheckRollup,createdAt"
AUTH_SUCCESS_MARKERS = ("Logged in", "✓")

Runner = Callable[[CommandInfo], Awaitable[CommandResult]]


class GhParseError(ValueError):
    """gh printed something that is not a list of pull requests."""


class GhPullRequest(BaseModel):
    """One record of ``gh pr list --json``."""

    number: int
    title: str = ""
    url: str = ""
    created_at: datetime = Field(alias="createdAt")
    status_check_rollup: list[dict[str, Any]] | None = Field(default=None, alias="statusCheckRollup")


_PR_LIST = TypeAdapter(list[GhPullRequest])


def parse_pr_list(output: str) -> list[GhPullRequest]:
    """Parse ``gh pr list --json`` output."""
    try:
        return _PR_LIST.validate_json(output)
    except ValidationError as e:
        errors = e.errors()
        detail = errors[0]["msg"] if errors else str(e)
        raise GhParseError(detail) from e


class GhClient:
    """git and gh queries used to load pull requests for one repository."""

    def __init__(self, commands: CommandsConfig | None = None, runner: Runner = run_command_async):
        self.commands = commands or CommandsConfig()
        self._run = runner

    async def _output(self, program: str, arguments: list[str], cwd: str | None = None) -> str:
        result = await self._run(
            CommandInfo(program=program, arguments=arguments, cwd=cwd, timeout=self.commands.timeout)
        )
        if not result.ok and result.stderr:
            # An empty list from a failed call would otherwise look like "no PRs"
            logger.warning("%s %s exited %d: %s", program, arguments[0], result.returncode, result.stderr.strip())
        return result.stdout.strip()

    async def git_user_name(self, repo_path: str) -> str:
        return await self._output(self.commands.git, ["-C", repo_path, "config", "user.name"])

    async def git_remote_url(self, repo_path: str) -> str:
        return await self._output(
            self.commands.git, ["-C", repo_path, "config", "--get", "remote.origin.url"]
        )

    async def list_my_open_prs(self, identity: RemoteIdentity) -> str:
        """Raw JSON of open PRs authored by the authenticated user."""
        return await self._output(
            self.commands.gh,
            [
                "pr", "list",
                "--author", "@me",
                "--state", "open",
                "--json", PR_LIST_FIELDS,
                "--repo", identity.repo_argument,
            ],
        )


async def check_authentication(commands: CommandsConfig | None = None, runner: Runner = run_command_async) -> bool:
    """
    Whether gh is installed and logged in.

    A missing gh binary is reported as not authenticated.
    """
    commands = commands or CommandsConfig()
    gh_path = which(commands.gh)
    if not gh_path:
        logger.warning("GitHub CLI (%s) is not installed", commands.gh)
        return False

    result = await runner(CommandInfo(program=gh_path, arguments=["auth", "status"], timeout=commands.timeout))
    combined = result.stdout + result.stderr
    authenticated = any(marker in combined for marker in AUTH_SUCCESS_MARKERS) or result.ok
    if not authenticated:
        logger.info("gh auth status exited %d", result.returncode)
    return authenticated
