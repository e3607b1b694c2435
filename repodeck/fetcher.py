"""
Load the open pull requests of a single repository.

The pipeline stops at the first gate that fails and reports why:

1. the working copy exists (unless its kind is exempt)
2. git has a user configured
3. the repository has an origin remote
4. the remote URL names an owner/repo on a GitHub host gh is logged in to

Then ``gh pr list`` is queried and each record's check rollup is classified.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timezone

from .checks import classify_rollup
from .config import RepodeckConfig
from .github import GhClient, GhParseError, GhPullRequest, parse_pr_list
from .models import LoadStatus, PullRequest, Repository
from .remotes import parse_remote

logger = logging.getLogger(__name__)

NO_ACTIVE_DIRECTORY = "No active directory found"
NO_GIT_USER = "No git user configured"
NO_REMOTE_URL = "No remote URL found"
UNPARSEABLE_URL = "Could not parse GitHub URL"
NO_OPEN_PRS = "No open PRs"


@dataclass
class FetchOk:
    status: LoadStatus
    pull_requests: list[PullRequest] = field(default_factory=list)


@dataclass
class FetchFailed:
    status: LoadStatus

    @property
    def pull_requests(self) -> list[PullRequest]:
        return []


FetchResult = FetchOk | FetchFailed


def _failed(repo: Repository, message: str) -> FetchFailed:
    logger.info("%s: %s", repo.name, message)
    return FetchFailed(LoadStatus(repository_name=repo.name, success=False, message=message))


def _ok(repo: Repository, pull_requests: list[PullRequest], message: str) -> FetchOk:
    return FetchOk(LoadStatus(repository_name=repo.name, success=True, message=message), pull_requests)


def to_pull_request(record: GhPullRequest, repo: Repository, author: str) -> PullRequest:
    created_at = record.created_at
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return PullRequest(
        title=record.title,
        source_repository=repo.name,
        number=record.number,
        author=author,
        url=record.url,
        build_status=classify_rollup(record.status_check_rollup),
        created_at=created_at,
    )


class PullRequestFetcher:
    """Runs the gated pipeline for one repository at a time."""

    def __init__(self, config: RepodeckConfig, client: GhClient | None = None):
        self.config = config
        self.client = client or GhClient(config.commands)

    def _directory_required(self, repo: Repository) -> bool:
        return not self.config.kind_config(repo.kind).skip_directory_check

    async def fetch(self, repo: Repository) -> FetchResult:
        if not repo.has_active_directory and self._directory_required(repo):
            return _failed(repo, NO_ACTIVE_DIRECTORY)

        git_user = await self.client.git_user_name(repo.path)
        if not git_user:
            return _failed(repo, NO_GIT_USER)

        remote_url = await self.client.git_remote_url(repo.path)
        if not remote_url:
            return _failed(repo, NO_REMOTE_URL)

        identity = parse_remote(remote_url)
        if identity is None:
            return _failed(repo, UNPARSEABLE_URL)
        if identity.host not in self.config.commands.hosts:
            logger.debug("%s: %s is not a configured GitHub host", repo.name, identity.host)
            return _failed(repo, UNPARSEABLE_URL)

        logger.debug("%s: listing PRs for %s", repo.name, identity.repo_argument)
        output = await self.client.list_my_open_prs(identity)
        if not output:
            return _ok(repo, [], NO_OPEN_PRS)

        try:
            records = parse_pr_list(output)
        except GhParseError as e:
            return _failed(repo, f"Parse error: {e}")

        if not records:
            return _ok(repo, [], NO_OPEN_PRS)

        prs = [to_pull_request(record, repo, git_user) for record in records]
        return _ok(repo, prs, f"Loaded {len(prs)} PR(s)")
