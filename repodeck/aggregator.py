"""
Aggregate open pull requests across every registered repository.

Each call reads the registry afresh and fetches repositories in registry
order. A repository that fails, whether through a gate or an unexpected
exception, contributes a failed LoadStatus and never stops the run, so the
result always holds exactly one status per repository.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from .fetcher import FetchFailed, FetchResult, PullRequestFetcher
from .models import LoadStatus, PullRequest, Repository
from .registry import RepoRegistry

logger = logging.getLogger(__name__)


@dataclass
class AggregateResult:
    pull_requests: list[PullRequest] = field(default_factory=list)
    statuses: list[LoadStatus] = field(default_factory=list)

    @property
    def failed(self) -> list[LoadStatus]:
        return [status for status in self.statuses if not status.success]


class PullRequestAggregator:
    def __init__(self, registry: RepoRegistry, fetcher: PullRequestFetcher, concurrency: int = 1):
        self.registry = registry
        self.fetcher = fetcher
        self.concurrency = max(1, concurrency)

    async def _fetch_guarded(self, repo: Repository) -> FetchResult:
        try:
            return await self.fetcher.fetch(repo)
        except Exception as e:
            logger.exception("Unexpected error loading PRs for %s", repo.name)
            return FetchFailed(LoadStatus(repository_name=repo.name, success=False, message=f"Error: {e}"))

    async def _fetch_all(self, repos: list[Repository]) -> list[FetchResult]:
        if self.concurrency == 1:
            return [await self._fetch_guarded(repo) for repo in repos]

        semaphore = asyncio.Semaphore(self.concurrency)

        async def bounded(repo: Repository) -> FetchResult:
            async with semaphore:
                return await self._fetch_guarded(repo)

        # gather keeps results in argument order, i.e. registry order
        return list(await asyncio.gather(*(bounded(repo) for repo in repos)))

    async def get_my_open_pull_requests(self) -> AggregateResult:
        """Open PRs of the current user across all repositories, newest first."""
        repos = self.registry.get_all_repos()
        results = await self._fetch_all(repos)

        pull_requests: list[PullRequest] = []
        statuses: list[LoadStatus] = []
        for result in results:
            pull_requests.extend(result.pull_requests)
            statuses.append(result.status)

        # sorted() is stable, equal timestamps keep encounter order
        pull_requests = sorted(pull_requests, key=lambda pr: pr.created_at, reverse=True)
        logger.info(
            "Loaded %d PR(s) from %d repo(s), %d failed",
            len(pull_requests),
            len(repos),
            sum(1 for status in statuses if not status.success),
        )
        return AggregateResult(pull_requests=pull_requests, statuses=statuses)

    def collect(self) -> AggregateResult:
        """Blocking wrapper around :meth:`get_my_open_pull_requests`."""
        return asyncio.run(self.get_my_open_pull_requests())
