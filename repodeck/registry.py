"""
Read-only registry of the repositories listed in repodeck.yml.
"""

from __future__ import annotations

import logging
from pathlib import Path

from .config import RepodeckConfig
from .models import Repository

logger = logging.getLogger(__name__)


class UnknownRepositoryError(LookupError):
    """No repository is registered under the requested name."""


def has_active_directory(path: str) -> bool:
    return Path(path).is_dir()


class RepoRegistry:
    """Ordered set of registered repositories."""

    def __init__(self, repos: list[Repository]):
        self._repos = repos

    @classmethod
    def from_config(cls, config: RepodeckConfig) -> "RepoRegistry":
        repos = [
            Repository(
                name=entry.name,
                path=entry.path,
                kind=entry.kind,
                has_active_directory=has_active_directory(entry.path),
            )
            for entry in config.repos
        ]
        logger.debug("Loaded %d repositories from %s", len(repos), config.source)
        return cls(repos)

    def get_all_repos(self) -> list[Repository]:
        return list(self._repos)

    def get_active_repos(self) -> list[Repository]:
        return [repo for repo in self._repos if repo.has_active_directory]

    def get_filtered_repos(self, query: str) -> list[Repository]:
        needle = query.lower()
        return [repo for repo in self._repos if needle in repo.name.lower()]

    def get_by_name(self, name: str) -> Repository | None:
        return next((repo for repo in self._repos if repo.name == name), None)

    def get_by_path(self, path: str) -> Repository | None:
        return next((repo for repo in self._repos if repo.path == path), None)

    def require(self, name: str) -> Repository:
        repo = self.get_by_name(name)
        if repo is None:
            raise UnknownRepositoryError(f"Repo '{name}' not found. Run: repodeck repos")
        return repo

    def __len__(self) -> int:
        return len(self._repos)
