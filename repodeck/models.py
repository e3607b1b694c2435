"""
Value types shared by the registry, the fetcher and the aggregator.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class RepoKind(str, Enum):
    """Execution environment a repository is opened in."""

    CODE = "code"  # VS Code on the host
    WSL = "wsl"  # VS Code inside a WSL distro
    STUDIO = "studio"  # Visual Studio
    OTHER = "other"

    @classmethod
    def parse(cls, raw: str | None) -> "RepoKind":
        if not raw:
            return cls.CODE
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return cls.OTHER


class BuildStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    PENDING = "pending"
    UNKNOWN = "unknown"


@dataclass
class Repository:
    """A registered local working copy."""

    name: str
    path: str
    kind: RepoKind = RepoKind.CODE
    has_active_directory: bool = False


@dataclass(frozen=True)
class PullRequest:
    """An open pull request authored by the current user."""

    title: str
    source_repository: str
    number: int
    author: str
    url: str
    build_status: BuildStatus
    created_at: datetime
    status: str = "open"

    @property
    def has_failed_checks(self) -> bool:
        return self.build_status is BuildStatus.FAILURE

    def to_dict(self) -> dict[str, object]:
        return {
            "title": self.title,
            "repo": self.source_repository,
            "number": self.number,
            "author": self.author,
            "url": self.url,
            "status": self.status,
            "has_failed_checks": self.has_failed_checks,
            "build_status": self.build_status.value,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class LoadStatus:
    """Outcome of loading one repository's pull requests."""

    repository_name: str
    success: bool
    message: str

    def to_dict(self) -> dict[str, object]:
        return {
            "repo": self.repository_name,
            "success": self.success,
            "message": self.message,
        }
