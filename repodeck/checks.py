"""
Reduce a pull request's status-check rollup to a single build status.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable

from .models import BuildStatus


class CheckConclusion(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    ERROR = "error"
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    OTHER = "other"

    @classmethod
    def parse(cls, raw: str | None) -> "CheckConclusion":
        if not raw:
            return cls.OTHER
        return _FORGE_VOCABULARY.get(raw.strip().upper(), cls.OTHER)


_FORGE_VOCABULARY = {
    "SUCCESS": CheckConclusion.SUCCESS,
    "FAILURE": CheckConclusion.FAILURE,
    "ERROR": CheckConclusion.ERROR,
    "PENDING": CheckConclusion.PENDING,
    "EXPECTED": CheckConclusion.PENDING,
    "IN_PROGRESS": CheckConclusion.IN_PROGRESS,
    "QUEUED": CheckConclusion.IN_PROGRESS,
    "WAITING": CheckConclusion.IN_PROGRESS,
    "REQUESTED": CheckConclusion.IN_PROGRESS,
}

FAILURE_LIKE = frozenset({CheckConclusion.FAILURE, CheckConclusion.ERROR})
PENDING_LIKE = frozenset({CheckConclusion.PENDING, CheckConclusion.IN_PROGRESS})


@dataclass(frozen=True)
class CheckResult:
    """One named status check on a pull request."""

    name: str
    conclusion: CheckConclusion

    @classmethod
    def from_rollup(cls, item: dict[str, Any]) -> "CheckResult":
        """
        Build from one ``statusCheckRollup`` entry as emitted by ``gh``.

        Check runs carry ``conclusion`` (empty while running, in which case
        ``status`` says why); commit status contexts carry ``state``.
        """
        raw = item.get("conclusion") or item.get("state") or item.get("status")
        return cls(
            name=item.get("name") or item.get("context") or "",
            conclusion=CheckConclusion.parse(raw),
        )


def classify_checks(conclusions: Iterable[CheckConclusion] | None) -> BuildStatus:
    """
    Aggregate check conclusions into one build status.

    A single failing check wins over everything else, then any unfinished
    check. ``success`` is only returned when every check succeeded.
    """
    if conclusions is None:
        return BuildStatus.UNKNOWN
    seen = list(conclusions)
    if not seen:
        return BuildStatus.UNKNOWN

    if any(c in FAILURE_LIKE for c in seen):
        return BuildStatus.FAILURE
    if any(c in PENDING_LIKE for c in seen):
        return BuildStatus.PENDING
    if all(c is CheckConclusion.SUCCESS for c in seen):
        return BuildStatus.SUCCESS
    return BuildStatus.UNKNOWN


def classify_rollup(rollup: list[dict[str, Any]] | None) -> BuildStatus:
    if not rollup:
        return BuildStatus.UNKNOWN
    return classify_checks(CheckResult.from_rollup(item).conclusion for item in rollup)
