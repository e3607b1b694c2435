"""
Named helper scripts declared under ``utilities:`` in repodeck.yml.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .commands import CommandInfo, run_command
from .config import RepodeckConfig, UtilityEntry

logger = logging.getLogger(__name__)

ADMIN_NO_OUTPUT = "No output captured when running as admin"


@dataclass
class UtilityOutcome:
    success: bool
    output: str
    error: str


def shell_invocation(utility: UtilityEntry) -> tuple[str, list[str]]:
    kind = utility.type.lower()
    if kind == "powershell":
        return "powershell", ["-Command", utility.command]
    if kind == "python":
        return "python3", ["-c", utility.command]
    return "/bin/bash", ["-c", utility.command]


class UtilityRunner:
    def __init__(self, utilities: list[UtilityEntry], runner=run_command):
        self._utilities = utilities
        self._run = runner

    @classmethod
    def from_config(cls, config: RepodeckConfig) -> "UtilityRunner":
        return cls(list(config.utilities))

    def get_all(self) -> list[UtilityEntry]:
        return list(self._utilities)

    def get_by_name(self, name: str) -> UtilityEntry | None:
        return next((u for u in self._utilities if u.name == name), None)

    def get_filtered(self, query: str) -> list[UtilityEntry]:
        if not query or not query.strip():
            return self.get_all()
        needle = query.lower()
        return [
            u for u in self._utilities
            if needle in u.name.lower() or needle in u.description.lower()
        ]

    def execute(self, utility: UtilityEntry) -> UtilityOutcome:
        shell, args = shell_invocation(utility)
        if utility.requires_admin:
            result = self._run(CommandInfo(program=shell, arguments=args, elevate=True, no_window=False))
            return UtilityOutcome(result.ok, ADMIN_NO_OUTPUT, "")

        result = self._run(CommandInfo(program=shell, arguments=args))
        if not result.ok:
            logger.info("Utility %s exited %d", utility.name, result.returncode)
        return UtilityOutcome(result.ok, result.stdout, result.stderr)
