"""
Open a repository in the editor that matches its kind.
"""

from __future__ import annotations

import logging
import shlex
import sys

from .commands import CommandInfo, CommandResult, run_command
from .config import RepodeckConfig
from .models import RepoKind, Repository

logger = logging.getLogger(__name__)


def editor_command(repo: Repository, config: RepodeckConfig) -> CommandInfo | None:
    """The command that opens ``repo``, or None when its kind has no editor."""
    override = config.kind_config(repo.kind).command
    if override:
        argv = shlex.split(override.replace("{path}", shlex.quote(repo.path)))
        return CommandInfo(program=argv[0], arguments=argv[1:])

    if repo.kind is RepoKind.WSL:
        return CommandInfo(
            program="wsl.exe",
            arguments=["-d", config.wsl_distro, "--cd", repo.path, "--", "bash", "-c", "code .; exec bash"],
            no_window=False,
        )
    if repo.kind is RepoKind.CODE:
        if sys.platform == "win32":
            return CommandInfo(program="cmd.exe", arguments=["/C", "code", repo.path])
        if sys.platform == "darwin":
            return CommandInfo(program="open", arguments=["-a", "Visual Studio Code", repo.path])
        return CommandInfo(program="code", arguments=[repo.path])
    if repo.kind is RepoKind.STUDIO:
        return CommandInfo(program="devenv", arguments=[repo.path])
    return None


def open_in_ide(repo: Repository, config: RepodeckConfig, runner=run_command) -> bool:
    """Launch the editor for ``repo``. Returns False instead of raising on failure."""
    info = editor_command(repo, config)
    if info is None:
        logger.warning("Repo type '%s' is not supported yet.", repo.kind.value)
        return False

    result: CommandResult = runner(info)
    if not result.ok:
        logger.warning(
            "Opening %s with %s failed (%d): %s",
            repo.name,
            info.program,
            result.returncode,
            result.stderr.strip(),
        )
        return False
    return True
