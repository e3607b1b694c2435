"""
External command execution.

Every call into git, gh or an editor goes through ``run_command`` (blocking)
or ``run_command_async`` (awaitable). Both wait for the child to exit and hand
back whatever was captured, whatever the exit code. A program that cannot be
started is reported as a result with empty stdout rather than an exception,
so callers can treat "not installed" and "ran and failed" the same way.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shlex
import shutil
import subprocess
import sys
from dataclasses import dataclass
from typing import Sequence

logger = logging.getLogger(__name__)

EXIT_CANNOT_EXECUTE = 126
EXIT_NOT_FOUND = 127
EXIT_TIMEOUT = 124


@dataclass
class CommandInfo:
    """Description of one external program invocation."""

    program: str
    arguments: str | Sequence[str] = ""
    cwd: str | None = None
    capture_stdout: bool = True
    capture_stderr: bool = True
    use_shell: bool = False  # run through the user's shell and its environment
    no_window: bool = True
    elevate: bool = False
    timeout: float | None = None

    def argv(self) -> list[str]:
        if isinstance(self.arguments, str):
            args = shlex.split(self.arguments)
        else:
            args = list(self.arguments)
        argv = [self.program, *args]
        if self.elevate:
            return _elevated_argv(argv)
        return argv

    def command_line(self) -> str:
        if isinstance(self.arguments, str):
            return f"{self.program} {self.arguments}".strip()
        return shlex.join([self.program, *self.arguments])

    def target(self) -> tuple[str | list[str], bool]:
        """What to start, and whether it goes through the shell."""
        if not self.use_shell:
            return self.argv(), False
        if self.elevate:
            # The elevation wrapper must own the shell, not run inside it
            return _elevated_argv(_shell_argv(self.command_line())), False
        return self.command_line(), True


@dataclass
class CommandResult:
    stdout: str
    stderr: str
    returncode: int

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def which(program: str) -> str | None:
    """Resolve a program on PATH."""
    return shutil.which(program)


def _elevated_argv(argv: list[str]) -> list[str]:
    if sys.platform != "win32":
        return ["sudo", *argv]

    def quote(value: str) -> str:
        return "'" + value.replace("'", "''") + "'"

    script = f"$p = Start-Process -FilePath {quote(argv[0])} -Verb RunAs -Wait -PassThru"
    if len(argv) > 1:
        script += " -ArgumentList " + ",".join(quote(arg) for arg in argv[1:])
    script += "; exit $p.ExitCode"
    return ["powershell", "-NoProfile", "-Command", script]


def _shell_argv(command_line: str) -> list[str]:
    if sys.platform == "win32":
        return [os.environ.get("COMSPEC", "cmd.exe"), "/C", command_line]
    return ["/bin/sh", "-c", command_line]


def _creation_flags(info: CommandInfo) -> int:
    if info.no_window and sys.platform == "win32":
        return getattr(subprocess, "CREATE_NO_WINDOW", 0)
    return 0


def _decode(value: str | bytes | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


def _start_failure(info: CommandInfo, exc: OSError) -> CommandResult:
    code = EXIT_NOT_FOUND if isinstance(exc, FileNotFoundError) else EXIT_CANNOT_EXECUTE
    logger.debug("Could not start %s: %s", info.program, exc)
    return CommandResult(stdout="", stderr=str(exc), returncode=code)


def _pipes(info: CommandInfo) -> tuple[int | None, int | None]:
    capture = not info.elevate
    stdout = subprocess.PIPE if capture and info.capture_stdout else None
    stderr = subprocess.PIPE if capture and info.capture_stderr else None
    return stdout, stderr


def run_command(info: CommandInfo) -> CommandResult:
    """Run a program to completion and return its captured output."""
    stdout_pipe, stderr_pipe = _pipes(info)
    target, shell = info.target()
    logger.debug("Running %s (cwd=%s)", target, info.cwd)

    try:
        completed = subprocess.run(
            target,
            cwd=info.cwd,
            shell=shell,
            stdout=stdout_pipe,
            stderr=stderr_pipe,
            stdin=subprocess.DEVNULL if stdout_pipe else None,
            encoding="utf-8",
            errors="replace",
            timeout=info.timeout,
            creationflags=_creation_flags(info),
        )
    except subprocess.TimeoutExpired as exc:
        logger.warning("%s timed out after %ss", info.program, info.timeout)
        return CommandResult(_decode(exc.stdout), _decode(exc.stderr), EXIT_TIMEOUT)
    except OSError as exc:
        return _start_failure(info, exc)

    return CommandResult(
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
        returncode=completed.returncode,
    )


async def _drain(stream: asyncio.StreamReader | None, chunks: list[bytes]) -> None:
    if stream is None:
        return
    while True:
        chunk = await stream.read(4096)
        if not chunk:
            return
        chunks.append(chunk)


async def run_command_async(info: CommandInfo) -> CommandResult:
    """Awaitable counterpart of :func:`run_command`."""
    stdout_pipe, stderr_pipe = _pipes(info)
    target, shell = info.target()
    logger.debug("Running %s (cwd=%s)", target, info.cwd)

    try:
        if shell:
            process = await asyncio.create_subprocess_shell(
                target,
                cwd=info.cwd,
                stdout=stdout_pipe,
                stderr=stderr_pipe,
                stdin=subprocess.DEVNULL if stdout_pipe else None,
                creationflags=_creation_flags(info),
            )
        else:
            process = await asyncio.create_subprocess_exec(
                *target,
                cwd=info.cwd,
                stdout=stdout_pipe,
                stderr=stderr_pipe,
                stdin=subprocess.DEVNULL if stdout_pipe else None,
                creationflags=_creation_flags(info),
            )
    except OSError as exc:
        return _start_failure(info, exc)

    # Read incrementally so a timeout still returns what was printed so far
    out: list[bytes] = []
    err: list[bytes] = []
    try:
        await asyncio.wait_for(
            asyncio.gather(_drain(process.stdout, out), _drain(process.stderr, err), process.wait()),
            timeout=info.timeout,
        )
    except asyncio.TimeoutError:
        logger.warning("%s timed out after %ss", info.program, info.timeout)
        try:
            process.kill()
        except ProcessLookupError:
            pass  # exited on its own meanwhile
        await process.wait()
        return CommandResult(_decode(b"".join(out)), _decode(b"".join(err)), EXIT_TIMEOUT)

    return CommandResult(
        stdout=_decode(b"".join(out)),
        stderr=_decode(b"".join(err)),
        returncode=process.returncode if process.returncode is not None else -1,
    )
