from __future__ import annotations

import asyncio
import sys

from repodeck.commands import (
    EXIT_NOT_FOUND,
    EXIT_TIMEOUT,
    CommandInfo,
    run_command,
    run_command_async,
    which,
)


def python(code: str, **kwargs) -> CommandInfo:
    return CommandInfo(program=sys.executable, arguments=["-c", code], **kwargs)


def test_run_command_captures_output():
    result = run_command(python("import sys; print('hello'); print('oops', file=sys.stderr)"))
    assert result.ok
    assert result.stdout.strip() == "hello"
    assert result.stderr.strip() == "oops"


def test_run_command_returns_output_on_failure():
    result = run_command(python("print('partial'); raise SystemExit(3)"))
    assert result.returncode == 3
    assert not result.ok
    assert result.stdout.strip() == "partial"


def test_run_command_missing_program_is_not_raised():
    result = run_command(CommandInfo(program="repodeck-no-such-binary", arguments="--version"))
    assert result.returncode == EXIT_NOT_FOUND
    assert result.stdout == ""


def test_run_command_respects_cwd(tmp_path):
    result = run_command(python("import os; print(os.getcwd())", cwd=str(tmp_path)))
    assert result.stdout.strip() == str(tmp_path.resolve())


def test_run_command_timeout():
    result = run_command(python("import time; time.sleep(5)", timeout=0.2))
    assert result.returncode == EXIT_TIMEOUT


def test_run_command_async_captures_output():
    result = asyncio.run(run_command_async(python("print('async'); raise SystemExit(2)")))
    assert result.returncode == 2
    assert result.stdout.strip() == "async"


def test_run_command_async_missing_program():
    result = asyncio.run(run_command_async(CommandInfo(program="repodeck-no-such-binary")))
    assert result.returncode == EXIT_NOT_FOUND
    assert result.stdout == ""


def test_run_command_async_timeout():
    result = asyncio.run(run_command_async(python("import time; time.sleep(5)", timeout=0.2)))
    assert result.returncode == EXIT_TIMEOUT


def test_string_arguments_are_split():
    info = CommandInfo(program="gh", arguments='pr list --author "@me"')
    assert info.argv() == ["gh", "pr", "list", "--author", "@me"]


def test_elevated_argv_on_posix(monkeypatch):
    monkeypatch.setattr(sys, "platform", "linux")
    info = CommandInfo(program="apt", arguments=["update"], elevate=True)
    assert info.argv() == ["sudo", "apt", "update"]


def test_elevated_argv_on_windows(monkeypatch):
    monkeypatch.setattr(sys, "platform", "win32")
    info = CommandInfo(program="powershell", arguments=["-Command", "it's"], elevate=True)
    argv = info.argv()
    assert argv[0] == "powershell"
    assert "-Verb RunAs -Wait" in argv[-1]
    assert "'it''s'" in argv[-1]


def test_which_finds_python():
    assert which(sys.executable) is not None


def test_timeout_keeps_partial_output():
    code = "import time; print('started', flush=True); time.sleep(10)"

    blocking = run_command(python(code, timeout=2))
    awaited = asyncio.run(run_command_async(python(code, timeout=2)))

    for result in (blocking, awaited):
        assert result.returncode == EXIT_TIMEOUT
        assert result.stdout.strip() == "started"


def test_shell_mode_without_elevation():
    info = CommandInfo(program="echo", arguments="one && echo two", use_shell=True)
    assert info.target() == ("echo one && echo two", True)


def test_shell_mode_elevation_wraps_the_shell(monkeypatch):
    monkeypatch.setattr(sys, "platform", "linux")
    info = CommandInfo(program="apt", arguments="update && apt upgrade -y", use_shell=True, elevate=True)

    target, shell = info.target()

    assert shell is False
    assert target == ["sudo", "/bin/sh", "-c", "apt update && apt upgrade -y"]


def test_shell_mode_elevation_on_windows(monkeypatch):
    monkeypatch.setattr(sys, "platform", "win32")
    monkeypatch.setenv("COMSPEC", "cmd.exe")
    info = CommandInfo(program="ipconfig", arguments="/flushdns", use_shell=True, elevate=True)

    target, shell = info.target()

    assert shell is False
    assert target[0] == "powershell"
    assert "-FilePath 'cmd.exe'" in target[-1]
    assert "'/C','ipconfig /flushdns'" in target[-1]
