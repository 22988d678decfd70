"""Subprocess helpers shared by the materializer and the scaffolder."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path

from .types import ErrorKind


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one external command."""

    success: bool
    output: str = ""
    kind: ErrorKind | None = None


def run_command(
    cmd: list[str],
    *,
    cwd: Path | None = None,
    timeout: float | None = None,
) -> CommandResult:
    """Run a command with error handling.

    Args:
        cmd: Command and arguments as a list.
        cwd: Working directory.
        timeout: Timeout in seconds, None waits indefinitely.

    Returns:
        CommandResult with stdout on success, or the error kind and message.
    """
    try:
        result = subprocess.run(
            cmd,
            cwd=str(cwd) if cwd is not None else None,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        return CommandResult(False, f"Command timed out after {timeout}s", ErrorKind.TIMEOUT)
    except FileNotFoundError:
        return CommandResult(False, f"Command not found: {cmd[0]}", ErrorKind.COMMAND_NOT_FOUND)
    except OSError as e:
        return CommandResult(False, str(e), ErrorKind.OS_ERROR)

    if result.returncode != 0:
        error_msg = result.stderr.strip() if result.stderr else ""
        if not error_msg:
            error_msg = f"Command failed with exit code {result.returncode}"
        return CommandResult(False, error_msg, ErrorKind.COMMAND_FAILED)
    return CommandResult(True, result.stdout)
