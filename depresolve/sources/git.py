"""Git subprocess helpers shared by workspace inspection and the git source manager."""

from __future__ import annotations

import asyncio
import os
import subprocess
from pathlib import Path

from depresolve.core.errors import SourceError


class GitCommandError(SourceError):
    """A git invocation exited non-zero."""

    def __init__(self, cmd: list[str], returncode: int, stderr: str):
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"git command failed (exit {returncode}): {stderr.strip()}")


async def git(*args: str, cwd: Path | None = None) -> str:
    """Run ``git <args>`` asynchronously and return its stdout."""
    cmd = ["git", *args]
    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            cwd=str(cwd) if cwd is not None else None,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        raise GitCommandError(cmd, -1, str(exc)) from exc
    stdout, stderr = await proc.communicate()
    if proc.returncode != 0:
        raise GitCommandError(cmd, proc.returncode, stderr.decode(errors="replace"))
    return stdout.decode(errors="replace")


def git_sync(*args: str, cwd: Path | None = None) -> str:
    """Blocking variant of :func:`git`, for worker threads."""
    cmd = ["git", *args]
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd) if cwd is not None else None,
            capture_output=True,
            text=True,
            # Never prompt for credentials; a private repo is just a failure.
            env=_noninteractive_env(),
        )
    except OSError as exc:
        raise GitCommandError(cmd, -1, str(exc)) from exc
    if proc.returncode != 0:
        raise GitCommandError(cmd, proc.returncode, proc.stderr)
    return proc.stdout


def _noninteractive_env() -> dict[str, str]:
    env = dict(os.environ)
    env["GIT_TERMINAL_PROMPT"] = "0"
    return env
