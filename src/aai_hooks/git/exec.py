"""Bounded command runners for repository inspection."""

from __future__ import annotations

import os
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

NOT_FOUND_RETURNCODE = 127
TIMEOUT_RETURNCODE = 124


@dataclass(frozen=True)
class ExecResult:
    """Result envelope for subprocess execution.

    Runners never raise for a failed, missing, or hung command; the failure is
    recorded here instead.
    """

    argv: tuple[str, ...]
    cwd: Path
    returncode: int
    stdout: str
    stderr: str
    timed_out: bool = False
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out and self.error is None

    @property
    def output(self) -> str:
        """Combined stdout and stderr."""
        if self.stderr and self.stdout:
            return f"{self.stdout}\n{self.stderr}"
        return self.stdout or self.stderr


def _decode(value: str | bytes | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


def run_command(
    argv: list[str],
    *,
    cwd: Path,
    timeout: float,
    merge_stderr: bool = False,
    env: dict[str, str] | None = None,
) -> ExecResult:
    """Run command with a hard timeout and return structured result."""
    resolved_cwd = cwd.resolve()
    executable = shutil.which(argv[0]) if argv else None
    if executable is None:
        return ExecResult(
            argv=tuple(argv),
            cwd=resolved_cwd,
            returncode=NOT_FOUND_RETURNCODE,
            stdout="",
            stderr="",
            error=f"executable not found: {argv[0] if argv else '<empty>'}",
        )

    run_env = None
    if env:
        run_env = {**os.environ, **env}

    try:
        completed = subprocess.run(
            [executable, *argv[1:]],
            cwd=resolved_cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT if merge_stderr else subprocess.PIPE,
            stdin=subprocess.DEVNULL,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            env=run_env,
            check=False,
        )
    except subprocess.TimeoutExpired as exc:
        return ExecResult(
            argv=tuple(argv),
            cwd=resolved_cwd,
            returncode=TIMEOUT_RETURNCODE,
            stdout=_decode(exc.stdout),
            stderr=_decode(exc.stderr),
            timed_out=True,
            error=f"timed out after {timeout:g}s",
        )
    except OSError as exc:
        return ExecResult(
            argv=tuple(argv),
            cwd=resolved_cwd,
            returncode=NOT_FOUND_RETURNCODE,
            stdout="",
            stderr="",
            error=str(exc),
        )

    return ExecResult(
        argv=tuple(argv),
        cwd=resolved_cwd,
        returncode=completed.returncode,
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
    )


def run_git(
    args: list[str],
    *,
    repo_root: Path,
    timeout: float,
) -> ExecResult:
    """Run git command rooted at repo."""
    return run_command(["git", *args], cwd=repo_root, timeout=timeout)
