"""Subprocess execution with Result-based error handling.

Toolchain and gh invocations go through `run`, which captures output, enforces
a timeout and can be interrupted through a shared cancellation event so that a
cancelled pipeline run does not leave builds or uploads running.

Usage:
    result = run(["cargo", "--version"], cwd=Path("."), timeout=30.0)
    match result:
        case Ok(stdout):
            print(stdout)
        case Err(error):
            print(f"Failed: {error.stderr}")
"""

from __future__ import annotations

import os
import signal
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from threading import Event

from relorch.core.result import Err, Ok, Result

__all__ = ["ProcessError", "run"]

# How often a running process checks the cancellation event.
_POLL_INTERVAL_SECONDS = 0.2

_POSIX = os.name == "posix"


@dataclass(frozen=True, slots=True)
class ProcessError:
    """Error from a failed subprocess execution.

    Attributes:
        command: The command that was executed.
        returncode: The exit code, or -1 if the process did not exit by itself.
        stdout: Standard output (may be empty).
        stderr: Standard error, or a description of why the process was stopped.
        cancelled: True if the process was killed because of cancellation.
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str
    cancelled: bool = False

    def __str__(self) -> str:
        cmd_str = " ".join(self.command[:3])
        if len(self.command) > 3:
            cmd_str += " ..."
        return f"{cmd_str} failed (exit {self.returncode})"

    def tail(self, lines: int = 20) -> str:
        """Last lines of stderr (or stdout), for error hints."""
        text = self.stderr.strip() or self.stdout.strip()
        return "\n".join(text.splitlines()[-lines:])


def run(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
    *,
    timeout: float | None = None,
    cancel: Event | None = None,
) -> Result[str, ProcessError]:
    """Execute a command and return stdout or error.

    Args:
        cmd: Command and arguments to execute.
        cwd: Working directory for the command.
        env: Environment variables (uses current env if None).
        timeout: Maximum seconds to wait (None for no limit).
        cancel: When set, the process is killed and the call returns Err.

    Returns:
        Ok(stdout) on success, Err(ProcessError) on failure.
    """
    if cancel is not None and cancel.is_set():
        return Err(_stopped(cmd, "cancelled before start", cancelled=True))

    try:
        proc = subprocess.Popen(
            cmd,
            cwd=str(cwd),
            env=env,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            # Own process group, so a kill also reaches rustc, linkers and the like.
            start_new_session=_POSIX,
        )
    except OSError as e:
        return Err(_stopped(cmd, str(e)))

    deadline = None if timeout is None else time.monotonic() + timeout
    while True:
        wait = _POLL_INTERVAL_SECONDS if cancel is not None else None
        if deadline is not None:
            remaining = max(0.0, deadline - time.monotonic())
            wait = remaining if wait is None else min(wait, remaining)
        try:
            stdout, stderr = proc.communicate(timeout=wait)
            break
        except subprocess.TimeoutExpired:
            if cancel is not None and cancel.is_set():
                out = _kill(proc)
                return Err(_stopped(cmd, "cancelled", stdout=out, cancelled=True))
            if deadline is not None and time.monotonic() >= deadline:
                out = _kill(proc)
                return Err(_stopped(cmd, f"Command timed out after {timeout}s", stdout=out))

    if proc.returncode != 0:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=proc.returncode,
                stdout=stdout,
                stderr=stderr,
            )
        )

    return Ok(stdout)


def _kill(proc: subprocess.Popen[str]) -> str:
    """Kill the process and its descendants, then collect what it printed.

    Grandchildren inherit the output pipes; killing only the direct child
    would leave `communicate` waiting until they exit on their own.
    """
    if _POSIX:
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass  # group already gone
    else:
        subprocess.run(
            ["taskkill", "/F", "/T", "/PID", str(proc.pid)],
            capture_output=True,
            check=False,
        )
    proc.kill()
    stdout, _ = proc.communicate()
    return stdout or ""


def _stopped(
    cmd: list[str],
    reason: str,
    *,
    stdout: str = "",
    cancelled: bool = False,
) -> ProcessError:
    return ProcessError(
        command=tuple(cmd),
        returncode=-1,
        stdout=stdout,
        stderr=reason,
        cancelled=cancelled,
    )
