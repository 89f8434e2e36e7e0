"""Tests for relorch.platform.process module."""

from __future__ import annotations

import sys
import threading
import time
from pathlib import Path

import pytest

from relorch.core.result import Err, Ok
from relorch.platform.process import ProcessError, run

PY = sys.executable


class TestProcessError:
    def test_str_short_command(self) -> None:
        error = ProcessError(command=("gh", "auth"), returncode=1, stdout="", stderr="")
        assert str(error) == "gh auth failed (exit 1)"

    def test_str_long_command_truncated(self) -> None:
        error = ProcessError(
            command=("cargo", "+stable", "build", "--release"),
            returncode=101,
            stdout="",
            stderr="",
        )
        assert str(error) == "cargo +stable build ... failed (exit 101)"

    def test_tail_prefers_stderr(self) -> None:
        error = ProcessError(
            command=("x",),
            returncode=1,
            stdout="out",
            stderr="\n".join(f"line {i}" for i in range(30)),
        )
        tail = error.tail(3)
        assert tail == "line 27\nline 28\nline 29"

    def test_tail_falls_back_to_stdout(self) -> None:
        error = ProcessError(command=("x",), returncode=1, stdout="only stdout\n", stderr="  ")
        assert error.tail() == "only stdout"


class TestRun:
    def test_success_returns_stdout(self, tmp_path: Path) -> None:
        result = run([PY, "-c", "print('hello')"], cwd=tmp_path)

        assert isinstance(result, Ok)
        assert "hello" in result.value

    def test_failure_returns_error(self, tmp_path: Path) -> None:
        result = run(
            [PY, "-c", "import sys; sys.stderr.write('error msg'); sys.exit(42)"],
            cwd=tmp_path,
        )

        assert isinstance(result, Err)
        assert result.error.returncode == 42
        assert "error msg" in result.error.stderr
        assert result.error.cancelled is False

    def test_command_not_found(self, tmp_path: Path) -> None:
        result = run(["nonexistent_command_12345"], cwd=tmp_path)

        assert isinstance(result, Err)
        assert result.error.returncode == -1
        assert len(result.error.stderr) > 0

    def test_timeout(self, tmp_path: Path) -> None:
        result = run([PY, "-c", "import time; time.sleep(10)"], cwd=tmp_path, timeout=0.5)

        assert isinstance(result, Err)
        assert result.error.returncode == -1
        assert "timed out" in result.error.stderr
        assert result.error.cancelled is False

    def test_cancel_before_start(self, tmp_path: Path) -> None:
        cancel = threading.Event()
        cancel.set()

        result = run([PY, "-c", "print('never')"], cwd=tmp_path, cancel=cancel)

        assert isinstance(result, Err)
        assert result.error.cancelled is True

    def test_cancel_kills_running_process(self, tmp_path: Path) -> None:
        cancel = threading.Event()
        timer = threading.Timer(0.3, cancel.set)
        timer.start()
        started = time.monotonic()
        try:
            result = run([PY, "-c", "import time; time.sleep(30)"], cwd=tmp_path, cancel=cancel)
        finally:
            timer.cancel()

        assert isinstance(result, Err)
        assert result.error.cancelled is True
        assert time.monotonic() - started < 10

    def test_timeout_kills_grandchildren_holding_pipes(self, tmp_path: Path) -> None:
        # The grandchild inherits stdout/stderr and outlives its parent.
        script = (
            "import subprocess, sys, time; "
            "subprocess.Popen([sys.executable, '-c', 'import time; time.sleep(8)']); "
            "time.sleep(30)"
        )
        started = time.monotonic()

        result = run([PY, "-c", script], cwd=tmp_path, timeout=0.5)

        assert isinstance(result, Err)
        assert "timed out" in result.error.stderr
        assert time.monotonic() - started < 5

    def test_cancel_kills_grandchildren_holding_pipes(self, tmp_path: Path) -> None:
        script = (
            "import subprocess, sys, time; "
            "subprocess.Popen([sys.executable, '-c', 'import time; time.sleep(8)']); "
            "time.sleep(30)"
        )
        cancel = threading.Event()
        timer = threading.Timer(0.5, cancel.set)
        timer.start()
        started = time.monotonic()
        try:
            result = run([PY, "-c", script], cwd=tmp_path, cancel=cancel)
        finally:
            timer.cancel()

        assert isinstance(result, Err)
        assert result.error.cancelled is True
        assert time.monotonic() - started < 5

    def test_uses_cwd(self, tmp_path: Path) -> None:
        (tmp_path / "marker.txt").write_text("content")

        result = run([PY, "-c", "import os; print(os.listdir('.'))"], cwd=tmp_path)

        assert isinstance(result, Ok)
        assert "marker.txt" in result.value

    def test_frozen_error(self) -> None:
        error = ProcessError(("cmd",), 1, "", "")
        with pytest.raises(AttributeError):
            error.returncode = 2  # type: ignore[misc]
