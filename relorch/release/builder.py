"""Build runner: one release-mode toolchain invocation per matrix entry."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from threading import Event
from typing import Protocol

from relorch.core.config import DEFAULT_BUILD_TIMEOUT_SECONDS
from relorch.core.result import Err, Ok, Result
from relorch.output.console import ConsoleProtocol, Style
from relorch.platform.process import ProcessError
from relorch.platform.process import run as run_process
from relorch.release.errors import ToolchainBuildError
from relorch.release.matrix import MatrixEntry


class BuildRunner(Protocol):
    def build(
        self, entry: MatrixEntry, *, cancel: Event | None = None
    ) -> Result[Path, ToolchainBuildError]:
        """Build `entry` and return the raw artifact path."""
        ...


@dataclass(frozen=True, slots=True)
class CargoBuildRunner:
    workspace_root: Path
    library: str
    console: ConsoleProtocol
    extra_args: tuple[str, ...] = ()
    use_cross: bool = False
    target_dir: str = "target"
    timeout: float = DEFAULT_BUILD_TIMEOUT_SECONDS

    def build_command(self, entry: MatrixEntry) -> list[str]:
        tool = "cross" if self.use_cross else "cargo"
        return [
            tool,
            f"+{entry.toolchain}",
            "build",
            "--locked",
            "--release",
            "--target",
            entry.target,
            *self.extra_args,
        ]

    def raw_path(self, entry: MatrixEntry) -> Path:
        return entry.output_dir(self.workspace_root / self.target_dir) / entry.raw_file(
            self.library
        )

    def build(
        self, entry: MatrixEntry, *, cancel: Event | None = None
    ) -> Result[Path, ToolchainBuildError]:
        cmd = self.build_command(entry)
        self.console.print(f"[{entry.name}] {' '.join(cmd)}", Style.DIM)

        result = run_process(cmd, cwd=self.workspace_root, timeout=self.timeout, cancel=cancel)
        if isinstance(result, Err):
            return Err(_build_error(entry, "build failed", result.error))

        raw = self.raw_path(entry)
        # A missing artifact is reported by the normalizer as a matrix mismatch.
        if entry.strip and raw.is_file():
            strip_cmd = [*entry.strip, str(raw)]
            self.console.print(f"[{entry.name}] {' '.join(strip_cmd)}", Style.DIM)
            stripped = run_process(
                strip_cmd, cwd=self.workspace_root, timeout=self.timeout, cancel=cancel
            )
            if isinstance(stripped, Err):
                return Err(_build_error(entry, "strip failed", stripped.error))

        return Ok(raw)


def _build_error(entry: MatrixEntry, what: str, error: ProcessError) -> ToolchainBuildError:
    return ToolchainBuildError(
        entry=entry.name,
        message=f"{entry.name}: {what} ({error})",
        returncode=error.returncode,
        hint=error.tail() or None,
        cancelled=error.cancelled,
    )
