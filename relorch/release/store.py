"""Release store backends.

A store owns release records keyed by tag. Creating a record that already
exists is reported as `already_exists`; attaching an asset whose name is
already present replaces it.
"""

from __future__ import annotations

import shutil
import threading
from dataclasses import dataclass, field
from pathlib import Path
from threading import Event
from time import sleep
from typing import Protocol

from relorch.core.config import DEFAULT_UPLOAD_TIMEOUT_SECONDS
from relorch.core.result import Err, Ok, Result
from relorch.output.console import ConsoleProtocol, Style
from relorch.platform.process import ProcessError
from relorch.platform.process import run as run_process
from relorch.release.errors import StoreError
from relorch.release.timeouts import (
    GH_READ_RETRY_ATTEMPTS,
    GH_READ_RETRY_DELAY_SECONDS,
    GH_TIMEOUT_SECONDS,
)


class ReleaseStore(Protocol):
    def create_release(
        self, *, tag: str, display_name: str, prerelease: bool
    ) -> Result[str, StoreError]:
        """Create a release and return its id."""
        ...

    def attach_asset(
        self, *, release_id: str, path: Path, cancel: Event | None = None
    ) -> Result[None, StoreError]:
        """Upload `path` under its file name, replacing a same-named asset."""
        ...


def _is_transient_gh_error(error: ProcessError) -> bool:
    text = f"{error.stderr}\n{error.stdout}".lower()
    markers = (
        "timed out",
        "timeout",
        "connection reset",
        "connection refused",
        "temporarily unavailable",
        "service unavailable",
        "bad gateway",
        "gateway timeout",
        "tls handshake timeout",
        "network is unreachable",
        "http 429",
        "http 500",
        "http 502",
        "http 503",
        "http 504",
    )
    return any(marker in text for marker in markers)


def _is_not_found(error: ProcessError) -> bool:
    text = f"{error.stderr}\n{error.stdout}".lower()
    return "release not found" in text or "http 404" in text


def ensure_gh_available() -> Result[None, StoreError]:
    if shutil.which("gh") is None:
        return Err(
            StoreError(
                kind="gh_missing",
                message="gh: missing",
                hint="Install GitHub CLI: https://cli.github.com/",
            )
        )
    return Ok(None)


def ensure_gh_auth(*, workspace_root: Path) -> Result[None, StoreError]:
    result = run_process(["gh", "auth", "status"], cwd=workspace_root, timeout=GH_TIMEOUT_SECONDS)
    if isinstance(result, Err):
        return Err(
            StoreError(
                kind="gh_auth_required",
                message="gh auth required",
                hint="Run: gh auth login (or set GITHUB_TOKEN)",
            )
        )
    return Ok(None)


@dataclass(frozen=True, slots=True)
class GhReleaseStore:
    """GitHub releases through the gh CLI. Release ids are tags."""

    workspace_root: Path
    console: ConsoleProtocol
    repo: str | None = None  # owner/name; gh infers it from the checkout when None
    upload_timeout: float = DEFAULT_UPLOAD_TIMEOUT_SECONDS

    def _repo_args(self) -> list[str]:
        return ["--repo", self.repo] if self.repo else []

    def release_exists(self, tag: str) -> Result[bool, StoreError]:
        cmd = ["gh", "release", "view", tag, *self._repo_args(), "--json", "tagName"]
        attempts = max(1, GH_READ_RETRY_ATTEMPTS)
        for attempt in range(attempts):
            result = run_process(cmd, cwd=self.workspace_root, timeout=GH_TIMEOUT_SECONDS)
            if isinstance(result, Ok):
                return Ok(True)

            error = result.error
            if _is_not_found(error):
                return Ok(False)
            if attempt < attempts - 1 and _is_transient_gh_error(error):
                sleep(GH_READ_RETRY_DELAY_SECONDS * (attempt + 1))
                continue

            return Err(
                StoreError(
                    kind="failed",
                    message=f"failed to query release {tag}",
                    hint=error.stderr.strip() or None,
                )
            )

        return Err(StoreError(kind="failed", message=f"failed to query release {tag}"))

    def create_release(
        self, *, tag: str, display_name: str, prerelease: bool
    ) -> Result[str, StoreError]:
        exists = self.release_exists(tag)
        if isinstance(exists, Err):
            return exists
        if exists.value:
            return Err(StoreError(kind="already_exists", message=f"release {tag} already exists"))

        cmd = [
            "gh",
            "release",
            "create",
            tag,
            *self._repo_args(),
            "--title",
            display_name,
            "--notes",
            "",
        ]
        if prerelease:
            cmd.append("--prerelease")

        self.console.print(" ".join(cmd[:4]) + " ...", Style.DIM)
        # Writes are not retried: a timed out create may still have succeeded.
        result = run_process(cmd, cwd=self.workspace_root, timeout=GH_TIMEOUT_SECONDS)
        if isinstance(result, Err):
            e = result.error
            if "already exists" in e.stderr.lower():
                return Err(
                    StoreError(kind="already_exists", message=f"release {tag} already exists")
                )
            return Err(
                StoreError(
                    kind="failed",
                    message=f"failed to create release {tag}",
                    hint=e.stderr.strip() or None,
                )
            )
        return Ok(tag)

    def attach_asset(
        self, *, release_id: str, path: Path, cancel: Event | None = None
    ) -> Result[None, StoreError]:
        cmd = [
            "gh",
            "release",
            "upload",
            release_id,
            str(path),
            "--clobber",
            *self._repo_args(),
        ]
        result = run_process(
            cmd, cwd=self.workspace_root, timeout=self.upload_timeout, cancel=cancel
        )
        if isinstance(result, Err):
            e = result.error
            return Err(
                StoreError(
                    kind="cancelled" if e.cancelled else "failed",
                    message=f"upload of {path.name} failed",
                    hint=e.stderr.strip() or None,
                )
            )
        return Ok(None)


@dataclass
class StoredRelease:
    tag: str
    display_name: str
    prerelease: bool
    assets: dict[str, bytes] = field(default_factory=dict)

    @property
    def asset_names(self) -> list[str]:
        return list(self.assets)


class InMemoryReleaseStore:
    """Thread-safe in-process store with last-write-wins asset semantics."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.releases: dict[str, StoredRelease] = {}
        self.create_calls = 0

    def create_release(
        self, *, tag: str, display_name: str, prerelease: bool
    ) -> Result[str, StoreError]:
        with self._lock:
            self.create_calls += 1
            if tag in self.releases:
                return Err(StoreError(kind="already_exists", message=f"release {tag} already exists"))
            self.releases[tag] = StoredRelease(
                tag=tag, display_name=display_name, prerelease=prerelease
            )
            return Ok(tag)

    def attach_asset(
        self, *, release_id: str, path: Path, cancel: Event | None = None
    ) -> Result[None, StoreError]:
        if cancel is not None and cancel.is_set():
            return Err(StoreError(kind="cancelled", message=f"upload of {path.name} cancelled"))
        try:
            content = path.read_bytes()
        except OSError as e:
            return Err(StoreError(kind="failed", message=f"cannot read {path}: {e}"))

        with self._lock:
            release = self.releases.get(release_id)
            if release is None:
                return Err(StoreError(kind="not_found", message=f"release {release_id} not found"))
            release.assets[path.name] = content
        return Ok(None)
