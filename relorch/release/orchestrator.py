"""Pipeline orchestration.

A run resolves the version once, creates the release record (the barrier
every upload depends on), then runs one build -> normalize -> publish chain
per matrix entry on a thread pool. Chains share nothing but the release
handle and the cancellation event; the run returns after every chain has
reported, whether it succeeded, failed or was cancelled.
"""

from __future__ import annotations

from collections.abc import Iterable
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from threading import Event

from relorch.core.config import Config, ExistingReleasePolicy
from relorch.core.result import Err, Ok, Result
from relorch.output.console import ConsoleProtocol, Style
from relorch.release.builder import BuildRunner
from relorch.release.errors import ChainCrashedError, MatrixError, RunAbort
from relorch.release.matrix import MatrixEntry, TargetMatrix
from relorch.release.normalize import normalize_artifact
from relorch.release.publisher import ReleaseHandle, ensure_release, publish_artifact
from relorch.release.report import EntryOutcome, RunReport, Stage
from relorch.release.store import ReleaseStore
from relorch.release.version import ResolvedVersion, resolve_version


@dataclass(frozen=True, slots=True)
class PipelineRequest:
    workspace_root: Path
    manifest_path: Path
    library: str
    matrix: TargetMatrix
    on_existing: ExistingReleasePolicy = "fail"
    run_timeout: float | None = None

    @classmethod
    def from_config(
        cls,
        workspace_root: Path,
        config: Config,
        *,
        only: Iterable[str] = (),
        on_existing: ExistingReleasePolicy | None = None,
    ) -> Result[PipelineRequest, MatrixError]:
        selected = TargetMatrix.from_config(config).select(only)
        if isinstance(selected, Err):
            return selected
        return Ok(
            cls(
                workspace_root=workspace_root,
                manifest_path=workspace_root / config.library.manifest,
                library=config.library.name,
                matrix=selected.value,
                on_existing=on_existing or config.release.on_existing,
                run_timeout=config.timeouts.run,
            )
        )


@dataclass(frozen=True, slots=True)
class PlannedEntry:
    name: str
    runner: str
    target: str
    raw_name: str
    canonical_name: str


@dataclass(frozen=True, slots=True)
class RunPlan:
    version: ResolvedVersion
    entries: tuple[PlannedEntry, ...]


def plan_pipeline(request: PipelineRequest) -> Result[RunPlan, RunAbort]:
    """Resolve what a run would do, without building or publishing."""
    valid = request.matrix.validate(request.library)
    if isinstance(valid, Err):
        return valid

    resolved = resolve_version(request.manifest_path)
    if isinstance(resolved, Err):
        return resolved

    return Ok(
        RunPlan(
            version=resolved.value,
            entries=tuple(
                PlannedEntry(
                    name=e.name,
                    runner=e.runner,
                    target=e.target,
                    raw_name=e.raw_file(request.library),
                    canonical_name=e.canonical_file(request.library),
                )
                for e in request.matrix
            ),
        )
    )


def run_pipeline(
    request: PipelineRequest,
    *,
    runner: BuildRunner,
    store: ReleaseStore,
    console: ConsoleProtocol,
    cancel: Event | None = None,
) -> Result[RunReport, RunAbort]:
    cancel = cancel or Event()

    valid = request.matrix.validate(request.library)
    if isinstance(valid, Err):
        return valid

    resolved = resolve_version(request.manifest_path)
    if isinstance(resolved, Err):
        return resolved
    version = resolved.value
    console.info(f"version {version.version} (prerelease: {str(version.prerelease).lower()})")

    release = ensure_release(store, version, on_existing=request.on_existing)
    if isinstance(release, Err):
        return release
    if release.value.created:
        console.success(f"release {release.value.display_name} created")
    else:
        console.warning(f"release {release.value.tag} already exists, attaching to it")

    outcomes = _run_chains(
        request,
        release=release.value,
        runner=runner,
        store=store,
        console=console,
        cancel=cancel,
    )
    return Ok(RunReport(version=version, release=release.value, outcomes=outcomes))


def _run_chains(
    request: PipelineRequest,
    *,
    release: ReleaseHandle,
    runner: BuildRunner,
    store: ReleaseStore,
    console: ConsoleProtocol,
    cancel: Event,
) -> tuple[EntryOutcome, ...]:
    entries = list(request.matrix)
    done: dict[str, EntryOutcome] = {}

    with ThreadPoolExecutor(max_workers=len(entries), thread_name_prefix="relorch") as executor:
        futures: dict[Future[EntryOutcome], MatrixEntry] = {
            executor.submit(
                _run_chain,
                entry,
                library=request.library,
                release=release,
                runner=runner,
                store=store,
                console=console,
                cancel=cancel,
            ): entry
            for entry in entries
        }
        try:
            for future in as_completed(futures, timeout=request.run_timeout):
                outcome = future.result()
                done[outcome.entry] = outcome
        except TimeoutError:
            console.warning(f"run timed out after {request.run_timeout}s, cancelling")
            cancel.set()
        except KeyboardInterrupt:
            cancel.set()
            raise

    # Leaving the executor joined every chain; cancelled ones have reported too.
    for future, entry in futures.items():
        if entry.name not in done:
            done[entry.name] = future.result()

    return tuple(done[e.name] for e in entries)


def _run_chain(
    entry: MatrixEntry,
    *,
    library: str,
    release: ReleaseHandle,
    runner: BuildRunner,
    store: ReleaseStore,
    console: ConsoleProtocol,
    cancel: Event,
) -> EntryOutcome:
    canonical = entry.canonical_file(library)

    def cancelled(stage: Stage) -> EntryOutcome:
        console.warning(f"[{entry.name}] cancelled before {stage}")
        return EntryOutcome.failure(entry.name, canonical, stage, None, cancelled=True)

    # Anything raised past this point is charged to the current stage of this
    # entry only; sibling chains and the report are unaffected.
    stage: Stage = "build"
    try:
        if cancel.is_set():
            return cancelled(stage)
        built = runner.build(entry, cancel=cancel)
        if isinstance(built, Err):
            console.error(f"[{entry.name}] build: {built.error.message}")
            return EntryOutcome.failure(
                entry.name, canonical, "build", built.error, cancelled=built.error.cancelled
            )

        stage = "normalize"
        if cancel.is_set():
            return cancelled(stage)
        normalized = normalize_artifact(
            raw_path=built.value, canonical_name=canonical, entry=entry.name
        )
        if isinstance(normalized, Err):
            console.error(f"[{entry.name}] normalize: {normalized.error.message}")
            return EntryOutcome.failure(entry.name, canonical, "normalize", normalized.error)
        console.print(f"[{entry.name}] {canonical} sha256={normalized.value.sha256}", Style.DIM)

        stage = "publish"
        if cancel.is_set():
            return cancelled(stage)
        published = publish_artifact(store, release, normalized.value, cancel=cancel)
        if isinstance(published, Err):
            console.error(f"[{entry.name}] publish: {published.error.message}")
            return EntryOutcome.failure(
                entry.name,
                canonical,
                "publish",
                published.error,
                cancelled=published.error.cancelled,
            )
    except Exception as e:
        error = ChainCrashedError(
            entry=entry.name, stage=stage, message=f"{type(e).__name__}: {e}"
        )
        console.error(f"[{entry.name}] {stage}: {error.message}")
        return EntryOutcome.failure(entry.name, canonical, stage, error)

    console.success(f"[{entry.name}] published {', '.join(published.value)}")
    return EntryOutcome(entry=entry.name, canonical_name=canonical, assets=published.value)
