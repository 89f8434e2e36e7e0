"""Release commands - create the release record and run the full pipeline."""

from __future__ import annotations

from enum import StrEnum

import typer

from relorch.cli.commands._helpers import exit_on_pipeline_error, require_gh
from relorch.cli.context import build_context
from relorch.core.errors import ErrorCode
from relorch.output.report import print_report
from relorch.release.builder import CargoBuildRunner
from relorch.release.orchestrator import PipelineRequest, run_pipeline
from relorch.release.publisher import ensure_release
from relorch.release.store import GhReleaseStore
from relorch.release.version import resolve_version


class OnExisting(StrEnum):
    fail = "fail"
    reuse = "reuse"


def create_release(
    on_existing: OnExisting | None = typer.Option(
        None,
        "--on-existing",
        help="What to do if the release tag already exists (default: from relorch.toml)",
        show_default=False,
    ),
) -> None:
    """Create the release record for the manifest version."""
    ctx = build_context()
    resolved = exit_on_pipeline_error(
        resolve_version(ctx.workspace_root / ctx.config.library.manifest), ctx
    )
    require_gh(ctx)

    store = GhReleaseStore(
        workspace_root=ctx.workspace_root,
        console=ctx.console,
        repo=ctx.config.release.repo,
        upload_timeout=ctx.config.timeouts.upload,
    )
    policy = on_existing.value if on_existing is not None else ctx.config.release.on_existing
    handle = exit_on_pipeline_error(
        ensure_release(store, resolved, on_existing="reuse" if policy == "reuse" else "fail"), ctx
    )
    if handle.created:
        ctx.console.success(f"release {handle.display_name} created")
    else:
        ctx.console.warning(f"release {handle.tag} already exists")


def run(
    only: list[str] = typer.Option([], "--only", help="Restrict to a matrix entry (repeatable)"),
    on_existing: OnExisting | None = typer.Option(
        None,
        "--on-existing",
        help="What to do if the release tag already exists (default: from relorch.toml)",
        show_default=False,
    ),
    cross: bool | None = typer.Option(
        None, "--cross/--no-cross", help="Build with cross instead of cargo", show_default=False
    ),
) -> None:
    """Build every matrix entry and publish the artifacts."""
    ctx = build_context()
    request = exit_on_pipeline_error(
        PipelineRequest.from_config(
            ctx.workspace_root,
            ctx.config,
            only=only,
            on_existing=None if on_existing is None else on_existing.value,
        ),
        ctx,
    )
    require_gh(ctx)

    build = ctx.config.build
    runner = CargoBuildRunner(
        workspace_root=ctx.workspace_root,
        library=request.library,
        console=ctx.console,
        extra_args=build.extra_args,
        use_cross=build.use_cross if cross is None else cross,
        target_dir=build.target_dir,
        timeout=ctx.config.timeouts.build,
    )
    store = GhReleaseStore(
        workspace_root=ctx.workspace_root,
        console=ctx.console,
        repo=ctx.config.release.repo,
        upload_timeout=ctx.config.timeouts.upload,
    )

    report = exit_on_pipeline_error(
        run_pipeline(request, runner=runner, store=store, console=ctx.console), ctx
    )
    print_report(report, ctx.console)
    if not report.ok:
        raise typer.Exit(code=int(ErrorCode.BUILD_ERROR))
