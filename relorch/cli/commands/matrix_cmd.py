"""Matrix and plan commands - inspect what a run would build."""

from __future__ import annotations

import typer

from relorch.cli.commands._helpers import exit_on_pipeline_error
from relorch.cli.context import build_context
from relorch.output.console import Style
from relorch.output.report import print_plan
from relorch.release.matrix import TargetMatrix
from relorch.release.orchestrator import PipelineRequest, plan_pipeline


def matrix() -> None:
    """List the target matrix."""
    ctx = build_context()
    library = ctx.config.library.name
    target_matrix = TargetMatrix.from_config(ctx.config)
    exit_on_pipeline_error(target_matrix.validate(library), ctx)

    for entry in target_matrix:
        strip = " ".join(entry.strip) if entry.strip else "no strip"
        ctx.console.print(f"{entry.name}", Style.BOLD)
        ctx.console.print(
            f"  {entry.target} ({entry.runner}, {entry.toolchain}, {strip})", Style.DIM
        )
        ctx.console.print(
            f"  {entry.raw_file(library)} -> {entry.canonical_file(library)}", Style.DIM
        )


def plan(
    only: list[str] = typer.Option([], "--only", help="Restrict to a matrix entry (repeatable)"),
) -> None:
    """Describe a run without building or publishing."""
    ctx = build_context()
    request = exit_on_pipeline_error(
        PipelineRequest.from_config(ctx.workspace_root, ctx.config, only=only), ctx
    )
    print_plan(exit_on_pipeline_error(plan_pipeline(request), ctx), ctx.console)
