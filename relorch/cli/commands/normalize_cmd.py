"""Normalize command - rename one raw artifact and write its digest."""

from __future__ import annotations

from pathlib import Path

import typer

from relorch.cli.commands._helpers import exit_on_pipeline_error
from relorch.cli.context import build_context
from relorch.core.errors import ErrorCode
from relorch.output.console import Style
from relorch.release.matrix import TargetMatrix
from relorch.release.normalize import normalize_artifact


def normalize(
    entry: str = typer.Option(..., "--entry", help="Matrix entry name (e.g. Linux-x86_64)"),
    directory: Path | None = typer.Option(
        None,
        "--dir",
        help="Directory holding the raw artifact (default: <target_dir>/<target>/release)",
        show_default=False,
    ),
) -> None:
    """Rename a built artifact to its canonical name and write the .sha256 file."""
    ctx = build_context()
    library = ctx.config.library.name
    matrix_entry = TargetMatrix.from_config(ctx.config).get(entry)
    if matrix_entry is None:
        ctx.console.error(f"unknown matrix entry: {entry}")
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    out_dir = directory or matrix_entry.output_dir(Path(ctx.config.build.target_dir))
    if not out_dir.is_absolute():
        out_dir = ctx.workspace_root / out_dir

    artifact = exit_on_pipeline_error(
        normalize_artifact(
            raw_path=out_dir / matrix_entry.raw_file(library),
            canonical_name=matrix_entry.canonical_file(library),
            entry=matrix_entry.name,
        ),
        ctx,
    )
    if not artifact.renamed:
        ctx.console.print(f"{artifact.name} already canonical", Style.DIM)
    ctx.console.success(f"{artifact.path}")
    ctx.console.print(f"sha256 {artifact.sha256}", Style.DIM)
