"""Version command - print the release version resolved from the manifest."""

from __future__ import annotations

import os
from pathlib import Path

import typer

from relorch.cli.commands._helpers import exit_on_pipeline_error
from relorch.cli.context import build_context
from relorch.core.errors import ErrorCode
from relorch.output.console import Style
from relorch.platform.files import append_text
from relorch.release.version import github_outputs, resolve_version


def version(
    manifest: Path | None = typer.Option(
        None, "--manifest", help="Manifest path (default: from relorch.toml)", show_default=False
    ),
    github_output: bool = typer.Option(
        False, "--github-output", help="Append CARGO_PKG_* outputs to $GITHUB_OUTPUT"
    ),
) -> None:
    """Resolve the version and pre-release flag."""
    ctx = build_context()
    path = manifest if manifest is not None else Path(ctx.config.library.manifest)
    if not path.is_absolute():
        path = ctx.workspace_root / path

    resolved = exit_on_pipeline_error(resolve_version(path), ctx)
    ctx.console.print(resolved.version, Style.BOLD)
    ctx.console.print(f"prerelease: {str(resolved.prerelease).lower()}", Style.DIM)

    if github_output:
        target = os.environ.get("GITHUB_OUTPUT")
        if not target:
            ctx.console.error("--github-output requires GITHUB_OUTPUT to be set")
            raise typer.Exit(code=int(ErrorCode.ENV_ERROR))
        append_text(Path(target), github_outputs(resolved))
