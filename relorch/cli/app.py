from __future__ import annotations

import os
from pathlib import Path

import typer

from relorch import __version__
from relorch.cli.commands.matrix_cmd import matrix, plan
from relorch.cli.commands.normalize_cmd import normalize
from relorch.cli.commands.release_cmd import create_release, run
from relorch.cli.commands.version_cmd import version
from relorch.cli.context import WORKSPACE_ENV
from relorch.core.errors import ErrorCode


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


app.command()(version)
app.command()(matrix)
app.command()(plan)
app.command()(normalize)
app.command("create-release")(create_release)
app.command()(run)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    show_version: bool = typer.Option(False, "--version", help="Show version and exit."),
    workspace: Path | None = typer.Option(
        None,
        "--workspace",
        help="Checkout root holding the manifest (default: current directory)",
    ),
) -> None:
    if show_version:
        typer.echo(__version__)
        raise typer.Exit(code=0)

    if workspace is not None:
        try:
            root = workspace.expanduser().resolve()
        except OSError as e:
            typer.echo(f"error: invalid --workspace: {e}", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))

        if not root.is_dir():
            typer.echo(f"error: --workspace '{root}' is not a directory", err=True)
            raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

        os.environ[WORKSPACE_ENV] = str(root)


def main() -> None:
    app()
