"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn, TypeVar

import typer

from relorch.core.errors import ErrorCode
from relorch.core.result import Err, Result
from relorch.output.console import Style
from relorch.output.errors import error_exit_code, print_error
from relorch.release.errors import EntryError, RunAbort, StoreError
from relorch.release.store import ensure_gh_auth, ensure_gh_available

if TYPE_CHECKING:
    from relorch.cli.context import CLIContext

T = TypeVar("T")


def exit_on_pipeline_error(result: Result[T, RunAbort | EntryError], ctx: CLIContext) -> T:
    """Return the Ok value, or print the error and exit with its code."""
    if isinstance(result, Err):
        print_error(result.error, ctx.console)
        raise typer.Exit(code=error_exit_code(result.error))
    return result.value


def require_gh(ctx: CLIContext) -> None:
    """Exit with ENV_ERROR unless gh is installed and authenticated."""
    available = ensure_gh_available()
    if isinstance(available, Err):
        _exit_store_error(available.error, ctx)

    auth = ensure_gh_auth(workspace_root=ctx.workspace_root)
    if isinstance(auth, Err):
        _exit_store_error(auth.error, ctx)


def _exit_store_error(error: StoreError, ctx: CLIContext) -> NoReturn:
    ctx.console.error(error.message)
    if error.hint:
        ctx.console.print(f"hint: {error.hint}", Style.DIM)
    raise typer.Exit(code=int(ErrorCode.ENV_ERROR))
