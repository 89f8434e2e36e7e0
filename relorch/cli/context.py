from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import typer

from relorch.core.config import CONFIG_FILE_NAME, Config, apply_env, load_config
from relorch.core.errors import ErrorCode
from relorch.core.result import Err
from relorch.output.console import ConsoleProtocol, RichConsole

WORKSPACE_ENV = "RELORCH_WORKSPACE"


@dataclass(frozen=True, slots=True)
class CLIContext:
    workspace_root: Path
    config: Config
    console: ConsoleProtocol


def workspace_root() -> Path:
    env = os.environ.get(WORKSPACE_ENV)
    if env:
        return Path(env).expanduser().resolve()
    return Path.cwd().resolve()


def build_context() -> CLIContext:
    root = workspace_root()
    console = RichConsole()

    config = Config()
    config_path = root / CONFIG_FILE_NAME
    if config_path.exists():
        config_result = load_config(config_path)
        if isinstance(config_result, Err):
            console.error(config_result.error.message)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))
        config = config_result.value

    return CLIContext(
        workspace_root=root,
        config=apply_env(config, os.environ),
        console=console,
    )
