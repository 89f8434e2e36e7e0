"""Typed configuration loading and access.

The optional `relorch.toml` at the workspace root is parsed into frozen
dataclasses. Every field has a default so a checkout without a config file
still releases with the built-in target matrix.
"""

from __future__ import annotations

import shlex
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Literal, TypeVar

from .result import Err, Ok, Result
from .structured import (
    StrDict,
    as_str_dict,
    get_bool,
    get_float,
    get_str,
    get_str_list,
    get_table,
    get_table_list,
)

__all__ = [
    "CONFIG_FILE_NAME",
    "BuildConfig",
    "Config",
    "ConfigError",
    "ExistingReleasePolicy",
    "LibraryConfig",
    "ReleaseConfig",
    "TargetConfig",
    "TimeoutsConfig",
    "apply_env",
    "load_config",
]

CONFIG_FILE_NAME = "relorch.toml"

# Libraries always have `-` characters replaced by `_` in their file names.
DEFAULT_LIBRARY_NAME = "testangel_oracle"
DEFAULT_MANIFEST = "Cargo.toml"
DEFAULT_TOOLCHAIN = "stable"
DEFAULT_TARGET_DIR = "target"

DEFAULT_BUILD_TIMEOUT_SECONDS = 60 * 60.0
DEFAULT_UPLOAD_TIMEOUT_SECONDS = 10 * 60.0
DEFAULT_RUN_TIMEOUT_SECONDS = 2 * 60 * 60.0

ExistingReleasePolicy = Literal["fail", "reuse"]


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class LibraryConfig:
    name: str = DEFAULT_LIBRARY_NAME
    manifest: str = DEFAULT_MANIFEST


@dataclass(frozen=True, slots=True)
class BuildConfig:
    toolchain: str = DEFAULT_TOOLCHAIN
    extra_args: tuple[str, ...] = ()
    use_cross: bool = False
    target_dir: str = DEFAULT_TARGET_DIR


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    repo: str | None = None  # owner/name
    on_existing: ExistingReleasePolicy = "fail"


@dataclass(frozen=True, slots=True)
class TimeoutsConfig:
    build: float = DEFAULT_BUILD_TIMEOUT_SECONDS
    upload: float = DEFAULT_UPLOAD_TIMEOUT_SECONDS
    run: float | None = DEFAULT_RUN_TIMEOUT_SECONDS


@dataclass(frozen=True, slots=True)
class TargetConfig:
    """One `[[targets]]` table. Templates use `{name}` for the library name."""

    name: str
    runner: str
    target: str
    raw_name: str
    canonical_name: str
    toolchain: str | None = None
    strip: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Config:
    library: LibraryConfig = field(default_factory=LibraryConfig)
    build: BuildConfig = field(default_factory=BuildConfig)
    release: ReleaseConfig = field(default_factory=ReleaseConfig)
    timeouts: TimeoutsConfig = field(default_factory=TimeoutsConfig)
    # Empty means "use the built-in matrix".
    targets: tuple[TargetConfig, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML).

        Raises:
            ValueError: on values that are present but unusable.
        """
        library: StrDict = _section(data, "library")
        build: StrDict = _section(data, "build")
        release: StrDict = _section(data, "release")
        timeouts: StrDict = _section(data, "timeouts")

        on_existing = _typed(release, "release", "on_existing", get_str, "a string") or "fail"
        if on_existing not in ("fail", "reuse"):
            raise ValueError(f"release.on_existing must be 'fail' or 'reuse', got {on_existing!r}")

        targets_list = get_table_list(data, "targets")
        if "targets" in data and targets_list is None:
            raise ValueError("targets must be an array of tables")
        targets = tuple(_target_from_dict(t) for t in targets_list or [])

        build_timeout = _timeout(timeouts, "build")
        upload_timeout = _timeout(timeouts, "upload")
        run_timeout = _timeout(timeouts, "run")
        return cls(
            library=LibraryConfig(
                name=_typed(library, "library", "name", get_str, "a string")
                or DEFAULT_LIBRARY_NAME,
                manifest=_typed(library, "library", "manifest", get_str, "a string")
                or DEFAULT_MANIFEST,
            ),
            build=BuildConfig(
                toolchain=_typed(build, "build", "toolchain", get_str, "a string")
                or DEFAULT_TOOLCHAIN,
                extra_args=_typed(build, "build", "extra_args", get_str_list, "a list of strings")
                or (),
                use_cross=_typed(build, "build", "use_cross", get_bool, "a boolean") or False,
                target_dir=_typed(build, "build", "target_dir", get_str, "a string")
                or DEFAULT_TARGET_DIR,
            ),
            release=ReleaseConfig(
                repo=_typed(release, "release", "repo", get_str, "a string"),
                on_existing="reuse" if on_existing == "reuse" else "fail",
            ),
            timeouts=TimeoutsConfig(
                build=build_timeout or DEFAULT_BUILD_TIMEOUT_SECONDS,
                upload=upload_timeout or DEFAULT_UPLOAD_TIMEOUT_SECONDS,
                # 0 disables the run deadline.
                run=(run_timeout or None) if "run" in timeouts else DEFAULT_RUN_TIMEOUT_SECONDS,
            ),
            targets=targets,
        )


V = TypeVar("V")


def _typed(
    table: StrDict,
    section: str,
    key: str,
    getter: Callable[[Mapping[str, object], str], V | None],
    expected: str,
) -> V | None:
    """Read an optional key; a present value of the wrong type is an error."""
    value = getter(table, key)
    if value is None and key in table:
        raise ValueError(f"{section}.{key} must be {expected}, got {table[key]!r}")
    return value


def _section(data: Mapping[str, object], key: str) -> StrDict:
    table = get_table(data, key)
    if table is None:
        if key in data:
            raise ValueError(f"[{key}] must be a table")
        return {}
    return table


def _timeout(timeouts: StrDict, key: str) -> float | None:
    value = _typed(timeouts, "timeouts", key, get_float, "a number of seconds")
    if value is not None and value < 0:
        raise ValueError(f"timeouts.{key} must not be negative, got {value}")
    return value


def _target_from_dict(data: StrDict) -> TargetConfig:
    required = ("name", "runner", "target", "raw_name", "canonical_name")
    values: dict[str, str] = {}
    for key in required:
        value = get_str(data, key)
        if value is None:
            raise ValueError(f"targets entry is missing '{key}'")
        values[key] = value

    where = f"targets.{values['name']}"
    return TargetConfig(
        name=values["name"],
        runner=values["runner"],
        target=values["target"],
        raw_name=values["raw_name"],
        canonical_name=values["canonical_name"],
        toolchain=_typed(data, where, "toolchain", get_str, "a string"),
        strip=_typed(data, where, "strip", get_str_list, "a list of strings") or (),
    )


def apply_env(config: Config, environ: Mapping[str, str]) -> Config:
    """Apply the CI environment overrides (ENGINE_NAME, CARGO_EXTRA_ARGS)."""
    out = config
    engine_name = environ.get("ENGINE_NAME", "").strip()
    if engine_name:
        out = replace(out, library=replace(out.library, name=engine_name))

    extra = environ.get("CARGO_EXTRA_ARGS", "").strip()
    if extra:
        out = replace(out, build=replace(out.build, extra_args=tuple(shlex.split(extra))))
    return out


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to relorch.toml

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))
