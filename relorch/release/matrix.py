"""Target matrix: the single table of supported platforms.

Each entry maps the library base name to the file name the toolchain emits on
that platform and to the canonical name published in the release. Adding a
platform is a new row here (or a `[[targets]]` table in relorch.toml), never a
new branch in the normalizer.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, replace
from pathlib import Path

from relorch.core.config import DEFAULT_TOOLCHAIN, Config
from relorch.core.result import Err, Ok, Result
from relorch.release.errors import MatrixError


@dataclass(frozen=True, slots=True)
class MatrixEntry:
    name: str
    runner: str  # CI host image the entry is built on
    target: str  # rustc target triple
    raw_name: str  # what the toolchain emits, `{name}` = library name
    canonical_name: str  # what the release publishes
    toolchain: str = DEFAULT_TOOLCHAIN
    strip: tuple[str, ...] = ()  # empty: the binary is not stripped

    def raw_file(self, library: str) -> str:
        return self.raw_name.format(name=library)

    def canonical_file(self, library: str) -> str:
        return self.canonical_name.format(name=library)

    def output_dir(self, target_dir: Path) -> Path:
        return target_dir / self.target / "release"


DEFAULT_TARGETS: tuple[MatrixEntry, ...] = (
    MatrixEntry(
        name="Linux-x86_64",
        runner="ubuntu-20.04",
        target="x86_64-unknown-linux-gnu",
        raw_name="lib{name}.so",
        canonical_name="lib{name}-linux-amd64.so",
        strip=("strip",),
    ),
    MatrixEntry(
        name="Windows-x86_64",
        runner="windows-latest",
        target="x86_64-pc-windows-msvc",
        raw_name="{name}.dll",
        canonical_name="{name}-amd64.dll",
    ),
    MatrixEntry(
        name="macOS-x86_64",
        runner="macOS-latest",
        target="x86_64-apple-darwin",
        raw_name="lib{name}.dylib",
        canonical_name="lib{name}-darwin-amd64.dylib",
        strip=("strip", "-x"),
    ),
    MatrixEntry(
        name="macOS-aarch64",
        runner="macOS-latest",
        target="aarch64-apple-darwin",
        raw_name="lib{name}.dylib",
        canonical_name="lib{name}-darwin-arm64.dylib",
        strip=("strip", "-x"),
    ),
)


@dataclass(frozen=True, slots=True)
class TargetMatrix:
    entries: tuple[MatrixEntry, ...] = DEFAULT_TARGETS

    @classmethod
    def from_config(cls, config: Config) -> TargetMatrix:
        if not config.targets:
            return cls(
                entries=tuple(
                    replace(e, toolchain=config.build.toolchain) for e in DEFAULT_TARGETS
                )
            )
        return cls(
            entries=tuple(
                MatrixEntry(
                    name=t.name,
                    runner=t.runner,
                    target=t.target,
                    raw_name=t.raw_name,
                    canonical_name=t.canonical_name,
                    toolchain=t.toolchain or config.build.toolchain,
                    strip=t.strip,
                )
                for t in config.targets
            )
        )

    def __iter__(self) -> Iterator[MatrixEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(e.name for e in self.entries)

    def get(self, name: str) -> MatrixEntry | None:
        for entry in self.entries:
            if entry.name == name:
                return entry
        return None

    def validate(self, library: str) -> Result[None, MatrixError]:
        """Check that entry names and canonical file names are unique.

        Both file names must be bare names: the raw file is looked up in the
        target's output directory and renamed in place.
        """
        if not self.entries:
            return Err(MatrixError(message="target matrix is empty"))

        seen_names: set[str] = set()
        seen_files: dict[str, str] = {}
        for entry in self.entries:
            if entry.name in seen_names:
                return Err(MatrixError(message=f"duplicate matrix entry: {entry.name}"))
            seen_names.add(entry.name)

            try:
                canonical = entry.canonical_file(library)
                raw = entry.raw_file(library)
            except (KeyError, IndexError, ValueError) as e:
                return Err(
                    MatrixError(
                        message=f"invalid name template in {entry.name}: {e}",
                        hint="templates may only use {name}",
                    )
                )

            for file_name in (raw, canonical):
                if not _is_bare_file_name(file_name):
                    return Err(
                        MatrixError(
                            message=f"invalid file name in {entry.name}: {file_name!r}",
                            hint="raw and canonical names must not contain path separators",
                        )
                    )

            other = seen_files.get(canonical)
            if other is not None:
                return Err(
                    MatrixError(
                        message=f"canonical name {canonical} used by {other} and {entry.name}",
                    )
                )
            seen_files[canonical] = entry.name
        return Ok(None)

    def select(self, names: Iterable[str]) -> Result[TargetMatrix, MatrixError]:
        """Keep only the named entries, in matrix order. No names keeps all."""
        wanted = list(dict.fromkeys(names))
        if not wanted:
            return Ok(self)

        unknown = [n for n in wanted if self.get(n) is None]
        if unknown:
            return Err(
                MatrixError(
                    message=f"unknown matrix entry: {', '.join(unknown)}",
                    hint=f"available: {', '.join(self.names)}",
                )
            )
        return Ok(TargetMatrix(entries=tuple(e for e in self.entries if e.name in wanted)))


def _is_bare_file_name(file_name: str) -> bool:
    if file_name in ("", ".", ".."):
        return False
    return "/" not in file_name and "\\" not in file_name
