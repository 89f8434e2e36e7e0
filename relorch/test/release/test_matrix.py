from __future__ import annotations

from pathlib import Path

import pytest

from relorch.core.config import BuildConfig, Config, TargetConfig
from relorch.core.result import Err, Ok
from relorch.release.matrix import DEFAULT_TARGETS, MatrixEntry, TargetMatrix

LIB = "testangel_oracle"


def test_default_matrix_canonical_names() -> None:
    matrix = TargetMatrix()
    assert [e.canonical_file(LIB) for e in matrix] == [
        "libtestangel_oracle-linux-amd64.so",
        "testangel_oracle-amd64.dll",
        "libtestangel_oracle-darwin-amd64.dylib",
        "libtestangel_oracle-darwin-arm64.dylib",
    ]


def test_default_matrix_raw_names() -> None:
    matrix = TargetMatrix()
    assert [e.raw_file(LIB) for e in matrix] == [
        "libtestangel_oracle.so",
        "testangel_oracle.dll",
        "libtestangel_oracle.dylib",
        "libtestangel_oracle.dylib",
    ]


def test_default_matrix_is_valid() -> None:
    assert TargetMatrix().validate(LIB) == Ok(None)


def test_windows_is_not_stripped() -> None:
    windows = TargetMatrix().get("Windows-x86_64")
    assert windows is not None
    assert windows.strip == ()


def test_output_dir() -> None:
    entry = DEFAULT_TARGETS[0]
    assert entry.output_dir(Path("target")) == Path("target/x86_64-unknown-linux-gnu/release")


def test_validate_rejects_duplicate_canonical_names() -> None:
    a = MatrixEntry("a", "r", "t1", "lib{name}.so", "lib{name}.so")
    b = MatrixEntry("b", "r", "t2", "lib{name}.so", "lib{name}.so")

    result = TargetMatrix(entries=(a, b)).validate(LIB)
    assert isinstance(result, Err)
    assert "used by a and b" in result.error.message


def test_validate_rejects_duplicate_entry_names() -> None:
    a = MatrixEntry("a", "r", "t1", "lib{name}.so", "lib{name}-1.so")
    b = MatrixEntry("a", "r", "t2", "lib{name}.so", "lib{name}-2.so")

    assert isinstance(TargetMatrix(entries=(a, b)).validate(LIB), Err)


def test_validate_rejects_bad_template() -> None:
    a = MatrixEntry("a", "r", "t1", "lib{library}.so", "lib{name}.so")

    result = TargetMatrix(entries=(a,)).validate(LIB)
    assert isinstance(result, Err)
    assert "template" in result.error.message


def test_from_config_build_toolchain_applies_to_default_targets() -> None:
    matrix = TargetMatrix.from_config(Config(build=BuildConfig(toolchain="nightly")))

    assert matrix.names == tuple(e.name for e in DEFAULT_TARGETS)
    assert {e.toolchain for e in matrix} == {"nightly"}
    assert matrix.entries[0].canonical_name == DEFAULT_TARGETS[0].canonical_name


@pytest.mark.parametrize(
    ("raw_name", "canonical_name"),
    [
        ("lib{name}.so", "dist/lib{name}.so"),
        ("lib{name}.so", "..\\lib{name}.so"),
        ("deps/lib{name}.so", "lib{name}-x.so"),
        ("lib{name}.so", ".."),
    ],
)
def test_validate_rejects_path_like_file_names(raw_name: str, canonical_name: str) -> None:
    entry = MatrixEntry("a", "r", "t1", raw_name, canonical_name)

    result = TargetMatrix(entries=(entry,)).validate(LIB)
    assert isinstance(result, Err)
    assert "invalid file name in a" in result.error.message


def test_validate_rejects_empty_matrix() -> None:
    assert isinstance(TargetMatrix(entries=()).validate(LIB), Err)


def test_select_keeps_matrix_order() -> None:
    result = TargetMatrix().select(["macOS-aarch64", "Linux-x86_64"])
    assert isinstance(result, Ok)
    assert result.value.names == ("Linux-x86_64", "macOS-aarch64")


def test_select_nothing_keeps_all() -> None:
    matrix = TargetMatrix()
    assert matrix.select([]) == Ok(matrix)


def test_select_unknown_entry() -> None:
    result = TargetMatrix().select(["Plan9-mips"])
    assert isinstance(result, Err)
    assert "Plan9-mips" in result.error.message
    assert result.error.hint is not None and "Linux-x86_64" in result.error.hint


def test_from_config_without_targets_uses_defaults() -> None:
    assert TargetMatrix.from_config(Config()).entries == DEFAULT_TARGETS


def test_from_config_targets_replace_defaults() -> None:
    config = Config(
        targets=(
            TargetConfig(
                name="Linux-aarch64",
                runner="ubuntu-latest",
                target="aarch64-unknown-linux-gnu",
                raw_name="lib{name}.so",
                canonical_name="lib{name}-linux-arm64.so",
                strip=("aarch64-linux-gnu-strip",),
            ),
        )
    )
    matrix = TargetMatrix.from_config(config)
    assert matrix.names == ("Linux-aarch64",)
    entry = matrix.entries[0]
    assert entry.toolchain == "stable"
    assert entry.canonical_file("x") == "libx-linux-arm64.so"
