from __future__ import annotations

from pathlib import Path

import pytest

from relorch.core.result import Err, Ok
from relorch.release.errors import ManifestParseError
from relorch.release.version import (
    ResolvedVersion,
    github_outputs,
    is_prerelease,
    resolve_version,
    resolve_version_text,
)

CARGO_TOML = """\
[package]
name = "testangel-oracle"
version = "1.2.3"
edition = "2021"

[lib]
crate-type = ["cdylib"]

[dependencies]
oracle = "0.6"
"""


def test_resolves_package_version() -> None:
    result = resolve_version_text(CARGO_TOML)
    assert result == Ok(ResolvedVersion(version="1.2.3", prerelease=False))


def test_prerelease_version() -> None:
    result = resolve_version_text('[package]\nversion = "1.2.3-beta.1"\n')
    assert isinstance(result, Ok)
    assert result.value.version == "1.2.3-beta.1"
    assert result.value.prerelease is True


def test_workspace_package_section() -> None:
    text = '[workspace]\nmembers = ["a"]\n\n[workspace.package]\nversion = "0.4.0"\n'
    assert resolve_version_text(text) == Ok(ResolvedVersion("0.4.0", False))


def test_value_is_returned_verbatim() -> None:
    result = resolve_version_text('[package]\nversion   =   "v01.2.3+local"  # pinned\n')
    assert isinstance(result, Ok)
    assert result.value.version == "v01.2.3+local"


def test_no_package_section() -> None:
    result = resolve_version_text('[dependencies]\nversion = "1.0.0"\n')
    assert isinstance(result, Err)
    assert "no [package]" in result.error.message


def test_empty_manifest() -> None:
    assert isinstance(resolve_version_text(""), Err)


def test_version_after_section_end_is_not_used() -> None:
    text = '[package]\nname = "x"\n\n[dependencies]\nversion = "9.9.9"\n'
    result = resolve_version_text(text)
    assert isinstance(result, Err)
    assert "no version" in result.error.message


def test_only_first_package_section_is_considered() -> None:
    text = (
        '[workspace.package]\nversion = "1.0.0"\n\n'
        '[package]\nversion = "2.0.0"\n'
    )
    assert resolve_version_text(text) == Ok(ResolvedVersion("1.0.0", False))


def test_first_package_section_without_version_fails_even_if_later_one_has_it() -> None:
    text = '[package]\nname = "x"\nversion.workspace = true\n\n[workspace.package]\nversion = "1.0.0"\n'
    result = resolve_version_text(text)
    assert isinstance(result, Err)
    assert result.error.hint is not None


def test_first_version_assignment_wins() -> None:
    text = '[package]\nversion = "1.0.0"\nversion = "2.0.0"\n'
    assert resolve_version_text(text) == Ok(ResolvedVersion("1.0.0", False))


def test_similar_keys_are_not_version() -> None:
    text = '[package]\nrust-version = "1.70"\nversion = "0.1.0"\n'
    assert resolve_version_text(text) == Ok(ResolvedVersion("0.1.0", False))


def test_empty_version_is_rejected() -> None:
    result = resolve_version_text('[package]\nversion = ""\n')
    assert isinstance(result, Err)
    assert "empty" in result.error.message


def test_package_header_must_be_exact() -> None:
    result = resolve_version_text('[package.metadata.docs]\nversion = "1.0.0"\n')
    assert isinstance(result, Err)


@pytest.mark.parametrize(
    ("version", "expected"),
    [
        ("1.2.3", False),
        ("0.0.1", False),
        ("1.2.3-beta.1", True),
        ("1.2.3-rc1", True),
        ("2.0.0-0", True),
        ("1.0.0+build-7", True),
        ("1.0.0-", False),
        ("1.0.0-.x", False),
    ],
)
def test_is_prerelease(version: str, expected: bool) -> None:
    assert is_prerelease(version) is expected


def test_resolve_version_reads_file(tmp_path: Path) -> None:
    manifest = tmp_path / "Cargo.toml"
    manifest.write_text(CARGO_TOML, encoding="utf-8")

    assert resolve_version(manifest) == Ok(ResolvedVersion("1.2.3", False))


def test_resolve_version_missing_file(tmp_path: Path) -> None:
    result = resolve_version(tmp_path / "Cargo.toml")
    assert isinstance(result, Err)
    assert result.error.path == tmp_path / "Cargo.toml"


def test_tag_and_display_name() -> None:
    resolved = ResolvedVersion("2.0.0", False)
    assert resolved.tag == "2.0.0"
    assert resolved.display_name == "v2.0.0"


def test_github_outputs() -> None:
    assert github_outputs(ResolvedVersion("1.0.0-rc.1", True)) == (
        "CARGO_PKG_VERSION=1.0.0-rc.1\nCARGO_PKG_PRERELEASE=true\n"
    )


def test_multiline_array_does_not_end_section() -> None:
    text = '[package]\nkeywords = [\n  ["nested", "array"],\n]\nversion = "3.1.4"\n\n[[bin]]\nname = "x"\n'
    assert resolve_version_text(text) == Ok(ResolvedVersion("3.1.4", False))


def test_array_of_tables_ends_section() -> None:
    text = '[package]\nname = "x"\n\n[[bin]]\nversion = "3.1.4"\n'
    assert isinstance(resolve_version_text(text), Err)


@pytest.mark.parametrize(
    "header",
    [
        "[target.'cfg(unix)'.dependencies.libc]",
        "[target.'cfg(target_os = \"linux\")'.dependencies]",
        '[target."x86_64-pc-windows-msvc".dependencies]  # msvc only',
    ],
)
def test_target_specific_table_ends_section(header: str) -> None:
    text = f'[package]\nname = "x"\nversion.workspace = true\n\n{header}\nversion = "0.2"\n'
    result = resolve_version_text(text)
    assert isinstance(result, Err)
    assert isinstance(result.error, ManifestParseError)
    assert "inherited from the workspace" in result.error.message


def test_inline_table_workspace_version_is_reported() -> None:
    text = '[package]\nversion = { workspace = true }\n'
    result = resolve_version_text(text)
    assert isinstance(result, Err)
    assert "inherited" in result.error.message


def test_brackets_inside_strings_and_comments_are_ignored() -> None:
    text = (
        '[package]\n'
        'description = "a [b"\n'
        'exclude = [  # see [docs]\n'
        '  "tests/[fixtures]",\n'
        ']\n'
        'version = "1.2.3"\n'
    )
    assert resolve_version_text(text) == Ok(ResolvedVersion("1.2.3", False))
