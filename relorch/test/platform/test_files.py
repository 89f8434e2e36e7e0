from __future__ import annotations

import os
from pathlib import Path

import pytest

from relorch.platform.files import append_text, atomic_write_text


def test_atomic_write_text_creates_parent_dirs(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "lib.so.sha256"
    atomic_write_text(path, "abc\n")

    assert path.read_text(encoding="utf-8") == "abc\n"


def test_atomic_write_text_replaces_existing_content(tmp_path: Path) -> None:
    path = tmp_path / "lib.so.sha256"
    path.write_text("old", encoding="utf-8")

    atomic_write_text(path, "new")

    assert path.read_text(encoding="utf-8") == "new"


def test_atomic_write_text_cleans_temp_file_on_replace_failure(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    path = tmp_path / "lib.so.sha256"

    def fail_replace(_src: Path, _dst: Path) -> None:
        raise OSError("replace failed")

    monkeypatch.setattr(os, "replace", fail_replace)

    with pytest.raises(OSError, match="replace failed"):
        atomic_write_text(path, "payload")

    assert list(tmp_path.iterdir()) == []


def test_append_text_keeps_existing_lines(tmp_path: Path) -> None:
    path = tmp_path / "github_output"
    path.write_text("A=1\n", encoding="utf-8")

    append_text(path, "B=2\n")

    assert path.read_text(encoding="utf-8") == "A=1\nB=2\n"
