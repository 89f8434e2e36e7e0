"""Version resolution from a Cargo-style manifest.

The manifest is scanned line by line rather than parsed as TOML: only the
first `[package]` or `[workspace.package]` section is considered, and the
first `version = "..."` inside it wins. Later package sections are ignored
even if the first one has no version.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from relorch.core.result import Err, Ok, Result
from relorch.release.errors import ManifestParseError

_PACKAGE_HEADER_RE = re.compile(r"^\s*\[\s*(?:workspace\s*\.\s*)?package\s*\]\s*(?:#.*)?$")
_INHERITED_VERSION_RE = re.compile(
    r"^\s*version\s*(?:\.\s*workspace\s*=\s*true\b|=\s*\{[^}]*\bworkspace\s*=\s*true\b)"
)
_VERSION_RE = re.compile(r'^\s*version\s*=\s*"([^"]*)"')
_PRERELEASE_RE = re.compile(r"-[0-9A-Za-z]+")


@dataclass(frozen=True, slots=True)
class ResolvedVersion:
    version: str
    prerelease: bool

    @property
    def tag(self) -> str:
        return self.version

    @property
    def display_name(self) -> str:
        return f"v{self.version}"


def is_prerelease(version: str) -> bool:
    """True if the version carries a `-<identifier>` suffix.

    Build-metadata-like suffixes count too: `1.0.0+build-1` is a pre-release.
    """
    return _PRERELEASE_RE.search(version) is not None


def resolve_version_text(
    text: str, *, source: Path | None = None
) -> Result[ResolvedVersion, ManifestParseError]:
    in_package = False
    seen_package = False
    inherited = False
    depth = 0  # open brackets of a multi-line value
    for line in text.splitlines():
        if not in_package:
            if _PACKAGE_HEADER_RE.match(line):
                in_package = True
                seen_package = True
            continue

        code, delta = _scan(line)
        at_top = depth == 0
        if at_top and _is_header(code):
            # The first package section ended without a version.
            break
        depth = max(0, depth + delta)
        if not at_top:
            continue

        if _INHERITED_VERSION_RE.match(line):
            inherited = True
            continue

        m = _VERSION_RE.match(line)
        if m is None:
            continue

        version = m.group(1)
        if not version:
            return Err(ManifestParseError(message="empty package version", path=source))
        return Ok(ResolvedVersion(version=version, prerelease=is_prerelease(version)))

    if not seen_package:
        return Err(
            ManifestParseError(
                message="no [package] or [workspace.package] section",
                path=source,
            )
        )
    if inherited:
        return Err(
            ManifestParseError(
                message="package version is inherited from the workspace",
                path=source,
                hint="use the workspace root Cargo.toml ([library] manifest or --manifest)",
            )
        )
    return Err(
        ManifestParseError(
            message="package section has no version = \"...\" assignment",
            path=source,
            hint="only the first package section is read",
        )
    )


def _is_header(code: str) -> bool:
    stripped = code.strip()
    return stripped.startswith("[") and stripped.endswith("]")


def _scan(line: str) -> tuple[str, int]:
    """Split off a trailing comment and count the net `[` minus `]` outside strings."""
    delta = 0
    quote: str | None = None
    escaped = False
    for i, ch in enumerate(line):
        if quote is not None:
            if escaped:
                escaped = False
            elif ch == "\\" and quote == '"':
                escaped = True
            elif ch == quote:
                quote = None
            continue
        if ch in "\"'":
            quote = ch
        elif ch == "#":
            return line[:i], delta
        elif ch == "[":
            delta += 1
        elif ch == "]":
            delta -= 1
    return line, delta


def resolve_version(path: Path) -> Result[ResolvedVersion, ManifestParseError]:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return Err(ManifestParseError(message=f"manifest not found: {path}", path=path))
    except (OSError, UnicodeDecodeError) as e:
        return Err(ManifestParseError(message=f"cannot read manifest: {e}", path=path))
    return resolve_version_text(text, source=path)


def github_outputs(resolved: ResolvedVersion) -> str:
    """Step outputs in the `$GITHUB_OUTPUT` format."""
    prerelease = "true" if resolved.prerelease else "false"
    return f"CARGO_PKG_VERSION={resolved.version}\nCARGO_PKG_PRERELEASE={prerelease}\n"
