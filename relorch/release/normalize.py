"""Artifact normalization: canonical rename plus SHA-256 sidecar.

Normalization is safe to re-run. If the raw file is gone but the canonical
file exists, the rename is skipped; the digest is always recomputed from the
canonical file's current bytes.
"""

from __future__ import annotations

import hashlib
import os
from dataclasses import dataclass
from pathlib import Path

from relorch.core.result import Err, Ok, Result
from relorch.platform.files import atomic_write_text
from relorch.release.errors import ArtifactNotFoundError, DigestComputationError, NormalizeError

DIGEST_SUFFIX = ".sha256"
_CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True, slots=True)
class NormalizedArtifact:
    path: Path
    digest_path: Path
    sha256: str
    renamed: bool  # False when the artifact was already canonical

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def digest_name(self) -> str:
        return self.digest_path.name


def sha256_file(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            h.update(chunk)
    return h.hexdigest()


def digest_path_for(artifact: Path) -> Path:
    return artifact.with_name(artifact.name + DIGEST_SUFFIX)


def normalize_artifact(
    *,
    raw_path: Path,
    canonical_name: str,
    entry: str = "",
) -> Result[NormalizedArtifact, NormalizeError]:
    canonical = raw_path.with_name(canonical_name)

    renamed = False
    if raw_path.is_file() and raw_path != canonical:
        try:
            os.replace(raw_path, canonical)
        except OSError as e:
            return Err(
                ArtifactNotFoundError(
                    entry=entry,
                    path=raw_path,
                    message=f"cannot rename {raw_path.name} to {canonical_name}: {e}",
                    hint=None,
                )
            )
        renamed = True
    elif not canonical.is_file():
        return Err(
            ArtifactNotFoundError(
                entry=entry,
                path=raw_path,
                message=f"raw artifact not found: {raw_path}",
            )
        )

    digest_path = digest_path_for(canonical)
    try:
        digest = sha256_file(canonical)
        atomic_write_text(digest_path, digest + "\n", encoding="ascii")
    except OSError as e:
        return Err(DigestComputationError(path=canonical, message=f"sha256 failed: {e}"))

    return Ok(
        NormalizedArtifact(path=canonical, digest_path=digest_path, sha256=digest, renamed=renamed)
    )
