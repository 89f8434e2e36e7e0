"""Error payloads for the release pipeline.

Run-global errors (manifest, matrix, release creation) abort the whole run.
Entry errors (build, normalize, upload) are recorded against one matrix entry
and never affect sibling entries.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal


@dataclass(frozen=True, slots=True)
class ManifestParseError:
    message: str
    path: Path | None = None
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class MatrixError:
    message: str
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class ToolchainBuildError:
    entry: str
    message: str
    returncode: int
    hint: str | None = None
    cancelled: bool = False


@dataclass(frozen=True, slots=True)
class ArtifactNotFoundError:
    entry: str
    path: Path
    message: str
    hint: str | None = "target matrix raw_name does not match what the toolchain emits"


@dataclass(frozen=True, slots=True)
class DigestComputationError:
    path: Path
    message: str
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class ReleaseCreationConflictError:
    tag: str
    message: str
    hint: str | None = "re-run with --on-existing reuse to attach to the existing release"


# The release store calls this outcome "AlreadyExists".
ReleaseAlreadyExistsError = ReleaseCreationConflictError


@dataclass(frozen=True, slots=True)
class ReleaseStoreError:
    """Release creation failed for a reason other than an existing tag."""

    tag: str
    message: str
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class AssetUploadError:
    asset: str
    message: str
    hint: str | None = None
    cancelled: bool = False


@dataclass(frozen=True, slots=True)
class ChainCrashedError:
    """A stage of one entry's chain raised instead of returning an error."""

    entry: str
    stage: str
    message: str
    hint: str | None = "this is a bug in relorch or in a custom build runner or store"


StoreErrorKind = Literal[
    "already_exists",
    "gh_missing",
    "gh_auth_required",
    "not_found",
    "failed",
    "cancelled",
]


@dataclass(frozen=True, slots=True)
class StoreError:
    """Error reported by a ReleaseStore backend."""

    kind: StoreErrorKind
    message: str
    hint: str | None = None


NormalizeError = ArtifactNotFoundError | DigestComputationError

EntryError = (
    ToolchainBuildError
    | ArtifactNotFoundError
    | DigestComputationError
    | AssetUploadError
    | ChainCrashedError
)

RunAbort = ManifestParseError | MatrixError | ReleaseCreationConflictError | ReleaseStoreError
