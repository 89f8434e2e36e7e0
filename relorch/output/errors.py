"""Error presentation utilities.

Centralized error formatting and exit code mapping for consistent UX.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from relorch.core.errors import ErrorCode
from relorch.output.console import Style
from relorch.release.errors import (
    ArtifactNotFoundError,
    AssetUploadError,
    ChainCrashedError,
    DigestComputationError,
    EntryError,
    ManifestParseError,
    MatrixError,
    ReleaseCreationConflictError,
    ReleaseStoreError,
    RunAbort,
    ToolchainBuildError,
)

if TYPE_CHECKING:
    from relorch.output.console import ConsoleProtocol

__all__ = ["error_exit_code", "print_error"]


def print_error(error: RunAbort | EntryError, console: ConsoleProtocol) -> None:
    match error:
        case ManifestParseError(message=message, path=path):
            where = f" ({path})" if path is not None else ""
            console.error(f"manifest: {message}{where}")
        case ToolchainBuildError(message=message):
            console.error(message)
        case ArtifactNotFoundError(entry=entry, message=message):
            console.error(f"{entry}: {message}" if entry else message)
        case DigestComputationError(message=message):
            console.error(message)
        case ReleaseCreationConflictError(message=message):
            console.error(message)
        case ReleaseStoreError(message=message):
            console.error(message)
        case AssetUploadError(message=message):
            console.error(message)
        case ChainCrashedError(entry=entry, stage=stage, message=message):
            console.error(f"{entry}: {stage} raised {message}")
        case MatrixError(message=message):
            console.error(f"matrix: {message}")

    if error.hint:
        console.print(f"hint: {error.hint}", Style.DIM)


def error_exit_code(error: RunAbort | EntryError) -> int:
    match error:
        case ManifestParseError() | MatrixError() | ReleaseCreationConflictError():
            return int(ErrorCode.USER_ERROR)
        case ToolchainBuildError() | ChainCrashedError():
            return int(ErrorCode.BUILD_ERROR)
        case ArtifactNotFoundError() | DigestComputationError():
            return int(ErrorCode.IO_ERROR)
        case ReleaseStoreError() | AssetUploadError():
            return int(ErrorCode.NETWORK_ERROR)
    return int(ErrorCode.BUILD_ERROR)
