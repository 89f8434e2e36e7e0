"""Release publisher.

The release record for a version moves from absent to created exactly once
per run, before any upload. Uploads then target the existing record; a failed
upload is reported and leaves already attached assets in place.
"""

from __future__ import annotations

from dataclasses import dataclass
from threading import Event

from relorch.core.config import ExistingReleasePolicy
from relorch.core.result import Err, Ok, Result
from relorch.release.errors import (
    AssetUploadError,
    ReleaseCreationConflictError,
    ReleaseStoreError,
)
from relorch.release.normalize import NormalizedArtifact
from relorch.release.store import ReleaseStore
from relorch.release.version import ResolvedVersion


@dataclass(frozen=True, slots=True)
class ReleaseHandle:
    release_id: str
    tag: str
    display_name: str
    prerelease: bool
    created: bool  # False when an existing release was reused


def ensure_release(
    store: ReleaseStore,
    resolved: ResolvedVersion,
    *,
    on_existing: ExistingReleasePolicy = "fail",
) -> Result[ReleaseHandle, ReleaseCreationConflictError | ReleaseStoreError]:
    result = store.create_release(
        tag=resolved.tag,
        display_name=resolved.display_name,
        prerelease=resolved.prerelease,
    )
    if isinstance(result, Ok):
        return Ok(
            ReleaseHandle(
                release_id=result.value,
                tag=resolved.tag,
                display_name=resolved.display_name,
                prerelease=resolved.prerelease,
                created=True,
            )
        )

    error = result.error
    if error.kind != "already_exists":
        return Err(ReleaseStoreError(tag=resolved.tag, message=error.message, hint=error.hint))

    if on_existing == "fail":
        return Err(
            ReleaseCreationConflictError(
                tag=resolved.tag,
                message=f"release {resolved.tag} already exists",
            )
        )

    # Reuse: the tag is the release id for every store backend.
    return Ok(
        ReleaseHandle(
            release_id=resolved.tag,
            tag=resolved.tag,
            display_name=resolved.display_name,
            prerelease=resolved.prerelease,
            created=False,
        )
    )


def publish_artifact(
    store: ReleaseStore,
    release: ReleaseHandle,
    artifact: NormalizedArtifact,
    *,
    cancel: Event | None = None,
) -> Result[tuple[str, ...], AssetUploadError]:
    """Attach an artifact and then its digest sidecar.

    Returns the attached asset names. The digest goes second so a published
    sidecar always has its artifact next to it.
    """
    attached: list[str] = []
    for path in (artifact.path, artifact.digest_path):
        if cancel is not None and cancel.is_set():
            return Err(
                AssetUploadError(
                    asset=path.name,
                    message=f"upload of {path.name} cancelled",
                    cancelled=True,
                )
            )

        result = store.attach_asset(release_id=release.release_id, path=path, cancel=cancel)
        if isinstance(result, Err):
            e = result.error
            return Err(
                AssetUploadError(
                    asset=path.name,
                    message=e.message,
                    hint=e.hint,
                    cancelled=e.kind == "cancelled",
                )
            )
        attached.append(path.name)
    return Ok(tuple(attached))
