from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from relorch.release.errors import EntryError
from relorch.release.publisher import ReleaseHandle
from relorch.release.version import ResolvedVersion

Stage = Literal["build", "normalize", "publish"]


@dataclass(frozen=True, slots=True)
class EntryOutcome:
    """Final state of one matrix entry's build -> normalize -> publish chain."""

    entry: str
    canonical_name: str
    assets: tuple[str, ...] = ()
    failed_stage: Stage | None = None
    error: EntryError | None = None
    cancelled: bool = False

    @property
    def ok(self) -> bool:
        return self.failed_stage is None

    @classmethod
    def failure(
        cls,
        entry: str,
        canonical_name: str,
        stage: Stage,
        error: EntryError | None,
        *,
        cancelled: bool = False,
    ) -> EntryOutcome:
        return cls(
            entry=entry,
            canonical_name=canonical_name,
            failed_stage=stage,
            error=error,
            cancelled=cancelled,
        )


@dataclass(frozen=True, slots=True)
class RunReport:
    version: ResolvedVersion
    release: ReleaseHandle
    outcomes: tuple[EntryOutcome, ...]

    @property
    def succeeded(self) -> tuple[EntryOutcome, ...]:
        return tuple(o for o in self.outcomes if o.ok)

    @property
    def failed(self) -> tuple[EntryOutcome, ...]:
        return tuple(o for o in self.outcomes if not o.ok)

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def assets(self) -> tuple[str, ...]:
        return tuple(name for o in self.outcomes for name in o.assets)
