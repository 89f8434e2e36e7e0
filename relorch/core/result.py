"""Result type for explicit error handling.

Every fallible pipeline step returns a Result instead of raising, so the
orchestrator can decide per step whether a failure is run-global or isolated
to one matrix entry.

Usage:
    match resolve_version(manifest_path):
        case Ok(resolved):
            print(resolved.version)
        case Err(error):
            print(error.message)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful result carrying a value."""

    value: T

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failed result carrying an error payload."""

    error: E

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result = Ok[T] | Err[E]
