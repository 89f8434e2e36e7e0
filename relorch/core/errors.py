"""Process exit codes.

A run exits non-zero as soon as one stage of one matrix entry failed. The
numeric values are stable because CI jobs branch on them:
- 0: Success
- 1: User error (bad arguments, unparseable manifest, invalid matrix)
- 2: Environment error (gh missing or unauthenticated)
- 3: Build error (at least one matrix entry failed)
- 4: Network error (release store unreachable, upload rejected)
- 5: I/O error (artifact not found, digest could not be written)
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    BUILD_ERROR = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK
