"""Platform abstraction layer."""

from .files import append_text, atomic_write_text
from .process import ProcessError, run

__all__ = [
    # files
    "append_text",
    "atomic_write_text",
    # process
    "ProcessError",
    "run",
]
