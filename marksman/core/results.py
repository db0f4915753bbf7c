"""
Results — Structured outcomes for every public mark operation

Operations never raise for expected failures. They return a result carrying:
- success flag
- a message that can be shown to the user verbatim
- an ErrorKind for programmatic handling

Only truly exceptional conditions (e.g. the data directory cannot be
created) propagate as exceptions.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .marks import Mark


class ErrorKind(Enum):
    """Failure classification."""
    # Validation
    INVALID_NAME = "invalid_name"
    DUPLICATE_NAME = "duplicate_name"
    INVALID_MARK_DATA = "invalid_mark_data"
    INVALID_ARGUMENT = "invalid_argument"

    # Lookup
    NOT_FOUND = "not_found"
    INVALID_INDEX = "invalid_index"
    NO_MARKS = "no_marks"
    OUT_OF_BOUNDS = "out_of_bounds"

    # Resources
    NO_FILE = "no_file"
    UNREADABLE = "unreadable"
    STALE_FILE = "stale_file"
    LIMIT_REACHED = "limit_reached"

    # Persistence
    LOAD_FAILED = "load_failed"
    SAVE_FAILED = "save_failed"
    INVALID_FORMAT = "invalid_format"
    NOTHING_TO_EXPORT = "nothing_to_export"


@dataclass
class OpResult:
    """Result of a registry, store or navigator operation."""
    success: bool
    message: str = ""
    kind: Optional[ErrorKind] = None
    mark: Optional['Mark'] = None
    name: Optional[str] = None
    index: Optional[int] = None

    @classmethod
    def ok(cls, message: str = "", **kwargs) -> 'OpResult':
        return cls(success=True, message=message, **kwargs)

    @classmethod
    def fail(cls, kind: ErrorKind, message: str, **kwargs) -> 'OpResult':
        return cls(success=False, message=message, kind=kind, **kwargs)

    def __bool__(self) -> bool:
        return self.success
