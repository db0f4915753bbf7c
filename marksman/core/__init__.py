"""
Core — Data layer for marksman

Contains the mark model and everything that reads or writes it:
- Marks: Mark, MarkSet (name-unique, explicitly ordered)
- Validation: name and mark-data rules
- Project: project identity and storage key
- Store: JSON file with backup and atomic replace
- Registry: validated operations with debounced persistence
- Navigator: next/previous by cursor proximity
- Exchange: export and strategy-based import
- History, Search, Stats: undo buffer, text search, health checks
"""

from .results import ErrorKind, OpResult
from .marks import Location, Mark, MarkSet
from .validation import NameValidator, validate_mark_name, validate_mark_data, sanitize_mark_name
from .project import ProjectResolver, storage_key, project_name
from .store import MarkStore, LoadResult, LoadStatus, MarkFileError, atomic_write
from .scheduler import Scheduler, TimerScheduler, ImmediateScheduler, CancelHandle
from .history import DeletionHistory, DeletedMark
from .search import filter_marks, rank_marks
from .stats import MarkStatistics, compute_statistics, is_mark_stale
from .exchange import ImportStrategy, ExportResult, ImportResult, export_marks, import_marks
from .registry import MarkRegistry
from .navigator import Navigator, CursorContext, current_index, next_index, previous_index

__all__ = [
    # Results
    "ErrorKind", "OpResult",
    # Marks
    "Location", "Mark", "MarkSet",
    # Validation
    "NameValidator", "validate_mark_name", "validate_mark_data", "sanitize_mark_name",
    # Project
    "ProjectResolver", "storage_key", "project_name",
    # Store
    "MarkStore", "LoadResult", "LoadStatus", "MarkFileError", "atomic_write",
    # Scheduling
    "Scheduler", "TimerScheduler", "ImmediateScheduler", "CancelHandle",
    # History / search / stats
    "DeletionHistory", "DeletedMark",
    "filter_marks", "rank_marks",
    "MarkStatistics", "compute_statistics", "is_mark_stale",
    # Exchange
    "ImportStrategy", "ExportResult", "ImportResult", "export_marks", "import_marks",
    # Registry / navigation
    "MarkRegistry",
    "Navigator", "CursorContext", "current_index", "next_index", "previous_index",
]
