"""
MarkRegistry — Validated operations over one project's marks

The registry is the only writer of a project's MarkSet:
- every operation validates before it mutates
- every mutation schedules a debounced save (one pending slot, replaced on
  each mutation, so a burst of edits costs one write of the latest state)
- expected failures come back as OpResult values, never as exceptions

Persistence runs on the scheduler's thread, so mutation and flush share
one lock.
"""

import logging
import os
import threading
import time
from dataclasses import replace
from functools import partial
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from ..config import MarksmanConfig
from ..services.naming import FilenameLineSuggester, NameSuggester
from .exchange import ExportResult, ImportResult, ImportStrategy, export_marks, import_marks
from .history import DeletionHistory
from .marks import Location, Mark, MarkSet
from .results import ErrorKind, OpResult
from .scheduler import CancelHandle, Scheduler, TimerScheduler
from .search import DEFAULT_FUZZY_CUTOFF, filter_marks, rank_marks
from .stats import MarkStatistics, compute_statistics, is_mark_stale, read_line
from .store import LoadResult, MarkStore, atomic_write
from .validation import MAX_NAME_LENGTH, MAX_TEXT_LENGTH, NameValidator, sanitize_mark_name, validate_mark_data

logger = logging.getLogger(__name__)


MAX_SUFFIX_ATTEMPTS = 100
MOVE_DIRECTIONS = ("up", "down")


def _with_suffix(base: str, suffix: str) -> str:
    """Append suffix, trimming base so the result stays a valid length."""
    return base[:MAX_NAME_LENGTH - len(suffix)] + suffix


class MarkRegistry:
    """
    Owns the MarkSet of one project and its persistence schedule.

    Usage:
        registry = MarkRegistry.for_project(root, storage_key(root), config)
        result = registry.add(Location("/src/app.py", 12, 1))
        registry.goto(result.name)
        registry.close()
    """

    def __init__(
        self,
        store: MarkStore,
        config: Optional[MarksmanConfig] = None,
        scheduler: Optional[Scheduler] = None,
        validator: Optional[NameValidator] = None,
        suggester: Optional[NameSuggester] = None,
        history: Optional[DeletionHistory] = None,
        clock: Callable[[], float] = time.time
    ):
        self.store = store
        self.config = config or MarksmanConfig()
        self.scheduler = scheduler or TimerScheduler()
        self.validator = validator or NameValidator()
        self.suggester = suggester or FilenameLineSuggester()
        self.history = history if history is not None else DeletionHistory(self.config.undo_levels)
        self._clock = clock

        self._lock = threading.RLock()
        self._pending: Optional[CancelHandle] = None
        self._generation = 0
        self._closed = False
        self._dirty = False
        self.last_save: Optional[OpResult] = None

        self.last_load: LoadResult = store.load()
        self._marks: MarkSet = self.last_load.mark_set
        if not self.last_load.ok:
            logger.warning(self.last_load.message)

    @classmethod
    def for_project(cls, project: Path, key: str,
                    config: Optional[MarksmanConfig] = None, **kwargs) -> 'MarkRegistry':
        """Registry backed by the project's file in config.data_dir."""
        config = config or MarksmanConfig()
        store = MarkStore.for_project(config.data_dir, key, project, auto_save=config.auto_save)
        return cls(store, config=config, **kwargs)

    @property
    def project(self) -> Optional[Path]:
        return self.store.project

    @property
    def mark_set(self) -> MarkSet:
        """Live set. Read it; mutate only through registry operations."""
        return self._marks

    @property
    def has_pending_save(self) -> bool:
        return self._pending is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def snapshot(self) -> MarkSet:
        """Copy of the set taken under the lock, safe to read off-thread."""
        with self._lock:
            return self._marks.copy()

    def _now(self) -> int:
        return int(self._clock())

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _cancel_pending(self):
        # Bumping the generation also voids a timer that fired but is still waiting on the lock
        self._generation += 1
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _schedule_save(self):
        """Mark dirty and (re)arm the single debounce slot."""
        with self._lock:
            if self._closed:
                logger.debug("Ignoring change to closed registry for %s", self.store.path)
                return
            self._dirty = True
            if not self.config.auto_save:
                return
            self._cancel_pending()
            handle = self.scheduler.after(
                self.config.debounce_seconds,
                partial(self._flush_scheduled, self._generation)
            )
            # A synchronous scheduler has already flushed by now
            self._pending = handle if self._dirty else None

    def _flush_scheduled(self, generation: int):
        with self._lock:
            if self._closed or generation != self._generation:
                return
            self._pending = None
            try:
                self._save()
            except OSError as e:
                logger.error("Deferred save to %s failed: %s", self.store.path, e)
                self.last_save = OpResult.fail(ErrorKind.SAVE_FAILED, f"Failed to save marks: {e}")

    def _save(self) -> OpResult:
        result = self.store.save(self._marks)
        if result.success:
            self._dirty = False
        self.last_save = result
        return result

    def flush(self) -> OpResult:
        """
        Save now, cancelling any pending debounced save.

        Raises:
            OSError: The data directory cannot be created
        """
        with self._lock:
            if self._closed:
                return OpResult.ok("Registry is closed")
            self._cancel_pending()
            return self._save()

    def close(self) -> OpResult:
        """
        Flush unsaved changes and drop the in-memory set (disk is kept).

        A closed registry never writes again; reload() reopens it.
        """
        with self._lock:
            if self._closed:
                return OpResult.ok("Registry is closed")
            self._cancel_pending()
            result = self._save() if self._dirty else OpResult.ok("No unsaved changes")
            self._closed = True
            self._dirty = False
            self._marks = MarkSet()
            self.history.clear()
            return result

    def reload(self) -> LoadResult:
        """Discard in-memory state and read the file again."""
        with self._lock:
            self._cancel_pending()
            self.last_load = self.store.load()
            self._marks = self.last_load.mark_set
            self._dirty = False
            self._closed = False
            return self.last_load

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    def count(self) -> int:
        return len(self._marks)

    def names(self) -> List[str]:
        return self._marks.names()

    def get(self, name: str) -> Optional[Mark]:
        return self._marks.get(name)

    def names_by_recency(self) -> List[str]:
        """Most recently used (or created) first. Presentation only."""
        marks = list(self._marks)
        marks.sort(key=lambda m: m.accessed_at or m.created_at, reverse=True)
        return [m.name for m in marks]

    # -------------------------------------------------------------------------
    # Core operations
    # -------------------------------------------------------------------------

    def add(
        self,
        location: Union[Location, Tuple[str, int, int]],
        name: Optional[str] = None,
        text: Optional[str] = None,
        description: Optional[str] = None
    ) -> OpResult:
        """
        Add a mark at location.

        Args:
            location: (file, line, col), 1-based
            name: Mark name; suggested from the location when None
            text: Line snapshot; read from the file when None
            description: Optional free text

        Returns:
            OpResult with the stored mark on success
        """
        file, line, col = location
        if not file:
            return OpResult.fail(ErrorKind.NO_FILE, "Cannot add mark: no file or unnamed buffer")

        file = os.path.abspath(file)
        valid, reason = validate_mark_data({"file": file, "line": line, "col": col})
        if not valid:
            return OpResult.fail(ErrorKind.INVALID_MARK_DATA, f"Invalid mark data: {reason}")

        try:
            current_line = read_line(file, line)
        except OSError as e:
            logger.debug("Cannot read %s: %s", file, e)
            return OpResult.fail(ErrorKind.UNREADABLE, "Cannot add mark: file is not readable")

        if text is None:
            text = current_line or ""

        with self._lock:
            if len(self._marks) >= self.config.max_marks:
                return OpResult.fail(
                    ErrorKind.LIMIT_REACHED,
                    f"Maximum marks limit reached ({self.config.max_marks})"
                )

            if name is None:
                name = self._unique_name(file, line)
            valid, reason = self.validator.validate(name)
            if not valid:
                return OpResult.fail(ErrorKind.INVALID_NAME, f"Invalid mark name: {reason}")

            if name in self._marks:
                return OpResult.fail(ErrorKind.DUPLICATE_NAME, f"Mark already exists: {name}", name=name)

            mark = Mark(
                name=name,
                file=file,
                line=line,
                col=col,
                text=text[:MAX_TEXT_LENGTH],
                description=description,
                created_at=self._now(),
            )
            self._marks.add(mark)
            self._schedule_save()

            logger.debug("Added mark %s at %s:%d", name, file, line)
            return OpResult.ok(
                f"Mark added: {name}",
                mark=mark,
                name=name,
                index=self._marks.index_of(name)
            )

    def _unique_name(self, file: str, line: int) -> str:
        """Suggested, sanitized name not yet present in the set."""
        suggestion = self.suggester.suggest(file, line, self._marks.names())
        base = sanitize_mark_name(suggestion) or f"mark_{line}"
        if base not in self._marks:
            return base

        for counter in range(1, MAX_SUFFIX_ATTEMPTS + 1):
            candidate = _with_suffix(base, f"_{counter}")
            if candidate not in self._marks:
                return candidate

        return _with_suffix(base, f"_{self._now()}")

    def goto(self, name_or_index: Union[str, int]) -> OpResult:
        """
        Resolve a jump target by name or by 1-based index.

        The caller performs the actual jump with result.mark.
        """
        with self._lock:
            if len(self._marks) == 0:
                return OpResult.fail(ErrorKind.NO_MARKS, "No marks available")

            if isinstance(name_or_index, int) and not isinstance(name_or_index, bool):
                mark = self._marks.at(name_or_index)
                if mark is None:
                    return OpResult.fail(ErrorKind.INVALID_INDEX, f"Invalid mark index: {name_or_index}")
            else:
                mark = self._marks.get(name_or_index)
                if mark is None:
                    return OpResult.fail(ErrorKind.NOT_FOUND, f"Mark not found: {name_or_index}")

            valid, reason = validate_mark_data(mark.to_dict())
            if not valid:
                return OpResult.fail(ErrorKind.INVALID_MARK_DATA, f"Invalid mark data: {reason}", name=mark.name)

            if not Path(mark.file).is_file():
                return OpResult.fail(
                    ErrorKind.STALE_FILE,
                    f"Mark file no longer exists: {mark.file}",
                    mark=mark,
                    name=mark.name
                )

            if self.config.track_access:
                mark.accessed_at = self._now()
                self._schedule_save()

            return OpResult.ok(
                f"Jumped to: {mark.name}",
                mark=mark,
                name=mark.name,
                index=self._marks.index_of(mark.name)
            )

    def delete(self, name: str) -> OpResult:
        with self._lock:
            mark = self._marks.remove(name)
            if mark is None:
                return OpResult.fail(ErrorKind.NOT_FOUND, f"Mark not found: {name}")

            self.history.record(mark)
            self._schedule_save()
            return OpResult.ok(f"Mark deleted: {name}", mark=mark, name=name)

    def rename(self, old_name: str, new_name: str) -> OpResult:
        """Rename in place. Checked as: exists, valid, not taken."""
        with self._lock:
            if old_name not in self._marks:
                return OpResult.fail(ErrorKind.NOT_FOUND, f"Mark not found: {old_name}")

            valid, reason = self.validator.validate(new_name)
            if not valid:
                return OpResult.fail(ErrorKind.INVALID_NAME, f"Invalid mark name: {reason}")

            if new_name in self._marks:
                return OpResult.fail(ErrorKind.DUPLICATE_NAME, f"Mark already exists: {new_name}")

            self._marks.rename(old_name, new_name)
            self._schedule_save()
            return OpResult.ok(
                f"Mark renamed: {old_name} -> {new_name}",
                mark=self._marks.get(new_name),
                name=new_name,
                index=self._marks.index_of(new_name)
            )

    def move(self, name: str, direction: str) -> OpResult:
        """Swap a mark with its neighbour ("up" or "down")."""
        with self._lock:
            index = self._marks.index_of(name)
            if index is None:
                return OpResult.fail(ErrorKind.NOT_FOUND, f"Mark not found: {name}")

            if direction not in MOVE_DIRECTIONS:
                return OpResult.fail(
                    ErrorKind.INVALID_ARGUMENT,
                    f"Invalid direction: {direction} (expected 'up' or 'down')"
                )

            target = index - 1 if direction == "up" else index + 1
            if not self._marks.swap(index, target):
                edge = "top" if direction == "up" else "bottom"
                return OpResult.fail(
                    ErrorKind.OUT_OF_BOUNDS,
                    f"Cannot move {direction}: {name} is already at the {edge}",
                    name=name,
                    index=index
                )

            self._schedule_save()
            return OpResult.ok(f"Moved mark {direction}: {name}", name=name, index=target)

    def clear_all(self) -> OpResult:
        with self._lock:
            count = len(self._marks)
            self._marks.clear()
            self._schedule_save()
            return OpResult.ok(f"Cleared {count} marks")

    # -------------------------------------------------------------------------
    # Annotations
    # -------------------------------------------------------------------------

    def update_description(self, name: str, description: Optional[str]) -> OpResult:
        """Set (or with None / blank, remove) a mark's description."""
        with self._lock:
            mark = self._marks.get(name)
            if mark is None:
                return OpResult.fail(ErrorKind.NOT_FOUND, f"Mark not found: {name}")

            if description is not None and not description.strip():
                description = None
            mark.description = description
            self._schedule_save()
            return OpResult.ok(f"Description updated: {name}", mark=mark, name=name)

    def touch(self, name: str) -> OpResult:
        """Record an access now, regardless of track_access."""
        with self._lock:
            mark = self._marks.get(name)
            if mark is None:
                return OpResult.fail(ErrorKind.NOT_FOUND, f"Mark not found: {name}")

            mark.accessed_at = self._now()
            self._schedule_save()
            return OpResult.ok(f"Mark touched: {name}", mark=mark, name=name)

    # -------------------------------------------------------------------------
    # Deletion history
    # -------------------------------------------------------------------------

    def undo_last_deletion(self) -> OpResult:
        """
        Restore the most recently deleted mark at the end of the order.

        The entry stays in history when it cannot be restored.
        """
        with self._lock:
            item = self.history.pop()
            if item is None:
                return OpResult.fail(ErrorKind.NOT_FOUND, "No deleted marks to restore")

            if item.name in self._marks:
                self.history.push_back(item)
                return OpResult.fail(
                    ErrorKind.DUPLICATE_NAME,
                    f"Cannot restore mark: name already in use: {item.name}",
                    name=item.name
                )

            if len(self._marks) >= self.config.max_marks:
                self.history.push_back(item)
                return OpResult.fail(
                    ErrorKind.LIMIT_REACHED,
                    f"Maximum marks limit reached ({self.config.max_marks})",
                    name=item.name
                )

            mark = replace(item.mark)
            self._marks.add(mark)
            self._schedule_save()
            return OpResult.ok(
                f"Restored mark: {item.name}",
                mark=mark,
                name=item.name,
                index=self._marks.index_of(item.name)
            )

    # -------------------------------------------------------------------------
    # Search and health
    # -------------------------------------------------------------------------

    def search(self, query: str, fuzzy: bool = False,
               cutoff: float = DEFAULT_FUZZY_CUTOFF) -> List[Mark]:
        """
        Find marks by free text.

        Term search keeps explicit order; fuzzy search returns best first.
        """
        with self._lock:
            if fuzzy:
                return [mark for mark, _ in rank_marks(self._marks, query, cutoff)]
            return filter_marks(self._marks, query)

    def statistics(self) -> MarkStatistics:
        with self._lock:
            return compute_statistics(self._marks, storage_bytes=self.store.file_size())

    def find_stale(self) -> List[Tuple[str, str]]:
        """(name, reason) for every mark whose target moved away."""
        with self._lock:
            marks = list(self._marks)

        stale = []
        for mark in marks:
            is_stale, reason = is_mark_stale(mark)
            if is_stale:
                stale.append((mark.name, reason))
        return stale

    def remove_stale(self) -> OpResult:
        """Delete every stale mark; each goes to the deletion history."""
        stale = self.find_stale()
        with self._lock:
            removed = 0
            for name, reason in stale:
                mark = self._marks.remove(name)
                if mark is None:
                    continue
                logger.info("Removing stale mark %s (%s)", name, reason)
                self.history.record(mark)
                removed += 1

            if removed:
                self._schedule_save()
            return OpResult.ok(f"Removed {removed} stale marks")

    def storage_info(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "marks": len(self._marks),
                "file": str(self.store.path),
                "exists": self.store.exists(),
                "size": self.store.file_size(),
                "project": str(self.project) if self.project else None,
            }

    # -------------------------------------------------------------------------
    # Import / export
    # -------------------------------------------------------------------------

    def export_marks(self) -> ExportResult:
        with self._lock:
            return export_marks(self._marks, self.project)

    def export_to(self, path: Union[str, Path]) -> ExportResult:
        """Write an export payload to path (atomically)."""
        result = self.export_marks()
        if not result.success:
            return result

        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            atomic_write(path, result.payload)
        except OSError as e:
            logger.error("Export to %s failed: %s", path, e)
            return ExportResult(
                success=False,
                message=f"Failed to export marks: {e}",
                kind=ErrorKind.SAVE_FAILED
            )

        result.message = f"Exported {result.count} marks to {path}"
        return result

    def import_payload(self, payload: bytes,
                       strategy: ImportStrategy = ImportStrategy.MERGE) -> ImportResult:
        """Combine an export payload with the live set and persist."""
        with self._lock:
            result = import_marks(payload, strategy, self._marks)
            if not result.success:
                return result

            if len(result.mark_set) > self.config.max_marks:
                return ImportResult(
                    success=False,
                    message=(
                        f"Maximum marks limit reached ({self.config.max_marks}): "
                        f"import would result in {len(result.mark_set)} marks"
                    ),
                    kind=ErrorKind.LIMIT_REACHED
                )

            self._marks = result.mark_set
            self._schedule_save()
            return result

    def import_from(self, path: Union[str, Path],
                    strategy: ImportStrategy = ImportStrategy.MERGE) -> ImportResult:
        path = Path(path)
        if not path.is_file():
            return ImportResult(
                success=False,
                message=f"Import file not found: {path}",
                kind=ErrorKind.NOT_FOUND
            )

        try:
            payload = path.read_bytes()
        except OSError as e:
            return ImportResult(
                success=False,
                message=f"Cannot read import file: {e}",
                kind=ErrorKind.UNREADABLE
            )

        return self.import_payload(payload, strategy)
