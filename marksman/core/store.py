"""
Mark Store — Per-project JSON persistence with backup and atomic writes

File layout: <data_dir>/marksman_<storage_key>.json
  {"marks": {...}, "mark_order": [...], "version", "saved_at", "project"}

Guarantees:
- Readers never see a partial file (write .tmp, then os.replace)
- The last good file is mirrored to .backup before every save
- A corrupt primary is recovered from .backup once, transparently
- Legacy files (top-level object IS the marks mapping) are normalized at
  load time and never leak past this module
"""

import logging
import os
import shutil
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import orjson

from .marks import MarkSet
from .results import ErrorKind, OpResult
from .validation import validate_mark_data

logger = logging.getLogger(__name__)


STORAGE_VERSION = "2.0"
FILE_PREFIX = "marksman_"


class LoadStatus(Enum):
    """How a load concluded."""
    EMPTY = "empty"          # No file yet (first use)
    LOADED = "loaded"
    RECOVERED = "recovered"  # Primary was bad, backup restored
    FAILED = "failed"        # Primary and backup unusable, empty set returned


@dataclass
class LoadResult:
    """Result of loading a mark file."""
    mark_set: MarkSet
    status: LoadStatus
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status != LoadStatus.FAILED

    @property
    def kind(self) -> Optional[ErrorKind]:
        return ErrorKind.LOAD_FAILED if self.status == LoadStatus.FAILED else None


class MarkFileError(ValueError):
    """Raised internally when file content is not a valid mark file."""


def marks_file_path(data_dir: Path, key: str) -> Path:
    return Path(data_dir) / f"{FILE_PREFIX}{key}.json"


def atomic_write(path: Path, payload: bytes) -> None:
    """
    Write bytes via temp file + rename.

    Raises OSError on failure; the temp file is removed and the target is
    left untouched.
    """
    path = Path(path)
    temp_path = path.with_name(path.name + ".tmp")
    try:
        with open(temp_path, "wb") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_path, path)
    except OSError:
        try:
            temp_path.unlink()
        except OSError:
            pass
        raise


def _is_wrapped(data: Dict[str, Any], marks: Any) -> bool:
    """True for the {version, marks, mark_order} shape."""
    if not isinstance(marks, dict):
        return False
    if isinstance(data.get("version"), str) or isinstance(data.get("mark_order"), list):
        return True
    # A legacy mapping may hold a mark literally named "marks", whose "file" is a path.
    # In the wrapper, "file" can only be a mark name mapping to a mark object.
    return not isinstance(marks.get("file"), str)


def normalize_payload(data: Any) -> Tuple[Dict[str, Dict[str, Any]], Optional[List[str]]]:
    """
    Reduce either accepted file shape to (marks mapping, order or None).

    Raises:
        MarkFileError: If the shape is not recognized
    """
    if not isinstance(data, dict):
        raise MarkFileError("Mark file must contain a JSON object")

    marks = data.get("marks")
    if _is_wrapped(data, marks):
        order = data.get("mark_order")
        if order is not None:
            if not isinstance(order, list) or not all(isinstance(n, str) for n in order):
                raise MarkFileError("mark_order must be a list of names")
        return marks, order

    # Legacy shape: the whole object is the marks mapping
    return data, None


def parse_marks(data: Any) -> MarkSet:
    """
    Validate a decoded payload and build a MarkSet.

    Any invalid mark fails the whole parse.

    Raises:
        MarkFileError: On shape or validation failure
    """
    marks, order = normalize_payload(data)

    for name, mark_data in marks.items():
        # Stored names may carry smart-naming prefixes ("fn:parse"); shape only
        if not isinstance(name, str) or not name.strip():
            raise MarkFileError(f"Invalid mark name '{name}': must be a non-empty string")
        ok, reason = validate_mark_data(mark_data)
        if not ok:
            raise MarkFileError(f"Invalid mark '{name}': {reason}")

    return MarkSet.from_mapping(marks, order)


class MarkStore:
    """
    Binds one project's MarkSet to one file.

    Stateless between calls apart from configuration: every load reads the
    disk, every save replaces the whole file.
    """

    def __init__(self, path: Path, project: Optional[Path] = None, auto_save: bool = True):
        """
        Args:
            path: Mark file path (see marks_file_path)
            project: Project root recorded in the file
            auto_save: When False, save() is a successful no-op
        """
        self.path = Path(path)
        self.project = Path(project) if project else None
        self.auto_save = auto_save

    @classmethod
    def for_project(cls, data_dir: Path, key: str, project: Path, auto_save: bool = True) -> 'MarkStore':
        return cls(marks_file_path(data_dir, key), project=project, auto_save=auto_save)

    @property
    def backup_path(self) -> Path:
        return self.path.with_name(self.path.name + ".backup")

    @property
    def temp_path(self) -> Path:
        return self.path.with_name(self.path.name + ".tmp")

    def exists(self) -> bool:
        return self.path.exists()

    def file_size(self) -> int:
        try:
            return self.path.stat().st_size
        except OSError:
            return 0

    # -------------------------------------------------------------------------
    # Load
    # -------------------------------------------------------------------------

    def load(self) -> LoadResult:
        """
        Load the mark file.

        A missing file yields an empty set. A bad file is recovered from the
        backup once; if that fails too an empty set is returned with a
        FAILED status and a message for the user.
        """
        try:
            raw = self._read()
        except OSError as e:
            logger.info("Mark file %s not readable (%s), starting empty", self.path, e)
            return LoadResult(MarkSet(), LoadStatus.EMPTY)

        if raw is None:
            return LoadResult(MarkSet(), LoadStatus.EMPTY)

        try:
            mark_set = self._decode(raw)
            return LoadResult(mark_set, LoadStatus.LOADED)
        except MarkFileError as e:
            first_error = str(e)
            logger.warning("Error loading marks from %s: %s", self.path, first_error)

        if self._restore_backup():
            try:
                raw = self._read()
                if raw is not None:
                    mark_set = self._decode(raw)
                    logger.info("Recovered marks from backup %s", self.backup_path)
                    return LoadResult(
                        mark_set,
                        LoadStatus.RECOVERED,
                        f"Mark file was corrupt; restored from backup ({first_error})"
                    )
            except (OSError, MarkFileError) as e:
                logger.warning("Backup %s is unusable too: %s", self.backup_path, e)

        return LoadResult(
            MarkSet(),
            LoadStatus.FAILED,
            f"Error loading marks: {first_error}"
        )

    def _read(self) -> Optional[bytes]:
        """File bytes, or None if the file is absent or blank."""
        if not self.path.exists():
            return None
        raw = self.path.read_bytes()
        if not raw.strip():
            return None
        return raw

    def _decode(self, raw: bytes) -> MarkSet:
        try:
            data = orjson.loads(raw)
        except orjson.JSONDecodeError as e:
            raise MarkFileError(f"Invalid JSON: {e}") from e
        return parse_marks(data)

    # -------------------------------------------------------------------------
    # Save
    # -------------------------------------------------------------------------

    def serialize(self, mark_set: MarkSet) -> bytes:
        mark_set.reconcile()
        data = {
            "marks": mark_set.marks_dict(),
            "mark_order": mark_set.names(),
            "version": STORAGE_VERSION,
            "saved_at": datetime.now(timezone.utc).isoformat(),
            "project": str(self.project) if self.project else None,
        }
        return orjson.dumps(data, option=orjson.OPT_INDENT_2)

    def save(self, mark_set: MarkSet) -> OpResult:
        """
        Persist the whole set.

        Raises:
            OSError: Only if the data directory cannot be created
        """
        if not self.auto_save:
            return OpResult.ok("Auto-save disabled")

        self.path.parent.mkdir(parents=True, exist_ok=True)

        self._backup()

        payload = self.serialize(mark_set)
        try:
            atomic_write(self.path, payload)
        except OSError as e:
            logger.error("Failed to save marks to %s: %s", self.path, e)
            self._restore_backup()
            return OpResult.fail(ErrorKind.SAVE_FAILED, f"Failed to save marks: {e}")

        logger.debug("Saved %d marks to %s", len(mark_set), self.path)
        return OpResult.ok(f"Saved {len(mark_set)} marks")

    # -------------------------------------------------------------------------
    # Backup
    # -------------------------------------------------------------------------

    def _backup(self) -> bool:
        """Copy the current file to .backup. Best effort."""
        if not self.path.exists():
            return False
        try:
            shutil.copyfile(self.path, self.backup_path)
            return True
        except OSError as e:
            logger.warning("Failed to create backup %s: %s", self.backup_path, e)
            return False

    def _restore_backup(self) -> bool:
        """Copy .backup over the primary file."""
        if not self.backup_path.exists():
            return False
        try:
            shutil.copyfile(self.backup_path, self.path)
            return True
        except OSError as e:
            logger.warning("Failed to restore backup %s: %s", self.backup_path, e)
            return False
