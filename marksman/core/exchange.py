"""
Mark Exchange — Export and import of mark sets across machines

Export payload = persisted schema + exported_at + metadata block.

Import strategies:
- REPLACE: incoming set supersedes the live one
- MERGE: new names append; colliding names take the incoming fields but
  keep their existing position
- SKIP_EXISTING: new names append; colliding names are left alone

Imports are all-or-nothing: one invalid mark rejects the payload.
"""

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import orjson

from .marks import Mark, MarkSet
from .project import project_name
from .results import ErrorKind
from .store import STORAGE_VERSION, MarkFileError, parse_marks


class ImportStrategy(Enum):
    REPLACE = "replace"
    MERGE = "merge"
    SKIP_EXISTING = "skip_existing"


@dataclass
class ExportResult:
    success: bool
    message: str = ""
    kind: Optional[ErrorKind] = None
    payload: Optional[bytes] = None
    count: int = 0


@dataclass
class ImportResult:
    success: bool
    message: str = ""
    kind: Optional[ErrorKind] = None
    mark_set: Optional[MarkSet] = None
    added: int = 0
    updated: int = 0
    skipped: int = 0


def export_marks(mark_set: MarkSet, project: Optional[Path] = None) -> ExportResult:
    """Serialize a set for export. Fails on an empty set."""
    if len(mark_set) == 0:
        return ExportResult(
            success=False,
            message="No marks to export",
            kind=ErrorKind.NOTHING_TO_EXPORT
        )

    now = datetime.now(timezone.utc).isoformat()
    data = {
        "marks": mark_set.marks_dict(),
        "mark_order": mark_set.names(),
        "version": STORAGE_VERSION,
        "saved_at": now,
        "exported_at": now,
        "project": str(project) if project else None,
        "metadata": {
            "total_marks": len(mark_set),
            "project_name": project_name(project) if project else None,
        },
    }
    return ExportResult(
        success=True,
        message=f"Exported {len(mark_set)} marks",
        payload=orjson.dumps(data, option=orjson.OPT_INDENT_2),
        count=len(mark_set)
    )


def _invalid(message: str) -> ImportResult:
    return ImportResult(success=False, message=message, kind=ErrorKind.INVALID_FORMAT)


def decode_import(payload: bytes) -> Tuple[MarkSet, Dict[str, Dict[str, Any]]]:
    """
    Parse and validate an export payload.

    Raises:
        MarkFileError: Not JSON, no marks field, or an invalid mark

    Returns:
        (validated set, raw marks mapping as found in the payload)
    """
    try:
        data: Any = orjson.loads(payload)
    except orjson.JSONDecodeError as e:
        raise MarkFileError(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("marks"), dict):
        raise MarkFileError("Invalid marks file format: missing 'marks'")

    return parse_marks(data), data["marks"]


def import_marks(payload: bytes, strategy: ImportStrategy, live: MarkSet) -> ImportResult:
    """
    Combine an export payload with the live set.

    The live set is not modified; the combined set is returned.
    """
    try:
        incoming, raw = decode_import(payload)
    except MarkFileError as e:
        return _invalid(str(e))

    if strategy == ImportStrategy.REPLACE:
        return ImportResult(
            success=True,
            message=f"Imported {len(incoming)} marks (replaced {len(live)})",
            mark_set=incoming,
            added=len(incoming)
        )

    result = live.copy()
    added = updated = skipped = 0

    for mark in incoming:
        existing = result.get(mark.name)
        if existing is None:
            result.add(replace(mark))
            added += 1
        elif strategy == ImportStrategy.MERGE:
            # Field-level: incoming keys win, keys it lacks keep existing values
            fields = {**existing.to_dict(), **raw[mark.name]}
            result.put(Mark.from_dict(mark.name, fields))
            updated += 1
        else:
            skipped += 1

    return ImportResult(
        success=True,
        message=f"Imported marks: {added} added, {updated} updated, {skipped} skipped",
        mark_set=result,
        added=added,
        updated=updated,
        skipped=skipped
    )
