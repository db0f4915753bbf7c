"""
Mark Health — Staleness checks and collection statistics

A mark goes stale when the code it points at moves away:
- the file is gone
- the line is past the end of the file
- the stored snapshot shares less than half its words with the current line

Statistics group marks by file and by the type prefix smart naming puts
in front of names ("fn:parse", or "fn_parse" once sanitized); anything
else is "other".
"""

import re
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Optional, Tuple

from .marks import Mark


WORD_OVERLAP_THRESHOLD = 0.5

TYPE_PREFIXES = {
    "fn": "function",
    "class": "class",
    "struct": "struct",
    "method": "method",
    "var": "variable",
}

_WORD = re.compile(r"\w+")


def read_line(path: str, line: int) -> Optional[str]:
    """
    Return line (1-based) of a text file without its newline.

    Returns None when the file has fewer lines.

    Raises:
        OSError: File cannot be opened
    """
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        for number, content in enumerate(f, start=1):
            if number == line:
                return content.rstrip("\r\n")
    return None


def _words(text: str) -> set:
    return set(_WORD.findall(text.lower()))


def is_mark_stale(mark: Mark) -> Tuple[bool, str]:
    """
    Check whether a mark still points at the code it was created on.

    Returns:
        (stale, reason); reason is empty when the mark is fine
    """
    if not Path(mark.file).is_file():
        return True, "File no longer exists"

    try:
        current = read_line(mark.file, mark.line)
    except OSError as e:
        return True, f"File not readable: {e}"

    if current is None:
        return True, "Line number beyond file end"

    stored = (mark.text or "").strip()
    if not stored:
        return False, ""

    stored_words = _words(stored)
    if not stored_words:
        return False, ""

    common = stored_words & _words(current)
    if len(common) / len(stored_words) < WORD_OVERLAP_THRESHOLD:
        return True, "Line content changed significantly"

    return False, ""


def mark_type(name: str) -> str:
    """Type label from a "fn:" style prefix (or its sanitized "fn_" form)."""
    for prefix, label in TYPE_PREFIXES.items():
        if name.startswith((prefix + ":", prefix + "_")):
            return label
    return "other"


@dataclass
class MarkStatistics:
    """Summary of one project's marks."""
    total: int = 0
    files: int = 0
    by_file: Dict[str, int] = field(default_factory=dict)
    by_type: Dict[str, int] = field(default_factory=dict)
    oldest: Optional[str] = None
    newest: Optional[str] = None
    storage_bytes: int = 0

    def to_dict(self) -> Dict:
        return {
            "total": self.total,
            "files": self.files,
            "by_file": dict(self.by_file),
            "by_type": dict(self.by_type),
            "oldest": self.oldest,
            "newest": self.newest,
            "storage_bytes": self.storage_bytes,
        }


def compute_statistics(marks: Iterable[Mark], storage_bytes: int = 0) -> MarkStatistics:
    marks = list(marks)
    stats = MarkStatistics(storage_bytes=storage_bytes)
    if not marks:
        return stats

    stats.total = len(marks)
    stats.by_file = dict(Counter(m.file for m in marks))
    stats.files = len(stats.by_file)
    stats.by_type = dict(Counter(mark_type(m.name) for m in marks))

    # min/max keep the first of equal timestamps, i.e. explicit order decides ties
    stats.oldest = min(marks, key=lambda m: m.created_at).name
    stats.newest = max(marks, key=lambda m: m.created_at).name
    return stats
