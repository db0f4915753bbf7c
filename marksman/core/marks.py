"""
Marks — Data model for named bookmarks

A MarkSet owns every Mark of one project:
- by_name: name -> Mark (unique keys)
- order: explicit display/navigation sequence of names

The two structures never diverge: every add/remove/rename touches both in
the same call. New marks always append; only swap() reorders.
"""

import time
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterator, List, NamedTuple, Optional

from .validation import MAX_TEXT_LENGTH


class Location(NamedTuple):
    """Cursor-style position: absolute file, 1-based line and column."""
    file: str
    line: int
    col: int = 1


@dataclass
class Mark:
    """A named, persisted bookmark to (file, line, col)."""
    name: str
    file: str
    line: int
    col: int
    text: str = ""
    description: Optional[str] = None
    created_at: int = field(default_factory=lambda: int(time.time()))
    accessed_at: Optional[int] = None

    def __post_init__(self):
        if self.text and len(self.text) > MAX_TEXT_LENGTH:
            self.text = self.text[:MAX_TEXT_LENGTH]

    def to_dict(self) -> Dict[str, Any]:
        """Stored form (the name is the key, not a field)."""
        d: Dict[str, Any] = {
            "file": self.file,
            "line": self.line,
            "col": self.col,
            "text": self.text,
            "created_at": self.created_at,
        }
        if self.description is not None:
            d["description"] = self.description
        if self.accessed_at is not None:
            d["accessed_at"] = self.accessed_at
        return d

    @classmethod
    def from_dict(cls, name: str, d: Dict[str, Any]) -> 'Mark':
        # Legacy files may lack created_at; 0 sorts them as oldest
        return cls(
            name=name,
            file=d["file"],
            line=d["line"],
            col=d["col"],
            text=d.get("text") or "",
            description=d.get("description"),
            created_at=d.get("created_at") or 0,
            accessed_at=d.get("accessed_at"),
        )

    @property
    def location(self) -> Location:
        return Location(self.file, self.line, self.col)

    def renamed(self, new_name: str) -> 'Mark':
        return replace(self, name=new_name)


class MarkSet:
    """
    Ordered, name-unique collection of marks.

    Performs no validation of names or data; callers (registry, store,
    importer) validate first. Methods return False / None instead of
    raising when the requested change does not apply.
    """

    def __init__(self):
        self.by_name: Dict[str, Mark] = {}
        self.order: List[str] = []

    @classmethod
    def from_marks(cls, marks: List[Mark]) -> 'MarkSet':
        mark_set = cls()
        for mark in marks:
            mark_set.add(mark)
        return mark_set

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self.by_name)

    def __contains__(self, name: object) -> bool:
        return name in self.by_name

    def __iter__(self) -> Iterator[Mark]:
        for name in self.names():
            yield self.by_name[name]

    def get(self, name: str) -> Optional[Mark]:
        return self.by_name.get(name)

    def names(self) -> List[str]:
        """Ordered names, filtered to entries that actually exist."""
        return [n for n in self.order if n in self.by_name]

    def index_of(self, name: str) -> Optional[int]:
        """1-based position of name in the ordered view."""
        names = self.names()
        if name not in names:
            return None
        return names.index(name) + 1

    def at(self, index: int) -> Optional[Mark]:
        """Mark at 1-based position, or None if out of range."""
        names = self.names()
        if 1 <= index <= len(names):
            return self.by_name[names[index - 1]]
        return None

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def add(self, mark: Mark) -> bool:
        """Append a mark. False if the name is taken."""
        if mark.name in self.by_name:
            return False
        self.by_name[mark.name] = mark
        self.order.append(mark.name)
        return True

    def put(self, mark: Mark) -> None:
        """Insert or overwrite; existing names keep their position."""
        if mark.name not in self.by_name:
            self.order.append(mark.name)
        self.by_name[mark.name] = mark

    def remove(self, name: str) -> Optional[Mark]:
        mark = self.by_name.pop(name, None)
        if mark is None:
            return None
        self.order = [n for n in self.order if n != name]
        return mark

    def rename(self, old_name: str, new_name: str) -> bool:
        """Replace the key in place; position in order is preserved."""
        if old_name not in self.by_name or new_name in self.by_name:
            return False
        mark = self.by_name.pop(old_name)
        self.by_name[new_name] = mark.renamed(new_name)
        self.order = [new_name if n == old_name else n for n in self.order]
        return True

    def swap(self, first: int, second: int) -> bool:
        """Swap two 1-based positions of the ordered view."""
        self.reconcile()
        size = len(self.order)
        if not (1 <= first <= size and 1 <= second <= size):
            return False
        i, j = first - 1, second - 1
        self.order[i], self.order[j] = self.order[j], self.order[i]
        return True

    def clear(self) -> None:
        self.by_name.clear()
        self.order.clear()

    def reconcile(self) -> bool:
        """
        Repair order against by_name.

        Drops names without marks (and duplicates), appends marks missing
        from order. Returns True if anything changed.
        """
        seen = set()
        repaired = []
        for name in self.order:
            if name in self.by_name and name not in seen:
                repaired.append(name)
                seen.add(name)
        for name in self.by_name:
            if name not in seen:
                repaired.append(name)
                seen.add(name)

        changed = repaired != self.order
        self.order = repaired
        return changed

    def copy(self) -> 'MarkSet':
        clone = MarkSet()
        clone.by_name = {n: replace(m) for n, m in self.by_name.items()}
        clone.order = list(self.order)
        return clone

    # -------------------------------------------------------------------------
    # Serialization helpers
    # -------------------------------------------------------------------------

    def marks_dict(self) -> Dict[str, Dict[str, Any]]:
        return {name: self.by_name[name].to_dict() for name in self.names()}

    @classmethod
    def from_mapping(cls, marks: Dict[str, Dict[str, Any]],
                     order: Optional[List[str]] = None) -> 'MarkSet':
        """Build from the stored mapping form; order is reconciled."""
        mark_set = cls()
        mark_set.by_name = {name: Mark.from_dict(name, data) for name, data in marks.items()}
        mark_set.order = list(order) if order is not None else list(marks.keys())
        mark_set.reconcile()
        return mark_set
