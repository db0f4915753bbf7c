"""
Navigator — Proximity-based next/previous over the explicit mark order

The current position is derived from the cursor, not remembered:
1. A mark on the cursor's file and line is current
2. Otherwise the nearest mark in the same file (smallest line distance,
   first in order on ties)
3. No mark in the file: no current index; next starts at the first mark,
   previous at the last

Indices are 1-based and wrap around at both ends.
"""

import os
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple

from .marks import Location, Mark
from .registry import MarkRegistry
from .results import ErrorKind, OpResult


class CursorContext(ABC):
    """Capability: where the cursor is right now."""

    @abstractmethod
    def current(self) -> Tuple[str, int, int]:
        """(file, line, col) of the cursor, 1-based."""
        pass


def _same_file(a: str, b: str) -> bool:
    return os.path.normpath(os.path.abspath(a)) == os.path.normpath(os.path.abspath(b))


def current_index(
    cursor_file: str,
    cursor_line: int,
    ordered_names: List[str],
    marks_by_name: Dict[str, Mark]
) -> Tuple[Optional[int], int, Optional[ErrorKind]]:
    """
    Locate the cursor within the ordered marks.

    Returns:
        (index or None, total, error or None)
    """
    names = [n for n in ordered_names if n in marks_by_name]
    total = len(names)
    if total == 0:
        return None, 0, ErrorKind.NO_MARKS

    nearest: Optional[int] = None
    nearest_distance: Optional[int] = None

    for position, name in enumerate(names, start=1):
        mark = marks_by_name[name]
        if not cursor_file or not _same_file(mark.file, cursor_file):
            continue
        distance = abs(mark.line - cursor_line)
        if distance == 0:
            return position, total, None
        if nearest_distance is None or distance < nearest_distance:
            nearest, nearest_distance = position, distance

    return nearest, total, None


def next_index(current: Optional[int], total: int) -> int:
    if current is None:
        return 1
    return (current % total) + 1


def previous_index(current: Optional[int], total: int) -> int:
    if current is None:
        return total
    return ((current - 2) % total) + 1


class Navigator:
    """Sequential navigation through a registry's marks."""

    def __init__(self, registry: MarkRegistry):
        self.registry = registry

    def _target(self, cursor_file: str, cursor_line: int, forward: bool) -> OpResult:
        marks = self.registry.snapshot()
        index, total, error = current_index(cursor_file, cursor_line, marks.names(), marks.by_name)
        if error is not None:
            return OpResult.fail(error, "No marks available")

        target = next_index(index, total) if forward else previous_index(index, total)
        return self.registry.goto(target)

    def goto_next(self, cursor_file: str, cursor_line: int) -> OpResult:
        return self._target(cursor_file, cursor_line, forward=True)

    def goto_previous(self, cursor_file: str, cursor_line: int) -> OpResult:
        return self._target(cursor_file, cursor_line, forward=False)

    def goto_next_from(self, cursor: CursorContext) -> OpResult:
        location = Location(*cursor.current())
        return self.goto_next(location.file, location.line)

    def goto_previous_from(self, cursor: CursorContext) -> OpResult:
        location = Location(*cursor.current())
        return self.goto_previous(location.file, location.line)
