"""
Tests for Navigator — Proximity-based next/previous

These tests validate:
- current_index: exact match, nearest in file, other-file fallback
- next/previous index arithmetic with wraparound
- Navigator resolving targets through the registry
"""

import pytest

from marksman.core.marks import Mark
from marksman.core.navigator import (
    CursorContext, Navigator, current_index, next_index, previous_index,
)
from marksman.core.results import ErrorKind


def marks_on(file, lines):
    """{name: Mark} for names A, B, C... on the given lines of one file."""
    names = [chr(ord("A") + i) for i in range(len(lines))]
    return names, {
        name: Mark(name=name, file=file, line=line, col=1)
        for name, line in zip(names, lines)
    }


class FixedCursor(CursorContext):
    def __init__(self, file, line, col=1):
        self.position = (file, line, col)

    def current(self):
        return self.position


class TestCurrentIndex:
    """Locating the cursor among marks."""

    def test_exact_match(self):
        """Same file and line is current."""
        names, by_name = marks_on("/f.py", [1, 2, 3])
        assert current_index("/f.py", 2, names, by_name) == (2, 3, None)

    def test_nearest_in_file(self):
        """Closest line in the same file wins."""
        names, by_name = marks_on("/f.py", [10, 50, 90])
        assert current_index("/f.py", 60, names, by_name) == (2, 3, None)

    def test_nearest_tie_first_wins(self):
        """Equal distances resolve to the earlier mark."""
        names, by_name = marks_on("/f.py", [10, 20])
        assert current_index("/f.py", 15, names, by_name) == (1, 2, None)

    def test_other_file_has_no_current(self):
        """No mark in the cursor's file: None."""
        names, by_name = marks_on("/f.py", [1, 2])
        assert current_index("/other.py", 1, names, by_name) == (None, 2, None)

    def test_no_marks(self):
        """Empty sets report NO_MARKS."""
        assert current_index("/f.py", 1, [], {}) == (None, 0, ErrorKind.NO_MARKS)

    def test_order_names_without_marks_ignored(self):
        """Dangling order entries are filtered out."""
        names, by_name = marks_on("/f.py", [5])
        assert current_index("/f.py", 5, ["ghost"] + names, by_name) == (1, 1, None)

    def test_equivalent_paths_match(self):
        """Paths are compared after normalization."""
        names, by_name = marks_on("/src/f.py", [3])
        assert current_index("/src/./lib/../f.py", 3, names, by_name) == (1, 1, None)


class TestIndexArithmetic:
    """Wraparound formulas."""

    @pytest.mark.parametrize("current,expected", [(None, 1), (1, 2), (2, 3), (3, 1)])
    def test_next(self, current, expected):
        """next wraps from the last to the first."""
        assert next_index(current, 3) == expected

    @pytest.mark.parametrize("current,expected", [(None, 3), (3, 2), (2, 1), (1, 3)])
    def test_previous(self, current, expected):
        """previous wraps from the first to the last."""
        assert previous_index(current, 3) == expected

    def test_single_mark(self):
        """One mark is its own next and previous."""
        assert next_index(1, 1) == 1
        assert previous_index(1, 1) == 1
        assert next_index(None, 1) == 1
        assert previous_index(None, 1) == 1


class TestNavigator:
    """Navigation through a registry."""

    @pytest.fixture
    def nav(self, sample_registry):
        return Navigator(sample_registry)

    @pytest.fixture
    def main_py(self, marksman_factory):
        return str(marksman_factory.project_dir / "main.py")

    def test_next_from_each_mark(self, nav, main_py):
        """A@1 -> B, B@2 -> C, C@3 -> D (next in order, other file)."""
        assert nav.goto_next(main_py, 1).name == "B"
        assert nav.goto_next(main_py, 2).name == "C"
        assert nav.goto_next(main_py, 3).name == "D"

    def test_next_wraps(self, nav, marksman_factory):
        """From the last mark next returns the first."""
        util = str(marksman_factory.project_dir / "lib" / "util.py")
        assert nav.goto_next(util, 2).name == "A"

    def test_previous_wraps(self, nav, main_py):
        """From the first mark previous returns the last."""
        assert nav.goto_previous(main_py, 1).name == "D"
        assert nav.goto_previous(main_py, 3).name == "B"

    def test_nearest_in_file(self, nav, main_py):
        """Cursor between marks uses the nearest as current."""
        # Line 5 is nearest to C@3
        assert nav.goto_next(main_py, 5).name == "D"
        assert nav.goto_previous(main_py, 5).name == "B"

    def test_cross_file_fallback(self, nav, marksman_factory):
        """Cursor in an unmarked file: next -> first, previous -> last."""
        other = marksman_factory.write_file("other.py", ["x"])
        assert nav.goto_next(other, 1).name == "A"
        assert nav.goto_previous(other, 1).name == "D"

    def test_single_mark_both_directions(self, marksman_factory):
        """With one mark both directions land on it."""
        path = marksman_factory.write_file("solo.py", ["a", "b"])
        registry = marksman_factory.create_registry()
        registry.add((path, 2, 1), name="only")
        nav = Navigator(registry)

        assert nav.goto_next(path, 2).name == "only"
        assert nav.goto_previous(path, 2).name == "only"

    def test_no_marks(self, marksman_factory):
        """Navigation on an empty set fails with NO_MARKS."""
        nav = Navigator(marksman_factory.create_registry())
        result = nav.goto_next("/any.py", 1)
        assert result.success is False
        assert result.kind == ErrorKind.NO_MARKS

    def test_cursor_context(self, nav, main_py):
        """A cursor object can drive navigation."""
        assert nav.goto_next_from(FixedCursor(main_py, 2)).name == "C"
        assert nav.goto_previous_from(FixedCursor(main_py, 2)).name == "A"

    def test_follows_explicit_order(self, nav, sample_registry, main_py):
        """Reordering changes the navigation sequence."""
        sample_registry.move("C", "up")
        assert nav.goto_next(main_py, 1).name == "C"

    def test_target_stale_reported(self, nav, marksman_factory, main_py):
        """A missing target file surfaces from goto."""
        (marksman_factory.project_dir / "lib" / "util.py").unlink()
        assert nav.goto_next(main_py, 3).kind == ErrorKind.STALE_FILE
