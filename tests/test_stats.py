"""
Tests for Mark Health — Staleness and statistics helpers

These tests validate:
- is_mark_stale reasons (missing file, past end, changed content)
- The 50% word-overlap threshold
- Statistics grouping by file and type prefix
"""

from marksman.core.marks import Mark
from marksman.core.stats import compute_statistics, is_mark_stale, mark_type, read_line


def write(tmp_path, lines):
    path = tmp_path / "code.py"
    path.write_text("\n".join(lines) + "\n")
    return str(path)


class TestReadLine:
    """Reading a single line."""

    def test_reads_line(self, tmp_path):
        """Lines are 1-based and stripped of the newline."""
        path = write(tmp_path, ["first", "second"])
        assert read_line(path, 2) == "second"

    def test_past_end(self, tmp_path):
        """Past the end yields None."""
        assert read_line(write(tmp_path, ["only"]), 5) is None


class TestIsMarkStale:
    """Staleness rules."""

    def test_unchanged(self, tmp_path):
        """Matching content is fresh."""
        path = write(tmp_path, ["def handler(event, context):"])
        mark = Mark(name="h", file=path, line=1, col=1, text="def handler(event, context):")
        assert is_mark_stale(mark) == (False, "")

    def test_missing_file(self, tmp_path):
        """Missing files are stale."""
        mark = Mark(name="h", file=str(tmp_path / "gone.py"), line=1, col=1)
        assert is_mark_stale(mark) == (True, "File no longer exists")

    def test_past_end(self, tmp_path):
        """Lines beyond the end are stale."""
        mark = Mark(name="h", file=write(tmp_path, ["a"]), line=3, col=1, text="a")
        assert is_mark_stale(mark) == (True, "Line number beyond file end")

    def test_minor_edit_tolerated(self, tmp_path):
        """Half or more of the words surviving keeps the mark fresh."""
        path = write(tmp_path, ["def handler(event, ctx):"])
        mark = Mark(name="h", file=path, line=1, col=1, text="def handler(event, context):")
        assert is_mark_stale(mark)[0] is False

    def test_major_edit(self, tmp_path):
        """Less than half of the words surviving is stale."""
        path = write(tmp_path, ["return total"])
        mark = Mark(name="h", file=path, line=1, col=1, text="def handler(event, context):")
        assert is_mark_stale(mark) == (True, "Line content changed significantly")

    def test_no_snapshot(self, tmp_path):
        """Marks without text are only checked for position."""
        mark = Mark(name="h", file=write(tmp_path, ["anything"]), line=1, col=1, text="")
        assert is_mark_stale(mark)[0] is False


class TestStatistics:
    """Grouping and extremes."""

    def test_mark_type(self):
        """Both raw and sanitized prefixes are recognized."""
        assert mark_type("fn:parse") == "function"
        assert mark_type("struct_Point") == "struct"
        assert mark_type("var:count") == "variable"
        assert mark_type("fnord") == "other"

    def test_compute(self):
        """Counts per file and type, oldest and newest by created_at."""
        marks = [
            Mark(name="fn:a", file="/x.py", line=1, col=1, created_at=200),
            Mark(name="b", file="/x.py", line=2, col=1, created_at=100),
            Mark(name="class:C", file="/y.py", line=1, col=1, created_at=300),
        ]
        stats = compute_statistics(marks, storage_bytes=512)
        assert stats.total == 3
        assert stats.files == 2
        assert stats.by_file == {"/x.py": 2, "/y.py": 1}
        assert stats.by_type == {"function": 1, "other": 1, "class": 1}
        assert (stats.oldest, stats.newest) == ("b", "class:C")
        assert stats.to_dict()["storage_bytes"] == 512
