"""
Tests for Search — Term filtering and fuzzy ranking

These tests validate:
- Searchable text composition (name, basename, parent dir, text, description)
- All-terms matching in explicit order
- rapidfuzz ranking with a cutoff, best first
"""

from marksman.core.marks import Mark, MarkSet
from marksman.core.search import filter_marks, fuzzy_score, rank_marks, searchable_text


def build():
    return MarkSet.from_marks([
        Mark(name="router", file="/app/web/routes.py", line=3, col=1, text="def register_routes(app):"),
        Mark(name="db", file="/app/store/session.py", line=8, col=1, text="engine = create_engine(url)",
             description="database connection"),
        Mark(name="main", file="/app/cli.py", line=1, col=1, text="def main():"),
    ])


class TestSearchableText:
    """What a query is matched against."""

    def test_parts(self):
        """Name, file name, parent dir, text and description, lowercased."""
        text = searchable_text(build().get("db"))
        for part in ("db", "session.py", "store", "create_engine", "database connection"):
            assert part in text


class TestFilterMarks:
    """All-terms filtering."""

    def test_terms_across_fields(self):
        """Terms may match different fields."""
        assert [m.name for m in filter_marks(build(), "store engine")] == ["db"]

    def test_keeps_explicit_order(self):
        """Multiple hits come back in set order."""
        assert [m.name for m in filter_marks(build(), "def")] == ["router", "main"]

    def test_no_match(self):
        """Unmatched terms filter everything out."""
        assert filter_marks(build(), "kafka") == []

    def test_empty_query(self):
        """Empty queries return all marks."""
        assert len(filter_marks(build(), "")) == 3


class TestFuzzy:
    """rapidfuzz ranking."""

    def test_typo_tolerated(self):
        """A misspelled query still finds the mark."""
        ranked = rank_marks(build(), "databse")
        assert ranked[0][0].name == "db"

    def test_cutoff_filters(self):
        """Scores below the cutoff are dropped."""
        assert rank_marks(build(), "zzzzqqqq", cutoff=60) == []

    def test_sorted_best_first(self):
        """Scores are non-increasing."""
        scores = [score for _, score in rank_marks(build(), "routes", cutoff=0)]
        assert scores == sorted(scores, reverse=True)

    def test_score_range(self):
        """Scores fall within 0-100."""
        score = fuzzy_score("main", build().get("main"))
        assert 0 <= score <= 100
        assert score == 100
