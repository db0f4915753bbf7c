"""
Search — Filter and rank marks by free-text query

Two modes:
- Term filter (default): every whitespace-separated term must appear,
  case-insensitively, in the mark's searchable text. Explicit order kept.
- Fuzzy: rapidfuzz scores every mark; matches above the cutoff are
  returned best first (ties keep explicit order).

Searchable text = name + file basename + parent directory + line text +
description.
"""

from pathlib import Path
from typing import List, Tuple

from rapidfuzz import fuzz

from .marks import Mark, MarkSet


DEFAULT_FUZZY_CUTOFF = 60.0


def searchable_text(mark: Mark) -> str:
    path = Path(mark.file)
    parts = [
        mark.name,
        path.name,
        path.parent.name,
        mark.text or "",
        mark.description or "",
    ]
    return " ".join(parts).lower()


def filter_marks(mark_set: MarkSet, query: str) -> List[Mark]:
    """Marks containing every query term, in explicit order."""
    if not query or not query.strip():
        return list(mark_set)

    terms = query.lower().split()
    return [
        mark for mark in mark_set
        if all(term in searchable_text(mark) for term in terms)
    ]


def fuzzy_score(query: str, mark: Mark) -> float:
    """
    Similarity in [0, 100].

    token_set_ratio handles word order; partial_ratio catches a query that
    is a fragment of a longer line.
    """
    text = searchable_text(mark)
    query = query.lower()
    return max(fuzz.token_set_ratio(query, text), fuzz.partial_ratio(query, text))


def rank_marks(mark_set: MarkSet, query: str,
               cutoff: float = DEFAULT_FUZZY_CUTOFF) -> List[Tuple[Mark, float]]:
    """(mark, score) pairs above cutoff, best first."""
    if not query or not query.strip():
        return [(mark, 100.0) for mark in mark_set]

    scored = []
    for position, mark in enumerate(mark_set):
        score = fuzzy_score(query, mark)
        if score >= cutoff:
            scored.append((position, mark, score))

    scored.sort(key=lambda item: (-item[2], item[0]))
    return [(mark, score) for _, mark, score in scored]
