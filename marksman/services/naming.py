"""
Name Suggestion — Candidate names for marks added without one

Language-aware naming (function/class detection) belongs to the editor
integration. The core only needs *some* string; it sanitizes and
de-duplicates whatever comes back.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable


class NameSuggester(ABC):
    """Capability: propose a name for a location."""

    @abstractmethod
    def suggest(self, file: str, line: int, existing_names: Iterable[str]) -> str:
        """Candidate name; may be unsanitized or already taken."""
        pass


class FilenameLineSuggester(NameSuggester):
    """<file stem>:<line>, e.g. "init:42"."""

    def suggest(self, file: str, line: int, existing_names: Iterable[str]) -> str:
        return f"{Path(file).stem}:{line}"
