"""
Services — External integration layer for marksman

- Git: repository root discovery for project identity
- Naming: default name suggestion for unnamed marks
"""

from .git import VcsProbe, GitProbe, NullProbe
from .naming import NameSuggester, FilenameLineSuggester

__all__ = [
    # Git
    "VcsProbe", "GitProbe", "NullProbe",
    # Naming
    "NameSuggester", "FilenameLineSuggester",
]
