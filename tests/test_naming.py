"""
Tests for Name Suggestion — Default names for unnamed marks
"""

import pytest

from marksman.core.navigator import CursorContext
from marksman.core.validation import sanitize_mark_name, validate_mark_name
from marksman.services.git import VcsProbe
from marksman.services.naming import FilenameLineSuggester, NameSuggester


class TestFilenameLineSuggester:
    """<file stem>:<line> suggestions."""

    def test_stem_and_line(self):
        """Suggestion uses the stem, not the extension."""
        assert FilenameLineSuggester().suggest("/src/pkg/__init__.py", 42, []) == "__init__:42"

    def test_sanitizes_to_valid_name(self):
        """After sanitizing, the suggestion is a valid name."""
        suggestion = FilenameLineSuggester().suggest("/src/app.py", 7, [])
        assert validate_mark_name(sanitize_mark_name(suggestion)) == (True, None)
        assert sanitize_mark_name(suggestion) == "app_7"


class TestCapabilityInterfaces:
    """Suggester, probe and cursor interfaces are abstract."""

    @pytest.mark.parametrize("base", [NameSuggester, VcsProbe, CursorContext])
    def test_incomplete_subclass_rejected(self, base):
        """Subclasses must implement the capability method."""
        incomplete = type("Incomplete", (base,), {})
        with pytest.raises(TypeError):
            incomplete()
