"""
Shared pytest fixtures for the marksman test suite.

Every fixture is backed by tmp_path; the user's data directory and
config files are never read or written.

Usage in tests:
    def test_something(marksman_factory):
        registry = marksman_factory.create_registry()

    def test_with_data(sample_registry):
        assert sample_registry.names() == ["A", "B", "C", "D"]
"""

import pytest
from tests.factories import ManualScheduler, MarksmanTestFactory


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep env-driven config and XDG paths inside the test directory."""
    for var in ("MARKSMAN_DATA_DIR", "MARKSMAN_MAX_MARKS", "MARKSMAN_AUTO_SAVE", "MARKSMAN_DEBOUNCE_MS"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "xdg"))


@pytest.fixture
def marksman_factory(tmp_path):
    """Empty factory: project dir with no files, no mark file yet."""
    return MarksmanTestFactory(tmp_path)


@pytest.fixture
def sample_registry(marksman_factory):
    """
    Registry with four marks, written through immediately.

    A, B, C on main.py lines 1-3; D on lib/util.py line 2.
    """
    return marksman_factory.create_sample_registry()


@pytest.fixture
def manual_scheduler():
    """Scheduler whose callbacks run only on run_pending()."""
    return ManualScheduler()
