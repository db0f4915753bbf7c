"""
Marksman — Project-scoped named bookmarks

Remembers (file, line, col) locations under human-readable names, keeps one
ordered set per project, and walks through them in order.

Layers:
- core: marks, validation, persistence, registry, navigation, exchange
- services: version-control probing, name suggestion
- session: resolver plus one registry per project

Usage:
    from marksman import MarksmanSession, Location, Navigator

    session = MarksmanSession()
    registry = session.registry_for("/work/app/src/main.py")
    registry.add(Location("/work/app/src/main.py", 42, 1), name="entry")
    Navigator(registry).goto_next("/work/app/src/main.py", 1)
    session.close()
"""

__version__ = "0.1.0"

# Core layer
from .core.results import ErrorKind, OpResult
from .core.marks import Location, Mark, MarkSet
from .core.validation import NameValidator, validate_mark_name, validate_mark_data, sanitize_mark_name
from .core.project import ProjectResolver, storage_key, project_name
from .core.store import MarkStore, LoadResult, LoadStatus
from .core.registry import MarkRegistry
from .core.navigator import Navigator, CursorContext, current_index, next_index, previous_index
from .core.exchange import ImportStrategy, ExportResult, ImportResult, export_marks, import_marks
from .core.scheduler import Scheduler, TimerScheduler, ImmediateScheduler
from .core.stats import MarkStatistics, is_mark_stale

# Services layer
from .services.git import VcsProbe, GitProbe, NullProbe
from .services.naming import NameSuggester, FilenameLineSuggester

# Config and composition
from .config import MarksmanConfig, ConfigManager, get_config
from .session import MarksmanSession

__all__ = [
    # Core
    'ErrorKind', 'OpResult',
    'Location', 'Mark', 'MarkSet',
    'NameValidator', 'validate_mark_name', 'validate_mark_data', 'sanitize_mark_name',
    'ProjectResolver', 'storage_key', 'project_name',
    'MarkStore', 'LoadResult', 'LoadStatus',
    'MarkRegistry',
    'Navigator', 'CursorContext', 'current_index', 'next_index', 'previous_index',
    'ImportStrategy', 'ExportResult', 'ImportResult', 'export_marks', 'import_marks',
    'Scheduler', 'TimerScheduler', 'ImmediateScheduler',
    'MarkStatistics', 'is_mark_stale',
    # Services
    'VcsProbe', 'GitProbe', 'NullProbe',
    'NameSuggester', 'FilenameLineSuggester',
    # Config
    'MarksmanConfig', 'ConfigManager', 'get_config',
    'MarksmanSession',
]
