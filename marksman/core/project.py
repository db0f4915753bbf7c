"""
Project Resolver — Stable project identity for storage partitioning

Resolution order (first success wins):
1. Version control root (VcsProbe)
2. Upward walk for a marker file (.git, package.json, Cargo.toml, ...)
3. Current working directory

Results are cached per source directory for a short time so repeated
lookups from the same buffer do not re-probe git and the filesystem.
"""

import hashlib
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional, Sequence

from ..services.git import GitProbe, VcsProbe

logger = logging.getLogger(__name__)


DEFAULT_MARKERS = (
    ".git",
    "package.json",
    "Cargo.toml",
    "go.mod",
    "pyproject.toml",
    "composer.json",
    "setup.py",
    ".hg",
)

DEFAULT_CACHE_TTL = 30.0
STORAGE_KEY_LENGTH = 8


@dataclass
class _CacheEntry:
    root: Path
    expires_at: float


def storage_key(identity: Path) -> str:
    """First 8 hex chars of SHA-256 of the project path."""
    return hashlib.sha256(str(identity).encode()).hexdigest()[:STORAGE_KEY_LENGTH]


def project_name(identity: Path) -> str:
    """Display name of a project: its directory basename."""
    return Path(identity).name or str(identity)


class ProjectResolver:
    """
    Maps a working file's directory to its project root.

    The cache is a plain dict overwritten on expiry; the working set is
    tiny so no eviction is needed.
    """

    def __init__(
        self,
        vcs: Optional[VcsProbe] = None,
        markers: Sequence[str] = DEFAULT_MARKERS,
        ttl: float = DEFAULT_CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
        cwd: Optional[Callable[[], Path]] = None
    ):
        self.vcs = vcs if vcs is not None else GitProbe()
        self.markers = tuple(markers)
        self.ttl = ttl
        self._clock = clock
        self._cwd = cwd or Path.cwd
        self._cache: Dict[str, _CacheEntry] = {}

    def resolve(self, current_file_dir) -> Path:
        """
        Resolve the project root for a directory.

        Args:
            current_file_dir: Directory of the file being edited

        Returns:
            Absolute project root path
        """
        source = Path(os.path.abspath(current_file_dir))
        key = str(source)
        now = self._clock()

        entry = self._cache.get(key)
        if entry is not None and entry.expires_at > now:
            return entry.root

        root = self._resolve_uncached(source)
        self._cache[key] = _CacheEntry(root=root, expires_at=now + self.ttl)
        return root

    def resolve_file(self, file_path) -> Path:
        """Resolve from a file path rather than its directory."""
        return self.resolve(Path(os.path.abspath(file_path)).parent)

    def storage_key(self, identity: Path) -> str:
        return storage_key(identity)

    def invalidate(self, current_file_dir=None) -> None:
        """Drop one cached entry, or all of them."""
        if current_file_dir is None:
            self._cache.clear()
        else:
            self._cache.pop(str(Path(os.path.abspath(current_file_dir))), None)

    def _resolve_uncached(self, source: Path) -> Path:
        root = self.vcs.toplevel(source)
        if root is not None:
            logger.debug("Project root for %s from VCS: %s", source, root)
            return Path(os.path.abspath(root))

        root = self._find_marker_root(source)
        if root is not None:
            logger.debug("Project root for %s from marker walk: %s", source, root)
            return root

        fallback = Path(os.path.abspath(self._cwd()))
        logger.debug("No project root for %s, using cwd %s", source, fallback)
        return fallback

    def _find_marker_root(self, source: Path) -> Optional[Path]:
        """Walk upward until a directory holds any marker."""
        current = source
        while True:
            for marker in self.markers:
                if (current / marker).exists():
                    return current
            parent = current.parent
            if parent == current:
                return None
            current = parent
