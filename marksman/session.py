"""
Session — One resolver, one registry per project

Editors switch buffers across projects; the session maps every file to
its project's registry, creating registries on first touch and flushing
all of them on close.
"""

import logging
import threading
from pathlib import Path
from typing import Dict, List, Optional, Union

from .config import MarksmanConfig, get_config
from .core.navigator import Navigator
from .core.project import ProjectResolver
from .core.registry import MarkRegistry
from .core.results import OpResult
from .core.scheduler import Scheduler

logger = logging.getLogger(__name__)


class MarksmanSession:
    """
    Entry point for an editor integration.

    Usage:
        session = MarksmanSession()
        registry = session.registry_for("/work/app/src/main.py")
        registry.add(("/work/app/src/main.py", 10, 1))
        session.close()
    """

    def __init__(
        self,
        config: Optional[MarksmanConfig] = None,
        resolver: Optional[ProjectResolver] = None,
        scheduler: Optional[Scheduler] = None
    ):
        self._fixed_config = config
        self.config = config or get_config()
        self.resolver = resolver or ProjectResolver(
            markers=self.config.project_markers,
            ttl=self.config.project_cache_ttl
        )
        self.scheduler = scheduler
        self._registries: Dict[str, MarkRegistry] = {}
        self._lock = threading.Lock()

    def config_for(self, project: Path) -> MarksmanConfig:
        """Config given at construction, else the project's own layered config."""
        if self._fixed_config is not None:
            return self._fixed_config
        return get_config(project)

    def project_for(self, file_path: Union[str, Path]) -> Path:
        return self.resolver.resolve_file(file_path)

    def registry_for(self, file_path: Union[str, Path]) -> MarkRegistry:
        """Registry of the project containing file_path."""
        return self.registry_for_project(self.project_for(file_path))

    def registry_for_project(self, project: Path) -> MarkRegistry:
        key = self.resolver.storage_key(project)
        with self._lock:
            registry = self._registries.get(key)
            if registry is None:
                logger.debug("Opening marks for project %s (%s)", project, key)
                registry = MarkRegistry.for_project(
                    project, key, config=self.config_for(project), scheduler=self.scheduler
                )
                self._registries[key] = registry
            return registry

    def navigator_for(self, file_path: Union[str, Path]) -> Navigator:
        return Navigator(self.registry_for(file_path))

    def open_projects(self) -> List[Path]:
        with self._lock:
            return [r.project for r in self._registries.values() if r.project is not None]

    def close(self) -> List[OpResult]:
        """Flush and drop every open registry."""
        with self._lock:
            registries = list(self._registries.values())
            self._registries.clear()

        results = []
        for registry in registries:
            result = registry.close()
            if not result.success:
                logger.error("Failed to save marks for %s: %s", registry.project, result.message)
            results.append(result)
        return results
