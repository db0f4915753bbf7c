"""
Configuration — Centralized settings management

Config hierarchy (highest to lowest priority):
  1. Project config (<project>/.marksman/config.yaml)
  2. User config (~/.marksman/config.yaml)
  3. Environment variables
  4. Defaults

Invalid values never abort loading: they are dropped with a warning and the
default is kept.
"""

import logging
import os
import yaml
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List, Tuple

from .core.project import DEFAULT_MARKERS, DEFAULT_CACHE_TTL

logger = logging.getLogger(__name__)


def default_data_dir() -> Path:
    """Per-user data directory for mark files."""
    xdg = os.environ.get("XDG_DATA_HOME")
    if xdg:
        return Path(xdg) / "marksman"
    return Path.home() / ".local" / "share" / "marksman"


# Numeric settings and their accepted ranges
RANGES: Dict[str, Tuple[int, int]] = {
    "max_marks": (1, 1000),
    "debounce_ms": (100, 5000),
    "undo_levels": (0, 100),
}

BOOL_SETTINGS = ("auto_save", "track_access")


@dataclass
class MarksmanConfig:
    """Application configuration."""
    auto_save: bool = True
    max_marks: int = 100
    debounce_ms: int = 500
    undo_levels: int = 10
    track_access: bool = False
    data_dir: Path = field(default_factory=default_data_dir)
    project_markers: List[str] = field(default_factory=lambda: list(DEFAULT_MARKERS))
    project_cache_ttl: float = DEFAULT_CACHE_TTL

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000.0

    def validate(self) -> Optional[str]:
        """Validate config. Returns error message or None if valid."""
        for key, (low, high) in RANGES.items():
            value = getattr(self, key)
            if not _is_number(value):
                return f"Invalid config type for {key}: expected number"
            if value < low:
                return f"Config value {key} below minimum: {value} < {low}"
            if value > high:
                return f"Config value {key} above maximum: {value} > {high}"
        for key in BOOL_SETTINGS:
            if not isinstance(getattr(self, key), bool):
                return f"Invalid config type for {key}: expected boolean"
        if self.project_cache_ttl < 0:
            return "project_cache_ttl must be >= 0"
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "auto_save": self.auto_save,
            "max_marks": self.max_marks,
            "debounce_ms": self.debounce_ms,
            "undo_levels": self.undo_levels,
            "track_access": self.track_access,
            "data_dir": str(self.data_dir),
            "project_markers": list(self.project_markers),
            "project_cache_ttl": self.project_cache_ttl,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MarksmanConfig':
        """
        Create from dictionary.

        Each key is checked on its own: a bad value is logged and replaced
        by the default, unknown keys are ignored for forward compatibility.
        """
        config = cls()

        for key in BOOL_SETTINGS:
            if key in data:
                value = data[key]
                if isinstance(value, bool):
                    setattr(config, key, value)
                else:
                    _warn_type(key, "boolean", value)

        for key, (low, high) in RANGES.items():
            if key in data:
                value = data[key]
                if not _is_number(value):
                    _warn_type(key, "number", value)
                elif value < low:
                    logger.warning("Config value %s below minimum: %s < %s", key, value, low)
                elif value > high:
                    logger.warning("Config value %s above maximum: %s > %s", key, value, high)
                else:
                    setattr(config, key, int(value))

        if data.get("data_dir"):
            config.data_dir = Path(os.path.expanduser(str(data["data_dir"])))

        markers = data.get("project_markers")
        if markers is not None:
            if isinstance(markers, list) and all(isinstance(m, str) for m in markers):
                config.project_markers = list(markers)
            else:
                _warn_type("project_markers", "list of strings", markers)

        ttl = data.get("project_cache_ttl")
        if ttl is not None:
            if _is_number(ttl) and ttl >= 0:
                config.project_cache_ttl = float(ttl)
            else:
                _warn_type("project_cache_ttl", "non-negative number", ttl)

        return config


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _warn_type(key: str, expected: str, value: Any) -> None:
    logger.warning(
        "Invalid config type for %s: expected %s, got %s",
        key, expected, type(value).__name__
    )


class ConfigManager:
    """
    Manages configuration loading and persistence.

    Hierarchy:
      1. Project config (.marksman/config.yaml)
      2. User config (~/.marksman/config.yaml)
      3. Environment
      4. Defaults
    """

    USER_CONFIG_DIR = Path.home() / ".marksman"
    PROJECT_CONFIG_DIR = ".marksman"
    PROJECT_CONFIG_FILE = "config.yaml"

    def __init__(self, project_dir: Optional[Path] = None, user_config_dir: Optional[Path] = None):
        self.project_dir = Path(project_dir) if project_dir else Path.cwd()
        self.user_config_dir = Path(user_config_dir) if user_config_dir else self.USER_CONFIG_DIR
        self._config: Optional[MarksmanConfig] = None

    @property
    def project_config_path(self) -> Path:
        return self.project_dir / self.PROJECT_CONFIG_DIR / self.PROJECT_CONFIG_FILE

    @property
    def user_config_path(self) -> Path:
        return self.user_config_dir / self.PROJECT_CONFIG_FILE

    def load(self) -> MarksmanConfig:
        """Load configuration from all sources."""
        if self._config is not None:
            return self._config

        # Start with defaults
        config_data: Dict[str, Any] = {}

        # Environment sits below both files
        config_data = self._merge(config_data, self._env_overrides())

        # User config
        config_data = self._merge(config_data, self._read_yaml(self.user_config_path))

        # Project config (highest priority)
        config_data = self._merge(config_data, self._read_yaml(self.project_config_path))

        self._config = MarksmanConfig.from_dict(config_data)
        return self._config

    def reload(self) -> MarksmanConfig:
        self._config = None
        return self.load()

    def save_project(self, config: MarksmanConfig):
        """Save configuration to project config file."""
        self._write_yaml(self.project_config_path, config)
        self._config = config

    def save_user(self, config: MarksmanConfig):
        """Save configuration to user config file."""
        self._write_yaml(self.user_config_path, config)
        self._config = config

    def set(self, key: str, value: str, scope: str = "project") -> Optional[str]:
        """
        Set a configuration value.

        Args:
            key: Setting name (e.g., "max_marks")
            value: Value as typed by the user
            scope: "project" or "user"

        Returns:
            Error message or None if successful
        """
        config = self.load()

        if key in BOOL_SETTINGS:
            setattr(config, key, value.lower() in ('true', '1', 'yes'))
        elif key in RANGES:
            try:
                setattr(config, key, int(value))
            except ValueError:
                return f"Invalid value for {key}: {value} (expected integer)"
        elif key == "data_dir":
            config.data_dir = Path(os.path.expanduser(value))
        elif key == "project_cache_ttl":
            try:
                config.project_cache_ttl = float(value)
            except ValueError:
                return f"Invalid value for {key}: {value} (expected number)"
        else:
            valid = ", ".join(list(BOOL_SETTINGS) + list(RANGES) + ["data_dir", "project_cache_ttl"])
            return f"Unknown setting: {key}. Valid: {valid}"

        error = config.validate()
        if error:
            # Keep the in-memory config consistent with what is on disk
            self._config = None
            return error

        if scope == "project":
            self.save_project(config)
        else:
            self.save_user(config)

        return None

    def get(self, key: str) -> Optional[str]:
        """Get a configuration value as a string."""
        config = self.load()
        value = config.to_dict().get(key)
        if value is None:
            return None
        if isinstance(value, bool):
            return str(value).lower()
        if isinstance(value, list):
            return ", ".join(value)
        return str(value)

    def _env_overrides(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if os.environ.get("MARKSMAN_DATA_DIR"):
            data["data_dir"] = os.environ["MARKSMAN_DATA_DIR"]
        if os.environ.get("MARKSMAN_AUTO_SAVE"):
            data["auto_save"] = os.environ["MARKSMAN_AUTO_SAVE"].lower() in ('true', '1', 'yes')
        for key, env in (("max_marks", "MARKSMAN_MAX_MARKS"), ("debounce_ms", "MARKSMAN_DEBOUNCE_MS")):
            raw = os.environ.get(env)
            if raw:
                try:
                    data[key] = int(raw)
                except ValueError:
                    logger.warning("Ignoring %s=%r: not an integer", env, raw)
        return data

    def _read_yaml(self, path: Path) -> Dict[str, Any]:
        if not path.exists():
            return {}
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Ignoring malformed config %s: %s", path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring config %s: top level is not a mapping", path)
            return {}
        return data

    def _write_yaml(self, path: Path, config: MarksmanConfig):
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            yaml.dump(config.to_dict(), f, default_flow_style=False)

    def _merge(self, base: Dict, override: Dict) -> Dict:
        """Deep merge two dicts, override wins."""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge(result[key], value)
            else:
                result[key] = value
        return result


# Convenience function
def get_config(project_dir: Optional[Path] = None) -> MarksmanConfig:
    """Load configuration for a project."""
    return ConfigManager(project_dir).load()
