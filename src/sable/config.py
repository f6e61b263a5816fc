"""Interpreter configuration loaded from YAML.

Settings are read from the first file found in this order:
- An explicit path passed to `load_config()`
- The file named by the SABLE_CONFIG environment variable
- The user config file (~/.config/sable/config.yaml)

If no file exists the built-in defaults are used. Every key is optional.

Example config.yaml:

    max_call_depth: 500
    prompt: "sable> "
    log_level: DEBUG
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, fields
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .errors import ConfigError

__all__ = [
    "SABLE_CONFIG",
    "SableConfig",
    "load_config",
    "default_config_path",
    "clear_cache",
]

logger = logging.getLogger(__name__)

# Environment variable naming a config file
SABLE_CONFIG = "SABLE_CONFIG"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class SableConfig:
    """Tunable limits and REPL presentation."""
    max_call_depth: int = 200
    max_errors: int = 20
    prompt: str = ">> "
    banner: str = "Feel free to type in commands"
    log_level: str = "WARNING"
    source: Optional[str] = None  # Path the settings came from, if any

    def __post_init__(self):
        for name in ("max_call_depth", "max_errors"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                raise ConfigError(f"'{name}' must be a positive integer, got {value!r}")
        for name in ("prompt", "banner"):
            if not isinstance(getattr(self, name), str):
                raise ConfigError(f"'{name}' must be a string")
        if not isinstance(self.log_level, str) or self.log_level.upper() not in _LOG_LEVELS:
            raise ConfigError(
                f"'log_level' must be one of {', '.join(_LOG_LEVELS)}, got {self.log_level!r}"
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any], source: Optional[str] = None) -> "SableConfig":
        """Build a config from a parsed mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)} - {"source"}
        unknown = sorted(str(key) for key in set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown config key(s) in {source or 'config'}: {', '.join(unknown)}")
        return cls(source=source, **data)


def default_config_path() -> Path:
    """Return the per-user config file location."""
    if sys.platform == "win32":
        config_base = Path(os.environ.get("APPDATA", "~")).expanduser()
    else:
        config_base = Path.home() / ".config"
    return config_base / "sable" / "config.yaml"


def clear_cache() -> None:
    """Forget the cached implicit config.

    Call this after changing SABLE_CONFIG or the user config file.
    """
    _load_default_config.cache_clear()


def _load_yaml(path: Path) -> SableConfig:
    """Load and validate a YAML config file."""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid config format in {path}: expected mapping at root")

    logger.debug("loaded configuration from %s", path)
    return SableConfig.from_dict(data, source=str(path))


@lru_cache(maxsize=None)
def _load_default_config() -> SableConfig:
    env_path = os.environ.get(SABLE_CONFIG)
    if env_path:
        path = Path(env_path).expanduser()
        if not path.is_file():
            raise ConfigError(f"{SABLE_CONFIG} points to a missing file: {path}")
        return _load_yaml(path)

    user_config = default_config_path()
    if user_config.is_file():
        return _load_yaml(user_config)

    logger.debug("no config file found, using defaults")
    return SableConfig()


def load_config(path: Optional[Union[str, Path]] = None) -> SableConfig:
    """Load interpreter settings.

    Args:
        path: Optional explicit YAML file (overrides the search)

    Returns:
        The resulting SableConfig. Implicit lookups are cached until
        `clear_cache()` is called.

    Raises:
        ConfigError: If the file is missing, is not valid YAML, has
                     unknown keys or holds a value of the wrong type
    """
    if path is not None:
        path = Path(path).expanduser()
        if not path.is_file():
            raise ConfigError(f"Config file not found: {path}")
        return _load_yaml(path)
    return _load_default_config()
