"""layergraph.config - Configuration loading.

Configuration is layered, later sources winning:

1. ``DEFAULT_CONFIG``
2. ``.layergraph.toml`` (found by walking up from the working directory,
   stopping at the git root)
3. ``.layergraph.local.toml`` next to it (untracked developer overrides)
4. ``LAYERGRAPH_<SECTION>_<KEY>`` environment variables
"""

from __future__ import annotations

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any

import tomlkit

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".layergraph.toml"
LOCAL_CONFIG_FILENAME = ".layergraph.local.toml"
ENV_PREFIX = "LAYERGRAPH_"

DEFAULT_CONFIG: dict[str, Any] = {
    "search": {
        "limit": 20,
    },
    "paths": {
        "max_depth": 5,
        "max_paths": 3,
    },
    "save": {
        "backup": True,
        "sort": True,
        "indent": 2,
    },
    "logging": {
        "level": "WARNING",
    },
}


class ConfigLoader:
    """Read access to a merged configuration dictionary.

    Keys are addressed with dots: ``loader.get("save.backup")``.
    """

    def __init__(self, data: dict[str, Any]) -> None:
        self._data = data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ConfigLoader:
        return cls(copy.deepcopy(data))

    def get(self, key: str, default: Any = None) -> Any:
        value: Any = self._data
        for part in key.split("."):
            if not isinstance(value, dict) or part not in value:
                return default
            value = value[part]
        return value

    def get_raw(self) -> dict[str, Any]:
        return self._data

    def __contains__(self, key: str) -> bool:
        sentinel = object()
        return self.get(key, sentinel) is not sentinel


def find_git_root(start_path: Path | None = None) -> Path | None:
    """Return the nearest ancestor (inclusive) containing ``.git``."""
    current = (start_path or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        if (directory / ".git").exists():
            return directory
    return None


def find_config_file(start_path: Path) -> Path | None:
    """Find ``.layergraph.toml`` in ``start_path`` or a parent directory.

    The search stops at the git root so a config belonging to an
    enclosing repository is never picked up.
    """
    current = Path(start_path).resolve()
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        if (directory / ".git").exists():
            break
    return None


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def _read_toml(path: Path) -> dict[str, Any]:
    content = path.read_text(encoding="utf-8")
    return tomlkit.parse(content).unwrap()


def _try_parse_env_value(value: str) -> Any:
    """Convert an environment variable string to a typed value.

    JSON arrays and objects are decoded, ``true``/``false`` become
    booleans and integers become ints. Anything else, including malformed
    JSON, is returned unchanged.
    """
    stripped = value.strip()
    if stripped[:1] in ("[", "{"):
        try:
            return json.loads(stripped)
        except json.JSONDecodeError:
            logger.warning("Ignoring malformed JSON in environment value: %s", value)
            return value
    lowered = stripped.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    try:
        return int(stripped)
    except ValueError:
        return value


def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """Apply ``LAYERGRAPH_SECTION_KEY`` overrides.

    The name after the prefix is split once: ``LAYERGRAPH_PATHS_MAX_DEPTH``
    sets ``paths.max_depth``.
    """
    result = copy.deepcopy(config)
    for name, raw in os.environ.items():
        if not name.startswith(ENV_PREFIX):
            continue
        parts = name[len(ENV_PREFIX) :].lower().split("_", 1)
        if len(parts) != 2 or not all(parts):
            continue
        section, key = parts
        target = result.setdefault(section, {})
        if not isinstance(target, dict):
            continue
        target[key] = _try_parse_env_value(raw)
    return result


def load_config(config_path: Path) -> ConfigLoader:
    """Load configuration from a TOML file, merged over the defaults.

    A ``.layergraph.local.toml`` in the same directory is merged on top,
    then environment overrides are applied.
    """
    config_path = Path(config_path)
    data = _deep_merge(DEFAULT_CONFIG, _read_toml(config_path))

    local_path = config_path.parent / LOCAL_CONFIG_FILENAME
    if local_path.is_file():
        data = _deep_merge(data, _read_toml(local_path))

    logger.debug("Loaded config from %s", config_path)
    return ConfigLoader(_apply_env_overrides(data))


def get_config(
    config_path: Path | None = None,
    start_path: Path | None = None,
) -> ConfigLoader:
    """Resolve the effective configuration.

    Args:
        config_path: Explicit config file (e.g. from ``--config``).
        start_path: Directory to search from when no file is given.

    Returns:
        ConfigLoader over defaults, file values and environment overrides.
    """
    if config_path is None:
        config_path = find_config_file(start_path or Path.cwd())
    if config_path is not None:
        return load_config(config_path)
    return ConfigLoader(_apply_env_overrides(DEFAULT_CONFIG))


__all__ = [
    "DEFAULT_CONFIG",
    "ConfigLoader",
    "find_git_root",
    "find_config_file",
    "load_config",
    "get_config",
]
