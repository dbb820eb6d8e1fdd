"""Layered configuration for yapgrid tunables.

Settings come from YAML files, searched in priority order:

- Files or directories named by the ``YAPGRID_CONFIG`` environment
  variable (colon-separated, or semicolon on Windows).  A directory
  contributes its ``yapgrid.yaml``.
- The user config file ``~/.config/yapgrid/yapgrid.yaml``.
- The bundled ``data/defaults.yaml``.

Higher priority files only need to name the keys they change.

Environment Variables:
    YAPGRID_CONFIG: paths to YAML settings files or directories.

Example:
    export YAPGRID_CONFIG="$HOME/project/grid-tuning.yaml"
"""

from __future__ import annotations

import logging
import os
import sys
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List

import yaml

__all__ = [
    "YAPGRID_CONFIG",
    "CONFIG_FILENAME",
    "load_config",
    "get_setting",
    "clear_cache",
]

logger = logging.getLogger(__name__)

# Environment variable name for custom settings files
YAPGRID_CONFIG = "YAPGRID_CONFIG"

CONFIG_FILENAME = "yapgrid.yaml"

_BUNDLED_DEFAULTS = Path(__file__).parent / "data" / "defaults.yaml"


def clear_cache() -> None:
    """Forget loaded settings so the next lookup re-reads the files."""
    _config_files.cache_clear()
    load_config.cache_clear()


@lru_cache(maxsize=None)
def _config_files() -> tuple:
    """Return settings files in priority order, highest first."""
    files: List[Path] = []

    env_path = os.environ.get(YAPGRID_CONFIG)
    if env_path:
        sep = ";" if sys.platform == "win32" else ":"
        for p in env_path.split(sep):
            p = p.strip()
            if not p:
                continue
            path = Path(p).expanduser().resolve()
            if path.is_dir():
                path = path / CONFIG_FILENAME
            if path.is_file():
                files.append(path)
            else:
                logger.warning("ignoring missing settings file %s", path)

    if sys.platform == "win32":
        config_base = Path(os.environ.get("APPDATA", "~")).expanduser()
    else:
        config_base = Path.home() / ".config"
    user_file = config_base / "yapgrid" / CONFIG_FILENAME
    if user_file.is_file():
        files.append(user_file)

    files.append(_BUNDLED_DEFAULTS)
    return tuple(files)


def _load_yaml(path: Path) -> Dict[str, Any]:
    """Load one settings file and return its ``settings`` mapping."""
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid settings format in {path}: expected dict at root")

    schema_version = str(data.get("schema_version", "1.0"))
    if not schema_version.startswith("1."):
        raise ValueError(
            f"Unsupported schema version '{schema_version}' in {path}. "
            f"Expected version 1.x"
        )

    settings = data.get("settings", {})
    if not isinstance(settings, dict):
        raise ValueError(f"'settings' in {path} must be a mapping")
    return settings


@lru_cache(maxsize=1)
def load_config() -> Dict[str, Any]:
    """Return the merged settings dictionary.

    The bundled defaults define the set of known keys; unknown keys in
    override files are reported and dropped.
    """
    files = _config_files()
    merged = dict(_load_yaml(files[-1]))
    for path in reversed(files[:-1]):
        for key, value in _load_yaml(path).items():
            if key not in merged:
                logger.warning("unknown setting '%s' in %s ignored", key, path)
                continue
            merged[key] = value
        logger.debug("applied settings from %s", path)
    return merged


def get_setting(name: str) -> Any:
    """Return a single setting, raising ``KeyError`` if it is unknown."""
    config = load_config()
    if name not in config:
        raise KeyError(f"unknown yapgrid setting '{name}'")
    return config[name]
