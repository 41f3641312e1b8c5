"""
Configuration and path management.

Provides site root detection, standard paths, and store settings.
Uses .labsite/ directory for store data, snapshots, and config.

Resolution order for site root:
  1. LABSITE_ROOT environment variable (highest priority)
  2. Walk up from cwd looking for .labsite/ directory
  3. Global config file (~/.config/labsite/config.yaml) site_root key
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

DATA_DIR_NAME = ".labsite"

DEFAULT_KEEP_COUNT = 10
DEFAULT_KEEP_DAYS = 30
COLOR_MODES = ("brand", "topics")
HUE_STRATEGIES = ("even", "random")


@dataclass(frozen=True)
class SitePaths:
    """Standard paths for a labsite data directory."""

    root: Path
    data_dir: Path
    store_dir: Path
    backups: Path
    config_file: Path


def get_global_config_path() -> Path:
    """Return the path to the global labsite config file.

    Respects XDG_CONFIG_HOME if set, otherwise defaults to
    ~/.config/labsite/config.yaml.
    """
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config_home:
        base = Path(xdg_config_home)
    else:
        base = Path.home() / ".config"
    return base / "labsite" / "config.yaml"


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.is_file():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Ignoring unreadable config %s: %s", path, e)
        return {}
    return data if isinstance(data, dict) else {}


def load_global_config() -> dict[str, Any]:
    """Load the global configuration, or {} if missing or invalid."""
    return _read_yaml(get_global_config_path())


def _walk_up_for_data_dir(start_path: Path) -> Path | None:
    current = start_path.resolve()
    while current != current.parent:
        if (current / DATA_DIR_NAME).is_dir():
            return current
        current = current.parent
    return None


def find_site_root(start_path: Path | None = None) -> Path:
    """Find the site root using 3-tier resolution.

    Args:
        start_path: Starting path for the .labsite/ walk (defaults to cwd)

    Returns:
        Path to site root

    Raises:
        FileNotFoundError: If no .labsite/ directory is found by any method
    """
    env_root = os.environ.get("LABSITE_ROOT")
    if env_root:
        env_path = Path(env_root).resolve()
        if (env_path / DATA_DIR_NAME).is_dir():
            return env_path
        raise FileNotFoundError(f"LABSITE_ROOT={env_root} does not contain a {DATA_DIR_NAME}/ directory.")

    if start_path is None:
        start_path = Path.cwd()
    result = _walk_up_for_data_dir(Path(start_path))
    if result is not None:
        return result

    site_root_str = load_global_config().get("site_root")
    if site_root_str:
        global_path = Path(site_root_str).expanduser().resolve()
        if (global_path / DATA_DIR_NAME).is_dir():
            return global_path
        raise FileNotFoundError(
            f"Global config site_root={site_root_str} does not contain a {DATA_DIR_NAME}/ directory."
        )

    raise FileNotFoundError(
        f"Could not find {DATA_DIR_NAME}/ directory starting from {start_path}. "
        f"Run 'labsite init' to initialize, set LABSITE_ROOT, or configure "
        f"site_root in {get_global_config_path()}."
    )


@lru_cache(maxsize=1)
def get_site_root() -> Path:
    """Get the cached site root path."""
    return find_site_root()


def get_paths(site_root: Path | None = None) -> SitePaths:
    """Get all standard paths for the site.

    Args:
        site_root: Site root path (uses cached default if not provided)
    """
    if site_root is None:
        site_root = get_site_root()

    site_root = Path(site_root)
    data_dir = site_root / DATA_DIR_NAME

    return SitePaths(
        root=site_root,
        data_dir=data_dir,
        store_dir=data_dir / "store",
        backups=data_dir / "backups",
        config_file=data_dir / "config.yaml",
    )


def load_site_config(site_root: Path | None = None) -> dict[str, Any]:
    """Load .labsite/config.yaml as a dict ({} when absent)."""
    return _read_yaml(get_paths(site_root).config_file)


@dataclass(frozen=True)
class StoreSettings:
    """Behavioral settings for a ContentStore."""

    project_color_mode: str = "brand"
    topic_hue_strategy: str = "even"
    backups_enabled: bool = True
    keep_count: int = DEFAULT_KEEP_COUNT
    keep_days: int = DEFAULT_KEEP_DAYS

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> StoreSettings:
        """Build settings from a nested config dict, falling back to defaults.

        Unknown or invalid values are logged and replaced with the default.
        """
        store = config.get("store")
        if not isinstance(store, dict):
            store = {}
        backup = config.get("backup")
        if not isinstance(backup, dict):
            backup = {}
        defaults = cls()

        color_mode = store.get("project_color_mode", defaults.project_color_mode)
        if color_mode not in COLOR_MODES:
            logger.warning("Unknown store.project_color_mode %r, using %r", color_mode, defaults.project_color_mode)
            color_mode = defaults.project_color_mode

        strategy = store.get("topic_hue_strategy", defaults.topic_hue_strategy)
        if strategy not in HUE_STRATEGIES:
            logger.warning("Unknown store.topic_hue_strategy %r, using %r", strategy, defaults.topic_hue_strategy)
            strategy = defaults.topic_hue_strategy

        def _int(value: Any, fallback: int) -> int:
            try:
                return int(value)
            except (TypeError, ValueError):
                return fallback

        return cls(
            project_color_mode=color_mode,
            topic_hue_strategy=strategy,
            backups_enabled=bool(backup.get("enabled", defaults.backups_enabled)),
            keep_count=_int(backup.get("keep_count"), defaults.keep_count),
            keep_days=_int(backup.get("keep_days"), defaults.keep_days),
        )
