"""Built-in seed data used when a store key has never been saved."""

from __future__ import annotations

import copy
from functools import lru_cache
from importlib import resources
from typing import Any

import yaml

SITE_DEFAULTS = {
    "team_image": "/assets/lab_team.jpeg",
    "team_image_position": "center",
}


@lru_cache(maxsize=None)
def _read(name: str) -> Any:
    data_path = resources.files("labsite.seed") / "data" / f"{name}.yaml"
    return yaml.safe_load(data_path.read_text(encoding="utf-8"))


def load_seed(key: str) -> list[dict[str, Any]]:
    """Seed records for a collection key, as a fresh deep copy.

    Raises:
        FileNotFoundError: If no seed file exists for *key*
    """
    return copy.deepcopy(_read(key) or [])


def load_site_defaults() -> dict[str, Any]:
    """Team image settings shipped with the package."""
    defaults = dict(SITE_DEFAULTS)
    defaults.update(_read("site") or {})
    return defaults
