"""Core library for labsite: the content store and its building blocks."""

from labsite.core.collection import Collection, IdGenerator, ReorderError
from labsite.core.colors import (
    BRAND_GRADIENT,
    LAB_COLOR,
    LAB_COLOR_DARK,
    compose_gradient,
    darken,
    hex_to_hsl,
    hsl_to_hex,
    topic_color,
)
from labsite.core.config import StoreSettings, get_paths, get_site_root
from labsite.core.events import ChangeEvent, ChangeNotifier
from labsite.core.links import LinkEngine, RepairReport
from labsite.core.storage import JsonFileStore, MemoryStore, PersistenceAdapter, PersistenceError
from labsite.core.store import ContentStore, DuplicateNameError, FeaturedSelection
from labsite.core.topics import TopicColor, TopicColorRegistry

__all__ = [
    # Store
    "ContentStore",
    "FeaturedSelection",
    "DuplicateNameError",
    "Collection",
    "IdGenerator",
    "ReorderError",
    # Links
    "LinkEngine",
    "RepairReport",
    # Colors and topics
    "LAB_COLOR",
    "LAB_COLOR_DARK",
    "BRAND_GRADIENT",
    "compose_gradient",
    "darken",
    "hex_to_hsl",
    "hsl_to_hex",
    "topic_color",
    "TopicColor",
    "TopicColorRegistry",
    # Persistence
    "PersistenceAdapter",
    "PersistenceError",
    "MemoryStore",
    "JsonFileStore",
    # Events
    "ChangeEvent",
    "ChangeNotifier",
    # Config
    "StoreSettings",
    "get_paths",
    "get_site_root",
]
