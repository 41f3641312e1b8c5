"""
Persistence adapter over a flat key-value store.

Each collection and each singleton setting is one key whose value is JSON
text. Two backends are provided: JsonFileStore (one file per key under
.labsite/store/, with snapshots) and MemoryStore (a dict, used by tests and
throwaway stores).
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from labsite.core.backup import create_snapshot, safe_write_text
from labsite.core.config import DEFAULT_KEEP_COUNT, DEFAULT_KEEP_DAYS

logger = logging.getLogger(__name__)

COLLECTION_KEYS = (
    "projects",
    "people",
    "publications",
    "software",
    "jobs",
    "collaborators",
    "funding",
    "news",
)
SETTING_KEYS = ("topic_colors", "featured", "team_image", "team_image_position")
KNOWN_KEYS = COLLECTION_KEYS + SETTING_KEYS

PREVIEW_LENGTH = 60


class PersistenceError(OSError):
    """A durable write failed. In-memory state is left as it is."""

    def __init__(self, message: str, keys: list[str] | None = None):
        super().__init__(message)
        self.keys = list(keys or [])


@runtime_checkable
class KeyValueStore(Protocol):
    """Minimal durable string store."""

    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, text: str) -> None:
        ...

    def delete(self, key: str) -> None:
        ...

    def keys(self) -> list[str]:
        ...


class MemoryStore:
    """In-memory backend.

    ``quota_bytes`` caps the total stored size; a write that would exceed it
    raises OSError, like a browser's storage quota.
    """

    def __init__(self, data: dict[str, str] | None = None, quota_bytes: int | None = None):
        self._data: dict[str, str] = dict(data or {})
        self.quota_bytes = quota_bytes

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, text: str) -> None:
        if self.quota_bytes is not None:
            used = sum(len(v.encode("utf-8")) for k, v in self._data.items() if k != key)
            if used + len(text.encode("utf-8")) > self.quota_bytes:
                raise OSError(f"Quota exceeded writing {key!r}")
        self._data[key] = text

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class JsonFileStore:
    """File backend: ``<store_dir>/<key>.json`` per key."""

    def __init__(
        self,
        store_dir: Path,
        snapshot_dir: Path | None = None,
        keep_count: int = DEFAULT_KEEP_COUNT,
        keep_days: int | None = DEFAULT_KEEP_DAYS,
    ):
        self.store_dir = Path(store_dir)
        self.snapshot_dir = Path(snapshot_dir) if snapshot_dir is not None else None
        self.keep_count = keep_count
        self.keep_days = keep_days

    def path_for(self, key: str) -> Path:
        return self.store_dir / f"{key}.json"

    def get(self, key: str) -> str | None:
        path = self.path_for(key)
        if not path.is_file():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, text: str) -> None:
        safe_write_text(
            self.path_for(key),
            text,
            snapshot_dir=self.snapshot_dir,
            keep_last=self.keep_count,
            keep_days=self.keep_days,
        )

    def delete(self, key: str) -> None:
        path = self.path_for(key)
        if path.exists():
            if self.snapshot_dir is not None:
                create_snapshot(path, self.snapshot_dir)
            path.unlink()

    def keys(self) -> list[str]:
        if not self.store_dir.is_dir():
            return []
        return sorted(p.stem for p in self.store_dir.glob("*.json") if not p.name.startswith("."))


@dataclass
class StorageItemInfo:
    """Size and preview of one stored key."""

    key: str
    size_bytes: int
    preview: str

    @property
    def size_kb(self) -> float:
        return round(self.size_bytes / 1024, 2)


class PersistenceAdapter:
    """JSON (de)serialization on top of a KeyValueStore."""

    def __init__(self, backend: KeyValueStore):
        self.backend = backend

    def load(self, key: str) -> Any | None:
        """Read and parse a key.

        Returns:
            The decoded value, or None when the key is absent or its stored
            text cannot be decoded (logged as a warning).
        """
        text = self.backend.get(key)
        if text is None:
            logger.debug("No stored value for %s", key)
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            logger.warning("Discarding unreadable value for %s: %s", key, e)
            return None

    def save(self, key: str, value: Any) -> None:
        """Serialize and write a key.

        Raises:
            PersistenceError: If the value cannot be encoded or the write fails
        """
        try:
            text = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise PersistenceError(f"Cannot encode {key}: {e}", [key]) from e
        try:
            self.backend.set(key, text)
        except OSError as e:
            raise PersistenceError(f"Failed to save {key}: {e}", [key]) from e
        logger.debug("Saved %s (%d bytes)", key, len(text))

    def delete(self, key: str) -> None:
        try:
            self.backend.delete(key)
        except OSError as e:
            raise PersistenceError(f"Failed to delete {key}: {e}", [key]) from e

    def reset_all(self) -> list[str]:
        """Delete every known key that is currently stored.

        Returns:
            The keys that were removed
        """
        present = [key for key in KNOWN_KEYS if self.backend.get(key) is not None]
        for key in present:
            self.delete(key)
        logger.info("Cleared %d stored keys", len(present))
        return present

    def import_all(self, data: Mapping[str, Any]) -> list[str]:
        """Replace the stored data with the keys of an export() document.

        Every known key is cleared first, so keys absent from *data* are
        seeded again on the next load. Keys that are not store keys are
        skipped with a warning.

        Returns:
            The keys that were written

        Raises:
            ValueError: If *data* is not a mapping
            PersistenceError: If a write fails
        """
        if not isinstance(data, Mapping):
            raise ValueError(f"Expected an object of store keys, got {type(data).__name__}")
        unknown = sorted(str(key) for key in data if key not in KNOWN_KEYS)
        if unknown:
            logger.warning("Skipping unknown keys in import: %s", ", ".join(unknown))

        self.reset_all()
        written = []
        for key in KNOWN_KEYS:
            if key in data:
                self.save(key, data[key])
                written.append(key)
        logger.info("Imported %d stored keys", len(written))
        return written

    def __iter__(self) -> Iterator[str]:
        return iter(self.backend.keys())

    def storage_info(self) -> list[StorageItemInfo]:
        """Describe every stored key with its size and a short preview."""
        items = []
        for key in self.backend.keys():
            text = self.backend.get(key) or ""
            preview = text if len(text) <= PREVIEW_LENGTH else text[:PREVIEW_LENGTH] + "..."
            items.append(StorageItemInfo(key=key, size_bytes=len(text.encode("utf-8")), preview=preview))
        return items

    def export(self) -> dict[str, Any]:
        """Decode every readable stored key into one dict."""
        exported = {}
        for key in self.backend.keys():
            value = self.load(key)
            if value is not None:
                exported[key] = value
        return exported
