"""
Ordered record collections.

A Collection is a plain ordered container of record dicts for one kind. It
knows nothing about other collections; cross-collection rules live in
labsite.core.links and are driven by the ContentStore.
"""

from __future__ import annotations

import copy
import time
from collections.abc import Callable, Container, Iterable, Iterator, Sequence
from typing import Any

from labsite.core.records import Entry, KindInfo


class ReorderError(ValueError):
    """A reorder request was not a permutation of the current ids."""

    def __init__(self, message: str, missing: list[str] | None = None, unknown: list[str] | None = None):
        super().__init__(message)
        self.missing = list(missing or [])
        self.unknown = list(unknown or [])


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class IdGenerator:
    """Produces ``<prefix>-<millis>`` ids that never repeat in one process.

    The millisecond component never goes backwards, so two ids created in the
    same millisecond (or after a clock step back) still differ.
    """

    def __init__(self, clock: Callable[[], int] = now_ms):
        self.clock = clock
        self._last = 0

    def next_millis(self) -> int:
        millis = max(int(self.clock()), self._last + 1)
        self._last = millis
        return millis

    def new_id(self, prefix: str, taken: Container[str] = ()) -> str:
        millis = self.next_millis()
        while f"{prefix}-{millis}" in taken:
            millis = self.next_millis()
        return f"{prefix}-{millis}"


class Collection:
    """Ordered records of a single kind.

    Public readers get deep copies wrapped in the kind's Entry class. The raw
    accessors hand out the live dicts and are meant for the store and the
    link engine only.
    """

    def __init__(self, info: KindInfo, items: Iterable[dict[str, Any]] = ()):
        self.info = info
        self._items: list[dict[str, Any]] = []
        self.load_items(items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Entry]:
        return iter(self.list())

    def __contains__(self, record_id: object) -> bool:
        return any(item.get("id") == record_id for item in self._items)

    def _wrap(self, item: dict[str, Any]) -> Entry:
        return self.info.entry_cls(copy.deepcopy(item))

    def _index(self, record_id: str) -> int | None:
        for i, item in enumerate(self._items):
            if item.get("id") == record_id:
                return i
        return None

    # -- reads ------------------------------------------------------------

    def ids(self) -> list[str]:
        return [item["id"] for item in self._items]

    def list(self) -> list[Entry]:
        """All records in stored order."""
        return [self._wrap(item) for item in self._items]

    def get(self, record_id: str) -> Entry | None:
        """Record by id, or None."""
        index = self._index(record_id)
        return self._wrap(self._items[index]) if index is not None else None

    def get_raw(self, record_id: str) -> dict[str, Any] | None:
        index = self._index(record_id)
        return self._items[index] if index is not None else None

    def raw_items(self) -> list[dict[str, Any]]:
        return self._items

    def dump(self) -> list[dict[str, Any]]:
        """Deep copy of the stored list, ready to serialize."""
        return copy.deepcopy(self._items)

    def search(self, query: str | None = None, **filters: Any) -> list[Entry]:
        """Search records by text and field filters.

        Args:
            query: Case-insensitive substring matched against the kind's text fields
            **filters: ``field=value`` pairs. A list-valued field matches when it
                contains the value; other fields must be equal. None values are ignored.
        """
        results = []
        needle = query.lower() if query else None
        for item in self._items:
            if needle is not None:
                haystack = " ".join(str(item.get(f) or "") for f in self.info.text_fields).lower()
                if needle not in haystack:
                    continue
            if not all(_matches(item.get(name), wanted) for name, wanted in filters.items() if wanted is not None):
                continue
            results.append(self._wrap(item))
        return results

    def stats(self) -> dict[str, Any]:
        """Record count and how many records set each field."""
        field_counts: dict[str, int] = {}
        for item in self._items:
            for name, value in item.items():
                if value not in (None, "", [], {}):
                    field_counts[name] = field_counts.get(name, 0) + 1
        return {"kind": self.info.key, "total": len(self._items), "fields": dict(sorted(field_counts.items()))}

    # -- writes -----------------------------------------------------------

    def load_items(self, items: Iterable[dict[str, Any]]) -> None:
        """Replace the whole list (used on load and reset)."""
        self._items = [copy.deepcopy(dict(item)) for item in items]

    def add(self, record: dict[str, Any]) -> dict[str, Any]:
        """Append a record that already carries a unique id.

        Raises:
            ValueError: If the id is missing or already present
        """
        record_id = record.get("id")
        if not record_id:
            raise ValueError(f"{self.info.name} record has no id")
        if record_id in self:
            raise ValueError(f"Duplicate {self.info.name} id: {record_id}")
        stored = copy.deepcopy(dict(record))
        self._items.append(stored)
        return stored

    def replace(self, record: dict[str, Any]) -> dict[str, Any] | None:
        """Swap in a new version of an existing record, keeping its position.

        Returns:
            The previous version, or None if no record has that id
        """
        index = self._index(record.get("id", ""))
        if index is None:
            return None
        previous = self._items[index]
        self._items[index] = copy.deepcopy(dict(record))
        return previous

    def remove(self, record_id: str) -> dict[str, Any] | None:
        """Remove a record, returning it (or None if absent)."""
        index = self._index(record_id)
        if index is None:
            return None
        return self._items.pop(index)

    def reorder(self, ids_in_order: Sequence[str], strict: bool = False) -> list[str]:
        """Replace the stored order.

        Ids that match no record are ignored, and records left out of
        *ids_in_order* are dropped from the collection.

        Args:
            ids_in_order: Desired order of ids
            strict: Require exactly a permutation of the current ids

        Returns:
            Ids of records dropped because they were not listed

        Raises:
            ReorderError: If strict and ids_in_order is not exactly a
                permutation of the current ids
        """
        current = self.ids()
        if strict:
            missing = [i for i in current if i not in ids_in_order]
            unknown = [i for i in ids_in_order if i not in current]
            duplicated = len(set(ids_in_order)) != len(ids_in_order)
            if missing or unknown or duplicated:
                raise ReorderError(
                    f"Reorder of {self.info.key} must list every id exactly once "
                    f"(missing: {missing}, unknown: {unknown})",
                    missing=missing,
                    unknown=unknown,
                )

        by_id = {item["id"]: item for item in self._items}
        seen: set[str] = set()
        reordered = []
        for record_id in ids_in_order:
            if record_id in by_id and record_id not in seen:
                reordered.append(by_id[record_id])
                seen.add(record_id)
        dropped = [i for i in current if i not in seen]
        self._items = reordered
        return dropped


def _matches(value: Any, wanted: Any) -> bool:
    if isinstance(value, list):
        return wanted in value
    return bool(value == wanted)
