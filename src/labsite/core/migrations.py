"""
Cleanup passes run on stored data when it is loaded.

These only ever run on values read back from storage, never on seed data or
on records coming through the store's write operations.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from labsite.core.records import PersonEntry, PublicationEntry

logger = logging.getLogger(__name__)


@dataclass
class MigrationResult:
    """Cleaned records plus notes about what was changed."""

    items: list[dict[str, Any]]
    notes: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.notes)


def _dedupe_field(record: dict[str, Any], name: str) -> bool:
    values = record.get(name)
    if not isinstance(values, list):
        return False
    unique = list(dict.fromkeys(values))
    if len(unique) != len(values):
        record[name] = unique
        return True
    return False


def _fold_legacy_project_id(record: dict[str, Any]) -> bool:
    """Merge a single ``project_id`` into the ``project_ids`` list."""
    if "project_id" not in record:
        return False
    legacy = record.pop("project_id")
    ids = list(record.get("project_ids") or [])
    if legacy and legacy not in ids:
        ids.insert(0, legacy)
    record["project_ids"] = ids
    return True


def _clean_projects(record: dict[str, Any]) -> list[str]:
    notes = []
    for name in ("team", "topics", "publications"):
        if _dedupe_field(record, name):
            notes.append(f"deduplicated {name}")
    return notes


def _clean_people(record: dict[str, Any]) -> list[str]:
    notes = []
    for name in ("projects", "publications"):
        if _dedupe_field(record, name):
            notes.append(f"deduplicated {name}")
    return notes


def _clean_linked(record: dict[str, Any]) -> list[str]:
    notes = []
    if _fold_legacy_project_id(record):
        notes.append("folded project_id into project_ids")
    for name in ("project_ids", "software_ids", "publication_ids"):
        if _dedupe_field(record, name):
            notes.append(f"deduplicated {name}")
    return notes


RECORD_CLEANERS: dict[str, Callable[[dict[str, Any]], list[str]]] = {
    "projects": _clean_projects,
    "people": _clean_people,
    "publications": _clean_linked,
    "software": _clean_linked,
}


def migrate_collection(key: str, value: Any) -> MigrationResult | None:
    """Clean one stored collection.

    Drops entries that are not objects or have no id, keeps the first of any
    duplicate ids, and applies the per-kind record cleaner.

    Returns:
        MigrationResult, or None when *value* is not a list at all
    """
    if not isinstance(value, list):
        return None

    cleaner = RECORD_CLEANERS.get(key)
    result = MigrationResult(items=[])
    seen: set[str] = set()

    for position, raw in enumerate(value):
        if not isinstance(raw, dict) or not raw.get("id"):
            result.notes.append(f"dropped entry {position} without id")
            continue
        record_id = str(raw["id"])
        if record_id in seen:
            result.notes.append(f"dropped duplicate id {record_id}")
            continue
        seen.add(record_id)
        record = dict(raw)
        if record["id"] != record_id:
            record["id"] = record_id
            result.notes.append(f"{record_id}: id stored as text")
        if cleaner is not None:
            result.notes.extend(f"{record_id}: {note}" for note in cleaner(record))
        result.items.append(record)

    for note in result.notes:
        logger.info("Migrated %s: %s", key, note)
    return result


def derive_person_publications(
    people: list[dict[str, Any]],
    publications: list[dict[str, Any]],
) -> list[str]:
    """Fill in ``publications`` for people stored without that field.

    Matches each person's last name against publication author strings. This
    is a one-time aid for old data; once a person has an explicit list it is
    never recomputed.

    Returns:
        Ids of people that were updated
    """
    updated = []
    entries = [PublicationEntry(pub) for pub in publications]
    for person in people:
        if "publications" in person:
            continue
        last_name = PersonEntry(person).last_name
        person["publications"] = [pub.id for pub in entries if pub.has_author(last_name)]
        updated.append(str(person.get("id")))
        logger.info(
            "Derived %d publications for %s from author names",
            len(person["publications"]),
            person.get("name"),
        )
    return updated
