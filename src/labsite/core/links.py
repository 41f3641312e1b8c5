"""
Cross-collection link maintenance.

Each bidirectional relation has an owner side that is authoritative
(e.g. ``Project.team``) and a derived side that mirrors it
(``Person.projects``). After any mutation the derived side is recomputed
from the owner side by a full scan, so the two cannot drift apart. Edits
made on the derived side are first pushed into the owner records so they
survive the recompute.

One-way references (``Software.project_ids`` and friends) have no mirror;
they are only cleaned up when the record they point at is deleted.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from labsite.core.collection import Collection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Relation:
    """A bidirectional link between two collections.

    ``owner_field`` on each owner record lists target keys (the value of
    ``target_key`` on the target record). ``target_field`` on each target
    record lists owner ids.
    """

    name: str
    owner: str
    owner_field: str
    target: str
    target_field: str
    target_key: str = "id"


@dataclass(frozen=True)
class Reference:
    """A one-way pointer from ``holder.field`` to records of ``target``."""

    holder: str
    field: str
    target: str
    scalar: bool = False


RELATIONS: tuple[Relation, ...] = (
    Relation("team", "projects", "team", "people", "projects", target_key="name"),
    Relation("publication-projects", "publications", "project_ids", "projects", "publications"),
    Relation("publication-software", "publications", "software_ids", "software", "publication_ids"),
)

REFERENCES: tuple[Reference, ...] = (
    Reference("software", "project_ids", "projects"),
    Reference("people", "publications", "publications"),
    Reference("publications", "project_id", "projects", scalar=True),
    Reference("jobs", "project_id", "projects", scalar=True),
)


@dataclass
class LinkFix:
    """One link added by a repair."""

    relation: str
    record_kind: str
    record_id: str
    field: str
    value: str

    def to_dict(self) -> dict[str, str]:
        return {
            "relation": self.relation,
            "record_kind": self.record_kind,
            "record_id": self.record_id,
            "field": self.field,
            "value": self.value,
        }


@dataclass
class RepairReport:
    """Links added by LinkEngine.repair()."""

    added: list[LinkFix] = field(default_factory=list)

    @property
    def touched(self) -> set[str]:
        return {fix.record_kind for fix in self.added}

    def __bool__(self) -> bool:
        return bool(self.added)

    def __len__(self) -> int:
        return len(self.added)


@dataclass
class Divergence:
    """A link present on one side of a relation only, or pointing nowhere."""

    relation: str
    record_kind: str
    record_id: str
    field: str
    value: str
    problem: str  # "one-sided" or "dangling"


def _list(record: Mapping[str, Any], name: str) -> list:
    value = record.get(name)
    return list(value) if isinstance(value, list) else []


def _dedupe(values: Iterable[Any]) -> list:
    seen: set = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


class LinkEngine:
    """Applies relation rules over a set of collections keyed by storage key."""

    def __init__(
        self,
        collections: Mapping[str, Collection],
        relations: Iterable[Relation] = RELATIONS,
        references: Iterable[Reference] = REFERENCES,
    ):
        self.collections = collections
        self.relations = tuple(relations)
        self.references = tuple(references)

    def _items(self, key: str) -> list[dict[str, Any]]:
        return self.collections[key].raw_items()

    # -- mutation hooks ---------------------------------------------------

    def apply_change(
        self,
        key: str,
        old: Mapping[str, Any] | None,
        new: Mapping[str, Any] | None,
    ) -> set[str]:
        """Propagate one add (old=None), update, or delete (new=None).

        Args:
            key: Collection the changed record belongs to
            old: Previous version of the record
            new: New version, already stored in its collection

        Returns:
            Keys of the other collections whose records were modified
        """
        touched: set[str] = set()
        for relation in self.relations:
            if relation.target == key:
                touched |= self._push_to_owners(relation, old, new)

        if new is None and old is not None:
            touched |= self._drop_references(key, old)

        for relation in self.relations:
            if key in (relation.owner, relation.target) or relation.owner in touched:
                touched |= self.rebuild(relation)

        touched.discard(key)
        if touched:
            logger.debug("Change to %s touched %s", key, sorted(touched))
        return touched

    def _push_to_owners(
        self,
        relation: Relation,
        old: Mapping[str, Any] | None,
        new: Mapping[str, Any] | None,
    ) -> set[str]:
        """Carry derived-side edits of one target record into its owners."""
        owners = self._items(relation.owner)
        old_key = old.get(relation.target_key) if old else None
        new_key = new.get(relation.target_key) if new else None
        changed = False

        if old_key and new_key and old_key != new_key:
            # Rename of the join key: rewrite it wherever owners mention it
            for owner in owners:
                values = _list(owner, relation.owner_field)
                if old_key in values:
                    owner[relation.owner_field] = _dedupe(new_key if v == old_key else v for v in values)
                    changed = True

        if new is None:
            for owner in owners:
                values = _list(owner, relation.owner_field)
                if old_key in values:
                    owner[relation.owner_field] = [v for v in values if v != old_key]
                    changed = True
            return {relation.owner} if changed else set()

        if not new_key:
            return {relation.owner} if changed else set()

        before = set(_list(old, relation.target_field)) if old else set()
        after = _list(new, relation.target_field)
        added = [owner_id for owner_id in after if owner_id not in before]
        removed = before - set(after)

        for owner in owners:
            owner_id = owner.get("id")
            values = _list(owner, relation.owner_field)
            if owner_id in added and new_key not in values:
                owner[relation.owner_field] = values + [new_key]
                changed = True
            elif owner_id in removed and new_key in values:
                owner[relation.owner_field] = [v for v in values if v != new_key]
                changed = True

        return {relation.owner} if changed else set()

    def _drop_references(self, key: str, old: Mapping[str, Any]) -> set[str]:
        """Remove one-way pointers to a deleted record."""
        record_id = old.get("id")
        touched: set[str] = set()
        for reference in self.references:
            if reference.target != key or reference.holder not in self.collections:
                continue
            for holder in self._items(reference.holder):
                if reference.scalar:
                    if holder.get(reference.field) == record_id:
                        del holder[reference.field]
                        touched.add(reference.holder)
                else:
                    values = _list(holder, reference.field)
                    if record_id in values:
                        holder[reference.field] = [v for v in values if v != record_id]
                        touched.add(reference.holder)
        return touched

    def rebuild(self, relation: Relation) -> set[str]:
        """Recompute the derived side of *relation* from its owners.

        Ids a target already lists keep their position; newly linked owners
        are appended in owner order.

        Returns:
            ``{relation.target}`` if any target record changed, else empty
        """
        expected: dict[Any, list[str]] = {}
        for owner in self._items(relation.owner):
            owner_id = owner.get("id")
            for target_key in _list(owner, relation.owner_field):
                bucket = expected.setdefault(target_key, [])
                if owner_id not in bucket:
                    bucket.append(owner_id)

        changed = False
        for target in self._items(relation.target):
            wanted = expected.get(target.get(relation.target_key), [])
            wanted_set = set(wanted)
            current = _list(target, relation.target_field)
            kept = _dedupe(v for v in current if v in wanted_set)
            merged = kept + [v for v in wanted if v not in kept]
            if merged != current:
                target[relation.target_field] = merged
                changed = True

        return {relation.target} if changed else set()

    def rebuild_all(self) -> set[str]:
        touched: set[str] = set()
        for relation in self.relations:
            touched |= self.rebuild(relation)
        return touched

    # -- repair and inspection --------------------------------------------

    def repair(self) -> RepairReport:
        """Add every link that is present on one side of a relation only.

        Never removes anything, so running it twice changes nothing the
        second time. Links to records that do not exist are left alone.
        """
        report = RepairReport()
        for relation in self.relations:
            owners = self._items(relation.owner)
            targets = self._items(relation.target)
            owners_by_id = {o.get("id"): o for o in owners}
            targets_by_key = {t.get(relation.target_key): t for t in targets}

            for owner in owners:
                for target_key in _list(owner, relation.owner_field):
                    target = targets_by_key.get(target_key)
                    if target is None:
                        continue
                    links = _list(target, relation.target_field)
                    if owner.get("id") not in links:
                        target[relation.target_field] = links + [owner.get("id")]
                        report.added.append(
                            LinkFix(relation.name, relation.target, str(target.get("id")),
                                    relation.target_field, str(owner.get("id")))
                        )

            for target in targets:
                target_key = target.get(relation.target_key)
                for owner_id in _list(target, relation.target_field):
                    owner = owners_by_id.get(owner_id)
                    if owner is None:
                        continue
                    values = _list(owner, relation.owner_field)
                    if target_key not in values:
                        owner[relation.owner_field] = values + [target_key]
                        report.added.append(
                            LinkFix(relation.name, relation.owner, str(owner_id),
                                    relation.owner_field, str(target_key))
                        )

        if report:
            logger.info("Link repair added %d links", len(report))
        return report

    def find_divergences(self) -> list[Divergence]:
        """Report one-sided links and pointers to missing records.

        Free-text team names that match no person are not reported; a team
        may list people outside the lab.
        """
        found: list[Divergence] = []
        for relation in self.relations:
            owners = self._items(relation.owner)
            targets = self._items(relation.target)
            owners_by_id = {o.get("id"): o for o in owners}
            targets_by_key = {t.get(relation.target_key): t for t in targets}

            for owner in owners:
                for target_key in _list(owner, relation.owner_field):
                    target = targets_by_key.get(target_key)
                    if target is None:
                        if relation.target_key == "id":
                            found.append(Divergence(relation.name, relation.owner, str(owner.get("id")),
                                                    relation.owner_field, str(target_key), "dangling"))
                    elif owner.get("id") not in _list(target, relation.target_field):
                        found.append(Divergence(relation.name, relation.owner, str(owner.get("id")),
                                                relation.owner_field, str(target_key), "one-sided"))

            for target in targets:
                for owner_id in _list(target, relation.target_field):
                    owner = owners_by_id.get(owner_id)
                    if owner is None:
                        found.append(Divergence(relation.name, relation.target, str(target.get("id")),
                                                relation.target_field, str(owner_id), "dangling"))
                    elif target.get(relation.target_key) not in _list(owner, relation.owner_field):
                        found.append(Divergence(relation.name, relation.target, str(target.get("id")),
                                                relation.target_field, str(owner_id), "one-sided"))

        for reference in self.references:
            if reference.holder not in self.collections:
                continue
            valid = set(self.collections[reference.target].ids())
            for holder in self._items(reference.holder):
                values = [holder.get(reference.field)] if reference.scalar else _list(holder, reference.field)
                for value in values:
                    if value and value not in valid:
                        found.append(Divergence(f"{reference.holder}.{reference.field}", reference.holder,
                                                str(holder.get("id")), reference.field, str(value), "dangling"))
        return found

    def prune(self, divergence: Divergence) -> bool:
        """Remove one dangling value. Returns False if it was already gone."""
        holder = self.collections[divergence.record_kind].get_raw(divergence.record_id)
        if holder is None:
            return False
        current = holder.get(divergence.field)
        if isinstance(current, list):
            if divergence.value not in current:
                return False
            holder[divergence.field] = [v for v in current if v != divergence.value]
            return True
        if current == divergence.value:
            del holder[divergence.field]
            return True
        return False
