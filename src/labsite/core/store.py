"""
The content store.

ContentStore owns every collection, the topic color registry, the featured
selection and the team image settings. All writes go through it: each
mutation updates memory, lets the LinkEngine adjust dependent collections,
persists every touched key, then announces a ChangeEvent.

Persistence failures never roll back memory. The mutation completes, the
event still fires, and PersistenceError is raised at the end naming the keys
that could not be written.
"""

from __future__ import annotations

import copy
import logging
import random
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from labsite.core.collection import Collection, IdGenerator, now_ms
from labsite.core.colors import (
    DEFAULT_DIRECTION,
    LAB_COLOR,
    compose_gradient,
    project_colors,
)
from labsite.core.config import StoreSettings, get_paths, load_site_config
from labsite.core.events import ChangeNotifier
from labsite.core.links import Divergence, LinkEngine, RepairReport
from labsite.core.migrations import derive_person_publications, migrate_collection
from labsite.core.records import (
    KINDS,
    Entry,
    KindInfo,
    NewsEntry,
    PersonEntry,
    ProjectEntry,
    PublicationEntry,
    kind_info,
)
from labsite.core.storage import (
    COLLECTION_KEYS,
    KNOWN_KEYS,
    JsonFileStore,
    KeyValueStore,
    MemoryStore,
    PersistenceAdapter,
    PersistenceError,
)
from labsite.core.topics import TopicColor, TopicColorRegistry
from labsite.seed import load_seed, load_site_defaults

logger = logging.getLogger(__name__)


class DuplicateNameError(ValueError):
    """Another person already uses this name."""


# slot -> (FeaturedSelection attribute, collection key)
FEATURED_SLOTS = {
    "project": ("project_id", "projects"),
    "news": ("news_id", "news"),
    "publication": ("publication_id", "publications"),
}


@dataclass
class FeaturedSelection:
    """At most one featured id per slot. Ids may point at deleted records."""

    project_id: str | None = None
    news_id: str | None = None
    publication_id: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        return {
            "project_id": self.project_id,
            "news_id": self.news_id,
            "publication_id": self.publication_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FeaturedSelection:
        def _id(name: str) -> str | None:
            value = data.get(name)
            return str(value) if value else None

        return cls(project_id=_id("project_id"), news_id=_id("news_id"), publication_id=_id("publication_id"))


@dataclass
class LoadReport:
    """What ContentStore.load() had to do."""

    seeded: list[str] = field(default_factory=list)
    migrated: list[str] = field(default_factory=list)
    repaired_links: int = 0
    failed: list[str] = field(default_factory=list)


def _dedupe(values: Iterable[Any]) -> list:
    return list(dict.fromkeys(v for v in values if v not in (None, "")))


class CollectionStore:
    """Read/write surface for one collection of a ContentStore."""

    def __init__(self, store: ContentStore, info: KindInfo):
        self._store = store
        self.info = info

    @property
    def _collection(self) -> Collection:
        return self._store.collection(self.info.key)

    def __len__(self) -> int:
        return len(self._collection)

    def __iter__(self) -> Iterator[Entry]:
        return iter(self._collection.list())

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._collection

    def ids(self) -> list[str]:
        return self._collection.ids()

    def list(self) -> list[Entry]:
        """Records in display order."""
        return self._collection.list()

    def get(self, record_id: str) -> Entry | None:
        """Record by id, or None if there is none."""
        return self._collection.get(record_id)

    def search(self, query: str | None = None, **filters: Any) -> list[Entry]:
        return self._collection.search(query, **filters)

    def add(self, record: dict[str, Any]) -> Entry:
        """Append a record, generating an id if it has none."""
        return self._store.add(self.info.key, record)

    def update(self, record: dict[str, Any]) -> Entry | None:
        """Replace the record with the same id. Returns None for unknown ids."""
        return self._store.update(self.info.key, record)

    def delete(self, record_id: str) -> bool:
        """Remove a record and cascade. Returns False if it did not exist."""
        return self._store.delete(self.info.key, record_id)

    def reorder(self, ids_in_order: Sequence[str], strict: bool = False) -> list[str]:
        """Set display order. See Collection.reorder for the rules."""
        return self._store.reorder(self.info.key, ids_in_order, strict=strict)


class ContentStore:
    """In-memory relational content store with durable persistence."""

    def __init__(
        self,
        backend: KeyValueStore | None = None,
        settings: StoreSettings | None = None,
        notifier: ChangeNotifier | None = None,
        clock: Callable[[], int] = now_ms,
        seed: Callable[[str], list[dict[str, Any]]] = load_seed,
        site_defaults: dict[str, Any] | None = None,
        rng: random.Random | None = None,
    ):
        self.persistence = PersistenceAdapter(backend if backend is not None else MemoryStore())
        self.settings = settings or StoreSettings()
        self.notifier = notifier or ChangeNotifier()
        self.id_generator = IdGenerator(clock)
        self._seed = seed
        self._site_defaults = site_defaults if site_defaults is not None else load_site_defaults()
        self._rng = rng or random.Random()

        self._collections: dict[str, Collection] = {key: Collection(info) for key, info in KINDS.items()}
        self.links = LinkEngine(self._collections)
        self.topics = TopicColorRegistry()
        self.featured = FeaturedSelection()
        self.team_image = self._site_defaults["team_image"]
        self.team_image_position = self._site_defaults["team_image_position"]

        self.projects = CollectionStore(self, KINDS["projects"])
        self.people = CollectionStore(self, KINDS["people"])
        self.publications = CollectionStore(self, KINDS["publications"])
        self.software = CollectionStore(self, KINDS["software"])
        self.jobs = CollectionStore(self, KINDS["jobs"])
        self.collaborators = CollectionStore(self, KINDS["collaborators"])
        self.funding = CollectionStore(self, KINDS["funding"])
        self.news = CollectionStore(self, KINDS["news"])

    @classmethod
    def open(cls, site_root: Path | None = None, notifier: ChangeNotifier | None = None) -> ContentStore:
        """Open and load the file-backed store of a site.

        Args:
            site_root: Site root (auto-detected if not provided)
            notifier: Notifier to attach before loading
        """
        paths = get_paths(site_root)
        settings = StoreSettings.from_config(load_site_config(paths.root))
        backend = JsonFileStore(
            paths.store_dir,
            snapshot_dir=paths.backups if settings.backups_enabled else None,
            keep_count=settings.keep_count,
            keep_days=settings.keep_days,
        )
        store = cls(backend, settings=settings, notifier=notifier)
        store.load()
        return store

    # -- access -----------------------------------------------------------

    def collection(self, key: str) -> Collection:
        return self._collections[kind_info(key).key]

    def facade(self, key: str) -> CollectionStore:
        """CollectionStore for a storage key or singular kind name."""
        facade: CollectionStore = getattr(self, kind_info(key).key)
        return facade

    def stats(self) -> dict[str, int]:
        counts = {key: len(collection) for key, collection in self._collections.items()}
        counts["topics"] = len(self.topics)
        return counts

    # -- loading ----------------------------------------------------------

    def load(self) -> LoadReport:
        """Load every key from storage, seeding whatever is missing.

        Stored collections go through the load-time migrations. After all
        keys are in memory, topics are registered and links are repaired so
        the store starts consistent. Anything that had to change is saved.
        """
        report = LoadReport()
        dirty: set[str] = set()
        people_from_storage = False

        for key in COLLECTION_KEYS:
            stored = self.persistence.load(key)
            result = migrate_collection(key, stored) if stored is not None else None
            if result is None:
                if stored is not None:
                    logger.warning("Stored %s is not a list, using seed data", key)
                self._collections[key].load_items(self._seed(key))
                report.seeded.append(key)
                dirty.add(key)
                continue
            self._collections[key].load_items(result.items)
            if key == "people":
                people_from_storage = True
            if result.changed:
                report.migrated.append(key)
                dirty.add(key)

        if people_from_storage and derive_person_publications(
            self._collections["people"].raw_items(),
            self._collections["publications"].raw_items(),
        ):
            report.migrated.append("people")
            dirty.add("people")

        stored_topics = self.persistence.load("topic_colors")
        if isinstance(stored_topics, dict):
            self.topics = TopicColorRegistry.from_dict(stored_topics)
        else:
            self.topics = TopicColorRegistry.from_projects(self._seed("projects"))
            report.seeded.append("topic_colors")
            dirty.add("topic_colors")

        stored_featured = self.persistence.load("featured")
        if isinstance(stored_featured, dict):
            self.featured = FeaturedSelection.from_dict(stored_featured)
        else:
            self.featured = self._default_featured()
            report.seeded.append("featured")
            dirty.add("featured")

        for key in ("team_image", "team_image_position"):
            stored_value = self.persistence.load(key)
            if isinstance(stored_value, str) and stored_value:
                setattr(self, key, stored_value)
            else:
                setattr(self, key, self._site_defaults[key])
                report.seeded.append(key)
                dirty.add(key)

        dirty |= self._sync_project_topics()

        repair = self.links.repair()
        report.repaired_links = len(repair)
        dirty |= repair.touched
        dirty |= self.links.rebuild_all()

        report.failed = self._persist_keys(dirty)
        logger.debug("Loaded store: seeded=%s migrated=%s", report.seeded, report.migrated)
        return report

    def _default_featured(self) -> FeaturedSelection:
        def _first(key: str) -> str | None:
            ids = self._collections[key].ids()
            return ids[0] if ids else None

        return FeaturedSelection(
            project_id=_first("projects"),
            news_id=_first("news"),
            publication_id=_first("publications"),
        )

    def reset_all(self) -> None:
        """Wipe storage and reload everything from the built-in seed data.

        Destructive; callers are responsible for asking first.
        """
        self.persistence.reset_all()
        for key in COLLECTION_KEYS:
            self._collections[key].load_items(self._seed(key))
        self.topics = TopicColorRegistry.from_projects(self._seed("projects"))
        self.featured = self._default_featured()
        self.team_image = self._site_defaults["team_image"]
        self.team_image_position = self._site_defaults["team_image_position"]
        self._sync_project_topics()
        self.links.rebuild_all()
        keys = set(COLLECTION_KEYS) | {"topic_colors", "featured", "team_image", "team_image_position"}
        self._commit(keys, [("store", None, "reset", {})])

    def reset_key(self, key: str) -> None:
        """Restore a single store key to its built-in default.

        A collection is replaced by its seed records. Records that disappear
        cascade like deletes, derived links are rebuilt from their owners, and
        ids in the seeded records that point at missing records are dropped.

        Raises:
            KeyError: If *key* is not a store key
            PersistenceError: If saving failed (memory is still reset)
        """
        if key not in KNOWN_KEYS:
            raise KeyError(f"Unknown store key: {key}")

        touched = {key}
        if key in self._collections:
            touched |= self._reset_collection(key)
        elif key == "topic_colors":
            self.topics = TopicColorRegistry.from_projects(self._seed("projects"))
            touched |= self._sync_project_topics()
        elif key == "featured":
            self.featured = self._default_featured()
        else:
            setattr(self, key, self._site_defaults[key])
        logger.info("Reset %s to defaults", key)
        self._commit(touched, [("store", None, "reset", {"key": key})])

    def _reset_collection(self, key: str) -> set[str]:
        collection = self._collections[key]
        previous = {item["id"]: copy.deepcopy(item) for item in collection.raw_items()}
        collection.load_items(self._seed(key))

        touched: set[str] = set()
        removed = [record_id for record_id in previous if record_id not in collection]
        for record_id in removed:
            touched |= self.links.apply_change(key, previous[record_id], None)
        if self._clear_featured(key, removed):
            touched.add("featured")
        if key == "projects":
            touched |= self._sync_project_topics()

        touched |= self.links.rebuild_all()
        for divergence in self.links.find_divergences():
            if divergence.problem == "dangling" and divergence.record_kind == key:
                self.links.prune(divergence)
        return touched | self.links.rebuild_all()

    def import_data(self, data: Mapping[str, Any]) -> LoadReport:
        """Replace everything stored with an export() document and reload.

        Keys missing from *data* are reseeded. The imported values go through
        the same migrations, topic registration and link repair as a normal
        load. Destructive; callers are responsible for asking first.

        Raises:
            ValueError: If *data* is not a mapping of store keys
            PersistenceError: If a write failed
        """
        written = self.persistence.import_all(data)
        report = self.load()
        self.notifier.announce("store", None, "imported", keys=written, seeded=report.seeded)
        if report.failed:
            raise PersistenceError(f"Could not save {', '.join(report.failed)} after import", report.failed)
        return report

    # -- persistence ------------------------------------------------------

    def _serialize(self, key: str) -> Any:
        if key in self._collections:
            return self._collections[key].dump()
        if key == "topic_colors":
            return self.topics.to_dict()
        if key == "featured":
            return self.featured.to_dict()
        if key in ("team_image", "team_image_position"):
            return getattr(self, key)
        raise KeyError(f"Unknown store key: {key}")

    def _persist_keys(self, keys: Iterable[str]) -> list[str]:
        failed = []
        for key in sorted(keys):
            try:
                self.persistence.save(key, self._serialize(key))
            except PersistenceError as e:
                logger.error("%s", e)
                failed.append(key)
        return failed

    def _commit(self, keys: Iterable[str], events: list[tuple[str, str | None, str, dict[str, Any]]]) -> None:
        """Persist *keys*, announce *events*, then report any failed writes."""
        keys = set(keys)
        failed = self._persist_keys(keys)
        for kind, entity_id, action, metadata in events:
            self.notifier.announce(kind, entity_id, action, touched=sorted(keys), **metadata)
        if failed:
            raise PersistenceError(f"Could not save {', '.join(failed)}; changes are kept in memory only", failed)

    # -- record preparation -----------------------------------------------

    def _prepare(self, key: str, record: dict[str, Any], previous: dict[str, Any] | None) -> set[str]:
        """Fill derived fields of a record about to be stored.

        Returns:
            Extra store keys the preparation changed (e.g. topic_colors)
        """
        if key == "projects":
            return self._prepare_project(record)
        if key == "people":
            self._prepare_person(record, previous)
        elif key in ("publications", "software"):
            legacy = record.pop("project_id", None)
            ids = _dedupe(record.get("project_ids") or [])
            if legacy and legacy not in ids:
                ids.insert(0, legacy)
            if ids or "project_ids" in record:
                record["project_ids"] = ids
            for name in ("software_ids", "publication_ids"):
                if name in record:
                    record[name] = _dedupe(record[name] or [])
        return set()

    def _prepare_project(self, record: dict[str, Any]) -> set[str]:
        known = set(self.topics.names())
        record["team"] = _dedupe(record.get("team") or [])
        record["topics"] = _dedupe(record.get("topics") or [])
        record["publications"] = _dedupe(record.get("publications") or [])
        resolved = self.topics.ensure(record["topics"], self.settings.topic_hue_strategy, self._rng)
        record["topics_with_colors"] = [t.to_dict() for t in resolved]
        if self.settings.project_color_mode == "topics":
            record["color"] = compose_gradient([t.color for t in resolved])
        else:
            record["color"] = LAB_COLOR
        record["last_updated"] = self.id_generator.next_millis()
        return {"topic_colors"} if set(self.topics.names()) != known else set()

    def _prepare_person(self, record: dict[str, Any], previous: dict[str, Any] | None) -> None:
        name = str(record.get("name") or "").strip()
        record["name"] = name
        if name:
            for other in self._collections["people"].raw_items():
                if other.get("id") != record.get("id") and other.get("name") == name:
                    raise DuplicateNameError(f"A person named {name!r} already exists ({other.get('id')})")
        if not record.get("color"):
            record["color"] = (previous or {}).get("color") or LAB_COLOR
        record["projects"] = _dedupe(record.get("projects") or [])
        record["publications"] = _dedupe(record.get("publications") or [])

    # -- mutations --------------------------------------------------------

    def add(self, key: str, record: dict[str, Any]) -> Entry:
        """Add a record to a collection.

        Raises:
            ValueError: If the record carries an id that is already in use
            DuplicateNameError: For a person whose name is taken
            PersistenceError: If saving failed (the record is still added)
        """
        info = kind_info(key)
        collection = self._collections[info.key]
        record = copy.deepcopy(dict(record))
        if not record.get("id"):
            record["id"] = self.id_generator.new_id(info.id_prefix, collection)
        elif record["id"] in collection:
            raise ValueError(f"Duplicate {info.name} id: {record['id']}")

        extra = self._prepare(info.key, record, None)
        stored = collection.add(record)
        touched = self.links.apply_change(info.key, None, stored)
        logger.debug("Added %s %s", info.name, stored["id"])
        entry = info.entry_cls(copy.deepcopy(stored))
        self._commit({info.key} | touched | extra, [(info.name, stored["id"], "added", {})])
        return entry

    def update(self, key: str, record: dict[str, Any]) -> Entry | None:
        """Replace a record by id. Unknown ids leave the store untouched.

        Raises:
            DuplicateNameError: For a person renamed to a taken name
            PersistenceError: If saving failed (the update is still applied)
        """
        info = kind_info(key)
        collection = self._collections[info.key]
        record_id = record.get("id")
        current = collection.get_raw(record_id) if record_id else None
        if current is None:
            logger.debug("Ignoring update of unknown %s %r", info.name, record_id)
            return None

        previous = copy.deepcopy(current)
        record = copy.deepcopy(dict(record))
        extra = self._prepare(info.key, record, previous)
        collection.replace(record)
        touched = self.links.apply_change(info.key, previous, collection.get_raw(record_id))
        metadata: dict[str, Any] = {}
        if info.key == "people" and previous.get("name") != record.get("name"):
            metadata["renamed_from"] = previous.get("name")
        self._commit({info.key} | touched | extra, [(info.name, record_id, "updated", metadata)])
        return collection.get(record_id)

    def delete(self, key: str, record_id: str) -> bool:
        """Delete a record and cascade links and featured slots.

        Raises:
            PersistenceError: If saving failed (the record is still removed)
        """
        info = kind_info(key)
        removed = self._collections[info.key].remove(record_id)
        if removed is None:
            return False
        touched = self.links.apply_change(info.key, removed, None)
        if self._clear_featured(info.key, [record_id]):
            touched.add("featured")
        logger.debug("Deleted %s %s", info.name, record_id)
        self._commit({info.key} | touched, [(info.name, record_id, "deleted", {})])
        return True

    def reorder(self, key: str, ids_in_order: Sequence[str], strict: bool = False) -> list[str]:
        """Set the display order of a collection.

        Unknown ids are ignored. Records missing from *ids_in_order* are
        deleted, with the usual cascades.

        Returns:
            Ids dropped from the collection

        Raises:
            ReorderError: If strict and the ids are not a permutation
        """
        info = kind_info(key)
        collection = self._collections[info.key]
        before = {item["id"]: copy.deepcopy(item) for item in collection.raw_items()}
        dropped = collection.reorder(ids_in_order, strict=strict)

        touched: set[str] = set()
        for record_id in dropped:
            touched |= self.links.apply_change(info.key, before[record_id], None)
        if self._clear_featured(info.key, dropped):
            touched.add("featured")
        if dropped:
            logger.warning("Partial reorder of %s dropped %s", info.key, dropped)
        self._commit({info.key} | touched, [(info.name, None, "reordered", {"dropped": dropped})])
        return dropped

    def repair_links(self) -> RepairReport:
        """Add links missing on one side of any relation and save."""
        report = self.links.repair()
        if report:
            self._commit(report.touched, [("store", None, "repaired", {"added": len(report)})])
        return report

    def prune_reference(self, divergence: Divergence) -> bool:
        """Remove one dangling id reported by LinkEngine.find_divergences()."""
        if not self.links.prune(divergence):
            return False
        touched = {divergence.record_kind} | self.links.rebuild_all()
        info = kind_info(divergence.record_kind)
        self._commit(touched, [(info.name, divergence.record_id, "updated", {"pruned": divergence.field})])
        return True

    # -- featured selection and team image ----------------------------------

    def _clear_featured(self, key: str, record_ids: Iterable[str]) -> bool:
        cleared = False
        record_ids = set(record_ids)
        for attr, slot_key in FEATURED_SLOTS.values():
            if slot_key == key and getattr(self.featured, attr) in record_ids:
                setattr(self.featured, attr, None)
                cleared = True
        return cleared

    def get_featured_items(self) -> FeaturedSelection:
        return copy.copy(self.featured)

    def set_featured(self, slot: str, record_id: str | None) -> None:
        """Feature a record in a slot ("project", "news" or "publication").

        The id is not checked; a missing record reads back as nothing featured.
        """
        if slot not in FEATURED_SLOTS:
            raise ValueError(f"Unknown featured slot: {slot!r}. Options: {', '.join(FEATURED_SLOTS)}")
        attr, _ = FEATURED_SLOTS[slot]
        setattr(self.featured, attr, record_id or None)
        self._commit({"featured"}, [("featured", record_id, "updated", {"slot": slot})])

    def set_featured_project(self, project_id: str | None) -> None:
        self.set_featured("project", project_id)

    def set_featured_news(self, news_id: str | None) -> None:
        self.set_featured("news", news_id)

    def set_featured_publication(self, publication_id: str | None) -> None:
        self.set_featured("publication", publication_id)

    def featured_record(self, slot: str) -> Entry | None:
        """Resolve a featured slot, or None if empty or pointing nowhere."""
        attr, key = FEATURED_SLOTS[slot]
        record_id = getattr(self.featured, attr)
        return self._collections[key].get(record_id) if record_id else None

    def featured_project(self) -> ProjectEntry | None:
        entry = self.featured_record("project")
        return entry if isinstance(entry, ProjectEntry) else None

    def featured_news(self) -> NewsEntry | None:
        entry = self.featured_record("news")
        return entry if isinstance(entry, NewsEntry) else None

    def featured_publication(self) -> PublicationEntry | None:
        entry = self.featured_record("publication")
        return entry if isinstance(entry, PublicationEntry) else None

    def get_team_image(self) -> str:
        return str(self.team_image)

    def get_team_image_position(self) -> str:
        return str(self.team_image_position)

    def update_team_image(self, url: str) -> None:
        self.team_image = url
        self._commit({"team_image"}, [("team-image", None, "updated", {"url": url})])

    def update_team_image_position(self, position: str) -> None:
        self.team_image_position = position
        self._commit({"team_image_position"}, [("team-image", None, "updated", {"position": position})])

    # -- topics -----------------------------------------------------------

    def _sync_project_topics(self, names: Iterable[str] | None = None) -> set[str]:
        """Register unknown project topics and refresh color snapshots.

        Args:
            names: Only refresh projects using one of these topics

        Returns:
            Store keys that changed
        """
        wanted = set(names) if names is not None else None
        known = set(self.topics.names())
        changed = False
        for project in self._collections["projects"].raw_items():
            topics = list(project.get("topics") or [])
            if wanted is not None and not wanted.intersection(topics):
                continue
            resolved = self.topics.ensure(topics, self.settings.topic_hue_strategy, self._rng)
            snapshot = [t.to_dict() for t in resolved]
            if project.get("topics_with_colors") != snapshot and (topics or project.get("topics_with_colors")):
                project["topics_with_colors"] = snapshot
                changed = True
            if self.settings.project_color_mode == "topics":
                gradient = compose_gradient([t.color for t in resolved])
                if project.get("color") != gradient:
                    project["color"] = gradient
                    changed = True

        keys = {"projects"} if changed else set()
        if set(self.topics.names()) != known:
            keys.add("topic_colors")
        return keys

    def sync_topics(self) -> set[str]:
        """Register every project topic and refresh all snapshots, then save.

        Returns:
            Store keys that changed
        """
        keys = self._sync_project_topics()
        if keys:
            self._commit(keys, [("topic", None, "synced", {})])
        return keys

    def get_topic_color(self, name: str) -> TopicColor | None:
        return self.topics.get(name)

    def register_topic_color(self, name: str, color: str | None = None, hue: int | None = None) -> TopicColor:
        """Register a topic from a color or a hue (overwrites, last writer wins).

        Projects using the topic get their color snapshots refreshed.
        """
        if (color is None) == (hue is None):
            raise ValueError("Give exactly one of color or hue")
        action = "updated" if name in self.topics else "added"
        entry = self.topics.register(name, color) if color is not None else self.topics.register_hue(name, int(hue or 0))
        keys = {"topic_colors"} | self._sync_project_topics([name])
        self._commit(keys, [("topic", name, action, {"color": entry.color, "hue": entry.hue})])
        return entry

    def update_topic_color(self, name: str, color: str | None = None, hue: int | None = None) -> TopicColor | None:
        """Change an existing topic's color. Returns None for unknown topics."""
        if name not in self.topics:
            return None
        return self.register_topic_color(name, color=color, hue=hue)

    def remove_topic_color(self, name: str) -> bool:
        """Delete a topic from the registry.

        Nothing stops removal of a topic that projects still use; check
        topic_in_use() first.
        """
        if not self.topics.remove(name):
            return False
        self._commit({"topic_colors"}, [("topic", name, "deleted", {})])
        return True

    def topic_in_use(self, name: str) -> list[str]:
        """Ids of projects listing *name* as a topic."""
        return [p["id"] for p in self._collections["projects"].raw_items() if name in (p.get("topics") or [])]

    def project_gradient(self, project: str | ProjectEntry, direction: str = DEFAULT_DIRECTION) -> str:
        """Compose the display gradient of a project from current topic colors."""
        entry = self.projects.get(project) if isinstance(project, str) else project
        if entry is None:
            return compose_gradient([], direction)
        colors = []
        for topic in entry.topics:
            registered = self.topics.get(topic)
            if registered is not None:
                colors.append(registered.color)
        if not colors:
            colors = project_colors(entry.data)
        return compose_gradient(colors, direction)

    # -- cross-collection readers -----------------------------------------

    def person_publications(self, person_id: str) -> list[PublicationEntry]:
        """Publications credited to a person through their explicit id list."""
        person = self._collections["people"].get_raw(person_id)
        if person is None:
            return []
        pubs = self._collections["publications"]
        found = []
        for pub_id in PersonEntry(person).publications:
            entry = pubs.get(pub_id)
            if isinstance(entry, PublicationEntry):
                found.append(entry)
        return found

    def project_team(self, project_id: str) -> list[PersonEntry]:
        """People on a project's team, in team order (unknown names skipped)."""
        project = self._collections["projects"].get_raw(project_id)
        if project is None:
            return []
        by_name = {p.get("name"): p for p in self._collections["people"].raw_items()}
        return [PersonEntry(copy.deepcopy(by_name[name])) for name in ProjectEntry(project).team if name in by_name]
