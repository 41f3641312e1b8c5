"""
Record types for the eight content collections.

Records are stored as plain dicts with snake_case keys. Entry classes wrap a
dict and expose typed read access; they never write back into the store.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class PublicationType(Enum):
    """Closed set of publication types."""

    JOURNAL_ARTICLE = "journal article"
    CONFERENCE_PROCEEDING = "conference proceeding"
    WORKSHOP_CONTRIBUTION = "workshop contribution"
    BOOK = "book"
    BOOK_CHAPTER = "book chapter"
    PREPRINT = "preprint"
    THESIS = "thesis"
    COMMENTARY = "commentary"


PROJECT_STATUSES = ["ongoing", "completed"]
JOB_TYPES = [
    "Postdoctoral Researcher",
    "Doctoral Researcher",
    "Student Research Assistant",
    "Intern",
    "Other",
    "full-time",
    "part-time",
    "internship",
    "phd",
    "postdoc",
]
TEAM_IMAGE_POSITIONS = ["center", "top", "bottom", "left", "right"]


@dataclass
class Entry:
    """Base wrapper around one record dict."""

    data: dict[str, Any] = field(default_factory=dict)

    @property
    def id(self) -> str:
        return str(self.data.get("id", ""))

    @property
    def label(self) -> str:
        """Human-facing name (title or name field)."""
        return str(self.data.get("title") or self.data.get("name") or self.id)

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def to_dict(self) -> dict[str, Any]:
        return dict(self.data)

    def _list(self, key: str) -> list:
        return list(self.data.get(key) or [])


@dataclass
class ProjectEntry(Entry):
    @property
    def title(self) -> str:
        return str(self.data.get("title", ""))

    @property
    def description(self) -> str:
        return str(self.data.get("description", ""))

    @property
    def categories(self) -> list[str]:
        """Category labels; a single string is returned as a one-item list."""
        category = self.data.get("category")
        if not category:
            return []
        if isinstance(category, str):
            return [category]
        return list(category)

    @property
    def team(self) -> list[str]:
        return self._list("team")

    @property
    def topics(self) -> list[str]:
        return self._list("topics")

    @property
    def topics_with_colors(self) -> list[dict[str, Any]]:
        return self._list("topics_with_colors")

    @property
    def publications(self) -> list[str]:
        return self._list("publications")

    @property
    def color(self) -> str | None:
        return self.data.get("color")

    @property
    def status(self) -> str | None:
        return self.data.get("status")

    @property
    def image(self) -> str | None:
        return self.data.get("image")

    @property
    def emoji_hexcodes(self) -> list[str]:
        return self._list("emoji_hexcodes")

    @property
    def start_date(self) -> str | None:
        return self.data.get("start_date")

    @property
    def end_date(self) -> str | None:
        return self.data.get("end_date")

    @property
    def last_updated(self) -> int | None:
        return self.data.get("last_updated")

    def topic_color(self, topic: str) -> str | None:
        """Color snapshot for one of this project's topics."""
        for snapshot in self.topics_with_colors:
            if snapshot.get("name") == topic:
                return snapshot.get("color")
        return None


@dataclass
class PersonEntry(Entry):
    @property
    def name(self) -> str:
        return str(self.data.get("name", ""))

    @property
    def last_name(self) -> str:
        parts = self.name.split()
        return parts[-1] if parts else ""

    @property
    def role(self) -> str:
        return str(self.data.get("role", ""))

    @property
    def bio(self) -> str:
        return str(self.data.get("bio", ""))

    @property
    def color(self) -> str | None:
        return self.data.get("color")

    @property
    def projects(self) -> list[str]:
        return self._list("projects")

    @property
    def publications(self) -> list[str]:
        return self._list("publications")

    @property
    def email(self) -> str | None:
        return self.data.get("email")

    @property
    def github(self) -> str | None:
        return self.data.get("github")

    @property
    def cv_url(self) -> str | None:
        return self.data.get("cv_url")

    @property
    def image_url(self) -> str | None:
        return self.data.get("image_url")


@dataclass
class PublicationEntry(Entry):
    @property
    def title(self) -> str:
        return str(self.data.get("title", ""))

    @property
    def authors(self) -> list[str]:
        return self._list("authors")

    @property
    def journal(self) -> str | None:
        return self.data.get("journal")

    @property
    def year(self) -> int | None:
        return self.data.get("year")

    @property
    def type(self) -> PublicationType | None:
        try:
            return PublicationType(self.data.get("type"))
        except ValueError:
            return None

    @property
    def citation(self) -> str:
        return str(self.data.get("citation", ""))

    @property
    def doi(self) -> str | None:
        return self.data.get("doi")

    @property
    def keywords(self) -> list[str]:
        return self._list("keywords")

    @property
    def project_ids(self) -> list[str]:
        """All linked projects, including a legacy single ``project_id``."""
        ids = self._list("project_ids")
        legacy = self.data.get("project_id")
        if legacy and legacy not in ids:
            ids.insert(0, legacy)
        return ids

    @property
    def software_ids(self) -> list[str]:
        return self._list("software_ids")

    def has_author(self, last_name: str) -> bool:
        """Whether any author string mentions *last_name* (case-insensitive)."""
        needle = last_name.lower()
        return bool(needle) and any(needle in author.lower() for author in self.authors)


@dataclass
class SoftwareEntry(Entry):
    @property
    def name(self) -> str:
        return str(self.data.get("name", ""))

    @property
    def description(self) -> str:
        return str(self.data.get("description", ""))

    @property
    def repo_url(self) -> str | None:
        return self.data.get("repo_url")

    @property
    def technologies(self) -> list[str]:
        return self._list("technologies")

    @property
    def developers(self) -> list[str]:
        return self._list("developers")

    @property
    def license(self) -> str | None:
        return self.data.get("license")

    @property
    def project_ids(self) -> list[str]:
        return self._list("project_ids")

    @property
    def publication_ids(self) -> list[str]:
        return self._list("publication_ids")

    @property
    def featured(self) -> bool:
        return bool(self.data.get("featured", False))


@dataclass
class JobEntry(Entry):
    @property
    def title(self) -> str:
        return str(self.data.get("title", ""))

    @property
    def type(self) -> str | None:
        return self.data.get("type")

    @property
    def requirements(self) -> list[str]:
        return self._list("requirements")

    @property
    def location(self) -> str | None:
        return self.data.get("location")

    @property
    def project_id(self) -> str | None:
        return self.data.get("project_id")

    @property
    def is_open(self) -> bool:
        return bool(self.data.get("is_open", False))


@dataclass
class CollaboratorEntry(Entry):
    @property
    def name(self) -> str:
        return str(self.data.get("name", ""))

    @property
    def url(self) -> str | None:
        return self.data.get("url")

    @property
    def logo(self) -> str | None:
        return self.data.get("logo")


@dataclass
class FundingEntry(Entry):
    @property
    def name(self) -> str:
        return str(self.data.get("name", ""))

    @property
    def url(self) -> str | None:
        return self.data.get("url")

    @property
    def grant_number(self) -> str | None:
        return self.data.get("grant_number")

    @property
    def amount(self) -> str | None:
        return self.data.get("amount")

    @property
    def duration(self) -> str | None:
        return self.data.get("duration")


@dataclass
class NewsEntry(Entry):
    @property
    def title(self) -> str:
        return str(self.data.get("title", ""))

    @property
    def content(self) -> str:
        return str(self.data.get("content", ""))

    @property
    def date(self) -> str | None:
        return self.data.get("date")

    @property
    def author(self) -> str | None:
        return self.data.get("author")

    @property
    def tags(self) -> list[str]:
        return self._list("tags")

    @property
    def featured(self) -> bool:
        return bool(self.data.get("featured", False))


@dataclass(frozen=True)
class KindInfo:
    """Static description of one collection kind."""

    name: str  # singular, used in event names ("project")
    key: str  # storage key and CLI name ("projects")
    id_prefix: str
    entry_cls: type[Entry]
    label_field: str
    text_fields: tuple[str, ...]


KINDS: dict[str, KindInfo] = {
    info.key: info
    for info in (
        KindInfo("project", "projects", "project", ProjectEntry, "title", ("title", "description")),
        KindInfo("person", "people", "member", PersonEntry, "name", ("name", "role", "bio")),
        KindInfo("publication", "publications", "pub", PublicationEntry, "title", ("title", "journal", "abstract", "citation")),
        KindInfo("software", "software", "software", SoftwareEntry, "name", ("name", "description")),
        KindInfo("job", "jobs", "job", JobEntry, "title", ("title", "description")),
        KindInfo("collaborator", "collaborators", "collab", CollaboratorEntry, "name", ("name",)),
        KindInfo("funding", "funding", "funding", FundingEntry, "name", ("name", "grant_number")),
        KindInfo("news", "news", "news", NewsEntry, "title", ("title", "content")),
    )
}


def kind_info(key_or_name: str) -> KindInfo:
    """Look up a kind by storage key ("people") or singular name ("person").

    Raises:
        KeyError: If no such kind exists
    """
    if key_or_name in KINDS:
        return KINDS[key_or_name]
    for info in KINDS.values():
        if info.name == key_or_name:
            return info
    raise KeyError(f"Unknown collection: {key_or_name!r}")
