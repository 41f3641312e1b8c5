"""
Store integrity checker.

Validates cross-collection consistency: one-sided and dangling links,
topics missing from the color registry, stale topic color snapshots,
featured ids that point nowhere, duplicate person names and field values
that fail their schema.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from rich.console import Console

from labsite.core.field_ops import validate_record
from labsite.core.links import Divergence
from labsite.core.schemas import SCHEMAS
from labsite.core.store import FEATURED_SLOTS

if TYPE_CHECKING:
    from labsite.core.store import ContentStore

console = Console()


class IssueType(Enum):
    """Types of integrity issues."""

    ONE_SIDED_LINK = "one_sided_link"  # Link recorded on one side of a relation only
    DANGLING_REFERENCE = "dangling_reference"  # Id of a record that does not exist
    UNREGISTERED_TOPIC = "unregistered_topic"  # Project topic missing from the registry
    TOPIC_COLOR_DRIFT = "topic_color_drift"  # Project snapshot disagrees with the registry
    MISSING_FEATURED = "missing_featured"  # Featured slot names a deleted record
    DUPLICATE_NAME = "duplicate_name"  # Two people share a name
    INVALID_FIELD = "invalid_field"  # Field value fails its schema


class IssueSeverity(Enum):
    """Severity levels for integrity issues."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass
class IntegrityIssue:
    """A single integrity issue."""

    collection: str  # Storage key of the affected record ("featured" for slots)
    entry_id: str
    issue_type: IssueType
    message: str
    severity: IssueSeverity = IssueSeverity.ERROR
    fixable: bool = False
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        result: dict[str, Any] = {
            "collection": self.collection,
            "entry_id": self.entry_id,
            "issue_type": self.issue_type.value,
            "message": self.message,
            "severity": self.severity.value,
            "fixable": self.fixable,
        }
        if self.extra:
            result["extra"] = self.extra
        return result


@dataclass
class IntegrityResult:
    """Result of an integrity check."""

    issues: list[IntegrityIssue] = field(default_factory=list)
    checked: dict[str, int] = field(default_factory=dict)  # collection -> records checked

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "issues": [i.to_dict() for i in self.issues],
            "checked": self.checked,
            "by_collection": self._group_by_collection(),
            "by_severity": self._group_by_severity(),
            "fixable_count": len(self.fixable_issues()),
        }

    def _group_by_collection(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for issue in self.issues:
            counts[issue.collection] = counts.get(issue.collection, 0) + 1
        return counts

    def _group_by_severity(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for issue in self.issues:
            counts[issue.severity.value] = counts.get(issue.severity.value, 0) + 1
        return counts

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @property
    def has_errors(self) -> bool:
        return any(i.severity == IssueSeverity.ERROR for i in self.issues)

    @property
    def has_fixable(self) -> bool:
        return any(i.fixable for i in self.issues)

    def errors(self) -> list[IntegrityIssue]:
        """Get only error-level issues."""
        return [i for i in self.issues if i.severity == IssueSeverity.ERROR]

    def fixable_issues(self) -> list[IntegrityIssue]:
        """Get only fixable issues."""
        return [i for i in self.issues if i.fixable]


class IntegrityChecker:
    """Checks the consistency of one ContentStore."""

    def __init__(self, store: ContentStore):
        self.store = store

    def check_all(self) -> IntegrityResult:
        """Run all integrity checks.

        Returns:
            IntegrityResult with all issues found
        """
        result = IntegrityResult()
        for key, count in self.store.stats().items():
            if key in SCHEMAS:
                result.checked[key] = count

        self._check_links(result)
        self._check_topics(result)
        self._check_featured(result)
        self._check_names(result)
        self._check_fields(result)
        return result

    def check_collection(self, key: str) -> IntegrityResult:
        """Run all checks, keeping only issues on one collection."""
        result = self.check_all()
        result.issues = [i for i in result.issues if i.collection == key]
        result.checked = {k: v for k, v in result.checked.items() if k == key}
        return result

    def _check_links(self, result: IntegrityResult) -> None:
        for divergence in self.store.links.find_divergences():
            one_sided = divergence.problem == "one-sided"
            result.issues.append(
                IntegrityIssue(
                    collection=divergence.record_kind,
                    entry_id=divergence.record_id,
                    issue_type=IssueType.ONE_SIDED_LINK if one_sided else IssueType.DANGLING_REFERENCE,
                    message=(
                        f"{divergence.field} lists {divergence.value!r} but the other side does not link back"
                        if one_sided
                        else f"{divergence.field} references missing record {divergence.value!r}"
                    ),
                    severity=IssueSeverity.ERROR if one_sided else IssueSeverity.WARNING,
                    fixable=True,
                    extra={"relation": divergence.relation, "field": divergence.field, "value": divergence.value},
                )
            )

    def _check_topics(self, result: IntegrityResult) -> None:
        registry = self.store.topics
        for project in self.store.projects.list():
            snapshot = {s.get("name"): s for s in project.get("topics_with_colors") or []}
            for topic in project.get("topics") or []:
                registered = registry.get(topic)
                if registered is None:
                    result.issues.append(
                        IntegrityIssue(
                            collection="projects",
                            entry_id=project.id,
                            issue_type=IssueType.UNREGISTERED_TOPIC,
                            message=f"Topic {topic!r} has no registered color",
                            fixable=True,
                            extra={"topic": topic},
                        )
                    )
                elif snapshot.get(topic, {}).get("color") != registered.color:
                    result.issues.append(
                        IntegrityIssue(
                            collection="projects",
                            entry_id=project.id,
                            issue_type=IssueType.TOPIC_COLOR_DRIFT,
                            message=f"Snapshot color of {topic!r} differs from registry ({registered.color})",
                            severity=IssueSeverity.INFO,
                            fixable=True,
                            extra={"topic": topic, "snapshot": snapshot.get(topic, {}).get("color")},
                        )
                    )

    def _check_featured(self, result: IntegrityResult) -> None:
        featured = self.store.get_featured_items()
        for slot, (attr, key) in FEATURED_SLOTS.items():
            record_id = getattr(featured, attr)
            if record_id and record_id not in self.store.collection(key):
                result.issues.append(
                    IntegrityIssue(
                        collection="featured",
                        entry_id=record_id,
                        issue_type=IssueType.MISSING_FEATURED,
                        message=f"Featured {slot} {record_id!r} does not exist",
                        severity=IssueSeverity.INFO,
                        fixable=True,
                        extra={"slot": slot},
                    )
                )

    def _check_names(self, result: IntegrityResult) -> None:
        seen: dict[str, str] = {}
        for person in self.store.people.list():
            name = person.get("name")
            if not name:
                continue
            if name in seen:
                result.issues.append(
                    IntegrityIssue(
                        collection="people",
                        entry_id=person.id,
                        issue_type=IssueType.DUPLICATE_NAME,
                        message=f"Name {name!r} is also used by {seen[name]}; team links are ambiguous",
                        extra={"name": name, "other": seen[name]},
                    )
                )
            else:
                seen[name] = person.id

    def _check_fields(self, result: IntegrityResult) -> None:
        for key, schema in SCHEMAS.items():
            for entry in self.store.facade(key).list():
                for error in validate_record(entry.data, schema):
                    result.issues.append(
                        IntegrityIssue(
                            collection=key,
                            entry_id=entry.id,
                            issue_type=IssueType.INVALID_FIELD,
                            message=error,
                            severity=IssueSeverity.WARNING,
                        )
                    )

    def fix_issues(
        self,
        issues: list[IntegrityIssue],
        dry_run: bool = False,
    ) -> tuple[int, int]:
        """Fix fixable integrity issues through the store.

        One-sided links are fixed together by a single union repair, and all
        topic issues by a single topic sync.

        Args:
            issues: List of issues to fix
            dry_run: Preview fixes without making changes

        Returns:
            Tuple of (fixed_count, failed_count)
        """
        fixed = 0
        failed = 0
        repaired = False
        synced = False

        for issue in issues:
            if not issue.fixable:
                continue

            try:
                if issue.issue_type == IssueType.ONE_SIDED_LINK:
                    if not dry_run and not repaired:
                        self.store.repair_links()
                        repaired = True
                    fixed += 1
                    self._report(dry_run, f"link {issue.extra.get('value')} on {issue.collection}/{issue.entry_id}", "Added")

                elif issue.issue_type == IssueType.DANGLING_REFERENCE:
                    divergence = Divergence(
                        relation=issue.extra.get("relation", ""),
                        record_kind=issue.collection,
                        record_id=issue.entry_id,
                        field=issue.extra["field"],
                        value=issue.extra["value"],
                        problem="dangling",
                    )
                    if not dry_run:
                        self.store.prune_reference(divergence)
                    fixed += 1
                    self._report(dry_run, f"{issue.extra['field']} {issue.extra['value']!r} from {issue.entry_id}", "Removed")

                elif issue.issue_type in (IssueType.UNREGISTERED_TOPIC, IssueType.TOPIC_COLOR_DRIFT):
                    if not dry_run and not synced:
                        self.store.sync_topics()
                        synced = True
                    fixed += 1
                    self._report(dry_run, f"topic {issue.extra.get('topic')!r} on {issue.entry_id}", "Synced")

                elif issue.issue_type == IssueType.MISSING_FEATURED:
                    if not dry_run:
                        self.store.set_featured(issue.extra["slot"], None)
                    fixed += 1
                    self._report(dry_run, f"featured {issue.extra['slot']}", "Cleared")

            except (KeyError, ValueError, OSError) as e:
                failed += 1
                console.print(f"[red]Failed to fix {issue.entry_id}: {e}[/red]")

        return fixed, failed

    @staticmethod
    def _report(dry_run: bool, what: str, verb: str) -> None:
        if dry_run:
            console.print(f"[dim]Would fix: {what}[/dim]")
        else:
            console.print(f"[green]{verb} {what}[/green]")
