"""
Topic color registry.

Single source of truth for topic coloring. Projects only carry topic names;
the color and hue for each name live here. A registry instance belongs to one
ContentStore, so independent stores (and tests) never share topic state.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from labsite.core.colors import even_hue, hue_of, is_hex_color, topic_color

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TopicColor:
    """Registered color for one topic name."""

    name: str
    color: str
    hue: int

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "color": self.color, "hue": self.hue}

    @classmethod
    def from_dict(cls, name: str, data: Mapping[str, Any]) -> TopicColor:
        color = str(data.get("color", ""))
        hue = data.get("hue")
        if not isinstance(hue, (int, float)):
            hue = hue_of(color)
        return cls(name=name, color=color, hue=int(hue))


class TopicColorRegistry:
    """Mapping from topic name to its TopicColor.

    Overwrites are last-writer-wins. The registry knows nothing about
    projects; checking that a topic is unused before removal is up to the
    caller.
    """

    def __init__(self, entries: Iterable[TopicColor] = ()):
        self._topics: dict[str, TopicColor] = {}
        for entry in entries:
            self._topics[entry.name] = entry

    def __contains__(self, name: object) -> bool:
        return name in self._topics

    def __iter__(self) -> Iterator[TopicColor]:
        return iter(list(self._topics.values()))

    def __len__(self) -> int:
        return len(self._topics)

    def names(self) -> list[str]:
        return list(self._topics)

    def get(self, name: str) -> TopicColor | None:
        """Look up a topic, returning None when it is not registered."""
        return self._topics.get(name)

    def register(self, name: str, color: str) -> TopicColor:
        """Register (or overwrite) a topic with an explicit color.

        The hue is computed from the color once and cached.
        """
        entry = TopicColor(name=name, color=color, hue=hue_of(color))
        self._topics[name] = entry
        logger.debug("Registered topic %r as %s (hue %d)", name, color, entry.hue)
        return entry

    def register_hue(self, name: str, hue: int) -> TopicColor:
        """Register (or overwrite) a topic from a hue.

        The exact hue is stored rather than re-derived from the color, so
        round-tripping through hex never shifts it.
        """
        hue = int(hue) % 360
        entry = TopicColor(name=name, color=topic_color(hue), hue=hue)
        self._topics[name] = entry
        logger.debug("Registered topic %r at hue %d", name, hue)
        return entry

    def remove(self, name: str) -> bool:
        """Hard-delete a topic. Returns False if it was not registered."""
        if name in self._topics:
            del self._topics[name]
            return True
        return False

    def ensure(
        self,
        topics: Iterable[str],
        strategy: str = "even",
        rng: random.Random | None = None,
    ) -> list[TopicColor]:
        """Resolve a project's topic list, registering unknown names.

        Known topics keep their registered color. New topics get a hue either
        from their index in *topics* (``even``) or at random (``random``).

        Returns:
            The TopicColor for each topic, in the order given.
        """
        topics = list(topics)
        resolved: list[TopicColor] = []
        for index, name in enumerate(topics):
            entry = self._topics.get(name)
            if entry is None:
                if strategy == "random":
                    hue = (rng or random).randrange(360)
                else:
                    hue = even_hue(index, len(topics))
                entry = self.register_hue(name, hue)
            resolved.append(entry)
        return resolved

    def to_dict(self) -> dict[str, dict[str, Any]]:
        """Serialize as ``{name: {color, hue}}``."""
        return {name: {"color": t.color, "hue": t.hue} for name, t in self._topics.items()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TopicColorRegistry:
        registry = cls()
        for name, value in data.items():
            if isinstance(value, Mapping) and is_hex_color(value.get("color")):
                registry._topics[name] = TopicColor.from_dict(name, value)
            else:
                logger.warning("Skipping malformed topic color entry %r", name)
        return registry

    @classmethod
    def from_projects(cls, projects: Iterable[Mapping[str, Any]]) -> TopicColorRegistry:
        """Build a registry from project ``topics_with_colors`` snapshots.

        The first project that mentions a topic decides its color.
        """
        registry = cls()
        for project in projects:
            for snapshot in project.get("topics_with_colors") or []:
                name = snapshot.get("name")
                if not name or name in registry:
                    continue
                if is_hex_color(snapshot.get("color")):
                    registry._topics[name] = TopicColor.from_dict(name, snapshot)
        return registry
