"""
Change notification.

A ChangeNotifier is owned by a ContentStore and handed to anything that
wants to hear about edits. Delivery is synchronous and in-process: listeners
run inside the mutating call, after persistence has been attempted. Events
fired with no listener attached are simply dropped; there is no replay.
"""

from __future__ import annotations

import fnmatch
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangeEvent:
    """Announcement that one entity changed."""

    kind: str
    entity_id: str | None
    action: str
    timestamp: float = field(default_factory=time.time)
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def topic(self) -> str:
        """Event topic such as ``project-updated`` used for pattern matching."""
        return f"{self.kind}-{self.action}"


Listener = Callable[[ChangeEvent], None]


class ChangeNotifier:
    """Subscriber list with shell-style topic patterns.

    Patterns match ``<kind>-<action>``, e.g. ``project-*`` or ``*-deleted``.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, tuple[str, Listener]] = {}
        self._next_id = 0

    def __len__(self) -> int:
        return len(self._listeners)

    def subscribe(self, callback: Listener, pattern: str = "*") -> str:
        """Register a listener.

        Args:
            callback: Called with each matching ChangeEvent
            pattern: fnmatch pattern over event topics

        Returns:
            Subscription id for unsubscribe()
        """
        subscription_id = f"sub-{self._next_id}"
        self._next_id += 1
        self._listeners[subscription_id] = (pattern, callback)
        logger.debug("Listener %s subscribed to %r", subscription_id, pattern)
        return subscription_id

    def unsubscribe(self, subscription_id: str) -> bool:
        """Remove a listener. Returns False for unknown ids."""
        return self._listeners.pop(subscription_id, None) is not None

    def announce(
        self,
        kind: str,
        entity_id: str | None = None,
        action: str = "updated",
        **metadata: Any,
    ) -> ChangeEvent:
        """Broadcast a change to every matching listener.

        A listener that raises is logged and skipped; the others still run.
        """
        event = ChangeEvent(kind=kind, entity_id=entity_id, action=action, metadata=metadata)
        for subscription_id, (pattern, callback) in list(self._listeners.items()):
            if not fnmatch.fnmatchcase(event.topic, pattern):
                continue
            try:
                callback(event)
            except Exception:
                logger.warning(
                    "Listener %s failed on %s", subscription_id, event.topic, exc_info=True
                )
        return event
