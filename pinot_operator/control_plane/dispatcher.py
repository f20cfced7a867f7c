"""
Watch event dispatcher.

Receives normalized change events for one kind, mutates that kind's registry
and hands the affected key to the apply runner. Also handles the full
resync that follows every (re)connect of the watch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Protocol

from pinot_operator.control_plane.registry import ManagedRegistry
from pinot_operator.control_plane.runner import ApplyRunner
from pinot_operator.resources.models import ManagedResource, ResourceKind

logger = logging.getLogger("pinot_operator.control_plane.dispatcher")


class EventType(str, Enum):
    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"
    ERROR = "ERROR"
    BOOKMARK = "BOOKMARK"


@dataclass
class WatchEvent:
    type: EventType
    resource: Optional[ManagedResource] = None
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_raw(cls, kind: ResourceKind, raw: dict[str, Any]) -> "WatchEvent":
        """Normalize a ``{"type": ..., "object": ...}`` event from the watch stream."""
        try:
            event_type = EventType(str(raw.get("type", "")).upper())
        except ValueError:
            event_type = EventType.ERROR
        obj = raw.get("object") or {}
        resource = None
        if event_type in (EventType.ADDED, EventType.MODIFIED, EventType.DELETED):
            resource = ManagedResource.from_object(kind, obj)
        return cls(type=event_type, resource=resource, raw=obj)

    @property
    def resource_version(self) -> Optional[str]:
        return (self.raw.get("metadata") or {}).get("resourceVersion")


class WatchSubscriber(Protocol):
    """Receiver of a watch's output."""

    async def on_resync(self, resources: list[ManagedResource]) -> None: ...

    async def on_event(self, event: WatchEvent) -> None: ...

    async def on_disconnect(self, reason: str) -> None: ...


def _spec_changed(previous: ManagedResource, current: ManagedResource) -> bool:
    if previous.generation is None or current.generation is None:
        return True
    return previous.generation != current.generation


class Dispatcher:
    """Registry mutation plus apply/teardown routing for one kind."""

    def __init__(self, registry: ManagedRegistry, runner: ApplyRunner) -> None:
        self.kind = registry.kind
        self.registry = registry
        self.runner = runner
        self.events_seen = 0
        self.disconnects = 0

    async def on_event(self, event: WatchEvent) -> None:
        self.events_seen += 1
        if event.type == EventType.BOOKMARK:
            return
        if event.type == EventType.ERROR:
            logger.error("Watch error for %s: %s", self.kind.kind, event.raw.get("message") or event.raw)
            return

        resource = event.resource
        if resource is None or not resource.name:
            logger.warning("Ignoring %s event without object metadata for %s", event.type.value, self.kind.kind)
            return
        key = resource.key

        if event.type == EventType.ADDED:
            logger.info("%s added: %s", self.kind.kind, key)
            self.registry.upsert(resource)
            await self.runner.apply(key)

        elif event.type == EventType.MODIFIED:
            previous = self.registry.get(key)
            if previous is None:
                logger.debug("%s modified but not managed, ignoring: %s", self.kind.kind, key)
                return
            self.registry.upsert(resource)
            if not _spec_changed(previous, resource):
                logger.debug("%s %s status-only update (generation %s)", self.kind.kind, key, resource.generation)
                return
            logger.info("%s modified: %s", self.kind.kind, key)
            await self.runner.apply(key)

        elif event.type == EventType.DELETED:
            logger.info("%s deleted: %s", self.kind.kind, key)
            removed = self.registry.remove(key)
            await self.runner.teardown(removed or resource)

    async def on_resync(self, resources: list[ManagedResource]) -> None:
        """
        Replace the registry with a fresh listing.

        Keys that are new or whose generation moved are applied; keys that
        disappeared while the watch was down are torn down.
        """
        previous = self.registry.replace_all(resources)
        current_keys = {r.key for r in resources}
        vanished = [r for k, r in previous.items() if k not in current_keys]
        changed = [
            r.key for r in resources if r.key not in previous or _spec_changed(previous[r.key], r)
        ]
        logger.info(
            "%s resync: %d managed, %d to apply, %d vanished",
            self.kind.kind, len(resources), len(changed), len(vanished),
        )
        for resource in vanished:
            await self.runner.teardown(resource)
        for key in changed:
            await self.runner.apply(key)

    async def on_disconnect(self, reason: str) -> None:
        self.disconnects += 1
        logger.warning("%s watch disconnected: %s", self.kind.kind, reason)
