"""
Pinot operator managed registry.

Holds the latest known snapshot of every managed resource of one kind.
One registry exists per kind; the watch, the scheduler and the status API
all share it by reference.
"""

from __future__ import annotations

from threading import RLock
from typing import Iterable

from pinot_operator.resources.models import (
    ManagedResource,
    ResourceKind,
    StatusSnapshot,
    resource_key,
)


class ManagedRegistry:
    """In-memory ``namespace/name`` -> resource snapshot map for one kind."""

    def __init__(self, kind: ResourceKind) -> None:
        self.kind = kind
        self._items: dict[str, ManagedResource] = {}
        self._lock = RLock()

    def upsert(self, resource: ManagedResource) -> ManagedResource | None:
        """Insert or replace; last write wins. Returns the previous snapshot."""
        if resource.kind != self.kind:
            raise ValueError(f"{resource.kind.value} resource given to {self.kind.value} registry")
        with self._lock:
            previous = self._items.get(resource.key)
            self._items[resource.key] = resource
            return previous

    def remove(self, key: str) -> ManagedResource | None:
        with self._lock:
            return self._items.pop(key, None)

    def get(self, key: str) -> ManagedResource | None:
        with self._lock:
            return self._items.get(key)

    def lookup(self, namespace: str, name: str) -> ManagedResource | None:
        return self.get(resource_key(namespace, name))

    def contains(self, key: str) -> bool:
        with self._lock:
            return key in self._items

    def list_snapshot(self) -> list[ManagedResource]:
        """Point-in-time copy; later mutations do not affect the returned list."""
        with self._lock:
            return list(self._items.values())

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._items.keys())

    def replace_all(self, resources: Iterable[ManagedResource]) -> dict[str, ManagedResource]:
        """
        Swap the whole content for a freshly listed set.

        Returns the previous content keyed by ``namespace/name`` so callers can
        diff the two states.
        """
        fresh = {r.key: r for r in resources if r.kind == self.kind}
        with self._lock:
            previous = self._items
            self._items = fresh
            return dict(previous)

    def record_status(
        self,
        key: str,
        status: StatusSnapshot,
        resource_version: str | None = None,
        expected: ManagedResource | None = None,
    ) -> bool:
        """
        Attach a status snapshot to the stored resource, if still present.

        The resource version is only advanced when the stored snapshot is still
        ``expected``; a newer snapshot from the watch keeps its own version.
        """
        with self._lock:
            item = self._items.get(key)
            if item is None:
                return False
            item.status = status
            if resource_version and (expected is None or item is expected):
                item.resource_version = resource_version
            return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
