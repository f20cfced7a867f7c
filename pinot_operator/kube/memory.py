"""
In-memory workload backend.

Used for dry-run mode and by the tests. Keeps the last applied manifest per
object and an ordered log of every operation.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Any

from pinot_operator.shared.errors import BackendError

logger = logging.getLogger("pinot_operator.kube.memory")


@dataclass(frozen=True)
class Operation:
    verb: str
    kind: str
    namespace: str
    name: str


def _matches(labels: dict[str, str], label_selector: str) -> bool:
    for term in filter(None, (t.strip() for t in label_selector.split(","))):
        key, _, value = term.partition("=")
        if labels.get(key) != value:
            return False
    return True


class InMemoryWorkloadBackend:
    """Dict-backed stand-in for the Kubernetes workload APIs."""

    def __init__(self) -> None:
        self.objects: dict[tuple[str, str, str], dict[str, Any]] = {}
        self.operations: list[Operation] = []
        self.fail_on: set[tuple[str, str]] = set()

    async def apply(self, namespace: str, manifest: dict[str, Any]) -> None:
        kind = manifest.get("kind", "")
        name = manifest.get("metadata", {}).get("name", "")
        if (kind, name) in self.fail_on:
            raise BackendError(f"apply {kind}", f"{namespace}/{name}", "injected failure")
        self.objects[(kind, namespace, name)] = copy.deepcopy(manifest)
        self.operations.append(Operation("apply", kind, namespace, name))
        logger.debug("Applied %s %s/%s (in-memory)", kind, namespace, name)

    async def delete_by_selector(self, namespace: str, label_selector: str) -> list[str]:
        deleted: list[str] = []
        for key in list(self.objects):
            kind, obj_namespace, name = key
            labels = self.objects[key].get("metadata", {}).get("labels", {})
            if obj_namespace == namespace and _matches(labels, label_selector):
                del self.objects[key]
                self.operations.append(Operation("delete", kind, namespace, name))
                deleted.append(f"{kind}/{name}")
        return deleted

    def names(self, kind: str, namespace: str | None = None) -> list[str]:
        return sorted(
            name
            for (obj_kind, obj_namespace, name) in self.objects
            if obj_kind == kind and (namespace is None or obj_namespace == namespace)
        )

    def get(self, kind: str, namespace: str, name: str) -> dict[str, Any] | None:
        return self.objects.get((kind, namespace, name))
