"""Shared fixtures and stub collaborators for the operator tests."""

from __future__ import annotations

import asyncio
import copy
from pathlib import Path
import sys
from typing import Any

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from pinot_operator.resources.models import ResourceKind
from pinot_operator.shared.errors import StatusWriteConflict


def make_object(
    kind: ResourceKind,
    name: str,
    spec: dict[str, Any],
    namespace: str = "default",
    generation: int | None = 1,
    resource_version: str = "100",
) -> dict[str, Any]:
    metadata: dict[str, Any] = {
        "name": name,
        "namespace": namespace,
        "resourceVersion": resource_version,
    }
    if generation is not None:
        metadata["generation"] = generation
    return {
        "apiVersion": "pinot.io/v1",
        "kind": kind.kind,
        "metadata": metadata,
        "spec": copy.deepcopy(spec),
    }


def cluster_spec(
    order: list[str] | None = None,
    nodes: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Two-node cluster: controller n1 and broker n2, both resolvable."""
    return {
        "deploymentOrder": order if order is not None else ["controller", "broker"],
        "k8sConfig": [
            {
                "name": "k8s-default",
                "image": "apachepinot/pinot:1.1.0",
                "port": [{"containerPort": 9000, "protocol": "TCP"}],
                "service": {"type": "ClusterIP", "ports": [{"port": 9000, "targetPort": 9000}]},
            }
        ],
        "pinotNodeConfig": [
            {"name": "pinot-default", "java_opts": "-Xmx1G", "data": "/var/pinot/data"},
        ],
        "nodes": nodes
        if nodes is not None
        else [
            {
                "name": "n1",
                "nodeType": "controller",
                "replicas": 1,
                "k8sConfig": "k8s-default",
                "pinotNodeConfig": "pinot-default",
            },
            {
                "name": "n2",
                "nodeType": "broker",
                "replicas": 2,
                "k8sConfig": "k8s-default",
                "pinotNodeConfig": "pinot-default",
            },
        ],
        "external": {"zookeeper": {"spec": {"zkAddress": "zk:2181"}}},
    }


class FakeSource:
    """Scripted stand-in for the custom resource API."""

    def __init__(self) -> None:
        self.items: dict[ResourceKind, list[dict[str, Any]]] = {k: [] for k in ResourceKind}
        self.queues: dict[ResourceKind, asyncio.Queue] = {k: asyncio.Queue() for k in ResourceKind}
        self.list_calls: dict[ResourceKind, int] = {k: 0 for k in ResourceKind}
        self.status_writes: list[tuple[ResourceKind, str, str, dict[str, Any], str | None]] = []
        self.conflict_keys: set[str] = set()
        self._version = 1000

    async def list(self, kind: ResourceKind):
        self.list_calls[kind] += 1
        return [copy.deepcopy(o) for o in self.items[kind]], str(self._version)

    async def stream(self, kind: ResourceKind, resource_version: str | None):
        queue = self.queues[kind]
        while True:
            item = await queue.get()
            if item is None:
                return
            if isinstance(item, Exception):
                raise item
            yield item

    def emit(self, kind: ResourceKind, event_type: str, obj: dict[str, Any]) -> None:
        self.queues[kind].put_nowait({"type": event_type, "object": copy.deepcopy(obj)})

    async def replace_status(self, kind, namespace, name, status, resource_version):
        key = f"{namespace}/{name}"
        if key in self.conflict_keys:
            raise StatusWriteConflict(key, resource_version)
        self._version += 1
        self.status_writes.append((kind, namespace, name, copy.deepcopy(status), resource_version))
        return str(self._version)

    def last_status(self, name: str) -> dict[str, Any] | None:
        for _, _, written_name, status, _ in reversed(self.status_writes):
            if written_name == name:
                return status
        return None


class StubGateway:
    """Records every call; answers are configurable per operation."""

    def __init__(self) -> None:
        self.calls: list[tuple[Any, ...]] = []
        self.endpoints: dict[str, str] = {}
        self.accept = True
        self.healthy = True
        self.reload_lines = ["segment_0: reloaded"]

    def register_cluster_endpoint(self, cluster_name: str, endpoint: str) -> None:
        self.endpoints[cluster_name] = endpoint

    def unregister_cluster_endpoint(self, cluster_name: str) -> None:
        self.endpoints.pop(cluster_name, None)

    def resolve_cluster_endpoint(self, cluster_name: str):
        return self.endpoints.get(cluster_name)

    async def push_schema(self, cluster_name, schema_name, payload):
        self.calls.append(("push_schema", cluster_name, schema_name))
        return self.accept

    async def delete_schema(self, cluster_name, schema_name):
        self.calls.append(("delete_schema", cluster_name, schema_name))
        return True

    async def push_table(self, cluster_name, table_name, payload):
        self.calls.append(("push_table", cluster_name, table_name))
        return self.accept

    async def delete_table(self, cluster_name, table_name):
        self.calls.append(("delete_table", cluster_name, table_name))
        return True

    async def push_tenant(self, cluster_name, tenant_name, payload):
        self.calls.append(("push_tenant", cluster_name, tenant_name))
        return self.accept

    async def delete_tenant(self, cluster_name, tenant_name):
        self.calls.append(("delete_tenant", cluster_name, tenant_name))
        return True

    async def reload_table_segments(self, cluster_name, table_name, table_type):
        self.calls.append(("reload_table_segments", cluster_name, table_name, table_type))
        return list(self.reload_lines)

    async def check_health(self, cluster_name):
        self.calls.append(("check_health", cluster_name))
        return self.healthy

    async def get_cluster_info(self, cluster_name):
        return "{}"


async def wait_until(predicate, timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.01)


@pytest.fixture
def source() -> FakeSource:
    return FakeSource()


@pytest.fixture
def gateway() -> StubGateway:
    return StubGateway()
