"""
Pinot Operator - Resource Models

Typed views over the four custom resource kinds (Pinot, PinotSchema,
PinotTable, PinotTenant). Parsing is lenient: malformed fields become
empty values and are rejected later by the handlers, so a bad object
still lands in the registry and gets a Failed status.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union


# =============================================================================
# Enums
# =============================================================================
class ResourceKind(str, Enum):
    """Managed custom resource kinds."""

    CLUSTER = "cluster"
    SCHEMA = "schema"
    TABLE = "table"
    TENANT = "tenant"

    @property
    def kind(self) -> str:
        """Kubernetes ``kind`` of the custom resource."""
        return _KIND_META[self][0]

    @property
    def plural(self) -> str:
        return _KIND_META[self][1]

    @property
    def status_type(self) -> str:
        """Value written to ``status.type``."""
        return _KIND_META[self][2]

    @classmethod
    def parse(cls, value: str) -> "ResourceKind":
        """Accept the enum value, the plural, or the Kubernetes kind."""
        lowered = value.strip().lower()
        for member in cls:
            if lowered in (member.value, member.plural, member.kind.lower(), member.value + "s"):
                return member
        raise ValueError(f"Unknown resource kind: {value}")


_KIND_META: dict[ResourceKind, tuple[str, str, str]] = {
    ResourceKind.CLUSTER: ("Pinot", "pinots", "Cluster"),
    ResourceKind.SCHEMA: ("PinotSchema", "pinotschemas", "Schema"),
    ResourceKind.TABLE: ("PinotTable", "pinottables", "Table"),
    ResourceKind.TENANT: ("PinotTenant", "pinottenants", "Tenant"),
}


class NodeType(str, Enum):
    """Pinot node roles. The controller coordinates the cluster."""

    CONTROLLER = "controller"
    BROKER = "broker"
    SERVER = "server"
    MINION = "minion"

    @classmethod
    def coordinator(cls) -> "NodeType":
        return cls.CONTROLLER

    @classmethod
    def is_known(cls, tag: str) -> bool:
        return tag in {m.value for m in cls}


class TableType(str, Enum):
    REALTIME = "realtime"
    OFFLINE = "offline"
    HYBRID = "hybrid"


class ReconcileState(str, Enum):
    """Values written to ``status.status``."""

    READY = "Ready"
    FAILED = "Failed"


# =============================================================================
# Helpers
# =============================================================================
def _as_str(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return str(value)


def _as_int(value: Any, default: int = 1) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_list(value: Any) -> list:
    return list(value) if isinstance(value, (list, tuple)) else []


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _node_tag(value: Any) -> str:
    return _as_str(value).strip().lower()


# =============================================================================
# Cluster Spec
# =============================================================================
@dataclass
class ContainerPort:
    container_port: int
    protocol: str = "TCP"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ContainerPort":
        return cls(
            container_port=_as_int(data.get("containerPort"), 0),
            protocol=_as_str(data.get("protocol"), "TCP") or "TCP",
        )


@dataclass
class ServicePort:
    port: int
    target_port: int
    protocol: str = "TCP"
    name: str = "http"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ServicePort":
        port = _as_int(data.get("port"), 0)
        return cls(
            port=port,
            target_port=_as_int(data.get("targetPort"), port),
            protocol=_as_str(data.get("protocol"), "TCP") or "TCP",
            name=_as_str(data.get("name"), "http") or "http",
        )


@dataclass
class WorkloadTemplate:
    """Catalog entry describing how a node's workload and endpoint look."""

    name: str
    image: str = ""
    ports: list[ContainerPort] = field(default_factory=list)
    service_type: str = "ClusterIP"
    service_ports: list[ServicePort] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WorkloadTemplate":
        service = _as_dict(data.get("service"))
        return cls(
            name=_as_str(data.get("name")),
            image=_as_str(data.get("image")),
            ports=[ContainerPort.from_dict(p) for p in _as_list(data.get("port")) if isinstance(p, dict)],
            service_type=_as_str(service.get("type"), "ClusterIP") or "ClusterIP",
            service_ports=[
                ServicePort.from_dict(p) for p in _as_list(service.get("ports")) if isinstance(p, dict)
            ],
        )


@dataclass
class NodeRuntimeConfig:
    """Catalog entry with the JVM options and data directory for a node."""

    name: str
    runtime_options: str = ""
    data_dir: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NodeRuntimeConfig":
        return cls(
            name=_as_str(data.get("name")),
            runtime_options=_as_str(data.get("java_opts")),
            data_dir=_as_str(data.get("data")),
        )


@dataclass
class NodeSpec:
    name: str
    node_type: str
    replica_count: int = 1
    workload_template_ref: str = ""
    runtime_config_ref: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NodeSpec":
        return cls(
            name=_as_str(data.get("name")),
            node_type=_node_tag(data.get("nodeType")),
            replica_count=max(0, _as_int(data.get("replicas"), 1)),
            workload_template_ref=_as_str(data.get("k8sConfig")),
            runtime_config_ref=_as_str(data.get("pinotNodeConfig")),
        )


@dataclass
class DeepStorageEntry:
    node_type: str
    data_uri: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DeepStorageEntry":
        return cls(node_type=_node_tag(data.get("nodeType")), data_uri=_as_str(data.get("data")))


@dataclass
class ExternalSpec:
    coordination_endpoint: Optional[str] = None
    deep_storage: list[DeepStorageEntry] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ExternalSpec":
        zookeeper = _as_dict(_as_dict(data.get("zookeeper")).get("spec"))
        deep = _as_list(_as_dict(data.get("deepStorage")).get("spec"))
        return cls(
            coordination_endpoint=_as_str(zookeeper.get("zkAddress")) or None,
            deep_storage=[DeepStorageEntry.from_dict(d) for d in deep if isinstance(d, dict)],
        )

    def deep_storage_for(self, node_type: str) -> Optional[str]:
        for entry in self.deep_storage:
            if entry.node_type == node_type and entry.data_uri:
                return entry.data_uri
        return None


@dataclass
class ClusterSpec:
    """Desired state of a whole Pinot cluster."""

    deployment_order: list[str] = field(default_factory=list)
    workload_templates: list[WorkloadTemplate] = field(default_factory=list)
    node_runtime_configs: list[NodeRuntimeConfig] = field(default_factory=list)
    nodes: list[NodeSpec] = field(default_factory=list)
    external: ExternalSpec = field(default_factory=ExternalSpec)
    plugins: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ClusterSpec":
        return cls(
            deployment_order=[_node_tag(t) for t in _as_list(data.get("deploymentOrder"))],
            workload_templates=[
                WorkloadTemplate.from_dict(t) for t in _as_list(data.get("k8sConfig")) if isinstance(t, dict)
            ],
            node_runtime_configs=[
                NodeRuntimeConfig.from_dict(c)
                for c in _as_list(data.get("pinotNodeConfig"))
                if isinstance(c, dict)
            ],
            nodes=[NodeSpec.from_dict(n) for n in _as_list(data.get("nodes")) if isinstance(n, dict)],
            external=ExternalSpec.from_dict(_as_dict(data.get("external"))),
            plugins=[_as_str(p) for p in _as_list(data.get("plugins")) if p],
        )

    def workload_template(self, name: str) -> Optional[WorkloadTemplate]:
        for template in self.workload_templates:
            if template.name == name:
                return template
        return None

    def runtime_config(self, name: str) -> Optional[NodeRuntimeConfig]:
        for config in self.node_runtime_configs:
            if config.name == name:
                return config
        return None


# =============================================================================
# Config Specs (schema / table / tenant)
# =============================================================================
@dataclass
class SchemaSpec:
    target_cluster: str = ""
    payload: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SchemaSpec":
        return cls(
            target_cluster=_as_str(data.get("pinotCluster")),
            payload=_as_str(data.get("schema.json")),
        )


@dataclass
class TableSpec:
    target_cluster: str = ""
    schema_ref: str = ""
    table_type: str = ""
    payload: str = ""
    segment_reload: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TableSpec":
        return cls(
            target_cluster=_as_str(data.get("pinotCluster")),
            schema_ref=_as_str(data.get("pinotSchema")),
            table_type=_as_str(data.get("pinotTableType")).strip().lower(),
            payload=_as_str(data.get("tables.json")),
            segment_reload=bool(data.get("segmentReload", False)),
        )


@dataclass
class TenantSpec:
    target_cluster: str = ""
    payload: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TenantSpec":
        return cls(
            target_cluster=_as_str(data.get("pinotCluster")),
            payload=_as_str(data.get("tenantConfig")),
        )


ResourceSpec = Union[ClusterSpec, SchemaSpec, TableSpec, TenantSpec]

SPEC_PARSERS: dict[ResourceKind, Any] = {
    ResourceKind.CLUSTER: ClusterSpec.from_dict,
    ResourceKind.SCHEMA: SchemaSpec.from_dict,
    ResourceKind.TABLE: TableSpec.from_dict,
    ResourceKind.TENANT: TenantSpec.from_dict,
}


# =============================================================================
# Status
# =============================================================================
@dataclass
class StatusSnapshot:
    """Observed outcome of the last reconciliation attempt."""

    type: str
    status: str
    reason: str = ""
    message: str = ""
    last_update_time: str = ""
    reload_status: Optional[list[str]] = None
    current_payload: Optional[str] = None

    def to_dict(self, kind: Optional[ResourceKind] = None) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": self.type,
            "status": self.status,
            "reason": self.reason,
            "message": self.message,
            "lastUpdateTime": self.last_update_time,
        }
        if self.reload_status is not None:
            data["reloadStatus"] = list(self.reload_status)
        if self.current_payload is not None:
            if kind == ResourceKind.SCHEMA:
                data["currentSchemas.json"] = self.current_payload
            elif kind == ResourceKind.TABLE:
                data["currentTable.json"] = self.current_payload
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StatusSnapshot":
        reload_status = data.get("reloadStatus")
        return cls(
            type=_as_str(data.get("type")),
            status=_as_str(data.get("status")),
            reason=_as_str(data.get("reason")),
            message=_as_str(data.get("message")),
            last_update_time=_as_str(data.get("lastUpdateTime")),
            reload_status=list(reload_status) if isinstance(reload_status, list) else None,
            current_payload=data.get("currentSchemas.json") or data.get("currentTable.json"),
        )

    @property
    def ready(self) -> bool:
        return self.status == ReconcileState.READY.value


# =============================================================================
# Managed Resource
# =============================================================================
@dataclass
class ManagedResource:
    """A declared object the engine is responsible for."""

    kind: ResourceKind
    namespace: str
    name: str
    spec: ResourceSpec
    status: Optional[StatusSnapshot] = None
    resource_version: Optional[str] = None
    generation: Optional[int] = None
    raw: dict[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> str:
        return resource_key(self.namespace, self.name)

    @classmethod
    def from_object(cls, kind: ResourceKind, obj: dict[str, Any]) -> "ManagedResource":
        """Build a managed resource from a custom object as returned by the API server."""
        metadata = _as_dict(obj.get("metadata"))
        status = obj.get("status")
        generation = metadata.get("generation")
        return cls(
            kind=kind,
            namespace=_as_str(metadata.get("namespace"), "default") or "default",
            name=_as_str(metadata.get("name")),
            spec=SPEC_PARSERS[kind](_as_dict(obj.get("spec"))),
            status=StatusSnapshot.from_dict(status) if isinstance(status, dict) and status else None,
            resource_version=metadata.get("resourceVersion"),
            generation=_as_int(generation, 0) if generation is not None else None,
            raw=copy.deepcopy(obj),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.kind,
            "namespace": self.namespace,
            "name": self.name,
            "resourceVersion": self.resource_version,
            "generation": self.generation,
            "spec": _as_dict(self.raw.get("spec")),
            "status": self.status.to_dict(self.kind) if self.status else None,
        }


def resource_key(namespace: str, name: str) -> str:
    return f"{namespace}/{name}"
