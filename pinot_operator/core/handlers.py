"""
Per-kind resource handlers.

A handler knows how to apply, tear down and probe one kind of managed
resource. Clusters go through the apply planner; schemas, tables and
tenants are pushed to the cluster's controller through the gateway.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from pinot_operator.control_plane.gateway_client import ExternalClusterGateway
from pinot_operator.core.planner import ClusterApplyPlanner
from pinot_operator.resources.models import (
    ClusterSpec,
    ManagedResource,
    ReconcileState,
    ResourceKind,
    SchemaSpec,
    TableSpec,
    TableType,
    TenantSpec,
)
from pinot_operator.shared.errors import ConfigurationError

logger = logging.getLogger("pinot_operator.core.handlers")

REJECTED_REASON = "GatewayRejected"
UNHEALTHY_REASON = "Unhealthy"


@dataclass
class ApplyOutcome:
    """Result of one apply attempt, ready to become a status snapshot."""

    state: ReconcileState
    reason: str = ""
    message: str = ""
    reload_status: Optional[list[str]] = None
    current_payload: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.state == ReconcileState.READY

    @classmethod
    def ready(cls, message: str, **extra) -> "ApplyOutcome":
        return cls(ReconcileState.READY, "", message, **extra)

    @classmethod
    def failed(cls, reason: str, message: str, **extra) -> "ApplyOutcome":
        return cls(ReconcileState.FAILED, reason, message, **extra)


class ResourceHandler(Protocol):
    kind: ResourceKind

    async def apply(self, resource: ManagedResource) -> ApplyOutcome: ...

    async def teardown(self, resource: ManagedResource) -> None: ...

    async def check_health(self, resource: ManagedResource) -> Optional[bool]: ...


def validate_payload(field_name: str, payload: str) -> None:
    """A definition must be a non-empty JSON object literal."""
    text = (payload or "").strip()
    if not text:
        raise ConfigurationError(f"{field_name} must not be empty")
    if not (text.startswith("{") and text.endswith("}")):
        raise ConfigurationError(f"{field_name} must be a JSON object (expected '{{' ... '}}')")


def _require_cluster(target_cluster: str) -> None:
    if not target_cluster.strip():
        raise ConfigurationError("pinotCluster must reference a Pinot cluster")


# =============================================================================
# Cluster
# =============================================================================
class ClusterHandler:
    kind = ResourceKind.CLUSTER

    def __init__(self, planner: ClusterApplyPlanner, gateway: Optional[ExternalClusterGateway] = None) -> None:
        self.planner = planner
        self.gateway = gateway

    async def apply(self, resource: ManagedResource) -> ApplyOutcome:
        spec: ClusterSpec = resource.spec
        result = await self.planner.apply(resource.namespace, resource.name, spec)
        if not result.ok:
            return ApplyOutcome.failed(ConfigurationError.reason, result.summary())
        return ApplyOutcome.ready(f"Cluster applied: {result.summary()}")

    async def teardown(self, resource: ManagedResource) -> None:
        await self.planner.teardown(resource.namespace, resource.name)

    async def check_health(self, resource: ManagedResource) -> Optional[bool]:
        if self.gateway is None or self.gateway.resolve_cluster_endpoint(resource.name) is None:
            return None
        return await self.gateway.check_health(resource.name)


# =============================================================================
# Schema / Table / Tenant
# =============================================================================
class SchemaHandler:
    kind = ResourceKind.SCHEMA

    def __init__(self, gateway: ExternalClusterGateway) -> None:
        self.gateway = gateway

    async def apply(self, resource: ManagedResource) -> ApplyOutcome:
        spec: SchemaSpec = resource.spec
        _require_cluster(spec.target_cluster)
        validate_payload("schema.json", spec.payload)
        if not await self.gateway.push_schema(spec.target_cluster, resource.name, spec.payload):
            return ApplyOutcome.failed(
                REJECTED_REASON,
                f"Cluster {spec.target_cluster} did not accept schema {resource.name}",
            )
        return ApplyOutcome.ready("Schema applied successfully", current_payload=spec.payload)

    async def teardown(self, resource: ManagedResource) -> None:
        spec: SchemaSpec = resource.spec
        if spec.target_cluster:
            await self.gateway.delete_schema(spec.target_cluster, resource.name)

    async def check_health(self, resource: ManagedResource) -> Optional[bool]:
        return None


class TableHandler:
    kind = ResourceKind.TABLE

    def __init__(self, gateway: ExternalClusterGateway) -> None:
        self.gateway = gateway
        self._reloaded: dict[str, Optional[int]] = {}

    @staticmethod
    def validate(spec: TableSpec) -> None:
        _require_cluster(spec.target_cluster)
        if not spec.schema_ref.strip():
            raise ConfigurationError("pinotSchema must reference a schema")
        if not spec.table_type:
            raise ConfigurationError("pinotTableType is required")
        if spec.table_type not in {t.value for t in TableType}:
            raise ConfigurationError(f"pinotTableType must be one of realtime, offline, hybrid (got {spec.table_type!r})")
        validate_payload("tables.json", spec.payload)

    async def apply(self, resource: ManagedResource) -> ApplyOutcome:
        spec: TableSpec = resource.spec
        self.validate(spec)
        if not await self.gateway.push_table(spec.target_cluster, resource.name, spec.payload):
            return ApplyOutcome.failed(
                REJECTED_REASON,
                f"Cluster {spec.target_cluster} did not accept table {resource.name}",
            )
        reload_status = None
        if spec.segment_reload and self._reloaded.get(resource.key, -1) != resource.generation:
            reload_status = await self.gateway.reload_table_segments(
                spec.target_cluster, resource.name, spec.table_type
            )
            self._reloaded[resource.key] = resource.generation
            logger.info("Requested segment reload for table %s (%d entries)", resource.key, len(reload_status))
        elif resource.status is not None:
            reload_status = resource.status.reload_status
        return ApplyOutcome.ready(
            "Table applied successfully",
            reload_status=reload_status,
            current_payload=spec.payload,
        )

    async def teardown(self, resource: ManagedResource) -> None:
        self._reloaded.pop(resource.key, None)
        spec: TableSpec = resource.spec
        if spec.target_cluster:
            await self.gateway.delete_table(spec.target_cluster, resource.name)

    async def check_health(self, resource: ManagedResource) -> Optional[bool]:
        return None


class TenantHandler:
    kind = ResourceKind.TENANT

    def __init__(self, gateway: ExternalClusterGateway) -> None:
        self.gateway = gateway

    async def apply(self, resource: ManagedResource) -> ApplyOutcome:
        spec: TenantSpec = resource.spec
        _require_cluster(spec.target_cluster)
        validate_payload("tenantConfig", spec.payload)
        if not await self.gateway.push_tenant(spec.target_cluster, resource.name, spec.payload):
            return ApplyOutcome.failed(
                REJECTED_REASON,
                f"Cluster {spec.target_cluster} did not accept tenant {resource.name}",
            )
        return ApplyOutcome.ready("Tenant applied successfully")

    async def teardown(self, resource: ManagedResource) -> None:
        spec: TenantSpec = resource.spec
        if spec.target_cluster:
            await self.gateway.delete_tenant(spec.target_cluster, resource.name)

    async def check_health(self, resource: ManagedResource) -> Optional[bool]:
        return None
