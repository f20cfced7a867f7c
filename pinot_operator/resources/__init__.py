"""Typed models for the Pinot custom resources."""

from .models import (
    ClusterSpec,
    ManagedResource,
    NodeSpec,
    NodeType,
    ReconcileState,
    ResourceKind,
    SchemaSpec,
    StatusSnapshot,
    TableSpec,
    TableType,
    TenantSpec,
    resource_key,
)

__all__ = [
    "ClusterSpec",
    "ManagedResource",
    "NodeSpec",
    "NodeType",
    "ReconcileState",
    "ResourceKind",
    "SchemaSpec",
    "StatusSnapshot",
    "TableSpec",
    "TableType",
    "TenantSpec",
    "resource_key",
]
