"""
Pinot Operator API Schemas - Pydantic models for the status endpoints.

Defines response models for:
- GET /api/v1/health
- GET /api/v1/status
- GET /api/v1/{clusters|schemas|tables|tenants}[/{namespace}/{name}]
- GET /api/v1/managed/{resource_type}/{namespace}/{name}
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field

from pinot_operator.resources.models import ManagedResource


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field("UP", description="Service status")
    version: str = Field("0.1.0", description="Operator version")
    components: dict[str, str] = Field(
        default_factory=dict, description="Watch/scheduler state per kind"
    )


class ResourceStatusResponse(BaseModel):
    type: str
    status: str
    reason: str = ""
    message: str = ""
    last_update_time: str = ""
    reload_status: Optional[list[str]] = None


class ManagedResourceResponse(BaseModel):
    """One managed resource as held in the operator's registry."""

    kind: str
    namespace: str
    name: str
    resource_version: Optional[str] = None
    generation: Optional[int] = None
    spec: dict[str, Any] = Field(default_factory=dict)
    status: Optional[ResourceStatusResponse] = None

    @classmethod
    def from_resource(cls, resource: ManagedResource) -> "ManagedResourceResponse":
        status = None
        if resource.status is not None:
            status = ResourceStatusResponse(
                type=resource.status.type,
                status=resource.status.status,
                reason=resource.status.reason,
                message=resource.status.message,
                last_update_time=resource.status.last_update_time,
                reload_status=resource.status.reload_status,
            )
        return cls(
            kind=resource.kind.kind,
            namespace=resource.namespace,
            name=resource.name,
            resource_version=resource.resource_version,
            generation=resource.generation,
            spec=dict(resource.raw.get("spec") or {}),
            status=status,
        )


class OperatorStatusResponse(BaseModel):
    """Aggregate operator status."""

    status: str = Field("RUNNING", description="Engine state")
    version: str = Field("0.1.0", description="Operator version")
    managed_resources: dict[str, int] = Field(
        default_factory=dict, description="Managed resource count per kind"
    )
    components: dict[str, dict[str, Any]] = Field(default_factory=dict)


class ManagedCheckResponse(BaseModel):
    resource_type: str
    namespace: str
    name: str
    managed: bool
