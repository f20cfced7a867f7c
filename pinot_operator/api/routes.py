"""
Pinot Operator API Routes - read-only view of the reconciliation engine.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import APIRouter, Depends, HTTPException

from pinot_operator.api import schemas
from pinot_operator.control_plane.engine import OperatorEngine
from pinot_operator.resources.models import ResourceKind
from pinot_operator.shared.settings import VERSION

logger = logging.getLogger("pinot_operator.api.routes")

router = APIRouter(prefix="/api/v1", tags=["pinot-operator"])


@dataclass
class AppState:
    """Application state container."""

    engine: OperatorEngine | None = None


app_state = AppState()


def get_engine() -> OperatorEngine:
    """Dependency: Get the running operator engine."""
    if app_state.engine is None:
        raise HTTPException(status_code=503, detail="Operator engine not initialized")
    return app_state.engine


def _list(engine: OperatorEngine, kind: ResourceKind) -> list[schemas.ManagedResourceResponse]:
    resources = sorted(engine.list_managed(kind), key=lambda r: r.key)
    return [schemas.ManagedResourceResponse.from_resource(r) for r in resources]


def _get(
    engine: OperatorEngine, kind: ResourceKind, namespace: str, name: str
) -> schemas.ManagedResourceResponse:
    resource = engine.get_managed(kind, namespace, name)
    if resource is None:
        raise HTTPException(status_code=404, detail=f"{kind.kind} {namespace}/{name} is not managed")
    return schemas.ManagedResourceResponse.from_resource(resource)


# ============================================================================
# Health / Status
# ============================================================================


@router.get("/health", response_model=schemas.HealthResponse)
async def health_check(engine: OperatorEngine = Depends(get_engine)) -> schemas.HealthResponse:
    """Liveness plus per-kind loop state."""
    components: dict[str, str] = {}
    for kind, detail in engine.component_status().items():
        watch = "watching" if detail["watch_running"] else "stopped"
        scheduler = "scheduled" if detail["scheduler_running"] else "stopped"
        components[kind] = f"{watch}/{scheduler}"
    status = "UP" if engine.running else "DOWN"
    return schemas.HealthResponse(status=status, version=VERSION, components=components)


@router.get("/status", response_model=schemas.OperatorStatusResponse)
async def operator_status(
    engine: OperatorEngine = Depends(get_engine),
) -> schemas.OperatorStatusResponse:
    return schemas.OperatorStatusResponse(
        status="RUNNING" if engine.running else "STOPPED",
        version=VERSION,
        managed_resources=engine.resource_counts(),
        components=engine.component_status(),
    )


# ============================================================================
# Managed Resources
# ============================================================================


@router.get("/clusters", response_model=list[schemas.ManagedResourceResponse])
async def list_clusters(engine: OperatorEngine = Depends(get_engine)):
    return _list(engine, ResourceKind.CLUSTER)


@router.get("/clusters/{namespace}/{name}", response_model=schemas.ManagedResourceResponse)
async def get_cluster(namespace: str, name: str, engine: OperatorEngine = Depends(get_engine)):
    return _get(engine, ResourceKind.CLUSTER, namespace, name)


@router.get("/schemas", response_model=list[schemas.ManagedResourceResponse])
async def list_schemas(engine: OperatorEngine = Depends(get_engine)):
    return _list(engine, ResourceKind.SCHEMA)


@router.get("/schemas/{namespace}/{name}", response_model=schemas.ManagedResourceResponse)
async def get_schema(namespace: str, name: str, engine: OperatorEngine = Depends(get_engine)):
    return _get(engine, ResourceKind.SCHEMA, namespace, name)


@router.get("/tables", response_model=list[schemas.ManagedResourceResponse])
async def list_tables(engine: OperatorEngine = Depends(get_engine)):
    return _list(engine, ResourceKind.TABLE)


@router.get("/tables/{namespace}/{name}", response_model=schemas.ManagedResourceResponse)
async def get_table(namespace: str, name: str, engine: OperatorEngine = Depends(get_engine)):
    return _get(engine, ResourceKind.TABLE, namespace, name)


@router.get("/tenants", response_model=list[schemas.ManagedResourceResponse])
async def list_tenants(engine: OperatorEngine = Depends(get_engine)):
    return _list(engine, ResourceKind.TENANT)


@router.get("/tenants/{namespace}/{name}", response_model=schemas.ManagedResourceResponse)
async def get_tenant(namespace: str, name: str, engine: OperatorEngine = Depends(get_engine)):
    return _get(engine, ResourceKind.TENANT, namespace, name)


@router.get(
    "/managed/{resource_type}/{namespace}/{name}",
    response_model=schemas.ManagedCheckResponse,
)
async def is_managed(
    resource_type: str,
    namespace: str,
    name: str,
    engine: OperatorEngine = Depends(get_engine),
) -> schemas.ManagedCheckResponse:
    """Whether the operator currently manages the given resource."""
    try:
        kind = ResourceKind.parse(resource_type)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return schemas.ManagedCheckResponse(
        resource_type=kind.value,
        namespace=namespace,
        name=name,
        managed=engine.is_managed(kind, namespace, name),
    )
