"""
Operator engine.

Wires one registry, runner, dispatcher, watch and scheduler per managed
kind, and exposes read-only introspection over the registries.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from pinot_operator.control_plane.dispatcher import Dispatcher
from pinot_operator.control_plane.gateway_client import ExternalClusterGateway
from pinot_operator.control_plane.registry import ManagedRegistry
from pinot_operator.control_plane.runner import ApplyRunner
from pinot_operator.control_plane.scheduler import ReconciliationScheduler
from pinot_operator.control_plane.status import StatusReporter
from pinot_operator.control_plane.watch import ResourceWatch
from pinot_operator.core.handlers import (
    ClusterHandler,
    ResourceHandler,
    SchemaHandler,
    TableHandler,
    TenantHandler,
)
from pinot_operator.core.planner import ClusterApplyPlanner
from pinot_operator.kube.backend import WorkloadBackend
from pinot_operator.kube.source import ResourceSource
from pinot_operator.resources.models import ManagedResource, ResourceKind, resource_key
from pinot_operator.shared.settings import (
    APPLY_TIMEOUT_SECONDS,
    RECONCILE_INTERVAL_SECONDS,
    WATCH_RECONNECT_DELAY_SECONDS,
)

logger = logging.getLogger("pinot_operator.control_plane.engine")


@dataclass
class KindController:
    """Everything the engine runs for one kind."""

    kind: ResourceKind
    registry: ManagedRegistry
    handler: ResourceHandler
    runner: ApplyRunner
    dispatcher: Dispatcher
    watch: ResourceWatch
    scheduler: ReconciliationScheduler

    def to_dict(self) -> dict[str, Any]:
        report = self.scheduler.last_report
        return {
            "kind": self.kind.kind,
            "managed": len(self.registry),
            "watch_running": self.watch.running,
            "watch_connects": self.watch.connects,
            "watch_disconnects": self.dispatcher.disconnects,
            "scheduler_running": self.scheduler.running,
            "reconcile_passes": self.scheduler.passes,
            "last_pass_failed": report.failed if report else 0,
        }


class OperatorEngine:
    """Reconciliation engine for Pinot clusters, schemas, tables and tenants."""

    def __init__(
        self,
        *,
        source: ResourceSource,
        backend: WorkloadBackend,
        gateway: ExternalClusterGateway,
        reconcile_interval_seconds: float = RECONCILE_INTERVAL_SECONDS,
        reconnect_delay_seconds: float = WATCH_RECONNECT_DELAY_SECONDS,
        apply_timeout_seconds: float = APPLY_TIMEOUT_SECONDS,
    ) -> None:
        self.source = source
        self.backend = backend
        self.gateway = gateway
        self.planner = ClusterApplyPlanner(backend, gateway)
        self.reporter = StatusReporter(source)
        handlers: dict[ResourceKind, ResourceHandler] = {
            ResourceKind.CLUSTER: ClusterHandler(self.planner, gateway),
            ResourceKind.SCHEMA: SchemaHandler(gateway),
            ResourceKind.TABLE: TableHandler(gateway),
            ResourceKind.TENANT: TenantHandler(gateway),
        }
        self.controllers: dict[ResourceKind, KindController] = {}
        for kind, handler in handlers.items():
            registry = ManagedRegistry(kind)
            runner = ApplyRunner(registry, handler, self.reporter, apply_timeout_seconds=apply_timeout_seconds)
            dispatcher = Dispatcher(registry, runner)
            self.controllers[kind] = KindController(
                kind=kind,
                registry=registry,
                handler=handler,
                runner=runner,
                dispatcher=dispatcher,
                watch=ResourceWatch(kind, source, dispatcher, reconnect_delay_seconds),
                scheduler=ReconciliationScheduler(registry, runner, reconcile_interval_seconds),
            )

    @property
    def running(self) -> bool:
        return any(c.watch.running or c.scheduler.running for c in self.controllers.values())

    async def start(self) -> None:
        for controller in self.controllers.values():
            await controller.watch.start()
            await controller.scheduler.start()
        logger.info("Operator engine started (%d kinds)", len(self.controllers))

    async def stop(self) -> None:
        for controller in self.controllers.values():
            await controller.scheduler.stop()
            await controller.watch.stop()
        logger.info("Operator engine stopped")

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def registry(self, kind: ResourceKind) -> ManagedRegistry:
        return self.controllers[kind].registry

    def list_managed(self, kind: ResourceKind) -> list[ManagedResource]:
        return self.registry(kind).list_snapshot()

    def get_managed(self, kind: ResourceKind, namespace: str, name: str) -> Optional[ManagedResource]:
        return self.registry(kind).get(resource_key(namespace, name))

    def is_managed(self, kind: ResourceKind, namespace: str, name: str) -> bool:
        return self.registry(kind).contains(resource_key(namespace, name))

    def resource_counts(self) -> dict[str, int]:
        return {kind.value: len(c.registry) for kind, c in self.controllers.items()}

    def component_status(self) -> dict[str, dict[str, Any]]:
        return {kind.value: c.to_dict() for kind, c in self.controllers.items()}
