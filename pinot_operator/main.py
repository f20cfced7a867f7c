"""
Pinot Operator - Main Entry Point

Wires the Kubernetes clients, the Pinot controller gateway and the
reconciliation engine together, then serves the status API.
"""

from __future__ import annotations

import logging
from typing import Optional

from pinot_operator.control_plane.engine import OperatorEngine
from pinot_operator.control_plane.gateway_client import PinotControllerClient
from pinot_operator.kube.backend import KubernetesWorkloadBackend, WorkloadBackend
from pinot_operator.kube.client import KubeApis, init_kube
from pinot_operator.kube.memory import InMemoryWorkloadBackend
from pinot_operator.kube.source import CustomResourceSource
from pinot_operator.shared import settings
from pinot_operator.shared.logging import (
    DATE_FORMAT,
    LOG_FORMAT,
    OPERATOR_LOGGER,
    configure_file_logging,
    get_banner,
)

logger = logging.getLogger("pinot_operator.main")


def setup_logging(level: str = settings.LOG_LEVEL, log_file: Optional[str] = None) -> None:
    """Configure root logging for the operator process."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
    )
    if log_file:
        configure_file_logging(logging.getLogger(OPERATOR_LOGGER), log_file)


def init_gateway() -> PinotControllerClient:
    return PinotControllerClient(
        timeout_seconds=settings.GATEWAY_TIMEOUT_SECONDS,
        connect_timeout_seconds=settings.GATEWAY_CONNECT_TIMEOUT_SECONDS,
    )


def init_backend(apis: KubeApis, dry_run: bool = settings.DRY_RUN) -> WorkloadBackend:
    if dry_run:
        logger.warning("Dry-run mode: workloads are kept in memory, nothing is applied to the cluster")
        return InMemoryWorkloadBackend()
    return KubernetesWorkloadBackend(apis)


async def init_engine() -> tuple[OperatorEngine, KubeApis]:
    """Build a fully wired engine. The caller starts and stops it."""
    apis = await init_kube(settings.KUBECONFIG_PATH, settings.IN_CLUSTER)
    engine = OperatorEngine(
        source=CustomResourceSource(apis),
        backend=init_backend(apis),
        gateway=init_gateway(),
        reconcile_interval_seconds=settings.RECONCILE_INTERVAL_SECONDS,
        reconnect_delay_seconds=settings.WATCH_RECONNECT_DELAY_SECONDS,
        apply_timeout_seconds=settings.APPLY_TIMEOUT_SECONDS,
    )
    return engine, apis


def run() -> None:
    """Console entry point: serve the status API with the engine in its lifespan."""
    import uvicorn

    setup_logging(log_file="operator.log")
    print(get_banner(settings.API_PORT, settings.DRY_RUN))
    uvicorn.run(
        "pinot_operator.api.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
