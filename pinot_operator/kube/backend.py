"""
Workload backend on the Kubernetes API.

Create-or-replace for Deployments, Services and ConfigMaps, and label-based
teardown. Manifests are plain dict bodies built by ``core.manifests``.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Protocol

from kubernetes_asyncio.client.rest import ApiException

from pinot_operator.kube.client import KubeApis
from pinot_operator.shared.errors import BackendError

logger = logging.getLogger("pinot_operator.kube.backend")

WORKLOAD = "Deployment"
SERVICE = "Service"
CONFIG_BUNDLE = "ConfigMap"


class WorkloadBackend(Protocol):
    """Orchestration-platform operations used by the cluster planner."""

    async def apply(self, namespace: str, manifest: dict[str, Any]) -> None: ...

    async def delete_by_selector(self, namespace: str, label_selector: str) -> list[str]: ...


def _name_of(manifest: dict[str, Any]) -> str:
    return manifest.get("metadata", {}).get("name", "")


class KubernetesWorkloadBackend:
    """Applies manifests through ``kubernetes_asyncio``."""

    def __init__(self, apis: KubeApis) -> None:
        self.apis = apis

    def _verbs(self, kind: str):
        if kind == WORKLOAD:
            return (
                self.apis.apps.create_namespaced_deployment,
                self.apis.apps.replace_namespaced_deployment,
            )
        if kind == SERVICE:
            return (
                self.apis.core.create_namespaced_service,
                self.apis.core.replace_namespaced_service,
            )
        if kind == CONFIG_BUNDLE:
            return (
                self.apis.core.create_namespaced_config_map,
                self.apis.core.replace_namespaced_config_map,
            )
        raise BackendError("apply", kind, "unsupported manifest kind")

    async def _carry_service_identity(
        self, namespace: str, name: str, manifest: dict[str, Any]
    ) -> dict[str, Any]:
        """A Service's clusterIP is immutable; a replace must repeat the live one."""
        live = await self.apis.core.read_namespaced_service(name=name, namespace=namespace)
        body = copy.deepcopy(manifest)
        body.setdefault("metadata", {})["resourceVersion"] = live.metadata.resource_version
        spec = body.setdefault("spec", {})
        if live.spec.cluster_ip:
            spec["clusterIP"] = live.spec.cluster_ip
        if live.spec.cluster_i_ps:
            spec["clusterIPs"] = list(live.spec.cluster_i_ps)
        return body

    async def apply(self, namespace: str, manifest: dict[str, Any]) -> None:
        """Create the object, or replace it wholesale when it already exists."""
        kind = manifest.get("kind", "")
        name = _name_of(manifest)
        create, replace = self._verbs(kind)
        try:
            await create(namespace=namespace, body=manifest)
            logger.info("Created %s %s/%s", kind, namespace, name)
            return
        except ApiException as e:
            if e.status != 409:
                raise BackendError(f"create {kind}", f"{namespace}/{name}", str(e.reason)) from e
        try:
            body = manifest
            if kind == SERVICE:
                body = await self._carry_service_identity(namespace, name, manifest)
            await replace(name=name, namespace=namespace, body=body)
            logger.debug("Replaced %s %s/%s", kind, namespace, name)
        except ApiException as e:
            raise BackendError(f"replace {kind}", f"{namespace}/{name}", str(e.reason)) from e

    async def delete_by_selector(self, namespace: str, label_selector: str) -> list[str]:
        """Delete every workload, endpoint and config bundle matching the selector."""
        groups = [
            (
                WORKLOAD,
                self.apis.apps.list_namespaced_deployment,
                self.apis.apps.delete_namespaced_deployment,
            ),
            (
                SERVICE,
                self.apis.core.list_namespaced_service,
                self.apis.core.delete_namespaced_service,
            ),
            (
                CONFIG_BUNDLE,
                self.apis.core.list_namespaced_config_map,
                self.apis.core.delete_namespaced_config_map,
            ),
        ]
        deleted: list[str] = []
        for kind, list_fn, delete_fn in groups:
            try:
                listing = await list_fn(namespace=namespace, label_selector=label_selector)
            except ApiException as e:
                raise BackendError(f"list {kind}", f"{namespace} [{label_selector}]", str(e.reason)) from e
            for item in listing.items:
                name = item.metadata.name
                try:
                    await delete_fn(name=name, namespace=namespace)
                    deleted.append(f"{kind}/{name}")
                except ApiException as e:
                    if e.status == 404:
                        continue
                    raise BackendError(f"delete {kind}", f"{namespace}/{name}", str(e.reason)) from e
        logger.info(
            "Deleted %d objects in %s matching %s", len(deleted), namespace, label_selector
        )
        return deleted
