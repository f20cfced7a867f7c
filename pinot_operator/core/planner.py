"""
Cluster apply planner.

Turns a cluster's desired state into an ordered series of create-or-replace
calls against the workload backend: one tier per node type, in the order
the cluster declares, and per node a workload, a service and a config
bundle in that sequence.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from pinot_operator.core import manifests
from pinot_operator.kube.backend import WorkloadBackend
from pinot_operator.resources.models import (
    ClusterSpec,
    NodeRuntimeConfig,
    NodeSpec,
    NodeType,
    WorkloadTemplate,
)
from pinot_operator.shared.errors import ConfigurationError, UnresolvedReferenceError

logger = logging.getLogger("pinot_operator.core.planner")


@dataclass
class ClusterApplyResult:
    """What one apply pass did for a cluster."""

    cluster: str
    namespace: str
    applied_nodes: list[str] = field(default_factory=list)
    node_errors: dict[str, str] = field(default_factory=dict)
    skipped_nodes: list[str] = field(default_factory=list)
    operations: list[str] = field(default_factory=list)
    controller_endpoint: Optional[str] = None

    @property
    def ok(self) -> bool:
        return not self.node_errors

    def summary(self) -> str:
        parts = [f"applied {len(self.applied_nodes)} node(s)"]
        if self.node_errors:
            failed = ", ".join(f"{n}: {e}" for n, e in sorted(self.node_errors.items()))
            parts.append(f"{len(self.node_errors)} failed ({failed})")
        if self.skipped_nodes:
            parts.append(f"skipped {', '.join(self.skipped_nodes)} (type not in deploymentOrder)")
        return "; ".join(parts)


def validate_deployment_order(order: list[str]) -> list[str]:
    """
    Check a deploymentOrder list.

    Raises:
        ConfigurationError: If the list is empty, has an unknown or repeated
            tag, or lacks the coordinator tag
    """
    if not order:
        raise ConfigurationError("deploymentOrder must not be empty")
    seen: set[str] = set()
    for tag in order:
        if not NodeType.is_known(tag):
            raise ConfigurationError(f"deploymentOrder contains unknown node type: {tag!r}")
        if tag in seen:
            raise ConfigurationError(f"deploymentOrder repeats node type: {tag!r}")
        seen.add(tag)
    coordinator = NodeType.coordinator().value
    if coordinator not in seen:
        raise ConfigurationError(f"deploymentOrder must include the {coordinator} node type")
    return list(order)


class ClusterApplyPlanner:
    """Applies and tears down the Kubernetes objects that make up a Pinot cluster."""

    def __init__(self, backend: WorkloadBackend, gateway=None) -> None:
        self.backend = backend
        self.gateway = gateway

    @staticmethod
    def resolve(
        spec: ClusterSpec, node: NodeSpec
    ) -> tuple[WorkloadTemplate, NodeRuntimeConfig]:
        template = spec.workload_template(node.workload_template_ref)
        if template is None:
            raise UnresolvedReferenceError(node.name, "k8sConfig", node.workload_template_ref)
        runtime = spec.runtime_config(node.runtime_config_ref)
        if runtime is None:
            raise UnresolvedReferenceError(node.name, "pinotNodeConfig", node.runtime_config_ref)
        return template, runtime

    async def apply(self, namespace: str, cluster_name: str, spec: ClusterSpec) -> ClusterApplyResult:
        """
        Submit every node of the cluster, tier by tier.

        Tier order is submission order only; a later tier does not wait for
        an earlier one to become ready. Nodes with unresolvable references
        are recorded in ``node_errors`` and their siblings proceed. A backend
        failure propagates and leaves the remaining nodes unapplied.

        Raises:
            ConfigurationError: If deploymentOrder is invalid (nothing applied)
            BackendError: If the workload backend rejects an operation
        """
        order = validate_deployment_order(spec.deployment_order)
        result = ClusterApplyResult(cluster=cluster_name, namespace=namespace)

        for node in spec.nodes:
            if node.node_type not in order:
                logger.warning(
                    "Cluster %s/%s: node %s has type %r not listed in deploymentOrder; skipping",
                    namespace, cluster_name, node.name, node.node_type,
                )
                result.skipped_nodes.append(node.name)

        coordinator = NodeType.coordinator().value
        for tier in order:
            tier_nodes = [n for n in spec.nodes if n.node_type == tier]
            if not tier_nodes:
                continue
            logger.debug("Cluster %s/%s: applying %s tier (%d nodes)", namespace, cluster_name, tier, len(tier_nodes))
            for node in tier_nodes:
                try:
                    template, runtime = self.resolve(spec, node)
                except ConfigurationError as e:
                    logger.error("Cluster %s/%s: %s", namespace, cluster_name, e)
                    result.node_errors[node.name] = str(e)
                    continue
                await self._apply_node(namespace, cluster_name, spec, node, template, runtime, result)
                if tier == coordinator and result.controller_endpoint is None:
                    result.controller_endpoint = manifests.controller_endpoint(namespace, node, template)
            # Registered as soon as the coordinator tier is submitted.
            if tier == coordinator and result.controller_endpoint and self.gateway is not None:
                self.gateway.register_cluster_endpoint(cluster_name, result.controller_endpoint)

        logger.info("Cluster %s/%s: %s", namespace, cluster_name, result.summary())
        return result

    async def _apply_node(
        self,
        namespace: str,
        cluster_name: str,
        spec: ClusterSpec,
        node: NodeSpec,
        template: WorkloadTemplate,
        runtime: NodeRuntimeConfig,
        result: ClusterApplyResult,
    ) -> None:
        for manifest in (
            manifests.build_workload(cluster_name, namespace, node, template, runtime),
            manifests.build_service(cluster_name, namespace, node, template),
            manifests.build_config_bundle(cluster_name, namespace, spec, node, runtime),
        ):
            await self.backend.apply(namespace, manifest)
            result.operations.append(f"{manifest['kind']}/{manifest['metadata']['name']}")
        result.applied_nodes.append(node.name)

    async def teardown(self, namespace: str, cluster_name: str) -> list[str]:
        """Delete every object labelled as belonging to the cluster."""
        if self.gateway is not None:
            self.gateway.unregister_cluster_endpoint(cluster_name)
        deleted = await self.backend.delete_by_selector(
            namespace, manifests.cluster_selector(cluster_name)
        )
        logger.info("Cluster %s/%s torn down (%d objects)", namespace, cluster_name, len(deleted))
        return deleted
