"""
Manifest builders for Pinot cluster nodes.

Each resolved node becomes three objects, all named after the node so that
re-applying is idempotent:

- Deployment ``<node>``
- Service ``<node>-service``
- ConfigMap ``<node>-config`` carrying ``pinot.properties``
"""

from __future__ import annotations

from typing import Any

from pinot_operator.resources.models import (
    ClusterSpec,
    NodeRuntimeConfig,
    NodeSpec,
    ServicePort,
    WorkloadTemplate,
)
from pinot_operator.shared.settings import DEFAULT_PINOT_IMAGE, DEFAULT_PINOT_PORT

APP_LABEL = "pinot"
CONTAINER_NAME = "pinot"
PROPERTIES_KEY = "pinot.properties"

DEFAULT_RESOURCES: dict[str, dict[str, str]] = {
    "requests": {"memory": "512Mi", "cpu": "250m"},
    "limits": {"memory": "1Gi", "cpu": "500m"},
}


def cluster_selector(cluster_name: str) -> str:
    """Label selector matching every object owned by a cluster."""
    return f"app={APP_LABEL},cluster={cluster_name}"


def service_name(node_name: str) -> str:
    return f"{node_name}-service"


def config_bundle_name(node_name: str) -> str:
    return f"{node_name}-config"


def node_labels(cluster_name: str, node: NodeSpec) -> dict[str, str]:
    return {
        "app": APP_LABEL,
        "cluster": cluster_name,
        "node": node.name,
        "node-type": node.node_type,
    }


def _selector_labels(cluster_name: str, node: NodeSpec) -> dict[str, str]:
    return {"app": APP_LABEL, "cluster": cluster_name, "node": node.name}


def primary_port(template: WorkloadTemplate) -> int:
    for port in template.ports:
        if port.container_port > 0:
            return port.container_port
    return DEFAULT_PINOT_PORT


def build_workload(
    cluster_name: str,
    namespace: str,
    node: NodeSpec,
    template: WorkloadTemplate,
    runtime: NodeRuntimeConfig,
) -> dict[str, Any]:
    ports = [
        {"containerPort": p.container_port, "protocol": p.protocol}
        for p in template.ports
        if p.container_port > 0
    ] or [{"containerPort": DEFAULT_PINOT_PORT, "protocol": "TCP"}]
    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {
            "name": node.name,
            "namespace": namespace,
            "labels": node_labels(cluster_name, node),
        },
        "spec": {
            "replicas": node.replica_count,
            "selector": {"matchLabels": _selector_labels(cluster_name, node)},
            "template": {
                "metadata": {"labels": _selector_labels(cluster_name, node)},
                "spec": {
                    "containers": [
                        {
                            "name": CONTAINER_NAME,
                            "image": template.image or DEFAULT_PINOT_IMAGE,
                            "imagePullPolicy": "IfNotPresent",
                            "env": [
                                {"name": "PINOT_NODE_TYPE", "value": node.node_type},
                                {"name": "PINOT_CLUSTER_NAME", "value": cluster_name},
                                {"name": "JAVA_OPTS", "value": runtime.runtime_options},
                            ],
                            "ports": ports,
                            "resources": {k: dict(v) for k, v in DEFAULT_RESOURCES.items()},
                            "volumeMounts": [
                                {"name": "config", "mountPath": "/opt/pinot/conf"},
                            ],
                        }
                    ],
                    "volumes": [
                        {"name": "config", "configMap": {"name": config_bundle_name(node.name)}},
                    ],
                },
            },
        },
    }


def build_service(
    cluster_name: str,
    namespace: str,
    node: NodeSpec,
    template: WorkloadTemplate,
) -> dict[str, Any]:
    port = primary_port(template)
    service_ports = template.service_ports or [ServicePort(port=port, target_port=port)]
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": {
            "name": service_name(node.name),
            "namespace": namespace,
            "labels": node_labels(cluster_name, node),
        },
        "spec": {
            "type": template.service_type or "ClusterIP",
            "selector": _selector_labels(cluster_name, node),
            "ports": [
                {
                    "name": p.name,
                    "port": p.port,
                    "targetPort": p.target_port,
                    "protocol": p.protocol,
                }
                for p in service_ports
            ],
        },
    }


def render_properties(
    cluster_name: str,
    spec: ClusterSpec,
    node: NodeSpec,
    runtime: NodeRuntimeConfig,
) -> str:
    lines = [
        f"pinot.node.type={node.node_type}",
        f"pinot.cluster.name={cluster_name}",
    ]
    if spec.external.coordination_endpoint:
        lines.append(f"pinot.zookeeper.address={spec.external.coordination_endpoint}")
    lines.append(f"pinot.data.dir={runtime.data_dir}")
    lines.append(f"pinot.java.opts={runtime.runtime_options}")
    deep_storage = spec.external.deep_storage_for(node.node_type)
    if deep_storage:
        lines.append(f"pinot.deep.storage.uri={deep_storage}")
    if spec.plugins:
        lines.append(f"pinot.plugins.include={','.join(spec.plugins)}")
    return "\n".join(lines) + "\n"


def build_config_bundle(
    cluster_name: str,
    namespace: str,
    spec: ClusterSpec,
    node: NodeSpec,
    runtime: NodeRuntimeConfig,
) -> dict[str, Any]:
    return {
        "apiVersion": "v1",
        "kind": "ConfigMap",
        "metadata": {
            "name": config_bundle_name(node.name),
            "namespace": namespace,
            "labels": node_labels(cluster_name, node),
        },
        "data": {PROPERTIES_KEY: render_properties(cluster_name, spec, node, runtime)},
    }


def service_port(template: WorkloadTemplate) -> int:
    for port in template.service_ports:
        if port.port > 0:
            return port.port
    return primary_port(template)


def controller_endpoint(namespace: str, node: NodeSpec, template: WorkloadTemplate) -> str:
    """In-cluster URL of a controller node's service."""
    return f"http://{service_name(node.name)}.{namespace}.svc.cluster.local:{service_port(template)}"
