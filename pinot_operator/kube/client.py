"""
Kubernetes API client setup.

Loads in-cluster credentials when running inside a pod, otherwise a
kubeconfig, and builds the typed API objects the operator uses.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from kubernetes_asyncio import client
from kubernetes_asyncio import config as k8s_config

from pinot_operator.shared.errors import ConfigurationError

logger = logging.getLogger("pinot_operator.kube.client")


@dataclass
class KubeApis:
    core: client.CoreV1Api
    apps: client.AppsV1Api
    custom: client.CustomObjectsApi
    api_client: client.ApiClient

    async def close(self) -> None:
        await self.api_client.close()


async def init_kube(kubeconfig_path: Optional[str] = None, in_cluster: bool = False) -> KubeApis:
    """
    Load cluster credentials and build API clients.

    Args:
        kubeconfig_path: Explicit kubeconfig file; takes precedence
        in_cluster: Require the in-cluster service account

    Raises:
        ConfigurationError: If no usable credentials are found
    """
    try:
        if kubeconfig_path:
            await k8s_config.load_kube_config(config_file=kubeconfig_path)
        elif in_cluster:
            k8s_config.load_incluster_config()
        else:
            try:
                k8s_config.load_incluster_config()
            except k8s_config.ConfigException:
                await k8s_config.load_kube_config()
    except (k8s_config.ConfigException, OSError) as e:
        raise ConfigurationError(f"Failed to load Kubernetes configuration: {e}") from e

    api_client = client.ApiClient()
    logger.info("Kubernetes API clients initialized")
    return KubeApis(
        core=client.CoreV1Api(api_client),
        apps=client.AppsV1Api(api_client),
        custom=client.CustomObjectsApi(api_client),
        api_client=api_client,
    )
