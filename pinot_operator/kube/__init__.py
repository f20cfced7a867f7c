"""Kubernetes adapters: API client setup, workload backends, custom resource source."""

from .backend import KubernetesWorkloadBackend, WorkloadBackend
from .client import KubeApis, init_kube
from .memory import InMemoryWorkloadBackend
from .source import CustomResourceSource, ResourceSource

__all__ = [
    "CustomResourceSource",
    "InMemoryWorkloadBackend",
    "KubeApis",
    "KubernetesWorkloadBackend",
    "ResourceSource",
    "WorkloadBackend",
    "init_kube",
]
