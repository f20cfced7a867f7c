"""
Custom resource source.

Lists, watches and writes status for the four Pinot custom resource kinds
across all namespaces.
"""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Protocol

from kubernetes_asyncio import watch
from kubernetes_asyncio.client.rest import ApiException

from pinot_operator.kube.client import KubeApis
from pinot_operator.resources.models import ResourceKind
from pinot_operator.shared.errors import BackendError, StatusWriteConflict, WatchDisruption
from pinot_operator.shared.settings import CRD_GROUP, CRD_VERSION, WATCH_TIMEOUT_SECONDS

logger = logging.getLogger("pinot_operator.kube.source")


class ResourceSource(Protocol):
    """Where the engine reads declared resources and writes their status."""

    async def list(self, kind: ResourceKind) -> tuple[list[dict[str, Any]], str | None]: ...

    def stream(
        self, kind: ResourceKind, resource_version: str | None
    ) -> AsyncIterator[dict[str, Any]]: ...

    async def replace_status(
        self,
        kind: ResourceKind,
        namespace: str,
        name: str,
        status: dict[str, Any],
        resource_version: str | None,
    ) -> str | None: ...


class CustomResourceSource:
    """``CustomObjectsApi``-backed implementation of :class:`ResourceSource`."""

    def __init__(
        self,
        apis: KubeApis,
        group: str = CRD_GROUP,
        version: str = CRD_VERSION,
        watch_timeout_seconds: int = WATCH_TIMEOUT_SECONDS,
    ) -> None:
        self.apis = apis
        self.group = group
        self.version = version
        self.watch_timeout_seconds = watch_timeout_seconds

    async def list(self, kind: ResourceKind) -> tuple[list[dict[str, Any]], str | None]:
        """Return every object of ``kind`` plus the list's resourceVersion."""
        try:
            result = await self.apis.custom.list_cluster_custom_object(
                group=self.group,
                version=self.version,
                plural=kind.plural,
            )
        except ApiException as e:
            raise WatchDisruption(f"Listing {kind.plural} failed: {e.reason}") from e
        items = result.get("items", []) or []
        resource_version = (result.get("metadata") or {}).get("resourceVersion")
        return items, resource_version

    async def stream(
        self, kind: ResourceKind, resource_version: str | None
    ) -> AsyncIterator[dict[str, Any]]:
        """
        Yield ``{"type": ..., "object": {...}}`` events from the given version.

        The iterator ends when the server closes the request after its
        timeout. API errors surface as :class:`WatchDisruption`.
        """
        kwargs: dict[str, Any] = {"timeout_seconds": self.watch_timeout_seconds}
        if resource_version:
            kwargs["resource_version"] = resource_version
        try:
            async with watch.Watch() as w:
                async for event in w.stream(
                    self.apis.custom.list_cluster_custom_object,
                    self.group,
                    self.version,
                    kind.plural,
                    **kwargs,
                ):
                    yield {"type": event.get("type"), "object": event.get("object") or {}}
        except ApiException as e:
            raise WatchDisruption(f"Watch on {kind.plural} failed: {e.reason}") from e

    async def replace_status(
        self,
        kind: ResourceKind,
        namespace: str,
        name: str,
        status: dict[str, Any],
        resource_version: str | None,
    ) -> str | None:
        """
        Replace the status subresource wholesale.

        Returns the object's new resourceVersion.

        Raises:
            StatusWriteConflict: If ``resource_version`` is stale
            BackendError: For any other API failure
        """
        metadata: dict[str, Any] = {"name": name, "namespace": namespace}
        if resource_version:
            metadata["resourceVersion"] = resource_version
        body = {
            "apiVersion": f"{self.group}/{self.version}",
            "kind": kind.kind,
            "metadata": metadata,
            "status": status,
        }
        try:
            result = await self.apis.custom.replace_namespaced_custom_object_status(
                group=self.group,
                version=self.version,
                namespace=namespace,
                plural=kind.plural,
                name=name,
                body=body,
            )
        except ApiException as e:
            if e.status == 409:
                raise StatusWriteConflict(f"{namespace}/{name}", resource_version) from e
            raise BackendError("replace status", f"{kind.plural}/{namespace}/{name}", str(e.reason)) from e
        return ((result or {}).get("metadata") or {}).get("resourceVersion")
