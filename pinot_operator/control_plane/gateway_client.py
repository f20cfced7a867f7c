"""
Pinot controller gateway for the operator control plane.

Pushes schema/table/tenant definitions to a Pinot cluster's controller REST
API and probes its health. Negative answers from the controller come back as
``False``/``None``; only transport failures raise.
"""

from __future__ import annotations

import asyncio
import json
import logging
from threading import RLock
from typing import Any, Protocol

import aiohttp

from pinot_operator.shared.errors import TransientGatewayError
from pinot_operator.shared.settings import (
    GATEWAY_CONNECT_TIMEOUT_SECONDS,
    GATEWAY_TIMEOUT_SECONDS,
)

logger = logging.getLogger("pinot_operator.control_plane.gateway")

_WRITE_OK = {200, 201}
_DELETE_OK = {200, 204}


class ExternalClusterGateway(Protocol):
    """Operations the engine needs from a Pinot cluster's management API."""

    def register_cluster_endpoint(self, cluster_name: str, endpoint: str) -> None: ...

    def resolve_cluster_endpoint(self, cluster_name: str) -> str | None: ...

    def unregister_cluster_endpoint(self, cluster_name: str) -> None: ...

    async def push_schema(self, cluster_name: str, schema_name: str, payload: str) -> bool: ...

    async def delete_schema(self, cluster_name: str, schema_name: str) -> bool: ...

    async def push_table(self, cluster_name: str, table_name: str, payload: str) -> bool: ...

    async def delete_table(self, cluster_name: str, table_name: str) -> bool: ...

    async def push_tenant(self, cluster_name: str, tenant_name: str, payload: str) -> bool: ...

    async def delete_tenant(self, cluster_name: str, tenant_name: str) -> bool: ...

    async def reload_table_segments(
        self, cluster_name: str, table_name: str, table_type: str
    ) -> list[str]: ...

    async def check_health(self, cluster_name: str) -> bool: ...

    async def get_cluster_info(self, cluster_name: str) -> str | None: ...


class PinotControllerClient:
    """aiohttp client for the Pinot controller REST API."""

    def __init__(
        self,
        timeout_seconds: float = GATEWAY_TIMEOUT_SECONDS,
        connect_timeout_seconds: float = GATEWAY_CONNECT_TIMEOUT_SECONDS,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self.connect_timeout_seconds = connect_timeout_seconds
        self._endpoints: dict[str, str] = {}
        self._lock = RLock()

    # ------------------------------------------------------------------
    # Endpoint registry
    # ------------------------------------------------------------------

    def register_cluster_endpoint(self, cluster_name: str, endpoint: str) -> None:
        with self._lock:
            previous = self._endpoints.get(cluster_name)
            self._endpoints[cluster_name] = endpoint.rstrip("/")
        if previous != endpoint.rstrip("/"):
            logger.info("Registered controller endpoint for cluster %s: %s", cluster_name, endpoint)

    def unregister_cluster_endpoint(self, cluster_name: str) -> None:
        with self._lock:
            removed = self._endpoints.pop(cluster_name, None)
        if removed is not None:
            logger.info("Unregistered controller endpoint for cluster %s", cluster_name)

    def resolve_cluster_endpoint(self, cluster_name: str) -> str | None:
        with self._lock:
            return self._endpoints.get(cluster_name)

    def known_clusters(self) -> list[str]:
        with self._lock:
            return sorted(self._endpoints)

    # ------------------------------------------------------------------
    # HTTP plumbing
    # ------------------------------------------------------------------

    def _timeout(self, total: float | None = None) -> aiohttp.ClientTimeout:
        return aiohttp.ClientTimeout(
            total=total or self.timeout_seconds,
            connect=self.connect_timeout_seconds,
        )

    async def _request(
        self,
        method: str,
        cluster_name: str,
        path: str,
        *,
        body: str | None = None,
        params: dict[str, str] | None = None,
        total_timeout: float | None = None,
    ) -> tuple[int, str] | None:
        """
        Send one request to the cluster's controller.

        Returns ``(status, body)`` or ``None`` when the cluster has no
        registered endpoint.

        Raises:
            TransientGatewayError: On connection errors and timeouts
        """
        base = self.resolve_cluster_endpoint(cluster_name)
        if base is None:
            logger.error("No controller endpoint registered for cluster %s", cluster_name)
            return None
        url = f"{base}{path}"
        headers = {"Content-Type": "application/json"} if body is not None else None
        try:
            async with aiohttp.ClientSession(timeout=self._timeout(total_timeout)) as session:
                async with session.request(
                    method, url, data=body, params=params, headers=headers
                ) as resp:
                    return resp.status, await resp.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransientGatewayError(
                f"{method} {url} failed for cluster {cluster_name}: {str(e) or type(e).__name__}"
            ) from e

    async def _write(self, cluster_name: str, what: str, name: str, path: str, payload: str) -> bool:
        result = await self._request("POST", cluster_name, path, body=payload)
        if result is None:
            return False
        status, text = result
        if status in _WRITE_OK:
            logger.info("Applied %s %s on cluster %s", what, name, cluster_name)
            return True
        logger.error(
            "Failed to apply %s %s on cluster %s. Status: %s, Body: %s",
            what, name, cluster_name, status, text,
        )
        return False

    async def _delete(self, cluster_name: str, what: str, name: str, path: str) -> bool:
        result = await self._request("DELETE", cluster_name, path)
        if result is None:
            return False
        status, text = result
        if status in _DELETE_OK:
            logger.info("Deleted %s %s from cluster %s", what, name, cluster_name)
            return True
        logger.error(
            "Failed to delete %s %s from cluster %s. Status: %s, Body: %s",
            what, name, cluster_name, status, text,
        )
        return False

    # ------------------------------------------------------------------
    # Schemas / tables / tenants
    # ------------------------------------------------------------------

    async def push_schema(self, cluster_name: str, schema_name: str, payload: str) -> bool:
        return await self._write(cluster_name, "schema", schema_name, "/schemas", payload)

    async def delete_schema(self, cluster_name: str, schema_name: str) -> bool:
        return await self._delete(cluster_name, "schema", schema_name, f"/schemas/{schema_name}")

    async def push_table(self, cluster_name: str, table_name: str, payload: str) -> bool:
        return await self._write(cluster_name, "table", table_name, "/tables", payload)

    async def delete_table(self, cluster_name: str, table_name: str) -> bool:
        return await self._delete(cluster_name, "table", table_name, f"/tables/{table_name}")

    async def push_tenant(self, cluster_name: str, tenant_name: str, payload: str) -> bool:
        return await self._write(cluster_name, "tenant", tenant_name, "/tenants", payload)

    async def delete_tenant(self, cluster_name: str, tenant_name: str) -> bool:
        return await self._delete(cluster_name, "tenant", tenant_name, f"/tenants/{tenant_name}")

    async def reload_table_segments(
        self, cluster_name: str, table_name: str, table_type: str
    ) -> list[str]:
        """
        Ask the controller to reload every segment of a table.

        Returns one human-readable line per entry in the controller's answer,
        or an empty list when the request was refused.
        """
        params = {"type": table_type.upper()} if table_type and table_type != "hybrid" else None
        result = await self._request(
            "POST", cluster_name, f"/segments/{table_name}/reload", params=params
        )
        if result is None:
            return []
        status, text = result
        if status not in _WRITE_OK:
            logger.error(
                "Segment reload for table %s on cluster %s refused. Status: %s",
                table_name, cluster_name, status,
            )
            return []
        return _reload_lines(text)

    # ------------------------------------------------------------------
    # Cluster probes
    # ------------------------------------------------------------------

    async def check_health(self, cluster_name: str) -> bool:
        try:
            result = await self._request(
                "GET", cluster_name, "/health", total_timeout=self.connect_timeout_seconds
            )
        except TransientGatewayError as e:
            logger.warning("Health check for cluster %s failed: %s", cluster_name, e)
            return False
        if result is None:
            return False
        status, _ = result
        if status != 200:
            logger.warning("Cluster health check failed for %s. Status: %s", cluster_name, status)
        return status == 200

    async def get_cluster_info(self, cluster_name: str) -> str | None:
        result = await self._request(
            "GET", cluster_name, "/cluster/info", total_timeout=self.connect_timeout_seconds
        )
        if result is None:
            return None
        status, text = result
        if status != 200:
            logger.error("Failed to get cluster info for %s. Status: %s", cluster_name, status)
            return None
        return text


def _reload_lines(text: str) -> list[str]:
    try:
        data: Any = json.loads(text) if text else {}
    except ValueError:
        return [text.strip()] if text.strip() else []
    if isinstance(data, list):
        return [str(item) for item in data]
    if isinstance(data, dict):
        return [f"{key}: {value}" for key, value in data.items()]
    return [str(data)]
