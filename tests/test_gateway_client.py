"""Pinot controller client tests against a local aiohttp server."""

from __future__ import annotations

import pytest
from aiohttp import web
from aiohttp import test_utils

from pinot_operator.control_plane import PinotControllerClient
from pinot_operator.shared.errors import TransientGatewayError


@pytest.fixture
async def controller():
    received: list[tuple[str, str, str]] = []
    state = {"healthy": True, "reject": False}

    async def record(request: web.Request) -> web.Response:
        body = await request.text()
        received.append((request.method, request.path_qs, body))
        if state["reject"]:
            return web.json_response({"error": "invalid"}, status=400)
        if request.method == "DELETE":
            return web.Response(status=204)
        return web.json_response({"status": "ok"})

    async def health(request: web.Request) -> web.Response:
        return web.Response(text="OK", status=200 if state["healthy"] else 503)

    async def info(request: web.Request) -> web.Response:
        return web.json_response({"clusterName": "c1"})

    async def reload(request: web.Request) -> web.Response:
        received.append((request.method, request.path_qs, ""))
        return web.json_response({"events_OFFLINE": "reload submitted for 3 segments"})

    app = web.Application()
    app.router.add_post("/schemas", record)
    app.router.add_delete("/schemas/{name}", record)
    app.router.add_post("/tables", record)
    app.router.add_delete("/tables/{name}", record)
    app.router.add_post("/tenants", record)
    app.router.add_delete("/tenants/{name}", record)
    app.router.add_post("/segments/{table}/reload", reload)
    app.router.add_get("/health", health)
    app.router.add_get("/cluster/info", info)

    server = test_utils.TestServer(app)
    await server.start_server()
    client = PinotControllerClient(timeout_seconds=5, connect_timeout_seconds=2)
    client.register_cluster_endpoint("c1", str(server.make_url("/")))
    try:
        yield client, received, state
    finally:
        await server.close()


@pytest.mark.asyncio
async def test_push_and_delete_schema(controller) -> None:
    client, received, _ = controller

    assert await client.push_schema("c1", "events", '{"schemaName": "events"}')
    assert await client.delete_schema("c1", "events")

    assert received == [
        ("POST", "/schemas", '{"schemaName": "events"}'),
        ("DELETE", "/schemas/events", ""),
    ]


@pytest.mark.asyncio
async def test_table_and_tenant_round_trip(controller) -> None:
    client, received, _ = controller

    assert await client.push_table("c1", "events", "{}")
    assert await client.push_tenant("c1", "t1", "{}")
    assert await client.delete_tenant("c1", "t1")
    assert await client.delete_table("c1", "events")

    assert [r[1] for r in received] == ["/tables", "/tenants", "/tenants/t1", "/tables/events"]


@pytest.mark.asyncio
async def test_rejection_returns_false(controller) -> None:
    client, _, state = controller
    state["reject"] = True

    assert await client.push_schema("c1", "events", "{}") is False
    assert await client.delete_table("c1", "events") is False


@pytest.mark.asyncio
async def test_unknown_cluster_returns_negative_without_request(controller) -> None:
    client, received, _ = controller

    assert await client.push_schema("nowhere", "events", "{}") is False
    assert await client.check_health("nowhere") is False
    assert await client.get_cluster_info("nowhere") is None
    assert received == []


@pytest.mark.asyncio
async def test_health_and_info(controller) -> None:
    client, _, state = controller

    assert await client.check_health("c1") is True
    state["healthy"] = False
    assert await client.check_health("c1") is False
    assert await client.get_cluster_info("c1") == '{"clusterName": "c1"}'


@pytest.mark.asyncio
async def test_segment_reload_lines(controller) -> None:
    client, received, _ = controller

    lines = await client.reload_table_segments("c1", "events", "offline")

    assert lines == ["events_OFFLINE: reload submitted for 3 segments"]
    assert received[-1] == ("POST", "/segments/events/reload?type=OFFLINE", "")


@pytest.mark.asyncio
async def test_unreachable_controller_raises_transient_error() -> None:
    client = PinotControllerClient(timeout_seconds=2, connect_timeout_seconds=1)
    client.register_cluster_endpoint("c1", "http://127.0.0.1:1")

    with pytest.raises(TransientGatewayError):
        await client.push_tenant("c1", "t1", "{}")
    assert await client.check_health("c1") is False


def test_endpoint_registry_strips_trailing_slash() -> None:
    client = PinotControllerClient()
    client.register_cluster_endpoint("c1", "http://ctrl:9000/")

    assert client.resolve_cluster_endpoint("c1") == "http://ctrl:9000"
    assert client.known_clusters() == ["c1"]
