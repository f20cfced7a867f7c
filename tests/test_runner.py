"""Apply runner tests: error mapping, timeouts, health, status writes."""

from __future__ import annotations

import asyncio

import pytest

from conftest import FakeSource, StubGateway, cluster_spec, make_object
from pinot_operator.control_plane.registry import ManagedRegistry
from pinot_operator.control_plane.runner import INTERNAL_ERROR_REASON, ApplyRunner
from pinot_operator.control_plane.status import StatusReporter
from pinot_operator.core.handlers import UNHEALTHY_REASON, ApplyOutcome, ClusterHandler, SchemaHandler
from pinot_operator.core.planner import ClusterApplyPlanner
from pinot_operator.kube.memory import InMemoryWorkloadBackend
from pinot_operator.resources.models import ManagedResource, ResourceKind
from pinot_operator.shared.errors import TransientGatewayError


class ScriptedHandler:
    kind = ResourceKind.SCHEMA

    def __init__(self, behaviour) -> None:
        self.behaviour = behaviour
        self.applied: list[str] = []
        self.torn_down: list[str] = []

    async def apply(self, resource):
        self.applied.append(resource.key)
        return await self.behaviour(resource)

    async def teardown(self, resource):
        self.torn_down.append(resource.key)

    async def check_health(self, resource):
        return None


def _schema(name: str, payload: str = '{"schemaName": "s"}') -> ManagedResource:
    obj = make_object(ResourceKind.SCHEMA, name, {"pinotCluster": "c1", "schema.json": payload})
    return ManagedResource.from_object(ResourceKind.SCHEMA, obj)


def _runner(source: FakeSource, handler, timeout: float = 1.0) -> tuple[ApplyRunner, ManagedRegistry]:
    registry = ManagedRegistry(handler.kind)
    return ApplyRunner(registry, handler, StatusReporter(source), apply_timeout_seconds=timeout), registry


@pytest.mark.asyncio
async def test_invalid_schema_ends_failed_with_reason(source, gateway) -> None:
    runner, registry = _runner(source, SchemaHandler(gateway))
    registry.upsert(_schema("s1", payload="schemaName=s1"))

    outcome = await runner.apply("default/s1")

    assert not outcome.ok
    assert outcome.reason == "ConfigurationError"
    status = source.last_status("s1")
    assert status["status"] == "Failed"
    assert status["type"] == "Schema"
    assert status["reason"]
    assert status["lastUpdateTime"]
    assert gateway.calls == []
    assert registry.get("default/s1").status.status == "Failed"


@pytest.mark.asyncio
async def test_ready_apply_advances_resource_version(source, gateway) -> None:
    runner, registry = _runner(source, SchemaHandler(gateway))
    registry.upsert(_schema("s1"))

    outcome = await runner.apply("default/s1")

    assert outcome.ok
    assert source.status_writes[-1][4] == "100"
    assert registry.get("default/s1").resource_version == "1001"
    assert source.last_status("s1")["currentSchemas.json"] == '{"schemaName": "s"}'


@pytest.mark.asyncio
async def test_transient_gateway_error_maps_to_reason(source) -> None:
    async def unreachable(resource):
        raise TransientGatewayError("connection refused")

    runner, registry = _runner(source, ScriptedHandler(unreachable))
    registry.upsert(_schema("s1"))

    outcome = await runner.apply("default/s1")

    assert outcome.reason == "GatewayUnavailable"
    assert "connection refused" in outcome.message


@pytest.mark.asyncio
async def test_hung_apply_times_out(source) -> None:
    async def hang(resource):
        await asyncio.sleep(10)

    runner, registry = _runner(source, ScriptedHandler(hang), timeout=0.05)
    registry.upsert(_schema("s1"))

    outcome = await runner.apply("default/s1")

    assert outcome.reason == "ApplyTimeout"
    assert source.last_status("s1")["status"] == "Failed"


@pytest.mark.asyncio
async def test_unexpected_error_is_contained(source) -> None:
    async def boom(resource):
        raise KeyError("surprise")

    runner, registry = _runner(source, ScriptedHandler(boom))
    registry.upsert(_schema("s1"))

    outcome = await runner.apply("default/s1")

    assert outcome.reason == INTERNAL_ERROR_REASON
    assert "KeyError" in outcome.message


@pytest.mark.asyncio
async def test_unknown_key_is_not_applied(source) -> None:
    async def ok(resource):
        return ApplyOutcome.ready("fine")

    handler = ScriptedHandler(ok)
    runner, _ = _runner(source, handler)

    assert await runner.apply("default/ghost") is None
    assert handler.applied == []
    assert source.status_writes == []


@pytest.mark.asyncio
async def test_scheduled_apply_skips_key_in_flight(source) -> None:
    release = asyncio.Event()

    async def slow(resource):
        await release.wait()
        return ApplyOutcome.ready("done")

    handler = ScriptedHandler(slow)
    runner, registry = _runner(source, handler)
    registry.upsert(_schema("s1"))

    watch_apply = asyncio.create_task(runner.apply("default/s1"))
    await asyncio.sleep(0)
    assert runner.is_in_flight("default/s1")

    assert await runner.apply("default/s1", scheduled=True) is None
    release.set()
    assert (await watch_apply).ok
    assert handler.applied == ["default/s1"]


@pytest.mark.asyncio
async def test_scheduled_pass_reports_unhealthy_cluster(source) -> None:
    gateway = StubGateway()
    gateway.healthy = False
    backend = InMemoryWorkloadBackend()
    handler = ClusterHandler(ClusterApplyPlanner(backend, gateway), gateway)
    registry = ManagedRegistry(ResourceKind.CLUSTER)
    runner = ApplyRunner(registry, handler, StatusReporter(source))
    registry.upsert(
        ManagedResource.from_object(ResourceKind.CLUSTER, make_object(ResourceKind.CLUSTER, "c1", cluster_spec()))
    )

    on_event = await runner.apply("default/c1")
    scheduled = await runner.apply("default/c1", scheduled=True)

    assert on_event.ok
    assert not scheduled.ok
    assert scheduled.reason == UNHEALTHY_REASON
    assert ("check_health", "c1") in gateway.calls


@pytest.mark.asyncio
async def test_teardown_swallows_handler_errors(source) -> None:
    class FailingTeardown(ScriptedHandler):
        async def teardown(self, resource):
            raise TransientGatewayError("down")

    async def ok(resource):
        return ApplyOutcome.ready("fine")

    runner, _ = _runner(source, FailingTeardown(ok))

    assert await runner.teardown(_schema("s1")) is False
