"""Reconciliation scheduler tests."""

from __future__ import annotations

import asyncio

import pytest

from conftest import FakeSource, make_object, wait_until
from pinot_operator.control_plane.registry import ManagedRegistry
from pinot_operator.control_plane.runner import ApplyRunner
from pinot_operator.control_plane.scheduler import ReconciliationScheduler
from pinot_operator.control_plane.status import StatusReporter
from pinot_operator.core.handlers import ApplyOutcome
from pinot_operator.resources.models import ManagedResource, ResourceKind


class CountingHandler:
    kind = ResourceKind.TENANT

    def __init__(self, fail_for: set[str] | None = None) -> None:
        self.fail_for = fail_for or set()
        self.applied: list[str] = []

    async def apply(self, resource):
        self.applied.append(resource.name)
        if resource.name in self.fail_for:
            return ApplyOutcome.failed("GatewayRejected", "rejected")
        return ApplyOutcome.ready("ok")

    async def teardown(self, resource):
        return None

    async def check_health(self, resource):
        return None


def _setup(handler, interval: float = 30) -> tuple[ReconciliationScheduler, ManagedRegistry, ApplyRunner]:
    registry = ManagedRegistry(ResourceKind.TENANT)
    runner = ApplyRunner(registry, handler, StatusReporter(FakeSource()))
    return ReconciliationScheduler(registry, runner, interval_seconds=interval), registry, runner


def _tenant(name: str) -> ManagedResource:
    obj = make_object(ResourceKind.TENANT, name, {"pinotCluster": "c1", "tenantConfig": "{}"})
    return ManagedResource.from_object(ResourceKind.TENANT, obj)


@pytest.mark.asyncio
async def test_pass_visits_every_resource_and_counts_outcomes() -> None:
    handler = CountingHandler(fail_for={"t2"})
    scheduler, registry, _ = _setup(handler)
    for name in ("t1", "t2", "t3"):
        registry.upsert(_tenant(name))

    report = await scheduler.reconcile_once()

    assert sorted(handler.applied) == ["t1", "t2", "t3"]
    assert (report.total, report.ready, report.failed, report.skipped) == (3, 2, 1, 0)
    assert scheduler.passes == 1


@pytest.mark.asyncio
async def test_failure_on_one_resource_does_not_stop_the_pass() -> None:
    handler = CountingHandler()
    scheduler, registry, runner = _setup(handler)
    for name in ("t1", "t2"):
        registry.upsert(_tenant(name))
    original = runner.apply

    async def exploding_apply(key, *, scheduled=False):
        if key == "default/t1":
            raise RuntimeError("status writer exploded")
        return await original(key, scheduled=scheduled)

    runner.apply = exploding_apply

    report = await scheduler.reconcile_once()

    assert report.errors == 1
    assert report.ready == 1
    assert handler.applied == ["t2"]


@pytest.mark.asyncio
async def test_key_in_flight_is_skipped() -> None:
    release = asyncio.Event()

    class SlowHandler(CountingHandler):
        async def apply(self, resource):
            await release.wait()
            return await super().apply(resource)

    handler = SlowHandler()
    scheduler, registry, runner = _setup(handler)
    registry.upsert(_tenant("t1"))

    in_flight = asyncio.create_task(runner.apply("default/t1"))
    await asyncio.sleep(0)
    report = await scheduler.reconcile_once()
    release.set()
    await in_flight

    assert report.skipped == 1
    assert handler.applied == ["t1"]


@pytest.mark.asyncio
async def test_passes_never_overlap() -> None:
    release = asyncio.Event()
    concurrent = 0
    peak = 0

    class SlowHandler(CountingHandler):
        async def apply(self, resource):
            nonlocal concurrent, peak
            concurrent += 1
            peak = max(peak, concurrent)
            await release.wait()
            concurrent -= 1
            return ApplyOutcome.ready("ok")

    scheduler, registry, _ = _setup(SlowHandler())
    registry.upsert(_tenant("t1"))
    registry.upsert(_tenant("t2"))

    first = asyncio.create_task(scheduler.reconcile_once())
    second = asyncio.create_task(scheduler.reconcile_once())
    await asyncio.sleep(0.01)
    release.set()
    await asyncio.gather(first, second)

    assert peak == 1
    assert scheduler.passes == 2


@pytest.mark.asyncio
async def test_background_loop_runs_on_interval() -> None:
    handler = CountingHandler()
    scheduler, registry, _ = _setup(handler, interval=0.01)
    registry.upsert(_tenant("t1"))

    await scheduler.start()
    try:
        await wait_until(lambda: scheduler.passes >= 2)
    finally:
        await scheduler.stop()

    assert not scheduler.running
    assert len(handler.applied) >= 2
