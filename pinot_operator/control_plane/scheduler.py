"""
Reconciliation scheduler.

Periodic drift-detection and retry loop for one kind: every interval it
walks a snapshot of the registry and re-runs apply, health probe and status
refresh for each managed resource. The interval is measured between the
end of one pass and the start of the next, so passes never overlap.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from pinot_operator.control_plane.registry import ManagedRegistry
from pinot_operator.control_plane.runner import ApplyRunner
from pinot_operator.shared.settings import RECONCILE_INTERVAL_SECONDS

logger = logging.getLogger("pinot_operator.control_plane.scheduler")


@dataclass
class PassReport:
    total: int = 0
    ready: int = 0
    failed: int = 0
    skipped: int = 0
    errors: int = 0


class ReconciliationScheduler:
    """Background reconciliation loop for one kind."""

    def __init__(
        self,
        registry: ManagedRegistry,
        runner: ApplyRunner,
        interval_seconds: float = RECONCILE_INTERVAL_SECONDS,
    ) -> None:
        self.kind = registry.kind
        self.registry = registry
        self.runner = runner
        self.interval_seconds = interval_seconds
        self.passes = 0
        self.last_report: PassReport | None = None
        self._pass_lock = asyncio.Lock()
        self._task: asyncio.Task[None] | None = None
        self._stop = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._task = asyncio.create_task(self._run_loop(), name=f"pinot-reconcile-{self.kind.value}")
        logger.info(
            "Reconciliation scheduler started for %s (interval=%ss)", self.kind.plural, self.interval_seconds
        )

    async def stop(self) -> None:
        self._stop.set()
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Reconciliation scheduler stopped for %s", self.kind.plural)

    async def _run_loop(self) -> None:
        while not self._stop.is_set():
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.interval_seconds)
                break
            except asyncio.TimeoutError:
                pass
            try:
                await self.reconcile_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Reconciliation pass for %s failed", self.kind.plural)

    async def reconcile_once(self) -> PassReport:
        """
        Run one pass over a point-in-time snapshot of the registry.

        A failure on one resource is logged and the pass moves on. Resources
        whose apply is already in flight are skipped until the next pass.
        """
        async with self._pass_lock:
            report = PassReport()
            snapshot = self.registry.list_snapshot()
            report.total = len(snapshot)
            for resource in snapshot:
                try:
                    outcome = await self.runner.apply(resource.key, scheduled=True)
                except asyncio.CancelledError:
                    raise
                except Exception:
                    report.errors += 1
                    logger.exception("Reconciling %s %s failed", self.kind.kind, resource.key)
                    continue
                if outcome is None:
                    report.skipped += 1
                elif outcome.ok:
                    report.ready += 1
                else:
                    report.failed += 1
            self.passes += 1
            self.last_report = report
            if report.total:
                logger.debug(
                    "%s pass %d: %d ready, %d failed, %d skipped, %d errors",
                    self.kind.plural, self.passes, report.ready, report.failed, report.skipped, report.errors,
                )
            return report
