"""
Apply runner.

The single path every apply and teardown for one kind goes through, whether
it was triggered by a watch event or by the reconciliation scheduler:

1. take the per-key single-flight guard
2. call the handler under a bounded timeout
3. map errors to a Failed outcome with a reason
4. write the status and remember it in the registry
"""

from __future__ import annotations

import logging
from typing import Optional

from pinot_operator.control_plane.registry import ManagedRegistry
from pinot_operator.control_plane.single_flight import KeyBusy, SingleFlight
from pinot_operator.control_plane.status import StatusReporter
from pinot_operator.core.handlers import UNHEALTHY_REASON, ApplyOutcome, ResourceHandler
from pinot_operator.resources.models import ManagedResource
from pinot_operator.shared.errors import OperatorError
from pinot_operator.shared.settings import APPLY_TIMEOUT_SECONDS
from pinot_operator.shared.timeout import TimeoutManager

logger = logging.getLogger("pinot_operator.control_plane.runner")

INTERNAL_ERROR_REASON = "InternalError"


class ApplyRunner:
    """Runs handler calls for one kind with guarding, timeouts and status writes."""

    def __init__(
        self,
        registry: ManagedRegistry,
        handler: ResourceHandler,
        reporter: StatusReporter,
        guard: Optional[SingleFlight] = None,
        apply_timeout_seconds: float = APPLY_TIMEOUT_SECONDS,
    ) -> None:
        self.kind = registry.kind
        self.registry = registry
        self.handler = handler
        self.reporter = reporter
        self.guard = guard or SingleFlight()
        self.apply_timeout_seconds = apply_timeout_seconds

    def is_in_flight(self, key: str) -> bool:
        return self.guard.is_in_flight(key)

    async def apply(self, key: str, *, scheduled: bool = False) -> Optional[ApplyOutcome]:
        """
        Apply the registry's current snapshot for ``key``.

        Watch-triggered calls wait for an in-flight apply of the same key and
        then run against the newest snapshot. Scheduled calls skip the key
        instead. Returns ``None`` when nothing ran.
        """
        try:
            return await self.guard.run(key, lambda: self._apply_locked(key, scheduled), wait=not scheduled)
        except KeyBusy:
            logger.debug("%s %s already in flight; skipping scheduled pass", self.kind.kind, key)
            return None

    async def _apply_locked(self, key: str, scheduled: bool) -> Optional[ApplyOutcome]:
        resource = self.registry.get(key)
        if resource is None:
            logger.debug("%s %s no longer managed; nothing to apply", self.kind.kind, key)
            return None

        outcome = await self._call_apply(resource)
        if scheduled and outcome.ok:
            outcome = await self._probe_health(resource, outcome)

        snapshot, new_version = await self.reporter.report(resource, outcome)
        self.registry.record_status(key, snapshot, new_version, expected=resource)
        if outcome.ok:
            logger.info("%s %s reconciled: %s", self.kind.kind, key, outcome.message)
        else:
            logger.warning("%s %s failed (%s): %s", self.kind.kind, key, outcome.reason, outcome.message)
        return outcome

    async def _call_apply(self, resource: ManagedResource) -> ApplyOutcome:
        try:
            return await TimeoutManager.execute_with_timeout(
                self.handler.apply(resource), resource.key, timeout=self.apply_timeout_seconds
            )
        except OperatorError as e:
            return ApplyOutcome.failed(e.reason, str(e))
        except Exception as e:
            logger.exception("Unexpected error applying %s %s", self.kind.kind, resource.key)
            return ApplyOutcome.failed(INTERNAL_ERROR_REASON, f"{type(e).__name__}: {e}")

    async def _probe_health(self, resource: ManagedResource, outcome: ApplyOutcome) -> ApplyOutcome:
        try:
            healthy = await TimeoutManager.execute_with_timeout(
                self.handler.check_health(resource), resource.key, timeout_key="health_check"
            )
        except OperatorError as e:
            return ApplyOutcome.failed(e.reason, f"Health check failed: {e}")
        if healthy is False:
            return ApplyOutcome.failed(
                UNHEALTHY_REASON,
                f"{self.kind.status_type} {resource.name} applied but its controller reports unhealthy",
                reload_status=outcome.reload_status,
                current_payload=outcome.current_payload,
            )
        if healthy:
            outcome.message = f"{outcome.message}; healthy"
        return outcome

    async def teardown(self, resource: ManagedResource) -> bool:
        """Remove everything ``resource`` created. Failures are logged, not raised."""
        key = resource.key

        async def _work() -> bool:
            try:
                await TimeoutManager.execute_with_timeout(
                    self.handler.teardown(resource),
                    key,
                    timeout=self.apply_timeout_seconds,
                )
            except OperatorError as e:
                logger.error("Teardown of %s %s failed: %s", self.kind.kind, key, e)
                return False
            except Exception:
                logger.exception("Unexpected error tearing down %s %s", self.kind.kind, key)
                return False
            logger.info("%s %s torn down", self.kind.kind, key)
            return True

        return await self.guard.run(key, _work)
