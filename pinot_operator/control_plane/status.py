"""
Status reporter.

Writes the outcome of every apply attempt and every reconciliation pass
back onto the managed resource as a full replacement of its status.
"""

from __future__ import annotations

import logging
from typing import Optional

from pinot_operator.core.handlers import ApplyOutcome
from pinot_operator.kube.source import ResourceSource
from pinot_operator.resources.models import ManagedResource, StatusSnapshot
from pinot_operator.shared.errors import OperatorError, StatusWriteConflict
from pinot_operator.shared.utils import utcnow_iso

logger = logging.getLogger("pinot_operator.control_plane.status")


def build_snapshot(resource: ManagedResource, outcome: ApplyOutcome) -> StatusSnapshot:
    """Fresh snapshot stamped with the current time; nothing carries over."""
    return StatusSnapshot(
        type=resource.kind.status_type,
        status=outcome.state.value,
        reason=outcome.reason,
        message=outcome.message,
        last_update_time=utcnow_iso(),
        reload_status=outcome.reload_status,
        current_payload=outcome.current_payload,
    )


class StatusReporter:
    """Replaces the status subresource, conditioned on the last seen version."""

    def __init__(self, source: ResourceSource) -> None:
        self.source = source
        self.writes = 0
        self.conflicts = 0

    async def report(
        self, resource: ManagedResource, outcome: ApplyOutcome
    ) -> tuple[StatusSnapshot, Optional[str]]:
        """
        Write a status snapshot for ``resource``.

        Returns the snapshot and the resource's new version, or ``None`` as
        the version when the write was dropped. Write failures never raise.
        """
        snapshot = build_snapshot(resource, outcome)
        try:
            new_version = await self.source.replace_status(
                resource.kind,
                resource.namespace,
                resource.name,
                snapshot.to_dict(resource.kind),
                resource.resource_version,
            )
        except StatusWriteConflict as e:
            self.conflicts += 1
            logger.warning("%s; dropping status %s for %s", e, snapshot.status, resource.kind.kind)
            return snapshot, None
        except OperatorError as e:
            logger.error("Status write for %s %s failed: %s", resource.kind.kind, resource.key, e)
            return snapshot, None
        self.writes += 1
        logger.debug(
            "Status for %s %s -> %s %s", resource.kind.kind, resource.key, snapshot.status, snapshot.reason
        )
        return snapshot, new_version
