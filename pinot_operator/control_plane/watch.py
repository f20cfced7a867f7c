"""
Resource watch.

Supervised list-then-watch loop for one kind across all namespaces. Every
(re)connect starts with a full list handed to the subscriber as a resync,
then follows the incremental stream from the list's resourceVersion. When
the subscription fails the loop waits a fixed delay and starts over.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from pinot_operator.control_plane.dispatcher import WatchEvent, WatchSubscriber
from pinot_operator.kube.source import ResourceSource
from pinot_operator.resources.models import ManagedResource, ResourceKind
from pinot_operator.shared.errors import WatchDisruption
from pinot_operator.shared.settings import WATCH_RECONNECT_DELAY_SECONDS

logger = logging.getLogger("pinot_operator.control_plane.watch")

_GONE = 410
_MIN_QUIET_STREAM_SECONDS = 1.0


class ResourceWatch:
    """Background watch loop feeding one subscriber."""

    def __init__(
        self,
        kind: ResourceKind,
        source: ResourceSource,
        subscriber: WatchSubscriber,
        reconnect_delay_seconds: float = WATCH_RECONNECT_DELAY_SECONDS,
    ) -> None:
        self.kind = kind
        self.source = source
        self.subscriber = subscriber
        self.reconnect_delay_seconds = reconnect_delay_seconds
        self.connects = 0
        self._resource_version: Optional[str] = None
        self._task: asyncio.Task[None] | None = None
        self._stop = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._task = asyncio.create_task(self._run_loop(), name=f"pinot-watch-{self.kind.value}")
        logger.info("Watch started for %s", self.kind.plural)

    async def stop(self) -> None:
        self._stop.set()
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Watch stopped for %s", self.kind.plural)

    async def _run_loop(self) -> None:
        while not self._stop.is_set():
            try:
                await self.sync_once()
                await self.follow()
            except asyncio.CancelledError:
                raise
            except WatchDisruption as e:
                await self.subscriber.on_disconnect(str(e))
            except Exception as e:
                logger.exception("Watch loop for %s failed", self.kind.plural)
                await self.subscriber.on_disconnect(f"{type(e).__name__}: {e}")
            if self._stop.is_set():
                break
            await asyncio.sleep(self.reconnect_delay_seconds)

    async def sync_once(self) -> None:
        """List everything and hand it to the subscriber."""
        items, resource_version = await self.source.list(self.kind)
        self.connects += 1
        resources = [ManagedResource.from_object(self.kind, obj) for obj in items]
        self._resource_version = resource_version
        await self.subscriber.on_resync(resources)

    async def follow(self) -> None:
        """
        Stream events until the subscription breaks.

        A stream that ends on the server's request timeout is resumed from
        the last seen version without relisting.

        Raises:
            WatchDisruption: When the stream fails or its version expires
        """
        loop = asyncio.get_running_loop()
        while not self._stop.is_set():
            started = loop.time()
            delivered = 0
            async for raw in self.source.stream(self.kind, self._resource_version):
                delivered += 1
                event = WatchEvent.from_raw(self.kind, raw)
                if event.raw.get("code") == _GONE:
                    raise WatchDisruption(f"{self.kind.plural} watch version {self._resource_version} expired")
                await self.subscriber.on_event(event)
                if event.resource_version:
                    self._resource_version = event.resource_version
            if delivered == 0 and loop.time() - started < _MIN_QUIET_STREAM_SECONDS:
                raise WatchDisruption(f"{self.kind.plural} watch closed immediately")
            logger.debug("Watch on %s timed out; resuming at %s", self.kind.plural, self._resource_version)
