"""
Per-key single-flight guard.

At most one apply or teardown runs for a given ``namespace/name`` at a time.
Watch-triggered work waits for the running call; scheduled work skips the
key for the current pass.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

T = TypeVar("T")


class KeyBusy(Exception):
    """Raised when ``wait=False`` and the key already has work in flight."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Work already in flight for {key}")


class SingleFlight:
    """Mutual exclusion keyed by resource identity."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}

    def is_in_flight(self, key: str) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    async def run(
        self,
        key: str,
        fn: Callable[[], Awaitable[T]],
        *,
        wait: bool = True,
    ) -> T:
        """
        Run ``fn`` while holding the lock for ``key``.

        Raises:
            KeyBusy: If ``wait`` is False and the key is busy
        """
        lock = self._locks.setdefault(key, asyncio.Lock())
        if not wait and lock.locked():
            raise KeyBusy(key)
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            async with lock:
                return await fn()
        finally:
            remaining = self._waiters[key] - 1
            if remaining <= 0:
                self._waiters.pop(key, None)
                if not lock.locked():
                    self._locks.pop(key, None)
            else:
                self._waiters[key] = remaining

    def active_keys(self) -> list[str]:
        return [k for k, lock in self._locks.items() if lock.locked()]
