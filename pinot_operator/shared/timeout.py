"""
Timeout management for apply and teardown calls.

Every handler call made by the engine is bounded so that a hung call to the
orchestration platform or the Pinot controller cannot stall a kind's watch
or scheduler loop.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, TypeVar

from .errors import ApplyTimeoutError
from .settings import APPLY_TIMEOUT_SECONDS

logger = logging.getLogger("pinot_operator.shared.timeout")

T = TypeVar("T")


class TimeoutManager:
    """Named timeout defaults for engine operations."""

    DEFAULT_TIMEOUTS: dict[str, float] = {
        "health_check": 30,
    }

    @classmethod
    def get_timeout(cls, timeout_key: str | None) -> float:
        return cls.DEFAULT_TIMEOUTS.get(timeout_key, APPLY_TIMEOUT_SECONDS)

    @classmethod
    async def execute_with_timeout(
        cls,
        coro: Awaitable[T],
        key: str,
        timeout: float | None = None,
        timeout_key: str | None = None,
    ) -> T:
        """
        Await ``coro`` with a bound.

        Args:
            coro: Coroutine to await
            key: Resource key, used in the error message
            timeout: Explicit timeout in seconds
            timeout_key: Lookup key in DEFAULT_TIMEOUTS when ``timeout`` is None;
                unknown keys fall back to the apply timeout

        Raises:
            ApplyTimeoutError: If the coroutine does not finish in time
        """
        if timeout is None:
            timeout = cls.get_timeout(timeout_key)
        try:
            return await asyncio.wait_for(coro, timeout=timeout)
        except asyncio.TimeoutError as e:
            logger.error("Operation for %s exceeded timeout of %ss (key=%s)", key, timeout, timeout_key)
            raise ApplyTimeoutError(key, timeout) from e
