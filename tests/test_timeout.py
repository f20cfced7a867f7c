"""Timeout manager tests."""

from __future__ import annotations

import asyncio

import pytest

from pinot_operator.shared.errors import ApplyTimeoutError, TransientGatewayError
from pinot_operator.shared.settings import APPLY_TIMEOUT_SECONDS
from pinot_operator.shared.timeout import TimeoutManager


def test_named_and_fallback_timeouts() -> None:
    assert TimeoutManager.get_timeout("health_check") == 30
    assert TimeoutManager.get_timeout("unknown") == APPLY_TIMEOUT_SECONDS
    assert TimeoutManager.get_timeout(None) == APPLY_TIMEOUT_SECONDS


@pytest.mark.asyncio
async def test_execute_with_timeout_returns_result() -> None:
    async def work() -> str:
        return "done"

    assert await TimeoutManager.execute_with_timeout(work(), "default/c1", timeout=1) == "done"


@pytest.mark.asyncio
async def test_execute_with_timeout_raises_apply_timeout() -> None:
    with pytest.raises(ApplyTimeoutError) as exc_info:
        await TimeoutManager.execute_with_timeout(asyncio.sleep(5), "default/c1", timeout=0.01)

    assert isinstance(exc_info.value, TransientGatewayError)
    assert exc_info.value.reason == "ApplyTimeout"
