"""Tests for RevalidationScheduler."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from protocol_analytics.serving.revalidation import RevalidationScheduler


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ============================================================================
# COOLDOWN
# ============================================================================


class TestCooldown:
    @pytest.mark.asyncio
    async def test_second_request_inside_cooldown_dropped(self):
        refresh = AsyncMock()
        clock = FakeClock()
        scheduler = RevalidationScheduler(refresh, cooldown_seconds=300, clock=clock)

        assert scheduler.request("airdrops") is True
        clock.advance(120)
        assert scheduler.request("airdrops") is False
        await scheduler.wait()

        refresh.assert_awaited_once_with("airdrops")

    @pytest.mark.asyncio
    async def test_request_after_cooldown_accepted(self):
        refresh = AsyncMock()
        clock = FakeClock()
        scheduler = RevalidationScheduler(refresh, cooldown_seconds=300, clock=clock)

        scheduler.request("airdrops")
        clock.advance(300)
        assert scheduler.request("airdrops") is True
        await scheduler.wait()

        assert refresh.await_count == 2

    @pytest.mark.asyncio
    async def test_cooldown_is_per_dataset(self):
        refresh = AsyncMock()
        scheduler = RevalidationScheduler(refresh, clock=FakeClock())

        assert scheduler.request("airdrops")
        assert scheduler.request("solana")
        await scheduler.wait()

        awaited = sorted(call.args[0] for call in refresh.await_args_list)
        assert awaited == ["airdrops", "solana"]


# ============================================================================
# TASK LIFECYCLE
# ============================================================================


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_failure_is_logged_not_raised(self):
        refresh = AsyncMock(side_effect=RuntimeError("upstream down"))
        scheduler = RevalidationScheduler(refresh, clock=FakeClock())

        scheduler.request("analytics")
        await scheduler.wait()

        assert scheduler.pending == 0
        refresh.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_aclose_cancels_outstanding(self):
        started = asyncio.Event()

        async def slow_refresh(dataset):
            started.set()
            await asyncio.sleep(3600)

        scheduler = RevalidationScheduler(slow_refresh, clock=FakeClock())
        scheduler.request("analytics")
        await started.wait()
        assert scheduler.pending == 1

        await scheduler.aclose()

        assert scheduler.pending == 0

    @pytest.mark.asyncio
    async def test_context_manager_closes(self):
        async def slow_refresh(dataset):
            await asyncio.sleep(3600)

        async with RevalidationScheduler(slow_refresh, clock=FakeClock()) as scheduler:
            scheduler.request("flow")
            await asyncio.sleep(0)

        assert scheduler.pending == 0
