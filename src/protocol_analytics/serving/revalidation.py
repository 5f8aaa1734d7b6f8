"""Cooldown-gated background revalidation.

One scheduler per serving component. Requests for a dataset inside its
cooldown window are dropped; accepted requests run as asyncio tasks owned by
the scheduler and are cancelled when it closes.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import Any

from protocol_analytics.infrastructure.observability import get_serving_logger

RefreshFn = Callable[[str], Awaitable[Any]]


class RevalidationScheduler:
    """Schedules at most one refresh per dataset per cooldown window."""

    def __init__(
        self,
        refresh_fn: RefreshFn,
        cooldown_seconds: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.refresh_fn = refresh_fn
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._last_scheduled: dict[str, float] = {}
        self._tasks: set[asyncio.Task] = set()
        self.logger = get_serving_logger("revalidation")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def request(self, dataset: str) -> bool:
        """Schedule a refresh of ``dataset`` unless one ran recently.

        Returns:
            True if a refresh task was created
        """
        now = self._clock()
        last = self._last_scheduled.get(dataset)
        if last is not None and now - last < self.cooldown_seconds:
            self.logger.debug(
                "revalidation_skipped_cooldown",
                dataset=dataset,
                seconds_since_last=round(now - last, 1),
            )
            return False

        self._last_scheduled[dataset] = now
        task = asyncio.get_running_loop().create_task(self._run(dataset))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        self.logger.info("revalidation_scheduled", dataset=dataset)
        return True

    async def _run(self, dataset: str) -> None:
        try:
            await self.refresh_fn(dataset)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.logger.error(
                "revalidation_failed",
                dataset=dataset,
                error_type=type(e).__name__,
                error=str(e),
            )

    async def wait(self) -> None:
        """Block until every scheduled refresh has finished."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def aclose(self) -> None:
        """Cancel outstanding refreshes."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
