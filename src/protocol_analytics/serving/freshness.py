"""Freshness controller: decides, per read, what the caller gets back.

FRESH        age below the dataset ceiling      -> cached snapshot, unchanged
STALE        age at or above the ceiling
             soft ceiling                       -> cached snapshot + background revalidation
             hard ceiling                       -> live recomputation, cached value dropped
NO_SNAPSHOT  store miss or outage               -> live recomputation

Live results are unvalidated and uncompacted and are never persisted here.
Read-path callers never see a pipeline exception from the cache side.
"""

import enum
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Literal

from protocol_analytics.infrastructure.observability import get_serving_logger
from protocol_analytics.serving.revalidation import RevalidationScheduler
from protocol_analytics.shared.models.policies import FreshnessPolicy
from protocol_analytics.shared.models.snapshots import MetricSnapshot
from protocol_analytics.storage.gateway import CacheGateway

LiveFn = Callable[[str], Awaitable[MetricSnapshot]]


class FreshnessState(str, enum.Enum):
    FRESH = "fresh"
    STALE = "stale"
    NO_SNAPSHOT = "no_snapshot"


def classify(
    snapshot: MetricSnapshot | None, policy: FreshnessPolicy, now: datetime
) -> FreshnessState:
    """
    >>> classify(None, FreshnessPolicy(), datetime.now(timezone.utc)).value
    'no_snapshot'
    """
    if snapshot is None:
        return FreshnessState.NO_SNAPSHOT
    if now - snapshot.last_updated >= policy.ceiling:
        return FreshnessState.STALE
    return FreshnessState.FRESH


@dataclass
class ServedSnapshot:
    snapshot: MetricSnapshot
    state: FreshnessState
    origin: Literal["cache", "live"]
    revalidation_scheduled: bool = False


class FreshnessController:
    """Serves dataset snapshots according to each dataset's FreshnessPolicy."""

    def __init__(
        self,
        gateway: CacheGateway,
        live_fn: LiveFn,
        scheduler: RevalidationScheduler | None,
        policies: Mapping[str, FreshnessPolicy],
        clock: Callable[[], datetime] | None = None,
    ):
        self.gateway = gateway
        self.live_fn = live_fn
        self.scheduler = scheduler
        self.policies = policies
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.logger = get_serving_logger("freshness")

    def policy(self, dataset: str) -> FreshnessPolicy:
        return self.policies.get(dataset) or FreshnessPolicy()

    async def serve(self, dataset: str) -> ServedSnapshot:
        policy = self.policy(dataset)
        cached = await self.gateway.read(dataset)
        now = self._clock()
        state = classify(cached, policy, now)
        log = self.logger.bind(
            dataset=dataset,
            state=state.value,
            ceiling_hours=policy.ceiling_hours,
            hard_ceiling=policy.hard_ceiling,
        )
        if cached is not None:
            log = log.bind(age_hours=round((now - cached.last_updated).total_seconds() / 3600, 2))

        if state is FreshnessState.FRESH:
            log.info("freshness_decision", origin="cache")
            return ServedSnapshot(cached, state, "cache")

        if state is FreshnessState.STALE and not policy.hard_ceiling:
            scheduled = self.scheduler.request(dataset) if self.scheduler else False
            log.info("freshness_decision", origin="cache", revalidation=scheduled)
            return ServedSnapshot(cached, state, "cache", revalidation_scheduled=scheduled)

        log.info("freshness_decision", origin="live")
        live = await self.live_fn(dataset)
        return ServedSnapshot(live, state, "live")
