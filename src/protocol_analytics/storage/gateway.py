"""Cache gateway: the only path between snapshots and the key-value store.

- ``publish`` is whole-snapshot upsert-replace of one key; failures propagate
  as StoreWriteError.
- ``read`` never raises: a missing key, a store outage or a payload that no
  longer validates all come back as None ("no snapshot").
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from protocol_analytics.infrastructure.observability import get_storage_logger
from protocol_analytics.processing.compaction import estimate_size_bytes, format_bytes
from protocol_analytics.shared.exceptions import StoreReadError
from protocol_analytics.shared.models.snapshots import SNAPSHOT_MODELS, MetricSnapshot
from protocol_analytics.storage.ports import IKeyValueStore


@dataclass
class CacheInfo:
    """Presence and coarse age of one dataset's snapshot."""

    dataset: str
    is_cached: bool
    last_updated: datetime | None = None
    age: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "dataset": self.dataset,
            "is_cached": self.is_cached,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
            "age": self.age,
        }


def describe_age(last_updated: datetime, now: datetime) -> str:
    hours = max(0, int((now - last_updated).total_seconds() // 3600))
    if hours < 24:
        return f"{hours} hours ago"
    return f"{hours // 24} days ago"


class CacheGateway:
    """Publishes and reads dataset snapshots through an IKeyValueStore."""

    def __init__(self, store: IKeyValueStore):
        self.store = store
        self.logger = get_storage_logger("cache-gateway")

    async def publish(self, dataset: str, snapshot: MetricSnapshot) -> int:
        """Upsert the snapshot under ``dataset``; returns the payload size.

        Raises:
            StoreWriteError: The store did not acknowledge the write
        """
        value = snapshot.to_cache_value()
        size = estimate_size_bytes(value)
        await self.store.upsert(dataset, value)
        self.logger.info(
            "snapshot_published",
            dataset=dataset,
            last_updated=snapshot.last_updated.isoformat(),
            size_bytes=size,
            size=format_bytes(size),
        )
        return size

    async def read(self, dataset: str) -> MetricSnapshot | None:
        model = SNAPSHOT_MODELS.get(dataset)
        if model is None:
            self.logger.warning("cache_read_failed", dataset=dataset, error="unknown dataset")
            return None

        try:
            raw = await self.store.get(dataset)
        except StoreReadError as e:
            self.logger.warning("cache_read_failed", dataset=dataset, error=str(e))
            return None

        if raw is None:
            self.logger.info("cache_miss", dataset=dataset)
            return None

        try:
            return model.from_cache_value(raw)
        except ValidationError as e:
            self.logger.warning(
                "cache_read_failed",
                dataset=dataset,
                error="invalid payload",
                errors=e.error_count(),
            )
            return None

    async def cache_info(
        self, dataset: str, now: datetime | None = None
    ) -> CacheInfo:
        snapshot = await self.read(dataset)
        if snapshot is None:
            return CacheInfo(dataset=dataset, is_cached=False)
        now = now or datetime.now(timezone.utc)
        return CacheInfo(
            dataset=dataset,
            is_cached=True,
            last_updated=snapshot.last_updated,
            age=describe_age(snapshot.last_updated, now),
        )
