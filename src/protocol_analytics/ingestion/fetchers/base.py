"""Metric fetcher contract.

A fetcher is one async function producing one typed value for one source.
It never sees another fetcher's result. Failures are contained by
``run_fetcher``, which turns any exception into the fetcher's typed fallback
so a single upstream hiccup degrades one number instead of the whole cycle.
"""

from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Generic, TypeVar

from protocol_analytics.infrastructure.observability import get_ingestion_logger
from protocol_analytics.ingestion.connectors.graphql import GraphQLConnector
from protocol_analytics.ingestion.token_metadata import TokenMetadataResolver
from protocol_analytics.shared.models.enums import SourceName

T = TypeVar("T")

# Trailing windows reported by every "time based" metric
WINDOWS: dict[str, int] = {
    "past_30_days": 30,
    "past_90_days": 90,
    "past_180_days": 180,
    "past_year": 365,
}


@dataclass
class FetchContext:
    """Everything a fetcher may read. Shared by all fetchers of a cycle."""

    connectors: Mapping[SourceName, GraphQLConnector]
    now: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    testnet_chain_ids: Sequence[str] = ()
    chain_names: Mapping[str, str] = field(default_factory=dict)
    evm_stablecoins: Sequence[str] = ()
    solana_stablecoin_mints: Sequence[str] = ()
    token_metadata: TokenMetadataResolver | None = None

    def connector(self, source: SourceName) -> GraphQLConnector:
        return self.connectors[source]

    def chain_name(self, chain_id: str) -> str:
        return self.chain_names.get(chain_id, f"Chain {chain_id}")

    def since(self, **delta: float) -> int:
        """Unix seconds of ``now - timedelta(**delta)``."""
        return int((self.now - timedelta(**delta)).timestamp())

    def window_starts(self) -> dict[str, int]:
        return {name: self.since(days=days) for name, days in WINDOWS.items()}


@dataclass(frozen=True)
class MetricFetcher(Generic[T]):
    """One metric from one source, with the value used when it fails."""

    metric: str
    source: SourceName
    fetch: Callable[[FetchContext], Awaitable[T]]
    fallback: Callable[[], T]


@dataclass
class SourceResult(Generic[T]):
    """Outcome of one fetcher in one cycle. Never persisted."""

    metric: str
    source: SourceName
    value: T
    failed: bool = False
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "metric": self.metric,
            "source": self.source.value,
            "failed": self.failed,
            "error": self.error,
        }


async def run_fetcher(fetcher: MetricFetcher[T], ctx: FetchContext) -> SourceResult[T]:
    """Run one fetcher, substituting its fallback on any failure."""
    try:
        value = await fetcher.fetch(ctx)
    except Exception as e:
        logger = get_ingestion_logger("fetcher", source=fetcher.source.value)
        logger.warning(
            "fetcher_failed",
            metric=fetcher.metric,
            error_type=type(e).__name__,
            error=str(e),
        )
        return SourceResult(
            metric=fetcher.metric,
            source=fetcher.source,
            value=fetcher.fallback(),
            failed=True,
            error=f"{type(e).__name__}: {e}",
        )

    return SourceResult(metric=fetcher.metric, source=fetcher.source, value=value)


# ---------------------------------------------------------------------------
# Helpers shared by source modules
# ---------------------------------------------------------------------------


def month_label(moment: datetime) -> str:
    return f"{moment.year:04d}-{moment.month:02d}"


def month_boundaries(
    start: datetime, now: datetime
) -> list[tuple[str, int, int]]:
    """(label, first second, last second) of every month from start to now."""
    months = []
    year, month = start.year, start.month
    while (year, month) <= (now.year, now.month):
        first = datetime(year, month, 1, tzinfo=timezone.utc)
        year, month = (year + 1, 1) if month == 12 else (year, month + 1)
        following = datetime(year, month, 1, tzinfo=timezone.utc)
        months.append(
            (month_label(first), int(first.timestamp()), int(following.timestamp()) - 1)
        )
    return months


def last_n_months(now: datetime, n: int) -> list[tuple[str, int, int]]:
    year, month = now.year, now.month - (n - 1)
    while month <= 0:
        year, month = year - 1, month + 12
    return month_boundaries(datetime(year, month, 1, tzinfo=timezone.utc), now)


def median(values: Sequence[float]) -> float:
    ordered = sorted(values)
    if not ordered:
        return 0.0
    mid = len(ordered) // 2
    if len(ordered) % 2:
        return float(ordered[mid])
    return (ordered[mid - 1] + ordered[mid]) / 2


def aggregate_count(data: Mapping[str, Any], alias: str) -> int:
    """Read ``<alias> { aggregate { count } }`` out of a query result."""
    node = data.get(alias) or {}
    return int((node.get("aggregate") or {}).get("count") or 0)


def normalize_amount(raw: str | int, decimals: int | str) -> float:
    return int(raw) / 10 ** int(decimals)
