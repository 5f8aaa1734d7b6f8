"""Cross-source aggregator.

Runs every metric fetcher of a dataset concurrently, waits for all of them to
settle, then folds the per-source results of each metric into one value.

Merge rules:
- scalars split across ecosystems are summed arithmetically; an identity
  active on two ecosystems is counted twice
- per-period series are summed per period, incrementals re-derived
- ranked lists are concatenated and ordered by each entry's ranking key
"""

import asyncio
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, TypeVar

from pydantic import BaseModel

from protocol_analytics.infrastructure.observability import get_processing_logger
from protocol_analytics.ingestion.fetchers.base import (
    FetchContext,
    MetricFetcher,
    SourceResult,
    run_fetcher,
)
from protocol_analytics.processing.series import (
    sum_counts_by_period,
    sum_series_by_period,
)
from protocol_analytics.shared.models.enums import SourceName
from protocol_analytics.shared.models.snapshots import (
    MetricSnapshot,
    RankedEntry,
    StablecoinVolumeBreakdown,
)

M = TypeVar("M", bound=BaseModel)

Combiner = Callable[[Sequence[SourceResult]], Any]

logger = get_processing_logger("aggregator")


# =============================================================================
# COMBINERS
# =============================================================================


def sum_scalars(results: Sequence[SourceResult]) -> float:
    """Arithmetic sum of every source's value (fallbacks included)."""
    total = sum(result.value for result in results)
    if results:
        logger.info(
            "source_breakdown",
            metric=results[0].metric,
            total=total,
            sources={result.source.value: result.value for result in results},
            failed_sources=[result.source.value for result in results if result.failed],
        )
    return total


def sum_models(model: type[M]) -> Combiner:
    """Field-wise sum of flat numeric models (window counts, 24h activity)."""

    def combine(results: Sequence[SourceResult]) -> M:
        totals: dict[str, float] = {name: 0 for name in model.model_fields}
        for result in results:
            for name in totals:
                totals[name] += getattr(result.value, name)
        return model(**totals)

    return combine


def sum_series(results: Sequence[SourceResult]) -> list:
    return sum_series_by_period(result.value for result in results)


def sum_period_counts(results: Sequence[SourceResult]) -> list:
    return sum_counts_by_period(result.value for result in results)


def single(results: Sequence[SourceResult]) -> Any:
    """Metric served by exactly one source."""
    return results[0].value


def ranked(results: Sequence[SourceResult]) -> list[RankedEntry]:
    """Concatenate entries and fix their order by descending ranking key."""
    entries: list[RankedEntry] = [entry for result in results for entry in result.value]
    return sorted(entries, key=lambda entry: entry.ranking_key(), reverse=True)


BREAKDOWN_FIELDS: dict[SourceName, str] = {
    SourceName.LOCKUP_EVM: "evm_lockup",
    SourceName.FLOW_EVM: "evm_flow",
    SourceName.AIRDROPS_EVM: "evm_airdrops",
    SourceName.SOLANA_LOCKUP: "solana_lockup",
    SourceName.SOLANA_AIRDROPS: "solana_airdrops",
}


def volume_breakdown(results: Sequence[SourceResult]) -> StablecoinVolumeBreakdown:
    per_source = {BREAKDOWN_FIELDS[result.source]: result.value for result in results}
    return StablecoinVolumeBreakdown(
        **per_source, total=sum_scalars(results)
    )


# =============================================================================
# DEFINITIONS
# =============================================================================


@dataclass(frozen=True)
class MetricSpec:
    """One snapshot field: the fetchers feeding it and how they combine."""

    field: str
    fetchers: tuple[MetricFetcher, ...]
    combine: Combiner = sum_scalars


def fetcher(
    metric: str,
    source: SourceName,
    fetch: Callable,
    fallback: Callable[[], Any],
) -> MetricFetcher:
    return MetricFetcher(metric=metric, source=source, fetch=fetch, fallback=fallback)


@dataclass(frozen=True)
class DatasetDefinition:
    """Fetcher table and merge rules of one published dataset."""

    key: str
    snapshot_model: type[MetricSnapshot]
    metrics: tuple[MetricSpec, ...]
    derive: Callable[[dict[str, Any]], dict[str, Any]] | None = None

    @property
    def metric_names(self) -> list[str]:
        return [spec.field for spec in self.metrics]

    def select(self, names: Sequence[str]) -> tuple[MetricSpec, ...]:
        unknown = set(names) - set(self.metric_names)
        if unknown:
            raise ValueError(
                f"Unknown metrics for {self.key}: {', '.join(sorted(unknown))}"
            )
        return tuple(spec for spec in self.metrics if spec.field in names)

    def build(self, values: dict[str, Any], last_updated: datetime) -> MetricSnapshot:
        if self.derive:
            values = {**values, **self.derive(values)}
        return self.snapshot_model(**values, last_updated=last_updated)


@dataclass
class AggregationOutcome:
    values: dict[str, Any]
    results: list[SourceResult] = field(default_factory=list)

    @property
    def failed(self) -> list[SourceResult]:
        return [result for result in self.results if result.failed]


# =============================================================================
# AGGREGATOR
# =============================================================================


class CrossSourceAggregator:
    """Fan out all fetchers of a dataset, fan in once every one has settled."""

    async def collect(
        self, specs: Sequence[MetricSpec], ctx: FetchContext
    ) -> AggregationOutcome:
        plan = [(spec, item) for spec in specs for item in spec.fetchers]
        # run_fetcher never raises, so gather settles every fetcher
        results = await asyncio.gather(*(run_fetcher(item, ctx) for _, item in plan))

        grouped: dict[str, list[SourceResult]] = {spec.field: [] for spec in specs}
        for (spec, _), result in zip(plan, results):
            grouped[spec.field].append(result)

        values = {spec.field: spec.combine(grouped[spec.field]) for spec in specs}
        outcome = AggregationOutcome(values=values, results=list(results))

        logger.info(
            "aggregation_complete",
            metrics=len(specs),
            fetchers=len(plan),
            failed=[f"{r.source.value}:{r.metric}" for r in outcome.failed],
        )
        return outcome

    async def aggregate(
        self, definition: DatasetDefinition, ctx: FetchContext
    ) -> MetricSnapshot:
        """Build a complete, unvalidated and uncompacted snapshot."""
        outcome = await self.collect(definition.metrics, ctx)
        return definition.build(outcome.values, last_updated=ctx.now)
