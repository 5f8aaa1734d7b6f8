"""Push-down aggregate queries shared by the Hasura-style EVM indexers.

Every EVM indexer exposes ``<Entity>_aggregate`` roots, so counts, windowed
counts and month-end cumulative counts are computed upstream in one request
instead of paginating raw rows.
"""

import json
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from protocol_analytics.ingestion.fetchers.base import (
    FetchContext,
    aggregate_count,
    month_boundaries,
)
from protocol_analytics.shared.models.enums import SourceName
from protocol_analytics.shared.models.snapshots import (
    PeriodCount,
    TimeSeriesPoint,
    WindowCounts,
)


def mainnet_filter(ctx: FetchContext, *conditions: str) -> str:
    """``where`` body excluding testnet chains, plus extra conditions."""
    parts = [f"chainId: {{ _nin: {json.dumps(list(ctx.testnet_chain_ids))} }}"]
    parts.extend(conditions)
    return "{ " + " ".join(parts) + " }"


def count_field(distinct_column: str | None = None) -> str:
    if distinct_column:
        return f"count(columns: {distinct_column}, distinct: true)"
    return "count"


async def count(
    ctx: FetchContext,
    source: SourceName,
    entity: str,
    *conditions: str,
    distinct_column: str | None = None,
) -> int:
    query = (
        f"query Count{entity} {{ total: {entity}_aggregate(where: "
        f"{mainnet_filter(ctx, *conditions)}) {{ aggregate {{ "
        f"{count_field(distinct_column)} }} }} }}"
    )
    data = await ctx.connector(source).query(query)
    return aggregate_count(data, "total")


async def aliased_counts(
    ctx: FetchContext,
    source: SourceName,
    entity: str,
    aliases: dict[str, Sequence[str]],
    distinct_column: str | None = None,
) -> dict[str, int]:
    """Several filtered counts of one entity in a single request."""
    selections = "\n".join(
        f"{alias}: {entity}_aggregate(where: {mainnet_filter(ctx, *conds)}) "
        f"{{ aggregate {{ {count_field(distinct_column)} }} }}"
        for alias, conds in aliases.items()
    )
    data = await ctx.connector(source).query(f"query Counts{entity} {{\n{selections}\n}}")
    return {alias: aggregate_count(data, alias) for alias in aliases}


async def window_counts(
    ctx: FetchContext,
    source: SourceName,
    entity: str,
    *conditions: str,
    distinct_column: str | None = None,
) -> WindowCounts:
    aliases = {
        name: (*conditions, f'timestamp: {{ _gte: "{start}" }}')
        for name, start in ctx.window_starts().items()
    }
    counts = await aliased_counts(
        ctx, source, entity, aliases, distinct_column=distinct_column
    )
    return WindowCounts(**counts)


async def cumulative_by_month(
    ctx: FetchContext,
    source: SourceName,
    entity: str,
    start: datetime,
    *conditions: str,
    distinct_column: str | None = None,
) -> list[TimeSeriesPoint]:
    """Count as of the last second of every month since ``start``.

    Incrementals are left at zero; the aggregator derives them after summing
    sources per period.
    """
    months = month_boundaries(start, ctx.now)
    aliases = {
        f"m{index}": (*conditions, f'timestamp: {{ _lte: "{end}" }}')
        for index, (_, _, end) in enumerate(months)
    }
    counts = await aliased_counts(
        ctx, source, entity, aliases, distinct_column=distinct_column
    )
    return [
        TimeSeriesPoint(period=label, cumulative=counts[f"m{index}"], incremental=0)
        for index, (label, _, _) in enumerate(months)
        if counts[f"m{index}"] > 0
    ]


async def created_per_month(
    ctx: FetchContext,
    source: SourceName,
    entity: str,
    months: list[tuple[str, int, int]],
    *conditions: str,
) -> list[PeriodCount]:
    aliases = {
        f"m{index}": (*conditions, f'timestamp: {{ _gte: "{first}", _lte: "{last}" }}')
        for index, (_, first, last) in enumerate(months)
    }
    counts = await aliased_counts(ctx, source, entity, aliases)
    return [
        PeriodCount(period=label, count=counts[f"m{index}"])
        for index, (label, _, _) in enumerate(months)
    ]


async def rows(
    ctx: FetchContext,
    source: SourceName,
    entity: str,
    selection: str,
    *conditions: str,
    order_by: str = "{ id: asc }",
) -> list[dict[str, Any]]:
    """Paginate raw rows of a mainnet-filtered entity.

    Ordered by ``id`` unless ``order_by`` is given; offset pages need a
    total order.
    """
    query = (
        f"query Rows{entity}($limit: Int!, $offset: Int!) {{ {entity}("
        f"where: {mainnet_filter(ctx, *conditions)}, limit: $limit, "
        f"offset: $offset, order_by: {order_by}) {{ {selection} }} }}"
    )
    return await ctx.connector(source).paginate(query, entity)
