"""Metric fetchers for the Solana airdrops subgraph."""

import json

from protocol_analytics.ingestion.fetchers import subgraph
from protocol_analytics.ingestion.fetchers.base import FetchContext, normalize_amount
from protocol_analytics.shared.models.enums import SourceName
from protocol_analytics.shared.models.snapshots import Activity24Hours, WindowCounts

SOURCE = SourceName.SOLANA_AIRDROPS


async def fetch_total_campaigns(ctx: FetchContext) -> int:
    return await subgraph.count(ctx, SOURCE, "campaigns")


async def fetch_total_claims(ctx: FetchContext) -> int:
    return await subgraph.count(ctx, SOURCE, "actions", category="Claim")


async def fetch_claims_24h(ctx: FetchContext) -> int:
    return await subgraph.count(
        ctx, SOURCE, "actions", category="Claim", timestamp_gte=ctx.since(hours=24)
    )


async def fetch_activity_24_hours(ctx: FetchContext) -> Activity24Hours:
    return Activity24Hours(claims_created=await fetch_claims_24h(ctx))


async def _stablecoin_volume(ctx: FetchContext, extra: str = "") -> float:
    mints = json.dumps(list(ctx.solana_stablecoin_mints))
    where = (
        f', where: {{ aggregateAmount_gt: "0", asset_: {{ mint_in: {mints} }}{extra} }}'
    )
    rows = await subgraph.rows(
        ctx, SOURCE, "campaigns", "aggregateAmount asset { decimals }", where
    )
    return sum(
        normalize_amount(row["aggregateAmount"], row["asset"]["decimals"])
        for row in rows
    )


async def fetch_stablecoin_volume(ctx: FetchContext) -> float:
    return await _stablecoin_volume(ctx)


async def fetch_time_based_stablecoin_volume(ctx: FetchContext) -> WindowCounts:
    volumes = {
        name: await _stablecoin_volume(ctx, f', timestamp_gte: "{start}"')
        for name, start in ctx.window_starts().items()
    }
    return WindowCounts(**volumes)
