"""Metric fetchers for the Solana lockup subgraph.

The subgraph has no aggregate roots, so every count walks the collection
page by page.
"""

import json

from protocol_analytics.ingestion.fetchers import subgraph
from protocol_analytics.ingestion.fetchers.base import FetchContext, normalize_amount
from protocol_analytics.shared.models.enums import SourceName
from protocol_analytics.shared.models.snapshots import (
    Activity24Hours,
    TopToken,
    WindowCounts,
)

SOURCE = SourceName.SOLANA_LOCKUP


async def fetch_total_users(ctx: FetchContext) -> int:
    """Distinct senders and recipients across all streams."""
    rows = await subgraph.rows(ctx, SOURCE, "streams", "sender recipient")
    addresses = {row["sender"] for row in rows} | {row["recipient"] for row in rows}
    return len(addresses)


async def fetch_mau(ctx: FetchContext) -> int:
    rows = await subgraph.rows(
        ctx,
        SOURCE,
        "actions",
        "from",
        subgraph.where_clause(timestamp_gte=ctx.since(days=30)),
    )
    return len({row["from"] for row in rows})


async def fetch_total_streams(ctx: FetchContext) -> int:
    return await subgraph.count(ctx, SOURCE, "streams")


async def fetch_total_transactions(ctx: FetchContext) -> int:
    return await subgraph.count(ctx, SOURCE, "actions")


async def fetch_streams_24h(ctx: FetchContext) -> int:
    return await subgraph.count(ctx, SOURCE, "streams", timestamp_gte=ctx.since(hours=24))


async def fetch_activity_24_hours(ctx: FetchContext) -> Activity24Hours:
    since = ctx.since(hours=24)
    streams = await subgraph.count(ctx, SOURCE, "streams", timestamp_gte=since)
    actions = await subgraph.count(ctx, SOURCE, "actions", timestamp_gte=since)
    return Activity24Hours(streams_created=streams, total_transactions=actions)


async def fetch_top_spl_tokens(ctx: FetchContext) -> list[TopToken]:
    """Assets ranked by stream count, labelled with token list metadata when known."""
    rows = await subgraph.rows(ctx, SOURCE, "assets", "mint streams { id }")
    tokens = sorted(
        (
            TopToken(mint=row["mint"], stream_count=len(row.get("streams") or []))
            for row in rows
        ),
        key=lambda token: token.stream_count,
        reverse=True,
    )
    if ctx.token_metadata is None or not tokens:
        return tokens

    metadata = await ctx.token_metadata.resolve([token.mint for token in tokens])
    return [
        token.model_copy(
            update={"symbol": metadata[token.mint].symbol, "name": metadata[token.mint].name}
        )
        if token.mint in metadata
        else token
        for token in tokens
    ]


async def _stablecoin_volume(ctx: FetchContext, extra: str = "") -> float:
    mints = json.dumps(list(ctx.solana_stablecoin_mints))
    where = f', where: {{ depositAmount_gt: "0", asset_: {{ mint_in: {mints} }}{extra} }}'
    rows = await subgraph.rows(
        ctx, SOURCE, "streams", "depositAmount asset { decimals }", where
    )
    return sum(
        normalize_amount(row["depositAmount"], row["asset"]["decimals"]) for row in rows
    )


async def fetch_stablecoin_volume(ctx: FetchContext) -> float:
    return await _stablecoin_volume(ctx)


async def fetch_time_based_stablecoin_volume(ctx: FetchContext) -> WindowCounts:
    volumes = {
        name: await _stablecoin_volume(ctx, f', timestamp_gte: "{start}"')
        for name, start in ctx.window_starts().items()
    }
    return WindowCounts(**volumes)
