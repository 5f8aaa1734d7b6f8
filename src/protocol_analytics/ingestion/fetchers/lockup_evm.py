"""Metric fetchers for the EVM lockup (streaming) indexer."""

import json
from collections import Counter
from datetime import datetime, timezone

from protocol_analytics.ingestion.fetchers import hasura
from protocol_analytics.ingestion.fetchers.base import (
    FetchContext,
    last_n_months,
    median,
    normalize_amount,
)
from protocol_analytics.shared.models.enums import SourceName
from protocol_analytics.shared.models.snapshots import (
    ActiveVsCompletedStreams,
    Activity24Hours,
    ChainShare,
    GrowthRateMetrics,
    PeriodCount,
    StablecoinStream,
    StreamAsset,
    StreamCategoryDistribution,
    StreamDurationStats,
    StreamProperties,
    TimeSeriesPoint,
    TopAsset,
    WindowCounts,
)

SOURCE = SourceName.LOCKUP_EVM

# First month with protocol activity
SERIES_START = datetime(2023, 7, 1, tzinfo=timezone.utc)

MONTHLY_STREAM_MONTHS = 24
LARGEST_STREAMS_SCAN = 100


def _stablecoin_condition(ctx: FetchContext) -> str:
    return f"asset: {{ symbol: {{ _in: {json.dumps(list(ctx.evm_stablecoins))} }} }}"


async def fetch_total_users(ctx: FetchContext) -> int:
    return await hasura.count(ctx, SOURCE, "Action", distinct_column="from")


async def fetch_total_transactions(ctx: FetchContext) -> int:
    return await hasura.count(ctx, SOURCE, "Action")


async def fetch_time_based_users(ctx: FetchContext) -> WindowCounts:
    return await hasura.window_counts(ctx, SOURCE, "Action", distinct_column="from")


async def fetch_time_based_transactions(ctx: FetchContext) -> WindowCounts:
    return await hasura.window_counts(ctx, SOURCE, "Action")


async def fetch_monthly_user_growth(ctx: FetchContext) -> list[TimeSeriesPoint]:
    return await hasura.cumulative_by_month(
        ctx, SOURCE, "Action", SERIES_START, distinct_column="from"
    )


async def fetch_monthly_transaction_growth(ctx: FetchContext) -> list[TimeSeriesPoint]:
    return await hasura.cumulative_by_month(ctx, SOURCE, "Action", SERIES_START)


async def fetch_monthly_stream_creation(ctx: FetchContext) -> list[PeriodCount]:
    months = last_n_months(ctx.now, MONTHLY_STREAM_MONTHS)
    return await hasura.created_per_month(ctx, SOURCE, "Stream", months)


async def fetch_total_vesting_streams(ctx: FetchContext) -> int:
    return await hasura.count(ctx, SOURCE, "Stream")


async def fetch_chain_distribution(ctx: FetchContext) -> list[ChainShare]:
    rows = await hasura.rows(ctx, SOURCE, "Stream", "chainId")
    counts = Counter(str(row["chainId"]) for row in rows)
    return [ChainShare(chain_id=chain, count=n) for chain, n in counts.items()]


async def fetch_top_assets(ctx: FetchContext) -> list[TopAsset]:
    rows = await hasura.rows(
        ctx,
        SOURCE,
        "Asset",
        "id address symbol name chainId decimals streams_aggregate { aggregate { count } }",
    )
    return [
        TopAsset(
            asset_id=row["id"],
            address=row["address"],
            symbol=row.get("symbol") or "",
            name=row.get("name") or "",
            chain_id=str(row["chainId"]),
            decimals=int(row["decimals"]),
            stream_count=int(row["streams_aggregate"]["aggregate"]["count"]),
        )
        for row in rows
    ]


async def fetch_growth_rate_metrics(ctx: FetchContext) -> GrowthRateMetrics:
    """Month-over-month change between the two most recent full months."""
    (_, prev_start, prev_end), (_, cur_start, cur_end) = last_n_months(ctx.now, 3)[:2]

    def span(first: int, last: int) -> tuple[str, ...]:
        return (f'timestamp: {{ _gte: "{first}", _lte: "{last}" }}',)

    users = await hasura.aliased_counts(
        ctx,
        SOURCE,
        "Action",
        {"current": span(cur_start, cur_end), "previous": span(prev_start, prev_end)},
        distinct_column="from",
    )
    txs = await hasura.aliased_counts(
        ctx,
        SOURCE,
        "Action",
        {"current": span(cur_start, cur_end), "previous": span(prev_start, prev_end)},
    )

    def rate(current: float, previous: float) -> float:
        return (current - previous) / previous * 100 if previous > 0 else 0.0

    current_avg = txs["current"] / users["current"] if users["current"] else 0.0
    previous_avg = txs["previous"] / users["previous"] if users["previous"] else 0.0
    return GrowthRateMetrics(
        user_growth_rate=rate(users["current"], users["previous"]),
        transaction_growth_rate=rate(txs["current"], txs["previous"]),
        average_transaction_growth_rate=rate(current_avg, previous_avg),
    )


async def fetch_stream_duration_stats(ctx: FetchContext) -> StreamDurationStats:
    rows = await hasura.rows(ctx, SOURCE, "Stream", "startTime endTime")
    durations = [
        int(row["endTime"]) - int(row["startTime"])
        for row in rows
        if int(row["endTime"]) > int(row["startTime"])
    ]
    if not durations:
        return StreamDurationStats()
    return StreamDurationStats(
        min=min(durations),
        max=max(durations),
        average=sum(durations) / len(durations),
        median=median(durations),
    )


async def fetch_stream_properties(ctx: FetchContext) -> StreamProperties:
    counts = await hasura.aliased_counts(
        ctx,
        SOURCE,
        "Stream",
        {
            "cancelable": ("cancelable: { _eq: true }",),
            "transferable": ("transferable: { _eq: true }",),
            "both": ("cancelable: { _eq: true }", "transferable: { _eq: true }"),
            "total": (),
        },
    )
    return StreamProperties(**counts)


async def fetch_stream_category_distribution(
    ctx: FetchContext,
) -> StreamCategoryDistribution:
    counts = await hasura.aliased_counts(
        ctx,
        SOURCE,
        "Stream",
        {
            "linear": ('category: { _eq: "LockupLinear" }',),
            "dynamic": ('category: { _eq: "LockupDynamic" }',),
            "tranched": ('category: { _eq: "LockupTranched" }',),
        },
    )
    return StreamCategoryDistribution(**counts, total=sum(counts.values()))


async def fetch_active_vs_completed_streams(
    ctx: FetchContext,
) -> ActiveVsCompletedStreams:
    now = int(ctx.now.timestamp())
    counts = await hasura.aliased_counts(
        ctx,
        SOURCE,
        "Stream",
        {
            "active": (f'endTime: {{ _gt: "{now}" }}', "canceled: { _eq: false }"),
            "completed": (f'endTime: {{ _lte: "{now}" }}',),
        },
    )
    return ActiveVsCompletedStreams(**counts, total=sum(counts.values()))


async def fetch_largest_stablecoin_streams(ctx: FetchContext) -> list[StablecoinStream]:
    query = (
        "query LargestStablecoinStreams { Stream(where: "
        f"{hasura.mainnet_filter(ctx, _stablecoin_condition(ctx))}, "
        f"order_by: {{ depositAmount: desc }}, limit: {LARGEST_STREAMS_SCAN}) {{ "
        "id tokenId depositAmount chainId contract startTime endTime sender recipient "
        "asset { symbol decimals address name } } }"
    )
    data = await ctx.connector(SOURCE).query(query)
    testnets = set(ctx.testnet_chain_ids)
    return [
        StablecoinStream(
            id=row["id"],
            token_id=str(row["tokenId"]),
            deposit_amount=str(row["depositAmount"]),
            chain_id=str(row["chainId"]),
            contract=row["contract"],
            start_time=datetime.fromtimestamp(int(row["startTime"]), tz=timezone.utc),
            end_time=datetime.fromtimestamp(int(row["endTime"]), tz=timezone.utc),
            sender=row.get("sender"),
            recipient=row.get("recipient"),
            asset=StreamAsset(
                symbol=row["asset"]["symbol"],
                decimals=int(row["asset"]["decimals"]),
                address=row["asset"].get("address"),
                name=row["asset"].get("name"),
            ),
        )
        for row in data.get("Stream") or []
        if str(row["chainId"]) not in testnets
    ]


async def fetch_activity_24_hours(ctx: FetchContext) -> Activity24Hours:
    since = ctx.since(hours=24)
    counts = await hasura.aliased_counts(
        ctx,
        SOURCE,
        "Action",
        {
            "streams": ('category: { _eq: "Create" }', f'timestamp: {{ _gte: "{since}" }}'),
            "transactions": (f'timestamp: {{ _gte: "{since}" }}',),
        },
    )
    return Activity24Hours(
        streams_created=counts["streams"], total_transactions=counts["transactions"]
    )


async def _stablecoin_volume(ctx: FetchContext, *conditions: str) -> float:
    rows = await hasura.rows(
        ctx,
        SOURCE,
        "Stream",
        "depositAmount asset { decimals }",
        _stablecoin_condition(ctx),
        *conditions,
    )
    return sum(
        normalize_amount(row["depositAmount"], row["asset"]["decimals"]) for row in rows
    )


async def fetch_stablecoin_volume(ctx: FetchContext) -> float:
    return await _stablecoin_volume(ctx)


async def fetch_time_based_stablecoin_volume(ctx: FetchContext) -> WindowCounts:
    volumes = {
        name: await _stablecoin_volume(ctx, f'timestamp: {{ _gte: "{start}" }}')
        for name, start in ctx.window_starts().items()
    }
    return WindowCounts(**volumes)
