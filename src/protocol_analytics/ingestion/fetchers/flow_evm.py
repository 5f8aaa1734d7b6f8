"""Metric fetchers for the EVM flow (open-ended streams) indexer."""

import json

from protocol_analytics.ingestion.fetchers import hasura
from protocol_analytics.ingestion.fetchers.base import FetchContext, normalize_amount
from protocol_analytics.shared.models.enums import SourceName
from protocol_analytics.shared.models.snapshots import WindowCounts

SOURCE = SourceName.FLOW_EVM

_DEPOSIT = 'category: { _eq: "Deposit" }'


async def fetch_total_deposits(ctx: FetchContext) -> int:
    return await hasura.count(ctx, SOURCE, "Action", _DEPOSIT)


async def _stablecoin_volume(ctx: FetchContext, *conditions: str) -> float:
    symbols = json.dumps(list(ctx.evm_stablecoins))
    rows = await hasura.rows(
        ctx,
        SOURCE,
        "Action",
        "amountA stream { asset { decimals } }",
        _DEPOSIT,
        f"stream: {{ asset: {{ symbol: {{ _in: {symbols} }} }} }}",
        *conditions,
    )
    return sum(
        normalize_amount(row["amountA"], row["stream"]["asset"]["decimals"])
        for row in rows
    )


async def fetch_stablecoin_volume(ctx: FetchContext) -> float:
    return await _stablecoin_volume(ctx)


async def fetch_time_based_stablecoin_volume(ctx: FetchContext) -> WindowCounts:
    volumes = {
        name: await _stablecoin_volume(ctx, f'timestamp: {{ _gte: "{start}" }}')
        for name, start in ctx.window_starts().items()
    }
    return WindowCounts(**volumes)
