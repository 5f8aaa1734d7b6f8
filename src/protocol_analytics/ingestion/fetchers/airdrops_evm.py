"""Metric fetchers for the EVM airdrops (Merkle campaign) indexer."""

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
from protocol_analytics.ingestion.fetchers.lockup_evm import SERIES_START
from protocol_analytics.shared.models.enums import SourceName
from protocol_analytics.shared.models.snapshots import (
    Activity24Hours,
    ChainShare,
    PeriodCount,
    RecipientParticipation,
    TimeSeriesPoint,
    TopCampaign,
    VestingDistribution,
    WindowCounts,
)

SOURCE = SourceName.AIRDROPS_EVM

CAMPAIGN_MONTHS = 12
# Campaigns below this many claims are test or abandoned drops
MIN_CLAIMS = 10
TOP_CAMPAIGNS_SCAN = 10

_CLAIM = 'category: { _eq: "Claim" }'
_SIGNIFICANT = f'claimedCount: {{ _gte: "{MIN_CLAIMS}" }}'


async def fetch_total_users(ctx: FetchContext) -> int:
    return await hasura.count(ctx, SOURCE, "Action", distinct_column="from")


async def fetch_total_transactions(ctx: FetchContext) -> int:
    return await hasura.count(ctx, SOURCE, "Action")


async def fetch_total_claims(ctx: FetchContext) -> int:
    return await hasura.count(ctx, SOURCE, "Action", _CLAIM)


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


async def fetch_activity_24_hours(ctx: FetchContext) -> Activity24Hours:
    since = ctx.since(hours=24)
    counts = await hasura.aliased_counts(
        ctx,
        SOURCE,
        "Action",
        {
            "claims": (_CLAIM, f'timestamp: {{ _gte: "{since}" }}'),
            "transactions": (f'timestamp: {{ _gte: "{since}" }}',),
        },
    )
    return Activity24Hours(
        claims_created=counts["claims"], total_transactions=counts["transactions"]
    )


async def fetch_total_campaigns(ctx: FetchContext) -> int:
    return await hasura.count(ctx, SOURCE, "Campaign")


async def fetch_monthly_campaign_creation(ctx: FetchContext) -> list[PeriodCount]:
    months = last_n_months(ctx.now, CAMPAIGN_MONTHS)
    return await hasura.created_per_month(ctx, SOURCE, "Campaign", months)


async def fetch_monthly_claim_trends(ctx: FetchContext) -> list[PeriodCount]:
    months = last_n_months(ctx.now, CAMPAIGN_MONTHS)
    return await hasura.created_per_month(ctx, SOURCE, "Action", months, _CLAIM)


async def fetch_recipient_participation(ctx: FetchContext) -> RecipientParticipation:
    rows = await hasura.rows(
        ctx, SOURCE, "Campaign", "claimedCount totalRecipients", _SIGNIFICANT
    )
    claimed = sum(int(row["claimedCount"]) for row in rows)
    recipients = sum(int(row["totalRecipients"]) for row in rows)
    percentage = claimed / recipients * 100 if recipients else 0.0
    return RecipientParticipation(
        percentage=round(percentage, 1), campaign_count=len(rows)
    )


async def fetch_median_claimers(ctx: FetchContext) -> float:
    rows = await hasura.rows(ctx, SOURCE, "Campaign", "claimedCount", _SIGNIFICANT)
    return float(round(median([int(row["claimedCount"]) for row in rows])))


async def fetch_median_claim_window(ctx: FetchContext) -> float:
    """Median days between campaign creation and expiration."""
    rows = await hasura.rows(
        ctx,
        SOURCE,
        "Campaign",
        "timestamp expiration",
        "expiration: { _is_null: false }",
        'expiration: { _neq: "0" }',
    )
    windows = [
        (int(row["expiration"]) - int(row["timestamp"])) / 86400
        for row in rows
        if int(row["expiration"]) > int(row["timestamp"])
    ]
    return float(round(median(windows)))


async def fetch_vesting_distribution(ctx: FetchContext) -> VestingDistribution:
    counts = await hasura.aliased_counts(
        ctx,
        SOURCE,
        "Campaign",
        {
            "instant": ('_or: [{ lockup: { _is_null: true } }, { lockup: { _eq: "" } }]',),
            "vesting": ("lockup: { _is_null: false }", 'lockup: { _neq: "" }'),
        },
    )
    return VestingDistribution(**counts)


async def fetch_chain_distribution(ctx: FetchContext) -> list[ChainShare]:
    rows = await hasura.rows(ctx, SOURCE, "Campaign", "chainId")
    counts = Counter(str(row["chainId"]) for row in rows)
    return [ChainShare(chain_id=chain, count=n) for chain, n in counts.items()]


async def fetch_top_performing_campaigns(ctx: FetchContext) -> list[TopCampaign]:
    query = (
        "query TopCampaigns { Campaign(where: "
        f"{hasura.mainnet_filter(ctx, _SIGNIFICANT)}, "
        f"order_by: {{ claimedCount: desc }}, limit: {TOP_CAMPAIGNS_SCAN}) {{ "
        "id chainId claimedCount totalRecipients timestamp expiration admin } }"
    )
    data = await ctx.connector(SOURCE).query(query)
    campaigns = []
    for row in data.get("Campaign") or []:
        claimed = int(row["claimedCount"])
        recipients = int(row["totalRecipients"])
        expiration = int(row.get("expiration") or 0)
        campaigns.append(
            TopCampaign(
                id=row["id"],
                chain_id=str(row["chainId"]),
                chain_name=ctx.chain_name(str(row["chainId"])),
                claimed_count=claimed,
                total_recipients=recipients,
                claim_rate=claimed / recipients * 100 if recipients else 0.0,
                admin=row.get("admin"),
                timestamp=datetime.fromtimestamp(int(row["timestamp"]), tz=timezone.utc),
                expiration=(
                    datetime.fromtimestamp(expiration, tz=timezone.utc)
                    if expiration
                    else None
                ),
            )
        )
    return campaigns


async def _stablecoin_volume(ctx: FetchContext, *conditions: str) -> float:
    symbols = json.dumps(list(ctx.evm_stablecoins))
    rows = await hasura.rows(
        ctx,
        SOURCE,
        "Campaign",
        "aggregateAmount asset { decimals }",
        f"asset: {{ symbol: {{ _in: {symbols} }} }}",
        *conditions,
    )
    return sum(
        normalize_amount(row["aggregateAmount"], row["asset"]["decimals"])
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
