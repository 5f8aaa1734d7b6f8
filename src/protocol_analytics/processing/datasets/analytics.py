"""General protocol analytics across every ecosystem."""

from typing import Any

from protocol_analytics.ingestion.fetchers import (
    airdrops_evm,
    flow_evm,
    lockup_evm,
    solana_airdrops,
    solana_lockup,
)
from protocol_analytics.processing.aggregator import (
    DatasetDefinition,
    MetricSpec,
    fetcher,
    ranked,
    single,
    sum_models,
    sum_scalars,
    sum_series,
    volume_breakdown,
)
from protocol_analytics.shared.models.enums import DatasetKey, SourceName
from protocol_analytics.shared.models.snapshots import (
    ActiveVsCompletedStreams,
    Activity24Hours,
    AnalyticsSnapshot,
    GrowthRateMetrics,
    StreamCategoryDistribution,
    StreamDurationStats,
    StreamProperties,
    WindowCounts,
)

LOCKUP = SourceName.LOCKUP_EVM
AIRDROPS = SourceName.AIRDROPS_EVM
FLOW = SourceName.FLOW_EVM
SOL_LOCKUP = SourceName.SOLANA_LOCKUP
SOL_AIRDROPS = SourceName.SOLANA_AIRDROPS


def _zero() -> int:
    return 0


def _zero_volume() -> float:
    return 0.0


def _empty() -> list:
    return []


def _derive(values: dict[str, Any]) -> dict[str, Any]:
    return {"total_stablecoin_volume": values["stablecoin_volume_breakdown"].total}


METRICS = (
    MetricSpec(
        "total_users",
        (
            fetcher("total_users", LOCKUP, lockup_evm.fetch_total_users, _zero),
            fetcher("total_users", AIRDROPS, airdrops_evm.fetch_total_users, _zero),
            fetcher("total_users", SOL_LOCKUP, solana_lockup.fetch_total_users, _zero),
        ),
        sum_scalars,
    ),
    MetricSpec(
        "total_transactions",
        (
            fetcher("total_transactions", LOCKUP, lockup_evm.fetch_total_transactions, _zero),
            fetcher(
                "total_transactions", AIRDROPS, airdrops_evm.fetch_total_transactions, _zero
            ),
            fetcher(
                "total_transactions",
                SOL_LOCKUP,
                solana_lockup.fetch_total_transactions,
                _zero,
            ),
        ),
        sum_scalars,
    ),
    MetricSpec(
        "total_claims",
        (
            fetcher("total_claims", AIRDROPS, airdrops_evm.fetch_total_claims, _zero),
            fetcher("total_claims", SOL_AIRDROPS, solana_airdrops.fetch_total_claims, _zero),
        ),
        sum_scalars,
    ),
    MetricSpec(
        "stablecoin_volume_breakdown",
        (
            fetcher("stablecoin_volume", LOCKUP, lockup_evm.fetch_stablecoin_volume, _zero_volume),
            fetcher("stablecoin_volume", FLOW, flow_evm.fetch_stablecoin_volume, _zero_volume),
            fetcher(
                "stablecoin_volume", AIRDROPS, airdrops_evm.fetch_stablecoin_volume, _zero_volume
            ),
            fetcher(
                "stablecoin_volume",
                SOL_LOCKUP,
                solana_lockup.fetch_stablecoin_volume,
                _zero_volume,
            ),
            fetcher(
                "stablecoin_volume",
                SOL_AIRDROPS,
                solana_airdrops.fetch_stablecoin_volume,
                _zero_volume,
            ),
        ),
        volume_breakdown,
    ),
    MetricSpec(
        "time_based_users",
        (
            fetcher("time_based_users", LOCKUP, lockup_evm.fetch_time_based_users, WindowCounts),
            fetcher(
                "time_based_users", AIRDROPS, airdrops_evm.fetch_time_based_users, WindowCounts
            ),
        ),
        sum_models(WindowCounts),
    ),
    MetricSpec(
        "time_based_transactions",
        (
            fetcher(
                "time_based_transactions",
                LOCKUP,
                lockup_evm.fetch_time_based_transactions,
                WindowCounts,
            ),
            fetcher(
                "time_based_transactions",
                AIRDROPS,
                airdrops_evm.fetch_time_based_transactions,
                WindowCounts,
            ),
        ),
        sum_models(WindowCounts),
    ),
    MetricSpec(
        "time_based_stablecoin_volume",
        tuple(
            fetcher(
                "time_based_stablecoin_volume",
                module.SOURCE,
                module.fetch_time_based_stablecoin_volume,
                WindowCounts,
            )
            for module in (lockup_evm, flow_evm, airdrops_evm, solana_lockup, solana_airdrops)
        ),
        sum_models(WindowCounts),
    ),
    MetricSpec(
        "monthly_user_growth",
        (
            fetcher("monthly_user_growth", LOCKUP, lockup_evm.fetch_monthly_user_growth, _empty),
            fetcher(
                "monthly_user_growth", AIRDROPS, airdrops_evm.fetch_monthly_user_growth, _empty
            ),
        ),
        sum_series,
    ),
    MetricSpec(
        "monthly_transaction_growth",
        (
            fetcher(
                "monthly_transaction_growth",
                LOCKUP,
                lockup_evm.fetch_monthly_transaction_growth,
                _empty,
            ),
            fetcher(
                "monthly_transaction_growth",
                AIRDROPS,
                airdrops_evm.fetch_monthly_transaction_growth,
                _empty,
            ),
        ),
        sum_series,
    ),
    MetricSpec(
        "monthly_stream_creation",
        (
            fetcher(
                "monthly_stream_creation",
                LOCKUP,
                lockup_evm.fetch_monthly_stream_creation,
                _empty,
            ),
        ),
        single,
    ),
    MetricSpec(
        "chain_distribution",
        (fetcher("chain_distribution", LOCKUP, lockup_evm.fetch_chain_distribution, _empty),),
        ranked,
    ),
    MetricSpec(
        "top_assets",
        (fetcher("top_assets", LOCKUP, lockup_evm.fetch_top_assets, _empty),),
        ranked,
    ),
    MetricSpec(
        "largest_stablecoin_streams",
        (
            fetcher(
                "largest_stablecoin_streams",
                LOCKUP,
                lockup_evm.fetch_largest_stablecoin_streams,
                _empty,
            ),
        ),
        ranked,
    ),
    MetricSpec(
        "growth_rate_metrics",
        (
            fetcher(
                "growth_rate_metrics",
                LOCKUP,
                lockup_evm.fetch_growth_rate_metrics,
                GrowthRateMetrics,
            ),
        ),
        single,
    ),
    MetricSpec(
        "stream_duration_stats",
        (
            fetcher(
                "stream_duration_stats",
                LOCKUP,
                lockup_evm.fetch_stream_duration_stats,
                StreamDurationStats,
            ),
        ),
        single,
    ),
    MetricSpec(
        "stream_properties",
        (
            fetcher(
                "stream_properties",
                LOCKUP,
                lockup_evm.fetch_stream_properties,
                StreamProperties,
            ),
        ),
        single,
    ),
    MetricSpec(
        "stream_category_distribution",
        (
            fetcher(
                "stream_category_distribution",
                LOCKUP,
                lockup_evm.fetch_stream_category_distribution,
                StreamCategoryDistribution,
            ),
        ),
        single,
    ),
    MetricSpec(
        "total_vesting_streams",
        (
            fetcher(
                "total_vesting_streams", LOCKUP, lockup_evm.fetch_total_vesting_streams, _zero
            ),
        ),
        single,
    ),
    MetricSpec(
        "active_vs_completed_streams",
        (
            fetcher(
                "active_vs_completed_streams",
                LOCKUP,
                lockup_evm.fetch_active_vs_completed_streams,
                ActiveVsCompletedStreams,
            ),
        ),
        single,
    ),
    MetricSpec(
        "activity_24_hours",
        tuple(
            fetcher(
                "activity_24_hours",
                module.SOURCE,
                module.fetch_activity_24_hours,
                Activity24Hours,
            )
            for module in (lockup_evm, airdrops_evm, solana_lockup, solana_airdrops)
        ),
        sum_models(Activity24Hours),
    ),
)

ANALYTICS = DatasetDefinition(
    key=DatasetKey.ANALYTICS.value,
    snapshot_model=AnalyticsSnapshot,
    metrics=METRICS,
    derive=_derive,
)
