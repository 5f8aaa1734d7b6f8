"""Solana-only analytics."""

from protocol_analytics.ingestion.fetchers import solana_airdrops, solana_lockup
from protocol_analytics.processing.aggregator import (
    DatasetDefinition,
    MetricSpec,
    fetcher,
    ranked,
    single,
)
from protocol_analytics.shared.models.enums import DatasetKey
from protocol_analytics.shared.models.snapshots import SolanaSnapshot


def _zero() -> int:
    return 0


def _empty() -> list:
    return []


def _metric(field, module, fetch, fallback=_zero, combine=single) -> MetricSpec:
    return MetricSpec(field, (fetcher(field, module.SOURCE, fetch, fallback),), combine)


SOLANA = DatasetDefinition(
    key=DatasetKey.SOLANA_ANALYTICS.value,
    snapshot_model=SolanaSnapshot,
    metrics=(
        _metric("mau", solana_lockup, solana_lockup.fetch_mau),
        _metric("total_users", solana_lockup, solana_lockup.fetch_total_users),
        _metric("total_streams", solana_lockup, solana_lockup.fetch_total_streams),
        _metric(
            "total_campaigns", solana_airdrops, solana_airdrops.fetch_total_campaigns
        ),
        _metric(
            "top_spl_tokens",
            solana_lockup,
            solana_lockup.fetch_top_spl_tokens,
            _empty,
            ranked,
        ),
        _metric(
            "total_transactions", solana_lockup, solana_lockup.fetch_total_transactions
        ),
        _metric("streams_24h", solana_lockup, solana_lockup.fetch_streams_24h),
        _metric("claims_24h", solana_airdrops, solana_airdrops.fetch_claims_24h),
    ),
)
