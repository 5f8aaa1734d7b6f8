"""Claims / airdrop campaign analytics (EVM campaigns)."""

from protocol_analytics.ingestion.fetchers import airdrops_evm
from protocol_analytics.processing.aggregator import (
    DatasetDefinition,
    MetricSpec,
    fetcher,
    ranked,
    single,
)
from protocol_analytics.shared.models.enums import DatasetKey
from protocol_analytics.shared.models.snapshots import (
    AirdropsSnapshot,
    RecipientParticipation,
    VestingDistribution,
)

SOURCE = airdrops_evm.SOURCE


def _zero() -> int:
    return 0


def _zero_float() -> float:
    return 0.0


def _empty() -> list:
    return []


def _metric(field, fetch, fallback, combine=single) -> MetricSpec:
    return MetricSpec(field, (fetcher(field, SOURCE, fetch, fallback),), combine)


AIRDROPS = DatasetDefinition(
    key=DatasetKey.AIRDROPS.value,
    snapshot_model=AirdropsSnapshot,
    metrics=(
        _metric("total_campaigns", airdrops_evm.fetch_total_campaigns, _zero),
        _metric(
            "monthly_campaign_creation",
            airdrops_evm.fetch_monthly_campaign_creation,
            _empty,
        ),
        _metric("monthly_claim_trends", airdrops_evm.fetch_monthly_claim_trends, _empty),
        _metric(
            "recipient_participation",
            airdrops_evm.fetch_recipient_participation,
            RecipientParticipation,
        ),
        _metric("median_claimers", airdrops_evm.fetch_median_claimers, _zero_float),
        _metric(
            "median_claim_window", airdrops_evm.fetch_median_claim_window, _zero_float
        ),
        _metric(
            "vesting_distribution",
            airdrops_evm.fetch_vesting_distribution,
            VestingDistribution,
        ),
        _metric(
            "chain_distribution", airdrops_evm.fetch_chain_distribution, _empty, ranked
        ),
        _metric(
            "top_performing_campaigns",
            airdrops_evm.fetch_top_performing_campaigns,
            _empty,
            ranked,
        ),
    ),
)
