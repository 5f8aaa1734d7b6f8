"""Snapshot models persisted per dataset.

Models for:
- TimeSeriesPoint / PeriodCount: ordered per-period series
- Ranked entries: immutable display projections ordered at aggregation time
- Nested aggregates: fixed-shape groups of counters
- MetricSnapshot subclasses: one per published dataset

All models use:
- Pydantic for validation of values read back from the store
- camelCase aliases on the wire, snake_case in Python
- Timezone-aware UTC datetimes
"""

from datetime import datetime, time, timezone
from typing import Any, ClassVar

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Number = int | float


class CacheModel(BaseModel):
    """Base for everything written to the store."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class FrozenCacheModel(CacheModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


# =============================================================================
# TIME SERIES
# =============================================================================


class TimeSeriesPoint(FrozenCacheModel):
    """Cumulative series point; ``incremental`` is derived, never fetched."""

    period: str = Field(..., description="Period label, YYYY-MM")
    cumulative: Number = Field(..., ge=0)
    incremental: Number = Field(..., ge=0)


class PeriodCount(FrozenCacheModel):
    """Per-period event count (non-cumulative)."""

    period: str
    count: Number = Field(..., ge=0)


# =============================================================================
# RANKED ENTRIES
# =============================================================================


class RankedEntry(FrozenCacheModel):
    """Display projection whose order is fixed by its own comparator."""

    def ranking_key(self) -> float:
        raise NotImplementedError


class ChainShare(RankedEntry):
    chain_id: str
    count: int = Field(..., ge=0)

    def ranking_key(self) -> float:
        return float(self.count)


class TopAsset(RankedEntry):
    asset_id: str
    address: str
    symbol: str
    name: str
    chain_id: str
    decimals: int
    stream_count: int = Field(..., ge=0)

    def ranking_key(self) -> float:
        return float(self.stream_count)


class StreamAsset(FrozenCacheModel):
    symbol: str
    decimals: int
    address: str | None = None
    name: str | None = None


class StablecoinStream(RankedEntry):
    """Largest stablecoin streams, ranked by normalized deposit amount."""

    id: str
    token_id: str
    deposit_amount: str
    chain_id: str
    contract: str
    start_time: datetime
    end_time: datetime
    asset: StreamAsset
    sender: str | None = None
    recipient: str | None = None

    @property
    def normalized_amount(self) -> float:
        return int(self.deposit_amount) / 10**self.asset.decimals

    def ranking_key(self) -> float:
        return self.normalized_amount

    def compact(self) -> "StablecoinStream":
        """Minimal display projection with day-level timestamps (lossy)."""
        start = self.start_time.astimezone(timezone.utc).date()
        end = self.end_time.astimezone(timezone.utc).date()
        return StablecoinStream(
            id=self.id,
            token_id=self.token_id,
            deposit_amount=self.deposit_amount,
            chain_id=self.chain_id,
            contract=self.contract,
            start_time=datetime.combine(start, time.min, tzinfo=timezone.utc),
            end_time=datetime.combine(end, time(23, 59, 59), tzinfo=timezone.utc),
            asset=StreamAsset(symbol=self.asset.symbol, decimals=self.asset.decimals),
        )


class TopCampaign(RankedEntry):
    """Airdrop campaign ranked by claim rate."""

    id: str
    chain_id: str
    chain_name: str
    claimed_count: int = Field(..., ge=0)
    total_recipients: int = Field(..., ge=0)
    claim_rate: float = Field(..., ge=0)
    admin: str | None = None
    timestamp: datetime | None = None
    expiration: datetime | None = None

    def ranking_key(self) -> float:
        return self.claim_rate

    def compact(self) -> "TopCampaign":
        return self.model_copy(
            update={"admin": None, "timestamp": None, "expiration": None}
        )


class TopToken(RankedEntry):
    """SPL token ranked by number of streams using it."""

    mint: str
    stream_count: int = Field(..., ge=0)
    symbol: str | None = None
    name: str | None = None

    def ranking_key(self) -> float:
        return float(self.stream_count)


# =============================================================================
# NESTED AGGREGATES
# =============================================================================


class WindowCounts(FrozenCacheModel):
    """Counts over trailing windows ending now."""

    past_30_days: Number = 0
    past_90_days: Number = 0
    past_180_days: Number = 0
    past_year: Number = 0


class StablecoinVolumeBreakdown(FrozenCacheModel):
    evm_lockup: float = 0.0
    evm_flow: float = 0.0
    evm_airdrops: float = 0.0
    solana_lockup: float = 0.0
    solana_airdrops: float = 0.0
    total: float = 0.0


class GrowthRateMetrics(FrozenCacheModel):
    """Month-over-month growth, in percent."""

    user_growth_rate: float = 0.0
    transaction_growth_rate: float = 0.0
    average_transaction_growth_rate: float = 0.0


class StreamDurationStats(FrozenCacheModel):
    """Stream durations in seconds."""

    min: float = 0.0
    max: float = 0.0
    average: float = 0.0
    median: float = 0.0


class StreamProperties(FrozenCacheModel):
    cancelable: int = 0
    transferable: int = 0
    both: int = 0
    total: int = 0


class StreamCategoryDistribution(FrozenCacheModel):
    linear: int = 0
    dynamic: int = 0
    tranched: int = 0
    total: int = 0


class ActiveVsCompletedStreams(FrozenCacheModel):
    active: int = 0
    completed: int = 0
    total: int = 0


class Activity24Hours(FrozenCacheModel):
    streams_created: int = 0
    claims_created: int = 0
    total_transactions: int = 0


class RecipientParticipation(FrozenCacheModel):
    percentage: float = 0.0
    campaign_count: int = 0


class VestingDistribution(FrozenCacheModel):
    instant: int = 0
    vesting: int = 0


# =============================================================================
# SNAPSHOTS
# =============================================================================


class MetricSnapshot(CacheModel):
    """Unit persisted per dataset. Published as a whole, never patched."""

    DATASET: ClassVar[str] = ""

    last_updated: AwareDatetime

    def to_cache_value(self) -> dict[str, Any]:
        """JSON-ready payload written to the store."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_cache_value(cls, raw: dict[str, Any]) -> "MetricSnapshot":
        return cls.model_validate(raw)


class AnalyticsSnapshot(MetricSnapshot):
    """General protocol analytics across every ecosystem."""

    DATASET: ClassVar[str] = "analytics"

    total_users: int
    total_transactions: int
    total_claims: int
    total_stablecoin_volume: float
    stablecoin_volume_breakdown: StablecoinVolumeBreakdown
    total_vesting_streams: int
    time_based_users: WindowCounts
    time_based_transactions: WindowCounts
    time_based_stablecoin_volume: WindowCounts
    monthly_user_growth: list[TimeSeriesPoint]
    monthly_transaction_growth: list[TimeSeriesPoint]
    monthly_stream_creation: list[PeriodCount]
    chain_distribution: list[ChainShare]
    top_assets: list[TopAsset]
    largest_stablecoin_streams: list[StablecoinStream]
    growth_rate_metrics: GrowthRateMetrics
    stream_duration_stats: StreamDurationStats
    stream_properties: StreamProperties
    stream_category_distribution: StreamCategoryDistribution
    active_vs_completed_streams: ActiveVsCompletedStreams
    activity_24_hours: Activity24Hours


class AirdropsSnapshot(MetricSnapshot):
    """Claims/airdrop campaign analytics."""

    DATASET: ClassVar[str] = "airdrops"

    total_campaigns: int
    monthly_campaign_creation: list[PeriodCount]
    monthly_claim_trends: list[PeriodCount]
    recipient_participation: RecipientParticipation
    median_claimers: float
    median_claim_window: float
    vesting_distribution: VestingDistribution
    chain_distribution: list[ChainShare]
    top_performing_campaigns: list[TopCampaign]


class SolanaSnapshot(MetricSnapshot):
    """Solana-only analytics."""

    DATASET: ClassVar[str] = "solana_analytics"

    mau: int
    total_users: int
    total_streams: int
    total_campaigns: int
    top_spl_tokens: list[TopToken]
    total_transactions: int
    streams_24h: int
    claims_24h: int


class FlowSnapshot(MetricSnapshot):
    DATASET: ClassVar[str] = "flow_analytics"

    total_deposits: int


SNAPSHOT_MODELS: dict[str, type[MetricSnapshot]] = {
    model.DATASET: model
    for model in (AnalyticsSnapshot, AirdropsSnapshot, SolanaSnapshot, FlowSnapshot)
}
