"""Shared domain models."""

from protocol_analytics.shared.models.enums import (
    DatasetKey,
    Ecosystem,
    PaginationStyle,
    SourceName,
    StoreOperation,
)
from protocol_analytics.shared.models.policies import (
    FreshnessPolicy,
    IntegrityRules,
    RetentionPolicy,
)
from protocol_analytics.shared.models.snapshots import (
    SNAPSHOT_MODELS,
    AirdropsSnapshot,
    AnalyticsSnapshot,
    ChainShare,
    FlowSnapshot,
    MetricSnapshot,
    PeriodCount,
    RankedEntry,
    SolanaSnapshot,
    StablecoinStream,
    TimeSeriesPoint,
    TopAsset,
    TopCampaign,
    TopToken,
)

__all__ = [
    # Enums
    "DatasetKey",
    "Ecosystem",
    "PaginationStyle",
    "SourceName",
    "StoreOperation",
    # Policies
    "FreshnessPolicy",
    "IntegrityRules",
    "RetentionPolicy",
    # Snapshots
    "SNAPSHOT_MODELS",
    "MetricSnapshot",
    "AnalyticsSnapshot",
    "AirdropsSnapshot",
    "SolanaSnapshot",
    "FlowSnapshot",
    "TimeSeriesPoint",
    "PeriodCount",
    "RankedEntry",
    "ChainShare",
    "TopAsset",
    "StablecoinStream",
    "TopCampaign",
    "TopToken",
]
