"""
Test fixtures package.

Builders for snapshots, fetch contexts and fake transports / stores shared
across layer tests.
"""

from collections.abc import Sequence
from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import AsyncMock, MagicMock

from protocol_analytics.ingestion.fetchers.base import FetchContext
from protocol_analytics.ingestion.ports.http import HttpResponse
from protocol_analytics.processing.series import derive_incrementals
from protocol_analytics.shared.models.enums import SourceName
from protocol_analytics.shared.models.snapshots import (
    Activity24Hours,
    AirdropsSnapshot,
    AnalyticsSnapshot,
    ChainShare,
    FlowSnapshot,
    PeriodCount,
    RecipientParticipation,
    SolanaSnapshot,
    StablecoinStream,
    StablecoinVolumeBreakdown,
    StreamAsset,
    TimeSeriesPoint,
    TopAsset,
    TopCampaign,
    TopToken,
    VestingDistribution,
    WindowCounts,
)

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


def month_labels(count: int, start: str = "2023-07") -> list[str]:
    year, month = (int(part) for part in start.split("-"))
    labels = []
    for _ in range(count):
        labels.append(f"{year:04d}-{month:02d}")
        year, month = (year + 1, 1) if month == 12 else (year, month + 1)
    return labels


def series(cumulative: Sequence[int], start: str = "2023-07") -> list[TimeSeriesPoint]:
    """Cumulative series with derived incrementals."""
    return derive_incrementals(
        [
            TimeSeriesPoint(period=label, cumulative=value, incremental=0)
            for label, value in zip(month_labels(len(cumulative), start), cumulative)
        ]
    )


def period_counts(counts: Sequence[int], start: str = "2023-07") -> list[PeriodCount]:
    return [
        PeriodCount(period=label, count=value)
        for label, value in zip(month_labels(len(counts), start), counts)
    ]


def chain_shares(counts: Sequence[int]) -> list[ChainShare]:
    return [ChainShare(chain_id=str(i + 1), count=c) for i, c in enumerate(counts)]


def top_asset(index: int, stream_count: int) -> TopAsset:
    return TopAsset(
        asset_id=f"asset-{index}",
        address=f"0x{index:040x}",
        symbol=f"TK{index}",
        name=f"Token {index}",
        chain_id="1",
        decimals=18,
        stream_count=stream_count,
    )


def stablecoin_stream(index: int, amount_usd: int, decimals: int = 6) -> StablecoinStream:
    return StablecoinStream(
        id=f"stream-{index}",
        token_id=str(index),
        deposit_amount=str(amount_usd * 10**decimals),
        chain_id="1",
        contract="0xlockup",
        start_time=datetime(2024, 3, 1, 14, 30, tzinfo=timezone.utc),
        end_time=datetime(2025, 3, 1, 9, 15, tzinfo=timezone.utc),
        asset=StreamAsset(
            symbol="USDC", decimals=decimals, address="0xusdc", name="USD Coin"
        ),
        sender="0xsender",
        recipient="0xrecipient",
    )


def top_campaign(index: int, claim_rate: float) -> TopCampaign:
    return TopCampaign(
        id=f"campaign-{index}",
        chain_id="1",
        chain_name="Ethereum",
        claimed_count=int(claim_rate),
        total_recipients=100,
        claim_rate=claim_rate,
        admin="0xadmin",
        timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
        expiration=datetime(2025, 1, 1, tzinfo=timezone.utc),
    )


def make_analytics_snapshot(**overrides: Any) -> AnalyticsSnapshot:
    values: dict[str, Any] = {
        "last_updated": NOW,
        "total_users": 1200,
        "total_transactions": 5400,
        "total_claims": 800,
        "total_stablecoin_volume": 1500.0,
        "stablecoin_volume_breakdown": StablecoinVolumeBreakdown(
            evm_lockup=1000.0, evm_airdrops=500.0, total=1500.0
        ),
        "total_vesting_streams": 950,
        "time_based_users": WindowCounts(
            past_30_days=10, past_90_days=30, past_180_days=60, past_year=120
        ),
        "time_based_transactions": WindowCounts(),
        "time_based_stablecoin_volume": WindowCounts(),
        "monthly_user_growth": series(range(10, 310, 10)),
        "monthly_transaction_growth": series(range(50, 1550, 50)),
        "monthly_stream_creation": period_counts([5] * 30),
        "chain_distribution": chain_shares(range(20, 0, -1)),
        "top_assets": [top_asset(i, 100 - i) for i in range(25)],
        "largest_stablecoin_streams": [
            stablecoin_stream(i, 1_000_000 - i * 1000) for i in range(30)
        ],
        "growth_rate_metrics": {},
        "stream_duration_stats": {},
        "stream_properties": {},
        "stream_category_distribution": {},
        "active_vs_completed_streams": {},
        "activity_24_hours": Activity24Hours(
            streams_created=3, claims_created=2, total_transactions=9
        ),
    }
    values.update(overrides)
    return AnalyticsSnapshot(**values)


def make_airdrops_snapshot(**overrides: Any) -> AirdropsSnapshot:
    values: dict[str, Any] = {
        "last_updated": NOW,
        "total_campaigns": 42,
        "monthly_campaign_creation": period_counts([3] * 18),
        "monthly_claim_trends": period_counts([7] * 18),
        "recipient_participation": RecipientParticipation(
            percentage=55.5, campaign_count=42
        ),
        "median_claimers": 12.0,
        "median_claim_window": 30.0,
        "vesting_distribution": VestingDistribution(instant=30, vesting=12),
        "chain_distribution": chain_shares([9, 8, 7, 6, 5, 4, 3, 2, 1]),
        "top_performing_campaigns": [top_campaign(i, 95.0 - i) for i in range(12)],
    }
    values.update(overrides)
    return AirdropsSnapshot(**values)


def make_solana_snapshot(**overrides: Any) -> SolanaSnapshot:
    values: dict[str, Any] = {
        "last_updated": NOW,
        "mau": 40,
        "total_users": 300,
        "total_streams": 450,
        "total_campaigns": 12,
        "top_spl_tokens": [TopToken(mint=f"mint-{i}", stream_count=50 - i) for i in range(14)],
        "total_transactions": 900,
        "streams_24h": 4,
        "claims_24h": 1,
    }
    values.update(overrides)
    return SolanaSnapshot(**values)


def make_flow_snapshot(**overrides: Any) -> FlowSnapshot:
    values: dict[str, Any] = {"last_updated": NOW, "total_deposits": 77}
    values.update(overrides)
    return FlowSnapshot(**values)


def make_fetch_context(now: datetime = NOW, **overrides: Any) -> FetchContext:
    """Context whose connectors are MagicMocks with AsyncMock query/paginate."""
    connectors = {}
    for source in SourceName:
        connector = MagicMock()
        connector.query = AsyncMock(return_value={})
        connector.paginate = AsyncMock(return_value=[])
        connectors[source] = connector
    values: dict[str, Any] = {
        "connectors": connectors,
        "now": now,
        "testnet_chain_ids": ("11155111", "84532"),
        "chain_names": {"1": "Ethereum", "137": "Polygon"},
        "evm_stablecoins": ("USDC", "USDT", "DAI"),
        "solana_stablecoin_mints": ("EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v",),
    }
    values.update(overrides)
    return FetchContext(**values)


def http_response(status_code: int = 200, body: Any = None, url: str = "") -> HttpResponse:
    return HttpResponse(status_code=status_code, body=body, headers={}, url=url)


def hours_ago(hours: float, now: datetime = NOW) -> datetime:
    return now - timedelta(hours=hours)


class InMemoryStore:
    """IKeyValueStore double that records every upsert."""

    def __init__(self, initial: dict[str, Any] | None = None):
        self.items: dict[str, Any] = dict(initial or {})
        self.upserts: list[tuple[str, Any]] = []

    async def get(self, key: str) -> Any | None:
        return self.items.get(key)

    async def upsert(self, key: str, value: Any) -> None:
        self.upserts.append((key, value))
        self.items[key] = value
