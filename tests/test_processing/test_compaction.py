"""
Tests for the size optimizer / compactor.

Covers retention caps, ordering guarantees, idempotence, display projections
and size classification.
"""

import warnings
from datetime import datetime, time, timezone

import pytest

from protocol_analytics.config.state import ConfigState
from protocol_analytics.processing.compaction import (
    SizeClass,
    check_size_budget,
    classify_size,
    compact_snapshot,
    create_cache_summary,
    estimate_size_bytes,
    format_bytes,
    limit_recent_periods,
    limit_top_entries,
)
from protocol_analytics.shared.exceptions import SizeBudgetWarning
from tests.fixtures import (
    make_airdrops_snapshot,
    make_analytics_snapshot,
    make_solana_snapshot,
    series,
)


@pytest.fixture
def config():
    return ConfigState()


@pytest.fixture
def analytics_policy(config):
    return config.dataset("analytics").retention


# ============================================================================
# RETENTION CAPS
# ============================================================================


class TestRetentionCaps:
    def test_time_series_capped_to_most_recent_periods(self, analytics_policy):
        snapshot = make_analytics_snapshot()
        compacted = compact_snapshot(snapshot, analytics_policy)

        assert len(snapshot.monthly_user_growth) == 30
        assert len(compacted.monthly_user_growth) == 24
        assert compacted.monthly_user_growth[-1] == snapshot.monthly_user_growth[-1]
        assert compacted.monthly_user_growth[0].period == "2024-01"

    def test_series_periods_strictly_ascending(self, analytics_policy):
        shuffled = list(reversed(series(range(1, 40))))
        snapshot = make_analytics_snapshot(monthly_user_growth=shuffled)

        points = compact_snapshot(snapshot, analytics_policy).monthly_user_growth
        periods = [p.period for p in points]

        assert len(points) <= 24
        assert all(a < b for a, b in zip(periods, periods[1:]))

    def test_series_cumulative_non_decreasing(self, analytics_policy):
        compacted = compact_snapshot(make_analytics_snapshot(), analytics_policy)

        for name in analytics_policy.series_limits:
            points = getattr(compacted, name)
            if points and hasattr(points[0], "cumulative"):
                values = [p.cumulative for p in points]
                assert values == sorted(values)

    def test_short_series_untouched(self, analytics_policy):
        snapshot = make_analytics_snapshot(monthly_user_growth=series([1, 2, 3]))
        compacted = compact_snapshot(snapshot, analytics_policy)
        assert compacted.monthly_user_growth == snapshot.monthly_user_growth

    def test_ranked_lists_capped_and_ordered(self, analytics_policy):
        compacted = compact_snapshot(make_analytics_snapshot(), analytics_policy)

        for name, limit in analytics_policy.ranked_limits.items():
            entries = getattr(compacted, name)
            keys = [entry.ranking_key() for entry in entries]
            assert len(entries) <= limit
            assert keys == sorted(keys, reverse=True)

        assert len(compacted.chain_distribution) == 10
        assert len(compacted.top_assets) == 15
        assert len(compacted.largest_stablecoin_streams) == 20

    def test_airdrops_limits(self, config):
        compacted = compact_snapshot(
            make_airdrops_snapshot(), config.dataset("airdrops").retention
        )
        assert len(compacted.monthly_campaign_creation) == 12
        assert len(compacted.monthly_claim_trends) == 12
        assert len(compacted.chain_distribution) == 8
        assert len(compacted.top_performing_campaigns) == 8

    def test_solana_limits(self, config):
        compacted = compact_snapshot(
            make_solana_snapshot(), config.dataset("solana_analytics").retention
        )
        assert len(compacted.top_spl_tokens) == 10

    def test_limit_helpers(self):
        points = series([1, 2, 3, 4, 5])
        assert [p.period for p in limit_recent_periods(points[::-1], 2)] == [
            "2023-10",
            "2023-11",
        ]
        assert limit_top_entries([3, 2, 1], 2) == [3, 2]
        assert limit_top_entries([3], 5) == [3]


# ============================================================================
# IDEMPOTENCE AND PROJECTIONS
# ============================================================================


class TestIdempotenceAndProjection:
    def test_compaction_is_idempotent(self, analytics_policy):
        once = compact_snapshot(make_analytics_snapshot(), analytics_policy)
        twice = compact_snapshot(once, analytics_policy)
        assert twice == once
        assert twice.to_cache_value() == once.to_cache_value()

    def test_airdrops_compaction_is_idempotent(self, config):
        policy = config.dataset("airdrops").retention
        once = compact_snapshot(make_airdrops_snapshot(), policy)
        assert compact_snapshot(once, policy) == once

    def test_input_snapshot_not_mutated(self, analytics_policy):
        snapshot = make_analytics_snapshot()
        compact_snapshot(snapshot, analytics_policy)
        assert len(snapshot.top_assets) == 25

    def test_stablecoin_streams_projected_to_day_precision(self, analytics_policy):
        compacted = compact_snapshot(make_analytics_snapshot(), analytics_policy)
        stream = compacted.largest_stablecoin_streams[0]

        assert stream.start_time == datetime(2024, 3, 1, tzinfo=timezone.utc)
        assert stream.end_time.time() == time(23, 59, 59)
        assert stream.sender is None
        assert stream.recipient is None
        assert stream.asset.address is None

        payload = compacted.to_cache_value()["largestStablecoinStreams"][0]
        assert "sender" not in payload
        assert payload["asset"] == {"symbol": "USDC", "decimals": 6}

    def test_campaigns_projected(self, config):
        compacted = compact_snapshot(
            make_airdrops_snapshot(), config.dataset("airdrops").retention
        )
        campaign = compacted.top_performing_campaigns[0]
        assert campaign.admin is None
        assert campaign.claim_rate == 95.0

    def test_compaction_reduces_size(self, analytics_policy):
        snapshot = make_analytics_snapshot()
        compacted = compact_snapshot(snapshot, analytics_policy)
        assert estimate_size_bytes(compacted) < estimate_size_bytes(snapshot)


# ============================================================================
# SIZE
# ============================================================================


class TestSizeClassification:
    @pytest.mark.parametrize(
        "size,expected",
        [
            (0, SizeClass.OPTIMAL),
            (250_000, SizeClass.OPTIMAL),
            (250_001, SizeClass.MODERATE),
            (500_000, SizeClass.MODERATE),
            (500_001, SizeClass.LARGE),
            (1_000_000, SizeClass.LARGE),
            (1_000_001, SizeClass.TOO_LARGE),
        ],
    )
    def test_classify_size(self, size, expected):
        assert classify_size(size) is expected

    @pytest.mark.parametrize(
        "size,expected",
        [(0, "0 B"), (512, "512 B"), (1024, "1 KB"), (1536, "1.5 KB"), (1048576, "1 MB")],
    )
    def test_format_bytes(self, size, expected):
        assert format_bytes(size) == expected

    def test_estimate_matches_compact_json(self):
        assert estimate_size_bytes({"a": "é"}) == len('{"a":"\\u00e9"}')

    def test_budget_check_does_not_warn_for_small_payload(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            assert check_size_budget("analytics", make_analytics_snapshot()) is SizeClass.OPTIMAL

    def test_budget_check_warns_when_too_large(self):
        streams = make_analytics_snapshot().largest_stablecoin_streams
        huge = make_analytics_snapshot(largest_stablecoin_streams=streams * 200)

        with pytest.warns(SizeBudgetWarning):
            size_class = check_size_budget("analytics", huge)

        assert size_class is SizeClass.TOO_LARGE


class TestCacheSummary:
    def test_summary_shapes(self):
        summary = create_cache_summary(make_analytics_snapshot())

        assert summary["topAssets"] == "Array(25)"
        assert summary["timeBasedUsers"] == "4 keys"
        assert summary["totalUsers"] == "int"
        assert summary["lastUpdated"] == "str"
