"""
Tests for CrossSourceAggregator and the per-metric combiners.

Every fetcher's failure is contained: one failing source degrades its own
contribution to zero/empty while the remaining sources still count.
"""

from unittest.mock import AsyncMock

import pytest

from protocol_analytics.ingestion.fetchers.base import SourceResult
from protocol_analytics.processing.aggregator import (
    CrossSourceAggregator,
    DatasetDefinition,
    MetricSpec,
    fetcher,
    ranked,
    sum_models,
    sum_scalars,
    sum_series,
    volume_breakdown,
)
from protocol_analytics.processing.datasets import DATASETS, get_dataset
from protocol_analytics.shared.exceptions import TransportError
from protocol_analytics.shared.models.enums import SourceName
from protocol_analytics.shared.models.snapshots import (
    ChainShare,
    FlowSnapshot,
    WindowCounts,
)
from tests.fixtures import NOW, make_fetch_context, series


def _zero() -> int:
    return 0


def returning(value):
    return AsyncMock(return_value=value)


def failing(exc: Exception):
    return AsyncMock(side_effect=exc)


def deposits_definition(*fetches) -> DatasetDefinition:
    sources = (SourceName.LOCKUP_EVM, SourceName.AIRDROPS_EVM, SourceName.FLOW_EVM)
    return DatasetDefinition(
        key="flow_analytics",
        snapshot_model=FlowSnapshot,
        metrics=(
            MetricSpec(
                "total_deposits",
                tuple(
                    fetcher("total_deposits", source, fetch, _zero)
                    for source, fetch in zip(sources, fetches)
                ),
                sum_scalars,
            ),
        ),
    )


def result(source: SourceName, value, failed: bool = False) -> SourceResult:
    return SourceResult(metric="m", source=source, value=value, failed=failed)


# ============================================================================
# CROSS-SOURCE SUMS
# ============================================================================


class TestCrossSourceSums:
    @pytest.mark.asyncio
    async def test_three_sources_summed(self):
        definition = deposits_definition(returning(5), returning(7), returning(3))

        snapshot = await CrossSourceAggregator().aggregate(definition, make_fetch_context())

        assert snapshot.total_deposits == 15
        assert snapshot.last_updated == NOW

    @pytest.mark.asyncio
    async def test_failed_source_falls_back_to_zero(self):
        definition = deposits_definition(
            returning(5),
            failing(TransportError("down", source="airdrops_evm", status_code=502)),
            returning(3),
        )

        outcome = await CrossSourceAggregator().collect(
            definition.metrics, make_fetch_context()
        )

        assert outcome.values["total_deposits"] == 8
        assert [r.source for r in outcome.failed] == [SourceName.AIRDROPS_EVM]
        assert "TransportError" in outcome.failed[0].error

    @pytest.mark.asyncio
    async def test_unexpected_exception_contained(self):
        definition = deposits_definition(
            returning(5), failing(KeyError("chainId")), returning(3)
        )

        snapshot = await CrossSourceAggregator().aggregate(definition, make_fetch_context())

        assert snapshot.total_deposits == 8

    @pytest.mark.asyncio
    async def test_every_fetcher_receives_shared_context(self):
        fetches = [returning(1), returning(2), returning(3)]
        ctx = make_fetch_context()

        await CrossSourceAggregator().aggregate(deposits_definition(*fetches), ctx)

        for fetch in fetches:
            fetch.assert_awaited_once_with(ctx)

    def test_identities_on_two_ecosystems_counted_twice(self):
        total = sum_scalars(
            [result(SourceName.LOCKUP_EVM, 100), result(SourceName.SOLANA_LOCKUP, 100)]
        )
        assert total == 200


# ============================================================================
# COMBINERS
# ============================================================================


class TestCombiners:
    def test_sum_models_field_wise(self):
        combine = sum_models(WindowCounts)
        merged = combine(
            [
                result(SourceName.LOCKUP_EVM, WindowCounts(past_30_days=1, past_year=10)),
                result(SourceName.AIRDROPS_EVM, WindowCounts(past_30_days=2, past_year=5)),
            ]
        )
        assert merged == WindowCounts(past_30_days=3, past_year=15)

    def test_sum_series_rederives_incrementals(self):
        merged = sum_series(
            [
                result(SourceName.LOCKUP_EVM, series([10, 10, 25])),
                result(SourceName.AIRDROPS_EVM, series([0, 5, 5])),
            ]
        )
        assert [p.cumulative for p in merged] == [10, 15, 30]
        assert [p.incremental for p in merged] == [10, 5, 15]

    def test_ranked_concatenates_and_orders(self):
        merged = ranked(
            [
                result(SourceName.LOCKUP_EVM, [ChainShare(chain_id="1", count=5)]),
                result(
                    SourceName.AIRDROPS_EVM,
                    [ChainShare(chain_id="2", count=9), ChainShare(chain_id="3", count=1)],
                ),
            ]
        )
        assert [entry.chain_id for entry in merged] == ["2", "1", "3"]

    def test_volume_breakdown_totals(self):
        breakdown = volume_breakdown(
            [
                result(SourceName.LOCKUP_EVM, 100.0),
                result(SourceName.FLOW_EVM, 250.0),
                result(SourceName.SOLANA_AIRDROPS, 0.0, failed=True),
            ]
        )
        assert breakdown.evm_lockup == 100.0
        assert breakdown.evm_flow == 250.0
        assert breakdown.solana_airdrops == 0.0
        assert breakdown.total == 350.0


# ============================================================================
# DATASET CATALOGUE
# ============================================================================


class TestDatasetCatalogue:
    def test_all_datasets_registered(self):
        assert set(DATASETS) == {
            "analytics",
            "airdrops",
            "solana_analytics",
            "flow_analytics",
        }

    @pytest.mark.parametrize("key", ["analytics", "airdrops", "solana_analytics", "flow_analytics"])
    def test_metrics_cover_snapshot_fields(self, key):
        definition = get_dataset(key)
        fields = set(definition.snapshot_model.model_fields) - {"last_updated"}
        derived = {"total_stablecoin_volume"} if key == "analytics" else set()
        assert set(definition.metric_names) | derived == fields

    def test_unknown_dataset(self):
        with pytest.raises(ValueError):
            get_dataset("nope")

    def test_select_subset(self):
        definition = get_dataset("analytics")
        specs = definition.select(["total_users", "top_assets"])
        assert [spec.field for spec in specs] == ["total_users", "top_assets"]

    def test_select_unknown_metric(self):
        with pytest.raises(ValueError, match="not_a_metric"):
            get_dataset("analytics").select(["not_a_metric"])

    @pytest.mark.asyncio
    async def test_all_sources_down_yields_zero_snapshot(self):
        ctx = make_fetch_context()
        for connector in ctx.connectors.values():
            connector.query.side_effect = TransportError("down")
            connector.paginate.side_effect = TransportError("down")

        snapshot = await CrossSourceAggregator().aggregate(get_dataset("analytics"), ctx)

        assert snapshot.total_users == 0
        assert snapshot.top_assets == []
        assert snapshot.stablecoin_volume_breakdown.total == 0
        assert snapshot.total_stablecoin_volume == 0
