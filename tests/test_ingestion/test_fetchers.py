"""
Tests for the metric fetcher contract and representative source fetchers.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from protocol_analytics.ingestion.fetchers import (
    airdrops_evm,
    hasura,
    lockup_evm,
    solana_lockup,
    subgraph,
)
from protocol_analytics.ingestion.fetchers.base import (
    MetricFetcher,
    last_n_months,
    median,
    month_boundaries,
    normalize_amount,
    run_fetcher,
)
from protocol_analytics.ingestion.token_metadata import TokenMetadata
from protocol_analytics.shared.exceptions import ProtocolError
from protocol_analytics.shared.models.enums import SourceName
from protocol_analytics.shared.models.snapshots import WindowCounts
from tests.fixtures import NOW, make_fetch_context


def aggregate(count: int) -> dict:
    return {"aggregate": {"count": count}}


# ============================================================================
# FETCHER CONTRACT
# ============================================================================


class TestRunFetcher:
    @pytest.mark.asyncio
    async def test_success(self):
        item = MetricFetcher(
            metric="total_users",
            source=SourceName.LOCKUP_EVM,
            fetch=AsyncMock(return_value=5),
            fallback=lambda: 0,
        )

        result = await run_fetcher(item, make_fetch_context())

        assert result.value == 5
        assert not result.failed
        assert result.error is None

    @pytest.mark.asyncio
    async def test_failure_returns_typed_fallback(self):
        item = MetricFetcher(
            metric="time_based_users",
            source=SourceName.AIRDROPS_EVM,
            fetch=AsyncMock(side_effect=ProtocolError("bad field", errors=[{}])),
            fallback=WindowCounts,
        )

        result = await run_fetcher(item, make_fetch_context())

        assert result.failed
        assert result.value == WindowCounts()
        assert result.error.startswith("ProtocolError")
        assert result.to_dict() == {
            "metric": "time_based_users",
            "source": "airdrops_evm",
            "failed": True,
            "error": result.error,
        }


# ============================================================================
# HELPERS
# ============================================================================


class TestHelpers:
    def test_month_boundaries(self):
        months = month_boundaries(
            datetime(2023, 11, 1, tzinfo=timezone.utc),
            datetime(2024, 1, 15, tzinfo=timezone.utc),
        )
        assert [label for label, _, _ in months] == ["2023-11", "2023-12", "2024-01"]
        label, first, last = months[1]
        assert first == int(datetime(2023, 12, 1, tzinfo=timezone.utc).timestamp())
        assert last == int(datetime(2024, 1, 1, tzinfo=timezone.utc).timestamp()) - 1

    def test_last_n_months_crosses_year(self):
        months = last_n_months(datetime(2024, 2, 10, tzinfo=timezone.utc), 4)
        assert [label for label, _, _ in months] == [
            "2023-11",
            "2023-12",
            "2024-01",
            "2024-02",
        ]

    def test_median(self):
        assert median([]) == 0.0
        assert median([3, 1, 2]) == 2.0
        assert median([4, 1, 3, 2]) == 2.5

    def test_normalize_amount(self):
        assert normalize_amount("2500000", 6) == 2.5

    def test_window_starts_are_unix_seconds(self):
        ctx = make_fetch_context()
        starts = ctx.window_starts()
        assert starts["past_30_days"] == int(NOW.timestamp()) - 30 * 86400
        assert set(starts) == {"past_30_days", "past_90_days", "past_180_days", "past_year"}


# ============================================================================
# HASURA-STYLE SOURCES
# ============================================================================


class TestHasuraFetchers:
    @pytest.mark.asyncio
    async def test_total_users_counts_distinct_senders_on_mainnets(self):
        ctx = make_fetch_context()
        connector = ctx.connectors[SourceName.LOCKUP_EVM]
        connector.query.return_value = {"total": aggregate(1234)}

        assert await lockup_evm.fetch_total_users(ctx) == 1234

        query = connector.query.call_args.args[0]
        assert "Action_aggregate" in query
        assert 'count(columns: from, distinct: true)' in query
        assert '_nin: ["11155111", "84532"]' in query

    @pytest.mark.asyncio
    async def test_window_counts_single_request(self):
        ctx = make_fetch_context()
        connector = ctx.connectors[SourceName.AIRDROPS_EVM]
        connector.query.return_value = {
            "past_30_days": aggregate(1),
            "past_90_days": aggregate(2),
            "past_180_days": aggregate(3),
            "past_year": aggregate(4),
        }

        counts = await airdrops_evm.fetch_time_based_transactions(ctx)

        assert counts == WindowCounts(
            past_30_days=1, past_90_days=2, past_180_days=3, past_year=4
        )
        connector.query.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_cumulative_by_month_skips_empty_months(self):
        ctx = make_fetch_context(now=datetime(2023, 9, 10, tzinfo=timezone.utc))
        connector = ctx.connectors[SourceName.LOCKUP_EVM]
        connector.query.return_value = {"m0": aggregate(0), "m1": aggregate(4), "m2": aggregate(9)}

        points = await lockup_evm.fetch_monthly_transaction_growth(ctx)

        assert [(p.period, p.cumulative) for p in points] == [("2023-08", 4), ("2023-09", 9)]

    @pytest.mark.asyncio
    async def test_chain_distribution_counts_rows(self):
        ctx = make_fetch_context()
        ctx.connectors[SourceName.LOCKUP_EVM].paginate.return_value = [
            {"chainId": 1},
            {"chainId": 137},
            {"chainId": 1},
        ]

        shares = await lockup_evm.fetch_chain_distribution(ctx)

        assert {(s.chain_id, s.count) for s in shares} == {("1", 2), ("137", 1)}

    @pytest.mark.asyncio
    async def test_rows_ordered_by_id_for_offset_pages(self):
        ctx = make_fetch_context()
        connector = ctx.connectors[SourceName.LOCKUP_EVM]

        await hasura.rows(ctx, SourceName.LOCKUP_EVM, "Stream", "chainId")

        query = connector.paginate.call_args.args[0]
        assert "limit: $limit, offset: $offset, order_by: { id: asc })" in query
        assert connector.paginate.call_args.args[1] == "Stream"

    @pytest.mark.asyncio
    async def test_rows_custom_order(self):
        ctx = make_fetch_context()
        connector = ctx.connectors[SourceName.AIRDROPS_EVM]

        await hasura.rows(
            ctx, SourceName.AIRDROPS_EVM, "Campaign", "id", order_by="{ timestamp: asc }"
        )

        query = connector.paginate.call_args.args[0]
        assert "order_by: { timestamp: asc }" in query
        assert "id: asc" not in query

    def test_mainnet_filter_appends_conditions(self):
        ctx = make_fetch_context(testnet_chain_ids=("5",))
        where = hasura.mainnet_filter(ctx, 'timestamp: { _gte: "1" }')
        assert where == '{ chainId: { _nin: ["5"] } timestamp: { _gte: "1" } }'


# ============================================================================
# SUBGRAPH-STYLE SOURCES
# ============================================================================


class TestSubgraphFetchers:
    def test_where_clause(self):
        assert subgraph.where_clause() == ""
        assert subgraph.where_clause(timestamp_gte=10) == ', where: { timestamp_gte: "10" }'

    @pytest.mark.asyncio
    async def test_total_users_distinct_senders_and_recipients(self):
        ctx = make_fetch_context()
        ctx.connectors[SourceName.SOLANA_LOCKUP].paginate.return_value = [
            {"sender": "a", "recipient": "b"},
            {"sender": "a", "recipient": "c"},
        ]

        assert await solana_lockup.fetch_total_users(ctx) == 3

    @pytest.mark.asyncio
    async def test_top_spl_tokens_by_stream_count(self):
        ctx = make_fetch_context()
        ctx.connectors[SourceName.SOLANA_LOCKUP].paginate.return_value = [
            {"mint": "m1", "streams": [{"id": "1"}]},
            {"mint": "m2", "streams": [{"id": "2"}, {"id": "3"}]},
        ]

        tokens = await solana_lockup.fetch_top_spl_tokens(ctx)

        assert [(t.mint, t.stream_count) for t in tokens] == [("m2", 2), ("m1", 1)]
        assert all(t.symbol is None for t in tokens)

    @pytest.mark.asyncio
    async def test_top_spl_tokens_labelled_from_token_lists(self):
        resolver = MagicMock()
        resolver.resolve = AsyncMock(
            return_value={"m2": TokenMetadata(address="m2", symbol="USDC", name="USD Coin")}
        )
        ctx = make_fetch_context(token_metadata=resolver)
        ctx.connectors[SourceName.SOLANA_LOCKUP].paginate.return_value = [
            {"mint": "m1", "streams": [{"id": "1"}]},
            {"mint": "m2", "streams": [{"id": "2"}, {"id": "3"}]},
        ]

        tokens = await solana_lockup.fetch_top_spl_tokens(ctx)

        resolver.resolve.assert_awaited_once_with(["m2", "m1"])
        assert (tokens[0].symbol, tokens[0].name) == ("USDC", "USD Coin")
        assert (tokens[1].mint, tokens[1].symbol, tokens[1].name) == ("m1", None, None)

    @pytest.mark.asyncio
    async def test_streams_24h_counts_rows(self):
        ctx = make_fetch_context()
        connector = ctx.connectors[SourceName.SOLANA_LOCKUP]
        connector.paginate.return_value = [{"id": "1"}, {"id": "2"}]

        assert await solana_lockup.fetch_streams_24h(ctx) == 2
        query = connector.paginate.call_args.args[0]
        assert f'timestamp_gte: "{int(NOW.timestamp()) - 86400}"' in query
