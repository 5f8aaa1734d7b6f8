"""Tests for AnalyticsDependencyContainer wiring."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from protocol_analytics.config.state import CacheStoreConfig, ConfigState
from protocol_analytics.dependency_container import AnalyticsDependencyContainer
from protocol_analytics.ingestion.token_metadata import TokenMetadataResolver
from protocol_analytics.orchestration.ports import IWorkflow
from protocol_analytics.processing.aggregator import (
    DatasetDefinition,
    MetricSpec,
    fetcher,
)
from protocol_analytics.serving.freshness import FreshnessState
from protocol_analytics.shared.models.enums import SourceName
from protocol_analytics.shared.models.snapshots import FlowSnapshot
from protocol_analytics.storage.edge_config import EdgeConfigStore
from protocol_analytics.storage.local import LocalJsonStore
from tests.fixtures import NOW, InMemoryStore, make_fetch_context


def _zero() -> int:
    return 0


def flow_definition(total: int) -> DatasetDefinition:
    return DatasetDefinition(
        key="flow_analytics",
        snapshot_model=FlowSnapshot,
        metrics=(
            MetricSpec(
                "total_deposits",
                (
                    fetcher(
                        "total_deposits",
                        SourceName.FLOW_EVM,
                        AsyncMock(return_value=total),
                        _zero,
                    ),
                ),
            ),
        ),
    )


@pytest.fixture
def http_client():
    client = MagicMock()
    client.close = AsyncMock()
    return client


# ============================================================================
# CONSTRUCTION
# ============================================================================


class TestConstruction:
    def test_injected_store_used(self, http_client):
        store = InMemoryStore()
        container = AnalyticsDependencyContainer(ConfigState(), http_client, store)

        assert container.create_store() is store
        assert container.create_gateway() is container.create_gateway()

    def test_local_backend(self, tmp_path):
        config = ConfigState(
            cache_store=CacheStoreConfig(backend="local", local_root=str(tmp_path))
        )
        container = AnalyticsDependencyContainer(config)

        assert isinstance(container.create_store(), LocalJsonStore)

    def test_edge_config_backend_shares_http_client(self, http_client):
        container = AnalyticsDependencyContainer(ConfigState(), http_client)

        store = container.create_store()

        assert isinstance(store, EdgeConfigStore)
        assert store.http_client is http_client

    def test_one_connector_per_source(self, http_client):
        container = AnalyticsDependencyContainer(ConfigState(), http_client)

        connectors = container.create_connectors()

        assert set(connectors) == set(SourceName)

    def test_workflow_gets_payload_ceiling(self, http_client):
        config = ConfigState(cache_store=CacheStoreConfig(payload_ceiling_bytes=2048))
        container = AnalyticsDependencyContainer(config, http_client, InMemoryStore())

        workflow = container.create_refresh_workflow("analytics")

        assert workflow.ceiling_bytes == 2048
        assert workflow.dataset == "analytics"

    def test_workflows_satisfy_workflow_port(self, http_client):
        container = AnalyticsDependencyContainer(ConfigState(), http_client, InMemoryStore())

        assert isinstance(container.create_refresh_workflow("airdrops"), IWorkflow)
        assert isinstance(container.create_merge_workflow("airdrops"), IWorkflow)

    def test_fetch_context_carries_token_metadata(self, http_client):
        container = AnalyticsDependencyContainer(ConfigState(), http_client, InMemoryStore())

        resolver = container.create_fetch_context().token_metadata

        assert isinstance(resolver, TokenMetadataResolver)
        assert resolver.http_client is http_client

    def test_token_metadata_disabled(self, http_client):
        config = ConfigState(token_metadata={"enabled": False})
        container = AnalyticsDependencyContainer(config, http_client, InMemoryStore())

        assert container.create_fetch_context().token_metadata is None

    def test_scheduler_cooldown_from_config(self, http_client):
        config = ConfigState(revalidation={"cooldown_seconds": 60})
        container = AnalyticsDependencyContainer(config, http_client, InMemoryStore())

        assert container.create_scheduler().cooldown_seconds == 60

    def test_freshness_policies_from_config(self, http_client):
        container = AnalyticsDependencyContainer(ConfigState(), http_client, InMemoryStore())

        controller = container.create_freshness_controller()

        assert controller.policy("analytics").hard_ceiling is True
        assert controller.policy("airdrops").ceiling_hours == 24


# ============================================================================
# LIFECYCLE
# ============================================================================


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_injected_client_left_open(self, http_client):
        async with AnalyticsDependencyContainer(ConfigState(), http_client):
            pass

        http_client.close.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_owned_client_closed(self):
        container = AnalyticsDependencyContainer(ConfigState())
        client = container.create_http_client()

        with patch.object(client, "close", AsyncMock()) as close:
            await container.close()

        close.assert_awaited_once()


# ============================================================================
# OPERATIONS
# ============================================================================


class TestOperations:
    @pytest.mark.asyncio
    async def test_refresh_then_serve(self, http_client):
        store = InMemoryStore()
        container = AnalyticsDependencyContainer(ConfigState(), http_client, store)
        container.create_fetch_context = make_fetch_context

        with patch(
            "protocol_analytics.dependency_container.get_dataset",
            return_value=flow_definition(350),
        ):
            report = await container.refresh(["flow_analytics"])

        assert report["success"] is True
        assert store.items["flow_analytics"]["totalDeposits"] == 350

        controller = container.create_freshness_controller()
        controller._clock = lambda: NOW
        served = await controller.serve("flow_analytics")

        assert served.state is FreshnessState.FRESH
        assert served.snapshot.total_deposits == 350

    @pytest.mark.asyncio
    async def test_live_does_not_persist(self, http_client):
        store = InMemoryStore()
        container = AnalyticsDependencyContainer(ConfigState(), http_client, store)
        container.create_fetch_context = make_fetch_context

        with patch(
            "protocol_analytics.dependency_container.get_dataset",
            return_value=flow_definition(7),
        ):
            snapshot = await container.live("flow_analytics")

        assert snapshot.total_deposits == 7
        assert store.upserts == []
