"""
Dependency container for the analytics pipeline.

Wires together:
- HTTP client and one GraphQL connector per upstream source
- Key-value store backend and the cache gateway
- Aggregator, refresh / merge workflows and the trigger surface
- Freshness controller and its revalidation scheduler
"""

from collections.abc import Sequence
from typing import Any

from protocol_analytics.config.state import ConfigState
from protocol_analytics.infrastructure.observability import get_pipeline_logger
from protocol_analytics.ingestion.connectors.aiohttp_client import AiohttpClient
from protocol_analytics.ingestion.connectors.graphql import GraphQLConnector
from protocol_analytics.ingestion.fetchers.base import FetchContext
from protocol_analytics.ingestion.ports.http import IHttpClient
from protocol_analytics.ingestion.sources import build_connectors, build_fetch_context
from protocol_analytics.ingestion.token_metadata import TokenMetadataResolver
from protocol_analytics.orchestration.trigger import merge_fields, refresh_datasets
from protocol_analytics.orchestration.workflows.merge_workflow import FieldMergeWorkflow
from protocol_analytics.orchestration.workflows.refresh_workflow import (
    DatasetRefreshWorkflow,
)
from protocol_analytics.processing.aggregator import CrossSourceAggregator
from protocol_analytics.processing.datasets import get_dataset
from protocol_analytics.serving.freshness import FreshnessController
from protocol_analytics.serving.revalidation import RevalidationScheduler
from protocol_analytics.shared.models.enums import SourceName
from protocol_analytics.shared.models.snapshots import MetricSnapshot
from protocol_analytics.storage.edge_config import EdgeConfigStore
from protocol_analytics.storage.gateway import CacheGateway
from protocol_analytics.storage.local import LocalJsonStore
from protocol_analytics.storage.ports import IKeyValueStore

logger = get_pipeline_logger("container")


class AnalyticsDependencyContainer:
    """
    Dependency injection container for the analytics pipeline.

    Single responsibility: Assemble dependencies. The container owns the HTTP
    client it creates and closes it on exit; injected collaborators are left
    to their owner.

    Usage:
        async with AnalyticsDependencyContainer(get_config()) as container:
            report = await container.refresh(["analytics"])
    """

    def __init__(
        self,
        config: ConfigState,
        http_client: IHttpClient | None = None,
        store: IKeyValueStore | None = None,
    ):
        """
        Args:
            config: Loaded configuration state
            http_client: Transport shared by every connector and the store
            store: Key-value store; built from ``config.cache_store`` if omitted
        """
        self.config = config
        self._owns_http_client = http_client is None
        self._http_client = http_client
        self._store = store
        self._gateway: CacheGateway | None = None
        self._connectors: dict[SourceName, GraphQLConnector] | None = None
        self._aggregator = CrossSourceAggregator()

        logger.info(
            "container_initialized",
            env=config.env,
            store=config.cache_store.backend,
        )

    async def __aenter__(self) -> "AnalyticsDependencyContainer":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_http_client and self._http_client is not None:
            await self._http_client.close()

    # ------------------------------------------------------------------
    # Transport and sources
    # ------------------------------------------------------------------

    def create_http_client(self) -> IHttpClient:
        if self._http_client is None:
            self._http_client = AiohttpClient(self.config.http)
        return self._http_client

    def create_connectors(self) -> dict[SourceName, GraphQLConnector]:
        if self._connectors is None:
            self._connectors = build_connectors(self.config, self.create_http_client())
        return self._connectors

    def create_token_metadata_resolver(self) -> TokenMetadataResolver | None:
        if not self.config.token_metadata.enabled:
            return None
        return TokenMetadataResolver(self.create_http_client(), self.config.token_metadata)

    def create_fetch_context(self) -> FetchContext:
        """New context per cycle; connectors are shared."""
        return build_fetch_context(
            self.config, self.create_connectors(), self.create_token_metadata_resolver()
        )

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    def create_store(self) -> IKeyValueStore:
        if self._store is None:
            store_config = self.config.cache_store
            if store_config.backend == "local":
                self._store = LocalJsonStore(store_config.local_root)
            else:
                self._store = EdgeConfigStore(store_config, self.create_http_client())
        return self._store

    def create_gateway(self) -> CacheGateway:
        if self._gateway is None:
            self._gateway = CacheGateway(self.create_store())
        return self._gateway

    # ------------------------------------------------------------------
    # Workflows
    # ------------------------------------------------------------------

    def create_aggregator(self) -> CrossSourceAggregator:
        return self._aggregator

    def create_refresh_workflow(self, dataset: str) -> DatasetRefreshWorkflow:
        return DatasetRefreshWorkflow(
            definition=get_dataset(dataset),
            config=self.config.dataset(dataset),
            aggregator=self.create_aggregator(),
            gateway=self.create_gateway(),
            context_factory=self.create_fetch_context,
            ceiling_bytes=self.config.cache_store.payload_ceiling_bytes,
        )

    def create_merge_workflow(self, dataset: str) -> FieldMergeWorkflow:
        return FieldMergeWorkflow(
            definition=get_dataset(dataset),
            config=self.config.dataset(dataset),
            aggregator=self.create_aggregator(),
            gateway=self.create_gateway(),
            context_factory=self.create_fetch_context,
            ceiling_bytes=self.config.cache_store.payload_ceiling_bytes,
        )

    async def refresh(self, datasets: Sequence[str] | None = None) -> dict[str, Any]:
        return await refresh_datasets(self.create_refresh_workflow, datasets)

    async def merge(self, dataset: str, metrics: Sequence[str]) -> dict[str, Any]:
        return await merge_fields(self.create_merge_workflow, dataset, metrics)

    async def live(self, dataset: str) -> MetricSnapshot:
        return await self.create_refresh_workflow(dataset).recompute_live()

    # ------------------------------------------------------------------
    # Serving
    # ------------------------------------------------------------------

    def create_scheduler(self) -> RevalidationScheduler:
        """Scheduler whose refresh publishes through the normal cycle."""

        async def revalidate(dataset: str) -> dict[str, Any]:
            return await self.refresh([dataset])

        return RevalidationScheduler(
            revalidate, cooldown_seconds=self.config.revalidation.cooldown_seconds
        )

    def create_freshness_controller(
        self, scheduler: RevalidationScheduler | None = None
    ) -> FreshnessController:
        return FreshnessController(
            gateway=self.create_gateway(),
            live_fn=self.live,
            scheduler=scheduler,
            policies={key: cfg.freshness for key, cfg in self.config.datasets.items()},
        )
