"""
Dataset Refresh Workflow
========================

One aggregation cycle for one dataset:
fetch -> merge -> validate -> compact -> publish.

Validation runs on the raw aggregate, before compaction. A rejected aggregate
is never published, so the store keeps serving the previous snapshot.
"""

from collections.abc import Callable
from typing import Any

from protocol_analytics.config.state import DatasetConfig
from protocol_analytics.infrastructure.observability import get_pipeline_logger
from protocol_analytics.ingestion.fetchers.base import FetchContext
from protocol_analytics.orchestration.ports import IWorkflowContext, WorkflowStatus
from protocol_analytics.orchestration.workflows.base import BaseWorkflow
from protocol_analytics.processing.aggregator import (
    CrossSourceAggregator,
    DatasetDefinition,
)
from protocol_analytics.processing.compaction import (
    LARGE_MAX_BYTES,
    check_size_budget,
    compact_snapshot,
    create_cache_summary,
)
from protocol_analytics.processing.validators import IntegrityValidator
from protocol_analytics.shared.models.snapshots import MetricSnapshot
from protocol_analytics.storage.gateway import CacheGateway

ContextFactory = Callable[[], FetchContext]


def data_points(snapshot: MetricSnapshot) -> dict[str, int | float]:
    """Array lengths and top-level scalars, for trigger reports."""
    points: dict[str, int | float] = {}
    for name in type(snapshot).model_fields:
        value = getattr(snapshot, name)
        if isinstance(value, list):
            points[name] = len(value)
        elif isinstance(value, (int, float)) and not isinstance(value, bool):
            points[name] = value
    return points


def policy_field_errors(
    definition: DatasetDefinition, config: DatasetConfig
) -> list[str]:
    """Policy entries naming fields the dataset does not have."""
    known = set(definition.snapshot_model.model_fields)
    named = [
        *config.retention.series_limits,
        *config.retention.ranked_limits,
        *config.retention.projected_fields,
        *config.integrity.critical_scalars,
        *config.integrity.critical_arrays,
    ]
    return [
        f"Unknown field in {definition.key} policy: {name}"
        for name in named
        if name not in known
    ]


class DatasetRefreshWorkflow(BaseWorkflow):
    """Rebuilds and republishes one dataset snapshot from every source."""

    def __init__(
        self,
        definition: DatasetDefinition,
        config: DatasetConfig,
        aggregator: CrossSourceAggregator,
        gateway: CacheGateway,
        context_factory: ContextFactory,
        ceiling_bytes: int = LARGE_MAX_BYTES,
    ):
        super().__init__()
        self.definition = definition
        self.config = config
        self.aggregator = aggregator
        self.gateway = gateway
        self.context_factory = context_factory
        self.ceiling_bytes = ceiling_bytes
        self.validator = IntegrityValidator(definition.key, config.integrity)
        self.logger = get_pipeline_logger("refresh", dataset=definition.key)

    @property
    def dataset(self) -> str:
        return self.definition.key

    async def validate(self, context: IWorkflowContext) -> tuple[bool, list[str]]:
        errors = policy_field_errors(self.definition, self.config)
        return len(errors) == 0, errors

    async def _execute_impl(self, context: IWorkflowContext) -> dict[str, Any]:
        ctx = self.context_factory()
        snapshot = await self.aggregator.aggregate(self.definition, ctx)
        return await self.publish(snapshot)

    async def publish(self, snapshot: MetricSnapshot) -> dict[str, Any]:
        """Validate, compact and publish an aggregated snapshot.

        Raises:
            DegradedDataError: A critical metric is zero or empty
            StoreWriteError: The store rejected the write
        """
        self.validator.enforce(snapshot)
        self.logger.debug(
            "cache_summary", stage="raw", summary=create_cache_summary(snapshot)
        )

        compacted = compact_snapshot(snapshot, self.config.retention)
        self.logger.debug(
            "cache_summary", stage="compacted", summary=create_cache_summary(compacted)
        )
        size_class = check_size_budget(self.dataset, compacted, self.ceiling_bytes)

        size = await self.gateway.publish(self.dataset, compacted)
        return {
            "status": WorkflowStatus.SUCCESS.value,
            "dataset": self.dataset,
            "last_updated": compacted.last_updated.isoformat(),
            "data_points": data_points(compacted),
            "size_bytes": size,
            "size_class": size_class.value,
            "errors": [],
        }

    async def recompute_live(self) -> MetricSnapshot:
        """Aggregate without validating, compacting or publishing."""
        return await self.aggregator.aggregate(self.definition, self.context_factory())
