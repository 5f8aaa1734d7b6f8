"""Trigger surface: run aggregation cycles on demand and report per dataset.

A failing dataset never affects the others; each cycle runs its own workflow
instance and the report carries one entry per requested key.
"""

import asyncio
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from typing import Any

from protocol_analytics.infrastructure.observability import get_pipeline_logger
from protocol_analytics.orchestration.ports import IWorkflow, WorkflowStatus
from protocol_analytics.orchestration.workflows.base import WorkflowContext
from protocol_analytics.shared.models.enums import DatasetKey

WorkflowFactory = Callable[[str], IWorkflow]

logger = get_pipeline_logger("trigger")


def _dataset_report(result: dict[str, Any]) -> dict[str, Any]:
    return {
        "success": result.get("status") == WorkflowStatus.SUCCESS.value,
        "last_updated": result.get("last_updated"),
        "errors": result.get("errors", []),
        "data_points": result.get("data_points", {}),
    }


async def refresh_datasets(
    workflow_factory: WorkflowFactory,
    keys: Sequence[str] | None = None,
) -> dict[str, Any]:
    """Refresh ``keys`` (default: every dataset) concurrently.

    Returns:
        {"success": bool, "timestamp": iso, "datasets": {key: report}}
    """
    keys = [DatasetKey(key).value for key in (keys or [k.value for k in DatasetKey])]

    async def run(key: str) -> dict[str, Any]:
        workflow = workflow_factory(key)
        return await workflow.execute(WorkflowContext(params={"dataset": key}))

    results = await asyncio.gather(*(run(key) for key in keys))
    datasets = {key: _dataset_report(result) for key, result in zip(keys, results)}
    success = all(report["success"] for report in datasets.values())

    logger.info(
        "refresh_complete",
        success=success,
        succeeded=[key for key, report in datasets.items() if report["success"]],
        failed=[key for key, report in datasets.items() if not report["success"]],
    )
    return {
        "success": success,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "datasets": datasets,
    }


async def merge_fields(
    workflow_factory: WorkflowFactory,
    dataset: str,
    metrics: Sequence[str],
) -> dict[str, Any]:
    """Run the field-merge workflow built by ``workflow_factory`` for one dataset."""
    key = DatasetKey(dataset).value
    workflow = workflow_factory(key)
    result = await workflow.execute(
        WorkflowContext(params={"dataset": key, "metrics": list(metrics)})
    )
    report = _dataset_report(result)
    report["dataset"] = key
    report["metrics"] = list(metrics)
    return report
