"""
Field Merge Workflow
====================

The one sanctioned partial update: re-fetch a named subset of metrics, lay
them over the previously published snapshot and republish the whole
snapshot under a new ``lastUpdated``. Field-level writes never reach the
store; the publish is still a single whole-key replace.
"""

from typing import Any

from protocol_analytics.orchestration.ports import IWorkflowContext
from protocol_analytics.orchestration.workflows.refresh_workflow import (
    DatasetRefreshWorkflow,
)
from protocol_analytics.shared.exceptions import DegradedDataError


class FieldMergeWorkflow(DatasetRefreshWorkflow):
    """Expects a ``metrics`` parameter listing the snapshot fields to refresh."""

    async def validate(self, context: IWorkflowContext) -> tuple[bool, list[str]]:
        is_valid, errors = await super().validate(context)
        metrics = context.get_parameter("metrics") or []
        if not metrics:
            errors.append("Missing 'metrics' parameter in context")
        unknown = sorted(set(metrics) - set(self.definition.metric_names))
        if unknown:
            errors.append(f"Unknown metrics for {self.dataset}: {', '.join(unknown)}")
        return len(errors) == 0, errors

    async def _execute_impl(self, context: IWorkflowContext) -> dict[str, Any]:
        metrics = list(context.get_parameter("metrics"))

        prior = await self.gateway.read(self.dataset)
        if prior is None:
            raise DegradedDataError(
                self.dataset, ["no published snapshot to merge fields into"]
            )

        ctx = self.context_factory()
        outcome = await self.aggregator.collect(self.definition.select(metrics), ctx)

        merged = {
            name: getattr(prior, name)
            for name in type(prior).model_fields
            if name != "last_updated"
        }
        merged.update(outcome.values)
        snapshot = self.definition.build(merged, last_updated=ctx.now)

        self.logger.info(
            "fields_merged",
            metrics=metrics,
            failed=[f"{r.source.value}:{r.metric}" for r in outcome.failed],
            previous_update=prior.last_updated.isoformat(),
        )
        result = await self.publish(snapshot)
        result["merged_metrics"] = metrics
        return result
