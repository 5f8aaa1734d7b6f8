"""Orchestration layer: workflow lifecycle, aggregation cycles and the trigger surface."""

from .ports import IWorkflow, IWorkflowContext, WorkflowStatus
from .trigger import merge_fields, refresh_datasets
from .workflows import (
    BaseWorkflow,
    DatasetRefreshWorkflow,
    FieldMergeWorkflow,
    WorkflowContext,
)

__all__ = [
    "BaseWorkflow",
    "DatasetRefreshWorkflow",
    "FieldMergeWorkflow",
    "IWorkflow",
    "IWorkflowContext",
    "WorkflowContext",
    "WorkflowStatus",
    "merge_fields",
    "refresh_datasets",
]
