from .base import BaseWorkflow, WorkflowContext
from .merge_workflow import FieldMergeWorkflow
from .refresh_workflow import DatasetRefreshWorkflow, data_points

__all__ = [
    "BaseWorkflow",
    "DatasetRefreshWorkflow",
    "FieldMergeWorkflow",
    "WorkflowContext",
    "data_points",
]
