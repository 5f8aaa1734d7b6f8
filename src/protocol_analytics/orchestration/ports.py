"""
Orchestration Layer Protocol Definitions
=========================================

Protocol interfaces for workflow coordination. Workflows depend on these
rather than on a concrete scheduler or HTTP trigger.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Protocol, runtime_checkable


class WorkflowStatus(str, Enum):
    """Workflow execution status."""

    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"


@runtime_checkable
class IWorkflowContext(Protocol):
    """
    Abstraction over one workflow execution.

    Carries the run identifier, the runtime parameters and a logging sink so
    workflow logic stays independent of whatever triggered it.
    """

    @property
    def workflow_id(self) -> str:
        """Unique identifier for this workflow execution."""
        ...

    @property
    def execution_date(self) -> datetime:
        """Logical execution date/time."""
        ...

    @property
    def params(self) -> dict[str, Any]:
        """Workflow parameters passed at runtime."""
        ...

    def get_parameter(self, key: str, default: Any = None) -> Any:
        """Get a workflow parameter by key."""
        ...

    def log_info(self, message: str, **kw: Any) -> None:
        ...

    def log_warning(self, message: str, **kw: Any) -> None:
        ...

    def log_error(self, message: str, **kw: Any) -> None:
        ...


@runtime_checkable
class IWorkflow(Protocol):
    """
    Protocol defining workflow execution interface.

    A workflow coordinates fetch, merge, validate, compact and publish with
    error handling and result reporting.
    """

    async def execute(self, context: IWorkflowContext) -> dict[str, Any]:
        """
        Execute the workflow.

        Returns:
            Execution result dictionary with status, report and errors
        """
        ...

    async def validate(self, context: IWorkflowContext) -> tuple[bool, list[str]]:
        """
        Validate workflow preconditions.

        Returns:
            Tuple of (is_valid, error_messages)
        """
        ...

    def get_status(self) -> WorkflowStatus:
        """Get current workflow status."""
        ...
