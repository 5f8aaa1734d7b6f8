"""
Base Workflow Implementation
============================

Provides the base workflow class and the workflow context used by the
trigger surface and the CLI.
"""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from protocol_analytics.infrastructure.observability import get_pipeline_logger
from protocol_analytics.orchestration.ports import IWorkflowContext, WorkflowStatus


@dataclass
class WorkflowContext:
    """
    Workflow context for in-process runs.

    Log calls go to the pipeline logger bound to the run id, so every event a
    workflow emits can be correlated with the trigger that started it.
    """

    params: dict[str, Any] = field(default_factory=dict)
    workflow_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    execution_date: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    def __post_init__(self):
        self._logger = get_pipeline_logger(
            "workflow", dataset=self.params.get("dataset")
        ).bind(workflow_id=self.workflow_id)

    def get_parameter(self, key: str, default: Any = None) -> Any:
        return self.params.get(key, default)

    def log_info(self, message: str, **kw: Any) -> None:
        self._logger.info(message, **kw)

    def log_warning(self, message: str, **kw: Any) -> None:
        self._logger.warning(message, **kw)

    def log_error(self, message: str, **kw: Any) -> None:
        self._logger.error(message, **kw)


class BaseWorkflow(ABC):
    """
    Base class for workflow implementations.

    Provides template for workflow execution with standard lifecycle:
    1. Validate preconditions
    2. Execute workflow logic
    3. Convert terminal errors into a failed result
    4. Report results

    Subclasses implement _execute_impl() with specific business logic.
    """

    def __init__(self):
        self._status = WorkflowStatus.PENDING
        self._start_time: datetime | None = None
        self._end_time: datetime | None = None

    async def execute(self, context: IWorkflowContext) -> dict[str, Any]:
        """
        Execute the workflow with standard lifecycle.

        Never raises for pipeline failures: a degraded aggregate, a failed
        publish or a bad configuration all come back as a failed result.
        """
        self._start_time = datetime.now(timezone.utc)
        self._status = WorkflowStatus.RUNNING

        context.log_info("workflow_started", workflow=self.__class__.__name__)

        try:
            is_valid, errors = await self.validate(context)
            if not is_valid:
                self._status = WorkflowStatus.FAILED
                self._end_time = datetime.now(timezone.utc)
                context.log_error("workflow_invalid", errors=errors)
                return self._create_failure_result(errors)

            result = await self._execute_impl(context)

            self._status = WorkflowStatus.SUCCESS
            self._end_time = datetime.now(timezone.utc)
            duration = (self._end_time - self._start_time).total_seconds()
            context.log_info("workflow_completed", duration_seconds=round(duration, 3))

            result["duration_seconds"] = duration
            return result

        except Exception as e:
            self._status = WorkflowStatus.FAILED
            self._end_time = datetime.now(timezone.utc)
            duration = (self._end_time - self._start_time).total_seconds()

            context.log_error(
                "workflow_failed", error_type=type(e).__name__, error=str(e)
            )
            return self._create_failure_result(
                [f"{type(e).__name__}: {e}"], duration=duration
            )

    async def validate(self, context: IWorkflowContext) -> tuple[bool, list[str]]:
        """
        Validate workflow preconditions.

        Default implementation always returns valid.
        """
        return True, []

    @abstractmethod
    async def _execute_impl(self, context: IWorkflowContext) -> dict[str, Any]:
        """
        Execute workflow-specific logic.

        Returns:
            Execution result dictionary
        """

    def get_status(self) -> WorkflowStatus:
        return self._status

    def _create_failure_result(
        self,
        errors: list[str],
        duration: float | None = None,
    ) -> dict[str, Any]:
        if duration is None and self._start_time and self._end_time:
            duration = (self._end_time - self._start_time).total_seconds()

        return {
            "status": WorkflowStatus.FAILED.value,
            "errors": errors,
            "duration_seconds": duration or 0,
        }
