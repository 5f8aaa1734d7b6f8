"""
Analytics Pipeline Exception Hierarchy

Provides specific exception types for each failure class of the aggregation
cycle, so callers can decide whether a failure degrades a single metric
(fetch errors), aborts the cycle (degraded data, store writes) or is
merely reported (size budget).
"""


class AnalyticsPipelineError(Exception):
    """Base exception for all pipeline errors."""


class FetchError(AnalyticsPipelineError):
    """Base class for upstream source failures."""

    def __init__(self, message: str, source: str | None = None):
        super().__init__(message)
        self.source = source


class TransportError(FetchError):
    """Upstream unreachable or answered with a non-2xx status."""

    def __init__(
        self,
        message: str,
        source: str | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message, source=source)
        self.status_code = status_code


class ProtocolError(FetchError):
    """Well-formed response whose envelope carries an ``errors`` payload."""

    def __init__(
        self,
        message: str,
        source: str | None = None,
        errors: list | None = None,
    ):
        super().__init__(message, source=source)
        self.errors = errors or []


class DegradedDataError(AnalyticsPipelineError):
    """Aggregated snapshot looks successful but carries masked fetch failures."""

    def __init__(self, dataset: str, violations: list[str]):
        super().__init__(
            f"Data validation failed for {dataset}: {len(violations)} critical "
            f"errors found ({'; '.join(violations)})"
        )
        self.dataset = dataset
        self.violations = violations


class StoreError(AnalyticsPipelineError):
    """Base class for key-value store failures."""


class StoreWriteError(StoreError):
    """Publishing a snapshot to the store failed."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: object = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class StoreReadError(StoreError):
    """Store could not be read (outage, bad payload)."""


class SizeBudgetWarning(UserWarning):
    """Compacted payload is close to or above the store ceiling."""
