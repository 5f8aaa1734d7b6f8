"""Integrity validation of aggregated snapshots.

Upstream partial outages usually come back as well-formed zeros and empty
lists rather than transport errors, and every failed fetcher has already
been replaced by its zero/empty fallback. This validator catches the
resulting "success that looks like failure" before it is published.

Checks (per dataset, from IntegrityRules):
- critical scalars must be nonzero
- critical arrays must be non-empty

Validators check data quality without modifying data.
All violations are collected and returned as error messages.
"""

from pydantic.alias_generators import to_camel

from protocol_analytics.infrastructure.observability import get_processing_logger
from protocol_analytics.shared.exceptions import DegradedDataError
from protocol_analytics.shared.models.policies import IntegrityRules
from protocol_analytics.shared.models.snapshots import MetricSnapshot


class IntegrityValidator:
    """Applies one dataset's integrity rules to a pre-compaction snapshot."""

    def __init__(self, dataset: str, rules: IntegrityRules):
        self.dataset = dataset
        self.rules = rules
        self.logger = get_processing_logger("validator", dataset=dataset)

    def check(self, snapshot: MetricSnapshot) -> tuple[bool, list[str]]:
        """Validate a snapshot.

        Returns:
            (is_valid, errors) - errors is empty if valid
        """
        errors = []

        for name in self.rules.critical_scalars:
            if getattr(snapshot, name) == 0:
                errors.append(f"{to_camel(name)} is 0 - likely fetch failure")

        for name in self.rules.critical_arrays:
            if len(getattr(snapshot, name)) == 0:
                errors.append(f"{to_camel(name)} is empty - likely fetch failure")

        return (len(errors) == 0, errors)

    def enforce(self, snapshot: MetricSnapshot) -> None:
        """Raise DegradedDataError when any rule is violated."""
        is_valid, errors = self.check(snapshot)
        if is_valid:
            self.logger.info("validation_passed")
            return

        self.logger.error("validation_failed", violations=errors, count=len(errors))
        raise DegradedDataError(self.dataset, errors)
