"""Processing layer: cross-source aggregation, integrity validation and compaction."""

from .aggregator import (
    AggregationOutcome,
    CrossSourceAggregator,
    DatasetDefinition,
    MetricSpec,
)
from .compaction import (
    SizeClass,
    check_size_budget,
    compact_snapshot,
    create_cache_summary,
    estimate_size_bytes,
    format_bytes,
)
from .validators import IntegrityValidator

__all__ = [
    "AggregationOutcome",
    "CrossSourceAggregator",
    "DatasetDefinition",
    "MetricSpec",
    "IntegrityValidator",
    "SizeClass",
    "check_size_budget",
    "compact_snapshot",
    "create_cache_summary",
    "estimate_size_bytes",
    "format_bytes",
]
