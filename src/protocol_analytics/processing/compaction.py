"""Size optimizer / compactor.

Pure, deterministic snapshot -> snapshot transform governed by a dataset's
RetentionPolicy, plus serialized-size estimation against the store ceiling.

Applying ``compact_snapshot`` twice yields the same result as applying it once.
"""

import enum
import json
import warnings
from collections.abc import Sequence
from typing import Any, TypeVar

from protocol_analytics.infrastructure.observability import get_processing_logger
from protocol_analytics.shared.exceptions import SizeBudgetWarning
from protocol_analytics.shared.models.policies import RetentionPolicy
from protocol_analytics.shared.models.snapshots import MetricSnapshot

T = TypeVar("T")
S = TypeVar("S", bound=MetricSnapshot)

logger = get_processing_logger("compactor")

# Upper bounds (inclusive) of each size class, in bytes
OPTIMAL_MAX_BYTES = 250_000
MODERATE_MAX_BYTES = 500_000
LARGE_MAX_BYTES = 1_000_000


class SizeClass(str, enum.Enum):
    OPTIMAL = "optimal"
    MODERATE = "moderate"
    LARGE = "large"
    TOO_LARGE = "too_large"


# =============================================================================
# RETENTION
# =============================================================================


def limit_recent_periods(points: Sequence[T], limit: int) -> list[T]:
    """Keep the most recent ``limit`` periods, returned in ascending order.

    Sorting newest-first before truncating keeps the right window regardless
    of upstream ordering or gaps.
    """
    newest_first = sorted(points, key=lambda p: p.period, reverse=True)
    return sorted(newest_first[:limit], key=lambda p: p.period)


def limit_top_entries(entries: Sequence[T], limit: int) -> list[T]:
    """First ``limit`` entries; order was fixed by the aggregator."""
    return list(entries[:limit])


def compact_snapshot(snapshot: S, policy: RetentionPolicy) -> S:
    """Apply every retention cap and display projection of ``policy``."""
    update: dict[str, Any] = {}

    for name, limit in policy.series_limits.items():
        update[name] = limit_recent_periods(getattr(snapshot, name), limit)

    for name, limit in policy.ranked_limits.items():
        update[name] = limit_top_entries(getattr(snapshot, name), limit)

    for name in policy.projected_fields:
        entries = update.get(name, getattr(snapshot, name))
        update[name] = [entry.compact() for entry in entries]

    return snapshot.model_copy(update=update)


# =============================================================================
# SIZE
# =============================================================================


def estimate_size_bytes(value: MetricSnapshot | dict[str, Any]) -> int:
    """UTF-8 length of the JSON payload the store would receive."""
    if isinstance(value, MetricSnapshot):
        value = value.to_cache_value()
    return len(json.dumps(value, separators=(",", ":")).encode("utf-8"))


def classify_size(size_bytes: int, ceiling_bytes: int = LARGE_MAX_BYTES) -> SizeClass:
    if size_bytes > ceiling_bytes:
        return SizeClass.TOO_LARGE
    if size_bytes > MODERATE_MAX_BYTES:
        return SizeClass.LARGE
    if size_bytes > OPTIMAL_MAX_BYTES:
        return SizeClass.MODERATE
    return SizeClass.OPTIMAL


def format_bytes(size_bytes: int) -> str:
    """Human readable size, 1024-based.

    >>> format_bytes(1536)
    '1.5 KB'
    """
    if size_bytes <= 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB"]
    exponent = 0
    value = float(size_bytes)
    while value >= 1024 and exponent < len(units) - 1:
        value /= 1024
        exponent += 1
    return f"{round(value, 2):g} {units[exponent]}"


def check_size_budget(
    dataset: str, snapshot: MetricSnapshot, ceiling_bytes: int = LARGE_MAX_BYTES
) -> SizeClass:
    """Log the payload size class. Never blocks publishing."""
    size = estimate_size_bytes(snapshot)
    size_class = classify_size(size, ceiling_bytes)
    log = logger.bind(
        dataset=dataset,
        size_bytes=size,
        size=format_bytes(size),
        size_class=size_class.value,
    )

    if size_class is SizeClass.TOO_LARGE:
        log.error("cache_size")
        warnings.warn(
            f"{dataset} payload is {format_bytes(size)}, above the "
            f"{format_bytes(ceiling_bytes)} budget",
            SizeBudgetWarning,
            stacklevel=2,
        )
    elif size_class is SizeClass.LARGE:
        log.warning("cache_size")
    else:
        log.info("cache_size")

    return size_class


def create_cache_summary(value: MetricSnapshot | dict[str, Any]) -> dict[str, str]:
    """Shape of each top-level field, for debug logs."""
    if isinstance(value, MetricSnapshot):
        value = value.to_cache_value()
    summary = {}
    for key, item in value.items():
        if isinstance(item, list):
            summary[key] = f"Array({len(item)})"
        elif isinstance(item, dict):
            summary[key] = f"{len(item)} keys"
        else:
            summary[key] = type(item).__name__
    return summary
