"""
Observability for the analytics pipeline: structured, layer-scoped logging
so a degraded metric, a rejected cycle or a stale read can be traced back to
the source and the decision that produced it.
"""

from .logging import (
    # Layer-specific logger factories
    get_ingestion_logger,
    # Base logger factory
    get_logger,
    get_pipeline_logger,
    get_processing_logger,
    get_serving_logger,
    get_storage_logger,
    # Setup
    setup_logging,
)

__all__ = [
    # Setup
    "setup_logging",
    # Base
    "get_logger",
    # Layer-specific
    "get_ingestion_logger",
    "get_pipeline_logger",
    "get_processing_logger",
    "get_serving_logger",
    "get_storage_logger",
]
