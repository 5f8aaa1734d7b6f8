"""Per-source metric fetchers."""

from .base import FetchContext, MetricFetcher, SourceResult, run_fetcher

__all__ = ["FetchContext", "MetricFetcher", "SourceResult", "run_fetcher"]
