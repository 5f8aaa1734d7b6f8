"""
Protocol analytics snapshot pipeline.
Pulls metrics from independent paginated indexers, merges them into
per-dataset snapshots and serves them from a read-optimized store.

Modules:
- ingestion: Source connectors and per-source metric fetchers
- processing: Cross-source aggregation, integrity validation, compaction
- storage: Key-value store adapters and the cache gateway
- serving: Freshness-aware reads
- orchestration: Aggregation cycle workflows and the trigger surface
- shared: Models, exceptions
- infrastructure: Config, logging
"""
