"""Configuration package for protocol_analytics."""

from .state import (
    CacheStoreConfig,
    ConfigLoader,
    ConfigState,
    DatasetConfig,
    SourceConfig,
    get_config,
)

__all__ = [
    "CacheStoreConfig",
    "ConfigLoader",
    "ConfigState",
    "DatasetConfig",
    "SourceConfig",
    "get_config",
]
