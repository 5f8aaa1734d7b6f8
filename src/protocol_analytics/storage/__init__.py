"""Storage layer: key-value store adapters and the cache gateway."""

from .edge_config import EdgeConfigStore
from .gateway import CacheGateway, CacheInfo
from .local import LocalJsonStore
from .ports import IKeyValueStore

__all__ = [
    "CacheGateway",
    "CacheInfo",
    "EdgeConfigStore",
    "IKeyValueStore",
    "LocalJsonStore",
]
