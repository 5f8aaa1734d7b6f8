"""
Shared enumerations for the analytics pipeline.

Separates upstream sources (WHERE a number comes from) from datasets
(WHICH published snapshot it ends up in).
"""

import enum


# ============================================================================
# UPSTREAM SOURCES
# ============================================================================
class Ecosystem(str, enum.Enum):
    """Independent chain ecosystems. Identities are never shared across them."""

    EVM = "evm"
    SOLANA = "solana"


class SourceName(str, enum.Enum):
    """One upstream indexer covering one ecosystem/protocol surface."""

    LOCKUP_EVM = "lockup_evm"
    AIRDROPS_EVM = "airdrops_evm"
    FLOW_EVM = "flow_evm"
    SOLANA_LOCKUP = "solana_lockup"
    SOLANA_AIRDROPS = "solana_airdrops"

    @property
    def ecosystem(self) -> Ecosystem:
        if self.value.startswith("solana"):
            return Ecosystem.SOLANA
        return Ecosystem.EVM


class PaginationStyle(str, enum.Enum):
    """How a GraphQL indexer spells page size and offset."""

    HASURA = "hasura"  # limit / offset
    SUBGRAPH = "subgraph"  # first / skip


# ============================================================================
# PUBLISHED DATASETS
# ============================================================================
class DatasetKey(str, enum.Enum):
    """Store key of each independently refreshed snapshot."""

    ANALYTICS = "analytics"
    AIRDROPS = "airdrops"
    SOLANA_ANALYTICS = "solana_analytics"
    FLOW_ANALYTICS = "flow_analytics"


class StoreOperation(str, enum.Enum):
    """Batch-update operations accepted by the store's admin interface."""

    UPSERT = "upsert"
    UPDATE = "update"
