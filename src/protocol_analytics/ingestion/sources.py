"""Source registry: one GraphQL connector per configured upstream indexer."""

from protocol_analytics.config.state import ConfigState
from protocol_analytics.ingestion.connectors.graphql import GraphQLConnector
from protocol_analytics.ingestion.fetchers.base import FetchContext
from protocol_analytics.ingestion.ports.http import IHttpClient
from protocol_analytics.ingestion.token_metadata import TokenMetadataResolver
from protocol_analytics.shared.models.enums import (
    Ecosystem,
    PaginationStyle,
    SourceName,
)

# EVM indexers are Hasura-backed; Solana ones are subgraphs
PAGINATION_BY_ECOSYSTEM: dict[Ecosystem, PaginationStyle] = {
    Ecosystem.EVM: PaginationStyle.HASURA,
    Ecosystem.SOLANA: PaginationStyle.SUBGRAPH,
}


def build_connectors(
    config: ConfigState, http_client: IHttpClient
) -> dict[SourceName, GraphQLConnector]:
    connectors = {}
    for source_config in config.sources.values():
        name = source_config.name
        connectors[name] = GraphQLConnector(
            source=name,
            endpoint=source_config.endpoint,
            http_client=http_client,
            pagination=PAGINATION_BY_ECOSYSTEM[name.ecosystem],
            page_size=source_config.page_size,
        )
    return connectors


def build_fetch_context(
    config: ConfigState,
    connectors: dict[SourceName, GraphQLConnector],
    token_metadata: TokenMetadataResolver | None = None,
) -> FetchContext:
    """Fresh context per cycle so every fetcher shares one notion of "now"."""
    chains = config.chains
    return FetchContext(
        connectors=connectors,
        testnet_chain_ids=tuple(chains.testnet_chain_ids),
        chain_names=dict(chains.chain_names),
        evm_stablecoins=tuple(chains.evm_stablecoins),
        solana_stablecoin_mints=tuple(chains.solana_stablecoin_mints),
        token_metadata=token_metadata,
    )
