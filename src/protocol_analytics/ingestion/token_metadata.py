"""SPL token metadata lookup for ranked Solana tokens.

Resolution order per mint: Jupiter token list, then the Solana Labs token
registry for the mints Jupiter does not know. Lookups fail soft: an
unreachable or malformed list resolves nothing and the token keeps only its
mint and stream count.
"""

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import aiohttp

from protocol_analytics.config.state import TokenMetadataConfig
from protocol_analytics.infrastructure.observability import get_ingestion_logger
from protocol_analytics.ingestion.ports.http import IHttpClient


@dataclass(frozen=True)
class TokenMetadata:
    address: str
    symbol: str
    name: str


def metadata_by_address(entries: Any) -> dict[str, TokenMetadata]:
    """Index a token list by mint address, skipping incomplete entries."""
    if not isinstance(entries, list):
        return {}
    index = {}
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        address = entry.get("address")
        symbol = entry.get("symbol")
        if address and symbol:
            index[address] = TokenMetadata(
                address=address, symbol=symbol, name=entry.get("name") or symbol
            )
    return index


class TokenMetadataResolver:
    """Resolves mint addresses to symbol and name through public token lists."""

    def __init__(self, http_client: IHttpClient, config: TokenMetadataConfig | None = None):
        self.http_client = http_client
        self.config = config or TokenMetadataConfig()
        self.logger = get_ingestion_logger("token-metadata")

    async def _fetch_list(self, name: str, url: str) -> Any:
        try:
            response = await self.http_client.get(
                url,
                headers={"User-Agent": self.config.user_agent},
                timeout=self.config.timeout_seconds,
            )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.logger.warning("token_list_failed", token_list=name, error=str(e))
            return None

        if not response.ok:
            self.logger.warning(
                "token_list_failed", token_list=name, status_code=response.status_code
            )
            return None
        return response.body

    async def jupiter(self) -> dict[str, TokenMetadata]:
        return metadata_by_address(await self._fetch_list("jupiter", self.config.jupiter_url))

    async def registry(self) -> dict[str, TokenMetadata]:
        body = await self._fetch_list("solana_registry", self.config.registry_url)
        tokens = body.get("tokens") if isinstance(body, dict) else None
        return metadata_by_address(tokens)

    async def resolve(self, mints: Sequence[str]) -> dict[str, TokenMetadata]:
        """Metadata for every mint found in either list; unknown mints are absent."""
        if not mints:
            return {}

        known = await self.jupiter()
        missing = [mint for mint in mints if mint not in known]
        if missing:
            known = {**(await self.registry()), **known}

        resolved = {mint: known[mint] for mint in mints if mint in known}
        self.logger.info("token_metadata_resolved", resolved=len(resolved), requested=len(mints))
        return resolved
