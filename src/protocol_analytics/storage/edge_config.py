"""Vercel Edge Config adapter.

Write: administrative batch update
    PATCH {admin_base_url}/{id}/items
    {"items": [{"operation": "upsert", "key": ..., "value": ...}]}
    success requires a 2xx status AND a body ``status`` equal to "ok".

Read: keyed get against the edge read endpoint; 404 means the key is absent.
"""

import asyncio
from typing import Any

import aiohttp

from protocol_analytics.config.state import CacheStoreConfig
from protocol_analytics.infrastructure.observability import get_storage_logger
from protocol_analytics.ingestion.ports.http import IHttpClient
from protocol_analytics.shared.exceptions import StoreReadError, StoreWriteError
from protocol_analytics.shared.models.enums import StoreOperation


class EdgeConfigStore:
    """Edge Config items addressed by key."""

    def __init__(self, config: CacheStoreConfig, http_client: IHttpClient):
        self.config = config
        self.http_client = http_client
        self.logger = get_storage_logger("edge-config")

    def _require(self, value: str | None, name: str) -> str:
        if not value:
            raise StoreWriteError(f"{name} is not configured")
        return value

    async def upsert(
        self, key: str, value: Any, operation: StoreOperation = StoreOperation.UPSERT
    ) -> None:
        """Replace ``key`` with ``value`` in one request. Never retried.

        Raises:
            StoreWriteError: Missing credentials, transport failure, non-2xx
                status or a body status other than "ok"
        """
        edge_config_id = self._require(self.config.edge_config_id, "EDGE_CONFIG_ID")
        token = self._require(self.config.access_token, "VERCEL_ACCESS_TOKEN")
        url = f"{self.config.admin_base_url}/{edge_config_id}/items"
        body = {"items": [{"operation": operation.value, "key": key, "value": value}]}

        try:
            response = await self.http_client.patch(
                url,
                data=body,
                headers={
                    "Authorization": f"Bearer {token}",
                    "Content-Type": "application/json",
                },
            )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise StoreWriteError(f"Edge Config unreachable: {e}") from e

        if not response.ok:
            raise StoreWriteError(
                f"Failed to update Edge Config: HTTP {response.status_code}",
                status_code=response.status_code,
                body=response.body,
            )

        status = response.body.get("status") if isinstance(response.body, dict) else None
        if status != "ok":
            raise StoreWriteError(
                f"Edge Config update not acknowledged: {response.body}",
                status_code=response.status_code,
                body=response.body,
            )

        self.logger.debug("item_upserted", key=key, operation=operation.value)

    async def get(self, key: str) -> Any | None:
        """Read one item. Returns None when the key does not exist.

        Raises:
            StoreReadError: Store unreachable or misconfigured
        """
        edge_config_id = self.config.edge_config_id
        token = self.config.read_token or self.config.access_token
        if not edge_config_id or not token:
            raise StoreReadError("Edge Config read credentials are not configured")

        url = f"{self.config.read_base_url}/{edge_config_id}/item/{key}"
        try:
            response = await self.http_client.get(
                url, headers={"Authorization": f"Bearer {token}"}
            )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise StoreReadError(f"Edge Config unreachable: {e}") from e

        if response.status_code == 404:
            return None
        if not response.ok:
            raise StoreReadError(
                f"Edge Config read failed for {key}: HTTP {response.status_code}"
            )
        return response.body
