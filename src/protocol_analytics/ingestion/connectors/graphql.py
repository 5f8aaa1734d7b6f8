"""GraphQL source connector.

One connector per upstream indexer. Maps every failure onto the pipeline
taxonomy:
- unreachable host, timeout, non-2xx status -> TransportError
- 200 envelope with a populated ``errors`` field -> ProtocolError

Nothing is retried. A failed page fails the whole fetch; pages are never
silently dropped.
"""

import asyncio
from typing import Any

import aiohttp

from protocol_analytics.infrastructure.observability import get_ingestion_logger
from protocol_analytics.ingestion.ports.http import IHttpClient
from protocol_analytics.shared.exceptions import ProtocolError, TransportError
from protocol_analytics.shared.models.enums import PaginationStyle, SourceName

# Variable names each indexer flavour uses for page size and offset
PAGE_VARIABLES: dict[PaginationStyle, tuple[str, str]] = {
    PaginationStyle.HASURA: ("limit", "offset"),
    PaginationStyle.SUBGRAPH: ("first", "skip"),
}


class GraphQLConnector:
    """Executes queries against one GraphQL endpoint."""

    def __init__(
        self,
        source: SourceName,
        endpoint: str,
        http_client: IHttpClient,
        pagination: PaginationStyle = PaginationStyle.HASURA,
        page_size: int = 1000,
    ):
        self.source = source
        self.endpoint = endpoint
        self.http_client = http_client
        self.pagination = pagination
        self.page_size = page_size
        self.logger = get_ingestion_logger("graphql", source=source.value)

    async def query(
        self, query: str, variables: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Run one query and return the ``data`` object of the envelope.

        Raises:
            TransportError: Upstream unreachable or non-2xx status
            ProtocolError: Envelope carries ``errors``
        """
        payload: dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        try:
            response = await self.http_client.post(
                self.endpoint,
                data=payload,
                headers={"Content-Type": "application/json"},
            )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(
                f"{self.source.value} unreachable: {type(e).__name__}: {e}",
                source=self.source.value,
            ) from e

        if not response.ok:
            raise TransportError(
                f"{self.source.value} responded with HTTP {response.status_code}",
                source=self.source.value,
                status_code=response.status_code,
            )

        body = response.body
        if not isinstance(body, dict):
            raise ProtocolError(
                f"{self.source.value} returned a non-JSON envelope",
                source=self.source.value,
            )

        errors = body.get("errors")
        if errors:
            raise ProtocolError(
                f"{self.source.value} GraphQL errors: {errors}",
                source=self.source.value,
                errors=list(errors),
            )

        return body.get("data") or {}

    async def paginate(
        self,
        query: str,
        root_field: str,
        variables: dict[str, Any] | None = None,
        page_size: int | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch every row of ``root_field`` page by page.

        The query must declare the page-size and offset variables of this
        connector's pagination style (``$limit/$offset`` or ``$first/$skip``).
        Stops at the first page shorter than the page size.
        """
        size = page_size or self.page_size
        size_var, offset_var = PAGE_VARIABLES[self.pagination]
        rows: list[dict[str, Any]] = []
        offset = 0

        while True:
            page_vars = {**(variables or {}), size_var: size, offset_var: offset}
            data = await self.query(query, page_vars)
            batch = data.get(root_field) or []
            rows.extend(batch)

            if len(batch) < size:
                break
            offset += size

        self.logger.debug(
            "pagination_complete",
            root_field=root_field,
            rows=len(rows),
            pages=offset // size + 1,
        )
        return rows

    async def aggregate_count(
        self,
        entity: str,
        where: str = "{}",
        variables: dict[str, Any] | None = None,
        variable_defs: str = "",
    ) -> int:
        """Push-down count via a Hasura ``<entity>_aggregate`` query.

        Args:
            entity: Root entity name, e.g. ``Stream``
            where: GraphQL ``where`` expression
            variables: Values for variables referenced in ``where``
            variable_defs: Matching declarations, e.g. ``($since: numeric!)``
        """
        field = f"{entity}_aggregate"
        query = (
            f"query Count{entity}{variable_defs} {{ "
            f"{field}(where: {where}) {{ aggregate {{ count }} }} }}"
        )
        data = await self.query(query, variables)
        aggregate = (data.get(field) or {}).get("aggregate") or {}
        return int(aggregate.get("count") or 0)
