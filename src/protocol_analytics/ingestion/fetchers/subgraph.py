"""Row queries for subgraph-style indexers, which expose no aggregates.

Counts are obtained by paginating ids with ``first``/``skip`` until a short
page comes back.
"""

from typing import Any

from protocol_analytics.ingestion.fetchers.base import FetchContext
from protocol_analytics.shared.models.enums import SourceName


def where_clause(**conditions: Any) -> str:
    if not conditions:
        return ""
    body = ", ".join(f'{key}: "{value}"' for key, value in conditions.items())
    return f", where: {{ {body} }}"


async def rows(
    ctx: FetchContext,
    source: SourceName,
    collection: str,
    selection: str,
    where: str = "",
) -> list[dict[str, Any]]:
    query = (
        f"query Rows($first: Int!, $skip: Int!) {{ {collection}("
        f"first: $first, skip: $skip, orderBy: id{where}) {{ {selection} }} }}"
    )
    return await ctx.connector(source).paginate(query, collection)


async def count(
    ctx: FetchContext,
    source: SourceName,
    collection: str,
    **conditions: Any,
) -> int:
    return len(await rows(ctx, source, collection, "id", where_clause(**conditions)))
