"""Transport-level connectors."""

from .aiohttp_client import AiohttpClient
from .graphql import GraphQLConnector

__all__ = ["AiohttpClient", "GraphQLConnector"]
