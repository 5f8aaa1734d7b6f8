"""Ports (interfaces) used by the ingestion and storage layers."""

from .http import HttpResponse, IHttpClient

__all__ = ["HttpResponse", "IHttpClient"]
