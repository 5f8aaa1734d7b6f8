"""Concrete HTTP client implementation for async requests.

Wraps aiohttp behind IHttpClient abstraction.
"""

import json
from typing import Any

import aiohttp

from protocol_analytics.config.state import HttpConfig
from protocol_analytics.ingestion.ports.http import HttpResponse, IHttpClient


class AiohttpClient(IHttpClient):
    """HTTP client implementation using aiohttp.

    One session is shared by every connector and store adapter of a process;
    call ``close()`` (or use ``async with``) when done.
    """

    def __init__(self, config: HttpConfig | None = None):
        self.config = config or HttpConfig()
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> "AiohttpClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)
            self._session = aiohttp.ClientSession(
                timeout=timeout,
                headers={"User-Agent": self.config.user_agent},
            )
        return self._session

    @staticmethod
    async def _to_response(resp: aiohttp.ClientResponse) -> HttpResponse:
        text = await resp.text()
        try:
            body: Any = json.loads(text) if text else None
        except ValueError:
            body = text
        return HttpResponse(
            status_code=resp.status,
            body=body,
            headers=dict(resp.headers),
            url=str(resp.url),
        )

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> HttpResponse:
        session = await self._get_session()
        timeout_obj = aiohttp.ClientTimeout(
            total=timeout or self.config.timeout_seconds
        )
        async with session.request(
            method,
            url,
            params=params,
            json=data,
            headers=headers,
            timeout=timeout_obj,
        ) as resp:
            return await self._to_response(resp)

    async def get(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> HttpResponse:
        """Execute GET request.

        Raises:
            aiohttp.ClientError: On connection errors
        """
        return await self._request(
            "GET", url, params=params, headers=headers, timeout=timeout
        )

    async def post(
        self,
        url: str,
        data: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> HttpResponse:
        """Execute POST request.

        Raises:
            aiohttp.ClientError: On connection errors
        """
        return await self._request(
            "POST", url, data=data, headers=headers, timeout=timeout
        )

    async def patch(
        self,
        url: str,
        data: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> HttpResponse:
        return await self._request(
            "PATCH", url, data=data, headers=headers, timeout=timeout
        )

    async def close(self) -> None:
        """Close HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None
