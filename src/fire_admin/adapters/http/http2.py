"""HTTP adapter – multiplexed HTTP/2 sessions.

A :class:`Http2SessionHandler` is a capability owned by the caller: many
concurrent sends share its single connection, and only the caller closes it.
"""
from __future__ import annotations

import asyncio
from typing import Any

import httpx

from fire_admin.adapters.http.client import perform
from fire_admin.adapters.http.response import HttpRequest, HttpResponse
from fire_admin.credentials import Credential
from fire_admin.kernel.errors import ConnectionError


class Http2SessionHandler:
    """Lazily established HTTP/2 session to one origin."""

    def __init__(self, base_url: str, **kwargs: Any) -> None:
        self._base_url = base_url
        self._kwargs = kwargs
        self._client: httpx.AsyncClient | None = None
        self._lock = asyncio.Lock()
        self._closed = False

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def is_closed(self) -> bool:
        return self._closed

    async def acquire(self) -> httpx.AsyncClient:
        """Return the session client, establishing it on first use.

        Concurrent callers wait on the same establishment.
        """
        async with self._lock:
            if self._closed:
                raise ConnectionError(self._base_url, "HTTP/2 session has been closed")
            if self._client is None:
                self._client = httpx.AsyncClient(base_url=self._base_url, http2=True, **self._kwargs)
            return self._client

    async def close(self) -> None:
        async with self._lock:
            self._closed = True
            if self._client is not None:
                await self._client.aclose()
                self._client = None

    async def __aenter__(self) -> "Http2SessionHandler":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()


class AuthorizedHttp2Client:
    """Sends authorized requests over a caller-supplied HTTP/2 session."""

    def __init__(self, credential: Credential) -> None:
        self._credential = credential

    async def send(self, request: HttpRequest, session: Http2SessionHandler) -> HttpResponse:
        client = await session.acquire()
        return await perform(client, request, self._headers(request))

    async def _headers(self, request: HttpRequest) -> dict[str, str]:
        headers = dict(request.headers)
        headers["Authorization"] = f"Bearer {await self._credential.get_access_token()}"
        return headers


__all__ = ["AuthorizedHttp2Client", "Http2SessionHandler"]
