"""HTTP adapter – HTTP/1.1 clients built on httpx."""
from __future__ import annotations

from typing import Any, Awaitable

import httpx

from fire_admin.adapters.http.response import HttpRequest, HttpResponse, RequestResponseError
from fire_admin.credentials import Credential
from fire_admin.kernel.errors import ConnectionError, InfrastructureTimeoutError
from fire_admin.observability.logging import get_logger

_log = get_logger(__name__)


async def perform(
    client: httpx.AsyncClient, request: HttpRequest, headers: Awaitable[dict[str, str]]
) -> HttpResponse:
    """Issue *request* on *client* and map the outcome.

    *headers* is awaited inside the error mapping, so a credential that
    fails while fetching its token is reported like any transport failure.

    Non-2xx replies raise :class:`RequestResponseError`; httpx failures are
    mapped onto the infrastructure error hierarchy so they never leak.
    """
    try:
        response = await client.request(
            request.method,
            request.url,
            headers=await headers,
            json=request.json if request.content is None else None,
            content=request.content,
            timeout=request.timeout,
        )
    except httpx.TimeoutException as exc:
        raise InfrastructureTimeoutError(
            f"HTTP request timed out after {request.timeout}s: {request.method} {request.url}",
            cause=exc,
        ) from exc
    except httpx.HTTPError as exc:
        raise ConnectionError(request.url, f"Error while making request: {exc}", cause=exc) from exc

    result = HttpResponse.from_httpx(response)
    _log.debug("http.response", method=request.method, url=request.url, status=result.status)
    if not response.is_success:
        raise RequestResponseError(result, request.url)
    return result


class HttpClient:
    """Thin async httpx wrapper with structured error mapping."""

    def __init__(self, **kwargs: Any) -> None:
        self._client = httpx.AsyncClient(**kwargs)

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def send(self, request: HttpRequest) -> HttpResponse:
        return await perform(self._client, request, self._headers(request))

    async def _headers(self, request: HttpRequest) -> dict[str, str]:
        return dict(request.headers)


class AuthorizedHttpClient(HttpClient):
    """HttpClient that attaches a bearer token from a :class:`Credential`."""

    def __init__(self, credential: Credential, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._credential = credential

    async def _headers(self, request: HttpRequest) -> dict[str, str]:
        headers = await super()._headers(request)
        token = await self._credential.get_access_token()
        headers["Authorization"] = f"Bearer {token}"
        return headers


__all__ = ["AuthorizedHttpClient", "HttpClient", "perform"]
