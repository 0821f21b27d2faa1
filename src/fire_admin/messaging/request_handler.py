"""Messaging – request handler for the push-messaging backend.

All outbound messaging calls go through :class:`MessagingRequestHandler`.
Single sends resolve to a :class:`SendResponse` whatever the backend says;
batch sends reconcile every multipart reply part into one ordered
:class:`BatchResponse`. Only whole-call failures are raised, always as a
normalized :class:`MessagingError`.
"""
from __future__ import annotations

import platform
from enum import StrEnum
from typing import Any, Mapping, Sequence

from fire_admin import __version__
from fire_admin.adapters.http import (
    AuthorizedHttp2Client,
    AuthorizedHttpClient,
    Http2SessionHandler,
    HttpRequest,
    HttpResponse,
    RequestResponseError,
)
from fire_admin.config import EnvSettingsLoader, MessagingSettings
from fire_admin.credentials import Credential
from fire_admin.kernel.errors import InfrastructureError, MessagingError, SerializationError
from fire_admin.messaging.batch import BatchRequestClient, SubRequest
from fire_admin.messaging.errors import create_messaging_error, get_error_code
from fire_admin.messaging.models import BatchResponse, SendResponse
from fire_admin.observability.logging import get_logger

__all__ = [
    "HEADER_SETS",
    "MESSAGING_HTTP_METHOD",
    "MessagingRequestHandler",
    "Transport",
]

MESSAGING_HTTP_METHOD = "POST"

_log = get_logger(__name__)


def _client_headers() -> dict[str, str]:
    return {
        "X-Firebase-Client": f"fire-admin-python/{__version__}",
        "X-Goog-Api-Client": f"gl-python/{platform.python_version()} fire-admin/{__version__}",
    }


# "legacy" additionally marks access-token authentication for endpoints that
# predate OAuth2-only auth; batches go out with "default".
HEADER_SETS: dict[str, Mapping[str, str]] = {
    "default": _client_headers(),
    "legacy": {**_client_headers(), "access_token_auth": "true"},
}


class Transport(StrEnum):
    HTTP1 = "http1"
    HTTP2 = "http2"


class MessagingRequestHandler:
    """Sends requests to the messaging backend and normalizes the replies.

    One instance owns its HTTP/1.1 client and the batch client layered on
    it; close it with :meth:`aclose` or ``async with``. HTTP/2 sessions are
    supplied per call by the caller and never closed here.

    Parameters
    ----------
    credential:
        Supplies the bearer token attached to every request.
    settings:
        Timeout and batch endpoint; when omitted, :class:`MessagingSettings`
        is loaded from the ``FIRE_ADMIN_MESSAGING_*`` environment.
    **client_kwargs:
        Forwarded to the underlying ``httpx.AsyncClient`` (e.g. ``transport``).
    """

    def __init__(
        self,
        credential: Credential,
        settings: MessagingSettings | None = None,
        **client_kwargs: Any,
    ) -> None:
        self._settings = settings or EnvSettingsLoader().load(MessagingSettings)
        self._http_client = AuthorizedHttpClient(credential, **client_kwargs)
        self._http2_client = AuthorizedHttp2Client(credential)
        self._batch_client = BatchRequestClient(
            self._http_client,
            self._settings.batch_url,
            HEADER_SETS["default"],
            timeout=self._settings.timeout,
        )

    @property
    def settings(self) -> MessagingSettings:
        return self._settings

    async def __aenter__(self) -> "MessagingRequestHandler":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http_client.aclose()

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def invoke_request_handler(self, host: str, path: str, body: Mapping[str, Any]) -> dict[str, Any]:
        """Send *body* and return the raw JSON reply.

        The call succeeds only for a JSON body without an embedded backend
        error code; anything else raises a :class:`MessagingError`.
        """
        request = self._build_request(host, path, body)
        try:
            response = await self._http_client.send(request)
            if not response.is_json() or get_error_code(response.data):
                raise RequestResponseError(response, request.url)
        except InfrastructureError as exc:
            raise self._normalize(exc, request.url) from exc
        return response.data

    async def invoke_http_request_handler_for_send_response(
        self, host: str, path: str, body: Mapping[str, Any]
    ) -> SendResponse:
        """Send one message over HTTP/1.1; never raises for a failed send."""
        return await self._send_for_send_response(self._build_request(host, path, body), Transport.HTTP1)

    async def invoke_http2_request_handler_for_send_response(
        self,
        host: str,
        path: str,
        body: Mapping[str, Any],
        session: Http2SessionHandler,
    ) -> SendResponse:
        """Send one message over the caller's HTTP/2 *session*; never raises for a failed send."""
        return await self._send_for_send_response(
            self._build_request(host, path, body), Transport.HTTP2, session
        )

    async def send_batch_request(self, requests: Sequence[SubRequest]) -> BatchResponse:
        """Send *requests* as one multipart batch.

        ``responses[i]`` of the result belongs to ``requests[i]``. Failed
        items stay inside the result; only a failure of the batch call
        itself (transport, non-2xx, undecodable reply) raises.
        """
        if not requests:
            return BatchResponse()
        try:
            parts = await self._batch_client.send(requests)
        except InfrastructureError as exc:
            raise self._normalize(exc, self._settings.batch_url) from exc

        batch = BatchResponse.from_responses(self._build_send_response(part) for part in parts)
        _log.info(
            "messaging.batch.complete",
            batch_size=len(batch),
            success_count=batch.success_count,
            failure_count=batch.failure_count,
        )
        return batch

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _build_request(self, host: str, path: str, body: Mapping[str, Any], headers: str = "legacy") -> HttpRequest:
        return HttpRequest(
            method=MESSAGING_HTTP_METHOD,
            url=f"https://{host}{path}",
            headers=HEADER_SETS[headers],
            json=body,
            timeout=self._settings.timeout,
        )

    async def _send_for_send_response(
        self,
        request: HttpRequest,
        transport: Transport,
        session: Http2SessionHandler | None = None,
    ) -> SendResponse:
        _log.debug("messaging.send", url=request.url, transport=transport)
        try:
            if transport is Transport.HTTP2:
                if session is None:
                    raise ValueError("An HTTP/2 session is required for Transport.HTTP2")
                response = await self._http2_client.send(request, session)
            else:
                response = await self._http_client.send(request)
        except InfrastructureError as exc:
            return SendResponse.failed(self._normalize(exc, request.url))
        return self._build_send_response(response)

    def _build_send_response(self, response: HttpResponse) -> SendResponse:
        if response.status != 200:
            return SendResponse.failed(self._normalize(RequestResponseError(response)))
        data = response.data if response.is_json() else None
        name = data.get("name") if isinstance(data, dict) else None
        if not isinstance(name, str) or not name:
            malformed = SerializationError(
                f"Expected a message name in the send response, got: {response.text!r}",
                payload_type="json",
            )
            return SendResponse.failed(self._normalize(malformed))
        return SendResponse.ok(name)

    def _normalize(self, exc: BaseException, url: str = "") -> MessagingError:
        error = create_messaging_error(exc)
        _log.warning("messaging.request.failed", url=url, code=error.code, message=error.message)
        return error
