"""HTTP adapter – request / response descriptors and RequestResponseError."""
from __future__ import annotations

import dataclasses
import json
from typing import Any, Mapping

import httpx

from fire_admin.kernel.errors import ExternalServiceError, SerializationError

_UNSET = object()


@dataclasses.dataclass(frozen=True)
class HttpRequest:
    """Everything a transport needs to issue one request."""

    method: str
    url: str
    headers: Mapping[str, str] = dataclasses.field(default_factory=dict)
    json: Any = None
    content: bytes | None = None
    timeout: float = 15.0


class HttpResponse:
    """A transport-neutral view of one HTTP response.

    ``data`` is the parsed JSON body; reading it on a non-JSON body raises
    :class:`SerializationError`, so check :meth:`is_json` first.
    """

    def __init__(
        self,
        status: int,
        headers: Mapping[str, str] | None = None,
        content: bytes = b"",
    ) -> None:
        self.status = status
        self.headers = httpx.Headers(headers or {})
        self.content = content
        self._data: Any = _UNSET

    @classmethod
    def from_httpx(cls, response: httpx.Response) -> "HttpResponse":
        return cls(response.status_code, response.headers, response.content)

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "")

    @property
    def data(self) -> Any:
        if self._data is _UNSET:
            try:
                self._data = json.loads(self.text)
            except ValueError as exc:
                raise SerializationError(
                    f"Error while parsing response data: {exc}. Raw server response: {self.text!r}",
                    payload_type="json",
                    cause=exc,
                ) from exc
        return self._data

    def is_json(self) -> bool:
        try:
            self.data
        except SerializationError:
            return False
        return True

    def __repr__(self) -> str:
        return f"HttpResponse(status={self.status}, content_type={self.content_type!r})"


class RequestResponseError(ExternalServiceError):
    """The backend replied, but not with a 2xx status.

    Carries the full :class:`HttpResponse` so the error classifier can read
    backend-specific codes from the body.
    """

    default_code = "request_response_error"

    def __init__(self, response: HttpResponse, url: str = "") -> None:
        super().__init__(
            url,
            f"Server responded with status {response.status}.",
            status_code=response.status,
        )
        self.response = response


__all__ = ["HttpRequest", "HttpResponse", "RequestResponseError"]
