"""Messaging – multipart/mixed batch encoder.

Packs independent sub-requests into one ``multipart/mixed`` POST and
decodes the multipart reply back into one :class:`HttpResponse` per
sub-request, in input order.

Wire shape of one request part::

    --__END_OF_PART__
    Content-Length: 145
    Content-Type: application/http
    content-id: 1
    content-transfer-encoding: binary

    POST https://fcm.googleapis.com/v1/projects/p/messages:send HTTP/1.1
    Content-Length: 54
    Content-Type: application/json; charset=UTF-8

    {"message": {...}}

Reply parts carry ``Content-ID: response-<n>`` and an embedded HTTP/1.1
response.
"""
from __future__ import annotations

import dataclasses
import json
import re
from typing import Any, Mapping, Sequence

from fire_admin.adapters.http import HttpClient, HttpRequest, HttpResponse
from fire_admin.kernel.errors import SerializationError
from fire_admin.observability.logging import get_logger

__all__ = ["BatchRequestClient", "PART_BOUNDARY", "SubRequest", "decode_multipart", "encode_multipart"]

PART_BOUNDARY = "__END_OF_PART__"

_log = get_logger(__name__)
_BLANK_LINE = re.compile(rb"\r?\n\r?\n")
_BOUNDARY_PARAM = re.compile(r'boundary="?([^";]+)"?', re.IGNORECASE)
_CONTENT_ID = re.compile(r"(\d+)\s*>?\s*$")


@dataclasses.dataclass(frozen=True)
class SubRequest:
    """One send packed into a batch."""

    url: str
    body: Mapping[str, Any]
    headers: Mapping[str, str] | None = None


def _serialize_sub_request(request: SubRequest, common_headers: Mapping[str, str]) -> bytes:
    body = json.dumps(request.body, separators=(",", ":")).encode("utf-8")
    lines = [
        f"POST {request.url} HTTP/1.1",
        f"Content-Length: {len(body)}",
        "Content-Type: application/json; charset=UTF-8",
    ]
    headers = {**common_headers, **(request.headers or {})}
    lines.extend(f"{key}: {value}" for key, value in headers.items())
    return ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8") + body


def encode_multipart(
    requests: Sequence[SubRequest],
    common_headers: Mapping[str, str] | None = None,
    boundary: str = PART_BOUNDARY,
) -> bytes:
    """Encode *requests* as a multipart/mixed payload tagged by content-id."""
    payload = bytearray()
    for idx, request in enumerate(requests):
        serialized = _serialize_sub_request(request, common_headers or {})
        head = (
            f"--{boundary}\r\n"
            f"Content-Length: {len(serialized)}\r\n"
            "Content-Type: application/http\r\n"
            f"content-id: {idx + 1}\r\n"
            "content-transfer-encoding: binary\r\n"
            "\r\n"
        )
        payload += head.encode("utf-8") + serialized + b"\r\n"
    payload += f"--{boundary}--\r\n".encode("utf-8")
    return bytes(payload)


def _split_head(raw: bytes) -> tuple[list[str], bytes]:
    match = _BLANK_LINE.search(raw)
    if match is None:
        return raw.decode("utf-8", errors="replace").splitlines(), b""
    head = raw[: match.start()].decode("utf-8", errors="replace").splitlines()
    return head, raw[match.end():]


def _parse_headers(lines: Sequence[str]) -> dict[str, str]:
    headers: dict[str, str] = {}
    for line in lines:
        name, sep, value = line.partition(":")
        if sep:
            headers[name.strip().lower()] = value.strip()
    return headers


def _parse_http_response(raw: bytes) -> HttpResponse:
    head, body = _split_head(raw)
    if not head:
        raise SerializationError("Empty HTTP response in multipart part", payload_type="multipart")
    status_line = head[0].split()
    if len(status_line) < 2 or not status_line[0].startswith("HTTP/") or not status_line[1].isdigit():
        raise SerializationError(
            f"Malformed HTTP status line in multipart part: {head[0]!r}", payload_type="multipart"
        )
    return HttpResponse(int(status_line[1]), _parse_headers(head[1:]), body.rstrip(b"\r\n"))


def decode_multipart(response: HttpResponse) -> list[tuple[int | None, HttpResponse]]:
    """Split a multipart/mixed reply into ``(content_id, response)`` pairs.

    ``content_id`` is the numeric tag of the originating sub-request, or
    ``None`` when the part does not carry one.
    """
    content_type = response.content_type
    match = _BOUNDARY_PARAM.search(content_type)
    if not content_type.lower().startswith("multipart/") or match is None:
        raise SerializationError(
            f"Expected a multipart response, got content-type {content_type!r}",
            payload_type="multipart",
        )
    delimiter = b"--" + match.group(1).encode("utf-8")

    parts: list[tuple[int | None, HttpResponse]] = []
    for segment in response.content.split(delimiter)[1:]:
        if segment.startswith(b"--"):
            break
        segment = segment.removeprefix(b"\r\n").removeprefix(b"\n")
        head, embedded = _split_head(segment)
        content_id = _parse_headers(head).get("content-id")
        tag = _CONTENT_ID.search(content_id) if content_id else None
        parts.append((int(tag.group(1)) if tag else None, _parse_http_response(embedded)))
    return parts


def _align(parts: list[tuple[int | None, HttpResponse]], expected: int) -> list[HttpResponse]:
    if len(parts) != expected:
        raise SerializationError(
            f"Expected {expected} parts in multipart response, got {len(parts)}",
            payload_type="multipart",
        )
    ids = [content_id for content_id, _ in parts]
    if None in ids:
        return [part for _, part in parts]
    if sorted(ids) != list(range(1, expected + 1)):  # type: ignore[type-var]
        raise SerializationError(
            f"Multipart response content-ids {ids} do not match the request", payload_type="multipart"
        )
    by_id = {content_id: part for content_id, part in parts}
    return [by_id[idx] for idx in range(1, expected + 1)]


class BatchRequestClient:
    """Sends sub-requests as one multipart batch over an :class:`HttpClient`."""

    def __init__(
        self,
        http_client: HttpClient,
        batch_url: str,
        common_headers: Mapping[str, str] | None = None,
        timeout: float = 15.0,
    ) -> None:
        self._http_client = http_client
        self._batch_url = batch_url
        self._common_headers = dict(common_headers or {})
        self._timeout = timeout

    async def send(self, requests: Sequence[SubRequest]) -> list[HttpResponse]:
        """Send *requests*; the result is positionally aligned with the input.

        Raises the transport's error when the batch itself fails, and
        :class:`SerializationError` when the reply cannot be decoded.
        """
        request = HttpRequest(
            method="POST",
            url=self._batch_url,
            headers={"Content-Type": f"multipart/mixed; boundary={PART_BOUNDARY}"},
            content=encode_multipart(requests, self._common_headers),
            timeout=self._timeout,
        )
        _log.debug("batch.send", url=self._batch_url, parts=len(requests))
        response = await self._http_client.send(request)
        return _align(decode_multipart(response), len(requests))
