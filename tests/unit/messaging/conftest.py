"""Shared fixtures for messaging tests."""
from __future__ import annotations

from typing import Callable

import httpx
import pytest

from fire_admin.credentials import StaticCredential

BATCH_CONTENT_TYPE = "multipart/mixed; boundary=batch_abc"


def _multipart_reply(parts: list[tuple[str | None, int, str]], boundary: str = "batch_abc") -> bytes:
    chunks = []
    for content_id, status, body in parts:
        head = "Content-Type: application/http\r\n"
        if content_id is not None:
            head += f"Content-ID: {content_id}\r\n"
        chunks.append(
            f"--{boundary}\r\n{head}\r\n"
            f"HTTP/1.1 {status} X\r\nContent-Type: application/json; charset=UTF-8\r\n\r\n"
            f"{body}\r\n"
        )
    return ("".join(chunks) + f"--{boundary}--\r\n").encode("utf-8")


@pytest.fixture
def credential() -> StaticCredential:
    return StaticCredential("test-token")


@pytest.fixture
def multipart_reply() -> Callable[..., bytes]:
    """Build a multipart/mixed reply body from ``(content_id, status, body)`` triples."""
    return _multipart_reply


@pytest.fixture
def batch_reply(multipart_reply: Callable[..., bytes]) -> Callable[[list[tuple[int, str]]], httpx.Response]:
    """Build an httpx batch reply; parts get content-ids in input order."""

    def _build(parts: list[tuple[int, str]]) -> httpx.Response:
        content = multipart_reply([(f"response-{i + 1}", status, body) for i, (status, body) in enumerate(parts)])
        return httpx.Response(200, headers={"content-type": BATCH_CONTENT_TYPE}, content=content)

    return _build
