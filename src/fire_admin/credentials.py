"""Credentials – access-token providers used to authorize backend calls."""
from __future__ import annotations

from typing import Protocol, runtime_checkable

__all__ = ["Credential", "StaticCredential"]


@runtime_checkable
class Credential(Protocol):
    """Port: supply an OAuth2 access token for the current call."""

    async def get_access_token(self) -> str: ...


class StaticCredential:
    """Credential backed by a pre-minted access token."""

    def __init__(self, access_token: str) -> None:
        if not access_token:
            raise ValueError("access_token must be a non-empty string")
        self._access_token = access_token

    async def get_access_token(self) -> str:
        return self._access_token

    def __repr__(self) -> str:
        return "StaticCredential(access_token=<redacted>)"
