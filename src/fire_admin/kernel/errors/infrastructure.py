"""Infrastructure errors – transport failures below the backend protocol."""

from __future__ import annotations

from typing import Any

from fire_admin.kernel.errors.base import BaseError


class InfrastructureError(BaseError):
    """Transport / I/O failure that carries no backend verdict."""

    default_code = "infrastructure_error"


class ConnectionError(InfrastructureError):  # noqa: A001
    """The request never reached the backend (DNS, refused, reset, …)."""

    default_code = "connection_error"

    def __init__(
        self,
        resource: str,
        message: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message or f"Could not connect to '{resource}'", **kwargs)
        self.resource = resource


class TimeoutError(InfrastructureError):  # noqa: A001
    """A request exceeded its per-call deadline."""

    default_code = "infrastructure_timeout"


class SerializationError(InfrastructureError):
    """A payload could not be encoded or a reply could not be decoded."""

    default_code = "serialization_error"

    def __init__(
        self,
        message: str,
        *,
        payload_type: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.payload_type = payload_type


class ExternalServiceError(InfrastructureError):
    """The backend answered with a status outside the 2xx range."""

    default_code = "external_service_error"

    def __init__(
        self,
        service: str,
        message: str | None = None,
        *,
        status_code: int | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message or f"External service '{service}' error", **kwargs)
        self.service_url = service
        self.status_code = status_code


__all__ = [
    "ConnectionError",
    "ExternalServiceError",
    "InfrastructureError",
    "SerializationError",
    "TimeoutError",
]
