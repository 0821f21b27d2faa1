"""Service errors – normalized errors reported by a backend service.

These are the only errors callers of the messaging and auth modules are
expected to branch on. ``code`` is always a member of the service's code
enumeration; the raw HTTP exchange, when there was one, rides along in
``http_response`` and ``detail``.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Any

from fire_admin.kernel.errors.base import BaseError

if TYPE_CHECKING:
    from fire_admin.adapters.http.response import HttpResponse


class MessagingErrorCode(StrEnum):
    """Stable codes for messaging failures."""

    INVALID_ARGUMENT = "invalid-argument"
    UNREGISTERED = "unregistered"
    QUOTA_EXCEEDED = "quota-exceeded"
    SENDER_ID_MISMATCH = "sender-id-mismatch"
    THIRD_PARTY_AUTH_ERROR = "third-party-auth-error"
    AUTHENTICATION_ERROR = "authentication-error"
    INTERNAL = "internal"
    UNAVAILABLE = "unavailable"
    UNKNOWN = "unknown"


class AuthErrorCode(StrEnum):
    """Stable codes for auth / tenant configuration failures."""

    INVALID_ARGUMENT = "invalid-argument"
    INVALID_CONFIG = "invalid-config"
    INVALID_TESTING_PHONE_NUMBER = "invalid-testing-phone-number"
    TEST_PHONE_NUMBER_LIMIT_EXCEEDED = "test-phone-number-limit-exceeded"
    INTERNAL_ERROR = "internal-error"


class ServiceError(BaseError):
    """A failure with a stable, service-scoped code."""

    default_code = "unknown"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        http_response: HttpResponse | None = None,
        detail: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        detail = dict(detail or {})
        if http_response is not None:
            detail.setdefault("status", http_response.status)
            detail.setdefault("body", http_response.text)
        super().__init__(message, code=code, detail=detail, cause=cause)
        self.http_response = http_response


class MessagingError(ServiceError):
    """Normalized messaging error; see :class:`MessagingErrorCode`."""

    service = "messaging"
    default_code = MessagingErrorCode.UNKNOWN


class AuthError(ServiceError):
    """Normalized auth error; see :class:`AuthErrorCode`."""

    service = "auth"
    default_code = AuthErrorCode.INTERNAL_ERROR


__all__ = [
    "AuthError",
    "AuthErrorCode",
    "MessagingError",
    "MessagingErrorCode",
    "ServiceError",
]
