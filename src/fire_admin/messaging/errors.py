"""Messaging – error classifier.

Turns whatever went wrong on a messaging call into a :class:`MessagingError`
with a stable :class:`MessagingErrorCode`. Backend codes come from the JSON
error body; when there is none the HTTP status decides.
"""
from __future__ import annotations

from typing import Any

from fire_admin.adapters.http.response import RequestResponseError
from fire_admin.kernel.errors import (
    ConnectionError,
    InfrastructureTimeoutError,
    MessagingError,
    MessagingErrorCode,
    SerializationError,
)

__all__ = [
    "FCM_ERROR_TYPE",
    "SERVER_TO_CLIENT_CODE",
    "create_messaging_error",
    "get_error_code",
    "get_error_message",
]

FCM_ERROR_TYPE = "type.googleapis.com/google.firebase.fcm.v1.FcmError"

SERVER_TO_CLIENT_CODE: dict[str, MessagingErrorCode] = {
    # Legacy HTTP / topic management API
    "DeviceMessageRateExceeded": MessagingErrorCode.QUOTA_EXCEEDED,
    "InvalidDataKey": MessagingErrorCode.INVALID_ARGUMENT,
    "InvalidPackageName": MessagingErrorCode.INVALID_ARGUMENT,
    "InvalidRegistration": MessagingErrorCode.INVALID_ARGUMENT,
    "InvalidParameters": MessagingErrorCode.INVALID_ARGUMENT,
    "MismatchSenderId": MessagingErrorCode.SENDER_ID_MISMATCH,
    "MissingRegistration": MessagingErrorCode.INVALID_ARGUMENT,
    "NotRegistered": MessagingErrorCode.UNREGISTERED,
    "TopicsMessageRateExceeded": MessagingErrorCode.QUOTA_EXCEEDED,
    "Unavailable": MessagingErrorCode.UNAVAILABLE,
    "InternalServerError": MessagingErrorCode.INTERNAL,
    # HTTP v1 API
    "APNS_AUTH_ERROR": MessagingErrorCode.THIRD_PARTY_AUTH_ERROR,
    "INTERNAL": MessagingErrorCode.INTERNAL,
    "INVALID_ARGUMENT": MessagingErrorCode.INVALID_ARGUMENT,
    "NOT_FOUND": MessagingErrorCode.UNREGISTERED,
    "PERMISSION_DENIED": MessagingErrorCode.AUTHENTICATION_ERROR,
    "QUOTA_EXCEEDED": MessagingErrorCode.QUOTA_EXCEEDED,
    "RESOURCE_EXHAUSTED": MessagingErrorCode.QUOTA_EXCEEDED,
    "SENDER_ID_MISMATCH": MessagingErrorCode.SENDER_ID_MISMATCH,
    "THIRD_PARTY_AUTH_ERROR": MessagingErrorCode.THIRD_PARTY_AUTH_ERROR,
    "UNAUTHENTICATED": MessagingErrorCode.AUTHENTICATION_ERROR,
    "UNAVAILABLE": MessagingErrorCode.UNAVAILABLE,
    "UNREGISTERED": MessagingErrorCode.UNREGISTERED,
    "UNSPECIFIED_ERROR": MessagingErrorCode.UNKNOWN,
}

_STATUS_TO_CLIENT_CODE: dict[int, tuple[MessagingErrorCode, str]] = {
    400: (MessagingErrorCode.INVALID_ARGUMENT, "Invalid argument provided."),
    401: (MessagingErrorCode.AUTHENTICATION_ERROR, "An error occurred when trying to authenticate."),
    403: (MessagingErrorCode.AUTHENTICATION_ERROR, "An error occurred when trying to authenticate."),
    500: (MessagingErrorCode.INTERNAL, "Internal server error."),
    503: (MessagingErrorCode.UNAVAILABLE, "The server could not process the request in time."),
}


def get_error_code(body: Any) -> str | None:
    """Return the backend error code embedded in a JSON body, if any.

    Preference order: a plain-string ``error``, the ``errorCode`` of an FCM
    error detail, ``error.status``, then ``error.message``.
    """
    if not isinstance(body, dict) or "error" not in body:
        return None
    error = body["error"]
    if isinstance(error, str):
        return error
    if not isinstance(error, dict):
        return None
    details = error.get("details")
    if isinstance(details, list):
        for element in details:
            if isinstance(element, dict) and element.get("@type") == FCM_ERROR_TYPE:
                return element.get("errorCode")
    if "status" in error:
        return error["status"]
    return error.get("message")


def get_error_message(body: Any) -> str | None:
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        message = body["error"].get("message")
        if isinstance(message, str) and message:
            return message
    return None


def _from_server_error(err: RequestResponseError) -> MessagingError:
    response = err.response
    body = response.data
    server_code = get_error_code(body)
    code = SERVER_TO_CLIENT_CODE.get(server_code or "", MessagingErrorCode.UNKNOWN)
    message = get_error_message(body)
    if message is None:
        message = f"Unexpected response from the messaging backend (server code {server_code!r})."
    detail = {"server_code": server_code} if server_code else None
    return MessagingError(message, code=code, http_response=response, detail=detail, cause=err)


def _from_status(err: RequestResponseError) -> MessagingError:
    response = err.response
    code, message = _STATUS_TO_CLIENT_CODE.get(
        response.status, (MessagingErrorCode.UNKNOWN, "Unknown server error.")
    )
    return MessagingError(
        f'{message} Raw server response: "{response.text}". Status code: {response.status}.',
        code=code,
        http_response=response,
        cause=err,
    )


def create_messaging_error(err: BaseException) -> MessagingError:
    """Normalize *err* into a :class:`MessagingError`.

    Already-normalized errors are returned unchanged.
    """
    if isinstance(err, MessagingError):
        return err
    if isinstance(err, RequestResponseError):
        if err.response.is_json() and get_error_code(err.response.data):
            return _from_server_error(err)
        return _from_status(err)
    if isinstance(err, (InfrastructureTimeoutError, ConnectionError)):
        return MessagingError(
            f"Messaging backend unreachable: {err.message}",
            code=MessagingErrorCode.UNAVAILABLE,
            cause=err,
        )
    if isinstance(err, SerializationError):
        return MessagingError(
            f"Malformed response from the messaging backend: {err.message}",
            code=MessagingErrorCode.INTERNAL,
            cause=err,
        )
    return MessagingError(str(err) or type(err).__name__, code=MessagingErrorCode.UNKNOWN, cause=err)
