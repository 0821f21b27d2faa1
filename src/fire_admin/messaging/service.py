"""Messaging – high-level send and topic management API."""
from __future__ import annotations

import asyncio
import re
from typing import Any, Callable, Mapping, Sequence

from fire_admin.adapters.http import Http2SessionHandler
from fire_admin.config import EnvSettingsLoader, InvalidSettingValueError, MessagingSettings
from fire_admin.credentials import Credential
from fire_admin.kernel.errors import ValidationError
from fire_admin.messaging.batch import SubRequest
from fire_admin.messaging.models import BatchResponse, SendResponse, TopicManagementResponse
from fire_admin.messaging.request_handler import MessagingRequestHandler, Transport

__all__ = ["MAX_MESSAGES", "MAX_TOPIC_TOKENS", "Messaging"]

MAX_MESSAGES = 500
MAX_TOPIC_TOKENS = 1000

_TOPIC_NAME = re.compile(r"^(/topics/)?[a-zA-Z0-9\-_.~%]+$")
_TARGETS = ("token", "topic", "condition")


class Messaging:
    """Send push messages and manage topic subscriptions.

    Usage::

        async with Messaging(credential, MessagingSettings(project_id="p")) as messaging:
            message_id = await messaging.send({"token": "...", "notification": {...}})
            batch = await messaging.send_each([...])

    Without *settings*, :class:`MessagingSettings` is loaded from the
    ``FIRE_ADMIN_MESSAGING_*`` environment.
    """

    def __init__(
        self,
        credential: Credential,
        settings: MessagingSettings | None = None,
        *,
        session_factory: Callable[[], Http2SessionHandler] | None = None,
        **client_kwargs: Any,
    ) -> None:
        self._settings = settings or EnvSettingsLoader().load(MessagingSettings)
        self._handler = MessagingRequestHandler(credential, self._settings, **client_kwargs)
        self._session_factory = session_factory or (
            lambda: Http2SessionHandler(f"https://{self._settings.host}")
        )

    async def __aenter__(self) -> "Messaging":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self._handler.aclose()

    @property
    def request_handler(self) -> MessagingRequestHandler:
        return self._handler

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    async def send(self, message: Mapping[str, Any], dry_run: bool = False) -> str:
        """Send one message and return its message id.

        Raises the normalized :class:`MessagingError` when the send fails.
        """
        response = await self._handler.invoke_http_request_handler_for_send_response(
            self._settings.host, self._send_path(), _message_body(message, dry_run)
        )
        return response.result.unwrap()

    async def send_each(self, messages: Sequence[Mapping[str, Any]], dry_run: bool = False) -> BatchResponse:
        """Send every message as its own request, concurrently.

        Over HTTP/2 all requests share one session opened for this call; it is
        closed only after every send has settled.
        """
        bodies = _message_bodies(messages, dry_run)
        path = self._send_path()
        host = self._settings.host

        if Transport(self._settings.transport) is Transport.HTTP1:
            responses: list[SendResponse] = await asyncio.gather(
                *(self._handler.invoke_http_request_handler_for_send_response(host, path, b) for b in bodies)
            )
            return BatchResponse.from_responses(responses)

        session = self._session_factory()
        try:
            outcomes = await asyncio.gather(
                *(
                    self._handler.invoke_http2_request_handler_for_send_response(host, path, b, session)
                    for b in bodies
                ),
                return_exceptions=True,
            )
        finally:
            await session.close()
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome
        return BatchResponse.from_responses(outcomes)

    async def send_all(self, messages: Sequence[Mapping[str, Any]], dry_run: bool = False) -> BatchResponse:
        """Send all messages in one multipart batch request."""
        bodies = _message_bodies(messages, dry_run)
        url = f"https://{self._settings.host}{self._send_path()}"
        return await self._handler.send_batch_request([SubRequest(url=url, body=b) for b in bodies])

    # ------------------------------------------------------------------
    # Topic management
    # ------------------------------------------------------------------

    async def subscribe_to_topic(self, tokens: str | Sequence[str], topic: str) -> TopicManagementResponse:
        return await self._manage_topic(tokens, topic, "/iid/v1:batchAdd")

    async def unsubscribe_from_topic(self, tokens: str | Sequence[str], topic: str) -> TopicManagementResponse:
        return await self._manage_topic(tokens, topic, "/iid/v1:batchRemove")

    async def _manage_topic(
        self, tokens: str | Sequence[str], topic: str, path: str
    ) -> TopicManagementResponse:
        token_list = [tokens] if isinstance(tokens, str) else list(tokens)
        if not token_list or not all(isinstance(t, str) and t for t in token_list):
            raise ValidationError("Registration tokens must be a non-empty list of non-empty strings")
        if len(token_list) > MAX_TOPIC_TOKENS:
            raise ValidationError(f"Registration token list must not contain more than {MAX_TOPIC_TOKENS} items")
        body = {"to": _normalize_topic(topic), "registration_tokens": token_list}
        raw = await self._handler.invoke_request_handler(self._settings.topic_management_host, path, body)
        return TopicManagementResponse.from_results(raw.get("results", []))

    def _send_path(self) -> str:
        if not self._settings.project_id:
            raise InvalidSettingValueError("project_id", self._settings.project_id, "required to send messages")
        return self._settings.send_path


def _normalize_topic(topic: str) -> str:
    if not isinstance(topic, str) or not _TOPIC_NAME.match(topic):
        raise ValidationError(f"Topic {topic!r} is not a valid topic name", errors=[{"field": "topic"}])
    return topic if topic.startswith("/topics/") else f"/topics/{topic}"


def _message_body(message: Mapping[str, Any], dry_run: bool) -> dict[str, Any]:
    if not isinstance(message, Mapping) or not message:
        raise ValidationError("Message must be a non-empty mapping")
    targets = [t for t in _TARGETS if message.get(t)]
    if len(targets) != 1:
        raise ValidationError(
            "Exactly one of token, topic or condition must be specified",
            errors=[{"field": t} for t in _TARGETS],
        )
    payload = dict(message)
    if "topic" in targets:
        payload["topic"] = _normalize_topic(payload["topic"]).removeprefix("/topics/")
    body: dict[str, Any] = {"message": payload}
    if dry_run:
        body["validate_only"] = True
    return body


def _message_bodies(messages: Sequence[Mapping[str, Any]], dry_run: bool) -> list[dict[str, Any]]:
    if isinstance(messages, (str, Mapping)) or not messages:
        raise ValidationError("messages must be a non-empty sequence")
    if len(messages) > MAX_MESSAGES:
        raise ValidationError(f"messages must not contain more than {MAX_MESSAGES} items")
    return [_message_body(m, dry_run) for m in messages]
