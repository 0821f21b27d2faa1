"""Unit tests – Messaging service facade."""
from __future__ import annotations

import asyncio
import json

import httpx
import pytest
import respx

from fire_admin.adapters.http import Http2SessionHandler
from fire_admin.config import InvalidSettingValueError, MessagingSettings
from fire_admin.kernel.errors import MessagingError, MessagingErrorCode, ValidationError
from fire_admin.messaging import Messaging, SendResponse
from fire_admin.messaging.service import MAX_MESSAGES, MAX_TOPIC_TOKENS

SEND_URL = "https://fcm.googleapis.com/v1/projects/p/messages:send"
BATCH_URL = "https://fcm.googleapis.com/batch"
IID_ADD = "https://iid.googleapis.com/iid/v1:batchAdd"
IID_REMOVE = "https://iid.googleapis.com/iid/v1:batchRemove"

HTTP1 = MessagingSettings(project_id="p", transport="http1")


# ---------------------------------------------------------------------------
# send
# ---------------------------------------------------------------------------

class TestSend:
    @respx.mock
    def test_returns_message_id(self, credential) -> None:
        route = respx.post(SEND_URL).mock(
            return_value=httpx.Response(200, json={"name": "projects/p/messages/1"})
        )

        async def run() -> None:
            async with Messaging(credential, HTTP1) as messaging:
                message_id = await messaging.send({"token": "t1", "data": {"k": "v"}})
            assert message_id == "projects/p/messages/1"
            assert json.loads(route.calls.last.request.content) == {
                "message": {"token": "t1", "data": {"k": "v"}}
            }

        asyncio.run(run())

    @respx.mock
    def test_dry_run_and_topic_prefix(self, credential) -> None:
        route = respx.post(SEND_URL).mock(return_value=httpx.Response(200, json={"name": "m"}))

        async def run() -> None:
            async with Messaging(credential, HTTP1) as messaging:
                await messaging.send({"topic": "/topics/news"}, dry_run=True)
            assert json.loads(route.calls.last.request.content) == {
                "message": {"topic": "news"},
                "validate_only": True,
            }

        asyncio.run(run())

    @respx.mock
    def test_failure_raises_normalized_error(self, credential) -> None:
        respx.post(SEND_URL).mock(
            return_value=httpx.Response(
                400, json={"error": {"status": "INVALID_ARGUMENT", "message": "bad token"}}
            )
        )

        async def run() -> None:
            async with Messaging(credential, HTTP1) as messaging:
                with pytest.raises(MessagingError) as exc_info:
                    await messaging.send({"token": "t1"})
            assert exc_info.value.code == MessagingErrorCode.INVALID_ARGUMENT

        asyncio.run(run())

    @pytest.mark.parametrize(
        "message",
        [
            {},
            {"data": {"k": "v"}},
            {"token": "t", "topic": "news"},
            {"topic": "bad topic!"},
        ],
    )
    def test_invalid_message_rejected_before_sending(self, credential, message: dict) -> None:
        async def run() -> None:
            async with Messaging(credential, HTTP1) as messaging:
                with pytest.raises(ValidationError):
                    await messaging.send(message)

        asyncio.run(run())

    def test_project_id_required(self, credential) -> None:
        async def run() -> None:
            async with Messaging(credential, MessagingSettings(transport="http1")) as messaging:
                with pytest.raises(InvalidSettingValueError):
                    await messaging.send({"token": "t"})

        asyncio.run(run())


# ---------------------------------------------------------------------------
# send_each
# ---------------------------------------------------------------------------

class TestSendEach:
    @respx.mock
    def test_http1_fan_out(self, credential) -> None:
        def reply(request: httpx.Request) -> httpx.Response:
            token = json.loads(request.content)["message"]["token"]
            if token == "stale":
                return httpx.Response(404, json={"error": {"status": "NOT_FOUND", "message": "gone"}})
            return httpx.Response(200, json={"name": f"projects/p/messages/{token}"})

        respx.post(SEND_URL).mock(side_effect=reply)

        async def run() -> None:
            async with Messaging(credential, HTTP1) as messaging:
                batch = await messaging.send_each([{"token": t} for t in ("a", "stale", "c")])
            assert [r.success for r in batch.responses] == [True, False, True]
            assert batch.responses[2].message_id == "projects/p/messages/c"
            assert batch.responses[1].error.code == MessagingErrorCode.UNREGISTERED
            assert (batch.success_count, batch.failure_count) == (2, 1)

        asyncio.run(run())

    def test_http2_shares_one_session_and_closes_it(self, credential) -> None:
        sessions: list[Http2SessionHandler] = []

        def reply(request: httpx.Request) -> httpx.Response:
            token = json.loads(request.content)["message"]["token"]
            return httpx.Response(200, json={"name": f"projects/p/messages/{token}"})

        def factory() -> Http2SessionHandler:
            session = Http2SessionHandler("https://fcm.googleapis.com", transport=httpx.MockTransport(reply))
            sessions.append(session)
            return session

        async def run() -> None:
            settings = MessagingSettings(project_id="p")
            async with Messaging(credential, settings, session_factory=factory) as messaging:
                batch = await messaging.send_each([{"token": str(i)} for i in range(4)])
            assert [r.message_id for r in batch.responses] == [f"projects/p/messages/{i}" for i in range(4)]

        asyncio.run(run())
        assert len(sessions) == 1
        assert sessions[0].is_closed

    def test_http2_session_outlives_every_send(self, credential) -> None:
        sessions: list[Http2SessionHandler] = []
        settled: list[tuple[str, bool]] = []

        def factory() -> Http2SessionHandler:
            session = Http2SessionHandler(
                "https://fcm.googleapis.com", transport=httpx.MockTransport(lambda r: httpx.Response(200))
            )
            sessions.append(session)
            return session

        async def send(host: str, path: str, body: dict, session: Http2SessionHandler) -> SendResponse:
            token = body["message"]["token"]
            if token == "boom":
                raise RuntimeError("boom")
            for _ in range(3):
                await asyncio.sleep(0)
            settled.append((token, session.is_closed))
            return SendResponse.ok(token)

        async def run() -> None:
            settings = MessagingSettings(project_id="p")
            async with Messaging(credential, settings, session_factory=factory) as messaging:
                messaging.request_handler.invoke_http2_request_handler_for_send_response = send
                with pytest.raises(RuntimeError):
                    await messaging.send_each([{"token": t} for t in ("a", "boom", "c")])

        asyncio.run(run())
        assert settled == [("a", False), ("c", False)]
        assert sessions[0].is_closed

    @pytest.mark.parametrize("messages", [[], {"token": "t"}, "token"])
    def test_rejects_non_list_or_empty(self, credential, messages) -> None:
        async def run() -> None:
            async with Messaging(credential, HTTP1) as messaging:
                with pytest.raises(ValidationError):
                    await messaging.send_each(messages)

        asyncio.run(run())

    def test_rejects_too_many_messages(self, credential) -> None:
        async def run() -> None:
            async with Messaging(credential, HTTP1) as messaging:
                with pytest.raises(ValidationError):
                    await messaging.send_each([{"token": "t"}] * (MAX_MESSAGES + 1))

        asyncio.run(run())


# ---------------------------------------------------------------------------
# send_all
# ---------------------------------------------------------------------------

class TestSendAll:
    @respx.mock
    def test_sends_one_multipart_request(self, credential, batch_reply) -> None:
        route = respx.post(BATCH_URL).mock(
            return_value=batch_reply(
                [
                    (200, json.dumps({"name": "projects/p/messages/1"})),
                    (400, json.dumps({"error": {"status": "INVALID_ARGUMENT", "message": "bad"}})),
                ]
            )
        )

        async def run() -> None:
            async with Messaging(credential, HTTP1) as messaging:
                batch = await messaging.send_all([{"token": "a"}, {"token": "b"}], dry_run=True)
            assert route.call_count == 1
            assert [r.success for r in batch.responses] == [True, False]
            assert batch.responses[1].error.code == MessagingErrorCode.INVALID_ARGUMENT

            content = route.calls.last.request.content
            assert f"POST {SEND_URL} HTTP/1.1".encode() in content
            assert b'"validate_only":true' in content

        asyncio.run(run())


# ---------------------------------------------------------------------------
# Topic management
# ---------------------------------------------------------------------------

class TestTopicManagement:
    @respx.mock
    def test_subscribe(self, credential) -> None:
        route = respx.post(IID_ADD).mock(
            return_value=httpx.Response(200, json={"results": [{}, {"error": "NOT_FOUND"}]})
        )

        async def run() -> None:
            async with Messaging(credential, HTTP1) as messaging:
                resp = await messaging.subscribe_to_topic(["t1", "t2"], "news")
            assert (resp.success_count, resp.failure_count) == (1, 1)
            assert resp.errors[0].index == 1
            assert resp.errors[0].error.code == MessagingErrorCode.UNREGISTERED

            sent = route.calls.last.request
            assert json.loads(sent.content) == {"to": "/topics/news", "registration_tokens": ["t1", "t2"]}
            assert sent.headers["access_token_auth"] == "true"

        asyncio.run(run())

    @respx.mock
    def test_unsubscribe_single_token(self, credential) -> None:
        route = respx.post(IID_REMOVE).mock(return_value=httpx.Response(200, json={"results": [{}]}))

        async def run() -> None:
            async with Messaging(credential, HTTP1) as messaging:
                resp = await messaging.unsubscribe_from_topic("t1", "/topics/news")
            assert resp.success_count == 1
            assert json.loads(route.calls.last.request.content)["registration_tokens"] == ["t1"]

        asyncio.run(run())

    @respx.mock
    def test_backend_error_raises(self, credential) -> None:
        respx.post(IID_ADD).mock(return_value=httpx.Response(200, json={"error": "InvalidToken"}))

        async def run() -> None:
            async with Messaging(credential, HTTP1) as messaging:
                with pytest.raises(MessagingError):
                    await messaging.subscribe_to_topic("t1", "news")

        asyncio.run(run())

    @pytest.mark.parametrize(
        ("tokens", "topic"),
        [
            ([], "news"),
            (["", "t"], "news"),
            (["t"] * (MAX_TOPIC_TOKENS + 1), "news"),
            (["t"], "not a topic"),
        ],
    )
    def test_invalid_input_rejected(self, credential, tokens, topic) -> None:
        async def run() -> None:
            async with Messaging(credential, HTTP1) as messaging:
                with pytest.raises(ValidationError):
                    await messaging.subscribe_to_topic(tokens, topic)

        asyncio.run(run())


# ---------------------------------------------------------------------------
# Settings from the environment
# ---------------------------------------------------------------------------

class TestEnvironmentSettings:
    def test_loaded_when_not_given(self, credential, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FIRE_ADMIN_MESSAGING_PROJECT_ID", "env-project")
        monkeypatch.setenv("FIRE_ADMIN_MESSAGING_TIMEOUT", "4.5")
        monkeypatch.setenv("FIRE_ADMIN_MESSAGING_TRANSPORT", "http1")

        async def run() -> None:
            async with Messaging(credential) as messaging:
                settings = messaging.request_handler.settings
            assert settings.project_id == "env-project"
            assert settings.timeout == 4.5
            assert settings.transport == "http1"

        asyncio.run(run())

    @respx.mock
    def test_environment_project_used_for_sends(self, credential, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FIRE_ADMIN_MESSAGING_PROJECT_ID", "env-project")
        route = respx.post("https://fcm.googleapis.com/v1/projects/env-project/messages:send").mock(
            return_value=httpx.Response(200, json={"name": "projects/env-project/messages/1"})
        )

        async def run() -> None:
            async with Messaging(credential) as messaging:
                assert await messaging.send({"token": "t"}) == "projects/env-project/messages/1"

        asyncio.run(run())
        assert route.called

    def test_explicit_settings_win(self, credential, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FIRE_ADMIN_MESSAGING_PROJECT_ID", "env-project")

        async def run() -> None:
            async with Messaging(credential, HTTP1) as messaging:
                assert messaging.request_handler.settings.project_id == "p"

        asyncio.run(run())

    def test_invalid_environment_value_rejected(self, credential, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FIRE_ADMIN_MESSAGING_TIMEOUT", "-1")
        with pytest.raises(InvalidSettingValueError):
            Messaging(credential)
