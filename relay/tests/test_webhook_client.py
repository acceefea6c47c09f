"""Tests for the webhook HTTP client.

The endpoint is stubbed with httpx.MockTransport — requests never leave the
process. Covers:
  - the JSON body and URL posted for an OutgoingRequest
  - decoded JSON vs raw text replies
  - NetworkError for connection failures and timeouts
  - RemoteError for non-2xx statuses and undecodable JSON
"""

from __future__ import annotations

import json

import httpx
import pytest

from relay.webhook.client import DEFAULT_TIMEOUT_SECONDS, NetworkError, RemoteError, WebhookClient
from relay.webhook.models import OutgoingRequest

URL = "http://workflow.test/webhook/ask"


def _request() -> OutgoingRequest:
    return OutgoingRequest(
        question="What is the status of order 17?",
        channel_id="-100123",
        user_id="42",
        user_name="alice",
    )


def _client(handler) -> WebhookClient:
    return WebhookClient(URL, timeout_seconds=5, transport=httpx.MockTransport(handler))


class TestSend:
    async def test_posts_json_payload(self):
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json={"answer": "shipped"})

        await _client(handler).send(_request())

        assert len(captured) == 1
        request = captured[0]
        assert request.method == "POST"
        assert str(request.url) == URL
        assert json.loads(request.content) == {
            "question": "What is the status of order 17?",
            "channelId": "-100123",
            "userId": "42",
            "userName": "alice",
        }

    async def test_returns_decoded_json_object(self):
        client = _client(lambda _r: httpx.Response(200, json={"answer": "shipped"}))
        assert await client.send(_request()) == {"answer": "shipped"}

    async def test_returns_decoded_json_list(self):
        client = _client(lambda _r: httpx.Response(200, json=[{"answer": "shipped"}]))
        assert await client.send(_request()) == [{"answer": "shipped"}]

    async def test_non_json_body_returned_as_text(self):
        client = _client(lambda _r: httpx.Response(200, text="It shipped yesterday."))
        assert await client.send(_request()) == "It shipped yesterday."

    async def test_any_2xx_is_success(self):
        client = _client(lambda _r: httpx.Response(201, json={"answer": "created"}))
        assert await client.send(_request()) == {"answer": "created"}

    async def test_empty_json_body_returns_none(self):
        client = _client(
            lambda _r: httpx.Response(
                200, content=b"", headers={"content-type": "application/json"}
            )
        )
        assert await client.send(_request()) is None

    async def test_whitespace_body_returns_none(self):
        client = _client(lambda _r: httpx.Response(204, content=b" \n"))
        assert await client.send(_request()) is None

    def test_default_timeout(self):
        assert WebhookClient(URL).timeout_seconds == DEFAULT_TIMEOUT_SECONDS == 300.0


class TestFailures:
    async def test_connection_refused_raises_network_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        with pytest.raises(NetworkError):
            await _client(handler).send(_request())

    async def test_timeout_raises_network_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(NetworkError):
            await _client(handler).send(_request())

    async def test_error_status_raises_remote_error(self):
        client = _client(lambda _r: httpx.Response(500, text="Workflow could not be started"))

        with pytest.raises(RemoteError) as exc_info:
            await client.send(_request())

        assert exc_info.value.status == 500
        assert exc_info.value.body == "Workflow could not be started"

    async def test_not_found_raises_remote_error(self):
        client = _client(lambda _r: httpx.Response(404, json={"message": "webhook not registered"}))

        with pytest.raises(RemoteError) as exc_info:
            await client.send(_request())

        assert exc_info.value.status == 404
        assert "webhook not registered" in exc_info.value.body

    async def test_undecodable_json_raises_remote_error(self):
        client = _client(
            lambda _r: httpx.Response(
                200, content=b'{"answer": ', headers={"content-type": "application/json"}
            )
        )

        with pytest.raises(RemoteError) as exc_info:
            await client.send(_request())

        assert exc_info.value.status == 200
