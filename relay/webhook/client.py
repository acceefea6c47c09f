"""Async HTTP client for the workflow webhook.

Every question the relay forwards goes through this module. It provides:

- A single JSON POST per call — no retries, no circuit breaking
- Failure classification via NetworkError (no response) and RemoteError
  (the endpoint answered, but not successfully)
- The decoded reply body, returned untouched for the answer extractor
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx

if TYPE_CHECKING:
    from relay.webhook.models import OutgoingRequest

# Workflows may chain LLM calls and external tools; 5 minutes is the ceiling.
DEFAULT_TIMEOUT_SECONDS = 300.0


class WebhookError(Exception):
    """Base class for webhook call failures."""


class NetworkError(WebhookError):
    """No response was received — connection refused, DNS failure, or timeout."""


class RemoteError(WebhookError):
    """The endpoint responded, but with a failure status or an undecodable body."""

    def __init__(self, status: int, body: str) -> None:
        super().__init__(f"Webhook responded with HTTP {status}")
        self.status = status
        self.body = body


class WebhookClient:
    """Posts OutgoingRequests to a single workflow endpoint.

    A fresh httpx.AsyncClient is opened per call so no connection state is
    shared between mentions.

    Args:
        url: The webhook URL (from RelaySettings.webhook_url).
        timeout_seconds: Upper bound for connect, write and read.
        transport: Optional httpx transport, used by tests to stub the endpoint.
    """

    def __init__(
        self,
        url: str,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def send(self, request: OutgoingRequest) -> Any:
        """POST the request and return the decoded reply body.

        JSON bodies are decoded; any other 2xx body is returned as text, which
        the answer extractor treats as a bare-string answer. An empty 2xx body
        returns None.

        Raises:
            NetworkError: If no response was received (includes timeouts).
            RemoteError: On a non-2xx status, or a JSON content type whose body
                does not decode.
        """
        async with httpx.AsyncClient(
            timeout=self.timeout_seconds, transport=self._transport
        ) as client:
            try:
                response = await client.post(self.url, json=request.to_payload())
            except httpx.TransportError as exc:
                msg = f"No response from webhook: {exc!r}"
                raise NetworkError(msg) from exc

        if not response.is_success:
            raise RemoteError(response.status_code, response.text)

        # A workflow that finished without a "Respond to Webhook" payload.
        if not response.content.strip():
            return None

        content_type = response.headers.get("content-type", "")
        if "json" not in content_type:
            return response.text

        try:
            return response.json()
        except ValueError:
            raise RemoteError(response.status_code, response.text) from None
