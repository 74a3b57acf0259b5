"""Signed outbound webhook HTTP client."""

from __future__ import annotations

import hashlib
import hmac
import logging

import httpx

from slotly.config import settings

logger = logging.getLogger(__name__)


def sign_payload(body: bytes, secret: str) -> str:
    """Hex HMAC-SHA256 of the exact body bytes."""
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def verify_signature(body: bytes, secret: str, signature: str) -> bool:
    """Receiver-side check of an ``X-Slotly-Signature`` header."""
    return hmac.compare_digest(sign_payload(body, secret), signature)


class WebhookClient:
    """POST signed event payloads to subscriber endpoints."""

    def __init__(
        self,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            timeout=timeout if timeout is not None else settings.webhook_timeout_seconds,
            transport=transport,
        )

    async def post(self, url: str, body: bytes, secret: str, event: str) -> httpx.Response:
        """Send one delivery attempt.

        Raises ``httpx.HTTPError`` (including ``httpx.TimeoutException``) when
        no response is received; any response, whatever its status, is returned.
        """
        headers = {
            "Content-Type": "application/json",
            settings.webhook_signature_header: sign_payload(body, secret),
            settings.webhook_event_header: event,
        }
        resp = await self._client.post(url, content=body, headers=headers)
        logger.debug("Webhook %s to %s answered %d", event, url, resp.status_code)
        return resp

    async def close(self) -> None:
        await self._client.aclose()
