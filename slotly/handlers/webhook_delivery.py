"""Fire booking lifecycle webhooks to every interested subscriber.

Delivery is at-least-once and best-effort:

1. Snapshot the active subscriptions and keep those subscribed to the event.
2. Serialize and sign the envelope once; deliver to all matches concurrently.
3. Per subscription, try up to ``webhook_max_attempts`` times, sleeping
   ``attempt ** 2`` seconds between tries. 4xx (except 429) is permanent;
   5xx, 429, timeouts and network errors are retried.
4. Log every single attempt to ``webhook_delivery_attempts``.

Failures never reach the caller. One subscriber's failure or slowness does
not affect the others.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable

import httpx
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from slotly.clients.webhook_client import WebhookClient
from slotly.config import settings
from slotly.database import async_session
from slotly.models.webhook import WebhookDeliveryAttempt, WebhookSubscription
from slotly.schemas.webhooks import WebhookEvent
from slotly.templates.webhook_payloads import build_envelope

logger = logging.getLogger(__name__)


class DeliveryOutcome(str, Enum):
    DELIVERED = "delivered"
    PERMANENT_FAILURE = "permanently_failed"
    RETRY = "retry"


def classify_status(status_code: int) -> DeliveryOutcome:
    if 200 <= status_code < 300:
        return DeliveryOutcome.DELIVERED
    if 400 <= status_code < 500 and status_code != 429:
        return DeliveryOutcome.PERMANENT_FAILURE
    return DeliveryOutcome.RETRY


def backoff_seconds(attempt: int) -> int:
    return attempt * attempt


@dataclass(frozen=True)
class SubscriptionTarget:
    """Immutable view of a subscription for the duration of one fan-out."""

    id: str
    url: str
    secret: str
    events: frozenset[str]

    def __repr__(self) -> str:
        return f"SubscriptionTarget(id={self.id!r}, url={self.url!r})"


class WebhookDispatcher:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] = async_session,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        max_attempts: int | None = None,
        timeout: float | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._transport = transport
        self._sleep = sleep
        self._max_attempts = max_attempts or settings.webhook_max_attempts
        self._timeout = timeout if timeout is not None else settings.webhook_timeout_seconds
        self._tasks: set[asyncio.Task] = set()

    async def load_targets(self, event: str) -> list[SubscriptionTarget]:
        async with self._session_factory() as db:
            result = await db.execute(
                select(WebhookSubscription).where(WebhookSubscription.is_active.is_(True))
            )
            rows = result.scalars().all()
        targets = [
            SubscriptionTarget(
                id=row.id,
                url=row.url,
                secret=row.secret,
                events=frozenset(row.events or ()),
            )
            for row in rows
        ]
        return [t for t in targets if event in t.events]

    async def deliver(self, event: WebhookEvent | str, data: dict[str, Any]) -> None:
        """Deliver ``event`` to every matching subscription and wait for all of them."""
        event_name = WebhookEvent(event).value
        try:
            targets = await self.load_targets(event_name)
        except SQLAlchemyError as exc:
            logger.error("Could not load webhook subscriptions for %s: %s", event_name, exc)
            return

        if not targets:
            logger.debug("No subscriptions for %s", event_name)
            return

        body = build_envelope(event_name, data)
        client = WebhookClient(timeout=self._timeout, transport=self._transport)
        try:
            results = await asyncio.gather(
                *(self._deliver_to(client, target, body, event_name) for target in targets),
                return_exceptions=True,
            )
        finally:
            await client.close()

        for target, result in zip(targets, results):
            if isinstance(result, BaseException):
                logger.error(
                    "Webhook delivery to subscription %s crashed: %r", target.id, result
                )

    async def _deliver_to(
        self,
        client: WebhookClient,
        target: SubscriptionTarget,
        body: bytes,
        event: str,
    ) -> bool:
        """Run one subscription's retry sequence. Returns True once delivered."""
        for attempt in range(1, self._max_attempts + 1):
            status_code: int | None = None
            try:
                resp = await asyncio.wait_for(
                    client.post(target.url, body, target.secret, event),
                    timeout=self._timeout,
                )
            except (httpx.HTTPError, asyncio.TimeoutError) as exc:
                message = str(exc) or type(exc).__name__
                await self._record_attempt(target, event, attempt, None, message, False)
                logger.warning(
                    "Webhook %s to subscription %s attempt %d failed: %s",
                    event, target.id, attempt, message,
                )
                outcome = DeliveryOutcome.RETRY
            else:
                status_code = resp.status_code
                outcome = classify_status(status_code)
                success = outcome is DeliveryOutcome.DELIVERED
                await self._record_attempt(target, event, attempt, status_code, resp.text, success)

            if outcome is DeliveryOutcome.DELIVERED:
                logger.info(
                    "Webhook %s delivered to subscription %s on attempt %d",
                    event, target.id, attempt,
                )
                return True
            if outcome is DeliveryOutcome.PERMANENT_FAILURE:
                logger.warning(
                    "Webhook %s to subscription %s rejected with HTTP %d; not retrying",
                    event, target.id, status_code,
                )
                return False
            if status_code is not None:
                logger.warning(
                    "Webhook %s to subscription %s attempt %d got HTTP %d",
                    event, target.id, attempt, status_code,
                )

            if attempt < self._max_attempts:
                await self._sleep(backoff_seconds(attempt))

        logger.error(
            "Webhook %s to subscription %s exhausted after %d attempts",
            event, target.id, self._max_attempts,
        )
        return False

    async def _record_attempt(
        self,
        target: SubscriptionTarget,
        event: str,
        attempt: int,
        status_code: int | None,
        response_body: str | None,
        success: bool,
    ) -> None:
        limit = settings.webhook_response_body_limit
        try:
            async with self._session_factory() as db:
                db.add(WebhookDeliveryAttempt(
                    subscription_id=target.id,
                    event=event,
                    attempt_number=attempt,
                    status_code=status_code,
                    response_body=response_body[:limit] if response_body else None,
                    success=success,
                ))
                await db.commit()
        except SQLAlchemyError as exc:
            logger.error(
                "Failed to log webhook attempt %d for subscription %s: %s",
                attempt, target.id, exc,
            )

    def notify(self, event: WebhookEvent | str, data: dict[str, Any]) -> asyncio.Task:
        """Start delivery in the background and return immediately.

        The task belongs to the dispatcher, not to the calling request, so it
        only stops early when the process shuts down.
        """
        task = asyncio.create_task(self._run(event, dict(data)), name=f"webhooks:{event}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, event: WebhookEvent | str, data: dict[str, Any]) -> None:
        try:
            await self.deliver(event, data)
        except Exception:
            logger.exception("Webhook fan-out for %s failed", event)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every in-flight delivery to settle."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self) -> None:
        in_flight = list(self._tasks)
        if in_flight:
            logger.info("Cancelling %d in-flight webhook deliveries", len(in_flight))
        for task in in_flight:
            task.cancel()
        await asyncio.gather(*in_flight, return_exceptions=True)


dispatcher = WebhookDispatcher()


def get_dispatcher() -> WebhookDispatcher:
    return dispatcher
