"""Webhook subscription administration.

URL and event validation happens in the request schemas, so a stored
subscription is always deliverable in principle: delivery-time failures
are about reachability, never configuration.
"""

from __future__ import annotations

import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from slotly.models.webhook import WebhookDeliveryAttempt, WebhookSubscription
from slotly.schemas.webhooks import SubscriptionCreate, SubscriptionUpdate

logger = logging.getLogger(__name__)

RECENT_ATTEMPTS_LIMIT = 50


async def create_subscription(db: AsyncSession, payload: SubscriptionCreate) -> WebhookSubscription:
    subscription = WebhookSubscription(url=payload.url, events=payload.events, is_active=True)
    db.add(subscription)
    await db.commit()
    await db.refresh(subscription)
    logger.info("Webhook subscription %s created for %s", subscription.id, payload.events)
    return subscription


async def list_subscriptions(
    db: AsyncSession,
) -> tuple[list[WebhookSubscription], list[WebhookDeliveryAttempt]]:
    """All subscriptions, newest first, plus the most recent attempts across them."""
    result = await db.execute(
        select(WebhookSubscription).order_by(WebhookSubscription.created_at.desc())
    )
    subscriptions = list(result.scalars().all())
    if not subscriptions:
        return [], []

    logs = await db.execute(
        select(WebhookDeliveryAttempt)
        .where(WebhookDeliveryAttempt.subscription_id.in_([s.id for s in subscriptions]))
        .order_by(WebhookDeliveryAttempt.created_at.desc(), WebhookDeliveryAttempt.id.desc())
        .limit(RECENT_ATTEMPTS_LIMIT)
    )
    return subscriptions, list(logs.scalars().all())


async def get_subscription(db: AsyncSession, subscription_id: str) -> WebhookSubscription | None:
    return await db.get(WebhookSubscription, subscription_id)


async def update_subscription(
    db: AsyncSession,
    subscription_id: str,
    payload: SubscriptionUpdate,
) -> WebhookSubscription | None:
    subscription = await db.get(WebhookSubscription, subscription_id)
    if subscription is None:
        return None

    changes = payload.model_dump(exclude_none=True)
    for field, value in changes.items():
        setattr(subscription, field, value)
    await db.commit()
    await db.refresh(subscription)
    logger.info("Webhook subscription %s updated: %s", subscription_id, sorted(changes))
    return subscription


async def delete_subscription(db: AsyncSession, subscription_id: str) -> bool:
    subscription = await db.get(WebhookSubscription, subscription_id)
    if subscription is None:
        return False
    await db.execute(
        delete(WebhookDeliveryAttempt).where(
            WebhookDeliveryAttempt.subscription_id == subscription_id
        )
    )
    await db.delete(subscription)
    await db.commit()
    logger.info("Webhook subscription %s deleted", subscription_id)
    return True


async def list_attempts(
    db: AsyncSession,
    subscription_id: str,
    limit: int = RECENT_ATTEMPTS_LIMIT,
) -> list[WebhookDeliveryAttempt]:
    result = await db.execute(
        select(WebhookDeliveryAttempt)
        .where(WebhookDeliveryAttempt.subscription_id == subscription_id)
        .order_by(WebhookDeliveryAttempt.created_at.desc(), WebhookDeliveryAttempt.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
