"""Webhook subscription administration routes."""

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from slotly.database import get_db
from slotly.handlers import subscriptions as subscription_handler
from slotly.schemas.webhooks import (
    DeliveryAttemptRead,
    SubscriptionCreate,
    SubscriptionCreated,
    SubscriptionList,
    SubscriptionRead,
    SubscriptionUpdate,
)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


def _not_found(subscription_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Webhook {subscription_id} not found",
    )


@router.get("", response_model=SubscriptionList)
async def list_webhooks(db: AsyncSession = Depends(get_db)) -> SubscriptionList:
    """All subscriptions with their most recent delivery attempts."""
    subscriptions, logs = await subscription_handler.list_subscriptions(db)
    return SubscriptionList(
        webhooks=[SubscriptionRead.model_validate(s) for s in subscriptions],
        logs=[DeliveryAttemptRead.model_validate(a) for a in logs],
    )


@router.post("", response_model=SubscriptionCreated, status_code=status.HTTP_201_CREATED)
async def create_webhook(
    payload: SubscriptionCreate,
    db: AsyncSession = Depends(get_db),
) -> SubscriptionCreated:
    """Register an endpoint. The signing secret is only ever returned here."""
    subscription = await subscription_handler.create_subscription(db, payload)
    return SubscriptionCreated.model_validate(subscription)


@router.patch("/{subscription_id}", response_model=SubscriptionRead)
async def update_webhook(
    subscription_id: str,
    payload: SubscriptionUpdate,
    db: AsyncSession = Depends(get_db),
) -> SubscriptionRead:
    if not payload.has_changes():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No valid fields to update",
        )
    subscription = await subscription_handler.update_subscription(db, subscription_id, payload)
    if subscription is None:
        raise _not_found(subscription_id)
    return SubscriptionRead.model_validate(subscription)


@router.delete("/{subscription_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_webhook(subscription_id: str, db: AsyncSession = Depends(get_db)) -> Response:
    if not await subscription_handler.delete_subscription(db, subscription_id):
        raise _not_found(subscription_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{subscription_id}/attempts", response_model=list[DeliveryAttemptRead])
async def list_webhook_attempts(
    subscription_id: str,
    db: AsyncSession = Depends(get_db),
) -> list[DeliveryAttemptRead]:
    """The delivery log for one subscription, newest first."""
    if await subscription_handler.get_subscription(db, subscription_id) is None:
        raise _not_found(subscription_id)
    attempts = await subscription_handler.list_attempts(db, subscription_id)
    return [DeliveryAttemptRead.model_validate(a) for a in attempts]
