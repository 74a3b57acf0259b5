"""Pydantic models for webhook subscriptions, envelopes and the delivery log."""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator


class WebhookEvent(str, Enum):
    BOOKING_CREATED = "booking.created"
    BOOKING_CANCELLED = "booking.cancelled"
    BOOKING_RESCHEDULED = "booking.rescheduled"


VALID_EVENTS = tuple(e.value for e in WebhookEvent)


def validate_target_url(raw: str) -> str:
    value = raw.strip()
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https"):
        raise ValueError("URL must be HTTP or HTTPS")
    if not parsed.netloc:
        raise ValueError("Invalid URL format")
    return value


def validate_event_names(raw: list[str]) -> list[str]:
    """Keep known event names in their given order, dropping unknown ones and duplicates."""
    if not raw:
        raise ValueError("At least one event is required")
    events: list[str] = []
    for name in raw:
        if name in VALID_EVENTS and name not in events:
            events.append(name)
    if not events:
        raise ValueError(f"Invalid events. Valid: {', '.join(VALID_EVENTS)}")
    return events


class SubscriptionCreate(BaseModel):
    url: str
    events: list[str]

    @field_validator("url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        return validate_target_url(value)

    @field_validator("events")
    @classmethod
    def _check_events(cls, value: list[str]) -> list[str]:
        return validate_event_names(value)


class SubscriptionUpdate(BaseModel):
    url: Optional[str] = None
    events: Optional[list[str]] = None
    is_active: Optional[bool] = None

    @field_validator("url")
    @classmethod
    def _check_url(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else validate_target_url(value)

    @field_validator("events")
    @classmethod
    def _check_events(cls, value: Optional[list[str]]) -> Optional[list[str]]:
        return None if value is None else validate_event_names(value)

    def has_changes(self) -> bool:
        return bool(self.model_dump(exclude_none=True))


class SubscriptionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    url: str
    events: list[str]
    is_active: bool
    created_at: datetime


class SubscriptionCreated(SubscriptionRead):
    """Returned once, at creation. The only response that carries the secret."""

    secret: str


class DeliveryAttemptRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    subscription_id: str
    event: str
    attempt_number: int
    status_code: Optional[int] = None
    response_body: Optional[str] = None
    success: bool
    created_at: datetime


class SubscriptionList(BaseModel):
    webhooks: list[SubscriptionRead] = Field(default_factory=list)
    logs: list[DeliveryAttemptRead] = Field(default_factory=list)


class WebhookEnvelope(BaseModel):
    """The signed body POSTed to subscribers."""

    event: WebhookEvent
    timestamp: str
    data: dict[str, Any] = Field(default_factory=dict)
