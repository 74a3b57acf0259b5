"""Webhook payload builders for booking lifecycle events."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from slotly.models.booking import Booking
from slotly.schemas.webhooks import WebhookEnvelope, WebhookEvent


def _iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def build_booking_payload(
    booking: Booking,
    event_type_title: str | None = None,
    **extra: Any,
) -> dict[str, Any]:
    """Build the ``data`` section shared by every booking event."""
    data: dict[str, Any] = {
        "booking_id": booking.id,
        "event_type": event_type_title,
        "invitee_name": booking.invitee_name,
        "invitee_email": booking.invitee_email,
        "start_time": _iso(booking.start_time),
        "end_time": _iso(booking.end_time),
        "timezone": booking.timezone,
        "status": booking.status,
    }
    for key, value in extra.items():
        data[key] = _iso(value) if isinstance(value, datetime) else value
    return data


def build_envelope(
    event: WebhookEvent | str,
    data: dict[str, Any],
    now: datetime | None = None,
) -> bytes:
    """Serialize the signed envelope.

    The returned bytes are exactly what gets signed and sent, so they are
    produced once per event and shared by every subscriber.
    """
    envelope = WebhookEnvelope(
        event=WebhookEvent(event),
        timestamp=_iso(now or datetime.now(timezone.utc)),
        data=data,
    )
    return envelope.model_dump_json().encode()
