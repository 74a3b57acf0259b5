"""Booking mutations that feed the risk scorer and the webhook engine.

Create scores the booking synchronously and stores the result verbatim.
Create, cancel and reschedule fire their webhook only after the database
commit, and never wait for delivery.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from slotly.config import settings
from slotly.handlers.recommendations import resolve_timezone
from slotly.handlers.webhook_delivery import WebhookDispatcher
from slotly.models.booking import OUTCOMES, Booking
from slotly.models.event_type import EventType
from slotly.schemas.bookings import BookingCancel, BookingCreate, BookingReschedule
from slotly.schemas.risk import PredictionAccuracy, PredictionCounts, RiskFactors
from slotly.schemas.webhooks import WebhookEvent
from slotly.scoring.heatmap import weekday_index
from slotly.scoring.no_show import DEFAULT_RISK_WEIGHTS, RiskWeights, compute_risk_score
from slotly.templates.webhook_payloads import build_booking_payload

logger = logging.getLogger(__name__)

MIN_NOTES_LENGTH = 5


class BookingStateError(ValueError):
    """The booking is not in a state that allows the requested change."""


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _has_topic(notes: str | None, answers: dict | None) -> bool:
    if answers and str(answers.get("topic") or "").strip():
        return True
    return bool(notes) and "topic:" in notes.lower()


async def _is_repeat_booker(db: AsyncSession, email: str, exclude_id: str | None = None) -> bool:
    query = select(func.count(Booking.id)).where(
        Booking.invitee_email == email.lower(),
        Booking.status.in_(("confirmed", "completed")),
    )
    if exclude_id:
        query = query.where(Booking.id != exclude_id)
    prior = await db.scalar(query)
    return (prior or 0) > 0


def build_risk_factors(
    start_time: datetime,
    created_at: datetime,
    tz_name: str,
    notes: str | None,
    answers: dict | None,
    is_repeat_booker: bool,
) -> RiskFactors:
    local_start = as_utc(start_time).astimezone(resolve_timezone(tz_name))
    lead = as_utc(start_time) - as_utc(created_at)
    return RiskFactors(
        lead_time_minutes=lead.total_seconds() / 60,
        day_of_week=weekday_index(local_start),
        hour_of_day=local_start.hour,
        is_repeat_booker=is_repeat_booker,
        has_topic_filled=_has_topic(notes, answers),
        has_notes=bool(notes) and len(notes.strip()) > MIN_NOTES_LENGTH,
    )


async def _event_type(db: AsyncSession, event_type_id: str | None) -> EventType | None:
    if not event_type_id:
        return None
    return await db.get(EventType, event_type_id)


async def create_booking(
    db: AsyncSession,
    payload: BookingCreate,
    dispatcher: WebhookDispatcher,
    weights: RiskWeights = DEFAULT_RISK_WEIGHTS,
) -> Booking:
    event_type = await _event_type(db, payload.event_type_id)
    if payload.event_type_id and event_type is None:
        raise LookupError(f"event type {payload.event_type_id} not found")

    duration = event_type.duration_minutes if event_type else settings.default_duration_minutes
    created_at = datetime.now(timezone.utc)
    start = as_utc(payload.start_time)

    factors = build_risk_factors(
        start,
        created_at,
        payload.timezone,
        payload.invitee_notes,
        payload.answers,
        await _is_repeat_booker(db, payload.invitee_email),
    )
    assessment = compute_risk_score(factors, weights)

    booking = Booking(
        event_type_id=payload.event_type_id,
        invitee_name=payload.invitee_name,
        invitee_email=payload.invitee_email,
        invitee_notes=payload.invitee_notes or None,
        answers=payload.answers,
        start_time=start,
        end_time=start + timedelta(minutes=duration),
        timezone=payload.timezone,
        status="confirmed",
        no_show_score=assessment.score,
        risk_tier=assessment.tier,
        created_at=created_at,
    )
    db.add(booking)
    await db.commit()
    await db.refresh(booking)
    logger.info(
        "Booking %s created (risk %d/%s)", booking.id, assessment.score, assessment.tier
    )

    dispatcher.notify(
        WebhookEvent.BOOKING_CREATED,
        build_booking_payload(booking, event_type.title if event_type else None),
    )
    return booking


async def _confirmed_booking(db: AsyncSession, booking_id: str) -> Booking | None:
    booking = await db.get(Booking, booking_id)
    if booking is None:
        return None
    if booking.status != "confirmed":
        raise BookingStateError(f"booking is {booking.status}")
    return booking


async def cancel_booking(
    db: AsyncSession,
    booking_id: str,
    payload: BookingCancel,
    dispatcher: WebhookDispatcher,
) -> Booking | None:
    booking = await _confirmed_booking(db, booking_id)
    if booking is None:
        return None

    booking.status = "cancelled"
    await db.commit()
    await db.refresh(booking)
    logger.info("Booking %s cancelled", booking_id)

    event_type = await _event_type(db, booking.event_type_id)
    dispatcher.notify(
        WebhookEvent.BOOKING_CANCELLED,
        build_booking_payload(
            booking, event_type.title if event_type else None, reason=payload.reason
        ),
    )
    return booking


async def reschedule_booking(
    db: AsyncSession,
    booking_id: str,
    payload: BookingReschedule,
    dispatcher: WebhookDispatcher,
) -> Booking | None:
    """Move a booking. The stored risk score is kept; use rescore to refresh it."""
    booking = await _confirmed_booking(db, booking_id)
    if booking is None:
        return None

    previous_start = as_utc(booking.start_time)
    previous_end = as_utc(booking.end_time)
    new_start = as_utc(payload.start_time)

    booking.start_time = new_start
    booking.end_time = new_start + (previous_end - previous_start)
    await db.commit()
    await db.refresh(booking)
    logger.info("Booking %s rescheduled", booking_id)

    event_type = await _event_type(db, booking.event_type_id)
    dispatcher.notify(
        WebhookEvent.BOOKING_RESCHEDULED,
        build_booking_payload(
            booking,
            event_type.title if event_type else None,
            previous_start_time=previous_start,
            previous_end_time=previous_end,
        ),
    )
    return booking


async def rescore_booking(
    db: AsyncSession,
    booking_id: str,
    weights: RiskWeights = DEFAULT_RISK_WEIGHTS,
) -> Booking | None:
    """Recompute and overwrite the stored risk score on explicit request."""
    booking = await db.get(Booking, booking_id)
    if booking is None:
        return None

    factors = build_risk_factors(
        booking.start_time,
        booking.created_at,
        booking.timezone,
        booking.invitee_notes,
        booking.answers,
        await _is_repeat_booker(db, booking.invitee_email, exclude_id=booking.id),
    )
    assessment = compute_risk_score(factors, weights)
    booking.no_show_score = assessment.score
    booking.risk_tier = assessment.tier
    await db.commit()
    await db.refresh(booking)
    logger.info("Booking %s re-scored (risk %d/%s)", booking_id, assessment.score, assessment.tier)
    return booking


async def record_outcome(db: AsyncSession, booking_id: str, outcome: str) -> Booking | None:
    """Record whether a confirmed booking was attended."""
    booking = await _confirmed_booking(db, booking_id)
    if booking is None:
        return None

    booking.outcome = outcome
    booking.outcome_recorded_at = datetime.now(timezone.utc)
    booking.status = outcome
    await db.commit()
    await db.refresh(booking)
    logger.info("Booking %s outcome recorded: %s", booking_id, outcome)
    return booking


def _average(scores: list[int]) -> int | None:
    if not scores:
        return None
    return round(sum(scores) / len(scores))


async def get_prediction_accuracy(db: AsyncSession) -> PredictionAccuracy:
    """Compare predicted risk tiers with recorded outcomes.

    Only "high tier + no_show" counts as a true positive; medium-tier
    predictions do not take part in precision.
    """
    result = await db.execute(
        select(Booking.no_show_score, Booking.risk_tier, Booking.outcome).where(
            Booking.outcome.in_(OUTCOMES),
            Booking.no_show_score.is_not(None),
        )
    )
    rows = result.all()
    if not rows:
        return PredictionAccuracy()

    no_show_scores = [r.no_show_score for r in rows if r.outcome == "no_show"]
    completed_scores = [r.no_show_score for r in rows if r.outcome == "completed"]

    tp = sum(1 for r in rows if r.risk_tier == "high" and r.outcome == "no_show")
    fp = sum(1 for r in rows if r.risk_tier == "high" and r.outcome == "completed")
    fn = sum(1 for r in rows if r.risk_tier == "low" and r.outcome == "no_show")

    total = len(rows)
    return PredictionAccuracy(
        total_outcomes=total,
        no_shows=len(no_show_scores),
        completed=len(completed_scores),
        no_show_rate=round(len(no_show_scores) / total * 100),
        prediction_accuracy=PredictionCounts(
            true_positives=tp,
            false_positives=fp,
            false_negatives=fn,
            precision=round(tp / (tp + fp), 4) if tp + fp else None,
        ),
        avg_score_no_show=_average(no_show_scores),
        avg_score_completed=_average(completed_scores),
    )
