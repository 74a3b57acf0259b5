"""Booking and risk-scoring routes."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from slotly.database import get_db
from slotly.handlers import bookings as booking_handler
from slotly.handlers.bookings import BookingStateError
from slotly.handlers.webhook_delivery import WebhookDispatcher, get_dispatcher
from slotly.schemas.bookings import BookingCancel, BookingCreate, BookingRead, BookingReschedule
from slotly.schemas.risk import OutcomeRequest, PredictionAccuracy, RiskAssessment, RiskFactors
from slotly.scoring.no_show import compute_risk_score

router = APIRouter(tags=["bookings"])


def _not_found(booking_id: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Booking {booking_id} not found")


def _conflict(exc: BookingStateError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))


@router.post("/risk/score", response_model=RiskAssessment)
async def score_risk(factors: RiskFactors) -> RiskAssessment:
    """Score a set of booking factors without persisting anything."""
    return compute_risk_score(factors)


@router.post("/bookings", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: BookingCreate,
    db: AsyncSession = Depends(get_db),
    dispatcher: WebhookDispatcher = Depends(get_dispatcher),
) -> BookingRead:
    """Create a booking, attach its no-show risk, and fire ``booking.created``."""
    try:
        booking = await booking_handler.create_booking(db, payload, dispatcher)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return BookingRead.model_validate(booking)


@router.get("/bookings/outcomes/accuracy", response_model=PredictionAccuracy)
async def prediction_accuracy(db: AsyncSession = Depends(get_db)) -> PredictionAccuracy:
    """How well the stored risk tiers predicted recorded outcomes."""
    return await booking_handler.get_prediction_accuracy(db)


@router.post("/bookings/{booking_id}/cancel", response_model=BookingRead)
async def cancel_booking(
    booking_id: str,
    payload: BookingCancel | None = None,
    db: AsyncSession = Depends(get_db),
    dispatcher: WebhookDispatcher = Depends(get_dispatcher),
) -> BookingRead:
    try:
        booking = await booking_handler.cancel_booking(
            db, booking_id, payload or BookingCancel(), dispatcher
        )
    except BookingStateError as exc:
        raise _conflict(exc) from exc
    if booking is None:
        raise _not_found(booking_id)
    return BookingRead.model_validate(booking)


@router.post("/bookings/{booking_id}/reschedule", response_model=BookingRead)
async def reschedule_booking(
    booking_id: str,
    payload: BookingReschedule,
    db: AsyncSession = Depends(get_db),
    dispatcher: WebhookDispatcher = Depends(get_dispatcher),
) -> BookingRead:
    try:
        booking = await booking_handler.reschedule_booking(db, booking_id, payload, dispatcher)
    except BookingStateError as exc:
        raise _conflict(exc) from exc
    if booking is None:
        raise _not_found(booking_id)
    return BookingRead.model_validate(booking)


@router.post("/bookings/{booking_id}/rescore", response_model=BookingRead)
async def rescore_booking(booking_id: str, db: AsyncSession = Depends(get_db)) -> BookingRead:
    """Explicitly recompute the stored risk score."""
    booking = await booking_handler.rescore_booking(db, booking_id)
    if booking is None:
        raise _not_found(booking_id)
    return BookingRead.model_validate(booking)


@router.post("/bookings/{booking_id}/outcome", response_model=BookingRead)
async def record_outcome(
    booking_id: str,
    payload: OutcomeRequest,
    db: AsyncSession = Depends(get_db),
) -> BookingRead:
    """Record ``completed`` or ``no_show`` for a confirmed booking."""
    try:
        booking = await booking_handler.record_outcome(db, booking_id, payload.outcome)
    except BookingStateError as exc:
        raise _conflict(exc) from exc
    if booking is None:
        raise _not_found(booking_id)
    return BookingRead.model_validate(booking)
