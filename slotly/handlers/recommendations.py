"""Smart-scheduling recommendations backed by booking history.

A thin sample or a failing query is not an error: both fall back to the
industry defaults, so callers always get a recommendation.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from slotly.models.booking import Booking
from slotly.models.event_type import EventType
from slotly.schemas.scheduling import RecommendationSummary, SmartTimeSlot
from slotly.scoring.heatmap import (
    DEFAULT_RECOMMENDATION_CONFIG,
    HeatmapSnapshot,
    RecommendationConfig,
    build_heatmap,
    default_recommendations,
    default_summary,
    score_from_heatmap,
    summarize_heatmap,
    weekday_index,
)

logger = logging.getLogger(__name__)

HEATMAP_STATUSES = ("confirmed", "completed")


def resolve_timezone(name: str | None) -> tzinfo:
    if not name:
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r, using UTC", name)
        return timezone.utc


async def load_booking_heatmap(
    db: AsyncSession,
    scope_id: str | None = None,
    tz: tzinfo = timezone.utc,
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
    now: datetime | None = None,
) -> HeatmapSnapshot | None:
    """Heatmap of the trailing window, or None when it should not be trusted."""
    since = (now or datetime.now(timezone.utc)) - timedelta(days=config.window_days)
    query = select(Booking.start_time).where(
        Booking.status.in_(HEATMAP_STATUSES),
        Booking.created_at >= since,
    )
    if scope_id:
        query = query.join(EventType, Booking.event_type_id == EventType.id).where(
            EventType.team_id == scope_id
        )

    try:
        result = await db.execute(query)
        start_times = result.scalars().all()
    except SQLAlchemyError as exc:
        logger.warning("Booking heatmap query failed: %s", exc)
        return None

    snapshot = build_heatmap(start_times, tz, config)
    if snapshot is None:
        logger.debug(
            "Only %d bookings in the last %d days (scope=%s); using defaults",
            len(start_times), config.window_days, scope_id,
        )
    return snapshot


async def get_recommendations(
    db: AsyncSession,
    day: date,
    tz_name: str = "UTC",
    scope_id: str | None = None,
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
) -> dict[int, SmartTimeSlot]:
    """Score every hour of ``day`` (0-23, local to ``tz_name``)."""
    target_day = weekday_index(day)
    snapshot = await load_booking_heatmap(db, scope_id, resolve_timezone(tz_name), config)
    if snapshot is None:
        return default_recommendations(target_day, config)
    return score_from_heatmap(snapshot, target_day, config)


async def get_recommendation_summary(
    db: AsyncSession,
    scope_id: str | None = None,
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
) -> RecommendationSummary:
    snapshot = await load_booking_heatmap(db, scope_id, timezone.utc, config)
    if snapshot is None:
        return default_summary(config)
    return summarize_heatmap(snapshot, config)
