"""Smart-scheduling routes."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from slotly.database import get_db
from slotly.handlers.recommendations import get_recommendation_summary, get_recommendations
from slotly.schemas.scheduling import RecommendationsResponse, RecommendationSummary

router = APIRouter(prefix="/scheduling", tags=["scheduling"])


@router.get("/recommendations", response_model=RecommendationsResponse)
async def recommendations(
    day: date = Query(alias="date"),
    timezone: str = "UTC",
    team_id: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
) -> RecommendationsResponse:
    """Per-hour popularity labels for ``date``, used to badge time slots."""
    slots = await get_recommendations(db, day, timezone, team_id)
    return RecommendationsResponse(
        date=day,
        timezone=timezone,
        slots=[slots[h] for h in sorted(slots)],
    )


@router.get("/summary", response_model=RecommendationSummary)
async def summary(
    team_id: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
) -> RecommendationSummary:
    """Best days and hours for the admin dashboard."""
    return await get_recommendation_summary(db, team_id)
