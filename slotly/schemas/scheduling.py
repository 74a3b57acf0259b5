"""Pydantic models for smart-scheduling recommendations."""

from datetime import date as date_type
from typing import Literal, Optional

from pydantic import BaseModel, Field

SlotLabel = Literal["popular", "recommended"]
DataSource = Literal["real", "defaults"]


class SmartTimeSlot(BaseModel):
    hour: int = Field(ge=0, le=23)
    score: int = Field(ge=0, le=100)
    label: Optional[SlotLabel] = None


class RecommendationsResponse(BaseModel):
    date: date_type
    timezone: str
    slots: list[SmartTimeSlot] = Field(default_factory=list)


class RecommendationSummary(BaseModel):
    best_days: list[str] = Field(default_factory=list)
    best_hours: list[str] = Field(default_factory=list)
    source: DataSource = "defaults"
    sample_size: int = 0
