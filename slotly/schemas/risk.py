"""Pydantic models for no-show risk scoring and outcome tracking."""

from typing import Literal, Optional

from pydantic import BaseModel, Field

RiskTier = Literal["low", "medium", "high"]


class RiskFactors(BaseModel):
    """Observable signals known when a booking is created.

    Values are not range-checked here: the scorer clamps them so that
    scoring never fails.
    """

    lead_time_minutes: float
    # 0=Sun, 1=Mon, ..., 5=Fri, 6=Sat
    day_of_week: int
    # Hour of meeting start in the booking's local timezone
    hour_of_day: int
    is_repeat_booker: bool = False
    has_topic_filled: bool = False
    has_notes: bool = False


class RiskAssessment(BaseModel):
    score: int = Field(ge=0, le=100)
    tier: RiskTier


class OutcomeRequest(BaseModel):
    outcome: Literal["completed", "no_show"]


class PredictionCounts(BaseModel):
    true_positives: int = 0
    false_positives: int = 0
    false_negatives: int = 0
    # tp / (tp + fp); None until at least one high-risk booking has an outcome
    precision: Optional[float] = None


class PredictionAccuracy(BaseModel):
    total_outcomes: int = 0
    no_shows: int = 0
    completed: int = 0
    no_show_rate: int = 0
    prediction_accuracy: PredictionCounts = Field(default_factory=PredictionCounts)
    avg_score_no_show: Optional[int] = None
    avg_score_completed: Optional[int] = None
