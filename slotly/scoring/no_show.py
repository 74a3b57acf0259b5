"""No-show risk scoring: a weighted heuristic model.

Each booking is scored 0-100 from risk factors observable at creation time.
A higher score means a higher risk of no-show.

The weights are hand-tuned starting points. They live in a single
``RiskWeights`` table so that a retrained set can be swapped in without
touching the scoring logic.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from slotly.schemas.risk import RiskAssessment, RiskFactors, RiskTier

FRIDAY = 5
MONDAY = 1


class RiskWeights(BaseModel):
    model_config = ConfigDict(frozen=True)

    baseline: int = 20

    # Lead time: very short notice is high risk, very long notice is easy to forget
    lead_time_under_2h: int = 30
    lead_time_under_6h: int = 20
    lead_time_under_24h: int = 10
    lead_time_over_7d: int = 8

    # Day of week + time combos
    friday_afternoon: int = 15
    friday_afternoon_from_hour: int = 14
    monday_morning: int = 5
    monday_morning_before_hour: int = 10

    # Time of day
    early_morning: int = 10
    early_morning_before_hour: int = 8
    late_afternoon: int = 8
    late_afternoon_from_hour: int = 16

    # Engagement signals (negative reduces risk)
    no_topic: int = 12
    no_notes: int = 5
    repeat_booker: int = -15

    # Tier ladder, evaluated from highest to lowest
    high_threshold: int = 65
    medium_threshold: int = 50


DEFAULT_RISK_WEIGHTS = RiskWeights()


def _lead_time_adjustment(lead_minutes: float, weights: RiskWeights) -> int:
    lead_hours = max(lead_minutes, 0) / 60
    if lead_hours < 2:
        return weights.lead_time_under_2h
    if lead_hours < 6:
        return weights.lead_time_under_6h
    if lead_hours < 24:
        return weights.lead_time_under_24h
    if lead_hours > 168:
        return weights.lead_time_over_7d
    return 0


def calculate_no_show_score(
    factors: RiskFactors,
    weights: RiskWeights = DEFAULT_RISK_WEIGHTS,
) -> int:
    """Return the no-show risk for ``factors`` as an integer in [0, 100]."""
    hour = min(max(factors.hour_of_day, 0), 23)
    day = factors.day_of_week % 7

    score = weights.baseline
    score += _lead_time_adjustment(factors.lead_time_minutes, weights)

    if day == FRIDAY and hour >= weights.friday_afternoon_from_hour:
        score += weights.friday_afternoon
    if day == MONDAY and hour < weights.monday_morning_before_hour:
        score += weights.monday_morning

    if hour < weights.early_morning_before_hour:
        score += weights.early_morning
    elif hour >= weights.late_afternoon_from_hour:
        score += weights.late_afternoon

    if not factors.has_topic_filled:
        score += weights.no_topic
    if not factors.has_notes:
        score += weights.no_notes
    if factors.is_repeat_booker:
        score += weights.repeat_booker

    return max(0, min(100, round(score)))


def get_risk_tier(score: int, weights: RiskWeights = DEFAULT_RISK_WEIGHTS) -> RiskTier:
    if score >= weights.high_threshold:
        return "high"
    if score >= weights.medium_threshold:
        return "medium"
    return "low"


def compute_risk_score(
    factors: RiskFactors,
    weights: RiskWeights = DEFAULT_RISK_WEIGHTS,
) -> RiskAssessment:
    score = calculate_no_show_score(factors, weights)
    return RiskAssessment(score=score, tier=get_risk_tier(score, weights))
