"""Tests for the no-show risk scorer."""

import itertools

import pytest

from slotly.schemas.risk import RiskFactors
from slotly.scoring.no_show import (
    DEFAULT_RISK_WEIGHTS,
    RiskWeights,
    calculate_no_show_score,
    compute_risk_score,
    get_risk_tier,
)


def _factors(**overrides) -> RiskFactors:
    defaults = {
        "lead_time_minutes": 3 * 24 * 60,
        "day_of_week": 3,
        "hour_of_day": 11,
        "is_repeat_booker": False,
        "has_topic_filled": True,
        "has_notes": True,
    }
    defaults.update(overrides)
    return RiskFactors(**defaults)


def test_short_notice_friday_afternoon_without_engagement_is_high_risk():
    factors = _factors(
        lead_time_minutes=90,
        day_of_week=5,
        hour_of_day=15,
        has_topic_filled=False,
        has_notes=False,
    )
    # 20 + 30 (lead) + 15 (friday pm) + 8 (late afternoon) + 12 (topic) + 5 (notes)
    assert calculate_no_show_score(factors) == 90
    assert compute_risk_score(factors).tier == "high"


def test_far_out_repeat_booker_is_low_risk():
    factors = _factors(
        lead_time_minutes=10 * 24 * 60,
        day_of_week=3,
        hour_of_day=11,
        is_repeat_booker=True,
    )
    # 20 + 8 (over 7 days) - 15 (repeat)
    assert compute_risk_score(factors).model_dump() == {"score": 13, "tier": "low"}


@pytest.mark.parametrize(
    ("lead_minutes", "adjustment"),
    [
        (0, 30),
        (119, 30),
        (120, 20),
        (359, 20),
        (360, 10),
        (24 * 60 - 1, 10),
        (24 * 60, 0),
        (168 * 60, 0),
        (168 * 60 + 1, 8),
    ],
)
def test_only_the_tightest_lead_time_bracket_applies(lead_minutes, adjustment):
    score = calculate_no_show_score(_factors(lead_time_minutes=lead_minutes))
    assert score == DEFAULT_RISK_WEIGHTS.baseline + adjustment


def test_negative_lead_time_is_treated_as_zero():
    assert calculate_no_show_score(_factors(lead_time_minutes=-500)) == calculate_no_show_score(
        _factors(lead_time_minutes=0)
    )


def test_monday_morning_and_early_morning_stack():
    # 20 + 5 (monday < 10) + 10 (before 8am)
    assert calculate_no_show_score(_factors(day_of_week=1, hour_of_day=7)) == 35


def test_out_of_range_inputs_do_not_raise():
    score = calculate_no_show_score(_factors(day_of_week=12, hour_of_day=40))
    assert 0 <= score <= 100


def test_score_is_clamped_at_zero():
    weights = RiskWeights(repeat_booker=-200)
    assert calculate_no_show_score(_factors(is_repeat_booker=True), weights) == 0


def test_score_is_always_within_bounds():
    for lead, day, hour, repeat, topic, notes in itertools.product(
        (0, 200, 400, 2000, 20000),
        range(7),
        (0, 7, 9, 12, 14, 16, 23),
        (False, True),
        (False, True),
        (False, True),
    ):
        score = calculate_no_show_score(
            RiskFactors(
                lead_time_minutes=lead,
                day_of_week=day,
                hour_of_day=hour,
                is_repeat_booker=repeat,
                has_topic_filled=topic,
                has_notes=notes,
            )
        )
        assert isinstance(score, int)
        assert 0 <= score <= 100


@pytest.mark.parametrize(
    ("score", "tier"),
    [(0, "low"), (49, "low"), (50, "medium"), (64, "medium"), (65, "high"), (100, "high")],
)
def test_tier_thresholds(score, tier):
    assert get_risk_tier(score) == tier


def test_custom_weights_change_scoring_without_code_changes():
    weights = RiskWeights(baseline=0, no_topic=0, no_notes=0, high_threshold=10, medium_threshold=5)
    factors = _factors(lead_time_minutes=60, has_topic_filled=False, has_notes=False)
    assessment = compute_risk_score(factors, weights)
    assert assessment.score == 30
    assert assessment.tier == "high"
