"""Tests for heatmap construction and the static fallback table."""

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from slotly.scoring.heatmap import (
    RecommendationConfig,
    build_heatmap,
    default_recommendations,
    default_summary,
    format_hour,
    score_from_heatmap,
    summarize_heatmap,
    weekday_index,
)

# 2026-01-07 is a Wednesday
WEDNESDAY = datetime(2026, 1, 7, tzinfo=timezone.utc)


def _at(day_offset: int, hour: int) -> datetime:
    return WEDNESDAY + timedelta(days=day_offset, hours=hour)


def test_weekday_index_counts_from_sunday():
    assert weekday_index(date(2026, 1, 4)) == 0
    assert weekday_index(date(2026, 1, 7)) == 3
    assert weekday_index(date(2026, 1, 10)) == 6


def test_thin_sample_yields_no_heatmap():
    assert build_heatmap([_at(0, 10)] * 29) is None


def test_heatmap_counts_by_hour_and_weekday():
    snapshot = build_heatmap([_at(0, 10)] * 20 + [_at(-2, 15)] * 10)
    assert snapshot.total_bookings == 30
    assert snapshot.hour_counts[10] == 20
    assert snapshot.hour_counts[15] == 10
    assert snapshot.day_hour_counts == {(3, 10): 20, (1, 15): 10}


def test_heatmap_buckets_in_requested_timezone():
    # 15:00 UTC on a Wednesday is 10:00 in New York in January
    snapshot = build_heatmap([_at(0, 15)] * 30, ZoneInfo("America/New_York"))
    assert snapshot.hour_counts[10] == 30
    assert snapshot.day_hour_counts == {(3, 10): 30}


def test_naive_start_times_are_read_as_utc():
    snapshot = build_heatmap([_at(0, 9).replace(tzinfo=None)] * 30)
    assert snapshot.hour_counts[9] == 30


def test_busy_hour_outscores_empty_hour():
    snapshot = build_heatmap([_at(0, 10)] * 25 + [_at(-2, 15)] * 10)
    slots = score_from_heatmap(snapshot, target_day=3)

    assert len(slots) == 24
    assert slots[10].label in ("popular", "recommended")
    assert slots[10].score > slots[3].score
    assert slots[3].score == 0
    assert slots[3].label is None
    assert all(0 <= s.score <= 100 for s in slots.values())


def test_score_blends_overall_and_day_popularity():
    # 35 bookings: 14 at 10:00 on Wednesdays, 21 at 11:00 on Mondays
    snapshot = build_heatmap([_at(0, 10)] * 14 + [_at(-2, 11)] * 21)
    slots = score_from_heatmap(snapshot, target_day=3)

    # hour 10: 14/21 * 60 = 40, plus 14 / (35/7) * 40 = 112 -> capped
    assert slots[10].score == 100
    # hour 11 on a Wednesday: 21/21 * 60 = 60, no Wednesday bookings
    assert slots[11].score == 60
    assert slots[11].label == "recommended"


def test_default_table_for_popular_day():
    slots = default_recommendations(3)
    assert [(h, s.score, s.label) for h, s in slots.items() if s.label] == [
        (10, 75, "popular"),
        (11, 75, "popular"),
        (13, 75, "popular"),
        (14, 75, "popular"),
    ]
    assert slots[12].score == 30
    assert slots[12].label is None


def test_default_table_for_quiet_day():
    slots = default_recommendations(6)
    assert slots[10].score == 50
    assert slots[10].label == "recommended"
    assert slots[9].score == 0
    assert slots[9].label is None


def test_summary_ranks_days_and_hours_with_stable_ties():
    starts = (
        [_at(0, 10)] * 12      # Wed 10:00
        + [_at(1, 14)] * 8     # Thu 14:00
        + [_at(-2, 9)] * 5     # Mon 09:00
        + [_at(-3, 9)] * 5     # Sun 09:00
    )
    summary = summarize_heatmap(build_heatmap(starts))

    assert summary.source == "real"
    assert summary.sample_size == 30
    # Sun and Mon tie on 5; Sun comes first in enumeration order
    assert summary.best_days == ["Wed", "Thu", "Sun"]
    assert summary.best_hours == ["10:00 AM", "9:00 AM", "2:00 PM"]


def test_default_summary():
    summary = default_summary()
    assert summary.model_dump() == {
        "best_days": ["Tue", "Wed", "Thu"],
        "best_hours": ["10:00 AM", "11:00 AM", "1:00 PM", "2:00 PM"],
        "source": "defaults",
        "sample_size": 0,
    }


def test_format_hour():
    assert [format_hour(h) for h in (0, 9, 12, 13, 23)] == [
        "12:00 AM", "9:00 AM", "12:00 PM", "1:00 PM", "11:00 PM",
    ]


def test_min_sample_is_configurable():
    config = RecommendationConfig(min_sample=5)
    assert build_heatmap([_at(0, 10)] * 5, config=config) is not None
