"""Smart scheduling: surface popular time slots from booking history.

With enough history the hour scores come from a heatmap of past booking
start times. Below the minimum sample the industry defaults are used
(Tue-Thu, 10am-2pm skipping noon).

Days are numbered 0=Sun .. 6=Sat throughout.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timezone, tzinfo
from typing import Iterable

from pydantic import BaseModel, ConfigDict

from slotly.schemas.scheduling import RecommendationSummary, SmartTimeSlot

DAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
HOURS = range(24)


class RecommendationConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    window_days: int = 90
    min_sample: int = 30

    # Blend of overall hour popularity and day-specific popularity
    overall_weight: float = 60
    day_weight: float = 40

    popular_threshold: int = 70
    recommended_threshold: int = 45

    default_popular_days: frozenset[int] = frozenset({2, 3, 4})
    default_good_hours: frozenset[int] = frozenset({10, 11, 13, 14})
    default_popular_score: int = 75
    default_good_hour_score: int = 50
    default_popular_day_score: int = 30

    summary_days: int = 3
    summary_hours: int = 4


DEFAULT_RECOMMENDATION_CONFIG = RecommendationConfig()


@dataclass(frozen=True)
class HeatmapSnapshot:
    hour_counts: tuple[int, ...]
    day_hour_counts: dict[tuple[int, int], int] = field(default_factory=dict)
    total_bookings: int = 0


def weekday_index(value: date) -> int:
    """Weekday of ``value`` with Sunday as 0."""
    return value.isoweekday() % 7


def build_heatmap(
    start_times: Iterable[datetime],
    tz: tzinfo = timezone.utc,
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
) -> HeatmapSnapshot | None:
    """Bucket booking start times by local hour and (weekday, hour).

    Returns None when the sample is too small to be meaningful.
    """
    hours: Counter[int] = Counter()
    day_hours: Counter[tuple[int, int]] = Counter()
    total = 0
    for start in start_times:
        if start.tzinfo is None:
            start = start.replace(tzinfo=timezone.utc)
        local = start.astimezone(tz)
        hours[local.hour] += 1
        day_hours[(weekday_index(local), local.hour)] += 1
        total += 1

    if total < config.min_sample:
        return None

    return HeatmapSnapshot(
        hour_counts=tuple(hours[h] for h in HOURS),
        day_hour_counts=dict(day_hours),
        total_bookings=total,
    )


def _label(score: int, config: RecommendationConfig) -> str | None:
    if score >= config.popular_threshold:
        return "popular"
    if score >= config.recommended_threshold:
        return "recommended"
    return None


def score_from_heatmap(
    snapshot: HeatmapSnapshot,
    target_day: int,
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
) -> dict[int, SmartTimeSlot]:
    max_hour_count = max(max(snapshot.hour_counts), 1)
    per_day_average = snapshot.total_bookings / 7

    slots: dict[int, SmartTimeSlot] = {}
    for h in HOURS:
        overall_score = (snapshot.hour_counts[h] / max_hour_count) * config.overall_weight
        day_score = 0.0
        if per_day_average > 0:
            day_count = snapshot.day_hour_counts.get((target_day, h), 0)
            day_score = (day_count / per_day_average) * config.day_weight
        # A day-specific spike can push the raw blend past 100.
        score = min(100, round(overall_score + day_score))
        slots[h] = SmartTimeSlot(hour=h, score=score, label=_label(score, config))
    return slots


def default_recommendations(
    target_day: int,
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
) -> dict[int, SmartTimeSlot]:
    is_day_popular = target_day in config.default_popular_days

    slots: dict[int, SmartTimeSlot] = {}
    for h in HOURS:
        is_hour_good = h in config.default_good_hours
        if is_day_popular and is_hour_good:
            slot = SmartTimeSlot(hour=h, score=config.default_popular_score, label="popular")
        elif is_hour_good:
            slot = SmartTimeSlot(hour=h, score=config.default_good_hour_score, label="recommended")
        elif is_day_popular:
            slot = SmartTimeSlot(hour=h, score=config.default_popular_day_score)
        else:
            slot = SmartTimeSlot(hour=h, score=0)
        slots[h] = slot
    return slots


def format_hour(hour: int) -> str:
    suffix = "PM" if hour >= 12 else "AM"
    h12 = 12 if hour % 12 == 0 else hour % 12
    return f"{h12}:00 {suffix}"


def _top(counts: dict[int, int], keys: Iterable[int], limit: int) -> list[int]:
    # sorted() is stable, so equal counts keep enumeration order
    ranked = sorted((k for k in keys if counts.get(k, 0) > 0), key=lambda k: -counts[k])
    return ranked[:limit]


def summarize_heatmap(
    snapshot: HeatmapSnapshot,
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
) -> RecommendationSummary:
    day_counts: Counter[int] = Counter()
    for (day, _hour), count in snapshot.day_hour_counts.items():
        day_counts[day] += count
    hour_counts = dict(enumerate(snapshot.hour_counts))

    return RecommendationSummary(
        best_days=[DAY_NAMES[d] for d in _top(day_counts, range(7), config.summary_days)],
        best_hours=[format_hour(h) for h in _top(hour_counts, HOURS, config.summary_hours)],
        source="real",
        sample_size=snapshot.total_bookings,
    )


def default_summary(
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
) -> RecommendationSummary:
    return RecommendationSummary(
        best_days=[DAY_NAMES[d] for d in sorted(config.default_popular_days)][: config.summary_days],
        best_hours=[format_hour(h) for h in sorted(config.default_good_hours)][: config.summary_hours],
        source="defaults",
        sample_size=0,
    )
