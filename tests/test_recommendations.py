"""Tests for history-backed recommendations and their fallback."""

from datetime import date, datetime, timedelta, timezone
from unittest.mock import patch

from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError

from slotly.database import async_session
from slotly.handlers.recommendations import get_recommendation_summary, get_recommendations
from slotly.main import app
from slotly.models.booking import Booking
from slotly.models.event_type import EventType
from slotly.scoring.heatmap import default_recommendations

TARGET_WEDNESDAY = date(2026, 1, 14)
HISTORY_WEDNESDAY = datetime(2026, 1, 7, tzinfo=timezone.utc)


async def _seed(count: int, hour: int = 10, status: str = "confirmed", **fields) -> None:
    async with async_session() as db:
        for i in range(count):
            start = HISTORY_WEDNESDAY - timedelta(weeks=i % 4) + timedelta(hours=hour)
            db.add(Booking(
                invitee_name=f"Invitee {i}",
                invitee_email=f"invitee{i}@example.com",
                start_time=start,
                end_time=start + timedelta(minutes=30),
                timezone="UTC",
                status=status,
                **fields,
            ))
        await db.commit()


async def test_history_concentrated_on_wednesday_morning_is_recommended():
    await _seed(30, hour=10)
    await _seed(5, hour=16, status="completed")

    async with async_session() as db:
        slots = await get_recommendations(db, TARGET_WEDNESDAY, "UTC")

    assert slots[10].label in ("popular", "recommended")
    assert slots[10].score > slots[4].score
    assert slots[4].score == 0


async def test_thin_history_returns_exact_default_table():
    await _seed(29, hour=10)
    await _seed(10, hour=10, status="cancelled")

    async with async_session() as db:
        slots = await get_recommendations(db, TARGET_WEDNESDAY, "UTC")

    assert slots == default_recommendations(3)


async def test_bookings_outside_the_window_are_ignored():
    old = datetime.now(timezone.utc) - timedelta(days=120)
    await _seed(40, hour=10, created_at=old)

    async with async_session() as db:
        summary = await get_recommendation_summary(db)

    assert summary.source == "defaults"


async def test_scope_restricts_history_to_team_event_types():
    async with async_session() as db:
        db.add_all([
            EventType(id="et-a", team_id="team-a", title="Intro call"),
            EventType(id="et-b", team_id="team-b", title="Demo"),
        ])
        await db.commit()
    await _seed(30, hour=9, event_type_id="et-a")

    async with async_session() as db:
        team_a = await get_recommendation_summary(db, scope_id="team-a")
        team_b = await get_recommendation_summary(db, scope_id="team-b")

    assert team_a.source == "real"
    assert team_a.sample_size == 30
    assert team_a.best_days == ["Wed"]
    assert team_a.best_hours == ["9:00 AM"]
    assert team_b.source == "defaults"


async def test_query_failure_falls_back_to_defaults():
    await _seed(40, hour=10)

    async with async_session() as db:
        with patch.object(db, "execute", side_effect=OperationalError("SELECT", {}, Exception("db gone"))):
            slots = await get_recommendations(db, TARGET_WEDNESDAY, "UTC")

    assert slots == default_recommendations(3)


async def test_unknown_timezone_uses_utc():
    await _seed(30, hour=10)

    async with async_session() as db:
        slots = await get_recommendations(db, TARGET_WEDNESDAY, "Not/AZone")

    assert slots[10].label == "popular"


async def test_recommendations_endpoint_returns_24_hours():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.get(
            "/api/v1/scheduling/recommendations",
            params={"date": "2026-01-17", "timezone": "Europe/Berlin"},
        )

    assert resp.status_code == 200
    data = resp.json()
    assert data["date"] == "2026-01-17"
    assert len(data["slots"]) == 24
    # Saturday with no history: only the good hours are labelled
    labelled = {s["hour"]: s["label"] for s in data["slots"] if s["label"]}
    assert labelled == {10: "recommended", 11: "recommended", 13: "recommended", 14: "recommended"}


async def test_summary_endpoint_reports_defaults_without_history():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.get("/api/v1/scheduling/summary")

    assert resp.status_code == 200
    assert resp.json()["source"] == "defaults"
    assert resp.json()["best_days"] == ["Tue", "Wed", "Thu"]
