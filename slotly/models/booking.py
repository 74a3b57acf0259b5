"""Bookings with the no-show risk data attached at creation time."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text

from slotly.database import Base

OUTCOMES = ("completed", "no_show")


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_type_id = Column(String(36), ForeignKey("event_types.id"), nullable=True, index=True)
    invitee_name = Column(String, nullable=False)
    invitee_email = Column(String, nullable=False, index=True)
    invitee_notes = Column(Text, nullable=True)
    answers = Column(JSON, nullable=True)
    start_time = Column(DateTime(timezone=True), nullable=False, index=True)
    end_time = Column(DateTime(timezone=True), nullable=False)
    timezone = Column(String, nullable=False, default="UTC")
    status = Column(String(20), nullable=False, default="confirmed", index=True)
    # Written once at creation; only an explicit re-score overwrites them.
    no_show_score = Column(Integer, nullable=True)
    risk_tier = Column(String(10), nullable=True)
    outcome = Column(String(20), nullable=True)
    outcome_recorded_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
    )
